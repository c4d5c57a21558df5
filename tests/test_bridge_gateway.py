"""
Bridge Gateway Test Suite

Coverage:
  - Transfer hash derivation (keccak256 over packed fields)
  - initiate -> attest -> finalize lifecycle with quorum and lock period
  - Replay protection: duplicate requests, duplicate attestations,
    double finalization
  - Rollback: a failing outbound transfer leaves the request unprocessed
  - Validator registry bounds (threshold, capacity, removal floor)
  - Pause gating and argument validation
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from bridgestake.bridge import (
    BridgeGateway,
    TransferStatus,
    ValidatorRegistry,
    compute_transfer_hash,
    normalize_transfer_hash,
)
from bridgestake.constants import BRIDGE_LOCK_PERIOD, TOKEN_UNIT, ZERO_ADDRESS
from bridgestake.crypto import encode_packed, keccak256_hex, normalize_address
from bridgestake.exceptions import (
    AlreadyFinalizedError,
    AuthorizationError,
    BalanceMismatchError,
    BoundsError,
    ContractPausedError,
    DuplicateAttestationError,
    DuplicateTransferError,
    InsufficientAttestationsError,
    IntegrityError,
    InvalidAddressError,
    TimelockActiveError,
    TokenCallFailedError,
    UnknownTransferError,
    ValidatorError,
)
from bridgestake.runtime import ManualClock, Runtime
from bridgestake.tokens import InsufficientBalanceError, Token


# ══════════════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════════════

UNIT = TOKEN_UNIT
START = 1_700_000_000
TARGET_CHAIN = 137

OWNER = "0x" + "0a" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
VAL1 = "0x" + "c1" * 20
VAL2 = "0x" + "c2" * 20
VAL3 = "0x" + "c3" * 20
OUTSIDER = "0x" + "ee" * 20


class FalseReturningToken(Token):
    """Outbound transfers report failure instead of raising."""

    def transfer(self, caller, to, amount):
        return False


class FeeOnTransferToken(Token):
    """Burns 1% of every movement."""

    def _move(self, sender, recipient, amount):
        if self._balances.get(sender, 0) < amount:
            raise InsufficientBalanceError(f"{sender} balance too low")
        fee = amount // 100
        super()._move(sender, recipient, amount - fee)
        self._balances[sender] -= fee
        self._total_supply -= fee


def make_env(token_cls=Token, threshold=2, validators=(VAL1, VAL2, VAL3)):
    """Runtime with a funded token and a gateway with registered validators."""
    clock = ManualClock(START)
    runtime = Runtime(clock)
    token = runtime.deploy(token_cls, OWNER, "Bridge Token", "BRG", initial_supply=10_000_000 * UNIT)
    bridge = runtime.deploy(BridgeGateway, OWNER, 1, threshold)
    for validator in validators:
        bridge.add_validator(OWNER, validator)
    token.mint(OWNER, ALICE, 100_000 * UNIT)
    token.approve(ALICE, bridge.address, 100_000 * UNIT)
    return clock, runtime, token, bridge


def initiate(bridge, token, amount=5_000 * UNIT, recipient=BOB, chain=TARGET_CHAIN):
    return bridge.initiate_transfer(ALICE, token.address, amount, recipient, chain)


def attest_quorum(bridge, transfer_hash, validators=(VAL1, VAL2)):
    for validator in validators:
        bridge.attest(validator, transfer_hash)


# ══════════════════════════════════════════════════════════════════════
#  TRANSFER HASH
# ══════════════════════════════════════════════════════════════════════


class TestTransferHash:
    """Content-addressed transfer ids."""

    def test_hash_is_keccak_of_packed_fields(self):
        token = "0x" + "11" * 20
        expected = keccak256_hex(
            bytes.fromhex("11" * 20)
            + bytes.fromhex("a1" * 20)
            + bytes.fromhex("b2" * 20)
            + (5_000 * UNIT).to_bytes(32, "big")
            + TARGET_CHAIN.to_bytes(32, "big")
        )
        assert compute_transfer_hash(token, ALICE, BOB, 5_000 * UNIT, TARGET_CHAIN) == expected

    def test_hash_format(self):
        h = compute_transfer_hash(ALICE, ALICE, BOB, 1, 1)
        assert h.startswith("0x")
        assert len(h) == 66
        assert h == h.lower()

    def test_hash_is_case_insensitive_in_addresses(self):
        a = compute_transfer_hash(ALICE.upper().replace("0X", "0x"), ALICE, BOB, 1, 1)
        b = compute_transfer_hash(ALICE, ALICE, BOB, 1, 1)
        assert a == b

    def test_each_field_changes_hash(self):
        base = compute_transfer_hash(ALICE, ALICE, BOB, 10, 1)
        assert compute_transfer_hash(BOB, ALICE, BOB, 10, 1) != base
        assert compute_transfer_hash(ALICE, BOB, BOB, 10, 1) != base
        assert compute_transfer_hash(ALICE, ALICE, ALICE, 10, 1) != base
        assert compute_transfer_hash(ALICE, ALICE, BOB, 11, 1) != base
        assert compute_transfer_hash(ALICE, ALICE, BOB, 10, 2) != base

    def test_encode_packed_rejects_out_of_range(self):
        with pytest.raises(ValueError, match="uint256"):
            encode_packed([("uint256", -1)])
        with pytest.raises(ValueError, match="Unsupported"):
            encode_packed([("bytes", b"")])

    def test_normalize_transfer_hash(self):
        h = compute_transfer_hash(ALICE, ALICE, BOB, 1, 1)
        assert normalize_transfer_hash(h.upper().replace("0X", "0x")) == h
        assert normalize_transfer_hash(bytes.fromhex(h[2:])) == h
        assert normalize_transfer_hash(h[2:]) == h
        with pytest.raises(ValueError):
            normalize_transfer_hash("0x1234")


# ══════════════════════════════════════════════════════════════════════
#  LIFECYCLE
# ══════════════════════════════════════════════════════════════════════


class TestInitiateTransfer:
    """Locking funds and recording the request."""

    def test_initiate_locks_funds(self):
        clock, runtime, token, bridge = make_env()
        h = initiate(bridge, token)

        assert token.balance_of(bridge.address) == 5_000 * UNIT
        assert token.balance_of(ALICE) == 95_000 * UNIT
        request = bridge.get_request(h)
        assert request.initiator == normalize_address(ALICE)
        assert request.recipient == normalize_address(BOB)
        assert request.amount == 5_000 * UNIT
        assert request.source_chain == 1
        assert request.target_chain == TARGET_CHAIN
        assert request.created_at == START
        assert request.processed is False
        assert bridge.transfer_status(h) == TransferStatus.INITIATED

    def test_initiate_returns_content_hash(self):
        clock, runtime, token, bridge = make_env()
        h = initiate(bridge, token)
        assert h == compute_transfer_hash(token.address, ALICE, BOB, 5_000 * UNIT, TARGET_CHAIN)

    def test_initiate_emits_event(self):
        clock, runtime, token, bridge = make_env()
        h = initiate(bridge, token)
        events = runtime.events("TransferInitiated", emitter=bridge.address)
        assert len(events) == 1
        assert events[0].transfer_hash == h
        assert events[0].amount == 5_000 * UNIT
        assert events[0].to_dict()["transferHash"] == h

    def test_duplicate_request_rejected(self):
        clock, runtime, token, bridge = make_env()
        initiate(bridge, token)
        with pytest.raises(DuplicateTransferError):
            initiate(bridge, token)
        assert token.balance_of(ALICE) == 95_000 * UNIT
        assert len(bridge.pending_transfers()) == 1

    def test_amount_bounds(self):
        clock, runtime, token, bridge = make_env()
        with pytest.raises(BoundsError):
            initiate(bridge, token, amount=UNIT - 1)
        with pytest.raises(BoundsError):
            initiate(bridge, token, amount=1_000_000 * UNIT + 1)

    def test_null_recipient_rejected(self):
        clock, runtime, token, bridge = make_env()
        with pytest.raises(InvalidAddressError):
            initiate(bridge, token, recipient=ZERO_ADDRESS)

    def test_non_contract_token_rejected(self):
        clock, runtime, token, bridge = make_env()
        with pytest.raises(InvalidAddressError):
            bridge.initiate_transfer(ALICE, OUTSIDER, 5 * UNIT, BOB, TARGET_CHAIN)

    def test_negative_target_chain_rejected(self):
        clock, runtime, token, bridge = make_env()
        with pytest.raises(BoundsError):
            initiate(bridge, token, chain=-1)

    def test_fee_on_transfer_token_rejected(self):
        clock, runtime, token, bridge = make_env(token_cls=FeeOnTransferToken)
        before = token.balance_of(ALICE)
        with pytest.raises(BalanceMismatchError):
            initiate(bridge, token, amount=1_000 * UNIT)
        assert token.balance_of(ALICE) == before
        assert len(bridge.requests) == 0
        assert runtime.events("TransferInitiated") == []

    def test_initiate_blocked_while_paused(self):
        clock, runtime, token, bridge = make_env()
        bridge.pause(OWNER)
        with pytest.raises(ContractPausedError):
            initiate(bridge, token)


class TestAttest:
    """Validator attestations."""

    def test_attest_counts_votes(self):
        clock, runtime, token, bridge = make_env()
        h = initiate(bridge, token)
        assert bridge.attest(VAL1, h) == 1
        assert bridge.transfer_status(h) == TransferStatus.ATTESTING
        assert bridge.attest(VAL2, h) == 2
        assert bridge.has_attested(h, VAL1)
        assert not bridge.has_attested(h, VAL3)
        assert bridge.attestation_count(h) == 2

    def test_non_validator_cannot_attest(self):
        clock, runtime, token, bridge = make_env()
        h = initiate(bridge, token)
        with pytest.raises(AuthorizationError):
            bridge.attest(OUTSIDER, h)

    def test_duplicate_attestation_rejected(self):
        clock, runtime, token, bridge = make_env()
        h = initiate(bridge, token)
        bridge.attest(VAL1, h)
        with pytest.raises(DuplicateAttestationError):
            bridge.attest(VAL1, h)
        assert bridge.attestation_count(h) == 1

    def test_unknown_transfer(self):
        clock, runtime, token, bridge = make_env()
        with pytest.raises(UnknownTransferError):
            bridge.attest(VAL1, "0x" + "00" * 32)
        with pytest.raises(UnknownTransferError):
            bridge.finalize(OUTSIDER, "0x" + "00" * 32, token.address, BOB, UNIT)

    def test_removed_validator_cannot_attest(self):
        clock, runtime, token, bridge = make_env()
        h = initiate(bridge, token)
        bridge.remove_validator(OWNER, VAL3)
        with pytest.raises(AuthorizationError):
            bridge.attest(VAL3, h)

    def test_attest_blocked_while_paused(self):
        clock, runtime, token, bridge = make_env()
        h = initiate(bridge, token)
        bridge.pause(OWNER)
        with pytest.raises(ContractPausedError):
            bridge.attest(VAL1, h)
        assert bridge.attestation_count(h) == 0
        bridge.unpause(OWNER)
        assert bridge.attest(VAL1, h) == 1

    def test_attest_emits_event(self):
        clock, runtime, token, bridge = make_env()
        h = initiate(bridge, token)
        bridge.attest(VAL1, h)
        (event,) = runtime.events("TransferAttested")
        assert event.validator == normalize_address(VAL1)
        assert event.attestations == 1


class TestFinalize:
    """Quorum, lock period and single release."""

    def test_full_quorum_scenario(self):
        clock, runtime, token, bridge = make_env()
        h = initiate(bridge, token)

        bridge.attest(VAL1, h)
        with pytest.raises(InsufficientAttestationsError):
            bridge.finalize(OUTSIDER, h, token.address, BOB, 5_000 * UNIT)

        bridge.attest(VAL2, h)
        with pytest.raises(TimelockActiveError):
            bridge.finalize(OUTSIDER, h, token.address, BOB, 5_000 * UNIT)

        clock.advance(BRIDGE_LOCK_PERIOD - 1)
        with pytest.raises(TimelockActiveError):
            bridge.finalize(OUTSIDER, h, token.address, BOB, 5_000 * UNIT)

        clock.advance(1)
        assert bridge.transfer_status(h) == TransferStatus.FINALIZABLE
        event = bridge.finalize(OUTSIDER, h, token.address, BOB, 5_000 * UNIT)

        assert event.recipient == normalize_address(BOB)
        assert token.balance_of(BOB) == 5_000 * UNIT
        assert token.balance_of(bridge.address) == 0
        assert bridge.get_request(h).processed is True
        assert bridge.get_request(h).finalized_at == START + BRIDGE_LOCK_PERIOD
        assert bridge.transfer_status(h) == TransferStatus.FINALIZED
        assert bridge.pending_transfers() == []

    def test_double_finalize_rejected(self):
        clock, runtime, token, bridge = make_env()
        h = initiate(bridge, token)
        attest_quorum(bridge, h)
        clock.advance(BRIDGE_LOCK_PERIOD)
        bridge.finalize(OUTSIDER, h, token.address, BOB, 5_000 * UNIT)

        with pytest.raises(AlreadyFinalizedError):
            bridge.finalize(OUTSIDER, h, token.address, BOB, 5_000 * UNIT)
        assert token.balance_of(BOB) == 5_000 * UNIT

    def test_attest_after_finalize_rejected(self):
        clock, runtime, token, bridge = make_env()
        h = initiate(bridge, token)
        attest_quorum(bridge, h)
        clock.advance(BRIDGE_LOCK_PERIOD)
        bridge.finalize(OUTSIDER, h, token.address, BOB, 5_000 * UNIT)
        with pytest.raises(AlreadyFinalizedError):
            bridge.attest(VAL3, h)

    def test_mismatched_arguments_rejected(self):
        clock, runtime, token, bridge = make_env()
        h = initiate(bridge, token)
        attest_quorum(bridge, h)
        clock.advance(BRIDGE_LOCK_PERIOD)
        with pytest.raises(IntegrityError):
            bridge.finalize(OUTSIDER, h, token.address, OUTSIDER, 5_000 * UNIT)
        with pytest.raises(IntegrityError):
            bridge.finalize(OUTSIDER, h, token.address, BOB, 6_000 * UNIT)
        assert bridge.get_request(h).processed is False

    def test_failed_release_rolls_back_processed_flag(self):
        clock, runtime, token, bridge = make_env(token_cls=FalseReturningToken)
        h = initiate(bridge, token)
        attest_quorum(bridge, h)
        clock.advance(BRIDGE_LOCK_PERIOD)

        with pytest.raises(TokenCallFailedError):
            bridge.finalize(OUTSIDER, h, token.address, BOB, 5_000 * UNIT)

        request = bridge.get_request(h)
        assert request.processed is False
        assert request.finalized_at is None
        assert token.balance_of(bridge.address) == 5_000 * UNIT
        assert runtime.events("TransferFinalized") == []
        assert bridge.entered is False

    def test_finalize_blocked_while_paused(self):
        clock, runtime, token, bridge = make_env()
        h = initiate(bridge, token)
        attest_quorum(bridge, h)
        clock.advance(BRIDGE_LOCK_PERIOD)
        bridge.pause(OWNER)
        with pytest.raises(ContractPausedError):
            bridge.finalize(OUTSIDER, h, token.address, BOB, 5_000 * UNIT)
        bridge.unpause(OWNER)
        bridge.finalize(OUTSIDER, h, token.address, BOB, 5_000 * UNIT)


# ══════════════════════════════════════════════════════════════════════
#  VALIDATOR SET
# ══════════════════════════════════════════════════════════════════════


class TestValidatorRegistry:
    """Registry bounds."""

    def test_threshold_bounds(self):
        with pytest.raises(BoundsError):
            ValidatorRegistry(0)
        with pytest.raises(BoundsError):
            ValidatorRegistry(4, max_validators=3)

    def test_add_rejects_null_and_duplicate(self):
        registry = ValidatorRegistry(1)
        with pytest.raises(ValidatorError):
            registry.add(ZERO_ADDRESS, START)
        registry.add(VAL1, START)
        with pytest.raises(ValidatorError):
            registry.add(VAL1.upper().replace("0X", "0x"), START)

    def test_capacity(self):
        registry = ValidatorRegistry(1, max_validators=2)
        registry.add(VAL1, START)
        registry.add(VAL2, START)
        with pytest.raises(BoundsError, match="full"):
            registry.add(VAL3, START)

    def test_removal_keeps_threshold(self):
        registry = ValidatorRegistry(2)
        for v in (VAL1, VAL2, VAL3):
            registry.add(v, START)
        registry.remove(VAL3, START + 1)
        assert registry.count == 2
        with pytest.raises(BoundsError, match="below threshold"):
            registry.remove(VAL2, START + 2)
        assert registry.count == 2

    def test_remove_unknown(self):
        registry = ValidatorRegistry(1)
        with pytest.raises(ValidatorError):
            registry.remove(VAL1, START)

    def test_readd_reactivates(self):
        registry = ValidatorRegistry(1)
        registry.add(VAL1, START)
        registry.add(VAL2, START)
        registry.remove(VAL2, START + 10)
        assert registry.get(VAL2).removed_at == START + 10
        record = registry.add(VAL2, START + 20)
        assert record.active is True
        assert record.removed_at is None
        assert registry.count == 2

    def test_gateway_validator_management_is_owner_only(self):
        clock, runtime, token, bridge = make_env()
        with pytest.raises(AuthorizationError):
            bridge.add_validator(OUTSIDER, OUTSIDER)
        with pytest.raises(AuthorizationError):
            bridge.remove_validator(OUTSIDER, VAL1)
        assert bridge.validator_count == 3

    def test_gateway_validator_events(self):
        clock, runtime, token, bridge = make_env()
        assert len(runtime.events("ValidatorAdded")) == 3
        bridge.remove_validator(OWNER, VAL3)
        (event,) = runtime.events("ValidatorRemoved")
        assert event.validator_count == 2
        assert not bridge.is_validator(VAL3)

    def test_bad_threshold_deploy_leaves_no_contract(self):
        runtime = Runtime(ManualClock(START))
        with pytest.raises(BoundsError):
            runtime.deploy(BridgeGateway, OWNER, 1, 0)
        assert runtime.contracts == {}

    def test_to_dict(self):
        clock, runtime, token, bridge = make_env()
        initiate(bridge, token)
        d = bridge.to_dict()
        assert d["validators"]["threshold"] == 2
        assert d["validators"]["count"] == 3
        assert d["transfers"] == 1
        assert d["pending"] == 1
