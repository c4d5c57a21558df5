"""
Bridge Gateway

Releases funds on the destination side only after a quorum of validators
attests to a transfer and a fixed lock period has passed:

    initiate_transfer -> attest (x threshold) -> [lock period] -> finalize

Transfers are keyed by the keccak256 of their own fields, so the same
request cannot be recorded twice and a finalized request can never be
released again.
"""

from typing import Any, Dict, List, Optional

from ..constants import (
    BRIDGE_LOCK_PERIOD,
    BRIDGE_MAX_TRANSFER,
    BRIDGE_MIN_TRANSFER,
    MAX_VALIDATORS,
)
from ..contracts.base import Pausable, ReentrancyGuard, atomic, nonreentrant
from ..crypto.address import is_null_address, is_valid_address, normalize_address
from ..events import (
    TransferAttested,
    TransferFinalized,
    TransferInitiated,
    ValidatorAdded,
    ValidatorRemoved,
)
from ..exceptions import (
    AlreadyFinalizedError,
    AuthorizationError,
    BoundsError,
    InsufficientAttestationsError,
    IntegrityError,
    InvalidAddressError,
    TimelockActiveError,
)
from ..logger import get_logger
from ..tokens.interface import TokenCollaborator
from ..tokens.safe import expect_balance_delta, safe_transfer, safe_transfer_from
from .ledger import TransferRequestLedger
from .types import TransferRequest, TransferStatus, compute_transfer_hash
from .validators import ValidatorRegistry

logger = get_logger(__name__)


class BridgeGateway(Pausable, ReentrancyGuard):
    """
    Validator-gated custody bridge.

    Args:
        source_chain_id: Chain id of the chain this gateway lives on
        threshold: Attestations required before finalize
        lock_period: Seconds between initiation and earliest release
    """

    _STATE = ("validators", "requests")

    def __init__(
        self,
        runtime,
        address: str,
        deployer: str,
        source_chain_id: int,
        threshold: int,
        *,
        max_validators: int = MAX_VALIDATORS,
        lock_period: int = BRIDGE_LOCK_PERIOD,
        min_transfer: int = BRIDGE_MIN_TRANSFER,
        max_transfer: int = BRIDGE_MAX_TRANSFER,
    ):
        super().__init__(runtime, address, deployer)
        if source_chain_id < 0:
            raise BoundsError("source_chain_id must be non-negative")
        if not 0 < min_transfer <= max_transfer:
            raise BoundsError("Transfer bounds must satisfy 0 < min <= max")
        if lock_period < 0:
            raise BoundsError("lock_period must be non-negative")

        self.source_chain_id = source_chain_id
        self.lock_period = lock_period
        self.min_transfer = min_transfer
        self.max_transfer = max_transfer

        self.validators = ValidatorRegistry(threshold, max_validators)
        self.requests = TransferRequestLedger()

        logger.info(
            f"BridgeGateway {self.address}: chain={source_chain_id}, "
            f"threshold={threshold}, lock={lock_period}s"
        )

    @classmethod
    def from_config(cls, runtime, deployer: str, config) -> "BridgeGateway":
        """Deploy a gateway from a ``BridgeConfig`` and register its validators."""
        gateway = runtime.deploy(
            cls,
            deployer,
            config.source_chain_id,
            config.threshold,
            max_validators=config.max_validators,
            lock_period=config.lock_period,
            min_transfer=config.min_transfer,
            max_transfer=config.max_transfer,
        )
        for validator in config.validators:
            gateway.add_validator(deployer, validator)
        return gateway

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def threshold(self) -> int:
        return self.validators.threshold

    @property
    def validator_count(self) -> int:
        return self.validators.count

    def is_validator(self, address: str) -> bool:
        return self.validators.is_active(address)

    def get_request(self, transfer_hash) -> Optional[TransferRequest]:
        return self.requests.get(transfer_hash)

    def has_attested(self, transfer_hash, validator: str) -> bool:
        request = self.requests.get(transfer_hash)
        return request is not None and request.has_attested(normalize_address(validator))

    def attestation_count(self, transfer_hash) -> int:
        request = self.requests.get(transfer_hash)
        return request.attestations if request else 0

    def transfer_status(self, transfer_hash) -> TransferStatus:
        request = self.requests.require(transfer_hash)
        return request.status(self.threshold, self.runtime.now(), self.lock_period)

    def pending_transfers(self) -> List[TransferRequest]:
        return self.requests.pending()

    # ── Validator management ──────────────────────────────────────────

    @atomic
    def add_validator(self, caller: str, validator: str) -> ValidatorAdded:
        self.only_owner(caller)
        record = self.validators.add(validator, self.runtime.now())
        logger.info(f"Validator added: {record.address} (count={self.validator_count})")
        return self.emit(ValidatorAdded(
            emitter=self.address,
            validator=record.address,
            validator_count=self.validator_count,
            timestamp=self.runtime.now(),
        ))

    @atomic
    def remove_validator(self, caller: str, validator: str) -> ValidatorRemoved:
        self.only_owner(caller)
        record = self.validators.remove(validator, self.runtime.now())
        logger.info(f"Validator removed: {record.address} (count={self.validator_count})")
        return self.emit(ValidatorRemoved(
            emitter=self.address,
            validator=record.address,
            validator_count=self.validator_count,
            timestamp=self.runtime.now(),
        ))

    # ── Transfer lifecycle ────────────────────────────────────────────

    def _resolve_token(self, token: str) -> TokenCollaborator:
        contract = self.runtime.get_contract(token) if is_valid_address(token) else None
        if contract is None or not isinstance(contract, TokenCollaborator):
            raise InvalidAddressError(f"Token {token} is not a token contract")
        return contract

    @nonreentrant
    def initiate_transfer(
        self,
        caller: str,
        token: str,
        amount: int,
        recipient: str,
        target_chain: int,
    ) -> str:
        """
        Lock ``amount`` of ``token`` from the caller and record the request.

        Returns:
            The transfer hash validators attest to.
        """
        self.require_not_paused()
        if not isinstance(amount, int) or not self.min_transfer <= amount <= self.max_transfer:
            raise BoundsError(
                f"Amount {amount} outside [{self.min_transfer}, {self.max_transfer}]"
            )
        if not isinstance(target_chain, int) or target_chain < 0:
            raise BoundsError(f"Invalid target chain {target_chain!r}")
        if not is_valid_address(recipient) or is_null_address(recipient):
            raise InvalidAddressError("Recipient cannot be the null address")
        recipient = normalize_address(recipient)
        token_contract = self._resolve_token(token)

        now = self.runtime.now()
        transfer_hash = compute_transfer_hash(
            token_contract.address, caller, recipient, amount, target_chain
        )
        self.requests.create(TransferRequest(
            transfer_hash=transfer_hash,
            token=token_contract.address,
            initiator=caller,
            recipient=recipient,
            amount=amount,
            source_chain=self.source_chain_id,
            target_chain=target_chain,
            created_at=now,
        ))

        before = token_contract.balance_of(self.address)
        safe_transfer_from(token_contract, self.address, caller, self.address, amount)
        expect_balance_delta(token_contract, self.address, before, amount)

        self.emit(TransferInitiated(
            emitter=self.address,
            transfer_hash=transfer_hash,
            token=token_contract.address,
            initiator=caller,
            recipient=recipient,
            amount=amount,
            source_chain=self.source_chain_id,
            target_chain=target_chain,
            timestamp=now,
        ))
        logger.info(
            f"Transfer initiated: {transfer_hash} {amount} from {caller} "
            f"-> {recipient} (chain {self.source_chain_id} -> {target_chain})"
        )
        return transfer_hash

    @nonreentrant
    def attest(self, caller: str, transfer_hash) -> int:
        """
        Record the calling validator's attestation.

        Returns:
            The attestation count after this vote.
        """
        self.require_not_paused()
        if not self.validators.is_active(caller):
            raise AuthorizationError(f"{caller} is not an active validator")

        request = self.requests.record_attestation(transfer_hash, caller)

        self.emit(TransferAttested(
            emitter=self.address,
            transfer_hash=request.transfer_hash,
            validator=caller,
            attestations=request.attestations,
            timestamp=self.runtime.now(),
        ))
        logger.info(
            f"Transfer attested: {request.transfer_hash} by {caller} "
            f"({request.attestations}/{self.threshold})"
        )
        return request.attestations

    @nonreentrant
    def finalize(
        self,
        caller: str,
        transfer_hash,
        token: str,
        recipient: str,
        amount: int,
    ) -> TransferFinalized:
        """
        Release a quorum-attested, unlocked transfer to its recipient.

        The request is marked processed before the outbound transfer; if
        the transfer fails the whole call, flag included, is rolled back.
        """
        self.require_not_paused()
        request = self.requests.require(transfer_hash)
        if request.processed:
            raise AlreadyFinalizedError(f"Transfer {request.transfer_hash} already finalized")
        if request.attestations < self.threshold:
            raise InsufficientAttestationsError(
                f"Transfer {request.transfer_hash} has {request.attestations} "
                f"attestations, needs {self.threshold}"
            )
        now = self.runtime.now()
        unlock_at = request.unlock_time(self.lock_period)
        if now < unlock_at:
            raise TimelockActiveError(
                f"Transfer {request.transfer_hash} locked for another {unlock_at - now}s"
            )
        if (
            not is_valid_address(token)
            or not is_valid_address(recipient)
            or normalize_address(token) != request.token
            or normalize_address(recipient) != request.recipient
            or amount != request.amount
        ):
            raise IntegrityError(
                f"Finalize arguments do not match transfer {request.transfer_hash}"
            )

        self.requests.mark_processed(request.transfer_hash, now)

        token_contract = self._resolve_token(request.token)
        before = token_contract.balance_of(self.address)
        safe_transfer(token_contract, self.address, request.recipient, request.amount)
        expect_balance_delta(token_contract, self.address, before, -request.amount)

        event = self.emit(TransferFinalized(
            emitter=self.address,
            transfer_hash=request.transfer_hash,
            token=request.token,
            recipient=request.recipient,
            amount=request.amount,
            timestamp=now,
        ))
        logger.info(
            f"Transfer finalized: {request.transfer_hash} {request.amount} -> "
            f"{request.recipient} (by {caller})"
        )
        return event

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "owner": self.owner,
            "pendingOwner": self.pending_owner,
            "paused": self.paused,
            "sourceChainId": self.source_chain_id,
            "lockPeriod": self.lock_period,
            "minTransfer": str(self.min_transfer),
            "maxTransfer": str(self.max_transfer),
            "validators": self.validators.to_dict(),
            "transfers": len(self.requests),
            "pending": len(self.requests.pending()),
        }
