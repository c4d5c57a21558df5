"""
Bridge Types

Core data structures for the validator-gated bridge:

  - TransferStatus: derived lifecycle stage of a transfer request
  - Validator: an attester record in the registry
  - TransferRequest: content-addressed record of one outbound transfer
  - compute_transfer_hash: the content address itself
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional, Union

from eth_utils import encode_hex, is_hexstr

from ..crypto.hashing import encode_packed, keccak256


# ══════════════════════════════════════════════════════════════════════
#  TRANSFER IDENTITY
# ══════════════════════════════════════════════════════════════════════

def compute_transfer_hash(
    token: str,
    initiator: str,
    recipient: str,
    amount: int,
    target_chain: int,
) -> str:
    """
    Derive the transfer id: keccak256 over the packed canonical encoding
    of (token, initiator, recipient, amount, target_chain).

    Returns:
        0x-prefixed lowercase hex (32 bytes)
    """
    packed = encode_packed([
        ("address", token),
        ("address", initiator),
        ("address", recipient),
        ("uint256", amount),
        ("uint256", target_chain),
    ])
    return encode_hex(keccak256(packed))


def normalize_transfer_hash(transfer_hash: Union[str, bytes]) -> str:
    """Accept raw bytes or hex in any case; return 0x-prefixed lowercase hex."""
    if isinstance(transfer_hash, (bytes, bytearray)):
        if len(transfer_hash) != 32:
            raise ValueError("Transfer hash must be 32 bytes")
        return encode_hex(bytes(transfer_hash))
    if not isinstance(transfer_hash, str) or not is_hexstr(transfer_hash):
        raise ValueError(f"Invalid transfer hash: {transfer_hash!r}")
    body = transfer_hash[2:] if transfer_hash[:2].lower() == "0x" else transfer_hash
    if len(body) != 64:
        raise ValueError("Transfer hash must be 32 bytes")
    return "0x" + body.lower()


# ══════════════════════════════════════════════════════════════════════
#  STATUS
# ══════════════════════════════════════════════════════════════════════

class TransferStatus(IntEnum):
    """Lifecycle of a transfer request. FINALIZED is terminal."""
    INITIATED   = 0  # Recorded, no attestations yet
    ATTESTING   = 1  # Some attestations, below threshold or still time-locked
    FINALIZABLE = 2  # Quorum reached and lock period elapsed
    FINALIZED   = 3  # Funds released


# ══════════════════════════════════════════════════════════════════════
#  VALIDATOR
# ══════════════════════════════════════════════════════════════════════

@dataclass
class Validator:
    """
    Attester record.

    Attributes:
        address: Validator's checksum address
        active: Whether the validator may currently attest
        added_at: Timestamp of the latest activation
        removed_at: Timestamp of the latest removal, if any
    """
    address: str
    active: bool = True
    added_at: int = 0
    removed_at: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "active": self.active,
            "addedAt": self.added_at,
            "removedAt": self.removed_at,
        }


# ══════════════════════════════════════════════════════════════════════
#  TRANSFER REQUEST
# ══════════════════════════════════════════════════════════════════════

@dataclass
class TransferRequest:
    """
    One bridge transfer, keyed by its content hash.

    Attributes:
        transfer_hash: compute_transfer_hash(token, initiator, recipient, amount, target_chain)
        token: Token contract address
        initiator: Address the amount was pulled from
        recipient: Destination-side recipient
        amount: Amount in token base units
        source_chain: Chain id of the bridge that recorded the request
        target_chain: Destination chain id
        created_at: Timelock anchor (initiation timestamp)
        attesters: Validators that attested, in order
        attestations: Attestation count
        processed: Set once funds are released; never cleared
        finalized_at: Timestamp of release
    """
    transfer_hash: str
    token: str
    initiator: str
    recipient: str
    amount: int
    source_chain: int
    target_chain: int
    created_at: int
    attesters: List[str] = field(default_factory=list)
    attestations: int = 0
    processed: bool = False
    finalized_at: Optional[int] = None

    def has_attested(self, validator: str) -> bool:
        return validator in self.attesters

    def unlock_time(self, lock_period: int) -> int:
        return self.created_at + lock_period

    def status(self, threshold: int, now: int, lock_period: int) -> TransferStatus:
        if self.processed:
            return TransferStatus.FINALIZED
        if self.attestations >= threshold and now >= self.unlock_time(lock_period):
            return TransferStatus.FINALIZABLE
        if self.attestations > 0:
            return TransferStatus.ATTESTING
        return TransferStatus.INITIATED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transferHash": self.transfer_hash,
            "token": self.token,
            "initiator": self.initiator,
            "recipient": self.recipient,
            "amount": str(self.amount),
            "sourceChain": self.source_chain,
            "targetChain": self.target_chain,
            "createdAt": self.created_at,
            "attesters": list(self.attesters),
            "attestations": self.attestations,
            "processed": self.processed,
            "finalizedAt": self.finalized_at,
        }
