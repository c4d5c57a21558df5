"""
Transfer Request Ledger

Append-only store of transfer requests keyed by content hash. Records are
never deleted; ``processed`` flips False -> True exactly once.
"""

from typing import Dict, Iterator, List, Optional

from ..exceptions import (
    AlreadyFinalizedError,
    DuplicateAttestationError,
    DuplicateTransferError,
    UnknownTransferError,
)
from .types import TransferRequest, normalize_transfer_hash


class TransferRequestLedger:

    def __init__(self):
        self._requests: Dict[str, TransferRequest] = {}

    def __len__(self) -> int:
        return len(self._requests)

    def __contains__(self, transfer_hash) -> bool:
        return self.get(transfer_hash) is not None

    def __iter__(self) -> Iterator[TransferRequest]:
        return iter(self._requests.values())

    def get(self, transfer_hash) -> Optional[TransferRequest]:
        try:
            return self._requests.get(normalize_transfer_hash(transfer_hash))
        except ValueError:
            return None

    def require(self, transfer_hash) -> TransferRequest:
        request = self.get(transfer_hash)
        if request is None:
            raise UnknownTransferError(f"Unknown transfer {transfer_hash}")
        return request

    def create(self, request: TransferRequest) -> TransferRequest:
        if request.transfer_hash in self._requests:
            raise DuplicateTransferError(
                f"Transfer {request.transfer_hash} already recorded"
            )
        self._requests[request.transfer_hash] = request
        return request

    def record_attestation(self, transfer_hash, validator: str) -> TransferRequest:
        """Count ``validator``'s vote once. Returns the updated request."""
        request = self.require(transfer_hash)
        if request.processed:
            raise AlreadyFinalizedError(f"Transfer {request.transfer_hash} already finalized")
        if request.has_attested(validator):
            raise DuplicateAttestationError(
                f"{validator} already attested {request.transfer_hash}"
            )
        request.attesters.append(validator)
        request.attestations += 1
        return request

    def mark_processed(self, transfer_hash, now: int) -> TransferRequest:
        request = self.require(transfer_hash)
        if request.processed:
            raise AlreadyFinalizedError(f"Transfer {request.transfer_hash} already finalized")
        request.processed = True
        request.finalized_at = now
        return request

    def pending(self) -> List[TransferRequest]:
        return [r for r in self._requests.values() if not r.processed]
