"""
BridgeStake Cross-Chain Bridge

Provides:
  - types: TransferRequest, TransferStatus, Validator, compute_transfer_hash
  - validators: ValidatorRegistry
  - ledger: TransferRequestLedger
  - gateway: BridgeGateway (initiate -> attest -> finalize)
  - interface: BridgeCollaborator relay entry point
"""

from .types import (
    TransferRequest,
    TransferStatus,
    Validator,
    compute_transfer_hash,
    normalize_transfer_hash,
)
from .validators import ValidatorRegistry
from .ledger import TransferRequestLedger
from .interface import BridgeCollaborator
from .gateway import BridgeGateway

__all__ = [
    "TransferRequest",
    "TransferStatus",
    "Validator",
    "compute_transfer_hash",
    "normalize_transfer_hash",
    "ValidatorRegistry",
    "TransferRequestLedger",
    "BridgeCollaborator",
    "BridgeGateway",
]
