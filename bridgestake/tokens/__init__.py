"""
BridgeStake Token Layer

Provides:
  - TokenCollaborator : the interface every pluggable asset satisfies
  - Token             : reference ERC-20 style ledger contract
  - safe_*            : checked calls used by the bridge and pool
"""

from .interface import TokenCollaborator
from .token import (
    Token,
    TokenError,
    InsufficientBalanceError,
    InsufficientAllowanceError,
)
from .safe import (
    expect_balance_delta,
    safe_approve,
    safe_transfer,
    safe_transfer_from,
)

__all__ = [
    "TokenCollaborator",
    "Token",
    "TokenError",
    "InsufficientBalanceError",
    "InsufficientAllowanceError",
    "expect_balance_delta",
    "safe_approve",
    "safe_transfer",
    "safe_transfer_from",
]
