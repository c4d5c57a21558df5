"""
Contract base classes and entry-point decorators shared by the token,
bridge and staking contracts.
"""

from .base import (
    Contract,
    Ownable,
    Pausable,
    ReentrancyGuard,
    atomic,
    nonreentrant,
)

__all__ = [
    "Contract",
    "Ownable",
    "Pausable",
    "ReentrancyGuard",
    "atomic",
    "nonreentrant",
]
