"""
BridgeStake Crypto Module

Provides the primitives the bridge and pool rely on:
- keccak256 hashing and packed encoding for content-addressed transfer ids
- Address normalization and validation (Web3 checksum format)
- CREATE-style contract address derivation
"""

from .hashing import keccak256, keccak256_hex, encode_packed
from .address import (
    is_null_address,
    is_valid_address,
    normalize_address,
)
from .contract import generate_contract_address

__all__ = [
    "keccak256",
    "keccak256_hex",
    "encode_packed",
    "is_null_address",
    "is_valid_address",
    "normalize_address",
    "generate_contract_address",
]
