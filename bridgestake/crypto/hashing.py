"""
BridgeStake Crypto Hashing Module

Provides the hash function used to derive transfer identifiers:
- keccak256: Web3 standard hash over packed (abi.encodePacked-style) data
"""

from typing import Sequence, Tuple, Union

from eth_utils import encode_hex, keccak, to_canonical_address

from ..constants import UINT256_MAX


PackedField = Tuple[str, Union[str, int]]


def keccak256(data: Union[bytes, str]) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum standard).

    Args:
        data: Input bytes or 0x-prefixed hex string

    Returns:
        32-byte hash
    """
    if isinstance(data, str):
        return keccak(hexstr=data)
    return keccak(data)


def keccak256_hex(data: Union[bytes, str]) -> str:
    """
    Compute Keccak-256 hash and return as hex string.

    Returns:
        Hex string with 0x prefix
    """
    return encode_hex(keccak256(data))


def encode_packed(fields: Sequence[PackedField]) -> bytes:
    """
    Tightly pack ``(type, value)`` pairs.

    Supported types are ``address`` (20 bytes) and ``uint256`` (32 bytes,
    big-endian). Only fixed-width types are accepted, so the packing is
    unambiguous.
    """
    out = b''
    for kind, value in fields:
        if kind == 'address':
            out += to_canonical_address(value)
        elif kind == 'uint256':
            if not isinstance(value, int) or value < 0 or value > UINT256_MAX:
                raise ValueError(f"uint256 out of range: {value!r}")
            out += value.to_bytes(32, 'big')
        else:
            raise ValueError(f"Unsupported packed type: {kind}")
    return out
