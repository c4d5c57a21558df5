"""
Address Utilities

Web3 (20-byte, 0x-prefixed) addresses only. Every address stored by a
contract is normalized to checksum form so dictionary lookups are
case-insensitive in effect.
"""

from eth_utils import is_address, to_checksum_address

from ..constants import ZERO_ADDRESS


def is_valid_address(address: str) -> bool:
    """
    Check if address is a well-formed 20-byte hex address.

    Args:
        address: Address to validate

    Returns:
        True if valid, False otherwise
    """
    if not isinstance(address, str):
        return False
    return is_address(address)


def normalize_address(address: str) -> str:
    """
    Convert an address to its checksum form.

    Raises:
        ValueError: If the address is malformed
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid address: {address!r}")
    return to_checksum_address(address)


def is_null_address(address: str) -> bool:
    """True for the all-zero address."""
    return is_valid_address(address) and int(address, 16) == int(ZERO_ADDRESS, 16)
