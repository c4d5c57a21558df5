"""
Contract Address Generation

Ethereum-compatible contract address computation.
"""

from eth_utils import keccak, to_canonical_address, to_checksum_address
import rlp


def generate_contract_address(sender: str, nonce: int) -> str:
    """
    Generate contract address using CREATE opcode logic.

    Address = keccak256(rlp([sender, nonce]))[-20:]

    Args:
        sender: Deployer address (Ethereum format)
        nonce: Deployer's deployment counter

    Returns:
        Contract address (Ethereum checksum format)
    """
    sender_bytes = to_canonical_address(sender)
    rlp_encoded = rlp.encode([sender_bytes, nonce])
    address_bytes = keccak(rlp_encoded)[-20:]
    return to_checksum_address('0x' + address_bytes.hex())
