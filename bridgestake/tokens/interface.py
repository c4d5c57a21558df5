"""
Token Collaborator Interface

The contract any pluggable asset must satisfy. The bridge and pool never
trust a ``True`` on its own: callers go through ``tokens.safe`` which also
checks balance deltas where the operation calls for it.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenCollaborator(Protocol):
    """ERC-20 style balance/allowance store; ``caller`` is the msg.sender."""

    address: str

    def transfer(self, caller: str, to: str, amount: int) -> bool:
        ...

    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> bool:
        ...

    def approve(self, caller: str, spender: str, amount: int) -> bool:
        ...

    def balance_of(self, address: str) -> int:
        ...

    def allowance(self, owner: str, spender: str) -> int:
        ...
