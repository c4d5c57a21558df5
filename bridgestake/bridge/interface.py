"""
Bridge Collaborator Interface

The fixed-signature relay entry point a staking pool calls to move a
position cross-chain. The call must pull exactly ``amount`` from the
caller using the allowance the caller granted beforehand.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class BridgeCollaborator(Protocol):

    address: str

    def initiate_transfer(
        self,
        caller: str,
        token: str,
        amount: int,
        recipient: str,
        target_chain: int,
    ) -> str:
        """Returns the transfer hash."""
        ...
