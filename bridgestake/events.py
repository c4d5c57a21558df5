"""
Contract Events

Every mutating operation appends one of these records to the runtime event
log so indexers can rebuild bridge and pool history without reading state.
Each event carries the emitting contract, the relevant addresses and
amounts, and the runtime timestamp at emission.
"""

from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


@dataclass(frozen=True)
class ContractEvent:
    """Base class; subclasses are frozen dataclasses."""
    NAME: ClassVar[str] = "Event"

    @property
    def name(self) -> str:
        return self.NAME

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"event": self.NAME}
        for f in fields(self):
            value = getattr(self, f.name)
            # uint256 amounts do not survive JSON round-trips as numbers
            if isinstance(value, int) and not isinstance(value, bool) and f.name != "timestamp":
                value = str(value)
            data[_camel(f.name)] = value
        return data


# ══════════════════════════════════════════════════════════════════════
#  OWNERSHIP / PAUSE
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OwnershipTransferStarted(ContractEvent):
    NAME: ClassVar[str] = "OwnershipTransferStarted"
    emitter: str
    previous_owner: str
    new_owner: str
    timestamp: int


@dataclass(frozen=True)
class OwnershipTransferred(ContractEvent):
    NAME: ClassVar[str] = "OwnershipTransferred"
    emitter: str
    previous_owner: str
    new_owner: str
    timestamp: int


@dataclass(frozen=True)
class Paused(ContractEvent):
    NAME: ClassVar[str] = "Paused"
    emitter: str
    account: str
    timestamp: int


@dataclass(frozen=True)
class Unpaused(ContractEvent):
    NAME: ClassVar[str] = "Unpaused"
    emitter: str
    account: str
    timestamp: int


# ══════════════════════════════════════════════════════════════════════
#  TOKEN
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Transfer(ContractEvent):
    NAME: ClassVar[str] = "Transfer"
    emitter: str
    sender: str
    recipient: str
    amount: int
    timestamp: int


@dataclass(frozen=True)
class Approval(ContractEvent):
    NAME: ClassVar[str] = "Approval"
    emitter: str
    owner: str
    spender: str
    amount: int
    timestamp: int


# ══════════════════════════════════════════════════════════════════════
#  BRIDGE
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ValidatorAdded(ContractEvent):
    NAME: ClassVar[str] = "ValidatorAdded"
    emitter: str
    validator: str
    validator_count: int
    timestamp: int


@dataclass(frozen=True)
class ValidatorRemoved(ContractEvent):
    NAME: ClassVar[str] = "ValidatorRemoved"
    emitter: str
    validator: str
    validator_count: int
    timestamp: int


@dataclass(frozen=True)
class TransferInitiated(ContractEvent):
    NAME: ClassVar[str] = "TransferInitiated"
    emitter: str
    transfer_hash: str
    token: str
    initiator: str
    recipient: str
    amount: int
    source_chain: int
    target_chain: int
    timestamp: int


@dataclass(frozen=True)
class TransferAttested(ContractEvent):
    NAME: ClassVar[str] = "TransferAttested"
    emitter: str
    transfer_hash: str
    validator: str
    attestations: int
    timestamp: int


@dataclass(frozen=True)
class TransferFinalized(ContractEvent):
    NAME: ClassVar[str] = "TransferFinalized"
    emitter: str
    transfer_hash: str
    token: str
    recipient: str
    amount: int
    timestamp: int


# ══════════════════════════════════════════════════════════════════════
#  STAKING
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Staked(ContractEvent):
    NAME: ClassVar[str] = "Staked"
    emitter: str
    user: str
    amount: int
    timestamp: int


@dataclass(frozen=True)
class Withdrawn(ContractEvent):
    NAME: ClassVar[str] = "Withdrawn"
    emitter: str
    user: str
    amount: int
    timestamp: int


@dataclass(frozen=True)
class RewardClaimed(ContractEvent):
    NAME: ClassVar[str] = "RewardClaimed"
    emitter: str
    user: str
    amount: int
    timestamp: int


@dataclass(frozen=True)
class EmergencyWithdrawn(ContractEvent):
    NAME: ClassVar[str] = "EmergencyWithdrawn"
    emitter: str
    user: str
    amount: int
    forfeited_reward: int
    timestamp: int


@dataclass(frozen=True)
class RewardRateUpdated(ContractEvent):
    NAME: ClassVar[str] = "RewardRateUpdated"
    emitter: str
    old_rate: int
    new_rate: int
    timestamp: int


@dataclass(frozen=True)
class StakeBridged(ContractEvent):
    NAME: ClassVar[str] = "StakeBridged"
    emitter: str
    user: str
    amount: int
    recipient: str
    target_chain: int
    transfer_hash: str
    timestamp: int


@dataclass(frozen=True)
class BridgeUpdated(ContractEvent):
    NAME: ClassVar[str] = "BridgeUpdated"
    emitter: str
    old_bridge: str
    new_bridge: str
    timestamp: int


@dataclass(frozen=True)
class SupportedChainAdded(ContractEvent):
    NAME: ClassVar[str] = "SupportedChainAdded"
    emitter: str
    chain_id: int
    timestamp: int
