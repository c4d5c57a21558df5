"""
Staking Types
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class StakePosition:
    """
    A depositor's position in a pool.

    Attributes:
        owner: Depositor address
        balance: Amount currently staked
        staked_at: Timestamp of the most recent stake; anchors the
            withdrawal lock for the whole balance
        reward_per_token_paid: Accumulator value at the last settlement
        rewards: Settled, unclaimed reward
    """
    owner: str
    balance: int = 0
    staked_at: int = 0
    reward_per_token_paid: int = 0
    rewards: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "balance": str(self.balance),
            "stakedAt": self.staked_at,
            "rewardPerTokenPaid": str(self.reward_per_token_paid),
            "rewards": str(self.rewards),
        }


@dataclass
class AccrualState:
    """
    Global reward accumulator.

    Attributes:
        total_staked: Sum of every position's balance
        reward_rate: Reward units emitted per second across the pool
        last_update: Timestamp the accumulator was last brought forward
        reward_per_token: Reward per staked unit, scaled by REWARD_PRECISION
    """
    total_staked: int = 0
    reward_rate: int = 0
    last_update: int = 0
    reward_per_token: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalStaked": str(self.total_staked),
            "rewardRate": str(self.reward_rate),
            "lastUpdate": self.last_update,
            "rewardPerToken": str(self.reward_per_token),
        }


@dataclass
class RateLimitWindow:
    """Per-depositor withdrawal window."""
    cumulative: int = 0
    window_start: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cumulative": str(self.cumulative),
            "windowStart": self.window_start,
        }
