"""
BridgeStake Staking

Provides:
  - types: StakePosition, AccrualState, RateLimitWindow
  - rewards: RewardAccrualEngine (reward-per-token accumulator)
  - ratelimit: WithdrawalRateLimiter (reset-on-expiry daily cap)
  - pool: StakingPool (stake, withdraw, claim, emergency exit, bridge out)
"""

from .types import AccrualState, RateLimitWindow, StakePosition
from .rewards import RewardAccrualEngine
from .ratelimit import WithdrawalRateLimiter
from .pool import StakingPool

__all__ = [
    "AccrualState",
    "RateLimitWindow",
    "StakePosition",
    "RewardAccrualEngine",
    "WithdrawalRateLimiter",
    "StakingPool",
]
