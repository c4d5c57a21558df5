"""
Reward Accrual Engine

Lazy reward-per-token accumulator. Rather than crediting every depositor
every second, the pool keeps one global counter of reward earned per staked
unit and each position remembers the counter value it was last settled at:

    reward_per_token += elapsed * rate * PRECISION // total_staked
    earned            = balance * (reward_per_token - paid) // PRECISION

Division truncates; the loss is at most PRECISION - 1 scaled units per
settlement. ``last_update`` moves forward even while nothing is staked so
a dormant period is never credited retroactively.
"""

from ..constants import REWARD_PRECISION, UINT256_MAX
from ..exceptions import ArithmeticOverflowError, BoundsError
from .types import AccrualState, StakePosition


class RewardAccrualEngine:

    def __init__(self, reward_rate: int, now: int, precision: int = REWARD_PRECISION):
        if reward_rate < 0:
            raise BoundsError("Reward rate cannot be negative")
        self.precision = precision
        self.state = AccrualState(reward_rate=reward_rate, last_update=now)

    @property
    def total_staked(self) -> int:
        return self.state.total_staked

    @property
    def reward_rate(self) -> int:
        return self.state.reward_rate

    # ── Accumulator ─────────────────────────────────────────────────

    def projected_reward_per_token(self, now: int) -> int:
        """Accumulator value as of ``now`` without touching state."""
        s = self.state
        if s.total_staked == 0 or now <= s.last_update:
            return s.reward_per_token
        value = s.reward_per_token + (
            (now - s.last_update) * s.reward_rate * self.precision // s.total_staked
        )
        if value > UINT256_MAX:
            raise ArithmeticOverflowError("Reward accumulator overflows uint256")
        return value

    def update(self, now: int) -> int:
        """Bring the accumulator forward to ``now``. Returns its new value."""
        self.state.reward_per_token = self.projected_reward_per_token(now)
        if now > self.state.last_update:
            self.state.last_update = now
        return self.state.reward_per_token

    def set_rate(self, reward_rate: int, now: int) -> int:
        """Accrue at the old rate up to ``now``, then switch. Returns the old rate."""
        if reward_rate < 0:
            raise BoundsError("Reward rate cannot be negative")
        self.update(now)
        old = self.state.reward_rate
        self.state.reward_rate = reward_rate
        return old

    # ── Positions ───────────────────────────────────────────────────

    def earned(self, position: StakePosition, reward_per_token: int) -> int:
        delta = reward_per_token - position.reward_per_token_paid
        return position.rewards + position.balance * delta // self.precision

    def settle(self, position: StakePosition, now: int) -> int:
        """
        Update the accumulator and fold the position's share into
        ``position.rewards``. Returns the settled reward.
        """
        rpt = self.update(now)
        position.rewards = self.earned(position, rpt)
        position.reward_per_token_paid = rpt
        return position.rewards

    def pending(self, position: StakePosition, now: int) -> int:
        """Read-only projection of ``position``'s claimable reward at ``now``."""
        return self.earned(position, self.projected_reward_per_token(now))

    # ── Totals ──────────────────────────────────────────────────────

    def add_stake(self, amount: int) -> None:
        total = self.state.total_staked + amount
        if total > UINT256_MAX:
            raise ArithmeticOverflowError("Total staked overflows uint256")
        self.state.total_staked = total

    def remove_stake(self, amount: int) -> None:
        if amount > self.state.total_staked:
            raise BoundsError("Cannot remove more than total staked")
        self.state.total_staked -= amount
