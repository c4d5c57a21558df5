"""
Withdrawal Rate Limiter

Per-depositor cap on cumulative withdrawals within a window. The window
is reset-on-expiry, not rolling: once ``now - window_start >= period`` the
next withdrawal starts a fresh window with its own amount as the running
total.
"""

from typing import Any, Dict, Optional

from ..constants import UINT256_MAX, WITHDRAWAL_WINDOW
from ..exceptions import ArithmeticOverflowError, BoundsError, RateLimitExceededError
from ..logger import get_logger
from .types import RateLimitWindow

logger = get_logger(__name__)


class WithdrawalRateLimiter:

    def __init__(self, daily_cap: int, period: int = WITHDRAWAL_WINDOW):
        if daily_cap <= 0:
            raise BoundsError("Daily withdrawal cap must be positive")
        if period <= 0:
            raise BoundsError("Rate-limit period must be positive")
        self.daily_cap = daily_cap
        self.period = period
        self._windows: Dict[str, RateLimitWindow] = {}

    def window(self, user: str) -> Optional[RateLimitWindow]:
        return self._windows.get(user)

    def _is_expired(self, window: Optional[RateLimitWindow], now: int) -> bool:
        return window is None or now - window.window_start >= self.period

    def remaining(self, user: str, now: int) -> int:
        """How much ``user`` could withdraw at ``now``."""
        window = self._windows.get(user)
        if self._is_expired(window, now):
            return self.daily_cap
        return max(0, self.daily_cap - window.cumulative)

    def consume(self, user: str, amount: int, now: int) -> RateLimitWindow:
        """
        Charge ``amount`` against ``user``'s window.

        State is only written once every check has passed.
        """
        window = self._windows.get(user)
        if self._is_expired(window, now):
            cumulative, start = amount, now
        else:
            cumulative, start = window.cumulative + amount, window.window_start
            if cumulative > UINT256_MAX or cumulative < window.cumulative:
                raise ArithmeticOverflowError("Withdrawal cumulative overflows uint256")

        if cumulative > self.daily_cap:
            logger.warning(
                f"Withdrawal limit hit for {user}: {cumulative} > cap {self.daily_cap}"
            )
            raise RateLimitExceededError(
                f"Withdrawal of {amount} exceeds daily limit "
                f"({cumulative} > {self.daily_cap})"
            )

        updated = RateLimitWindow(cumulative=cumulative, window_start=start)
        self._windows[user] = updated
        return updated

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dailyCap": str(self.daily_cap),
            "period": self.period,
            "windows": {user: w.to_dict() for user, w in self._windows.items()},
        }
