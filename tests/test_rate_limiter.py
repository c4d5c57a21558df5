"""
Withdrawal Rate Limiter Test Suite

Coverage:
  - Reset-on-expiry window semantics
  - Cap enforced on cumulative withdrawals, exact cap allowed
  - Failed checks leave the window untouched
  - Per-depositor isolation
  - Limiter wired into StakingPool.withdraw
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from bridgestake.constants import (
    DEFAULT_MIN_STAKE_TIME,
    TOKEN_UNIT,
    UINT256_MAX,
    WITHDRAWAL_WINDOW,
)
from bridgestake.exceptions import ArithmeticOverflowError, BoundsError, RateLimitExceededError
from bridgestake.runtime import ManualClock, Runtime
from bridgestake.staking import StakingPool, WithdrawalRateLimiter
from bridgestake.tokens import Token


# ══════════════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════════════

UNIT = TOKEN_UNIT
START = 1_700_000_000
CAP = 100_000 * UNIT

OWNER = "0x" + "0a" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20


def make_limiter(cap=CAP, period=WITHDRAWAL_WINDOW):
    return WithdrawalRateLimiter(cap, period)


# ══════════════════════════════════════════════════════════════════════
#  LIMITER
# ══════════════════════════════════════════════════════════════════════


class TestWithdrawalRateLimiter:
    """Window bookkeeping in isolation."""

    def test_first_withdrawal_opens_window(self):
        limiter = make_limiter()
        window = limiter.consume(ALICE, 60_000 * UNIT, START)
        assert window.cumulative == 60_000 * UNIT
        assert window.window_start == START
        assert limiter.remaining(ALICE, START) == 40_000 * UNIT

    def test_cap_exceeded_within_window(self):
        limiter = make_limiter()
        limiter.consume(ALICE, 60_000 * UNIT, START)
        with pytest.raises(RateLimitExceededError):
            limiter.consume(ALICE, 50_000 * UNIT, START + 10)
        assert limiter.window(ALICE).cumulative == 60_000 * UNIT

    def test_window_resets_after_period(self):
        limiter = make_limiter()
        limiter.consume(ALICE, 60_000 * UNIT, START)
        window = limiter.consume(ALICE, 50_000 * UNIT, START + WITHDRAWAL_WINDOW)
        assert window.cumulative == 50_000 * UNIT
        assert window.window_start == START + WITHDRAWAL_WINDOW

    def test_window_not_reset_one_second_early(self):
        limiter = make_limiter()
        limiter.consume(ALICE, 60_000 * UNIT, START)
        with pytest.raises(RateLimitExceededError):
            limiter.consume(ALICE, 50_000 * UNIT, START + WITHDRAWAL_WINDOW - 1)

    def test_exact_cap_allowed(self):
        limiter = make_limiter()
        limiter.consume(ALICE, 40_000 * UNIT, START)
        limiter.consume(ALICE, 60_000 * UNIT, START + 1)
        assert limiter.remaining(ALICE, START + 2) == 0
        with pytest.raises(RateLimitExceededError):
            limiter.consume(ALICE, 1, START + 3)

    def test_single_withdrawal_above_cap(self):
        limiter = make_limiter()
        with pytest.raises(RateLimitExceededError):
            limiter.consume(ALICE, CAP + 1, START)
        assert limiter.window(ALICE) is None

    def test_users_are_independent(self):
        limiter = make_limiter()
        limiter.consume(ALICE, CAP, START)
        limiter.consume(BOB, CAP, START)
        assert limiter.remaining(ALICE, START) == 0
        assert limiter.remaining(BOB, START) == 0

    def test_remaining_after_expiry(self):
        limiter = make_limiter()
        limiter.consume(ALICE, CAP, START)
        assert limiter.remaining(ALICE, START + WITHDRAWAL_WINDOW) == CAP

    def test_cumulative_overflow_leaves_window(self):
        limiter = make_limiter(cap=UINT256_MAX)
        limiter.consume(ALICE, UINT256_MAX - 1, START)
        with pytest.raises(ArithmeticOverflowError):
            limiter.consume(ALICE, 5, START + 1)
        window = limiter.window(ALICE)
        assert window.cumulative == UINT256_MAX - 1
        assert window.window_start == START

    def test_invalid_parameters(self):
        with pytest.raises(BoundsError):
            WithdrawalRateLimiter(0)
        with pytest.raises(BoundsError):
            WithdrawalRateLimiter(CAP, period=0)

    def test_to_dict(self):
        limiter = make_limiter()
        limiter.consume(ALICE, UNIT, START)
        d = limiter.to_dict()
        assert d["dailyCap"] == str(CAP)
        assert d["windows"][ALICE]["cumulative"] == str(UNIT)


# ══════════════════════════════════════════════════════════════════════
#  POOL INTEGRATION
# ══════════════════════════════════════════════════════════════════════


class TestPoolWithdrawalLimit:
    """Daily cap applied by StakingPool.withdraw."""

    def _pool(self):
        clock = ManualClock(START)
        runtime = Runtime(clock)
        token = runtime.deploy(Token, OWNER, "Stake Token", "STK")
        pool = runtime.deploy(StakingPool, OWNER, token.address, 0, DEFAULT_MIN_STAKE_TIME)
        token.mint(OWNER, ALICE, 200_000 * UNIT)
        token.approve(ALICE, pool.address, 200_000 * UNIT)
        pool.stake(ALICE, 200_000 * UNIT)
        clock.advance(DEFAULT_MIN_STAKE_TIME)
        return clock, token, pool

    def test_daily_cap_scenario(self):
        clock, token, pool = self._pool()
        pool.withdraw(ALICE, 60_000 * UNIT)
        with pytest.raises(RateLimitExceededError):
            pool.withdraw(ALICE, 50_000 * UNIT)
        assert pool.balance_of(ALICE) == 140_000 * UNIT
        assert pool.remaining_withdrawal(ALICE) == 40_000 * UNIT

        clock.advance(WITHDRAWAL_WINDOW)
        pool.withdraw(ALICE, 50_000 * UNIT)
        assert pool.balance_of(ALICE) == 90_000 * UNIT
        assert token.balance_of(ALICE) == 110_000 * UNIT

    def test_failed_withdraw_does_not_consume_allowance(self):
        clock, token, pool = self._pool()
        pool.withdraw(ALICE, 60_000 * UNIT)
        with pytest.raises(RateLimitExceededError):
            pool.withdraw(ALICE, 50_000 * UNIT)
        pool.withdraw(ALICE, 40_000 * UNIT)
        assert pool.remaining_withdrawal(ALICE) == 0
