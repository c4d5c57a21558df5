"""
Staking Pool

Depositor ledger for a single token. Stakes earn a continuously accruing
reward at a pool-wide rate, withdrawals are time-locked and capped per day,
and a position can be relayed to another chain through a configured bridge.

Every entry point follows the same order: checks, then every state change,
then the external token/bridge call, then a balance-delta check on the
pool's own holdings. A failure at any step rolls the whole call back.
"""

from typing import Any, Dict, Iterator, List, Optional

from ..constants import (
    DEFAULT_DAILY_WITHDRAWAL_CAP,
    MAX_REWARD_RATE,
    STAKE_MAX_AMOUNT,
    STAKE_MIN_AMOUNT,
    WITHDRAWAL_WINDOW,
)
from ..bridge.interface import BridgeCollaborator
from ..contracts.base import Pausable, ReentrancyGuard, atomic, nonreentrant
from ..crypto.address import is_null_address, is_valid_address, normalize_address
from ..events import (
    BridgeUpdated,
    EmergencyWithdrawn,
    RewardClaimed,
    RewardRateUpdated,
    StakeBridged,
    Staked,
    SupportedChainAdded,
    Withdrawn,
)
from ..exceptions import (
    AlreadySupportedChainError,
    BoundsError,
    BridgeNotConfiguredError,
    InsufficientRewardReserveError,
    InsufficientStakeError,
    InvalidAddressError,
    NoRewardError,
    StakeLockedError,
    UnsupportedChainError,
)
from ..logger import get_logger
from ..tokens.interface import TokenCollaborator
from ..tokens.safe import (
    expect_balance_delta,
    safe_approve,
    safe_transfer,
    safe_transfer_from,
)
from .ratelimit import WithdrawalRateLimiter
from .rewards import RewardAccrualEngine
from .types import StakePosition

logger = get_logger(__name__)


class StakingPool(Pausable, ReentrancyGuard):
    """
    Single-token staking pool.

    Args:
        token: Staked (and reward) token contract address
        reward_rate: Reward units per second, shared across all stakers
        min_stake_time: Seconds after the latest stake before withdrawal
        min_stake / max_stake: Per-call stake bounds
        daily_withdrawal_cap: Per-depositor cap per withdrawal window
        withdrawal_window: Window length in seconds
    """

    _STATE = ("rewards", "rate_limiter", "_positions", "bridge", "_supported_chains")

    def __init__(
        self,
        runtime,
        address: str,
        deployer: str,
        token: str,
        reward_rate: int,
        min_stake_time: int,
        *,
        min_stake: int = STAKE_MIN_AMOUNT,
        max_stake: int = STAKE_MAX_AMOUNT,
        daily_withdrawal_cap: int = DEFAULT_DAILY_WITHDRAWAL_CAP,
        withdrawal_window: int = WITHDRAWAL_WINDOW,
    ):
        super().__init__(runtime, address, deployer)
        if not runtime.is_contract(token):
            raise InvalidAddressError(f"Token {token} is not a contract")
        if not 0 <= reward_rate <= MAX_REWARD_RATE:
            raise BoundsError(f"Reward rate {reward_rate} outside [0, {MAX_REWARD_RATE}]")
        if min_stake_time < 0:
            raise BoundsError("min_stake_time cannot be negative")
        if not 0 < min_stake <= max_stake:
            raise BoundsError("Stake bounds must satisfy 0 < min <= max")

        self.token_address = normalize_address(token)
        self.min_stake_time = min_stake_time
        self.min_stake = min_stake
        self.max_stake = max_stake

        self.rewards = RewardAccrualEngine(reward_rate, runtime.now())
        self.rate_limiter = WithdrawalRateLimiter(daily_withdrawal_cap, withdrawal_window)
        self._positions: Dict[str, StakePosition] = {}
        self.bridge: Optional[str] = None
        self._supported_chains: List[int] = []

        logger.info(
            f"StakingPool {self.address}: token={self.token_address}, "
            f"rate={reward_rate}/s, lock={min_stake_time}s"
        )

    @classmethod
    def from_config(cls, runtime, deployer: str, token: str, config) -> "StakingPool":
        """Deploy a pool from a ``PoolConfig`` and register its chains."""
        pool = runtime.deploy(
            cls,
            deployer,
            token,
            config.reward_rate,
            config.min_stake_time,
            min_stake=config.min_stake,
            max_stake=config.max_stake,
            daily_withdrawal_cap=config.daily_withdrawal_cap,
            withdrawal_window=config.withdrawal_window,
        )
        for chain_id in config.supported_chains:
            pool.add_supported_chain(deployer, chain_id)
        return pool

    # ── Collaborators ─────────────────────────────────────────────────

    @property
    def token(self) -> TokenCollaborator:
        return self.runtime.get_contract(self.token_address)

    def _bridge_contract(self) -> BridgeCollaborator:
        if self.bridge is None:
            raise BridgeNotConfiguredError("No bridge configured for this pool")
        contract = self.runtime.get_contract(self.bridge)
        if contract is None or not isinstance(contract, BridgeCollaborator):
            raise BridgeNotConfiguredError(f"Bridge {self.bridge} is not a bridge contract")
        return contract

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def total_staked(self) -> int:
        return self.rewards.total_staked

    @property
    def reward_rate(self) -> int:
        return self.rewards.reward_rate

    def position(self, user: str) -> Optional[StakePosition]:
        return self._positions.get(normalize_address(user))

    def positions(self) -> Iterator[StakePosition]:
        return iter(self._positions.values())

    def balance_of(self, user: str) -> int:
        position = self.position(user)
        return position.balance if position else 0

    def pending_reward(self, user: str) -> int:
        """Claimable reward as of now; does not mutate state."""
        position = self.position(user)
        if position is None:
            return 0
        return self.rewards.pending(position, self.runtime.now())

    def unlock_time(self, user: str) -> int:
        position = self.position(user)
        if position is None:
            return 0
        return position.staked_at + self.min_stake_time

    def remaining_withdrawal(self, user: str) -> int:
        return self.rate_limiter.remaining(normalize_address(user), self.runtime.now())

    def reward_reserve(self) -> int:
        """Tokens held beyond staked principal, available to pay rewards."""
        return max(0, self.token.balance_of(self.address) - self.total_staked)

    def is_supported_chain(self, chain_id: int) -> bool:
        return chain_id in self._supported_chains

    @property
    def supported_chains(self) -> List[int]:
        return list(self._supported_chains)

    # ── Internal helpers ──────────────────────────────────────────────

    def _position_for(self, user: str) -> StakePosition:
        position = self._positions.get(user)
        if position is None:
            position = StakePosition(owner=user)
            self._positions[user] = position
        return position

    def _require_position(self, user: str, amount: int) -> StakePosition:
        if not isinstance(amount, int) or amount <= 0:
            raise BoundsError("Amount must be a positive integer")
        position = self._positions.get(user)
        balance = position.balance if position else 0
        if amount > balance:
            raise InsufficientStakeError(f"{user} has {balance} staked, requested {amount}")
        return position

    def _require_unlocked(self, position: StakePosition, now: int) -> None:
        unlock_at = position.staked_at + self.min_stake_time
        if now < unlock_at:
            raise StakeLockedError(
                f"Stake of {position.owner} locked for another {unlock_at - now}s"
            )

    # ── Depositor operations ──────────────────────────────────────────

    @nonreentrant
    def stake(self, caller: str, amount: int) -> Staked:
        """
        Deposit ``amount``. Restarts the withdrawal lock for the whole
        balance, not just the new deposit.
        """
        self.require_not_paused()
        if not isinstance(amount, int) or not self.min_stake <= amount <= self.max_stake:
            raise BoundsError(f"Stake {amount} outside [{self.min_stake}, {self.max_stake}]")

        now = self.runtime.now()
        position = self._position_for(caller)
        self.rewards.settle(position, now)
        position.balance += amount
        self.rewards.add_stake(amount)
        position.staked_at = now

        token = self.token
        before = token.balance_of(self.address)
        safe_transfer_from(token, self.address, caller, self.address, amount)
        expect_balance_delta(token, self.address, before, amount)

        logger.info(f"Staked: {caller} +{amount} (balance={position.balance})")
        return self.emit(Staked(emitter=self.address, user=caller, amount=amount, timestamp=now))

    @nonreentrant
    def withdraw(self, caller: str, amount: int) -> Withdrawn:
        self.require_not_paused()
        position = self._require_position(caller, amount)
        now = self.runtime.now()
        self._require_unlocked(position, now)
        self.rate_limiter.consume(caller, amount, now)

        self.rewards.settle(position, now)
        position.balance -= amount
        self.rewards.remove_stake(amount)

        token = self.token
        before = token.balance_of(self.address)
        safe_transfer(token, self.address, caller, amount)
        expect_balance_delta(token, self.address, before, -amount)

        logger.info(f"Withdrawn: {caller} -{amount} (balance={position.balance})")
        return self.emit(Withdrawn(emitter=self.address, user=caller, amount=amount, timestamp=now))

    @nonreentrant
    def claim_reward(self, caller: str) -> RewardClaimed:
        self.require_not_paused()
        now = self.runtime.now()
        position = self._position_for(caller)
        reward = self.rewards.settle(position, now)
        if reward <= 0:
            raise NoRewardError(f"{caller} has no reward to claim")
        reserve = self.reward_reserve()
        if reward > reserve:
            raise InsufficientRewardReserveError(
                f"Reward {reward} exceeds pool reserve {reserve}"
            )
        position.rewards = 0

        token = self.token
        before = token.balance_of(self.address)
        safe_transfer(token, self.address, caller, reward)
        expect_balance_delta(token, self.address, before, -reward)

        logger.info(f"Reward claimed: {caller} {reward}")
        return self.emit(RewardClaimed(emitter=self.address, user=caller, amount=reward, timestamp=now))

    @nonreentrant
    def emergency_withdraw(self, caller: str) -> EmergencyWithdrawn:
        """
        Return the caller's whole balance while the pool is paused.

        Skips the lock and the rate limit. Reward accrued since the last
        settlement is forfeited; reward settled earlier stays claimable.
        """
        self.require_paused()
        position = self._positions.get(caller)
        amount = position.balance if position else 0
        if amount <= 0:
            raise InsufficientStakeError(f"{caller} has nothing staked")

        now = self.runtime.now()
        rpt = self.rewards.update(now)
        forfeited = self.rewards.earned(position, rpt) - position.rewards
        position.reward_per_token_paid = rpt
        position.balance = 0
        self.rewards.remove_stake(amount)

        token = self.token
        before = token.balance_of(self.address)
        safe_transfer(token, self.address, caller, amount)
        expect_balance_delta(token, self.address, before, -amount)

        logger.warning(
            f"Emergency withdrawal: {caller} {amount} (forfeited reward {forfeited})"
        )
        return self.emit(EmergencyWithdrawn(
            emitter=self.address,
            user=caller,
            amount=amount,
            forfeited_reward=forfeited,
            timestamp=now,
        ))

    @nonreentrant
    def bridge_stake(
        self,
        caller: str,
        amount: int,
        recipient: str,
        target_chain: int,
    ) -> str:
        """
        Move ``amount`` of the caller's stake to ``recipient`` on
        ``target_chain`` through the configured bridge.

        The pool is the initiator of every relayed transfer, so the bridge
        hash depends only on (amount, recipient, target_chain). A second
        relay with the same three values, from any depositor, is rejected
        with ``DuplicateTransferError``; vary the amount to relay again.

        Returns:
            The bridge transfer hash.
        """
        self.require_not_paused()
        bridge = self._bridge_contract()
        if not self.is_supported_chain(target_chain):
            raise UnsupportedChainError(f"Chain {target_chain} is not supported")
        position = self._require_position(caller, amount)
        now = self.runtime.now()
        self._require_unlocked(position, now)

        self.rewards.settle(position, now)
        position.balance -= amount
        self.rewards.remove_stake(amount)

        token = self.token
        before = token.balance_of(self.address)
        safe_approve(token, self.address, bridge.address, amount)
        transfer_hash = bridge.initiate_transfer(
            self.address, token.address, amount, recipient, target_chain
        )
        expect_balance_delta(token, self.address, before, -amount)

        logger.info(
            f"Stake bridged: {caller} {amount} -> {recipient} on chain {target_chain} "
            f"({transfer_hash})"
        )
        self.emit(StakeBridged(
            emitter=self.address,
            user=caller,
            amount=amount,
            recipient=normalize_address(recipient),
            target_chain=target_chain,
            transfer_hash=transfer_hash,
            timestamp=now,
        ))
        return transfer_hash

    # ── Owner operations ──────────────────────────────────────────────

    @atomic
    def set_reward_rate(self, caller: str, reward_rate: int) -> RewardRateUpdated:
        self.only_owner(caller)
        if not isinstance(reward_rate, int) or not 0 <= reward_rate <= MAX_REWARD_RATE:
            raise BoundsError(f"Reward rate {reward_rate} outside [0, {MAX_REWARD_RATE}]")
        now = self.runtime.now()
        old = self.rewards.set_rate(reward_rate, now)
        logger.info(f"Reward rate updated: {old} -> {reward_rate}")
        return self.emit(RewardRateUpdated(
            emitter=self.address, old_rate=old, new_rate=reward_rate, timestamp=now,
        ))

    @atomic
    def set_bridge(self, caller: str, bridge: str) -> BridgeUpdated:
        self.only_owner(caller)
        if not is_valid_address(bridge) or is_null_address(bridge):
            raise InvalidAddressError("Bridge cannot be the null address")
        contract = self.runtime.get_contract(bridge)
        if contract is None or not isinstance(contract, BridgeCollaborator):
            raise InvalidAddressError(f"{bridge} is not a bridge contract")

        old = self.bridge
        self.bridge = contract.address
        logger.info(f"Bridge updated: {old} -> {self.bridge}")
        return self.emit(BridgeUpdated(
            emitter=self.address,
            old_bridge=old or "",
            new_bridge=self.bridge,
            timestamp=self.runtime.now(),
        ))

    @atomic
    def add_supported_chain(self, caller: str, chain_id: int) -> SupportedChainAdded:
        self.only_owner(caller)
        if not isinstance(chain_id, int) or chain_id < 0:
            raise BoundsError(f"Invalid chain id {chain_id!r}")
        if chain_id in self._supported_chains:
            raise AlreadySupportedChainError(f"Chain {chain_id} already supported")
        self._supported_chains.append(chain_id)
        logger.info(f"Supported chain added: {chain_id}")
        return self.emit(SupportedChainAdded(
            emitter=self.address, chain_id=chain_id, timestamp=self.runtime.now(),
        ))

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "owner": self.owner,
            "pendingOwner": self.pending_owner,
            "paused": self.paused,
            "token": self.token_address,
            "minStakeTime": self.min_stake_time,
            "minStake": str(self.min_stake),
            "maxStake": str(self.max_stake),
            "accrual": self.rewards.state.to_dict(),
            "rateLimit": {
                "dailyCap": str(self.rate_limiter.daily_cap),
                "period": self.rate_limiter.period,
            },
            "bridge": self.bridge,
            "supportedChains": list(self._supported_chains),
            "stakers": len([p for p in self._positions.values() if p.balance > 0]),
        }
