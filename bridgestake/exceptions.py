"""
BridgeStake Exceptions

Every failure aborts the whole operation; the runtime transaction restores
all state touched before the raise. The five top-level families are the
only ones callers need to branch on.
"""


class BridgeStakeError(Exception):
    """Base exception for BridgeStake."""
    pass


# ── Authorization ─────────────────────────────────────────────────────

class AuthorizationError(BridgeStakeError):
    """Caller is not the owner, pending owner or an active validator."""
    pass


# ── Bounds ────────────────────────────────────────────────────────────

class BoundsError(BridgeStakeError):
    """Amount, threshold or count outside its configured range."""
    pass


class InvalidAddressError(BoundsError):
    """Null address, or an address with no contract where one is required."""
    pass


class RateLimitExceededError(BoundsError):
    """Withdrawal would push the daily cumulative past the cap."""
    pass


class InsufficientStakeError(BoundsError):
    """Requested amount exceeds the depositor's staked balance."""
    pass


# ── State ─────────────────────────────────────────────────────────────

class StateError(BridgeStakeError):
    """Operation not allowed in the current state."""
    pass


class ContractPausedError(StateError):
    pass


class ContractNotPausedError(StateError):
    pass


class ReentrantCallError(StateError):
    """Guarded entry point entered while already executing."""
    pass


class ValidatorError(StateError):
    """Validator set change rejected (null, duplicate or unknown address)."""
    pass


class UnknownTransferError(StateError):
    pass


class DuplicateTransferError(StateError):
    """A request with the same content hash already exists."""
    pass


class DuplicateAttestationError(StateError):
    pass


class AlreadyFinalizedError(StateError):
    pass


class InsufficientAttestationsError(StateError):
    pass


class TimelockActiveError(StateError):
    """Transfer lock period has not elapsed yet."""
    pass


class StakeLockedError(StateError):
    """Minimum stake duration has not elapsed yet."""
    pass


class NoRewardError(StateError):
    pass


class InsufficientRewardReserveError(StateError):
    """Pool holds fewer reward tokens than the claim requires."""
    pass


class AlreadySupportedChainError(StateError):
    pass


class BridgeNotConfiguredError(StateError):
    pass


class UnsupportedChainError(StateError):
    pass


# ── Integrity ─────────────────────────────────────────────────────────

class IntegrityError(BridgeStakeError):
    """A collaborator misbehaved or recorded data does not match."""
    pass


class TokenCallFailedError(IntegrityError):
    """Token collaborator returned False."""
    pass


class BalanceMismatchError(IntegrityError):
    """Post-call balance did not move by the expected delta."""
    pass


# ── Overflow ──────────────────────────────────────────────────────────

class ArithmeticOverflowError(BridgeStakeError, OverflowError):
    """Value would exceed the uint256 range."""
    pass


# ── Configuration ─────────────────────────────────────────────────────

class ConfigurationError(BridgeStakeError):
    """Configuration error."""
    pass
