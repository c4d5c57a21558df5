"""
Contract Building Blocks

  - Contract:        address, runtime link, state snapshot/restore, events
  - Ownable:         two-phase ownership handoff (propose, then accept)
  - Pausable:        owner-controlled circuit breaker
  - ReentrancyGuard: per-instance latch, see ``nonreentrant``

Mutable state is declared per class in ``_STATE``; the runtime snapshots
exactly those attributes when a transaction frame opens.
"""

import copy
import functools
from typing import Any, Callable, Dict, Optional, TypeVar

from ..crypto.address import is_null_address, normalize_address
from ..events import (
    ContractEvent,
    OwnershipTransferStarted,
    OwnershipTransferred,
    Paused,
    Unpaused,
)
from ..exceptions import (
    AuthorizationError,
    ContractNotPausedError,
    ContractPausedError,
    ReentrantCallError,
)
from ..logger import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


# ══════════════════════════════════════════════════════════════════════
#  ENTRY-POINT DECORATORS
# ══════════════════════════════════════════════════════════════════════

def atomic(fn: F) -> F:
    """
    Run a mutating entry point in its own runtime transaction.

    The first positional argument after ``self`` is the calling address and
    is normalized before the body runs.
    """
    @functools.wraps(fn)
    def wrapper(self, caller, *args, **kwargs):
        caller = normalize_address(caller)
        with self.runtime.transaction():
            return fn(self, caller, *args, **kwargs)
    return wrapper  # type: ignore[return-value]


def nonreentrant(fn: F) -> F:
    """
    ``atomic`` plus the reentrancy latch.

    The latch is released only when the body returns. On any exception the
    transaction frame restores the pre-call state, latch included.
    """
    @functools.wraps(fn)
    def wrapper(self, caller, *args, **kwargs):
        caller = normalize_address(caller)
        with self.runtime.transaction():
            self._acquire_latch(fn.__name__)
            result = fn(self, caller, *args, **kwargs)
            self._release_latch()
            return result
    return wrapper  # type: ignore[return-value]


# ══════════════════════════════════════════════════════════════════════
#  CONTRACT
# ══════════════════════════════════════════════════════════════════════

class Contract:
    """
    Base for everything the runtime can deploy.

    Subclasses take ``(runtime, address, deployer, ...)``; instances are
    created through ``Runtime.deploy``.
    """

    _STATE: tuple = ()

    def __init__(self, runtime, address: str, deployer: str):
        self.runtime = runtime
        self.address = normalize_address(address)
        self.deployer = normalize_address(deployer)
        self.created_at = runtime.now()

    # ── State journaling ────────────────────────────────────────────

    def _state_fields(self):
        seen = []
        for klass in reversed(type(self).__mro__):
            for name in vars(klass).get("_STATE", ()):
                if name not in seen:
                    seen.append(name)
        return seen

    def snapshot(self) -> Dict[str, Any]:
        return {name: copy.deepcopy(getattr(self, name)) for name in self._state_fields()}

    def restore(self, state: Dict[str, Any]) -> None:
        """
        Rebind each state attribute to its snapshot copy.

        Objects obtained from the contract before the rollback (a position,
        the ledger) are detached afterwards; look them up again.
        """
        for name, value in state.items():
            setattr(self, name, value)

    # ── Events ──────────────────────────────────────────────────────

    def emit(self, event: ContractEvent) -> ContractEvent:
        self.runtime.log(event)
        logger.debug(f"[{type(self).__name__}] {event.name}: {event.to_dict()}")
        return event

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.address}>"


# ══════════════════════════════════════════════════════════════════════
#  OWNERSHIP
# ══════════════════════════════════════════════════════════════════════

class Ownable(Contract):
    """
    Two-phase ownership.

    The current owner nominates a ``pending_owner``; nothing changes until
    that address calls ``accept_ownership``. A typo'd or unreachable
    nominee therefore cannot strand the contract.
    """

    _STATE = ("owner", "pending_owner")

    def __init__(self, runtime, address: str, deployer: str):
        super().__init__(runtime, address, deployer)
        self.owner: str = self.deployer
        self.pending_owner: Optional[str] = None

    def only_owner(self, caller: str) -> None:
        if caller != self.owner:
            raise AuthorizationError(f"{caller} is not the owner of {self.address}")

    @atomic
    def transfer_ownership(self, caller: str, new_owner: str) -> OwnershipTransferStarted:
        self.only_owner(caller)
        if is_null_address(new_owner):
            raise AuthorizationError("New owner cannot be the null address")
        new_owner = normalize_address(new_owner)

        self.pending_owner = new_owner
        logger.info(f"{type(self).__name__} {self.address}: ownership offered to {new_owner}")
        return self.emit(OwnershipTransferStarted(
            emitter=self.address,
            previous_owner=self.owner,
            new_owner=new_owner,
            timestamp=self.runtime.now(),
        ))

    @atomic
    def accept_ownership(self, caller: str) -> OwnershipTransferred:
        if self.pending_owner is None or caller != self.pending_owner:
            raise AuthorizationError(f"{caller} is not the pending owner of {self.address}")

        previous = self.owner
        self.owner = caller
        self.pending_owner = None
        logger.info(f"{type(self).__name__} {self.address}: ownership {previous} -> {caller}")
        return self.emit(OwnershipTransferred(
            emitter=self.address,
            previous_owner=previous,
            new_owner=caller,
            timestamp=self.runtime.now(),
        ))


# ══════════════════════════════════════════════════════════════════════
#  CIRCUIT BREAKER
# ══════════════════════════════════════════════════════════════════════

class Pausable(Ownable):
    """Owner-controlled pause flag gating every mutating entry point."""

    _STATE = ("paused",)

    def __init__(self, runtime, address: str, deployer: str):
        super().__init__(runtime, address, deployer)
        self.paused = False

    def require_not_paused(self) -> None:
        if self.paused:
            raise ContractPausedError(f"{type(self).__name__} {self.address} is paused")

    def require_paused(self) -> None:
        if not self.paused:
            raise ContractNotPausedError(f"{type(self).__name__} {self.address} is not paused")

    @atomic
    def pause(self, caller: str) -> Paused:
        self.only_owner(caller)
        self.require_not_paused()
        self.paused = True
        logger.warning(f"{type(self).__name__} {self.address} PAUSED by {caller}")
        return self.emit(Paused(emitter=self.address, account=caller, timestamp=self.runtime.now()))

    @atomic
    def unpause(self, caller: str) -> Unpaused:
        self.only_owner(caller)
        self.require_paused()
        self.paused = False
        logger.info(f"{type(self).__name__} {self.address} unpaused by {caller}")
        return self.emit(Unpaused(emitter=self.address, account=caller, timestamp=self.runtime.now()))


# ══════════════════════════════════════════════════════════════════════
#  REENTRANCY
# ══════════════════════════════════════════════════════════════════════

class ReentrancyGuard(Contract):
    """
    Binary latch held for the duration of a ``nonreentrant`` entry point.

    Only nested self-calls (a collaborator calling back in while an entry
    point is still running) trip it; sequential calls never do.
    """

    _STATE = ("_entered",)

    def __init__(self, runtime, address: str, deployer: str):
        super().__init__(runtime, address, deployer)
        self._entered = False

    def _acquire_latch(self, entry_point: str) -> None:
        if self._entered:
            logger.warning(f"Reentrant call into {type(self).__name__}.{entry_point} blocked")
            raise ReentrantCallError(f"Reentrant call to {entry_point}")
        self._entered = True

    def _release_latch(self) -> None:
        self._entered = False

    @property
    def entered(self) -> bool:
        return self._entered
