"""
BridgeStake Runtime

Hosts deployed contracts and gives them the execution guarantees the
bridge and pool depend on:

  - a single clock (``now()``) shared by every contract
  - a contract registry keyed by checksum address (``is_contract``)
  - an append-only event log
  - ``transaction()`` frames that restore every contract's state and
    truncate the event log when the wrapped operation raises

Calls are strictly sequential. The only way control leaves a contract
mid-operation is a call into another registered contract, and every such
call runs inside the caller's frame, so a failure anywhere in the call
tree discards all of it.
"""

import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Type, TypeVar

from .crypto.address import normalize_address
from .crypto.contract import generate_contract_address
from .events import ContractEvent
from .logger import get_logger

logger = get_logger(__name__)

C = TypeVar("C")


class ManualClock:
    """
    Deterministic clock for tests and simulations.

    Time only moves when ``advance`` or ``set`` is called.
    """

    def __init__(self, start: int = 1_700_000_000):
        self._now = int(start)

    def __call__(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        self._now += int(seconds)
        return self._now

    def set(self, timestamp: int) -> int:
        if timestamp < self._now:
            raise ValueError("Clock cannot move backwards")
        self._now = int(timestamp)
        return self._now


def _wall_clock() -> int:
    return int(time.time())


class Runtime:
    """
    Execution environment for BridgeStake contracts.

    Args:
        clock: Zero-argument callable returning unix seconds. Defaults to
            wall time.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._clock = clock or _wall_clock
        self._contracts: Dict[str, Any] = {}
        self._nonces: Dict[str, int] = {}
        self._events: List[ContractEvent] = []
        self._depth = 0

    # ── Clock ───────────────────────────────────────────────────────

    def now(self) -> int:
        return int(self._clock())

    # ── Contracts ───────────────────────────────────────────────────

    def deploy(self, contract_cls: Type[C], deployer: str, *args, **kwargs) -> C:
        """
        Construct and register a contract.

        The address follows CREATE semantics over a per-deployer counter,
        so redeploying the same sequence yields the same addresses.
        """
        deployer = normalize_address(deployer)
        nonce = self._nonces.get(deployer, 0)
        address = generate_contract_address(deployer, nonce)

        contract = contract_cls(self, address, deployer, *args, **kwargs)

        self._nonces[deployer] = nonce + 1
        self._contracts[address] = contract
        logger.info(f"Deployed {contract_cls.__name__} at {address} (deployer={deployer})")
        return contract

    def is_contract(self, address: str) -> bool:
        try:
            return normalize_address(address) in self._contracts
        except ValueError:
            return False

    def get_contract(self, address: str) -> Optional[Any]:
        try:
            return self._contracts.get(normalize_address(address))
        except ValueError:
            return None

    @property
    def contracts(self) -> Dict[str, Any]:
        return dict(self._contracts)

    # ── Events ──────────────────────────────────────────────────────

    def log(self, event: ContractEvent) -> None:
        self._events.append(event)

    def events(
        self,
        name: Optional[str] = None,
        emitter: Optional[str] = None,
    ) -> List[ContractEvent]:
        """Return logged events, optionally filtered by name and emitter."""
        result = self._events
        if name is not None:
            result = [e for e in result if e.name == name]
        if emitter is not None:
            emitter = normalize_address(emitter)
            result = [e for e in result if getattr(e, "emitter", None) == emitter]
        return list(result)

    # ── Transactions ────────────────────────────────────────────────

    @property
    def depth(self) -> int:
        """Number of open transaction frames."""
        return self._depth

    @contextmanager
    def transaction(self) -> Iterator["Runtime"]:
        """
        All-or-nothing execution frame.

        Snapshots every registered contract on entry. If the body raises,
        each contract is restored, contracts deployed inside the frame are
        dropped, the event log is truncated and the exception propagates.
        Restored contracts hold fresh copies of their state, so a caller
        that catches the error must re-read anything it fetched earlier.
        """
        snapshots = {addr: c.snapshot() for addr, c in self._contracts.items()}
        nonces = dict(self._nonces)
        log_length = len(self._events)
        self._depth += 1
        try:
            yield self
        except Exception:
            for addr in list(self._contracts):
                if addr not in snapshots:
                    del self._contracts[addr]
            for addr, state in snapshots.items():
                self._contracts[addr].restore(state)
            self._nonces = nonces
            del self._events[log_length:]
            raise
        finally:
            self._depth -= 1

    def __repr__(self) -> str:
        return f"<Runtime contracts={len(self._contracts)} events={len(self._events)}>"
