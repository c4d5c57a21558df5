"""
Reference Fungible Token

A plain balance/allowance ledger deployed into the runtime:
  - ERC-20 style interface (transfer, approve, transferFrom, balanceOf)
  - Owner-only mint, holder burn
  - increase/decrease allowance helpers
  - uint256 growth checks on supply, balances and allowances
  - Optional legacy mode that rejects non-zero -> non-zero approvals
"""

from typing import Any, Dict, Tuple

from ..constants import TOKEN_DECIMALS, UINT256_MAX, ZERO_ADDRESS
from ..contracts.base import Ownable, atomic
from ..crypto.address import is_null_address, normalize_address
from ..events import Approval, Transfer
from ..exceptions import ArithmeticOverflowError, BridgeStakeError
from ..logger import get_logger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class TokenError(BridgeStakeError):
    """Base exception for token operations."""


class InsufficientBalanceError(TokenError):
    """Raised when sender balance is too low."""


class InsufficientAllowanceError(TokenError):
    """Raised when spender allowance is too low."""


def _checked_add(a: int, b: int, what: str) -> int:
    result = a + b
    if result > UINT256_MAX:
        raise ArithmeticOverflowError(f"{what} overflows uint256")
    return result


def _require_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TokenError(f"Amount must be an integer, got {type(amount).__name__}")
    if amount < 0:
        raise TokenError("Amount cannot be negative")
    if amount > UINT256_MAX:
        raise ArithmeticOverflowError("Amount exceeds uint256")


# ══════════════════════════════════════════════════════════════════════
#  TOKEN
# ══════════════════════════════════════════════════════════════════════

class Token(Ownable):
    """
    Fungible token ledger.

    Mirrors ERC-20 semantics with the caller passed explicitly:
        - balance_of(address) -> int
        - transfer(caller, to, amount) -> bool
        - approve(caller, spender, amount) -> bool
        - transfer_from(caller, owner, to, amount) -> bool
        - total_supply -> int
    """

    _STATE = ("_total_supply", "_balances", "_allowances")

    def __init__(
        self,
        runtime,
        address: str,
        deployer: str,
        name: str,
        symbol: str,
        decimals: int = TOKEN_DECIMALS,
        initial_supply: int = 0,
        *,
        require_zero_allowance_first: bool = False,
    ):
        """
        Args:
            name: Human-readable token name
            symbol: Short ticker
            decimals: Fractional digits
            initial_supply: Minted to the deployer
            require_zero_allowance_first: Reject approve() that changes a
                non-zero allowance to another non-zero value
        """
        super().__init__(runtime, address, deployer)
        if not name:
            raise TokenError("Token name cannot be empty")
        if not symbol:
            raise TokenError("Token symbol cannot be empty")
        if decimals < 0 or decimals > 18:
            raise TokenError(f"Decimals must be 0-18, got {decimals}")
        _require_amount(initial_supply)

        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.require_zero_allowance_first = require_zero_allowance_first

        self._total_supply = 0
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}  # (owner, spender)

        if initial_supply:
            self._mint(self.deployer, initial_supply)

        logger.info(f"Token deployed: {symbol} ({name}), supply={initial_supply}")

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, address: str) -> int:
        return self._balances.get(normalize_address(address), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    # ── Internal movements ────────────────────────────────────────────

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        """Debit/credit primitive. Subclasses may override to model fees."""
        if is_null_address(recipient):
            raise TokenError("Cannot transfer to the null address")

        bal = self._balances.get(sender, 0)
        if bal < amount:
            raise InsufficientBalanceError(
                f"{sender} balance {bal} < transfer amount {amount}"
            )
        self._balances[sender] = bal - amount
        self._balances[recipient] = _checked_add(
            self._balances.get(recipient, 0), amount, "Recipient balance"
        )
        self.emit(Transfer(
            emitter=self.address,
            sender=sender,
            recipient=recipient,
            amount=amount,
            timestamp=self.runtime.now(),
        ))

    def _mint(self, recipient: str, amount: int) -> None:
        self._total_supply = _checked_add(self._total_supply, amount, "Total supply")
        self._balances[recipient] = _checked_add(
            self._balances.get(recipient, 0), amount, "Recipient balance"
        )

    def _set_allowance(self, owner: str, spender: str, amount: int) -> None:
        self._allowances[(owner, spender)] = amount
        self.emit(Approval(
            emitter=self.address,
            owner=owner,
            spender=spender,
            amount=amount,
            timestamp=self.runtime.now(),
        ))

    # ── Core ERC-20 operations ────────────────────────────────────────

    @atomic
    def transfer(self, caller: str, to: str, amount: int) -> bool:
        _require_amount(amount)
        self._move(caller, normalize_address(to), amount)
        logger.debug(f"Transfer: {caller} -> {to} {amount} {self.symbol}")
        return True

    @atomic
    def approve(self, caller: str, spender: str, amount: int) -> bool:
        _require_amount(amount)
        spender = normalize_address(spender)
        current = self._allowances.get((caller, spender), 0)
        if self.require_zero_allowance_first and current and amount:
            raise TokenError(
                f"Allowance for {spender} must be reset to zero before changing it"
            )
        self._set_allowance(caller, spender, amount)
        logger.debug(f"Approve: {caller} -> {spender} allowance={amount} {self.symbol}")
        return True

    @atomic
    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> bool:
        """Move ``amount`` from ``owner`` to ``to`` using caller's allowance."""
        _require_amount(amount)
        owner = normalize_address(owner)

        allow = self._allowances.get((owner, caller), 0)
        if allow < amount:
            raise InsufficientAllowanceError(
                f"Allowance {allow} < transfer amount {amount}"
            )
        if allow != UINT256_MAX:
            self._allowances[(owner, caller)] = allow - amount

        self._move(owner, normalize_address(to), amount)
        logger.debug(f"transferFrom: spender={caller} {owner} -> {to} {amount} {self.symbol}")
        return True

    @atomic
    def increase_allowance(self, caller: str, spender: str, added: int) -> bool:
        _require_amount(added)
        spender = normalize_address(spender)
        current = self._allowances.get((caller, spender), 0)
        self._set_allowance(caller, spender, _checked_add(current, added, "Allowance"))
        return True

    @atomic
    def decrease_allowance(self, caller: str, spender: str, subtracted: int) -> bool:
        _require_amount(subtracted)
        spender = normalize_address(spender)
        current = self._allowances.get((caller, spender), 0)
        if subtracted > current:
            raise InsufficientAllowanceError("Decreased allowance below zero")
        self._set_allowance(caller, spender, current - subtracted)
        return True

    # ── Supply ────────────────────────────────────────────────────────

    @atomic
    def mint(self, caller: str, to: str, amount: int) -> bool:
        self.only_owner(caller)
        _require_amount(amount)
        to = normalize_address(to)
        if is_null_address(to):
            raise TokenError("Cannot mint to the null address")

        self._mint(to, amount)
        self.emit(Transfer(
            emitter=self.address,
            sender=ZERO_ADDRESS,
            recipient=to,
            amount=amount,
            timestamp=self.runtime.now(),
        ))
        logger.info(f"Mint: {amount} {self.symbol} -> {to}")
        return True

    @atomic
    def burn(self, caller: str, amount: int) -> bool:
        _require_amount(amount)
        bal = self._balances.get(caller, 0)
        if bal < amount:
            raise InsufficientBalanceError(f"{caller} balance {bal} < burn amount {amount}")
        self._balances[caller] = bal - amount
        self._total_supply -= amount
        self.emit(Transfer(
            emitter=self.address,
            sender=caller,
            recipient=ZERO_ADDRESS,
            amount=amount,
            timestamp=self.runtime.now(),
        ))
        logger.info(f"Burn: {caller} burned {amount} {self.symbol}")
        return True

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "totalSupply": str(self._total_supply),
            "owner": self.owner,
            "holders": len([b for b in self._balances.values() if b > 0]),
            "createdAt": self.created_at,
        }

    def __repr__(self) -> str:
        return f"<Token {self.symbol} supply={self._total_supply}>"
