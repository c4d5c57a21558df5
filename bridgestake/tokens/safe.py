"""
Safe Token Calls

Wrappers the bridge and pool use for every interaction with a token
collaborator. A collaborator may return ``False`` instead of raising, or
move a different amount than requested (fee-on-transfer, rebasing); both
abort the enclosing operation with an ``IntegrityError``. Exceptions raised
by the collaborator itself propagate unchanged.
"""

from ..exceptions import BalanceMismatchError, TokenCallFailedError
from ..logger import get_logger
from .interface import TokenCollaborator

logger = get_logger(__name__)


def _check(result, token: TokenCollaborator, call: str) -> None:
    if result is not True:
        logger.warning(f"Token {token.address} {call} returned {result!r}")
        raise TokenCallFailedError(f"Token {token.address} {call} failed")


def safe_transfer(token: TokenCollaborator, caller: str, to: str, amount: int) -> None:
    _check(token.transfer(caller, to, amount), token, "transfer")


def safe_transfer_from(
    token: TokenCollaborator,
    caller: str,
    owner: str,
    to: str,
    amount: int,
) -> None:
    _check(token.transfer_from(caller, owner, to, amount), token, "transferFrom")


def safe_approve(token: TokenCollaborator, caller: str, spender: str, amount: int) -> None:
    """
    Set ``spender``'s allowance to exactly ``amount``.

    A non-zero allowance is first reset to zero so tokens that refuse
    non-zero -> non-zero changes still accept the grant.
    """
    if token.allowance(caller, spender) != 0:
        _check(token.approve(caller, spender, 0), token, "approve(0)")
    if amount:
        _check(token.approve(caller, spender, amount), token, "approve")


def expect_balance_delta(
    token: TokenCollaborator,
    holder: str,
    before: int,
    delta: int,
) -> None:
    """
    Require ``balance_of(holder) == before + delta``.

    Args:
        delta: Signed expected change (negative for outflows)
    """
    after = token.balance_of(holder)
    if after - before != delta:
        logger.warning(
            f"Balance mismatch on {token.address} for {holder}: "
            f"expected {delta:+d}, observed {after - before:+d}"
        )
        raise BalanceMismatchError(
            f"Token {token.address} moved {after - before:+d} for {holder}, expected {delta:+d}"
        )
