"""Ordered precondition checks for a purchase.

Order matters: the version check runs before the price and owner checks
because the version changes on every purchase and is the single
authoritative staleness signal.
"""

from src.om_account.domain.models import Account
from src.om_common.errors import (
    AlreadyOwnError,
    CannotBuySelfError,
    InsufficientFundsError,
    OwnerChangedError,
    PriceChangedError,
    StaleDataError,
    UserDeactivatedError,
    UserNotFoundError,
)
from src.om_purchase.domain.models import PurchaseCommand


def check_target(cmd: PurchaseCommand, target: Account | None) -> Account:
    if target is None:
        raise UserNotFoundError(cmd.target_id)
    if target.is_deactivated:
        raise UserDeactivatedError(target.id)
    if target.version != cmd.expected_version:
        raise StaleDataError(
            current_price=target.price,
            current_owner_id=target.owner_id,
            current_version=target.version,
        )
    if target.price != cmd.expected_price:
        raise PriceChangedError(current_price=target.price)
    if target.owner_id != cmd.expected_owner_id:
        raise OwnerChangedError(current_owner_id=target.owner_id)
    return target


def check_buyer(cmd: PurchaseCommand, target: Account, buyer: Account | None) -> Account:
    if buyer is None:
        raise UserNotFoundError(cmd.buyer_id)
    if buyer.id == target.id:
        raise CannotBuySelfError()
    if target.owner_id == buyer.id:
        raise AlreadyOwnError()
    if buyer.balance < target.price:
        raise InsufficientFundsError(balance=buyer.balance, price=target.price)
    return buyer


def check_purchase(
    cmd: PurchaseCommand, target: Account | None, buyer: Account | None
) -> tuple[Account, Account]:
    """Run every check in order; returns (target, buyer) when all pass."""
    checked_target = check_target(cmd, target)
    return checked_target, check_buyer(cmd, checked_target, buyer)
