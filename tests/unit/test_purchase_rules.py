"""Tests for the ordered purchase precondition checks."""

import pytest

from src.om_account.domain.models import Account
from src.om_common.datetime_utils import utc_now
from src.om_common.errors import (
    AlreadyOwnError,
    CannotBuySelfError,
    InsufficientFundsError,
    InvalidPurchaseRequestError,
    OwnerChangedError,
    PriceChangedError,
    StaleDataError,
    UserDeactivatedError,
    UserNotFoundError,
)
from src.om_purchase.domain.models import PurchaseCommand
from src.om_purchase.domain.rules import check_buyer, check_purchase, check_target


def _account(account_id: str, **kwargs) -> Account:
    return Account(
        id=account_id,
        username=account_id,
        balance=kwargs.get("balance", 100000),
        price=kwargs.get("price", 10000),
        owner_id=kwargs.get("owner_id"),
        version=kwargs.get("version", 1),
        deactivated_at=kwargs.get("deactivated_at"),
    )


def _cmd(**kwargs) -> PurchaseCommand:
    return PurchaseCommand(
        buyer_id=kwargs.get("buyer_id", "buyer"),
        target_id=kwargs.get("target_id", "target"),
        expected_price=kwargs.get("expected_price", 10000),
        expected_owner_id=kwargs.get("expected_owner_id"),
        expected_version=kwargs.get("expected_version", 1),
        idempotency_key=kwargs.get("idempotency_key", "k"),
    )


class TestCheckTarget:
    def test_missing(self) -> None:
        with pytest.raises(UserNotFoundError):
            check_target(_cmd(), None)

    def test_deactivated_before_version(self) -> None:
        target = _account("target", version=9, deactivated_at=utc_now())
        with pytest.raises(UserDeactivatedError):
            check_target(_cmd(), target)

    def test_version_before_price_and_owner(self) -> None:
        target = _account("target", version=2, price=1, owner_id="x")
        with pytest.raises(StaleDataError):
            check_target(_cmd(), target)

    def test_price_before_owner(self) -> None:
        target = _account("target", price=1, owner_id="x")
        with pytest.raises(PriceChangedError):
            check_target(_cmd(), target)

    def test_owner(self) -> None:
        with pytest.raises(OwnerChangedError):
            check_target(_cmd(), _account("target", owner_id="x"))

    def test_passes(self) -> None:
        target = _account("target", owner_id="x")
        assert check_target(_cmd(expected_owner_id="x"), target) is target


class TestCheckBuyer:
    def test_missing(self) -> None:
        with pytest.raises(UserNotFoundError):
            check_buyer(_cmd(), _account("target"), None)

    def test_self_before_funds(self) -> None:
        me = _account("me", balance=0)
        with pytest.raises(CannotBuySelfError):
            check_buyer(_cmd(buyer_id="me", target_id="me"), me, me)

    def test_already_own_before_funds(self) -> None:
        with pytest.raises(AlreadyOwnError):
            check_buyer(
                _cmd(), _account("target", owner_id="buyer"), _account("buyer", balance=0)
            )

    def test_exact_balance_is_enough(self) -> None:
        buyer = _account("buyer", balance=10000)
        assert check_buyer(_cmd(), _account("target"), buyer) is buyer

    def test_one_cent_short(self) -> None:
        with pytest.raises(InsufficientFundsError) as exc_info:
            check_buyer(_cmd(), _account("target"), _account("buyer", balance=9999))
        assert exc_info.value.shortfall == 1


def test_check_purchase_returns_target_then_buyer() -> None:
    target, buyer = _account("target"), _account("buyer")
    assert check_purchase(_cmd(), target, buyer) == (target, buyer)


class TestCommandValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"buyer_id": ""},
            {"target_id": ""},
            {"expected_price": -1},
            {"expected_version": 0},
            {"idempotency_key": ""},
        ],
    )
    def test_rejects_malformed(self, overrides) -> None:
        with pytest.raises(InvalidPurchaseRequestError):
            _cmd(**overrides).validate()

    def test_accepts_zero_price(self) -> None:
        _cmd(expected_price=0).validate()
