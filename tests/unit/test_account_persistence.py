"""Unit tests for AccountRepository using MagicMock AsyncSession."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from src.om_account.infrastructure.persistence import AccountRepository
from src.om_common.errors import UsernameTakenError


def _make_account_row(**kwargs):
    row = MagicMock()
    row.id = kwargs.get("id", "acc-1")
    row.username = kwargs.get("username", "alice")
    row.balance = kwargs.get("balance", 100000)
    row.price = kwargs.get("price", 10000)
    row.owner_id = kwargs.get("owner_id")
    row.version = kwargs.get("version", 1)
    row.purchase_count = kwargs.get("purchase_count", 0)
    row.deactivated_at = kwargs.get("deactivated_at")
    row.created_at = datetime.now(UTC)
    row.updated_at = datetime.now(UTC)
    return row


def _result(fetchone=None, fetchall=None):
    result = MagicMock()
    result.fetchone.return_value = fetchone
    result.fetchall.return_value = fetchall or []
    return result


@pytest.fixture
def db():
    return MagicMock()


class TestGetById:
    async def test_found(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(_make_account_row(id="acc-9")))
        account = await AccountRepository().get_by_id(db, "acc-9")
        assert account is not None
        assert account.id == "acc-9"
        assert account.is_deactivated is False

    async def test_not_found(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(None))
        assert await AccountRepository().get_by_id(db, "missing") is None


class TestLockForUpdate:
    async def test_sorts_and_dedups_ids(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchall=[]))
        await AccountRepository().lock_for_update(db, ["t", "b", "t"])
        sql, params = db.execute.call_args.args
        assert params == {"ids": ["b", "t"]}
        assert "FOR UPDATE" in str(sql)
        assert "ORDER BY id" in str(sql)

    async def test_keyed_by_id(self, db) -> None:
        rows = [_make_account_row(id="a"), _make_account_row(id="b")]
        db.execute = AsyncMock(return_value=_result(fetchall=rows))
        locked = await AccountRepository().lock_for_update(db, ["a", "b"])
        assert set(locked) == {"a", "b"}


class TestSetLockTimeout:
    async def test_uses_set_local(self, db) -> None:
        db.execute = AsyncMock()
        await AccountRepository().set_lock_timeout(db, 250)
        assert str(db.execute.call_args.args[0]) == "SET LOCAL lock_timeout = '250ms'"


class TestAdjustBalance:
    async def test_guard_in_where_clause(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(_make_account_row(balance=5000)))
        account = await AccountRepository().adjust_balance(db, "acc-1", -5000)
        sql, params = db.execute.call_args.args
        assert "balance + :delta >= 0" in str(sql)
        assert params == {"id": "acc-1", "delta": -5000}
        assert account is not None
        assert account.balance == 5000

    async def test_guard_failed_returns_none(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(None))
        assert await AccountRepository().adjust_balance(db, "acc-1", -1) is None


class TestRecordSale:
    async def test_bumps_version_under_guard(self, db) -> None:
        row = _make_account_row(owner_id="buyer", price=15000, version=2, purchase_count=1)
        db.execute = AsyncMock(return_value=_result(row))
        account = await AccountRepository().record_sale(
            db, "target", "buyer", new_price=15000, bonus=1000, expected_version=1
        )
        sql, params = db.execute.call_args.args
        assert "version = :expected_version" in str(sql)
        assert "deactivated_at IS NULL" in str(sql)
        assert params["expected_version"] == 1
        assert params["bonus"] == 1000
        assert account is not None
        assert account.version == 2

    async def test_version_moved_returns_none(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(None))
        result = await AccountRepository().record_sale(
            db, "target", "buyer", new_price=15000, bonus=1000, expected_version=1
        )
        assert result is None


class TestCreate:
    async def test_inserts_at_version_one(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(_make_account_row(username="bob")))
        account = await AccountRepository().create(db, "acc-2", "bob", 100000, 10000)
        assert account.username == "bob"
        assert db.execute.call_args.args[1] == {
            "id": "acc-2",
            "username": "bob",
            "balance": 100000,
            "price": 10000,
        }

    async def test_duplicate_username(self, db) -> None:
        db.execute = AsyncMock(side_effect=IntegrityError("INSERT", {}, Exception("dup")))
        with pytest.raises(UsernameTakenError):
            await AccountRepository().create(db, "acc-2", "bob", 100000, 10000)


class TestListOwnedBy:
    async def test_maps_rows(self, db) -> None:
        rows = [_make_account_row(id="x", owner_id="me"), _make_account_row(id="y", owner_id="me")]
        db.execute = AsyncMock(return_value=_result(fetchall=rows))
        owned = await AccountRepository().list_owned_by(db, "me", 10)
        assert [a.id for a in owned] == ["x", "y"]
        assert db.execute.call_args.args[1] == {"owner_id": "me", "limit": 10}
