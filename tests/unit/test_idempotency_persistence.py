"""Unit tests for IdempotencyRepository using MagicMock AsyncSession."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.om_common.errors import DuplicateIdempotencyKeyError
from src.om_idempotency.infrastructure.persistence import IdempotencyRepository


def _result(row=None, rowcount=0):
    result = MagicMock()
    result.fetchone.return_value = row
    result.rowcount = rowcount
    return result


def _row(key: str = "k", transaction_id: str = "tx-1"):
    row = MagicMock()
    row.key = key
    row.transaction_id = transaction_id
    row.created_at = datetime.now(UTC)
    return row


@pytest.fixture
def db():
    return MagicMock()


async def test_get_hit(db) -> None:
    db.execute = AsyncMock(return_value=_result(_row()))
    record = await IdempotencyRepository().get(db, "k")
    assert record is not None
    assert record.transaction_id == "tx-1"


async def test_get_miss(db) -> None:
    db.execute = AsyncMock(return_value=_result(None))
    assert await IdempotencyRepository().get(db, "k") is None


async def test_put_is_create_if_absent(db) -> None:
    db.execute = AsyncMock(return_value=_result(_row("k", "tx-9")))
    record = await IdempotencyRepository().put(db, "k", "tx-9")
    assert "ON CONFLICT (key) DO NOTHING" in str(db.execute.call_args.args[0])
    assert record.transaction_id == "tx-9"


async def test_put_existing_key_raises(db) -> None:
    db.execute = AsyncMock(return_value=_result(None))
    with pytest.raises(DuplicateIdempotencyKeyError):
        await IdempotencyRepository().put(db, "k", "tx-9")


async def test_purge_returns_deleted_count(db) -> None:
    db.execute = AsyncMock(return_value=_result(rowcount=4))
    cutoff = datetime.now(UTC)
    assert await IdempotencyRepository().purge_older_than(db, cutoff) == 4
    assert db.execute.call_args.args[1] == {"cutoff": cutoff}
