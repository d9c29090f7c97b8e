"""Periodic removal of idempotency keys past the retention window.

Not safety-critical: it only frees storage. A request that reuses an
already-purged key simply executes as a new purchase.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.om_common.datetime_utils import cutoff_before
from src.om_idempotency.domain.repository import IdempotencyRepositoryProtocol
from src.om_idempotency.infrastructure.persistence import IdempotencyRepository

logger = logging.getLogger(__name__)


async def purge_expired_keys(
    db: AsyncSession,
    repo: IdempotencyRepositoryProtocol,
    ttl_hours: int,
    now: datetime | None = None,
) -> int:
    """Delete keys created more than `ttl_hours` before `now`. Commits."""
    cutoff = cutoff_before(ttl_hours, now)
    try:
        removed = await repo.purge_older_than(db, cutoff)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info("Idempotency sweep removed %d keys older than %s", removed, cutoff.isoformat())
    return removed


class IdempotencySweeper:
    """Runs purge_expired_keys every `interval_seconds` until stopped."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        repo: IdempotencyRepositoryProtocol | None = None,
        ttl_hours: int = settings.IDEMPOTENCY_TTL_HOURS,
        interval_seconds: float = settings.IDEMPOTENCY_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        self._session_factory = session_factory
        self._repo: IdempotencyRepositoryProtocol = repo or IdempotencyRepository()
        self._ttl_hours = ttl_hours
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    async def sweep_once(self) -> int:
        async with self._session_factory() as db:
            return await purge_expired_keys(db, self._repo, self._ttl_hours)

    async def _run(self) -> None:
        while True:
            try:
                await self.sweep_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Idempotency sweep failed; retrying next interval")
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="idempotency-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
