"""WalletSummaryService: cache-first summary lookup with negative caching.

Resolution per account:
  cached summary        → returned as stored, warehouse not consulted
  cached missing marker → WalletNotFoundError
  nothing cached        → warehouse row is shaped, stored and returned;
                          no row → missing marker stored, WalletNotFoundError;
                          warehouse failure → propagated, nothing stored

Markers are permanent: there is no TTL and no re-validation. Only an
affirmative "no row" is cached; timeouts and errors never are.

Concurrent misses for one account are serialized per process by an
asyncio.Lock. A caller that had to wait re-reads the cache, so it normally
finds the winner's row instead of querying the warehouse again. Across
processes the insert is ON CONFLICT DO NOTHING and returns the stored row.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession

from src.ws_common.errors import WalletNotFoundError
from src.ws_wallet.domain.models import WalletSummary
from src.ws_wallet.domain.normalizer import shape_summary
from src.ws_wallet.domain.repository import (
    WalletSummaryCacheProtocol,
    WalletSummarySourceProtocol,
)

logger = logging.getLogger(__name__)


class WalletSummaryService:
    def __init__(
        self,
        cache: WalletSummaryCacheProtocol,
        source: WalletSummarySourceProtocol,
    ) -> None:
        self._cache = cache
        self._source = source
        self._fill_locks: dict[str, asyncio.Lock] = {}
        self._fill_waiters: dict[str, int] = {}

    @asynccontextmanager
    async def _fill_lock(self, account: str) -> AsyncIterator[bool]:
        """Hold the per-account fill lock; yields True if another caller got there first."""
        lock = self._fill_locks.setdefault(account, asyncio.Lock())
        self._fill_waiters[account] = self._fill_waiters.get(account, 0) + 1
        # a released lock may still have a queued waiter that has not woken yet
        contended = lock.locked() or self._fill_waiters[account] > 1
        try:
            async with lock:
                yield contended
        finally:
            self._fill_waiters[account] -= 1
            if self._fill_waiters[account] == 0:
                del self._fill_waiters[account]
                del self._fill_locks[account]

    async def get_account_activity_summary(
        self, db: AsyncSession, account: str
    ) -> WalletSummary:
        summary = await self._cache.find_summary(db, account)
        if summary is None:
            async with self._fill_lock(account) as contended:
                if contended:
                    summary = await self._cache.find_summary(db, account)
                if summary is None:
                    summary = await self._fill(db, account)
        else:
            logger.debug("Summary cache hit: account=%s missing=%s", account, summary.is_missing)

        if summary.is_missing:
            raise WalletNotFoundError(account)
        return summary

    async def _fill(self, db: AsyncSession, account: str) -> WalletSummary:
        """Query the warehouse once and store exactly one row for ``account``."""
        payload = await self._source.fetch_summary_payload(account)
        if payload is None:
            to_store = WalletSummary.missing(account)
        else:
            to_store = shape_summary(account, payload)

        try:
            stored = await self._cache.create_summary(db, to_store)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if to_store.is_missing:
            logger.info("Stored missing marker: account=%s", account)
        else:
            logger.info("Stored summary from warehouse: account=%s", account)
        return stored
