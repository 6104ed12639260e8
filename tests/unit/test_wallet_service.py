# tests/unit/test_wallet_service.py
"""Unit tests for WalletSummaryService (cache / negative-cache resolution)."""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.ws_common.errors import UpstreamError, UpstreamTimeoutError, WalletNotFoundError
from src.ws_wallet.application.service import WalletSummaryService
from src.ws_wallet.domain.models import WalletSummary
from tests.fakes import OTHER_ADDRESS, VALID_ADDRESS, InMemorySummaryCache, StubWarehouse

K1 = VALID_ADDRESS
K2 = OTHER_ADDRESS


def _service(cache: InMemorySummaryCache, source: StubWarehouse) -> WalletSummaryService:
    return WalletSummaryService(cache=cache, source=source)


class TestCacheHit:
    @pytest.mark.asyncio
    async def test_returns_cached_summary_without_warehouse(self, db, summary_cache, warehouse):
        cached = WalletSummary(account=K1, is_missing=False, total_transactions=42)
        summary_cache.rows[K1] = cached
        svc = _service(summary_cache, warehouse)

        result = await svc.get_account_activity_summary(db, K1)

        assert result is cached
        assert result.total_transactions == 42
        assert warehouse.calls == []
        assert summary_cache.create_calls == 0

    @pytest.mark.asyncio
    async def test_repeated_hits_identical(self, db, summary_cache, warehouse):
        warehouse.payloads[K1] = {"total_transactions": 7}
        svc = _service(summary_cache, warehouse)

        first = await svc.get_account_activity_summary(db, K1)
        second = await svc.get_account_activity_summary(db, K1)

        assert first == second
        assert first.created_at == second.created_at
        assert warehouse.calls == [K1]

    @pytest.mark.asyncio
    async def test_cached_marker_raises_not_found(self, db, summary_cache, warehouse):
        summary_cache.rows[K1] = WalletSummary.missing(K1)
        svc = _service(summary_cache, warehouse)

        with pytest.raises(WalletNotFoundError):
            await svc.get_account_activity_summary(db, K1)

        assert warehouse.calls == []


class TestColdMiss:
    @pytest.mark.asyncio
    async def test_populates_from_warehouse(self, db, summary_cache, warehouse):
        warehouse.payloads[K1] = {"total_transactions": 100, "most_active_day": "2023-10-01"}
        svc = _service(summary_cache, warehouse)

        result = await svc.get_account_activity_summary(db, K1)

        assert result.is_missing is False
        assert result.total_transactions == 100
        assert result.most_active_day is not None
        assert K1 in summary_cache.rows
        assert summary_cache.create_calls == 1
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_single_cache_read_when_uncontended(self, db, summary_cache, warehouse):
        warehouse.payloads[K1] = {"total_transactions": 1}
        svc = _service(summary_cache, warehouse)

        await svc.get_account_activity_summary(db, K1)

        assert summary_cache.find_calls == 1

    @pytest.mark.asyncio
    async def test_no_row_stores_marker_and_raises(self, db, summary_cache, warehouse):
        svc = _service(summary_cache, warehouse)

        with pytest.raises(WalletNotFoundError):
            await svc.get_account_activity_summary(db, K2)

        assert summary_cache.rows[K2].is_missing is True
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_marker_is_permanent(self, db, summary_cache, warehouse):
        svc = _service(summary_cache, warehouse)

        with pytest.raises(WalletNotFoundError):
            await svc.get_account_activity_summary(db, K2)
        # warehouse would now answer, but the marker wins
        warehouse.payloads[K2] = {"total_transactions": 5}
        with pytest.raises(WalletNotFoundError):
            await svc.get_account_activity_summary(db, K2)

        assert warehouse.calls == [K2]
        assert summary_cache.create_calls == 1


class TestUpstreamFailure:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [UpstreamTimeoutError(), UpstreamError()])
    async def test_failure_propagates_and_nothing_cached(self, db, summary_cache, warehouse, error):
        warehouse.error = error
        svc = _service(summary_cache, warehouse)

        with pytest.raises(type(error)):
            await svc.get_account_activity_summary(db, K1)

        assert summary_cache.rows == {}
        assert summary_cache.create_calls == 0
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_is_not_sticky(self, db, summary_cache, warehouse):
        warehouse.error = UpstreamTimeoutError()
        svc = _service(summary_cache, warehouse)
        with pytest.raises(UpstreamTimeoutError):
            await svc.get_account_activity_summary(db, K1)

        warehouse.error = None
        warehouse.payloads[K1] = {"total_transactions": 3}
        result = await svc.get_account_activity_summary(db, K1)

        assert result.total_transactions == 3
        assert warehouse.calls == [K1, K1]

    @pytest.mark.asyncio
    async def test_cache_write_failure_rolls_back(self, db, warehouse):
        cache = MagicMock()
        cache.find_summary = AsyncMock(return_value=None)
        cache.create_summary = AsyncMock(side_effect=RuntimeError("db down"))
        warehouse.payloads[K1] = {"total_transactions": 3}
        svc = WalletSummaryService(cache=cache, source=warehouse)

        with pytest.raises(RuntimeError):
            await svc.get_account_activity_summary(db, K1)

        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()


class TestConcurrentMisses:
    @pytest.mark.asyncio
    async def test_same_account_queries_warehouse_once(self, db, summary_cache):
        release = asyncio.Event()
        calls: list[str] = []

        class SlowWarehouse:
            async def fetch_summary_payload(self, account):
                calls.append(account)
                await release.wait()
                return {"total_transactions": 11}

        svc = WalletSummaryService(cache=summary_cache, source=SlowWarehouse())
        tasks = [
            asyncio.create_task(svc.get_account_activity_summary(db, K1)) for _ in range(3)
        ]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks)

        assert calls == [K1]
        assert summary_cache.create_calls == 1
        assert all(r.total_transactions == 11 for r in results)

    @pytest.mark.asyncio
    async def test_different_accounts_not_serialized(self, db, summary_cache):
        started: list[str] = []
        both_started = asyncio.Event()

        class RendezvousWarehouse:
            async def fetch_summary_payload(self, account):
                started.append(account)
                if len(started) == 2:
                    both_started.set()
                await asyncio.wait_for(both_started.wait(), timeout=1)
                return {"total_transactions": 1}

        svc = WalletSummaryService(cache=summary_cache, source=RendezvousWarehouse())
        await asyncio.gather(
            svc.get_account_activity_summary(db, K1),
            svc.get_account_activity_summary(db, K2),
        )

        assert sorted(started) == sorted([K1, K2])

    @pytest.mark.asyncio
    async def test_locks_released_after_fill(self, db, summary_cache, warehouse):
        warehouse.payloads[K1] = {"total_transactions": 1}
        svc = _service(summary_cache, warehouse)

        await svc.get_account_activity_summary(db, K1)
        with pytest.raises(WalletNotFoundError):
            await svc.get_account_activity_summary(db, K2)

        assert svc._fill_locks == {}
        assert svc._fill_waiters == {}

    @pytest.mark.asyncio
    async def test_arrival_between_release_and_wakeup_is_contended(self, db, summary_cache, warehouse):
        svc = _service(summary_cache, warehouse)
        holder = svc._fill_lock(K1)
        assert await holder.__aenter__() is False

        async def queued():
            async with svc._fill_lock(K1) as contended:
                await asyncio.sleep(0)
                return contended

        queued_task = asyncio.create_task(queued())
        await asyncio.sleep(0)

        # released, but the queued task has not run yet
        await holder.__aexit__(None, None, None)
        async with svc._fill_lock(K1) as late_contended:
            pass

        assert late_contended is True
        assert await queued_task is True
        assert svc._fill_locks == {}

    @pytest.mark.asyncio
    async def test_lost_insert_race_returns_stored_row(self, db, warehouse):
        stored = WalletSummary(account=K1, total_transactions=99)
        cache = MagicMock()
        cache.find_summary = AsyncMock(return_value=None)
        cache.create_summary = AsyncMock(return_value=stored)
        warehouse.payloads[K1] = {"total_transactions": 1}
        svc = WalletSummaryService(cache=cache, source=warehouse)

        result = await svc.get_account_activity_summary(db, K1)

        assert result is stored
