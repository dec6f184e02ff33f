"""
Tests for the daily scheduler (stock_insights/pipelines/daily_scheduler.py)

Tests:
1. Daily update persists selection, rotation time and recent buffer
2. Per-symbol pre-fetch failures are collected, not fatal
3. Overlapping runs are rejected with a busy result
4. Status, job history and default companies
5. Trigger timing on the trading calendar and the run loop
"""

import asyncio
from datetime import date, time, timedelta

import pytest

from conftest import FakeClock, FakeDateTimeClock, StubProvider, et
from stock_insights.cache.ttl_cache import TTLCache
from stock_insights.config import ProviderConfig, SchedulerConfig
from stock_insights.data.market_data import ComprehensiveDataService
from stock_insights.interfaces import StubTradingCalendar
from stock_insights.pipelines.daily_scheduler import (
    FEATURED_STOCKS_KEY,
    LAST_ROTATION_KEY,
    RECENT_SELECTIONS_KEY,
    DailyScheduler,
    JobResult,
)
from stock_insights.pipelines.selection import select_companies
from stock_insights.universe.company_pool import CompanyPool


MONDAY_PRE_MARKET = et(2024, 1, 15, 6, 0)


@pytest.fixture
def clock():
    return FakeDateTimeClock(MONDAY_PRE_MARKET, FakeClock())


@pytest.fixture
def cache(tmp_path, clock):
    return TTLCache(tmp_path / "cache.json", clock=clock.ms_clock)


@pytest.fixture
def pool():
    return CompanyPool()


def make_scheduler(cache, pool, clock, provider=None, config=None, with_data=True):
    provider = provider or StubProvider()
    data_service = (
        ComprehensiveDataService(provider, cache, ProviderConfig(provider_path=None, completer_path=None))
        if with_data else None
    )
    return DailyScheduler(
        cache=cache,
        pool=pool,
        data_service=data_service,
        calendar=StubTradingCalendar(),
        config=config or SchedulerConfig(),
        clock=clock,
    )


@pytest.fixture
def scheduler(cache, pool, clock):
    return make_scheduler(cache, pool, clock)


class TestDailyUpdate:

    def test_successful_update(self, scheduler, cache, pool, clock):
        result = asyncio.run(scheduler.run_daily_update())

        expected = select_companies(pool.entries(), MONDAY_PRE_MARKET.date(), [])
        assert result.success
        assert result.message == "Daily update completed successfully"
        assert result.companies_updated == expected
        assert result.errors == []

        assert cache.get(FEATURED_STOCKS_KEY) == expected
        assert cache.get(LAST_ROTATION_KEY) == MONDAY_PRE_MARKET.isoformat()
        assert cache.get(RECENT_SELECTIONS_KEY) == expected
        for symbol in expected:
            assert cache.has(f"comprehensive_{symbol}")

    def test_partial_failures_are_collected(self, cache, pool, clock):
        expected = select_companies(pool.entries(), MONDAY_PRE_MARKET.date(), [])
        provider = StubProvider(fail=expected[:2])
        scheduler = make_scheduler(cache, pool, clock, provider=provider)

        result = asyncio.run(scheduler.run_daily_update())

        assert result.success
        assert result.companies_updated == expected[2:]
        assert len(result.errors) == 2
        assert result.errors[0].startswith(f"{expected[0]}: ")
        # Selection is persisted even when pre-fetches fail
        assert cache.get(FEATURED_STOCKS_KEY) == expected

    def test_no_provider_records_errors(self, cache, pool, clock):
        scheduler = make_scheduler(cache, pool, clock, with_data=False)
        result = asyncio.run(scheduler.run_daily_update())

        assert result.success
        assert result.companies_updated == []
        assert len(result.errors) == 5
        assert len(cache.get(FEATURED_STOCKS_KEY)) == 5

    def test_recent_buffer_across_days(self, scheduler, cache, clock):
        day1 = asyncio.run(scheduler.run_daily_update()).companies_updated
        clock.advance(days=1)
        day2 = asyncio.run(scheduler.run_daily_update()).companies_updated

        recent = cache.get(RECENT_SELECTIONS_KEY)
        assert recent[:5] == day2
        assert set(day1) <= set(recent)
        assert len(recent) == len(set(recent)) <= 20

    def test_recent_buffer_survives_daily_ttl(self, scheduler, cache, clock):
        asyncio.run(scheduler.run_daily_update())
        clock.advance(days=3)
        assert cache.get(FEATURED_STOCKS_KEY) is None
        assert len(cache.get(RECENT_SELECTIONS_KEY)) == 5

    def test_expired_entries_swept_after_update(self, scheduler, cache, clock):
        cache.set("stale", 1, ttl=timedelta(seconds=1))
        clock.advance(seconds=5)

        asyncio.run(scheduler.run_daily_update())
        assert "stale" not in cache.keys()

    def test_manual_trigger_runs_same_procedure(self, scheduler, cache):
        result = asyncio.run(scheduler.trigger_manual_update())
        assert result.success
        assert cache.get(FEATURED_STOCKS_KEY) == result.companies_updated

    def test_selection_failure_is_reported(self, scheduler, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("pool exploded")

        monkeypatch.setattr("stock_insights.pipelines.daily_scheduler.select_companies", broken)
        result = asyncio.run(scheduler.run_daily_update())

        assert not result.success
        assert "pool exploded" in result.message
        assert result.errors == ["pool exploded"]
        assert scheduler.is_running is False


class TestBusyGuard:

    def test_rejects_when_running(self, scheduler):
        scheduler.is_running = True
        result = asyncio.run(scheduler.run_daily_update())

        assert result.success is False
        assert result.message == "Update already in progress"
        assert result.to_dict() == {
            "success": False,
            "message": "Update already in progress",
            "timestamp": MONDAY_PRE_MARKET.isoformat(),
        }
        assert scheduler.job_history == []

    def test_overlapping_runs(self, scheduler):
        async def run_both():
            return await asyncio.gather(scheduler.run_daily_update(), scheduler.run_daily_update())

        first, second = asyncio.run(run_both())
        assert first.success
        assert not second.success
        assert second.message == "Update already in progress"
        assert scheduler.is_running is False


class TestStatus:

    def test_default_companies_before_first_run(self, scheduler):
        assert scheduler.get_current_featured_companies() == ["AAPL", "MSFT", "GOOGL", "AMZN", "TSLA"]

    def test_status_shape(self, scheduler):
        asyncio.run(scheduler.run_daily_update())
        status = scheduler.get_status()

        assert set(status) == {
            "isRunning", "lastRun", "currentFeaturedCompanies",
            "recentJobs", "nextScheduledRun", "companyPoolSize",
        }
        assert status["isRunning"] is False
        assert status["lastRun"] == MONDAY_PRE_MARKET.isoformat()
        assert status["companyPoolSize"] == 60
        assert len(status["recentJobs"]) == 1
        assert status["nextScheduledRun"] == et(2024, 1, 16, 6, 0).isoformat()

    def test_recent_jobs_limited_to_five(self, scheduler):
        for _ in range(7):
            asyncio.run(scheduler.run_daily_update())
        assert len(scheduler.get_status()["recentJobs"]) == 5

    def test_job_history_capped(self, cache, pool, clock):
        scheduler = make_scheduler(cache, pool, clock, config=SchedulerConfig(job_history_size=3))
        for _ in range(5):
            asyncio.run(scheduler.run_daily_update())
        assert len(scheduler.job_history) == 3

    def test_pool_mutation(self, scheduler):
        assert scheduler.add_company_to_pool("AMD", sector="technology") is True
        assert scheduler.get_status()["companyPoolSize"] == 61
        assert scheduler.remove_company_from_pool("AMD") is True
        assert scheduler.remove_company_from_pool("AMD") is False

    def test_job_result_summary(self):
        result = JobResult(True, "ok", "t", companies_updated=["AAPL"], errors=["MSFT: down"])
        text = result.summary()
        assert "AAPL" in text
        assert "MSFT: down" in text


class TestMarketOpenUpdate:

    def test_refreshes_featured_quotes(self, cache, pool, clock):
        provider = StubProvider(fail=["MSFT"])
        scheduler = make_scheduler(cache, pool, clock, provider=provider)

        refreshed = asyncio.run(scheduler.run_market_open_update())

        assert refreshed == ["AAPL", "GOOGL", "AMZN", "TSLA"]
        assert {s for section, s in provider.calls if section == "quote"} == {
            "AAPL", "MSFT", "GOOGL", "AMZN", "TSLA",
        }

    def test_without_provider(self, cache, pool, clock):
        scheduler = make_scheduler(cache, pool, clock, with_data=False)
        assert asyncio.run(scheduler.run_market_open_update()) == []


class TestTiming:

    def test_next_pre_market_same_day(self, scheduler):
        assert scheduler.next_pre_market_run(et(2024, 1, 15, 5, 0)) == et(2024, 1, 15, 6, 0)

    def test_next_pre_market_skips_weekend(self, scheduler):
        assert scheduler.next_pre_market_run(et(2024, 1, 19, 7, 0)) == et(2024, 1, 22, 6, 0)

    def test_next_market_open(self, scheduler):
        assert scheduler.next_market_open_run(et(2024, 1, 15, 6, 0)) == et(2024, 1, 15, 9, 30)
        assert scheduler.next_market_open_run(et(2024, 1, 15, 9, 30)) == et(2024, 1, 16, 9, 30)

    def test_market_open_follows_late_session_open(self, cache, pool, clock):
        scheduler = DailyScheduler(
            cache=cache,
            pool=pool,
            data_service=None,
            calendar=StubTradingCalendar(late_opens={date(2024, 1, 16): time(10, 30)}),
            clock=clock,
        )

        assert scheduler.next_market_open_run(et(2024, 1, 16, 9, 0)) == et(2024, 1, 16, 10, 30)
        assert not scheduler.needs_market_open_update(et(2024, 1, 16, 9, 45))
        assert scheduler.needs_market_open_update(et(2024, 1, 16, 10, 30))
        assert scheduler.needs_market_open_update(et(2024, 1, 17, 9, 30))

    def test_needs_daily_update(self, scheduler, clock):
        assert not scheduler.needs_daily_update(et(2024, 1, 15, 5, 59))
        assert scheduler.needs_daily_update(et(2024, 1, 15, 6, 0))
        assert not scheduler.needs_daily_update(et(2024, 1, 20, 8, 0))  # Saturday

    def test_daily_update_once_per_day(self, scheduler, clock):
        asyncio.run(scheduler.run_daily_update())
        assert not scheduler.needs_daily_update(et(2024, 1, 15, 14, 0))
        assert scheduler.needs_daily_update(et(2024, 1, 16, 6, 30))

    def test_rotation_date_survives_restart(self, scheduler, cache, pool, clock):
        asyncio.run(scheduler.run_daily_update())
        restarted = make_scheduler(cache, pool, clock)
        assert not restarted.needs_daily_update(et(2024, 1, 15, 8, 0))

    def test_run_due_jobs(self, scheduler, clock):
        clock.set(et(2024, 1, 15, 9, 45))
        # The daily update sweeps the cache itself, so no separate cleanup yet
        assert asyncio.run(scheduler.run_due_jobs()) == ["daily_update", "market_open_update"]
        assert asyncio.run(scheduler.run_due_jobs()) == []

        clock.advance(hours=1)
        assert asyncio.run(scheduler.run_due_jobs()) == ["cleanup"]

    def test_seconds_until_next_event(self, scheduler, clock):
        clock.set(et(2024, 1, 15, 5, 0))
        assert scheduler.seconds_until_next_event() == pytest.approx(3600.0)

    def test_run_forever_stops(self, scheduler, cache, clock):
        clock.set(et(2024, 1, 15, 7, 0))

        async def run_once():
            stop = asyncio.Event()
            original = scheduler.run_due_jobs

            async def run_then_stop():
                ran = await original()
                stop.set()
                return ran

            scheduler.run_due_jobs = run_then_stop
            await scheduler.run_forever(stop)

        asyncio.run(run_once())
        assert cache.get(LAST_ROTATION_KEY) == et(2024, 1, 15, 7, 0).isoformat()
        assert len(scheduler.job_history) == 1
