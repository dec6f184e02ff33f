"""
Daily Scheduler
===============

Rotates the featured companies and keeps their data warm in the cache.

Jobs (America/New_York, trading days only):
- 06:00 pre-market update: select today's companies, persist the selection,
  pre-fetch comprehensive data for each, sweep expired cache entries
- market-open refresh at the session open (09:30, later on late-open
  days): re-fetch quotes of the featured companies

The pre-market update runs at most once per trading day; the date of the
last rotation is read back from the cache so restarts don't re-run it.
A manual trigger runs the same update on demand. Overlapping runs are
rejected with a "busy" result rather than queued.

CACHE KEYS:
- featured_stocks_daily: today's selection (24h)
- last_company_rotation: ISO timestamp of the last selection
- recent_selections: recently featured symbols, most recent first (<= 20)
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

import pytz

from stock_insights.cache.ttl_cache import TTLCache
from stock_insights.config import SchedulerConfig
from stock_insights.data.market_data import ComprehensiveDataService
from stock_insights.interfaces import TradingCalendar
from stock_insights.pipelines.selection import select_companies, update_recent_history
from stock_insights.universe.company_pool import CompanyPool

logger = logging.getLogger(__name__)

FEATURED_STOCKS_KEY = "featured_stocks_daily"
LAST_ROTATION_KEY = "last_company_rotation"
RECENT_SELECTIONS_KEY = "recent_selections"

# Must outlive the daily TTL so the recency penalty spans several days
RECENT_SELECTIONS_TTL = timedelta(days=30)

BUSY_MESSAGE = "Update already in progress"
RECENT_JOBS_IN_STATUS = 5


@dataclass
class JobResult:
    """Outcome of one scheduler run."""
    success: bool
    message: str
    timestamp: str
    companies_updated: Optional[List[str]] = None
    errors: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        if self.companies_updated is not None:
            result["companiesUpdated"] = list(self.companies_updated)
        if self.errors is not None:
            result["errors"] = list(self.errors)
        return result

    def summary(self) -> str:
        status = "✅" if self.success else "❌"
        lines = [f"{status} {self.message} ({self.timestamp})"]
        if self.companies_updated:
            lines.append(f"  Updated: {', '.join(self.companies_updated)}")
        if self.errors:
            lines.append(f"  Errors: {len(self.errors)}")
            lines.extend(f"    - {e}" for e in self.errors)
        return "\n".join(lines)


def _utc_now() -> datetime:
    return datetime.now(pytz.utc)


class DailyScheduler:
    """
    Owns the rotation jobs; state (pool, cache) is injected by the app.

    Usage:
        scheduler = DailyScheduler(cache, pool, data_service, calendar)
        result = await scheduler.trigger_manual_update()
        print(result.summary())

        await scheduler.run_forever()   # blocks, runs jobs on schedule
    """

    def __init__(
        self,
        cache: TTLCache,
        pool: CompanyPool,
        data_service: Optional[ComprehensiveDataService],
        calendar: TradingCalendar,
        config: Optional[SchedulerConfig] = None,
        cleanup_interval: timedelta = timedelta(hours=1),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.cache = cache
        self.pool = pool
        self.data_service = data_service
        self.calendar = calendar
        self.config = config or SchedulerConfig()
        self.cleanup_interval = cleanup_interval
        self._clock = clock or _utc_now
        self.tz = pytz.timezone(self.config.timezone)

        self.is_running = False
        self.last_run: Optional[datetime] = None
        self.job_history: List[JobResult] = []

        self._last_daily_attempt: Optional[date] = None
        self._last_market_open: Optional[date] = None
        self._last_sweep: Optional[datetime] = None

    # -------------------------------------------------------------------------
    # Jobs
    # -------------------------------------------------------------------------

    async def run_daily_update(self) -> JobResult:
        """Select today's companies, persist them and pre-fetch their data."""
        now = self._clock()
        if self.is_running:
            logger.warning("Daily update already running, skipping")
            return JobResult(success=False, message=BUSY_MESSAGE, timestamp=now.isoformat())

        self.is_running = True
        logger.info("Starting daily update")

        try:
            today = self._local_date(now)
            recent = self.cache.get(RECENT_SELECTIONS_KEY) or []

            selected = select_companies(
                self.pool.entries(), today, recent, count=self.config.daily_count
            )

            self.cache.set(FEATURED_STOCKS_KEY, selected)
            self.cache.set(LAST_ROTATION_KEY, now.isoformat())
            self.cache.set(
                RECENT_SELECTIONS_KEY,
                update_recent_history(recent, selected, size=self.config.recent_history_size),
                ttl=RECENT_SELECTIONS_TTL,
            )

            updated, errors = await self._prefetch(selected)

            self._cleanup_cache(now)

            result = JobResult(
                success=True,
                message="Daily update completed successfully",
                timestamp=now.isoformat(),
                companies_updated=updated,
                errors=errors,
            )
            self.last_run = now

            logger.info(f"Daily update completed. Updated {len(updated)} companies.")
            if errors:
                logger.warning(f"Some updates failed: {', '.join(errors)}")

        except Exception as e:
            logger.exception(f"Daily update failed: {e}")
            result = JobResult(
                success=False,
                message=f"Daily update failed: {e}",
                timestamp=now.isoformat(),
                errors=[str(e)],
            )

        finally:
            self.is_running = False

        self._record(result)
        return result

    async def _prefetch(self, symbols: List[str]):
        if self.data_service is None:
            logger.warning("No market data provider configured, skipping pre-fetch")
            return [], [f"{s}: no market data provider configured" for s in symbols]

        results = await asyncio.gather(
            *(self.data_service.get_comprehensive_stock_data(s) for s in symbols),
            return_exceptions=True,
        )

        updated, errors = [], []
        for symbol, outcome in zip(symbols, results):
            if isinstance(outcome, Exception):
                logger.error(f"Failed to update {symbol}: {outcome}")
                errors.append(f"{symbol}: {outcome}")
            else:
                logger.info(f"Updated data for {symbol}")
                updated.append(symbol)
        return updated, errors

    async def run_market_open_update(self) -> List[str]:
        """
        Refresh quotes of the featured companies.

        Returns:
            Symbols whose quote was refreshed; failures are only logged
        """
        now = self._clock()
        self._last_market_open = self._local_date(now)
        logger.info("Running market open update")

        if self.data_service is None:
            logger.warning("No market data provider configured, skipping quote refresh")
            return []

        featured = self.get_current_featured_companies()
        results = await asyncio.gather(
            *(self.data_service.get_stock_quote(s) for s in featured),
            return_exceptions=True,
        )

        refreshed = []
        for symbol, outcome in zip(featured, results):
            if isinstance(outcome, Exception):
                logger.warning(f"Failed to refresh quote for {symbol}: {outcome}")
            else:
                refreshed.append(symbol)

        logger.info(f"Market open update completed ({len(refreshed)}/{len(featured)} quotes)")
        return refreshed

    async def trigger_manual_update(self) -> JobResult:
        logger.info("Manual daily update triggered")
        return await self.run_daily_update()

    def _cleanup_cache(self, now: datetime) -> int:
        self._last_sweep = now
        removed = self.cache.cleanup_expired()
        if removed:
            logger.info(f"Removed {removed} expired cache entries")
        return removed

    def _record(self, result: JobResult) -> None:
        self.job_history.append(result)
        if len(self.job_history) > self.config.job_history_size:
            self.job_history = self.job_history[-self.config.job_history_size:]

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_current_featured_companies(self) -> List[str]:
        featured = self.cache.get(FEATURED_STOCKS_KEY)
        if featured:
            return list(featured)
        return list(self.config.default_companies)

    def get_status(self) -> Dict[str, Any]:
        return {
            "isRunning": self.is_running,
            "lastRun": self.last_run.isoformat() if self.last_run else None,
            "currentFeaturedCompanies": self.get_current_featured_companies(),
            "recentJobs": [j.to_dict() for j in self.job_history[-RECENT_JOBS_IN_STATUS:]],
            "nextScheduledRun": self.next_pre_market_run().isoformat(),
            "companyPoolSize": len(self.pool),
        }

    def add_company_to_pool(self, symbol: str, **metadata) -> bool:
        return self.pool.add(symbol, **metadata)

    def remove_company_from_pool(self, symbol: str) -> bool:
        return self.pool.remove(symbol)

    # -------------------------------------------------------------------------
    # Timing
    # -------------------------------------------------------------------------

    def _local_date(self, now: datetime) -> date:
        return now.astimezone(self.tz).date()

    def _pre_market_at(self, day: date) -> datetime:
        return self.calendar.localize(day, self.config.pre_market_time)

    def _market_open_at(self, day: date) -> datetime:
        # Follows the calendar session open, late opens included
        return self.calendar.get_market_open(day)

    def _next_trigger(self, now: datetime, trigger_at: Callable[[date], datetime]) -> datetime:
        today = self._local_date(now)
        if self.calendar.is_trading_day(today):
            candidate = trigger_at(today)
            if now < candidate:
                return candidate
        return trigger_at(self.calendar.get_next_trading_day(today))

    def next_pre_market_run(self, now: Optional[datetime] = None) -> datetime:
        return self._next_trigger(now or self._clock(), self._pre_market_at)

    def next_market_open_run(self, now: Optional[datetime] = None) -> datetime:
        return self._next_trigger(now or self._clock(), self._market_open_at)

    def _last_rotation_date(self) -> Optional[date]:
        raw = self.cache.get(LAST_ROTATION_KEY)
        if not raw:
            return None
        try:
            return self._local_date(datetime.fromisoformat(raw))
        except (TypeError, ValueError):
            logger.warning(f"Unreadable {LAST_ROTATION_KEY}: {raw!r}")
            return None

    def _due_today(self, now: datetime, trigger_at: Callable[[date], datetime]) -> bool:
        today = self._local_date(now)
        return self.calendar.is_trading_day(today) and now >= trigger_at(today)

    def needs_daily_update(self, now: Optional[datetime] = None) -> bool:
        now = now or self._clock()
        if not self._due_today(now, self._pre_market_at):
            return False
        # A failed attempt is not retried until the next trading day
        today = self._local_date(now)
        return today not in (self._last_daily_attempt, self._last_rotation_date())

    def needs_market_open_update(self, now: Optional[datetime] = None) -> bool:
        now = now or self._clock()
        if not self._due_today(now, self._market_open_at):
            return False
        return self._last_market_open != self._local_date(now)

    def needs_cleanup(self, now: Optional[datetime] = None) -> bool:
        now = now or self._clock()
        return self._last_sweep is None or now - self._last_sweep >= self.cleanup_interval

    async def run_due_jobs(self) -> List[str]:
        """Run whatever is due right now; returns the names of the jobs run."""
        ran = []
        if self.needs_daily_update():
            self._last_daily_attempt = self._local_date(self._clock())
            await self.run_daily_update()
            ran.append("daily_update")
        if self.needs_market_open_update():
            await self.run_market_open_update()
            ran.append("market_open_update")
        if self.needs_cleanup():
            self._cleanup_cache(self._clock())
            ran.append("cleanup")
        return ran

    def seconds_until_next_event(self) -> float:
        now = self._clock()
        events = [self.next_pre_market_run(now), self.next_market_open_run(now)]
        if self._last_sweep is not None:
            events.append(self._last_sweep + self.cleanup_interval)
        return max((min(events) - now).total_seconds(), 0.0)

    async def run_forever(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Run jobs on schedule until stop_event is set."""
        stop_event = stop_event or asyncio.Event()
        logger.info(
            f"Scheduler started: pre-market {self.config.pre_market_time}, "
            f"market open at session open ({self.config.timezone})"
        )

        while not stop_event.is_set():
            await self.run_due_jobs()

            delay = max(self.seconds_until_next_event(), 1.0)
            logger.debug(f"Sleeping {delay:.0f}s until next scheduler event")
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

        logger.info("Scheduler stopped")
