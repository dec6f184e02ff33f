"""
Interfaces (Protocols)
======================

Contracts between the core and its external collaborators, allowing for:
- Testability with stubs/mocks
- Swappable vendor clients (market data, text completion)
- No dependency from the core on any concrete vendor SDK

These are Python Protocols (structural subtyping) - implementations
don't need to explicitly inherit, just implement the methods.
"""

from abc import abstractmethod
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import pytz


# =============================================================================
# Market Data Provider Interface
# =============================================================================

@runtime_checkable
class MarketDataProvider(Protocol):
    """
    Upstream market data source, fetched by symbol.

    All methods are coroutines and return plain JSON-compatible values so
    results can be cached as-is. Failures should raise; the core wraps them
    into UpstreamFetchError.

    Expected shapes:
        get_quote            {"symbol", "price", "changesPercentage", "volume", ...}
        get_historical_prices [{"date", "open", "high", "low", "close", "volume"}, ...]
        get_news             [{"title", "text", "publishedDate", "symbol"?, "tickers"?}, ...]
        get_price_targets    [{"publishedDate", "priceTarget", "analystCompany"?}, ...]
        get_upgrades_downgrades [{"publishedDate", "action", "newGrade", "previousGrade"?,
                                  "gradingCompany"?}, ...]
    """

    @abstractmethod
    async def get_quote(self, symbol: str) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def get_historical_prices(self, symbol: str, days: int = 365) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def get_news(self, symbol: str, limit: int = 10) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def get_price_targets(self, symbol: str) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def get_upgrades_downgrades(self, symbol: str) -> List[Dict[str, Any]]:
        ...


# =============================================================================
# Text Completion Interface
# =============================================================================

@runtime_checkable
class TextCompleter(Protocol):
    """LLM (or any text generator) used to narrate forecasts."""

    @abstractmethod
    def complete(self, prompt: str) -> str:
        ...


# =============================================================================
# Trading Calendar Interface
# =============================================================================

@runtime_checkable
class TradingCalendar(Protocol):
    """
    Interface for the trading-day questions the scheduler asks.

    Implementations:
    - exchange_calendars (production, data/trading_calendar.py)
    - StubTradingCalendar (testing)
    """

    @abstractmethod
    def is_trading_day(self, dt: date) -> bool:
        ...

    @abstractmethod
    def get_next_trading_day(self, dt: date) -> date:
        ...

    @abstractmethod
    def localize(self, dt: date, at: time) -> datetime:
        """Timezone-aware datetime for `at` on `dt` in the exchange timezone."""
        ...

    @abstractmethod
    def get_market_open(self, dt: date) -> datetime:
        """Session open for a trading day (late opens included)."""
        ...


# =============================================================================
# Stub Implementations for Testing
# =============================================================================

class StubTradingCalendar:
    """
    Stub trading calendar for testing.

    Treats every weekday as a trading day except the listed holidays.
    Sessions open at 09:30 unless listed in `late_opens`.
    """

    def __init__(
        self,
        timezone: str = "America/New_York",
        holidays: Optional[List[date]] = None,
        late_opens: Optional[Dict[date, time]] = None,
    ):
        self.timezone = timezone
        self.holidays = set(holidays or [])
        self.late_opens = dict(late_opens or {})

    def is_trading_day(self, dt: date) -> bool:
        return dt.weekday() < 5 and dt not in self.holidays  # Mon-Fri

    def get_next_trading_day(self, dt: date) -> date:
        next_day = dt + timedelta(days=1)
        while not self.is_trading_day(next_day):
            next_day += timedelta(days=1)
        return next_day

    def localize(self, dt: date, at: time) -> datetime:
        tz = pytz.timezone(self.timezone)
        return tz.localize(datetime.combine(dt, at))

    def get_market_open(self, dt: date) -> datetime:
        return self.localize(dt, self.late_opens.get(dt, time(9, 30)))
