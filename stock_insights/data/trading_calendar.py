"""
Trading Calendar Implementation
===============================

Trading-day answers for the daily scheduler using exchange-calendars.

Features:
- NYSE trading days and holidays
- Exchange-timezone trigger times (pre-market 06:00, open 09:30)
- Actual session open for trading days

This implements the TradingCalendar protocol from stock_insights/interfaces.py
"""

from datetime import date, datetime, time, timedelta
import logging

import exchange_calendars as xcals
import pandas as pd
import pytz

logger = logging.getLogger(__name__)


class TradingCalendarImpl:
    """
    Trading calendar backed by exchange-calendars.

    Usage:
        cal = TradingCalendarImpl()

        cal.is_trading_day(date(2024, 1, 16))   # True (Tuesday)
        cal.is_trading_day(date(2024, 1, 1))    # False (New Year's)

        cal.localize(date(2024, 1, 16), time(6, 0))  # 06:00 ET, tz-aware
        cal.get_market_open(date(2024, 1, 16))       # 09:30 ET session open
    """

    def __init__(self, exchange: str = "XNYS", timezone: str = "America/New_York"):
        """
        Initialize trading calendar.

        Args:
            exchange: Exchange code (XNYS=NYSE, XNAS=NASDAQ)
            timezone: Timezone the trigger times are expressed in
        """
        self.exchange = exchange
        self.timezone = pytz.timezone(timezone)
        self._calendar = xcals.get_calendar(exchange)
        logger.info(f"Using exchange-calendars for {exchange}")

    def is_trading_day(self, dt: date) -> bool:
        return bool(self._calendar.is_session(pd.Timestamp(dt)))

    def get_next_trading_day(self, dt: date) -> date:
        """First trading day strictly after dt."""
        ts = pd.Timestamp(dt + timedelta(days=1))
        return self._calendar.date_to_session(ts, direction="next").date()

    def localize(self, dt: date, at: time) -> datetime:
        return self.timezone.localize(datetime.combine(dt, at))

    def get_market_open(self, dt: date) -> datetime:
        """Session open for a trading day (handles late opens), else 9:30 ET."""
        ts = pd.Timestamp(dt)
        if self._calendar.is_session(ts):
            return self._calendar.session_open(ts).to_pydatetime().astimezone(self.timezone)
        return self.localize(dt, time(9, 30))


def get_trading_calendar(exchange: str = "XNYS", timezone: str = "America/New_York") -> TradingCalendarImpl:
    """Get a configured trading calendar instance."""
    return TradingCalendarImpl(exchange=exchange, timezone=timezone)
