"""
Tests for the exchange trading calendar (stock_insights/data/trading_calendar.py)

Tests:
1. NYSE sessions and holidays
2. Trigger times localized to New York
3. Session open, with a 09:30 fallback off-session
"""

from datetime import date, time

import pytest

from conftest import et
from stock_insights.data.trading_calendar import TradingCalendarImpl, get_trading_calendar
from stock_insights.interfaces import StubTradingCalendar, TradingCalendar


@pytest.fixture(scope="module")
def calendar():
    return get_trading_calendar()


class TestSessions:

    def test_weekday_is_session(self, calendar):
        assert calendar.is_trading_day(date(2024, 1, 16))

    def test_holiday_and_weekend(self, calendar):
        assert not calendar.is_trading_day(date(2024, 1, 1))    # New Year's Day
        assert not calendar.is_trading_day(date(2024, 1, 15))   # MLK Day
        assert not calendar.is_trading_day(date(2024, 1, 13))   # Saturday

    def test_next_trading_day_skips_long_weekend(self, calendar):
        assert calendar.get_next_trading_day(date(2024, 1, 12)) == date(2024, 1, 16)

    def test_implements_protocol(self, calendar):
        assert isinstance(calendar, TradingCalendarImpl)
        assert isinstance(calendar, TradingCalendar)
        assert isinstance(StubTradingCalendar(), TradingCalendar)


class TestTimes:

    def test_localize(self, calendar):
        assert calendar.localize(date(2024, 1, 16), time(6, 0)) == et(2024, 1, 16, 6, 0)

    def test_market_open_on_session(self, calendar):
        assert calendar.get_market_open(date(2024, 1, 16)) == et(2024, 1, 16, 9, 30)

    def test_market_open_in_summer_time(self, calendar):
        assert calendar.get_market_open(date(2024, 7, 16)) == et(2024, 7, 16, 9, 30)

    def test_market_open_off_session_falls_back(self, calendar):
        assert calendar.get_market_open(date(2024, 1, 15)) == et(2024, 1, 15, 9, 30)

    def test_stub_late_open(self):
        stub = StubTradingCalendar(late_opens={date(2024, 1, 16): time(10, 30)})
        assert stub.get_market_open(date(2024, 1, 16)) == et(2024, 1, 16, 10, 30)
        assert stub.get_market_open(date(2024, 1, 17)) == et(2024, 1, 17, 9, 30)
