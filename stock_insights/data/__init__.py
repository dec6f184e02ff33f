"""
Data Module
===========

Upstream access and calendar:
- market_data.py: fetch-or-cache comprehensive symbol data
- trading_calendar.py: exchange trading days (exchange-calendars)
"""

from .market_data import (
    ComprehensiveDataService,
    UpstreamFetchError,
    build_prediction_input,
    comprehensive_key,
)
from .trading_calendar import TradingCalendarImpl, get_trading_calendar

__all__ = [
    "ComprehensiveDataService",
    "UpstreamFetchError",
    "build_prediction_input",
    "comprehensive_key",
    "TradingCalendarImpl",
    "get_trading_calendar",
]
