"""
Shared fixtures: prediction inputs, fake clocks and stub collaborators.
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pytest
import pytz

from stock_insights.models.inputs import (
    AnalystConsensus,
    BollingerBands,
    HistoricalPricePoint,
    MarketContext,
    PredictionInput,
    SentimentSignal,
    TechnicalSnapshot,
)


def build_history(closes: Sequence[float], start: date = date(2024, 1, 2)):
    return tuple(
        HistoricalPricePoint(
            date=(start + timedelta(days=i)).isoformat(),
            open=c,
            high=c,
            low=c,
            close=c,
            volume=1_000_000,
        )
        for i, c in enumerate(closes)
    )


def build_technical(**overrides) -> TechnicalSnapshot:
    values = dict(
        rsi=50.0,
        sma20=100.0,
        sma50=100.0,
        sma200=100.0,
        ema12=100.0,
        ema26=100.0,
        macd=0.0,
        bollinger=BollingerBands(upper=110.0, middle=100.0, lower=90.0),
        volume=1_000_000.0,
    )
    values.update(overrides)
    return TechnicalSnapshot(**values)


def build_input(
    closes: Optional[Sequence[float]] = None,
    symbol: str = "TEST",
    technical: Optional[TechnicalSnapshot] = None,
    market: Optional[MarketContext] = None,
    sentiment: Optional[SentimentSignal] = None,
    analyst: Optional[AnalystConsensus] = None,
) -> PredictionInput:
    if closes is None:
        closes = [100.0] * 60
    return PredictionInput(
        symbol=symbol,
        historical_prices=build_history(closes),
        technical=technical or build_technical(),
        market=market or MarketContext(),
        sentiment=sentiment or SentimentSignal(),
        analyst=analyst or AnalystConsensus(),
    )


@pytest.fixture
def make_input():
    """Factory for PredictionInput with neutral defaults."""
    return build_input


@pytest.fixture
def make_technical():
    return build_technical


@pytest.fixture
def trending_input():
    """60 days of a noisy uptrend with mildly bullish technicals."""
    rng = np.random.default_rng(42)
    returns = rng.normal(0.001, 0.015, size=59)
    closes = [100.0]
    for r in returns:
        closes.append(closes[-1] * (1 + r))

    price = closes[-1]
    return build_input(
        closes=closes,
        symbol="AAPL",
        technical=build_technical(
            rsi=62.0,
            sma20=price * 0.98,
            sma50=price * 0.95,
            sma200=price * 0.90,
            ema12=price * 0.99,
            ema26=price * 0.97,
            macd=price * 0.02,
            bollinger=BollingerBands(upper=price * 1.05, middle=price * 0.98, lower=price * 0.91),
        ),
        market=MarketContext(index_change_percent=0.005, volatility_index_level=18.0),
        sentiment=SentimentSignal(sentiment_score=0.3, news_volume=8, relevance_score=0.75),
        analyst=AnalystConsensus(high=price * 1.3, low=price * 0.9, average=price * 1.12, analyst_count=12),
    )


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += int(timedelta(**kwargs).total_seconds() * 1000)


class FakeDateTimeClock:
    """Timezone-aware datetime clock for the scheduler, tied to a FakeClock."""

    def __init__(self, start: datetime, ms_clock: Optional[FakeClock] = None):
        self.now = start
        self.ms_clock = ms_clock
        self._sync()

    def _sync(self) -> None:
        if self.ms_clock is not None:
            self.ms_clock.now = int(self.now.timestamp() * 1000)

    def __call__(self) -> datetime:
        return self.now

    def set(self, value: datetime) -> None:
        self.now = value
        self._sync()

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)
        self._sync()


@pytest.fixture
def fake_clock():
    return FakeClock()


def et(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return pytz.timezone("America/New_York").localize(datetime(year, month, day, hour, minute))


class StubProvider:
    """
    In-memory MarketDataProvider.

    Symbols listed in `fail` raise on every section; `fail_sections` maps a
    section name to the symbols for which only that section raises.
    """

    def __init__(
        self,
        closes: Optional[Sequence[float]] = None,
        fail: Sequence[str] = (),
        fail_sections: Optional[Dict[str, Sequence[str]]] = None,
    ):
        self.closes = list(closes) if closes is not None else [100.0 + 0.5 * i for i in range(60)]
        self.fail = set(fail)
        self.fail_sections = {k: set(v) for k, v in (fail_sections or {}).items()}
        self.calls: List[tuple] = []

    def _check(self, section: str, symbol: str) -> None:
        self.calls.append((section, symbol))
        if symbol in self.fail or symbol in self.fail_sections.get(section, ()):
            raise ConnectionError(f"{section} unavailable for {symbol}")

    async def get_quote(self, symbol: str) -> Dict[str, Any]:
        self._check("quote", symbol)
        return {"symbol": symbol, "price": self.closes[-1], "volume": 1_000_000}

    async def get_historical_prices(self, symbol: str, days: int = 365) -> List[Dict[str, Any]]:
        self._check("historicalPrices", symbol)
        return [
            {"date": h.date, "open": h.open, "high": h.high, "low": h.low,
             "close": h.close, "volume": h.volume}
            for h in build_history(self.closes)
        ]

    async def get_news(self, symbol: str, limit: int = 10) -> List[Dict[str, Any]]:
        self._check("news", symbol)
        return [
            {"title": f"{symbol} beats estimates on strong growth", "text": "",
             "publishedDate": "2024-03-01 12:00:00", "symbol": symbol},
            {"title": "Sector faces weak demand", "text": "",
             "publishedDate": "2024-02-28 09:00:00"},
        ][:limit]

    async def get_price_targets(self, symbol: str) -> List[Dict[str, Any]]:
        self._check("priceTargets", symbol)
        return [
            {"publishedDate": "2024-02-20T00:00:00.000Z", "priceTarget": 150.0},
            {"publishedDate": "2024-02-25T00:00:00.000Z", "priceTarget": 140.0},
        ]

    async def get_upgrades_downgrades(self, symbol: str) -> List[Dict[str, Any]]:
        self._check("upgradesDowngrades", symbol)
        return [
            {"publishedDate": "2024-02-27T00:00:00.000Z", "action": "upgrade",
             "newGrade": "Buy", "previousGrade": "Hold", "gradingCompany": "Morgan Stanley"},
            {"publishedDate": "2024-02-10T00:00:00.000Z", "action": "hold",
             "newGrade": "Outperform", "previousGrade": "Outperform", "gradingCompany": "Barclays"},
        ]


@pytest.fixture
def stub_provider():
    return StubProvider()
