"""
Prediction Input Data Structures
================================

Frozen dataclasses describing everything the prediction engine consumes
for one symbol.

CONVENTIONS:
- Historical prices are ordered oldest -> newest; the last close is the
  current price
- MarketContext.index_change_percent is a fraction (0.02 = +2%)
- SentimentSignal.sentiment_score is in [-1, 1]
- from_dict() accepts the camelCase JSON shape used by the cache and CLI
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class HistoricalPricePoint:
    """One daily OHLCV bar."""
    date: str
    open: float
    high: float
    low: float
    close: float
    volume: float

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "HistoricalPricePoint":
        close = float(raw["close"])
        return cls(
            date=str(raw.get("date", "")),
            open=float(raw.get("open", close)),
            high=float(raw.get("high", close)),
            low=float(raw.get("low", close)),
            close=close,
            volume=float(raw.get("volume", 0) or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


@dataclass(frozen=True)
class BollingerBands:
    upper: float
    middle: float
    lower: float

    @property
    def width(self) -> float:
        return self.upper - self.lower


@dataclass(frozen=True)
class TechnicalSnapshot:
    """
    Technical indicators as of the last bar.

    Attributes:
        rsi: 14-period RSI (0-100)
        sma20, sma50, sma200: Simple moving averages of close
        ema12, ema26: Exponential moving averages of close
        macd: ema12 - ema26
        bollinger: 20-period, 2-sigma bands
        volume: Last bar volume
    """
    rsi: float
    sma20: float
    sma50: float
    sma200: float
    ema12: float
    ema26: float
    macd: float
    bollinger: BollingerBands
    volume: float

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "TechnicalSnapshot":
        bands = raw.get("bollinger") or {}
        return cls(
            rsi=float(raw["rsi"]),
            sma20=float(raw["sma20"]),
            sma50=float(raw["sma50"]),
            sma200=float(raw["sma200"]),
            ema12=float(raw["ema12"]),
            ema26=float(raw["ema26"]),
            macd=float(raw["macd"]),
            bollinger=BollingerBands(
                upper=float(bands.get("upper", raw.get("bollingerUpper", 0.0))),
                middle=float(bands.get("middle", raw.get("bollingerMiddle", 0.0))),
                lower=float(bands.get("lower", raw.get("bollingerLower", 0.0))),
            ),
            volume=float(raw.get("volume", 0) or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rsi": self.rsi,
            "sma20": self.sma20,
            "sma50": self.sma50,
            "sma200": self.sma200,
            "ema12": self.ema12,
            "ema26": self.ema26,
            "macd": self.macd,
            "bollinger": {
                "upper": self.bollinger.upper,
                "middle": self.bollinger.middle,
                "lower": self.bollinger.lower,
            },
            "volume": self.volume,
        }


@dataclass(frozen=True)
class MarketContext:
    """Exogenous market backdrop supplied by the caller."""
    index_change_percent: float = 0.0
    volatility_index_level: float = 20.0
    ten_year_yield: float = 0.0
    dollar_index: float = 0.0

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "MarketContext":
        return cls(
            index_change_percent=float(raw.get("indexChangePercent", 0.0)),
            volatility_index_level=float(raw.get("volatilityIndexLevel", 20.0)),
            ten_year_yield=float(raw.get("tenYearYield", 0.0)),
            dollar_index=float(raw.get("dollarIndex", 0.0)),
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "indexChangePercent": self.index_change_percent,
            "volatilityIndexLevel": self.volatility_index_level,
            "tenYearYield": self.ten_year_yield,
            "dollarIndex": self.dollar_index,
        }


@dataclass(frozen=True)
class SentimentSignal:
    sentiment_score: float = 0.0
    news_volume: int = 0
    relevance_score: float = 0.0

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SentimentSignal":
        return cls(
            sentiment_score=float(raw.get("sentimentScore", 0.0)),
            news_volume=int(raw.get("newsVolume", 0)),
            relevance_score=float(raw.get("relevanceScore", 0.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sentimentScore": self.sentiment_score,
            "newsVolume": self.news_volume,
            "relevanceScore": self.relevance_score,
        }


@dataclass(frozen=True)
class AnalystConsensus:
    high: float = 0.0
    low: float = 0.0
    average: float = 0.0
    analyst_count: int = 0
    median: float = 0.0

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "AnalystConsensus":
        return cls(
            high=float(raw.get("high", 0.0)),
            low=float(raw.get("low", 0.0)),
            average=float(raw.get("average", 0.0)),
            analyst_count=int(raw.get("analystCount", raw.get("count", 0))),
            median=float(raw.get("median", 0.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "high": self.high,
            "low": self.low,
            "average": self.average,
            "analystCount": self.analyst_count,
            "median": self.median,
        }


@dataclass(frozen=True)
class PredictionInput:
    """
    Everything the engine needs for one symbol.

    The engine rejects inputs with fewer than 30 historical points.
    """
    symbol: str
    historical_prices: Tuple[HistoricalPricePoint, ...]
    technical: TechnicalSnapshot
    market: MarketContext = field(default_factory=MarketContext)
    sentiment: SentimentSignal = field(default_factory=SentimentSignal)
    analyst: AnalystConsensus = field(default_factory=AnalystConsensus)

    @property
    def current_price(self) -> float:
        return self.historical_prices[-1].close

    @property
    def closes(self) -> Tuple[float, ...]:
        return tuple(p.close for p in self.historical_prices)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PredictionInput":
        return cls(
            symbol=str(raw["symbol"]).upper(),
            historical_prices=tuple(
                HistoricalPricePoint.from_dict(p) for p in raw.get("historicalPrices", [])
            ),
            technical=TechnicalSnapshot.from_dict(raw["technicalIndicators"]),
            market=MarketContext.from_dict(raw.get("marketData", {})),
            sentiment=SentimentSignal.from_dict(raw.get("newsData", {})),
            analyst=AnalystConsensus.from_dict(raw.get("analystTargets", {})),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "historicalPrices": [p.to_dict() for p in self.historical_prices],
            "technicalIndicators": self.technical.to_dict(),
            "marketData": self.market.to_dict(),
            "newsData": self.sentiment.to_dict(),
            "analystTargets": self.analyst.to_dict(),
        }
