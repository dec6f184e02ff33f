"""
Comprehensive Market Data Service
=================================

Fetch-or-cache access to everything the engine needs for one symbol.

The first request for a symbol fans out to the provider in parallel
(quote, daily history, news, analyst price targets, rating changes) and
caches the combined payload under `comprehensive_<SYMBOL>` for the
cache's default TTL (24h). Later requests within the TTL never touch the
provider.

Partial results are tolerated: a failed section is stored empty and named
in `failedSections`. Only when both the quote and the history fail is the
fetch treated as a failure (UpstreamFetchError) and nothing is cached.

CACHED PAYLOAD SHAPE:
    {
        "symbol": "AAPL",
        "quote": {...} | None,
        "historicalPrices": [{"date", "open", "high", "low", "close", "volume"}, ...],
        "news": [...],
        "priceTargets": [...],
        "upgradesDowngrades": [...],
        "failedSections": ["news"],
        "fetchedAt": "2024-01-15T11:00:00+00:00",
    }
"""

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from stock_insights.cache.ttl_cache import TTLCache
from stock_insights.config import ProviderConfig
from stock_insights.features.analyst import (
    RatingSentiment,
    build_analyst_consensus,
    build_rating_sentiment,
)
from stock_insights.features.sentiment import build_sentiment_signal
from stock_insights.features.technical import build_technical_snapshot, history_from_records
from stock_insights.interfaces import MarketDataProvider
from stock_insights.models.engine import InputError
from stock_insights.models.inputs import MarketContext, PredictionInput

logger = logging.getLogger(__name__)

COMPREHENSIVE_KEY_PREFIX = "comprehensive_"

# Sections fetched per symbol, in gather order
SECTIONS = ("quote", "historicalPrices", "news", "priceTargets", "upgradesDowngrades")
CORE_SECTIONS = ("quote", "historicalPrices")


class UpstreamFetchError(Exception):
    """Raised when the provider cannot deliver data for a symbol."""
    pass


def comprehensive_key(symbol: str) -> str:
    return f"{COMPREHENSIVE_KEY_PREFIX}{symbol.upper()}"


class ComprehensiveDataService:
    """
    Cache-gated access to provider data.

    Usage:
        service = ComprehensiveDataService(provider, cache)
        data = await service.get_comprehensive_stock_data("AAPL")
        prediction_input = service.build_prediction_input("AAPL", data)
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        cache: TTLCache,
        config: Optional[ProviderConfig] = None,
    ):
        self.provider = provider
        self.cache = cache
        self.config = config or ProviderConfig()

    async def get_comprehensive_stock_data(self, symbol: str, force_refresh: bool = False) -> Dict[str, Any]:
        """
        Return the comprehensive payload for a symbol, fetching on a miss.

        Raises:
            UpstreamFetchError: If neither a quote nor a history could be fetched
        """
        symbol = symbol.upper()
        key = comprehensive_key(symbol)

        if not force_refresh:
            cached = self.cache.get(key)
            if cached is not None:
                logger.info(f"Using cached comprehensive data for {symbol}")
                return cached

        logger.info(f"Fetching comprehensive data for {symbol}")

        results = await asyncio.gather(
            self.provider.get_quote(symbol),
            self.provider.get_historical_prices(symbol, days=self.config.history_days),
            self.provider.get_news(symbol, limit=self.config.news_limit),
            self.provider.get_price_targets(symbol),
            self.provider.get_upgrades_downgrades(symbol),
            return_exceptions=True,
        )

        payload: Dict[str, Any] = {"symbol": symbol}
        failed = []
        for section, result in zip(SECTIONS, results):
            if isinstance(result, Exception):
                logger.warning(f"{symbol}: {section} fetch failed: {result}")
                failed.append(section)
                payload[section] = None if section == "quote" else []
            else:
                payload[section] = result

        if all(section in failed for section in CORE_SECTIONS):
            raise UpstreamFetchError(f"No quote or price history available for {symbol}")

        payload["failedSections"] = failed
        payload["fetchedAt"] = datetime.now(timezone.utc).isoformat()

        self.cache.set(key, payload)
        logger.info(f"Cached comprehensive data for {symbol} ({len(failed)} failed sections)")
        return payload

    async def get_stock_quote(self, symbol: str) -> Dict[str, Any]:
        """
        Fetch a fresh quote (never cached).

        Raises:
            UpstreamFetchError: On any provider failure
        """
        try:
            return await self.provider.get_quote(symbol.upper())
        except Exception as e:
            raise UpstreamFetchError(f"Quote fetch failed for {symbol}: {e}") from e

    def build_prediction_input(
        self,
        symbol: str,
        data: Dict[str, Any],
        market: Optional[MarketContext] = None,
        as_of: Optional[date] = None,
    ) -> PredictionInput:
        """
        Turn a comprehensive payload into a PredictionInput.

        Technical indicators are derived from the cached history rather than
        taken from the provider.

        Raises:
            InputError: If the payload holds no usable price history
        """
        return build_prediction_input(
            symbol,
            data,
            market=market,
            as_of=as_of,
            news_limit=self.config.news_limit,
            target_lookback_days=self.config.target_lookback_days,
        )

    def build_rating_sentiment(self, data: Dict[str, Any], as_of: Optional[date] = None) -> RatingSentiment:
        """Upgrade/downgrade sentiment from a comprehensive payload."""
        return build_rating_sentiment(
            data.get("upgradesDowngrades"),
            as_of=as_of or date.today(),
            lookback_days=self.config.rating_lookback_days,
        )


def build_prediction_input(
    symbol: str,
    data: Dict[str, Any],
    market: Optional[MarketContext] = None,
    as_of: Optional[date] = None,
    news_limit: int = 10,
    target_lookback_days: int = 90,
) -> PredictionInput:
    symbol = symbol.upper()
    history = history_from_records(data.get("historicalPrices") or [])
    if not history:
        raise InputError(f"{symbol}: no historical prices available")

    as_of = as_of or date.today()

    return PredictionInput(
        symbol=symbol,
        historical_prices=history,
        technical=build_technical_snapshot(history),
        market=market or MarketContext(),
        sentiment=build_sentiment_signal(symbol, data.get("news"), limit=news_limit),
        analyst=build_analyst_consensus(
            data.get("priceTargets"), as_of=as_of, lookback_days=target_lookback_days
        ),
    )
