"""
Insights Pipeline
=================

Runs the prediction engine over a batch of symbols.

For each symbol: fetch-or-cache comprehensive data, build the
PredictionInput, forecast, summarize recent analyst rating changes, and
optionally narrate. A fetch failure or an
InputError for one symbol is recorded in `errors` and the batch carries on.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from stock_insights.data.market_data import ComprehensiveDataService
from stock_insights.features.analyst import RatingSentiment
from stock_insights.models.engine import InputError, PredictionEngine
from stock_insights.models.inputs import MarketContext
from stock_insights.outputs.narrative import NarrativeRenderer
from stock_insights.outputs.prediction import PredictionOutput

logger = logging.getLogger(__name__)


@dataclass
class InsightsResult:
    """Result of an insights run."""
    predictions: Dict[str, PredictionOutput] = field(default_factory=dict)
    narratives: Dict[str, str] = field(default_factory=dict)
    analyst_ratings: Dict[str, RatingSentiment] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "predictions": {s: p.to_dict() for s, p in self.predictions.items()},
            "narratives": dict(self.narratives),
            "analystRatings": {s: r.to_dict() for s, r in self.analyst_ratings.items()},
            "errors": list(self.errors),
        }

    def summary(self) -> str:
        status = "✅" if not self.errors else "⚠️"
        lines = [
            f"{status} Insights: {len(self.predictions)} predictions, {len(self.errors)} errors "
            f"({self.duration_seconds:.1f}s)",
        ]
        for prediction in self.predictions.values():
            lines.append(prediction.summary())
            ratings = self.analyst_ratings.get(prediction.symbol)
            if ratings is not None:
                lines.append(f"  {ratings.summary()}")
            narrative = self.narratives.get(prediction.symbol)
            if narrative:
                lines.append(f"  {narrative}")
        for error in self.errors:
            lines.append(f"  ! {error}")
        return "\n".join(lines)


async def run_insights(
    symbols: Sequence[str],
    data_service: ComprehensiveDataService,
    engine: Optional[PredictionEngine] = None,
    market: Optional[MarketContext] = None,
    as_of: Optional[date] = None,
    narrator: Optional[NarrativeRenderer] = None,
) -> InsightsResult:
    """
    Forecast a batch of symbols.

    Args:
        symbols: Tickers to forecast
        data_service: Fetch-or-cache data access
        engine: Prediction engine (default PredictionEngine())
        market: Market backdrop shared by every symbol
        as_of: Reference date for the analyst target and rating windows
        narrator: If given, each forecast is also narrated

    Returns:
        InsightsResult; never raises for a per-symbol failure
    """
    start_time = time.time()
    engine = engine or PredictionEngine()
    symbols = [s.upper() for s in symbols]

    logger.info(f"Running insights for {len(symbols)} symbols")

    fetched = await asyncio.gather(
        *(data_service.get_comprehensive_stock_data(s) for s in symbols),
        return_exceptions=True,
    )

    result = InsightsResult()
    for symbol, data in zip(symbols, fetched):
        if isinstance(data, Exception):
            logger.error(f"{symbol}: data fetch failed: {data}")
            result.errors.append(f"{symbol}: {data}")
            continue

        try:
            prediction_input = data_service.build_prediction_input(
                symbol, data, market=market, as_of=as_of
            )
            prediction = engine.generate_prediction(prediction_input)
        except InputError as e:
            logger.warning(f"{symbol}: skipped: {e}")
            result.errors.append(f"{symbol}: {e}")
            continue

        result.predictions[symbol] = prediction
        result.analyst_ratings[symbol] = data_service.build_rating_sentiment(data, as_of=as_of)
        if narrator is not None:
            result.narratives[symbol] = narrator.render(prediction)

    result.duration_seconds = time.time() - start_time
    logger.info(
        f"Insights complete: {len(result.predictions)} predictions, {len(result.errors)} errors"
    )
    return result
