"""
Prediction Engine
=================

Generates a PredictionOutput for one symbol:

1. Validate the input (>= 30 historical points, every close finite and positive)
2. Historical volatility over the last 20 daily returns
3. Technical / trend / sentiment / analyst signals -> combined return
4. Confidence breakdown and day/week/month price ranges
5. Reasons (separate, swappable rendering stage) and risk grade

Usage:
    engine = PredictionEngine()
    output = engine.generate_prediction(prediction_input)
    output.to_dict()
"""

import logging
import math
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional, Sequence

from .combiner import CombinedSignal, Extractor, combine
from .inputs import PredictionInput
from .ranges import assess_risk_level, calculate_confidence, generate_ranges
from .signals import calculate_volatility
from stock_insights.outputs.prediction import PredictionOutput, PredictionReason
from stock_insights.outputs.reasons import generate_reasons

logger = logging.getLogger(__name__)

MIN_HISTORICAL_DAYS = 30

ReasonGenerator = Callable[[PredictionInput, CombinedSignal], Sequence[PredictionReason]]


class InputError(ValueError):
    """Raised when a PredictionInput cannot support a forecast."""
    pass


class PredictionEngine:
    """
    Multi-signal short-term price forecaster.

    The numeric core (signals, combination, ranges) is fixed; the reason
    generator and extractor table can be swapped for testing or rendering.
    """

    def __init__(
        self,
        reason_generator: Optional[ReasonGenerator] = None,
        extractors: Optional[Mapping[str, Extractor]] = None,
        min_history: int = MIN_HISTORICAL_DAYS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.reason_generator = reason_generator or generate_reasons
        self.extractors = extractors
        self.min_history = min_history
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def validate(self, data: PredictionInput) -> None:
        """
        Raises:
            InputError: If the history is too short or holds a close that is
                not a positive finite number
        """
        n_points = len(data.historical_prices)
        if n_points < self.min_history:
            raise InputError(
                f"Insufficient historical data for {data.symbol}. "
                f"Need at least {self.min_history} days, got {n_points}."
            )
        for point in data.historical_prices:
            if not math.isfinite(point.close) or point.close <= 0:
                raise InputError(
                    f"Invalid close for {data.symbol} on {point.date}: {point.close}"
                )

    def generate_prediction(self, data: PredictionInput) -> PredictionOutput:
        """Generate the full forecast for one symbol."""
        logger.info(f"Generating prediction for {data.symbol}")
        self.validate(data)

        current_price = data.current_price
        volatility = calculate_volatility(data.closes)

        combined = combine(data, self.extractors)
        if combined.degraded:
            logger.warning(
                f"{data.symbol}: degraded signals {list(combined.degraded)} contributed 0"
            )

        confidence = calculate_confidence(data, volatility)
        predictions = generate_ranges(current_price, combined.expected_return, volatility, confidence)
        risk_level = assess_risk_level(volatility, data.technical, data.market)

        try:
            reasons = tuple(self.reason_generator(data, combined))
        except Exception as e:
            logger.error(f"{data.symbol}: reason generation failed: {e}")
            reasons = ()

        logger.debug(
            f"{data.symbol}: vol={volatility:.4f} expected={combined.expected_return:+.4f} "
            f"confidence={confidence.overall:.2f} risk={risk_level.value}"
        )

        return PredictionOutput(
            symbol=data.symbol,
            predictions=predictions,
            confidence=confidence,
            reasons=reasons,
            risk_level=risk_level,
            last_updated=self._clock(),
        )
