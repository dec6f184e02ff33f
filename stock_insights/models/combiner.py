"""
Prediction Combiner
===================

Weighted merge of the four extractor outputs into one expected return:

    expected = 0.4 * technical + 0.3 * trend + 0.2 * sentiment + 0.1 * analyst

Weights are fixed constants. An extractor that raises or yields a
non-finite value contributes zero instead of aborting the combination;
its name is recorded in CombinedSignal.degraded.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional, Tuple

from .inputs import PredictionInput
from .signals import extract_analyst, extract_sentiment, extract_technical, extract_trend

logger = logging.getLogger(__name__)

SIGNAL_WEIGHTS: Dict[str, float] = {
    "technical": 0.4,
    "trend": 0.3,
    "sentiment": 0.2,
    "analyst": 0.1,
}

Extractor = Callable[[PredictionInput], float]

DEFAULT_EXTRACTORS: Dict[str, Extractor] = {
    "technical": extract_technical,
    "trend": extract_trend,
    "sentiment": extract_sentiment,
    "analyst": extract_analyst,
}


@dataclass(frozen=True)
class CombinedSignal:
    """
    Result of one combination.

    Attributes:
        expected_return: Weighted expected return (1-month scale)
        components: Per-signal values after degradation (0.0 when degraded)
        degraded: Names of signals that raised or were non-finite
    """
    expected_return: float
    components: Dict[str, float] = field(default_factory=dict)
    degraded: Tuple[str, ...] = ()

    def get(self, name: str) -> float:
        return self.components.get(name, 0.0)


def evaluate_signals(
    data: PredictionInput,
    extractors: Optional[Mapping[str, Extractor]] = None,
) -> Tuple[Dict[str, float], Tuple[str, ...]]:
    """
    Run every extractor, replacing failures with 0.0.

    Returns:
        (components, degraded signal names)
    """
    extractors = extractors or DEFAULT_EXTRACTORS
    components: Dict[str, float] = {}
    degraded = []

    for name, extractor in extractors.items():
        try:
            value = float(extractor(data))
        except Exception as e:
            logger.warning(f"{data.symbol}: {name} signal failed, using 0: {e}")
            components[name] = 0.0
            degraded.append(name)
            continue

        if not math.isfinite(value):
            logger.warning(f"{data.symbol}: {name} signal is {value}, using 0")
            components[name] = 0.0
            degraded.append(name)
            continue

        components[name] = value

    return components, tuple(degraded)


def combine_signals(components: Mapping[str, float]) -> float:
    """Fixed-weight sum over SIGNAL_WEIGHTS; missing or non-finite values count as 0."""
    total = 0.0
    for name, weight in SIGNAL_WEIGHTS.items():
        value = components.get(name, 0.0)
        if value is None or not math.isfinite(value):
            continue
        total += value * weight
    return total


def combine(
    data: PredictionInput,
    extractors: Optional[Mapping[str, Extractor]] = None,
) -> CombinedSignal:
    """Evaluate all signals for `data` and merge them."""
    components, degraded = evaluate_signals(data, extractors)
    return CombinedSignal(
        expected_return=combine_signals(components),
        components=components,
        degraded=degraded,
    )
