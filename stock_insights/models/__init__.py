"""
Prediction Models Module
========================

Numeric core of the forecaster:
- inputs.py: PredictionInput and its parts
- signals.py: technical / trend / sentiment / analyst extractors
- combiner.py: fixed-weight combination with degradation handling
- ranges.py: confidence, horizon ranges, risk grade
- engine.py: PredictionEngine (import from stock_insights.models.engine)
"""

from .inputs import (
    HistoricalPricePoint,
    BollingerBands,
    TechnicalSnapshot,
    MarketContext,
    SentimentSignal,
    AnalystConsensus,
    PredictionInput,
)
from .combiner import CombinedSignal, SIGNAL_WEIGHTS, combine

__all__ = [
    "HistoricalPricePoint",
    "BollingerBands",
    "TechnicalSnapshot",
    "MarketContext",
    "SentimentSignal",
    "AnalystConsensus",
    "PredictionInput",
    "CombinedSignal",
    "SIGNAL_WEIGHTS",
    "combine",
]
