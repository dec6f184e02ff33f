"""
Outputs Module
==============

Value objects and rendering stages produced from a forecast:
- prediction.py: PredictionOutput and its parts
- reasons.py: templated reasons (import from stock_insights.outputs.reasons)
- narrative.py: optional text-completion narrative
"""

from .prediction import (
    Horizon,
    RiskLevel,
    Impact,
    HorizonPrediction,
    HorizonPredictions,
    ConfidenceBreakdown,
    PredictionReason,
    PredictionOutput,
)

__all__ = [
    "Horizon",
    "RiskLevel",
    "Impact",
    "HorizonPrediction",
    "HorizonPredictions",
    "ConfidenceBreakdown",
    "PredictionReason",
    "PredictionOutput",
]
