"""
Prediction Output Data Structures
=================================

Immutable value objects returned by the prediction engine and consumed by
the presentation/reporting layers.

Design Philosophy:
- Immutable data structures (frozen dataclasses, tuples instead of lists)
- to_dict() produces the camelCase JSON shape served to clients
- Narrative (reasons) is attached but produced by a separate stage
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Tuple


class Horizon(Enum):
    """Forecast windows."""
    NEXT_DAY = "nextDay"
    NEXT_WEEK = "nextWeek"
    NEXT_MONTH = "nextMonth"


class RiskLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Impact(Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class HorizonPrediction:
    """
    Price range for one horizon.

    Invariant: low <= price <= high (all rounded to cents).
    """
    price: float
    low: float
    high: float
    confidence: float

    def __post_init__(self):
        if not (self.low <= self.price <= self.high):
            raise ValueError(
                f"Range invariant violated: low={self.low}, price={self.price}, high={self.high}"
            )

    @property
    def width(self) -> float:
        return self.high - self.low

    def to_dict(self) -> Dict[str, float]:
        return {
            "price": self.price,
            "low": self.low,
            "high": self.high,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class HorizonPredictions:
    next_day: HorizonPrediction
    next_week: HorizonPrediction
    next_month: HorizonPrediction

    def __iter__(self):
        yield Horizon.NEXT_DAY, self.next_day
        yield Horizon.NEXT_WEEK, self.next_week
        yield Horizon.NEXT_MONTH, self.next_month

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {horizon.value: prediction.to_dict() for horizon, prediction in self}


@dataclass(frozen=True)
class ConfidenceBreakdown:
    """All values clamped to [0.2, 0.95]."""
    overall: float
    technical: float
    fundamental: float
    sentiment: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "overall": self.overall,
            "technical": self.technical,
            "fundamental": self.fundamental,
            "sentiment": self.sentiment,
        }


@dataclass(frozen=True)
class PredictionReason:
    """
    One human-readable justification.

    Attributes:
        category: technical, fundamental, sentiment, analyst or macro
        reason: Display text
        impact: Direction the reason argues for
        weight: Magnitude of the signal that triggered it
    """
    category: str
    reason: str
    impact: Impact
    weight: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "reason": self.reason,
            "impact": self.impact.value,
            "weight": self.weight,
        }


@dataclass(frozen=True)
class PredictionOutput:
    """
    Complete forecast for one symbol. Never mutated after construction.
    """
    symbol: str
    predictions: HorizonPredictions
    confidence: ConfidenceBreakdown
    reasons: Tuple[PredictionReason, ...] = ()
    risk_level: RiskLevel = RiskLevel.MEDIUM
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def direction(self) -> Impact:
        """Direction of the one-month forecast relative to the one-day one."""
        month = self.predictions.next_month.price
        day = self.predictions.next_day.price
        if month > day:
            return Impact.BULLISH
        if month < day:
            return Impact.BEARISH
        return Impact.NEUTRAL

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape consumed by the presentation layer."""
        return {
            "symbol": self.symbol,
            "predictions": self.predictions.to_dict(),
            "confidence": self.confidence.to_dict(),
            "reasons": [r.to_dict() for r in self.reasons],
            "riskLevel": self.risk_level.value,
            "lastUpdated": self.last_updated.isoformat(),
        }

    def summary(self) -> str:
        """Short plain-text summary for logs and the CLI."""
        lines = [
            f"{self.symbol}  risk={self.risk_level.value}  "
            f"confidence={self.confidence.overall:.2f}",
        ]
        for horizon, p in self.predictions:
            lines.append(
                f"  {horizon.value:<10} {p.price:>10.2f}  [{p.low:.2f} - {p.high:.2f}]"
            )
        for reason in self.reasons:
            lines.append(f"  - ({reason.impact.value}) {reason.reason}")
        return "\n".join(lines)
