"""
Confidence & Range Generator
============================

Turns the combined expected return plus historical volatility into three
horizon price ranges with confidence values, and grades overall risk.

Confidence components (each clamped to [0.2, 0.95]):
    base        max(0.3, 1 - 2 * volatility)   (clamped only through overall)
    technical   moving-average stack + RSI/MACD agreement
    fundamental analyst coverage: count / 20, capped at 1
    sentiment   relevance * min(news volume / 10, 1)
    overall     unweighted mean of the four

Range half-width = price * volatility_factor * (2 - overall), so lower
confidence widens the interval.
"""

import logging
from typing import Dict, Tuple

from .inputs import MarketContext, PredictionInput, TechnicalSnapshot
from stock_insights.outputs.prediction import (
    ConfidenceBreakdown,
    Horizon,
    HorizonPrediction,
    HorizonPredictions,
    RiskLevel,
)

logger = logging.getLogger(__name__)

CONFIDENCE_FLOOR = 0.2
CONFIDENCE_CEILING = 0.95
BASE_CONFIDENCE_FLOOR = 0.3

ANALYST_FULL_CONFIDENCE = 20
NEWS_FULL_CONFIDENCE = 10

# Horizon -> (share of the combined return, volatility factor)
HORIZON_SCALING: Dict[Horizon, Tuple[float, float]] = {
    Horizon.NEXT_DAY: (0.2, 0.1),
    Horizon.NEXT_WEEK: (0.7, 0.25),
    Horizon.NEXT_MONTH: (1.0, 0.5),
}


def clamp_confidence(value: float) -> float:
    return max(CONFIDENCE_FLOOR, min(CONFIDENCE_CEILING, value))


def technical_alignment(technical: TechnicalSnapshot, current_price: float) -> float:
    """
    Share of indicators that agree with each other (0-1).

    A fully stacked trend (price, SMA20, SMA50, SMA200 ordered the same way)
    counts double; RSI and MACD each count once when they agree with the
    price's side of SMA20.
    """
    score = 0
    total = 0

    bullish_stack = current_price > technical.sma20 > technical.sma50 > technical.sma200
    bearish_stack = current_price < technical.sma20 < technical.sma50 < technical.sma200
    if bullish_stack or bearish_stack:
        score += 2
    total += 2

    above = current_price > technical.sma20
    below = current_price < technical.sma20

    if (technical.rsi > 50 and above) or (technical.rsi < 50 and below):
        score += 1
    total += 1

    if (technical.macd > 0 and above) or (technical.macd < 0 and below):
        score += 1
    total += 1

    return score / total


def calculate_confidence(data: PredictionInput, volatility: float) -> ConfidenceBreakdown:
    base = max(BASE_CONFIDENCE_FLOOR, 1 - volatility * 2)
    technical = technical_alignment(data.technical, data.current_price)
    fundamental = min(data.analyst.analyst_count / ANALYST_FULL_CONFIDENCE, 1.0)
    sentiment = data.sentiment.relevance_score * min(
        data.sentiment.news_volume / NEWS_FULL_CONFIDENCE, 1.0
    )

    overall = (base + technical + fundamental + sentiment) / 4

    return ConfidenceBreakdown(
        overall=clamp_confidence(overall),
        technical=clamp_confidence(technical),
        fundamental=clamp_confidence(fundamental),
        sentiment=clamp_confidence(sentiment),
    )


def calculate_price_range(
    base_price: float,
    expected_return: float,
    volatility_factor: float,
    confidence: float,
) -> HorizonPrediction:
    target = base_price * (1 + expected_return)
    half_width = abs(base_price * volatility_factor * (2 - confidence))

    return HorizonPrediction(
        price=round(target, 2),
        low=round(target - half_width, 2),
        high=round(target + half_width, 2),
        confidence=round(confidence, 2),
    )


def generate_ranges(
    current_price: float,
    expected_return: float,
    volatility: float,
    confidence: ConfidenceBreakdown,
) -> HorizonPredictions:
    """Build the day/week/month ranges around `current_price`."""
    ranges = {}
    for horizon, (return_share, vol_share) in HORIZON_SCALING.items():
        ranges[horizon] = calculate_price_range(
            current_price,
            expected_return * return_share,
            volatility * vol_share,
            confidence.overall,
        )

    return HorizonPredictions(
        next_day=ranges[Horizon.NEXT_DAY],
        next_week=ranges[Horizon.NEXT_WEEK],
        next_month=ranges[Horizon.NEXT_MONTH],
    )


def assess_risk_level(
    volatility: float,
    technical: TechnicalSnapshot,
    market: MarketContext,
) -> RiskLevel:
    risk_score = 0

    if volatility > 0.4:
        risk_score += 2
    elif volatility > 0.25:
        risk_score += 1

    if market.volatility_index_level > 30:
        risk_score += 2
    elif market.volatility_index_level > 20:
        risk_score += 1

    if technical.rsi > 80 or technical.rsi < 20:
        risk_score += 1

    if risk_score >= 4:
        return RiskLevel.HIGH
    if risk_score >= 2:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW
