"""
Reason Generator
================

Templated, human-readable justifications layered on top of the numeric
signals. This is rendering, not inference: swapping the generator never
changes prices, ranges or confidences.

Triggers:
    technical   |technical signal| > 0.05
    technical   RSI outside [30, 70]
    sentiment   |sentiment signal| > 0.1
    analyst     |analyst upside| > 10%
    macro       volatility index > 30

Weights:
    The magnitude of the triggering signal (|technical|, |sentiment|,
    |analyst upside|). Zone triggers have no signal of their own, so their
    weight is the distance past the threshold on a 0-100 scale:
    (30 - rsi) / 100, (rsi - 70) / 100 and (vix - 30) / 100.
"""

from typing import List, Tuple

from stock_insights.models.combiner import CombinedSignal
from stock_insights.models.inputs import PredictionInput
from stock_insights.models.signals import (
    RSI_OVERBOUGHT,
    RSI_OVERSOLD,
    VOLATILITY_INDEX_HIGH,
    analyst_upside,
)
from .prediction import Impact, PredictionReason

TECHNICAL_THRESHOLD = 0.05
SENTIMENT_THRESHOLD = 0.1
ANALYST_UPSIDE_THRESHOLD = 0.10


def generate_reasons(
    data: PredictionInput,
    combined: CombinedSignal,
) -> Tuple[PredictionReason, ...]:
    """Emit reasons for every signal that crosses its threshold."""
    reasons: List[PredictionReason] = []

    technical = combined.get("technical")
    if technical > TECHNICAL_THRESHOLD:
        reasons.append(PredictionReason(
            category="technical",
            reason="Strong technical indicators suggest upward momentum",
            impact=Impact.BULLISH,
            weight=abs(technical),
        ))
    elif technical < -TECHNICAL_THRESHOLD:
        reasons.append(PredictionReason(
            category="technical",
            reason="Technical indicators showing bearish signals",
            impact=Impact.BEARISH,
            weight=abs(technical),
        ))

    rsi = data.technical.rsi
    if rsi < RSI_OVERSOLD:
        reasons.append(PredictionReason(
            category="technical",
            reason=f"RSI at {rsi:.0f} indicates oversold conditions, potential bounce expected",
            impact=Impact.BULLISH,
            weight=round((RSI_OVERSOLD - rsi) / 100, 4),
        ))
    elif rsi > RSI_OVERBOUGHT:
        reasons.append(PredictionReason(
            category="technical",
            reason=f"RSI at {rsi:.0f} shows overbought levels, correction possible",
            impact=Impact.BEARISH,
            weight=round((rsi - RSI_OVERBOUGHT) / 100, 4),
        ))

    sentiment = combined.get("sentiment")
    if sentiment > SENTIMENT_THRESHOLD:
        reasons.append(PredictionReason(
            category="sentiment",
            reason="Positive news sentiment and market environment",
            impact=Impact.BULLISH,
            weight=abs(sentiment),
        ))
    elif sentiment < -SENTIMENT_THRESHOLD:
        reasons.append(PredictionReason(
            category="sentiment",
            reason="Negative news sentiment affecting outlook",
            impact=Impact.BEARISH,
            weight=abs(sentiment),
        ))

    upside = analyst_upside(data.analyst, data.current_price)
    if upside > ANALYST_UPSIDE_THRESHOLD:
        reasons.append(PredictionReason(
            category="analyst",
            reason=f"Analyst targets suggest {round(upside * 100)}% upside potential",
            impact=Impact.BULLISH,
            weight=abs(upside),
        ))
    elif upside < -ANALYST_UPSIDE_THRESHOLD:
        reasons.append(PredictionReason(
            category="analyst",
            reason=f"Current price above analyst targets by {round(abs(upside) * 100)}%",
            impact=Impact.BEARISH,
            weight=abs(upside),
        ))

    vix = data.market.volatility_index_level
    if vix > VOLATILITY_INDEX_HIGH:
        reasons.append(PredictionReason(
            category="macro",
            reason=f"Elevated market fear (volatility index {vix:.1f}) weighs on risk assets",
            impact=Impact.BEARISH,
            weight=round((vix - VOLATILITY_INDEX_HIGH) / 100, 4),
        ))

    return tuple(reasons)
