"""
Forecast Narrative
==================

Turns a PredictionOutput into a short analyst-style paragraph.

When a TextCompleter is configured the forecast is sent to it as a prompt;
otherwise (or when the completer fails or returns nothing) a templated
narrative is assembled from the forecast's own reasons.
"""

import logging
from typing import Optional

from stock_insights.interfaces import TextCompleter
from stock_insights.outputs.prediction import Horizon, Impact, PredictionOutput

logger = logging.getLogger(__name__)

SYSTEM_PREAMBLE = (
    "You are a senior financial analyst specializing in S&P 500 equities and "
    "short-term price forecasts. Explain the forecast below in plain language "
    "for a retail investor, in no more than 120 words. Do not invent numbers."
)

HORIZON_LABELS = {
    Horizon.NEXT_DAY: "next day",
    Horizon.NEXT_WEEK: "next week",
    Horizon.NEXT_MONTH: "next month",
}


def build_prompt(output: PredictionOutput) -> str:
    """Prompt listing the ranges, confidence breakdown, risk and reasons."""
    lines = [SYSTEM_PREAMBLE, "", f"Symbol: {output.symbol}"]

    for horizon, p in output.predictions:
        lines.append(
            f"{HORIZON_LABELS[horizon]}: {p.price:.2f} "
            f"(range {p.low:.2f} to {p.high:.2f}, confidence {p.confidence:.0%})"
        )

    c = output.confidence
    lines.append(
        f"Confidence: overall {c.overall:.0%}, technical {c.technical:.0%}, "
        f"fundamental {c.fundamental:.0%}, sentiment {c.sentiment:.0%}"
    )
    lines.append(f"Risk level: {output.risk_level.value}")

    if output.reasons:
        lines.append("Drivers:")
        lines.extend(
            f"- [{r.category}, {r.impact.value}, weight {r.weight:.2f}] {r.reason}"
            for r in output.reasons
        )

    return "\n".join(lines)


def fallback_narrative(output: PredictionOutput) -> str:
    """Templated narrative built only from the forecast itself."""
    month = output.predictions.next_month
    outlook = {
        Impact.BULLISH: "a modest upward bias",
        Impact.BEARISH: "a modest downward bias",
        Impact.NEUTRAL: "no clear direction",
    }[output.direction]

    parts = [
        f"{output.symbol} shows {outlook} over the coming month, with a projected "
        f"price of {month.price:.2f} in a range of {month.low:.2f} to {month.high:.2f}.",
        f"Overall confidence is {output.confidence.overall:.0%} and risk is "
        f"{output.risk_level.value}.",
    ]

    strongest = sorted(output.reasons, key=lambda r: r.weight, reverse=True)[:3]
    if strongest:
        parts.append("Key drivers: " + "; ".join(r.reason for r in strongest) + ".")

    return " ".join(parts)


class NarrativeRenderer:
    """
    Narrates forecasts, optionally through a text completer.

    Usage:
        renderer = NarrativeRenderer(completer)
        text = renderer.render(prediction_output)
    """

    def __init__(self, completer: Optional[TextCompleter] = None):
        self.completer = completer

    def render(self, output: PredictionOutput) -> str:
        if self.completer is None:
            return fallback_narrative(output)

        try:
            text = self.completer.complete(build_prompt(output))
        except Exception as e:
            logger.warning(f"{output.symbol}: text completion failed, using template: {e}")
            return fallback_narrative(output)

        text = (text or "").strip()
        if not text:
            logger.warning(f"{output.symbol}: empty completion, using template")
            return fallback_narrative(output)
        return text
