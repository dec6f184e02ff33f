"""
Technical Snapshot Builder
==========================

Derives the TechnicalSnapshot the engine consumes from raw OHLCV history.

Indicators (as of the last bar):
- RSI(14), Wilder smoothing
- SMA 20 / 50 / 200 (mean of what is available when history is shorter)
- EMA 12 / 26 and MACD = EMA12 - EMA26
- Bollinger bands: SMA20 +/- 2 population std
"""

import logging
from typing import Sequence

import numpy as np
import pandas as pd

from stock_insights.models.inputs import BollingerBands, HistoricalPricePoint, TechnicalSnapshot

logger = logging.getLogger(__name__)

RSI_PERIOD = 14
BOLLINGER_PERIOD = 20
BOLLINGER_STD = 2.0


def compute_rsi(closes: pd.Series, period: int = RSI_PERIOD) -> float:
    """Wilder RSI of the last bar; 50 when there is no movement at all."""
    delta = closes.diff().dropna()
    if delta.empty:
        return 50.0

    gains = delta.clip(lower=0)
    losses = -delta.clip(upper=0)

    avg_gain = float(gains.ewm(alpha=1 / period, adjust=False).mean().iloc[-1])
    avg_loss = float(losses.ewm(alpha=1 / period, adjust=False).mean().iloc[-1])

    if avg_loss == 0:
        return 50.0 if avg_gain == 0 else 100.0

    rs = avg_gain / avg_loss
    return float(100 - 100 / (1 + rs))


def _sma(closes: pd.Series, window: int) -> float:
    return float(closes.rolling(window, min_periods=1).mean().iloc[-1])


def _ema(closes: pd.Series, span: int) -> float:
    return float(closes.ewm(span=span, adjust=False).mean().iloc[-1])


def build_technical_snapshot(history: Sequence[HistoricalPricePoint]) -> TechnicalSnapshot:
    """
    Compute all indicators from an oldest -> newest price history.

    Raises:
        ValueError: If the history is empty
    """
    if not history:
        raise ValueError("Cannot compute technical indicators from an empty history")

    closes = pd.Series([p.close for p in history], dtype=float)

    ema12 = _ema(closes, 12)
    ema26 = _ema(closes, 26)

    window = closes.iloc[-BOLLINGER_PERIOD:]
    middle = float(window.mean())
    std = float(np.std(window.to_numpy()))

    return TechnicalSnapshot(
        rsi=compute_rsi(closes),
        sma20=_sma(closes, 20),
        sma50=_sma(closes, 50),
        sma200=_sma(closes, 200),
        ema12=ema12,
        ema26=ema26,
        macd=ema12 - ema26,
        bollinger=BollingerBands(
            upper=middle + BOLLINGER_STD * std,
            middle=middle,
            lower=middle - BOLLINGER_STD * std,
        ),
        volume=float(history[-1].volume),
    )


def history_from_records(records: Sequence[dict]) -> tuple:
    """
    Normalize raw provider bars into HistoricalPricePoints sorted by date.

    Bars without a close are dropped.
    """
    if not records:
        return ()

    df = pd.DataFrame(list(records))
    if "close" not in df.columns:
        logger.warning("Historical records have no 'close' column")
        return ()

    df = df.dropna(subset=["close"])
    if "date" in df.columns:
        df = df.sort_values("date", kind="stable")

    return tuple(
        HistoricalPricePoint.from_dict(row)
        for row in df.to_dict(orient="records")
    )
