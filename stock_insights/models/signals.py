"""
Signal Extractors
=================

Pure functions turning one PredictionInput into normalized return signals.

Signals (all expressed as expected-return fractions):
    technical  - unweighted average of seven indicator votes
    trend      - OLS slope of the last 20 closes, 5-day projection
    sentiment  - news score + market backdrop, clamped to [-0.2, 0.2]
    analyst    - distance to the consensus target, coverage-weighted

Volatility is computed here too since both the range generator and the
risk assessment consume it.
"""

import logging
import math
from typing import Sequence

import numpy as np
from scipy import stats

from .inputs import AnalystConsensus, MarketContext, PredictionInput, SentimentSignal, TechnicalSnapshot

logger = logging.getLogger(__name__)

TRADING_DAYS_PER_YEAR = 252
VOLATILITY_LOOKBACK = 20
TREND_LOOKBACK = 20
TREND_PROJECTION_DAYS = 5

RSI_OVERSOLD = 30.0
RSI_OVERBOUGHT = 70.0

SENTIMENT_NEWS_WEIGHT = 0.6
SENTIMENT_BOUND = 0.2
INDEX_MOVE_THRESHOLD = 0.02
VOLATILITY_INDEX_HIGH = 30.0
VOLATILITY_INDEX_LOW = 15.0

ANALYST_FULL_COVERAGE = 10
ANALYST_INFLUENCE_CAP = 0.1


def calculate_volatility(closes: Sequence[float], lookback: int = VOLATILITY_LOOKBACK) -> float:
    """
    Annualized volatility: population std of the last `lookback` daily
    returns times sqrt(252).
    """
    prices = np.asarray(closes, dtype=float)
    if len(prices) < 2:
        return 0.0

    returns = np.diff(prices) / prices[:-1]
    recent = returns[-lookback:]
    return float(np.std(recent) * math.sqrt(TRADING_DAYS_PER_YEAR))


def bollinger_position(price: float, technical: TechnicalSnapshot) -> float:
    """Where price sits inside the bands (0 = lower, 1 = upper)."""
    width = technical.bollinger.width
    if width <= 0:
        return 0.5
    return (price - technical.bollinger.lower) / width


def technical_signal(technical: TechnicalSnapshot, current_price: float) -> float:
    """Average of the RSI, SMA20/50/200, EMA crossover, MACD and Bollinger votes."""
    score = 0.0
    signal_count = 0

    # RSI
    if technical.rsi < RSI_OVERSOLD:
        score += 0.1
    elif technical.rsi > RSI_OVERBOUGHT:
        score -= 0.1
    signal_count += 1

    # Price above moving averages
    if current_price > technical.sma20:
        score += 0.05
    if current_price > technical.sma50:
        score += 0.10
    if current_price > technical.sma200:
        score += 0.15
    signal_count += 3

    # EMA crossover
    if technical.ema12 > technical.ema26:
        score += 0.1
    else:
        score -= 0.1
    signal_count += 1

    # MACD sign
    if technical.macd > 0:
        score += 0.05
    else:
        score -= 0.05
    signal_count += 1

    # Bollinger band position
    position = bollinger_position(current_price, technical)
    if position < 0.2:
        score += 0.1
    elif position > 0.8:
        score -= 0.1
    signal_count += 1

    return score / signal_count


def trend_signal(closes: Sequence[float], lookback: int = TREND_LOOKBACK) -> float:
    """OLS slope of the last `lookback` closes, scaled to a 5-day move over mean price."""
    window = np.asarray(closes[-lookback:], dtype=float)
    if len(window) < 2:
        return 0.0

    mean_price = float(np.mean(window))
    if mean_price == 0:
        return 0.0

    fit = stats.linregress(np.arange(len(window), dtype=float), window)
    return float(fit.slope) * TREND_PROJECTION_DAYS / mean_price


def sentiment_signal(sentiment: SentimentSignal, market: MarketContext) -> float:
    """News sentiment adjusted for index move and volatility index, clamped."""
    score = sentiment.sentiment_score * SENTIMENT_NEWS_WEIGHT

    if market.index_change_percent > INDEX_MOVE_THRESHOLD:
        score += 0.1
    elif market.index_change_percent < -INDEX_MOVE_THRESHOLD:
        score -= 0.1

    if market.volatility_index_level > VOLATILITY_INDEX_HIGH:
        score -= 0.1
    elif market.volatility_index_level < VOLATILITY_INDEX_LOW:
        score += 0.05

    return max(-SENTIMENT_BOUND, min(SENTIMENT_BOUND, score))


def analyst_upside(analyst: AnalystConsensus, current_price: float) -> float:
    """Raw (average target - price) / price; 0 without coverage."""
    if analyst.analyst_count <= 0 or current_price <= 0:
        return 0.0
    return (analyst.average - current_price) / current_price


def analyst_signal(analyst: AnalystConsensus, current_price: float) -> float:
    """Upside weighted by coverage (full at 10 analysts), capped to 10% influence."""
    if analyst.analyst_count <= 0:
        return 0.0

    coverage_weight = min(analyst.analyst_count / ANALYST_FULL_COVERAGE, 1.0)
    return analyst_upside(analyst, current_price) * coverage_weight * ANALYST_INFLUENCE_CAP


def extract_technical(data: PredictionInput) -> float:
    return technical_signal(data.technical, data.current_price)


def extract_trend(data: PredictionInput) -> float:
    return trend_signal(data.closes)


def extract_sentiment(data: PredictionInput) -> float:
    return sentiment_signal(data.sentiment, data.market)


def extract_analyst(data: PredictionInput) -> float:
    return analyst_signal(data.analyst, data.current_price)
