"""
Features Module
===============

Builders that turn raw provider payloads into engine inputs:
- technical.py: TechnicalSnapshot from price history
- sentiment.py: keyword news sentiment
- analyst.py: price-target consensus and rating-change sentiment
"""

from .technical import build_technical_snapshot, compute_rsi, history_from_records
from .sentiment import build_sentiment_signal, score_text
from .analyst import RatingSentiment, build_analyst_consensus, build_rating_sentiment

__all__ = [
    "build_technical_snapshot",
    "compute_rsi",
    "history_from_records",
    "build_sentiment_signal",
    "score_text",
    "build_analyst_consensus",
    "build_rating_sentiment",
    "RatingSentiment",
]
