"""
News Sentiment Features
=======================

Keyword-based sentiment over the most recent news articles for a symbol.

    score     = clamp((positive hits - negative hits) / articles, -1, 1)
    relevance = share of articles tagged with, or naming, the symbol

Only the latest `limit` articles (default 10) are considered. An empty
news list yields a neutral SentimentSignal.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

from stock_insights.models.inputs import SentimentSignal

logger = logging.getLogger(__name__)

POSITIVE_KEYWORDS = ("growth", "profit", "beat", "strong", "upgrade", "buy", "bullish")
NEGATIVE_KEYWORDS = ("loss", "miss", "weak", "downgrade", "sell", "bearish", "decline")

DEFAULT_NEWS_LIMIT = 10

# Word-prefix match so "beats" and "declines" count; each keyword counts once
_KEYWORD_RE = {
    word: re.compile(rf"\b{word}") for word in POSITIVE_KEYWORDS + NEGATIVE_KEYWORDS
}


def _article_text(article: Dict[str, Any]) -> str:
    parts = [article.get("title") or "", article.get("text") or article.get("summary") or ""]
    return " ".join(str(p) for p in parts)


def score_text(text: str) -> int:
    """Number of positive keywords present minus number of negative ones."""
    text = text.lower()
    positive = sum(1 for w in POSITIVE_KEYWORDS if _KEYWORD_RE[w].search(text))
    negative = sum(1 for w in NEGATIVE_KEYWORDS if _KEYWORD_RE[w].search(text))
    return positive - negative


def _tickers(article: Dict[str, Any]) -> List[str]:
    raw = article.get("tickers") or article.get("symbol") or []
    if isinstance(raw, str):
        raw = raw.split(",")
    return [str(t).strip().upper() for t in raw if str(t).strip()]


def is_relevant(article: Dict[str, Any], symbol: str) -> bool:
    symbol = symbol.upper()
    if symbol in _tickers(article):
        return True
    return re.search(rf"\b{re.escape(symbol)}\b", _article_text(article).upper()) is not None


def _latest(news: Sequence[Dict[str, Any]], limit: int) -> List[Dict[str, Any]]:
    # Providers usually return newest first, but don't rely on it
    dated = [a for a in news if a.get("publishedDate")]
    if len(dated) == len(news):
        ordered = sorted(news, key=lambda a: str(a["publishedDate"]), reverse=True)
    else:
        ordered = list(news)
    return ordered[:limit]


def build_sentiment_signal(
    symbol: str,
    news: Optional[Iterable[Dict[str, Any]]],
    limit: int = DEFAULT_NEWS_LIMIT,
) -> SentimentSignal:
    """
    Score the latest news for a symbol.

    Args:
        symbol: Ticker the news was requested for
        news: Raw articles ({"title", "text", "publishedDate", "tickers"?})
        limit: Number of most recent articles to consider

    Returns:
        SentimentSignal with score in [-1, 1] and relevance in [0, 1]
    """
    articles = _latest(list(news or []), limit)
    if not articles:
        return SentimentSignal()

    hits = sum(score_text(_article_text(a)) for a in articles)
    score = max(-1.0, min(1.0, hits / len(articles)))
    relevant = sum(1 for a in articles if is_relevant(a, symbol))

    logger.debug(f"{symbol}: sentiment {score:+.2f} over {len(articles)} articles ({relevant} relevant)")

    return SentimentSignal(
        sentiment_score=score,
        news_volume=len(articles),
        relevance_score=relevant / len(articles),
    )
