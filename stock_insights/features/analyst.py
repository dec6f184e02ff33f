"""
Analyst Features
================

Two summaries of sell-side coverage:

- build_analyst_consensus: individual price targets aggregated into an
  AnalystConsensus, keeping only targets published within the lookback
  window (90 days).
- build_rating_sentiment: recent upgrades/downgrades (30 days) reduced to
  a bullish / bearish / neutral reading.

RATING ACTIONS:
    upgrade     action mentions "upgrade" or "initiated", or the new grade
                mentions "buy"
    downgrade   action mentions "downgrade", or the new grade mentions "sell"

An action can count on both sides (e.g. an upgrade to "Sell" from
"Strong Sell").
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from stock_insights.models.inputs import AnalystConsensus

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK_DAYS = 90
RATING_LOOKBACK_DAYS = 30
MAX_RECENT_ACTIONS = 5


def _published_since(df: pd.DataFrame, as_of: date, lookback_days: int) -> pd.DataFrame:
    """Rows whose publishedDate falls on or after as_of - lookback_days."""
    df = df.copy()
    df["published"] = pd.to_datetime(df["publishedDate"], errors="coerce", utc=True)
    df = df.dropna(subset=["published"])
    cutoff = pd.Timestamp(as_of - timedelta(days=lookback_days), tz="UTC")
    return df[df["published"] >= cutoff]


def build_analyst_consensus(
    targets: Optional[Iterable[Dict[str, Any]]],
    as_of: date,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> AnalystConsensus:
    """
    Summarize recent price targets.

    Args:
        targets: Raw targets ({"publishedDate", "priceTarget", ...})
        as_of: Reference date for the lookback window
        lookback_days: Window length in days

    Returns:
        AnalystConsensus; all zeros when nothing recent is available
    """
    df = pd.DataFrame(list(targets or []))
    if df.empty or "priceTarget" not in df.columns or "publishedDate" not in df.columns:
        return AnalystConsensus()

    df["priceTarget"] = pd.to_numeric(df["priceTarget"], errors="coerce")
    df = df.dropna(subset=["priceTarget"])
    df = df[df["priceTarget"] > 0]

    recent = _published_since(df, as_of, lookback_days)["priceTarget"]

    if recent.empty:
        logger.debug(f"No price targets in the {lookback_days} days before {as_of}")
        return AnalystConsensus()

    return AnalystConsensus(
        high=float(recent.max()),
        low=float(recent.min()),
        average=float(recent.mean()),
        analyst_count=int(recent.size),
        median=float(recent.median()),
    )


@dataclass(frozen=True)
class RatingSentiment:
    """Upgrade/downgrade balance over the rating lookback window."""
    sentiment: str = "neutral"
    upgrade_count: int = 0
    downgrade_count: int = 0
    recent_actions: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sentiment": self.sentiment,
            "upgradeCount": self.upgrade_count,
            "downgradeCount": self.downgrade_count,
            "recentActions": [dict(a) for a in self.recent_actions],
        }

    def summary(self) -> str:
        return (
            f"Analyst ratings: {self.sentiment} "
            f"({self.upgrade_count} up / {self.downgrade_count} down)"
        )


def build_rating_sentiment(
    actions: Optional[Iterable[Dict[str, Any]]],
    as_of: date,
    lookback_days: int = RATING_LOOKBACK_DAYS,
) -> RatingSentiment:
    """
    Classify recent rating changes.

    Args:
        actions: Raw rating changes ({"publishedDate", "action", "newGrade", ...})
        as_of: Reference date for the lookback window
        lookback_days: Window length in days

    Returns:
        RatingSentiment; neutral with zero counts when nothing recent exists
    """
    df = pd.DataFrame(list(actions or []))
    if df.empty or "publishedDate" not in df.columns:
        return RatingSentiment()

    recent = _published_since(df, as_of, lookback_days)
    if recent.empty:
        logger.debug(f"No rating changes in the {lookback_days} days before {as_of}")
        return RatingSentiment()

    recent = recent.sort_values("published", ascending=False, kind="stable")

    def lowered(column: str) -> pd.Series:
        if column not in recent.columns:
            return pd.Series("", index=recent.index)
        return recent[column].fillna("").astype(str).str.lower()

    action = lowered("action")
    new_grade = lowered("newGrade")

    is_upgrade = (
        action.str.contains("upgrade", regex=False)
        | action.str.contains("initiated", regex=False)
        | new_grade.str.contains("buy", regex=False)
    )
    is_downgrade = (
        action.str.contains("downgrade", regex=False)
        | new_grade.str.contains("sell", regex=False)
    )

    upgrades = int(is_upgrade.sum())
    downgrades = int(is_downgrade.sum())

    if upgrades > downgrades:
        sentiment = "bullish"
    elif downgrades > upgrades:
        sentiment = "bearish"
    else:
        sentiment = "neutral"

    raw_columns = [c for c in recent.columns if c != "published"]
    recent_actions = [
        {k: v for k, v in row.items() if not (isinstance(v, float) and pd.isna(v))}
        for row in recent[raw_columns].head(MAX_RECENT_ACTIONS).to_dict(orient="records")
    ]

    return RatingSentiment(
        sentiment=sentiment,
        upgrade_count=upgrades,
        downgrade_count=downgrades,
        recent_actions=recent_actions,
    )
