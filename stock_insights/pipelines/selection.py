"""
Daily Company Selection
=======================

Deterministic weighted pick of the day's featured symbols.

Every symbol in the pool gets a score:

    score = base
          + sector rotation bonus      (featured sector rotates by ISO week)
          + volatility class bonus     (high > medium > low)
          + cap class of the day bonus (mega/large/mid rotate by day of year)
          + earnings season bonus      (scaled by cap class)
          + momentum/contrarian bonus  (growth on even days, defensives on odd)
          + day-of-week sector bias
          + jitter                     (seeded, [0, 0.4))
          - recency penalty            (linear in position in the recent buffer)

The pool is then shuffled with the same seeded generator, stable-sorted by
score descending, and the top `count` symbols are taken.

DETERMINISM:
All randomness comes from one numpy Generator seeded from the calendar date,
so the same date, pool and recent buffer always give the same ranking.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from stock_insights.universe.company_pool import (
    DEFENSIVE_SECTORS,
    GROWTH_SECTORS,
    SECTORS,
    CompanyPoolEntry,
)

logger = logging.getLogger(__name__)

BASE_WEIGHT = 1.0
SECTOR_ROTATION_BONUS = 0.4
VOLATILITY_BONUS = {"high": 0.3, "medium": 0.15, "low": 0.0}
CAP_OF_THE_DAY_BONUS = 0.2
CAP_ROTATION = ("mega", "large", "mid")

# Earnings seasons open mid-month after each quarter end
EARNINGS_SEASON_STARTS = ((1, 15), (4, 15), (7, 15), (10, 15))
EARNINGS_IN_SEASON_DAYS = 21
EARNINGS_LEAD_DAYS = 14
EARNINGS_IN_SEASON_BONUS = 0.25
EARNINGS_LEAD_BONUS = 0.1
EARNINGS_CAP_SCALE = {"mega": 1.0, "large": 0.8, "mid": 0.6}

MOMENTUM_BONUS = 0.2
DAY_OF_WEEK_BONUS = 0.15
DAY_OF_WEEK_SECTORS = {
    0: ("technology",),                       # Monday
    1: ("financials",),                       # Tuesday
    2: ("healthcare",),                       # Wednesday
    3: ("consumer",),                         # Thursday
    4: ("energy_utilities", "industrials"),   # Friday
}

JITTER_SCALE = 0.4

RECENCY_WINDOW = 20
RECENCY_PENALTY = 2.0

DAILY_COUNT = 5


@dataclass(frozen=True)
class SelectionWeightRecord:
    """Score of one symbol for one day, with its additive components."""
    symbol: str
    score: float
    factors: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "symbol": self.symbol,
            "score": round(self.score, 4),
            "factors": {k: round(v, 4) for k, v in self.factors.items()},
        }


def date_seed(on: date) -> int:
    """Stable 64-bit seed from the calendar date."""
    digest = hashlib.sha256(on.isoformat().encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


def featured_sector(on: date) -> str:
    """Sector favoured for the whole ISO week."""
    iso_week = on.isocalendar()[1]
    return SECTORS[iso_week % len(SECTORS)]


def cap_class_of_the_day(on: date) -> str:
    return CAP_ROTATION[on.timetuple().tm_yday % len(CAP_ROTATION)]


def earnings_season_bonus(on: date, cap_class: str) -> float:
    """
    Bonus for being inside (or just ahead of) an earnings season.

    Inside: 0-21 days after a season start. Ahead: 1-14 days before one.
    Next January's season is checked so late December counts as ahead.
    """
    starts = [date(on.year, m, d) for m, d in EARNINGS_SEASON_STARTS]
    starts.append(date(on.year + 1, 1, 15))

    bonus = 0.0
    for start in starts:
        delta = (on - start).days
        if 0 <= delta <= EARNINGS_IN_SEASON_DAYS:
            bonus = max(bonus, EARNINGS_IN_SEASON_BONUS)
        elif -EARNINGS_LEAD_DAYS <= delta < 0:
            bonus = max(bonus, EARNINGS_LEAD_BONUS)

    return bonus * EARNINGS_CAP_SCALE.get(cap_class, 0.0)


def momentum_bonus(on: date, sector: str) -> float:
    if on.timetuple().tm_yday % 2 == 0:
        return MOMENTUM_BONUS if sector in GROWTH_SECTORS else 0.0
    return MOMENTUM_BONUS if sector in DEFENSIVE_SECTORS else 0.0


def day_of_week_bonus(on: date, sector: str) -> float:
    return DAY_OF_WEEK_BONUS if sector in DAY_OF_WEEK_SECTORS.get(on.weekday(), ()) else 0.0


def recency_penalty(symbol: str, recent: Sequence[str], window: int = RECENCY_WINDOW) -> float:
    """2.0 for the most recently shown symbol, decaying linearly over the window."""
    recent = [s.upper() for s in recent[:window]]
    if symbol.upper() not in recent:
        return 0.0
    index = recent.index(symbol.upper())
    return RECENCY_PENALTY * (1 - index / window)


def score_companies(
    pool: Iterable[CompanyPoolEntry],
    on: date,
    recent: Sequence[str] = (),
    rng: Optional[np.random.Generator] = None,
) -> List[SelectionWeightRecord]:
    """
    Score every pool entry for a date, in pool order.

    Args:
        pool: Entries to score
        on: Selection date (drives every calendar factor and the seed)
        recent: Recently featured symbols, most recent first
        rng: Generator for jitter (defaults to one seeded from `on`)
    """
    if rng is None:
        rng = np.random.default_rng(date_seed(on))

    sector_of_week = featured_sector(on)
    cap_of_day = cap_class_of_the_day(on)

    records = []
    for entry in pool:
        factors = {
            "base": BASE_WEIGHT,
            "sector_rotation": SECTOR_ROTATION_BONUS if entry.sector == sector_of_week else 0.0,
            "volatility": VOLATILITY_BONUS.get(entry.volatility_class, 0.0),
            "cap_of_the_day": CAP_OF_THE_DAY_BONUS if entry.cap_class == cap_of_day else 0.0,
            "earnings_season": earnings_season_bonus(on, entry.cap_class),
            "momentum": momentum_bonus(on, entry.sector),
            "day_of_week": day_of_week_bonus(on, entry.sector),
            "jitter": float(rng.random()) * JITTER_SCALE,
            "recency": -recency_penalty(entry.symbol, recent),
        }
        records.append(SelectionWeightRecord(
            symbol=entry.symbol,
            score=sum(factors.values()),
            factors=factors,
        ))
    return records


def rank_companies(
    pool: Iterable[CompanyPoolEntry],
    on: date,
    recent: Sequence[str] = (),
) -> List[SelectionWeightRecord]:
    """All pool entries, seeded-shuffled then stable-sorted by score (best first)."""
    rng = np.random.default_rng(date_seed(on))
    records = score_companies(pool, on, recent, rng=rng)

    shuffled = [records[i] for i in rng.permutation(len(records))]
    return sorted(shuffled, key=lambda r: r.score, reverse=True)


def select_companies(
    pool: Iterable[CompanyPoolEntry],
    on: date,
    recent: Sequence[str] = (),
    count: int = DAILY_COUNT,
) -> List[str]:
    """
    Pick the day's featured symbols.

    Returns:
        Up to `count` symbols, highest score first
    """
    ranked = rank_companies(pool, on, recent)
    selected = [r.symbol for r in ranked[:count]]
    logger.info(f"Selected for {on}: {', '.join(selected)}")
    return selected


def update_recent_history(
    recent: Sequence[str],
    selected: Sequence[str],
    size: int = RECENCY_WINDOW,
) -> List[str]:
    """New selection first, older entries after it without duplicates, capped at `size`."""
    merged = list(selected)
    merged.extend(s for s in recent if s not in merged)
    return merged[:size]
