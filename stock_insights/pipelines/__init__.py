"""
Pipelines Module
================

Orchestration on top of the core:
- selection.py: deterministic daily company selection
- daily_scheduler.py: pre-market rotation, market-open refresh, run loop
- insights_pipeline.py: batch forecasts with per-symbol error capture
"""

from .selection import (
    SelectionWeightRecord,
    rank_companies,
    score_companies,
    select_companies,
    update_recent_history,
)
from .daily_scheduler import (
    DailyScheduler,
    JobResult,
    FEATURED_STOCKS_KEY,
    LAST_ROTATION_KEY,
    RECENT_SELECTIONS_KEY,
)
from .insights_pipeline import InsightsResult, run_insights

__all__ = [
    "SelectionWeightRecord",
    "rank_companies",
    "score_companies",
    "select_companies",
    "update_recent_history",
    "DailyScheduler",
    "JobResult",
    "FEATURED_STOCKS_KEY",
    "LAST_ROTATION_KEY",
    "RECENT_SELECTIONS_KEY",
    "InsightsResult",
    "run_insights",
]
