"""
Universe Module
===============

The 60-symbol company pool the daily selection rotates through.

Usage:
    from stock_insights.universe import CompanyPool

    pool = CompanyPool()
    pool.add("AMD", sector="technology", volatility_class="high")
    tech = pool.by_sector("technology")
"""

from .company_pool import (
    SECTORS,
    SECTOR_DESCRIPTIONS,
    CAP_CLASSES,
    VOLATILITY_CLASSES,
    GROWTH_SECTORS,
    DEFENSIVE_SECTORS,
    CompanyPoolEntry,
    CompanyPool,
    DEFAULT_POOL,
    validate_pool,
)

__all__ = [
    "SECTORS",
    "SECTOR_DESCRIPTIONS",
    "CAP_CLASSES",
    "VOLATILITY_CLASSES",
    "GROWTH_SECTORS",
    "DEFENSIVE_SECTORS",
    "CompanyPoolEntry",
    "CompanyPool",
    "DEFAULT_POOL",
    "validate_pool",
]
