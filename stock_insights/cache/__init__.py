"""
Cache Module
============

Flat-file TTL cache shared by the data service and the daily scheduler.

Usage:
    from stock_insights.cache import TTLCache

    cache = TTLCache(Path("cache/market-data.json"))
"""

from .ttl_cache import TTLCache, CacheEntry, CacheIOError, DEFAULT_TTL

__all__ = [
    "TTLCache",
    "CacheEntry",
    "CacheIOError",
    "DEFAULT_TTL",
]
