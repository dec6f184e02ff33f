"""
Stock Insights
==============

Daily featured-stock insights built from third-party market data:
- Multi-signal prediction engine (technical, trend, sentiment, analyst)
- Deterministic daily rotation of five featured symbols
- Flat-file TTL cache gating every upstream call

Core Question: Which five companies should we feature today, and what
range of prices do the signals point to over the next day, week and month?
"""

__version__ = "0.1.0"
__author__ = "Stock Insights Team"
