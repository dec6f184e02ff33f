"""
Configuration Management
========================

Centralized configuration for Stock Insights.
Loads environment variables and defines project-wide settings.
"""

import os
from pathlib import Path
from typing import List, Optional
from dataclasses import dataclass, field
from datetime import time

from stock_insights.utils.env import load_repo_dotenv

# Load environment variables from .env file
PROJECT_ROOT = Path(__file__).parent.parent
load_repo_dotenv(PROJECT_ROOT / ".env")


@dataclass
class CacheConfig:
    """Flat-file TTL cache settings."""
    cache_path: Path = field(
        default_factory=lambda: Path(
            os.getenv(
                "STOCK_INSIGHTS_CACHE_PATH",
                str(PROJECT_ROOT / "cache" / "market-data.json"),
            )
        )
    )
    default_ttl_hours: int = 24
    cleanup_interval_minutes: int = 60

    def __post_init__(self):
        self.cache_path = Path(self.cache_path)
        if self.default_ttl_hours <= 0:
            raise ValueError("default_ttl_hours must be positive")


@dataclass
class SchedulerConfig:
    """Daily rotation and trigger settings."""
    timezone: str = "America/New_York"
    exchange: str = "XNYS"  # NYSE

    # Pre-market selection on trading days; the market-open quote refresh
    # follows the trading calendar session open
    pre_market_time: time = field(default_factory=lambda: time(6, 0))

    daily_count: int = 5
    recent_history_size: int = 20
    job_history_size: int = 30

    # Served when no selection has been cached yet
    default_companies: List[str] = field(default_factory=lambda: [
        "AAPL", "MSFT", "GOOGL", "AMZN", "TSLA",
    ])

    def __post_init__(self):
        if self.daily_count <= 0:
            raise ValueError("daily_count must be positive")
        if self.recent_history_size < 0:
            raise ValueError("recent_history_size must be >= 0")


@dataclass
class ProviderConfig:
    """Upstream collaborator settings (plugged in by import path)."""
    provider_path: Optional[str] = field(
        default_factory=lambda: os.getenv("STOCK_INSIGHTS_PROVIDER") or None
    )
    completer_path: Optional[str] = field(
        default_factory=lambda: os.getenv("STOCK_INSIGHTS_COMPLETER") or None
    )

    news_limit: int = 10
    history_days: int = 365  # Calendar days of OHLCV requested per symbol
    target_lookback_days: int = 90  # Price targets older than this are ignored
    rating_lookback_days: int = 30  # Upgrades/downgrades older than this are ignored


@dataclass
class Config:
    """Master configuration aggregating all settings."""
    cache: CacheConfig = field(default_factory=CacheConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)


def get_config() -> Config:
    """Get a fresh configuration instance."""
    return Config()
