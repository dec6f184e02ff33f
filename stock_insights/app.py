"""
Application State
=================

Composition root: builds the cache, company pool, calendar, engine and
scheduler once and hands them to whoever needs them (CLI, a host server).
No module keeps its own singleton.

Vendor collaborators are optional and plugged in by import path
(STOCK_INSIGHTS_PROVIDER / STOCK_INSIGHTS_COMPLETER, "package.module:factory").
The factory is called with no arguments and must return an object
implementing MarketDataProvider / TextCompleter.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional

from stock_insights.cache.ttl_cache import TTLCache
from stock_insights.config import Config, get_config
from stock_insights.data.market_data import ComprehensiveDataService
from stock_insights.data.trading_calendar import get_trading_calendar
from stock_insights.interfaces import MarketDataProvider, TextCompleter, TradingCalendar
from stock_insights.models.engine import PredictionEngine
from stock_insights.outputs.narrative import NarrativeRenderer
from stock_insights.pipelines.daily_scheduler import DailyScheduler
from stock_insights.universe.company_pool import CompanyPool
from stock_insights.utils.env import ProviderConfigError, load_object

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """Everything a running instance owns."""
    config: Config
    cache: TTLCache
    pool: CompanyPool
    calendar: TradingCalendar
    engine: PredictionEngine
    scheduler: DailyScheduler
    narrator: NarrativeRenderer
    data_service: Optional[ComprehensiveDataService] = None

    def require_data_service(self) -> ComprehensiveDataService:
        if self.data_service is None:
            raise ProviderConfigError(
                "No market data provider configured. "
                "Set STOCK_INSIGHTS_PROVIDER=package.module:factory"
            )
        return self.data_service


def _instantiate(path: Optional[str], kind: str) -> Optional[Any]:
    if not path:
        return None
    factory = load_object(path)
    obj = factory() if callable(factory) else factory
    logger.info(f"Loaded {kind} from {path}")
    return obj


def build_app_state(
    config: Optional[Config] = None,
    provider: Optional[MarketDataProvider] = None,
    completer: Optional[TextCompleter] = None,
    calendar: Optional[TradingCalendar] = None,
) -> AppState:
    """
    Wire up an AppState.

    Explicit collaborators win over the configured import paths.

    Raises:
        ProviderConfigError: If a configured import path cannot be resolved
    """
    config = config or get_config()

    cache = TTLCache(
        config.cache.cache_path,
        default_ttl=timedelta(hours=config.cache.default_ttl_hours),
    )
    pool = CompanyPool()
    calendar = calendar or get_trading_calendar(
        exchange=config.scheduler.exchange, timezone=config.scheduler.timezone
    )

    provider = provider or _instantiate(config.provider.provider_path, "market data provider")
    completer = completer or _instantiate(config.provider.completer_path, "text completer")

    data_service = (
        ComprehensiveDataService(provider, cache, config.provider) if provider is not None else None
    )
    if data_service is None:
        logger.warning("No market data provider configured; data fetches are disabled")

    scheduler = DailyScheduler(
        cache=cache,
        pool=pool,
        data_service=data_service,
        calendar=calendar,
        config=config.scheduler,
        cleanup_interval=timedelta(minutes=config.cache.cleanup_interval_minutes),
    )

    return AppState(
        config=config,
        cache=cache,
        pool=pool,
        calendar=calendar,
        engine=PredictionEngine(),
        scheduler=scheduler,
        narrator=NarrativeRenderer(completer),
        data_service=data_service,
    )
