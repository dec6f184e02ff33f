"""
Stock Insights CLI
==================

Command-line interface for the selection, cache and forecasting core.

Usage:
    python -m stock_insights.cli select --date 2024-01-15 --explain
    python -m stock_insights.cli update
    python -m stock_insights.cli predict AAPL MSFT --narrate
    python -m stock_insights.cli predict --input aapl.json
    python -m stock_insights.cli cache-stats
    python -m stock_insights.cli cache-cleanup
    python -m stock_insights.cli pool --sector technology
    python -m stock_insights.cli status
    python -m stock_insights.cli run-scheduler
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("cli")


def parse_date(date_str: str) -> date:
    """Parse a date string in YYYY-MM-DD format."""
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid date format: {date_str}. Use YYYY-MM-DD."
        )


def _state():
    from stock_insights.app import build_app_state
    return build_app_state()


def cmd_select(args):
    """Show the selection for a date without persisting it."""
    from stock_insights.pipelines.daily_scheduler import RECENT_SELECTIONS_KEY
    from stock_insights.pipelines.selection import rank_companies

    state = _state()
    on = args.date or date.today()
    recent = state.cache.get(RECENT_SELECTIONS_KEY) or []

    ranked = rank_companies(state.pool.entries(), on, recent)[: args.count]

    print(f"Selection for {on} ({len(state.pool)} symbols in pool, {len(recent)} recent)")
    for i, record in enumerate(ranked, 1):
        print(f"  {i}. {record.symbol:<6} score={record.score:.3f}")
        if args.explain:
            for name, value in record.factors.items():
                if value:
                    print(f"       {name:<16} {value:+.3f}")
    return 0


def cmd_update(args):
    """Run the daily update now (manual trigger)."""
    logger.info("=" * 60)
    logger.info("DAILY UPDATE")
    logger.info("=" * 60)

    state = _state()
    result = asyncio.run(state.scheduler.trigger_manual_update())
    print(result.summary())
    return 0 if result.success else 1


def cmd_predict(args):
    """Forecast one or more symbols."""
    from stock_insights.models.engine import InputError
    from stock_insights.models.inputs import MarketContext, PredictionInput
    from stock_insights.pipelines.insights_pipeline import run_insights

    state = _state()

    market = MarketContext(
        index_change_percent=args.index_change,
        volatility_index_level=args.vix,
    )

    if args.input:
        raw = json.loads(Path(args.input).read_text(encoding="utf-8"))
        try:
            output = state.engine.generate_prediction(PredictionInput.from_dict(raw))
        except InputError as e:
            logger.error(str(e))
            return 1
        if args.json:
            print(json.dumps(output.to_dict(), indent=2))
        else:
            print(output.summary())
            if args.narrate:
                print(state.narrator.render(output))
        return 0

    if not args.symbols:
        logger.error("Give one or more symbols, or --input FILE")
        return 1

    result = asyncio.run(run_insights(
        args.symbols,
        state.require_data_service(),
        engine=state.engine,
        market=market,
        narrator=state.narrator if args.narrate else None,
    ))

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(result.summary())
    return 0 if result.predictions else 1


def cmd_cache_stats(args):
    """Print cache statistics."""
    state = _state()
    stats = state.cache.get_stats()
    print(f"Cache: {state.cache.cache_path}")
    for key, value in stats.items():
        print(f"  {key}: {value}")
    return 0


def cmd_cache_cleanup(args):
    """Remove expired cache entries."""
    state = _state()
    removed = state.cache.cleanup_expired()
    print(f"Removed {removed} expired entries")
    return 0


def cmd_pool(args):
    """List the company pool."""
    from stock_insights.universe.company_pool import SECTOR_DESCRIPTIONS, SECTORS

    state = _state()

    print("=" * 70)
    print("COMPANY POOL")
    print("=" * 70)
    print(f"\nTotal: {len(state.pool)} symbols\n")

    sectors = [args.sector] if args.sector else SECTORS
    for sector in sectors:
        entries = state.pool.by_sector(sector)
        if not entries:
            print(f"Unknown or empty sector: {sector}")
            print(f"Valid sectors: {SECTORS}")
            return 1
        print(f"{sector} ({len(entries)} stocks)")
        print(f"  {SECTOR_DESCRIPTIONS[sector]}")
        for e in entries:
            print(f"  {e.symbol:<6} cap={e.cap_class:<5} volatility={e.volatility_class}")
        print()
    return 0


def cmd_status(args):
    """Print scheduler status."""
    state = _state()
    print(json.dumps(state.scheduler.get_status(), indent=2))
    return 0


def cmd_run_scheduler(args):
    """Run the scheduler loop until interrupted."""
    state = _state()
    try:
        asyncio.run(state.scheduler.run_forever())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Stock Insights CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m stock_insights.cli select --explain
  python -m stock_insights.cli update
  python -m stock_insights.cli predict AAPL MSFT --narrate
  python -m stock_insights.cli run-scheduler
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # select
    p_select = subparsers.add_parser("select", help="Show the daily selection")
    p_select.add_argument("--date", type=parse_date, help="Selection date (default: today)")
    p_select.add_argument("--count", type=int, default=5, help="Symbols to show (default: 5)")
    p_select.add_argument("--explain", action="store_true", help="Show score components")
    p_select.set_defaults(func=cmd_select)

    # update
    p_update = subparsers.add_parser("update", help="Run the daily update now")
    p_update.set_defaults(func=cmd_update)

    # predict
    p_predict = subparsers.add_parser("predict", help="Forecast symbols")
    p_predict.add_argument("symbols", nargs="*", help="Tickers to forecast")
    p_predict.add_argument("--input", type=str, help="PredictionInput JSON file (no provider needed)")
    p_predict.add_argument("--index-change", type=float, default=0.0, help="Index move as a fraction")
    p_predict.add_argument("--vix", type=float, default=20.0, help="Volatility index level")
    p_predict.add_argument("--narrate", action="store_true", help="Add a narrative")
    p_predict.add_argument("--json", action="store_true", help="Print JSON")
    p_predict.set_defaults(func=cmd_predict)

    # cache
    p_stats = subparsers.add_parser("cache-stats", help="Show cache statistics")
    p_stats.set_defaults(func=cmd_cache_stats)

    p_cleanup = subparsers.add_parser("cache-cleanup", help="Remove expired cache entries")
    p_cleanup.set_defaults(func=cmd_cache_cleanup)

    # pool
    p_pool = subparsers.add_parser("pool", help="List the company pool")
    p_pool.add_argument("--sector", type=str, help="Show only this sector")
    p_pool.set_defaults(func=cmd_pool)

    # scheduler
    p_status = subparsers.add_parser("status", help="Show scheduler status")
    p_status.set_defaults(func=cmd_status)

    p_run = subparsers.add_parser("run-scheduler", help="Run the scheduler loop")
    p_run.set_defaults(func=cmd_run_scheduler)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
