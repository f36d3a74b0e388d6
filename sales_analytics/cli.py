# sales_analytics/cli.py
"""
Command-line diagnostic tool over the analytics engine.

    python -m sales_analytics.cli sales user123 month
    python -m sales_analytics.cli general user123 week
    python -m sales_analytics.cli top-selling user123 year --limit 5
    python -m sales_analytics.cli payment-breakdown user123 --days 14
    python -m sales_analytics.cli seed --rows 1000 --users user123 user456

Results are printed as JSON. Failures print an error object to stderr and
exit with status 1.
"""
import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from .config import settings
from .database import make_engine, make_session_factory
from .fetcher import AggregateFetcher, SqlAlchemyFetcher
from .logging_config import configure_logging
from .seed import generate_demo_frames, load_frames
from .service import AnalyticsService

logger = logging.getLogger(__name__)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sales-analytics",
        description="Sales analytics diagnostics for a single merchant.",
    )
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL from the environment")
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL from the environment")
    commands = parser.add_subparsers(dest="command", required=True)

    sales = commands.add_parser("sales", help="Revenue series and change vs. the previous period")
    sales.add_argument("user_id")
    sales.add_argument("granularity", nargs="?", default=None, help="week, month or year (default: year)")

    general = commands.add_parser("general", help="Best and worst selling product")
    general.add_argument("user_id")
    general.add_argument("granularity", nargs="?", default="month", help="week, month or year (default: month)")

    for name, help_text in (("top-selling", "Products with the most units sold"),
                            ("low-selling", "Products with the fewest units sold")):
        ranking = commands.add_parser(name, help=help_text)
        ranking.add_argument("user_id")
        ranking.add_argument("granularity", nargs="?", default="month")
        ranking.add_argument("--limit", type=int, default=10, help="Number of products (default: 10)")

    payments = commands.add_parser("payment-breakdown", help="Revenue per payment method")
    payments.add_argument("user_id")
    payments.add_argument("--days", type=int, default=30, help="Lookback in days (default: 30)")

    seed = commands.add_parser("seed", help="Generate demo data into the database")
    seed.add_argument("--rows", type=int, default=1000, help="Number of transactions to generate")
    seed.add_argument("--users", nargs="+", default=["demo-user"], help="User ids to spread sales over")
    seed.add_argument("--days", type=int, default=730, help="How far back sales go (default: 730)")
    seed.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data")

    return parser

def dispatch(args: argparse.Namespace, service: AnalyticsService):
    if args.command == "sales":
        return service.sales_analytics(args.user_id, args.granularity)
    if args.command == "general":
        return service.general_analytics(args.user_id, args.granularity)
    if args.command in ("top-selling", "low-selling"):
        return service.ranked_sellers(
            args.user_id,
            args.granularity,
            descending=args.command == "top-selling",
            limit=args.limit,
        )
    if args.command == "payment-breakdown":
        return service.payment_breakdown(args.user_id, days=args.days)
    raise ValueError(f"Unknown command: {args.command}")

def run(argv: Optional[Sequence[str]] = None, fetcher: Optional[AggregateFetcher] = None) -> int:
    """Runs one command and returns the process exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or settings.LOG_LEVEL)

    engine = None
    if fetcher is None or args.command == "seed":
        engine = make_engine(args.database_url or settings.get_database_url())

    try:
        if args.command == "seed":
            frames = generate_demo_frames(args.rows, args.users, days=args.days, seed=args.seed)
            result = {"success": True, "written": load_frames(frames, engine)}
        else:
            if fetcher is None:
                fetcher = SqlAlchemyFetcher(make_session_factory(engine))
            service = AnalyticsService(fetcher, max_workers=settings.ANALYTICS_MAX_WORKERS)
            result = dispatch(args, service).model_dump(by_alias=True)
    except Exception as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(json.dumps({"error": "Command execution failed", "message": str(e)}, indent=2), file=sys.stderr)
        return 1
    finally:
        if engine is not None:
            engine.dispose()

    print(json.dumps(result, indent=2, default=str))
    return 0

def main():
    sys.exit(run())

if __name__ == "__main__":
    main()
