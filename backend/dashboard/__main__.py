"""CLI entry point.

Usage:
    python -m dashboard analyze candles.json
    python -m dashboard analyze candles.json --coin bitcoin --client alice --evaluate
    python -m dashboard init-db
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Configure logging FIRST, before any other imports
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)

# Reduce noise from third-party libraries
logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)

import orjson

from engine.analysis import analyze
from engine.errors import SignalEngineError
from engine.models import AlertSnapshot

from dashboard.config import get_settings
from dashboard.runtime import SignalEngineRuntime
from dashboard.storage import Database

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m dashboard",
        description="Market dashboard signal engine",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_analyze = sub.add_parser("analyze", help="Analyze a JSON list of candles")
    p_analyze.add_argument("candles", type=Path, help="Path to a JSON array of candles")
    p_analyze.add_argument("--coin", default=None, help="Coin id for alert evaluation")
    p_analyze.add_argument("--client", default=None, help="Client id (default from settings)")
    p_analyze.add_argument(
        "--evaluate",
        action="store_true",
        help="Evaluate the client's alert rules against the result",
    )

    sub.add_parser("init-db", help="Create the client state tables")

    return parser.parse_args(argv)


async def run_analyze(args: argparse.Namespace) -> dict:
    series = orjson.loads(args.candles.read_bytes())
    analysis = analyze(series)
    output = {"analysis": analysis.model_dump(mode="json", by_alias=True)}

    if args.evaluate:
        if not args.coin:
            raise SystemExit("--evaluate requires --coin")
        runtime = await SignalEngineRuntime.start()
        try:
            client_id = runtime.client_id(args.client)
            snapshot = AlertSnapshot.from_analysis(args.coin, analysis)
            triggered = await runtime.alert_evaluator.evaluate(client_id, snapshot)
            output["triggeredIds"] = sorted(triggered)
        finally:
            await runtime.close()

    return output


async def run_init_db() -> None:
    settings = get_settings()
    db = Database(settings.database_url, debug=settings.debug)
    try:
        await db.create_tables()
    finally:
        await db.close()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        if args.command == "analyze":
            output = asyncio.run(run_analyze(args))
            sys.stdout.write(orjson.dumps(output, option=orjson.OPT_INDENT_2).decode() + "\n")
        elif args.command == "init-db":
            asyncio.run(run_init_db())
            logger.info("Database initialized")
    except SignalEngineError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
