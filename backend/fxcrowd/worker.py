"""
One-shot scrape pass, for cron or manual runs outside the API process.

    python -m fxcrowd.worker
    python -m fxcrowd.worker --source oanda
"""
import argparse
import asyncio
import logging
from fxcrowd.config import settings
from fxcrowd.log import setup_logging
from fxcrowd.db import init_db
from fxcrowd.core.scheduler import ScraperOrchestrator
from fxcrowd.services.registry import build_adapters

setup_logging()
log = logging.getLogger("worker")

def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one retail positioning scrape pass.")
    parser.add_argument("--source", help="run a single adapter instead of every enabled one")
    return parser.parse_args(argv)

async def main(argv=None) -> int:
    args = parse_args(argv)
    init_db()
    names = [args.source] if args.source else settings.enabled_sources
    orchestrator = ScraperOrchestrator(build_adapters(names))

    if args.source:
        result = await orchestrator.run_one(args.source.strip().lower())
        if result.success:
            log.info("%s: %d instruments", result.source, len(result.data))
        else:
            log.error("%s failed: %s", result.source, result.error)
        return 0 if result.success else 1

    summary = await orchestrator.run_all()
    log.info("One-shot pass complete: %s", summary.run_log)
    return 0 if summary.run_log["failed_count"] == 0 else 1

def cli() -> None:
    raise SystemExit(asyncio.run(main()))

if __name__ == "__main__":
    cli()
