#!/usr/bin/env python3
"""Run the release engine reconcilers.

Starts the three periodic reconcilers (inactivity monitor, grace-period
reconciler, time-lock reconciler) against the configured store and runs
until SIGINT/SIGTERM. With --once, runs a single pass in scan order and
exits.

Usage:
    python scripts/run_release_engine.py
    python scripts/run_release_engine.py --once -v
    python scripts/run_release_engine.py --time-unit minutes
"""

from __future__ import annotations

import argparse
import asyncio
import os
import signal
import sys

from dotenv import load_dotenv

from lastkey.bootstrap.database import close_database_engine
from lastkey.bootstrap.release_engine import build_release_engine
from lastkey.config.release_config import ReleaseEngineConfig
from lastkey.domain.models.time_unit import TimeUnit
from lastkey.infrastructure.observability.logging import (
    configure_structlog,
    get_logger_for_service,
)

# Load environment variables
load_dotenv()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the release engine reconcilers")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run one reconciliation pass and exit",
    )
    parser.add_argument(
        "--time-unit",
        choices=[unit.value for unit in TimeUnit],
        help="Override RELEASE_TIME_UNIT",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Print pass summary")
    return parser.parse_args(argv)


async def run_once(config: ReleaseEngineConfig, verbose: bool) -> int:
    engine = build_release_engine(config)
    result = await engine.scheduler.run_once()
    if verbose:
        print(f"Triggered:  {len(result.triggered)}")
        print(f"Promoted:   {len(result.promoted)}")
        print(f"Announced:  {len(result.time_lock.announced)}")
        print(f"Reminded:   {len(result.time_lock.reminded)}")
        print(f"Released:   {len(result.time_lock.released)}")
    return 0


async def run_forever(config: ReleaseEngineConfig) -> int:
    engine = build_release_engine(config)
    log = get_logger_for_service("release_engine_runner")
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await engine.scheduler.start()
    log.info(
        "release_engine_running",
        time_unit=config.time_unit.value,
        inactivity_scan_seconds=config.inactivity_scan_seconds,
        grace_scan_seconds=config.grace_scan_seconds,
        time_lock_scan_seconds=config.time_lock_scan_seconds,
    )
    await stop.wait()
    await engine.scheduler.stop()
    log.info("release_engine_stopped")
    return 0


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_structlog(environment=os.environ.get("ENVIRONMENT", "development"))

    config = ReleaseEngineConfig.from_environment()
    if args.time_unit:
        config = config.with_time_unit(TimeUnit.from_name(args.time_unit))

    try:
        if args.once:
            return await run_once(config, args.verbose)
        return await run_forever(config)
    finally:
        await close_database_engine()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
