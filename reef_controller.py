"""Process entry point for the reef controller.

Loads runtime settings and the channel file, builds the channel registry
and runs the tick scheduler until interrupted. ``--once`` runs every channel
a single time and prints the resulting state; ``--check`` only builds the
registry strictly and reports whether the configuration is usable.
"""
from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import threading
from typing import Optional, Sequence

from infrastructure.logging.event_logger import EventLogger
from reef import __version__
from reef.config import load_channel_config, load_config, setup_logging
from reef.domain.channels.registry import ChannelRegistry
from reef.domain.exceptions import ReefError
from reef.hardware.factory import DriverFactory
from reef.workers.tick_scheduler import TickScheduler

logger = logging.getLogger("reef_controller")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="reef-controller", description="Reef aquarium controller")
    parser.add_argument("--config", help="Channel file (defaults to REEF_CHANNELS_PATH)")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--once", action="store_true", help="Run every channel once, print the state and exit")
    mode.add_argument("--check", action="store_true", help="Validate the channel file and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
    except (ReefError, ValueError) as exc:
        print(f"Invalid environment configuration: {exc}", file=sys.stderr)
        return 2

    setup_logging(debug=args.debug or config.DEBUG, log_dir=config.log_dir)
    channels_path = args.config or config.channels_path

    factory = DriverFactory(config)
    try:
        channel_file = load_channel_config(channels_path)
        registry = ChannelRegistry.from_config(
            channel_file,
            driver_factory=factory.create_driver,
            strict=args.check,
        )
    except ReefError as exc:
        logger.error("Configuration error: %s", exc)
        factory.close()
        return 2

    if args.check:
        logger.info("Configuration OK: %d channel(s) in %s", len(registry), channels_path)
        registry.cleanup_drivers()
        factory.close()
        return 0

    scheduler = TickScheduler(
        registry,
        max_workers=config.max_workers,
        device_timeout=config.device_timeout,
        check_interval_seconds=config.scheduler_quantum,
        max_history=config.history_size,
    )

    try:
        if args.once:
            results = scheduler.run_all()
            scheduler.event_bus.wait_idle()
            print(json.dumps({"state": scheduler.get_state(), "ticks": [r.to_dict() for r in results]}, indent=2))
            return 0 if all(r.success for r in results) else 1

        return _run_forever(scheduler)
    finally:
        scheduler.stop()
        registry.cleanup_drivers()
        factory.close()


def _run_forever(scheduler: TickScheduler) -> int:
    activity = EventLogger(scheduler.event_bus)
    stop_requested = threading.Event()

    def _handle_signal(signum, _frame):
        logger.info("Received signal %s, shutting down", signal.Signals(signum).name)
        stop_requested.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    scheduler.start()
    try:
        while not stop_requested.wait(timeout=60):
            health = scheduler.health_check()
            if health["health"] != "healthy":
                logger.warning("Controller %s: %s", health["health"], health["reason"])
    except Exception as exc:  # pragma: no cover - top-level runtime errors
        logger.exception("Controller loop failed: %s", exc)
        return 1
    finally:
        scheduler.stop()
        activity.close()
    logger.info("Controller stopped.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
