"""Command line entry point: process a race and print its final report."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from .config import CONFIG_PATH, EVENTS_PATH, ConfigError, ConfigInfo, load_config
from .race import Biathlon
from .report import FinalReport

logger = logging.getLogger(__name__)


def _describe(config: ConfigInfo) -> str:
    return (
        f"{{{config.laps_count} {config.lap_len} {config.penalty_lap_len} "
        f"{config.firing_lines_count} {config.start_time} {config.start_delta}}}"
    )


def _run(config_path: str, events_path: str) -> int:
    try:
        config = load_config(config_path)
    except ConfigError:
        logger.error("Could not load a valid race configuration")
        return 1
    logger.info(_describe(config))

    race = Biathlon(config)
    try:
        race.process_file(events_path)
    except OSError:
        logger.error("Problem in opening input file")
        return 1
    except UnicodeDecodeError:
        logger.error("Problem in reading input data")
        return 1

    report = FinalReport()
    report.create(race)
    for line in report.lines():
        logger.info(line)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the race described by the config and events files; return the exit status."""
    parser = argparse.ArgumentParser(
        prog="biathlon",
        description="Process biathlon race events and print the final report.",
    )
    parser.add_argument("--config", default=str(CONFIG_PATH), help="race configuration (JSON)")
    parser.add_argument("--events", default=str(EVENTS_PATH), help="incoming events file")
    args = parser.parse_args(argv)

    package_logger = logging.getLogger("biathlon")
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    previous_level = package_logger.level
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.INFO)
    try:
        return _run(args.config, args.events)
    finally:
        package_logger.removeHandler(handler)
        package_logger.setLevel(previous_level)


if __name__ == "__main__":
    raise SystemExit(main())