"""Emit a few sample records so the output format can be inspected.

    LOG_FORMAT=json python -m cloudlog
    python -m cloudlog --format text --level TRACE
"""

import argparse
import dataclasses
import logging

from cloudlog.config import LogFormat, Settings
from cloudlog.logging_config import TRACE, setup_logging

logger = logging.getLogger("cloudlog.example")


def _fail() -> None:
    raise RuntimeError("connection reset by peer")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="cloudlog", description="Print sample log lines")
    parser.add_argument("--format", default=None, help="text or json (default: $LOG_FORMAT)")
    parser.add_argument("--level", default=None, help="root log level (default: $LOG_LEVEL)")
    args = parser.parse_args(argv)

    settings = Settings.load()
    if args.format is not None:
        settings = dataclasses.replace(settings, log_format=LogFormat.parse(args.format))
    if args.level is not None:
        settings = dataclasses.replace(settings, log_level=args.level)
    setup_logging(settings)

    logger.info("Start logging")
    logger.warning("Oh no, things might go wrong soon.")
    try:
        _fail()
    except RuntimeError:
        logger.error("Yeah, this is not good.", exc_info=True)
    logger.log(TRACE, "Something went wrong in `my service`.")


if __name__ == "__main__":
    main()
