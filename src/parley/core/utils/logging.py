"""
Logging configuration using loguru.

Every bot logs through ``bot_logger``, so records carry a ``bot`` extra
(``"<type>:<id>"``).  ``setup_logging`` shows it on each line and can
narrow output down to a few bots while debugging a multi-bot hub.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import Any

from loguru import logger

NO_BOT = "-"

CONSOLE_FORMAT = "<level>[{level.name}]</level> <cyan>{extra[bot]}</cyan> {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {extra[bot]} | {message}"


def bot_logger(bot_type: str, bot_id: str) -> Any:
    """Return a logger whose records are tagged with ``bot_type:bot_id``."""
    return logger.bind(bot=f"{bot_type}:{bot_id}")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    *,
    only_bots: Iterable[str] | str | None = None,
    serialize: bool = False,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Configure loguru with console and optional file output.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Path to log file. If None, only logs to stderr.
        only_bots: ``"type:id"`` tags to keep; records from other bots are
            dropped. Records not tied to a bot are always kept. A comma-separated
            string is accepted, as env vars deliver one.
        serialize: Write the file sink as JSON lines.
        rotation: Log file rotation size.
        retention: How long to keep rotated logs.
    """
    level = level.upper()
    record_filter = _bot_filter(only_bots)

    logger.remove()
    logger.configure(extra={"bot": NO_BOT})
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, filter=record_filter)

    if log_file:
        logger.add(
            log_file,
            level=level,
            format=FILE_FORMAT,
            rotation=rotation,
            retention=retention,
            serialize=serialize,
            filter=record_filter,
        )


def _bot_filter(only_bots: Iterable[str] | str | None):  # type: ignore[no-untyped-def]
    if not only_bots:
        return None
    if isinstance(only_bots, str):
        only_bots = only_bots.split(",")
    wanted = {tag.strip() for tag in only_bots}

    def keep(record) -> bool:  # type: ignore[no-untyped-def]
        tag = record["extra"].get("bot", NO_BOT)
        return tag == NO_BOT or tag in wanted

    return keep
