"""Console logging for the quiz CLI."""

from __future__ import annotations

import logging
import sys

CONSOLE_HANDLER_NAME = "wordquiz-console"
LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def resolve_level(level: int | str) -> int:
    """Map a level name such as ``"info"`` to its number; unknown names give WARNING."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.WARNING


def setup_console_logging(level: int | str = logging.WARNING) -> None:
    """Send log records to stderr so they stay apart from quiz prompts.

    The handler is installed once; later calls only change the level.
    """
    root = logging.getLogger()
    root.setLevel(resolve_level(level))
    if any(handler.get_name() == CONSOLE_HANDLER_NAME for handler in root.handlers):
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(CONSOLE_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    root.addHandler(handler)
