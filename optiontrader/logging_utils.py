"""Logging setup for OptionTrader."""

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def _env_level(default: int) -> int:
    raw = os.environ.get("OPTIONTRADER_LOG_LEVEL", "").strip().upper()
    if not raw:
        return default
    if raw.isdigit():
        return int(raw)
    return getattr(logging, raw, default)


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> logging.Logger:
    """Route ``optiontrader`` loggers to a rich console handler.

    Args:
        verbose: Log at DEBUG instead of WARNING.
        console: Optional console to write to (stderr by default).

    Returns:
        The package logger.
    """
    logger = logging.getLogger("optiontrader")
    logger.handlers = []
    logger.setLevel(_env_level(logging.DEBUG if verbose else logging.WARNING))

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
