"""Logging setup for the command-line entry point.

Library modules only call ``logging.getLogger(__name__)``; the CLI calls
:func:`setup_logging` once to attach a rich console handler to the root
logger.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_INITIALIZED = False


def setup_logging(
    level: str = "INFO",
    verbose: bool = False,
    console: Console | None = None,
) -> None:
    """Configure root logging with a RichHandler (idempotent).

    Args:
        level: Level name from settings.
        verbose: Force DEBUG regardless of ``level``.
        console: Console to write to; stderr if not provided.
    """
    global _INITIALIZED
    if _INITIALIZED:
        return

    lvl = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)
    handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
    )
    logging.basicConfig(
        level=lvl,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    _INITIALIZED = True


__all__ = ["setup_logging"]
