"""Logging setup for command line use."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str | int = logging.WARNING, console: Console | None = None) -> logging.Logger:
    """Attach a rich handler to the ``mdxdb`` logger."""
    logger = logging.getLogger("mdxdb")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logger.setLevel(level)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
