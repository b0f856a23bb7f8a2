"""Logger construction for the git-sync command."""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "git_sync"


def create_logger(
    console: Console | None = None,
    verbose: bool = False,
    name: str = LOGGER_NAME,
) -> logging.Logger:
    """
    Build the logger handed to the syncer.

    Records are rendered by rich with a colored level column and no
    timestamps. Calling this again replaces the previous handler.
    """
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return logger
