"""Logging setup for the ``cloudauth`` CLI.

Library modules only ever call ``logging.getLogger(__name__)``; they never
configure handlers. The CLI calls :func:`configure_logging` once so that
those records reach stderr through Rich, next to the other diagnostics
printed by :mod:`cloudauth.output`.
"""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "cloudauth"


def configure_logging(verbose: bool = False, console: Optional[Console] = None) -> logging.Logger:
    """Attach a :class:`~rich.logging.RichHandler` to the package logger.

    Calling it again replaces the handler rather than stacking a second one.

    Args:
        verbose: Log at ``DEBUG`` instead of ``WARNING``.
        console: Console to log to; a stderr console when omitted.

    Returns:
        The configured ``cloudauth`` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=verbose,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    return logger
