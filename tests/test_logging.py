"""Tests for the CLI logging setup."""

from __future__ import annotations

import io
import logging

from rich.console import Console
from rich.logging import RichHandler

from cloudauth.logging import LOGGER_NAME, configure_logging


def _rich_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if isinstance(h, RichHandler)]


class TestConfigureLogging:
    def test_default_level_is_warning(self) -> None:
        logger = configure_logging()
        assert logger.name == LOGGER_NAME
        assert logger.level == logging.WARNING

    def test_verbose_is_debug(self) -> None:
        assert configure_logging(verbose=True).level == logging.DEBUG

    def test_handler_replaced_not_stacked(self) -> None:
        configure_logging()
        logger = configure_logging(verbose=True)
        assert len(_rich_handlers(logger)) == 1

    def test_child_records_reach_console(self) -> None:
        buffer = io.StringIO()
        configure_logging(verbose=True, console=Console(file=buffer, width=200))

        logging.getLogger("cloudauth.auth.platform").debug("Probing metadata server")

        assert "Probing metadata server" in buffer.getvalue()

    def test_debug_hidden_when_not_verbose(self) -> None:
        buffer = io.StringIO()
        configure_logging(console=Console(file=buffer, width=200))

        logging.getLogger("cloudauth.auth.resolver").debug("hidden")
        logging.getLogger("cloudauth.auth.resolver").warning("gcloud project lookup failed")

        output = buffer.getvalue()
        assert "hidden" not in output
        assert "gcloud project lookup failed" in output
