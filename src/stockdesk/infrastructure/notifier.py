"""Notifier that prints notices on the terminal and records them in the log."""

from __future__ import annotations

import click

from stockdesk.application.ports import Notifier
from stockdesk.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ClickNotifier(Notifier):

    def success(self, message: str) -> None:
        logger.debug("notice", level="success", message=message)
        click.echo(message)

    def error(self, message: str) -> None:
        logger.debug("notice", level="error", message=message)
        click.echo(f"Error: {message}", err=True)

    def info(self, message: str) -> None:
        logger.debug("notice", level="info", message=message)
        click.echo(message)
