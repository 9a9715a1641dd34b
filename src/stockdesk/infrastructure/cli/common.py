"""Shared plumbing for the CLI commands."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import click

from stockdesk.domain.exceptions import DomainException, RemoteError
from stockdesk.infrastructure.bootstrap import Container, open_container

T = TypeVar("T")

DATETIME_FORMATS = ["%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M", "%Y-%m-%d"]


def run(ctx: click.Context, work: Callable[[Container], Awaitable[T]]) -> T:
    """Build the container, run *work* on the event loop, map errors.

    Remote failures were already reported by the notifier, so they only
    set the exit code.
    """
    obj = ctx.ensure_object(dict)

    async def _main() -> T:
        async with open_container(
            obj.get("settings"), transport=obj.get("transport")
        ) as container:
            return await work(container)

    try:
        return asyncio.run(_main())
    except RemoteError:
        raise click.exceptions.Exit(1)
    except DomainException as exc:
        raise click.ClickException(str(exc))


def format_datetime(value) -> str:
    if value is None:
        return "N/A"
    return value.strftime("%Y-%m-%d %H:%M")
