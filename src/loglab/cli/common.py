"""Shared CLI helpers: consoles, client construction, coroutine runner."""

import asyncio
import logging
from typing import Any, Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from loglab.client import AsyncLogLab
from loglab.config import client_config
from loglab.errors import LogLabError

console = Console()
err_console = Console(stderr=True)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def get_client(base_url: Optional[str] = None) -> AsyncLogLab:
    cfg = client_config(base_url=base_url)
    return AsyncLogLab(
        base_url=cfg.base_url,
        socketio_path=cfg.socketio_path,
        connect_timeout=cfg.connect_timeout,
        send_timeout=cfg.send_timeout,
    )


def run(coro: Any) -> Any:
    try:
        return asyncio.run(coro)
    except LogLabError as e:
        err_console.print(f"[red]Error ({e.code}): {e}[/red]")
        raise SystemExit(1)
    except KeyboardInterrupt:
        return None


base_url_option = click.option(
    "--base-url", envvar="LOGLAB_BASE_URL", default=None,
    help="Relay base URL (default from ~/.loglab/config.json)",
)
