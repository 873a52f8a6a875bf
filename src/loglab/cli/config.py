"""CLI: loglab config"""

import json
from typing import Optional

import click

from loglab.cli.common import console
from loglab import config as settings
from loglab.config import client_config, load_config, save_config


@click.command("config")
@click.option("--base-url", default=None, help="Store the relay base URL")
def config_cmd(base_url: Optional[str]):
    """Show client settings, or store new ones."""
    if base_url:
        cfg = load_config()
        cfg["base_url"] = base_url.rstrip("/")
        save_config(cfg)
        console.print(f"[dim]Saved to {settings.CONFIG_FILE}[/dim]")
    click.echo(json.dumps(client_config().model_dump(), indent=2))
