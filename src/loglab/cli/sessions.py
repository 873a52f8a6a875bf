"""CLI: loglab session create"""

import json
from typing import Optional

import click

from loglab.cli.common import base_url_option, console, get_client, run


@click.group()
def session():
    """Session management."""


@session.command("create")
@base_url_option
@click.option("--json-output", "--json", is_flag=True)
def session_create(base_url: Optional[str], json_output: bool):
    """Issue a new session id."""

    async def _create():
        client = get_client(base_url)
        try:
            with console.status("Creating session..."):
                sid = await client.create_session()
        finally:
            await client.close()
        if json_output:
            click.echo(json.dumps({"session_id": sid}))
        else:
            console.print(f"[green]Session created: {sid}[/green]")

    run(_create())
