"""CLI: loglab pipe [FILE] [--all]"""

from pathlib import Path
from typing import Optional

import click

from loglab.cli.common import base_url_option, err_console, get_client, run
from loglab.source import open_source


@click.command("pipe")
@click.argument("file", required=False, type=click.Path(dir_okay=False, path_type=Path))
@click.option("-a", "--all", "show_all", is_flag=True, help="Show all existing content before watching for updates")
@click.option("-s", "--session", "session_id", default=None, help="Stream into an existing session")
@base_url_option
def pipe_cmd(file: Optional[Path], show_all: bool, session_id: Optional[str], base_url: Optional[str]):
    """Stream FILE (or stdin when omitted) into a session, one message per line."""

    async def _pipe():
        source = open_source(file, from_start=show_all)
        client = get_client(base_url)
        try:
            sid = await client.connect(session_id)
            err_console.print(f"[green]Streaming to session[/green] {sid}")
            await client.stream(source)
        finally:
            await client.close()

    run(_pipe())
