"""CLI: loglab watch, loglab say"""

from datetime import datetime
from typing import Optional

import click
from rich.markup import escape

from loglab.cli.common import base_url_option, console, get_client, run
from loglab.models.chat import ChatMessage


def _format_chat(message: ChatMessage) -> str:
    when = datetime.fromtimestamp(message.timestamp / 1000).strftime("%H:%M:%S")
    return f"[dim]\\[{when}][/dim] [cyan]{escape(message.sender)}[/cyan]: {escape(message.content)}"


@click.command("watch")
@click.argument("session_id")
@base_url_option
def watch_cmd(session_id: str, base_url: Optional[str]):
    """Print every line and chat message relayed on a session."""

    async def _watch():
        client = get_client(base_url)
        try:
            await client.connect(session_id)
            console.print(f"[dim]Watching session {session_id} (Ctrl+C to exit)[/dim]")
            async for frame in client.frames():
                if isinstance(frame, ChatMessage):
                    console.print(_format_chat(frame))
                else:
                    click.echo(frame.text)
        finally:
            await client.close()

    run(_watch())


@click.command("say")
@click.argument("session_id")
@click.argument("message")
@click.option("--sender", envvar="LOGLAB_SENDER", default="loglab", show_default=True)
@base_url_option
def say_cmd(session_id: str, message: str, sender: str, base_url: Optional[str]):
    """Send one chat message to a session."""

    async def _say():
        client = get_client(base_url)
        try:
            await client.connect(session_id)
            await client.send_chat(sender, message)
        finally:
            await client.close()

    run(_say())
