"""CLI: loglab serve"""

import click

from loglab.cli.common import console, run
from loglab.config import DEFAULT_HOST, DEFAULT_PORT, RelayConfig
from loglab.handler import TEARDOWN_POLICIES
from loglab.server import RelayServer


@click.command("serve")
@click.option("--host", envvar="LOGLAB_HOST", default=DEFAULT_HOST, show_default=True)
@click.option("--port", envvar="LOGLAB_PORT", default=DEFAULT_PORT, type=click.IntRange(0, 65535), show_default=True)
@click.option("--capacity", default=100, type=click.IntRange(min=1), show_default=True,
              help="Pending messages kept per subscriber before the oldest are dropped")
@click.option("--teardown", type=click.Choice(TEARDOWN_POLICIES), default="connection", show_default=True,
              help="Remove a session when any connection closes, or only when the last one does")
@click.option("--cors-origins", default="*", show_default=True)
def serve_cmd(host: str, port: int, capacity: int, teardown: str, cors_origins: str):
    """Run the relay server."""
    config = RelayConfig(host=host, port=port, capacity=capacity, teardown=teardown, cors_origins=cors_origins)
    console.print(f"Starting server on http://{host}:{port}")
    run(RelayServer(config).serve_forever())
