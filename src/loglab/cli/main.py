"""
LogLab CLI — `loglab` command.

Commands:
  loglab pipe [FILE] [-a]       Stream a file (or stdin) into a new session
  loglab serve                  Run the relay
  loglab session create         Issue a session id
  loglab watch <session-id>     Print everything relayed on a session
  loglab say <session-id> MSG   Send one chat message
  loglab config                 Show or store client settings
"""

try:
    import click
    import rich  # noqa: F401
except ImportError:
    raise SystemExit("CLI requires extras: pip install loglab[cli]")

from loglab.cli.common import setup_logging


@click.group()
@click.version_option("0.1.0")
@click.option("--log-level", envvar="LOGLAB_LOG_LEVEL", default="WARNING",
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
def main(log_level: str):
    """LogLab CLI — share log lines and chat in a live session."""
    setup_logging(log_level)


# Register subcommands from separate modules
from loglab.cli.chat import say_cmd, watch_cmd
from loglab.cli.config import config_cmd
from loglab.cli.pipe import pipe_cmd
from loglab.cli.serve import serve_cmd
from loglab.cli.sessions import session

main.add_command(pipe_cmd)
main.add_command(serve_cmd)
main.add_command(session)
main.add_command(watch_cmd)
main.add_command(say_cmd)
main.add_command(config_cmd)


if __name__ == "__main__":
    main()
