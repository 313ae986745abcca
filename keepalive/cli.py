"""CLI entry point for the keepalive supervisor.

    keepalive --config commands.yaml

Loads the command list once, supervises every command until Ctrl-C and
exits 0 after a graceful shutdown, or 1 on a config error or any fatal
launch/termination failure.
"""

from __future__ import annotations

import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from keepalive import __version__
from keepalive.core.config import DEFAULT_CONFIG_PATH, load_config
from keepalive.core.errors import ConfigError
from keepalive.core.models import SupervisorConfig
from keepalive.core.supervisor import EXIT_FATAL, Supervisor

console = Console()

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def configure_logging(level: str) -> None:
    """Route all loggers through rich on stderr; stdout belongs to the children."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _commands_table(config: SupervisorConfig) -> Table:
    table = Table(title="Supervised Commands")
    table.add_column("Name", style="cyan")
    table.add_column("Command", style="white")
    table.add_column("Startup delay", justify="right")
    table.add_column("Retry delay", justify="right")
    table.add_column("Log", style="green")

    for spec in config.commands:
        table.add_row(
            escape(spec.name),
            escape(spec.cmd),
            f"{spec.sleep}s",
            f"{spec.retry_sec}s",
            "yes" if spec.show_log else "no",
        )
    return table


def _summary_table(supervisor: Supervisor) -> Table:
    table = Table(title="Shutdown Summary")
    table.add_column("Name", style="cyan")
    table.add_column("Launches", justify="right")
    table.add_column("Restarts", justify="right")
    table.add_column("Status")

    reported = {r.name: r for r in supervisor.results}
    for name, loop in supervisor.loops.items():
        result = reported.get(name)
        if result is None:
            status = f"[yellow]abandoned ({loop.state.value})[/yellow]"
        elif result.error is not None:
            status = f"[red]{escape(str(result.error))}[/red]"
        else:
            status = "[green]terminated[/green]"
        table.add_row(escape(name), str(loop.launches), str(loop.restarts), status)
    return table


@click.command()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "-c",
    "config_path",
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    type=click.Path(dir_okay=False),
    help="Load the config with commands to watch and keep alive",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="INFO",
    show_default=True,
    help="Logging verbosity",
)
def main(config_path: str, log_level: str) -> None:
    """Keep a list of shell commands running, restarting them when they exit.

    Press Ctrl-C to send SIGTERM to every child and exit.
    """
    configure_logging(log_level)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]Failed to load config:[/red] {escape(str(e))}")
        sys.exit(EXIT_FATAL)

    if config.commands:
        console.print(_commands_table(config))

    supervisor = Supervisor(config)
    exit_code = supervisor.run()

    if supervisor.loops:
        console.print(_summary_table(supervisor))
    for result in supervisor.errors:
        console.print(
            f"[red]Failed to keep alive command '{escape(result.name)}':[/red] "
            f"{escape(str(result.error))}"
        )
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
