import logging
import sys
from importlib import metadata
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import click
from appdirs import user_log_dir
from rich.console import Console
from rich.logging import RichHandler

from edgeroute.cli.commands import run_check, run_resolve

console = Console()

app_logger = logging.getLogger("edgeroute")
# Set the logger to capture ALL messages from 'edgeroute' internally
app_logger.setLevel(logging.DEBUG)

app_name = "edgeroute"

logger = logging.getLogger(__name__)

config_option = click.option(
    "--config",
    "-c",
    "config_file",
    envvar="EDGEROUTE_CONFIG",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Distribution declaration (JSON). Defaults to $EDGEROUTE_CONFIG.",
)


def _log_file_path() -> Path:
    log_dir = Path(user_log_dir(app_name))
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f"{app_name}.log"


def _setup_file_logging() -> Path:
    log_file_path = _log_file_path()
    for handler in app_logger.handlers:
        if isinstance(handler, TimedRotatingFileHandler):
            return log_file_path
    file_handler = TimedRotatingFileHandler(
        filename=str(log_file_path), when="D", interval=1, backupCount=7, encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)  # All debug messages and above go to the file
    file_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    file_handler.setFormatter(file_formatter)
    app_logger.addHandler(file_handler)
    return log_file_path


@click.group(invoke_without_command=True)
@click.option(
    "--verbose", "-v", count=True, help="Increase verbosity. -v for INFO, -vv for DEBUG logs."
)
@click.option("--version", is_flag=True, help="Show edgeroute version.")
@click.pass_context
def cli(ctx: click.Context, verbose: int, version: bool) -> None:
    if version:
        _version()  # Exits after printing version

    # If no command was invoked, show help
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        ctx.exit(0)

    log_file_path = _setup_file_logging()

    if verbose > 0:
        console_handler = RichHandler(
            console=console,
            show_time=False,
            show_level=True,
            markup=True,
            tracebacks_suppress=[click],
            rich_tracebacks=True,
        )
        if verbose == 1:
            console_handler.setLevel(logging.INFO)
            console.print("[italic blue]Console verbosity: INFO[/]")
        elif verbose >= 2:  # noqa: PLR2004
            console_handler.setLevel(logging.DEBUG)
            console.print("[italic green]Console verbosity: DEBUG[/]")

        console.print(f"[italic dim]Logs saved to: {log_file_path}[/]")
        app_logger.addHandler(console_handler)


@click.command()
def version() -> None:
    """Shows version and exit."""
    _version()


@click.command()
@config_option
def check(config_file: Path) -> None:
    """
    Validates a distribution declaration (JSON) and shows its behaviors
    in evaluation order.
    """
    logger.info("Checking %s", config_file)
    run_check(config_file)


@click.command()
@config_option
@click.argument("path")
@click.option(
    "--method", "-m", default="GET", show_default=True, help="HTTP method of the request."
)
def resolve(config_file: Path, path: str, method: str) -> None:
    """Shows which origin and cache behavior serve a request."""
    logger.info("Resolving %s %s with %s", method, path, config_file)
    run_resolve(config_file, path, method)


cli.add_command(version)
cli.add_command(check)
cli.add_command(resolve)


def _version() -> None:
    edgeroute_version = metadata.version("edgeroute")
    console.print(f"edgeroute version: {edgeroute_version}", highlight=False)
    sys.exit(0)
