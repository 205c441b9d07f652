import sys

import typer
from loguru import logger

from urlcanon.config import ConfigError, load_config

app = typer.Typer(help="urlcanon CLI")


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level, backtrace=False, diagnose=False)
    logger.enable("urlcanon")


@app.callback(invoke_without_command=True)
def cli(
    ctx: typer.Context,
    config_path: str | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a TOML config file (default: $URLCANON_CONFIG)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log debug output to stderr",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output JSON instead of plain text",
    ),
) -> None:
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    try:
        config = load_config(config_path)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc

    _configure_logging("DEBUG" if verbose else config.log_level)
    ctx.obj = {"config": config, "json": json_output}


from . import commands as _commands  # noqa: E402,F401


def main() -> None:
    app()
