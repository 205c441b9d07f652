from typing import Iterable, Iterator, Sequence

import typer

from urlcanon.config import ConfigError, NormalizerConfig
from urlcanon.errors import RegexParseError
from urlcanon.query import RemovalRules, compile_removal_rules


def wants_json(ctx: typer.Context) -> bool:
    return bool(ctx.obj and ctx.obj.get("json"))


def context_config(ctx: typer.Context) -> NormalizerConfig:
    if ctx.obj and ctx.obj.get("config") is not None:
        return ctx.obj["config"]
    return NormalizerConfig()


def resolve_patterns(
    ctx: typer.Context,
    remove: Sequence[str],
    presets: Sequence[str],
) -> list[str]:
    """Merge config, preset and command-line patterns into one list."""
    config = context_config(ctx)
    try:
        return config.effective_patterns(list(remove), list(presets))
    except ConfigError as exc:
        raise typer.BadParameter(str(exc), param_hint="--preset") from exc


def compile_or_exit(patterns: Sequence[str]) -> RemovalRules:
    try:
        return compile_removal_rules(patterns)
    except RegexParseError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=2) from exc


def iter_url_lines(lines: Iterable[str]) -> Iterator[str]:
    """Yield stripped URLs, skipping blank lines and ``#`` comments."""
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        yield stripped


def render_table(rows: Sequence[dict], headers: Sequence[str], keys: Sequence[str]) -> None:
    widths = [
        max(len(headers[i]), max(len(row[keys[i]]) for row in rows))
        for i in range(len(headers))
    ]
    header_line = "  ".join(headers[i].ljust(widths[i]) for i in range(len(headers)))
    typer.echo(header_line)
    typer.echo("  ".join("-" * width for width in widths))
    for row in rows:
        typer.echo(
            "  ".join(row[keys[i]].ljust(widths[i]) for i in range(len(headers)))
        )
