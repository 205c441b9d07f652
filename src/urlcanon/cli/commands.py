import json
import sys
from pathlib import Path
from typing import NoReturn

import typer
from loguru import logger

from urlcanon.errors import InternalError, UrlEncodeError, UrlParseError
from urlcanon.normalizer import UrlNormalizer

from . import app
from .utils import compile_or_exit, iter_url_lines, render_table, resolve_patterns, wants_json

_REMOVE_HELP = "Regex matched against decoded query keys to drop (repeatable)"
_PRESET_HELP = "Named pattern set to apply, e.g. 'tracking' (repeatable)"


def _fail_unexpected(url: str, exc: Exception) -> NoReturn:
    logger.opt(exception=exc).error("Failed to normalize {url}", url=url)
    raise typer.Exit(code=1) from exc


@app.command("normalize")
def normalize(
    ctx: typer.Context,
    urls: list[str] = typer.Argument(..., help="URLs to normalize"),
    remove: list[str] = typer.Option([], "--remove", "-r", help=_REMOVE_HELP),
    preset: list[str] = typer.Option([], "--preset", "-p", help=_PRESET_HELP),
) -> None:
    """Print the canonical form of each URL."""
    rules = compile_or_exit(resolve_patterns(ctx, remove, preset))

    results: list[dict[str, str]] = []
    for url in urls:
        try:
            canonical = UrlNormalizer(url).normalize(rules=rules)
        except UrlParseError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(code=2) from exc
        except (InternalError, UrlEncodeError) as exc:
            _fail_unexpected(url, exc)
        results.append({"url": url, "canonical": canonical})

    if wants_json(ctx):
        typer.echo(json.dumps(results))
        return
    for row in results:
        typer.echo(row["canonical"])


@app.command("dedupe")
def dedupe(
    ctx: typer.Context,
    source: str = typer.Argument("-", help="File with one URL per line, '-' for stdin"),
    remove: list[str] = typer.Option([], "--remove", "-r", help=_REMOVE_HELP),
    preset: list[str] = typer.Option([], "--preset", "-p", help=_PRESET_HELP),
    keep_invalid: bool = typer.Option(
        False,
        "--keep-invalid",
        help="Keep unparsable lines verbatim instead of failing",
    ),
    counts: bool = typer.Option(
        False,
        "--counts",
        help="Show how many inputs collapsed into each canonical URL",
    ),
) -> None:
    """Collapse a list of URLs to their unique canonical forms, in first-seen order."""
    rules = compile_or_exit(resolve_patterns(ctx, remove, preset))

    if source == "-":
        lines = sys.stdin.read().splitlines()
    else:
        try:
            lines = Path(source).read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            raise typer.BadParameter(str(exc), param_hint="SOURCE") from exc

    groups: dict[str, list[str]] = {}
    for lineno, url in enumerate(iter_url_lines(lines), start=1):
        try:
            canonical = UrlNormalizer(url).normalize(rules=rules)
        except UrlParseError as exc:
            if not keep_invalid:
                typer.echo(f"Error: entry {lineno}: {exc}", err=True)
                raise typer.Exit(code=2) from exc
            logger.warning("Keeping invalid URL verbatim: {url}", url=url)
            canonical = url
        except (InternalError, UrlEncodeError) as exc:
            _fail_unexpected(url, exc)
        groups.setdefault(canonical, []).append(url)

    logger.debug(
        "Collapsed {total} URLs into {unique}",
        total=sum(len(sources) for sources in groups.values()),
        unique=len(groups),
    )

    if wants_json(ctx):
        typer.echo(json.dumps(groups))
        return
    if not groups:
        typer.echo("No URLs found", err=True)
        return
    if counts:
        rows = [
            {"canonical": canonical, "count": str(len(sources))}
            for canonical, sources in groups.items()
        ]
        render_table(rows, ["Canonical URL", "Count"], ["canonical", "count"])
        return
    for canonical in groups:
        typer.echo(canonical)
