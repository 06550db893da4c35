"""lintrules CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from lintrules import __version__

_FORMATS = ("text", "json", "porcelain", "rich")


def _configure_logging(*, verbose: bool) -> None:
    """Send DEBUG records to stderr when ``--verbose`` is given.

    Without it, warnings reach stderr through :mod:`logging`'s last-resort
    handler.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
            force=True,
        )


@click.command()
@click.version_option(version=__version__, prog_name="lintrules")
@click.argument(
    "root",
    type=click.Path(file_okay=False, path_type=Path),
)
@click.option(
    "--ext",
    "extensions",
    multiple=True,
    help="File extension treated as a rule document (repeatable; default: .md, .mdc).",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(_FORMATS),
    default="text",
    show_default=True,
    help="Report output format.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: <root>/.lintrules.yml if present).",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=None,
    help="Parse and validate documents on N threads.",
)
@click.option(
    "--fail-on-warn",
    is_flag=True,
    default=False,
    help="Exit 1 on warnings as well as errors.",
)
@click.option("--verbose", "-v", is_flag=True, help="Debug logging on stderr.")
def main(
    *,
    root: Path,
    extensions: tuple[str, ...],
    fmt: str,
    config_path: Path | None,
    workers: int | None,
    fail_on_warn: bool,
    verbose: bool,
) -> None:
    """Check Markdown rule files under ROOT for structural problems.

    Exit codes: 0 = no errors, 1 = errors found (or warnings with
    --fail-on-warn), 2 = fatal I/O or configuration error.
    """
    from lintrules.config import ConfigError, load_config
    from lintrules.linter import lint as run_lint
    from lintrules.loader import LoadError
    from lintrules.reporter import EXIT_FATAL, format_json, format_porcelain, format_text
    from lintrules.validator import RULE_NAMES

    _configure_logging(verbose=verbose)

    try:
        config = load_config(root, RULE_NAMES, config_path=config_path)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_FATAL)

    config = config.with_overrides(
        extensions=extensions or None,
        workers=workers,
        fail_on_warn=fail_on_warn or None,
    )

    try:
        report = run_lint(root, config=config)
    except LoadError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_FATAL)

    if fmt == "rich":
        from rich.console import Console

        from lintrules.reporter import render_rich

        render_rich(report, Console())
    else:
        formatters = {
            "text": format_text,
            "json": format_json,
            "porcelain": format_porcelain,
        }
        output = formatters[fmt](report)
        if output:
            click.echo(output)

    if report.exit_code:
        sys.exit(report.exit_code)
