"""Linter orchestrator: load, parse, validate, and report on a directory of rule files."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from lintrules.config import LintConfig
from lintrules.loader import SourceFile, load_documents
from lintrules.models import ERROR, Diagnostic
from lintrules.parser import ParseError, parse_document
from lintrules.reporter import LintReport, build_report
from lintrules.validator import validate

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


def check_source(
    source: SourceFile,
    *,
    config: LintConfig,
    root: Path | None = None,
) -> tuple[str, list[Diagnostic]]:
    """Parse and validate one source file.

    A :class:`ParseError` is demoted to a single ``error`` diagnostic of the
    ``parse`` rule, so one malformed file never aborts the run.
    """
    try:
        document = parse_document(source.path, source.text)
    except ParseError as exc:
        logger.debug("Parse error in %s: %s", source.path, exc)
        return source.path, [
            Diagnostic(
                path=source.path,
                line=exc.line,
                severity=ERROR,
                message=exc.message,
                rule="parse",
            )
        ]
    return source.path, validate(document, config=config, root=root)


def lint(
    root: Path,
    *,
    config: LintConfig | None = None,
    workers: int | None = None,
) -> LintReport:
    """Run the full pipeline over *root*.

    Parameters
    ----------
    root:
        Directory to scan for rule documents.
    config:
        Effective settings.  Defaults to :class:`LintConfig` defaults.
    workers:
        Number of threads used to parse and validate documents.  Overrides
        ``config.workers`` when given.  Results are joined in path order
        before reporting, so output does not depend on this value.

    Returns
    -------
    LintReport
        Per-file diagnostics and totals.

    Raises
    ------
    LoadError
        When *root* is missing or cannot be listed.
    """
    if config is None:
        config = LintConfig()
    if workers is None:
        workers = config.workers

    items = load_documents(root, config.extensions, exclude=config.exclude)

    def _check(item: SourceFile | Diagnostic) -> tuple[str, list[Diagnostic]]:
        # Unreadable files arrive from the loader as ready-made diagnostics.
        if isinstance(item, Diagnostic):
            return item.path, [item]
        return check_source(item, config=config, root=root)

    if workers > 1:
        logger.debug("Checking documents on %d workers", workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(_check, items))
    else:
        results = [_check(item) for item in items]

    return build_report(results, fail_on_warn=config.fail_on_warn)
