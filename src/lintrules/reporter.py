"""Reporter: aggregate diagnostics into a summary and format it."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from lintrules.models import ERROR, WARNING, Diagnostic

if TYPE_CHECKING:
    from collections.abc import Iterable

    from rich.console import Console

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_FATAL = 2


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class FileResult:
    """Diagnostics attributed to one document."""

    path: str
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == WARNING]


@dataclass
class LintReport:
    """Summary of a lint run."""

    files: list[FileResult] = field(default_factory=list)
    fail_on_warn: bool = False

    @property
    def documents_count(self) -> int:
        return len(self.files)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [d for f in self.files for d in f.diagnostics]

    @property
    def error_count(self) -> int:
        return sum(len(f.errors) for f in self.files)

    @property
    def warning_count(self) -> int:
        return sum(len(f.warnings) for f in self.files)

    @property
    def exit_code(self) -> int:
        """``1`` if any error (or, with *fail_on_warn*, any warning), else ``0``."""
        if self.error_count:
            return EXIT_FAILED
        if self.fail_on_warn and self.warning_count:
            return EXIT_FAILED
        return EXIT_OK


def build_report(
    results: Iterable[tuple[str, list[Diagnostic]]],
    *,
    fail_on_warn: bool = False,
) -> LintReport:
    """Reduce ``(path, diagnostics)`` pairs into a :class:`LintReport`.

    Pairs with the same path are merged.  Files are ordered by path and
    diagnostics by severity (errors first), then line, so the report does not
    depend on the order results arrive in.
    """
    by_path: dict[str, list[Diagnostic]] = {}
    for path, diagnostics in results:
        by_path.setdefault(path, []).extend(diagnostics)

    files = [
        FileResult(path=path, diagnostics=sorted(by_path[path], key=Diagnostic.sort_key))
        for path in sorted(by_path)
    ]
    return LintReport(files=files, fail_on_warn=fail_on_warn)


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def format_summary(report: LintReport) -> str:
    checked = f"{_plural(report.documents_count, 'document')} checked"
    if not report.error_count and not report.warning_count:
        return f"✓ {checked}, no problems found"
    return (
        f"{checked}: {_plural(report.error_count, 'error')}, "
        f"{_plural(report.warning_count, 'warning')}"
    )


def format_text(report: LintReport) -> str:
    """Format a LintReport as plain human-readable text.

    Example output::

        ✗ rules/python.md
          error    line 12  code block has no language tag [code-fence-language]
          warning  line 30  heading level jumps from h2 to h4 [heading-increment]

        2 documents checked: 1 error, 1 warning
    """
    lines: list[str] = []

    for file_result in report.files:
        if not file_result.diagnostics:
            continue
        marker = "✗" if file_result.errors else "!"
        lines.append(f"{marker} {file_result.path}")
        for d in file_result.diagnostics:
            lines.append(f"  {d.severity:<8} line {d.line:<4} {d.message} [{d.rule}]")
        lines.append("")

    lines.append(format_summary(report))
    return "\n".join(lines)


def format_json(report: LintReport) -> str:
    """Format a LintReport as structured JSON.

    Returns a JSON string with a ``files`` array and a ``summary`` object.
    """
    output: dict[str, object] = {
        "files": [
            {
                "path": f.path,
                "diagnostics": [d.to_dict() for d in f.diagnostics],
            }
            for f in report.files
        ],
        "summary": {
            "documents": report.documents_count,
            "errors": report.error_count,
            "warnings": report.warning_count,
            "exit_code": report.exit_code,
        },
    }
    return json.dumps(output, indent=2, ensure_ascii=False)


def format_porcelain(report: LintReport) -> str:
    """Format a LintReport as one line per diagnostic.

    Format: ``path:line:severity:rule:message``.  Returns an empty string
    when there are no diagnostics.
    """
    return "\n".join(
        f"{d.path}:{d.line}:{d.severity}:{d.rule}:{d.message}" for d in report.diagnostics
    )


def render_rich(report: LintReport, console: Console) -> None:
    """Print a LintReport to *console* as a colour table."""
    from rich.markup import escape
    from rich.table import Table

    if report.diagnostics:
        table = Table(show_header=True, header_style="bold")
        table.add_column("File")
        table.add_column("Line", justify="right")
        table.add_column("Severity")
        table.add_column("Rule", style="dim")
        table.add_column("Message")
        for d in report.diagnostics:
            style = "red" if d.severity == ERROR else "yellow"
            table.add_row(
                escape(d.path),
                str(d.line),
                f"[{style}]{d.severity}[/{style}]",
                d.rule,
                escape(d.message),
            )
        console.print(table)

    summary_style = "red" if report.exit_code else "green"
    console.print(f"[{summary_style}]{format_summary(report)}[/{summary_style}]")
