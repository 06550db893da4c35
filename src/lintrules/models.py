"""Core data model: documents, sections, code blocks, links, diagnostics."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ERROR = "error"
WARNING = "warning"
SEVERITIES: frozenset[str] = frozenset({ERROR, WARNING})

# Errors sort before warnings in every report.
SEVERITY_ORDER: dict[str, int] = {ERROR: 0, WARNING: 1}


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CodeBlock:
    """A fenced code region."""

    language: str
    content: str
    line: int


@dataclass(frozen=True)
class Link:
    """An inline Markdown link or image target."""

    target: str
    line: int


@dataclass(frozen=True)
class Section:
    """A heading and the body that follows it.

    ``level`` is 1-6 for real headings.  Text before the first heading is
    collected into a preamble section with ``level == 0`` and an empty title.
    """

    level: int
    title: str
    line: int
    body: str = ""
    code_blocks: tuple[CodeBlock, ...] = ()
    links: tuple[Link, ...] = ()

    @property
    def is_preamble(self) -> bool:
        return self.level == 0


@dataclass(frozen=True)
class Document:
    """One parsed rule file, keyed by its path relative to the lint root."""

    path: str
    text: str
    sections: tuple[Section, ...] = ()
    # Read-only view of the YAML front matter, empty when absent.
    metadata: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), hash=False, compare=False
    )

    @property
    def headings(self) -> list[Section]:
        """Sections that carry a real heading (preamble excluded)."""
        return [s for s in self.sections if not s.is_preamble]

    @property
    def code_blocks(self) -> list[CodeBlock]:
        return [block for s in self.sections for block in s.code_blocks]

    @property
    def links(self) -> list[Link]:
        return [link for s in self.sections for link in s.links]

    @property
    def suffix(self) -> str:
        """Lower-cased file extension including the dot (``".md"``)."""
        name = self.path.rsplit("/", 1)[-1]
        if "." not in name:
            return ""
        return "." + name.rsplit(".", 1)[-1].lower()


@dataclass(frozen=True)
class Diagnostic:
    """A single validation finding attributed to one document."""

    path: str
    line: int
    severity: str
    message: str
    rule: str = ""

    def sort_key(self) -> tuple[str, int, int, str, str]:
        return (
            self.path,
            SEVERITY_ORDER.get(self.severity, len(SEVERITY_ORDER)),
            self.line,
            self.rule,
            self.message,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "line": self.line,
            "severity": self.severity,
            "rule": self.rule,
            "message": self.message,
        }
