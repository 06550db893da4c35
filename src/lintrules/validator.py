"""Validator: structural rule checks applied to a parsed document."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable
from urllib.parse import unquote

from lintrules.config import OFF, LintConfig
from lintrules.models import ERROR, WARNING, Diagnostic, Document

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

logger = logging.getLogger(__name__)

# Targets with a URI scheme ("https:", "mailto:") are never resolved locally.
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")
_SLUG_STRIP_RE = re.compile(r"[^\w\- ]")

Finding = tuple[int, str]  # (line, message)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleContext:
    """Read-only inputs shared by every rule check."""

    config: LintConfig
    root: Path | None = None


@dataclass(frozen=True)
class Rule:
    """A named structural check with a default severity."""

    name: str
    description: str
    severity: str
    check: Callable[[Document, RuleContext], Iterator[Finding]]
    enabled: bool = True


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def slugify(title: str) -> str:
    """Return the GitHub-style anchor for a heading title."""
    slug = _SLUG_STRIP_RE.sub("", title.strip().lower())
    return slug.replace(" ", "-")


def heading_anchors(document: Document) -> set[str]:
    """Collect the anchors of every heading, numbering duplicates ``-1``, ``-2``."""
    anchors: set[str] = set()
    counts: dict[str, int] = {}
    for section in document.headings:
        slug = slugify(section.title)
        seen = counts.get(slug, 0)
        anchors.add(slug if seen == 0 else f"{slug}-{seen}")
        counts[slug] = seen + 1
    return anchors


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def check_code_fence_language(document: Document, ctx: RuleContext) -> Iterator[Finding]:
    for block in document.code_blocks:
        if not block.language:
            yield block.line, "code block has no language tag"


def check_top_level_heading(document: Document, ctx: RuleContext) -> Iterator[Finding]:
    headings = document.headings
    if not headings:
        yield 1, "missing top-level heading"
        return
    if ctx.config.require_h1 and not any(s.level == 1 for s in headings):
        yield headings[0].line, "missing level-1 heading"


def check_heading_increment(document: Document, ctx: RuleContext) -> Iterator[Finding]:
    previous: int | None = None
    for section in document.headings:
        if previous is not None and section.level > previous + 1:
            yield (
                section.line,
                f"heading level jumps from h{previous} to h{section.level}",
            )
        previous = section.level


def check_internal_links(document: Document, ctx: RuleContext) -> Iterator[Finding]:
    anchors: set[str] | None = None
    for link in document.links:
        target = link.target
        if _SCHEME_RE.match(target) or target.startswith("//"):
            continue

        path_part, _, fragment = target.partition("#")
        path_part = unquote(path_part.split("?", 1)[0])

        if not path_part:
            if anchors is None:
                anchors = heading_anchors(document)
            if fragment and unquote(fragment).lower() not in anchors:
                yield link.line, f"broken anchor '#{fragment}'"
            continue

        if ctx.root is None:
            continue
        if path_part.startswith("/"):
            resolved = ctx.root / path_part.lstrip("/")
        else:
            resolved = (ctx.root / document.path).parent / path_part
        if not resolved.exists():
            yield link.line, f"broken link '{target}'"


def check_required_sections(document: Document, ctx: RuleContext) -> Iterator[Finding]:
    titles = {s.title.strip().lower() for s in document.headings}
    for required in ctx.config.required_sections:
        if required.strip().lower() not in titles:
            yield 1, f"missing required section '{required}'"


def check_required_metadata(document: Document, ctx: RuleContext) -> Iterator[Finding]:
    for key in ctx.config.required_metadata.get(document.suffix, ()):
        if key not in document.metadata:
            yield 1, f"missing front-matter key '{key}'"


def check_trailing_whitespace(document: Document, ctx: RuleContext) -> Iterator[Finding]:
    for lineno, line in enumerate(document.text.splitlines(), start=1):
        if line != line.rstrip(" \t"):
            yield lineno, "trailing whitespace"


def check_final_newline(document: Document, ctx: RuleContext) -> Iterator[Finding]:
    text = document.text
    if text and not text.endswith("\n"):
        yield len(text.splitlines()), "missing newline at end of file"


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

RULES: tuple[Rule, ...] = (
    Rule(
        "code-fence-language",
        "Fenced code blocks declare a language",
        ERROR,
        check_code_fence_language,
    ),
    Rule(
        "top-level-heading",
        "Document contains at least one heading",
        ERROR,
        check_top_level_heading,
    ),
    Rule(
        "heading-increment",
        "Heading levels descend one step at a time",
        WARNING,
        check_heading_increment,
    ),
    Rule(
        "internal-links",
        "Relative links and anchors resolve",
        ERROR,
        check_internal_links,
    ),
    Rule(
        "required-sections",
        "Configured section titles are present",
        ERROR,
        check_required_sections,
    ),
    Rule(
        "required-metadata",
        "Configured front-matter keys are present",
        ERROR,
        check_required_metadata,
    ),
    Rule(
        "trailing-whitespace",
        "No trailing spaces or tabs",
        WARNING,
        check_trailing_whitespace,
        enabled=False,
    ),
    Rule(
        "final-newline",
        "File ends with a newline",
        WARNING,
        check_final_newline,
        enabled=False,
    ),
)

RULE_NAMES: frozenset[str] = frozenset(rule.name for rule in RULES)


def effective_severity(rule: Rule, config: LintConfig) -> str | None:
    """Return the severity *rule* runs at, or ``None`` when it is disabled."""
    override = config.severities.get(rule.name)
    if override == OFF:
        return None
    if override is not None:
        return override
    return rule.severity if rule.enabled else None


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def validate(
    document: Document,
    *,
    config: LintConfig | None = None,
    root: Path | None = None,
) -> list[Diagnostic]:
    """Apply every enabled rule to *document* and return its diagnostics.

    Never raises: a check that fails unexpectedly is logged and reported as
    an ``error`` diagnostic of the ``internal`` rule.  Diagnostics are sorted
    by line, then rule name.
    """
    if config is None:
        config = LintConfig()
    ctx = RuleContext(config=config, root=root)
    diagnostics: list[Diagnostic] = []

    for rule in RULES:
        severity = effective_severity(rule, config)
        if severity is None:
            continue
        try:
            findings = list(rule.check(document, ctx))
        except Exception as exc:
            logger.warning("Rule %s failed on %s: %s", rule.name, document.path, exc)
            diagnostics.append(
                Diagnostic(
                    path=document.path,
                    line=0,
                    severity=ERROR,
                    message=f"rule '{rule.name}' failed: {exc}",
                    rule="internal",
                )
            )
            continue
        diagnostics.extend(
            Diagnostic(
                path=document.path,
                line=line,
                severity=severity,
                message=message,
                rule=rule.name,
            )
            for line, message in findings
        )

    diagnostics.sort(key=lambda d: (d.line, d.rule, d.message))
    return diagnostics
