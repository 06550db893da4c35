"""Markdown parser: front matter, heading sections, fenced code blocks, links."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import yaml

from lintrules.models import CodeBlock, Document, Link, Section

# ATX heading: up to 3 spaces, 1-6 hashes, then whitespace or end of line.
_HEADING_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?[ \t]*$")
# Optional closing sequence of hashes: "## Title ##".
_CLOSING_HASHES_RE = re.compile(r"(?:^|[ \t]+)#+$")
_FENCE_OPEN_RE = re.compile(r"^ {0,3}(`{3,})([^`]*)$")
_FENCE_CLOSE_RE = re.compile(r"^ {0,3}(`{3,})[ \t]*$")
# Inline link or image: [text](target "title") / ![alt](<target>)
_LINK_RE = re.compile(r"!?\[[^\]]*\]\(\s*<?([^)\s>]+)>?(?:\s+[\"'(][^)]*)?\s*\)")
_INLINE_CODE_RE = re.compile(r"(`+).*?\1")

_FRONT_MATTER_DELIMITER = "---"
# Cursor rule files always open with a front matter block.
_STRICT_FRONT_MATTER_SUFFIX = ".mdc"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ParseError(Exception):
    """Raised when a document's structure cannot be parsed.

    Only an unterminated code fence or malformed front matter raise this;
    everything else is left to the validator.
    """

    def __init__(self, message: str, line: int) -> None:
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self) -> str:
        return f"line {self.line}: {self.message}"


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


@dataclass
class _OpenFence:
    ticks: int
    language: str
    line: int
    content: list[str] = field(default_factory=list)


@dataclass
class _SectionBuilder:
    level: int
    title: str
    line: int
    body: list[str] = field(default_factory=list)
    code_blocks: list[CodeBlock] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (
            any(line.strip() for line in self.body) or self.code_blocks or self.links
        )

    def build(self) -> Section:
        return Section(
            level=self.level,
            title=self.title,
            line=self.line,
            body="\n".join(self.body).strip(),
            code_blocks=tuple(self.code_blocks),
            links=tuple(self.links),
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_heading(line: str) -> tuple[int, str] | None:
    """Return ``(level, title)`` if *line* is an ATX heading, else ``None``."""
    match = _HEADING_RE.match(line)
    if match is None:
        return None
    title = (match.group(2) or "").strip()
    title = _CLOSING_HASHES_RE.sub("", title).strip()
    return len(match.group(1)), title


def extract_links(line: str, lineno: int) -> list[Link]:
    """Find inline link targets on *line*, ignoring inline code spans."""
    visible = _INLINE_CODE_RE.sub("", line)
    return [Link(target=m.group(1), line=lineno) for m in _LINK_RE.finditer(visible)]


def split_front_matter(
    text: str, *, strict: bool = False
) -> tuple[dict[str, Any], list[str], int]:
    """Split leading YAML front matter from *text*.

    Returns ``(metadata, remaining_lines, line_offset)`` where
    *line_offset* is the number of lines consumed by the front matter block.

    A leading ``---`` is also a Markdown thematic break.  Unless *strict* is
    set, a block that is never closed, is not valid YAML, or does not hold a
    mapping is left in place as body text.  A block holding only YAML
    comments is body text too, so ``---`` / ``# Title`` / ``---`` keeps its
    heading.

    Raises
    ------
    ParseError
        With *strict*, when the block is never closed, is not valid YAML, or
        is not a mapping.
    """
    lines = text.splitlines()
    if not lines or lines[0].rstrip() != _FRONT_MATTER_DELIMITER:
        return {}, lines, 0

    end = None
    for idx in range(1, len(lines)):
        if lines[idx].rstrip() == _FRONT_MATTER_DELIMITER:
            end = idx
            break
    if end is None:
        if strict:
            raise ParseError("unterminated front matter block", 1)
        return {}, lines, 0

    block = lines[1:end]
    try:
        data = yaml.safe_load("\n".join(block))
    except yaml.YAMLError as exc:
        if not strict:
            return {}, lines, 0
        mark = getattr(exc, "problem_mark", None)
        line = 2 + mark.line if mark is not None else 1
        raise ParseError(f"invalid front matter: {exc}", line) from exc

    if data is None:
        if not strict and any(line.strip() for line in block):
            return {}, lines, 0
        data = {}
    if not isinstance(data, dict):
        if not strict:
            return {}, lines, 0
        raise ParseError("front matter must be a mapping", 1)

    return data, lines[end + 1 :], end + 1


def parse_sections(lines: list[str], *, line_offset: int = 0) -> list[Section]:
    """Split Markdown *lines* into sections by ATX headings.

    Heading markers inside fenced code blocks are treated as code.  Text
    before the first heading becomes a level-0 preamble section, kept only
    when it has content.  Line numbers are 1-based and shifted by
    *line_offset*.

    Raises
    ------
    ParseError
        When a code fence is still open at end of input.
    """
    sections: list[Section] = []
    current = _SectionBuilder(level=0, title="", line=line_offset + 1)
    fence: _OpenFence | None = None

    for idx, line in enumerate(lines):
        lineno = line_offset + idx + 1

        if fence is not None:
            close = _FENCE_CLOSE_RE.match(line)
            if close is not None and len(close.group(1)) >= fence.ticks:
                current.code_blocks.append(
                    CodeBlock(
                        language=fence.language,
                        content="\n".join(fence.content),
                        line=fence.line,
                    )
                )
                fence = None
            else:
                fence.content.append(line)
            continue

        opening = _FENCE_OPEN_RE.match(line)
        if opening is not None:
            info = opening.group(2).strip()
            language = info.split()[0] if info else ""
            fence = _OpenFence(ticks=len(opening.group(1)), language=language, line=lineno)
            continue

        heading = parse_heading(line)
        if heading is not None:
            if not (current.level == 0 and current.is_empty()):
                sections.append(current.build())
            level, title = heading
            current = _SectionBuilder(level=level, title=title, line=lineno)
            current.links.extend(extract_links(line, lineno))
            continue

        current.body.append(line)
        current.links.extend(extract_links(line, lineno))

    if fence is not None:
        raise ParseError("unterminated code fence", fence.line)

    if not (current.level == 0 and current.is_empty()):
        sections.append(current.build())

    return sections


def parse_document(path: str, text: str) -> Document:
    """Parse raw *text* into an immutable :class:`Document`.

    Raises
    ------
    ParseError
        On an unterminated code fence, or on malformed front matter in an
        ``.mdc`` file, where front matter is mandatory syntax.
    """
    strict = path.lower().endswith(_STRICT_FRONT_MATTER_SUFFIX)
    metadata, lines, offset = split_front_matter(text, strict=strict)
    sections = parse_sections(lines, line_offset=offset)
    return Document(
        path=path,
        text=text,
        sections=tuple(sections),
        metadata=MappingProxyType(metadata),
    )
