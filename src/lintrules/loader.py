"""Loader: discover rule documents under a root directory and read them."""

from __future__ import annotations

import fnmatch
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from lintrules.models import WARNING, Diagnostic

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: tuple[str, ...] = (".md", ".mdc")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class LoadError(OSError):
    """Raised when the lint root is missing or cannot be listed."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceFile:
    """Raw text of one discovered rule document."""

    path: str  # POSIX path relative to the root
    text: str


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def normalize_extensions(extensions: Iterable[str]) -> tuple[str, ...]:
    """Return lower-cased, dot-prefixed, de-duplicated extensions.

    ``"md"``, ``".md"`` and ``".MD"`` all normalise to ``".md"``.
    """
    seen: list[str] = []
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        if not ext.startswith("."):
            ext = f".{ext}"
        if ext not in seen:
            seen.append(ext)
    return tuple(seen)


def _is_excluded(rel_path: str, exclude: tuple[str, ...]) -> bool:
    return any(fnmatch.fnmatch(rel_path, pattern) for pattern in exclude)


def discover_files(
    root: Path,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    *,
    exclude: Iterable[str] = (),
) -> list[Path]:
    """Return every matching file under *root*, sorted by relative path.

    Hidden directories and files (names starting with ``.``) are skipped.

    Raises
    ------
    LoadError
        When *root* does not exist, is not a directory, or cannot be listed.
    """
    if not root.exists():
        msg = f"root directory does not exist: {root}"
        raise LoadError(msg)
    if not root.is_dir():
        msg = f"root is not a directory: {root}"
        raise LoadError(msg)

    suffixes = normalize_extensions(extensions)
    patterns = tuple(exclude)
    found: list[Path] = []

    try:
        # rglob skips directories it cannot list, the root included.
        with os.scandir(root) as entries:
            next(entries, None)
        candidates = sorted(root.rglob("*"))
    except OSError as exc:
        msg = f"cannot list root directory {root}: {exc}"
        raise LoadError(msg) from exc

    for path in candidates:
        rel = path.relative_to(root)
        if any(part.startswith(".") for part in rel.parts):
            continue
        if path.suffix.lower() not in suffixes or not path.is_file():
            continue
        if patterns and _is_excluded(rel.as_posix(), patterns):
            logger.debug("Excluded %s", rel.as_posix())
            continue
        found.append(path)

    logger.debug("Discovered %d documents under %s", len(found), root)
    return found


def load_documents(
    root: Path,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    *,
    exclude: Iterable[str] = (),
) -> Iterator[SourceFile | Diagnostic]:
    """Discover documents under *root* and lazily read each of them.

    The root is checked eagerly, so :class:`LoadError` surfaces at call time
    rather than on first iteration.  Files that cannot be read or decoded are
    yielded as a ``warning`` :class:`Diagnostic` instead of a
    :class:`SourceFile`.
    """
    paths = discover_files(root, extensions, exclude=exclude)
    return _read_all(root, paths)


def _read_all(root: Path, paths: list[Path]) -> Iterator[SourceFile | Diagnostic]:
    for path in paths:
        rel_path = path.relative_to(root).as_posix()
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cannot read file: %s (%s)", rel_path, exc)
            yield Diagnostic(
                path=rel_path,
                line=0,
                severity=WARNING,
                message=f"file skipped, cannot be read: {exc}",
                rule="unreadable-file",
            )
            continue
        yield SourceFile(path=rel_path, text=text)
