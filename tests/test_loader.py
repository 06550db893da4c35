"""Tests for lintrules.loader — discovery and lazy reading of rule files."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from lintrules.loader import (
    DEFAULT_EXTENSIONS,
    LoadError,
    SourceFile,
    discover_files,
    load_documents,
    normalize_extensions,
)
from lintrules.models import WARNING, Diagnostic

if TYPE_CHECKING:
    from pathlib import Path


class TestNormalizeExtensions:
    def test_adds_dot_and_lowercases(self) -> None:
        assert normalize_extensions(["md", ".MDC", " txt "]) == (".md", ".mdc", ".txt")

    def test_deduplicates_and_skips_blank(self) -> None:
        assert normalize_extensions(["md", ".md", ""]) == (".md",)

    def test_defaults(self) -> None:
        assert DEFAULT_EXTENSIONS == (".md", ".mdc")


class TestDiscoverFiles:
    def test_finds_default_extensions(self, rules_root: Path) -> None:
        found = [p.relative_to(rules_root).as_posix() for p in discover_files(rules_root)]
        assert found == ["rules/python.md", "rules/testing.mdc"]

    def test_extension_filter(self, rules_root: Path) -> None:
        found = [p.name for p in discover_files(rules_root, ["txt"])]
        assert found == ["notes.txt"]

    def test_uppercase_suffix_matches(self, tmp_path: Path) -> None:
        (tmp_path / "README.MD").write_text("# R\n")
        assert [p.name for p in discover_files(tmp_path)] == ["README.MD"]

    def test_skips_hidden_directories(self, rules_root: Path) -> None:
        hidden = rules_root / ".git"
        hidden.mkdir()
        (hidden / "notes.md").write_text("# hidden\n")
        (rules_root / "node.md").mkdir()  # directory with a matching suffix
        found = [p.relative_to(rules_root).as_posix() for p in discover_files(rules_root)]
        assert ".git/notes.md" not in found
        assert "node.md" not in found

    def test_exclude_globs(self, rules_root: Path) -> None:
        found = discover_files(rules_root, exclude=["rules/*.mdc"])
        assert [p.name for p in found] == ["python.md"]

    def test_missing_root(self, tmp_path: Path) -> None:
        with pytest.raises(LoadError, match="does not exist"):
            discover_files(tmp_path / "nope")

    def test_root_is_file(self, tmp_path: Path) -> None:
        file_path = tmp_path / "a.md"
        file_path.write_text("# A\n")
        with pytest.raises(LoadError, match="not a directory"):
            discover_files(file_path)

    def test_load_error_is_ioerror(self) -> None:
        assert issubclass(LoadError, IOError)

    def test_unreadable_root(self, unreadable_root: Path) -> None:
        with pytest.raises(LoadError, match="cannot list root directory"):
            discover_files(unreadable_root)


class TestLoadDocuments:
    def test_yields_source_files(self, rules_root: Path) -> None:
        items = list(load_documents(rules_root))
        assert all(isinstance(item, SourceFile) for item in items)
        assert [item.path for item in items] == ["rules/python.md", "rules/testing.mdc"]
        assert items[0].text.startswith("# Python")

    def test_missing_root_fails_before_iteration(self, tmp_path: Path) -> None:
        with pytest.raises(LoadError):
            load_documents(tmp_path / "missing")

    def test_is_lazy(self, rules_root: Path) -> None:
        items = load_documents(rules_root)
        (rules_root / "rules" / "python.md").write_text("# Changed\n")
        first = next(iter(items))
        assert isinstance(first, SourceFile)
        assert first.text == "# Changed\n"

    def test_undecodable_file_becomes_warning(self, tmp_path: Path) -> None:
        (tmp_path / "bad.md").write_bytes(b"# Title\n\xff\xfe\xfa\n")
        (tmp_path / "good.md").write_text("# Good\n")
        items = list(load_documents(tmp_path))
        assert len(items) == 2
        bad, good = items
        assert isinstance(bad, Diagnostic)
        assert bad.path == "bad.md"
        assert bad.severity == WARNING
        assert bad.rule == "unreadable-file"
        assert isinstance(good, SourceFile)
