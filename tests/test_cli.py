"""Tests for the `lintrules` CLI command."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from click.testing import CliRunner

from lintrules import __version__
from lintrules.cli import main

if TYPE_CHECKING:
    from pathlib import Path


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _root_with_error(tmp_path: Path) -> Path:
    """Create a root holding one clean and one untagged-fence document."""
    root = tmp_path / "rules"
    root.mkdir()
    (root / "clean.md").write_text("## Title\n\n```bash\nls\n```\n")
    (root / "bad.md").write_text("# Bad\n\n```\nno tag\n```\n")
    return root


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestLintrulesCommand:
    def test_clean_exit_zero(self, rules_root: Path) -> None:
        result = CliRunner().invoke(main, [str(rules_root)])
        assert result.exit_code == 0, result.output
        assert "2 documents checked, no problems found" in result.output

    def test_errors_exit_one(self, tmp_path: Path) -> None:
        root = _root_with_error(tmp_path)
        result = CliRunner().invoke(main, [str(root)])
        assert result.exit_code == 1
        assert "bad.md" in result.output
        assert "code block has no language tag" in result.output

    def test_missing_root_exit_two_no_report(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(main, [str(tmp_path / "nope")])
        assert result.exit_code == 2
        assert "documents checked" not in result.output
        assert "does not exist" in result.output

    def test_unreadable_root_exit_two(self, unreadable_root: Path) -> None:
        result = CliRunner().invoke(main, [str(unreadable_root)])
        assert result.exit_code == 2
        assert "documents checked" not in result.output
        assert "cannot list root directory" in result.output

    def test_unknown_config_key_exit_two(self, tmp_path: Path) -> None:
        root = _root_with_error(tmp_path)
        (root / ".lintrules.yml").write_text("exlude: ['vendor/*']\n")
        result = CliRunner().invoke(main, [str(root)])
        assert result.exit_code == 2
        assert "unknown config key(s): exlude" in result.output

    def test_json_format(self, tmp_path: Path) -> None:
        root = _root_with_error(tmp_path)
        result = CliRunner().invoke(main, [str(root), "--format", "json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["summary"]["errors"] == 1
        assert data["summary"]["documents"] == 2
        bad = next(f for f in data["files"] if f["path"] == "bad.md")
        assert bad["diagnostics"][0]["line"] == 3

    def test_porcelain_format(self, tmp_path: Path) -> None:
        root = _root_with_error(tmp_path)
        result = CliRunner().invoke(main, [str(root), "--format", "porcelain"])
        assert result.output.strip() == (
            "bad.md:3:error:code-fence-language:code block has no language tag"
        )

    def test_rich_format(self, tmp_path: Path) -> None:
        root = _root_with_error(tmp_path)
        result = CliRunner().invoke(main, [str(root), "--format", "rich"])
        assert result.exit_code == 1
        assert "2 documents checked: 1 error, 0 warnings" in result.output

    def test_ext_option(self, rules_root: Path) -> None:
        result = CliRunner().invoke(main, [str(rules_root), "--ext", "mdc", "--format", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [f["path"] for f in data["files"]] == ["rules/testing.mdc"]

    def test_fail_on_warn(self, tmp_path: Path) -> None:
        root = tmp_path / "rules"
        root.mkdir()
        (root / "skip.md").write_text("# A\n\n### C\n")
        assert CliRunner().invoke(main, [str(root)]).exit_code == 0
        assert CliRunner().invoke(main, [str(root), "--fail-on-warn"]).exit_code == 1

    def test_config_file(self, tmp_path: Path) -> None:
        root = _root_with_error(tmp_path)
        (root / ".lintrules.yml").write_text("rules:\n  code-fence-language: warning\n")
        result = CliRunner().invoke(main, [str(root)])
        assert result.exit_code == 0, result.output
        assert "1 warning" in result.output

    def test_invalid_config_exit_two(self, tmp_path: Path) -> None:
        root = _root_with_error(tmp_path)
        (root / ".lintrules.yml").write_text("rules:\n  bogus: error\n")
        result = CliRunner().invoke(main, [str(root)])
        assert result.exit_code == 2
        assert "unknown rule 'bogus'" in result.output

    def test_workers_same_output(self, tmp_path: Path) -> None:
        root = _root_with_error(tmp_path)
        sequential = CliRunner().invoke(main, [str(root)])
        parallel = CliRunner().invoke(main, [str(root), "--workers", "4"])
        assert parallel.output == sequential.output

    def test_repeatable_output(self, tmp_path: Path) -> None:
        root = _root_with_error(tmp_path)
        first = CliRunner().invoke(main, [str(root), "--format", "json"])
        second = CliRunner().invoke(main, [str(root), "--format", "json"])
        assert first.output == second.output

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output
