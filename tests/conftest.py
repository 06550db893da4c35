"""Shared test fixtures for lintrules."""

from __future__ import annotations

import os
import stat
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture()
def rules_root(tmp_path: Path) -> Path:
    """Create a small rule-file tree with one clean document of each kind.

    Layout:
    - rules/python.md — clean Markdown rule file
    - rules/testing.mdc — clean Cursor rule with front matter
    - notes.txt — ignored (wrong extension)
    """
    root = tmp_path / "repo"
    rules = root / "rules"
    rules.mkdir(parents=True)
    (rules / "python.md").write_text(
        "# Python\n\n"
        "Use type hints.\n\n"
        "## Formatting\n\n"
        "```bash\nruff format .\n```\n\n"
        "See [testing](testing.mdc) and [formatting](#formatting).\n"
    )
    (rules / "testing.mdc").write_text(
        "---\n"
        "description: Testing practices\n"
        "globs: ['tests/**']\n"
        "alwaysApply: false\n"
        "---\n"
        "# Testing\n\n"
        "## Running\n\n"
        "```python\nimport pytest\n```\n"
    )
    (root / "notes.txt").write_text("not a rule file\n")
    return root


@pytest.fixture()
def unreadable_root(rules_root: Path) -> Iterator[Path]:
    """``rules_root`` with every permission bit cleared, restored on teardown.

    Skipped for root and on platforms without POSIX permissions, where the
    directory stays listable.
    """
    if not hasattr(os, "geteuid") or os.geteuid() == 0:
        pytest.skip("requires a non-root POSIX user")
    rules_root.chmod(0)
    yield rules_root
    rules_root.chmod(stat.S_IRWXU)
