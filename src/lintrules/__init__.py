"""lintrules: structural linter for Markdown rule files."""

__version__ = "0.1.0"
