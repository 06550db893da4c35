"""Configuration: defaults and ``.lintrules.yml`` loading."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import yaml

from lintrules.loader import DEFAULT_EXTENSIONS, normalize_extensions
from lintrules.models import SEVERITIES

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".lintrules.yml"
OFF = "off"
KNOWN_KEYS: frozenset[str] = frozenset(
    {
        "extensions",
        "exclude",
        "rules",
        "require_h1",
        "required_sections",
        "required_metadata",
        "workers",
    }
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LintConfig:
    """Effective settings for one lint run."""

    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    exclude: tuple[str, ...] = ()
    # Rule name -> "error" | "warning" | "off".  Missing rules use defaults.
    severities: dict[str, str] = field(default_factory=dict)
    require_h1: bool = False
    required_sections: tuple[str, ...] = ()
    # Extension (".mdc") -> front-matter keys that must be present.
    required_metadata: dict[str, tuple[str, ...]] = field(default_factory=dict)
    workers: int = 1
    fail_on_warn: bool = False

    def with_overrides(self, **changes: Any) -> LintConfig:
        """Return a copy with every non-``None`` keyword applied."""
        applied = {key: value for key, value in changes.items() if value is not None}
        if "extensions" in applied:
            applied["extensions"] = normalize_extensions(applied["extensions"])
        return replace(self, **applied)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _str_list(data: dict[str, Any], key: str) -> tuple[str, ...]:
    value = data.get(key, [])
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"'{key}' must be a list of strings"
        raise ConfigError(msg)
    return tuple(value)


def _parse_severities(data: dict[str, Any], known_rules: frozenset[str]) -> dict[str, str]:
    rules = data.get("rules", {})
    if rules is None:
        return {}
    if not isinstance(rules, dict):
        msg = "'rules' must be a mapping of rule name to severity"
        raise ConfigError(msg)

    severities: dict[str, str] = {}
    for name, value in rules.items():
        if name not in known_rules:
            msg = f"unknown rule '{name}' (known: {', '.join(sorted(known_rules))})"
            raise ConfigError(msg)
        # YAML reads a bare `off` as boolean False.
        if value is False:
            value = OFF
        if not isinstance(value, str) or value not in SEVERITIES | {OFF}:
            msg = f"rule '{name}': severity must be 'error', 'warning' or 'off', got {value!r}"
            raise ConfigError(msg)
        severities[name] = value
    return severities


def _parse_required_metadata(data: dict[str, Any]) -> dict[str, tuple[str, ...]]:
    value = data.get("required_metadata", {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        msg = "'required_metadata' must be a mapping of extension to key list"
        raise ConfigError(msg)

    result: dict[str, tuple[str, ...]] = {}
    for ext, keys in value.items():
        norm = normalize_extensions([str(ext)])
        if not norm:
            continue
        result[norm[0]] = _str_list(value, ext)
    return result


def config_from_dict(data: dict[str, Any], known_rules: frozenset[str]) -> LintConfig:
    """Build a :class:`LintConfig` from a parsed YAML mapping."""
    unknown = sorted(str(key) for key in data if key not in KNOWN_KEYS)
    if unknown:
        msg = (
            f"unknown config key(s): {', '.join(unknown)} "
            f"(known: {', '.join(sorted(KNOWN_KEYS))})"
        )
        raise ConfigError(msg)

    defaults = LintConfig()

    extensions = _str_list(data, "extensions")
    workers = data.get("workers", defaults.workers)
    if not isinstance(workers, int) or isinstance(workers, bool) or workers < 1:
        msg = f"'workers' must be a positive integer, got {workers!r}"
        raise ConfigError(msg)
    require_h1 = data.get("require_h1", defaults.require_h1)
    if not isinstance(require_h1, bool):
        msg = f"'require_h1' must be true or false, got {require_h1!r}"
        raise ConfigError(msg)

    return LintConfig(
        extensions=normalize_extensions(extensions) if extensions else defaults.extensions,
        exclude=_str_list(data, "exclude"),
        severities=_parse_severities(data, known_rules),
        require_h1=require_h1,
        required_sections=_str_list(data, "required_sections"),
        required_metadata=_parse_required_metadata(data),
        workers=workers,
    )


def load_config(
    root: Path,
    known_rules: frozenset[str],
    *,
    config_path: Path | None = None,
) -> LintConfig:
    """Load settings from *config_path* or ``<root>/.lintrules.yml``.

    A missing default file yields defaults.  A missing explicit file,
    unreadable YAML or an invalid value raises :class:`ConfigError`.
    """
    explicit = config_path is not None
    path = config_path if config_path is not None else root / CONFIG_FILENAME

    try:
        found = path.is_file()
    except OSError as exc:
        # An unreadable root is reported by the loader, not here.
        logger.debug("Cannot stat %s: %s", path, exc)
        found = False

    if not found:
        if explicit:
            msg = f"config file not found: {path}"
            raise ConfigError(msg)
        logger.debug("No %s found under %s, using defaults", CONFIG_FILENAME, root)
        return LintConfig()

    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        msg = f"cannot read config {path}: {exc}"
        raise ConfigError(msg) from exc

    if data is None:
        return LintConfig()
    if not isinstance(data, dict):
        msg = f"config {path} must be a YAML mapping"
        raise ConfigError(msg)

    logger.debug("Loaded config from %s", path)
    return config_from_dict(data, known_rules)
