"""
YAML → typed config loader.

Loads engine tunables from suggestions.yaml (bundled with the package) and
optionally merges user overrides from ~/.smart-sets/suggestions.yaml.

Usage:
    from smart_sets.core.engine.config_loader import load_suggestion_config
    cfg = load_suggestion_config()
    cfg.lookback_days

Keys in the ``suggestions:`` section are SuggestionConfig field names,
upper or lower case (LOOKBACK_DAYS and lookback_days are the same key).
If the bundled YAML cannot be parsed the Python defaults from config.py
are used (no crash).  Unknown keys and invalid values produce a warning and
are ignored.
"""

from __future__ import annotations

import dataclasses
import os
import warnings
from pathlib import Path
from typing import Any

import yaml

from ..config import SuggestionConfig

SECTION = "suggestions"

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; warn and return {} when it cannot be read."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"smart-sets: ignoring config file {path} ({exc})", stacklevel=2)
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled suggestions.yaml, or None if not found."""
    # config_loader.py lives at src/smart_sets/core/engine/config_loader.py
    candidate = Path(__file__).parent.parent.parent / "suggestions.yaml"
    return candidate if candidate.is_file() else None


def get_user_yaml_path() -> Path | None:
    """Return ~/.smart-sets/suggestions.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".smart-sets" / "suggestions.yaml"
    return p if p.exists() else None


def load_raw_config(extra: Path | None = None) -> dict[str, Any]:
    """
    Load and merge configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/smart_sets/suggestions.yaml
    2. User override at ~/.smart-sets/suggestions.yaml
    3. ``extra`` (e.g. a --config path given on the command line)

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}
    for path in (get_bundled_yaml_path(), get_user_yaml_path(), extra):
        if path is not None:
            config = _deep_merge(config, _load_yaml_file(path))
    return config


def config_from_dict(section: dict[str, Any]) -> SuggestionConfig:
    """
    Build a SuggestionConfig from a flat mapping of overrides.

    Unknown keys and values of the wrong type are skipped with a warning.
    If the combined values fail validation the defaults are returned.
    """
    fields = {f.name: f for f in dataclasses.fields(SuggestionConfig)}
    defaults = SuggestionConfig()
    values: dict[str, Any] = {}

    for key, value in section.items():
        name = str(key).lower()
        if name not in fields:
            warnings.warn(f"smart-sets: unknown config key '{key}' ignored", stacklevel=2)
            continue
        expected = type(getattr(defaults, name))
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            warnings.warn(
                f"smart-sets: config key '{key}' must be numeric, got {value!r}",
                stacklevel=2,
            )
            continue
        if expected is int and value != int(value):
            warnings.warn(
                f"smart-sets: config key '{key}' must be an integer, got {value!r}",
                stacklevel=2,
            )
            continue
        values[name] = expected(value)

    try:
        return SuggestionConfig(**values)
    except ValueError as exc:
        warnings.warn(f"smart-sets: invalid config ({exc}); using defaults", stacklevel=2)
        return defaults


def load_suggestion_config(extra: Path | None = None) -> SuggestionConfig:
    """Return the SuggestionConfig after applying every YAML layer."""
    section = load_raw_config(extra).get(SECTION) or {}
    if not isinstance(section, dict):
        warnings.warn(f"smart-sets: '{SECTION}' must be a mapping; using defaults", stacklevel=2)
        return SuggestionConfig()
    return config_from_dict(section)
