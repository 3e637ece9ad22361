"""
YAML → ExerciseDefinition loader.

Loads the exercise catalog from the bundled ``src/smart_sets/exercises.yaml``.
The file maps each exercise_id to a flat definition matching the
ExerciseDefinition schema.

User overrides: ``~/.smart-sets/exercises.yaml`` has the same layout.  An
entry whose exercise_id matches a bundled one is deep-merged over it, so
only changed keys need to be listed; any other entry is added as a new
exercise.

Usage (internal, called by registry.py):
    from .loader import load_exercises_from_yaml
    exercises = load_exercises_from_yaml()   # dict or None on failure
"""

from __future__ import annotations

import os
import warnings
from pathlib import Path

import yaml

from .base import ExerciseDefinition

_REQUIRED_EXERCISE_FIELDS: frozenset[str] = frozenset(
    {
        "name",
        "exercise_type",
        "equipment",
        "is_compound",
    }
)


def exercise_from_dict(exercise_id: str, d: dict) -> ExerciseDefinition:
    """Convert a raw dict (from YAML) to an ExerciseDefinition.

    Raises ValueError if any required field is absent or invalid.
    """
    if not isinstance(d, dict):
        raise ValueError("definition must be a mapping")
    missing = _REQUIRED_EXERCISE_FIELDS - set(d)
    if missing:
        raise ValueError(f"ExerciseDefinition missing fields: {sorted(missing)}")

    equipment = d["equipment"]
    if isinstance(equipment, str):
        equipment = [equipment]

    return ExerciseDefinition(
        exercise_id=str(exercise_id),
        name=str(d["name"]),
        exercise_type=str(d["exercise_type"]),
        equipment=tuple(str(e) for e in equipment or ()),
        is_compound=bool(d["is_compound"]),
        muscle_group=str(d.get("muscle_group") or ""),
        movement_pattern=str(d.get("movement_pattern") or ""),
        difficulty=str(d.get("difficulty") or "Beginner"),
    )


def _load_yaml_file(path: Path) -> dict:
    """Load a YAML file; warn and return {} when it cannot be read."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"smart-sets: ignoring catalog file {path} ({exc})", stacklevel=2)
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _get_bundled_catalog() -> Path | None:
    """Return path to the bundled exercises.yaml, or None if not found."""
    # loader.py lives at src/smart_sets/core/exercises/loader.py
    # three levels up → src/smart_sets/
    candidate = Path(__file__).parent.parent.parent / "exercises.yaml"
    return candidate if candidate.is_file() else None


def _get_user_catalog() -> Path | None:
    """Return ~/.smart-sets/exercises.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".smart-sets" / "exercises.yaml"
    return p if p.is_file() else None


def load_exercises_from_yaml(
    bundled: Path | None = None,
    user: Path | None = None,
) -> dict[str, ExerciseDefinition] | None:
    """Return {exercise_id: ExerciseDefinition} from the catalog files.

    Args:
        bundled: Catalog path (defaults to the packaged exercises.yaml)
        user: Override path (defaults to ~/.smart-sets/exercises.yaml)

    Returns None (rather than raising) so the registry can decide how to
    fail.  Invalid entries are skipped with a warning.
    """
    bundled = bundled if bundled is not None else _get_bundled_catalog()
    user = user if user is not None else _get_user_catalog()

    if bundled is None and user is None:
        return None

    raw: dict = {}
    if bundled is not None and bundled.is_file():
        bundled_raw = _load_yaml_file(bundled).get("exercises") or {}
        if isinstance(bundled_raw, dict):
            raw = bundled_raw
    if user is not None and user.is_file():
        user_raw = _load_yaml_file(user).get("exercises") or {}
        if isinstance(user_raw, dict):
            raw = _deep_merge(raw, user_raw)

    result: dict[str, ExerciseDefinition] = {}
    for exercise_id, definition in raw.items():
        try:
            ex = exercise_from_dict(exercise_id, definition)
        except ValueError as exc:
            warnings.warn(
                f"smart-sets: skipping exercise '{exercise_id}': {exc}",
                stacklevel=2,
            )
            continue
        result[ex.exercise_id] = ex

    return result if result else None
