"""
Exercise registry.

Use get_exercise() to look up an ExerciseDefinition by exercise_id or by
display name (case-insensitive), the name logged in workouts.

Exercises are loaded from the YAML catalog at import time.  If no
definition can be loaded a RuntimeError is raised; the engine cannot map
workout names to equipment without a catalog.

User overrides: ``~/.smart-sets/exercises.yaml``.
"""

from .base import ExerciseDefinition


def _build_registry() -> dict[str, ExerciseDefinition]:
    from .loader import load_exercises_from_yaml

    loaded = load_exercises_from_yaml()
    if not loaded:
        raise RuntimeError(
            "smart-sets: no exercise definitions could be loaded from YAML. "
            "Check that src/smart_sets/exercises.yaml is present and valid."
        )
    return loaded


EXERCISE_REGISTRY: dict[str, ExerciseDefinition] = _build_registry()


def find_exercise(key: str) -> ExerciseDefinition | None:
    """Return the definition whose id or name matches key, else None."""
    if key in EXERCISE_REGISTRY:
        return EXERCISE_REGISTRY[key]
    wanted = key.strip().casefold()
    for exercise in EXERCISE_REGISTRY.values():
        if exercise.name.casefold() == wanted:
            return exercise
    return None


def get_exercise(key: str) -> ExerciseDefinition:
    """
    Return the ExerciseDefinition for an exercise_id or display name.

    Args:
        key: e.g. "barbell_back_squat" or "Barbell Back Squat"

    Returns:
        ExerciseDefinition for the requested exercise

    Raises:
        ValueError: If the exercise is not in the registry
    """
    exercise = find_exercise(key)
    if exercise is None:
        valid = ", ".join(EXERCISE_REGISTRY)
        raise ValueError(f"Unknown exercise '{key}'. Valid IDs: {valid}")
    return exercise
