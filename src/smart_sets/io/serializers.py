"""
JSON serialization for workout records.

Handles conversion between the input dataclasses and JSON-compatible dicts.
Only the record structure is validated here; set values (weight, reps) are
passed through as logged and judged by the aggregation stage.
"""

import json
import re
from typing import Any

from ..core.models import SetLog, SmartSuggestionResult, Workout, WorkoutExercise

_SET_FIELDS = ("weight", "reps", "duration", "distance", "assistance_weight")

# "8@135", "8 @ 135.5", "8x135"
_SET_TOKEN = re.compile(r"^\s*(\d+)\s*[@xX]\s*(\d+(?:\.\d+)?)\s*$")
# bare reps for bodyweight sets: "12"
_REPS_ONLY = re.compile(r"^\s*(\d+)\s*$")


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_date(value: Any) -> str | int:
    """
    Validate a workout date.

    Accepts an ISO date/datetime string or epoch milliseconds.

    Raises:
        ValidationError: If the date is missing or of the wrong type
    """
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValidationError(f"Invalid date: {value!r}")
    if isinstance(value, str) and not re.match(r"^\d{4}-\d{2}-\d{2}", value):
        raise ValidationError(f"Invalid date format: {value}. Expected YYYY-MM-DD")
    return value


def set_log_to_dict(set_log: SetLog) -> dict[str, Any]:
    """Convert SetLog to a JSON-compatible dict, dropping empty fields."""
    data: dict[str, Any] = {"completed": set_log.completed}
    for name in _SET_FIELDS:
        value = getattr(set_log, name)
        if value is not None:
            data[name] = value
    return data


def dict_to_set_log(data: dict[str, Any]) -> SetLog:
    """
    Convert dict to SetLog.

    Raises:
        ValidationError: If data is not a mapping or completed is not a boolean
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Set must be an object, got {data!r}")
    completed = data.get("completed", True)
    if not isinstance(completed, bool):
        raise ValidationError(f"Set 'completed' must be true or false, got {completed!r}")
    return SetLog(
        completed=completed,
        **{name: data.get(name) for name in _SET_FIELDS},
    )


def workout_to_dict(workout: Workout) -> dict[str, Any]:
    """Convert Workout to JSON-compatible dict."""
    return {
        "id": workout.id,
        "date": workout.date,
        "plan_id": workout.plan_id,
        "exercises": [
            {"name": ex.name, "sets": [set_log_to_dict(s) for s in ex.sets]}
            for ex in workout.exercises
        ],
    }


def dict_to_workout(data: dict[str, Any]) -> Workout:
    """
    Convert dict to Workout.

    Args:
        data: Dict representation

    Returns:
        Workout instance

    Raises:
        ValidationError: If required fields are missing or malformed
    """
    if not isinstance(data, dict):
        raise ValidationError("Workout record must be an object")
    for required in ("id", "date", "exercises"):
        if required not in data:
            raise ValidationError(f"Workout record missing '{required}'")

    raw_exercises = data["exercises"]
    if not isinstance(raw_exercises, list):
        raise ValidationError("'exercises' must be a list")

    exercises = []
    for raw in raw_exercises:
        if not isinstance(raw, dict) or "name" not in raw:
            raise ValidationError("Each exercise needs a 'name'")
        sets = raw.get("sets", [])
        if not isinstance(sets, list):
            raise ValidationError(f"'sets' of {raw['name']} must be a list")
        exercises.append(
            WorkoutExercise(name=str(raw["name"]), sets=[dict_to_set_log(s) for s in sets])
        )

    return Workout(
        id=str(data["id"]),
        date=validate_date(data["date"]),
        exercises=exercises,
        plan_id=data.get("plan_id"),
    )


def workout_to_json_line(workout: Workout) -> str:
    """
    Serialize a workout to a single JSON line.

    Returns:
        JSON string (single line, no trailing newline)
    """
    return json.dumps(workout_to_dict(workout), separators=(",", ":"))


def json_line_to_workout(line: str) -> Workout:
    """
    Deserialize a JSON line to a Workout.

    Raises:
        ValidationError: If the line is not valid JSON or not a workout
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e
    return dict_to_workout(data)


def parse_sets_string(text: str) -> list[SetLog]:
    """
    Parse compact set notation into completed SetLogs.

    Format: comma-separated ``reps@weight`` tokens, e.g. ``"8@135,8@135,6@135"``.
    A bare number is reps with no added weight (bodyweight).

    Args:
        text: Sets string

    Returns:
        SetLogs in the given order

    Raises:
        ValidationError: If a token cannot be parsed
    """
    if not text or not text.strip():
        return []

    sets: list[SetLog] = []
    for token in text.split(","):
        if not token.strip():
            continue
        match = _SET_TOKEN.match(token)
        if match:
            reps, weight = int(match.group(1)), float(match.group(2))
            sets.append(SetLog(completed=True, weight=weight, reps=reps))
            continue
        match = _REPS_ONLY.match(token)
        if match:
            sets.append(SetLog(completed=True, weight=0.0, reps=int(match.group(1))))
            continue
        raise ValidationError(f"Invalid set '{token.strip()}'. Expected reps@weight, e.g. 8@135")
    return sets


def suggestion_to_dict(result: SmartSuggestionResult) -> dict[str, Any]:
    """Convert SmartSuggestionResult to a JSON-compatible dict."""

    def _sets(sets) -> list[dict[str, Any]]:
        return [{"weight": s.weight, "reps": s.reps, "completed": s.completed} for s in sets]

    return {
        "pattern": result.pattern,
        "confidence": round(result.confidence, 4),
        "set_arrangement": result.set_arrangement,
        "history_set_count": result.history_set_count,
        "adapted": result.adapted,
        "sets": _sets(result.sets),
        "base_sets": _sets(result.base_sets),
    }
