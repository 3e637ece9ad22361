"""
Historical aggregation: raw workout logs → per-session data points.

This is the only place raw SetLog values are interpreted.  A session with a
malformed completed set is dropped as a whole (and logged) so that one bad
record never aborts the analysis of the rest of the history.
"""

import logging
import math
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from .config import DEFAULT_CONFIG, MS_PER_DAY, SuggestionConfig
from .metrics import resolve_now_ms, set_volume, to_epoch_ms
from .models import ExerciseDataPoint, SetLog, SetPositionData, Workout

logger = logging.getLogger(__name__)


class MalformedSessionError(ValueError):
    """Raised when a session's sets cannot be interpreted."""


def _as_reps(value: Any) -> int:
    if value is None or isinstance(value, bool):
        raise MalformedSessionError(f"missing reps ({value!r})")
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError as e:
            raise MalformedSessionError(f"non-numeric reps {value!r}") from e
    if not isinstance(value, (int, float)) or math.isnan(value) or math.isinf(value):
        raise MalformedSessionError(f"invalid reps {value!r}")
    if value < 0:
        raise MalformedSessionError(f"negative reps {value!r}")
    if value != int(value):
        raise MalformedSessionError(f"fractional reps {value!r}")
    return int(value)


def _as_weight(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise MalformedSessionError(f"non-numeric weight {value!r}")
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError as e:
            raise MalformedSessionError(f"non-numeric weight {value!r}") from e
    if not isinstance(value, (int, float)) or math.isnan(value) or math.isinf(value):
        raise MalformedSessionError(f"non-numeric weight {value!r}")
    if value < 0:
        raise MalformedSessionError(f"negative weight {value!r}")
    return float(value)


def aggregate_session(
    date_ms: int,
    sets: Sequence[SetLog],
    allow_zero_weight: bool = False,
) -> ExerciseDataPoint | None:
    """
    Collapse one session's sets into an ExerciseDataPoint.

    Only completed sets count.  For weighted exercises only sets with
    weight > 0 carry the load signal; bodyweight exercises
    (allow_zero_weight=True) also keep unloaded sets.

    Args:
        date_ms: Session date in epoch milliseconds
        sets: Sets of this exercise in logged order
        allow_zero_weight: Keep sets with weight == 0

    Returns:
        The data point, or None when the session has no usable sets

    Raises:
        MalformedSessionError: If a completed set has missing or non-numeric
            reps or weight
    """
    completed = [s for s in sets if s.completed]
    if not completed:
        return None

    details: list[SetPositionData] = []
    for s in completed:
        weight = _as_weight(s.weight)
        reps = _as_reps(s.reps)
        if weight > 0 or allow_zero_weight:
            details.append(SetPositionData(weight=weight, reps=reps))

    if not details:
        return None

    weights = [d.weight for d in details]
    reps_list = [d.reps for d in details]
    top_weight = max(weights)
    top_idx = weights.index(top_weight)

    return ExerciseDataPoint(
        date=date_ms,
        avg_weight=sum(weights) / len(weights),
        avg_reps=sum(reps_list) / len(reps_list),
        top_set_weight=top_weight,
        top_set_reps=reps_list[top_idx],
        total_sets=len(completed),
        total_volume=sum(set_volume(d.weight, d.reps) for d in details),
        set_details=tuple(details),
    )


def _iter_sessions(
    exercise_name: str,
    workouts: Sequence[Workout],
    allow_zero_weight: bool,
    current_workout_id: str | None,
):
    """Yield data points for the exercise, skipping and logging malformed sessions."""
    for workout in workouts:
        if current_workout_id is not None and workout.id == current_workout_id:
            continue
        exercise = workout.find_exercise(exercise_name)
        if exercise is None:
            continue
        try:
            date_ms = to_epoch_ms(workout.date)
            point = aggregate_session(date_ms, exercise.sets, allow_zero_weight)
        except (ValueError, OverflowError, TypeError) as e:
            logger.warning(
                "Skipping %s in workout %s: %s", exercise_name, workout.id, e
            )
            continue
        if point is not None:
            yield point


def extract_data_points(
    exercise_name: str,
    workouts: Sequence[Workout],
    *,
    now: datetime | int | None = None,
    config: SuggestionConfig = DEFAULT_CONFIG,
    allow_zero_weight: bool = False,
    current_workout_id: str | None = None,
) -> tuple[ExerciseDataPoint, ...]:
    """
    Build the chronological data point series for one exercise.

    Workouts may arrive in any order.  Sessions older than the lookback
    window are ignored and only the newest ``config.max_sessions`` are kept.

    Args:
        exercise_name: Exercise to extract
        workouts: Full workout history
        now: Reference time (datetime or epoch ms); defaults to the clock
        config: Engine configuration (lookback_days, max_sessions)
        allow_zero_weight: Keep unloaded sets (bodyweight exercises)
        current_workout_id: Active workout to exclude from history

    Returns:
        Tuple of data points, oldest first
    """
    cutoff = resolve_now_ms(now) - config.lookback_days * MS_PER_DAY

    points = [
        p
        for p in _iter_sessions(exercise_name, workouts, allow_zero_weight, current_workout_id)
        if p.date >= cutoff
    ]
    points.sort(key=lambda p: p.date)

    if len(points) > config.max_sessions:
        points = points[-config.max_sessions:]
    return tuple(points)


def last_known_sets(
    exercise_name: str,
    workouts: Sequence[Workout],
    *,
    allow_zero_weight: bool = False,
    current_workout_id: str | None = None,
) -> ExerciseDataPoint | None:
    """
    Return the newest cleanly aggregated session of the exercise.

    Unlike extract_data_points this ignores the lookback window: it is the
    "last known working sets" used when the engine falls back.
    """
    points = list(_iter_sessions(exercise_name, workouts, allow_zero_weight, current_workout_id))
    if not points:
        return None
    return max(points, key=lambda p: p.date)
