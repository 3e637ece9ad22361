"""
Suggestion generator: turns a pattern analysis into next-session targets.

Given the classified pattern, produces one (weight, reps) target per set of
the most recent comparable session, bounded by the movement-class caps and
rounded to the equipment grid.  get_suggestion() is the single entry point
used by callers; it never raises.
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime

from .adaptation import adapt_session
from .config import DEFAULT_CONFIG, SuggestionConfig
from .equipment import WeightIncrement, bounded_round, get_weight_increment, step_below
from .history import extract_data_points, last_known_sets
from .metrics import clamp_reps, linear_regression
from .models import (
    DeloadSignal,
    ExerciseDataPoint,
    FallbackSignal,
    OverloadSignal,
    PatternAnalysis,
    RepCyclingSignal,
    RESISTANCE_TYPES,
    SetLog,
    SmartSuggestionResult,
    StableSignal,
    SuggestedSet,
    Workout,
)
from .patterns import analyze_pattern, detect_set_arrangement

logger = logging.getLogger(__name__)


def generate_per_set_suggestions(
    pool: Sequence[ExerciseDataPoint],
    rule: WeightIncrement,
    is_compound: bool,
    config: SuggestionConfig = DEFAULT_CONFIG,
) -> list[SuggestedSet]:
    """
    Project each set position of the last session in pool one session ahead.

    For every set of the reference session (pool[-1]):
        weight = last_weight + slope(weight at this position over pool)
        reps   = last_reps if weight rises, else last_reps + rep slope
                 (at most +MAX_REP_BUMP)
    The raw weight is floored at the reference weight, then held inside the
    cap window and rounded, so an off-grid reference (137.5 on a 5 lb grid)
    comes back on the grid rather than above the computed value.

    Args:
        pool: Chronological sessions the trend is read from; the last one is
            the reference session
        rule: Equipment rounding rule
        is_compound: Compound movement (tighter increase cap)
        config: Engine configuration

    Returns:
        One SuggestedSet per set of the reference session
    """
    if not pool:
        return []

    reference = pool[-1]
    max_increase = config.max_increase(is_compound)
    results: list[SuggestedSet] = []

    for idx, last in enumerate(reference.set_details):
        position = [
            (x, session.set_details[idx])
            for x, session in enumerate(pool)
            if len(session.set_details) > idx
        ]

        if len(position) >= 2:
            weight_slope = linear_regression([(x, d.weight) for x, d in position]).slope
            reps_slope = linear_regression([(x, d.reps) for x, d in position]).slope
        else:
            weight_slope = reps_slope = 0.0

        target = max(last.weight + weight_slope, last.weight)
        weight = bounded_round(target, last.weight, rule, max_increase, config.max_decrease)

        if weight > last.weight:
            reps: float = last.reps
        else:
            reps = min(last.reps + reps_slope, last.reps + config.max_rep_bump)

        results.append(
            SuggestedSet(weight=weight, reps=clamp_reps(reps, config.min_reps, config.max_reps))
        )

    return results


def apply_straight_across_progression(
    sets: Sequence[SuggestedSet],
    config: SuggestionConfig = DEFAULT_CONFIG,
) -> list[SuggestedSet]:
    """
    Ramp reps across a straight-across plan: set n gets +n reps.

    Weights are untouched; reps stay inside [MIN_REPS, MAX_REPS].
    """
    if len(sets) <= 1:
        return list(sets)
    return [
        SuggestedSet(
            weight=s.weight,
            reps=clamp_reps(s.reps + i, config.min_reps, config.max_reps),
        )
        for i, s in enumerate(sets)
    ]


def generate_deload_suggestions(
    reference: ExerciseDataPoint,
    rule: WeightIncrement,
    config: SuggestionConfig = DEFAULT_CONFIG,
) -> list[SuggestedSet]:
    """
    Continue a deload: cut each set's weight by DELOAD_WEIGHT_STEP.

    The result is always strictly below the reference weight (unless that
    is already zero) and holds the reference reps.
    """
    results: list[SuggestedSet] = []
    for last in reference.set_details:
        target = last.weight * (1 - config.deload_weight_step)
        weight = bounded_round(target, last.weight, rule, 0.0, config.max_decrease)
        weight = step_below(weight, last.weight, rule)
        results.append(
            SuggestedSet(
                weight=weight,
                reps=clamp_reps(last.reps, config.min_reps, config.max_reps),
            )
        )
    return results


def fallback_result(reference: ExerciseDataPoint | None) -> SmartSuggestionResult:
    """Repeat the last known sets verbatim with zero confidence."""
    if reference is None:
        return SmartSuggestionResult(sets=(), history_set_count=0, pattern="fallback", confidence=0.0)
    sets = tuple(SuggestedSet(weight=d.weight, reps=d.reps) for d in reference.set_details)
    return SmartSuggestionResult(
        sets=sets,
        history_set_count=len(sets),
        pattern="fallback",
        confidence=0.0,
        base_sets=sets,
    )


def suggest_from_analysis(
    analysis: PatternAnalysis,
    rule: WeightIncrement,
    is_compound: bool,
    config: SuggestionConfig = DEFAULT_CONFIG,
    last_known: ExerciseDataPoint | None = None,
) -> SmartSuggestionResult:
    """
    Build the history-based suggestion for an analysed exercise.

    Args:
        analysis: Classifier output
        rule: Equipment rounding rule
        is_compound: Compound movement
        config: Engine configuration
        last_known: Sets to repeat on fallback (defaults to the newest
            analysed session)

    Returns:
        SmartSuggestionResult before intra-session adaptation
    """
    signal = analysis.signal
    points = analysis.data_points

    if isinstance(signal, FallbackSignal):
        return fallback_result(last_known if last_known is not None else (points[-1] if points else None))

    if isinstance(signal, RepCyclingSignal):
        pool = signal.clusters.next_pool
        sets = generate_per_set_suggestions(pool, rule, is_compound, config)
        if detect_set_arrangement(pool, config) == "straight_across":
            sets = apply_straight_across_progression(sets, config)
    elif isinstance(signal, OverloadSignal):
        pool = points
        sets = generate_per_set_suggestions(pool, rule, is_compound, config)
        if analysis.set_arrangement == "straight_across":
            sets = apply_straight_across_progression(sets, config)
    elif isinstance(signal, DeloadSignal):
        pool = points
        sets = generate_deload_suggestions(points[-1], rule, config)
    elif isinstance(signal, StableSignal):
        pool = points[-config.stable_pool_sessions:]
        sets = generate_per_set_suggestions(pool, rule, is_compound, config)
        if analysis.set_arrangement == "straight_across":
            sets = apply_straight_across_progression(sets, config)
    else:
        raise TypeError(f"Unknown pattern signal: {signal!r}")

    suggested = tuple(sets)
    return SmartSuggestionResult(
        sets=suggested,
        history_set_count=len(pool[-1].set_details),
        pattern=analysis.pattern,
        confidence=analysis.confidence,
        set_arrangement=analysis.set_arrangement,
        base_sets=suggested,
    )


def _safe_last_known(
    exercise_name: str,
    workouts: Sequence[Workout],
    allow_zero_weight: bool,
    current_workout_id: str | None,
) -> ExerciseDataPoint | None:
    try:
        return last_known_sets(
            exercise_name,
            workouts,
            allow_zero_weight=allow_zero_weight,
            current_workout_id=current_workout_id,
        )
    except Exception:
        logger.exception("Could not read last known sets for %s", exercise_name)
        return None


def get_suggestion(
    exercise_name: str,
    equipment_type: str | Iterable[str] | None,
    is_compound: bool,
    historical_sessions: Sequence[Workout],
    current_session_sets: Sequence[SetLog] = (),
    *,
    exercise_type: str = "weight",
    now: datetime | int | None = None,
    config: SuggestionConfig | None = None,
    current_workout_id: str | None = None,
    previous: SmartSuggestionResult | None = None,
) -> SmartSuggestionResult:
    """
    Suggest next sets for one exercise.

    Pure function of its inputs: identical history, session sets and ``now``
    give identical output.  Never raises; any internal failure degrades to
    repeating the last known sets.

    Args:
        exercise_name: Exercise to suggest for
        equipment_type: Equipment name or list (first recognised one wins)
        is_compound: Compound movement (tighter caps, stricter trend fit)
        historical_sessions: Workout history in any order
        current_session_sets: Sets of this exercise logged so far in the
            active workout, in the order they were completed
        exercise_type: Catalog exercise type; only "weight" and
            "bodyweight" get weight suggestions
        now: Reference time; defaults to the clock
        config: Engine configuration
        current_workout_id: Active workout to exclude from history
        previous: Result of the previous call in the same workout; its
            base_sets are reused instead of re-classifying history (the
            history still supplies templates for a mid-session change of
            scheme)

    Returns:
        SmartSuggestionResult
    """
    if exercise_type not in RESISTANCE_TYPES:
        return SmartSuggestionResult.not_applicable()

    cfg = config if config is not None else DEFAULT_CONFIG
    allow_zero_weight = exercise_type == "bodyweight"
    rule = get_weight_increment(equipment_type)

    try:
        points = extract_data_points(
            exercise_name,
            historical_sessions,
            now=now,
            config=cfg,
            allow_zero_weight=allow_zero_weight,
            current_workout_id=current_workout_id,
        )
        if previous is not None and previous.applicable and previous.base_sets:
            base = previous
        else:
            analysis = analyze_pattern(points, is_compound, now=now, config=cfg)
            last_known = None
            if analysis.pattern == "fallback":
                last_known = _safe_last_known(
                    exercise_name, historical_sessions, allow_zero_weight, current_workout_id
                )
            base = suggest_from_analysis(analysis, rule, is_compound, cfg, last_known)

        completed = [s for s in current_session_sets if s.completed]
        if not completed:
            return base
        return adapt_session(base, completed, rule, is_compound, cfg, data_points=points)

    except Exception:
        logger.exception("Suggestion failed for %s; falling back", exercise_name)
        return fallback_result(
            _safe_last_known(exercise_name, historical_sessions, allow_zero_weight, current_workout_id)
        )


def suggest_for_exercise(
    exercise_name: str,
    historical_sessions: Sequence[Workout],
    current_session_sets: Sequence[SetLog] = (),
    **kwargs,
) -> SmartSuggestionResult:
    """
    get_suggestion() with equipment, movement class and type from the catalog.

    Raises:
        ValueError: If the exercise is not in the catalog
    """
    from .exercises.registry import get_exercise

    exercise = get_exercise(exercise_name)
    return get_suggestion(
        exercise.name,
        exercise.equipment,
        exercise.is_compound,
        historical_sessions,
        current_session_sets,
        exercise_type=exercise.exercise_type,
        **kwargs,
    )
