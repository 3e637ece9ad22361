"""
Intra-session adaptation: react to sets as they are logged.

Implements the rules for adjusting the remaining targets of the active
workout from what the lifter actually did, and for spotting a deliberate
switch to a different rep scheme mid-session.

Set outcome (actual reps vs target reps)
----------------------------------------
  reps ≥ target + EASY_REPS_ABOVE          → easy: weight × (1 + EASY_BUMP)
  target ≤ reps < target + EASY_REPS_ABOVE → on target: hold
  target − MISS_REPS_BELOW ≤ reps < target → under: hold weight, accept reps
  below that                               → miss: weight × (1 − MISS_REDUCE)
"""

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Literal

from .config import DEFAULT_CONFIG, SuggestionConfig
from .equipment import WeightIncrement, get_weight_increment, round_to_increment
from .metrics import clamp_reps
from .models import (
    ExerciseDataPoint,
    PatternShift,
    SetLog,
    SmartSuggestionResult,
    SuggestedSet,
)

logger = logging.getLogger(__name__)

SetOutcome = Literal["easy", "on_target", "under", "miss"]


def _rule(equipment: WeightIncrement | str | Iterable[str] | None) -> WeightIncrement:
    if isinstance(equipment, WeightIncrement):
        return equipment
    return get_weight_increment(equipment)


def _number(value, default: float) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def classify_set_outcome(
    target_reps: int,
    actual_reps: int,
    config: SuggestionConfig = DEFAULT_CONFIG,
) -> SetOutcome:
    """Compare a logged set's reps against its target."""
    if actual_reps >= target_reps + config.easy_reps_above:
        return "easy"
    if actual_reps >= target_reps:
        return "on_target"
    if actual_reps >= target_reps - config.miss_reps_below:
        return "under"
    return "miss"


def adapt_next_set(
    target: SuggestedSet,
    actual_weight: float,
    actual_reps: int,
    equipment: WeightIncrement | str | Iterable[str] | None,
    is_compound: bool,
    config: SuggestionConfig = DEFAULT_CONFIG,
) -> SuggestedSet:
    """
    Target for the next set given how the current one went.

    The weight actually used is the baseline, so a lifter who changed the
    weight is adapted from where they are, while reps are still judged
    against the original target.

    Args:
        target: Suggested set that was just performed
        actual_weight: Weight used
        actual_reps: Reps completed
        equipment: Rounding rule, or equipment name(s) to look it up
        is_compound: Compound movement (tighter increase cap)
        config: Engine configuration

    Returns:
        Suggested next set
    """
    rule = _rule(equipment)
    base = actual_weight
    outcome = classify_set_outcome(target.reps, actual_reps, config)

    if outcome == "easy":
        bumped = base * (1 + config.easy_bump_percent)
        capped = min(bumped, base * (1 + config.max_increase(is_compound)))
        return SuggestedSet(weight=round_to_increment(capped, rule), reps=target.reps)

    if outcome == "on_target":
        return SuggestedSet(weight=base, reps=target.reps)

    if outcome == "under":
        return SuggestedSet(
            weight=base, reps=clamp_reps(actual_reps, config.min_reps, config.max_reps)
        )

    reduced = base * (1 - config.miss_reduce_percent)
    return SuggestedSet(weight=round_to_increment(reduced, rule), reps=target.reps)


def _deliberate_change(
    target: SuggestedSet, weight: float, reps: int, config: SuggestionConfig
) -> bool:
    """
    A clearly different load, or far more reps than asked for.

    Falling short at the planned load is a miss, not a change of scheme.
    """
    if target.weight > 0:
        if abs(weight - target.weight) / target.weight > config.pattern_shift_weight_threshold:
            return True
    if target.reps > 0:
        return (reps - target.reps) / target.reps > config.pattern_shift_reps_threshold
    return False


def adapt_session(
    base: SmartSuggestionResult,
    completed_sets: Sequence[SetLog],
    equipment: WeightIncrement | str | Iterable[str] | None,
    is_compound: bool,
    config: SuggestionConfig = DEFAULT_CONFIG,
    data_points: Sequence[ExerciseDataPoint] = (),
) -> SmartSuggestionResult:
    """
    Replay the sets logged so far against the history-based targets.

    Completed sets replace their target position (marked completed).  A set
    done at a clearly different load, or with far more reps than asked, is
    treated as a change of scheme and the remaining targets are taken from
    detect_pattern_shift().  Otherwise each easy, under-target or missed set
    rewrites every remaining target with the adapted next set, and on-target
    sets leave the remaining plan alone.

    Args:
        base: History-based result (its base_sets are the starting targets)
        completed_sets: Logged sets of this exercise, in completion order
        equipment: Rounding rule, or equipment name(s) to look it up
        is_compound: Compound movement
        config: Engine configuration
        data_points: Historical sessions used as templates on a change of
            scheme

    Returns:
        New result with adapted sets; base_sets are carried over unchanged
    """
    rule = _rule(equipment)
    base_sets = base.base_sets or base.sets
    targets = list(base_sets)
    adapted = False

    for idx, logged in enumerate(completed_sets):
        if idx >= len(targets):
            break
        target = targets[idx]
        weight = _number(logged.weight, target.weight)
        reps = _number(logged.reps, math.nan)
        if math.isnan(reps) or reps < 0:
            logger.warning("Ignoring logged set %d without usable reps", idx + 1)
            break
        reps = int(reps)

        remaining = len(targets) - idx - 1
        shift = None
        if remaining and _deliberate_change(target, weight, reps, config):
            shift = detect_pattern_shift(
                idx, weight, reps, targets, data_points, remaining, rule, config
            )

        targets[idx] = SuggestedSet(weight=weight, reps=reps, completed=True)

        if shift is not None and shift.shifted:
            targets[idx + 1:] = shift.new_targets
            adapted = True
            continue

        if classify_set_outcome(target.reps, reps, config) == "on_target":
            continue

        following = adapt_next_set(target, weight, reps, rule, is_compound, config)
        for j in range(idx + 1, len(targets)):
            targets[j] = following
        adapted = True

    return replace(base, sets=tuple(targets), base_sets=tuple(base_sets), adapted=adapted)


def _similarity(
    weight: float,
    reps: int,
    template: ExerciseDataPoint,
    position: int,
    config: SuggestionConfig,
) -> float:
    details = template.set_details
    ref = details[min(position, len(details) - 1)]
    w_dist = abs(weight - ref.weight) / ref.weight if ref.weight > 0 else 1.0
    r_dist = abs(reps - ref.reps) / ref.reps if ref.reps > 0 else 1.0
    share = config.pattern_shift_weight_share
    return w_dist * share + r_dist * (1 - share)


def detect_pattern_shift(
    completed_index: int,
    completed_weight: float,
    completed_reps: int,
    suggestions: Sequence[SuggestedSet],
    data_points: Sequence[ExerciseDataPoint],
    remaining: int,
    equipment: WeightIncrement | str | Iterable[str] | None,
    config: SuggestionConfig = DEFAULT_CONFIG,
) -> PatternShift:
    """
    Check whether a completed set signals a deliberate change of scheme.

    A shift is a deviation from the suggested set of more than
    PATTERN_SHIFT_WEIGHT_THRESHOLD in weight or PATTERN_SHIFT_REPS_THRESHOLD
    in reps.  Remaining sets are then re-targeted from the historical
    session whose same set position is closest to what was done (weighted
    distance, weight counts more than reps), with a small bump that never
    lowers the template weight below its grid value.  Without a close enough session the
    completed set is progressed by SMALL_BUMP per remaining set.

    Args:
        completed_index: Position of the set just completed
        completed_weight: Weight used
        completed_reps: Reps completed
        suggestions: Targets suggested for this exercise
        data_points: Historical sessions of the exercise
        remaining: Number of sets still to do
        equipment: Rounding rule, or equipment name(s) to look it up
        config: Engine configuration

    Returns:
        PatternShift with new targets for the remaining sets when shifted
    """
    no_shift = PatternShift(shifted=False)
    if remaining <= 0 or not 0 <= completed_index < len(suggestions):
        return no_shift

    rule = _rule(equipment)
    suggested = suggestions[completed_index]
    weight_dev = (
        abs(completed_weight - suggested.weight) / suggested.weight if suggested.weight > 0 else 0.0
    )
    reps_dev = abs(completed_reps - suggested.reps) / suggested.reps if suggested.reps > 0 else 0.0

    if (
        weight_dev <= config.pattern_shift_weight_threshold
        and reps_dev <= config.pattern_shift_reps_threshold
    ):
        return no_shift

    candidates = [p for p in data_points if p.set_details]
    best: ExerciseDataPoint | None = None
    best_distance = float("inf")
    for session in candidates:
        distance = _similarity(completed_weight, completed_reps, session, completed_index, config)
        if distance < best_distance:
            best, best_distance = session, distance

    if best is None or best_distance > config.pattern_shift_max_similarity:
        logger.debug("Pattern shift without a matching session; progressing from the logged set")
        targets = tuple(
            SuggestedSet(
                weight=round_to_increment(
                    completed_weight * (1 + config.small_bump_percent * (i + 1)), rule
                ),
                reps=clamp_reps(completed_reps, config.min_reps, config.max_reps),
            )
            for i in range(remaining)
        )
        return PatternShift(shifted=True, new_targets=targets)

    logger.debug("Pattern shift matched session at %d (distance %.3f)", best.date, best_distance)
    details = best.set_details
    new_targets = []
    for i in range(remaining):
        template = details[min(completed_index + 1 + i, len(details) - 1)]
        bumped = round_to_increment(template.weight * (1 + config.small_bump_percent), rule)
        new_targets.append(
            SuggestedSet(
                weight=max(bumped, round_to_increment(template.weight, rule)),
                reps=clamp_reps(template.reps, config.min_reps, config.max_reps),
            )
        )
    return PatternShift(shifted=True, new_targets=tuple(new_targets))
