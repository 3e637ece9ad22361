"""
Pattern rules: rep cycling, progressive overload and deload detection.

Implements the logic for classifying a lifter's recent training on one
exercise from its chronological data point series.

Classification order
--------------------
  1. fewer than MIN_SESSIONS points   → fallback (insufficient data)
  2. last session older than the gap  → fallback (stale)
  3. alternating heavy/light reps, flat weight → rep_cycling
  4. rising top-set weight, good fit    → progressive_overload
  5. last session volume well below the trailing mean → deload
  6. otherwise                          → stable

Staleness overrides every other signal: after a long break detraining makes
trend extrapolation unreliable.
"""

import logging
from collections.abc import Sequence
from datetime import datetime

from .config import (
    CONFIDENCE_DELOAD,
    CONFIDENCE_REP_CYCLING,
    CONFIDENCE_STABLE,
    DEFAULT_CONFIG,
    SuggestionConfig,
)
from .metrics import (
    alternation_rate,
    days_between,
    linear_regression,
    median,
    population_stddev,
    resolve_now_ms,
)
from .models import (
    ClusterData,
    DeloadSignal,
    ExerciseDataPoint,
    FallbackSignal,
    OverloadSignal,
    PatternAnalysis,
    RepCyclingSignal,
    SetArrangement,
    StableSignal,
)

logger = logging.getLogger(__name__)


def detect_set_arrangement(
    points: Sequence[ExerciseDataPoint],
    config: SuggestionConfig = DEFAULT_CONFIG,
) -> SetArrangement:
    """
    Detect how sets are arranged within sessions.

    Looks at the last few multi-set sessions and compares the first and
    last set weights:
    - last heavier than first by > threshold in ≥ 50% → pyramid_up
    - first heavier than last by > threshold in ≥ 50% → pyramid_down
    - otherwise → straight_across

    Args:
        points: Chronological data points
        config: Engine configuration

    Returns:
        Set arrangement tag
    """
    valid = [p for p in points if len(p.set_details) >= 2]
    if len(valid) < 2:
        return "straight_across"

    recent = valid[-config.set_pattern_window:]
    up = down = 0
    for session in recent:
        first = session.set_details[0].weight
        last = session.set_details[-1].weight
        if first <= 0:
            continue
        if last > first * (1 + config.pyramid_up_threshold):
            up += 1
        elif first > last * (1 + config.pyramid_down_threshold):
            down += 1

    total = len(recent)
    if up / total >= 0.5:
        return "pyramid_up"
    if down / total >= 0.5:
        return "pyramid_down"
    return "straight_across"


def cluster_sessions(
    points: Sequence[ExerciseDataPoint],
    config: SuggestionConfig = DEFAULT_CONFIG,
) -> ClusterData | None:
    """
    Split sessions into heavy (low-rep) and light (high-rep) clusters.

    The split point is the median average rep count, floored at
    HEAVY_REPS_FLOOR so 10-rep sessions always land in "heavy".  The next
    cluster is predicted by flipping the last one when the last four
    sessions alternate at least half the time, otherwise by picking the
    cluster that appeared less often recently.

    Returns:
        ClusterData, or None if either cluster is too small
    """
    if len(points) < config.min_sessions_rep_cycling:
        return None

    threshold = max(median([p.avg_reps for p in points]), config.heavy_reps_floor)

    heavy = tuple(p for p in points if p.avg_reps < threshold)
    light = tuple(p for p in points if p.avg_reps >= threshold)

    if len(heavy) < config.min_cluster_sessions or len(light) < config.min_cluster_sessions:
        return None

    last_was_heavy = points[-1].avg_reps < threshold

    last4 = list(points[-4:])
    flips = sum(
        1
        for prev, curr in zip(last4, last4[1:])
        if (prev.avg_reps < threshold) != (curr.avg_reps < threshold)
    )
    rate = flips / (len(last4) - 1) if len(last4) > 1 else 0.0

    if rate >= 0.5:
        next_is_heavy = not last_was_heavy
    else:
        recent_heavy = sum(1 for p in last4 if p.avg_reps < threshold)
        next_is_heavy = recent_heavy <= len(last4) // 2

    return ClusterData(heavy=heavy, light=light, next_is_heavy=next_is_heavy)


def detect_rep_cycling(
    points: Sequence[ExerciseDataPoint],
    config: SuggestionConfig = DEFAULT_CONFIG,
    is_compound: bool = True,
) -> RepCyclingSignal | None:
    """
    Detect an undulating rep scheme (e.g. heavy/light weeks).

    Requires enough sessions, a rep spread of at least REP_CYCLING_STDDEV,
    frequent crossings of the heavy/light split used for clustering, two
    usable clusters, and a top-set weight that is not climbing.  A rising
    trend that would pass as progressive overload is never rep cycling,
    however much the reps swing.

    Returns:
        RepCyclingSignal, or None if the pattern is absent
    """
    if len(points) < config.min_sessions_rep_cycling:
        return None

    reps = [p.avg_reps for p in points]
    sd = population_stddev(reps)
    if sd < config.rep_cycling_stddev:
        return None

    pivot = max(median(reps), config.heavy_reps_floor)
    if alternation_rate(reps, pivot) < config.rep_cycling_alternation:
        return None

    if detect_overload(points, is_compound, config) is not None:
        return None

    clusters = cluster_sessions(points, config)
    if clusters is None:
        return None
    return RepCyclingSignal(rep_stddev=sd, clusters=clusters)


def detect_overload(
    points: Sequence[ExerciseDataPoint],
    is_compound: bool,
    config: SuggestionConfig = DEFAULT_CONFIG,
) -> OverloadSignal | None:
    """
    Detect progressive overload from top-set weight over session index.

    Overload = (slope > 0) AND (R² ≥ movement-class threshold)

    Returns:
        OverloadSignal, or None if the trend is flat, falling or noisy
    """
    fit = linear_regression([(i, p.top_set_weight) for i, p in enumerate(points)])
    if fit.slope > 0 and fit.r_squared >= config.r_squared_threshold(is_compound):
        return OverloadSignal(slope=fit.slope, r_squared=fit.r_squared)
    return None


def volume_drop_ratio(
    points: Sequence[ExerciseDataPoint],
    config: SuggestionConfig = DEFAULT_CONFIG,
) -> float:
    """
    How far the last session's volume fell below the trailing mean.

    drop = 1 − V_last / mean(V of up to DELOAD_TRAILING_SESSIONS before it)

    Returns:
        Drop fraction (negative when volume rose); 0.0 without a baseline
    """
    if len(points) < 2:
        return 0.0
    trailing = points[-1 - config.deload_trailing_sessions:-1]
    baseline = sum(p.total_volume for p in trailing) / len(trailing)
    if baseline <= 0:
        return 0.0
    return 1 - points[-1].total_volume / baseline


def detect_deload(
    points: Sequence[ExerciseDataPoint],
    config: SuggestionConfig = DEFAULT_CONFIG,
) -> DeloadSignal | None:
    """
    Detect a deliberate deload in the most recent session.

    The volume drop must exceed DELOAD_VOLUME_DROP and must not be
    explained by a long break before that session.

    Returns:
        DeloadSignal, or None
    """
    if len(points) < 2:
        return None
    gap_days = days_between(points[-2].date, points[-1].date)
    if gap_days > config.stale_gap_days:
        return None
    drop = volume_drop_ratio(points, config)
    if drop > config.deload_volume_drop:
        return DeloadSignal(volume_drop=drop)
    return None


def is_stale(
    points: Sequence[ExerciseDataPoint],
    now: datetime | int | None = None,
    config: SuggestionConfig = DEFAULT_CONFIG,
) -> bool:
    """True if the last session is older than STALE_GAP_DAYS."""
    if not points:
        return False
    return days_between(points[-1].date, resolve_now_ms(now)) > config.stale_gap_days


def analyze_pattern(
    points: Sequence[ExerciseDataPoint],
    is_compound: bool,
    *,
    now: datetime | int | None = None,
    config: SuggestionConfig = DEFAULT_CONFIG,
) -> PatternAnalysis:
    """
    Classify the dominant training pattern for one exercise.

    Args:
        points: Chronological data points (oldest first)
        is_compound: Compound movement (stricter overload threshold)
        now: Reference time for the staleness check
        config: Engine configuration

    Returns:
        PatternAnalysis carrying the signal and its confidence
    """
    points = tuple(points)

    if len(points) < config.min_sessions:
        return PatternAnalysis(FallbackSignal("insufficient_data"), 0.0, points)

    if is_stale(points, now, config):
        logger.debug("Last session is stale; falling back")
        return PatternAnalysis(FallbackSignal("stale"), 0.0, points)

    arrangement = detect_set_arrangement(points, config)

    cycling = detect_rep_cycling(points, config, is_compound)
    if cycling is not None:
        logger.debug("Rep cycling detected (rep sd %.2f)", cycling.rep_stddev)
        return PatternAnalysis(cycling, CONFIDENCE_REP_CYCLING, points, arrangement)

    overload = detect_overload(points, is_compound, config)
    if overload is not None:
        logger.debug(
            "Progressive overload detected (slope %.2f, R² %.3f)",
            overload.slope,
            overload.r_squared,
        )
        confidence = min(1.0, max(0.0, overload.r_squared))
        return PatternAnalysis(overload, confidence, points, arrangement)

    deload = detect_deload(points, config)
    if deload is not None:
        logger.debug("Deload detected (volume drop %.0f%%)", deload.volume_drop * 100)
        return PatternAnalysis(deload, CONFIDENCE_DELOAD, points, arrangement)

    fit = linear_regression([(i, p.top_set_weight) for i, p in enumerate(points)])
    stable = StableSignal(
        slope=fit.slope,
        rep_stddev=population_stddev([p.avg_reps for p in points]),
    )
    return PatternAnalysis(stable, CONFIDENCE_STABLE, points, arrangement)
