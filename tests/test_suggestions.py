"""
Behavioural tests for the suggestion engine.

Each class builds a small workout history, runs the classifier and/or
get_suggestion() with a fixed reference time, and checks the pattern,
confidence and suggested sets against hand-computed values.
"""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from smart_sets.core.adaptation import (
    adapt_next_set,
    adapt_session,
    classify_set_outcome,
    detect_pattern_shift,
)
from smart_sets.core.config import SuggestionConfig
from smart_sets.core.equipment import WeightIncrement
from smart_sets.core.history import aggregate_session, extract_data_points
from smart_sets.core.metrics import to_epoch_ms
from smart_sets.core.models import (
    DeloadSignal,
    FallbackSignal,
    OverloadSignal,
    PatternAnalysis,
    RepCyclingSignal,
    SetLog,
    SmartSuggestionResult,
    StableSignal,
    SuggestedSet,
    Workout,
    WorkoutExercise,
)
from smart_sets.core.patterns import analyze_pattern, cluster_sessions, detect_set_arrangement
from smart_sets.core.suggester import (
    apply_straight_across_progression,
    get_suggestion,
    suggest_for_exercise,
)

NOW = datetime(2026, 3, 29, tzinfo=timezone.utc)
SQUAT = "Barbell Back Squat"
BARBELL = WeightIncrement(5.0, "down")

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _date(days_ago: int) -> str:
    return (NOW - timedelta(days=days_ago)).strftime("%Y-%m-%d")


def _workout(days_ago: int, sets: list[tuple], name: str = SQUAT) -> Workout:
    return Workout(
        id=f"{name}-{days_ago}",
        date=_date(days_ago),
        exercises=[WorkoutExercise(name, [SetLog(weight=w, reps=r) for w, r in sets])],
    )


def _history(sessions: list[tuple[int, list[tuple]]], name: str = SQUAT) -> list[Workout]:
    return [_workout(days_ago, sets, name) for days_ago, sets in sessions]


def _suggest(workouts, name: str = SQUAT, equipment="Barbell", compound: bool = True, **kwargs):
    return get_suggestion(name, equipment, compound, workouts, now=NOW, **kwargs)


def _pairs(sets) -> list[tuple[float, int]]:
    return [(s.weight, s.reps) for s in sets]


def _point(days_ago: int, sets: list[tuple]):
    return aggregate_session(
        to_epoch_ms(_date(days_ago)), [SetLog(weight=w, reps=r) for w, r in sets]
    )


# Five sessions adding 5 lb each time: 180 → 200, 3×5.
OVERLOAD_HISTORY = _history(
    [(20 - 4 * i, [(180 + 5 * i, 5)] * 3) for i in range(5)]
)

# Three sessions of 3×10 @ 200.
STABLE_HISTORY = _history([(9, [(200, 10)] * 3), (5, [(200, 10)] * 3), (1, [(200, 10)] * 3)])

# Heavy 3×5 and light 3×12 days alternating, ending on a light day.
CYCLING_HISTORY = _history(
    [
        (22, [(190, 5)] * 3),
        (18, [(150, 12)] * 3),
        (14, [(195, 5)] * 3),
        (10, [(150, 12)] * 3),
        (6, [(200, 5)] * 3),
        (2, [(150, 12)] * 3),
    ]
)

# Three 5×5 sessions followed by a 3×5 session at the same weight.
DELOAD_HISTORY = _history(
    [(12, [(200, 5)] * 5), (8, [(200, 5)] * 5), (4, [(200, 5)] * 5), (1, [(200, 5)] * 3)]
)

# Straight-across 3×5 plan for OVERLOAD_HISTORY: 205 lb, one extra rep per set.
RAMPED_OVERLOAD = [(205.0, 5), (205.0, 6), (205.0, 7)]


# =============================================================================
# Classification
# =============================================================================


class TestClassification:
    def _analyze(self, workouts, compound: bool = True):
        points = extract_data_points(SQUAT, workouts, now=NOW)
        return analyze_pattern(points, compound, now=NOW)

    def test_overload(self):
        analysis = self._analyze(OVERLOAD_HISTORY)
        assert analysis.pattern == "progressive_overload"
        assert isinstance(analysis.signal, OverloadSignal)
        assert analysis.slope == pytest.approx(5.0)
        assert analysis.confidence == pytest.approx(1.0)

    def test_stable(self):
        analysis = self._analyze(STABLE_HISTORY)
        assert isinstance(analysis.signal, StableSignal)
        assert analysis.confidence == pytest.approx(0.5)
        assert analysis.slope is None

    def test_deload(self):
        analysis = self._analyze(DELOAD_HISTORY)
        assert isinstance(analysis.signal, DeloadSignal)
        assert analysis.signal.volume_drop == pytest.approx(0.4)
        assert analysis.confidence == pytest.approx(0.6)

    def test_rep_cycling_takes_precedence(self):
        analysis = self._analyze(CYCLING_HISTORY)
        assert isinstance(analysis.signal, RepCyclingSignal)
        assert analysis.confidence == pytest.approx(0.7)

    def test_rising_weight_with_alternating_reps_is_overload(self):
        """+5 lb every session (R² = 1) while reps swing 5/15: not rep cycling."""
        workouts = _history(
            [(22 - 4 * i, [(100 + 5 * i, 5 if i % 2 == 0 else 15)] * 3) for i in range(6)]
        )
        analysis = self._analyze(workouts)
        assert analysis.pattern == "progressive_overload"
        assert analysis.confidence == pytest.approx(1.0)

        result = _suggest(workouts)
        assert result.pattern == "progressive_overload"
        assert all(125 <= s.weight <= 125 * 1.05 for s in result.sets)

    def test_insufficient_data(self):
        analysis = self._analyze(OVERLOAD_HISTORY[-2:])
        assert analysis.signal == FallbackSignal("insufficient_data")
        assert analysis.confidence == 0.0

    def test_stale_overrides_trend(self):
        """Last session 30 days ago: the clean overload trend is ignored."""
        workouts = _history([(38, [(180, 5)]), (34, [(185, 5)]), (30, [(190, 5)])])
        analysis = self._analyze(workouts)
        assert analysis.signal == FallbackSignal("stale")

    def test_noisy_trend_is_not_overload(self):
        workouts = _history(
            [(16, [(200, 5)]), (12, [(220, 5)]), (8, [(200, 5)]), (4, [(225, 5)]), (1, [(205, 5)])]
        )
        assert self._analyze(workouts).pattern != "progressive_overload"

    def test_isolation_threshold_is_looser(self):
        """R² ≈ 0.57 clears the isolation bar (0.5) but not the compound one (0.6)."""
        workouts = _history(
            [(16, [(100, 8)]), (12, [(100, 8)]), (8, [(105, 8)]), (4, [(110, 8)]), (1, [(105, 8)])]
        )
        points = extract_data_points(SQUAT, workouts, now=NOW)
        assert analyze_pattern(points, False, now=NOW).pattern == "progressive_overload"
        assert analyze_pattern(points, True, now=NOW).pattern != "progressive_overload"

    def test_fallback_confidence_must_be_zero(self):
        with pytest.raises(ValueError):
            PatternAnalysis(FallbackSignal("stale"), 0.5, ())


class TestSetArrangement:
    def test_pyramid_up(self):
        points = [_point(d, [(100, 10), (120, 8), (140, 6)]) for d in (9, 5, 1)]
        assert detect_set_arrangement(points) == "pyramid_up"

    def test_pyramid_down(self):
        points = [_point(d, [(140, 6), (120, 8), (100, 10)]) for d in (9, 5, 1)]
        assert detect_set_arrangement(points) == "pyramid_down"

    def test_straight_across(self):
        points = [_point(d, [(100, 10)] * 3) for d in (9, 5, 1)]
        assert detect_set_arrangement(points) == "straight_across"


class TestClusters:
    def test_alternating_history_predicts_other_cluster(self):
        points = extract_data_points(SQUAT, CYCLING_HISTORY, now=NOW)
        clusters = cluster_sessions(points)
        assert len(clusters.heavy) == 3
        assert len(clusters.light) == 3
        assert clusters.next_is_heavy is True
        assert all(p.avg_reps == 5 for p in clusters.next_pool)

    def test_single_cluster_is_not_cycling(self):
        points = extract_data_points(SQUAT, OVERLOAD_HISTORY, now=NOW)
        assert cluster_sessions(points) is None


# =============================================================================
# Suggestions
# =============================================================================


class TestOverloadSuggestion:
    def test_continues_the_trend(self):
        result = _suggest(OVERLOAD_HISTORY)
        assert result.pattern == "progressive_overload"
        assert _pairs(result.sets) == [(205.0, 5), (205.0, 6), (205.0, 7)]
        assert result.history_set_count == 3

    def test_compound_cap(self):
        """Slope +20/session: compound capped at +5% (147 → 145 on the grid)."""
        workouts = _history([(9, [(100, 5)] * 2), (5, [(120, 5)] * 2), (1, [(140, 5)] * 2)])
        result = _suggest(workouts, compound=True)
        assert _pairs(result.sets) == [(145.0, 5), (145.0, 6)]

    def test_isolation_cap(self):
        """Same history as an isolation lift: +10% (154 → 150)."""
        workouts = _history([(9, [(100, 5)] * 2), (5, [(120, 5)] * 2), (1, [(140, 5)] * 2)])
        result = _suggest(workouts, compound=False)
        assert _pairs(result.sets) == [(150.0, 5), (150.0, 6)]

    def test_weights_on_equipment_grid(self):
        result = _suggest(OVERLOAD_HISTORY)
        assert all(s.weight % 5 == 0 for s in result.sets)

    def test_never_below_reference(self):
        result = _suggest(OVERLOAD_HISTORY)
        assert all(s.weight >= 200 for s in result.sets)

    def test_off_grid_history_rounds_down(self):
        """127.5 → 132.5 → 137.5: the trend target 142.5 lands on 140."""
        workouts = _history(
            [(9, [(127.5, 5)] * 3), (5, [(132.5, 5)] * 3), (1, [(137.5, 5)] * 3)]
        )
        result = _suggest(workouts)
        assert result.pattern == "progressive_overload"
        assert _pairs(result.sets) == [(140.0, 5), (140.0, 6), (140.0, 7)]


class TestStableSuggestion:
    def test_holds_weight_and_ramps_reps(self):
        result = _suggest(STABLE_HISTORY)
        assert result.pattern == "stable"
        assert _pairs(result.sets) == [(200.0, 10), (200.0, 11), (200.0, 12)]

    def test_rep_trend_is_followed(self):
        workouts = _history([(9, [(100, 8)] * 3), (5, [(100, 9)] * 3), (1, [(100, 10)] * 3)])
        result = _suggest(workouts)
        assert _pairs(result.sets) == [(100.0, 11), (100.0, 12), (100.0, 13)]

    def test_bodyweight_exercise(self):
        workouts = _history(
            [(9, [(0, 8)] * 3), (5, [(0, 9)] * 3), (1, [(0, 10)] * 3)], name="Pull-Up"
        )
        result = _suggest(workouts, name="Pull-Up", equipment="Bodyweight", exercise_type="bodyweight")
        assert result.pattern == "stable"
        assert _pairs(result.sets) == [(0.0, 11), (0.0, 12), (0.0, 13)]


    def test_off_grid_reference_stays_on_grid(self):
        """3×8 @ 137.5 on a 5 lb grid rounds down to 135, never back up to 137.5."""
        workouts = _history([(d, [(137.5, 8)] * 3) for d in (9, 5, 1)])
        result = _suggest(workouts)
        assert result.pattern == "stable"
        assert all(s.weight % 5 == 0 and s.weight <= 137.5 for s in result.sets)
        assert _pairs(result.sets) == [(135.0, 8), (135.0, 9), (135.0, 10)]

    def test_pyramid_keeps_per_set_reps(self):
        workouts = _history([(d, [(100, 10), (120, 8), (140, 6)]) for d in (9, 5, 1)])
        result = _suggest(workouts)
        assert result.pattern == "stable"
        assert result.set_arrangement == "pyramid_up"
        assert _pairs(result.sets) == [(100.0, 10), (120.0, 8), (140.0, 6)]


class TestStraightAcrossProgression:
    def test_one_extra_rep_per_set(self):
        sets = apply_straight_across_progression([SuggestedSet(100, 8)] * 3)
        assert _pairs(sets) == [(100, 8), (100, 9), (100, 10)]

    def test_single_set_unchanged(self):
        assert apply_straight_across_progression([SuggestedSet(100, 8)]) == [SuggestedSet(100, 8)]

    def test_reps_capped(self):
        sets = apply_straight_across_progression([SuggestedSet(0, 29)] * 3)
        assert [s.reps for s in sets] == [29, 30, 30]


class TestRepCyclingSuggestion:
    def test_targets_the_heavy_cluster(self):
        """Last session was light, so the heavy trend (190, 195, 200) continues."""
        result = _suggest(CYCLING_HISTORY)
        assert result.pattern == "rep_cycling"
        assert _pairs(result.sets) == [(205.0, 5), (205.0, 6), (205.0, 7)]


class TestDeloadSuggestion:
    def test_weights_strictly_below_reference(self):
        result = _suggest(DELOAD_HISTORY)
        assert result.pattern == "deload"
        assert _pairs(result.sets) == [(190.0, 5)] * 3
        assert all(s.weight < 200 for s in result.sets)

    def test_light_load_steps_a_full_plate(self):
        """45 lb: one 5 lb step is an 11% cut.  Strictly lower wins over the 10% cap."""
        workouts = _history(
            [(12, [(45, 5)] * 5), (8, [(45, 5)] * 5), (4, [(45, 5)] * 5), (1, [(45, 5)] * 3)]
        )
        result = _suggest(workouts)
        assert result.pattern == "deload"
        assert _pairs(result.sets) == [(40.0, 5)] * 3


class TestFallback:
    def test_no_history(self):
        result = _suggest([])
        assert result.pattern == "fallback"
        assert result.confidence == 0.0
        assert result.sets == ()

    def test_repeats_last_sets_when_too_few(self):
        workouts = _history([(5, [(100, 8)] * 2), (1, [(105, 8), (105, 7)])])
        result = _suggest(workouts)
        assert result.pattern == "fallback"
        assert _pairs(result.sets) == [(105.0, 8), (105.0, 7)]

    def test_repeats_last_sets_when_stale(self):
        workouts = _history([(38, [(180, 5)]), (34, [(185, 5)]), (30, [(190, 5)] * 2)])
        result = _suggest(workouts)
        assert result.pattern == "fallback"
        assert _pairs(result.sets) == [(190.0, 5)] * 2

    def test_last_known_sets_outside_lookback(self):
        workouts = _history([(80, [(150, 5)] * 3)])
        result = _suggest(workouts)
        assert _pairs(result.sets) == [(150.0, 5)] * 3

    def test_internal_error_degrades(self, caplog):
        broken = Workout(id="broken", date=_date(1), exercises=None)
        with caplog.at_level(logging.ERROR, logger="smart_sets.core.suggester"):
            result = _suggest([broken])
        assert result.pattern == "fallback"
        assert result.sets == ()
        assert "Suggestion failed" in caplog.text


class TestNotApplicable:
    @pytest.mark.parametrize("exercise_type", ["cardio", "duration", "reps_only", "assisted"])
    def test_sentinel(self, exercise_type):
        result = _suggest(OVERLOAD_HISTORY, exercise_type=exercise_type)
        assert result.pattern == "not_applicable"
        assert not result.applicable
        assert result.sets == ()

    def test_classmethod(self):
        assert SmartSuggestionResult.not_applicable().confidence == 0.0


class TestMalformedHistory:
    def test_bad_session_excluded(self, caplog):
        workouts = OVERLOAD_HISTORY + [_workout(2, [(200, "five")])]
        with caplog.at_level(logging.WARNING):
            result = _suggest(workouts)
        assert result.pattern == "progressive_overload"
        assert _pairs(result.sets) == RAMPED_OVERLOAD
        assert "Skipping" in caplog.text


    @pytest.mark.parametrize("bad_set", [(200, float("inf")), (float("inf"), 5)])
    def test_infinite_values_excluded(self, bad_set, caplog):
        """json.loads accepts Infinity, so it can reach the aggregator."""
        workouts = OVERLOAD_HISTORY + [_workout(2, [bad_set])]
        with caplog.at_level(logging.WARNING):
            result = _suggest(workouts)
        assert result.pattern == "progressive_overload"
        assert _pairs(result.sets) == RAMPED_OVERLOAD
        assert "Skipping" in caplog.text


class TestDeterminism:
    def test_same_inputs_same_output(self):
        first = _suggest(CYCLING_HISTORY)
        second = _suggest(list(reversed(CYCLING_HISTORY)))
        assert first == second

    def test_lookback_from_config(self):
        config = SuggestionConfig(lookback_days=7)
        result = _suggest(OVERLOAD_HISTORY, config=config)
        assert result.pattern == "fallback"


class TestCatalogSuggestion:
    def test_uses_catalog_settings(self):
        result = suggest_for_exercise(SQUAT, OVERLOAD_HISTORY, now=NOW)
        assert _pairs(result.sets) == RAMPED_OVERLOAD

    def test_catalog_exercise_type(self):
        result = suggest_for_exercise("Treadmill Run", [], now=NOW)
        assert result.pattern == "not_applicable"

    def test_unknown_exercise(self):
        with pytest.raises(ValueError):
            suggest_for_exercise("Underwater Basket Weaving", [], now=NOW)


# =============================================================================
# Intra-session adaptation
# =============================================================================


class TestAdaptNextSet:
    TARGET = SuggestedSet(weight=200, reps=10)

    @pytest.mark.parametrize(
        "reps, outcome",
        [(12, "easy"), (11, "on_target"), (10, "on_target"), (8, "under"), (7, "miss")],
    )
    def test_outcomes(self, reps, outcome):
        assert classify_set_outcome(10, reps) == outcome

    def test_easy_set_bumps_weight(self):
        assert adapt_next_set(self.TARGET, 200, 12, BARBELL, True) == SuggestedSet(205.0, 10)

    def test_on_target_holds(self):
        assert adapt_next_set(self.TARGET, 200, 10, BARBELL, True) == SuggestedSet(200, 10)

    def test_slightly_under_accepts_reps(self):
        assert adapt_next_set(self.TARGET, 200, 9, BARBELL, True) == SuggestedSet(200, 9)

    def test_miss_reduces_weight(self):
        assert adapt_next_set(self.TARGET, 200, 6, BARBELL, True) == SuggestedSet(190.0, 10)

    def test_baseline_is_weight_used(self):
        """Lifter went heavier than suggested; adapt from the weight actually lifted."""
        assert adapt_next_set(self.TARGET, 220, 12, "Barbell", True).weight == 225.0

    def test_miss_on_light_load_drops_one_step(self):
        """45 × 0.95 = 42.75 rounds down to 40 on a 5 lb grid."""
        assert adapt_next_set(SuggestedSet(45, 10), 45, 6, BARBELL, True) == SuggestedSet(40.0, 10)

    def test_small_weights_may_not_move(self):
        """100 × 1.025 = 102.5 rounds back down to 100 on a 5 lb grid."""
        assert adapt_next_set(SuggestedSet(100, 10), 100, 12, BARBELL, False).weight == 100.0


class TestAdaptSession:
    def test_easy_first_set(self):
        result = _suggest(STABLE_HISTORY, current_session_sets=[SetLog(weight=200, reps=12)])
        assert result.adapted
        assert result.sets[0] == SuggestedSet(200.0, 12, completed=True)
        assert _pairs(result.sets[1:]) == [(205.0, 10)] * 2
        assert _pairs(result.base_sets) == [(200.0, 10), (200.0, 11), (200.0, 12)]

    def test_miss_overrides_remaining(self):
        """A 40% rep shortfall at the planned load is a miss, not a change of scheme."""
        result = _suggest(STABLE_HISTORY, current_session_sets=[SetLog(weight=200, reps=6)])
        assert _pairs(result.sets[1:]) == [(190.0, 10)] * 2

    def test_on_target_keeps_plan(self):
        result = _suggest(STABLE_HISTORY, current_session_sets=[SetLog(weight=200, reps=10)])
        assert not result.adapted
        assert _pairs(result.sets[1:]) == [(200.0, 11), (200.0, 12)]

    def test_each_set_replays_in_order(self):
        """Easy set → 205; the next set at 205 is missed → 190 for the last one."""
        done = [SetLog(weight=200, reps=12), SetLog(weight=205, reps=6)]
        result = _suggest(STABLE_HISTORY, current_session_sets=done)
        assert _pairs(result.sets) == [(200.0, 12), (205.0, 6), (190.0, 10)]
        assert [s.completed for s in result.sets] == [True, True, False]

    def test_switch_to_light_day_follows_history(self):
        """Heavy day planned, light set logged: retarget from the matching light sessions."""
        result = _suggest(CYCLING_HISTORY, current_session_sets=[SetLog(weight=150, reps=12)])
        assert result.adapted
        assert result.sets[0] == SuggestedSet(150.0, 12, completed=True)
        assert _pairs(result.sets[1:]) == [(150.0, 12)] * 2

    def test_switch_without_history_progresses_from_logged_set(self):
        base = _suggest(STABLE_HISTORY)
        result = adapt_session(base, [SetLog(weight=150, reps=10)], BARBELL, True)
        assert _pairs(result.sets[1:]) == [(150.0, 10), (155.0, 10)]

    def test_uncompleted_sets_ignored(self):
        done = [SetLog(completed=False, weight=200, reps=20)]
        result = _suggest(STABLE_HISTORY, current_session_sets=done)
        assert not result.adapted

    def test_previous_result_reused(self):
        base = _suggest(STABLE_HISTORY)
        done = [SetLog(weight=200, reps=12)]
        reused = _suggest([], current_session_sets=done, previous=base)
        fresh = _suggest(STABLE_HISTORY, current_session_sets=done)
        assert reused == fresh

    def test_more_logged_sets_than_targets(self):
        base = _suggest(STABLE_HISTORY)
        done = [SetLog(weight=200, reps=10)] * 5
        result = adapt_session(base, done, BARBELL, True)
        assert len(result.sets) == 3
        assert all(s.completed for s in result.sets)


class TestPatternShift:
    SUGGESTED = [SuggestedSet(200, 5)] * 3

    def _points(self):
        return [
            _point(12, [(200, 5)] * 3),
            _point(8, [(150, 12)] * 3),
            _point(4, [(200, 5)] * 3),
        ]

    def test_small_deviation_is_not_a_shift(self):
        shift = detect_pattern_shift(0, 200, 6, self.SUGGESTED, self._points(), 2, BARBELL)
        assert not shift.shifted

    def test_matches_historical_session(self):
        """150 × 12 instead of 200 × 5: retarget from the light session."""
        shift = detect_pattern_shift(0, 150, 12, self.SUGGESTED, self._points(), 2, BARBELL)
        assert shift.shifted
        assert _pairs(shift.new_targets) == [(150.0, 12)] * 2

    def test_no_match_progresses_from_logged_set(self):
        shift = detect_pattern_shift(0, 100, 20, self.SUGGESTED, self._points(), 2, BARBELL)
        assert shift.shifted
        assert _pairs(shift.new_targets) == [(100.0, 20), (105.0, 20)]

    def test_nothing_remaining(self):
        shift = detect_pattern_shift(2, 100, 20, self.SUGGESTED, self._points(), 0, BARBELL)
        assert not shift.shifted
