"""
Data models for smart-sets.

Input records mirror what a workout history store hands over (raw, possibly
malformed values are kept as given and validated during aggregation).
Derived records (data points, pattern analysis, suggestions) are frozen:
the engine never mutates the history it reads.
"""

from dataclasses import dataclass, field
from typing import Any, Literal, Union

PatternType = Literal[
    "progressive_overload",
    "rep_cycling",
    "deload",
    "stable",
    "fallback",
]
# The result-level tag adds a sentinel for exercises without a resistance signal.
SuggestionPattern = Literal[
    "progressive_overload",
    "rep_cycling",
    "deload",
    "stable",
    "fallback",
    "not_applicable",
]
SetArrangement = Literal["pyramid_up", "pyramid_down", "straight_across"]
RoundDirection = Literal["down", "nearest"]
ExerciseType = Literal["weight", "bodyweight", "assisted", "cardio", "duration", "reps_only"]
FallbackReason = Literal["insufficient_data", "stale", "error"]

EXERCISE_TYPES: tuple[str, ...] = (
    "weight",
    "bodyweight",
    "assisted",
    "cardio",
    "duration",
    "reps_only",
)
# Exercise types that carry a weight signal the analyzer can work with.
RESISTANCE_TYPES: frozenset[str] = frozenset({"weight", "bodyweight"})


# ---------------------------------------------------------------------------
# Input records
# ---------------------------------------------------------------------------


@dataclass
class SetLog:
    """
    One logged set as stored by the workout history.

    Weighted exercises fill weight/reps, cardio fills duration/distance and
    assisted exercises fill assistance_weight/reps. Values are not validated
    here; see core.history.aggregate_session.
    """

    completed: bool = True
    weight: Any = None
    reps: Any = None
    duration: Any = None  # seconds
    distance: Any = None
    assistance_weight: Any = None


@dataclass
class WorkoutExercise:
    """An exercise performed within a workout, with its sets in logged order."""

    name: str
    sets: list[SetLog] = field(default_factory=list)


@dataclass
class Workout:
    """
    A logged workout session.

    date accepts an ISO date ("2026-03-01"), an ISO datetime, or epoch
    milliseconds.
    """

    id: str
    date: Any
    exercises: list[WorkoutExercise] = field(default_factory=list)
    plan_id: str | None = None

    def find_exercise(self, name: str) -> WorkoutExercise | None:
        """Return the first exercise entry with the given name, or None."""
        for exercise in self.exercises:
            if exercise.name == name:
                return exercise
        return None


# ---------------------------------------------------------------------------
# Derived records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SetPositionData:
    """Weight and reps of one completed set at its position in the session."""

    weight: float
    reps: int


@dataclass(frozen=True)
class ExerciseDataPoint:
    """
    One historical session's aggregate for a single exercise.

    date is epoch milliseconds; total_volume is sum(weight * reps).
    """

    date: int
    avg_weight: float
    avg_reps: float
    top_set_weight: float
    top_set_reps: int
    total_sets: int
    total_volume: float
    set_details: tuple[SetPositionData, ...] = ()


@dataclass(frozen=True)
class ClusterData:
    """Sessions split into heavy (low-rep) and light (high-rep) groups."""

    heavy: tuple[ExerciseDataPoint, ...]
    light: tuple[ExerciseDataPoint, ...]
    next_is_heavy: bool

    @property
    def next_pool(self) -> tuple[ExerciseDataPoint, ...]:
        """Sessions of the cluster predicted for the next workout."""
        return self.heavy if self.next_is_heavy else self.light


# Pattern signals: each variant carries only the evidence relevant to it.


@dataclass(frozen=True)
class OverloadSignal:
    slope: float  # weight units per session
    r_squared: float


@dataclass(frozen=True)
class RepCyclingSignal:
    rep_stddev: float
    clusters: ClusterData


@dataclass(frozen=True)
class DeloadSignal:
    volume_drop: float  # fraction below the trailing mean


@dataclass(frozen=True)
class StableSignal:
    slope: float
    rep_stddev: float


@dataclass(frozen=True)
class FallbackSignal:
    reason: FallbackReason


PatternSignal = Union[
    OverloadSignal, RepCyclingSignal, DeloadSignal, StableSignal, FallbackSignal
]

_PATTERN_TAGS: dict[type, PatternType] = {
    OverloadSignal: "progressive_overload",
    RepCyclingSignal: "rep_cycling",
    DeloadSignal: "deload",
    StableSignal: "stable",
    FallbackSignal: "fallback",
}


@dataclass(frozen=True)
class PatternAnalysis:
    """Classifier output for one exercise."""

    signal: PatternSignal
    confidence: float
    data_points: tuple[ExerciseDataPoint, ...]
    set_arrangement: SetArrangement = "straight_across"

    def __post_init__(self) -> None:
        """Validate analysis data."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got {self.confidence}")
        if isinstance(self.signal, FallbackSignal) and self.confidence != 0.0:
            raise ValueError("fallback analysis must have zero confidence")

    @property
    def pattern(self) -> PatternType:
        """Pattern tag derived from the signal variant."""
        return _PATTERN_TAGS[type(self.signal)]

    @property
    def slope(self) -> float | None:
        """Regression slope for progressive overload, else None."""
        return self.signal.slope if isinstance(self.signal, OverloadSignal) else None

    @property
    def r_squared(self) -> float | None:
        """Regression R² for progressive overload, else None."""
        return self.signal.r_squared if isinstance(self.signal, OverloadSignal) else None


@dataclass(frozen=True)
class SuggestedSet:
    """A suggested (weight, reps) target; completed marks sets already logged."""

    weight: float
    reps: int
    completed: bool = False


@dataclass(frozen=True)
class SmartSuggestionResult:
    """
    Final output of the analyzer for one exercise.

    base_sets holds the history-derived targets before intra-session
    adaptation; pass the result back as ``previous`` on the next call within
    the same workout to skip recomputing them.
    """

    sets: tuple[SuggestedSet, ...]
    history_set_count: int
    pattern: SuggestionPattern
    confidence: float
    set_arrangement: SetArrangement = "straight_across"
    base_sets: tuple[SuggestedSet, ...] = ()
    adapted: bool = False

    @property
    def applicable(self) -> bool:
        """False for exercise types the analyzer does not suggest weights for."""
        return self.pattern != "not_applicable"

    @classmethod
    def not_applicable(cls) -> "SmartSuggestionResult":
        """Sentinel result for cardio, timed, reps-only and assisted exercises."""
        return cls(sets=(), history_set_count=0, pattern="not_applicable", confidence=0.0)


@dataclass(frozen=True)
class PatternShift:
    """Result of checking a completed set for a deliberate change of scheme."""

    shifted: bool
    new_targets: tuple[SuggestedSet, ...] = ()
