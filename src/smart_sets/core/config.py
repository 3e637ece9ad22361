"""
Configuration constants for the smart set-suggestion engine.

All adjustable parameters are centralized here for easy tuning.
Values can be overridden per installation through suggestions.yaml
(see core/engine/config_loader.py).
"""

from dataclasses import dataclass
from typing import Final

# =============================================================================
# HISTORY WINDOW
# =============================================================================

LOOKBACK_DAYS: Final[int] = 56  # 8 weeks of history considered
MAX_SESSIONS: Final[int] = 20  # Newest sessions kept per exercise
MIN_SESSIONS: Final[int] = 3  # Below this the engine falls back
STALE_GAP_DAYS: Final[int] = 21  # Gap after which trends are ignored

MS_PER_DAY: Final[int] = 24 * 60 * 60 * 1000

# =============================================================================
# PATTERN DETECTION
# =============================================================================

R_SQUARED_COMPOUND: Final[float] = 0.6  # Overload fit required for compound lifts
R_SQUARED_ISOLATION: Final[float] = 0.5  # Overload fit required for isolation lifts

MIN_SESSIONS_REP_CYCLING: Final[int] = 4
REP_CYCLING_STDDEV: Final[float] = 3.0  # Avg-rep spread that signals cycling
REP_CYCLING_ALTERNATION: Final[float] = 0.6  # Share of median crossings
MIN_CLUSTER_SESSIONS: Final[int] = 2  # Sessions needed in each heavy/light cluster
HEAVY_REPS_FLOOR: Final[int] = 11  # 10-rep sessions always count as heavy

DELOAD_VOLUME_DROP: Final[float] = 0.20  # Volume drop vs trailing mean
DELOAD_TRAILING_SESSIONS: Final[int] = 3

PYRAMID_UP_THRESHOLD: Final[float] = 0.05
PYRAMID_DOWN_THRESHOLD: Final[float] = 0.05
SET_PATTERN_WINDOW: Final[int] = 6

# Fixed confidence per non-regression pattern
CONFIDENCE_REP_CYCLING: Final[float] = 0.7
CONFIDENCE_DELOAD: Final[float] = 0.6
CONFIDENCE_STABLE: Final[float] = 0.5

# =============================================================================
# SAFETY CAPS
# =============================================================================

MAX_INCREASE_COMPOUND: Final[float] = 0.05  # +5% per session
MAX_INCREASE_ISOLATION: Final[float] = 0.10  # +10% per session
MAX_DECREASE: Final[float] = 0.10  # -10% per session
DELOAD_WEIGHT_STEP: Final[float] = 0.05  # Weight cut applied when continuing a deload

MIN_REPS: Final[int] = 1
MAX_REPS: Final[int] = 30
MAX_REP_BUMP: Final[int] = 2  # Reps may trend up by at most this per session
STABLE_POOL_SESSIONS: Final[int] = 3

# =============================================================================
# INTRA-SESSION ADAPTATION
# =============================================================================

EASY_REPS_ABOVE: Final[int] = 2  # Reps above target that mark a set as easy
MISS_REPS_BELOW: Final[int] = 2  # Reps below target that mark a significant miss
EASY_BUMP_PERCENT: Final[float] = 0.025
MISS_REDUCE_PERCENT: Final[float] = 0.05
SMALL_BUMP_PERCENT: Final[float] = 0.025

PATTERN_SHIFT_WEIGHT_THRESHOLD: Final[float] = 0.15
PATTERN_SHIFT_REPS_THRESHOLD: Final[float] = 0.30
PATTERN_SHIFT_MAX_SIMILARITY: Final[float] = 0.25
PATTERN_SHIFT_WEIGHT_SHARE: Final[float] = 0.6  # Weight share of the similarity score; reps get the rest


@dataclass(frozen=True)
class SuggestionConfig:
    """
    Every tunable the engine reads, bundled so callers can pass one object.

    Defaults mirror the module constants above.
    """

    lookback_days: int = LOOKBACK_DAYS
    max_sessions: int = MAX_SESSIONS
    min_sessions: int = MIN_SESSIONS
    stale_gap_days: int = STALE_GAP_DAYS

    r_squared_compound: float = R_SQUARED_COMPOUND
    r_squared_isolation: float = R_SQUARED_ISOLATION
    min_sessions_rep_cycling: int = MIN_SESSIONS_REP_CYCLING
    rep_cycling_stddev: float = REP_CYCLING_STDDEV
    rep_cycling_alternation: float = REP_CYCLING_ALTERNATION
    min_cluster_sessions: int = MIN_CLUSTER_SESSIONS
    heavy_reps_floor: int = HEAVY_REPS_FLOOR
    deload_volume_drop: float = DELOAD_VOLUME_DROP
    deload_trailing_sessions: int = DELOAD_TRAILING_SESSIONS
    pyramid_up_threshold: float = PYRAMID_UP_THRESHOLD
    pyramid_down_threshold: float = PYRAMID_DOWN_THRESHOLD
    set_pattern_window: int = SET_PATTERN_WINDOW

    max_increase_compound: float = MAX_INCREASE_COMPOUND
    max_increase_isolation: float = MAX_INCREASE_ISOLATION
    max_decrease: float = MAX_DECREASE
    deload_weight_step: float = DELOAD_WEIGHT_STEP
    min_reps: int = MIN_REPS
    max_reps: int = MAX_REPS
    max_rep_bump: int = MAX_REP_BUMP
    stable_pool_sessions: int = STABLE_POOL_SESSIONS

    easy_reps_above: int = EASY_REPS_ABOVE
    miss_reps_below: int = MISS_REPS_BELOW
    easy_bump_percent: float = EASY_BUMP_PERCENT
    miss_reduce_percent: float = MISS_REDUCE_PERCENT
    small_bump_percent: float = SMALL_BUMP_PERCENT
    pattern_shift_weight_threshold: float = PATTERN_SHIFT_WEIGHT_THRESHOLD
    pattern_shift_reps_threshold: float = PATTERN_SHIFT_REPS_THRESHOLD
    pattern_shift_max_similarity: float = PATTERN_SHIFT_MAX_SIMILARITY
    pattern_shift_weight_share: float = PATTERN_SHIFT_WEIGHT_SHARE

    def __post_init__(self) -> None:
        """Validate config values."""
        if self.lookback_days <= 0:
            raise ValueError("lookback_days must be positive")
        if self.max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        if self.min_sessions < 1:
            raise ValueError("min_sessions must be at least 1")
        if not 0 <= self.max_decrease < 1:
            raise ValueError("max_decrease must be in [0, 1)")
        if self.min_reps < 1 or self.max_reps < self.min_reps:
            raise ValueError("rep bounds must satisfy 1 <= min_reps <= max_reps")

    def max_increase(self, is_compound: bool) -> float:
        """Per-session weight increase cap for the movement class."""
        return self.max_increase_compound if is_compound else self.max_increase_isolation

    def r_squared_threshold(self, is_compound: bool) -> float:
        """Regression fit needed before a trend counts as progressive overload."""
        return self.r_squared_compound if is_compound else self.r_squared_isolation


DEFAULT_CONFIG: Final[SuggestionConfig] = SuggestionConfig()
