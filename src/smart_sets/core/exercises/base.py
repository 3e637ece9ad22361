"""
Base types for exercise definitions.

ExerciseDefinition carries what the suggestion engine needs to know about
a movement: which equipment it is loaded with (for rounding), whether it is
a compound lift (for caps and trend strictness) and its exercise type
(only weight and bodyweight exercises get weight suggestions).
"""

from dataclasses import dataclass

from ..models import EXERCISE_TYPES, RESISTANCE_TYPES


@dataclass(frozen=True)
class ExerciseDefinition:
    """Catalog entry for one exercise."""

    # Identity
    exercise_id: str          # e.g. "barbell_bench_press"
    name: str                 # e.g. "Barbell Bench Press"; matches logged workouts

    # Load model
    exercise_type: str        # "weight" | "bodyweight" | "assisted" | "cardio" | ...
    equipment: tuple[str, ...]
    is_compound: bool

    # Browsing
    muscle_group: str = ""
    movement_pattern: str = ""
    difficulty: str = "Beginner"

    def __post_init__(self) -> None:
        """Validate definition data."""
        if not self.exercise_id:
            raise ValueError("exercise_id must not be empty")
        if not self.name:
            raise ValueError("name must not be empty")
        if self.exercise_type not in EXERCISE_TYPES:
            raise ValueError(f"Invalid exercise_type: {self.exercise_type}")

    @property
    def supports_suggestions(self) -> bool:
        """True if the engine suggests weights for this exercise."""
        return self.exercise_type in RESISTANCE_TYPES
