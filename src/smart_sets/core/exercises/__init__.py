"""
Exercise catalog for smart-sets.

Each exercise is described by an ExerciseDefinition that tells the
suggestion engine how the movement is loaded.
"""

from .base import ExerciseDefinition
from .registry import EXERCISE_REGISTRY, find_exercise, get_exercise

__all__ = [
    "ExerciseDefinition",
    "EXERCISE_REGISTRY",
    "find_exercise",
    "get_exercise",
]
