"""
JSONL-based workout history reader.

The history file contains one workout JSON object per line.  smart-sets
never writes to it: the workout logger owns the file and the engine only
reads it.
"""

import logging
from pathlib import Path

from ..core.models import Workout
from .serializers import ValidationError, json_line_to_workout

logger = logging.getLogger(__name__)


class HistoryStore:
    """
    Read-only access to workout history stored in JSONL format.

    Each non-empty line is one workout record:
    {"id": ..., "date": ..., "plan_id": ..., "exercises": [...]}
    """

    def __init__(self, history_path: str | Path):
        """
        Initialize the history store.

        Args:
            history_path: Path to the JSONL history file
        """
        self.history_path = Path(history_path)

    def exists(self) -> bool:
        """Check if the history file exists."""
        return self.history_path.exists()

    def load_workouts(self) -> list[Workout]:
        """
        Load all workouts from the history file.

        Returns:
            List of Workout in file order

        Raises:
            FileNotFoundError: If history file doesn't exist
            ValidationError: If a line is not a valid workout record
        """
        if not self.history_path.exists():
            raise FileNotFoundError(f"History file not found: {self.history_path}")

        workouts: list[Workout] = []

        with open(self.history_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    workouts.append(json_line_to_workout(line))
                except ValidationError as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.history_path}: {e}"
                    ) from e

        logger.debug("Loaded %d workouts from %s", len(workouts), self.history_path)
        return workouts


def get_default_history_path() -> Path:
    """Return the default history file path (~/.smart-sets/history.jsonl)."""
    return Path.home() / ".smart-sets" / "history.jsonl"
