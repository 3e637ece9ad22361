"""
Pure metric computation functions.

All functions are pure and typed for testability.
"""

import math
from datetime import datetime, timezone
from typing import Any, NamedTuple, Sequence

from .config import MS_PER_DAY


class Regression(NamedTuple):
    """Least-squares fit y = intercept + slope * x."""

    intercept: float
    slope: float
    r_squared: float


def linear_regression(points: Sequence[tuple[float, float]]) -> Regression:
    """
    Calculate least-squares linear regression with coefficient of determination.

    Uses y = a + b*x over (x, y) points.

    Args:
        points: Sequence of (x, y) tuples

    Returns:
        Regression(intercept, slope, r_squared).  Fewer than two points, or
        identical x-values, give slope 0 and R² 0.
    """
    n = len(points)
    if n < 2:
        if n == 1:
            return Regression(float(points[0][1]), 0.0, 0.0)
        return Regression(0.0, 0.0, 0.0)

    sum_x = sum(p[0] for p in points)
    sum_y = sum(p[1] for p in points)
    sum_xy = sum(p[0] * p[1] for p in points)
    sum_x2 = sum(p[0] ** 2 for p in points)

    # Avoid division by zero
    denominator = n * sum_x2 - sum_x**2
    if abs(denominator) < 1e-10:
        return Regression(sum_y / n, 0.0, 0.0)

    b = (n * sum_xy - sum_x * sum_y) / denominator
    a = (sum_y - b * sum_x) / n

    mean_y = sum_y / n
    ss_res = sum((p[1] - (a + b * p[0])) ** 2 for p in points)
    ss_tot = sum((p[1] - mean_y) ** 2 for p in points)
    r_squared = 1 - ss_res / ss_tot if ss_tot > 0 else 0.0

    return Regression(a, b, r_squared)


def population_stddev(values: Sequence[float]) -> float:
    """
    Population standard deviation.

    Returns 0.0 for fewer than two values.
    """
    if len(values) < 2:
        return 0.0
    mean = sum(values) / len(values)
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def median(values: Sequence[float]) -> float:
    """
    Upper median (element at index n // 2 of the sorted values).

    Args:
        values: Non-empty sequence

    Returns:
        Median value
    """
    if not values:
        raise ValueError("median of empty sequence")
    ordered = sorted(values)
    return ordered[len(ordered) // 2]


def alternation_rate(values: Sequence[float], pivot: float) -> float:
    """
    Fraction of consecutive pairs that cross the pivot.

    A value counts as "upper" when it is at or above the pivot.

    Returns:
        0.0 to 1.0; 0.0 for fewer than two values
    """
    if len(values) < 2:
        return 0.0
    crossings = sum(
        1 for prev, curr in zip(values, values[1:]) if (prev >= pivot) != (curr >= pivot)
    )
    return crossings / (len(values) - 1)


def set_volume(weight: float, reps: int) -> float:
    """Volume of one set: weight × reps."""
    return weight * reps


def clamp_reps(reps: float, min_reps: int, max_reps: int) -> int:
    """Round reps half-up and clamp to [min_reps, max_reps]."""
    return max(min_reps, min(max_reps, int(math.floor(reps + 0.5))))


def to_epoch_ms(value: Any) -> int:
    """
    Convert a workout date to epoch milliseconds.

    Accepts epoch milliseconds (int/float), datetime objects, ISO dates
    ("2026-03-01") and ISO datetimes ("2026-03-01T18:30:00Z").  Naive
    values are read as UTC.

    Raises:
        ValueError: If the value cannot be interpreted as a date
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid date: {value!r}")
    if isinstance(value, (int, float)):
        if math.isnan(value) or math.isinf(value):
            raise ValueError(f"Invalid date: {value!r}")
        return int(value)
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"Invalid date: {value!r}") from e
    else:
        raise ValueError(f"Invalid date: {value!r}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def resolve_now_ms(now: Any = None) -> int:
    """Reference time in epoch milliseconds; None reads the clock."""
    if now is None:
        return to_epoch_ms(datetime.now(timezone.utc))
    return to_epoch_ms(now)


def days_between(earlier_ms: int, later_ms: int) -> float:
    """Elapsed days between two epoch-millisecond timestamps."""
    return (later_ms - earlier_ms) / MS_PER_DAY
