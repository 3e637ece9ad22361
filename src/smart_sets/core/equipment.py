"""
Equipment-aware weight rounding.

Suggested weights are quantised to what can actually be loaded in a gym:
plate-loaded and pin-selected equipment moves in 5 lb steps and rounds
DOWN, bodyweight and band work moves in 1-unit steps and rounds to the
nearest unit.

Bounded rounding
----------------
Every suggestion is also held inside a window around the reference set
(the same set position in the most recent comparable session):

  reference × (1 − max_decrease)  ≤  weight  ≤  reference × (1 + max_increase)

The raw target is clamped to that window first, then rounded.  The grid
and its rounding direction take precedence over the window: a "down" rule
never returns more than the clamped target, so when no grid value fits
(light loads on a 5 lb grid) the result may sit just below the window.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from .models import RoundDirection

# Absorbs float noise such as 200 * 1.025 = 204.99999999999997
_GRID_EPSILON = 1e-9


@dataclass(frozen=True)
class WeightIncrement:
    """Per-equipment rounding rule."""

    increment: float
    round_direction: RoundDirection = "down"

    def __post_init__(self) -> None:
        """Validate increment data."""
        if self.increment < 0:
            raise ValueError("increment must be non-negative")
        if self.round_direction not in ("down", "nearest"):
            raise ValueError(f"Invalid round_direction: {self.round_direction}")


# ---------------------------------------------------------------------------
# Increment catalog (lb)
# ---------------------------------------------------------------------------

EQUIPMENT_INCREMENTS: dict[str, WeightIncrement] = {
    "Barbell": WeightIncrement(5.0, "down"),
    "Smith Machine": WeightIncrement(5.0, "down"),
    "Trap Bar": WeightIncrement(5.0, "down"),
    "Dumbbell": WeightIncrement(5.0, "down"),
    "Kettlebell": WeightIncrement(5.0, "down"),
    "Cable": WeightIncrement(5.0, "down"),
    "Machine": WeightIncrement(5.0, "down"),
    "Bench": WeightIncrement(5.0, "down"),
    "Bodyweight": WeightIncrement(1.0, "nearest"),
    "Bands": WeightIncrement(1.0, "nearest"),
    "Cardio Machine": WeightIncrement(1.0, "nearest"),
}

DEFAULT_INCREMENT = WeightIncrement(5.0, "down")


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def _as_list(equipment: str | Iterable[str] | None) -> list[str]:
    if equipment is None:
        return []
    if isinstance(equipment, str):
        return [equipment]
    return list(equipment)


def get_weight_increment(
    equipment: str | Iterable[str] | None,
    increments: dict[str, WeightIncrement] | None = None,
) -> WeightIncrement:
    """
    Return the rounding rule for an exercise's equipment.

    The first recognised equipment type wins; unknown or missing equipment
    uses DEFAULT_INCREMENT.

    Args:
        equipment: One equipment name or the exercise's equipment list
        increments: Catalog override (defaults to EQUIPMENT_INCREMENTS)

    Returns:
        WeightIncrement to apply
    """
    catalog = increments if increments is not None else EQUIPMENT_INCREMENTS
    for item in _as_list(equipment):
        if item in catalog:
            return catalog[item]
    return DEFAULT_INCREMENT


def round_to_increment(weight: float, rule: WeightIncrement) -> float:
    """
    Quantise a weight to the equipment grid.

    "down" floors to the grid, "nearest" rounds half-up.  Results are
    never negative.
    """
    if rule.increment <= 0:
        return max(0.0, weight)

    steps = weight / rule.increment
    if rule.round_direction == "nearest":
        n = math.floor(steps + 0.5 + _GRID_EPSILON)
    else:
        n = math.floor(steps + _GRID_EPSILON)
    return max(0.0, float(n * rule.increment))


def round_weight(weight: float, equipment: str | Iterable[str] | None) -> float:
    """Round using the rule looked up for the given equipment."""
    return round_to_increment(weight, get_weight_increment(equipment))


def bounded_round(
    target: float,
    reference: float,
    rule: WeightIncrement,
    max_increase: float,
    max_decrease: float,
) -> float:
    """
    Clamp a target weight to the cap window around reference, then round.

    Args:
        target: Raw computed weight
        reference: Weight of the most recent comparable set
        rule: Equipment rounding rule
        max_increase: Fractional increase cap (0.05 = +5%)
        max_decrease: Fractional decrease cap (0.10 = -10%)

    Returns:
        Grid weight inside [reference × (1 − max_decrease),
        reference × (1 + max_increase)] when the grid allows it, otherwise
        the clamped target rounded in the rule's direction
    """
    if reference <= 0:
        return round_to_increment(max(0.0, target), rule)

    low = reference * (1 - max_decrease)
    high = reference * (1 + max_increase)
    clamped = min(max(target, low), high)
    weight = round_to_increment(clamped, rule)

    if weight > high + _GRID_EPSILON:
        # "nearest" can round above the cap
        weight = round_to_increment(high, WeightIncrement(rule.increment, "down"))
    if weight < low - _GRID_EPSILON and rule.round_direction == "nearest" and rule.increment > 0:
        up = math.ceil(low / rule.increment - _GRID_EPSILON) * rule.increment
        if up <= high + _GRID_EPSILON:
            weight = up
    return float(weight)


def step_below(weight: float, reference: float, rule: WeightIncrement) -> float:
    """
    Return weight if it is strictly below reference, else the next grid
    step below reference (never negative).
    """
    if weight < reference:
        return weight
    if rule.increment <= 0:
        return max(0.0, reference)
    n = math.ceil(reference / rule.increment - _GRID_EPSILON) - 1
    return max(0.0, float(n * rule.increment))
