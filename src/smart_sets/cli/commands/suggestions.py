"""Suggestion commands: suggest, analyze."""

import json
from typing import Annotated, Optional

import typer

from ...core.exercises.registry import find_exercise
from ...core.history import extract_data_points
from ...core.metrics import resolve_now_ms
from ...core.models import EXERCISE_TYPES, Workout
from ...core.patterns import analyze_pattern
from ...core.suggester import get_suggestion
from ...io.serializers import (
    ValidationError,
    parse_sets_string,
    suggestion_to_dict,
    validate_date,
)
from .. import views
from ..app import ConfigOption, HistoryOption, app, get_config, get_store

EquipmentOption = Annotated[
    Optional[list[str]],
    typer.Option("--equipment", "-e", help="Equipment (repeatable); overrides the catalog"),
]
CompoundOption = Annotated[
    Optional[bool],
    typer.Option("--compound/--isolation", help="Movement class; overrides the catalog"),
]
TypeOption = Annotated[
    Optional[str],
    typer.Option("--type", "-t", help=f"Exercise type: {', '.join(EXERCISE_TYPES)}"),
]
TodayOption = Annotated[
    Optional[str],
    typer.Option("--today", help="Reference date YYYY-MM-DD (default: now)"),
]


def _resolve_exercise(
    exercise: str,
    equipment: list[str] | None,
    compound: bool | None,
    exercise_type: str | None,
    quiet: bool = False,
) -> tuple[str, list[str], bool, str]:
    """Merge catalog data with command-line overrides."""
    definition = find_exercise(exercise)
    name = definition.name if definition else exercise
    if not equipment:
        equipment = list(definition.equipment) if definition else []
    if compound is None:
        compound = definition.is_compound if definition else False
    if exercise_type is None:
        exercise_type = definition.exercise_type if definition else "weight"
    if exercise_type not in EXERCISE_TYPES:
        views.print_error(
            f"Invalid exercise type '{exercise_type}'. Must be one of: {', '.join(EXERCISE_TYPES)}"
        )
        raise typer.Exit(1)
    if definition is None and not quiet:
        views.print_warning(f"'{exercise}' is not in the catalog; using command-line settings.")
    return name, equipment, compound, exercise_type


def _resolve_now(today: str | None) -> int:
    try:
        return resolve_now_ms(validate_date(today) if today else None)
    except (ValidationError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)


def _load_workouts(history_path) -> list[Workout]:
    store = get_store(history_path)
    if not store.exists():
        views.print_error(f"History file not found: {store.history_path}")
        raise typer.Exit(1)
    try:
        return store.load_workouts()
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)


@app.command()
def suggest(
    exercise: Annotated[str, typer.Argument(help="Exercise name or catalog ID")],
    history_path: HistoryOption = None,
    done: Annotated[
        Optional[str],
        typer.Option("--done", "-d", help='Sets already logged this session, e.g. "12@200,10@200"'),
    ] = None,
    equipment: EquipmentOption = None,
    compound: CompoundOption = None,
    exercise_type: TypeOption = None,
    today: TodayOption = None,
    config_path: ConfigOption = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
) -> None:
    """
    Suggest weights and reps for the next sets of an exercise.
    """
    name, equipment, compound, exercise_type = _resolve_exercise(
        exercise, equipment, compound, exercise_type, quiet=json_out
    )
    now = _resolve_now(today)

    try:
        current = parse_sets_string(done or "")
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    workouts = _load_workouts(history_path)
    result = get_suggestion(
        name,
        equipment,
        compound,
        workouts,
        current,
        exercise_type=exercise_type,
        now=now,
        config=get_config(config_path),
    )

    if json_out:
        print(json.dumps({"exercise": name, **suggestion_to_dict(result)}, indent=2))
        return

    views.print_suggestion(result, name)


@app.command()
def analyze(
    exercise: Annotated[str, typer.Argument(help="Exercise name or catalog ID")],
    history_path: HistoryOption = None,
    equipment: EquipmentOption = None,
    compound: CompoundOption = None,
    exercise_type: TypeOption = None,
    today: TodayOption = None,
    config_path: ConfigOption = None,
) -> None:
    """
    Show recent sessions of an exercise and how they were classified.
    """
    name, _, compound, exercise_type = _resolve_exercise(
        exercise, equipment, compound, exercise_type
    )
    now = _resolve_now(today)
    config = get_config(config_path)
    workouts = _load_workouts(history_path)

    points = extract_data_points(
        name,
        workouts,
        now=now,
        config=config,
        allow_zero_weight=exercise_type == "bodyweight",
    )
    views.print_analysis(analyze_pattern(points, compound, now=now, config=config), name)
