"""Catalog command: list known exercises."""

import json
from typing import Annotated

import typer

from ...core.exercises.registry import EXERCISE_REGISTRY
from .. import views
from ..app import app


@app.command()
def catalog(
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
) -> None:
    """
    List the exercises in the catalog.
    """
    exercises = sorted(EXERCISE_REGISTRY.values(), key=lambda ex: ex.name)

    if json_out:
        print(json.dumps([
            {
                "id": ex.exercise_id,
                "name": ex.name,
                "exercise_type": ex.exercise_type,
                "equipment": list(ex.equipment),
                "is_compound": ex.is_compound,
            }
            for ex in exercises
        ], indent=2))
        return

    views.console.print(views.format_catalog_table(exercises))
