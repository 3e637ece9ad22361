"""Shared Typer app object, shared option types, and store utility."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.config import SuggestionConfig
from ..core.engine.config_loader import load_suggestion_config
from ..io.history_store import HistoryStore, get_default_history_path

# Shared --history-path option type used across history-reading commands
HistoryOption = Annotated[
    Optional[Path],
    typer.Option("--history-path", "-p", help="Path to workout history JSONL file"),
]

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Extra suggestions YAML merged over the defaults"),
]

app = typer.Typer(
    name="smart-sets",
    help="Suggest the next session's weights and reps from your workout history.",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show engine decisions (debug logging)"),
    ] = False,
) -> None:
    """
    smart-sets: history-driven set suggestions.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def get_store(history_path: Path | None) -> HistoryStore:
    """Get history store from path or the default location."""
    if history_path is None:
        history_path = get_default_history_path()
    return HistoryStore(history_path)


def get_config(config_path: Path | None) -> SuggestionConfig:
    """Load engine configuration, applying an optional extra YAML file."""
    return load_suggestion_config(config_path)
