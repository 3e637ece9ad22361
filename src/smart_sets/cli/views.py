"""
Rich-based display formatting for CLI output.

Provides tables and formatted output for suggestions, pattern analysis
and the exercise catalog.
"""

from datetime import datetime, timezone

from rich.console import Console
from rich.table import Table

from ..core.exercises.base import ExerciseDefinition
from ..core.models import ExerciseDataPoint, PatternAnalysis, SmartSuggestionResult

console = Console()

_PATTERN_LABELS = {
    "progressive_overload": "Progressive overload",
    "rep_cycling": "Rep cycling",
    "deload": "Deload",
    "stable": "Stable",
    "fallback": "Fallback (repeat last sets)",
    "not_applicable": "Not applicable",
}

_PATTERN_STYLES = {
    "progressive_overload": "green",
    "rep_cycling": "magenta",
    "deload": "yellow",
    "stable": "cyan",
    "fallback": "dim",
    "not_applicable": "dim",
}


def _fmt_weight(weight: float) -> str:
    return f"{weight:g}"


def _fmt_date(date_ms: int) -> str:
    return datetime.fromtimestamp(date_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def _pattern_label(pattern: str) -> str:
    style = _PATTERN_STYLES.get(pattern, "white")
    return f"[{style}]{_PATTERN_LABELS.get(pattern, pattern)}[/{style}]"


def format_suggestion_table(result: SmartSuggestionResult, exercise_name: str) -> Table:
    """
    Create a Rich table of suggested sets.

    Completed sets are shown dimmed with a check mark; sets whose target
    changed during the session show the original target alongside.
    """
    table = Table(title=f"Next sets: {exercise_name}")

    table.add_column("Set", justify="right", style="dim", width=3)
    table.add_column("Weight", justify="right", style="bold")
    table.add_column("Reps", justify="right")
    table.add_column("Planned", justify="right", style="dim")
    table.add_column("", width=2)

    for i, s in enumerate(result.sets):
        base = result.base_sets[i] if i < len(result.base_sets) else None
        planned = ""
        if base is not None and (base.weight != s.weight or base.reps != s.reps):
            planned = f"{base.reps} @ {_fmt_weight(base.weight)}"
        table.add_row(
            str(i + 1),
            _fmt_weight(s.weight),
            str(s.reps),
            planned,
            "[green]✓[/green]" if s.completed else "",
        )

    return table


def print_suggestion(result: SmartSuggestionResult, exercise_name: str) -> None:
    """Print a suggestion with its pattern and confidence."""
    console.print()
    if not result.applicable:
        print_info(f"{exercise_name}: no weight suggestions for this exercise type.")
        return

    console.print(
        f"Pattern: {_pattern_label(result.pattern)}   "
        f"Confidence: [bold]{result.confidence:.0%}[/bold]   "
        f"Sets: {result.set_arrangement.replace('_', ' ')}"
    )
    if not result.sets:
        print_warning(f"No usable history for {exercise_name}.")
        return

    console.print(format_suggestion_table(result, exercise_name))
    if result.adapted:
        print_info("Targets adjusted from the sets logged this session.")


def format_data_point_table(points: tuple[ExerciseDataPoint, ...]) -> Table:
    """
    Create a Rich table of aggregated sessions.

    Args:
        points: Chronological data points

    Returns:
        Rich Table object
    """
    table = Table(title="Recent Sessions")

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Date", style="cyan")
    table.add_column("Sets", justify="right")
    table.add_column("Top set", justify="right", style="bold")
    table.add_column("Avg weight", justify="right")
    table.add_column("Avg reps", justify="right")
    table.add_column("Volume", justify="right")

    for i, p in enumerate(points, 1):
        table.add_row(
            str(i),
            _fmt_date(p.date),
            str(p.total_sets),
            f"{p.top_set_reps} @ {_fmt_weight(p.top_set_weight)}",
            f"{p.avg_weight:.1f}",
            f"{p.avg_reps:.1f}",
            f"{p.total_volume:,.0f}",
        )

    return table


def print_analysis(analysis: PatternAnalysis, exercise_name: str) -> None:
    """Print the data point table and the classification."""
    console.print()
    if analysis.data_points:
        console.print(format_data_point_table(analysis.data_points))
    else:
        print_warning(f"No sessions of {exercise_name} in the lookback window.")

    console.print(f"Pattern:     {_pattern_label(analysis.pattern)}")
    console.print(f"Confidence:  {analysis.confidence:.0%}")
    console.print(f"Set layout:  {analysis.set_arrangement.replace('_', ' ')}")
    if analysis.slope is not None:
        console.print(f"Trend:       {analysis.slope:+.2f} per session (R² {analysis.r_squared:.2f})")

    reason = getattr(analysis.signal, "reason", None)
    if reason is not None:
        console.print(f"Reason:      {reason.replace('_', ' ')}")


def format_catalog_table(exercises: list[ExerciseDefinition]) -> Table:
    """Create a Rich table listing catalog exercises."""
    table = Table(title="Exercise Catalog")

    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Equipment")
    table.add_column("Compound", justify="center")
    table.add_column("Suggestions", justify="center")

    for ex in exercises:
        table.add_row(
            ex.exercise_id,
            ex.name,
            ex.exercise_type,
            ", ".join(ex.equipment) or "-",
            "yes" if ex.is_compound else "no",
            "[green]yes[/green]" if ex.supports_suggestions else "[dim]no[/dim]",
        )

    return table


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")
