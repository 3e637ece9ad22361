"""
CLI entry point using Typer.

Provides commands for set suggestions:
- suggest: Suggest the next sets of an exercise
- analyze: Show recent sessions and the detected training pattern
- catalog: List known exercises
"""

from .app import app
from .commands import catalog, suggestions  # noqa: F401  (registers commands)


if __name__ == "__main__":
    app()
