"""Unified CLI error handler for replant commands."""

from __future__ import annotations

import functools
import logging
import os
import traceback

import typer

from replant.errors import (
    AnalysisDepthError,
    ExportNotFoundError,
    ManifestNotFoundError,
    ProjectPathError,
    ReplantError,
)
from replant.ui import console

logger = logging.getLogger("replant.error_handler")


def _debug_mode() -> bool:
    """Check if debug output is enabled via REPLANT_DEBUG env var."""
    return os.environ.get("REPLANT_DEBUG", "").lower() in ("1", "true", "yes")


def _render_replant_error(e: ReplantError) -> None:
    console.print(f"\n[bold red]Error:[/bold red] {e}")

    if e.context and _debug_mode():
        context_parts = [
            f"  [dim]{key}:[/dim] {value}" for key, value in e.context.items() if value
        ]
        if context_parts:
            console.print("[dim]Context:[/dim]")
            for part in context_parts:
                console.print(part)

    if isinstance(e, ManifestNotFoundError):
        console.print("[dim]Point replant at the folder that contains pubspec.yaml.[/dim]")
    elif isinstance(e, ProjectPathError):
        console.print("[dim]A Flutter project needs a lib/ directory next to pubspec.yaml.[/dim]")
    elif isinstance(e, ExportNotFoundError):
        console.print("[dim]Check the path to the flattened export file.[/dim]")
    elif isinstance(e, AnalysisDepthError):
        console.print("[dim]Set --depth or analysis.depth to shallow, medium or deep.[/dim]")


def handle_errors(func):
    """Decorator that catches ReplantError and renders formatted CLI output.

    Usage::

        @app.command()
        @handle_errors
        def my_command(...):
            ...  # no try/except needed
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ReplantError as e:
            _render_replant_error(e)
            if _debug_mode():
                console.print(f"\n[dim]{traceback.format_exc()}[/dim]")
            raise typer.Exit(e.exit_code)
        except KeyboardInterrupt:
            console.print("\n[dim]Interrupted.[/dim]")
            raise typer.Exit(130)
        except (typer.Exit, typer.Abort, SystemExit):
            raise
        except Exception as e:
            console.print(f"\n[bold red]Unexpected error:[/bold red] {e}")
            if _debug_mode():
                console.print(f"\n[dim]{traceback.format_exc()}[/dim]")
            else:
                console.print("[dim]Set REPLANT_DEBUG=1 for full traceback.[/dim]")
            raise typer.Exit(1)

    return wrapper
