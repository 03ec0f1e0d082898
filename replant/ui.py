"""Shared UI theme, console, and display helpers for replant."""

import json
import sys
from rich.console import Console
from rich.theme import Theme
from rich.panel import Panel
from rich.table import Table

# ── Output Mode State ──
_plain_mode: bool = False
_json_mode: bool = False


def set_plain_mode(enabled: bool = True) -> None:
    """Enable or disable plain text output (no colors, no panels, ASCII only)."""
    global _plain_mode, console
    _plain_mode = enabled
    if enabled:
        console = Console(no_color=True, highlight=False)


def set_json_mode(enabled: bool = True) -> None:
    """Enable or disable JSON output mode."""
    global _json_mode
    _json_mode = enabled


def is_plain() -> bool:
    return _plain_mode


def is_json() -> bool:
    return _json_mode


def print_json_output(data: dict | list) -> None:
    """Print data as formatted JSON to stdout."""
    print(json.dumps(data, indent=2, default=str))


# ── Theme ──
REPLANT_THEME = Theme({
    "info": "cyan",
    "success": "bold green",
    "warning": "yellow",
    "error": "bold red",
    "brand": "bold green",
    "muted": "dim",
})

console = Console(theme=REPLANT_THEME)

ICONS = {
    "ok": "[green]✔[/green]",
    "warning": "[yellow]⚠[/yellow]",
    "error": "[red]✘[/red]",
    "bullet": "[cyan]•[/cyan]",
}

PLAIN_ICONS = {
    "ok": "[OK]",
    "warning": "[!]",
    "error": "[!!]",
    "bullet": "*",
}


def icon(name: str) -> str:
    if _plain_mode:
        return PLAIN_ICONS.get(name, "*")
    return ICONS.get(name, ICONS["bullet"])


def success_panel(title: str, content=None):
    """Display a success panel."""
    if _json_mode:
        return
    if _plain_mode:
        print(f"OK: {title}")
        if content:
            print(f"  {content}")
        return

    console.print(Panel(
        content or "",
        title=f"[bold green]{title}[/bold green]",
        border_style="green",
    ))


def error_panel(title: str, content: str = ""):
    """Display an error panel."""
    if _json_mode:
        print_json_output({"error": title, "detail": content})
        return
    if _plain_mode:
        print(f"ERROR: {title}", file=sys.stderr)
        if content:
            print(f"  {content}", file=sys.stderr)
        return

    console.print(Panel(
        content,
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
    ))


def warning_list(warnings: list[str]):
    if _json_mode or not warnings:
        return
    if _plain_mode:
        print("Warnings:")
        for w in warnings:
            print(f"  {PLAIN_ICONS['warning']} {w}")
        return
    console.print("\n[bold yellow]Warnings[/bold yellow]")
    for w in warnings:
        console.print(f"  {ICONS['warning']} {w}")


def next_steps(steps: list[str]):
    """Display follow-up shell commands."""
    if _json_mode or not steps:
        return
    if _plain_mode:
        print("\nNext steps:")
        for i, step in enumerate(steps, 1):
            print(f"  {i}. {step}")
        return
    console.print("\n[bold]Next steps:[/bold]")
    for i, step in enumerate(steps, 1):
        console.print(f"  [dim]{i}.[/dim] [cyan]{step}[/cyan]")


def key_value_table(title: str, rows: list[tuple[str, object]]) -> None:
    if _json_mode:
        return
    if _plain_mode:
        print(f"{title}:")
        for key, value in rows:
            print(f"  {key}: {value}")
        return
    table = Table(title=title, show_header=False, expand=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in rows:
        table.add_row(key, str(value))
    console.print(table)


def analysis_summary(snapshot) -> None:
    """Render an AnalysisSnapshot as panels and tables."""
    arch = snapshot.architecture
    deps = snapshot.dependencies
    if _json_mode:
        print_json_output(snapshot.to_dict())
        return
    if _plain_mode:
        print(f"Project: {snapshot.name}")
        print(f"  Architecture: {arch.detected} ({arch.confidence:.0%})")
        print(f"  State management: {deps.state_management}")
        print(f"  Models: {len(snapshot.models)}  Screens: {len(snapshot.screens)}  "
              f"Widgets: {len(snapshot.widgets)}")
        return

    console.print(Panel(
        f"[bold]{snapshot.name}[/bold]\n"
        f"{snapshot.description or '[dim]no description[/dim]'}\n"
        f"{snapshot.stats.dart_files} Dart files, {snapshot.stats.lines_of_code:,} lines",
        title="Flutter Project Analysis",
        border_style="cyan",
    ))

    table = Table(title="Stack", show_header=True, expand=False)
    table.add_column("Concern", style="cyan")
    table.add_column("Detected")
    table.add_row("Architecture", f"{arch.detected} ({arch.confidence:.0%})")
    table.add_row("State management", deps.state_management)
    table.add_row("Persistence", deps.persistence)
    table.add_row("Networking", deps.networking)
    table.add_row("Navigation", deps.navigation)
    table.add_row("Flutter / Dart", f"{snapshot.flutter_version} / {snapshot.dart_version}")
    console.print(table)

    if arch.reasoning:
        console.print(f"[dim]{arch.reasoning}[/dim]")

    if snapshot.models:
        mt = Table(title="Models", show_header=True, expand=False)
        mt.add_column("Name", style="cyan")
        mt.add_column("Fields", justify="right")
        mt.add_column("File", style="dim")
        for m in snapshot.models:
            mt.add_row(m.name, str(len(m.fields)), m.file_path)
        console.print(mt)

    if snapshot.screens:
        st = Table(title="Screens", show_header=True, expand=False)
        st.add_column("Name", style="cyan")
        st.add_column("Route")
        st.add_column("Layout")
        for s in snapshot.screens:
            st.add_row(s.name, s.route or "", s.layout)
        console.print(st)

    if snapshot.widgets:
        console.print(
            f"[bold]Widgets:[/bold] {len(snapshot.widgets)} "
            f"({sum(1 for w in snapshot.widgets if w.is_reusable)} reusable)"
        )


def rebuild_summary(result) -> None:
    """Render a RebuildResult."""
    if _json_mode:
        print_json_output(result.to_dict())
        return
    if not result.success:
        error_panel("Rebuild failed", result.error or "")
        warning_list(result.warnings)
        return
    success_panel(
        "Rebuild complete",
        f"Output: {result.output_path}\n"
        f"Generated: {result.files_generated} files, copied: {result.files_copied}, "
        f"modules: {result.modules_installed}",
    )
    warning_list(result.warnings)
    next_steps(result.next_steps)
