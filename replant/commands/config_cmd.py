"""CLI commands for configuration management."""
from __future__ import annotations

import typer
from replant.ui import console
from replant.error_handler import handle_errors

app = typer.Typer(
    name="config",
    help="Manage replant configuration.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.command()
@handle_errors
def show():
    """Display the resolved configuration (all layers merged)."""
    from rich.panel import Panel
    from rich.table import Table
    from replant.core.config_service import get_config_service

    info = get_config_service().show()

    sources = info["sources"]
    console.print(Panel(
        f"Global:  {sources['global_config'] or '[dim]not found[/dim]'}\n"
        f"Project: {sources['project_config'] or '[dim]not found[/dim]'}",
        title="Config Sources",
        border_style="cyan",
    ))

    for section, values in info["resolved"].items():
        if not isinstance(values, dict):
            continue
        table = Table(title=section.capitalize(), show_header=True)
        table.add_column("Setting", style="cyan")
        table.add_column("Value")
        for key, val in values.items():
            table.add_row(key, str(val))
        console.print(table)


@app.command("set")
@handle_errors
def set_value(
    key: str = typer.Argument(..., help="Config key in dotted notation (e.g. clone.branch)"),
    value: str = typer.Argument(..., help="Value to set"),
):
    """Set a global configuration value."""
    from replant.core.config_service import get_config_service

    parsed_value: object
    if value.lower() in ("true", "yes"):
        parsed_value = True
    elif value.lower() in ("false", "no"):
        parsed_value = False
    else:
        try:
            parsed_value = int(value)
        except ValueError:
            parsed_value = value

    get_config_service().set_global(key, parsed_value)
    console.print(f"[green]Set[/green] {key} = {parsed_value}")


@app.command()
@handle_errors
def init():
    """Create a .replant.toml project config in the current directory."""
    from replant.core.config_service import get_config_service

    try:
        path = get_config_service().init_project_config()
    except FileExistsError as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(1)
    console.print(f"[green]Created[/green] {path}")


@app.command()
@handle_errors
def paths():
    """Show config file locations."""
    from replant.core.config_service import get_config_service

    for label, location in get_config_service().config_paths().items():
        console.print(f"[cyan]{label}:[/cyan] {location}")
