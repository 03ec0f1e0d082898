#!/usr/bin/env python3
"""
replant: analyze an existing Flutter app and rebuild it as a fresh,
modular project, keeping the original code you choose to keep.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
import yaml

from replant import ui
from replant.error_handler import handle_errors
from replant.ui import console

app = typer.Typer(
    name="replant",
    help="Analyze Flutter apps and rebuild them as modular projects.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

from replant.commands import config_cmd

app.add_typer(config_cmd.app, name="config", help="Manage configuration", rich_help_panel="Advanced")


def _configure_logging(verbose: bool) -> None:
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=verbose)],
        force=True,
    )


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
    plain: bool = typer.Option(False, "--plain", help="Plain text output (no colors or panels)."),
):
    """Analyze Flutter apps and rebuild them as modular projects."""
    from replant.core.config_service import get_config_service

    _configure_logging(verbose)
    if plain or get_config_service().get("ui.plain_output", False):
        ui.set_plain_mode(True)


def _rebuild_options(
    migrate_models: bool,
    regenerate_screens: bool,
    no_design: bool,
    no_offline: bool,
    architecture: str,
    state: str,
    encrypt: bool,
    modules: Optional[list[str]],
    exclude: Optional[list[str]],
):
    """Merge CLI flags over the configured rebuild defaults."""
    from replant.core import RebuildOptions
    from replant.core.config_service import get_config_service

    defaults = get_config_service().rebuild_defaults()
    return RebuildOptions(
        keep_models=False if migrate_models else bool(defaults.get("keep_models", True)),
        keep_screen_structure=False if regenerate_screens else bool(defaults.get("keep_screen_structure", True)),
        apply_design=False if no_design else bool(defaults.get("apply_design", True)),
        add_offline_support=False if no_offline else bool(defaults.get("add_offline_support", True)),
        target_architecture=architecture,
        target_state_management=state,
        enable_encryption=encrypt,
        extra_modules=list(modules or []),
        exclude_modules=list(exclude or []),
    )


def _save(data: dict, path: str) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    if not ui.is_json():
        console.print(f"[green]Saved to:[/green] {target}")


def _load(path: str) -> dict:
    # JSON is valid YAML, so both formats load here
    with open(path) as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise typer.BadParameter(f"{path} does not contain a mapping")
    return data


def _show_import(result) -> None:
    if ui.is_json():
        ui.print_json_output(result.to_dict())
        return
    if not result.success and result.rebuild is None:
        ui.error_panel("Import failed", result.error or "")
        raise typer.Exit(1)
    if result.analysis is not None:
        ui.analysis_summary(result.analysis)
    ui.rebuild_summary(result.rebuild)
    if not result.success:
        raise typer.Exit(1)


# ── Analysis ──


@app.command(rich_help_panel="Analysis")
@handle_errors
def analyze(
    path: str = typer.Argument(".", help="Flutter project directory or flattened export file"),
    depth: str = typer.Option(None, "--depth", "-d", help="shallow, medium or deep"),
    json_out: bool = typer.Option(False, "--json", help="Print the analysis as JSON"),
    save: str = typer.Option(None, "--save", "-s", help="Write the analysis to a YAML file"),
):
    """[bold cyan]Analyze[/bold cyan] a Flutter project's architecture, models, screens and theme."""
    from replant.analyzers.project_analyzer import FlutterProjectAnalyzer
    from replant.core.config_service import get_config_service
    from replant.sources.export_parser import read_export_file

    ui.set_json_mode(json_out)
    depth = depth or get_config_service().get("analysis.depth", "deep")
    target = Path(path)
    analyzer = FlutterProjectAnalyzer()

    with console.status("[bold cyan]Analyzing project...[/bold cyan]"):
        if target.is_file():
            export = read_export_file(target)
            snapshot = analyzer.analyze_files(export.files, project_name=export.project_name, depth=depth)
        else:
            snapshot = analyzer.analyze(target, depth=depth)

    ui.analysis_summary(snapshot)
    if save:
        _save(snapshot.to_dict(), save)


@app.command(rich_help_panel="Analysis")
@handle_errors
def clone(
    url: str = typer.Argument(..., help="Git repository URL"),
    branch: str = typer.Option(None, "--branch", "-b", help="Branch to clone"),
    depth: int = typer.Option(None, "--depth", help="Clone depth"),
    keep: bool = typer.Option(False, "--keep", help="Keep the clone instead of removing it"),
    analyze_clone: bool = typer.Option(False, "--analyze", "-a", help="Analyze the clone"),
):
    """Shallow-[bold cyan]clone[/bold cyan] a repository and report what was fetched."""
    from replant.analyzers.project_analyzer import FlutterProjectAnalyzer
    from replant.core.config_service import get_config_service
    from replant.sources.git_source import cleanup_clone, clone_repository, format_bytes

    cfg = get_config_service()
    with console.status(f"[bold cyan]Cloning {url}...[/bold cyan]"):
        result = clone_repository(
            url,
            branch=branch or cfg.get("clone.branch", "main"),
            depth=depth or cfg.get("clone.depth", 1),
            timeout=cfg.get("clone.timeout", 300),
        )
    if not result.success:
        ui.error_panel("Clone failed", result.error or "")
        raise typer.Exit(1)

    try:
        ui.key_value_table("Clone", [
            ("Repository", result.repo_name),
            ("Branch", result.branch),
            ("Commit", result.commit[:12]),
            ("Size", format_bytes(result.size)),
            ("Path", result.local_path),
        ])
        if analyze_clone:
            snapshot = FlutterProjectAnalyzer().analyze(
                Path(result.local_path), depth=cfg.get("analysis.depth", "deep")
            )
            ui.analysis_summary(snapshot)
    finally:
        if not keep:
            cleanup_clone(result.local_path)


# ── Rebuild ──


@app.command(rich_help_panel="Rebuild")
@handle_errors
def schema(
    analysis_file: str = typer.Argument(..., help="Analysis YAML/JSON written by 'replant analyze --save'"),
    migrate_models: bool = typer.Option(False, "--migrate-models", help="Migrate models to Drift tables"),
    regenerate_screens: bool = typer.Option(False, "--regenerate-screens", help="Regenerate screens instead of keeping them"),
    no_design: bool = typer.Option(False, "--no-design", help="Skip the design module"),
    no_offline: bool = typer.Option(False, "--no-offline", help="Skip offline support (drift + pwa)"),
    architecture: str = typer.Option("keep", "--architecture", help="clean, feature-first, layer-first or keep"),
    state: str = typer.Option("keep", "--state", help="riverpod, bloc or keep"),
    encrypt: bool = typer.Option(False, "--encrypt", help="Encrypt offline storage"),
    modules: Optional[list[str]] = typer.Option(None, "--module", "-m", help="Extra module to enable"),
    exclude: Optional[list[str]] = typer.Option(None, "--exclude", "-x", help="Module to disable"),
    json_out: bool = typer.Option(False, "--json", help="Print the schema as JSON"),
    save: str = typer.Option(None, "--save", "-s", help="Write the schema to a YAML file"),
):
    """Plan a rebuild [bold cyan]schema[/bold cyan] from a saved analysis."""
    from replant.analyzers.models import AnalysisSnapshot
    from replant.core.schema_builder import build_rebuild_schema

    ui.set_json_mode(json_out)
    snapshot = AnalysisSnapshot.from_dict(_load(analysis_file))
    options = _rebuild_options(
        migrate_models, regenerate_screens, no_design, no_offline,
        architecture, state, encrypt, modules, exclude,
    )
    plan = build_rebuild_schema(snapshot, options)

    if ui.is_json():
        ui.print_json_output(plan.to_dict())
    else:
        definition = plan.project_definition
        ui.key_value_table("Rebuild Schema", [
            ("Name", plan.name),
            ("Architecture", definition["architecture"]),
            ("State management", definition["state_management"]),
            ("Modules", ", ".join(plan.module_ids) or "none"),
            ("Models", len(plan.migrations["models"])),
            ("Screens", len(plan.migrations["screens"])),
            ("Widgets", len(plan.migrations["widgets"])),
            ("Preserved files", len(plan.preserved_files)),
        ])
        ui.warning_list(plan.warnings)
    if save:
        _save(plan.to_dict(), save)


@app.command(rich_help_panel="Rebuild")
@handle_errors
def rebuild(
    schema_file: str = typer.Argument(..., help="Schema YAML/JSON written by 'replant schema --save'"),
    output: str = typer.Argument(..., help="Output directory"),
    export: str = typer.Option(None, "--export", "-e", help="Flattened export holding the original sources"),
    source: str = typer.Option(None, "--source", help="Project directory holding the original sources"),
    keep_code: bool = typer.Option(True, "--keep-code/--no-keep-code", help="Copy preserved original files"),
    json_out: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """[bold cyan]Rebuild[/bold cyan] a project from a saved schema."""
    from replant.core import RebuildSchema
    from replant.core.import_service import select_preserved_files, settings_from_config
    from replant.core.rebuild_executor import rebuild_project
    from replant.sources.export_parser import read_export_file
    from replant.sources.local_source import read_source_tree

    ui.set_json_mode(json_out)
    plan = RebuildSchema.from_dict(_load(schema_file))

    extracted = {}
    if keep_code:
        if export:
            extracted = select_preserved_files(read_export_file(Path(export)).dart_files, plan)
        elif source:
            extracted = select_preserved_files(read_source_tree(Path(source)), plan)

    with console.status("[bold cyan]Rebuilding...[/bold cyan]"):
        result = asyncio.run(rebuild_project(
            plan, output, extracted_files=extracted, settings=settings_from_config(),
        ))
    ui.rebuild_summary(result)
    if not result.success:
        raise typer.Exit(1)


@app.command("import-repo", rich_help_panel="Rebuild")
@handle_errors
def import_repo(
    url: str = typer.Argument(..., help="Git repository URL"),
    output: str = typer.Argument(..., help="Output directory"),
    branch: str = typer.Option(None, "--branch", "-b", help="Branch to clone"),
    depth: str = typer.Option(None, "--depth", "-d", help="Analysis depth: shallow, medium or deep"),
    migrate_models: bool = typer.Option(False, "--migrate-models", help="Migrate models to Drift tables"),
    regenerate_screens: bool = typer.Option(False, "--regenerate-screens", help="Regenerate screens instead of keeping them"),
    no_design: bool = typer.Option(False, "--no-design", help="Skip the design module"),
    no_offline: bool = typer.Option(False, "--no-offline", help="Skip offline support (drift + pwa)"),
    architecture: str = typer.Option("keep", "--architecture", help="clean, feature-first, layer-first or keep"),
    state: str = typer.Option("keep", "--state", help="riverpod, bloc or keep"),
    encrypt: bool = typer.Option(False, "--encrypt", help="Encrypt offline storage"),
    modules: Optional[list[str]] = typer.Option(None, "--module", "-m", help="Extra module to enable"),
    exclude: Optional[list[str]] = typer.Option(None, "--exclude", "-x", help="Module to disable"),
    keep_code: bool = typer.Option(True, "--keep-code/--no-keep-code", help="Copy preserved original files"),
    json_out: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """Clone, analyze and rebuild a repository in one step."""
    from replant.core.import_service import ImportService

    ui.set_json_mode(json_out)
    options = _rebuild_options(
        migrate_models, regenerate_screens, no_design, no_offline,
        architecture, state, encrypt, modules, exclude,
    )
    with console.status(f"[bold cyan]Importing {url}...[/bold cyan]"):
        result = asyncio.run(ImportService().import_repository(
            url, output, options=options, branch=branch, analysis_depth=depth, keep_code=keep_code,
        ))
    _show_import(result)


@app.command("import-export", rich_help_panel="Rebuild")
@handle_errors
def import_export(
    file: str = typer.Argument(..., help="Flattened export file"),
    output: str = typer.Argument(..., help="Output directory"),
    depth: str = typer.Option(None, "--depth", "-d", help="Analysis depth: shallow, medium or deep"),
    migrate_models: bool = typer.Option(False, "--migrate-models", help="Migrate models to Drift tables"),
    regenerate_screens: bool = typer.Option(False, "--regenerate-screens", help="Regenerate screens instead of keeping them"),
    no_design: bool = typer.Option(False, "--no-design", help="Skip the design module"),
    no_offline: bool = typer.Option(False, "--no-offline", help="Skip offline support (drift + pwa)"),
    architecture: str = typer.Option("keep", "--architecture", help="clean, feature-first, layer-first or keep"),
    state: str = typer.Option("keep", "--state", help="riverpod, bloc or keep"),
    encrypt: bool = typer.Option(False, "--encrypt", help="Encrypt offline storage"),
    modules: Optional[list[str]] = typer.Option(None, "--module", "-m", help="Extra module to enable"),
    exclude: Optional[list[str]] = typer.Option(None, "--exclude", "-x", help="Module to disable"),
    keep_code: bool = typer.Option(True, "--keep-code/--no-keep-code", help="Copy preserved original files"),
    json_out: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """Parse, analyze and rebuild a flattened export in one step."""
    from replant.core.import_service import ImportService

    ui.set_json_mode(json_out)
    options = _rebuild_options(
        migrate_models, regenerate_screens, no_design, no_offline,
        architecture, state, encrypt, modules, exclude,
    )
    with console.status(f"[bold cyan]Importing {file}...[/bold cyan]"):
        result = asyncio.run(ImportService().import_export(
            file, output, options=options, analysis_depth=depth, keep_code=keep_code,
        ))
    _show_import(result)


if __name__ == "__main__":
    app()
