"""MCP server exposing replant services as tools.

Runs via STDIO transport. Entry point: `replant-mcp` console script.

Usage:
    {"mcpServers": {"replant": {"command": "replant-mcp"}}}
"""
from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Optional

from mcp.server.fastmcp import FastMCP

logger = logging.getLogger("replant.mcp")

mcp = FastMCP("replant")


def _serialize(obj: object) -> object:
    """Convert dataclass/Path objects to JSON-serializable dicts."""
    if hasattr(obj, "__dataclass_fields__"):
        return _clean_paths(asdict(obj))
    return obj


def _clean_paths(obj: object) -> object:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, dict):
        return {k: _clean_paths(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_clean_paths(item) for item in obj]
    return obj


def _options(
    keep_models: bool = True,
    keep_screen_structure: bool = True,
    apply_design: bool = True,
    add_offline_support: bool = True,
    target_architecture: str = "keep",
    target_state_management: str = "keep",
):
    from replant.core import RebuildOptions

    return RebuildOptions(
        keep_models=keep_models,
        keep_screen_structure=keep_screen_structure,
        apply_design=apply_design,
        add_offline_support=add_offline_support,
        target_architecture=target_architecture,
        target_state_management=target_state_management,
    )


# ---------------------------------------------------------------------------
# Source tools
# ---------------------------------------------------------------------------


@mcp.tool()
async def replant_clone_repository(
    url: str,
    branch: str = "main",
    depth: int = 1,
) -> dict:
    """Shallow-clone a Git repository into a temporary directory.

    The clone is left on disk so other tools can analyze it; its
    ``local_path`` is returned.

    Args:
        url: Repository URL (https or ssh).
        branch: Branch to clone.
        depth: Clone depth.
    """
    from replant.core.config_service import get_config_service
    from replant.sources.git_source import clone_repository, format_bytes

    result = clone_repository(
        url, branch=branch, depth=depth,
        timeout=get_config_service().get("clone.timeout", 300),
    )
    if not result.success:
        return {"status": "error", "error": result.error}
    return {"status": "ok", "clone": result.to_dict(), "size": format_bytes(result.size)}


# ---------------------------------------------------------------------------
# Analysis tools
# ---------------------------------------------------------------------------


@mcp.tool()
async def replant_analyze_project(project_path: str, depth: str = "deep") -> dict:
    """Analyze a Flutter project's architecture, models, screens, widgets and theme.

    Args:
        project_path: Absolute path to the project directory (contains pubspec.yaml).
        depth: "shallow", "medium" or "deep".
    """
    from replant.analyzers.project_analyzer import FlutterProjectAnalyzer
    from replant.errors import ReplantError

    try:
        snapshot = FlutterProjectAnalyzer().analyze(Path(project_path), depth=depth)
        return {"status": "ok", "analysis": snapshot.to_dict()}
    except (ReplantError, ValueError) as e:
        return {"status": "error", "error": str(e)}


@mcp.tool()
async def replant_extract_models(project_path: str) -> dict:
    """List the data models found in a Flutter project.

    Args:
        project_path: Absolute path to the project directory.
    """
    from replant.analyzers.model_extractor import extract_models

    path = Path(project_path)
    if not path.is_dir():
        return {"status": "error", "error": f"Not a directory: {project_path}"}
    models = extract_models(path)
    return {"status": "ok", "count": len(models), "models": [_serialize(m) for m in models]}


@mcp.tool()
async def replant_extract_screens(project_path: str) -> dict:
    """List the screens found in a Flutter project.

    Args:
        project_path: Absolute path to the project directory.
    """
    from replant.analyzers.screen_extractor import extract_screens

    path = Path(project_path)
    if not path.is_dir():
        return {"status": "error", "error": f"Not a directory: {project_path}"}
    screens = extract_screens(path)
    return {"status": "ok", "count": len(screens), "screens": [_serialize(s) for s in screens]}


# ---------------------------------------------------------------------------
# Rebuild tools
# ---------------------------------------------------------------------------


@mcp.tool()
async def replant_create_rebuild_schema(
    analysis: dict,
    keep_models: bool = True,
    keep_screen_structure: bool = True,
    apply_design: bool = True,
    add_offline_support: bool = True,
    target_architecture: str = "keep",
    target_state_management: str = "keep",
) -> dict:
    """Plan a rebuild from an analysis returned by replant_analyze_project.

    Args:
        analysis: The ``analysis`` object from replant_analyze_project.
        keep_models: Keep model files as-is instead of migrating them to Drift.
        keep_screen_structure: Keep screen files instead of regenerating them.
        apply_design: Enable the design module.
        add_offline_support: Enable drift + pwa.
        target_architecture: clean, feature-first, layer-first or keep.
        target_state_management: riverpod, bloc or keep.
    """
    from replant.analyzers.models import AnalysisSnapshot
    from replant.core.schema_builder import build_rebuild_schema

    try:
        snapshot = AnalysisSnapshot.from_dict(analysis)
    except (KeyError, TypeError, ValueError) as e:
        return {"status": "error", "error": f"Invalid analysis: {e}"}
    schema = build_rebuild_schema(snapshot, _options(
        keep_models, keep_screen_structure, apply_design, add_offline_support,
        target_architecture, target_state_management,
    ))
    return {"status": "ok", "schema": schema.to_dict()}


@mcp.tool()
async def replant_rebuild_project(
    schema: dict,
    output_path: str,
    source_path: Optional[str] = None,
) -> dict:
    """Rebuild a project from a schema returned by replant_create_rebuild_schema.

    Args:
        schema: The ``schema`` object from replant_create_rebuild_schema.
        output_path: Directory to write the rebuilt project into.
        source_path: Original project directory; preserved files are copied from it.
    """
    from replant.core import RebuildSchema
    from replant.core.import_service import select_preserved_files, settings_from_config
    from replant.core.rebuild_executor import rebuild_project
    from replant.sources.local_source import read_source_tree

    plan = RebuildSchema.from_dict(schema)
    extracted = {}
    if source_path:
        if not Path(source_path).is_dir():
            return {"status": "error", "error": f"Not a directory: {source_path}"}
        extracted = select_preserved_files(read_source_tree(Path(source_path)), plan)

    result = await rebuild_project(plan, output_path, extracted_files=extracted, settings=settings_from_config())
    if not result.success:
        return {"status": "error", "error": result.error, "result": result.to_dict()}
    return {"status": "ok", "result": result.to_dict()}


@mcp.tool()
async def replant_import_and_rebuild(
    url: str,
    output_path: str,
    branch: str = "main",
    keep_code: bool = True,
    keep_models: bool = True,
    keep_screen_structure: bool = True,
    apply_design: bool = True,
    add_offline_support: bool = True,
    target_architecture: str = "keep",
    target_state_management: str = "keep",
) -> dict:
    """Clone a repository, analyze it and rebuild it in one step.

    The clone is always removed afterwards.

    Args:
        url: Repository URL.
        output_path: Directory to write the rebuilt project into.
        branch: Branch to clone.
        keep_code: Copy preserved original files into the rebuild.
    """
    from replant.core.import_service import ImportService

    result = await ImportService().import_repository(
        url, output_path,
        options=_options(
            keep_models, keep_screen_structure, apply_design, add_offline_support,
            target_architecture, target_state_management,
        ),
        branch=branch,
        keep_code=keep_code,
    )
    if not result.success:
        return {"status": "error", "error": result.error}
    return {"status": "ok", "result": result.to_dict()}


@mcp.tool()
async def replant_export_import_and_rebuild(
    file_path: str,
    output_path: str,
    keep_code: bool = True,
    keep_models: bool = True,
    keep_screen_structure: bool = True,
    apply_design: bool = True,
    add_offline_support: bool = True,
    target_architecture: str = "keep",
    target_state_management: str = "keep",
) -> dict:
    """Parse a flattened export, analyze it and rebuild it in one step.

    Args:
        file_path: Path to the flattened export text file.
        output_path: Directory to write the rebuilt project into.
        keep_code: Copy preserved original files into the rebuild.
    """
    from replant.core.import_service import ImportService

    result = await ImportService().import_export(
        file_path, output_path,
        options=_options(
            keep_models, keep_screen_structure, apply_design, add_offline_support,
            target_architecture, target_state_management,
        ),
        keep_code=keep_code,
    )
    if not result.success:
        return {"status": "error", "error": result.error}
    return {"status": "ok", "result": result.to_dict()}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    """Run the replant MCP server via STDIO transport."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
