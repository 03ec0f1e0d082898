"""End-to-end import pipeline.

Acquires a Flutter project (shallow clone or flattened export), analyzes
it, plans a rebuild and runs it. Acquisition failures are returned as an
ImportResult with ``success=False``; a clone is removed on every exit
path.
"""

from __future__ import annotations

import logging
from pathlib import Path

from replant.analyzers.models import SourceFile
from replant.analyzers.project_analyzer import FlutterProjectAnalyzer
from replant.core import ImportResult, RebuildOptions, RebuildSchema
from replant.core.config_service import get_config_service
from replant.core.rebuild_executor import ExecutorSettings, rebuild_project
from replant.core.schema_builder import build_rebuild_schema
from replant.errors import ReplantError
from replant.sources.export_parser import group_source_files, read_export_file
from replant.sources.git_source import cleanup_clone, clone_repository
from replant.sources.local_source import read_source_tree

logger = logging.getLogger("replant.core.import")

# Categories copied only when the schema lists the file as preserved
_PLANNED_CATEGORIES = ("models", "screens", "widgets")


def select_preserved_files(
    files: list[SourceFile], schema: RebuildSchema
) -> dict[str, list[SourceFile]]:
    """Group source files for verbatim copy into the rebuilt project.

    Models, screens and widgets are kept only if the schema preserves
    them; every other category (providers, services, utils...) is kept
    as-is.
    """
    preserved = set(schema.preserved_files)
    groups = {}
    for category, sources in group_source_files(files).items():
        if category in _PLANNED_CATEGORIES:
            sources = [f for f in sources if f.path in preserved]
        if sources:
            groups[category] = sources
    return groups


def settings_from_config() -> ExecutorSettings:
    cfg = get_config_service()
    return ExecutorSettings(
        run_flutter_create=bool(cfg.get("rebuild.run_flutter_create", False)),
        format_code=bool(cfg.get("rebuild.format_code", False)),
        generate_tests=bool(cfg.get("rebuild.generate_tests", False)),
    )


class ImportService:
    """Runs the acquire -> analyze -> plan -> rebuild pipeline.

    Args:
        tool_caller: Optional tool caller passed to the rebuild executor.
        project_engine: Optional project engine passed to the rebuild executor.
        settings: Executor post-step switches; read from config when omitted.
    """

    def __init__(self, tool_caller=None, project_engine=None, settings: ExecutorSettings | None = None):
        self.tool_caller = tool_caller
        self.project_engine = project_engine
        self.settings = settings
        self._analyzer = FlutterProjectAnalyzer()

    def _settings(self) -> ExecutorSettings:
        return self.settings or settings_from_config()

    async def import_repository(
        self,
        url: str,
        output_path: str | Path,
        options: RebuildOptions | None = None,
        branch: str | None = None,
        depth: int | None = None,
        analysis_depth: str | None = None,
        keep_code: bool = True,
    ) -> ImportResult:
        """Clone ``url``, analyze it and rebuild it into ``output_path``."""
        cfg = get_config_service()
        clone = clone_repository(
            url,
            branch=branch or cfg.get("clone.branch", "main"),
            depth=depth or cfg.get("clone.depth", 1),
            timeout=cfg.get("clone.timeout", 300),
        )
        if not clone.success:
            return ImportResult(success=False, source=url, error=f"Clone failed: {clone.error}")

        try:
            root = Path(clone.local_path)
            analysis = self._analyzer.analyze(root, depth=analysis_depth or cfg.get("analysis.depth", "deep"))
            schema = build_rebuild_schema(analysis, options)
            extracted = select_preserved_files(read_source_tree(root), schema) if keep_code else {}
            rebuild = await rebuild_project(
                schema,
                output_path,
                extracted_files=extracted,
                tool_caller=self.tool_caller,
                project_engine=self.project_engine,
                settings=self._settings(),
            )
        except ReplantError as e:
            logger.error("Import of %s failed: %s", url, e)
            return ImportResult(success=False, source=url, project_name=clone.repo_name, error=str(e))
        finally:
            cleanup_clone(clone.local_path)

        return ImportResult(
            success=rebuild.success,
            source=url,
            project_name=analysis.name,
            analysis=analysis,
            schema=schema,
            rebuild=rebuild,
            error=rebuild.error,
        )

    async def import_export(
        self,
        file_path: str | Path,
        output_path: str | Path,
        options: RebuildOptions | None = None,
        analysis_depth: str | None = None,
        keep_code: bool = True,
    ) -> ImportResult:
        """Parse a flattened export, analyze it and rebuild it into ``output_path``."""
        source = str(file_path)
        try:
            export = read_export_file(Path(file_path))
            analysis = self._analyzer.analyze_files(
                export.files,
                project_name=export.project_name,
                depth=analysis_depth or get_config_service().get("analysis.depth", "deep"),
            )
        except ReplantError as e:
            logger.error("Import of %s failed: %s", source, e)
            return ImportResult(success=False, source=source, error=str(e))

        schema = build_rebuild_schema(analysis, options)
        extracted = select_preserved_files(export.dart_files, schema) if keep_code else {}
        rebuild = await rebuild_project(
            schema,
            output_path,
            extracted_files=extracted,
            tool_caller=self.tool_caller,
            project_engine=self.project_engine,
            settings=self._settings(),
        )
        return ImportResult(
            success=rebuild.success,
            source=source,
            project_name=analysis.name,
            analysis=analysis,
            schema=schema,
            rebuild=rebuild,
            error=rebuild.error,
        )
