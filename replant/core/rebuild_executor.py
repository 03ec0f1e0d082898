"""Rebuild orchestration.

Runs a RebuildSchema against an injected tool caller and project engine,
in strict order:

    create project -> configure modules (tool calls) -> generate files
    -> write output -> copy preserved sources -> optional post steps

A module whose configuration or generation fails is reported as a
warning and the remaining modules continue. Only a missing collaborator
or an output directory that cannot be created stops the run.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from replant.analyzers.dart_source import to_snake_case
from replant.analyzers.models import SourceFile
from replant.errors import ReplantError, RebuildError

from . import RebuildResult, RebuildSchema
from .project_engine import InMemoryProjectEngine
from .tool_registry import create_default_registry

logger = logging.getLogger(__name__)

# Modules whose configuration goes through the tool caller
TOOL_MODULES = ("drift", "pwa", "design", "api", "state")

POST_STEP_TIMEOUT = 600


@dataclass
class ExecutorSettings:
    run_flutter_create: bool = False
    format_code: bool = False
    generate_tests: bool = False


async def _resolve(value):
    if inspect.isawaitable(value):
        return await value
    return value


def module_tool_calls(schema: RebuildSchema, project_id: str, module_id: str) -> list[tuple[str, dict]]:
    """Tool invocations that configure ``module_id`` for this schema."""
    definition = schema.project_definition
    calls: list[tuple[str, dict]] = []

    if module_id == "drift":
        for table in schema.table_schemas:
            calls.append(("drift_add_table", {
                "project_id": project_id,
                "name": table["name"],
                "columns": table["columns"],
                "timestamps": table.get("timestamps", False),
                "soft_delete": table.get("soft_delete", False),
            }))
        storage = (definition.get("offline") or {}).get("storage") or {}
        if storage.get("encryption"):
            calls.append(("drift_enable_encryption", {"project_id": project_id, "strategy": "stored"}))
    elif module_id == "pwa":
        calls.append(("pwa_configure_manifest", {"project_id": project_id, **(definition.get("pwa") or {})}))
    elif module_id == "design":
        pwa = definition.get("pwa") or {}
        calls.append(("design_generate_theme", {
            "project_id": project_id,
            "primary_color": pwa.get("theme_color", "#6366F1"),
            "dark_mode": True,
        }))
    elif module_id == "api":
        calls.append(("api_configure_client", {"project_id": project_id, "client": "dio"}))
    elif module_id == "state":
        if definition.get("state_management") == "bloc":
            calls.append(("state_create_bloc", {
                "project_id": project_id,
                "name": "AppBloc",
                "events": ["LoadData", "UpdateData"],
                "states": ["Initial", "Loading", "Loaded", "Error"],
            }))
        else:
            calls.append(("state_create_provider", {
                "project_id": project_id,
                "name": "appState",
                "state_type": "Map<String, dynamic>",
                "auto_dispose": True,
            }))
    return calls


def preserved_target(category: str, source_path: str) -> str:
    """``lib/features/auth/models/user.dart`` in ``models`` -> ``lib/models/user.dart``.

    The part after the last ``/<category>/`` segment is kept; otherwise
    only the file name.
    """
    marker = f"/{category}/"
    padded = "/" + source_path
    idx = padded.rfind(marker)
    rel = padded[idx + len(marker):] if idx != -1 else PurePosixPath(source_path).name
    return f"lib/{category}/{rel}"


def model_placeholder(migration: dict) -> str:
    return (
        f"class {migration['name']} {{\n"
        f"  // Rebuilt from {migration.get('source') or 'unknown'}\n"
        "}\n"
    )


def screen_placeholder(migration: dict) -> str:
    name = migration["name"]
    return (
        "import 'package:flutter/material.dart';\n\n"
        f"// Rebuilt from {migration.get('source') or 'unknown'}\n"
        f"class {name} extends StatelessWidget {{\n"
        f"  const {name}({{super.key}});\n\n"
        "  @override\n"
        "  Widget build(BuildContext context) {\n"
        "    return Scaffold(\n"
        f"      appBar: AppBar(title: const Text('{name}')),\n"
        "      body: const Center(child: Text('Screen content here')),\n"
        "    );\n"
        "  }\n"
        "}\n"
    )


def smoke_test(package: str) -> str:
    return (
        "import 'package:flutter_test/flutter_test.dart';\n"
        f"import 'package:{package}/main.dart';\n\n"
        "void main() {\n"
        "  testWidgets('App smoke test', (WidgetTester tester) async {\n"
        "    await tester.pumpWidget(const MyApp());\n"
        "    expect(find.text('Welcome to your rebuilt Flutter app!'), findsOneWidget);\n"
        "  });\n"
        "}\n"
    )


class RebuildExecutor:
    """Materializes a RebuildSchema on disk.

    Args:
        tool_caller: Async ``(name, args) -> dict`` used to configure modules.
        project_engine: Object implementing ProjectEngine.
        settings: Optional post-processing switches.
    """

    def __init__(self, tool_caller=None, project_engine=None, settings: ExecutorSettings | None = None):
        self.tool_caller = tool_caller
        self.project_engine = project_engine
        self.settings = settings or ExecutorSettings()

    async def execute(
        self,
        schema: RebuildSchema,
        output_path: str | Path,
        extracted_files: dict[str, list[SourceFile]] | None = None,
    ) -> RebuildResult:
        """Run the rebuild.

        Raises:
            RebuildError: Missing project engine, tool-configured modules
                with no tool caller, or an output directory that cannot
                be created.
        """
        out = Path(output_path)
        extracted_files = extracted_files or {}
        module_ids = schema.module_ids
        warnings: list[str] = []

        if self.project_engine is None:
            raise RebuildError("No project engine configured", str(out))
        needs_tools = [m for m in module_ids if m in TOOL_MODULES]
        if needs_tools and self.tool_caller is None:
            raise RebuildError(
                f"Modules {', '.join(needs_tools)} need a tool caller but none was provided",
                str(out),
            )
        try:
            out.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RebuildError(f"Cannot create output directory {out}: {e}", str(out)) from e

        # (a) project record
        try:
            project_id = await _resolve(self.project_engine.create_project(schema.project_definition))
        except ReplantError:
            raise
        except Exception as e:
            raise RebuildError(f"Project creation failed: {e}", str(out)) from e
        logger.info("Rebuilding %s into %s (project %s)", schema.name, out, project_id)

        # (b) module configuration
        configured = await self._configure_modules(schema, project_id, module_ids, warnings)

        # (c) generation
        files, installed = await self._generate(schema, project_id, configured, extracted_files, warnings)

        # (d) write
        written = self._write_files(out, files, warnings)

        # (e) preserved sources, last writer wins
        copied = self._copy_preserved(out, extracted_files, written, warnings)

        # (f) post steps
        await self._post_steps(out, warnings)

        next_steps = [
            f"cd {out}",
            "flutter pub get" if self.settings.run_flutter_create else "flutter create . && flutter pub get",
        ]
        if "drift" in configured:
            next_steps.append("dart run build_runner build --delete-conflicting-outputs")
        next_steps.append("flutter run -d chrome")

        return RebuildResult(
            success=True,
            output_path=str(out),
            project_id=project_id,
            files_generated=len(written),
            files_copied=copied,
            modules_installed=installed,
            warnings=list(schema.warnings) + warnings,
            next_steps=next_steps,
        )

    async def _configure_modules(
        self,
        schema: RebuildSchema,
        project_id: str,
        module_ids: list[str],
        warnings: list[str],
    ) -> list[str]:
        configured: list[str] = []
        entries = {m["id"]: m for m in schema.project_definition.get("modules", [])}
        for module_id in module_ids:
            try:
                error = None
                for tool, args in module_tool_calls(schema, project_id, module_id):
                    result = await self.tool_caller(tool, args)
                    if not isinstance(result, dict) or not result.get("success", False):
                        detail = result.get("error") if isinstance(result, dict) else result
                        error = f"{tool}: {detail or 'unknown error'}"
                        break
                if error is None:
                    config = dict(entries.get(module_id, {}).get("config") or {})
                    await _resolve(self.project_engine.apply_module_config(project_id, module_id, config))
                    configured.append(module_id)
            except Exception as e:
                logger.warning("Module %s configuration raised: %s", module_id, e, exc_info=True)
                error = str(e)
            if error is not None:
                warnings.append(f"Module '{module_id}' configuration failed: {error}")
        return configured

    async def _generate(
        self,
        schema: RebuildSchema,
        project_id: str,
        configured: list[str],
        extracted_files: dict[str, list[SourceFile]],
        warnings: list[str],
    ) -> tuple[dict[str, str], int]:
        files: dict[str, str] = {}
        try:
            files.update(await _resolve(self.project_engine.generate_files(project_id)))
        except Exception as e:
            logger.warning("Core file generation raised: %s", e, exc_info=True)
            warnings.append(f"Core file generation failed: {e}")

        installed = 0
        for module_id in configured:
            try:
                files.update(await _resolve(self.project_engine.generate_files(project_id, module_id)))
                installed += 1
            except Exception as e:
                logger.warning("Module %s generation raised: %s", module_id, e, exc_info=True)
                warnings.append(f"Module '{module_id}' generation failed: {e}")

        # Placeholders only where no original sources of that kind were supplied
        if not extracted_files.get("models"):
            for migration in schema.migrations.get("models", []):
                files[f"lib/models/{to_snake_case(migration['name'])}.dart"] = model_placeholder(migration)
        if not extracted_files.get("screens"):
            for migration in schema.migrations.get("screens", []):
                files[f"lib/screens/{to_snake_case(migration['name'])}.dart"] = screen_placeholder(migration)

        if self.settings.generate_tests:
            files["test/widget_test.dart"] = smoke_test(schema.name)
        return files, installed

    def _write_files(self, out: Path, files: dict[str, str], warnings: list[str]) -> set[str]:
        written: set[str] = set()
        root = out.resolve()
        for rel, content in files.items():
            target = out.joinpath(*PurePosixPath(rel).parts)
            if not target.resolve().is_relative_to(root):
                warnings.append(f"Skipped generated file outside output directory: {rel}")
                continue
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(content, encoding="utf-8")
            except OSError as e:
                warnings.append(f"Could not write {rel}: {e}")
                continue
            written.add(rel)
        logger.info("Wrote %d generated files", len(written))
        return written

    def _copy_preserved(
        self,
        out: Path,
        extracted_files: dict[str, list[SourceFile]],
        written: set[str],
        warnings: list[str],
    ) -> int:
        copied = 0
        collisions = 0
        occupied = set(written)
        for category, sources in extracted_files.items():
            for source in sources:
                rel = preserved_target(category, source.path)
                target = out.joinpath(*PurePosixPath(rel).parts)
                if rel in occupied:
                    collisions += 1
                    logger.info("Preserved %s overwrites %s", source.path, rel)
                try:
                    target.parent.mkdir(parents=True, exist_ok=True)
                    target.write_text(source.content, encoding="utf-8")
                except OSError as e:
                    warnings.append(f"Could not copy {source.path}: {e}")
                    continue
                occupied.add(rel)
                copied += 1
        if collisions:
            logger.info("%d preserved files replaced generated output", collisions)
        return copied

    async def _post_steps(self, out: Path, warnings: list[str]) -> None:
        steps = []
        if self.settings.run_flutter_create:
            steps.append((["flutter", "create", ".", "--platforms=web,android,ios"], "flutter create"))
        if self.settings.format_code:
            steps.append((["dart", "format", "."], "dart format"))
        for cmd, label in steps:
            logger.info("Running %s", label)
            try:
                proc = await asyncio.to_thread(
                    subprocess.run, cmd, cwd=out, capture_output=True, text=True,
                    timeout=POST_STEP_TIMEOUT,
                )
            except (OSError, subprocess.TimeoutExpired) as e:
                warnings.append(f"{label} failed ({e}). You may need to run it manually.")
                continue
            if proc.returncode != 0:
                warnings.append(f"{label} failed. You may need to run it manually.")


async def rebuild_project(
    schema: RebuildSchema,
    output_path: str | Path,
    extracted_files: dict[str, list[SourceFile]] | None = None,
    tool_caller=None,
    project_engine=None,
    settings: ExecutorSettings | None = None,
) -> RebuildResult:
    """Run a rebuild and report fatal conditions as ``success=False``.

    Without explicit collaborators an InMemoryProjectEngine and its
    default tool registry are used.
    """
    if project_engine is None:
        project_engine = InMemoryProjectEngine()
        if tool_caller is None:
            tool_caller = create_default_registry(project_engine)
    executor = RebuildExecutor(tool_caller, project_engine, settings)
    try:
        return await executor.execute(schema, output_path, extracted_files)
    except ReplantError as e:
        logger.error("Rebuild failed: %s", e)
        return RebuildResult(
            success=False,
            output_path=str(output_path),
            warnings=list(schema.warnings),
            error=str(e),
        )
