"""Flutter project analyzer orchestrator.

Parses the manifest, classifies the architecture, runs the pattern
extractors appropriate for the requested depth, and builds an
AnalysisSnapshot. Works on a project directory or on an in-memory file
list from a flattened export.
"""

from __future__ import annotations

import logging
from pathlib import Path

from replant.errors import AnalysisDepthError, ProjectPathError
from replant.sources.local_source import read_source_tree

from . import architecture_detector, manifest_parser, model_extractor
from . import screen_extractor, theme_extractor, widget_extractor
from .dart_source import SKIP_DIRS
from .models import AnalysisSnapshot, ProjectMetadata, ProjectStats, SourceFile

logger = logging.getLogger(__name__)

DEPTHS = ("shallow", "medium", "deep")

# Max files counted for stats (avoid huge repos)
MAX_COUNTED_FILES = 20000


class FlutterProjectAnalyzer:
    """Builds an AnalysisSnapshot from a Flutter project."""

    def analyze(self, project_path: Path, depth: str = "deep") -> AnalysisSnapshot:
        """Analyze a project directory.

        Args:
            project_path: Root of the Flutter project (contains pubspec.yaml).
            depth: ``shallow`` (models only), ``medium`` (+ screens), or
                ``deep`` (+ widgets and theme).

        Raises:
            ProjectPathError: If the directory or its lib/ folder is missing.
            ManifestNotFoundError: If pubspec.yaml is missing.
            AnalysisDepthError: If depth is not a known level.
        """
        depth = _check_depth(depth)
        project_path = Path(project_path).resolve()
        if not project_path.is_dir():
            raise ProjectPathError(f"Not a directory: {project_path}", str(project_path))
        lib_path = project_path / "lib"
        if not lib_path.is_dir():
            raise ProjectPathError(f"No lib/ directory in {project_path}", str(project_path))

        logger.info("Analyzing Flutter project: %s (depth=%s)", project_path, depth)
        metadata = manifest_parser.parse_manifest(project_path)
        architecture = architecture_detector.detect_architecture(lib_path)

        files = read_source_tree(project_path)
        snapshot = self._build_snapshot(metadata, architecture, files, depth)
        snapshot.stats.total_files = self._count_files(project_path)
        return snapshot

    def analyze_files(
        self,
        files: list[SourceFile],
        project_name: str = "unknown_project",
        depth: str = "deep",
    ) -> AnalysisSnapshot:
        """Analyze an in-memory file list (e.g. a parsed flattened export).

        The manifest is read from a ``pubspec.yaml`` entry when present;
        otherwise defaults are used with ``project_name``.
        """
        depth = _check_depth(depth)
        manifest = next((f for f in files if f.path.endswith("pubspec.yaml")), None)
        if manifest is not None:
            metadata = manifest_parser.parse_manifest_content(manifest.content)
        else:
            logger.warning("No pubspec.yaml in file list, using defaults")
            metadata = ProjectMetadata(name=project_name)
        if metadata.name == "unknown":
            metadata.name = project_name

        architecture = architecture_detector.detect_architecture_from_paths([f.path for f in files])
        snapshot = self._build_snapshot(metadata, architecture, files, depth)
        snapshot.stats.total_files = len(files)
        return snapshot

    def _build_snapshot(self, metadata, architecture, files, depth) -> AnalysisSnapshot:
        models = model_extractor.extract_models_from_files(files)
        screens = []
        widgets = []
        theme = None
        if depth != "shallow":
            screens = screen_extractor.extract_screens_from_files(files)
        if depth == "deep":
            widgets = widget_extractor.extract_widgets_from_files(files)
            theme = theme_extractor.extract_theme_from_files(files)

        logger.info(
            "Found %d models, %d screens, %d widgets (%s, %.0f%%)",
            len(models), len(screens), len(widgets),
            architecture.detected, architecture.confidence * 100,
        )
        return AnalysisSnapshot(
            name=metadata.name,
            description=metadata.description,
            flutter_version=metadata.flutter_version,
            dart_version=metadata.dart_min_version,
            architecture=architecture,
            dependencies=metadata.dependencies,
            models=models,
            screens=screens,
            widgets=widgets,
            theme=theme,
            stats=self._compute_stats(files),
        )

    def _compute_stats(self, files: list[SourceFile]) -> ProjectStats:
        dart = [f for f in files if f.path.endswith(".dart")]
        tests = [f for f in dart if _is_test_path(f.path)]
        loc = sum(
            f.content.count("\n") + (1 if f.content and not f.content.endswith("\n") else 0)
            for f in dart
            if not _is_test_path(f.path)
        )
        return ProjectStats(
            total_files=len(files),
            dart_files=len(dart),
            test_files=len(tests),
            lines_of_code=loc,
        )

    def _count_files(self, root: Path) -> int:
        """Count files in the project tree, skipping hidden and build directories."""
        count = 0
        for item in root.rglob("*"):
            rel_parts = item.relative_to(root).parts
            if any(part.startswith(".") or part in SKIP_DIRS for part in rel_parts):
                continue
            if item.is_file():
                count += 1
                if count >= MAX_COUNTED_FILES:
                    logger.warning("Hit file limit (%d), stats are truncated", MAX_COUNTED_FILES)
                    break
        return count


def _check_depth(depth: str) -> str:
    if depth not in DEPTHS:
        raise AnalysisDepthError(depth, DEPTHS)
    return depth


def _is_test_path(path: str) -> bool:
    return path.startswith("test/") or "/test/" in path or path.endswith("_test.dart")


def serialize_analysis_text(snapshot: AnalysisSnapshot) -> str:
    """Render an AnalysisSnapshot as a human-readable Markdown report."""
    deps = snapshot.dependencies
    arch = snapshot.architecture
    parts = [
        f"# Flutter Project Analysis: {snapshot.name}",
        "",
        "## Overview",
        f"- Flutter: {snapshot.flutter_version}, Dart: {snapshot.dart_version}",
        f"- Files: {snapshot.stats.total_files} ({snapshot.stats.dart_files} Dart, "
        f"{snapshot.stats.test_files} tests)",
        f"- Lines of code: {snapshot.stats.lines_of_code:,}",
        "",
        "## Architecture",
        f"- Detected: {arch.detected} ({arch.confidence:.0%} confidence)",
    ]
    if arch.reasoning:
        parts.append(f"- Reasoning: {arch.reasoning}")

    parts.extend([
        "",
        "## Dependencies",
        f"- State management: {deps.state_management}",
        f"- Persistence: {deps.persistence}",
        f"- Networking: {deps.networking}",
        f"- Navigation: {deps.navigation}",
    ])
    codegen = [
        label for label, on in (
            ("freezed", deps.uses_freezed),
            ("json_serializable", deps.uses_json_serializable),
            ("build_runner", deps.uses_build_runner),
        ) if on
    ]
    if codegen:
        parts.append(f"- Code generation: {', '.join(codegen)}")

    if snapshot.models:
        parts.extend(["", f"## Models ({len(snapshot.models)})"])
        for m in snapshot.models[:30]:
            parts.append(f"- {m.name} [{m.file_path}]: {len(m.fields)} fields")

    if snapshot.screens:
        parts.extend(["", f"## Screens ({len(snapshot.screens)})"])
        for s in snapshot.screens[:30]:
            parts.append(f"- {s.name} {s.route or ''} ({s.kind}, {s.layout})".rstrip())

    if snapshot.widgets:
        parts.extend(["", f"## Widgets ({len(snapshot.widgets)})"])
        for w in snapshot.widgets[:30]:
            parts.append(f"- {w.name}: {len(w.props)} props")

    if snapshot.theme:
        t = snapshot.theme
        parts.extend(["", "## Theme"])
        parts.append(f"- Material: {t.use_material}, Cupertino: {t.use_cupertino}")
        if t.primary_color:
            parts.append(f"- Primary color: {t.primary_color}")
        if t.font_family:
            parts.append(f"- Font family: {t.font_family}")
        if t.colors:
            parts.append(f"- Named colors: {len(t.colors)}")

    return "\n".join(parts)
