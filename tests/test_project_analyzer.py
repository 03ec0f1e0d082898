"""Tests for the project analyzer orchestrator."""

import pytest

from replant.analyzers.models import AnalysisSnapshot, SourceFile
from replant.analyzers.project_analyzer import FlutterProjectAnalyzer, serialize_analysis_text
from replant.errors import AnalysisDepthError, ManifestNotFoundError, ProjectPathError
from replant.sources.export_parser import parse_flattened_export


class TestAnalyzeDirectory:
    def test_deep_analysis(self, sample_project):
        snapshot = FlutterProjectAnalyzer().analyze(sample_project)
        assert snapshot.name == "my_app"
        assert snapshot.description == "A sample todo app"
        assert snapshot.flutter_version == "3.16.0"
        assert snapshot.dart_version == "3.2.0"
        assert snapshot.architecture.detected == "layer-first"
        assert snapshot.dependencies.state_management == "riverpod"
        assert [m.name for m in snapshot.models] == ["Post", "User"]
        assert [s.name for s in snapshot.screens] == ["HomeScreen"]
        assert [w.name for w in snapshot.widgets] == ["UserCard"]
        assert snapshot.theme is not None
        assert snapshot.theme.primary_color == "0xFF6366F1"

    def test_stats(self, sample_project):
        stats = FlutterProjectAnalyzer().analyze(sample_project).stats
        assert stats.total_files == 11
        assert stats.dart_files == 9
        assert stats.test_files == 1
        assert stats.lines_of_code > 0

    def test_shallow_only_models(self, sample_project):
        snapshot = FlutterProjectAnalyzer().analyze(sample_project, depth="shallow")
        assert len(snapshot.models) == 2
        assert snapshot.screens == []
        assert snapshot.widgets == []
        assert snapshot.theme is None

    def test_medium_adds_screens(self, sample_project):
        snapshot = FlutterProjectAnalyzer().analyze(sample_project, depth="medium")
        assert len(snapshot.screens) == 1
        assert snapshot.widgets == []
        assert snapshot.theme is None

    def test_unknown_depth(self, sample_project):
        with pytest.raises(AnalysisDepthError, match="Unknown analysis depth"):
            FlutterProjectAnalyzer().analyze(sample_project, depth="extreme")

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ProjectPathError):
            FlutterProjectAnalyzer().analyze(tmp_path / "nope")

    def test_missing_lib(self, tmp_path):
        (tmp_path / "pubspec.yaml").write_text("name: x\n")
        with pytest.raises(ProjectPathError, match="No lib/"):
            FlutterProjectAnalyzer().analyze(tmp_path)

    def test_missing_manifest(self, tmp_path):
        (tmp_path / "lib").mkdir()
        with pytest.raises(ManifestNotFoundError):
            FlutterProjectAnalyzer().analyze(tmp_path)


class TestAnalyzeFiles:
    def test_export_matches_directory(self, sample_project, sample_export_text):
        export = parse_flattened_export(sample_export_text)
        from_files = FlutterProjectAnalyzer().analyze_files(export.files, project_name="my-app")
        from_disk = FlutterProjectAnalyzer().analyze(sample_project)
        assert from_files.name == from_disk.name
        assert from_files.architecture.detected == from_disk.architecture.detected
        by_name = lambda items: sorted(items, key=lambda i: i.name)
        assert by_name(from_files.models) == by_name(from_disk.models)
        assert from_files.screens == from_disk.screens
        assert from_files.widgets == from_disk.widgets
        assert from_files.theme == from_disk.theme

    def test_without_manifest_uses_project_name(self):
        files = [SourceFile("lib/models/tag.dart", "class Tag {\n  final String label;\n}\n")]
        snapshot = FlutterProjectAnalyzer().analyze_files(files, project_name="tags")
        assert snapshot.name == "tags"
        assert snapshot.dependencies.state_management == "none"
        assert [m.name for m in snapshot.models] == ["Tag"]
        assert snapshot.stats.total_files == 1


class TestSerialization:
    def test_snapshot_dict_roundtrip(self, sample_project):
        snapshot = FlutterProjectAnalyzer().analyze(sample_project)
        assert AnalysisSnapshot.from_dict(snapshot.to_dict()) == snapshot

    def test_text_report(self, sample_project):
        text = serialize_analysis_text(FlutterProjectAnalyzer().analyze(sample_project))
        assert text.startswith("# Flutter Project Analysis: my_app")
        assert "- Detected: layer-first (60% confidence)" in text
        assert "- State management: riverpod" in text
        assert "- Code generation: json_serializable, build_runner" in text
        assert "## Models (2)" in text
        assert "- HomeScreen /home (stateless, list)" in text
        assert "- Primary color: 0xFF6366F1" in text
