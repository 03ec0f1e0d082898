"""Tests for custom exception hierarchy."""

from replant.errors import (
    AnalysisDepthError,
    ConfigError,
    ExportNotFoundError,
    ManifestNotFoundError,
    ProjectNotFoundError,
    ProjectPathError,
    RebuildError,
    ReplantError,
)


class TestReplantErrorBase:
    def test_message(self):
        assert str(ReplantError("test error")) == "test error"

    def test_empty_context_by_default(self):
        assert ReplantError("test error").context == {}

    def test_context_passed_through(self):
        e = ReplantError("test error", context={"project": "/tmp/app"})
        assert e.context == {"project": "/tmp/app"}

    def test_exit_code_default(self):
        assert ReplantError("test error").exit_code == 1

    def test_is_exception(self):
        assert issubclass(ReplantError, Exception)


class TestAcquisitionErrors:
    def test_manifest_not_found(self):
        e = ManifestNotFoundError("/src/app/pubspec.yaml")
        assert "/src/app/pubspec.yaml" in str(e)
        assert e.context["manifest"] == "/src/app/pubspec.yaml"
        assert isinstance(e, ReplantError)

    def test_export_not_found(self):
        e = ExportNotFoundError("dump.txt")
        assert str(e) == "Export file not found: dump.txt"
        assert e.context["file"] == "dump.txt"

    def test_project_path(self):
        e = ProjectPathError("No lib/ directory in /src/app", "/src/app")
        assert e.context == {"project": "/src/app"}

    def test_analysis_depth(self):
        e = AnalysisDepthError("full", ("shallow", "deep"))
        assert str(e) == "Unknown analysis depth: full (expected one of shallow, deep)"
        assert e.context == {"depth": "full"}
        assert isinstance(e, ReplantError)


class TestRebuildErrors:
    def test_project_not_found(self):
        e = ProjectNotFoundError("demo-3")
        assert "demo-3" in str(e)
        assert e.context["project_id"] == "demo-3"

    def test_rebuild_error_context(self):
        e = RebuildError("generation failed", output_path="/out", module_id="drift")
        assert e.context == {"output": "/out", "module": "drift"}

    def test_hierarchy(self):
        for cls in (ProjectNotFoundError, RebuildError, ConfigError, ProjectPathError):
            assert issubclass(cls, ReplantError)
