"""Tests for the end-to-end import pipeline."""

import asyncio
from unittest.mock import MagicMock

import pytest

from replant.analyzers.models import SourceFile
from replant.core import CloneResult, RebuildOptions, RebuildSchema
from replant.core.import_service import ImportService, select_preserved_files, settings_from_config
from replant.core.rebuild_executor import ExecutorSettings


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def fake_clone(monkeypatch):
    """Replace git with a clone that points at a prepared directory."""
    state = {"path": None}

    def clone_repository(url, branch="main", depth=1, timeout=300):
        state.update(url=url, branch=branch, depth=depth)
        if state["path"] is None:
            return CloneResult(success=False, repo_name="repo", error="repository not found")
        return CloneResult(success=True, local_path=str(state["path"]), repo_name="my_app", branch=branch)

    cleanup = MagicMock()
    monkeypatch.setattr("replant.core.import_service.clone_repository", clone_repository)
    monkeypatch.setattr("replant.core.import_service.cleanup_clone", cleanup)
    state["cleanup"] = cleanup
    return state


class TestImportRepository:
    def test_success(self, fake_clone, sample_project, tmp_path):
        fake_clone["path"] = sample_project
        out = tmp_path / "out"

        result = run(ImportService().import_repository("https://github.com/acme/my_app.git", out))

        assert result.success is True
        assert result.project_name == "my_app"
        assert result.analysis.architecture.detected == "layer-first"
        assert result.rebuild.modules_installed == 5
        assert (out / "lib/models/user.dart").read_text() == sample_project.joinpath(
            "lib/models/user.dart"
        ).read_text()
        fake_clone["cleanup"].assert_called_once_with(str(sample_project))

    def test_clone_defaults_from_config(self, fake_clone, sample_project, tmp_path):
        fake_clone["path"] = sample_project
        run(ImportService().import_repository("https://x/y.git", tmp_path / "out"))
        assert fake_clone["branch"] == "main"
        assert fake_clone["depth"] == 1

    def test_explicit_branch(self, fake_clone, sample_project, tmp_path):
        fake_clone["path"] = sample_project
        run(ImportService().import_repository("https://x/y.git", tmp_path / "out", branch="dev", depth=5))
        assert fake_clone["branch"] == "dev"
        assert fake_clone["depth"] == 5

    def test_clone_failure(self, fake_clone, tmp_path):
        result = run(ImportService().import_repository("https://x/missing.git", tmp_path / "out"))
        assert result.success is False
        assert result.error == "Clone failed: repository not found"
        assert result.analysis is None
        fake_clone["cleanup"].assert_not_called()

    def test_analysis_failure_still_cleans_up(self, fake_clone, tmp_path):
        empty = tmp_path / "not-flutter"
        empty.mkdir()
        fake_clone["path"] = empty

        result = run(ImportService().import_repository("https://x/y.git", tmp_path / "out"))

        assert result.success is False
        assert "No lib/ directory" in result.error
        fake_clone["cleanup"].assert_called_once_with(str(empty))

    def test_unknown_depth_is_reported(self, fake_clone, sample_project, tmp_path):
        fake_clone["path"] = sample_project
        result = run(ImportService().import_repository("https://x/y.git", tmp_path / "out", analysis_depth="full"))
        assert result.success is False
        assert result.error.startswith("Unknown analysis depth: full")
        fake_clone["cleanup"].assert_called_once_with(str(sample_project))

    def test_keep_code_false_copies_nothing(self, fake_clone, sample_project, tmp_path):
        fake_clone["path"] = sample_project
        result = run(ImportService().import_repository("https://x/y.git", tmp_path / "out", keep_code=False))
        assert result.rebuild.files_copied == 0


class TestImportExport:
    def test_success(self, sample_export, tmp_path):
        out = tmp_path / "out"
        result = run(ImportService().import_export(sample_export, out))

        assert result.success is True
        assert result.source == str(sample_export)
        assert result.project_name == "my_app"
        assert result.rebuild.files_copied == 7
        assert (out / "lib/providers/todo_provider.dart").is_file()
        assert (out / "lib/services/api_service.dart").is_file()

    def test_missing_file(self, tmp_path):
        result = run(ImportService().import_export(tmp_path / "missing.txt", tmp_path / "out"))
        assert result.success is False
        assert "Export file not found" in result.error
        assert not (tmp_path / "out").exists()

    def test_unknown_depth_is_reported(self, sample_export, tmp_path):
        result = run(ImportService().import_export(sample_export, tmp_path / "out", analysis_depth="full"))
        assert result.success is False
        assert result.error.startswith("Unknown analysis depth: full")
        assert not (tmp_path / "out").exists()

    def test_options_are_applied(self, sample_export, tmp_path):
        options = RebuildOptions(apply_design=False, add_offline_support=False)
        result = run(ImportService().import_export(sample_export, tmp_path / "out", options=options))
        assert result.schema.module_ids == ["api", "state"]

    def test_to_dict(self, sample_export, tmp_path):
        data = run(ImportService().import_export(sample_export, tmp_path / "out")).to_dict()
        assert data["success"] is True
        assert data["analysis"]["name"] == "my_app"
        assert data["rebuild"]["error"] is None


class TestSelectPreserved:
    def test_planned_categories_follow_schema(self):
        files = [
            SourceFile("lib/models/user.dart", "a"),
            SourceFile("lib/models/post.dart", "b"),
            SourceFile("lib/services/api.dart", "c"),
        ]
        schema = RebuildSchema(project_definition={}, preserved_files=["lib/models/user.dart"])
        groups = select_preserved_files(files, schema)
        assert [f.path for f in groups["models"]] == ["lib/models/user.dart"]
        assert [f.path for f in groups["services"]] == ["lib/services/api.dart"]

    def test_empty_categories_dropped(self):
        files = [SourceFile("lib/models/user.dart", "a")]
        schema = RebuildSchema(project_definition={})
        assert select_preserved_files(files, schema) == {}


def test_settings_from_config(isolated_config):
    (isolated_config / "config.toml").write_text("[rebuild]\nformat_code = true\n")
    assert settings_from_config() == ExecutorSettings(format_code=True)
