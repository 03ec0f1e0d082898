"""Tests for the replant CLI commands."""

import json

import pytest
import yaml
from typer.testing import CliRunner

from replant import ui
from replant.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_output_modes():
    yield
    ui.set_json_mode(False)


class TestAnalyze:
    def test_json_output(self, sample_project):
        result = runner.invoke(app, ["analyze", str(sample_project), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["name"] == "my_app"
        assert data["architecture"]["detected"] == "layer-first"

    def test_export_file(self, sample_export):
        result = runner.invoke(app, ["analyze", str(sample_export), "--json", "--depth", "shallow"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert len(data["models"]) == 2
        assert data["screens"] == []

    def test_save(self, sample_project, tmp_path):
        target = tmp_path / "analysis.yaml"
        result = runner.invoke(app, ["analyze", str(sample_project), "--save", str(target)])
        assert result.exit_code == 0, result.output
        assert yaml.safe_load(target.read_text())["name"] == "my_app"

    def test_missing_project(self, tmp_path):
        result = runner.invoke(app, ["analyze", str(tmp_path / "missing")])
        assert result.exit_code == 1
        assert "Not a directory" in result.output

    def test_unknown_depth(self, sample_project):
        result = runner.invoke(app, ["analyze", str(sample_project), "--depth", "full"])
        assert result.exit_code == 1
        assert "Unknown analysis depth" in result.output


class TestSchemaAndRebuild:
    def test_schema_then_rebuild(self, sample_project, tmp_path):
        analysis = tmp_path / "analysis.yaml"
        plan = tmp_path / "schema.yaml"
        out = tmp_path / "out"

        assert runner.invoke(app, ["analyze", str(sample_project), "--save", str(analysis)]).exit_code == 0
        result = runner.invoke(app, [
            "schema", str(analysis), "--no-design", "--state", "bloc", "--save", str(plan),
        ])
        assert result.exit_code == 0, result.output
        saved = yaml.safe_load(plan.read_text())
        assert saved["project_definition"]["state_management"] == "bloc"

        result = runner.invoke(app, ["rebuild", str(plan), str(out), "--source", str(sample_project)])
        assert result.exit_code == 0, result.output
        assert (out / "lib/blocs/app_bloc.dart").is_file()
        assert (out / "lib/models/user.dart").is_file()

    def test_schema_json(self, sample_project, tmp_path):
        analysis = tmp_path / "analysis.yaml"
        runner.invoke(app, ["analyze", str(sample_project), "--save", str(analysis)])
        result = runner.invoke(app, ["schema", str(analysis), "--json", "-x", "pwa", "-m", "auth"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [m["id"] for m in data["project_definition"]["modules"]] == [
            "drift", "design", "api", "state", "auth",
        ]

    def test_schema_rejects_non_mapping(self, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("- a\n- b\n")
        result = runner.invoke(app, ["schema", str(bad)])
        assert result.exit_code != 0


class TestImportExport:
    def test_json_result(self, sample_export, tmp_path):
        out = tmp_path / "out"
        result = runner.invoke(app, ["import-export", str(sample_export), str(out), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["success"] is True
        assert data["rebuild"]["files_copied"] == 7

    def test_missing_export(self, tmp_path):
        result = runner.invoke(app, ["import-export", str(tmp_path / "x.txt"), str(tmp_path / "out")])
        assert result.exit_code == 1
        assert "Import failed" in result.output


class TestConfigCommands:
    def test_paths(self):
        result = runner.invoke(app, ["config", "paths"])
        assert result.exit_code == 0
        assert "global_config" in result.output

    def test_set_and_show(self, isolated_config):
        result = runner.invoke(app, ["config", "set", "clone.depth", "4"])
        assert result.exit_code == 0
        assert "clone" in (isolated_config / "config.toml").read_text()
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "Config Sources" in result.output

    def test_init_twice(self):
        assert runner.invoke(app, ["config", "init"]).exit_code == 0
        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 1
        assert "already exists" in result.output
