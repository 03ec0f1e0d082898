"""Tests for rebuild schema synthesis."""

import pytest

from replant.analyzers.models import (
    AnalysisSnapshot,
    ArchitectureAssessment,
    DependencyProfile,
    FieldDefinition,
    FolderNode,
    ModelDefinition,
    ScreenDefinition,
    ThemeInfo,
    WidgetDefinition,
)
from replant.analyzers.architecture_detector import detect_architecture_from_paths
from replant.analyzers.project_analyzer import FlutterProjectAnalyzer
from replant.core import RebuildOptions, RebuildSchema
from replant.core.schema_builder import (
    build_rebuild_schema,
    resolve_architecture,
    resolve_state_management,
    select_modules,
    theme_color,
)


def _snapshot(detected="clean", confidence=0.9, state="riverpod", **kwargs):
    return AnalysisSnapshot(
        name="shop",
        architecture=ArchitectureAssessment(detected, confidence, FolderNode("lib", "lib")),
        dependencies=DependencyProfile(state_management=state),
        **kwargs,
    )


@pytest.fixture
def sample_snapshot(sample_project):
    return FlutterProjectAnalyzer().analyze(sample_project)


class TestSampleSchema:
    def test_defaults(self, sample_snapshot):
        schema = build_rebuild_schema(sample_snapshot)
        definition = schema.project_definition
        assert definition["name"] == "my_app"
        assert definition["architecture"] == "layer-first"
        assert definition["state_management"] == "riverpod"
        assert definition["targets"] == ["web"]
        assert definition["pwa"]["theme_color"] == "#6366F1"
        assert definition["offline"]["storage"] == {"type": "drift", "encryption": False}
        assert schema.module_ids == ["drift", "pwa", "design", "api", "state"]
        assert schema.warnings == ["Low architecture confidence (60%). Manual review recommended."]

    def test_preserved_files(self, sample_snapshot):
        schema = build_rebuild_schema(sample_snapshot)
        assert schema.preserved_files == [
            "lib/models/post.dart",
            "lib/models/user.dart",
            "lib/screens/home_screen.dart",
            "lib/widgets/user_card.dart",
        ]
        assert [m["action"] for m in schema.migrations["models"]] == ["preserve", "preserve"]
        assert schema.migrations["screens"][0]["action"] == "preserve-structure"
        assert schema.migrations["screens"][0]["apply_theme"] is True
        assert schema.table_schemas == []

    def test_generation_plan(self, sample_snapshot):
        plan = build_rebuild_schema(sample_snapshot).generation_plan
        assert plan["theme"] == ["lib/theme/app_theme.dart", "lib/theme/design_tokens.dart"]
        assert plan["models"] == []
        assert plan["screens"] == ["lib/screens/home_screen.dart"]
        assert plan["state"] == ["lib/providers/app_providers.dart"]

    def test_is_deterministic(self, sample_snapshot):
        options = RebuildOptions(keep_models=False, keep_screen_structure=False)
        assert build_rebuild_schema(sample_snapshot, options) == build_rebuild_schema(sample_snapshot, options)

    def test_dict_roundtrip(self, sample_snapshot):
        schema = build_rebuild_schema(sample_snapshot, RebuildOptions(keep_models=False))
        assert RebuildSchema.from_dict(schema.to_dict()) == schema

    def test_migrating_models(self, sample_snapshot):
        schema = build_rebuild_schema(sample_snapshot, RebuildOptions(keep_models=False))
        migration = schema.migrations["models"][0]
        assert migration["action"] == "migrate-to-drift"
        assert migration["name"] == "Post"
        assert [f["name"] for f in migration["fields"]] == ["id", "title", "userId"]
        assert schema.generation_plan["models"] == ["lib/models/post.dart", "lib/models/user.dart"]
        assert [t["name"] for t in schema.table_schemas] == ["post", "user"]
        assert "lib/models/post.dart" not in schema.preserved_files

    def test_regenerating_screens(self, sample_snapshot):
        schema = build_rebuild_schema(sample_snapshot, RebuildOptions(keep_screen_structure=False))
        migration = schema.migrations["screens"][0]
        assert migration["action"] == "regenerate"
        assert migration["route"] == "/home"
        assert migration["scaffold"]["has_fab"] is True
        assert "lib/screens/home_screen.dart" not in schema.preserved_files

    def test_no_design_no_offline(self, sample_snapshot):
        options = RebuildOptions(apply_design=False, add_offline_support=False)
        schema = build_rebuild_schema(sample_snapshot, options)
        assert schema.module_ids == ["api", "state"]
        assert schema.project_definition["offline"] is None
        assert schema.generation_plan["theme"] == []


class TestDeduplication:
    def test_class_reported_as_screen_and_widget_is_a_screen(self):
        snapshot = _snapshot(
            screens=[ScreenDefinition("Home", "lib/home.dart")],
            widgets=[
                WidgetDefinition("Home", "lib/home.dart"),
                WidgetDefinition("Chip", "lib/chip.dart"),
                WidgetDefinition("Chip", "lib/chip.dart"),
            ],
        )
        schema = build_rebuild_schema(snapshot)
        assert [w["name"] for w in schema.migrations["widgets"]] == ["Chip"]
        assert schema.preserved_files == ["lib/home.dart", "lib/chip.dart"]

    def test_duplicate_model_warns_once_and_migrates_once(self):
        model = ModelDefinition("Item", "lib/models/item.dart", [FieldDefinition("id", "int")])
        snapshot = _snapshot(models=[model, model])
        schema = build_rebuild_schema(snapshot, RebuildOptions(keep_models=False))
        assert len(schema.migrations["models"]) == 1
        assert "Duplicate model Item in lib/models/item.dart ignored." in schema.warnings

    def test_model_without_fields_warns(self):
        snapshot = _snapshot(models=[ModelDefinition("Empty", "lib/models/empty.dart")])
        schema = build_rebuild_schema(snapshot, RebuildOptions(keep_models=False))
        assert "Model Empty has no fields to migrate (lib/models/empty.dart)." in schema.warnings

    def test_many_models_warning(self):
        models = [
            ModelDefinition(f"M{i}", f"lib/models/m{i}.dart", [FieldDefinition("id", "int")])
            for i in range(21)
        ]
        schema = build_rebuild_schema(_snapshot(models=models), RebuildOptions(keep_models=False))
        assert any(w.startswith("Migrating 21 models to Drift") for w in schema.warnings)


class TestResolution:
    def test_keep_uses_detected(self):
        warnings = []
        assert resolve_architecture(_snapshot("feature-first", 0.8), "keep", warnings) == "feature-first"
        assert warnings == []

    def test_keep_with_zero_confidence(self):
        warnings = []
        assert resolve_architecture(_snapshot("clean", 0.0), "keep", warnings) == "layer-first"
        assert "Falling back to layer-first" in warnings[0]

    def test_custom_maps_to_layer_first(self):
        warnings = []
        assert resolve_architecture(_snapshot("custom", 1.0), "keep", warnings) == "layer-first"
        assert warnings == ["Detected architecture is custom; rebuilding as layer-first."]

    def test_custom_layout_warns_in_schema(self):
        snapshot = _snapshot()
        snapshot.architecture = detect_architecture_from_paths(["lib/main.dart", "lib/stuff/a.dart"])
        assert snapshot.architecture.detected == "custom"
        schema = build_rebuild_schema(snapshot, RebuildOptions())
        assert schema.project_definition["architecture"] == "layer-first"
        assert "Detected architecture is custom; rebuilding as layer-first." in schema.warnings

    def test_explicit_and_unknown_targets(self):
        warnings = []
        assert resolve_architecture(_snapshot(), "clean", warnings) == "clean"
        assert resolve_architecture(_snapshot(), "hexagonal", warnings) == "layer-first"
        assert warnings == ["Unknown target architecture 'hexagonal'. Using layer-first."]

    def test_state_keep_bloc(self):
        warnings = []
        assert resolve_state_management(_snapshot(state="bloc"), "keep", warnings) == "bloc"
        assert warnings == []

    def test_state_none_adds_riverpod(self):
        warnings = []
        assert resolve_state_management(_snapshot(state="none"), "keep", warnings) == "riverpod"
        assert warnings == ["No state management detected. Adding Riverpod by default."]

    def test_state_unsupported_migrates(self):
        warnings = []
        assert resolve_state_management(_snapshot(state="getx"), "keep", warnings) == "riverpod"
        assert "'getx' cannot be rebuilt directly" in warnings[0]

    def test_state_unknown_target(self):
        warnings = []
        assert resolve_state_management(_snapshot(), "redux", warnings) == "riverpod"
        assert warnings == ["Unknown target state management 'redux'. Using Riverpod."]

    def test_bloc_generation_plan(self):
        schema = build_rebuild_schema(_snapshot(state="bloc"))
        assert schema.generation_plan["state"] == ["lib/blocs/app_bloc.dart"]


class TestModules:
    def test_extra_and_excluded(self):
        options = RebuildOptions(extra_modules=["auth", "drift"], exclude_modules=["pwa"])
        assert select_modules(_snapshot(), options) == ["drift", "design", "state", "auth"]

    def test_existing_drift_kept_without_offline(self):
        snapshot = _snapshot()
        snapshot.dependencies.persistence = "drift"
        options = RebuildOptions(add_offline_support=False)
        assert select_modules(snapshot, options) == ["drift", "design", "state"]


def test_theme_color_fallback():
    assert theme_color(_snapshot()) == "#6366F1"
    assert theme_color(_snapshot(theme=ThemeInfo(primary_color="Colors.teal"))) == "#6366F1"
    assert theme_color(_snapshot(theme=ThemeInfo(primary_color="0xFF009688"))) == "#009688"
