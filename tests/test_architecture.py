"""Tests for architecture style detection."""

from replant.analyzers.architecture_detector import (
    build_folder_tree,
    categorize_file,
    detect_architecture,
    detect_architecture_from_paths,
    file_type,
)


def _make_dirs(root, *paths):
    for p in paths:
        (root / p).mkdir(parents=True, exist_ok=True)
    return root


class TestDetectArchitecture:
    def test_layer_first(self, sample_project):
        result = detect_architecture(sample_project / "lib")
        assert result.detected == "layer-first"
        assert result.confidence == 0.6
        assert "Found layer folders" in result.reasoning

    def test_clean_all_three_layers(self, tmp_path):
        lib = _make_dirs(tmp_path / "lib", "domain", "data", "presentation")
        result = detect_architecture(lib)
        assert result.detected == "clean"
        assert result.confidence == 0.7
        assert "; " in result.reasoning

    def test_feature_first_with_internal_structure(self, tmp_path):
        lib = _make_dirs(
            tmp_path / "lib",
            "features/auth/data",
            "features/auth/presentation",
            "features/todos/screens",
        )
        result = detect_architecture(lib)
        assert result.detected == "feature-first"
        assert result.confidence == 0.8

    def test_tie_goes_to_clean(self, tmp_path):
        # clean scores 40 (two layers) and layer-first scores 40 (two layer folders)
        lib = _make_dirs(tmp_path / "lib", "domain", "data", "models", "services")
        result = detect_architecture(lib)
        assert result.detected == "clean"
        assert result.confidence == 0.4

    def test_custom_when_no_pattern(self, tmp_path):
        lib = _make_dirs(tmp_path / "lib", "stuff")
        result = detect_architecture(lib)
        assert result.detected == "custom"
        assert result.confidence == 1.0
        assert "No clear architecture pattern" in result.reasoning

    def test_missing_directory_still_has_structure(self, tmp_path):
        result = detect_architecture(tmp_path / "lib")
        assert result.detected == "custom"
        assert result.structure is not None
        assert result.structure.children == []

    def test_confidence_is_in_range(self, tmp_path):
        for layout in (("a",), ("models", "views", "controllers"), ("features/x", "features/y")):
            lib = _make_dirs(tmp_path / "-".join(layout).replace("/", "_") / "lib", *layout)
            result = detect_architecture(lib)
            assert 0.0 <= result.confidence <= 1.0


class TestDetectFromPaths:
    def test_matches_disk_detection(self, sample_project):
        from conftest import SAMPLE_FILES

        from_paths = detect_architecture_from_paths(list(SAMPLE_FILES))
        from_disk = detect_architecture(sample_project / "lib")
        assert from_paths.detected == from_disk.detected
        assert from_paths.confidence == from_disk.confidence

    def test_paths_under_nested_root(self):
        paths = [
            "app/lib/features/auth/data/repo.dart",
            "app/lib/features/home/screens/home.dart",
        ]
        result = detect_architecture_from_paths(paths)
        assert result.detected == "feature-first"

    def test_no_lib_paths(self):
        result = detect_architecture_from_paths(["README.md"])
        assert result.detected == "custom"
        assert result.structure.name == "lib"


class TestFolderTree:
    def test_children_sorted_and_hidden_skipped(self, sample_project):
        (sample_project / "lib" / ".secret").mkdir()
        tree = build_folder_tree(sample_project / "lib", "lib")
        names = [c.name for c in tree.children]
        assert names == sorted(names)
        assert ".secret" not in names

    def test_file_nodes_are_categorized(self, sample_project):
        tree = build_folder_tree(sample_project / "lib", "lib")
        models = next(c for c in tree.children if c.name == "models")
        user = next(c for c in models.children if c.name == "user.dart")
        assert user.type == "file"
        assert user.file_type == "dart"
        assert user.category == "model"
        assert user.path == "lib/models/user.dart"

    def test_depth_limit(self, tmp_path):
        _make_dirs(tmp_path / "lib", "a/b/c/d")
        tree = build_folder_tree(tmp_path / "lib", "lib", depth=2)
        b = tree.children[0].children[0]
        assert b.name == "b"
        assert b.children == []


def test_file_type_and_category():
    assert file_type("pubspec.yaml") == "yaml"
    assert file_type("data.json") == "json"
    assert file_type("README.md") == "other"
    assert categorize_file("home.dart", "pages") == "screen"
    assert categorize_file("auth_bloc.dart", "blocs") == "provider"
    assert categorize_file("x.dart", "misc") == "unknown"
