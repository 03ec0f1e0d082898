"""pubspec.yaml parser.

Classifies a project's dependency profile by testing declared package
names against known package sets. Categories are tested in declaration
order; the first category with any package present wins.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

import yaml

from replant.errors import ManifestNotFoundError

from .models import DependencyProfile, ProjectMetadata

logger = logging.getLogger(__name__)

DEFAULT_SDK_CONSTRAINT = ">=3.0.0 <4.0.0"
DEFAULT_VERSION = "3.0.0"

STATE_MANAGEMENT_PACKAGES: dict[str, list[str]] = {
    "riverpod": ["flutter_riverpod", "riverpod", "hooks_riverpod"],
    "bloc": ["flutter_bloc", "bloc", "hydrated_bloc"],
    "provider": ["provider"],
    "getx": ["get", "getx"],
    "mobx": ["flutter_mobx", "mobx"],
}

PERSISTENCE_PACKAGES: dict[str, list[str]] = {
    "drift": ["drift", "drift_flutter", "moor", "moor_flutter"],
    "sqflite": ["sqflite"],
    "hive": ["hive", "hive_flutter"],
    "isar": ["isar", "isar_flutter_libs"],
}

NETWORK_PACKAGES: dict[str, list[str]] = {
    "dio": ["dio"],
    "http": ["http"],
    "chopper": ["chopper"],
    "retrofit": ["retrofit"],
}

NAVIGATION_PACKAGES: dict[str, list[str]] = {
    "go_router": ["go_router"],
    "auto_route": ["auto_route"],
}

_MIN_VERSION = re.compile(r">=?\s*([\d.]+)")
_MAX_VERSION = re.compile(r"<\s*([\d.]+)")


def detect_category(names: set[str], categories: dict[str, list[str]]) -> str:
    for category, packages in categories.items():
        if any(pkg in names for pkg in packages):
            return category
    return "none"


def matching_packages(names: set[str], categories: dict[str, list[str]]) -> list[str]:
    return [pkg for packages in categories.values() for pkg in packages if pkg in names]


def parse_sdk_bounds(constraint: str | None) -> tuple[str, str | None]:
    """Return ``(min, max)`` from an SDK constraint like ``>=3.0.0 <4.0.0``."""
    constraint = str(constraint or DEFAULT_SDK_CONSTRAINT)
    min_match = _MIN_VERSION.search(constraint)
    max_match = _MAX_VERSION.search(constraint)
    return (
        min_match.group(1) if min_match else DEFAULT_VERSION,
        max_match.group(1) if max_match else None,
    )


def build_dependency_profile(runtime: dict, dev: dict) -> DependencyProfile:
    names = set(runtime) | set(dev)
    return DependencyProfile(
        state_management=detect_category(names, STATE_MANAGEMENT_PACKAGES),
        persistence=detect_category(names, PERSISTENCE_PACKAGES),
        networking=detect_category(names, NETWORK_PACKAGES),
        navigation=detect_category(names, NAVIGATION_PACKAGES),
        state_packages=matching_packages(names, STATE_MANAGEMENT_PACKAGES),
        persistence_packages=matching_packages(names, PERSISTENCE_PACKAGES),
        network_packages=matching_packages(names, NETWORK_PACKAGES),
        navigation_packages=matching_packages(names, NAVIGATION_PACKAGES),
        uses_freezed="freezed" in names or "freezed_annotation" in names,
        uses_json_serializable="json_serializable" in names or "json_annotation" in names,
        uses_build_runner="build_runner" in names,
        runtime=dict(runtime),
        dev=dict(dev),
    )


def parse_manifest_content(text: str) -> ProjectMetadata:
    """Parse pubspec.yaml text into ProjectMetadata.

    Malformed YAML or a document that is not a mapping yields defaults.
    """
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        logger.warning("Malformed pubspec.yaml, using defaults: %s", e)
        data = {}
    if not isinstance(data, dict):
        logger.warning("pubspec.yaml is not a mapping, using defaults")
        data = {}

    environment = _as_dict(data.get("environment"))
    dart_min, dart_max = parse_sdk_bounds(environment.get("sdk"))
    flutter_match = _MIN_VERSION.search(str(environment.get("flutter") or ">=3.0.0"))

    flutter_section = _as_dict(data.get("flutter"))
    assets = [str(a) for a in flutter_section.get("assets") or [] if a]
    fonts = [
        str(f["family"])
        for f in flutter_section.get("fonts") or []
        if isinstance(f, dict) and f.get("family")
    ]

    return ProjectMetadata(
        name=str(data.get("name") or "unknown"),
        description=str(data.get("description") or ""),
        version=str(data.get("version") or "1.0.0"),
        flutter_version=flutter_match.group(1) if flutter_match else DEFAULT_VERSION,
        dart_min_version=dart_min,
        dart_max_version=dart_max,
        dependencies=build_dependency_profile(
            _as_dict(data.get("dependencies")),
            _as_dict(data.get("dev_dependencies")),
        ),
        assets=assets,
        fonts=fonts,
    )


def parse_manifest(project_path: Path) -> ProjectMetadata:
    """Read ``<project_path>/pubspec.yaml``.

    Raises:
        ManifestNotFoundError: If the manifest does not exist.
    """
    manifest = Path(project_path) / "pubspec.yaml"
    if not manifest.is_file():
        raise ManifestNotFoundError(str(manifest))
    return parse_manifest_content(manifest.read_text(encoding="utf-8"))


def _as_dict(value) -> dict:
    return value if isinstance(value, dict) else {}
