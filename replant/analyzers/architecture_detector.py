"""Architecture style detection from a lib/ folder layout.

Three scorers (clean, feature-first, layer-first) each produce an integer
score from 0 to 100 based only on folder names. The highest score wins,
ties going to the earlier style in that order. A winning score below 40
means no recognizable pattern and the result is ``custom``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path, PurePosixPath
from typing import Callable

from .models import ArchitectureAssessment, FolderNode

logger = logging.getLogger(__name__)

CLEAN_FOLDERS = ["domain", "data", "presentation"]
FEATURE_ROOT = re.compile(r"^(features|modules)$")
FEATURE_SUBFOLDERS = ["data", "domain", "presentation", "screens", "widgets"]
LAYER_FOLDERS = [
    "models", "views", "controllers", "services",
    "screens", "pages", "providers", "repositories", "widgets",
]

CUSTOM_THRESHOLD = 40
TREE_DEPTH = 3

# Tie-break order
STYLES = ("clean", "feature-first", "layer-first")

# Returns the sorted sub-folder names of a folder given as path segments below lib/
FolderLister = Callable[[tuple[str, ...]], list[str]]


def score_clean(folders: list[str], reasoning: list[str]) -> int:
    score = 0
    found = [f for f in CLEAN_FOLDERS if f in folders]
    if len(found) >= 2:
        score += 40
        reasoning.append(f"Found clean arch folders: {', '.join(found)}")
    if len(found) == 3:
        score += 30
        reasoning.append("All three clean architecture layers present")
    return min(score, 100)


def score_feature_first(folders: list[str], list_dirs: FolderLister, reasoning: list[str]) -> int:
    score = 0
    feature_root = next((f for f in folders if FEATURE_ROOT.match(f)), None)
    if feature_root is None:
        return 0
    score += 30
    reasoning.append(f"Found features folder: {feature_root}")

    features = list_dirs((feature_root,))
    if len(features) >= 2:
        score += 20
        reasoning.append(f"Found {len(features)} feature modules")
        contents = list_dirs((feature_root, features[0]))
        if any(sub in contents for sub in FEATURE_SUBFOLDERS):
            score += 30
            reasoning.append("Feature modules have internal structure")
    return min(score, 100)


def score_layer_first(folders: list[str], reasoning: list[str]) -> int:
    found = [f for f in LAYER_FOLDERS if f in folders]
    if len(found) >= 3:
        reasoning.append(f"Found layer folders: {', '.join(found)}")
        return 60
    if len(found) >= 2:
        reasoning.append(f"Found some layer folders: {', '.join(found)}")
        return 40
    return 0


def classify(list_dirs: FolderLister, structure: FolderNode) -> ArchitectureAssessment:
    """Score a layout exposed through ``list_dirs`` and pick the winning style."""
    reasoning: list[str] = []
    top = list_dirs(())
    scores = {
        "clean": score_clean(top, reasoning),
        "feature-first": score_feature_first(top, list_dirs, reasoning),
        "layer-first": score_layer_first(top, reasoning),
    }
    # max() keeps the first of equal keys, so STYLES order breaks ties
    winner = max(STYLES, key=lambda style: scores[style])
    score = scores[winner]

    if score < CUSTOM_THRESHOLD:
        reasoning.append("No clear architecture pattern detected")
        detected, confidence = "custom", (100 - score) / 100
    else:
        detected, confidence = winner, score / 100

    logger.debug("Architecture scores %s -> %s", scores, detected)
    return ArchitectureAssessment(
        detected=detected,
        confidence=min(max(confidence, 0.0), 1.0),
        structure=structure,
        reasoning="; ".join(reasoning),
    )


def detect_architecture(lib_path: Path) -> ArchitectureAssessment:
    """Classify the folder layout of a lib/ directory on disk.

    A missing or unreadable directory yields ``custom`` with an empty tree.
    """
    lib_path = Path(lib_path)

    def list_dirs(parts: tuple[str, ...]) -> list[str]:
        try:
            return sorted(
                entry.name
                for entry in lib_path.joinpath(*parts).iterdir()
                if entry.is_dir() and not entry.name.startswith(".")
            )
        except OSError:
            return []

    structure = build_folder_tree(lib_path, lib_path.name or "lib")
    return classify(list_dirs, structure)


def detect_architecture_from_paths(paths: list[str], root: str = "lib") -> ArchitectureAssessment:
    """Classify the layout implied by a flat list of file paths.

    Only paths with a ``root`` segment contribute; everything after the
    first ``root`` segment is treated as living under lib/.
    """
    rel_files: list[tuple[str, ...]] = []
    for p in paths:
        parts = PurePosixPath(p).parts
        if root not in parts:
            continue
        rest = parts[parts.index(root) + 1:]
        if rest and not any(part.startswith(".") for part in rest):
            rel_files.append(rest)

    directories: set[tuple[str, ...]] = set()
    for rest in rel_files:
        for i in range(1, len(rest)):
            directories.add(rest[:i])

    def list_dirs(parts: tuple[str, ...]) -> list[str]:
        depth = len(parts) + 1
        return sorted(
            d[-1] for d in directories if len(d) == depth and d[:-1] == parts
        )

    structure = _tree_from_paths(rel_files, root)
    return classify(list_dirs, structure)


def build_folder_tree(dir_path: Path, rel: str, depth: int = TREE_DEPTH) -> FolderNode:
    """Depth-limited folder snapshot; hidden entries skipped, children sorted."""
    node = FolderNode(name=dir_path.name or rel, path=rel)
    if depth <= 0:
        return node
    try:
        entries = sorted(dir_path.iterdir(), key=lambda p: p.name)
    except OSError:
        return node
    for entry in entries:
        if entry.name.startswith("."):
            continue
        child_rel = f"{rel}/{entry.name}"
        if entry.is_dir():
            node.children.append(build_folder_tree(entry, child_rel, depth - 1))
        else:
            node.children.append(_file_node(entry.name, child_rel, dir_path.name))
    return node


def _tree_from_paths(rel_files: list[tuple[str, ...]], root: str) -> FolderNode:
    top = FolderNode(name=root, path=root)
    for rest in sorted(set(rel_files)):
        node = top
        for i, part in enumerate(rest):
            if i >= TREE_DEPTH:
                break
            child_rel = f"{node.path}/{part}"
            is_file = i == len(rest) - 1
            existing = next((c for c in node.children if c.name == part), None)
            if existing is None:
                existing = (
                    _file_node(part, child_rel, node.name)
                    if is_file
                    else FolderNode(name=part, path=child_rel)
                )
                node.children.append(existing)
            node = existing
    _sort_tree(top)
    return top


def _sort_tree(node: FolderNode) -> None:
    node.children.sort(key=lambda c: c.name)
    for child in node.children:
        _sort_tree(child)


def _file_node(name: str, rel: str, parent: str) -> FolderNode:
    return FolderNode(
        name=name,
        path=rel,
        type="file",
        file_type=file_type(name),
        category=categorize_file(name, parent),
    )


def file_type(filename: str) -> str:
    if filename.endswith(".dart"):
        return "dart"
    if filename.endswith((".yaml", ".yml")):
        return "yaml"
    if filename.endswith(".json"):
        return "json"
    return "other"


def categorize_file(filename: str, parent: str) -> str:
    folder = parent.lower()
    if "model" in folder or "_model" in filename:
        return "model"
    if "screen" in folder or "page" in folder:
        return "screen"
    if "widget" in folder:
        return "widget"
    if "provider" in folder or "bloc" in folder:
        return "provider"
    if "service" in folder or "repository" in folder:
        return "service"
    if "theme" in folder:
        return "theme"
    if "route" in folder:
        return "route"
    return "unknown"
