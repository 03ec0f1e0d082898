"""Parser for flattened single-file repository exports.

Format::

    Directory structure:
    └── my-app/
        ├── pubspec.yaml
        └── lib/
            └── main.dart

    ================================================
    FILE: pubspec.yaml
    ================================================
    <file contents>

    ================================================
    FILE: lib/main.dart
    ================================================
    <file contents>
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from replant.analyzers import dart_source
from replant.analyzers.models import SourceFile
from replant.core import ExportParseResult
from replant.errors import ExportNotFoundError

logger = logging.getLogger(__name__)

DIRECTORY_MARKER = "Directory structure:"
SEPARATOR = "=" * 48
DEFAULT_PROJECT_NAME = "unknown_project"

_SEGMENT_SPLIT = re.compile(r"={48}\n")
_ROOT_ENTRY = re.compile(r"[└├]── ([^/]+)/?")

# category -> (folders, file-name suffixes); category names are lib/ targets on rebuild
CATEGORY_SELECTORS: dict[str, tuple[tuple[str, ...], tuple[str, ...]]] = {
    "models": (("models", "entities"), ("_model", "_entity")),
    "screens": (("screens", "pages", "views", "presentation"), ("_screen", "_page")),
    "providers": (
        ("providers", "blocs", "cubits", "riverpod", "state"),
        ("_provider", "_bloc", "_cubit"),
    ),
    "widgets": (("widgets", "components"), ("_widget",)),
    "theme": (("theme", "themes"), ("theme",)),
    "utils": (("utils", "helpers", "extensions"), ("_utils", "_helper", "_extension")),
    "services": (("services", "repositories", "api"), ("_service", "_repository")),
    "config": (("config", "constants", "routes"), ("_config", "_constants", "_router")),
}


def project_name_from_structure(structure: list[str]) -> str:
    if not structure:
        return DEFAULT_PROJECT_NAME
    match = _ROOT_ENTRY.search(structure[0])
    if not match:
        return DEFAULT_PROJECT_NAME
    return match.group(1).replace("-", "_").lower()


def parse_flattened_export(text: str) -> ExportParseResult:
    """Split an export back into files.

    The segment after the last separator is never read as a ``FILE:``
    header, so an export truncated right after a header yields no entry
    for that file.
    """
    text = text.replace("\r\n", "\n")

    structure: list[str] = []
    in_structure = False
    for line in text.split("\n"):
        if DIRECTORY_MARKER in line:
            in_structure = True
            continue
        if in_structure:
            if line.startswith(SEPARATOR):
                break
            if line.strip():
                structure.append(line)

    files: list[SourceFile] = []
    start = text.find(SEPARATOR)
    if start != -1:
        segments = _SEGMENT_SPLIT.split(text[start:])
        i = 0
        while i < len(segments) - 1:
            header = segments[i].strip()
            if header.startswith("FILE: "):
                body = segments[i + 1]
                cut = body.find("\nFILE: ")
                if cut != -1:
                    body = body[:cut]
                files.append(SourceFile(path=header[len("FILE: "):].strip(), content=body.strip()))
                i += 2
                continue
            i += 1

    manifest = next((f.content for f in files if f.path.endswith("pubspec.yaml")), None)
    result = ExportParseResult(
        project_name=project_name_from_structure(structure),
        directory_structure=structure,
        files=files,
        dart_files=[f for f in files if f.path.endswith(".dart")],
        manifest_content=manifest,
    )
    logger.info(
        "Parsed export %s: %d files (%d Dart)",
        result.project_name, len(result.files), len(result.dart_files),
    )
    return result


def read_export_file(path: Path) -> ExportParseResult:
    """Read and parse an export file.

    Raises:
        ExportNotFoundError: If ``path`` does not exist.
    """
    path = Path(path)
    if not path.is_file():
        raise ExportNotFoundError(str(path))
    return parse_flattened_export(path.read_text(encoding="utf-8", errors="replace"))


# ── Grouping ───────────────────────────────────────────────────────


def group_source_files(files: list[SourceFile]) -> dict[str, list[SourceFile]]:
    """Group Dart files by the lib/ folder they are copied into on rebuild.

    A file lands in the first category that claims it.
    """
    dart = [f for f in files if f.path.endswith(".dart")]
    groups: dict[str, list[SourceFile]] = {}
    claimed: set[str] = set()
    for category, (folders, suffixes) in CATEGORY_SELECTORS.items():
        selected = [
            f for f in dart_source.select_files(dart, folders, suffixes)
            if f.path not in claimed
        ]
        if selected:
            groups[category] = selected
            claimed.update(f.path for f in selected)
    return groups
