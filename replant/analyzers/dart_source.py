"""Shared helpers for regex-based Dart source extraction.

The analyzers never build a syntax tree. Every heuristic runs over a
"class body": the text from a class declaration to the brace that closes
its outermost block, as delimited by :func:`extract_class_body`.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path, PurePosixPath

from .models import SourceFile

logger = logging.getLogger(__name__)

# Base classes a UI class may extend to be picked up by the screen/widget passes
WIDGET_BASES: tuple[str, ...] = (
    "StatelessWidget",
    "StatefulWidget",
    "HookWidget",
    "ConsumerWidget",
    "ConsumerStatefulWidget",
)

UI_CLASS_PATTERN = re.compile(
    r"class\s+(\w+)\s+extends\s+(" + "|".join(WIDGET_BASES) + r")\b"
)

SCAFFOLD_PATTERN = re.compile(r"Scaffold\s*\(")

GENERATED_SUFFIXES: tuple[str, ...] = (".g.dart", ".freezed.dart")

SKIP_DIRS: set[str] = {"build", ".dart_tool", ".git", ".idea", ".vscode", ".pub-cache"}


def extract_class_body(content: str, start: int) -> str:
    """Return the class body beginning at ``start``.

    The scan moves through three states: before the first ``{`` (closing
    braces are ignored), inside the block tracking depth, and done once the
    depth returns to zero. Input that never closes runs to end of text.
    """
    depth = 0
    started = False
    for i in range(start, len(content)):
        ch = content[i]
        if ch == "{":
            depth += 1
            started = True
        elif ch == "}" and started:
            depth -= 1
            if depth == 0:
                return content[start:i + 1]
    return content[start:]


def is_screen_body(body: str) -> bool:
    """A class is a screen when its body builds a Scaffold."""
    return SCAFFOLD_PATTERN.search(body) is not None


def widget_kind(base: str) -> str:
    if "Stateful" in base:
        return "stateful"
    if "Hook" in base:
        return "hook"
    return "stateless"


def iter_ui_classes(content: str):
    """Yield ``(name, base, body)`` for every UI class declared in ``content``."""
    for match in UI_CLASS_PATTERN.finditer(content):
        yield match.group(1), match.group(2), extract_class_body(content, match.start())


def is_excluded(path: str) -> bool:
    """Generated artifacts, build output and hidden paths are never analyzed."""
    if path.endswith(GENERATED_SUFFIXES):
        return True
    parts = PurePosixPath(path).parts
    if any(part.startswith(".") for part in parts):
        return True
    return any(part in SKIP_DIRS for part in parts[:-1])


def matches_selector(path: str, folders: tuple[str, ...], suffixes: tuple[str, ...] = ()) -> bool:
    """True if ``path`` is a Dart file under one of ``folders`` or ends with a suffix.

    ``folders`` match whole directory segments; ``suffixes`` match the file
    name without the ``.dart`` extension (e.g. ``_screen``).
    """
    if not path.endswith(".dart"):
        return False
    parts = PurePosixPath(path).parts
    if any(part in folders for part in parts[:-1]):
        return True
    stem = parts[-1][: -len(".dart")] if parts else ""
    return any(stem.endswith(suffix) for suffix in suffixes)


def select_files(
    files: list[SourceFile],
    folders: tuple[str, ...],
    suffixes: tuple[str, ...] = (),
) -> list[SourceFile]:
    """Filter ``files`` by directory/suffix rules, dropping duplicates and excluded paths."""
    seen: set[str] = set()
    selected: list[SourceFile] = []
    for f in files:
        if f.path in seen or is_excluded(f.path):
            continue
        if matches_selector(f.path, folders, suffixes):
            seen.add(f.path)
            selected.append(f)
    return selected


def discover_dart_files(root: Path) -> list[str]:
    """List every Dart file under ``root`` as sorted POSIX relative paths."""
    found: list[str] = []
    if not root.is_dir():
        return found
    for item in sorted(root.rglob("*.dart")):
        if not item.is_file():
            continue
        rel = item.relative_to(root).as_posix()
        if is_excluded(rel):
            continue
        found.append(rel)
    return found


def load_files(root: Path, rel_paths: list[str]) -> list[SourceFile]:
    """Read files relative to ``root``; unreadable files are logged and skipped."""
    loaded: list[SourceFile] = []
    for rel in rel_paths:
        try:
            content = (root / rel).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping unreadable file %s: %s", rel, e)
            continue
        loaded.append(SourceFile(path=rel, content=content))
    return loaded


def read_selected(
    root: Path,
    folders: tuple[str, ...],
    suffixes: tuple[str, ...] = (),
) -> list[SourceFile]:
    """Select Dart files under ``root`` by path rules and read them."""
    rel_paths = [
        p for p in discover_dart_files(root) if matches_selector(p, folders, suffixes)
    ]
    return load_files(root, rel_paths)


def to_snake_case(name: str) -> str:
    return re.sub(r"([A-Z])", r"_\1", name).lower().lstrip("_")
