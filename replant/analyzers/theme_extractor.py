"""Theme extraction as a reduction over source files.

``analyze_theme_content`` is a pure merge step: it takes the theme facts
gathered so far plus one file's content and returns a new ThemeInfo.
``fold_theme`` applies it to the entry point first and then to every
theme file, in path order.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from functools import reduce
from pathlib import Path

from . import dart_source
from .models import SourceFile, ThemeInfo

logger = logging.getLogger(__name__)

THEME_FOLDERS = ("theme", "themes")
THEME_SUFFIXES = ("theme",)
ENTRY_POINT = "lib/main.dart"

PRIMARY_COLOR = re.compile(r"primaryColor\s*:\s*(?:Color\s*\()?(?:0x)?([0-9A-Fa-f]{6,8})")
PRIMARY_SWATCH = re.compile(r"primarySwatch\s*:\s*Colors\.(\w+)")
COLOR_LITERAL = re.compile(r"Color\s*\((?:0x)?([0-9A-Fa-f]{6,8})\)")
FONT_FAMILY = re.compile(r"""fontFamily\s*:\s*['"](\w+)['"]""")
NAMED_COLOR = re.compile(
    r"static\s+(?:final\s+|const\s+)?Color\s+(\w+)\s*=\s*(?:const\s+)?(?:Color\s*\()?(?:0x)?([0-9A-Fa-f]{6,8})"
)


def normalize_hex(value: str) -> str:
    """``6366F1`` -> ``0xFF6366F1``; eight-digit values keep their alpha."""
    value = value.upper()
    if len(value) == 6:
        return f"0xFF{value}"
    return f"0x{value}"


def _primary_color(content: str) -> str | None:
    if "primaryColor" not in content:
        return None
    match = PRIMARY_COLOR.search(content)
    if match:
        return normalize_hex(match.group(1))
    match = PRIMARY_SWATCH.search(content)
    if match:
        return f"Colors.{match.group(1)}"
    match = COLOR_LITERAL.search(content)
    if match:
        return normalize_hex(match.group(1))
    return None


def analyze_theme_content(theme: ThemeInfo, content: str) -> ThemeInfo:
    """Merge one file's theme facts into ``theme`` and return the result."""
    primary = _primary_color(content)
    font = FONT_FAMILY.search(content)
    colors = dict(theme.colors)
    for match in NAMED_COLOR.finditer(content):
        colors[match.group(1)] = normalize_hex(match.group(2))

    return dataclasses.replace(
        theme,
        use_material=theme.use_material or "MaterialApp" in content or "ThemeData" in content,
        use_cupertino=(
            theme.use_cupertino
            or "CupertinoApp" in content
            or "CupertinoThemeData" in content
        ),
        primary_color=primary or theme.primary_color,
        font_family=font.group(1) if font else theme.font_family,
        colors=colors,
    )


def is_entry_point(path: str) -> bool:
    return path == ENTRY_POINT or path.endswith("/" + ENTRY_POINT)


def fold_theme(entry_point: SourceFile | None, theme_files: list[SourceFile]) -> ThemeInfo:
    def merge_theme_file(theme: ThemeInfo, f: SourceFile) -> ThemeInfo:
        merged = analyze_theme_content(theme, f.content)
        return dataclasses.replace(merged, has_custom_theme=True, theme_file_path=f.path)

    start = ThemeInfo()
    if entry_point is not None:
        start = analyze_theme_content(start, entry_point.content)
    return reduce(merge_theme_file, theme_files, start)


def extract_theme_from_files(files: list[SourceFile]) -> ThemeInfo:
    entry = next((f for f in files if is_entry_point(f.path)), None)
    theme_files = [
        f for f in dart_source.select_files(files, THEME_FOLDERS, THEME_SUFFIXES)
        if not is_entry_point(f.path)
    ]
    theme_files.sort(key=lambda f: f.path)
    return fold_theme(entry, theme_files)


def extract_theme(project_path: Path) -> ThemeInfo:
    root = Path(project_path)
    files = dart_source.read_selected(root, THEME_FOLDERS, THEME_SUFFIXES)
    if (root / ENTRY_POINT).is_file():
        files = dart_source.load_files(root, [ENTRY_POINT]) + files
    return extract_theme_from_files(files)
