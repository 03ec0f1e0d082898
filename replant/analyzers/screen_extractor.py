"""Screen extraction.

A screen is a UI class whose body builds a Scaffold. Each sub-extraction
below is an independent predicate over the class body.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from . import dart_source
from .models import ScaffoldFeatures, ScreenDefinition, SourceFile

logger = logging.getLogger(__name__)

SCREEN_FOLDERS = ("screens", "pages", "views", "presentation")
SCREEN_SUFFIXES = ("_screen", "_page")

APP_BAR = re.compile(r"appBar\s*:\s*AppBar")
BOTTOM_NAV = re.compile(r"bottomNavigationBar\s*:")
DRAWER = re.compile(r"drawer\s*:\s*Drawer")
FAB = re.compile(r"floatingActionButton\s*:")

PROVIDER_PATTERNS = (
    re.compile(r"ref\.watch\((\w+)"),
    re.compile(r"ref\.read\((\w+)"),
    re.compile(r"BlocProvider\.of<(\w+)>"),
    re.compile(r"context\.read<(\w+)>"),
    re.compile(r"context\.watch<(\w+)>"),
)

WIDGET_REFERENCE = re.compile(
    r"\b([A-Z][a-zA-Z0-9]+(?:Widget|Button|Card|Tile|Item|View|List|Form))\s*\("
)

# Priority order, first match wins
LAYOUTS = (
    ("grid", re.compile(r"GridView")),
    ("list", re.compile(r"ListView")),
    ("stack", re.compile(r"Stack\s*\(")),
    ("row", re.compile(r"Row\s*\(")),
    ("column", re.compile(r"Column\s*\(")),
)


def analyze_scaffold(body: str) -> ScaffoldFeatures:
    return ScaffoldFeatures(
        has_app_bar=bool(APP_BAR.search(body)),
        has_bottom_nav=bool(BOTTOM_NAV.search(body)),
        has_drawer=bool(DRAWER.search(body)),
        has_fab=bool(FAB.search(body)),
    )


def extract_providers(body: str) -> list[str]:
    # dict keeps first-seen order while deduplicating
    found: dict[str, None] = {}
    for pattern in PROVIDER_PATTERNS:
        for match in pattern.finditer(body):
            found.setdefault(match.group(1))
    return list(found)


def extract_widget_references(body: str) -> list[str]:
    return list(dict.fromkeys(m.group(1) for m in WIDGET_REFERENCE.finditer(body)))


def detect_layout(body: str) -> str:
    for layout, pattern in LAYOUTS:
        if pattern.search(body):
            return layout
    return "custom"


def infer_route(content: str, class_name: str) -> str:
    """Best-effort route for a screen class.

    Tries a ``@GoRoute``/``@Route`` annotation path, a string assigned after
    the class name, and a string key mapped to the class. Falls back to a
    kebab-case path built from the class name.
    """
    name = re.escape(class_name)
    patterns = (
        re.compile(r"""@(?:GoRoute|Route)\s*\([^)]*path\s*:\s*['"]([^'"]+)['"]"""),
        re.compile(name + r"""[^{]*=\s*['"]([^'"]+)['"]"""),
        re.compile(r"""['"]([/\w-]+)['"]\s*:\s*""" + name),
    )
    for pattern in patterns:
        match = pattern.search(content)
        if match:
            return match.group(1)

    base = re.sub(r"(Screen|Page)$", "", class_name, flags=re.IGNORECASE)
    return "/" + re.sub(r"([A-Z])", r"-\1", base).lower().lstrip("-")


def parse_screens_from_content(content: str, file_path: str) -> list[ScreenDefinition]:
    screens: list[ScreenDefinition] = []
    for name, base, body in dart_source.iter_ui_classes(content):
        if not dart_source.is_screen_body(body):
            continue
        screens.append(
            ScreenDefinition(
                name=name,
                file_path=file_path,
                kind=dart_source.widget_kind(base),
                route=infer_route(content, name),
                scaffold=analyze_scaffold(body),
                providers=extract_providers(body),
                widgets=extract_widget_references(body),
                layout=detect_layout(body),
            )
        )
    return screens


def extract_screens_from_files(files: list[SourceFile]) -> list[ScreenDefinition]:
    screens: list[ScreenDefinition] = []
    for f in dart_source.select_files(files, SCREEN_FOLDERS, SCREEN_SUFFIXES):
        screens.extend(parse_screens_from_content(f.content, f.path))
    logger.debug("Extracted %d screens", len(screens))
    return screens


def extract_screens(project_path: Path) -> list[ScreenDefinition]:
    files = dart_source.read_selected(Path(project_path), SCREEN_FOLDERS, SCREEN_SUFFIXES)
    return extract_screens_from_files(files)
