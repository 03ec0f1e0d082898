"""Widget extraction.

Collects UI classes that do not build a Scaffold, along with the
parameters of their named-parameter constructor.

Nullability of a prop is the OR of three signals: the declared type ends
in ``?``, the parameter is not ``required``, or its raw text contains a
``?``. Optional parameters with a non-null default are therefore reported
as nullable too; callers rely on this behaviour.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from . import dart_source
from .models import FieldDefinition, SourceFile, WidgetDefinition

logger = logging.getLogger(__name__)

WIDGET_FOLDERS = ("widgets", "components", "shared", "common")
WIDGET_SUFFIXES = ("_widget",)

PARAM_NAME = re.compile(r"(?:required\s+)?(?:this\.)?(\w+)\s*(?:=|,|$)")
SKIPPED_PARAMS = {"key", "super"}


def extract_props(body: str, class_name: str) -> list[FieldDefinition]:
    ctor = re.search(
        r"(?:const\s+)?" + re.escape(class_name) + r"\s*\(\s*\{([^}]*)\}", body
    )
    if not ctor:
        return []

    props: list[FieldDefinition] = []
    for line in (s.strip() for s in ctor.group(1).split(",")):
        if not line:
            continue
        match = PARAM_NAME.search(line)
        if not match:
            continue
        name = match.group(1)
        if name in SKIPPED_PARAMS:
            continue

        decl = re.search(r"final\s+([\w<>,?\s]+?)\s+" + re.escape(name) + r"\s*;", body)
        declared = decl.group(1).strip() if decl else "dynamic"
        props.append(
            FieldDefinition(
                name=name,
                type=declared.replace("?", ""),
                nullable=(
                    declared.endswith("?")
                    or "?" in line
                    or "required" not in line
                ),
            )
        )
    return props


def parse_widgets_from_content(content: str, file_path: str) -> list[WidgetDefinition]:
    widgets: list[WidgetDefinition] = []
    for name, base, body in dart_source.iter_ui_classes(content):
        if dart_source.is_screen_body(body):
            continue
        props = extract_props(body, name)
        widgets.append(
            WidgetDefinition(
                name=name,
                file_path=file_path,
                kind=dart_source.widget_kind(base),
                props=props,
                is_reusable=len(props) > 0,
            )
        )
    return widgets


def extract_widgets_from_files(files: list[SourceFile]) -> list[WidgetDefinition]:
    widgets: list[WidgetDefinition] = []
    for f in dart_source.select_files(files, WIDGET_FOLDERS, WIDGET_SUFFIXES):
        widgets.extend(parse_widgets_from_content(f.content, f.path))
    logger.debug("Extracted %d widgets", len(widgets))
    return widgets


def extract_widgets(project_path: Path) -> list[WidgetDefinition]:
    files = dart_source.read_selected(Path(project_path), WIDGET_FOLDERS, WIDGET_SUFFIXES)
    return extract_widgets_from_files(files)
