"""Data model extraction from Dart sources.

Picks up plain classes (not widgets) under model/entity/domain folders
and reads their field declarations line by line. Getters, locals and
statements can occasionally look like fields; those false positives are
accepted.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from . import dart_source
from .models import FieldDefinition, ModelDefinition, Relationship, SourceFile

logger = logging.getLogger(__name__)

MODEL_FOLDERS = ("models", "entities", "domain")
MODEL_SUFFIXES = ("_model", "_entity")

CLASS_PATTERN = re.compile(
    r"^(?:@\w+(?:\([^)]*\))?\s*)*"
    r"(?:abstract\s+)?class\s+(\w+)"
    r"(?:\s+extends\s+(\w+))?"
    r"(?:\s+with\s+([\w,\s]+))?"
    r"(?:\s+implements\s+([\w,\s]+))?\s*\{",
    re.MULTILINE,
)

FIELD_PATTERN = re.compile(
    r"^[ \t]*(?:@\w+(?:\([^)]*\))?\s*)*"
    r"(?:final\s+|const\s+|late\s+|static\s+)*"
    r"([\w<>,?][\w<>,? \t]*?)[ \t]+(\w+)(?:\s*=\s*([^;]+))?;",
    re.MULTILINE,
)

ANNOTATION_PATTERN = re.compile(r"@(\w+)(?:\(([^)]*)\))?")

WIDGET_BASE_MARKERS = ("StatefulWidget", "StatelessWidget", "HookWidget", "ConsumerWidget", "Widget")

BUILTIN_TYPES = {
    "String", "int", "double", "bool", "DateTime", "dynamic",
    "Object", "Map", "Set", "List", "Iterable", "num",
}

# Statement keywords that the field pattern would otherwise read as a type
_STATEMENT_WORDS = {"return", "throw", "await", "yield", "else", "case", "break", "continue", "import", "export", "part"}


def parse_annotations(text: str) -> list[str]:
    return [m.group(1) for m in ANNOTATION_PATTERN.finditer(text)]


def is_widget_base(extends: str | None) -> bool:
    return bool(extends) and any(marker in extends for marker in WIDGET_BASE_MARKERS)


def is_model_type(type_name: str) -> bool:
    return type_name not in BUILTIN_TYPES and bool(re.match(r"^[A-Z]", type_name))


def parse_fields(body: str) -> list[FieldDefinition]:
    fields: list[FieldDefinition] = []
    for match in FIELD_PATTERN.finditer(body):
        full, raw_type, name, default = match.group(0), match.group(1), match.group(2), match.group(3)
        if re.search(r"\bstatic\b", full):
            continue
        clean_type = raw_type.strip()
        first_word = clean_type.split()[0] if clean_type.split() else ""
        if first_word in _STATEMENT_WORDS or clean_type.endswith(" get"):
            continue
        if default is not None and default.lstrip().startswith(">"):
            # arrow body, not an initializer
            continue
        fields.append(
            FieldDefinition(
                name=name,
                type=clean_type.replace("?", ""),
                nullable=clean_type.endswith("?"),
                default_value=default.strip() if default is not None else None,
                annotations=parse_annotations(full),
            )
        )
    return fields


def detect_relationships(fields: list[FieldDefinition]) -> list[Relationship]:
    relationships: list[Relationship] = []
    for f in fields:
        list_match = re.search(r"List<(\w+)>", f.type)
        if list_match and is_model_type(list_match.group(1)):
            relationships.append(Relationship("hasMany", list_match.group(1), f.name))
            continue
        if "<" in f.type:
            # other generics and collections
            continue
        if is_model_type(f.type):
            relationships.append(Relationship("hasOne", f.type, f.name))
    return relationships


def parse_models_from_content(
    content: str,
    file_path: str,
    include_abstract: bool = False,
) -> list[ModelDefinition]:
    """Extract every model class declared in one file's content."""
    models: list[ModelDefinition] = []
    for match in CLASS_PATTERN.finditer(content):
        header = match.group(0)
        name, extends = match.group(1), match.group(2)
        if not include_abstract and re.search(r"\babstract\b", header):
            continue
        if is_widget_base(extends):
            continue

        body = dart_source.extract_class_body(content, match.start())
        fields = parse_fields(body)
        annotations = parse_annotations(header)
        models.append(
            ModelDefinition(
                name=name,
                file_path=file_path,
                fields=fields,
                annotations=annotations,
                relationships=detect_relationships(fields),
                is_immutable="freezed" in annotations or "immutable" in annotations,
                has_json=(
                    "JsonSerializable" in annotations
                    or "fromJson" in body
                    or "toJson" in body
                ),
            )
        )
    return models


def extract_models_from_files(
    files: list[SourceFile],
    include_abstract: bool = False,
) -> list[ModelDefinition]:
    models: list[ModelDefinition] = []
    for f in dart_source.select_files(files, MODEL_FOLDERS, MODEL_SUFFIXES):
        models.extend(parse_models_from_content(f.content, f.path, include_abstract))
    logger.debug("Extracted %d models", len(models))
    return models


def extract_models(project_path: Path, include_abstract: bool = False) -> list[ModelDefinition]:
    """Extract models from a project directory on disk."""
    files = dart_source.read_selected(Path(project_path), MODEL_FOLDERS, MODEL_SUFFIXES)
    return extract_models_from_files(files, include_abstract)
