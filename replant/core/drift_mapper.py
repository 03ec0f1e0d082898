"""Map extracted models onto relational table schemas.

Table and column names are snake_case. A table without an ``id`` field
gets a synthesized auto-increment integer primary key. Fields named
``<thing>Id`` become foreign keys to ``<thing>.id``.
"""

from __future__ import annotations

from replant.analyzers.dart_source import to_snake_case
from replant.analyzers.models import FieldDefinition, ModelDefinition


def dart_type_to_sql_type(dart_type: str) -> str:
    """Map a Dart type to one of integer, real, boolean, dateTime, blob, text."""
    normalized = dart_type.replace("?", "").strip()
    if normalized in ("int", "Int", "Integer"):
        return "integer"
    if normalized in ("double", "Double", "num", "Num"):
        return "real"
    if normalized in ("bool", "Bool", "boolean", "Boolean"):
        return "boolean"
    if normalized == "DateTime":
        return "dateTime"
    if normalized.startswith(("List<", "Uint8List")):
        return "blob"
    # String, enums and custom classes
    return "text"


def map_field(field: FieldDefinition) -> dict:
    primary_key = field.name == "id" or any("primaryKey" in a for a in field.annotations)
    sql_type = dart_type_to_sql_type(field.type)

    references = None
    if field.name.endswith("Id") and not primary_key:
        references = {
            "table": to_snake_case(field.name[: -len("Id")]),
            "column": "id",
            "on_delete": "cascade",
        }

    return {
        "name": to_snake_case(field.name),
        "dart_name": field.name,
        "dart_type": field.type,
        "sql_type": sql_type,
        "nullable": field.nullable,
        "unique": any("unique" in a for a in field.annotations),
        "primary_key": primary_key,
        "auto_increment": primary_key and sql_type == "integer",
        "default_value": field.default_value,
        "references": references,
    }


def model_to_table_schema(model: ModelDefinition) -> dict:
    columns = [map_field(f) for f in model.fields]
    if not any(c["primary_key"] for c in columns):
        columns.insert(0, {
            "name": "id",
            "dart_name": "id",
            "dart_type": "int",
            "sql_type": "integer",
            "nullable": False,
            "unique": True,
            "primary_key": True,
            "auto_increment": True,
            "default_value": None,
            "references": None,
        })

    field_names = {f.name for f in model.fields}
    return {
        "name": to_snake_case(model.name),
        "dart_class_name": model.name,
        "columns": columns,
        "relationships": [
            {
                "type": rel.type,
                "related_table": to_snake_case(rel.target),
                "foreign_key": to_snake_case(rel.field_name) + "_id",
            }
            for rel in model.relationships
        ],
        "timestamps": "createdAt" in field_names and "updatedAt" in field_names,
        "soft_delete": "deletedAt" in field_names,
    }


def models_to_table_schemas(models: list[ModelDefinition]) -> list[dict]:
    return [model_to_table_schema(m) for m in models]
