"""Service layer for replant.

All services return typed dataclasses. Services never import from
replant.ui, replant.cli, or typer. Consumer layers (CLI, MCP) handle
presentation.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

from replant.analyzers.models import AnalysisSnapshot, SourceFile


@dataclass
class CloneResult:
    """Outcome of a shallow clone. Failures are reported, not raised."""

    success: bool
    local_path: str = ""
    repo_name: str = ""
    branch: str = ""
    commit: str = ""
    size: int = 0
    error: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ExportParseResult:
    """A flattened single-file export split back into files."""

    project_name: str
    directory_structure: list[str] = field(default_factory=list)
    files: list[SourceFile] = field(default_factory=list)
    dart_files: list[SourceFile] = field(default_factory=list)
    manifest_content: str | None = None


@dataclass
class RebuildOptions:
    """User choices that steer schema synthesis."""

    keep_models: bool = True
    keep_screen_structure: bool = True
    apply_design: bool = True
    add_offline_support: bool = True
    target_architecture: str = "keep"  # clean, feature-first, layer-first, keep
    target_state_management: str = "keep"  # riverpod, bloc, keep
    enable_encryption: bool = False
    extra_modules: list[str] = field(default_factory=list)
    exclude_modules: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict) -> RebuildOptions:
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in d.items() if k in known and v is not None})


@dataclass(frozen=True)
class RebuildSchema:
    """Pure-data plan consumed by the rebuild executor."""

    project_definition: dict
    migrations: dict = field(default_factory=lambda: {"models": [], "screens": [], "widgets": []})
    generation_plan: dict = field(default_factory=dict)
    preserved_files: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    table_schemas: list[dict] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.project_definition.get("name", "app")

    @property
    def module_ids(self) -> list[str]:
        return [
            m["id"]
            for m in self.project_definition.get("modules", [])
            if m.get("enabled", True)
        ]

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> RebuildSchema:
        migrations = d.get("migrations") or {}
        return cls(
            project_definition=dict(d.get("project_definition") or {}),
            migrations={
                "models": list(migrations.get("models", [])),
                "screens": list(migrations.get("screens", [])),
                "widgets": list(migrations.get("widgets", [])),
            },
            generation_plan=dict(d.get("generation_plan") or {}),
            preserved_files=list(d.get("preserved_files", [])),
            warnings=list(d.get("warnings", [])),
            table_schemas=list(d.get("table_schemas", [])),
        )


@dataclass
class ImportResult:
    """Outcome of a full import pipeline (acquire -> analyze -> plan -> rebuild)."""

    success: bool
    source: str
    project_name: str = ""
    analysis: AnalysisSnapshot | None = None
    schema: RebuildSchema | None = None
    rebuild: RebuildResult | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "source": self.source,
            "project_name": self.project_name,
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "schema": self.schema.to_dict() if self.schema else None,
            "rebuild": self.rebuild.to_dict() if self.rebuild else None,
            "error": self.error,
        }


@dataclass
class RebuildResult:
    """Summary of one rebuild run."""

    success: bool
    output_path: str
    project_id: str | None = None
    files_generated: int = 0
    files_copied: int = 0
    modules_installed: int = 0
    warnings: list[str] = field(default_factory=list)
    next_steps: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)
