"""Data models for Flutter project analysis results."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class SourceFile:
    """One file of the source project, addressed by POSIX relative path."""
    path: str
    content: str


@dataclass
class DependencyProfile:
    """Technology choices inferred from declared package names."""
    state_management: str = "none"  # riverpod, bloc, provider, getx, mobx, none
    persistence: str = "none"  # drift, sqflite, hive, isar, none
    networking: str = "none"  # dio, http, chopper, retrofit, none
    navigation: str = "none"  # go_router, auto_route, none
    state_packages: list[str] = field(default_factory=list)
    persistence_packages: list[str] = field(default_factory=list)
    network_packages: list[str] = field(default_factory=list)
    navigation_packages: list[str] = field(default_factory=list)
    uses_freezed: bool = False
    uses_json_serializable: bool = False
    uses_build_runner: bool = False
    runtime: dict = field(default_factory=dict)
    dev: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: dict) -> DependencyProfile:
        return cls(
            state_management=d.get("state_management", "none"),
            persistence=d.get("persistence", "none"),
            networking=d.get("networking", "none"),
            navigation=d.get("navigation", "none"),
            state_packages=list(d.get("state_packages", [])),
            persistence_packages=list(d.get("persistence_packages", [])),
            network_packages=list(d.get("network_packages", [])),
            navigation_packages=list(d.get("navigation_packages", [])),
            uses_freezed=bool(d.get("uses_freezed", False)),
            uses_json_serializable=bool(d.get("uses_json_serializable", False)),
            uses_build_runner=bool(d.get("uses_build_runner", False)),
            runtime=dict(d.get("runtime") or {}),
            dev=dict(d.get("dev") or {}),
        )


@dataclass
class ProjectMetadata:
    """Project metadata read from pubspec.yaml."""
    name: str = "unknown"
    description: str = ""
    version: str = "1.0.0"
    flutter_version: str = "3.0.0"
    dart_min_version: str = "3.0.0"
    dart_max_version: str | None = None
    dependencies: DependencyProfile = field(default_factory=DependencyProfile)
    assets: list[str] = field(default_factory=list)
    fonts: list[str] = field(default_factory=list)


@dataclass
class FolderNode:
    """A directory snapshot node."""
    name: str
    path: str
    type: str = "directory"  # directory, file
    children: list[FolderNode] = field(default_factory=list)
    file_type: str | None = None  # dart, yaml, json, other
    category: str | None = None  # model, screen, widget, provider, service, theme, route, unknown

    @classmethod
    def from_dict(cls, d: dict) -> FolderNode:
        return cls(
            name=d.get("name", ""),
            path=d.get("path", ""),
            type=d.get("type", "directory"),
            children=[cls.from_dict(c) for c in d.get("children") or []],
            file_type=d.get("file_type"),
            category=d.get("category"),
        )


@dataclass(frozen=True)
class ArchitectureAssessment:
    """Architecture classification of a source tree."""
    detected: str  # clean, feature-first, layer-first, custom
    confidence: float
    structure: FolderNode
    reasoning: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> ArchitectureAssessment:
        reasoning = d.get("reasoning", "")
        if isinstance(reasoning, list):
            reasoning = "; ".join(reasoning)
        return cls(
            detected=d.get("detected", "custom"),
            confidence=float(d.get("confidence", 0.0)),
            structure=FolderNode.from_dict(d.get("structure") or {"name": "lib", "path": "lib"}),
            reasoning=reasoning,
        )


@dataclass
class FieldDefinition:
    """A field or constructor parameter."""
    name: str
    type: str
    nullable: bool = False
    default_value: str | None = None
    annotations: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict) -> FieldDefinition:
        return cls(
            name=d["name"],
            type=d.get("type", "dynamic"),
            nullable=bool(d.get("nullable", False)),
            default_value=d.get("default_value"),
            annotations=list(d.get("annotations", [])),
        )


@dataclass
class Relationship:
    type: str  # hasOne, hasMany
    target: str
    field_name: str

    @classmethod
    def from_dict(cls, d: dict) -> Relationship:
        return cls(type=d["type"], target=d["target"], field_name=d["field_name"])


@dataclass
class ModelDefinition:
    """A data/entity class."""
    name: str
    file_path: str
    fields: list[FieldDefinition] = field(default_factory=list)
    annotations: list[str] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    is_immutable: bool = False
    has_json: bool = False

    @classmethod
    def from_dict(cls, d: dict) -> ModelDefinition:
        return cls(
            name=d["name"],
            file_path=d.get("file_path", ""),
            fields=[FieldDefinition.from_dict(f) for f in d.get("fields", [])],
            annotations=list(d.get("annotations", [])),
            relationships=[Relationship.from_dict(r) for r in d.get("relationships", [])],
            is_immutable=bool(d.get("is_immutable", False)),
            has_json=bool(d.get("has_json", False)),
        )


@dataclass
class WidgetDefinition:
    """A UI class that is not a full page."""
    name: str
    file_path: str
    kind: str = "stateless"  # stateless, stateful, hook
    props: list[FieldDefinition] = field(default_factory=list)
    is_reusable: bool = False

    @classmethod
    def from_dict(cls, d: dict) -> WidgetDefinition:
        props = [FieldDefinition.from_dict(p) for p in d.get("props", [])]
        return cls(
            name=d["name"],
            file_path=d.get("file_path", ""),
            kind=d.get("kind", "stateless"),
            props=props,
            is_reusable=bool(d.get("is_reusable", len(props) > 0)),
        )


@dataclass
class ScaffoldFeatures:
    has_app_bar: bool = False
    has_bottom_nav: bool = False
    has_drawer: bool = False
    has_fab: bool = False

    @classmethod
    def from_dict(cls, d: dict) -> ScaffoldFeatures:
        return cls(
            has_app_bar=bool(d.get("has_app_bar", False)),
            has_bottom_nav=bool(d.get("has_bottom_nav", False)),
            has_drawer=bool(d.get("has_drawer", False)),
            has_fab=bool(d.get("has_fab", False)),
        )


@dataclass
class ScreenDefinition:
    """A UI class whose body builds a full page (Scaffold)."""
    name: str
    file_path: str
    kind: str = "stateless"
    route: str | None = None
    scaffold: ScaffoldFeatures = field(default_factory=ScaffoldFeatures)
    providers: list[str] = field(default_factory=list)
    widgets: list[str] = field(default_factory=list)
    layout: str = "custom"  # grid, list, stack, row, column, custom

    @classmethod
    def from_dict(cls, d: dict) -> ScreenDefinition:
        return cls(
            name=d["name"],
            file_path=d.get("file_path", ""),
            kind=d.get("kind", "stateless"),
            route=d.get("route"),
            scaffold=ScaffoldFeatures.from_dict(d.get("scaffold") or {}),
            providers=list(d.get("providers", [])),
            widgets=list(d.get("widgets", [])),
            layout=d.get("layout", "custom"),
        )


@dataclass
class ThemeInfo:
    """Theme facts accumulated over the entry point and theme files."""
    use_material: bool = False
    use_cupertino: bool = False
    primary_color: str | None = None
    font_family: str | None = None
    colors: dict[str, str] = field(default_factory=dict)
    has_custom_theme: bool = False
    theme_file_path: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> ThemeInfo:
        return cls(
            use_material=bool(d.get("use_material", False)),
            use_cupertino=bool(d.get("use_cupertino", False)),
            primary_color=d.get("primary_color"),
            font_family=d.get("font_family"),
            colors=dict(d.get("colors") or {}),
            has_custom_theme=bool(d.get("has_custom_theme", False)),
            theme_file_path=d.get("theme_file_path"),
        )


@dataclass
class ProjectStats:
    total_files: int = 0
    dart_files: int = 0
    test_files: int = 0
    lines_of_code: int = 0

    @classmethod
    def from_dict(cls, d: dict) -> ProjectStats:
        return cls(
            total_files=int(d.get("total_files", 0)),
            dart_files=int(d.get("dart_files", 0)),
            test_files=int(d.get("test_files", 0)),
            lines_of_code=int(d.get("lines_of_code", 0)),
        )


@dataclass
class AnalysisSnapshot:
    """Complete structural snapshot of a Flutter project."""
    name: str
    architecture: ArchitectureAssessment
    description: str = ""
    flutter_version: str = "3.0.0"
    dart_version: str = "3.0.0"
    dependencies: DependencyProfile = field(default_factory=DependencyProfile)
    models: list[ModelDefinition] = field(default_factory=list)
    screens: list[ScreenDefinition] = field(default_factory=list)
    widgets: list[WidgetDefinition] = field(default_factory=list)
    theme: ThemeInfo | None = None
    stats: ProjectStats = field(default_factory=ProjectStats)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> AnalysisSnapshot:
        theme = d.get("theme")
        return cls(
            name=d.get("name", "unknown"),
            description=d.get("description", ""),
            flutter_version=d.get("flutter_version", "3.0.0"),
            dart_version=d.get("dart_version", "3.0.0"),
            architecture=ArchitectureAssessment.from_dict(d.get("architecture") or {}),
            dependencies=DependencyProfile.from_dict(d.get("dependencies") or {}),
            models=[ModelDefinition.from_dict(m) for m in d.get("models", [])],
            screens=[ScreenDefinition.from_dict(s) for s in d.get("screens", [])],
            widgets=[WidgetDefinition.from_dict(w) for w in d.get("widgets", [])],
            theme=ThemeInfo.from_dict(theme) if theme else None,
            stats=ProjectStats.from_dict(d.get("stats") or {}),
        )
