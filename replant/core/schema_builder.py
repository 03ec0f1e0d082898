"""Rebuild schema synthesis.

``build_rebuild_schema`` turns an AnalysisSnapshot plus RebuildOptions
into a RebuildSchema. It is pure: no I/O, no clock, no randomness, so
the same inputs always produce an equal schema. Anything it cannot map
confidently becomes a warning; it never fails on content.
"""

from __future__ import annotations

import dataclasses
import logging

from replant.analyzers.dart_source import to_snake_case
from replant.analyzers.models import AnalysisSnapshot

from . import RebuildOptions, RebuildSchema
from .drift_mapper import models_to_table_schemas

logger = logging.getLogger(__name__)

ARCHITECTURES = ("clean", "feature-first", "layer-first")
STATE_LIBRARIES = ("riverpod", "bloc")
LOW_CONFIDENCE = 0.7
MANY_MODELS = 20
DEFAULT_THEME_COLOR = "#6366F1"

THEME_FILES = ["lib/theme/app_theme.dart", "lib/theme/design_tokens.dart"]
STATE_FILES = {
    "riverpod": ["lib/providers/app_providers.dart"],
    "bloc": ["lib/blocs/app_bloc.dart"],
}


def resolve_architecture(snapshot: AnalysisSnapshot, target: str, warnings: list[str]) -> str:
    arch = snapshot.architecture
    if target == "keep":
        if arch.confidence == 0:
            warnings.append(
                "Architecture requested as 'keep' but detection confidence is 0. "
                "Falling back to layer-first."
            )
            return "layer-first"
        chosen = arch.detected
    elif target in ARCHITECTURES:
        chosen = target
    else:
        warnings.append(f"Unknown target architecture '{target}'. Using layer-first.")
        chosen = "layer-first"
    if chosen == "custom":
        warnings.append("Detected architecture is custom; rebuilding as layer-first.")
        return "layer-first"
    return chosen


def resolve_state_management(snapshot: AnalysisSnapshot, target: str, warnings: list[str]) -> str:
    detected = snapshot.dependencies.state_management
    if target in STATE_LIBRARIES:
        return target
    if target != "keep":
        warnings.append(f"Unknown target state management '{target}'. Using Riverpod.")
        return "riverpod"
    if detected in STATE_LIBRARIES:
        return detected
    if detected == "none":
        warnings.append("No state management detected. Adding Riverpod by default.")
    else:
        warnings.append(
            f"State management '{detected}' cannot be rebuilt directly. Migrating to Riverpod."
        )
    return "riverpod"


def select_modules(snapshot: AnalysisSnapshot, options: RebuildOptions) -> list[str]:
    """Ordered, de-duplicated module ids for the target project."""
    deps = snapshot.dependencies
    ids: list[str] = []
    if options.add_offline_support or deps.persistence == "drift":
        ids.append("drift")
    if options.add_offline_support:
        ids.append("pwa")
    if options.apply_design:
        ids.append("design")
    if deps.networking != "none":
        ids.append("api")
    ids.append("state")
    ids.extend(options.extra_modules)

    ordered = list(dict.fromkeys(ids))
    excluded = set(options.exclude_modules)
    return [m for m in ordered if m not in excluded]


def theme_color(snapshot: AnalysisSnapshot) -> str:
    """``0xFF6366F1`` -> ``#6366F1``; anything else falls back to the default."""
    primary = snapshot.theme.primary_color if snapshot.theme else None
    if primary and primary.startswith("0x") and len(primary) == 10:
        return "#" + primary[4:]
    return DEFAULT_THEME_COLOR


def build_project_definition(
    snapshot: AnalysisSnapshot,
    options: RebuildOptions,
    architecture: str,
    state_management: str,
    module_ids: list[str],
) -> dict:
    color = theme_color(snapshot)
    return {
        "name": snapshot.name,
        "description": snapshot.description,
        "architecture": architecture,
        "state_management": state_management,
        "targets": ["web"],
        "pwa": {
            "name": snapshot.name,
            "short_name": snapshot.name[:12],
            "description": snapshot.description,
            "theme_color": color,
            "background_color": "#FFFFFF",
            "display": "standalone",
            "orientation": "any",
            "start_url": "/",
            "scope": "/",
        },
        "offline": {
            "strategy": "offline-first",
            "storage": {"type": "drift", "encryption": options.enable_encryption},
            "caching": {"assets": True, "api": True, "ttl": 3600},
            "sync": {"enabled": True, "strategy": "auto"},
        } if options.add_offline_support else None,
        "flutter": {"version": snapshot.flutter_version or "3.10.0"},
        "modules": [{"id": m, "enabled": True, "config": {}} for m in module_ids],
    }


def build_rebuild_schema(
    snapshot: AnalysisSnapshot,
    options: RebuildOptions | None = None,
) -> RebuildSchema:
    """Plan a rebuild of ``snapshot``.

    Classes are identified by ``(file_path, name)``. A class reported by
    both the screen and widget passes is kept as a screen only, and a
    model reported twice is migrated once.
    """
    options = options or RebuildOptions()
    warnings: list[str] = []

    architecture = resolve_architecture(snapshot, options.target_architecture, warnings)
    confidence = snapshot.architecture.confidence
    if confidence < LOW_CONFIDENCE:
        warnings.append(
            f"Low architecture confidence ({round(confidence * 100)}%). Manual review recommended."
        )
    state_management = resolve_state_management(
        snapshot, options.target_state_management, warnings
    )
    module_ids = select_modules(snapshot, options)

    # Models, de-duplicated by class identity
    models = []
    seen_models: set[tuple[str, str]] = set()
    for model in snapshot.models:
        key = (model.file_path, model.name)
        if key in seen_models:
            warnings.append(f"Duplicate model {model.name} in {model.file_path} ignored.")
            continue
        seen_models.add(key)
        models.append(model)

    screens = []
    screen_keys: set[tuple[str, str]] = set()
    for screen in snapshot.screens:
        key = (screen.file_path, screen.name)
        if key not in screen_keys:
            screen_keys.add(key)
            screens.append(screen)

    widgets = []
    widget_keys: set[tuple[str, str]] = set()
    for widget in snapshot.widgets:
        key = (widget.file_path, widget.name)
        if key in screen_keys or key in widget_keys:
            continue
        widget_keys.add(key)
        widgets.append(widget)

    if options.keep_models:
        model_migrations = [
            {"action": "preserve", "source": m.file_path, "name": m.name}
            for m in models
        ]
    else:
        model_migrations = []
        for m in models:
            if not m.fields:
                warnings.append(f"Model {m.name} has no fields to migrate ({m.file_path}).")
            model_migrations.append({
                "action": "migrate-to-drift",
                "source": m.file_path,
                "name": m.name,
                "fields": [dataclasses.asdict(f) for f in m.fields],
            })
        if len(models) > MANY_MODELS:
            warnings.append(
                f"Migrating {len(models)} models to Drift. This may require manual adjustments."
            )

    if options.keep_screen_structure:
        screen_migrations = [
            {
                "action": "preserve-structure",
                "source": s.file_path,
                "name": s.name,
                "apply_theme": options.apply_design,
            }
            for s in screens
        ]
    else:
        screen_migrations = [
            {
                "action": "regenerate",
                "source": s.file_path,
                "name": s.name,
                "kind": s.kind,
                "route": s.route,
                "scaffold": dataclasses.asdict(s.scaffold),
            }
            for s in screens
        ]

    widget_migrations = [
        {"action": "preserve", "source": w.file_path, "name": w.name}
        for w in widgets
    ]

    generation_plan = {
        "theme": list(THEME_FILES) if options.apply_design else [],
        "models": [] if options.keep_models else [
            f"lib/models/{to_snake_case(m.name)}.dart" for m in models
        ],
        "screens": [f"lib/screens/{to_snake_case(s.name)}.dart" for s in screens],
        "widgets": [],
        "state": list(STATE_FILES[state_management]),
    }

    preserved: list[str] = []
    if options.keep_models:
        preserved.extend(m.file_path for m in models)
    if options.keep_screen_structure:
        preserved.extend(s.file_path for s in screens)
    preserved.extend(w.file_path for w in widgets)

    table_schemas = []
    if not options.keep_models and "drift" in module_ids:
        table_schemas = models_to_table_schemas(models)

    logger.debug("Schema for %s: modules=%s, %d warnings", snapshot.name, module_ids, len(warnings))
    return RebuildSchema(
        project_definition=build_project_definition(
            snapshot, options, architecture, state_management, module_ids
        ),
        migrations={
            "models": model_migrations,
            "screens": screen_migrations,
            "widgets": widget_migrations,
        },
        generation_plan=generation_plan,
        preserved_files=list(dict.fromkeys(preserved)),
        warnings=warnings,
        table_schemas=table_schemas,
    )
