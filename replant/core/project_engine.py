"""Project engine contract and an in-memory reference engine.

The rebuild executor depends only on :class:`ProjectEngine`: create a
project record, apply a module's configuration to it, and generate files
from that configuration. Generated files are returned as a mapping of
POSIX relative path to content; writing them is the executor's job.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from typing import Callable, Protocol

import yaml

from replant.errors import ProjectNotFoundError

logger = logging.getLogger(__name__)


class ProjectEngine(Protocol):
    def create_project(self, definition: dict) -> str: ...

    def apply_module_config(self, project_id: str, module_id: str, config: dict) -> None: ...

    def generate_files(self, project_id: str, module_id: str | None = None) -> dict[str, str]: ...


@dataclass
class ProjectRecord:
    id: str
    definition: dict
    module_configs: dict[str, dict] = field(default_factory=dict)


BASE_DEPENDENCIES = {
    "go_router": "^14.0.0",
    "equatable": "^2.0.5",
    "json_annotation": "^4.9.0",
}

STATE_DEPENDENCIES = {
    "riverpod": {"flutter_riverpod": "^2.4.0", "riverpod_annotation": "^2.3.0"},
    "bloc": {"flutter_bloc": "^8.1.3", "bloc": "^8.1.2"},
}

MODULE_DEPENDENCIES = {
    "drift": {
        "drift": "^2.14.0",
        "sqlite3_flutter_libs": "^0.5.0",
        "path_provider": "^2.1.1",
        "path": "^1.8.3",
    },
    "api": {"dio": "^5.4.0"},
}

ANALYSIS_OPTIONS = """include: package:flutter_lints/flutter.yaml

linter:
  rules:
    - prefer_const_constructors
    - prefer_const_literals_to_create_immutables
    - prefer_final_fields
    - avoid_print
    - prefer_single_quotes
"""


class InMemoryProjectEngine:
    """Keeps project records in memory; ids are ``<name>-<n>`` per engine."""

    def __init__(self) -> None:
        self._projects: dict[str, ProjectRecord] = {}
        self._counter = 0

    # ── Records ───────────────────────────────────────────────────

    def create_project(self, definition: dict) -> str:
        self._counter += 1
        project_id = f"{definition.get('name') or 'app'}-{self._counter}"
        self._projects[project_id] = ProjectRecord(id=project_id, definition=copy.deepcopy(definition))
        logger.debug("Created project %s", project_id)
        return project_id

    def get_project(self, project_id: str) -> ProjectRecord:
        """Raises ProjectNotFoundError for unknown ids."""
        try:
            return self._projects[project_id]
        except KeyError:
            raise ProjectNotFoundError(project_id) from None

    def update_module_config(
        self, project_id: str, module_id: str, updater: Callable[[dict], object]
    ) -> dict:
        cfg = self.get_project(project_id).module_configs.setdefault(module_id, {})
        updater(cfg)
        return cfg

    def apply_module_config(self, project_id: str, module_id: str, config: dict) -> None:
        self.update_module_config(project_id, module_id, lambda cfg: cfg.update(config))

    # ── Generation ────────────────────────────────────────────────

    def generate_files(self, project_id: str, module_id: str | None = None) -> dict[str, str]:
        record = self.get_project(project_id)
        if module_id is None:
            return self._core_files(record)
        if module_id not in record.module_configs:
            raise ValueError(f"Module {module_id} has no configuration on project {project_id}")
        return self._module_files(record, module_id)

    def _core_files(self, record: ProjectRecord) -> dict[str, str]:
        d = record.definition
        name = d.get("name") or "app"
        state = d.get("state_management", "riverpod")
        modules = [m["id"] for m in d.get("modules", [])]

        dependencies: dict = {"flutter": {"sdk": "flutter"}}
        dependencies.update(BASE_DEPENDENCIES)
        dependencies.update(STATE_DEPENDENCIES.get(state, {}))
        for m in modules:
            dependencies.update(MODULE_DEPENDENCIES.get(m, {}))

        pubspec = {
            "name": name,
            "description": d.get("description") or "A rebuilt Flutter application.",
            "version": "1.0.0+1",
            "environment": {"sdk": ">=3.0.0 <4.0.0"},
            "dependencies": dependencies,
            "dev_dependencies": {
                "flutter_test": {"sdk": "flutter"},
                "flutter_lints": "^3.0.0",
                "build_runner": "^2.4.6",
            },
            "flutter": {"uses_material_design": True},
        }
        if "drift" in modules:
            pubspec["dev_dependencies"]["drift_dev"] = "^2.14.0"

        readme_modules = "\n".join(f"- {m}" for m in modules) or "- None"
        readme = (
            f"# {name}\n\n"
            f"{d.get('description') or 'A rebuilt Flutter application.'}\n\n"
            "## Architecture\n\n"
            f"- **Pattern**: {d.get('architecture', 'layer-first')}\n"
            f"- **State Management**: {state}\n\n"
            "## Modules\n\n"
            f"{readme_modules}\n"
        )
        return {
            "pubspec.yaml": yaml.safe_dump(pubspec, sort_keys=False),
            "analysis_options.yaml": ANALYSIS_OPTIONS,
            "README.md": readme,
            "lib/main.dart": _main_dart(name, state == "riverpod"),
        }

    def _module_files(self, record: ProjectRecord, module_id: str) -> dict[str, str]:
        cfg = record.module_configs[module_id]
        files = {
            f"config/modules/{module_id}.yaml": yaml.safe_dump(
                {"module": module_id, "config": cfg}, sort_keys=False
            ),
        }
        if module_id == "drift":
            tables = [t["name"] for t in cfg.get("tables", [])]
            files["lib/database/app_database.dart"] = (
                "import 'package:drift/drift.dart';\n\n"
                f"// Tables: {', '.join(tables) or 'none'}\n"
                "class AppDatabase {}\n"
            )
        elif module_id == "pwa":
            files["web/manifest.json"] = json.dumps(cfg.get("manifest", {}), indent=2) + "\n"
        elif module_id == "design":
            color = cfg.get("theme", {}).get("primary_color", "#6366F1").lstrip("#")
            files["lib/theme/app_theme.dart"] = (
                "import 'package:flutter/material.dart';\n\n"
                "class AppTheme {\n"
                "  static ThemeData get lightTheme => ThemeData(\n"
                f"    colorScheme: ColorScheme.fromSeed(seedColor: const Color(0xFF{color})),\n"
                "    useMaterial3: true,\n"
                "  );\n"
                "}\n"
            )
        elif module_id == "api":
            files["lib/services/api_client.dart"] = (
                "import 'package:dio/dio.dart';\n\n"
                "class ApiClient {\n"
                f"  final Dio dio = Dio(BaseOptions(baseUrl: '{cfg.get('base_url', '')}'));\n"
                "}\n"
            )
        elif module_id == "state":
            if cfg.get("type") == "bloc":
                names = [b["name"] for b in cfg.get("blocs", [])]
                files["lib/blocs/app_bloc.dart"] = (
                    "import 'package:flutter_bloc/flutter_bloc.dart';\n\n"
                    f"// Blocs: {', '.join(names) or 'none'}\n"
                )
            else:
                names = [p["name"] for p in cfg.get("providers", [])]
                files["lib/providers/app_providers.dart"] = (
                    "import 'package:flutter_riverpod/flutter_riverpod.dart';\n\n"
                    f"// Providers: {', '.join(names) or 'none'}\n"
                    "final appStateProvider = StateProvider<int>((ref) => 0);\n"
                )
        return files


def _main_dart(name: str, use_riverpod: bool) -> str:
    riverpod_import = "import 'package:flutter_riverpod/flutter_riverpod.dart';\n" if use_riverpod else ""
    run_app = "const ProviderScope(child: MyApp())" if use_riverpod else "const MyApp()"
    return (
        "import 'package:flutter/material.dart';\n"
        f"{riverpod_import}\n"
        "void main() {\n"
        f"  runApp({run_app});\n"
        "}\n\n"
        "class MyApp extends StatelessWidget {\n"
        "  const MyApp({super.key});\n\n"
        "  @override\n"
        "  Widget build(BuildContext context) {\n"
        "    return MaterialApp(\n"
        f"      title: '{name}',\n"
        "      home: const Scaffold(\n"
        "        body: Center(child: Text('Welcome to your rebuilt Flutter app!')),\n"
        "      ),\n"
        "    );\n"
        "  }\n"
        "}\n"
    )
