"""Layered configuration service for replant.

Priority (highest to lowest):
1. Environment variables (REPLANT_*), including a .env file in the cwd
2. Project config (.replant.toml in current directory)
3. Global config (~/.config/replant/config.toml)
4. Built-in defaults
"""
from __future__ import annotations

import copy
import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import tomli_w
from dotenv import load_dotenv

logger = logging.getLogger("replant.config")


# Default configuration values
DEFAULTS: dict[str, Any] = {
    "clone": {
        "branch": "main",
        "depth": 1,
        "timeout": 300,
    },
    "analysis": {
        "depth": "deep",
    },
    "rebuild": {
        "keep_models": True,
        "keep_screen_structure": True,
        "apply_design": True,
        "add_offline_support": True,
        "run_flutter_create": False,
        "format_code": False,
        "generate_tests": False,
    },
    "ui": {
        "plain_output": False,
    },
}

# Mapping of env vars to config paths
ENV_VAR_MAP = {
    "REPLANT_CLONE_BRANCH": "clone.branch",
    "REPLANT_CLONE_DEPTH": "clone.depth",
    "REPLANT_CLONE_TIMEOUT": "clone.timeout",
    "REPLANT_ANALYZE_DEPTH": "analysis.depth",
    "REPLANT_PLAIN": "ui.plain_output",
    "REPLANT_RUN_FLUTTER": "rebuild.run_flutter_create",
}


def _global_config_dir() -> Path:
    """Return the global config directory: ~/.config/replant/."""
    return Path.home() / ".config" / "replant"


def _global_config_path() -> Path:
    return _global_config_dir() / "config.toml"


def _project_config_path() -> Path:
    """Return the project config file path (.replant.toml in cwd)."""
    return Path.cwd() / ".replant.toml"


def _read_toml(path: Path) -> dict:
    """Read a TOML file, returning empty dict if missing or unreadable."""
    if not path.is_file():
        return {}
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Failed to read %s: %s", path, e)
        return {}


def _write_toml(data: dict, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        tomli_w.dump(data, f)


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override into base (override wins)."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _get_nested(data: dict, dotted_key: str, default: Any = None) -> Any:
    current = data
    for key in dotted_key.split("."):
        if not isinstance(current, dict):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current


def _set_nested(data: dict, dotted_key: str, value: Any) -> None:
    keys = dotted_key.split(".")
    current = data
    for key in keys[:-1]:
        if key not in current or not isinstance(current[key], dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value


def _coerce_env(value: str, default: Any) -> Any:
    """Convert an env string to the type of the key's built-in default."""
    if isinstance(default, bool):
        lowered = value.lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
        return default
    if isinstance(default, int):
        return int(value) if value.strip().isdigit() else default
    return value


@dataclass
class ResolvedConfig:
    """Fully resolved configuration after merging all layers."""
    data: dict = field(default_factory=dict)
    global_config_path: Optional[Path] = None
    project_config_path: Optional[Path] = None

    def get(self, dotted_key: str, default: Any = None) -> Any:
        return _get_nested(self.data, dotted_key, default)


class ConfigService:
    """Layered configuration service."""

    def __init__(self):
        self._resolved: Optional[ResolvedConfig] = None

    def resolve(self, force: bool = False) -> ResolvedConfig:
        """Resolve the full config from all layers."""
        if self._resolved is not None and not force:
            return self._resolved

        merged = copy.deepcopy(DEFAULTS)

        global_path = _global_config_path()
        global_data = _read_toml(global_path)
        if global_data:
            merged = _deep_merge(merged, global_data)
            logger.debug("Loaded global config from %s", global_path)

        project_path = _project_config_path()
        project_data = _read_toml(project_path)
        if project_data:
            merged = _deep_merge(merged, project_data)
            logger.debug("Loaded project config from %s", project_path)

        env_file = Path.cwd() / ".env"
        if env_file.is_file():
            load_dotenv(env_file)

        for env_var, config_path in ENV_VAR_MAP.items():
            env_value = os.environ.get(env_var)
            if env_value is not None:
                default = _get_nested(DEFAULTS, config_path)
                _set_nested(merged, config_path, _coerce_env(env_value, default))

        self._resolved = ResolvedConfig(
            data=merged,
            global_config_path=global_path if global_path.is_file() else None,
            project_config_path=project_path if project_path.is_file() else None,
        )
        return self._resolved

    def get(self, dotted_key: str, default: Any = None) -> Any:
        """Get a resolved config value."""
        return self.resolve().get(dotted_key, default)

    def rebuild_defaults(self) -> dict:
        """Rebuild option defaults as keyword arguments."""
        return dict(self.get("rebuild", {}))

    def set_global(self, dotted_key: str, value: Any) -> None:
        """Set a value in the global config file."""
        path = _global_config_path()
        data = _read_toml(path)
        _set_nested(data, dotted_key, value)
        _write_toml(data, path)
        self._resolved = None
        logger.info("Set %s = %s in %s", dotted_key, value, path)

    def init_project_config(self) -> Path:
        """Create a .replant.toml in the current directory with defaults."""
        path = _project_config_path()
        if path.exists():
            raise FileExistsError(f"Project config already exists: {path}")

        data = {
            "clone": {"branch": "main", "depth": 1},
            "analysis": {"depth": "deep"},
            "rebuild": {
                "keep_models": True,
                "keep_screen_structure": True,
                "add_offline_support": True,
            },
        }
        _write_toml(data, path)
        logger.info("Created project config: %s", path)
        return path

    def show(self) -> dict:
        """Return the resolved config and where it came from."""
        resolved = self.resolve(force=True)
        return {
            "resolved": resolved.data,
            "sources": {
                "global_config": str(resolved.global_config_path) if resolved.global_config_path else None,
                "project_config": str(resolved.project_config_path) if resolved.project_config_path else None,
            },
        }

    def config_paths(self) -> dict[str, str]:
        """Return all config file locations and their existence status."""
        global_path = _global_config_path()
        project_path = _project_config_path()
        env_path = Path.cwd() / ".env"
        return {
            "global_config": f"{global_path} ({'exists' if global_path.is_file() else 'not found'})",
            "project_config": f"{project_path} ({'exists' if project_path.is_file() else 'not found'})",
            "env_file": f"{env_path} ({'exists' if env_path.is_file() else 'not found'})",
        }


# Module-level singleton
_config_service: Optional[ConfigService] = None


def get_config_service() -> ConfigService:
    """Get or create the global ConfigService instance."""
    global _config_service
    if _config_service is None:
        _config_service = ConfigService()
    return _config_service


def reset_config_service() -> None:
    """Reset the global config service (useful for testing)."""
    global _config_service
    _config_service = None
