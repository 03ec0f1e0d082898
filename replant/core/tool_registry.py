"""Named tool registry used as the rebuild executor's tool caller.

The executor only sees ``await registry.call(name, args)``. Handlers may
be plain functions or coroutines. Calling a name with no registered
handler returns ``{"success": False, "error": "Tool not found: <name>"}``.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Protocol

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict], Any]


class ToolCaller(Protocol):
    def __call__(self, name: str, args: dict) -> Awaitable[dict]: ...


class ToolRegistry:
    """Maps tool names to handlers."""

    def __init__(self) -> None:
        self._handlers: dict[str, ToolHandler] = {}

    def register(self, name: str, handler: ToolHandler) -> None:
        if name in self._handlers:
            raise ValueError(f"Tool already registered: {name}")
        self._handlers[name] = handler

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, name: str) -> bool:
        return name in self._handlers

    async def call(self, name: str, args: dict | None = None) -> dict:
        handler = self._handlers.get(name)
        if handler is None:
            logger.warning("Tool not found: %s", name)
            return {"success": False, "error": f"Tool not found: {name}"}
        result = handler(dict(args or {}))
        if inspect.isawaitable(result):
            result = await result
        return result

    __call__ = call


def create_default_registry(engine) -> ToolRegistry:
    """Registry whose module tools record configuration on ``engine``.

    ``engine`` must provide ``update_module_config(project_id, module_id,
    updater)`` as InMemoryProjectEngine does.
    """
    registry = ToolRegistry()

    def drift_add_table(args: dict) -> dict:
        table = {
            "name": args["name"],
            "columns": list(args.get("columns", [])),
            "timestamps": bool(args.get("timestamps", False)),
            "soft_delete": bool(args.get("soft_delete", False)),
        }
        engine.update_module_config(
            args["project_id"], "drift",
            lambda cfg: cfg.setdefault("tables", []).append(table),
        )
        return {"success": True, "table": table["name"]}

    def drift_enable_encryption(args: dict) -> dict:
        strategy = args.get("strategy", "stored")
        engine.update_module_config(
            args["project_id"], "drift",
            lambda cfg: cfg.update(encryption={"enabled": True, "strategy": strategy}),
        )
        return {"success": True, "strategy": strategy}

    def pwa_configure_manifest(args: dict) -> dict:
        manifest = {k: v for k, v in args.items() if k != "project_id"}
        engine.update_module_config(
            args["project_id"], "pwa", lambda cfg: cfg.update(manifest=manifest),
        )
        return {"success": True}

    def design_generate_theme(args: dict) -> dict:
        theme = {
            "primary_color": args.get("primary_color", "#6366F1"),
            "dark_mode": bool(args.get("dark_mode", True)),
            "font_family": args.get("font_family"),
        }
        engine.update_module_config(
            args["project_id"], "design", lambda cfg: cfg.update(theme=theme),
        )
        return {"success": True}

    def api_configure_client(args: dict) -> dict:
        client = {
            "client": args.get("client", "dio"),
            "base_url": args.get("base_url", ""),
            "timeout": int(args.get("timeout", 30)),
        }
        engine.update_module_config(
            args["project_id"], "api", lambda cfg: cfg.update(client),
        )
        return {"success": True}

    def state_create_provider(args: dict) -> dict:
        provider = {
            "name": args["name"],
            "state_type": args.get("state_type", "Map<String, dynamic>"),
            "auto_dispose": bool(args.get("auto_dispose", True)),
        }

        def add_provider(cfg: dict) -> None:
            cfg["type"] = "riverpod"
            cfg.setdefault("providers", []).append(provider)

        engine.update_module_config(args["project_id"], "state", add_provider)
        return {"success": True, "provider": provider["name"]}

    def state_create_bloc(args: dict) -> dict:
        bloc = {
            "name": args["name"],
            "events": list(args.get("events", [])),
            "states": list(args.get("states", [])),
        }

        def add_bloc(cfg: dict) -> None:
            cfg["type"] = "bloc"
            cfg.setdefault("blocs", []).append(bloc)

        engine.update_module_config(args["project_id"], "state", add_bloc)
        return {"success": True, "bloc": bloc["name"]}

    for handler in (
        drift_add_table,
        drift_enable_encryption,
        pwa_configure_manifest,
        design_generate_theme,
        api_configure_client,
        state_create_provider,
        state_create_bloc,
    ):
        registry.register(handler.__name__, handler)
    return registry
