from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from cmdroute.config import RouterConfig
from cmdroute.core.dispatcher import Dispatcher
from cmdroute.core.errors import InvalidCatalog
from cmdroute.core.executor import ToolExecutor
from cmdroute.core.management import handler_tool, history_tool, integration_tool, mode_tool
from cmdroute.core.descriptors import CommandDescriptor
from cmdroute.registry.catalog import Catalog, load_catalog
from cmdroute.registry.tool_registry import ToolRegistry
from cmdroute.trace.history import RoutingHistory
from cmdroute.trace.history_store_jsonl import HistoryStoreJSONL


_FLAG_PATTERN = r"^--[A-Za-z0-9_-]+$"


def build_dispatcher(config: Optional[RouterConfig] = None, *, catalog: Optional[Catalog] = None) -> Dispatcher:
    """
    Load the catalog (fails fast with InvalidCatalog) and wire the history log.
    """
    cfg = config or RouterConfig()
    cat = catalog if catalog is not None else load_catalog(cfg.catalog_path)
    store = HistoryStoreJSONL(cfg.history_path) if cfg.history_path else None
    return Dispatcher(cat, RoutingHistory(limit=cfg.history_limit, store=store))


def command_input_schema(command: CommandDescriptor, catalog: Catalog) -> Dict[str, Any]:
    return {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "input": {"type": "string", "description": "Command arguments and target specification"},
            "flags": {
                "type": "array",
                "items": {"type": "string", "pattern": _FLAG_PATTERN},
                "description": "Command flags; known: " + (" ".join(command.flags) or "none"),
            },
            "handlerOverride": {
                "type": "string",
                "enum": list(catalog.handlers.keys()),
                "description": "Handler to use (auto-detected when omitted)",
            },
        },
    }


def _management_schema(description: str) -> Dict[str, Any]:
    return {
        "type": "object",
        "additionalProperties": False,
        "properties": {"input": {"type": "string", "description": description}},
    }


def build_tool_registry(dispatcher: Dispatcher) -> ToolRegistry:
    """
    One tool per catalog command plus the read-only management tools.
    """
    catalog = dispatcher.catalog
    reg = ToolRegistry()

    def command_impl(name: str) -> Callable[[Dict[str, Any]], str]:
        return lambda args: dispatcher.dispatch(name, args).text

    def management_impl(func: Callable[[Dispatcher, Dict[str, Any]], str]) -> Callable[[Dict[str, Any]], str]:
        return lambda args: func(dispatcher, args)

    for cmd in catalog.commands.values():
        allowed = ", ".join(cmd.allowed_handlers) or "any"
        reg.register(
            {
                "name": cmd.name,
                "description": f"{cmd.description} | Handlers: {allowed} | Complexity: {cmd.complexity} | Usage: {cmd.usage}",
                "inputSchema": command_input_schema(cmd, catalog),
            },
            command_impl(cmd.name),
        )

    management = (
        ("sc:handler", "Inspect handlers: list | show <name> | auto <text>", "list | show <name> | auto <text>", handler_tool),
        ("sc:integration", "Inspect integrations: status | route <command> [handler ...]", "status | route <command> [handler ...]", integration_tool),
        ("sc:mode", "Inspect behavioral modes: list | show <name>", "list | show <name>", mode_tool),
        ("sc:history", "Show recent routing decisions: recent [n]", "recent [n]", history_tool),
    )
    for name, description, usage, impl in management:
        if name in reg:
            raise InvalidCatalog(
                code="catalog.invalid",
                message=f"Catalog command collides with a management tool: {name}",
                data={"command": name},
            )
        reg.register(
            {"name": name, "description": description, "inputSchema": _management_schema(usage)},
            management_impl(impl),
        )

    return reg


def build_executor(config: Optional[RouterConfig] = None, *, catalog: Optional[Catalog] = None) -> ToolExecutor:
    dispatcher = build_dispatcher(config, catalog=catalog)
    return ToolExecutor(build_tool_registry(dispatcher), dispatcher.history)
