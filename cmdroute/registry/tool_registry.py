from __future__ import annotations

from typing import Any, Callable

from cmdroute.core.errors import UnknownCommand


ToolFunc = Callable[[dict[str, Any]], str]


class ToolRegistry:
    """
    Registry for routable tools and their advertised metadata.

    Listing order is registration order (catalog commands first, then management tools).
    """

    def __init__(self) -> None:
        self._defs: dict[str, dict[str, Any]] = {}
        self._impls: dict[str, ToolFunc] = {}

    def register(self, tool_def: dict[str, Any], impl: ToolFunc) -> None:
        name = tool_def["name"]
        if name in self._defs:
            raise ValueError(f"Duplicate tool name: {name}")
        self._defs[name] = tool_def
        self._impls[name] = impl

    def get(self, name: str) -> dict[str, Any] | None:
        return self._defs.get(name)

    def call(self, name: str, arguments: dict[str, Any]) -> str:
        impl = self._impls.get(name)
        if impl is None:
            raise UnknownCommand(code="command.unknown", message=f"Unknown command: {name}", data={"command": name})
        return impl(arguments)

    def list_tools(self) -> list[dict[str, Any]]:
        return list(self._defs.values())

    def __contains__(self, name: object) -> bool:
        return name in self._defs
