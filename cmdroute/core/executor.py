from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from cmdroute.contract_store import validate_instance

from .errors import RouterError, ToolExecutionError, UnknownCommand, ValidationError
from ..registry.tool_registry import ToolRegistry
from ..trace.history import RoutingHistory


logger = logging.getLogger("cmdroute.tools")


def text_content(text: str) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": text}]}


def error_content(name: str, error: RouterError) -> Dict[str, Any]:
    text = f"Error executing {name}: {error.message}\n\nTip: call 'sc:handler' with input 'list' to see available handlers."
    out = text_content(text)
    out["isError"] = True
    out["error"] = error.to_dict()
    return out


class ToolExecutor:
    """
    The request boundary: validates tool arguments and converts routing errors into
    error-shaped responses.
    """

    def __init__(self, tool_registry: ToolRegistry, history: Optional[RoutingHistory] = None):
        self._tools = tool_registry
        self._history = history if history is not None else RoutingHistory()

    @property
    def history(self) -> RoutingHistory:
        return self._history

    def list_tools(self) -> List[Dict[str, Any]]:
        return self._tools.list_tools()

    def call_tool(self, name: str, arguments: Any = None) -> Dict[str, Any]:
        try:
            return text_content(self._call(name, arguments))
        except RouterError as e:
            logger.warning("TOOL_ERROR | tool=%s | code=%s | message=%s", name, e.code, e.message)
            return error_content(name, e)

    def _call(self, name: str, arguments: Any) -> str:
        tool_def = self._tools.get(name)
        if tool_def is None:
            raise UnknownCommand(code="command.unknown", message=f"Unknown command: {name}", data={"command": name})

        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ValidationError(code="tool.args_invalid", message="Tool arguments must be an object", data={"tool": name})

        errors = validate_instance(tool_def.get("inputSchema", {}), arguments)
        if errors:
            raise ValidationError(
                code="tool.args_invalid",
                message="Tool arguments validation failed",
                data={"tool": name, "errors": errors},
            )

        logger.debug("TOOL_CALL | tool=%s", name)
        try:
            return self._tools.call(name, arguments)
        except RouterError:
            raise
        except Exception as e:  # noqa: BLE001
            logger.exception("TOOL_FAILED | tool=%s", name)
            raise ToolExecutionError(
                code="tool.error",
                message="Tool execution error",
                data={"tool": name, "error": repr(e)},
            ) from e
