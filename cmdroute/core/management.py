from __future__ import annotations

import shlex
from typing import Any, Dict, List, Tuple

from .dispatcher import Dispatcher
from .errors import ValidationError
from .integration_router import route_integrations
from .selector import haystack, matching_keyword


def _split(tool: str, arguments: Dict[str, Any], default_action: str) -> Tuple[str, List[str]]:
    raw = arguments.get("input") or ""
    try:
        parts = shlex.split(raw)
    except ValueError as e:
        raise ValidationError(code="management.invalid", message=f"{tool}: cannot parse input", data={"input": raw}) from e
    if not parts:
        return default_action, []
    return parts[0].lower(), parts[1:]


def _unknown_action(tool: str, action: str, allowed: Tuple[str, ...]) -> ValidationError:
    return ValidationError(
        code="management.invalid",
        message=f"Unknown {tool} action: {action}",
        data={"action": action, "allowed": list(allowed)},
    )


def handler_tool(dispatcher: Dispatcher, arguments: Dict[str, Any]) -> str:
    """
    list | show <name> | auto <text>

    `auto` runs classification and selection only; it does not touch history.
    """
    catalog = dispatcher.catalog
    action, rest = _split("sc:handler", arguments, "list")

    if action == "list":
        lines = ["Available handlers:", ""]
        for h in catalog.handlers_in_order():
            marker = " (default)" if h.name == catalog.default_handler else ""
            lines.append(f"- {h.name}{marker}: {h.title}")
        return "\n".join(lines) + "\n"

    if action == "show":
        if not rest:
            raise ValidationError(code="management.invalid", message="sc:handler show requires a handler name")
        h = catalog.require_handler(rest[0])
        lines = [
            f"Handler: {h.name}",
            f"Identity: {h.identity}",
        ]
        if h.focus:
            lines.append(f"Focus: {h.focus}")
        if h.thinking_mode:
            lines.append(f"Thinking mode: {h.thinking_mode}")
        lines.append("Triggers: " + (", ".join(h.trigger_keywords) or "none"))
        lines.append("Preferred integrations: " + (", ".join(h.preferred_integrations) or "none"))
        lines.append("Specializes in: " + (", ".join(h.specializes_in) or "none"))
        return "\n".join(lines) + "\n"

    if action == "auto":
        text = " ".join(rest)
        context = dispatcher.classifier.classify(text)
        chosen = dispatcher.select(context)
        handler = catalog.require_handler(chosen)
        keyword = matching_keyword(handler, haystack(context))
        lines = [
            f"Auto-selected handler: {chosen}",
            f"Context: {text or '(empty)'}",
            f"Domain: {context.domain}",
            f"Complexity tier: {context.complexity_tier}",
            "Matched keyword: " + (keyword or "none (default handler)"),
        ]
        return "\n".join(lines) + "\n"

    raise _unknown_action("sc:handler", action, ("list", "show", "auto"))


def integration_tool(dispatcher: Dispatcher, arguments: Dict[str, Any]) -> str:
    """
    status | route <command> [handler ...]

    Integrations are described, never contacted.
    """
    catalog = dispatcher.catalog
    action, rest = _split("sc:integration", arguments, "status")

    if action == "status":
        lines = ["Integrations:", ""]
        for info in catalog.integrations.values():
            caps = ", ".join(info.capabilities) or "none"
            lines.append(f"- {info.name}: {info.display_name} | {caps}")
        return "\n".join(lines) + "\n"

    if action == "route":
        if not rest:
            raise ValidationError(code="management.invalid", message="sc:integration route requires a command name")
        command, handlers = rest[0], rest[1:]
        names = route_integrations(catalog, command, handlers)
        via = ", ".join(handlers) if handlers else "no handler"
        return f"Integrations for {command} via {via}: " + (", ".join(names) or "none") + "\n"

    raise _unknown_action("sc:integration", action, ("status", "route"))


def mode_tool(dispatcher: Dispatcher, arguments: Dict[str, Any]) -> str:
    catalog = dispatcher.catalog
    action, rest = _split("sc:mode", arguments, "list")

    if action == "list":
        if not catalog.modes:
            return "No behavioral modes defined.\n"
        lines = ["Behavioral modes:", ""]
        for mode in catalog.modes.values():
            lines.append(f"- {mode.name}: {mode.description}")
        return "\n".join(lines) + "\n"

    if action == "show":
        if not rest:
            raise ValidationError(code="management.invalid", message="sc:mode show requires a mode name")
        mode = catalog.modes.get(rest[0])
        if mode is None:
            raise ValidationError(code="management.invalid", message=f"Unknown mode: {rest[0]}", data={"mode": rest[0]})
        used_by = [c.name for c in catalog.commands.values() if mode.name in c.modes]
        lines = [
            f"Mode: {mode.name}",
            f"Description: {mode.description}",
            "Triggers: " + (", ".join(mode.triggers) or "none"),
            "Used by: " + (", ".join(used_by) or "none"),
        ]
        return "\n".join(lines) + "\n"

    raise _unknown_action("sc:mode", action, ("list", "show"))


def history_tool(dispatcher: Dispatcher, arguments: Dict[str, Any]) -> str:
    action, rest = _split("sc:history", arguments, "recent")
    if action != "recent":
        raise _unknown_action("sc:history", action, ("recent",))

    n = 10
    if rest:
        try:
            n = int(rest[0])
        except ValueError as e:
            raise ValidationError(code="management.invalid", message="sc:history recent expects a number") from e
        if n < 0:
            raise ValidationError(code="management.invalid", message="sc:history recent expects a non-negative number", data={"n": n})

    entries = dispatcher.history.tail(n)
    if not entries:
        return "No routing history yet.\n"
    lines = [f"Last {len(entries)} dispatch(es):", ""]
    for e in entries:
        lines.append(f"- {e.timestamp} {e.command} -> {e.handler} [{', '.join(e.integrations)}] ({e.selection})")
    return "\n".join(lines) + "\n"
