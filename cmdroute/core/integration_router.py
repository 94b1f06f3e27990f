from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Sequence

if TYPE_CHECKING:
    from cmdroute.registry.catalog import Catalog


def route_integrations(catalog: Catalog, command_name: str, handler_names: Sequence[str]) -> List[str]:
    """
    Integrations a command needs when served by the given handlers.

    Order is insertion order, first-seen wins: the command's required integrations,
    then each handler's preferred integrations in `handler_names` order.
    """
    command = catalog.require_command(command_name)
    handlers = [catalog.require_handler(name) for name in handler_names]

    ordered: Dict[str, None] = {}
    for name in command.required_integrations:
        ordered.setdefault(name, None)
    for handler in handlers:
        for name in handler.preferred_integrations:
            ordered.setdefault(name, None)
    return list(ordered)
