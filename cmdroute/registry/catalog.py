from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from cmdroute.contract_store import ContractStore
from cmdroute.core.descriptors import (
    COMPLEXITY_LEVELS,
    PRIORITIES,
    CommandDescriptor,
    HandlerDescriptor,
    IntegrationDescriptor,
    ModeDescriptor,
)
from cmdroute.core.errors import InvalidCatalog, UnknownCommand, UnknownHandler
from cmdroute.resources import default_catalog_path, schemas_dir


logger = logging.getLogger("cmdroute.catalog")


@dataclass(frozen=True)
class Catalog:
    """
    Immutable catalog of commands, handlers and integrations.

    Iteration order of every mapping is the document order of the source file.
    Handler order is significant: the selector breaks ties by it.
    """

    commands: Mapping[str, CommandDescriptor]
    handlers: Mapping[str, HandlerDescriptor]
    integrations: Mapping[str, IntegrationDescriptor]
    default_handler: str
    version: str = ""
    default_plan: Tuple[str, ...] = ()
    priority_rules: Mapping[str, str] = field(default_factory=dict)
    modes: Mapping[str, ModeDescriptor] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("commands", "handlers", "integrations", "priority_rules", "modes"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))
        check_integrity(self)

    def get_command(self, name: str) -> Optional[CommandDescriptor]:
        return self.commands.get(name)

    def require_command(self, name: str) -> CommandDescriptor:
        cmd = self.commands.get(name)
        if cmd is None:
            raise UnknownCommand(code="command.unknown", message=f"Unknown command: {name}", data={"command": name})
        return cmd

    def require_handler(self, name: str) -> HandlerDescriptor:
        h = self.handlers.get(name)
        if h is None:
            raise UnknownHandler(code="handler.unknown", message=f"Unknown handler: {name}", data={"handler": name})
        return h

    def handlers_in_order(self) -> List[HandlerDescriptor]:
        return list(self.handlers.values())

    def plan_for(self, command: CommandDescriptor) -> Tuple[str, ...]:
        return command.plan or self.default_plan


def check_integrity(catalog: Catalog) -> None:
    """
    Referential integrity: every name a descriptor mentions must exist in the catalog.
    Raises InvalidCatalog listing all dangling references at once.
    """
    problems: List[str] = []

    if catalog.default_handler not in catalog.handlers:
        problems.append(f"default_handler references unknown handler: {catalog.default_handler}")

    for cmd in catalog.commands.values():
        for integration in cmd.required_integrations:
            if integration not in catalog.integrations:
                problems.append(f"command {cmd.name} requires unknown integration: {integration}")
        for handler in cmd.allowed_handlers:
            if handler not in catalog.handlers:
                problems.append(f"command {cmd.name} allows unknown handler: {handler}")
        for mode in cmd.modes:
            if mode not in catalog.modes:
                problems.append(f"command {cmd.name} references unknown mode: {mode}")
        if cmd.complexity not in COMPLEXITY_LEVELS:
            problems.append(f"command {cmd.name} has invalid complexity: {cmd.complexity}")
        if cmd.priority not in PRIORITIES:
            problems.append(f"command {cmd.name} has invalid priority: {cmd.priority}")

    for h in catalog.handlers.values():
        for integration in h.preferred_integrations:
            if integration not in catalog.integrations:
                problems.append(f"handler {h.name} prefers unknown integration: {integration}")
        for command in h.specializes_in:
            if command not in catalog.commands:
                problems.append(f"handler {h.name} specializes in unknown command: {command}")

    if problems:
        raise InvalidCatalog(
            code="catalog.invalid",
            message="Catalog has {} dangling reference(s)".format(len(problems)),
            data={"errors": problems},
        )


def _tuple(v: Any) -> Tuple[str, ...]:
    if not isinstance(v, list):
        return ()
    return tuple(str(x) for x in v)


def catalog_from_dict(raw: Dict[str, Any]) -> Catalog:
    integrations = {
        name: IntegrationDescriptor(
            name=name,
            display_name=str(entry.get("display_name", name)),
            capabilities=_tuple(entry.get("capabilities")),
        )
        for name, entry in (raw.get("integrations") or {}).items()
    }
    handlers = {
        name: HandlerDescriptor(
            name=name,
            identity=str(entry.get("identity", "")),
            trigger_keywords=tuple(k.lower() for k in _tuple(entry.get("triggers"))),
            preferred_integrations=_tuple(entry.get("preferred_integrations")),
            specializes_in=_tuple(entry.get("specializes_in")),
            focus=str(entry.get("focus", "")),
            thinking_mode=str(entry.get("thinking_mode", "")),
        )
        for name, entry in (raw.get("handlers") or {}).items()
    }
    commands = {}
    for name, entry in (raw.get("commands") or {}).items():
        auto_flags = entry.get("auto_flags") if isinstance(entry.get("auto_flags"), dict) else {}
        commands[name] = CommandDescriptor(
            name=name,
            category=str(entry.get("category", "")),
            description=str(entry.get("description", "")),
            flags=_tuple(entry.get("flags")),
            allowed_handlers=_tuple(entry.get("handlers")),
            required_integrations=_tuple(entry.get("integrations")),
            complexity=str(entry.get("complexity", "moderate")),
            priority=str(entry.get("priority", "RECOMMENDED")),
            usage=str(entry.get("usage") or f'{name} "[target]" [flags]'),
            auto_flags=tuple((str(k).lower(), _tuple(v)) for k, v in auto_flags.items()),
            plan=_tuple(entry.get("plan")),
            modes=_tuple(entry.get("modes")),
        )
    modes = {
        name: ModeDescriptor(name=name, description=str(entry.get("description", "")), triggers=_tuple(entry.get("triggers")))
        for name, entry in (raw.get("modes") or {}).items()
    }
    return Catalog(
        commands=commands,
        handlers=handlers,
        integrations=integrations,
        default_handler=str(raw.get("default_handler", "")),
        version=str(raw.get("version", "")),
        default_plan=_tuple(raw.get("default_plan")),
        priority_rules={str(k): str(v) for k, v in (raw.get("priority_rules") or {}).items()},
        modes=modes,
    )


def _contracts() -> ContractStore:
    store = ContractStore(schemas_dir())
    store.load()
    return store


def load_catalog(path: Optional[Path] = None) -> Catalog:
    """
    Load, schema-validate and integrity-check a YAML catalog.

    Any failure raises InvalidCatalog; callers must not serve requests without a catalog.
    """
    p = Path(path) if path is not None else default_catalog_path()
    if not p.exists():
        raise InvalidCatalog(code="catalog.missing", message=f"Catalog file not found: {p}", data={"path": str(p)})

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise InvalidCatalog(code="catalog.invalid_yaml", message=f"Catalog is not valid YAML: {p}", data={"error": str(e)}) from e

    errors = _contracts().validate("catalog.schema.json", raw)
    if errors:
        raise InvalidCatalog(
            code="catalog.schema_invalid",
            message=f"Catalog does not validate against catalog.schema.json: {p}",
            data={"errors": errors},
        )

    catalog = catalog_from_dict(raw)
    logger.info(
        "CATALOG_LOADED | path=%s | commands=%d | handlers=%d | integrations=%d",
        p,
        len(catalog.commands),
        len(catalog.handlers),
        len(catalog.integrations),
    )
    return catalog
