from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


COMPLEXITY_LEVELS = ("low", "moderate", "high", "advanced")
PRIORITIES = ("CRITICAL", "IMPORTANT", "RECOMMENDED")


@dataclass(frozen=True)
class IntegrationDescriptor:
    name: str
    display_name: str
    capabilities: Tuple[str, ...] = ()


@dataclass(frozen=True)
class HandlerDescriptor:
    name: str
    identity: str
    trigger_keywords: Tuple[str, ...] = ()
    preferred_integrations: Tuple[str, ...] = ()
    specializes_in: Tuple[str, ...] = ()
    focus: str = ""
    thinking_mode: str = ""

    @property
    def title(self) -> str:
        # First segment of "Role | trait | trait".
        return self.identity.split("|", 1)[0].strip()


@dataclass(frozen=True)
class CommandDescriptor:
    name: str
    category: str
    description: str
    flags: Tuple[str, ...] = ()
    allowed_handlers: Tuple[str, ...] = ()
    required_integrations: Tuple[str, ...] = ()
    complexity: str = "moderate"
    priority: str = "RECOMMENDED"
    usage: str = ""
    auto_flags: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()
    plan: Tuple[str, ...] = ()
    modes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ModeDescriptor:
    name: str
    description: str
    triggers: Tuple[str, ...] = ()

