from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

from .descriptors import CommandDescriptor, HandlerDescriptor
from .routing_context import RoutingContext

if TYPE_CHECKING:
    from cmdroute.registry.catalog import Catalog


NEXT_STEPS = (
    "Review the routing decision and confirm the approach",
    "Run the command with the selected handler and flags",
    "Validate results and iterate if needed",
)


class ResponseComposer:
    """
    Template expansion only. Every line is derived from its inputs; the catalog is
    consulted for display data (integration names, priority rules, modes, plans).
    """

    def __init__(self, catalog: Catalog):
        self._catalog = catalog

    def compose(
        self,
        command: CommandDescriptor,
        handler: HandlerDescriptor,
        integrations: Sequence[str],
        context: RoutingContext,
        *,
        selection: str = "auto",
        suggested_flags: Sequence[str] = (),
    ) -> str:
        lines: List[str] = []
        lines.append(f"**{command.name}** | {command.description}")
        lines.append("")

        lines.append(f"Command: {command.name}")
        lines.append(f"Target: {context.input_text.strip() or '(none)'}")
        lines.append(f"Category: {command.category}")
        lines.append(f"Complexity: {command.complexity} (request tier: {context.complexity_tier})")
        rule = self._catalog.priority_rules.get(command.priority)
        lines.append(f"Priority: {command.priority}" + (f" - {rule}" if rule else ""))
        lines.append(f"Domain: {context.domain}")
        lines.append("")

        how = "manual override" if selection == "override" else "auto-detected"
        lines.append(f"Handler: {handler.name} ({how})")
        lines.append(f"Identity: {handler.identity}")
        if handler.focus:
            lines.append(f"Focus: {handler.focus}")
        if handler.thinking_mode:
            lines.append(f"Thinking mode: {handler.thinking_mode}")
        lines.append("")

        if integrations:
            lines.append("Integrations:")
            for name in integrations:
                info = self._catalog.integrations.get(name)
                if info is None:
                    lines.append(f"  - {name}")
                    continue
                caps = ", ".join(info.capabilities)
                lines.append(f"  - {name}: {info.display_name}" + (f" ({caps})" if caps else ""))
        else:
            lines.append("Integrations: none")
        if context.integration_needs:
            lines.append("Detected needs: " + ", ".join(context.integration_needs))
        if context.extracted_flags:
            lines.append("Flags: " + " ".join(dict.fromkeys(context.extracted_flags)))
        if suggested_flags:
            lines.append("Suggested flags: " + " ".join(suggested_flags))
        if command.modes:
            lines.append("Modes:")
            for name in command.modes:
                mode = self._catalog.modes.get(name)
                lines.append(f"  - {name}" + (f": {mode.description}" if mode else ""))
        lines.append("")

        plan = self._catalog.plan_for(command)
        if plan:
            lines.append("Execution plan:")
            for i, step in enumerate(plan, start=1):
                lines.append(f"{i}. {step}")
            lines.append("")

        lines.append("Next steps:")
        steps = list(NEXT_STEPS)
        if handler.title:
            steps.append(f"Apply {handler.title} best practices")
        for i, step in enumerate(steps, start=1):
            lines.append(f"{i}. {step}")
        return "\n".join(lines) + "\n"
