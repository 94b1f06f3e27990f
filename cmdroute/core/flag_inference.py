from __future__ import annotations

from typing import Dict, List

from .descriptors import CommandDescriptor
from .routing_context import RoutingContext


def infer_flags(command: CommandDescriptor, context: RoutingContext) -> List[str]:
    """
    Flags suggested by the command's keyword table for this input.

    Suggestions only: nothing downstream changes behavior because of them.
    Flags the caller already passed are not suggested again.
    """
    text = context.input_text.lower()
    present = context.flag_set
    out: Dict[str, None] = {}
    for keyword, flags in command.auto_flags:
        if keyword and keyword in text:
            for flag in flags:
                if flag not in present:
                    out.setdefault(flag, None)
    return list(out)
