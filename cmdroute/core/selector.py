from __future__ import annotations

import logging
from typing import Optional, Sequence

from .descriptors import HandlerDescriptor
from .routing_context import RoutingContext


logger = logging.getLogger("cmdroute.dispatch")


def haystack(context: RoutingContext) -> str:
    return "{} {}".format(context.extracted_command or "", context.serialize()).lower()


def matching_keyword(handler: HandlerDescriptor, text: str) -> Optional[str]:
    for keyword in handler.trigger_keywords:
        k = keyword.lower()
        if k and k in text:
            return k
    return None


def select_handler(context: RoutingContext, handlers: Sequence[HandlerDescriptor], *, default: str) -> str:
    """
    First handler (in the given catalog order) whose trigger keyword occurs in the
    context wins; otherwise `default`.

    This is a linear scan, not a ranking: reordering `handlers` changes tie-breaks.
    """
    text = haystack(context)
    for handler in handlers:
        keyword = matching_keyword(handler, text)
        if keyword is not None:
            logger.debug("HANDLER_MATCH | handler=%s | keyword=%s", handler.name, keyword)
            return handler.name
    logger.debug("HANDLER_DEFAULT | handler=%s", default)
    return default
