from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Tuple

from cmdroute.trace.history import RoutingHistory, RoutingHistoryEntry

from .classifier import ContextClassifier
from .composer import ResponseComposer
from .errors import ValidationError
from .flag_inference import infer_flags
from .integration_router import route_integrations
from .routing_context import RoutingContext
from .selector import select_handler

if TYPE_CHECKING:
    from cmdroute.registry.catalog import Catalog


logger = logging.getLogger("cmdroute.dispatch")


@dataclass(frozen=True)
class DispatchResult:
    text: str
    command: str
    handler: str
    integrations: Tuple[str, ...]
    context: RoutingContext
    selection: str
    suggested_flags: Tuple[str, ...] = ()


def _parse_args(args: Optional[Mapping[str, Any]]) -> Tuple[str, List[str], Optional[str]]:
    if args is None:
        return "", [], None
    if not isinstance(args, Mapping):
        raise ValidationError(code="dispatch.invalid", message="args must be an object")

    raw_input = args.get("input")
    if raw_input is None:
        raw_input = ""
    if not isinstance(raw_input, str):
        raise ValidationError(code="dispatch.invalid", message="input must be a string when provided")

    flags = args.get("flags")
    if flags is None:
        flags = []
    if not isinstance(flags, (list, tuple)) or any(not isinstance(f, str) for f in flags):
        raise ValidationError(code="dispatch.invalid", message="flags must be an array of strings when provided")

    override = args.get("handlerOverride", args.get("handler_override"))
    if override is not None and (not isinstance(override, str) or not override):
        raise ValidationError(code="dispatch.invalid", message="handlerOverride must be a non-empty string when provided")
    return raw_input, list(flags), override


class Dispatcher:
    """
    Drives one request through classify -> select -> route -> compose.

    Hard rules:
    - the only shared-state mutation is one history append per successful dispatch
    - a manual handler override always wins over auto-detection
    """

    def __init__(
        self,
        catalog: Catalog,
        history: Optional[RoutingHistory] = None,
        classifier: Optional[ContextClassifier] = None,
    ):
        self._catalog = catalog
        self._history = history if history is not None else RoutingHistory()
        self._classifier = classifier if classifier is not None else ContextClassifier()
        self._composer = ResponseComposer(catalog)

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def history(self) -> RoutingHistory:
        return self._history

    @property
    def classifier(self) -> ContextClassifier:
        return self._classifier

    def select(self, context: RoutingContext) -> str:
        return select_handler(context, self._catalog.handlers_in_order(), default=self._catalog.default_handler)

    def dispatch(self, command_name: str, args: Optional[Mapping[str, Any]] = None) -> DispatchResult:
        started = time.perf_counter()
        command = self._catalog.require_command(command_name)
        raw_input, flags, override = _parse_args(args)
        logger.info("DISPATCH_START | command=%s | input=%s", command.name, raw_input[:100])

        context = self._classifier.classify(raw_input).with_flags(flags)
        if override is not None:
            handler = self._catalog.require_handler(override)
            selection = "override"
        else:
            handler = self._catalog.require_handler(self.select(context))
            selection = "auto"
        logger.info("HANDLER_SELECTED | command=%s | handler=%s | selection=%s", command.name, handler.name, selection)

        integrations = route_integrations(self._catalog, command.name, [handler.name])
        suggested = infer_flags(command, context)
        text = self._composer.compose(
            command,
            handler,
            integrations,
            context,
            selection=selection,
            suggested_flags=suggested,
        )

        self._history.append(
            RoutingHistoryEntry(
                command=command.name,
                handler=handler.name,
                integrations=tuple(integrations),
                context=context.to_dict(),
                selection=selection,
            )
        )
        logger.info(
            "DISPATCH_COMPLETE | command=%s | handler=%s | integrations=%s | duration_ms=%.2f",
            command.name,
            handler.name,
            ",".join(integrations),
            (time.perf_counter() - started) * 1000,
        )
        return DispatchResult(
            text=text,
            command=command.name,
            handler=handler.name,
            integrations=tuple(integrations),
            context=context,
            selection=selection,
            suggested_flags=tuple(suggested),
        )
