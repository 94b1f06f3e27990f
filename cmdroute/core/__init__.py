from .routing_context import RoutingContext
from .classifier import ContextClassifier, classify
from .selector import select_handler
from .integration_router import route_integrations
from .composer import ResponseComposer
from .dispatcher import Dispatcher, DispatchResult
from .executor import ToolExecutor
from .errors import InvalidCatalog, RouterError, ToolExecutionError, UnknownCommand, UnknownHandler, ValidationError

__all__ = [
  "RoutingContext",
  "ContextClassifier",
  "classify",
  "select_handler",
  "route_integrations",
  "ResponseComposer",
  "Dispatcher",
  "DispatchResult",
  "ToolExecutor",
  "RouterError",
  "UnknownCommand",
  "UnknownHandler",
  "InvalidCatalog",
  "ValidationError",
  "ToolExecutionError",
]
