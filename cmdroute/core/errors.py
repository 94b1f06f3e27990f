from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RouterError(Exception):
    code: str
    message: str
    data: dict[str, Any] | None = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "data": self.data or {}}


class ValidationError(RouterError):
    pass


class UnknownCommand(RouterError):
    pass


class UnknownHandler(RouterError):
    pass


class InvalidCatalog(RouterError):
    pass


class ToolExecutionError(RouterError):
    pass
