from __future__ import annotations

import json
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Optional

from cmdroute.core.errors import ValidationError
from cmdroute.core.executor import ToolExecutor
from cmdroute.infra.logger import get_logger


logger = get_logger("http")


def _json_response(handler: BaseHTTPRequestHandler, status: int, obj: Dict[str, Any]) -> None:
    raw = json.dumps(obj, ensure_ascii=False, indent=2).encode("utf-8")
    handler.send_response(status)
    handler.send_header("Content-Type", "application/json; charset=utf-8")
    handler.send_header("Content-Length", str(len(raw)))
    handler.end_headers()
    handler.wfile.write(raw)


def _read_json_body(handler: BaseHTTPRequestHandler) -> Dict[str, Any]:
    length = handler.headers.get("Content-Length", "0") or "0"
    try:
        n = int(length)
    except ValueError as e:
        raise ValidationError(code="http.invalid", message="Content-Length must be an integer", data={"value": length}) from e
    raw = handler.rfile.read(n) if n > 0 else b""
    if not raw:
        return {}
    try:
        obj = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError(code="http.invalid_json", message="Request body must be valid JSON") from e
    if not isinstance(obj, dict):
        raise ValidationError(code="http.invalid_json", message="Request body must be a JSON object")
    return obj


def _status_for(result: Dict[str, Any]) -> int:
    if not result.get("isError"):
        return 200
    code = str((result.get("error") or {}).get("code", ""))
    if code in ("command.unknown", "handler.unknown"):
        return 404
    if code == "tool.error":
        return 500
    return 400


@dataclass(frozen=True)
class HttpApiConfig:
    host: str = "127.0.0.1"
    port: int = 8787
    # Simple bearer token check when set; other auth schemes belong in a proxy.
    bearer_token: Optional[str] = None


def serve_http_api(config: HttpApiConfig, executor: ToolExecutor) -> ThreadingHTTPServer:
    """
    JSON-over-HTTP transport for the tool boundary.

    Endpoints (all POST):
    - /tools/list  -> {"tools": [...]}
    - /tools/call  {"name", "arguments"} -> {"content": [...]} (isError on failure)
    - /history     {"tail"} -> {"entries": [...]}
    """

    class Handler(BaseHTTPRequestHandler):
        def _auth_ok(self) -> bool:
            if not config.bearer_token:
                return True
            v = self.headers.get("Authorization", "")
            return v == f"Bearer {config.bearer_token}"

        def do_POST(self) -> None:  # noqa: N802
            if not self._auth_ok():
                _json_response(self, 401, {"error": {"code": "auth.unauthorized", "message": "Unauthorized"}})
                return

            try:
                body = _read_json_body(self)
                if self.path == "/tools/list":
                    _json_response(self, 200, {"tools": executor.list_tools()})
                    return

                if self.path == "/tools/call":
                    name = body.get("name")
                    if not isinstance(name, str) or not name:
                        raise ValidationError(code="http.invalid", message="name must be a non-empty string")
                    arguments = body.get("arguments")
                    if arguments is not None and not isinstance(arguments, dict):
                        raise ValidationError(code="http.invalid", message="arguments must be an object when provided")
                    result = executor.call_tool(name, arguments or {})
                    _json_response(self, _status_for(result), result)
                    return

                if self.path == "/history":
                    tail = body.get("tail", 20)
                    if not isinstance(tail, int) or isinstance(tail, bool) or tail < 0:
                        raise ValidationError(code="http.invalid", message="tail must be a non-negative integer")
                    entries = [e.to_dict() for e in executor.history.tail(tail)]
                    _json_response(self, 200, {"entries": entries})
                    return

                _json_response(self, 404, {"error": {"code": "http.not_found", "message": "Not found"}})
            except ValidationError as e:
                _json_response(self, 400, {"error": e.to_dict()})
            except Exception as e:  # noqa: BLE001
                logger.exception("HTTP_ERROR | path=%s", self.path)
                _json_response(self, 500, {"error": {"code": "http.error", "message": "Internal error", "data": {"error": repr(e)}}})

        def log_message(self, fmt: str, *args: Any) -> None:
            logger.debug("HTTP_REQUEST | %s", fmt % args)

    return ThreadingHTTPServer((config.host, config.port), Handler)
