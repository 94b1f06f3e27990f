from __future__ import annotations

import argparse
import dataclasses
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv

from cmdroute.bootstrap_tools import build_dispatcher, build_executor, build_tool_registry
from cmdroute.config import RouterConfig
from cmdroute.contract_store import ContractStore
from cmdroute.core.errors import RouterError, ValidationError
from cmdroute.core.executor import ToolExecutor
from cmdroute.http_api import HttpApiConfig, serve_http_api
from cmdroute.infra.logger import setup_logging
from cmdroute.resources import schemas_dir
from cmdroute.trace.replay import Replay


def _maybe_load_dotenv() -> None:
    # `.env` in the working directory; already-set variables win.
    load_dotenv(Path.cwd() / ".env", override=False)


def _format_cli_error(e: Exception) -> str:
    """
    Print-friendly error formatting for CLI commands.
    - Always includes code/message (via __str__) when it's a RouterError
    - Includes structured `data` payload when present
    """
    if isinstance(e, RouterError) and isinstance(e.data, dict) and e.data:
        return str(e) + "\n" + json.dumps(e.data, ensure_ascii=False, indent=2)
    return str(e)


def _config_from_args(args: argparse.Namespace) -> RouterConfig:
    cfg = RouterConfig.from_env()
    overrides: Dict[str, Any] = {}
    if args.catalog:
        overrides["catalog_path"] = Path(args.catalog).expanduser()
    if args.history_path:
        overrides["history_path"] = Path(args.history_path).expanduser()
    if args.log_level:
        overrides["log_level"] = args.log_level.upper()
    return dataclasses.replace(cfg, **overrides) if overrides else cfg


def _read_text_arg(value: str | None) -> str:
    if value is not None:
        return value
    if sys.stdin.isatty():
        return ""
    return sys.stdin.read()


def _print_tool_result(result: Dict[str, Any], *, as_json: bool) -> int:
    if as_json:
        print(json.dumps(result, ensure_ascii=False, indent=2))
    else:
        for item in result.get("content", []):
            if item.get("type") == "text":
                sys.stdout.write(item.get("text", ""))
    return 1 if result.get("isError") else 0


def cmd_check_catalog(args: argparse.Namespace) -> int:
    store = ContractStore(schemas_dir())
    store.load()
    schema_errors = store.check_schemas()
    if schema_errors:
        print("Schema validation failed:")
        for name, err in schema_errors:
            print("- {}: {}".format(name, err))
        return 1

    dispatcher = build_dispatcher(_config_from_args(args))
    catalog = dispatcher.catalog
    # Management tool names must not collide with catalog commands.
    build_tool_registry(dispatcher)
    print(
        "Catalog OK: {} commands, {} handlers, {} integrations (default handler: {})".format(
            len(catalog.commands), len(catalog.handlers), len(catalog.integrations), catalog.default_handler
        )
    )
    return 0


def cmd_list_tools(args: argparse.Namespace) -> int:
    executor = build_executor(_config_from_args(args))
    tools = executor.list_tools()
    if args.json:
        print(json.dumps(tools, ensure_ascii=False, indent=2))
    else:
        for t in tools:
            print("{name} - {description}".format(name=t["name"], description=t["description"].split(" | ", 1)[0]))
    return 0


def cmd_list_handlers(args: argparse.Namespace) -> int:
    catalog = build_dispatcher(_config_from_args(args)).catalog
    handlers = catalog.handlers_in_order()
    if args.json:
        out = [
            {
                "name": h.name,
                "identity": h.identity,
                "triggers": list(h.trigger_keywords),
                "preferred_integrations": list(h.preferred_integrations),
                "specializes_in": list(h.specializes_in),
                "default": h.name == catalog.default_handler,
            }
            for h in handlers
        ]
        print(json.dumps(out, ensure_ascii=False, indent=2))
    else:
        for h in handlers:
            print("{name} - {title}".format(name=h.name, title=h.title))
    return 0


def cmd_classify(args: argparse.Namespace) -> int:
    dispatcher = build_dispatcher(_config_from_args(args))
    text = _read_text_arg(args.text)
    context = dispatcher.classifier.classify(text)
    out = {"context": context.to_dict(), "handler": dispatcher.select(context)}
    print(json.dumps(out, ensure_ascii=False, indent=2))
    return 0


def cmd_dispatch(args: argparse.Namespace) -> int:
    executor = build_executor(_config_from_args(args))
    arguments: Dict[str, Any] = {"input": _read_text_arg(args.input)}
    if args.flag:
        arguments["flags"] = list(args.flag)
    if args.handler:
        arguments["handlerOverride"] = args.handler
    return _print_tool_result(executor.call_tool(args.command, arguments), as_json=args.json)


def cmd_call_tool(args: argparse.Namespace) -> int:
    executor: ToolExecutor = build_executor(_config_from_args(args))
    arguments: Any = {}
    if args.arguments:
        try:
            arguments = json.loads(args.arguments)
        except json.JSONDecodeError as e:
            raise ValidationError(code="cli.invalid", message="--arguments must be valid JSON") from e
    return _print_tool_result(executor.call_tool(args.name, arguments), as_json=args.json)


def cmd_show_history(args: argparse.Namespace) -> int:
    replay = Replay(Path(args.history))

    if args.validate:
        store = ContractStore(schemas_dir())
        store.load()
        bad = 0
        for i, e in enumerate(replay.iter_entries(), start=1):
            for err in store.validate("history_entry.schema.json", e):
                print("entry {}: {}".format(i, err))
                bad += 1
        if bad:
            return 1

    if args.tail is not None and args.tail >= 0:
        entries = replay.tail(args.tail, command=args.command or None)
    else:
        entries = list(replay.iter_entries(command=args.command or None))

    for e in entries:
        if args.pretty:
            print(json.dumps(e, ensure_ascii=False, indent=2))
        else:
            print(json.dumps(e, ensure_ascii=False))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    executor = build_executor(_config_from_args(args))
    token = args.bearer_token or os.environ.get("CMDROUTE_BEARER_TOKEN") or None
    server = serve_http_api(HttpApiConfig(host=args.host, port=args.port, bearer_token=token), executor)
    host, port = server.server_address[:2]
    print(f"cmdroute listening on http://{host}:{port}", file=sys.stderr)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
    return 0


def main(argv=None) -> int:
    if str(os.environ.get("CMDROUTE_DISABLE_DOTENV", "")).strip().lower() not in ("1", "true", "yes"):
        _maybe_load_dotenv()
    parser = argparse.ArgumentParser(prog="cmdroute", description="Command routing facade")
    parser.add_argument("--catalog", help="Catalog YAML path (default: packaged catalog or $CMDROUTE_CATALOG)")
    parser.add_argument("--history-path", help="Mirror routing history to this JSONL file")
    parser.add_argument("--log-level", help="DEBUG|INFO|WARNING|ERROR (default: $CMDROUTE_LOG_LEVEL or INFO)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_check = sub.add_parser("check-catalog", help="Validate schemas and load the catalog")
    p_check.set_defaults(func=cmd_check_catalog)

    p_list_tools = sub.add_parser("list-tools", help="List routable tools (commands + management)")
    p_list_tools.add_argument("--json", action="store_true", help="Output JSON")
    p_list_tools.set_defaults(func=cmd_list_tools)

    p_list_handlers = sub.add_parser("list-handlers", help="List handlers in selection order")
    p_list_handlers.add_argument("--json", action="store_true", help="Output JSON")
    p_list_handlers.set_defaults(func=cmd_list_handlers)

    p_classify = sub.add_parser("classify", help="Classify text and show the handler it would select")
    p_classify.add_argument("--text", help="Input text. If omitted, read from stdin.")
    p_classify.set_defaults(func=cmd_classify)

    p_dispatch = sub.add_parser("dispatch", help="Dispatch a catalog command")
    p_dispatch.add_argument("--command", required=True, help="Command name (e.g. sc:analyze)")
    p_dispatch.add_argument("--input", help="Free-text input. If omitted, read from stdin.")
    p_dispatch.add_argument("--flag", action="append", default=[], help="Command flag (repeatable)")
    p_dispatch.add_argument("--handler", help="Handler override")
    p_dispatch.add_argument("--json", action="store_true", help="Output the raw tool response JSON")
    p_dispatch.set_defaults(func=cmd_dispatch)

    p_call = sub.add_parser("call-tool", help="Call any tool with a JSON arguments object")
    p_call.add_argument("--name", required=True, help="Tool name")
    p_call.add_argument("--arguments", help="JSON object of tool arguments")
    p_call.add_argument("--json", action="store_true", help="Output the raw tool response JSON")
    p_call.set_defaults(func=cmd_call_tool)

    p_history = sub.add_parser("show-history", help="Show routing history from a JSONL mirror")
    p_history.add_argument("--history", required=True, help="History path (jsonl)")
    p_history.add_argument("--command", help="Filter by command name")
    p_history.add_argument("--tail", type=int, help="Show only last N entries")
    p_history.add_argument("--pretty", action="store_true", help="Pretty-print each entry as JSON")
    p_history.add_argument("--validate", action="store_true", help="Validate entries against history_entry.schema.json first")
    p_history.set_defaults(func=cmd_show_history)

    p_serve = sub.add_parser("serve", help="Serve the tool boundary over HTTP")
    p_serve.add_argument("--host", default="127.0.0.1", help="Bind host (default: 127.0.0.1)")
    p_serve.add_argument("--port", type=int, default=8787, help="Bind port (default: 8787)")
    p_serve.add_argument("--bearer-token", help="Require this bearer token (default: $CMDROUTE_BEARER_TOKEN)")
    p_serve.set_defaults(func=cmd_serve)

    ns = parser.parse_args(argv)
    try:
        setup_logging(level=_config_from_args(ns).log_level)
        return int(ns.func(ns))
    except Exception as e:  # noqa: BLE001
        print(_format_cli_error(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
