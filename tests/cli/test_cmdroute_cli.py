import io
import json
import logging
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

import yaml

from cmdroute.cli.main import main as cli_main


_MINIMAL_CATALOG = {
    "version": "1",
    "default_handler": "generalist",
    "integrations": {"seq": {"display_name": "Seq", "capabilities": []}},
    "handlers": {"generalist": {"identity": "Generalist", "triggers": [], "preferred_integrations": ["seq"]}},
    "commands": {"x:go": {"category": "misc", "description": "Go somewhere", "complexity": "low", "priority": "RECOMMENDED"}},
}


def _run(argv: list) -> tuple:
    buf = io.StringIO()
    with redirect_stdout(buf):
        rc = cli_main(argv)
    return rc, buf.getvalue()


class TestCmdrouteCli(unittest.TestCase):
    def setUp(self) -> None:
        self._old_env = {k: os.environ.get(k) for k in ("CMDROUTE_DISABLE_DOTENV", "CMDROUTE_CATALOG", "CMDROUTE_HISTORY_PATH")}
        os.environ["CMDROUTE_DISABLE_DOTENV"] = "1"
        os.environ.pop("CMDROUTE_CATALOG", None)
        os.environ.pop("CMDROUTE_HISTORY_PATH", None)

    def tearDown(self) -> None:
        # main() installs a stderr handler bound to the current stream.
        logging.getLogger("cmdroute").handlers.clear()
        for k, v in self._old_env.items():
            if v is None:
                os.environ.pop(k, None)
            else:
                os.environ[k] = v

    def test_check_catalog(self) -> None:
        rc, out = _run(["check-catalog"])
        self.assertEqual(rc, 0)
        self.assertIn("Catalog OK", out)
        self.assertIn("default handler: system-architect", out)

    def test_check_catalog_reports_missing_file(self) -> None:
        rc, out = _run(["--catalog", "/nonexistent/catalog.yml", "check-catalog"])
        self.assertEqual(rc, 1)
        self.assertIn("catalog.missing", out)

    def test_list_tools_outputs_json(self) -> None:
        rc, out = _run(["list-tools", "--json"])
        self.assertEqual(rc, 0)
        names = [t["name"] for t in json.loads(out)]
        self.assertIn("sc:analyze", names)
        self.assertIn("sc:handler", names)

    def test_list_handlers(self) -> None:
        rc, out = _run(["list-handlers", "--json"])
        self.assertEqual(rc, 0)
        data = json.loads(out)
        self.assertEqual(data[0]["name"], "security-engineer")
        self.assertEqual([h["name"] for h in data if h["default"]], ["system-architect"])

    def test_classify(self) -> None:
        rc, out = _run(["classify", "--text", "Comprehensive API review --deep"])
        self.assertEqual(rc, 0)
        obj = json.loads(out)
        self.assertEqual(obj["context"]["complexity_tier"], "advanced")
        self.assertEqual(obj["context"]["domain"], "backend")
        self.assertEqual(obj["context"]["extracted_flags"], ["--deep"])
        self.assertEqual(obj["handler"], "backend-architect")

    def test_dispatch_and_show_history(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            history = str(Path(td) / "history.jsonl")
            rc, out = _run(
                ["--history-path", history, "dispatch", "--command", "sc:analyze", "--input", "check for security vulnerabilities"]
            )
            self.assertEqual(rc, 0)
            self.assertIn("Handler: security-engineer (auto-detected)", out)

            rc, _ = _run(["--history-path", history, "dispatch", "--command", "sc:git", "--input", "", "--handler", "devops-architect"])
            self.assertEqual(rc, 0)

            rc, out = _run(["show-history", "--history", history, "--validate", "--tail", "1"])
            self.assertEqual(rc, 0)
            lines = [l for l in out.splitlines() if l.strip()]
            self.assertEqual(len(lines), 1)
            obj = json.loads(lines[0])
            self.assertEqual(obj["command"], "sc:git")
            self.assertEqual(obj["selection"], "override")

            rc, out = _run(["show-history", "--history", history, "--command", "sc:analyze"])
            self.assertEqual(json.loads(out.strip())["handler"], "security-engineer")

    def test_show_history_validation_failure(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "history.jsonl"
            p.write_text(json.dumps({"command": "sc:analyze"}) + "\n", encoding="utf-8")
            rc, out = _run(["show-history", "--history", str(p), "--validate"])
            self.assertEqual(rc, 1)
            self.assertIn("entry 1:", out)

    def test_show_history_reports_corrupt_line(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "history.jsonl"
            p.write_text("{truncated\n", encoding="utf-8")
            rc, out = _run(["show-history", "--history", str(p)])
            self.assertEqual(rc, 1)
            self.assertIn("history.invalid", out)

    def test_dispatch_unknown_command(self) -> None:
        rc, out = _run(["dispatch", "--command", "sc:nope", "--input", "", "--json"])
        self.assertEqual(rc, 1)
        obj = json.loads(out)
        self.assertTrue(obj["isError"])
        self.assertEqual(obj["error"]["code"], "command.unknown")

    def test_call_tool(self) -> None:
        rc, out = _run(["call-tool", "--name", "sc:integration", "--arguments", json.dumps({"input": "route sc:test"})])
        self.assertEqual(rc, 0)
        self.assertEqual(out, "Integrations for sc:test via no handler: playwright\n")

        rc, out = _run(["call-tool", "--name", "sc:handler", "--arguments", "{not json"])
        self.assertEqual(rc, 1)
        self.assertIn("cli.invalid", out)

    def test_catalog_from_env_file_in_cwd(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            td_path = Path(td)
            catalog_path = td_path / "catalog.yml"
            catalog_path.write_text(yaml.safe_dump(_MINIMAL_CATALOG), encoding="utf-8")
            (td_path / ".env").write_text(f'CMDROUTE_CATALOG="{catalog_path}"\n', encoding="utf-8")

            old_cwd = os.getcwd()
            try:
                # Enable dotenv loading for this test only.
                os.environ.pop("CMDROUTE_DISABLE_DOTENV", None)
                os.chdir(td)
                rc, out = _run(["list-tools", "--json"])
            finally:
                os.chdir(old_cwd)
                os.environ["CMDROUTE_DISABLE_DOTENV"] = "1"

            self.assertEqual(rc, 0)
            names = [t["name"] for t in json.loads(out)]
            self.assertEqual(names, ["x:go", "sc:handler", "sc:integration", "sc:mode", "sc:history"])


if __name__ == "__main__":
    unittest.main()
