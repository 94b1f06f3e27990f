import tempfile
import unittest
from pathlib import Path

import yaml

from cmdroute.core.errors import InvalidCatalog, UnknownCommand, UnknownHandler
from cmdroute.registry.catalog import catalog_from_dict, load_catalog
from cmdroute.resources import default_catalog_path


def _minimal() -> dict:
    return {
        "version": "1",
        "default_handler": "generalist",
        "integrations": {"seq": {"display_name": "Seq", "capabilities": ["reasoning"]}},
        "handlers": {
            "generalist": {"identity": "Generalist | Does everything", "triggers": ["general"], "preferred_integrations": ["seq"]}
        },
        "commands": {
            "x:go": {"category": "misc", "description": "Go", "complexity": "low", "priority": "CRITICAL", "integrations": ["seq"]}
        },
    }


class TestDefaultCatalog(unittest.TestCase):
    def test_default_catalog_loads(self) -> None:
        cat = load_catalog()
        self.assertIn("sc:analyze", cat.commands)
        self.assertIn("sequential", cat.get_command("sc:analyze").required_integrations)
        self.assertIn(cat.default_handler, cat.handlers)
        self.assertEqual(cat.handlers_in_order()[0].name, "security-engineer")
        self.assertIsNone(cat.get_command("sc:missing"))

    def test_catalog_is_read_only(self) -> None:
        cat = load_catalog()
        with self.assertRaises(TypeError):
            cat.commands["sc:new"] = cat.commands["sc:analyze"]  # type: ignore[index]

    def test_require_lookups(self) -> None:
        cat = load_catalog()
        with self.assertRaises(UnknownCommand):
            cat.require_command("sc:missing")
        with self.assertRaises(UnknownHandler):
            cat.require_handler("missing")

    def test_management_names_are_not_catalog_commands(self) -> None:
        cat = load_catalog()
        for name in ("sc:handler", "sc:integration", "sc:mode", "sc:history"):
            self.assertNotIn(name, cat.commands)


class TestCatalogIntegrity(unittest.TestCase):
    def test_minimal_catalog(self) -> None:
        cat = catalog_from_dict(_minimal())
        cmd = cat.require_command("x:go")
        self.assertEqual(cmd.usage, 'x:go "[target]" [flags]')
        self.assertEqual(cat.require_handler("generalist").title, "Generalist")
        self.assertEqual(cat.plan_for(cmd), ())

    def test_dangling_references_are_all_reported(self) -> None:
        raw = _minimal()
        raw["default_handler"] = "ghost"
        raw["commands"]["x:go"]["integrations"] = ["nowhere"]
        raw["commands"]["x:go"]["handlers"] = ["phantom"]
        raw["handlers"]["generalist"]["preferred_integrations"] = ["void"]
        raw["handlers"]["generalist"]["specializes_in"] = ["x:nothing"]
        with self.assertRaises(InvalidCatalog) as cm:
            catalog_from_dict(raw)
        self.assertEqual(cm.exception.code, "catalog.invalid")
        self.assertEqual(len(cm.exception.data["errors"]), 5)

    def test_invalid_enum_values(self) -> None:
        raw = _minimal()
        raw["commands"]["x:go"]["complexity"] = "extreme"
        with self.assertRaises(InvalidCatalog):
            catalog_from_dict(raw)


class TestLoadCatalog(unittest.TestCase):
    def _write(self, td: str, content: str) -> Path:
        p = Path(td) / "catalog.yml"
        p.write_text(content, encoding="utf-8")
        return p

    def test_load_from_path(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = self._write(td, yaml.safe_dump(_minimal()))
            cat = load_catalog(p)
            self.assertEqual(list(cat.commands), ["x:go"])

    def test_missing_file(self) -> None:
        with self.assertRaises(InvalidCatalog) as cm:
            load_catalog(Path("/nonexistent/catalog.yml"))
        self.assertEqual(cm.exception.code, "catalog.missing")

    def test_bad_yaml(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = self._write(td, "commands: [unclosed\n")
            with self.assertRaises(InvalidCatalog) as cm:
                load_catalog(p)
            self.assertEqual(cm.exception.code, "catalog.invalid_yaml")

    def test_schema_violation(self) -> None:
        raw = _minimal()
        raw["commands"]["x:go"]["unexpected"] = True
        del raw["integrations"]["seq"]["display_name"]
        with tempfile.TemporaryDirectory() as td:
            p = self._write(td, yaml.safe_dump(raw))
            with self.assertRaises(InvalidCatalog) as cm:
                load_catalog(p)
            self.assertEqual(cm.exception.code, "catalog.schema_invalid")
            self.assertGreaterEqual(len(cm.exception.data["errors"]), 2)

    def test_dangling_reference_from_file(self) -> None:
        raw = _minimal()
        raw["commands"]["x:go"]["integrations"] = ["nowhere"]
        with tempfile.TemporaryDirectory() as td:
            p = self._write(td, yaml.safe_dump(raw))
            with self.assertRaises(InvalidCatalog) as cm:
                load_catalog(p)
            self.assertEqual(cm.exception.code, "catalog.invalid")

    def test_default_path_is_packaged(self) -> None:
        self.assertTrue(default_catalog_path().exists())


if __name__ == "__main__":
    unittest.main()
