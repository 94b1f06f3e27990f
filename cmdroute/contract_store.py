from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Tuple

import jsonschema
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012


@dataclass(frozen=True)
class SchemaRef:
    name: str
    path: Path
    file_uri: str
    schema: Dict[str, Any]


class ContractStore:
    """
    Loads `contracts/schemas/*.json` and provides validation helpers.

    Notes:
    - Schemas are registered under both their file URI and their $id, so relative
      $ref such as "defs.schema.json#/$defs/identifier" resolve either way.
    - Validation goes through a `referencing.Registry` (no deprecated RefResolver).
    """

    def __init__(self, schemas_dir: Path):
        self._schemas_dir = schemas_dir
        self._schemas: Dict[str, SchemaRef] = {}
        self._registry: Registry = Registry()

    @property
    def schemas_dir(self) -> Path:
        return self._schemas_dir

    def load(self) -> None:
        if not self._schemas_dir.exists():
            raise FileNotFoundError(str(self._schemas_dir))

        registry = Registry()
        for p in sorted(self._schemas_dir.glob("*.json")):
            schema = json.loads(p.read_text(encoding="utf-8"))
            file_uri = p.resolve().as_uri()
            self._schemas[p.name] = SchemaRef(name=p.name, path=p, file_uri=file_uri, schema=schema)

            resource = Resource.from_contents(schema, default_specification=DRAFT202012)
            registry = registry.with_resource(file_uri, resource)
            schema_id = schema.get("$id")
            if isinstance(schema_id, str) and schema_id:
                registry = registry.with_resource(schema_id, resource)
        self._registry = registry

        if "defs.schema.json" not in self._schemas:
            raise FileNotFoundError("defs.schema.json is required in contracts/schemas/")

    def list_schema_names(self) -> List[str]:
        return sorted(self._schemas.keys())

    def _get(self, schema_name: str) -> SchemaRef:
        ref = self._schemas.get(schema_name)
        if ref is None:
            raise KeyError(schema_name)
        return ref

    def check_schemas(self) -> List[Tuple[str, str]]:
        """
        Returns a list of (schema_name, error_message) for invalid schemas.
        """
        errors: List[Tuple[str, str]] = []
        for name in self.list_schema_names():
            ref = self._get(name)
            try:
                jsonschema.Draft202012Validator.check_schema(ref.schema)
            except jsonschema.SchemaError as e:
                errors.append((name, e.message))
        return errors

    def validate(self, schema_name: str, instance: Any) -> List[str]:
        """
        Validates an instance and returns a list of error strings (empty means valid).
        """
        ref = self._get(schema_name)
        validator = jsonschema.Draft202012Validator(ref.schema, registry=self._registry)
        return [_format_error(e) for e in sorted(validator.iter_errors(instance), key=str)]


def validate_instance(schema: Dict[str, Any], instance: Any) -> List[str]:
    """
    Validates against a self-contained schema (no external $ref), e.g. a tool input schema.
    """
    validator = jsonschema.Draft202012Validator(schema)
    return [_format_error(e) for e in sorted(validator.iter_errors(instance), key=str)]


def _format_error(e: jsonschema.ValidationError) -> str:
    where = "/".join(str(p) for p in e.absolute_path)
    return "{}: {}".format(where, e.message) if where else e.message
