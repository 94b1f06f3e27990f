from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping


class HistoryStoreJSONL:
    """Durable mirror of routing history: one JSON object per line, oldest first."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def write(self, record: Mapping[str, Any]) -> None:
        # Encoded before the file is opened: a record that fails to encode writes nothing.
        line = json.dumps(dict(record), ensure_ascii=False, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
