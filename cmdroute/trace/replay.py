from __future__ import annotations

import json
from collections import deque
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from cmdroute.core.errors import ValidationError


class Replay:
    """
    Reads a mirrored routing history back for `show-history`.

    A missing file reads as empty history. A line that is not a JSON object raises
    `ValidationError(code="history.invalid")` naming the line number.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    def iter_entries(self, command: Optional[str] = None) -> Iterator[Dict[str, Any]]:
        if not self._path.exists():
            return
        with self._path.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                entry = self._decode(line, lineno)
                if command is None or entry.get("command") == command:
                    yield entry

    def tail(self, n: int, command: Optional[str] = None) -> List[Dict[str, Any]]:
        if n <= 0:
            return []
        return list(deque(self.iter_entries(command), maxlen=n))

    def _decode(self, line: str, lineno: int) -> Dict[str, Any]:
        try:
            entry = json.loads(line)
        except json.JSONDecodeError as e:
            raise ValidationError(
                code="history.invalid",
                message=f"{self._path}:{lineno}: not valid JSON",
                data={"path": str(self._path), "line": lineno},
            ) from e
        if not isinstance(entry, dict):
            raise ValidationError(
                code="history.invalid",
                message=f"{self._path}:{lineno}: entry must be a JSON object",
                data={"path": str(self._path), "line": lineno},
            )
        return entry
