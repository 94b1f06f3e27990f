from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional, Tuple

from .history_store_jsonl import HistoryStoreJSONL


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class RoutingHistoryEntry:
    command: str
    handler: str
    integrations: Tuple[str, ...]
    context: Dict[str, Any]
    selection: str = "auto"
    timestamp: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ts": self.timestamp,
            "command": self.command,
            "handler": self.handler,
            "integrations": list(self.integrations),
            "selection": self.selection,
            "context": dict(self.context),
        }


class RoutingHistory:
    """
    Process-wide, append-only routing log.

    Hard rules:
    - each append happens exactly once, under the lock
    - the JSONL mirror is written first; if it fails, memory is left untouched
    - `limit` > 0 keeps only the newest `limit` entries in memory; the JSONL mirror
      (when configured) keeps everything
    """

    def __init__(self, limit: int = 0, store: Optional[HistoryStoreJSONL] = None):
        self._lock = threading.Lock()
        self._entries: Deque[RoutingHistoryEntry] = deque(maxlen=limit if limit and limit > 0 else None)
        self._store = store
        self._total = 0

    @property
    def limit(self) -> Optional[int]:
        return self._entries.maxlen

    @property
    def total_appended(self) -> int:
        with self._lock:
            return self._total

    def append(self, entry: RoutingHistoryEntry) -> None:
        with self._lock:
            if self._store is not None:
                self._store.write(entry.to_dict())
            self._entries.append(entry)
            self._total += 1

    def entries(self) -> List[RoutingHistoryEntry]:
        with self._lock:
            return list(self._entries)

    def tail(self, n: int) -> List[RoutingHistoryEntry]:
        if n <= 0:
            return []
        with self._lock:
            return list(self._entries)[-n:]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
