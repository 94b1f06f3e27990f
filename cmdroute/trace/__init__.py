from .history import RoutingHistory, RoutingHistoryEntry
from .history_store_jsonl import HistoryStoreJSONL
from .replay import Replay

__all__ = ["RoutingHistory", "RoutingHistoryEntry", "HistoryStoreJSONL", "Replay"]
