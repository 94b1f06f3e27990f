import json
import tempfile
import unittest
from pathlib import Path

from cmdroute.core.errors import ValidationError
from cmdroute.trace import HistoryStoreJSONL, Replay, RoutingHistory, RoutingHistoryEntry


def _entry(command: str = "sc:build") -> RoutingHistoryEntry:
    return RoutingHistoryEntry(command=command, handler="system-architect", integrations=("context7",), context={})


class TestRoutingHistory(unittest.TestCase):
    def test_unbounded_by_default(self) -> None:
        h = RoutingHistory()
        for _ in range(5):
            h.append(_entry())
        self.assertIsNone(h.limit)
        self.assertEqual(len(h), 5)

    def test_tail(self) -> None:
        h = RoutingHistory()
        for name in ("sc:a", "sc:b", "sc:c"):
            h.append(_entry(name))
        self.assertEqual([e.command for e in h.tail(2)], ["sc:b", "sc:c"])
        self.assertEqual(h.tail(0), [])
        self.assertEqual(len(h.tail(10)), 3)

    def test_timestamp_is_utc_zulu(self) -> None:
        d = _entry().to_dict()
        self.assertTrue(d["ts"].endswith("Z"))
        self.assertEqual(d["integrations"], ["context7"])

    def test_jsonl_mirror_keeps_everything(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "nested" / "history.jsonl"
            h = RoutingHistory(limit=1, store=HistoryStoreJSONL(path))
            h.append(_entry("sc:a"))
            h.append(_entry("sc:b"))
            self.assertEqual(len(h), 1)

            lines = [l for l in path.read_text(encoding="utf-8").splitlines() if l.strip()]
            self.assertEqual([json.loads(l)["command"] for l in lines], ["sc:a", "sc:b"])
            self.assertEqual([e["command"] for e in Replay(path).iter_entries()], ["sc:a", "sc:b"])

    def test_replay_missing_file_is_empty(self) -> None:
        self.assertEqual(list(Replay(Path("/nonexistent/history.jsonl")).iter_entries()), [])
        self.assertEqual(Replay(Path("/nonexistent/history.jsonl")).tail(5), [])

    def test_failed_mirror_write_leaves_memory_untouched(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            h = RoutingHistory(store=HistoryStoreJSONL(Path(td)))
            with self.assertRaises(OSError):
                h.append(_entry())
            self.assertEqual(len(h), 0)
            self.assertEqual(h.total_appended, 0)

    def test_replay_tail_and_command_filter(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "history.jsonl"
            store = HistoryStoreJSONL(path)
            for name in ("sc:a", "sc:b", "sc:a", "sc:c", "sc:a"):
                store.write(_entry(name).to_dict())

            replay = Replay(path)
            self.assertEqual([e["command"] for e in replay.tail(2)], ["sc:c", "sc:a"])
            self.assertEqual(len(replay.tail(2, command="sc:a")), 2)
            self.assertEqual(len(list(replay.iter_entries(command="sc:a"))), 3)
            self.assertEqual(replay.tail(0), [])

    def test_replay_reports_bad_line(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "history.jsonl"
            path.write_text(json.dumps({"command": "sc:a"}) + "\n\n[1, 2]\n", encoding="utf-8")
            with self.assertRaises(ValidationError) as cm:
                list(Replay(path).iter_entries())
            self.assertEqual(cm.exception.code, "history.invalid")
            self.assertEqual(cm.exception.data["line"], 3)


if __name__ == "__main__":
    unittest.main()
