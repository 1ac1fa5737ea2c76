import json

from utils.logger import StructuredLogger


def _lines(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


def test_child_loggers_share_the_request_file(tmp_path, capsys):
    root = StructuredLogger("req-7", "popular_clips", str(tmp_path))
    root.info("Fetching clips", username="foo")
    root.child("download").error("yt-dlp failed", clip_id="abc", path=tmp_path)

    entries = _lines(tmp_path / "req-7.jsonl")

    assert [e["stage"] for e in entries] == ["popular_clips", "download"]
    assert {e["request_id"] for e in entries} == {"req-7"}
    assert entries[1]["level"] == "ERROR"
    assert entries[1]["metadata"] == {"clip_id": "abc", "path": str(tmp_path)}
    assert capsys.readouterr().out.count("req-7") == 2


def test_timing_entry(tmp_path):
    logger = StructuredLogger("req-8", "reconcile", str(tmp_path))
    logger.timing("upstream_query", 1.23456, candidates=4)

    [entry] = _lines(tmp_path / "req-8.jsonl")

    assert entry["level"] == "TIMING"
    assert entry["message"] == "upstream_query completed"
    assert entry["metadata"] == {"candidates": 4, "operation": "upstream_query", "duration_sec": 1.235}
