"""
Utility: JSON-lines logger scoped to one clip request.

Every line carries the request id and the stage (reconcile, download, ...)
so a single /popular-clips call can be followed across components.
"""

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


class StructuredLogger:
    def __init__(self, request_id: str, node_id: Optional[str] = None, log_dir: str = "/tmp/logs"):
        self.request_id = request_id
        self.node_id = node_id
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = self.log_dir / f"{request_id}.jsonl"

    def child(self, node_id: str) -> "StructuredLogger":
        """Logger for another stage of the same request; shares the file."""
        return StructuredLogger(self.request_id, node_id, str(self.log_dir))

    def _entry(self, level: str, message: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": self.request_id,
            "stage": self.node_id,
            "level": level,
            "message": message,
            "metadata": metadata,
        }

    def _emit(self, level: str, message: str, metadata: Optional[Dict[str, Any]] = None):
        # default=str: metadata may hold Paths and exceptions
        line = json.dumps(self._entry(level, message, metadata or {}), default=str)
        with self.log_file.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
        # Mirrored on stdout for uvicorn / container logs
        print(line, file=sys.stdout, flush=True)

    def info(self, message: str, **metadata):
        self._emit("INFO", message, metadata)

    def warning(self, message: str, **metadata):
        self._emit("WARNING", message, metadata)

    def error(self, message: str, **metadata):
        self._emit("ERROR", message, metadata)

    def debug(self, message: str, **metadata):
        self._emit("DEBUG", message, metadata)

    def timing(self, operation: str, duration_sec: float, **metadata):
        """Wall time of one upstream query or one yt-dlp run."""
        self._emit("TIMING", f"{operation} completed", {
            **metadata,
            "operation": operation,
            "duration_sec": round(duration_sec, 3),
        })
