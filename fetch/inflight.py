# fetch/inflight.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional
import threading
import time


@dataclass
class InFlightDownload:
  clip_id: str
  started_at: float = field(default_factory=time.time)
  done: threading.Event = field(default_factory=threading.Event)


class InFlightRegistry:
  """
  Downloads currently running, keyed by clip id.

  At most one download per id runs at a time; later callers get the
  running entry back and wait on it instead of spawning their own.
  """
  def __init__(self):
    self._lock = threading.Lock()
    self._active: Dict[str, InFlightDownload] = {}

  def claim(self, clip_id: str) -> Optional[InFlightDownload]:
    """Register ``clip_id``. Returns None if claimed, else the running download."""
    with self._lock:
      running = self._active.get(clip_id)
      if running is not None:
        return running
      self._active[clip_id] = InFlightDownload(clip_id=clip_id)
      return None

  def release(self, clip_id: str) -> None:
    with self._lock:
      rec = self._active.pop(clip_id, None)
    if rec is not None:
      rec.done.set()

  def is_active(self, clip_id: str) -> bool:
    with self._lock:
      return clip_id in self._active

  def __len__(self) -> int:
    with self._lock:
      return len(self._active)
