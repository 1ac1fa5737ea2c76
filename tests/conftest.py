import os
import tempfile
import time
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# api.main builds a module-level app on import; keep it out of the repo tree
os.environ.setdefault("CLIPS_DIR", tempfile.mkdtemp(prefix="clipcache_test_"))
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="clipcache_logs_"))

from fetch.downloader import DownloadFailure
from storage.clip_store import ClipStore, DirectoryClipStore, StoredFile
from storage.records import ClipRecord


class InMemoryClipStore(ClipStore):
    """Dict-backed stand-in for the clips directory."""

    def __init__(self):
        self.files: Dict[str, StoredFile] = {}
        self.unreadable = False
        self.undeletable = set()

    @property
    def location(self) -> str:
        return "memory://clips"

    def add(self, name: str, created: Optional[float] = None, modified: Optional[float] = None):
        now = time.time()
        created = now if created is None else created
        self.files[name] = StoredFile(name=name, created=created,
                                      modified=created if modified is None else modified)

    def list_files(self) -> List[StoredFile]:
        if self.unreadable:
            raise OSError("permission denied")
        return [self.files[name] for name in sorted(self.files)]

    def find(self, prefix: str, suffix: str = "") -> Optional[str]:
        if self.unreadable:
            raise OSError("permission denied")
        for name in sorted(self.files):
            if name.startswith(prefix) and name.endswith(suffix):
                return name
        return None

    def output_template(self, base_name: str) -> str:
        return f"{base_name}.%(ext)s"

    def delete(self, name: str) -> None:
        if name in self.undeletable:
            raise PermissionError(name)
        if name not in self.files:
            raise FileNotFoundError(name)
        del self.files[name]


class FakeFetcher:
    """Media fetcher that writes an empty clip instead of running yt-dlp."""

    def __init__(self, store, failing=(), silent=()):
        self.store = store
        self.failing = set(failing)    # URLs that exit non-zero
        self.silent = set(silent)      # URLs that exit 0 but write nothing
        self.calls = []

    def fetch_media(self, source_url: str, output_template: str) -> None:
        self.calls.append((source_url, output_template))
        if source_url in self.failing:
            raise DownloadFailure("yt-dlp exited with status 1", stderr="ERROR: boom")
        if source_url in self.silent:
            return
        target = output_template.replace("%(ext)s", "mp4")
        if isinstance(self.store, InMemoryClipStore):
            self.store.add(target)
        else:
            Path(target).write_bytes(b"\x00")


class FakeSource:
    """Upstream clip source returning a fixed candidate list."""

    def __init__(self, candidates=None, error: Optional[Exception] = None):
        self.candidates = list(candidates or [])
        self.error = error
        self.calls = []

    def popular_clips(self, username, limit=15, period="week"):
        self.calls.append((username, limit, period))
        if self.error is not None:
            raise self.error
        return list(self.candidates)


def make_candidate(clip_id: str, title: str = "Great play") -> ClipRecord:
    return ClipRecord(
        id=clip_id,
        title=title,
        creator="someviewer",
        duration=28,
        views=1200,
        created_at="2026-10-18T12:00:00Z",
        source_url=f"https://clips.twitch.tv/{clip_id}",
    )


def fill_store(store: InMemoryClipStore, count: int, start: int = 0):
    """Add ``count`` cached clips, newest has the highest index."""
    base = time.time() - 3600
    for i in range(start, start + count):
        store.add(f"cached{i}-Clip_{i}.mp4", created=base + i)


@pytest.fixture
def memory_store():
    return InMemoryClipStore()


@pytest.fixture
def clips_dir(tmp_path):
    path = tmp_path / "downloaded_clips"
    path.mkdir()
    return path


@pytest.fixture
def dir_store(clips_dir):
    return DirectoryClipStore(clips_dir)
