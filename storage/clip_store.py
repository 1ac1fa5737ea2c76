"""
Clip store: the storage directory behind a small repository interface.

Index, downloader and sweeper only talk to a ClipStore, so tests can swap
the filesystem for an in-memory double.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass
class StoredFile:
    name: str
    created: float   # epoch seconds
    modified: float  # epoch seconds


class ClipStore(ABC):
    """Abstract repository over the flat clips directory."""

    @abstractmethod
    def list_files(self) -> List[StoredFile]:
        """List every file. Raises OSError if the store cannot be read."""
        pass

    @abstractmethod
    def find(self, prefix: str, suffix: str = "") -> Optional[str]:
        """First filename (sorted) starting with ``prefix`` and ending with ``suffix``, or None."""
        pass

    @abstractmethod
    def output_template(self, base_name: str) -> str:
        """Output template handed to the media fetcher."""
        pass

    @abstractmethod
    def delete(self, name: str) -> None:
        pass

    @property
    @abstractmethod
    def location(self) -> str:
        pass


class DirectoryClipStore(ClipStore):
    def __init__(self, clips_dir):
        self.clips_dir = Path(clips_dir)
        if not self.clips_dir.exists():
            self.clips_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created clips directory: {self.clips_dir}")

    @property
    def location(self) -> str:
        return str(self.clips_dir)

    def list_files(self) -> List[StoredFile]:
        files = []
        for entry in sorted(os.listdir(self.clips_dir)):
            path = self.clips_dir / entry
            try:
                stats = path.stat()
            except FileNotFoundError:
                # Deleted between listdir and stat (concurrent sweep)
                continue
            if not path.is_file():
                continue
            files.append(StoredFile(
                name=entry,
                created=getattr(stats, "st_birthtime", stats.st_ctime),
                modified=stats.st_mtime,
            ))
        return files

    def find(self, prefix: str, suffix: str = "") -> Optional[str]:
        for entry in sorted(os.listdir(self.clips_dir)):
            if entry.startswith(prefix) and entry.endswith(suffix):
                return entry
        return None

    def output_template(self, base_name: str) -> str:
        return str(self.clips_dir / f"{base_name}.%(ext)s")

    def delete(self, name: str) -> None:
        (self.clips_dir / name).unlink()
