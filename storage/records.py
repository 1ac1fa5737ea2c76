from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import quote


DEFAULT_DURATION = 30  # seconds; the filename does not carry it
UNKNOWN_CREATOR = "Cached"


@dataclass
class ClipRecord:
    """
    One clip as seen by a single request.

    Built either from a directory entry (cache-origin, ``cached=True``) or from
    upstream metadata (a candidate carrying ``source_url``). Never persisted;
    the storage directory is the only state.
    """

    id: str
    title: str
    creator: str = UNKNOWN_CREATOR
    duration: int = DEFAULT_DURATION
    views: int = 0
    created_at: str = ""
    source_url: Optional[str] = None
    local_file: Optional[str] = None
    local_url: Optional[str] = None
    cached: bool = False

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "creator": self.creator,
            "duration": self.duration,
            "views": self.views,
            "created": self.created_at,
            "cached": self.cached,
        }
        if self.source_url is not None:
            data["url"] = self.source_url
        if self.local_file is not None:
            data["localFile"] = self.local_file
        if self.local_url is not None:
            data["localUrl"] = self.local_url
        return data


def local_url(url_path: str, filename: str) -> str:
    """Public URL for a file in the clips directory."""
    return f"{url_path.rstrip('/')}/{quote(filename, safe='')}"


def utc_timestamp(moment: datetime) -> str:
    """RFC 3339 UTC with a trailing Z, the form Helix uses for created_at."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
