"""
Cache index: the catalog of cached clips, derived from a directory listing.

There is no index file. Every call re-reads the store.
"""

import logging
from datetime import datetime, timezone
from typing import List

from storage.clip_store import ClipStore
from storage.filenames import is_media_file, parse_clip_id, parse_title
from storage.records import DEFAULT_DURATION, UNKNOWN_CREATOR, ClipRecord, local_url, utc_timestamp

logger = logging.getLogger(__name__)


def _created(timestamp: float) -> str:
    return utc_timestamp(datetime.fromtimestamp(timestamp, tz=timezone.utc))


def build_catalog(store: ClipStore, url_path: str) -> List[ClipRecord]:
    """
    Current cache catalog, newest first.

    A store that cannot be read is treated as empty.
    """
    try:
        files = store.list_files()
    except OSError as e:
        logger.error(f"Error reading existing clips from {store.location}: {e}")
        return []

    media = [f for f in files if is_media_file(f.name)]
    # Name first, then a stable sort on creation time: identical listings
    # always produce identical order.
    media.sort(key=lambda f: f.name)
    media.sort(key=lambda f: f.created, reverse=True)

    return [
        ClipRecord(
            id=parse_clip_id(f.name),
            title=parse_title(f.name),
            creator=UNKNOWN_CREATOR,
            duration=DEFAULT_DURATION,
            views=0,
            created_at=_created(f.created),
            local_file=f.name,
            local_url=local_url(url_path, f.name),
            cached=True,
        )
        for f in media
    ]
