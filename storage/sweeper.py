"""
Retention sweep: delete cached clips that have aged out.
"""

import logging
import time
from typing import Optional

from storage.clip_store import ClipStore
from storage.filenames import is_media_file

logger = logging.getLogger(__name__)

RETENTION_HOURS = 48


def sweep_expired(store: ClipStore, max_age_hours: float = RETENTION_HOURS, now: Optional[float] = None) -> int:
    """
    Remove media files last modified more than ``max_age_hours`` ago.

    Best effort: a file that cannot be removed is logged and skipped.
    Returns the number of files deleted.
    """
    if now is None:
        now = time.time()
    cutoff = now - max_age_hours * 60 * 60

    try:
        files = store.list_files()
    except OSError as e:
        logger.error(f"Sweep could not read {store.location}: {e}")
        return 0

    removed = 0
    for stored in files:
        if not is_media_file(stored.name):
            continue
        if stored.modified >= cutoff:
            continue
        try:
            store.delete(stored.name)
        except OSError as e:
            logger.warning(f"Could not delete {stored.name}: {e}")
            continue
        removed += 1
        logger.info(f"Deleted old clip: {stored.name}")

    logger.info(f"Sweep complete: {removed} clips removed")
    return removed
