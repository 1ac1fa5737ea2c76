"""
Reconciler: decide whether the cache is enough, and if not, merge fresh
upstream clips into it.
"""

import dataclasses
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from storage.clip_store import ClipStore
from storage.index import build_catalog
from storage.records import ClipRecord, local_url
from utils.logger import StructuredLogger

CACHE_THRESHOLD = 10   # cached clips needed to skip upstream
MAX_CLIPS = 20         # hard cap on returned clips and on fill-up


@dataclass
class FetchResult:
    username: str
    clips: List[ClipRecord] = field(default_factory=list)
    total: int = 0
    downloaded: int = 0
    fresh: int = 0
    cached: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "username": self.username,
            "total": self.total,
            "downloaded": self.downloaded,
            "fresh": self.fresh,
            "clips": [clip.as_dict() for clip in self.clips],
            "cached": self.cached,
        }


class Reconciler:
    def __init__(
        self,
        store: ClipStore,
        downloader,
        url_path: str,
        logger: Optional[StructuredLogger] = None,
    ):
        self.store = store
        self.downloader = downloader
        self.url_path = url_path
        self.logger = logger

    def _log(self, message: str, **metadata):
        if self.logger is not None:
            self.logger.info(message, **metadata)

    def fetch(
        self,
        username: str,
        source,
        limit: int = 15,
        period: str = "week",
        force_refresh: bool = False,
    ) -> FetchResult:
        """
        Clips for ``username``, from cache when there are enough of them.

        ``source`` is the upstream metadata collaborator; anything it raises
        (auth, unknown streamer, listing failure) aborts the request. Failed
        downloads only drop the clip concerned.
        """
        existing = build_catalog(self.store, self.url_path)
        self._log("Found existing clips in cache", count=len(existing))

        if len(existing) >= CACHE_THRESHOLD and not force_refresh:
            self._log("Using cached clips", count=len(existing))
            return FetchResult(
                username=username,
                clips=existing[:MAX_CLIPS],
                total=len(existing),
                downloaded=len(existing),
                cached=True,
            )

        self._log("Need more clips, querying upstream", username=username,
                  limit=limit, period=period, force_refresh=force_refresh)
        start_time = time.time()
        candidates = source.popular_clips(username, limit, period)
        if self.logger is not None:
            self.logger.timing("upstream_query", time.time() - start_time, candidates=len(candidates))

        known_ids = {clip.id for clip in existing}
        merged = list(existing)
        fresh = 0

        for candidate in candidates:
            if candidate.id in known_ids:
                self._log("Skipping existing", clip_id=candidate.id, title=candidate.title)
                continue

            if len(merged) >= MAX_CLIPS:
                self._log("Have enough clips, stopping downloads", count=len(merged))
                break

            # No second attempt for an id within one request
            known_ids.add(candidate.id)
            result = self.downloader.download(candidate)
            if not result.success:
                continue

            merged.append(dataclasses.replace(
                candidate,
                local_file=result.filename,
                local_url=local_url(self.url_path, result.filename),
                cached=False,
            ))
            fresh += 1
            self._log("Downloaded", clip_id=candidate.id, title=candidate.title,
                      duration=candidate.duration)

        self._log("Final result", total=len(merged), fresh=fresh)
        return FetchResult(
            username=username,
            clips=merged,
            total=len(merged),
            downloaded=len(merged),
            fresh=fresh,
            cached=False,
        )
