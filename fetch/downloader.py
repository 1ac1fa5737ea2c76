"""
Downloader: materialize one upstream clip into the clips directory.
Uses yt-dlp as an opaque subprocess; success is exit status plus the file
actually showing up in the store.
"""

import subprocess
import time
from dataclasses import dataclass
from typing import List, Optional

from fetch.inflight import InFlightRegistry
from storage.clip_store import ClipStore
from storage.filenames import MEDIA_EXTENSION, base_filename, id_prefix
from storage.records import ClipRecord
from utils.logger import StructuredLogger


class DownloadFailure(Exception):
    """The media fetcher did not produce a file."""

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


@dataclass
class DownloadResult:
    success: bool
    filename: Optional[str] = None
    error: Optional[str] = None


class YtDlpFetcher:
    """Runs yt-dlp for a single clip URL. Blocks until the process exits."""

    FORMAT = 'best[ext=mp4][acodec!=none]/best[acodec!=none]/best'

    def __init__(self, binary: str = "yt-dlp"):
        self.binary = binary

    def build_command(self, source_url: str, output_template: str) -> List[str]:
        return [
            self.binary,
            '--format', self.FORMAT,
            '--output', output_template,
            '--no-playlist',
            '--no-warnings',
            '--restrict-filenames',
            '--merge-output-format', 'mp4',
            '--embed-metadata',
            '--audio-quality', '0',
            source_url
        ]

    def fetch_media(self, source_url: str, output_template: str) -> None:
        cmd = self.build_command(source_url, output_template)
        try:
            # stderr can carry raw page titles in any encoding
            result = subprocess.run(cmd, capture_output=True, text=True, errors="replace")
        except OSError as e:
            raise DownloadFailure(f"could not start {self.binary}: {e}") from e

        if result.returncode != 0:
            raise DownloadFailure(
                f"{self.binary} exited with status {result.returncode}",
                stderr=result.stderr or "",
            )


class Downloader:
    def __init__(
        self,
        store: ClipStore,
        fetcher,
        inflight: Optional[InFlightRegistry] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.store = store
        self.fetcher = fetcher
        self.inflight = inflight or InFlightRegistry()
        self.logger = logger

    def _log(self, level: str, message: str, **metadata):
        if self.logger is not None:
            getattr(self.logger, level)(message, **metadata)

    def _resolve(self, clip_id: str) -> DownloadResult:
        prefix = id_prefix(clip_id)
        try:
            filename = self.store.find(prefix, MEDIA_EXTENSION)
            stray = None if filename else self.store.find(prefix)
        except OSError as e:
            return DownloadResult(success=False, error=str(e))
        if stray is not None:
            # Outside the catalog and the sweep; not a usable clip
            self._log("warning", "Download left a non-mp4 file", clip_id=clip_id, filename=stray)
            return DownloadResult(success=False, error=f"unexpected media file {stray}")
        if filename is None:
            return DownloadResult(success=False, error="download did not materialize")
        return DownloadResult(success=True, filename=filename)

    def download(self, clip: ClipRecord) -> DownloadResult:
        """
        Fetch ``clip.source_url`` into the store.

        Never raises for a per-clip problem: failures come back as
        ``DownloadResult(success=False)`` and are logged here.
        """
        running = self.inflight.claim(clip.id)
        if running is not None:
            self._log("info", "Waiting for in-flight download", clip_id=clip.id)
            running.done.wait()
            return self._resolve(clip.id)

        try:
            output_template = self.store.output_template(base_filename(clip.id, clip.title))
            self._log("info", "Downloading", clip_id=clip.id, title=clip.title, url=clip.source_url)
            start_time = time.time()

            try:
                self.fetcher.fetch_media(clip.source_url, output_template)
            except DownloadFailure as e:
                self._log("error", "yt-dlp failed", clip_id=clip.id, url=clip.source_url,
                          error=str(e), stderr=e.stderr)
                return DownloadResult(success=False, error=str(e))

            result = self._resolve(clip.id)
            if result.success:
                if self.logger is not None:
                    self.logger.timing("download", time.time() - start_time,
                                       clip_id=clip.id, filename=result.filename)
            else:
                self._log("warning", "Clean exit but no usable file", clip_id=clip.id, error=result.error)
            return result
        finally:
            self.inflight.release(clip.id)
