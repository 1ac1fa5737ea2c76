"""
Utility: Environment-driven settings for the clip cache service.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DEFAULT_CLIPS_DIR = Path(__file__).parent.parent / "downloaded_clips"


@dataclass
class Settings:
    clips_dir: Path
    video_url_path: str = "/clips/videos"
    port: int = 3001
    log_dir: str = "/tmp/logs"
    ytdlp_binary: str = "yt-dlp"
    upstream_timeout: float = 10.0
    retention_hours: float = 48.0
    twitch_client_id: Optional[str] = None
    twitch_client_secret: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            clips_dir=Path(os.getenv("CLIPS_DIR", str(DEFAULT_CLIPS_DIR))),
            # Base path for video URLs, must match the reverse proxy in front of us
            video_url_path=os.getenv("VIDEO_URL_PATH", "/clips/videos").rstrip("/"),
            port=int(os.getenv("PORT", "3001")),
            log_dir=os.getenv("LOG_DIR", "/tmp/logs"),
            ytdlp_binary=os.getenv("YTDLP_BINARY", "yt-dlp"),
            upstream_timeout=float(os.getenv("UPSTREAM_TIMEOUT", "10")),
            retention_hours=float(os.getenv("RETENTION_HOURS", "48")),
            twitch_client_id=os.getenv("TWITCH_CLIENT_ID") or None,
            twitch_client_secret=os.getenv("TWITCH_CLIENT_SECRET") or None,
        )
