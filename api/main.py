"""
API Entry Point for the Twitch clip cache.
Serves a streamer's clips from the local cache, topping it up from Twitch
with yt-dlp when the cache runs low.
"""

import sys
import uuid
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from api.twitch_client import StreamerNotFound, TwitchClient, UpstreamError
from fetch.downloader import Downloader, YtDlpFetcher
from fetch.inflight import InFlightRegistry
from fetch.reconciler import Reconciler
from storage.clip_store import DirectoryClipStore
from storage.index import build_catalog
from storage.sweeper import sweep_expired
from utils.config import Settings
from utils.logger import StructuredLogger

SERVICE_NAME = "Cached Twitch Clips Player"


# ============================================================================
# Pydantic Models
# ============================================================================

class HealthResponse(BaseModel):
    status: str
    service: str
    clipsDir: str


class PopularClipsResponse(BaseModel):
    success: bool
    username: str
    total: int
    downloaded: int
    fresh: int
    clips: List[Dict[str, Any]]
    cached: bool


class ListClipsResponse(BaseModel):
    clips: List[Dict[str, Any]]


class CleanupResponse(BaseModel):
    success: bool
    deletedFiles: int


# ============================================================================
# App factory
# ============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    app = FastAPI(title=SERVICE_NAME, version="1.0.0")
    app.state.settings = settings
    app.state.store = DirectoryClipStore(settings.clips_dir)
    app.state.inflight = InFlightRegistry()
    app.state.fetcher = YtDlpFetcher(settings.ytdlp_binary)
    app.state.client_factory = lambda client_id, client_secret: TwitchClient(
        client_id, client_secret, timeout=settings.upstream_timeout
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Sync handlers; FastAPI runs them in its thread pool.

    @app.get("/health", response_model=HealthResponse)
    def health_check():
        """Health check endpoint."""
        return HealthResponse(status="OK", service=SERVICE_NAME, clipsDir=app.state.store.location)

    @app.get("/popular-clips/{username}", response_model=PopularClipsResponse)
    def popular_clips(
        request: Request,
        username: str,
        client_id: Optional[str] = Query(None, alias="clientId"),
        client_secret: Optional[str] = Query(None, alias="clientSecret"),
        limit: int = Query(15, ge=1, le=100),
        period: Literal["day", "week", "month", "all"] = "week",
        force_refresh: bool = Query(False, alias="forceRefresh"),
    ):
        """Cached clips for a streamer, refreshed from Twitch when too few."""
        state = request.app.state
        client_id = client_id or state.settings.twitch_client_id
        client_secret = client_secret or state.settings.twitch_client_secret
        if not client_id or not client_secret:
            raise HTTPException(status_code=400, detail="clientId and clientSecret required")

        logger = StructuredLogger(str(uuid.uuid4()), "popular_clips", state.settings.log_dir)
        logger.info("Fetching clips", username=username, limit=limit, period=period,
                    force_refresh=force_refresh)

        downloader = Downloader(state.store, state.fetcher, state.inflight, logger.child("download"))
        reconciler = Reconciler(state.store, downloader, state.settings.video_url_path,
                                logger.child("reconcile"))
        source = state.client_factory(client_id, client_secret)

        try:
            result = reconciler.fetch(
                username,
                source,
                limit=limit,
                period=period,
                force_refresh=force_refresh,
            )
        except StreamerNotFound as e:
            logger.error("Streamer not found", error=str(e))
            raise HTTPException(status_code=404, detail=str(e))
        except UpstreamError as e:
            logger.error("Upstream request failed", error=str(e))
            raise HTTPException(status_code=502, detail=str(e))

        return PopularClipsResponse(**result.as_dict())

    @app.get("/list-clips", response_model=ListClipsResponse)
    def list_clips(request: Request):
        """Everything currently in the cache, newest first."""
        state = request.app.state
        catalog = build_catalog(state.store, state.settings.video_url_path)
        return ListClipsResponse(clips=[clip.as_dict() for clip in catalog])

    @app.post("/cleanup", response_model=CleanupResponse)
    def cleanup(request: Request):
        """Delete clips past the retention window."""
        state = request.app.state
        removed = sweep_expired(state.store, state.settings.retention_hours)
        return CleanupResponse(success=True, deletedFiles=removed)

    # ========================================================================
    # Static File Serving - Must be last to avoid intercepting API routes
    # ========================================================================

    app.mount(
        settings.video_url_path,
        StaticFiles(directory=str(settings.clips_dir)),
        name="clips",
    )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
