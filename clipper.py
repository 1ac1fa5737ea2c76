"""
CLI tool for the Twitch clip cache.
Works directly on the clips directory; no API server needed.
"""

import argparse
import sys
import uuid

from api.twitch_client import PERIODS, TwitchClient, UpstreamError
from fetch.downloader import Downloader, YtDlpFetcher
from fetch.reconciler import Reconciler
from storage.clip_store import DirectoryClipStore
from storage.index import build_catalog
from storage.sweeper import sweep_expired
from utils.config import Settings
from utils.logger import StructuredLogger


def main(argv=None):
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(
        description="Twitch clip cache - keep a local library of a streamer's clips",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show what is cached
  python clipper.py --list

  # Top up the cache for a streamer (needs TWITCH_CLIENT_ID / TWITCH_CLIENT_SECRET)
  python clipper.py --fetch somestreamer --period month

  # Delete clips older than 48 hours
  python clipper.py --sweep
        """
    )

    parser.add_argument(
        "--clips-dir",
        default=str(settings.clips_dir),
        help=f"Clips directory (default: {settings.clips_dir})"
    )

    parser.add_argument(
        "--list",
        action="store_true",
        help="List cached clips"
    )

    parser.add_argument(
        "--fetch",
        metavar="USERNAME",
        help="Fetch clips for a streamer"
    )

    parser.add_argument("--limit", type=int, default=15, help="Upstream candidates to consider (default: 15)")
    parser.add_argument("--period", choices=PERIODS, default="week", help="Recency window (default: week)")
    parser.add_argument("--force-refresh", action="store_true", help="Query Twitch even if the cache is full")

    parser.add_argument(
        "--sweep",
        action="store_true",
        help="Delete clips past the retention window"
    )

    parser.add_argument(
        "--max-age-hours",
        type=float,
        default=settings.retention_hours,
        help=f"Retention window for --sweep (default: {settings.retention_hours:g})"
    )

    args = parser.parse_args(argv)
    store = DirectoryClipStore(args.clips_dir)

    if args.list:
        list_clips(store, settings)
    elif args.sweep:
        sweep(store, args.max_age_hours)
    elif args.fetch:
        fetch(store, settings, args.fetch, args.limit, args.period, args.force_refresh)
    else:
        parser.print_help()
        sys.exit(1)


def list_clips(store, settings: Settings):
    """Print the cache catalog."""
    clips = build_catalog(store, settings.video_url_path)

    if not clips:
        print("No cached clips.")
        return

    print(f"\n{'='*80}")
    print(f"Found {len(clips)} cached clip(s):\n")

    for clip in clips:
        print(f"{clip.id}: {clip.title}")
        print(f"  File: {clip.local_file}")
        print(f"  Created: {clip.created_at}")
        print()


def sweep(store, max_age_hours: float):
    print(f"Removing clips older than {max_age_hours:g} hours...")
    removed = sweep_expired(store, max_age_hours)
    print(f"Removed {removed} clip(s).")


def fetch(store, settings: Settings, username: str, limit: int, period: str, force_refresh: bool):
    """Run one cache reconciliation for a streamer."""
    if not settings.twitch_client_id or not settings.twitch_client_secret:
        print("[ERROR] TWITCH_CLIENT_ID and TWITCH_CLIENT_SECRET must be set.")
        sys.exit(1)

    logger = StructuredLogger(str(uuid.uuid4()), "cli", settings.log_dir)
    downloader = Downloader(store, YtDlpFetcher(settings.ytdlp_binary), logger=logger.child("download"))
    reconciler = Reconciler(store, downloader, settings.video_url_path, logger.child("reconcile"))
    source = TwitchClient(settings.twitch_client_id, settings.twitch_client_secret,
                          timeout=settings.upstream_timeout)

    try:
        result = reconciler.fetch(username, source, limit=limit, period=period,
                                  force_refresh=force_refresh)
    except UpstreamError as e:
        print(f"[ERROR] {e}")
        sys.exit(1)

    origin = "cache" if result.cached else "cache + Twitch"
    print(f"\n{result.total} clip(s) for {username} from {origin} ({result.fresh} new):")
    for clip in result.clips:
        print(f"  - {clip.id}: {clip.local_file}")


if __name__ == "__main__":
    main()
