"""
Twitch Helix client: app token, broadcaster lookup, clip listing.
"""

import calendar
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests

from storage.records import ClipRecord, utc_timestamp

TOKEN_URL = "https://id.twitch.tv/oauth2/token"
HELIX_URL = "https://api.twitch.tv/helix"
CLIP_PAGE_URL = "https://clips.twitch.tv"

PERIODS = ("day", "week", "month", "all")


class UpstreamError(RuntimeError):
    """Twitch could not be reached or refused the request."""


class StreamerNotFound(UpstreamError):
    pass


def _month_earlier(moment: datetime) -> datetime:
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def period_start(period: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """Earliest clip creation time for ``period``; None means unbounded."""
    if period not in PERIODS:
        raise ValueError(f"Unknown period '{period}', expected one of {', '.join(PERIODS)}")
    now = now or datetime.now(timezone.utc)
    if period == "day":
        return now - timedelta(days=1)
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return _month_earlier(now)
    return None


class TwitchClient:
    def __init__(self, client_id: str, client_secret: str, timeout: float = 10.0, session=None):
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, url: str, what: str, **kwargs) -> Dict[str, Any]:
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            raise UpstreamError(f"Timed out trying to {what} after {self.timeout:g}s") from e
        except requests.RequestException as e:
            raise UpstreamError(f"Failed to {what}: {e}") from e

        if not r.ok:
            raise UpstreamError(f"Failed to {what}: {r.status_code} {r.reason}")
        try:
            return r.json()
        except ValueError as e:
            raise UpstreamError(f"Failed to {what}: response was not JSON") from e

    def _helix(self, path: str, token: str, params: Dict[str, Any], what: str) -> Dict[str, Any]:
        return self._request(
            "GET",
            f"{HELIX_URL}/{path}",
            what,
            params=params,
            headers={
                "Client-ID": self.client_id,
                "Authorization": f"Bearer {token}",
            },
        )

    def get_token(self) -> str:
        data = self._request(
            "POST",
            TOKEN_URL,
            "get OAuth token",
            params={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "client_credentials",
            },
        )
        token = data.get("access_token")
        if not token:
            raise UpstreamError("OAuth response missing access_token")
        return token

    def get_broadcaster_id(self, login: str, token: str) -> str:
        data = self._helix("users", token, {"login": login}, "get user info")
        users = data.get("data") or []
        if not users:
            raise StreamerNotFound(f"Twitch user '{login}' not found")
        return users[0]["id"]

    def get_clips(self, broadcaster_id: str, limit: int, period: str, token: str) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"broadcaster_id": broadcaster_id, "first": limit}
        start = period_start(period)
        if start is not None:
            params["started_at"] = utc_timestamp(start)
        data = self._helix("clips", token, params, "get clips")
        return data.get("data") or []

    def popular_clips(self, username: str, limit: int = 15, period: str = "week") -> List[ClipRecord]:
        """Candidate clips for ``username`` in Helix order."""
        token = self.get_token()
        broadcaster_id = self.get_broadcaster_id(username, token)
        return [to_record(item) for item in self.get_clips(broadcaster_id, limit, period, token)]


def to_record(item: Dict[str, Any]) -> ClipRecord:
    """Helix clip object -> download candidate."""
    return ClipRecord(
        id=item["id"],
        title=item.get("title") or "",
        creator=item.get("creator_name") or "",
        duration=max(0, int(round(item.get("duration") or 0))),
        views=max(0, int(item.get("view_count") or 0)),
        created_at=item.get("created_at") or "",
        source_url=f"{CLIP_PAGE_URL}/{item['id']}",
        cached=False,
    )
