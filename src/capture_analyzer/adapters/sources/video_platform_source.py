"""YouTube adapter using the Data API, with oEmbed as keyless fallback."""

import re
from typing import Optional

import httpx

from capture_analyzer.core import ContentType, PartialMetadata, SourceAdapter
from capture_analyzer.core.enhancers import youtube_video_id

_ISO_DURATION_RE = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$")

DATA_API_SOURCE = "data_api"
OEMBED_SOURCE = "oembed"


class VideoPlatformAdapter(SourceAdapter):
    """Fetch video, channel and statistics data for YouTube videos."""

    emoji = "▶️"
    name = "YouTube"
    content_types = frozenset({ContentType.YOUTUBE})

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        api_base: str = "https://www.googleapis.com/youtube/v3",
        oembed_url: str = "https://www.youtube.com/oembed",
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.api_base = api_base.rstrip("/")
        self.oembed_url = oembed_url

    def is_authoritative(self, result: Optional[PartialMetadata]) -> bool:
        # Only Data API answers are authoritative; oEmbed is a page summary
        if result is None:
            return False
        return (result.extra_data.get("youtube") or {}).get("source") == DATA_API_SOURCE

    async def fetch(self, url: str) -> Optional[PartialMetadata]:
        """Video metadata from the Data API, or oEmbed without a key."""
        video_id = youtube_video_id(url)
        if not video_id:
            return None

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                if self.api_key:
                    md = await self._fetch_from_api(client, video_id)
                    if md is not None:
                        return md
                return await self._fetch_oembed(client, url)
            except httpx.HTTPError as e:
                print(f"  └─ ⚠️  YouTube request failed: {e}")
                return None

    async def _fetch_from_api(self, client: httpx.AsyncClient, video_id: str) -> Optional[PartialMetadata]:
        """Video snippet, statistics and channel details."""
        response = await client.get(
            f"{self.api_base}/videos",
            params={
                "part": "snippet,statistics,contentDetails",
                "id": video_id,
                "key": self.api_key,
            },
        )

        if response.status_code != 200:
            print(f"  └─ ⚠️  YouTube API HTTP {response.status_code}")
            return None

        payload = _json_object(response)
        items = (payload or {}).get("items") or []
        if not items:
            return None

        video = items[0]
        snippet = video.get("snippet") or {}
        statistics = video.get("statistics") or {}
        details = video.get("contentDetails") or {}

        thumbnails = snippet.get("thumbnails") or {}
        best_thumbnail = None
        for size in ("maxres", "standard", "high", "medium", "default"):
            if size in thumbnails:
                best_thumbnail = thumbnails[size].get("url")
                break

        channel_id = snippet.get("channelId")
        youtube = {
            "source": DATA_API_SOURCE,
            "channel_id": channel_id,
            "channel_url": f"https://www.youtube.com/channel/{channel_id}" if channel_id else None,
            "category": snippet.get("categoryId"),
            "language": snippet.get("defaultAudioLanguage") or snippet.get("defaultLanguage"),
            "tags": snippet.get("tags"),
            "is_live": snippet.get("liveBroadcastContent") == "live",
            "is_upcoming": snippet.get("liveBroadcastContent") == "upcoming",
        }

        if channel_id:
            youtube.update(await self._fetch_channel(client, channel_id))

        md = PartialMetadata(
            title=snippet.get("title"),
            description=snippet.get("description") or None,
            author=snippet.get("channelTitle"),
            published_date=snippet.get("publishedAt"),
            thumbnail_url=best_thumbnail,
            duration=format_iso_duration(details.get("duration")),
            language=youtube["language"],
            views=_to_int(statistics.get("viewCount")),
            likes=_to_int(statistics.get("likeCount")),
            replies=_to_int(statistics.get("commentCount")),
            domain="youtube.com",
        )
        md.extra_data["youtube"] = {key: value for key, value in youtube.items() if value is not None}

        return md

    async def _fetch_channel(self, client: httpx.AsyncClient, channel_id: str) -> dict:
        """Subscriber count and avatar of a channel."""
        response = await client.get(
            f"{self.api_base}/channels",
            params={"part": "snippet,statistics", "id": channel_id, "key": self.api_key},
        )
        if response.status_code != 200:
            return {}

        payload = _json_object(response)
        items = (payload or {}).get("items") or []
        if not items:
            return {}

        channel = items[0]
        avatar = ((channel.get("snippet") or {}).get("thumbnails") or {}).get("default") or {}
        return {
            "channel_subscribers": _to_int((channel.get("statistics") or {}).get("subscriberCount")),
            "channel_avatar": avatar.get("url"),
        }

    async def _fetch_oembed(self, client: httpx.AsyncClient, url: str) -> Optional[PartialMetadata]:
        """Title, channel and thumbnail from the public oEmbed endpoint."""
        response = await client.get(self.oembed_url, params={"url": url, "format": "json"})

        if response.status_code != 200:
            print(f"  └─ ⚠️  YouTube oEmbed HTTP {response.status_code}")
            return None

        data = _json_object(response)
        if data is None:
            return None

        md = PartialMetadata(
            title=data.get("title"),
            author=data.get("author_name"),
            thumbnail_url=data.get("thumbnail_url"),
            domain="youtube.com",
        )
        md.extra_data["youtube"] = {"source": OEMBED_SOURCE}
        if data.get("author_url"):
            md.extra_data["youtube"]["channel_url"] = data["author_url"]

        return md


def format_iso_duration(value: Optional[str]) -> Optional[str]:
    """Render an ISO-8601 duration such as PT1H2M3S as 1:02:03."""
    if not value:
        return None

    match = _ISO_DURATION_RE.match(value)
    if not match:
        return None

    days, hours, minutes, seconds = (int(part) if part else 0 for part in match.groups())
    hours += days * 24

    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def _to_int(value) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _json_object(response: httpx.Response) -> Optional[dict]:
    """Decoded JSON object body, None for anything else."""
    try:
        data = response.json()
    except ValueError as e:
        print(f"  └─ ⚠️  YouTube returned invalid JSON: {e}")
        return None

    if not isinstance(data, dict):
        print(f"  └─ ⚠️  YouTube returned unexpected payload")
        return None

    return data
