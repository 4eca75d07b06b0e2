"""X (Twitter) post adapter using the v2 API behind a quota gate."""

import re
from datetime import datetime, timezone
from typing import Optional

import httpx

from capture_analyzer.core import ContentType, PartialMetadata, RateLimitGate, SourceAdapter

RATE_LIMIT_KEY = "x_api"

_TWEET_ID_RE = re.compile(r"/status(?:es)?/(\d+)")


class SocialPostAdapter(SourceAdapter):
    """Fetch post text, author, metrics and media for X posts."""

    emoji = "🐦"
    name = "X API"
    authoritative = True
    content_types = frozenset({ContentType.X})

    def __init__(
        self,
        bearer_token: Optional[str],
        gate: RateLimitGate,
        timeout: float = 10.0,
        api_base: str = "https://api.twitter.com/2",
        rate_limit_key: str = RATE_LIMIT_KEY,
    ) -> None:
        self.bearer_token = bearer_token
        self.gate = gate
        self.timeout = timeout
        self.api_base = api_base.rstrip("/")
        self.rate_limit_key = rate_limit_key

    def is_available(self) -> bool:
        return bool(self.bearer_token)

    def handles(self, url: str, content_type: ContentType) -> bool:
        return content_type in self.content_types and tweet_id(url) is not None

    async def fetch(self, url: str) -> Optional[PartialMetadata]:
        """Look up a single post; skipped while the quota is exhausted."""
        post_id = tweet_id(url)
        if not post_id or not self.is_available():
            return None

        if self.gate.should_skip(self.rate_limit_key):
            status = self.gate.get_status(self.rate_limit_key)
            print(f"  └─ ⏳ Skipped: {status.message}")
            return None

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(
                    f"{self.api_base}/tweets",
                    headers={"Authorization": f"Bearer {self.bearer_token}"},
                    params=self._get_params(post_id),
                )
            except httpx.HTTPError as e:
                print(f"  └─ ⚠️  X API request failed: {e}")
                return None

        self.gate.update_from_headers(self.rate_limit_key, response.headers)

        if response.status_code == 429:
            reset = response.headers.get("x-rate-limit-reset")
            reset_time = None
            if reset:
                try:
                    reset_time = datetime.fromtimestamp(int(reset), tz=timezone.utc)
                except ValueError:
                    reset_time = None
            self.gate.mark_rate_limited(self.rate_limit_key, reset_time)
            print(f"  └─ ⏳ X API rate limited")
            return None

        if response.status_code != 200:
            print(f"  └─ ⚠️  X API HTTP {response.status_code}")
            return None

        try:
            payload = response.json()
        except ValueError as e:
            print(f"  └─ ⚠️  X API returned invalid JSON: {e}")
            return None

        return self._parse(payload)

    def _get_params(self, post_id: str) -> dict[str, str]:
        """Query parameters requesting author and media expansions."""
        return {
            "ids": post_id,
            "expansions": "attachments.media_keys,author_id",
            "media.fields": "duration_ms,height,preview_image_url,type,url,width,variants",
            "tweet.fields": "created_at,public_metrics",
            "user.fields": "name,username,profile_image_url,verified",
        }

    def _parse(self, payload: dict) -> Optional[PartialMetadata]:
        """Map an API response (data + includes) to partial metadata."""
        tweets = payload.get("data") or []
        if not tweets:
            return None

        tweet = tweets[0]
        includes = payload.get("includes") or {}
        users = {user.get("id"): user for user in includes.get("users", [])}
        media_by_key = {media.get("media_key"): media for media in includes.get("media", [])}

        md = PartialMetadata(
            content=tweet.get("text"),
            published_date=tweet.get("created_at"),
            domain="x.com",
        )

        user = users.get(tweet.get("author_id"))
        if user:
            md.username = user.get("username")
            md.display_name = user.get("name")
            md.profile_image = user.get("profile_image_url")
            if md.display_name and md.username:
                md.author = f"{md.display_name} (@{md.username})"
            elif md.username:
                md.author = f"@{md.username}"

        metrics = tweet.get("public_metrics") or {}
        md.likes = metrics.get("like_count")
        md.retweets = metrics.get("retweet_count")
        md.replies = metrics.get("reply_count")
        md.views = metrics.get("impression_count")

        md.extra_data = {
            "tweet_id": tweet.get("id"),
            "verified": user.get("verified") if user else None,
            "quote_count": metrics.get("quote_count"),
        }
        md.extra_data = {key: value for key, value in md.extra_data.items() if value is not None}

        media_keys = (tweet.get("attachments") or {}).get("media_keys") or []
        media_items = [media_by_key[key] for key in media_keys if key in media_by_key]
        self._apply_media(md, media_items)

        return md

    def _apply_media(self, md: PartialMetadata, media_items: list[dict]) -> None:
        """Thumbnail from the first attachment; video variants for clips."""
        if not media_items:
            return

        first = media_items[0]
        media_type = first.get("type")

        if media_type == "photo":
            md.thumbnail_url = first.get("url")
        elif media_type in ("video", "animated_gif"):
            md.thumbnail_url = first.get("preview_image_url")
            duration_ms = first.get("duration_ms")
            if duration_ms:
                md.duration = f"{round(duration_ms / 1000)}s"

            variants = first.get("variants") or []
            best = best_video_variant(variants)
            if best:
                md.video_url = best.get("url")
                md.video_type = best.get("content_type")
            md.video_width = first.get("width")
            md.video_height = first.get("height")

            md.extra_data.update({
                "video_variants": variants,
                "width": first.get("width"),
                "height": first.get("height"),
                "is_video": True,
                "media_type": media_type,
            })

        photos = [m.get("url") for m in media_items if m.get("type") == "photo" and m.get("url")]
        if len(photos) > 1:
            md.extra_data["additional_images"] = photos[1:]


def tweet_id(url: str) -> Optional[str]:
    match = _TWEET_ID_RE.search(url)
    return match.group(1) if match else None


def best_video_variant(variants: list[dict]) -> Optional[dict]:
    """Highest bitrate MP4, else any variant that is not an HLS playlist."""
    mp4s = [v for v in variants if v.get("content_type") == "video/mp4" and v.get("url")]
    if mp4s:
        return max(mp4s, key=lambda v: v.get("bit_rate") or 0)

    for variant in variants:
        if variant.get("url") and "m3u8" not in (variant.get("content_type") or "") + variant["url"]:
            return variant

    return None

