"""Full-text reader adapter backed by the Jina reader API."""

import re
from typing import Optional
from urllib.parse import quote

import httpx

from capture_analyzer.core import ContentType, PartialMetadata, SourceAdapter

_IMAGE_HOST_RE = re.compile(r"^https?://(?:www\.)?imgur\.com/", re.IGNORECASE)


class ReaderAdapter(SourceAdapter):
    """Extract readable body text and article metadata."""

    emoji = "📖"
    name = "Reader"
    provides_body_text = True
    content_types = frozenset({
        ContentType.ARTICLE,
        ContentType.BOOKMARK,
        ContentType.PAPER,
        ContentType.DOCUMENTATION,
        ContentType.WIKIPEDIA,
        ContentType.DEVTO,
        ContentType.BOOK,
        ContentType.COURSE,
        ContentType.PRODUCT,
        ContentType.IMAGE,
    })

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        base_url: str = "https://r.jina.ai",
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")

    def is_available(self) -> bool:
        return bool(self.api_key)

    def handles(self, url: str, content_type: ContentType) -> bool:
        """Text pages; for images only hosting pages with captions."""
        if content_type == ContentType.IMAGE:
            return bool(_IMAGE_HOST_RE.search(url))
        return content_type in self.content_types

    async def fetch(self, url: str) -> Optional[PartialMetadata]:
        """Read the page through the reader service."""
        if not self.is_available():
            return None

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/{quote(url, safe='')}",
                    headers=self._get_headers(),
                )
            except httpx.HTTPError as e:
                print(f"  └─ ⚠️  Reader request failed: {e}")
                return None

        if response.status_code == 422:
            # Reader cannot process this content (e.g. PDF)
            return None

        if response.status_code != 200:
            print(f"  └─ ⚠️  Reader HTTP {response.status_code}")
            return None

        try:
            payload = response.json()
        except ValueError as e:
            print(f"  └─ ⚠️  Reader returned invalid JSON: {e}")
            return None

        data = payload.get("data") if isinstance(payload, dict) else None
        if not data:
            return None

        return self._parse(data)

    def _parse(self, data: dict) -> PartialMetadata:
        """Map a reader response body to partial metadata."""
        md = PartialMetadata(
            title=data.get("title") or None,
            description=data.get("description") or None,
            content=data.get("content") or None,
            author=data.get("author") or None,
            published_date=data.get("publishedTime") or None,
        )

        images = data.get("images")
        if isinstance(images, dict):
            images = list(images.values())
        if images:
            md.thumbnail_url = images[0]

        extra = {
            "content": data.get("content"),
            "categories": data.get("categories"),
            "lang": data.get("lang"),
            "site_name": data.get("siteName"),
        }
        md.extra_data = {key: value for key, value in extra.items() if value}

        return md

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
            "X-With-Images-Summary": "true",
        }
