"""Generic page adapter reading Open Graph and meta tags."""

import re
from typing import Optional
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from capture_analyzer.core import ContentType, PartialMetadata, SourceAdapter
from capture_analyzer.core.urls import extract_domain

BOT_USER_AGENT = "Mozilla/5.0 (compatible; CaptureAnalyzer/1.0)"
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Hosts that only serve their tags to browser-looking clients
BROWSER_HOSTS = ("instagram.com",)

# Raw tag prefixes kept verbatim in extra_data["open_graph"]
RAW_TAG_PREFIXES = ("og:", "product:", "article:", "twitter:", "video:", "book:")

_X_HOST_RE = re.compile(r"^(?:[\w-]+\.)*(?:x|twitter)\.com$", re.IGNORECASE)
_X_NAME_HANDLE_RE = re.compile(r"^(.+?)\s+\(@\w+\)\s+on\s+(?:Twitter|X)$", re.IGNORECASE)
_X_NAME_POST_RE = re.compile(r"^(.+?)\s+on\s+(?:Twitter|X):", re.IGNORECASE)
_X_USERNAME_RE = re.compile(r"(?:x|twitter)\.com/([A-Za-z0-9_]{1,15})(?:[/?#]|$)", re.IGNORECASE)


class GenericPageAdapter(SourceAdapter):
    """Scrape title, description, image and author tags from any HTML page."""

    emoji = "🌐"
    name = "Page metadata"
    content_types = frozenset(ContentType)

    def __init__(self, timeout: float = 10.0, user_agent: str = BOT_USER_AGENT) -> None:
        self.timeout = timeout
        self.user_agent = user_agent

    async def fetch(self, url: str) -> Optional[PartialMetadata]:
        """Download the page and extract its metadata tags."""
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            try:
                response = await client.get(url, headers=self._get_headers(url))
            except httpx.HTTPError as e:
                print(f"  └─ ⚠️  Page fetch failed: {e}")
                return None

        if response.status_code != 200:
            print(f"  └─ HTTP {response.status_code}")
            return None

        mime = response.headers.get("content-type", "")
        if mime and "html" not in mime.lower():
            # Direct file links carry no tags
            return None

        return self.parse_html(url, response.text)

    def parse_html(self, url: str, html: str) -> Optional[PartialMetadata]:
        """Extract metadata from an HTML document."""
        if not html:
            return None

        soup = BeautifulSoup(html, "html.parser")
        tags = self._collect_meta(soup)
        is_x = bool(_X_HOST_RE.match(extract_domain(url)))

        md = PartialMetadata(domain=extract_domain(url))

        title_tag = soup.find("title")
        h1_tag = soup.find("h1")
        md.title = _first(
            tags.get("og:title"),
            tags.get("twitter:title"),
            title_tag.get_text(strip=True) if title_tag else None,
            h1_tag.get_text(strip=True) if h1_tag else None,
        )

        md.description = _first(
            tags.get("og:description"),
            tags.get("twitter:description"),
            tags.get("description"),
            self._itemprop(soup, "description"),
        )

        image = _first(
            tags.get("og:video:thumbnail"),
            tags.get("twitter:player:image"),
            tags.get("og:image"),
            tags.get("og:image:url"),
            tags.get("twitter:image"),
            tags.get("twitter:image:src"),
            self._itemprop(soup, "image"),
        )
        if image:
            image = urljoin(url, image)
            if is_x and "profile_images" in image:
                md.profile_image = image
            else:
                md.thumbnail_url = image

        md.author = _first(
            tags.get("og:site_name"),
            tags.get("author"),
            tags.get("article:author"),
            tags.get("twitter:creator"),
        )

        time_tag = soup.find("time", attrs={"datetime": True})
        md.published_date = _first(
            tags.get("article:published_time"),
            tags.get("og:updated_time"),
            time_tag.get("datetime") if time_tag else None,
        )

        md.video_url = _first(
            tags.get("og:video:secure_url"),
            tags.get("og:video:url"),
            tags.get("og:video"),
            tags.get("twitter:player:stream"),
            tags.get("twitter:player"),
        )
        md.video_type = _first(tags.get("og:video:type"), tags.get("twitter:player:stream:content_type"))
        md.video_width = _to_int(_first(tags.get("og:video:width"), tags.get("twitter:player:width")))
        md.video_height = _to_int(_first(tags.get("og:video:height"), tags.get("twitter:player:height")))

        md.price = _first(tags.get("product:price:amount"), tags.get("og:price:amount"))
        md.duration = _first(self._itemprop(soup, "duration"), tags.get("video:duration"))
        md.file_size = tags.get("og:file_size")

        if is_x:
            self._apply_x_identity(url, md)

        raw_tags = {key: value for key, value in tags.items() if key.startswith(RAW_TAG_PREFIXES)}
        if raw_tags:
            md.extra_data["open_graph"] = raw_tags

        return md

    def _apply_x_identity(self, url: str, md: PartialMetadata) -> None:
        """Username from the URL, display name from the page title."""
        match = _X_USERNAME_RE.search(url)
        if match:
            md.username = match.group(1)

        title = md.title or ""
        name_match = _X_NAME_HANDLE_RE.match(title) or _X_NAME_POST_RE.match(title)
        if name_match:
            md.display_name = name_match.group(1).strip()

        if md.display_name:
            md.author = md.display_name
        elif md.username:
            md.author = f"@{md.username}"
        elif md.author in ("X", "Twitter"):
            md.author = None

    @staticmethod
    def _collect_meta(soup: BeautifulSoup) -> dict[str, str]:
        """Map of meta property/name to content; first occurrence wins."""
        tags: dict[str, str] = {}
        for meta in soup.find_all("meta"):
            key = meta.get("property") or meta.get("name")
            content = meta.get("content")
            if not key or content is None:
                continue
            key = key.strip().lower()
            content = content.strip()
            if content and key not in tags:
                tags[key] = content
        return tags

    @staticmethod
    def _itemprop(soup: BeautifulSoup, prop: str) -> Optional[str]:
        tag = soup.find(attrs={"itemprop": prop})
        if not tag:
            return None
        value = tag.get("content") or tag.get("src") or tag.get("href")
        return value.strip() if value else None

    def _get_headers(self, url: str) -> dict[str, str]:
        """Request headers; browser-like for hosts that block bots."""
        if any(host in extract_domain(url) for host in BROWSER_HOSTS):
            return {
                "User-Agent": BROWSER_USER_AGENT,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.9",
            }

        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml",
        }


def _first(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value:
            return value
    return None


def _to_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value else None
    except ValueError:
        return None
