"""Core domain entities."""

import copy
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, NamedTuple, Optional


class ContentType(str, Enum):
    """Category assigned to a captured URL."""

    # Social
    X = "x"
    INSTAGRAM = "instagram"
    YOUTUBE = "youtube"
    LINKEDIN = "linkedin"
    TIKTOK = "tiktok"
    REDDIT = "reddit"
    FACEBOOK = "facebook"

    # Development
    GITHUB = "github"
    GITLAB = "gitlab"
    CODEPEN = "codepen"
    STACKOVERFLOW = "stackoverflow"
    DEVTO = "devto"
    NPM = "npm"
    DOCUMENTATION = "documentation"

    # Media
    ARTICLE = "article"
    PDF = "pdf"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    PRESENTATION = "presentation"

    # Commerce
    PRODUCT = "product"
    AMAZON = "amazon"
    ETSY = "etsy"
    APP = "app"

    # Knowledge
    WIKIPEDIA = "wikipedia"
    PAPER = "paper"
    BOOK = "book"
    COURSE = "course"

    # Entertainment
    MOVIE = "movie"
    TV_SHOW = "tv-show"

    # Personal
    NOTE = "note"
    BOOKMARK = "bookmark"


# Generic fallbacks that carry no platform knowledge
GENERIC_TYPES = frozenset({ContentType.BOOKMARK, ContentType.NOTE})

# Types whose page titles are replaced by a URL-derived title up front
AUTO_TITLE_TYPES = frozenset({
    ContentType.YOUTUBE,
    ContentType.AUDIO,
    ContentType.AMAZON,
    ContentType.MOVIE,
    ContentType.TV_SHOW,
})


@dataclass(kw_only=True)
class PartialMetadata:
    """Metadata fragment returned by a single source.

    None means the source did not supply the field; an empty string is a
    real value and wins over earlier data when merged.
    """

    title: Optional[str] = None
    content: Optional[str] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    profile_image: Optional[str] = None
    author: Optional[str] = None
    username: Optional[str] = None
    display_name: Optional[str] = None
    domain: Optional[str] = None
    published_date: Optional[str] = None
    duration: Optional[str] = None
    language: Optional[str] = None

    # Engagement
    likes: Optional[int] = None
    replies: Optional[int] = None
    retweets: Optional[int] = None
    views: Optional[int] = None
    stars: Optional[int] = None
    forks: Optional[int] = None

    # Commerce
    price: Optional[str] = None
    rating: Optional[float] = None
    reviews: Optional[int] = None

    # Files
    file_size: Optional[str] = None
    page_count: Optional[int] = None

    # Video
    video_url: Optional[str] = None
    video_type: Optional[str] = None
    video_width: Optional[int] = None
    video_height: Optional[int] = None

    extra_data: dict[str, Any] = field(default_factory=dict)

    def copy(self):
        """Return a deep copy safe to mutate."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Serialize present fields only."""
        data: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if f.name == "extra_data" and not value:
                continue
            data[f.name] = copy.deepcopy(value)
        return data


@dataclass(kw_only=True)
class ExtractedMetadata(PartialMetadata):
    """Normalized metadata record; only the domain is mandatory."""

    domain: str


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of analyzing one captured URL or text."""

    content_type: ContentType
    metadata: ExtractedMetadata
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "content_type": self.content_type.value,
            "confidence": self.confidence,
            "metadata": self.metadata.to_dict(),
        }


class Classification(NamedTuple):
    """Provisional content type guessed from the URL alone."""

    content_type: ContentType
    confidence: float


@dataclass
class RateLimitState:
    """Quota snapshot for one gated resource."""

    remaining_requests: Optional[int] = None
    reset_time: Optional[datetime] = None
    last_checked: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "remaining_requests": self.remaining_requests,
            "reset_time": self.reset_time.isoformat() if self.reset_time else None,
            "last_checked": self.last_checked.isoformat() if self.last_checked else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RateLimitState":
        remaining = data.get("remaining_requests")
        return cls(
            remaining_requests=int(remaining) if remaining is not None else None,
            reset_time=_parse_datetime(data.get("reset_time")),
            last_checked=_parse_datetime(data.get("last_checked")),
        )


@dataclass
class RateLimitStatus:
    """Read-only view of a gate for display."""

    resource_key: str
    has_info: bool
    is_rate_limited: bool
    remaining_requests: Optional[int]
    reset_time: Optional[datetime]
    minutes_until_reset: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "resource_key": self.resource_key,
            "has_info": self.has_info,
            "is_rate_limited": self.is_rate_limited,
            "remaining_requests": self.remaining_requests,
            "reset_time": self.reset_time.isoformat() if self.reset_time else None,
            "minutes_until_reset": self.minutes_until_reset,
            "message": self.message,
        }


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    return as_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
