"""Per-content-type post-processing of merged metadata."""

import re
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional

from capture_analyzer.core.entities import (
    AUTO_TITLE_TYPES,
    ContentType,
    ExtractedMetadata,
    PartialMetadata,
)
from capture_analyzer.core.merger import merge_extra_data
from capture_analyzer.core.urls import extract_domain, filename_from_url, path_segments

MIN_MEANINGFUL_TITLE_LENGTH = 10


@dataclass
class EnhancementContext:
    """Pipeline facts an enhancer may need besides the URL and metadata."""

    content_type: ContentType
    reader_output: Optional[PartialMetadata] = None
    authoritative: bool = False

    @property
    def has_reader_content(self) -> bool:
        return bool(self.reader_output is not None and self.reader_output.content)


class Enhancement(NamedTuple):
    """Enhancer output: new metadata and an optional content type override."""

    metadata: ExtractedMetadata
    content_type: Optional[ContentType] = None


EnhancerFunc = Callable[[str, ExtractedMetadata, EnhancementContext], Enhancement]


def identity_enhancer(url: str, metadata: ExtractedMetadata, context: EnhancementContext) -> Enhancement:
    """Leave metadata untouched."""
    return Enhancement(metadata.copy())


class EnhancerRegistry:
    """Lookup table from content type to enhancer, with a default entry."""

    def __init__(
        self,
        enhancers: Optional[dict[ContentType, EnhancerFunc]] = None,
        default: EnhancerFunc = identity_enhancer,
    ) -> None:
        self._enhancers: dict[ContentType, EnhancerFunc] = {}
        self.default = default
        for content_type, func in (enhancers or {}).items():
            self.register(content_type, func)

    def register(self, content_type: ContentType, func: EnhancerFunc) -> None:
        if not isinstance(content_type, ContentType):
            raise TypeError(f"Enhancer key must be a ContentType, got {content_type!r}")
        if not callable(func):
            raise TypeError(f"Enhancer for {content_type.value} is not callable")
        self._enhancers[content_type] = func

    def get(self, content_type: ContentType) -> EnhancerFunc:
        return self._enhancers.get(content_type, self.default)

    def __contains__(self, content_type: object) -> bool:
        return content_type in self._enhancers

    def enhance(self, url: str, metadata: ExtractedMetadata, context: EnhancementContext) -> Enhancement:
        """Run the enhancer registered for the context's content type."""
        return self.get(context.content_type)(url, metadata, context)


# --- YouTube ---------------------------------------------------------------

_YOUTUBE_ID_RE = re.compile(r"(?:[?&]v=|youtu\.be/|shorts/|embed/|live/)([a-zA-Z0-9_-]+)")


def youtube_video_id(url: str) -> Optional[str]:
    match = _YOUTUBE_ID_RE.search(url)
    return match.group(1) if match else None


def youtube_thumbnail_url(video_id: str) -> str:
    return f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"


def enhance_youtube(url: str, metadata: ExtractedMetadata, context: EnhancementContext) -> Enhancement:
    """Canonical thumbnail and platform sub-map for YouTube videos."""
    md = metadata.copy()
    video_id = youtube_video_id(url)
    if not video_id:
        return Enhancement(md)

    # ID-based thumbnail always exists and beats whatever the page offered
    md.thumbnail_url = youtube_thumbnail_url(video_id)

    platform = {"name": "youtube", "video_id": video_id}
    platform.update(md.extra_data.pop("youtube", {}) or {})
    md.extra_data["platform"] = merge_extra_data(md.extra_data.get("platform") or {}, platform)
    md.domain = "youtube.com"

    return Enhancement(md)


# --- X / Twitter -----------------------------------------------------------

_X_USERNAME_RE = re.compile(r"(?:x|twitter)\.com/([A-Za-z0-9_]{1,15})(?:[/?#]|$)", re.IGNORECASE)
_X_RESERVED_PATHS = {"home", "i", "search", "explore", "settings", "intent", "share", "hashtag", "messages", "notifications"}
_X_TITLE_SUFFIX_RE = re.compile(r"\s*/\s*(?:X|Twitter)\s*$", re.IGNORECASE)
_X_POST_TITLE_RE = re.compile(r'^.*? on (?:X|Twitter):\s*"?(.+?)"?\s*$', re.IGNORECASE | re.DOTALL)
_HANDLE_AUTHOR_RE = re.compile(r"\(@\w+\)$")


def x_username(url: str) -> Optional[str]:
    match = _X_USERNAME_RE.search(url)
    if not match or match.group(1).lower() in _X_RESERVED_PATHS:
        return None
    return match.group(1)


def parse_x_title(title: Optional[str]) -> Optional[str]:
    """Extract the post text from a page title like 'Name on X: "text" / X'."""
    if not title:
        return None

    stripped = _X_TITLE_SUFFIX_RE.sub("", title).strip()
    match = _X_POST_TITLE_RE.match(stripped)
    if match:
        return match.group(1).strip() or None

    if stripped != title.strip():
        return stripped or None

    return None


def enhance_x(url: str, metadata: ExtractedMetadata, context: EnhancementContext) -> Enhancement:
    """Move the post body into content and build the author handle."""
    md = metadata.copy()

    username = md.username or x_username(url)
    if username:
        md.username = username

    if "/status/" in url:
        if not md.content:
            body = parse_x_title(md.title)
            if body:
                md.content = body
        if not md.content and md.description:
            md.content = md.description

        # Body lives in content for posts
        md.title = ""
        md.description = None

    # Authors already shaped "Name (@user)" came from the API
    has_handle = bool(md.author and _HANDLE_AUTHOR_RE.search(md.author))

    display_name = md.display_name
    if not display_name and md.author and not has_handle and not md.author.startswith("@"):
        display_name = md.author

    if username and not has_handle:
        if display_name:
            md.author = f"{display_name} (@{username})"
            md.display_name = display_name
        else:
            md.author = f"@{username}"

    md.domain = "twitter.com" if "twitter.com" in url.lower() else "x.com"
    return Enhancement(md)


# --- GitHub ----------------------------------------------------------------

def enhance_github(url: str, metadata: ExtractedMetadata, context: EnhancementContext) -> Enhancement:
    """Fill owner and repository identity from the URL."""
    md = metadata.copy()
    segments = path_segments(url)
    if len(segments) < 2:
        return Enhancement(md)

    owner, repo = segments[0], segments[1].removesuffix(".git")
    if md.author is None:
        md.author = owner
    if md.title is None:
        md.title = f"{owner}/{repo}"

    platform = {"name": "github", "owner": owner, "repo": repo}
    md.extra_data["platform"] = merge_extra_data(md.extra_data.get("platform") or {}, platform)
    md.domain = "github.com"

    return Enhancement(md)


# --- Movies and TV ---------------------------------------------------------

TV_INDICATORS = (
    "tv series",
    "tv show",
    "television series",
    "series",
    "season",
    "episode",
    "seasons",
    "episodes",
    "tv-",
    "miniseries",
    "mini-series",
)

_IMDB_SUFFIX_RE = re.compile(r"\s*-\s*IMDb\s*$", re.IGNORECASE)
_IMDB_ID_RE = re.compile(r"/title/(tt\d+)")
_TV_TITLE_RE = re.compile(r"^([^(]+?)(?:\s*\(([^)]*)\))?\s*(?:⭐|★)?\s*([\d.]+)?\s*(?:\|\s*(.+))?$")
_MOVIE_TITLE_RE = re.compile(r"^([^(]+?)\s*\((\d{4})\)\s*(?:⭐|★)?\s*([\d.]+)?\s*(?:\|\s*(.+))?$")
_YEARS_RE = re.compile(r"(\d{4}(?:[–-]\d{4})?)")


def is_tv_show(title: Optional[str], description: Optional[str]) -> bool:
    text = f"{title or ''} {description or ''}".lower()
    return any(indicator in text for indicator in TV_INDICATORS)


def enhance_movie(url: str, metadata: ExtractedMetadata, context: EnhancementContext) -> Enhancement:
    """Split '<Title> (<year>) ⭐ <rating> | <genres>' into title and description."""
    md = metadata.copy()
    override = None

    title = _IMDB_SUFFIX_RE.sub("", md.title or "").strip()
    tv = is_tv_show(title, md.description)
    if tv:
        override = ContentType.TV_SHOW

    name = years = rating = genres = None
    match = (_TV_TITLE_RE if tv else _MOVIE_TITLE_RE).match(title)
    if match:
        name, paren, rating, genres = match.groups()
        if tv:
            years_match = _YEARS_RE.search(paren or "")
            years = years_match.group(1).replace("–", "-") if years_match else None
        else:
            years = paren

    if name:
        name = name.strip()
        md.title = f"{name} ({years})" if years else name
    elif md.title is not None:
        md.title = title

    extra_parts = []
    if rating:
        extra_parts.append(f"⭐ {rating}")
        if md.rating is None:
            try:
                md.rating = float(rating)
            except ValueError:
                pass
    if genres:
        extra_parts.append(genres.strip())

    extra_info = " | ".join(extra_parts)
    if extra_info and extra_info not in (md.description or ""):
        md.description = "\n\n".join(part for part in (md.description, extra_info) if part)

    imdb_match = _IMDB_ID_RE.search(url)
    if imdb_match:
        platform = {"name": "imdb", "imdb_id": imdb_match.group(1)}
        md.extra_data["platform"] = merge_extra_data(md.extra_data.get("platform") or {}, platform)
    if "imdb.com" in url.lower():
        md.domain = "imdb.com"

    return Enhancement(md, override)


# --- Images ----------------------------------------------------------------

_IMAGE_HOST_RE = re.compile(r"^https?://(?:www\.)?(?:i\.)?imgur\.com/", re.IGNORECASE)
_IMAGE_FILE_RE = re.compile(r"\.(?:jpe?g|png|gif|webp|svg|avif|bmp)$", re.IGNORECASE)
_MARKDOWN_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(")


def is_image_host_page(url: str) -> bool:
    """Image-hosting page (not a direct file link)."""
    return bool(_IMAGE_HOST_RE.search(url)) and not _IMAGE_FILE_RE.search(filename_from_url(url))


def first_image_alt(markdown: Optional[str]) -> Optional[str]:
    for alt in _MARKDOWN_IMAGE_RE.findall(markdown or ""):
        if alt.strip():
            return alt.strip()
    return None


def enhance_image(url: str, metadata: ExtractedMetadata, context: EnhancementContext) -> Enhancement:
    """Describe an image by its file name (or alt text on hosting pages)."""
    md = metadata.copy()
    filename = filename_from_url(url)
    md.title = ""

    if _IMAGE_HOST_RE.search(url) and context.reader_output is not None:
        alt = first_image_alt(context.reader_output.content)
        md.description = alt or filename
        md.content = None
        md.extra_data.pop("content", None)
    else:
        md.description = filename

    if is_image_host_page(url):
        md.thumbnail_url = md.thumbnail_url or url
    else:
        md.thumbnail_url = url

    return Enhancement(md)


# --- Instagram -------------------------------------------------------------

_IG_LIKES_RE = re.compile(r"([\d.,]+)\s*([KkMm]?)\s+likes?", re.IGNORECASE)
_IG_COMMENTS_RE = re.compile(r"([\d.,]+)\s*([KkMm]?)\s+comments?", re.IGNORECASE)
_IG_USERNAME_RE = re.compile(r"comments?\s*-\s*([^\s]+)\s+on\s+", re.IGNORECASE)
_IG_DATE_RE = re.compile(r"\son\s+([A-Z][a-z]+\s+\d{1,2},\s+\d{4})")
_IG_TEXT_RE = re.compile(r"\d{4}\s*:\s*\"?(.+?)\"?\s*$", re.DOTALL)


def parse_count(number: str, suffix: str = "") -> Optional[int]:
    """Parse '52K', '1.2M' or '1,234' into an integer."""
    try:
        value = float(number.replace(",", ""))
    except ValueError:
        return None
    multiplier = {"k": 1_000, "m": 1_000_000}.get(suffix.lower(), 1)
    return int(round(value * multiplier))


def enhance_instagram(url: str, metadata: ExtractedMetadata, context: EnhancementContext) -> Enhancement:
    """Parse counts, handle and caption out of the og:title summary line."""
    md = metadata.copy()
    open_graph = md.extra_data.get("open_graph") or {}
    summary = open_graph.get("og:title") or md.title or ""

    likes = _IG_LIKES_RE.search(summary)
    if likes and md.likes is None:
        md.likes = parse_count(likes.group(1), likes.group(2))

    comments = _IG_COMMENTS_RE.search(summary)
    if comments and md.replies is None:
        md.replies = parse_count(comments.group(1), comments.group(2))

    username_match = _IG_USERNAME_RE.search(summary)
    if username_match:
        username = username_match.group(1).lstrip("@")
        md.username = md.username or username
        md.display_name = md.display_name or username
        md.author = f"@{username}"

    date_match = _IG_DATE_RE.search(summary)
    if date_match:
        md.extra_data["instagram"] = merge_extra_data(
            md.extra_data.get("instagram") or {}, {"post_date": date_match.group(1)}
        )

    text_match = _IG_TEXT_RE.search(summary)
    if text_match:
        caption = text_match.group(1).strip()
        if len(caption) > MIN_MEANINGFUL_TITLE_LENGTH:
            md.title = caption

    md.domain = "instagram.com"
    return Enhancement(md)


# --- TikTok ----------------------------------------------------------------

_TIKTOK_RE = re.compile(r"tiktok\.com/@([^/?#]+)(?:/video/(\d+))?", re.IGNORECASE)
_TIKTOK_GENERIC_TITLE_RE = re.compile(r"^TikTok(?:\s*[-|·].*)?$", re.IGNORECASE)


def enhance_tiktok(url: str, metadata: ExtractedMetadata, context: EnhancementContext) -> Enhancement:
    """Creator handle from the URL and a readable title."""
    md = metadata.copy()
    match = _TIKTOK_RE.search(url)
    username = match.group(1) if match else None

    if username:
        md.username = md.username or username
        md.author = md.author or f"@{username}"
        if match.group(2):
            platform = {"name": "tiktok", "video_id": match.group(2)}
            md.extra_data["platform"] = merge_extra_data(md.extra_data.get("platform") or {}, platform)

    if not md.title or _TIKTOK_GENERIC_TITLE_RE.match(md.title.strip()):
        md.title = f"@{username} on TikTok" if username else "TikTok Video"

    md.domain = "tiktok.com"
    return Enhancement(md)


# --- Reddit ----------------------------------------------------------------

_SUBREDDIT_RE = re.compile(r"reddit\.com/r/([^/?#]+)", re.IGNORECASE)


def enhance_reddit(url: str, metadata: ExtractedMetadata, context: EnhancementContext) -> Enhancement:
    md = metadata.copy()
    match = _SUBREDDIT_RE.search(url)
    if match:
        subreddit = match.group(1)
        if md.author is None:
            md.author = f"r/{subreddit}"
        md.extra_data["platform"] = merge_extra_data(
            md.extra_data.get("platform") or {}, {"name": "reddit", "subreddit": subreddit}
        )
    md.domain = "reddit.com"
    return Enhancement(md)


# --- Domain-only platforms -------------------------------------------------

def enhance_amazon(url: str, metadata: ExtractedMetadata, context: EnhancementContext) -> Enhancement:
    md = metadata.copy()
    domain = extract_domain(url)
    md.domain = domain if domain.startswith("amazon.") else "amazon.com"
    return Enhancement(md)


def enhance_stackoverflow(url: str, metadata: ExtractedMetadata, context: EnhancementContext) -> Enhancement:
    md = metadata.copy()
    md.domain = extract_domain(url)
    return Enhancement(md)


# --- Post-enhancement steps ------------------------------------------------

def is_meaningful_title(title: Optional[str], url: str, domain: Optional[str]) -> bool:
    """A title is meaningful if it is not the domain or URL and is not too short."""
    if not title:
        return False
    return title != domain and title != url and len(title) > MIN_MEANINGFUL_TITLE_LENGTH


def clean_generic_title(url: str, metadata: ExtractedMetadata, has_reader_content: bool) -> ExtractedMetadata:
    """Clear a placeholder title unless reader body text backs the item."""
    md = metadata.copy()
    if not is_meaningful_title(md.title, url, md.domain) and not has_reader_content:
        md.title = ""
    return md


def should_clean_title(content_type: ContentType, authoritative: bool) -> bool:
    return content_type not in AUTO_TITLE_TYPES and not authoritative


_OG_TYPE_MAP = {
    "product": ContentType.PRODUCT,
    "og:product": ContentType.PRODUCT,
    "product.item": ContentType.PRODUCT,
    "article": ContentType.ARTICLE,
    "video": ContentType.VIDEO,
    "book": ContentType.BOOK,
    "books.book": ContentType.BOOK,
}


def refine_content_type(content_type: ContentType, metadata: ExtractedMetadata) -> ContentType:
    """Adopt a more specific type from og:type when only bookmark was known."""
    if content_type != ContentType.BOOKMARK:
        return content_type

    open_graph = metadata.extra_data.get("open_graph") or {}
    og_type = str(open_graph.get("og:type") or "").strip().lower()

    if og_type in _OG_TYPE_MAP:
        return _OG_TYPE_MAP[og_type]
    if og_type.startswith("video."):
        return ContentType.VIDEO
    if any(key.startswith("product:") for key in open_graph):
        return ContentType.PRODUCT

    return content_type


def default_registry() -> EnhancerRegistry:
    """Registry with every built-in enhancer."""
    return EnhancerRegistry({
        ContentType.YOUTUBE: enhance_youtube,
        ContentType.X: enhance_x,
        ContentType.GITHUB: enhance_github,
        ContentType.MOVIE: enhance_movie,
        ContentType.TV_SHOW: enhance_movie,
        ContentType.IMAGE: enhance_image,
        ContentType.INSTAGRAM: enhance_instagram,
        ContentType.TIKTOK: enhance_tiktok,
        ContentType.REDDIT: enhance_reddit,
        ContentType.AMAZON: enhance_amazon,
        ContentType.STACKOVERFLOW: enhance_stackoverflow,
    })
