"""URL pattern classifier."""

import re
from urllib.parse import urlparse

from capture_analyzer.core.entities import Classification, ContentType
from capture_analyzer.core.urls import looks_like_url

DOMAIN_CONFIDENCE = 1.0
EXTENSION_CONFIDENCE = 0.9
PATH_CONFIDENCE = 0.7
BOOKMARK_CONFIDENCE = 0.5
NOTE_CONFIDENCE = 0.3

_HOST = r"^https?://(?:[\w-]+\.)*"

# Known platforms, checked in order
DOMAIN_RULES: list[tuple[str, ContentType]] = [
    # Social
    (_HOST + r"(?:x|twitter)\.com/", ContentType.X),
    (_HOST + r"instagram\.com/(?:p|reel|reels|tv)/", ContentType.INSTAGRAM),
    (_HOST + r"youtube\.com/(?:watch\?|embed/|shorts/|live/)", ContentType.YOUTUBE),
    (_HOST + r"youtu\.be/[\w-]+", ContentType.YOUTUBE),
    (_HOST + r"linkedin\.com/", ContentType.LINKEDIN),
    (_HOST + r"tiktok\.com/", ContentType.TIKTOK),
    (_HOST + r"(?:reddit\.com|redd\.it)/", ContentType.REDDIT),
    (_HOST + r"(?:facebook\.com|fb\.watch)/", ContentType.FACEBOOK),
    # Development
    (_HOST + r"github\.com/", ContentType.GITHUB),
    (_HOST + r"gitlab\.com/", ContentType.GITLAB),
    (_HOST + r"codepen\.io/", ContentType.CODEPEN),
    (_HOST + r"(?:stackoverflow\.com|stackexchange\.com)/questions/", ContentType.STACKOVERFLOW),
    (_HOST + r"dev\.to/", ContentType.DEVTO),
    (_HOST + r"npmjs\.com/package/", ContentType.NPM),
    (_HOST + r"docs\.google\.com/presentation/", ContentType.PRESENTATION),
    (_HOST + r"docs\.google\.com/", ContentType.DOCUMENTATION),
    (r"^https?://docs\.", ContentType.DOCUMENTATION),
    (_HOST + r"readthedocs\.(?:io|org)/", ContentType.DOCUMENTATION),
    # Media
    (_HOST + r"(?:medium\.com|substack\.com)/", ContentType.ARTICLE),
    (_HOST + r"open\.spotify\.com/(?:episode|show|track|album)/", ContentType.AUDIO),
    (_HOST + r"podcasts\.apple\.com/", ContentType.AUDIO),
    (_HOST + r"(?:soundcloud\.com|anchor\.fm|overcast\.fm|pca\.st|castbox\.fm)/", ContentType.AUDIO),
    (_HOST + r"(?:vimeo\.com|twitch\.tv)/", ContentType.VIDEO),
    (_HOST + r"(?:slideshare\.net|speakerdeck\.com)/", ContentType.PRESENTATION),
    (_HOST + r"imgur\.com/", ContentType.IMAGE),
    # Commerce
    (_HOST + r"amazon\.[a-z.]+/(?:.*/)?(?:dp|gp/product)/", ContentType.AMAZON),
    (_HOST + r"amzn\.(?:to|eu)/", ContentType.AMAZON),
    (_HOST + r"etsy\.com/", ContentType.ETSY),
    (_HOST + r"(?:apps\.apple\.com|play\.google\.com/store/apps)/", ContentType.APP),
    # Knowledge
    (_HOST + r"wikipedia\.org/", ContentType.WIKIPEDIA),
    (_HOST + r"(?:arxiv\.org|pubmed\.ncbi\.nlm\.nih\.gov|scholar\.google\.com)/", ContentType.PAPER),
    (_HOST + r"goodreads\.com/book/", ContentType.BOOK),
    (_HOST + r"(?:coursera\.org|udemy\.com|edx\.org|khanacademy\.org)/", ContentType.COURSE),
    # Entertainment
    (_HOST + r"imdb\.com/title/tt\d+", ContentType.MOVIE),
    (_HOST + r"netflix\.com/title/", ContentType.MOVIE),
    # Personal
    (_HOST + r"notion\.(?:so|site)/", ContentType.NOTE),
]

# Raw file links, matched against the URL path
EXTENSION_RULES: list[tuple[str, ContentType]] = [
    (r"\.pdf$", ContentType.PDF),
    (r"\.(?:jpe?g|png|gif|webp|svg|avif|bmp)$", ContentType.IMAGE),
    (r"\.(?:mp4|webm|avi|mov|mkv|m4v)$", ContentType.VIDEO),
    (r"\.(?:mp3|wav|ogg|flac|aac|m4a|opus)$", ContentType.AUDIO),
    (r"\.(?:pptx?|key|odp)$", ContentType.PRESENTATION),
]

# Last resort hints from path segments
PATH_RULES: list[tuple[str, ContentType]] = [
    (r"/(?:products?|shop|store|item)/", ContentType.PRODUCT),
    (r"/(?:docs?|documentation|api-reference)/", ContentType.DOCUMENTATION),
    (r"/(?:blog|articles?|posts?|news)/", ContentType.ARTICLE),
]


class PatternClassifier:
    """Map a normalized URL to a provisional content type."""

    def __init__(self) -> None:
        self._domain_rules = [(re.compile(p, re.IGNORECASE), t) for p, t in DOMAIN_RULES]
        self._extension_rules = [(re.compile(p, re.IGNORECASE), t) for p, t in EXTENSION_RULES]
        self._path_rules = [(re.compile(p, re.IGNORECASE), t) for p, t in PATH_RULES]

    def classify(self, url: str) -> Classification:
        """Classify URL using domain, extension and path rules in that order."""
        if not looks_like_url(url):
            return Classification(ContentType.NOTE, NOTE_CONFIDENCE)

        for pattern, content_type in self._domain_rules:
            if pattern.search(url):
                return Classification(content_type, DOMAIN_CONFIDENCE)

        path = self._path(url)

        for pattern, content_type in self._extension_rules:
            if pattern.search(path):
                return Classification(content_type, EXTENSION_CONFIDENCE)

        # Trailing slash lets "/docs" match the same rule as "/docs/intro"
        for pattern, content_type in self._path_rules:
            if pattern.search(path + "/"):
                return Classification(content_type, PATH_CONFIDENCE)

        return Classification(ContentType.BOOKMARK, BOOKMARK_CONFIDENCE)

    @staticmethod
    def _path(url: str) -> str:
        try:
            return urlparse(url).path
        except ValueError:
            return ""
