"""URL helpers shared by the classifier, adapters and enhancers."""

import re
from urllib.parse import parse_qsl, unquote, urlencode, urlparse, urlunparse

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_BARE_DOMAIN_RE = re.compile(
    r"^(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}(?::\d+)?(?:[/?#]\S*)?$"
)
_TRACKING_PARAMS = {"fbclid", "gclid", "igshid", "mc_cid", "mc_eid"}
_PAGE_EXTENSIONS_RE = re.compile(r"\.(html?|php|aspx?)$", re.IGNORECASE)


def looks_like_url(text: str) -> bool:
    """Check if text is a URL or a bare domain-shaped string.

    Only http(s) is fetchable, so other schemes (ftp://, file://) count as
    plain text and become notes.
    """
    text = (text or "").strip()
    if not text or any(ch.isspace() for ch in text):
        return False

    if text.lower().startswith(("http://", "https://")):
        return bool(urlparse(text).hostname)

    if _SCHEME_RE.match(text):
        return False

    return bool(_BARE_DOMAIN_RE.match(text))


def normalize_url(text: str) -> str:
    """Add an https scheme to bare domains and drop tracking parameters."""
    text = (text or "").strip()
    if not _SCHEME_RE.match(text):
        text = f"https://{text}"
    return strip_tracking_params(text)


def strip_tracking_params(url: str) -> str:
    """Remove utm_* and click-id query parameters."""
    parsed = urlparse(url)
    if not parsed.query:
        return url

    params = parse_qsl(parsed.query, keep_blank_values=True)
    kept = [
        (key, value)
        for key, value in params
        if not key.lower().startswith("utm_") and key.lower() not in _TRACKING_PARAMS
    ]
    if len(kept) == len(params):
        return url

    return urlunparse(parsed._replace(query=urlencode(kept)))


def extract_domain(text: str) -> str:
    """Hostname without a leading www., or the first segment of the input."""
    candidate = (text or "").strip()
    try:
        if not _SCHEME_RE.match(candidate):
            candidate = f"https://{candidate}"
        hostname = urlparse(candidate).hostname
    except ValueError:
        hostname = None

    if not hostname:
        hostname = (text or "").strip().split("/")[0]

    return hostname[4:] if hostname.startswith("www.") else hostname


def fallback_title(url: str) -> str:
    """Readable title derived from the last path segment of a URL."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return url

    segments = [segment for segment in parsed.path.split("/") if segment]
    if not segments:
        return extract_domain(url)

    name = unquote(segments[-1])
    name = _PAGE_EXTENSIONS_RE.sub("", name)
    name = re.sub(r"[-_]+", " ", name).strip()
    if not name:
        return extract_domain(url)

    return " ".join(word[:1].upper() + word[1:] for word in name.split())


def filename_from_url(url: str) -> str:
    """Decoded file name of a URL, query string excluded."""
    path = urlparse(url).path
    name = path.rstrip("/").rsplit("/", 1)[-1]
    return unquote(name)


def path_segments(url: str) -> list[str]:
    """Non-empty path segments of a URL."""
    return [segment for segment in urlparse(url).path.split("/") if segment]
