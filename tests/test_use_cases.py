"""Tests for use cases."""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from capture_analyzer.adapters.sources import (
    CodeHostAdapter,
    GenericPageAdapter,
    ReaderAdapter,
    SocialPostAdapter,
    VideoPlatformAdapter,
)
from capture_analyzer.config import PathsConfig, Settings
from capture_analyzer.core import (
    ContentType,
    PartialMetadata,
    PatternClassifier,
    RateLimitGate,
    RateLimitState,
    RateLimitStore,
    SourceAdapter,
)
from capture_analyzer.use_cases import AnalysisService, build_analysis_service


class FakeAdapter(SourceAdapter):
    """Adapter returning a canned result."""

    def __init__(
        self,
        result=None,
        content_types=(),
        authoritative=False,
        available=True,
        body_text=False,
        error=None,
        delay=0.0,
    ) -> None:
        self.result = result
        self.content_types = frozenset(content_types)
        self.authoritative = authoritative
        self.available = available
        self.provides_body_text = body_text
        self.error = error
        self.delay = delay
        self.calls: list[str] = []

    def is_available(self) -> bool:
        return self.available

    async def fetch(self, url):
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result.copy() if self.result else None


class MemoryStore(RateLimitStore):
    def __init__(self) -> None:
        self.data: dict[str, RateLimitState] = {}

    def load(self, key: str) -> RateLimitState:
        return self.data.get(key, RateLimitState())

    def save(self, key: str, state: RateLimitState) -> None:
        self.data[key] = state


def make_service(generic=None, platform=None, **kwargs) -> AnalysisService:
    return AnalysisService(
        classifier=PatternClassifier(),
        generic_adapter=generic or FakeAdapter(),
        platform_adapters=platform or [],
        **kwargs,
    )


@pytest.mark.asyncio
async def test_youtube_short_link_thumbnail() -> None:
    """Test youtu.be links get the canonical high-resolution thumbnail."""
    service = make_service()

    result = await service.analyze_url("https://youtu.be/dQw4w9WgXcQ")

    assert result.content_type == ContentType.YOUTUBE
    assert result.metadata.thumbnail_url == "https://img.youtube.com/vi/dQw4w9WgXcQ/maxresdefault.jpg"


@pytest.mark.asyncio
async def test_x_post_title_parsing() -> None:
    """Test the post body is recovered from the page title."""
    generic = FakeAdapter(PartialMetadata(title='Some User on X: "hello world" / X', domain="x.com"))
    social = FakeAdapter(
        PartialMetadata(author="Some User", username="someuser"),
        content_types=[ContentType.X],
        authoritative=True,
    )
    service = make_service(generic, [social])

    result = await service.analyze_url("https://x.com/someuser/status/123")

    assert result.content_type == ContentType.X
    assert result.metadata.content == "hello world"
    assert result.metadata.title == ""
    assert result.metadata.author == "Some User (@someuser)"
    assert social.calls == ["https://x.com/someuser/status/123"]


@pytest.mark.asyncio
async def test_movie_title_parsing() -> None:
    """Test movie titles are split into title and description."""
    generic = FakeAdapter(PartialMetadata(title="PCU (1994) ⭐ 6.6 | Comedy"))
    service = make_service(generic)

    result = await service.analyze_url("https://www.imdb.com/title/tt0110759/")

    assert result.content_type == ContentType.MOVIE
    assert result.metadata.title == "PCU (1994)"
    assert "⭐ 6.6" in result.metadata.description
    assert "Comedy" in result.metadata.description


@pytest.mark.asyncio
async def test_tv_show_refinement() -> None:
    """Test movie classification is overridden by TV indicators."""
    generic = FakeAdapter(PartialMetadata(title="Breaking Bad (TV Series 2008–2013) ⭐ 9.5 | Crime"))
    service = make_service(generic)

    result = await service.analyze_url("https://www.imdb.com/title/tt0903747/")

    assert result.content_type == ContentType.TV_SHOW
    assert result.metadata.title == "Breaking Bad (2008-2013)"


@pytest.mark.asyncio
async def test_gated_social_adapter_lowers_confidence() -> None:
    """Test a gated social adapter is skipped and the result scores lower."""
    url = "https://x.com/someuser/status/123"
    generic = FakeAdapter(PartialMetadata(
        title='Some User on X: "hello world" / X',
        author="Some User",
        username="someuser",
        domain="x.com",
    ))
    payload = {
        "data": [{
            "id": "123",
            "text": "hello world",
            "author_id": "42",
            "attachments": {"media_keys": ["m1"]},
        }],
        "includes": {
            "users": [{"id": "42", "name": "Some User", "username": "someuser"}],
            "media": [{"media_key": "m1", "type": "photo", "url": "https://pbs.twimg.com/m1.jpg"}],
        },
    }

    # Ungated
    open_gate = RateLimitGate(MemoryStore())
    service = make_service(generic, [SocialPostAdapter("token", open_gate)])
    with patch("httpx.AsyncClient") as mock_client:
        response = Mock()
        response.status_code = 200
        response.headers = {"x-rate-limit-remaining": "5"}
        response.json = Mock(return_value=payload)
        mock_client.return_value.__aenter__.return_value.get = AsyncMock(return_value=response)

        ungated = await service.analyze_url(url)

    # Gated
    closed_gate = RateLimitGate(MemoryStore())
    closed_gate.mark_rate_limited("x_api")
    service = make_service(generic, [SocialPostAdapter("token", closed_gate)])
    with patch("httpx.AsyncClient") as mock_client:
        gated = await service.analyze_url(url)
        mock_client.assert_not_called()

    assert gated.content_type == ContentType.X
    assert gated.metadata.content == "hello world"
    assert gated.metadata.author == "Some User (@someuser)"
    assert ungated.metadata.thumbnail_url == "https://pbs.twimg.com/m1.jpg"
    assert gated.confidence < ungated.confidence


@pytest.mark.asyncio
async def test_free_text_is_note() -> None:
    """Test text input becomes a note without running adapters."""
    generic = FakeAdapter(PartialMetadata(title="never used"))
    service = make_service(generic)

    result = await service.analyze_url("remember to call the plumber")

    assert result.content_type == ContentType.NOTE
    assert result.confidence == 0.1
    assert result.metadata.title == "remember to call the plumber"
    assert result.metadata.content == "remember to call the plumber"
    assert generic.calls == []


@pytest.mark.asyncio
async def test_non_http_scheme_is_note() -> None:
    """Test unfetchable schemes are kept as text notes."""
    generic = FakeAdapter(PartialMetadata(title="never used"))
    service = make_service(generic)

    result = await service.analyze_url("ftp://example.com/file.pdf")

    assert result.content_type == ContentType.NOTE
    assert result.metadata.title == "ftp://example.com/file.pdf"
    assert generic.calls == []


@pytest.mark.asyncio
async def test_bare_domain_is_normalized() -> None:
    """Test bare domains get a scheme before adapters run."""
    generic = FakeAdapter()
    service = make_service(generic)

    result = await service.analyze_url("example.com/page")

    assert generic.calls == ["https://example.com/page"]
    assert result.metadata.domain == "example.com"


@pytest.mark.asyncio
async def test_unexpected_error_falls_back() -> None:
    """Test internal failures degrade to a minimal bookmark."""
    generic = FakeAdapter(error=RuntimeError("parser exploded"))
    service = make_service(generic)

    result = await service.analyze_url("https://example.com/broken")

    assert result.content_type == ContentType.BOOKMARK
    assert result.confidence == 0.1
    assert result.metadata.title == "https://example.com/broken"
    assert result.metadata.domain == "example.com"


@pytest.mark.asyncio
async def test_transient_errors_are_no_data() -> None:
    """Test timeouts and HTTP errors are treated as missing results."""
    slow = FakeAdapter(PartialMetadata(title="too late"), delay=1.0)
    failing = FakeAdapter(error=httpx.ReadTimeout("slow"), content_types=[ContentType.GITHUB])
    service = make_service(slow, [failing], adapter_timeout=0.01)

    result = await service.analyze_url("https://github.com/psf/requests")

    assert result.content_type == ContentType.GITHUB
    assert result.metadata.title == "psf/requests"
    assert result.metadata.author == "psf"
    assert result.confidence > 0.1


@pytest.mark.asyncio
async def test_cancellation_propagates() -> None:
    """Test caller-driven cancellation is not swallowed."""
    generic = FakeAdapter(error=asyncio.CancelledError())
    service = make_service(generic)

    with pytest.raises(asyncio.CancelledError):
        await service.analyze_url("https://example.com/")


@pytest.mark.asyncio
async def test_og_type_refines_bookmark() -> None:
    """Test og:type upgrades the generic fallback."""
    generic = FakeAdapter(PartialMetadata(
        title="Blue Ceramic Mug, 350ml",
        extra_data={"open_graph": {"og:type": "product", "product:price:amount": "12.00"}},
        price="12.00",
    ))
    service = make_service(generic)

    result = await service.analyze_url("https://example.com/blue-mug")

    assert result.content_type == ContentType.PRODUCT
    assert result.metadata.price == "12.00"


@pytest.mark.asyncio
async def test_generic_title_cleared_without_reader_text() -> None:
    """Test placeholder titles are cleared for non-authoritative results."""
    generic = FakeAdapter(PartialMetadata(title="Home"))
    service = make_service(generic)

    result = await service.analyze_url("https://example.com/")

    assert result.content_type == ContentType.BOOKMARK
    assert result.metadata.title == ""


@pytest.mark.asyncio
async def test_reader_text_keeps_short_title() -> None:
    """Test reader body text keeps an otherwise generic title."""
    generic = FakeAdapter(PartialMetadata(title="Home"))
    reader = FakeAdapter(
        PartialMetadata(content="Long body text from the reader."),
        content_types=[ContentType.BOOKMARK],
        body_text=True,
    )
    service = make_service(generic, [reader])

    result = await service.analyze_url("https://example.com/")

    assert result.metadata.title == "Home"
    assert result.metadata.content == "Long body text from the reader."


@pytest.mark.asyncio
async def test_authoritative_result_keeps_title() -> None:
    """Test authoritative adapters suppress generic title cleanup."""
    generic = FakeAdapter(PartialMetadata(title="Home"))
    official = FakeAdapter(
        PartialMetadata(title="Short"),
        content_types=[ContentType.ARTICLE],
        authoritative=True,
    )
    service = make_service(generic, [official])

    result = await service.analyze_url("https://medium.com/@a/post")

    assert result.content_type == ContentType.ARTICLE
    assert result.metadata.title == "Short"


@pytest.mark.asyncio
async def test_unavailable_adapter_is_skipped() -> None:
    """Test adapters without credentials are not selected."""
    missing = FakeAdapter(PartialMetadata(title="never"), content_types=[ContentType.ARTICLE], available=False)
    fallback = FakeAdapter(
        PartialMetadata(title="A long enough article title"),
        content_types=[ContentType.ARTICLE],
    )
    service = make_service(None, [missing, fallback])

    result = await service.analyze_url("https://example.com/blog/post")

    assert missing.calls == []
    assert fallback.calls == ["https://example.com/blog/post"]
    assert result.metadata.title == "A long enough article title"


@pytest.mark.asyncio
async def test_result_metadata_is_private_copy() -> None:
    """Test mutating a result does not leak into adapter data."""
    generic = FakeAdapter(PartialMetadata(title="A long enough page title", extra_data={"k": {"v": 1}}))
    service = make_service(generic)

    result = await service.analyze_url("https://example.com/")
    result.metadata.extra_data["k"]["v"] = 2

    assert generic.result.extra_data["k"]["v"] == 1


def test_build_analysis_service() -> None:
    """Test default wiring from settings."""
    with TemporaryDirectory() as tmpdir:
        settings = Settings(x_bearer_token="token", paths=PathsConfig(state_dir=Path(tmpdir)))
        settings.adapters.reader_enabled = False

        service = build_analysis_service(settings)

        assert isinstance(service.generic_adapter, GenericPageAdapter)
        kinds = [type(adapter) for adapter in service.platform_adapters]
        assert kinds == [SocialPostAdapter, VideoPlatformAdapter, CodeHostAdapter]
        assert ReaderAdapter not in kinds
        assert service.rate_limit_status("x_api").has_info is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("url", "adapter", "expected"),
    [
        ("https://github.com/psf/requests", CodeHostAdapter(), ContentType.GITHUB),
        ("https://youtu.be/dQw4w9WgXcQ", VideoPlatformAdapter(), ContentType.YOUTUBE),
    ],
)
async def test_platform_non_json_body_keeps_classification(url, adapter, expected) -> None:
    """Test an HTML body on a 200 response does not discard the whole analysis."""
    generic = FakeAdapter(PartialMetadata(title="A long enough page title"))
    service = make_service(generic, [adapter])

    with patch("httpx.AsyncClient") as mock_client:
        response = Mock()
        response.status_code = 200
        response.json = Mock(side_effect=json.JSONDecodeError("Expecting value", "<html>", 0))
        mock_client.return_value.__aenter__.return_value.get = AsyncMock(return_value=response)

        result = await service.analyze_url(url)

    assert result.content_type == expected
    assert result.confidence > 0.1


@pytest.mark.asyncio
async def test_naive_reset_time_keeps_social_pipeline_working() -> None:
    """Test a gate shut with a naive reset time still skips cleanly."""
    gate = RateLimitGate(MemoryStore())
    naive_reset = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(minutes=5)
    gate.mark_rate_limited("x_api", naive_reset)
    generic = FakeAdapter(PartialMetadata(title='Some User on X: "hello world" / X', domain="x.com"))
    service = make_service(generic, [SocialPostAdapter("token", gate)])

    with patch("httpx.AsyncClient") as mock_client:
        result = await service.analyze_url("https://x.com/someuser/status/123")
        mock_client.assert_not_called()

    assert result.content_type == ContentType.X
    assert result.metadata.content == "hello world"
