"""Tests for core entities."""

from datetime import datetime, timezone

import pytest

from capture_analyzer.core import (
    AnalysisResult,
    ContentType,
    ExtractedMetadata,
    PartialMetadata,
    RateLimitState,
)


def test_partial_metadata_absent_vs_empty() -> None:
    """Test that absent fields stay None and empty strings are kept."""
    md = PartialMetadata(title="")

    assert md.title == ""
    assert md.description is None
    assert md.extra_data == {}


def test_extracted_metadata_requires_domain() -> None:
    """Test that domain is mandatory on the normalized record."""
    with pytest.raises(TypeError):
        ExtractedMetadata(title="No domain")

    md = ExtractedMetadata(domain="example.com")
    assert md.domain == "example.com"


def test_copy_is_deep() -> None:
    """Test that copies do not share extra_data."""
    md = ExtractedMetadata(domain="example.com", extra_data={"platform": {"name": "x"}})
    clone = md.copy()
    clone.extra_data["platform"]["name"] = "changed"

    assert md.extra_data["platform"]["name"] == "x"
    assert isinstance(clone, ExtractedMetadata)


def test_to_dict_drops_absent_fields() -> None:
    """Test serialization keeps present fields only."""
    md = ExtractedMetadata(domain="example.com", title="", likes=3)
    data = md.to_dict()

    assert data == {"title": "", "domain": "example.com", "likes": 3}


def test_analysis_result_is_frozen() -> None:
    """Test that results cannot be reassigned."""
    result = AnalysisResult(
        content_type=ContentType.ARTICLE,
        metadata=ExtractedMetadata(domain="example.com"),
        confidence=0.8,
    )

    with pytest.raises(AttributeError):
        result.confidence = 1.0  # type: ignore[misc]

    assert result.to_dict()["content_type"] == "article"


def test_content_type_wire_values() -> None:
    """Test enum values used on the wire."""
    assert ContentType.TV_SHOW.value == "tv-show"
    assert ContentType("x") is ContentType.X
    assert ContentType.BOOKMARK == "bookmark"


def test_rate_limit_state_round_trip() -> None:
    """Test state serialization to plain values and back."""
    reset = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
    state = RateLimitState(remaining_requests=0, reset_time=reset, last_checked=reset)

    restored = RateLimitState.from_dict(state.to_dict())

    assert restored == state
    assert RateLimitState.from_dict({}) == RateLimitState()


def test_rate_limit_state_naive_iso_is_utc() -> None:
    """Test naive ISO timestamps load as UTC."""
    state = RateLimitState.from_dict({"remaining_requests": 0, "reset_time": "2025-06-01T12:15:00"})

    assert state.reset_time == datetime(2025, 6, 1, 12, 15, tzinfo=timezone.utc)
