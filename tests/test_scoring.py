"""Tests for confidence scoring."""

import pytest

from capture_analyzer.core import ContentType, ExtractedMetadata, score_confidence


def test_generic_type_empty_metadata() -> None:
    """Test base score for a bare bookmark."""
    assert score_confidence(ContentType.BOOKMARK, ExtractedMetadata(domain="example.com")) == 0.5


def test_specific_type_bonus() -> None:
    """Test platform types score higher than fallbacks."""
    md = ExtractedMetadata(domain="example.com")

    assert score_confidence(ContentType.ARTICLE, md) == 0.8
    assert score_confidence(ContentType.NOTE, md) == 0.5


def test_field_bonuses() -> None:
    """Test each populated field adds to the score."""
    md = ExtractedMetadata(domain="example.com", title="A real title", description="Desc")

    assert score_confidence(ContentType.BOOKMARK, md) == 0.7


def test_title_equal_to_domain_does_not_count() -> None:
    """Test a domain-only title adds nothing."""
    md = ExtractedMetadata(domain="example.com", title="example.com")

    assert score_confidence(ContentType.BOOKMARK, md) == 0.5


def test_score_capped() -> None:
    """Test the score never exceeds 1.0."""
    md = ExtractedMetadata(
        domain="example.com",
        title="Title here",
        description="Desc",
        thumbnail_url="https://example.com/t.jpg",
        author="Someone",
    )

    assert score_confidence(ContentType.YOUTUBE, md) == 1.0


@pytest.mark.parametrize("content_type", list(ContentType))
def test_score_bounds(content_type) -> None:
    """Test 0 <= score <= 1 for every content type."""
    for md in (
        ExtractedMetadata(domain=""),
        ExtractedMetadata(domain="d", title="t", description="d2", thumbnail_url="u", author="a"),
    ):
        assert 0.0 <= score_confidence(content_type, md) <= 1.0
