"""Confidence scoring for analysis results."""

from capture_analyzer.core.entities import GENERIC_TYPES, ContentType, PartialMetadata

BASE_SCORE = 0.5
SPECIFIC_TYPE_BONUS = 0.3
FIELD_BONUS = 0.1


def score_confidence(content_type: ContentType, metadata: PartialMetadata) -> float:
    """Score how much we know about an item, between 0 and 1."""
    score = BASE_SCORE

    if content_type not in GENERIC_TYPES:
        score += SPECIFIC_TYPE_BONUS

    if metadata.title and metadata.title != metadata.domain:
        score += FIELD_BONUS
    if metadata.description:
        score += FIELD_BONUS
    if metadata.thumbnail_url:
        score += FIELD_BONUS
    if metadata.author:
        score += FIELD_BONUS

    return round(min(score, 1.0), 2)
