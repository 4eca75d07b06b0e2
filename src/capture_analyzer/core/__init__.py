"""Core domain layer."""

from capture_analyzer.core.classifier import PatternClassifier
from capture_analyzer.core.entities import (
    AUTO_TITLE_TYPES,
    GENERIC_TYPES,
    AnalysisResult,
    Classification,
    ContentType,
    ExtractedMetadata,
    PartialMetadata,
    RateLimitState,
    RateLimitStatus,
)
from capture_analyzer.core.enhancers import (
    Enhancement,
    EnhancementContext,
    EnhancerRegistry,
    default_registry,
)
from capture_analyzer.core.interfaces import RateLimitStore, SourceAdapter
from capture_analyzer.core.merger import merge, merge_all
from capture_analyzer.core.rate_limit_gate import RateLimitGate
from capture_analyzer.core.scoring import score_confidence

__all__ = [
    "AUTO_TITLE_TYPES",
    "GENERIC_TYPES",
    "AnalysisResult",
    "Classification",
    "ContentType",
    "ExtractedMetadata",
    "PartialMetadata",
    "RateLimitState",
    "RateLimitStatus",
    "PatternClassifier",
    "Enhancement",
    "EnhancementContext",
    "EnhancerRegistry",
    "default_registry",
    "RateLimitStore",
    "SourceAdapter",
    "merge",
    "merge_all",
    "RateLimitGate",
    "score_confidence",
]
