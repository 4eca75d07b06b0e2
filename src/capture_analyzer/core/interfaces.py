"""Core interfaces for adapters."""

from abc import ABC, abstractmethod
from typing import Optional

from capture_analyzer.core.entities import ContentType, PartialMetadata, RateLimitState


class SourceAdapter(ABC):
    """Interface for fetching partial metadata about a URL."""

    emoji = "🔍"
    name = "source"

    # Authoritative sources keep their title untouched by generic cleanup
    authoritative = False

    # Sources whose content field is extracted page body text
    provides_body_text = False

    # Content types this adapter serves as the platform adapter
    content_types: frozenset[ContentType] = frozenset()

    def is_available(self) -> bool:
        """Whether credentials or configuration allow calling the source."""
        return True

    def is_authoritative(self, result: Optional[PartialMetadata]) -> bool:
        """Whether this particular result came from an official structured API."""
        return result is not None and self.authoritative

    def handles(self, url: str, content_type: ContentType) -> bool:
        """Whether this adapter should run for the URL's provisional type."""
        return content_type in self.content_types

    @abstractmethod
    async def fetch(self, url: str) -> Optional[PartialMetadata]:
        """Fetch metadata for the URL, or None when the source has nothing."""
        pass


class RateLimitStore(ABC):
    """Durable storage for rate-limit state, one record per resource key."""

    @abstractmethod
    def load(self, key: str) -> RateLimitState:
        """Load stored state, empty when nothing was saved yet."""
        pass

    @abstractmethod
    def save(self, key: str, state: RateLimitState) -> None:
        """Persist state for the key."""
        pass

    def keys(self) -> list[str]:
        """Resource keys with stored state."""
        return []
