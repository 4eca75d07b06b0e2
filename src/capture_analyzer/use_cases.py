"""Business logic use cases."""

import asyncio
from typing import Optional

import httpx

from capture_analyzer.adapters.sources import (
    CodeHostAdapter,
    GenericPageAdapter,
    ReaderAdapter,
    SocialPostAdapter,
    VideoPlatformAdapter,
)
from capture_analyzer.adapters.storage import YamlStateStore
from capture_analyzer.config import Settings
from capture_analyzer.core import (
    AUTO_TITLE_TYPES,
    AnalysisResult,
    ContentType,
    EnhancementContext,
    EnhancerRegistry,
    ExtractedMetadata,
    PartialMetadata,
    PatternClassifier,
    RateLimitGate,
    RateLimitStatus,
    SourceAdapter,
    default_registry,
    merge_all,
    score_confidence,
)
from capture_analyzer.core.enhancers import clean_generic_title, refine_content_type, should_clean_title
from capture_analyzer.core.urls import extract_domain, fallback_title, looks_like_url, normalize_url

FALLBACK_CONFIDENCE = 0.1


class AnalysisService:
    """Turn a captured URL or text into a typed, enriched analysis result."""

    def __init__(
        self,
        classifier: PatternClassifier,
        generic_adapter: SourceAdapter,
        platform_adapters: list[SourceAdapter],
        enhancers: Optional[EnhancerRegistry] = None,
        adapter_timeout: float = 15.0,
        gate: Optional[RateLimitGate] = None,
    ) -> None:
        self.classifier = classifier
        self.generic_adapter = generic_adapter
        self.platform_adapters = platform_adapters
        self.enhancers = enhancers or default_registry()
        self.adapter_timeout = adapter_timeout
        self.gate = gate

    async def analyze_url(self, raw: str) -> AnalysisResult:
        """Analyze one input; never raises for pipeline failures."""
        try:
            return await self._analyze(raw)
        except Exception as e:
            print(f"⚠️  Analysis failed, using fallback: {e}")
            return fallback_result(raw)

    async def _analyze(self, raw: str) -> AnalysisResult:
        text = (raw or "").strip()
        if not looks_like_url(text):
            return note_result(raw)

        url = normalize_url(text)
        classification = self.classifier.classify(url)
        content_type = classification.content_type

        print(f"\n🔎 {url}")
        print(f"  └─ Type: {content_type.value} ({classification.confidence:.0%})")

        base = ExtractedMetadata(domain=extract_domain(url))
        if content_type in AUTO_TITLE_TYPES:
            base.title = fallback_title(url)

        generic = await self._run_adapter(self.generic_adapter, url)

        platform_adapter = self._select_platform_adapter(url, content_type)
        platform = await self._run_adapter(platform_adapter, url) if platform_adapter else None

        metadata = merge_all(base, [generic, platform])

        authoritative = platform is not None and platform_adapter.is_authoritative(platform)
        reader_output = platform if platform is not None and platform_adapter.provides_body_text else None
        context = EnhancementContext(
            content_type=content_type,
            reader_output=reader_output,
            authoritative=authoritative,
        )

        enhancement = self.enhancers.enhance(url, metadata, context)
        metadata = enhancement.metadata
        if enhancement.content_type is not None and enhancement.content_type != content_type:
            print(f"  └─ Type refined: {content_type.value} → {enhancement.content_type.value}")
            content_type = enhancement.content_type

        if should_clean_title(content_type, authoritative):
            metadata = clean_generic_title(url, metadata, context.has_reader_content)

        refined = refine_content_type(content_type, metadata)
        if refined != content_type:
            print(f"  └─ Type refined from og:type: {refined.value}")
            content_type = refined

        confidence = score_confidence(content_type, metadata)
        print(f"  └─ ✓ {content_type.value}, confidence {confidence:.0%}")

        return AnalysisResult(content_type=content_type, metadata=metadata.copy(), confidence=confidence)

    def _select_platform_adapter(self, url: str, content_type: ContentType) -> Optional[SourceAdapter]:
        """First available adapter that serves the provisional type."""
        for adapter in self.platform_adapters:
            if adapter.handles(url, content_type) and adapter.is_available():
                return adapter
        return None

    async def _run_adapter(self, adapter: SourceAdapter, url: str) -> Optional[PartialMetadata]:
        """Call an adapter with a bounded timeout; transient failures mean no data."""
        emoji = getattr(adapter, "emoji", "🔍")
        name = getattr(adapter, "name", adapter.__class__.__name__)
        print(f"  {emoji} {name}")

        try:
            result = await asyncio.wait_for(adapter.fetch(url), timeout=self.adapter_timeout)
        except asyncio.TimeoutError:
            print(f"  └─ ⚠️  Timed out after {self.adapter_timeout}s")
            return None
        except httpx.HTTPError as e:
            print(f"  └─ ⚠️  Request failed: {e}")
            return None

        if result is None:
            print(f"  └─ No data")
        return result

    def rate_limit_status(self, key: str) -> RateLimitStatus:
        """Status of a gated source for display."""
        if self.gate is None:
            raise ValueError("No rate limit gate configured")
        return self.gate.get_status(key)


def note_result(text: str) -> AnalysisResult:
    """Result for free text that is not a URL."""
    metadata = ExtractedMetadata(title=text, content=text, domain="")
    return AnalysisResult(content_type=ContentType.NOTE, metadata=metadata, confidence=FALLBACK_CONFIDENCE)


def fallback_result(raw: str) -> AnalysisResult:
    """Minimal bookmark used when the pipeline fails."""
    metadata = ExtractedMetadata(title=raw, domain=extract_domain(raw or ""))
    return AnalysisResult(content_type=ContentType.BOOKMARK, metadata=metadata, confidence=FALLBACK_CONFIDENCE)


def build_gate(settings: Settings) -> RateLimitGate:
    """Quota gate persisted under the configured state directory."""
    store = YamlStateStore(settings.state_dir)
    return RateLimitGate(
        store,
        staleness_seconds=settings.rate_limit.staleness_seconds,
        default_window_minutes=settings.rate_limit.default_window_minutes,
        default_quotas=settings.rate_limit.default_quotas,
    )


def build_analysis_service(settings: Settings, gate: Optional[RateLimitGate] = None) -> AnalysisService:
    """Wire the default adapters from settings."""
    gate = gate or build_gate(settings)
    timeout = settings.http_timeout

    platform_adapters: list[SourceAdapter] = []
    if settings.adapters.social_enabled:
        platform_adapters.append(SocialPostAdapter(settings.x_bearer_token, gate, timeout=timeout))
    if settings.adapters.video_enabled:
        platform_adapters.append(VideoPlatformAdapter(settings.youtube_api_key, timeout=timeout))
    if settings.adapters.code_host_enabled:
        platform_adapters.append(CodeHostAdapter(settings.github_token, timeout=timeout))
    if settings.adapters.reader_enabled:
        platform_adapters.append(ReaderAdapter(settings.jina_api_key, timeout=settings.adapter_timeout))

    return AnalysisService(
        classifier=PatternClassifier(),
        generic_adapter=GenericPageAdapter(timeout=timeout, user_agent=settings.http.user_agent),
        platform_adapters=platform_adapters,
        enhancers=default_registry(),
        adapter_timeout=settings.adapter_timeout,
        gate=gate,
    )
