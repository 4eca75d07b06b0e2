"""Source adapters for fetching metadata."""

from capture_analyzer.adapters.sources.code_host_source import CodeHostAdapter
from capture_analyzer.adapters.sources.generic_page_source import GenericPageAdapter
from capture_analyzer.adapters.sources.reader_source import ReaderAdapter
from capture_analyzer.adapters.sources.social_post_source import SocialPostAdapter
from capture_analyzer.adapters.sources.video_platform_source import VideoPlatformAdapter

__all__ = [
    "CodeHostAdapter",
    "GenericPageAdapter",
    "ReaderAdapter",
    "SocialPostAdapter",
    "VideoPlatformAdapter",
]
