"""Configuration management."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


@dataclass
class HttpConfig:
    """Outbound HTTP settings."""
    timeout: float = 10.0
    user_agent: str = "Mozilla/5.0 (compatible; CaptureAnalyzer/1.0)"


@dataclass
class AdaptersConfig:
    """Source adapter settings."""
    adapter_timeout: float = 15.0
    reader_enabled: bool = True
    social_enabled: bool = True
    video_enabled: bool = True
    code_host_enabled: bool = True


@dataclass
class RateLimitConfig:
    """Quota gate settings."""
    staleness_seconds: float = 60
    default_window_minutes: float = 15
    default_quotas: dict = field(default_factory=lambda: {
        "x_api": 1,
    })


@dataclass
class PathsConfig:
    """Path settings."""
    state_dir: Path = Path("state")


@dataclass
class Settings:
    """Application settings."""

    # API Keys (from environment only)
    x_bearer_token: Optional[str] = None
    jina_api_key: Optional[str] = None
    youtube_api_key: Optional[str] = None
    github_token: Optional[str] = None

    # Config sections
    http: HttpConfig = field(default_factory=HttpConfig)
    adapters: AdaptersConfig = field(default_factory=AdaptersConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)

    @property
    def http_timeout(self) -> float:
        return self.http.timeout

    @property
    def adapter_timeout(self) -> float:
        return self.adapters.adapter_timeout

    @property
    def state_dir(self) -> Path:
        return self.paths.state_dir


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_settings(config_path: Path = Path("config.yaml")) -> Settings:
    """Get application settings from YAML config and environment."""
    config = load_config(config_path)

    settings = Settings(
        x_bearer_token=os.getenv("X_BEARER_TOKEN") or None,
        jina_api_key=os.getenv("JINA_API_KEY") or None,
        youtube_api_key=os.getenv("YOUTUBE_API_KEY") or None,
        github_token=os.getenv("GITHUB_TOKEN") or None,
    )

    # Apply YAML config
    if "http" in config:
        for key, value in config["http"].items():
            setattr(settings.http, key, value)

    if "adapters" in config:
        for key, value in config["adapters"].items():
            setattr(settings.adapters, key, value)

    if "rate_limit" in config:
        for key, value in config["rate_limit"].items():
            if key == "default_quotas":
                settings.rate_limit.default_quotas.update(value or {})
            else:
                setattr(settings.rate_limit, key, value)

    if "paths" in config:
        for key, value in config["paths"].items():
            setattr(settings.paths, key, Path(value))

    return settings
