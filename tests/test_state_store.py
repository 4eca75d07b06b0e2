"""Tests for YAML rate-limit state store."""

from datetime import datetime, timezone
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

import yaml

from capture_analyzer.adapters.storage import YamlStateStore
from capture_analyzer.core import RateLimitState


def test_state_store_basic() -> None:
    """Test saving and loading state."""
    with TemporaryDirectory() as tmpdir:
        storage_dir = Path(tmpdir) / "state"
        store = YamlStateStore(storage_dir)

        # Initially empty
        assert store.load("x_api") == RateLimitState()

        state = RateLimitState(
            remaining_requests=0,
            reset_time=datetime(2025, 6, 1, 12, 15, tzinfo=timezone.utc),
            last_checked=datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc),
        )
        store.save("x_api", state)

        # Check artifact file exists
        artifacts = list(storage_dir.glob("*.yaml"))
        assert len(artifacts) == 1

        # Load from new store instance
        store2 = YamlStateStore(storage_dir)
        assert store2.load("x_api") == state


def test_artifact_contents() -> None:
    """Test the YAML artifact is human-readable."""
    with TemporaryDirectory() as tmpdir:
        store = YamlStateStore(Path(tmpdir))
        store.save("x_api", RateLimitState(remaining_requests=3))

        with open(Path(tmpdir) / "x_api.yaml", "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        assert data["resource_key"] == "x_api"
        assert data["remaining_requests"] == 3
        assert data["reset_time"] is None
        assert "updated_at" in data


def test_unreadable_artifact_loads_empty() -> None:
    """Test corrupt files fall back to empty state."""
    with TemporaryDirectory() as tmpdir:
        store = YamlStateStore(Path(tmpdir))
        (Path(tmpdir) / "x_api.yaml").write_text("remaining_requests: [unclosed", encoding="utf-8")

        assert store.load("x_api") == RateLimitState()


def test_keys_are_sanitized_and_listed() -> None:
    """Test unsafe key characters are encoded into a safe file name."""
    with TemporaryDirectory() as tmpdir:
        store = YamlStateStore(Path(tmpdir))
        store.save("api/v2:tweets", RateLimitState(remaining_requests=1))
        store.save("x_api", RateLimitState(remaining_requests=1))

        assert (Path(tmpdir) / "api%2Fv2%3Atweets.yaml").exists()
        assert sorted(store.keys()) == ["api/v2:tweets", "x_api"]
        assert not list(Path(tmpdir).glob("*.tmp"))


def test_similar_keys_do_not_collide() -> None:
    """Test keys differing only in punctuation keep separate artifacts."""
    with TemporaryDirectory() as tmpdir:
        store = YamlStateStore(Path(tmpdir))
        store.save("x:api", RateLimitState(remaining_requests=1))
        store.save("x_api", RateLimitState(remaining_requests=7))

        assert store.load("x:api").remaining_requests == 1
        assert store.load("x_api").remaining_requests == 7
        assert sorted(store.keys()) == ["x:api", "x_api"]


def test_failed_replace_leaves_no_temp_file() -> None:
    """Test a failed save cleans up its temp file and keeps the old artifact."""
    with TemporaryDirectory() as tmpdir:
        store = YamlStateStore(Path(tmpdir))
        store.save("x_api", RateLimitState(remaining_requests=3))

        with patch("os.replace", side_effect=OSError("disk full")):
            store.save("x_api", RateLimitState(remaining_requests=0))

        assert not list(Path(tmpdir).glob("*.tmp"))
        assert store.load("x_api").remaining_requests == 3
