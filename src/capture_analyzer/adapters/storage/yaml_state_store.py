"""YAML file store for rate-limit state."""

import os
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import quote, unquote

import yaml

from capture_analyzer.core import RateLimitState, RateLimitStore


class YamlStateStore(RateLimitStore):
    """Keep one YAML artifact per resource key."""

    def __init__(self, storage_dir: Path) -> None:
        self.storage_dir = Path(storage_dir)
        self._ensure_structure()

    def _ensure_structure(self) -> None:
        """Create storage directory."""
        if not self.storage_dir.exists():
            self.storage_dir.mkdir(parents=True, exist_ok=True)

    def load(self, key: str) -> RateLimitState:
        """Load state for key, empty when missing or unreadable."""
        path = self._get_path(key)
        if not path.exists():
            return RateLimitState()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            return RateLimitState.from_dict(data)
        except (OSError, yaml.YAMLError, TypeError, ValueError) as e:
            print(f"⚠️  Warning: Could not read rate limit state {path.name}: {e}")
            return RateLimitState()

    def save(self, key: str, state: RateLimitState) -> None:
        """Write state atomically through a temp file."""
        path = self._get_path(key)
        tmp_path = path.with_name(path.name + ".tmp")

        artifact = {
            "resource_key": key,
            **state.to_dict(),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                yaml.dump(artifact, f, allow_unicode=True, default_flow_style=False, sort_keys=False)
            os.replace(tmp_path, path)
        except OSError as e:
            print(f"⚠️  Warning: Could not save rate limit state {key}: {e}")
            self._remove_temp(tmp_path)

    def keys(self) -> list[str]:
        """Resource keys with stored state."""
        result = []
        for path in sorted(self.storage_dir.glob("*.yaml")):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
                result.append(data.get("resource_key") or unquote(path.stem))
            except (OSError, yaml.YAMLError):
                continue
        return result

    def _get_path(self, key: str) -> Path:
        """Get path for a key's artifact file.

        Percent-encoding keeps distinct keys in distinct files (x:api vs x_api).
        """
        safe_key = quote(key, safe="")
        return self.storage_dir / f"{safe_key}.yaml"

    @staticmethod
    def _remove_temp(tmp_path: Path) -> None:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError as e:
            print(f"⚠️  Warning: Could not remove {tmp_path.name}: {e}")
