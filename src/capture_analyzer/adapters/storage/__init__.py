"""Durable storage adapters."""

from capture_analyzer.adapters.storage.yaml_state_store import YamlStateStore

__all__ = ["YamlStateStore"]
