"""Field-by-field merging of partial metadata."""

import copy
from dataclasses import fields
from typing import Any, Iterable, Optional

from capture_analyzer.core.entities import ExtractedMetadata, PartialMetadata


def merge(base: ExtractedMetadata, overlay: Optional[PartialMetadata]) -> ExtractedMetadata:
    """Overlay fields that are present (not None) onto a copy of base.

    extra_data is merged per key, descending into nested dicts, so an
    overlay never replaces a whole sub-map.
    """
    merged = base.copy()
    if overlay is None:
        return merged

    for f in fields(PartialMetadata):
        if f.name == "extra_data":
            continue
        value = getattr(overlay, f.name)
        if value is not None:
            setattr(merged, f.name, copy.deepcopy(value))

    merged.extra_data = merge_extra_data(merged.extra_data, overlay.extra_data)
    return merged


def merge_all(base: ExtractedMetadata, partials: Iterable[Optional[PartialMetadata]]) -> ExtractedMetadata:
    """Fold partial records onto base left to right, skipping missing ones."""
    merged = base.copy()
    for partial in partials:
        if partial is not None:
            merged = merge(merged, partial)
    return merged


def merge_extra_data(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Recursive per-key merge of two extra_data maps."""
    result = copy.deepcopy(base)
    for key, value in (overlay or {}).items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_extra_data(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result
