"""Classify captured URLs and normalize their metadata."""

__version__ = "0.1.0"
