"""Shared utility functions."""

from __future__ import annotations

import posixpath


def format_size(size_bytes: int) -> str:
    """Format byte count to human-readable string."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.2f} GB"


def normalize_path(value: str) -> str:
    """Normalize a path string to forward slashes without redundant segments.

    "C:\\Users\\me\\" → "C:/Users/me". An empty string stays empty.
    """
    if not value:
        return ""
    return posixpath.normpath(value.replace("\\", "/"))


def add_trailing_slash(value: str) -> str:
    """Return *value* with exactly one guaranteed trailing ``/``."""
    return value if value.endswith("/") else f"{value}/"
