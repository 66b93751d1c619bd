"""Metadata store — JSON sidecar files recording an archive's provenance."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

SIDECAR_SUFFIX = ".meta.json"


def sidecar_path_for(archive_path: Path) -> Path:
    """``<dir>/<archiveName>.meta.json``"""
    return archive_path.with_name(f"{archive_path.name}{SIDECAR_SUFFIX}")


def encode_metadata(fields: dict[str, str]) -> str:
    return json.dumps(fields, ensure_ascii=False)


def decode_metadata(text: str | None) -> dict[str, str]:
    """Parse a sidecar document; anything that is not a JSON object yields ``{}``."""
    if not text:
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return {}
    if not isinstance(data, dict):
        return {}
    return {str(k): v for k, v in data.items() if isinstance(v, str)}


async def write_metadata(sidecar_path: Path, fields: dict[str, str]) -> None:
    """Write (or overwrite) a sidecar file."""
    await asyncio.to_thread(sidecar_path.write_text, encode_metadata(fields), encoding="utf-8")


async def read_metadata(sidecar_path: Path) -> dict[str, str]:
    """Read a sidecar file. Missing or corrupt sidecars read as an empty map."""
    try:
        text = await asyncio.to_thread(sidecar_path.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return {}
    return decode_metadata(text)
