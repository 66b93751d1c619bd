"""Manifest reader — parses the ``mapping.yaml`` written by the manifest generator."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import yaml

from savevault.errors import ManifestParseError
from savevault.models.manifest import BackupEntry, BackupManifest, FileInfo

MANIFEST_FILE_NAME = "mapping.yaml"


def parse_manifest(yaml_text: str) -> BackupManifest:
    """Parse manifest YAML. Only the structural shape is checked; unknown fields are ignored."""
    try:
        data = yaml.safe_load(yaml_text)
    except yaml.YAMLError as e:
        raise ManifestParseError(f"Malformed manifest YAML: {e}") from e

    if not isinstance(data, dict):
        raise ManifestParseError("Manifest must be a mapping")
    if "backups" not in data:
        raise ManifestParseError("Manifest has no 'backups' key")

    raw_backups = data["backups"] or []
    if not isinstance(raw_backups, list):
        raise ManifestParseError("Manifest 'backups' must be a list")

    raw_drives = data.get("drives") or {}
    if not isinstance(raw_drives, dict):
        raise ManifestParseError("Manifest 'drives' must be a mapping")

    return BackupManifest(
        backups=[_parse_entry(raw) for raw in raw_backups],
        drives={str(k): str(v) for k, v in raw_drives.items()},
    )


def _parse_entry(raw: Any) -> BackupEntry:
    if not isinstance(raw, dict):
        raise ManifestParseError(f"Backup entry must be a mapping, got {type(raw).__name__}")

    raw_files = raw.get("files") or {}
    if not isinstance(raw_files, dict):
        raise ManifestParseError("Backup entry 'files' must be a mapping")

    files: dict[str, FileInfo] = {}
    for key, info in raw_files.items():
        info = info if isinstance(info, dict) else {}
        size = info.get("size")
        files[str(key)] = FileInfo(
            hash=info.get("hash"),
            size=int(size) if isinstance(size, int) else None,
        )

    when = raw.get("when")
    return BackupEntry(
        name=str(raw.get("name", "")),
        when=str(when) if when is not None else None,
        files=files,
    )


async def read_manifest(path: Path) -> BackupManifest:
    """Read and parse a manifest file."""
    try:
        text = await asyncio.to_thread(path.read_text, encoding="utf-8")
    except OSError as e:
        raise ManifestParseError(f"Cannot read manifest {path}: {e}") from e
    return parse_manifest(text)
