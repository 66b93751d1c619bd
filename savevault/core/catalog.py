"""Backup catalog — discovers, sorts and deletes archive + sidecar pairs on disk."""

from __future__ import annotations

import asyncio
import os
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from savevault.core.archive import ARCHIVE_EXTENSION
from savevault.core.metadata import read_metadata, sidecar_path_for
from savevault.models.backup_record import BackupArtifact


def backup_id_prefix(shop: str, object_id: str) -> str:
    return f"{shop}-{object_id}-"


def backup_file_name(shop: str, object_id: str, timestamp_ms: int) -> str:
    """``<shop>-<objectId>-<unixMillis>.tar``"""
    return f"{backup_id_prefix(shop, object_id)}{timestamp_ms}{ARCHIVE_EXTENSION}"


def sort_artifacts(artifacts: list[BackupArtifact]) -> list[BackupArtifact]:
    """Newest first; ties keep their input order."""
    return sorted(artifacts, key=lambda a: a.created_at, reverse=True)


async def _load_candidate(
    root_dir: Path,
    file_name: str,
    object_id: str,
    shop: str,
) -> BackupArtifact | None:
    archive_path = root_dir / file_name
    stat_result, meta = await asyncio.gather(
        asyncio.to_thread(os.stat, archive_path),
        read_metadata(sidecar_path_for(archive_path)),
        return_exceptions=True,
    )

    # Vanished between listing and stat
    if isinstance(stat_result, BaseException):
        return None
    if isinstance(meta, BaseException):
        meta = {}

    mtime = datetime.fromtimestamp(stat_result.st_mtime, tz=timezone.utc)
    return BackupArtifact(
        id=file_name,
        name=file_name,
        size_bytes=stat_result.st_size,
        created_at=mtime,
        modified_at=mtime,
        game_object_id=meta.get("objectId", object_id),
        game_shop=meta.get("shop", shop),
        label=meta.get("label"),
    )


async def list_backups(
    root_dir: Path,
    id_prefix: str,
    object_id: str,
    shop: str,
) -> list[BackupArtifact]:
    """List archives under *root_dir* whose name starts with *id_prefix*, newest first."""
    try:
        names = await asyncio.to_thread(os.listdir, root_dir)
    except OSError as e:
        logger.debug(f"Backup root not listable: {root_dir}: {e}")
        return []

    candidates = [n for n in names if n.startswith(id_prefix) and n.endswith(ARCHIVE_EXTENSION)]
    if not candidates:
        return []

    results = await asyncio.gather(
        *(_load_candidate(root_dir, name, object_id, shop) for name in candidates)
    )
    return sort_artifacts([r for r in results if r is not None])


async def _unlink(path: Path) -> None:
    await asyncio.to_thread(path.unlink, missing_ok=True)


async def delete_backup(archive_path: Path, sidecar_path: Path) -> None:
    """Delete an archive and its sidecar; neither half's failure blocks the other."""
    results = await asyncio.gather(
        _unlink(archive_path),
        _unlink(sidecar_path),
        return_exceptions=True,
    )
    for path, result in zip((archive_path, sidecar_path), results):
        if isinstance(result, BaseException):
            logger.warning(f"Failed to delete {path}: {result}")
        else:
            logger.debug(f"Deleted {path.name}")
