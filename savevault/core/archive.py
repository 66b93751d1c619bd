"""Archive codec — uncompressed tar archives of a staging directory."""

from __future__ import annotations

import asyncio
import tarfile
from pathlib import Path

from loguru import logger

from savevault.errors import ArchiveError

ARCHIVE_EXTENSION = ".tar"


def _create(source_dir: Path, dest_archive_path: Path) -> None:
    dest_archive_path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(dest_archive_path, "w") as tf:
        tf.add(str(source_dir), arcname=".")


def _extract(archive_path: Path, dest_dir: Path) -> None:
    if not dest_dir.is_dir():
        raise FileNotFoundError(f"Extraction directory does not exist: {dest_dir}")
    with tarfile.open(archive_path, "r:") as tf:
        tf.extractall(dest_dir, filter="data")


async def create_archive(source_dir: Path, dest_archive_path: Path) -> None:
    """Pack the whole of *source_dir* (root entry ``.``) into an uncompressed tar."""
    try:
        await asyncio.to_thread(_create, source_dir, dest_archive_path)
    except (OSError, tarfile.TarError) as e:
        raise ArchiveError(f"Failed to create archive {dest_archive_path}: {e}") from e
    logger.debug(f"Archived {source_dir} -> {dest_archive_path.name}")


async def extract_archive(archive_path: Path, dest_dir: Path) -> None:
    """Unpack *archive_path* into the existing *dest_dir*, overwriting same-named files."""
    try:
        await asyncio.to_thread(_extract, archive_path, dest_dir)
    except (OSError, tarfile.TarError) as e:
        raise ArchiveError(f"Failed to extract archive {archive_path}: {e}") from e
    logger.debug(f"Extracted {archive_path.name} -> {dest_dir}")
