"""Restore engine — move extracted save files from a staging directory to their real locations.

Restore is not transactional: entries are processed one after another, the
files of one entry concurrently, and a failed move leaves every file that was
already moved in place.
"""

from __future__ import annotations

import asyncio
import errno
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from savevault.core.manifest import MANIFEST_FILE_NAME, read_manifest
from savevault.core.path_resolver import (
    apply_rules,
    drive_rules,
    profile_rules,
    to_portable_path,
)
from savevault.core.profile import UserProfileResolver
from savevault.errors import MoveFailure
from savevault.models.manifest import BackupManifest


@dataclass
class FileMove:
    """One file to move into place."""

    key: str  # Abstract path as recorded in the manifest
    source: Path
    destination: Path


def _join(base: Path, relative: str) -> Path:
    """Join like a plain string join: an absolute *relative* stays under *base*."""
    return Path(os.path.normpath(os.path.join(str(base), relative.lstrip("/\\"))))


def plan_moves(
    manifest: BackupManifest,
    game_dir: Path,
    home_dir: str,
    user_profile_path: str,
    wine_prefix: str | None = None,
    artifact_wine_prefix: str | None = None,
) -> list[list[FileMove]]:
    """Compute source/destination pairs, grouped per manifest entry. No I/O."""
    source_rules = drive_rules(manifest.drives)
    destination_rules = profile_rules(home_dir, user_profile_path, wine_prefix)

    plan: list[list[FileMove]] = []
    for entry in manifest.backups:
        moves = []
        for key in entry.files:
            source_relative = apply_rules(key, source_rules)
            destination = apply_rules(
                to_portable_path(key, artifact_wine_prefix), destination_rules
            )
            moves.append(
                FileMove(
                    key=key,
                    source=_join(game_dir, source_relative),
                    destination=Path(destination),
                )
            )
        plan.append(moves)
    return plan


def _move_file(move: FileMove) -> None:
    move.destination.parent.mkdir(parents=True, exist_ok=True)
    move.destination.unlink(missing_ok=True)
    try:
        os.replace(move.source, move.destination)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        shutil.move(str(move.source), str(move.destination))


class RestoreEngine:
    """Restores a Ludusavi-layout staging directory onto the real filesystem."""

    def __init__(self, profile_resolver: UserProfileResolver) -> None:
        self._profile_resolver = profile_resolver

    async def _move(self, move: FileMove) -> Path:
        logger.info(f"Moving {move.source} to {move.destination}")
        try:
            await asyncio.to_thread(_move_file, move)
        except OSError as e:
            raise MoveFailure(move.source, move.destination, str(e)) from e
        return move.destination

    async def restore(
        self,
        staging_dir: Path,
        game_title: str,
        home_dir: str,
        wine_prefix: str | None = None,
        artifact_wine_prefix: str | None = None,
    ) -> list[Path]:
        """
        Move every file listed in ``<staging_dir>/<game_title>/mapping.yaml`` into place.

        ``home_dir`` is the profile path recorded when the backup was made,
        ``wine_prefix`` the target game's current prefix and
        ``artifact_wine_prefix`` the prefix the backup was taken from.
        Returns the destinations written.
        """
        game_dir = staging_dir / game_title
        manifest = await read_manifest(game_dir / MANIFEST_FILE_NAME)
        logger.info(f"Restoring {len(manifest.file_keys)} files for {game_title}")
        user_profile_path = await asyncio.to_thread(
            self._profile_resolver.resolve_user_profile_path, wine_prefix
        )

        plan = plan_moves(
            manifest,
            game_dir,
            home_dir,
            user_profile_path,
            wine_prefix=wine_prefix,
            artifact_wine_prefix=artifact_wine_prefix,
        )

        restored: list[Path] = []
        for moves in plan:
            restored.extend(await asyncio.gather(*(self._move(m) for m in moves)))

        logger.info(f"Restored {len(restored)} files for {game_title}")
        return restored
