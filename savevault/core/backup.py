"""Backup orchestrator — upload / download / list / delete flows across providers."""

from __future__ import annotations

import asyncio
import os
import shutil
import socket
import sys
import time
from enum import StrEnum
from pathlib import Path
from typing import Callable

from loguru import logger

from savevault.config import BackupSettings
from savevault.core.archive import create_archive, extract_archive
from savevault.core.catalog import backup_file_name
from savevault.core.ludusavi import ManifestGenerator
from savevault.core.notifications import Notifier
from savevault.core.profile import UserProfileResolver
from savevault.core.restore import RestoreEngine
from savevault.models.backup_record import BackupArtifact, BackupMetadata
from savevault.models.game import GameRef
from savevault.providers.base import BackupProvider
from savevault.providers.factory import create_provider
from savevault.utils import normalize_path

ProviderFactory = Callable[[BackupSettings, Notifier], BackupProvider]


class SessionState(StrEnum):
    IDLE = "idle"
    EXPORTING = "exporting"
    ARCHIVING = "archiving"
    WRITING_METADATA = "writing-metadata"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    RESTORING = "restoring"
    NOTIFYING_COMPLETE = "notifying-complete"


def staging_dir_for(backups_path: Path, game: GameRef) -> Path:
    """``<backupsRoot>/<shop>-<objectId>``"""
    return backups_path / game.session_key


def _now_ms() -> int:
    return int(time.time() * 1000)


def _recreate_dir(path: Path) -> None:
    shutil.rmtree(path, ignore_errors=True)
    path.mkdir(parents=True, exist_ok=True)


def _remove_path(path: Path) -> None:
    if path.is_dir():
        shutil.rmtree(path)
    else:
        path.unlink(missing_ok=True)


class BackupOrchestrator:
    """
    Drives one backup session per (objectId, shop).

    Upload:   exporting -> archiving -> writing-metadata -> notifying-complete
    Download: fetching -> extracting -> restoring -> notifying-complete

    Every attempt emits exactly one completion notification. Staging
    directories are wiped at the start of an operation and removed in the
    background once its result is committed; that removal is never awaited
    by the operation itself.
    """

    def __init__(
        self,
        generator: ManifestGenerator,
        restore_engine: RestoreEngine,
        profile_resolver: UserProfileResolver,
        notifier: Notifier,
        provider_factory: ProviderFactory = create_provider,
    ) -> None:
        self._generator = generator
        self._restore_engine = restore_engine
        self._profile_resolver = profile_resolver
        self._notifier = notifier
        self._provider_factory = provider_factory
        self._states: dict[tuple[str, str], SessionState] = {}
        self._cleanup_tasks: set[asyncio.Task[None]] = set()
        self._pending_cleanup: dict[Path, asyncio.Task[None]] = {}

    # ── Session state ──

    def state_of(self, object_id: str, shop: str) -> SessionState:
        return self._states.get((object_id, shop), SessionState.IDLE)

    def _set_state(self, game: GameRef, state: SessionState) -> None:
        self._states[(game.object_id, game.shop)] = state
        logger.debug(f"[{game.session_key}] {state}")

    # ── Background cleanup ──

    def _spawn_cleanup(self, *paths: Path) -> None:
        task = asyncio.create_task(self._cleanup(paths))
        self._cleanup_tasks.add(task)
        task.add_done_callback(self._cleanup_tasks.discard)
        for path in paths:
            self._pending_cleanup[path] = task

    async def _prepare_staging(self, staging_dir: Path) -> None:
        # A previous session's removal must not land after the wipe below
        pending = self._pending_cleanup.pop(staging_dir, None)
        if pending is not None and not pending.done():
            await pending
        await asyncio.to_thread(_recreate_dir, staging_dir)

    async def _cleanup(self, paths: tuple[Path, ...]) -> None:
        for path in paths:
            try:
                await asyncio.to_thread(_remove_path, path)
            except OSError as e:
                logger.error(f"Failed to remove {path}: {e}")
        current = asyncio.current_task()
        for path in paths:
            if self._pending_cleanup.get(path) is current:
                del self._pending_cleanup[path]

    async def wait_for_cleanup(self) -> None:
        """Wait for pending background cleanups (CLI shutdown, tests)."""
        while self._cleanup_tasks:
            await asyncio.gather(*list(self._cleanup_tasks))

    # ── Flows ──

    async def _build_metadata(
        self,
        game: GameRef,
        download_option_title: str | None,
        label: str | None,
    ) -> BackupMetadata:
        wine_prefix = game.wine_prefix_path
        # Reads the prefix's user.reg
        home_dir = await asyncio.to_thread(
            self._profile_resolver.resolve_user_profile_path, wine_prefix
        )
        return BackupMetadata(
            shop=game.shop,
            object_id=game.object_id,
            hostname=socket.gethostname(),
            home_dir=home_dir,
            platform=sys.platform,
            wine_prefix_path=os.path.realpath(wine_prefix) if wine_prefix else None,
            download_option_title=download_option_title or None,
            label=label or None,
        )

    async def upload_save_game(
        self,
        settings: BackupSettings,
        game: GameRef,
        download_option_title: str | None = None,
        label: str | None = None,
    ) -> str:
        """Export, archive and store a game's saves. Returns the new artifact's file name."""
        provider = self._provider_factory(settings, self._notifier)
        staging_dir = staging_dir_for(settings.backups_path, game)
        archive_path: Path | None = None

        try:
            provider.ensure_configured()

            self._set_state(game, SessionState.EXPORTING)
            await self._prepare_staging(staging_dir)
            await self._generator.generate(
                game.shop, game.object_id, staging_dir, game.wine_prefix_path
            )

            self._set_state(game, SessionState.ARCHIVING)
            file_name = backup_file_name(game.shop, game.object_id, _now_ms())
            archive_path = provider.archive_path(file_name)
            await create_archive(staging_dir, archive_path)

            self._set_state(game, SessionState.WRITING_METADATA)
            metadata = await self._build_metadata(game, download_option_title, label)
            await provider.store(archive_path, file_name, metadata.to_fields())
        except Exception as e:
            logger.error(f"Upload failed for {game.session_key}: {e}")
            # A half-written archive must not show up in the catalog
            partial = self.state_of(game.object_id, game.shop) == SessionState.ARCHIVING
            if archive_path is not None and (partial or not provider.keeps_archive):
                self._spawn_cleanup(archive_path)
            self._notifier.upload_complete(game.object_id, game.shop, False)
            self._set_state(game, SessionState.IDLE)
            raise

        self._set_state(game, SessionState.NOTIFYING_COMPLETE)
        self._notifier.upload_complete(game.object_id, game.shop, True)
        logger.info(f"Backed up {game.session_key} to {provider.name} as {file_name}")

        leftovers = [staging_dir] if provider.keeps_archive else [archive_path, staging_dir]
        self._spawn_cleanup(*leftovers)
        self._set_state(game, SessionState.IDLE)
        return file_name

    async def download_backup(
        self,
        settings: BackupSettings,
        game: GameRef,
        artifact_id: str,
    ) -> list[Path]:
        """Fetch, extract and restore an artifact. Returns the restored file paths."""
        provider = self._provider_factory(settings, self._notifier)
        staging_dir = staging_dir_for(settings.backups_path, game)
        fetched = None

        try:
            provider.ensure_configured()

            self._set_state(game, SessionState.FETCHING)
            fetched = await provider.fetch(artifact_id, game.object_id, game.shop)
            metadata = BackupMetadata.from_fields(fetched.metadata, game.object_id, game.shop)

            self._set_state(game, SessionState.EXTRACTING)
            await self._prepare_staging(staging_dir)
            await extract_archive(fetched.archive_path, staging_dir)

            self._set_state(game, SessionState.RESTORING)
            restored = await self._restore_engine.restore(
                staging_dir,
                game.backup_title,
                normalize_path(metadata.home_dir),
                wine_prefix=game.wine_prefix_path,
                artifact_wine_prefix=metadata.wine_prefix_path,
            )
        except Exception as e:
            logger.error(f"Download failed for {game.session_key}: {e}")
            if fetched is not None and fetched.temporary:
                self._spawn_cleanup(fetched.archive_path)
            self._notifier.download_complete(game.object_id, game.shop, False)
            self._set_state(game, SessionState.IDLE)
            raise

        self._set_state(game, SessionState.NOTIFYING_COMPLETE)
        self._notifier.download_complete(game.object_id, game.shop, True)

        leftovers = [staging_dir]
        if fetched.temporary:
            leftovers.insert(0, fetched.archive_path)
        self._spawn_cleanup(*leftovers)
        self._set_state(game, SessionState.IDLE)
        return restored

    async def list_backups(self, settings: BackupSettings, game: GameRef) -> list[BackupArtifact]:
        provider = self._provider_factory(settings, self._notifier)
        provider.ensure_configured()
        return await provider.list_backups(game.object_id, game.shop)

    async def delete_backup(self, settings: BackupSettings, artifact_id: str) -> None:
        provider = self._provider_factory(settings, self._notifier)
        provider.ensure_configured()
        await provider.delete_backup(artifact_id)
        logger.info(f"Deleted backup {artifact_id} from {provider.name}")
