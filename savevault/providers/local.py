"""Local provider — archives and sidecars directly under a user-chosen folder."""

from __future__ import annotations

from pathlib import Path

from savevault.core import catalog
from savevault.core.metadata import read_metadata, sidecar_path_for, write_metadata
from savevault.errors import ConfigurationError
from savevault.models.backup_record import BackupArtifact
from savevault.providers.base import BackupProvider, FetchedBackup


class LocalBackupProvider(BackupProvider):
    def __init__(self, root: Path | None) -> None:
        self._root = root

    @property
    def name(self) -> str:
        return "local"

    @property
    def root(self) -> Path:
        self.ensure_configured()
        assert self._root is not None
        return self._root

    def ensure_configured(self) -> None:
        if not self._root:
            raise ConfigurationError("Local backup path is not configured")

    def _artifact_path(self, artifact_id: str) -> Path:
        if not artifact_id or Path(artifact_id).name != artifact_id:
            raise ValueError(f"Invalid backup file name: {artifact_id!r}")
        return self.root / artifact_id

    def archive_path(self, file_name: str) -> Path:
        return self._artifact_path(file_name)

    async def store(self, archive_path: Path, file_name: str, metadata: dict[str, str]) -> None:
        await write_metadata(sidecar_path_for(archive_path), metadata)

    async def fetch(self, artifact_id: str, object_id: str, shop: str) -> FetchedBackup:
        archive_path = self._artifact_path(artifact_id)
        metadata = await read_metadata(sidecar_path_for(archive_path))
        return FetchedBackup(archive_path=archive_path, metadata=metadata)

    async def list_backups(self, object_id: str, shop: str) -> list[BackupArtifact]:
        return await catalog.list_backups(
            self.root, catalog.backup_id_prefix(shop, object_id), object_id, shop
        )

    async def delete_backup(self, artifact_id: str) -> None:
        archive_path = self._artifact_path(artifact_id)
        await catalog.delete_backup(archive_path, sidecar_path_for(archive_path))
