"""Abstract base class for backup storage providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from savevault.models.backup_record import BackupArtifact


@dataclass
class FetchedBackup:
    """An artifact made available on local disk for extraction."""

    archive_path: Path
    metadata: dict[str, str] = field(default_factory=dict)
    temporary: bool = False  # Archive is a download to be removed after use


class BackupProvider(ABC):
    """Storage backend for backup artifacts (local folder, remote object store)."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this provider (e.g. 'local', 'remote')."""
        ...

    @property
    def keeps_archive(self) -> bool:
        """Whether the archive written at ``archive_path`` is the stored artifact itself."""
        return True

    @abstractmethod
    def ensure_configured(self) -> None:
        """Raise ``ConfigurationError`` if a required setting is missing. No I/O."""
        ...

    @abstractmethod
    def archive_path(self, file_name: str) -> Path:
        """Where a new archive named *file_name* should be written."""
        ...

    @abstractmethod
    async def store(self, archive_path: Path, file_name: str, metadata: dict[str, str]) -> None:
        """Commit a freshly written archive together with its sidecar metadata."""
        ...

    @abstractmethod
    async def fetch(self, artifact_id: str, object_id: str, shop: str) -> FetchedBackup:
        """Make an artifact available locally and return it with its metadata."""
        ...

    @abstractmethod
    async def list_backups(self, object_id: str, shop: str) -> list[BackupArtifact]:
        """All artifacts for one game, newest first."""
        ...

    @abstractmethod
    async def delete_backup(self, artifact_id: str) -> None:
        """Delete an artifact and its metadata."""
        ...
