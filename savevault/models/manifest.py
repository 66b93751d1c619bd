"""Backup manifest models (Ludusavi ``mapping.yaml``)."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class FileInfo:
    """Per-file data recorded by the manifest generator."""

    hash: str | None = None
    size: int | None = None


@dataclass
class BackupEntry:
    """One backup run inside a manifest.

    Keys of ``files`` are abstract Windows-style paths (``C:/Users/me/save.dat``)
    whose drive prefix is looked up in ``BackupManifest.drives``.
    """

    name: str = ""
    when: str | None = None
    files: dict[str, FileInfo] = field(default_factory=dict)


@dataclass
class BackupManifest:
    """File list + drive-letter table for one game's backup. Read-only."""

    backups: list[BackupEntry] = field(default_factory=list)
    drives: dict[str, str] = field(default_factory=dict)

    @property
    def file_keys(self) -> list[str]:
        return [key for entry in self.backups for key in entry.files]
