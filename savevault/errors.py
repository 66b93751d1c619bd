"""Domain exceptions for the backup/restore engine.

Exception hierarchy:
    SaveVaultError (base)
    ├── ConfigurationError       (required provider setting missing)
    ├── ManifestGenerationError  (external manifest generator failed)
    ├── ManifestParseError       (unreadable / structurally invalid mapping.yaml)
    ├── ArchiveError             (tar create / extract failure)
    ├── MoveFailure              (a single restore move failed; nothing rolled back)
    └── RemoteStoreError         (remote object store request failed)
"""

from __future__ import annotations

from pathlib import Path


class SaveVaultError(Exception):
    """Base exception for all savevault errors."""


class ConfigurationError(SaveVaultError):
    """Raised when a provider setting needed by an operation is absent."""


class ManifestGenerationError(SaveVaultError):
    """Raised when the manifest generator exits unsuccessfully."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        self.returncode = returncode
        self.stderr = stderr
        detail = f" (exit {returncode})" if returncode is not None else ""
        super().__init__(f"{message}{detail}: {stderr.strip()}" if stderr.strip() else f"{message}{detail}")


class ManifestParseError(SaveVaultError):
    """Raised for malformed YAML or a manifest without a ``backups`` list."""


class ArchiveError(SaveVaultError):
    """Raised when an archive cannot be created or extracted."""


class MoveFailure(SaveVaultError):
    """Raised when moving one restored file into place fails."""

    def __init__(self, source: Path, destination: Path, reason: str) -> None:
        self.source = source
        self.destination = destination
        super().__init__(f"Failed to move {source} to {destination}: {reason}")


class RemoteStoreError(SaveVaultError):
    """Raised when the remote backup store rejects or fails a request."""
