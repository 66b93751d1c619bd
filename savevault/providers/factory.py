"""Provider factory — builds the provider selected by the settings snapshot."""

from __future__ import annotations

from savevault.config import PROVIDER_LOCAL, PROVIDER_REMOTE, BackupSettings
from savevault.core.notifications import Notifier
from savevault.providers.base import BackupProvider
from savevault.providers.local import LocalBackupProvider
from savevault.providers.remote import HttpBackupStoreClient, RemoteBackupProvider


def create_provider(settings: BackupSettings, notifier: Notifier | None = None) -> BackupProvider:
    if settings.provider == PROVIDER_LOCAL:
        return LocalBackupProvider(settings.local_backup_path)
    if settings.provider == PROVIDER_REMOTE:
        client = None
        if settings.remote_base_url:
            client = HttpBackupStoreClient(
                settings.remote_base_url,
                token=settings.remote_token,
                timeout=settings.remote_timeout,
            )
        return RemoteBackupProvider(client, settings.backups_path, notifier)
    raise ValueError(f"Unknown backup provider: {settings.provider}")
