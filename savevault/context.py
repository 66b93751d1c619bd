"""Application context — service container for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass

from savevault.config import Config
from savevault.core.backup import BackupOrchestrator
from savevault.core.ludusavi import LudusaviManifestGenerator
from savevault.core.notifications import Notifier
from savevault.core.profile import HostUserProfileResolver
from savevault.core.restore import RestoreEngine


@dataclass
class AppContext:
    """
    Central service container.

    Front-ends receive this at construction time; services never read the
    config themselves, each operation gets a ``BackupSettings`` snapshot.
    """

    config: Config
    notifier: Notifier
    restore_engine: RestoreEngine
    orchestrator: BackupOrchestrator


def create_context(config: Config) -> AppContext:
    """Wire all services and return an AppContext."""
    notifier = Notifier()
    profile_resolver = HostUserProfileResolver()
    restore_engine = RestoreEngine(profile_resolver)
    generator = LudusaviManifestGenerator(
        binary=config.ludusavi_binary,
        config_dir=config.ludusavi_config_dir,
    )
    orchestrator = BackupOrchestrator(generator, restore_engine, profile_resolver, notifier)

    return AppContext(
        config=config,
        notifier=notifier,
        restore_engine=restore_engine,
        orchestrator=orchestrator,
    )
