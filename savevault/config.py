"""Application configuration — JSON file in the data directory plus per-operation snapshots."""

from __future__ import annotations

import copy
import json
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

_instance: "Config | None" = None

_DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "savevault"

CONFIG_FILE_NAME = "config.json"

# Takes precedence over remote.token so the secret can stay out of config.json
REMOTE_TOKEN_ENV = "SAVEVAULT_REMOTE_TOKEN"

PROVIDER_LOCAL = "local"
PROVIDER_REMOTE = "remote"
PROVIDERS = (PROVIDER_LOCAL, PROVIDER_REMOTE)


def get_config() -> Config:
    """Module-level factory — single global Config instance (CLI entry point only)."""
    global _instance
    if _instance is None:
        _instance = Config()
    return _instance


def reset_config() -> None:
    """Reset the global config instance (for testing)."""
    global _instance
    _instance = None


@dataclass(frozen=True)
class BackupSettings:
    """Snapshot of the settings one backup operation runs with."""

    provider: str
    backups_path: Path  # Root of the per-game staging directories
    local_backup_path: Path | None = None
    remote_base_url: str = ""
    remote_token: str = ""
    remote_timeout: float = 60.0


def _merge_into(target: dict[str, Any], overrides: dict[str, Any]) -> None:
    for key, value in overrides.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _merge_into(current, value)
        else:
            target[key] = value


class Config:
    """
    Persistent settings for savevault.

    Values live in ``<data_dir>/config.json`` merged over built-in defaults
    and are addressed with dot-separated keys (``remote.base_url``). Services
    never hold a Config; callers take a ``backup_settings()`` snapshot per
    operation.
    """

    _DEFAULTS: dict[str, Any] = {
        "backup_provider": PROVIDER_LOCAL,
        "local_backup_path": "",
        "backups_path": "",
        "ludusavi": {
            "binary": "ludusavi",
            "config_dir": "",
        },
        "remote": {
            "base_url": "",
            "token": "",
            "timeout": 60,
        },
    }

    def __init__(self, data_dir: Path | None = None) -> None:
        self._dir = data_dir or _DEFAULT_DATA_DIR
        self._path = self._dir / CONFIG_FILE_NAME
        self._lock = threading.Lock()
        self._data = copy.deepcopy(self._DEFAULTS)

        stored = self._read_file()
        if stored:
            _merge_into(self._data, stored)

    def _read_file(self) -> dict[str, Any]:
        if not self._path.is_file():
            return {}
        try:
            stored = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring unreadable {self._path}: {e}")
            return {}
        if not isinstance(stored, dict):
            logger.warning(f"Ignoring {self._path}: top level is not an object")
            return {}
        return stored

    def _write_file(self) -> None:
        """Write the whole document through a temp file."""
        with self._lock:
            tmp_path = self._path.with_name(f"{CONFIG_FILE_NAME}.tmp")
            try:
                self._dir.mkdir(parents=True, exist_ok=True)
                tmp_path.write_text(
                    json.dumps(self._data, ensure_ascii=False, indent=2), encoding="utf-8"
                )
                tmp_path.replace(self._path)
            except OSError as e:
                logger.error(f"Could not write {self._path}: {e}")
                tmp_path.unlink(missing_ok=True)

    # ── Generic access ──

    def get(self, key: str, default: Any = None) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        *parents, leaf = key.split(".")
        node = self._data
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[leaf] = value
        self._write_file()

    # ── Typed properties ──

    @property
    def data_dir(self) -> Path:
        return self._dir

    @property
    def backup_provider(self) -> str:
        return self.get("backup_provider") or PROVIDER_LOCAL

    @backup_provider.setter
    def backup_provider(self, value: str) -> None:
        if value not in PROVIDERS:
            raise ValueError(f"Unknown backup provider: {value}")
        self.set("backup_provider", value)

    @property
    def local_backup_path(self) -> Path | None:
        raw = self.get("local_backup_path")
        return Path(raw) if raw else None

    @local_backup_path.setter
    def local_backup_path(self, value: Path | None) -> None:
        self.set("local_backup_path", str(value) if value else "")

    @property
    def backups_path(self) -> Path:
        """Staging root; defaults to ``<data_dir>/Backups``."""
        raw = self.get("backups_path")
        return Path(raw) if raw else self._dir / "Backups"

    @property
    def ludusavi_binary(self) -> str:
        return self.get("ludusavi.binary") or "ludusavi"

    @property
    def ludusavi_config_dir(self) -> Path | None:
        raw = self.get("ludusavi.config_dir")
        return Path(raw) if raw else None

    @property
    def remote_base_url(self) -> str:
        return self.get("remote.base_url") or ""

    @property
    def remote_token(self) -> str:
        return os.environ.get(REMOTE_TOKEN_ENV) or self.get("remote.token") or ""

    @property
    def remote_timeout(self) -> float:
        raw = self.get("remote.timeout", 60)
        try:
            return float(raw)
        except (TypeError, ValueError):
            logger.warning(f"Invalid remote.timeout {raw!r}, using 60s")
            return 60.0

    def backup_settings(self) -> BackupSettings:
        """Snapshot the current backup settings for one operation."""
        return BackupSettings(
            provider=self.backup_provider,
            backups_path=self.backups_path,
            local_backup_path=self.local_backup_path,
            remote_base_url=self.remote_base_url,
            remote_token=self.remote_token,
            remote_timeout=self.remote_timeout,
        )
