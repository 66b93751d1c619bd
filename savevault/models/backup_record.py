"""Backup artifact and sidecar metadata models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

# Sidecar keys (camelCase on disk, shared with the remote store description)
_FIELD_NAMES = {
    "shop": "shop",
    "object_id": "objectId",
    "hostname": "hostname",
    "home_dir": "homeDir",
    "platform": "platform",
    "wine_prefix_path": "winePrefixPath",
    "download_option_title": "downloadOptionTitle",
    "label": "label",
}


@dataclass
class BackupMetadata:
    """Sidecar provenance record written next to every archive."""

    shop: str
    object_id: str
    hostname: str = ""
    home_dir: str = ""
    platform: str = ""
    wine_prefix_path: str | None = None
    download_option_title: str | None = None
    label: str | None = None

    def to_fields(self) -> dict[str, str]:
        """Flat string map; unset optional fields are omitted."""
        fields: dict[str, str] = {}
        for attr, key in _FIELD_NAMES.items():
            value = getattr(self, attr)
            if value is None:
                continue
            fields[key] = value
        return fields

    @classmethod
    def from_fields(cls, fields: dict[str, str], object_id: str, shop: str) -> BackupMetadata:
        """Build from a (possibly empty) sidecar map, defaulting identity to the caller's game."""
        return cls(
            shop=fields.get("shop", shop),
            object_id=fields.get("objectId", object_id),
            hostname=fields.get("hostname", ""),
            home_dir=fields.get("homeDir", ""),
            platform=fields.get("platform", ""),
            wine_prefix_path=fields.get("winePrefixPath"),
            download_option_title=fields.get("downloadOptionTitle"),
            label=fields.get("label"),
        )


@dataclass
class BackupArtifact:
    """Catalog view of one stored backup. Never persisted directly."""

    id: str
    name: str
    size_bytes: int
    created_at: datetime
    modified_at: datetime
    game_object_id: str
    game_shop: str
    label: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "sizeBytes": self.size_bytes,
            "createdAt": self.created_at.isoformat(),
            "modifiedAt": self.modified_at.isoformat(),
            "gameObjectId": self.game_object_id,
            "gameShop": self.game_shop,
            "label": self.label,
        }
