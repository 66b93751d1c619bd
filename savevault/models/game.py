"""Game reference models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GameRef:
    """The game a backup session operates on."""

    object_id: str
    shop: str
    title: str | None = None
    wine_prefix_path: str | None = None

    @property
    def backup_title(self) -> str:
        """Name the manifest generator files the game's backup under."""
        return self.title or self.object_id

    @property
    def session_key(self) -> str:
        return f"{self.shop}-{self.object_id}"
