"""Notification channel — completion and progress signals per (objectId, shop) session."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Callable

from loguru import logger


class Signal(StrEnum):
    UPLOAD_COMPLETE = "upload-complete"
    DOWNLOAD_COMPLETE = "download-complete"
    DOWNLOAD_PROGRESS = "download-progress"


_CHANNEL_NAMES = {
    Signal.UPLOAD_COMPLETE: "on-upload-complete",
    Signal.DOWNLOAD_COMPLETE: "on-backup-download-complete",
    Signal.DOWNLOAD_PROGRESS: "on-backup-download-progress",
}


@dataclass(frozen=True)
class Notification:
    signal: Signal
    object_id: str
    shop: str
    success: bool = True
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def channel(self) -> str:
        """e.g. ``on-upload-complete-<objectId>-<shop>``"""
        return f"{_CHANNEL_NAMES[self.signal]}-{self.object_id}-{self.shop}"


Subscriber = Callable[[Notification], None]


class Notifier:
    """Fan-out of notifications to subscribers (UI, CLI, tests)."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register *callback*; returns a function that unsubscribes it."""
        self._subscribers.append(callback)
        return lambda: self._subscribers.remove(callback)

    def emit(self, notification: Notification) -> None:
        logger.debug(f"Notify {notification.channel} success={notification.success}")
        for callback in list(self._subscribers):
            try:
                callback(notification)
            except Exception as e:
                logger.error(f"Notification subscriber failed on {notification.channel}: {e}")

    def upload_complete(self, object_id: str, shop: str, success: bool) -> None:
        self.emit(Notification(Signal.UPLOAD_COMPLETE, object_id, shop, success))

    def download_complete(self, object_id: str, shop: str, success: bool) -> None:
        self.emit(Notification(Signal.DOWNLOAD_COMPLETE, object_id, shop, success))

    def download_progress(self, object_id: str, shop: str, loaded: int, total: int | None) -> None:
        self.emit(
            Notification(
                Signal.DOWNLOAD_PROGRESS,
                object_id,
                shop,
                payload={"loaded": loaded, "total": total},
            )
        )
