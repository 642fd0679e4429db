"""
Outbound notification channel.

Every operation may emit info, warning or error messages for whatever layer
renders the game. Messages are appended to an in-memory log and pushed to any
registered callbacks; the core makes no assumption about display.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


logger = logging.getLogger("supertrek.notifications")


class NotificationLevel(Enum):
    """Severity of a notification."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notification:
    """
    One message emitted during an operation.

    Attributes:
        level: Severity category.
        text: Human-readable message.
        stardate: Game time when the message was emitted.
    """
    level: NotificationLevel
    text: str
    stardate: float = 0.0

    def __str__(self) -> str:
        return f"[{self.level.name}] {self.text}"


NotificationCallback = Callable[[Notification], None]


class NotificationChannel:
    """
    Log of notifications plus subscriber callbacks.

    Usage:
        channel = NotificationChannel()
        channel.add_callback(lambda n: print(n.text))
        channel.info("Torpedo track:")
    """

    def __init__(self) -> None:
        self.log: list[Notification] = []
        self._callbacks: list[NotificationCallback] = []
        self._clock: Callable[[], float] = lambda: 0.0

    def set_clock(self, clock: Callable[[], float]) -> None:
        """Set the function used to timestamp notifications."""
        self._clock = clock

    def add_callback(self, callback: NotificationCallback) -> None:
        self._callbacks.append(callback)

    def emit(self, level: NotificationLevel, text: str) -> Notification:
        """Record a notification and notify callbacks."""
        notification = Notification(level=level, text=text, stardate=self._clock())
        self.log.append(notification)

        for callback in self._callbacks:
            try:
                callback(notification)
            except Exception:
                logger.exception("Notification callback failed")

        return notification

    def info(self, text: str) -> Notification:
        return self.emit(NotificationLevel.INFO, text)

    def warning(self, text: str) -> Notification:
        return self.emit(NotificationLevel.WARNING, text)

    def error(self, text: str) -> Notification:
        return self.emit(NotificationLevel.ERROR, text)

    def messages(self, level: Optional[NotificationLevel] = None) -> list[str]:
        """Texts in the log, optionally filtered by level."""
        return [n.text for n in self.log if level is None or n.level == level]

    def clear(self) -> None:
        self.log.clear()
