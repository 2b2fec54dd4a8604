"""Time-windowed dedup cache for (sender, recipient) notification pairs."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from lightning_intents.config import Settings

logger = logging.getLogger(__name__)


def dedupe_key(sender_id: str, recipient_id: str) -> str:
    return f"{sender_id}:{recipient_id}"


class NotificationDedupCache:
    """Thread-safe, in-memory record of recently sent notifications.

    An entry older than the window counts as absent even while it is
    still stored. Expired entries are only dropped by a sweep, which runs
    when a record pushes the entry count over the high-water mark.

    The cache is per process and is not persisted.
    """

    def __init__(
        self,
        window_seconds: float = 24 * 60 * 60,
        high_water_mark: int = 10_000,
        clock: Callable[[], float] = time.time,
    ):
        self._window = window_seconds
        self._high_water_mark = high_water_mark
        self._clock = clock
        self._entries: dict[str, float] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(
        cls, settings: Settings, clock: Callable[[], float] = time.time
    ) -> NotificationDedupCache:
        return cls(
            window_seconds=settings.dedupe_window_seconds,
            high_water_mark=settings.dedupe_high_water_mark,
            clock=clock,
        )

    @property
    def window_seconds(self) -> float:
        return self._window

    def is_duplicate(self, sender_id: str, recipient_id: str) -> bool:
        """True if the pair was notified less than one window ago."""
        key = dedupe_key(sender_id, recipient_id)
        with self._lock:
            last_notified = self._entries.get(key)
            if last_notified is None:
                return False
            return self._clock() - last_notified < self._window

    def record_notification(self, sender_id: str, recipient_id: str) -> None:
        """Mark the pair as notified now."""
        key = dedupe_key(sender_id, recipient_id)
        with self._lock:
            now = self._clock()
            self._entries[key] = now
            if len(self._entries) > self._high_water_mark:
                self._sweep(now)

    def _sweep(self, now: float) -> None:
        """Drop every expired entry. Caller holds the lock."""
        before = len(self._entries)
        self._entries = {
            k: ts for k, ts in self._entries.items() if now - ts < self._window
        }
        logger.debug(
            "Dedup sweep removed %d of %d entries", before - len(self._entries), before
        )

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
