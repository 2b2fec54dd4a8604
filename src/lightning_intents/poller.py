"""Pledge settlement poller.

Polls a pledge's status on a schedule that coarsens with time: every 3s
for the first 2 minutes after the first fetch, every 10s for the next 10
minutes, then stops. A non-pending status stops polling immediately.

Usage:
    tracker = track_pledge(pledge_id, client.status_fetcher(pledge_id))
    async for event in tracker:
        if event.snapshot and event.snapshot.is_terminal:
            ...
    if tracker.timed_out:
        ...  # still pending after 12 minutes
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from lightning_intents.config import DEFAULT_SETTINGS, Settings
from lightning_intents.exceptions import PollFetchTransientError
from lightning_intents.models import PledgeStatus, PledgeStatusSnapshot

logger = logging.getLogger(__name__)

StatusFetcher = Callable[[], Awaitable[PledgeStatusSnapshot]]


def next_interval_ms(
    elapsed_ms: float, status: str | None, settings: Settings | None = None
) -> int | None:
    """Delay before the next fetch, or None to stop polling.

    elapsed_ms is measured from the first fetch of the session. status is
    the last known status, or None if nothing has been fetched successfully.
    """
    settings = settings or DEFAULT_SETTINGS

    if status is not None and status != PledgeStatus.PENDING.value:
        return None

    if elapsed_ms < settings.fast_poll_window_ms:
        return settings.fast_poll_interval_ms

    if elapsed_ms < settings.poll_deadline_ms:
        return settings.slow_poll_interval_ms

    return None


class StopReason(str, Enum):
    TERMINAL = "terminal"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class PollEvent:
    """One poll attempt: either a snapshot or a transient fetch error."""

    pledge_id: str
    elapsed_ms: float
    snapshot: PledgeStatusSnapshot | None = None
    error: PollFetchTransientError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class PollSession:
    """Scheduling state for one tracked pledge."""

    pledge_id: str
    started_at: float | None = None
    current_status: str | None = None
    fetch_count: int = 0


class PledgeTracker:
    """Async iterator over PollEvents for a single pledge.

    Exactly one fetch is in flight at a time. cancel() takes effect before
    the next fetch; an in-flight fetch is allowed to finish. A tracker is
    single use: start a new one to track the pledge again.
    """

    def __init__(
        self,
        pledge_id: str,
        fetch_status: StatusFetcher,
        *,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[object]] | None = None,
    ):
        """
        Args:
            pledge_id: Pledge being tracked.
            fetch_status: Zero-argument coroutine function returning a snapshot.
            settings: Poll windows and intervals. Defaults to built-in values.
            clock: Seconds clock used to measure elapsed time.
            sleep: Coroutine function sleeping for N seconds. Defaults to a
                sleep that wakes early on cancel().
        """
        self.session = PollSession(pledge_id=pledge_id)
        self._fetch_status = fetch_status
        self._settings = settings or DEFAULT_SETTINGS
        self._clock = clock
        self._sleep = sleep or self._cancellable_sleep
        self._cancelled = asyncio.Event()
        self._started = False
        self.stop_reason: StopReason | None = None
        self.last_snapshot: PledgeStatusSnapshot | None = None

    @property
    def pledge_id(self) -> str:
        return self.session.pledge_id

    @property
    def timed_out(self) -> bool:
        """True when polling stopped while the pledge was still pending."""
        return self.stop_reason is StopReason.TIMEOUT

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def elapsed_ms(self) -> float:
        if self.session.started_at is None:
            return 0.0
        return (self._clock() - self.session.started_at) * 1000

    async def _cancellable_sleep(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    def __aiter__(self):
        if self._started:
            raise RuntimeError("PledgeTracker can only be iterated once")
        self._started = True
        return self._run()

    async def _fetch_once(self) -> PollEvent:
        session = self.session
        if session.started_at is None:
            session.started_at = self._clock()
        session.fetch_count += 1

        try:
            snapshot = await self._fetch_status()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Status fetch for pledge %s failed: %s", session.pledge_id, e)
            return PollEvent(
                pledge_id=session.pledge_id,
                elapsed_ms=self.elapsed_ms(),
                error=PollFetchTransientError(session.pledge_id, str(e) or type(e).__name__),
            )

        session.current_status = snapshot.status
        self.last_snapshot = snapshot
        return PollEvent(
            pledge_id=session.pledge_id,
            elapsed_ms=self.elapsed_ms(),
            snapshot=snapshot,
        )

    async def _run(self):
        session = self.session
        while True:
            if self.cancelled:
                self._stop(StopReason.CANCELLED)
                return

            yield await self._fetch_once()

            interval = next_interval_ms(
                self.elapsed_ms(), session.current_status, self._settings
            )
            if interval is None:
                if session.current_status not in (None, PledgeStatus.PENDING.value):
                    self._stop(StopReason.TERMINAL)
                else:
                    self._stop(StopReason.TIMEOUT)
                return

            if self.cancelled:
                self._stop(StopReason.CANCELLED)
                return
            await self._sleep(interval / 1000)

    def _stop(self, reason: StopReason) -> None:
        self.stop_reason = reason
        logger.info(
            "Stopped tracking pledge %s: %s after %d fetches (status=%s)",
            self.session.pledge_id,
            reason.value,
            self.session.fetch_count,
            self.session.current_status,
        )


def track_pledge(
    pledge_id: str, fetch_status: StatusFetcher, **kwargs
) -> PledgeTracker:
    """Start tracking a pledge. See PledgeTracker for keyword arguments."""
    return PledgeTracker(pledge_id, fetch_status, **kwargs)
