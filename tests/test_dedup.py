"""Tests for the notification dedup cache."""

import threading

from hypothesis import given, settings
from hypothesis import strategies as st

from lightning_intents.config import Settings
from lightning_intents.dedup import NotificationDedupCache, dedupe_key

DAY = 24 * 60 * 60


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestNotificationDedupCache:
    def test_recorded_pair_is_duplicate(self):
        cache = NotificationDedupCache()
        cache.record_notification("alice", "bob")

        assert cache.is_duplicate("alice", "bob") is True
        assert cache.is_duplicate("alice", "carol") is False

    def test_direction_matters(self):
        cache = NotificationDedupCache()
        cache.record_notification("alice", "bob")
        assert cache.is_duplicate("bob", "alice") is False

    def test_unknown_pair(self):
        assert NotificationDedupCache().is_duplicate("alice", "bob") is False

    def test_window_boundary(self):
        clock = FakeClock()
        cache = NotificationDedupCache(clock=clock)
        cache.record_notification("alice", "bob")

        clock.advance(DAY - 1)
        assert cache.is_duplicate("alice", "bob") is True

        clock.advance(1)
        assert cache.is_duplicate("alice", "bob") is False

    @given(offset=st.floats(min_value=0, max_value=2 * DAY, allow_nan=False))
    def test_duplicate_exactly_within_window(self, offset):
        clock = FakeClock(0.0)
        cache = NotificationDedupCache(clock=clock)
        cache.record_notification("a", "b")
        clock.advance(offset)
        assert cache.is_duplicate("a", "b") is (offset < DAY)

    def test_record_refreshes_timestamp(self):
        clock = FakeClock()
        cache = NotificationDedupCache(clock=clock)
        cache.record_notification("alice", "bob")
        clock.advance(DAY - 10)
        cache.record_notification("alice", "bob")
        clock.advance(20)

        assert cache.is_duplicate("alice", "bob") is True

    def test_expired_entry_not_removed_by_lookup(self):
        clock = FakeClock()
        cache = NotificationDedupCache(clock=clock)
        cache.record_notification("alice", "bob")
        clock.advance(DAY + 1)

        assert cache.is_duplicate("alice", "bob") is False
        assert len(cache) == 1

    def test_sweep_runs_only_above_high_water_mark(self):
        clock = FakeClock()
        cache = NotificationDedupCache(high_water_mark=3, clock=clock)
        for recipient in ("r1", "r2", "r3"):
            cache.record_notification("s", recipient)
        clock.advance(DAY)

        assert len(cache) == 3
        cache.record_notification("s", "r4")
        assert len(cache) == 1
        assert cache.is_duplicate("s", "r4") is True

    @given(
        ages=st.lists(
            st.integers(min_value=0, max_value=3 * DAY),
            min_size=1,
            max_size=40,
        )
    )
    @settings(max_examples=50)
    def test_sweep_never_removes_live_entries(self, ages):
        clock = FakeClock()
        cache = NotificationDedupCache(high_water_mark=len(ages), clock=clock)
        start = clock.now
        horizon = 3 * DAY
        for i, age in enumerate(ages):
            clock.now = start + horizon - age
            cache.record_notification("s", f"r{i}")

        clock.now = start + horizon
        cache.record_notification("s", "trigger")

        live = {f"r{i}" for i, age in enumerate(ages) if age < DAY}
        remaining = {f"r{i}" for i in range(len(ages)) if cache.is_duplicate("s", f"r{i}")}
        assert remaining == live
        # Every stored entry is live after the sweep
        assert len(cache) == len(live) + 1

    def test_from_settings(self):
        clock = FakeClock()
        cache = NotificationDedupCache.from_settings(
            Settings(dedupe_window_seconds=60, dedupe_high_water_mark=5), clock=clock
        )
        cache.record_notification("a", "b")
        clock.advance(60)
        assert cache.is_duplicate("a", "b") is False
        assert cache.window_seconds == 60

    def test_clear(self):
        cache = NotificationDedupCache()
        cache.record_notification("a", "b")
        cache.clear()
        assert len(cache) == 0

    def test_concurrent_records(self):
        cache = NotificationDedupCache(high_water_mark=50)

        def worker(n: int) -> None:
            for i in range(200):
                cache.record_notification(f"s{n}", f"r{i}")
                cache.is_duplicate(f"s{n}", f"r{i}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 8 * 200
        assert cache.is_duplicate("s7", "r199") is True


def test_dedupe_key():
    assert dedupe_key("alice", "bob") == "alice:bob"
