"""Unit tests for cache TTL policy and refresh throttle."""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from storage.cache_store import CacheEntry, InMemoryCacheStore
from storage.refresh_policy import (
    REFRESH_THROTTLE_KEY,
    CachePolicy,
    CompetitionWindow,
    RefreshThrottle,
    to_millis,
)

IN_WINDOW = datetime(2026, 2, 10, 12, 0, tzinfo=timezone.utc)
OFF_WINDOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def entry_written_at(moment):
    return CacheEntry(value=[], timestamp=to_millis(moment))


class TestCompetitionWindow:
    """Test cases for the competition date range."""

    def test_bounds_are_inclusive(self):
        window = CompetitionWindow()

        assert window.contains(datetime(2026, 2, 6, tzinfo=timezone.utc))
        assert window.contains(datetime(2026, 2, 23, tzinfo=timezone.utc))
        assert not window.contains(datetime(2026, 2, 23, 0, 0, 1, tzinfo=timezone.utc))
        assert not window.contains(datetime(2026, 2, 5, 23, 59, tzinfo=timezone.utc))


class TestCachePolicy:
    """Test cases for date-dependent freshness."""

    def test_ttl_depends_on_date(self):
        policy = CachePolicy()

        assert policy.ttl(IN_WINDOW) == timedelta(minutes=30)
        assert policy.ttl(OFF_WINDOW) == timedelta(hours=24)

    def test_fresh_within_ttl(self):
        policy = CachePolicy()
        entry = entry_written_at(IN_WINDOW)

        assert policy.is_fresh(entry, IN_WINDOW + timedelta(minutes=29))

    def test_stale_at_ttl(self):
        policy = CachePolicy()
        entry = entry_written_at(IN_WINDOW)

        assert not policy.is_fresh(entry, IN_WINDOW + timedelta(minutes=30))

    def test_off_window_ttl_is_longer(self):
        policy = CachePolicy()
        entry = entry_written_at(OFF_WINDOW)

        assert policy.is_fresh(entry, OFF_WINDOW + timedelta(hours=23))
        assert not policy.is_fresh(entry, OFF_WINDOW + timedelta(hours=25))

    def test_ttl_follows_read_time_across_window_start(self):
        """Test an entry written off-window is judged by the in-window TTL once inside."""
        policy = CachePolicy()
        written = datetime(2026, 2, 5, 23, 0, tzinfo=timezone.utc)

        assert not policy.is_fresh(entry_written_at(written), written + timedelta(minutes=70))

    def test_ttl_follows_read_time_across_window_end(self):
        """Test an entry read just after the window uses the long TTL."""
        policy = CachePolicy()
        written = datetime(2026, 2, 22, 23, 50, tzinfo=timezone.utc)

        assert policy.is_fresh(entry_written_at(written), written + timedelta(minutes=40))


class TestRefreshThrottle:
    """Test cases for RefreshThrottle."""

    @pytest.fixture
    def store(self):
        return InMemoryCacheStore()

    def test_no_previous_attempt(self, store):
        throttle = RefreshThrottle(store)

        assert throttle.try_acquire(IN_WINDOW)
        assert store.get(REFRESH_THROTTLE_KEY).timestamp == to_millis(IN_WINDOW)

    def test_second_attempt_inside_window_is_throttled(self, store):
        throttle = RefreshThrottle(store)

        assert throttle.try_acquire(IN_WINDOW)
        assert not throttle.try_acquire(IN_WINDOW + timedelta(minutes=59))
        # A throttled attempt does not move the stamp forward
        assert store.get(REFRESH_THROTTLE_KEY).timestamp == to_millis(IN_WINDOW)

    def test_attempt_allowed_after_interval(self, store):
        throttle = RefreshThrottle(store)

        assert throttle.try_acquire(IN_WINDOW)
        assert throttle.try_acquire(IN_WINDOW + timedelta(minutes=61))

    def test_off_window_interval(self, store):
        throttle = RefreshThrottle(store)

        assert throttle.interval(OFF_WINDOW) == timedelta(hours=24)
        assert throttle.try_acquire(OFF_WINDOW)
        assert not throttle.try_acquire(OFF_WINDOW + timedelta(hours=2))
        assert throttle.try_acquire(OFF_WINDOW + timedelta(hours=25))

    def test_concurrent_attempts_claim_once(self, store):
        """Test only one of many simultaneous callers wins the claim."""
        throttle = RefreshThrottle(store)

        with ThreadPoolExecutor(max_workers=8) as executor:
            outcomes = list(executor.map(lambda _: throttle.try_acquire(IN_WINDOW), range(16)))

        assert outcomes.count(True) == 1

    def test_store_refusal_counts_as_throttled(self):
        store = Mock()
        store.claim.return_value = False

        assert not RefreshThrottle(store).try_acquire(IN_WINDOW)

    def test_throttle_independent_of_cache(self, store):
        """Test the throttle stamp does not touch cache entries."""
        store.set('utah_olympics_schedule_v1', [{'id': 'A'}], 0)
        RefreshThrottle(store).try_acquire(IN_WINDOW)

        assert store.get('utah_olympics_schedule_v1').value == [{'id': 'A'}]
