"""Date-dependent cache TTL and refresh throttle."""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from storage.cache_store import CacheEntry, CacheStore

logger = logging.getLogger(__name__)

COMPETITION_START = datetime(2026, 2, 6, tzinfo=timezone.utc)
COMPETITION_END = datetime(2026, 2, 23, tzinfo=timezone.utc)

REFRESH_THROTTLE_KEY = 'utah_olympics_refresh_throttle'


def to_millis(moment: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds."""
    return int(moment.timestamp() * 1000)


@dataclass(frozen=True)
class CompetitionWindow:
    """Inclusive date range during which data changes often."""
    start: datetime = COMPETITION_START
    end: datetime = COMPETITION_END

    def contains(self, now: datetime) -> bool:
        """True if ``now`` falls within the window, bounds included."""
        return self.start <= now <= self.end


class CachePolicy:
    """Decides whether a cache entry is still fresh."""

    def __init__(
        self,
        window: Optional[CompetitionWindow] = None,
        in_window_ttl: timedelta = timedelta(minutes=30),
        off_window_ttl: timedelta = timedelta(hours=24)
    ):
        self.window = window or CompetitionWindow()
        self.in_window_ttl = in_window_ttl
        self.off_window_ttl = off_window_ttl

    def ttl(self, now: datetime) -> timedelta:
        """TTL that applies at ``now``; short during the competition."""
        return self.in_window_ttl if self.window.contains(now) else self.off_window_ttl

    def is_fresh(self, entry: CacheEntry, now: datetime) -> bool:
        """
        Check freshness of an entry.

        An entry written at T is fresh at T' iff T' - T < TTL(T').
        """
        age_ms = to_millis(now) - entry.timestamp
        return age_ms < self.ttl(now).total_seconds() * 1000


class RefreshThrottle:
    """
    Gates outbound refreshes independently of cache staleness.

    The last attempt is stored as its own stamp in the cache store so that
    many readers sharing one store do not all refresh at once.
    """

    def __init__(
        self,
        store: CacheStore,
        key: str = REFRESH_THROTTLE_KEY,
        window: Optional[CompetitionWindow] = None,
        in_window_interval: timedelta = timedelta(hours=1),
        off_window_interval: timedelta = timedelta(hours=24)
    ):
        self.store = store
        self.key = key
        self.window = window or CompetitionWindow()
        self.in_window_interval = in_window_interval
        self.off_window_interval = off_window_interval

    def interval(self, now: datetime) -> timedelta:
        """Minimum gap between two attempts at ``now``."""
        if self.window.contains(now):
            return self.in_window_interval
        return self.off_window_interval

    def _cutoff(self, now: datetime) -> int:
        """Epoch millis before which the last attempt no longer throttles."""
        return to_millis(now) - int(self.interval(now).total_seconds() * 1000)

    def try_acquire(self, now: datetime) -> bool:
        """
        Check and record an attempt in one atomic step.

        Succeeds iff no attempt is recorded after now - interval(now).
        A failed claim, including a store error, counts as throttled.

        Returns:
            True if the caller may hit the network now
        """
        acquired = self.store.claim(self.key, to_millis(now), self._cutoff(now))
        if not acquired:
            logger.info("Refresh throttled, last attempt is within the throttle window")
        return acquired
