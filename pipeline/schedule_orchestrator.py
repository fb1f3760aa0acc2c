"""Schedule orchestrator combining caching, refresh scheduling and the pipeline."""
import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, List, Optional

import requests

from processor.broadcast import BroadcastRuleEngine
from processor.event_normalizer import EventNormalizer
from processor.models import (
    BroadcastRules,
    CanonicalEvent,
    EnrichedEvent,
    MatchedEvent,
    RosterMember,
)
from processor.roster_matcher import RosterMatcher
from source.event_api import EventApiClient
from source.static_files import load_broadcast_rules, load_fallback_schedule
from storage.cache_store import CacheEntry, CacheStore
from storage.refresh_policy import CachePolicy, RefreshThrottle, to_millis

logger = logging.getLogger(__name__)

SCHEDULE_CACHE_KEY = 'utah_olympics_schedule_v1'
BROADCAST_CACHE_KEY = 'utah_olympics_broadcast_v1'


class ScheduleUnavailableError(Exception):
    """Raised when neither the live API nor the static fallback produced a schedule."""


def utc_now() -> datetime:
    """Default clock: the current aware UTC time."""
    return datetime.now(timezone.utc)


class ScheduleOrchestrator:
    """
    Serves the matched schedule without blocking on the external API.

    Branches per call:
      * fresh cache  -> serve cache, no outbound call
      * stale cache  -> serve cache, background refresh if the throttle allows
      * no cache     -> serve the static fallback, background refresh if allowed
      * bypass       -> synchronous live fetch (fallback on failure), written to cache

    A background refresh only rewrites the cache entry; data already handed
    to a caller is never mutated.
    """

    def __init__(
        self,
        api_client: EventApiClient,
        cache_store: CacheStore,
        fallback_schedule_path: str,
        broadcast_rules_path: str,
        roster_provider: Optional[Callable[[], List[RosterMember]]] = None,
        normalizer: Optional[EventNormalizer] = None,
        broadcast_engine: Optional[BroadcastRuleEngine] = None,
        matcher: Optional[RosterMatcher] = None,
        cache_policy: Optional[CachePolicy] = None,
        throttle: Optional[RefreshThrottle] = None,
        executor: Optional[Executor] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.api_client = api_client
        self.cache_store = cache_store
        self.fallback_schedule_path = fallback_schedule_path
        self.broadcast_rules_path = broadcast_rules_path
        self.roster_provider = roster_provider
        self.normalizer = normalizer or EventNormalizer()
        self.broadcast_engine = broadcast_engine or BroadcastRuleEngine()
        self.matcher = matcher or RosterMatcher()
        self.cache_policy = cache_policy or CachePolicy()
        self.throttle = throttle or RefreshThrottle(cache_store)
        self.executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix='schedule-refresh'
        )
        self.clock = clock
        # Completion handle of the last background refresh, for observability only
        self.pending_refresh: Optional[Future] = None

    def get_schedule(self, force_refresh: bool = False) -> List[MatchedEvent]:
        """
        Return enriched events matched against the roster.

        Args:
            force_refresh: Bypass cache and throttle with a synchronous live fetch

        Returns:
            Events with at least one matched roster member

        Raises:
            ScheduleUnavailableError: If no schedule source is available
        """
        if self.roster_provider is None:
            raise ValueError("ScheduleOrchestrator has no roster provider")
        events = self.get_enriched_schedule(force_refresh=force_refresh)
        roster = self.roster_provider()
        return self.matcher.match(events, roster)

    def get_enriched_schedule(self, force_refresh: bool = False) -> List[EnrichedEvent]:
        """Return every canonical event with broadcast entries, before matching."""
        now = self.clock()
        rules = self._get_broadcast_rules(now, force_refresh)

        if force_refresh and self.api_client.enabled:
            logger.info("Refresh requested, bypassing schedule cache")
            events = self._fetch_live_or_fallback()
            self._write_schedule(events)
            return self.broadcast_engine.apply_rules(events, rules)

        entry = self.cache_store.get(SCHEDULE_CACHE_KEY)
        events = self._events_from_entry(entry)

        if events is not None:
            if self.cache_policy.is_fresh(entry, now):
                logger.info(f"Serving {len(events)} events from fresh cache")
            else:
                logger.info(f"Serving {len(events)} events from stale cache")
                self.schedule_background_refresh(now)
            return self.broadcast_engine.apply_rules(events, rules)

        # No usable cache: never block on the live API
        try:
            events = self.normalizer.normalize(
                load_fallback_schedule(self.fallback_schedule_path)
            )
        except (OSError, ValueError) as e:
            self.schedule_background_refresh(now)
            raise ScheduleUnavailableError(
                f"No cached schedule and fallback failed: {e}"
            ) from e
        logger.info(f"Serving {len(events)} events from static fallback")
        self._write_schedule(events)
        # Queued after the fallback write so a finished refresh is never overwritten
        self.schedule_background_refresh(now)
        return self.broadcast_engine.apply_rules(events, rules)

    def schedule_background_refresh(self, now: datetime) -> Optional[Future]:
        """
        Queue a fire-and-forget refresh if the API is configured and not throttled.

        Returns:
            Future of the queued refresh, or None if nothing was queued
        """
        if not self.api_client.enabled:
            return None
        if not self.throttle.try_acquire(now):
            return None
        logger.info("Queued background schedule refresh")
        self.pending_refresh = self.executor.submit(self._background_refresh)
        return self.pending_refresh

    def _background_refresh(self) -> int:
        """
        Fetch, normalize and cache the live schedule off the request path.

        Failures are logged and swallowed; an empty result leaves the cache alone.

        Returns:
            Number of events written
        """
        try:
            events = self.normalizer.normalize(self.api_client.fetch_events())
        except Exception as e:
            logger.warning(f"Background refresh failed: {e}")
            return 0
        if events:
            self._write_schedule(events)
        logger.info(f"Background refresh stored {len(events)} events")
        return len(events)

    def _fetch_live_or_fallback(self) -> List[CanonicalEvent]:
        """
        Fetch the live schedule, falling back to the static file.

        Returns:
            Normalized events

        Raises:
            ScheduleUnavailableError: If both sources fail
        """
        try:
            return self.normalizer.normalize(self.api_client.fetch_events())
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Event API failed ({e}), using local schedule fallback")

        try:
            return self.normalizer.normalize(
                load_fallback_schedule(self.fallback_schedule_path)
            )
        except (OSError, ValueError) as e:
            raise ScheduleUnavailableError(
                f"Event API and fallback schedule both failed: {e}"
            ) from e

    def _get_broadcast_rules(self, now: datetime, force_refresh: bool) -> Optional[BroadcastRules]:
        """
        Return broadcast rules from cache or the rules file.

        Args:
            now: Current time, for the cache TTL
            force_refresh: Skip the cache read

        Returns:
            BroadcastRules, or None if the file is unavailable
        """
        if not force_refresh:
            entry = self.cache_store.get(BROADCAST_CACHE_KEY)
            if entry is not None and entry.value and self.cache_policy.is_fresh(entry, now):
                try:
                    return BroadcastRules.from_dict(entry.value)
                except (AttributeError, TypeError, ValueError) as e:
                    logger.warning(f"Ignoring corrupt cached broadcast rules: {e}")

        rules = load_broadcast_rules(self.broadcast_rules_path)
        if rules is not None:
            self.cache_store.set(BROADCAST_CACHE_KEY, rules.to_dict(), to_millis(now))
        return rules

    def _write_schedule(self, events: List[CanonicalEvent]) -> None:
        """Store canonical events under the schedule key, stamped with the clock."""
        self.cache_store.set(
            SCHEDULE_CACHE_KEY,
            [event.to_dict() for event in events],
            to_millis(self.clock())
        )

    @staticmethod
    def _events_from_entry(entry: Optional[CacheEntry]) -> Optional[List[CanonicalEvent]]:
        """Rebuild a fresh object graph from a cache entry; None if absent or corrupt."""
        if entry is None or not isinstance(entry.value, list):
            return None
        try:
            return [CanonicalEvent.from_dict(item) for item in entry.value]
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring corrupt cached schedule: {e}")
            return None
