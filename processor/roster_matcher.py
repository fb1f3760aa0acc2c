"""Roster matcher selecting the events tracked participants compete in."""
import logging
from collections import defaultdict
from typing import Dict, List, Optional

from processor.models import CanonicalEvent, EnrichedEvent, MatchedEvent, RosterMember
from processor.rules import EVENT_ALIASES, SPORT_ALIASES

logger = logging.getLogger(__name__)


class RosterMatcher:
    """Matches enriched events against a roster by sport, gender and declared events."""

    def __init__(
        self,
        sport_aliases: Optional[Dict[str, str]] = None,
        event_aliases: Optional[Dict[str, List[str]]] = None
    ):
        """
        Initialize the matcher.

        Args:
            sport_aliases: Lowercase sport name to canonical key (default: SPORT_ALIASES)
            event_aliases: Declared label to source-text variants (default: EVENT_ALIASES)
        """
        self.sport_aliases = SPORT_ALIASES if sport_aliases is None else sport_aliases
        self.event_aliases = EVENT_ALIASES if event_aliases is None else event_aliases

    def normalize_sport(self, name: str) -> str:
        """
        Normalize a sport name to its lowercase canonical matching key.

        Args:
            name: Sport name from the schedule or the roster

        Returns:
            Canonical key, e.g. "bobsled" -> "bobsleigh"
        """
        if not name:
            return ''
        lowered = name.lower().strip()
        return self.sport_aliases.get(lowered, lowered)

    def event_matches(self, declared_event: str, haystack: str) -> bool:
        """
        Check a declared roster event label against padded event text.

        Args:
            declared_event: Label from the roster (e.g. "Downhill")
            haystack: Padded lowercase discipline + event text

        Returns:
            True on a direct substring or alias hit
        """
        label = declared_event.lower()
        if label in haystack:
            return True
        return any(alias in haystack for alias in self.event_aliases.get(label, []))

    def match(
        self,
        events: List[EnrichedEvent],
        roster: List[RosterMember]
    ) -> List[MatchedEvent]:
        """
        Attach matching roster members to events.

        Gender filtering runs before discipline narrowing so that excluded
        members never reach the "no declared events" fallback.

        Args:
            events: Enriched events
            roster: Tracked participants

        Returns:
            MatchedEvent objects, only for events with at least one member
        """
        by_sport = defaultdict(list)
        for member in roster:
            by_sport[self.normalize_sport(member.sport)].append(member)

        matched_events = []
        for event in events:
            candidates = list(by_sport.get(self.normalize_sport(event.sport), []))

            if event.gender and candidates:
                candidates = [
                    m for m in candidates
                    if not m.gender or m.gender == event.gender
                ]

            if candidates:
                haystack = self._haystack(event)
                candidates = [
                    m for m in candidates
                    if not m.events or any(self.event_matches(ev, haystack) for ev in m.events)
                ]

            if not candidates:
                continue

            matched_events.append(MatchedEvent(
                **CanonicalEvent.to_dict(event),
                broadcast=list(getattr(event, 'broadcast', [])),
                athletes=candidates
            ))

        logger.info(
            f"Matched {len(matched_events)} of {len(events)} events "
            f"against {len(roster)} roster members"
        )
        return matched_events

    @staticmethod
    def _haystack(event: CanonicalEvent) -> str:
        """Padded lowercase discipline and display-name text."""
        discipline = (event.discipline or '').lower().strip()
        display = (event.event or '').lower().strip()
        return f" {discipline} {display} "
