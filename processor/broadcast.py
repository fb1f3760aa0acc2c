"""Broadcast rule engine attaching viewing options to canonical events."""
import logging
from typing import List, Optional

from processor.models import BroadcastEntry, BroadcastRules, CanonicalEvent, EnrichedEvent

logger = logging.getLogger(__name__)

SOURCE_UTC_OFFSET = 1        # CET, competition local time
DESTINATION_UTC_OFFSET = -7  # MST, viewer time


def convert_time(
    time_str: str,
    source_offset: int = SOURCE_UTC_OFFSET,
    destination_offset: int = DESTINATION_UTC_OFFSET
) -> str:
    """
    Shift an HH:MM time between fixed UTC offsets.

    Flat hour arithmetic only: neither zone changes DST during the
    competition window. The hour wraps modulo 24 and the date is
    intentionally left untouched ("02:00" CET -> "18:00" MST).

    Args:
        time_str: Time in "HH:MM" at the source offset
        source_offset: Source UTC offset in hours
        destination_offset: Destination UTC offset in hours

    Returns:
        Time in "HH:MM" at the destination offset, or '' if invalid
    """
    if not time_str:
        return ''
    parts = time_str.split(':')
    try:
        hour = int(parts[0])
    except ValueError:
        return ''
    minutes = parts[1] if len(parts) > 1 and parts[1] else '00'
    hour = (hour + destination_offset - source_offset) % 24
    return f"{hour:02d}:{minutes}"


class BroadcastRuleEngine:
    """Applies a declarative broadcast rule set to events."""

    def __init__(
        self,
        source_offset: int = SOURCE_UTC_OFFSET,
        destination_offset: int = DESTINATION_UTC_OFFSET
    ):
        """
        Initialize the engine.

        Args:
            source_offset: UTC offset of event times in hours
            destination_offset: UTC offset of live broadcast times in hours
        """
        self.source_offset = source_offset
        self.destination_offset = destination_offset

    def apply_rules(
        self,
        events: List[CanonicalEvent],
        rules: Optional[BroadcastRules]
    ) -> List[EnrichedEvent]:
        """
        Enrich events with broadcast entries.

        Precedence per event: a per-event override list replaces everything;
        otherwise live network, medal primetime and streaming entries are
        added in that order when their rules exist.

        Args:
            events: Canonical events
            rules: Rule set, or None when unavailable

        Returns:
            New EnrichedEvent objects; broadcast lists are empty without rules
        """
        if rules is None:
            logger.info("No broadcast rules available, skipping enrichment")
            return [self._enrich(event, []) for event in events]

        return [self._enrich(event, self.broadcast_for(event, rules)) for event in events]

    def broadcast_for(self, event: CanonicalEvent, rules: BroadcastRules) -> List[BroadcastEntry]:
        """
        Build the broadcast entries for one event.

        Args:
            event: Canonical event
            rules: Rule set to apply

        Returns:
            Override entries if the event has any (even an empty list),
            otherwise live, primetime and streaming entries as configured
        """
        overrides = rules.event_overrides.get(event.id)
        if overrides is not None:
            return [BroadcastEntry(e.network, e.type, e.time) for e in overrides]

        entries = []

        network = rules.sport_networks.get(event.sport)
        if network:
            entries.append(BroadcastEntry(
                network=network,
                type='live',
                time=convert_time(event.time, self.source_offset, self.destination_offset)
            ))

        # Primetime time is already expressed in viewer time
        if event.is_medal_event and rules.medal_primetime:
            entries.append(BroadcastEntry(
                network=rules.medal_primetime.get('network', ''),
                type='primetime',
                time=rules.medal_primetime.get('time')
            ))

        if rules.streaming:
            entries.append(BroadcastEntry(
                network=rules.streaming.get('network', ''),
                type=rules.streaming.get('type') or 'streaming'
            ))

        return entries

    @staticmethod
    def _enrich(event: CanonicalEvent, broadcast: List[BroadcastEntry]) -> EnrichedEvent:
        """Copy the canonical fields into a new EnrichedEvent."""
        return EnrichedEvent(**CanonicalEvent.to_dict(event), broadcast=broadcast)
