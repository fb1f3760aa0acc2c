"""Event normalizer turning raw API records into canonical medal events."""
import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from processor.models import CanonicalEvent, RawEvent
from processor.rules import (
    DISCIPLINE_ARTIFACTS,
    SNOWBOARD_CONTAINS_MARKERS,
    SNOWBOARD_PREFIX_MARKERS,
    SPORT_DISPLAY_NAMES,
    UNKNOWN_SPORT,
    VENUE_FRAGMENTS,
    classify_sport,
)

logger = logging.getLogger(__name__)

_MEN_PATTERN = re.compile(r'\bmen\b')


def extract_raw_records(payload: Any) -> List[Any]:
    """
    Unwrap an API payload into its list of raw records.

    Args:
        payload: Either a list of records or an object with an
            ``events`` or ``schedule`` list

    Returns:
        List of raw records (possibly empty)
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        records = payload.get('events') or payload.get('schedule') or []
        if isinstance(records, list):
            return records
    return []


def display_sport_name(code: str) -> str:
    """Map an API sport code to its display name; unknown codes pass through."""
    return SPORT_DISPLAY_NAMES.get((code or '').lower(), code or '')


def clean_discipline(discipline: str) -> str:
    """
    Remove embedded venue names and the medal-event marker from discipline text.

    The API concatenates these directly, e.g.
    "Men's DownhillMedal EventStelvio Ski Centre".
    """
    if not discipline:
        return ''
    for artifact in DISCIPLINE_ARTIFACTS:
        discipline = discipline.replace(artifact, '')
    return discipline.strip()


def infer_gender(*texts: str) -> str:
    """
    Infer event gender from raw text fields.

    "mixed" is checked first because mixed-event names usually contain "men" too.

    Returns:
        'M', 'F', or '' (matches every roster gender)
    """
    source = ' '.join(text or '' for text in texts).lower()
    if 'mixed' in source:
        return ''
    if 'women' in source or 'ladies' in source:
        return 'F'
    if _MEN_PATTERN.search(source) or "men's" in source or 'men’s' in source:
        return 'M'
    return ''


class EventNormalizer:
    """Normalizer for raw event source records."""

    DATE_FORMATS = [
        '%Y-%m-%d',      # ISO 8601
        '%Y/%m/%d',
        '%d/%m/%Y',      # European format
        '%d.%m.%Y',
        '%B %d, %Y',     # Full month name
        '%b %d, %Y',     # Abbreviated month name
    ]

    TIME_FORMATS = [
        '%H:%M',         # 24-hour format
        '%H:%M:%S',      # 24-hour with seconds
        '%I:%M %p',      # 12-hour format with AM/PM
        '%I:%M%p',
    ]

    def normalize(self, raw_records: List[Any]) -> List[CanonicalEvent]:
        """
        Normalize raw records and keep only classifiable medal events.

        Malformed records are dropped without being reported to the caller.

        Args:
            raw_records: Records as decoded from the API or fallback file

        Returns:
            List of CanonicalEvent objects
        """
        events = []

        for record in raw_records:
            try:
                raw = self.parse_raw_event(record)
                event = self._normalize_single_event(raw)
            except (TypeError, ValueError) as e:
                logger.debug(f"Dropping malformed record: {e}")
                continue

            # Medal-event filter
            if event.sport == UNKNOWN_SPORT or not event.is_medal_event:
                continue
            events.append(event)

        logger.info(
            f"Normalized {len(events)} medal events out of "
            f"{len(raw_records)} raw records"
        )
        return events

    def parse_raw_event(self, record: Any) -> RawEvent:
        """
        Coerce one decoded record into a RawEvent.

        Raises:
            ValueError: If the record is not an object or a field has an
                unusable type
        """
        if not isinstance(record, dict):
            raise ValueError(f"record is {type(record).__name__}, not an object")

        venue = record.get('venue')
        if venue is not None and not isinstance(venue, (dict, str)):
            raise ValueError(f"venue has unsupported type {type(venue).__name__}")

        return RawEvent(
            id=self._text(record, 'id'),
            date=self._text(record, 'date'),
            time=self._text(record, 'time'),
            sport=self._text(record, 'sport'),
            discipline=self._text(record, 'discipline'),
            venue=venue,
            is_medal_event=self._flag(record.get('is_medal_event')),
            status=self._text(record, 'status'),
            event=self._text(record, 'event'),
            event_name=self._text(record, 'eventName'),
            gender=self._text(record, 'gender')
        )

    def _normalize_single_event(self, raw: RawEvent) -> CanonicalEvent:
        """
        Build a canonical event from one parsed record.

        Args:
            raw: Parsed source record

        Returns:
            CanonicalEvent; its sport may still be the unknown sentinel

        Raises:
            ValueError: If the date or time cannot be parsed
        """
        sport = self._resolve_sport(raw)
        venue = self._synthesize_venue(raw)
        cleaned = clean_discipline(raw.discipline)

        # The API files some snowboard events under freestyle skiing
        if sport == 'Freestyle Skiing' and self._has_snowboard_marker(raw.discipline):
            sport = 'Snowboard'

        gender = infer_gender(raw.discipline, raw.event, raw.event_name, raw.gender)

        return CanonicalEvent(
            id=raw.id,
            date=self._normalize_date(raw.date),
            time=self._normalize_time(raw.time),
            sport=sport,
            discipline=cleaned,
            event=cleaned or raw.event or raw.event_name,
            venue=venue,
            is_medal_event=raw.is_medal_event,
            status=raw.status or 'upcoming',
            gender=gender
        )

    def _resolve_sport(self, raw: RawEvent) -> str:
        """
        Pick the display sport name, classifying unknown-sport records.

        Args:
            raw: Parsed source record

        Returns:
            Display sport name, or the unknown sentinel if no rule applies
        """
        if raw.sport and raw.sport != UNKNOWN_SPORT:
            return display_sport_name(raw.sport)
        return classify_sport(self._venue_name(raw.venue), raw.discipline) or UNKNOWN_SPORT

    def _synthesize_venue(self, raw: RawEvent) -> str:
        """
        Build a venue string from the venue field or the discipline text.

        Args:
            raw: Parsed source record

        Returns:
            "name, city" text, a venue inferred from the discipline, or empty
        """
        venue = ''
        if isinstance(raw.venue, str):
            venue = raw.venue
        elif raw.venue:
            parts = [str(raw.venue[key]) for key in ('name', 'city') if raw.venue.get(key)]
            venue = ', '.join(parts)

        if not venue:
            for fragment, full_venue in VENUE_FRAGMENTS:
                if fragment in raw.discipline:
                    return full_venue
        return venue

    @staticmethod
    def _venue_name(venue: Any) -> str:
        """Venue name used for classification; a plain string is the name."""
        if isinstance(venue, dict):
            return str(venue.get('name') or '')
        return venue or ''

    @staticmethod
    def _has_snowboard_marker(discipline: str) -> bool:
        """Check for snowboard abbreviations in a freestyle discipline."""
        lowered = discipline.lower()
        if any(marker in lowered for marker in SNOWBOARD_CONTAINS_MARKERS):
            return True
        return lowered.startswith(SNOWBOARD_PREFIX_MARKERS)

    def _normalize_date(self, date_str: str) -> str:
        """
        Normalize a date to YYYY-MM-DD.

        Empty input stays empty; unparseable input raises ValueError.
        """
        date_str = date_str.strip()
        if not date_str:
            return ''
        for fmt in self.DATE_FORMATS:
            try:
                return datetime.strptime(date_str, fmt).strftime('%Y-%m-%d')
            except ValueError:
                continue
        raise ValueError(f"unrecognized date {date_str!r}")

    def _normalize_time(self, time_str: str) -> str:
        """
        Normalize a time to 24-hour HH:MM.

        Empty input stays empty; unparseable input raises ValueError.
        """
        time_str = time_str.strip()
        if not time_str:
            return ''
        for fmt in self.TIME_FORMATS:
            try:
                return datetime.strptime(time_str, fmt).strftime('%H:%M')
            except ValueError:
                continue
        raise ValueError(f"unrecognized time {time_str!r}")

    @staticmethod
    def _text(record: Dict[str, Any], key: str) -> str:
        """
        Read a field as text.

        Args:
            record: Decoded source record
            key: Field name

        Returns:
            The string value; numbers are stringified and None becomes empty

        Raises:
            ValueError: If the field holds any other type
        """
        value = record.get(key)
        if value is None:
            return ''
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        raise ValueError(f"field {key!r} has unsupported type {type(value).__name__}")

    @staticmethod
    def _flag(value: Optional[Any]) -> bool:
        """Interpret a medal flag given as bool, number or text."""
        if isinstance(value, str):
            return value.strip().lower() in ('true', '1', 'yes')
        return bool(value)
