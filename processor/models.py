"""Data models for schedule reconciliation."""
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class RawEvent:
    """Unmodified record from the event source API."""
    id: str
    date: str
    time: str
    sport: str
    discipline: str
    venue: Union[Dict[str, Any], str, None]
    is_medal_event: bool
    status: str
    event: str
    event_name: str
    gender: str


@dataclass
class BroadcastEntry:
    """One viewing option for an event."""
    network: str
    type: str
    time: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BroadcastEntry':
        """
        Build an entry from a rules or cache document item.

        Args:
            data: Mapping with network, type and optional time

        Returns:
            BroadcastEntry instance

        Raises:
            TypeError: If data is not a mapping
        """
        if not isinstance(data, dict):
            raise TypeError(f"Broadcast entry must be an object, got {type(data).__name__}")
        return cls(
            network=data.get('network') or '',
            type=data.get('type') or 'streaming',
            time=data.get('time')
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the entry, omitting time when it is not set."""
        item = {'network': self.network, 'type': self.type}
        if self.time is not None:
            item['time'] = self.time
        return item


@dataclass
class BroadcastRules:
    """Declarative broadcast rule set (data/broadcast.json)."""
    streaming: Optional[Dict[str, str]] = None
    sport_networks: Dict[str, str] = field(default_factory=dict)
    medal_primetime: Optional[Dict[str, str]] = None
    event_overrides: Dict[str, List[BroadcastEntry]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BroadcastRules':
        """
        Build a rule set from the camelCase rules document.

        Args:
            data: Parsed broadcast rules document

        Returns:
            BroadcastRules instance

        Raises:
            TypeError: If a section has the wrong shape
        """
        streaming = data.get('streaming') or None
        sport_networks = data.get('sportNetworks') or {}
        medal_primetime = data.get('medalPrimetime') or None
        raw_overrides = data.get('eventOverrides') or {}
        sections = {
            'streaming': streaming,
            'sportNetworks': sport_networks,
            'medalPrimetime': medal_primetime,
            'eventOverrides': raw_overrides
        }
        for name, section in sections.items():
            if section is not None and not isinstance(section, dict):
                raise TypeError(f"Broadcast rules '{name}' must be an object")

        overrides = {}
        for event_id, entries in raw_overrides.items():
            if not isinstance(entries, list):
                raise TypeError(f"Broadcast override for {event_id} must be a list")
            overrides[str(event_id)] = [BroadcastEntry.from_dict(entry) for entry in entries]

        return cls(
            streaming=streaming,
            sport_networks=dict(sport_networks),
            medal_primetime=medal_primetime,
            event_overrides=overrides
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the camelCase rules document shape."""
        return {
            'streaming': self.streaming,
            'sportNetworks': self.sport_networks,
            'medalPrimetime': self.medal_primetime,
            'eventOverrides': {
                event_id: [entry.to_dict() for entry in entries]
                for event_id, entries in self.event_overrides.items()
            }
        }


@dataclass
class CanonicalEvent:
    """Normalized medal event."""
    id: str
    date: str
    time: str
    sport: str
    discipline: str
    event: str = ''
    venue: str = ''
    is_medal_event: bool = False
    status: str = 'upcoming'
    gender: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CanonicalEvent':
        """
        Rebuild an event from its cached form.

        Args:
            data: Mapping produced by to_dict

        Returns:
            CanonicalEvent instance

        Raises:
            KeyError: If a required field is missing
        """
        return cls(
            id=data['id'],
            date=data['date'],
            time=data['time'],
            sport=data['sport'],
            discipline=data['discipline'],
            event=data.get('event', ''),
            venue=data.get('venue', ''),
            is_medal_event=bool(data.get('is_medal_event', False)),
            status=data.get('status', 'upcoming'),
            gender=data.get('gender', '')
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the canonical fields to a JSON-ready dictionary.

        Returns:
            Dictionary of canonical fields only
        """
        return {
            'id': self.id,
            'date': self.date,
            'time': self.time,
            'sport': self.sport,
            'discipline': self.discipline,
            'event': self.event,
            'venue': self.venue,
            'is_medal_event': self.is_medal_event,
            'status': self.status,
            'gender': self.gender
        }


@dataclass
class EnrichedEvent(CanonicalEvent):
    """Canonical event with broadcast entries attached."""
    broadcast: List[BroadcastEntry] = field(default_factory=list)


@dataclass
class RosterMember:
    """A tracked participant."""
    name: str
    sport: str
    discipline: str = ''
    country: str = 'USA'
    gender: str = ''
    events: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RosterMember':
        """
        Build a member from a parsed roster row.

        Args:
            data: Row with name, sport and optional discipline, country,
                gender and events (list or comma-separated string)

        Returns:
            RosterMember with trimmed fields and upper-cased gender
        """
        events = data.get('events') or []
        if isinstance(events, str):
            events = [part.strip() for part in events.split(',')]
        return cls(
            name=(data.get('name') or '').strip(),
            sport=(data.get('sport') or '').strip(),
            discipline=(data.get('discipline') or '').strip(),
            country=(data.get('country') or 'USA').strip(),
            gender=(data.get('gender') or '').strip().upper(),
            events=[ev for ev in events if ev]
        )


@dataclass
class MatchedEvent(EnrichedEvent):
    """Enriched event with the roster members competing in it."""
    athletes: List[RosterMember] = field(default_factory=list)
    results: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with broadcast, athletes and results included."""
        item = super().to_dict()
        item['broadcast'] = [entry.to_dict() for entry in self.broadcast]
        item['athletes'] = [asdict(athlete) for athlete in self.athletes]
        item['results'] = dict(self.results)
        return item


@dataclass
class EventResults:
    """Published results for one event, keyed by athlete name."""
    sport: str
    event: str
    date: str
    athletes: Dict[str, str]


@dataclass
class MedalCounts:
    """Medal totals across all results."""
    gold: int = 0
    silver: int = 0
    bronze: int = 0
