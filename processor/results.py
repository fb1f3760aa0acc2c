"""Results parsing, merging and medal tallies."""
import logging
from dataclasses import replace
from typing import Any, Dict, List

from processor.models import EventResults, MatchedEvent, MedalCounts

logger = logging.getLogger(__name__)

MEDALS = ('gold', 'silver', 'bronze')


def parse_results_document(document: Any) -> Dict[str, EventResults]:
    """
    Parse a results document keyed by event id.

    Expected shape::

        {"results": {"<event id>": {"sport": ..., "event": ..., "date": ...,
                                     "athletes": {"<name>": "Gold"}}}}

    Entries that are not objects, or whose athletes are not an object,
    are skipped.
    """
    results = {}
    if not isinstance(document, dict):
        return results
    entries = document.get('results')
    if not isinstance(entries, dict):
        return results

    for event_id, entry in entries.items():
        athletes = (entry.get('athletes') or {}) if isinstance(entry, dict) else None
        if not isinstance(athletes, dict):
            logger.debug(f"Skipping malformed results entry for event {event_id}")
            continue
        results[str(event_id)] = EventResults(
            sport=str(entry.get('sport') or ''),
            event=str(entry.get('event') or ''),
            date=str(entry.get('date') or ''),
            athletes={str(k): str(v) for k, v in athletes.items() if v}
        )
    return results


def results_to_document(results: Dict[str, EventResults]) -> Dict[str, Any]:
    """Serialize results back to the document shape parse_results_document reads."""
    return {
        'results': {
            event_id: {
                'sport': entry.sport,
                'event': entry.event,
                'date': entry.date,
                'athletes': dict(entry.athletes)
            }
            for event_id, entry in results.items()
        }
    }


def merge_results(
    events: List[MatchedEvent],
    results: Dict[str, EventResults]
) -> List[MatchedEvent]:
    """Return copies of the events with per-athlete results attached by event id."""
    merged = []
    for event in events:
        entry = results.get(event.id) if event.id else None
        merged.append(replace(event, results=dict(entry.athletes) if entry else {}))
    return merged


def medal_counts(results: Dict[str, EventResults]) -> MedalCounts:
    """
    Tally gold, silver and bronze results.

    Args:
        results: Results keyed by event id

    Returns:
        MedalCounts; result text is compared case-insensitively
    """
    counts = MedalCounts()
    for entry in results.values():
        for value in entry.athletes.values():
            medal = value.strip().lower()
            if medal in MEDALS:
                setattr(counts, medal, getattr(counts, medal) + 1)
    return counts


def group_results(results: Dict[str, EventResults]) -> Dict[str, List[Dict[str, str]]]:
    """
    Group every athlete result by medal.

    Returns:
        Mapping with 'gold', 'silver', 'bronze' and 'other' lists of
        {athlete, sport, event, date, result} rows
    """
    grouped = {'gold': [], 'silver': [], 'bronze': [], 'other': []}
    for entry in results.values():
        for athlete, value in entry.athletes.items():
            row = {
                'athlete': athlete,
                'sport': entry.sport,
                'event': entry.event,
                'date': entry.date,
                'result': value
            }
            medal = value.strip().lower()
            grouped[medal if medal in MEDALS else 'other'].append(row)
    return grouped
