"""Readers for static JSON documents bundled with the deployment."""
import json
import logging
from typing import Any, List, Optional

from processor.event_normalizer import extract_raw_records
from processor.models import BroadcastRules, RosterMember

logger = logging.getLogger(__name__)


def load_json(path: str) -> Any:
    """
    Read and decode a JSON file.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the content is not valid JSON
    """
    with open(path, encoding='utf-8') as f:
        return json.load(f)


def load_fallback_schedule(path: str) -> List[Any]:
    """Read raw schedule records from the static fallback file."""
    records = extract_raw_records(load_json(path))
    logger.info(f"Loaded {len(records)} raw records from fallback {path}")
    return records


def load_broadcast_rules(path: str) -> Optional[BroadcastRules]:
    """
    Read the broadcast rules document.

    Broadcast data is optional, so any failure yields None.
    """
    try:
        document = load_json(path)
    except (OSError, ValueError) as e:
        logger.warning(f"Broadcast rules unavailable from {path}: {e}")
        return None
    if not isinstance(document, dict):
        logger.warning(f"Broadcast rules in {path} are not an object")
        return None
    try:
        return BroadcastRules.from_dict(document)
    except (AttributeError, TypeError, ValueError) as e:
        logger.warning(f"Ignoring malformed broadcast rules in {path}: {e}")
        return None


def load_roster(path: str) -> List[RosterMember]:
    """
    Read an already-parsed roster (a JSON list of member objects).

    Members without a name are skipped.
    """
    document = load_json(path)
    if isinstance(document, dict):
        document = document.get('athletes') or []
    members = [RosterMember.from_dict(row) for row in document if isinstance(row, dict)]
    members = [m for m in members if m.name]
    logger.info(f"Loaded {len(members)} roster members from {path}")
    return members
