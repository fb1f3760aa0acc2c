"""Cached loader for published event results."""
import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

import requests

from processor.models import EventResults
from processor.results import parse_results_document, results_to_document
from source.event_api import EventApiClient
from source.static_files import load_json
from storage.cache_store import CacheStore
from storage.refresh_policy import to_millis

logger = logging.getLogger(__name__)

RESULTS_CACHE_KEY = 'utah_olympics_results_v2'


class ResultsLoader:
    """Loads results from a published URL, then a local file, with a fixed TTL."""

    TTL = timedelta(minutes=30)

    def __init__(
        self,
        cache_store: CacheStore,
        fallback_path: str,
        api_client: Optional[EventApiClient] = None,
        results_url: str = ''
    ):
        self.cache_store = cache_store
        self.fallback_path = fallback_path
        self.api_client = api_client
        self.results_url = results_url

    def load(self, now: datetime, force_refresh: bool = False) -> Dict[str, EventResults]:
        """
        Load results keyed by event id.

        Results are optional enrichment: total failure yields an empty mapping.

        Args:
            now: Current time (aware)
            force_refresh: Skip the cache read
        """
        if not force_refresh:
            entry = self.cache_store.get(RESULTS_CACHE_KEY)
            if entry is not None and to_millis(now) - entry.timestamp < self.TTL.total_seconds() * 1000:
                return parse_results_document(entry.value)

        document = self._fetch_document()
        if document is None:
            return {}

        results = parse_results_document(document)
        self.cache_store.set(RESULTS_CACHE_KEY, results_to_document(results), to_millis(now))
        logger.info(f"Loaded results for {len(results)} events")
        return results

    def _fetch_document(self):
        """
        Fetch the results document from the URL, then the local file.

        Returns:
            Decoded document, or None if both sources failed
        """
        if self.results_url and self.api_client is not None:
            try:
                return self.api_client.fetch_json(self.results_url)
            except (requests.RequestException, ValueError) as e:
                logger.warning(f"Results URL failed ({e}), using local results fallback")

        try:
            return load_json(self.fallback_path)
        except (OSError, ValueError) as e:
            logger.warning(f"Results unavailable: {e}")
            return None
