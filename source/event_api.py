"""HTTP client for the Milano Cortina 2026 event API."""
import logging
from typing import Any, List, Optional

import requests

from processor.event_normalizer import extract_raw_records

logger = logging.getLogger(__name__)


class EventApiClient:
    """Client for the RapidAPI-hosted event source."""

    DEFAULT_HOST = 'milano-cortina-2026-olympics-api.p.rapidapi.com'

    def __init__(
        self,
        api_key: str,
        host: str = DEFAULT_HOST,
        timeout: int = 30,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the API client.

        Args:
            api_key: RapidAPI key; empty disables live fetches
            host: RapidAPI host name
            timeout: HTTP request timeout in seconds (default: 30)
            session: Optional shared requests session
        """
        self.api_key = api_key
        self.host = host
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        """Live fetches are disabled without an API key."""
        return bool(self.api_key)

    @property
    def events_url(self) -> str:
        return f"https://{self.host}/events"

    def fetch_events(self) -> List[Any]:
        """
        Fetch raw event records. Single attempt, no retries.

        Returns:
            List of raw records as decoded from JSON

        Raises:
            requests.RequestException: On network errors or non-2xx status
            ValueError: If the body is not valid JSON
        """
        logger.info(f"Fetching events from {self.events_url}")
        response = self.session.get(
            self.events_url,
            headers={
                'X-RapidAPI-Key': self.api_key,
                'X-RapidAPI-Host': self.host
            },
            timeout=self.timeout
        )
        response.raise_for_status()
        records = extract_raw_records(response.json())
        logger.info(f"Fetched {len(records)} raw records from event API")
        return records

    def fetch_json(self, url: str) -> Any:
        """
        GET an arbitrary JSON document (e.g. a published results file).

        Raises:
            requests.RequestException: On network errors or non-2xx status
            ValueError: If the body is not valid JSON
        """
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()
