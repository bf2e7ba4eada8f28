"""HTTP client for the source ICS calendar feed."""
import logging
from typing import List

import requests

from calendar_feed.ics_parser import parse_ics_events
from festivals.models import RawIcsEvent

logger = logging.getLogger(__name__)


class IcsFeedClient:
    """Fetches and parses a remote ICS feed."""

    def __init__(self, url: str, timeout: int = 30):
        """
        Initialize the feed client.

        Args:
            url: ICS feed URL
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.url = url
        self.timeout = timeout

    def fetch_events(self) -> List[RawIcsEvent]:
        """
        Fetch the feed and extract its events.

        Returns:
            List of RawIcsEvent objects

        Raises:
            requests.RequestException: If the request fails or returns a
                non-2xx status
        """
        ics_text = self._fetch_ics_text()
        events = parse_ics_events(ics_text)
        logger.info(f"Extracted {len(events)} events from calendar feed")
        return events

    def _fetch_ics_text(self) -> str:
        """
        Download the ICS text in a single request.

        Retries are left to whatever schedules the build.

        Returns:
            ICS content as string
        """
        logger.info("Fetching calendar feed")
        try:
            response = requests.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to fetch ICS feed: {e}")
            raise

        # RFC 5545 default charset
        if 'charset' not in response.headers.get('Content-Type', '').lower():
            response.encoding = 'utf-8'

        return response.text
