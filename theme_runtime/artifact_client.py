"""HTTP client for the published festival artifact."""
import logging
from typing import Optional

import requests

from festivals.models import Schedule
from theme_runtime.selector import parse_schedule

logger = logging.getLogger(__name__)


class ArtifactClient:
    """Loads the resolved schedule the build published."""

    NO_CACHE_HEADERS = {
        'Cache-Control': 'no-cache',
        'Pragma': 'no-cache'
    }

    def __init__(self, url: str, timeout: Optional[int] = None):
        """
        Initialize the client.

        Args:
            url: URL of festivals.generated.json
            timeout: Optional request timeout in seconds (default: none)
        """
        self.url = url
        self.timeout = timeout

    def fetch(self) -> Optional[Schedule]:
        """
        Fetch and parse the artifact.

        Any failure (network error, non-2xx status, malformed JSON) is
        logged and reported as None so the page can fall back to no theme.

        Returns:
            Parsed Schedule or None
        """
        try:
            response = requests.get(
                self.url,
                headers=self.NO_CACHE_HEADERS,
                timeout=self.timeout
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            logger.warning(f"Could not load festival artifact: {e}")
            return None
        except ValueError as e:
            logger.warning(f"Festival artifact is not valid JSON: {e}")
            return None

        return parse_schedule(payload)
