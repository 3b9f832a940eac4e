"""Storm Overflow Feed Client - Imperative Shell.

This module handles HTTP communication with the storm overflow
activity API. All I/O is contained here; parsing is in the core module.
"""

import logging
from typing import Any

import requests

from src.core.config import DEFAULT_USER_AGENT


logger = logging.getLogger(__name__)


# Default timeout for feed requests (seconds)
DEFAULT_TIMEOUT = 30


class FeedClient:
    """Client for fetching storm overflow activity.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        base_url: str,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: int = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize feed client.

        Args:
            base_url: Overflow activity endpoint
            user_agent: User-Agent header to identify this service
            timeout: Request timeout in seconds
            session: HTTP session (created if not provided)
        """
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = user_agent

    def fetch(self) -> dict[str, Any]:
        """Fetch the current overflow activity GeoJSON.

        This method performs HTTP I/O.

        Returns:
            Decoded JSON response

        Raises:
            requests.RequestException: If the request fails
            ValueError: If the body is not valid JSON
        """
        logger.info("Fetching overflow activity from %s", self.base_url)

        response = self.session.get(self.base_url, timeout=self.timeout)
        response.raise_for_status()

        data = response.json()
        features = data.get("features") if isinstance(data, dict) else None

        logger.info(
            "Fetched %d features from overflow feed",
            len(features) if isinstance(features, list) else 0,
        )

        return data
