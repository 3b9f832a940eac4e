"""Reverse Geocoding Client - Imperative Shell.

Looks up a human-readable place name for a site's coordinates using
the Nominatim (OpenStreetMap) reverse geocoding API.
"""

import logging

import requests

from src.core.config import DEFAULT_USER_AGENT


logger = logging.getLogger(__name__)


NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"

# Default timeout for geocoding requests (seconds)
DEFAULT_TIMEOUT = 10


class GeocodingClient:
    """Client for reverse geocoding coordinates to place names.

    This is part of the imperative shell - it handles HTTP I/O.
    Safe to call from several threads at once.
    """

    def __init__(
        self,
        base_url: str = NOMINATIM_REVERSE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize geocoding client.

        Args:
            base_url: Nominatim reverse endpoint
            user_agent: User-Agent header (required by Nominatim usage policy)
            timeout: Request timeout in seconds
        """
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout = timeout

    def reverse(self, latitude: float, longitude: float) -> str | None:
        """Get a display name for a coordinate pair.

        This method performs HTTP I/O.

        Args:
            latitude: Latitude in decimal degrees
            longitude: Longitude in decimal degrees

        Returns:
            Display name, or None if the lookup failed
        """
        try:
            response = requests.get(
                self.base_url,
                params={
                    "lat": str(latitude),
                    "lon": str(longitude),
                    "format": "json",
                },
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            response.raise_for_status()
            name = response.json().get("display_name")
        except requests.Timeout:
            logger.warning("Reverse geocode timed out for %s,%s", latitude, longitude)
            return None
        except (requests.RequestException, ValueError, AttributeError) as e:
            logger.warning(
                "Reverse geocode failed for %s,%s: %s",
                latitude,
                longitude,
                str(e),
            )
            return None

        if not name:
            logger.info("No place name found for %s,%s", latitude, longitude)
            return None

        return name
