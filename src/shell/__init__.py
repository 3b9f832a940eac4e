"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- Overflow activity feed client (HTTP)
- Nominatim reverse geocoding client (HTTP)
- SMTP email client
- Configuration loading (YAML file/environment)

Keep this layer thin and simple. All business logic should be in core.
"""

from src.shell.feed_client import FeedClient
from src.shell.geocoding_client import GeocodingClient
from src.shell.email_client import EmailClient, EmailResponse
from src.shell.config_loader import load_config

__all__ = [
    "FeedClient",
    "GeocodingClient",
    "EmailClient",
    "EmailResponse",
    "load_config",
]
