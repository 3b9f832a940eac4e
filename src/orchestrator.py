"""Orchestrator - Wires Functional Core and Imperative Shell.

This module coordinates the flow of data between the pure functional
core and the I/O-performing shell components for a single poll cycle:
fetch, decode, filter, track, notify, expire.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable

from src.core.config import Config
from src.core.formatter import (
    SpillLocation,
    build_location,
    format_digest_html,
    format_digest_subject,
    format_digest_text,
)
from src.core.sites import lookup_site
from src.core.spill import SpillFeature, filter_active, parse_spills
from src.core.tracker import SpillTracker
from src.core.watercourse import filter_in_scope
from src.shell.email_client import EmailClient, EmailResponse
from src.shell.feed_client import FeedClient
from src.shell.geocoding_client import GeocodingClient


logger = logging.getLogger(__name__)


class CycleState(Enum):
    """Lifecycle state of the poll loop."""
    FIRST_CYCLE = "first_cycle"
    STEADY_STATE = "steady_state"


@dataclass
class ProcessingResult:
    """Result of a single poll cycle.

    Attributes:
        spills_fetched: Valid features decoded from the feed
        spills_active: Active spills on watched watercourses
        new_spills: Spills reported as new this cycle
        suppressed: True if notification was skipped (first cycle)
        email: Outcome of the digest send, None if nothing was sent
        errors: Any errors that occurred
    """
    spills_fetched: int = 0
    spills_active: int = 0
    new_spills: list[SpillFeature] = field(default_factory=list)
    suppressed: bool = False
    email: EmailResponse | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def spills_new(self) -> int:
        return len(self.new_spills)

    @property
    def notified(self) -> bool:
        """Returns True if a digest was sent successfully."""
        return self.email is not None and self.email.success

    @property
    def success(self) -> bool:
        """Returns True if no errors occurred."""
        return len(self.errors) == 0

    @property
    def summary(self) -> str:
        """Human-readable summary of the cycle."""
        if self.suppressed:
            outcome = "notification suppressed"
        elif self.notified:
            outcome = "digest sent"
        elif self.email is not None:
            outcome = "digest failed"
        else:
            outcome = "nothing to send"
        return (
            f"Fetched {self.spills_fetched} sites, "
            f"{self.spills_active} active, "
            f"{self.spills_new} new, "
            f"{outcome}"
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Orchestrator:
    """Coordinates spill monitoring and alerting.

    This class wires together:
    - Feed client (fetches overflow activity)
    - Core functions (parsing, filtering, formatting)
    - Spill tracker (deduplication state)
    - Geocoding client (optional place names)
    - Email client (sending the digest)

    The first cycle after startup records every active spill but sends
    nothing.
    """

    def __init__(
        self,
        config: Config,
        feed_client: FeedClient | None = None,
        email_client: EmailClient | None = None,
        geocoding_client: GeocodingClient | None = None,
        tracker: SpillTracker | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize orchestrator with configuration.

        Args:
            config: Application configuration
            feed_client: Feed client (created if not provided)
            email_client: Email client (created if not provided)
            geocoding_client: Geocoding client (created if enabled in config)
            tracker: Spill tracker (created if not provided)
            clock: Returns the current UTC time
        """
        self.config = config
        self.feed_client = feed_client or FeedClient(
            config.feed_url,
            user_agent=config.user_agent,
            timeout=config.request_timeout_seconds,
        )
        self.email_client = email_client or EmailClient(config.smtp)
        if geocoding_client is None and config.geocoding_enabled:
            geocoding_client = GeocodingClient(
                base_url=config.geocoding_url,
                user_agent=config.user_agent,
                timeout=config.request_timeout_seconds,
            )
        self.geocoding_client = geocoding_client
        self.tracker = tracker or SpillTracker(
            retention=timedelta(hours=config.retention_hours)
        )
        self.clock = clock or _utcnow
        self.state = CycleState.FIRST_CYCLE

    def _fetch_spills(self) -> list[SpillFeature]:
        """Fetch and decode the feed.

        Raises:
            Exception: Any fetch or decode failure
        """
        payload = self.feed_client.fetch()

        # Pure core function
        return parse_spills(payload)

    def _resolve_location(self, spill: SpillFeature) -> SpillLocation:
        """Resolve a display name for a spill.

        Configured site name first, then reverse geocoding.
        """
        details = lookup_site(spill.id, self.config.sites)
        name = details.name if details else None

        if not name and self.geocoding_client is not None:
            name = self.geocoding_client.reverse(spill.latitude, spill.longitude)

        return build_location(spill, name, details, company=self.config.company)

    def _resolve_locations(self, spills: list[SpillFeature]) -> list[SpillLocation]:
        """Resolve display names concurrently, keeping feed order."""
        if len(spills) <= 1:
            return [self._resolve_location(s) for s in spills]

        workers = max(1, min(self.config.geocoding_workers, len(spills)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # map() yields in input order regardless of completion order
            return list(executor.map(self._resolve_location, spills))

    def _notify(self, new_spills: list[SpillFeature]) -> EmailResponse:
        """Build one digest for all new spills and send it."""
        locations = self._resolve_locations(new_spills)

        subject = format_digest_subject(locations)
        html_body = format_digest_html(locations)
        text_body = format_digest_text(locations)

        return self.email_client.send_digest(subject, html_body, text_body)

    def process(self, now: datetime | None = None) -> ProcessingResult:
        """Run a complete spill monitoring cycle.

        This is the main entry point that:
        1. Fetches and decodes the feed
        2. Filters to active spills on watched watercourses
        3. Classifies new spills and updates tracker memory
        4. Sends one digest (skipped on the first cycle)
        5. Expires stale tracker memory

        Args:
            now: Cycle time (defaults to the clock)

        Returns:
            ProcessingResult with details of what happened
        """
        now = now or self.clock()
        result = ProcessingResult()

        # Step 1: Fetch and decode
        try:
            spills = self._fetch_spills()
        except Exception as e:
            error_msg = f"Failed to fetch overflow activity: {e}"
            logger.error(error_msg)
            result.errors.append(error_msg)
            return result

        result.spills_fetched = len(spills)

        # Step 2: Active spills on watched watercourses (pure core functions)
        active = filter_in_scope(filter_active(spills), self.config.watercourses)
        result.spills_active = len(active)

        logger.info(
            "%d active spills on watched watercourses (of %d sites)",
            len(active),
            len(spills),
        )

        # Step 3: Deduplicate
        result.new_spills = self.tracker.classify_and_update(active, now)

        for spill in result.new_spills:
            logger.info(
                "New spill! ID: %s on %s",
                spill.id,
                spill.receiving_water_course or "unknown watercourse",
            )

        # Step 4: Notify
        if self.state is CycleState.FIRST_CYCLE:
            self.state = CycleState.STEADY_STATE
            result.suppressed = True
            logger.info(
                "Ignoring %d active spills on first run",
                len(result.new_spills),
            )
        elif result.new_spills:
            try:
                result.email = self._notify(result.new_spills)
            except Exception as e:
                logger.exception("Unexpected error sending notification")
                result.email = EmailResponse(success=False, error=str(e))

            if not result.email.success:
                result.errors.append(
                    f"Failed to send notification email: {result.email.error}"
                )

        # Step 5: Forget stale spills
        expired = self.tracker.expire(now)
        if expired:
            logger.info("Expired %d spills from memory", len(expired))

        logger.info("Spills in memory: %d", len(self.tracker))

        return result
