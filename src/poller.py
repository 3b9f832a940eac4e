"""Poll loop - runs the orchestrator on a fixed interval.

Cycles run strictly one after another on the calling thread. Shutdown
is cooperative: stop() sets an event that is checked at the top of
every loop and interrupts the sleep between cycles.
"""

import logging
import threading
from datetime import datetime, timezone

from src.orchestrator import Orchestrator


logger = logging.getLogger(__name__)


class Poller:
    """Runs monitoring cycles until stopped."""

    def __init__(
        self,
        orchestrator: Orchestrator,
        interval_seconds: float,
        stop_event: threading.Event | None = None,
    ) -> None:
        """Initialize poller.

        Args:
            orchestrator: Runs a single cycle
            interval_seconds: Sleep between cycles
            stop_event: Event that requests shutdown (created if not provided)
        """
        self.orchestrator = orchestrator
        self.interval_seconds = interval_seconds
        self.stop_event = stop_event or threading.Event()
        self.cycles = 0

    def stop(self) -> None:
        """Request shutdown; safe to call from a signal handler."""
        self.stop_event.set()

    def run_once(self) -> None:
        """Run one cycle, logging rather than raising any failure."""
        self.cycles += 1
        logger.info("Worker running at: %s", datetime.now(timezone.utc).isoformat())

        try:
            result = self.orchestrator.process()
        except Exception:
            logger.exception("Unexpected error in monitoring cycle")
            return

        logger.info("Completed: %s", result.summary)
        for error in result.errors:
            logger.error("Error: %s", error)

    def run(self) -> None:
        """Poll until stop() is called."""
        logger.info("Polling every %s seconds", self.interval_seconds)

        while not self.stop_event.is_set():
            self.run_once()

            # wait() returns True as soon as stop() is called
            if self.stop_event.wait(self.interval_seconds):
                break

        logger.info("Poller stopped after %d cycles", self.cycles)
