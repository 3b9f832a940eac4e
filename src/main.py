"""Process Entry Point.

Loads configuration, validates it, and runs the poll loop until
SIGINT or SIGTERM.
"""

import logging
import os
import signal
import sys
import threading

from src.core.config import validate_config
from src.orchestrator import Orchestrator
from src.poller import Poller
from src.shell.config_loader import load_config


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Run the spill alert service.

    Returns:
        Process exit status
    """
    try:
        config = load_config()
    except Exception:
        logger.exception("Failed to load configuration")
        return 1

    validation = validate_config(config)
    for warning in validation.warnings:
        logger.warning("Config %s: %s", warning.field, warning.message)
    if not validation.valid:
        for error in validation.critical_errors:
            logger.error("Config %s: %s", error.field, error.message)
        return 1

    orchestrator = Orchestrator(config)
    poller = Poller(orchestrator, config.polling_interval_seconds)

    def _handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down", signum)
        poller.stop()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    # Handlers run on the main thread, which must never be inside the
    # stop event's wait() when one calls set(). The loop gets its own thread.
    thread = threading.Thread(target=poller.run, name="Poller")
    thread.start()
    while thread.is_alive():
        thread.join(timeout=1)
    return 0


if __name__ == "__main__":
    sys.exit(main())
