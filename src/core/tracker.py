"""Spill tracking and deduplication.

This module decides which active spills have not been notified yet.
The decision logic is pure; SpillTracker owns the only mutable state,
an in-memory map from site ID to the last observed spill episode.

Note: memory is not persisted. A restart forgets every spill, so the
poller suppresses alerts on its first cycle.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from src.core.spill import SpillFeature


# Forget spills not seen for this long
DEFAULT_RETENTION = timedelta(hours=12)


@dataclass
class SpillMemory:
    """What the tracker remembers about a site.

    Attributes:
        status_start: status_start of the most recently observed active episode
        last_seen: When the site was last observed active
    """
    status_start: int
    last_seen: datetime


def is_new_spill(spill: SpillFeature, memory: SpillMemory | None) -> bool:
    """Decide if an active spill should be notified.

    Pure function.

    A spill is new when the site has never been seen, or when its episode
    start changed (the spill ended and restarted).

    Args:
        spill: Active spill from the current cycle
        memory: Tracker memory for the spill's site, if any

    Returns:
        True if the spill should be reported as new
    """
    if memory is None:
        return True
    return memory.status_start != spill.status_start


def compute_expired_ids(
    memories: dict[str, SpillMemory],
    cutoff: datetime,
) -> set[str]:
    """Compute which remembered sites have not been seen since cutoff.

    Pure function.
    """
    return {site_id for site_id, m in memories.items() if m.last_seen < cutoff}


class SpillTracker:
    """In-memory record of spills already seen.

    Owned by a single poller; not thread-safe.
    """

    def __init__(self, retention: timedelta = DEFAULT_RETENTION) -> None:
        """Initialize tracker.

        Args:
            retention: How long an unseen site is remembered
        """
        self.retention = retention
        self._memory: dict[str, SpillMemory] = {}

    def __len__(self) -> int:
        return len(self._memory)

    def __contains__(self, site_id: object) -> bool:
        return site_id in self._memory

    def get(self, site_id: str) -> SpillMemory | None:
        """Get memory for a site, or None."""
        return self._memory.get(site_id)

    def snapshot(self) -> dict[str, SpillMemory]:
        """Return a copy of the current memory."""
        return {
            site_id: SpillMemory(m.status_start, m.last_seen)
            for site_id, m in self._memory.items()
        }

    def classify_and_update(
        self,
        active_spills: list[SpillFeature],
        now: datetime,
    ) -> list[SpillFeature]:
        """Find new spills and record every active spill as seen.

        Classification reads memory for all spills before any update, so
        calling twice with the same input reports nothing the second time.
        Every active spill is upserted, not just the new ones, so ongoing
        spills keep refreshing last_seen.

        Args:
            active_spills: Active, in-scope spills in feed order
            now: Current time

        Returns:
            New spills in feed order
        """
        new_spills = []
        reported: set[str] = set()

        for spill in active_spills:
            if spill.id in reported:
                continue
            if is_new_spill(spill, self._memory.get(spill.id)):
                new_spills.append(spill)
                reported.add(spill.id)

        for spill in active_spills:
            self._memory[spill.id] = SpillMemory(
                status_start=spill.status_start,
                last_seen=now,
            )

        return new_spills

    def expire(
        self,
        now: datetime,
        retention: timedelta | None = None,
    ) -> set[str]:
        """Forget sites not seen within the retention window.

        Args:
            now: Current time
            retention: Override for the tracker's retention

        Returns:
            Site IDs that were removed
        """
        cutoff = now - (retention if retention is not None else self.retention)
        expired = compute_expired_ids(self._memory, cutoff)

        for site_id in expired:
            del self._memory[site_id]

        return expired
