"""Functional Core - Pure functions with no side effects.

This module contains all business logic:
- Spill feed parsing
- Watercourse filtering
- Spill deduplication (the tracker's decision logic)
- Digest formatting

Everything here is deterministic and performs no I/O. SpillTracker is
the one stateful object, and its state lives only in memory.
"""

from src.core.spill import SpillFeature, parse_spills, filter_active
from src.core.watercourse import WatercourseFilter, matches_watercourse, filter_in_scope
from src.core.tracker import SpillTracker, SpillMemory, is_new_spill
from src.core.formatter import SpillLocation, format_digest_html, format_digest_subject

__all__ = [
    # Spill
    "SpillFeature",
    "parse_spills",
    "filter_active",
    # Watercourse
    "WatercourseFilter",
    "matches_watercourse",
    "filter_in_scope",
    # Tracker
    "SpillTracker",
    "SpillMemory",
    "is_new_spill",
    # Formatter
    "SpillLocation",
    "format_digest_html",
    "format_digest_subject",
]
