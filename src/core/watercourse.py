"""Watercourse filtering - Pure functions.

This module decides which spills are in scope for alerting based on
the watercourse they discharge into. All functions are pure with no
side effects.
"""

from dataclasses import dataclass, field

from src.core.spill import SpillFeature


MATCH_SUFFIX = "suffix"
MATCH_EXACT = "exact"
MATCH_MODES = (MATCH_SUFFIX, MATCH_EXACT)


@dataclass(frozen=True)
class WatercourseFilter:
    """Configuration for which watercourses to alert on.

    Attributes:
        enabled: If False, every spill is in scope
        names: Watercourse names to watch (case-insensitive)
        match_mode: 'suffix' matches names ending with an entry,
                    'exact' requires the whole name to match
    """
    enabled: bool = True
    names: tuple[str, ...] = field(default_factory=tuple)
    match_mode: str = MATCH_SUFFIX


def matches_watercourse(name: str | None, allow_list: tuple[str, ...] | list[str]) -> bool:
    """Check if a watercourse name ends with any allow-listed name.

    Pure function. "Tributary of River Avon" matches "river avon",
    "River Avondale" does not.

    Args:
        name: Receiving watercourse name from the feed
        allow_list: Watercourse names to match against

    Returns:
        True if the lowercased name ends with any lowercased entry
    """
    if not name:
        return False

    lowered = name.strip().lower()
    return any(
        entry and lowered.endswith(entry.strip().lower())
        for entry in allow_list
    )


def matches_watercourse_exactly(name: str | None, allow_list: tuple[str, ...] | list[str]) -> bool:
    """Check if a watercourse name equals any allow-listed name.

    Pure function. Case-insensitive.
    """
    if not name:
        return False

    lowered = name.strip().lower()
    return any(lowered == entry.strip().lower() for entry in allow_list)


def spill_in_scope(spill: SpillFeature, watercourse_filter: WatercourseFilter) -> bool:
    """Evaluate if a spill's watercourse is on the watch-list.

    Pure function.
    """
    if not watercourse_filter.enabled:
        return True

    if watercourse_filter.match_mode == MATCH_EXACT:
        return matches_watercourse_exactly(
            spill.receiving_water_course, watercourse_filter.names
        )

    return matches_watercourse(spill.receiving_water_course, watercourse_filter.names)


def filter_in_scope(
    spills: list[SpillFeature],
    watercourse_filter: WatercourseFilter,
) -> list[SpillFeature]:
    """Filter spills to those on watched watercourses, keeping order.

    Pure function.
    """
    return [s for s in spills if spill_in_scope(s, watercourse_filter)]
