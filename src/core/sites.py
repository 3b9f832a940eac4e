"""Monitoring site details - Pure lookups.

Known sites can be given a friendly name and asset type in configuration.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SiteDetails:
    """Descriptive details for a monitoring site.

    Attributes:
        name: Human-readable site name (e.g., "Evesham STW")
        asset_type: Storm discharge asset type (e.g., "Storm Tank")
    """
    name: str | None = None
    asset_type: str | None = None


def lookup_site(site_id: str, sites: dict[str, SiteDetails]) -> SiteDetails | None:
    """Look up details for a site, matching IDs case-insensitively.

    Pure function.
    """
    details = sites.get(site_id)
    if details is not None:
        return details

    lowered = site_id.lower()
    for key, value in sites.items():
        if key.lower() == lowered:
            return value

    return None
