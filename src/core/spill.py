"""Spill data models and parsing - Pure functions.

This module handles parsing the storm overflow activity GeoJSON feed into
typed SpillFeature objects. All functions are pure with no side effects.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class SpillFeature:
    """Immutable storm overflow feature data model.

    Attributes:
        id: Monitoring site identifier (e.g., 'SVT00123')
        status_start: Start of the current status episode (epoch ms)
        latitude: Site latitude
        longitude: Site longitude
        receiving_water_course: Watercourse the site discharges into
        latest_event_start: Start of the latest discharge (epoch ms)
        latest_event_end: End of the latest discharge, None while ongoing
        status: Raw status code from the feed
        company: Water company operating the site
        object_id: Feed object ID
        last_updated: When the feed last updated this site (epoch ms)
    """
    id: str
    status_start: int
    latitude: float
    longitude: float
    receiving_water_course: str = ""
    latest_event_start: int | None = None
    latest_event_end: int | None = None
    status: int | None = None
    company: str | None = None
    object_id: int | None = None
    last_updated: int | None = None

    @property
    def coordinates(self) -> tuple[float, float]:
        """Return (latitude, longitude) tuple."""
        return (self.latitude, self.longitude)

    @property
    def start_time(self) -> datetime:
        """Return status_start as a UTC datetime."""
        return datetime.fromtimestamp(self.status_start / 1000, tz=timezone.utc)


def _optional_int(value: Any) -> int | None:
    if value is None:
        return None
    return int(value)


def _parse_coordinates(
    geometry: dict[str, Any] | None,
    props: dict[str, Any],
) -> tuple[float, float] | None:
    """Extract (latitude, longitude) from a feature.

    GeoJSON geometry is [longitude, latitude]. Falls back to the
    Latitude/Longitude properties when geometry is missing.
    """
    coords = (geometry or {}).get("coordinates") or []
    if len(coords) >= 2 and coords[0] is not None and coords[1] is not None:
        return (float(coords[1]), float(coords[0]))

    lat = props.get("Latitude")
    lon = props.get("Longitude")
    if lat is None or lon is None:
        return None

    return (float(lat), float(lon))


def parse_spill(feature: dict[str, Any]) -> SpillFeature | None:
    """Parse a single GeoJSON feature into a SpillFeature.

    Pure function: takes raw dict, returns typed SpillFeature or None if
    the feature lacks an identifier, a status start or coordinates.

    Args:
        feature: GeoJSON feature dict from the overflow activity feed

    Returns:
        SpillFeature object or None if parsing fails
    """
    try:
        props = feature.get("properties") or {}

        site_id = props.get("Id")
        if not site_id:
            return None

        status_start = props.get("StatusStart")
        if status_start is None:
            return None

        coordinates = _parse_coordinates(feature.get("geometry"), props)
        if coordinates is None:
            return None

        latitude, longitude = coordinates

        return SpillFeature(
            id=str(site_id),
            status_start=int(status_start),
            latitude=latitude,
            longitude=longitude,
            receiving_water_course=props.get("ReceivingWaterCourse") or "",
            latest_event_start=_optional_int(props.get("LatestEventStart")),
            latest_event_end=_optional_int(props.get("LatestEventEnd")),
            status=_optional_int(props.get("Status")),
            company=props.get("Company"),
            object_id=_optional_int(props.get("OBJECTID")),
            last_updated=_optional_int(props.get("LastUpdated")),
        )
    except (AttributeError, KeyError, TypeError, ValueError):
        return None


def parse_spills(payload: dict[str, Any]) -> list[SpillFeature]:
    """Parse the feed's GeoJSON FeatureCollection into SpillFeatures.

    Pure function: drops invalid features and keeps feed order.

    Args:
        payload: Full GeoJSON FeatureCollection

    Returns:
        List of valid SpillFeature objects in feed order

    Raises:
        ValueError: If the payload is not a dict carrying a features list,
            e.g. an error body returned with HTTP 200
    """
    if not isinstance(payload, dict):
        raise ValueError("Feed payload is not a JSON object")

    features = payload.get("features")
    if not isinstance(features, list):
        raise ValueError("Feed payload has no 'features' list")

    spills = []
    for feature in features:
        if not isinstance(feature, dict):
            continue
        spill = parse_spill(feature)
        if spill is not None:
            spills.append(spill)

    return spills


def is_active(spill: SpillFeature) -> bool:
    """Check if a spill is currently discharging.

    Pure function.
    """
    return spill.latest_event_start is not None and spill.latest_event_end is None


def filter_active(spills: list[SpillFeature]) -> list[SpillFeature]:
    """Keep only currently discharging spills, in feed order.

    Pure function.
    """
    return [s for s in spills if is_active(s)]
