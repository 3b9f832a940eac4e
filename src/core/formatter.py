"""Message formatting - Pure functions.

This module formats new spills into the notification email digest.
All functions are pure with no side effects.
"""

from dataclasses import dataclass
from datetime import datetime
from urllib.parse import quote

from jinja2 import Environment

from src.core.sites import SiteDetails
from src.core.spill import SpillFeature


SEWAGE_MAP_URL = "https://www.sewagemap.co.uk/"
DEFAULT_COMPANY = "Severn Trent Water"
UNKNOWN_SITE_NAME = "Unknown Site"
DIGEST_SUBJECT = "New Sewage Spills Found"


@dataclass(frozen=True)
class SpillLocation:
    """A new spill ready to be listed in a digest.

    Attributes:
        name: Human-readable location name
        code: Monitoring site identifier
        start_time: When the spill started (UTC)
        latitude: Site latitude
        longitude: Site longitude
        receiving_water_course: Watercourse receiving the discharge
        station_type: Storm discharge asset type (optional)
        company: Water company, used for the map link
    """
    name: str
    code: str
    start_time: datetime
    latitude: float
    longitude: float
    receiving_water_course: str = ""
    station_type: str | None = None
    company: str = DEFAULT_COMPANY

    @property
    def map_url(self) -> str:
        """Deep link to the spill on the sewage map."""
        return (
            f"{SEWAGE_MAP_URL}?asset_id={quote(self.code)}"
            f"&company={quote(self.company)}"
        )


def build_location(
    spill: SpillFeature,
    name: str | None,
    details: SiteDetails | None = None,
    company: str = DEFAULT_COMPANY,
) -> SpillLocation:
    """Combine a spill with its resolved name into a SpillLocation.

    Pure function.
    """
    return SpillLocation(
        name=name or UNKNOWN_SITE_NAME,
        code=spill.id,
        start_time=spill.start_time,
        latitude=spill.latitude,
        longitude=spill.longitude,
        receiving_water_course=spill.receiving_water_course,
        station_type=details.asset_type if details else None,
        company=company,
    )


def format_start_time(start_time: datetime) -> str:
    """Format a start time as 'dd/mm/YYYY at HH:MM'."""
    return start_time.strftime("%d/%m/%Y at %H:%M")


def format_digest_subject(locations: list[SpillLocation]) -> str:
    """Format the digest email subject.

    Pure function.
    """
    if len(locations) > 1:
        return f"{DIGEST_SUBJECT} ({len(locations)})"
    return DIGEST_SUBJECT


_JINJA_ENV = Environment(autoescape=True)
_JINJA_ENV.filters["start_time"] = format_start_time

_DIGEST_TEMPLATE = _JINJA_ENV.from_string("""\
<html>
  <body>
    <h2>{{ heading }}</h2>
    {% for loc in locations %}
    <div style="margin-bottom: 16px;">
      <h3><a href="{{ loc.map_url }}">{{ loc.name }}</a></h3>
      <ul>
        <li>Site code: {{ loc.code }}</li>
        <li>Started: {{ loc.start_time | start_time }} (UTC)</li>
        {% if loc.station_type %}<li>Station type: {{ loc.station_type }}</li>{% endif %}
        {% if loc.receiving_water_course %}<li>Receiving watercourse: {{ loc.receiving_water_course }}</li>{% endif %}
        <li>Location: {{ loc.latitude }}, {{ loc.longitude }}</li>
      </ul>
    </div>
    {% endfor %}
  </body>
</html>
""")


def format_digest_html(locations: list[SpillLocation]) -> str:
    """Render the HTML digest body, one section per spill in order.

    Pure function.

    Args:
        locations: New spills to list

    Returns:
        HTML document string
    """
    count = len(locations)
    heading = f"{count} new sewage spill{'s' if count != 1 else ''} detected"
    return _DIGEST_TEMPLATE.render(heading=heading, locations=locations)


def format_digest_text(locations: list[SpillLocation]) -> str:
    """Format a plain-text alternative for the digest.

    Pure function.
    """
    lines = []
    for loc in locations:
        lines.append(f"{loc.name} ({loc.code})")
        lines.append(f"  Started: {format_start_time(loc.start_time)} (UTC)")
        if loc.station_type:
            lines.append(f"  Station type: {loc.station_type}")
        if loc.receiving_water_course:
            lines.append(f"  Receiving watercourse: {loc.receiving_water_course}")
        lines.append(f"  Location: {loc.latitude}, {loc.longitude}")
        lines.append(f"  Map: {loc.map_url}")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"
