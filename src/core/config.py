"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field

from src.core.sites import SiteDetails
from src.core.watercourse import MATCH_MODES, WatercourseFilter


DEFAULT_USER_AGENT = "Avon Sewage Alerts (alerts@bernielabs.com)"


@dataclass
class SmtpSettings:
    """Outbound email configuration.

    Attributes:
        host: SMTP server host
        port: SMTP server port
        username: SMTP login
        password: SMTP password
        from_address: Sender address
        from_name: Sender display name
        recipients: Addresses to blind-copy on every digest
        use_ssl: Implicit TLS (SMTP_SSL) if True, else STARTTLS
        timeout_seconds: Socket timeout for SMTP calls
    """
    host: str = ""
    port: int = 587
    username: str = ""
    password: str = ""
    from_address: str = ""
    from_name: str = "ARAG Sewage Alerts"
    recipients: list[str] = field(default_factory=list)
    use_ssl: bool = False
    timeout_seconds: int = 30


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        feed_url: Storm overflow activity endpoint
        user_agent: User-Agent sent to the feed and geocoder
        polling_interval_seconds: How often to poll the feed
        retention_hours: How long unseen spills are remembered
        request_timeout_seconds: Timeout for outbound HTTP requests
        company: Water company name used in map links
        watercourses: Which watercourses to alert on
        smtp: Outbound email settings
        sites: Known site details keyed by site ID
        geocoding_enabled: Reverse geocode sites with no configured name
        geocoding_url: Nominatim reverse geocoding endpoint
        geocoding_workers: Concurrent geocoding lookups per cycle
    """
    feed_url: str = ""
    user_agent: str = DEFAULT_USER_AGENT
    polling_interval_seconds: int = 300
    retention_hours: float = 12.0
    request_timeout_seconds: int = 30
    company: str = "Severn Trent Water"
    watercourses: WatercourseFilter = field(default_factory=WatercourseFilter)
    smtp: SmtpSettings = field(default_factory=SmtpSettings)
    sites: dict[str, SiteDetails] = field(default_factory=dict)
    geocoding_enabled: bool = False
    geocoding_url: str = "https://nominatim.openstreetmap.org/reverse"
    geocoding_workers: int = 4


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def _is_unresolved(value: str) -> bool:
    return not value or value.startswith("${")


def validate_smtp(smtp: SmtpSettings) -> list[ValidationError]:
    """Validate outbound email settings.

    Pure function.
    """
    errors = []

    if _is_unresolved(smtp.host):
        errors.append(ValidationError(field="smtp.host", message="SMTP host not set"))

    if not 0 < smtp.port < 65536:
        errors.append(ValidationError(
            field="smtp.port",
            message=f"SMTP port {smtp.port} out of range [1, 65535]",
        ))

    if _is_unresolved(smtp.from_address) or "@" not in smtp.from_address:
        errors.append(ValidationError(
            field="smtp.from_address",
            message="From address not set or invalid",
        ))

    if _is_unresolved(smtp.password):
        errors.append(ValidationError(
            field="smtp.password",
            message="SMTP password not resolved (still contains placeholder)",
            severity="warning",
        ))

    if not smtp.recipients:
        errors.append(ValidationError(
            field="smtp.recipients",
            message="No notification recipients configured",
            severity="warning",
        ))

    for i, address in enumerate(smtp.recipients):
        if "@" not in address:
            errors.append(ValidationError(
                field=f"smtp.recipients[{i}]",
                message=f"'{address}' is not an email address",
            ))

    return errors


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    if not config.feed_url.startswith(("http://", "https://")):
        errors.append(ValidationError(
            field="feed_url",
            message=f"Feed URL must be http(s), got '{config.feed_url}'",
        ))

    if config.polling_interval_seconds <= 0:
        errors.append(ValidationError(
            field="polling_interval_seconds",
            message=f"Polling interval must be positive, got {config.polling_interval_seconds}",
        ))

    if config.retention_hours <= 0:
        errors.append(ValidationError(
            field="retention_hours",
            message=f"Retention must be positive, got {config.retention_hours}",
        ))

    if config.geocoding_workers < 1:
        errors.append(ValidationError(
            field="geocoding_workers",
            message=f"Need at least one geocoding worker, got {config.geocoding_workers}",
        ))

    if config.watercourses.match_mode not in MATCH_MODES:
        errors.append(ValidationError(
            field="watercourses.match_mode",
            message=f"Unknown match mode '{config.watercourses.match_mode}'",
        ))

    if config.watercourses.enabled and not config.watercourses.names:
        errors.append(ValidationError(
            field="watercourses.names",
            message="Watercourse filter enabled with no names; nothing will alert",
            severity="warning",
        ))

    errors.extend(validate_smtp(config.smtp))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
