"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, SmtpSettings) are defined in src/core/config.py
to avoid information leakage between layers.

Environment overrides are applied after the YAML is bound, so an
environment variable always wins over the file.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from src.core.config import Config, SmtpSettings
from src.core.sites import SiteDetails
from src.core.watercourse import MATCH_SUFFIX, WatercourseFilter


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "config/config.yaml"


def _resolve_value(value: Any) -> Any:
    """Resolve a ${VAR} placeholder from the environment.

    Args:
        value: Value to resolve

    Returns:
        Resolved value, or the original value if not a set placeholder
    """
    if not isinstance(value, str):
        return value

    if value.startswith("${") and value.endswith("}"):
        var_name = value[2:-1]
        env_value = os.environ.get(var_name)
        if env_value:
            return env_value
        logger.warning("Environment variable %s not set", var_name)

    return value


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def split_addresses(value: str | list[str] | None) -> list[str]:
    """Split a comma-separated address list.

    Blanks and unresolved ${VAR} placeholders are dropped.
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]

    addresses = []
    for item in value:
        resolved = _resolve_value(item)
        if isinstance(resolved, str) and resolved.startswith("${"):
            continue
        addresses.extend(a.strip() for a in str(resolved).split(","))

    return [a for a in addresses if a]


def _parse_smtp(data: dict[str, Any]) -> SmtpSettings:
    """Parse outbound email settings from config data."""
    defaults = SmtpSettings()
    return SmtpSettings(
        host=_resolve_value(data.get("host", defaults.host)),
        port=int(_resolve_value(data.get("port", defaults.port))),
        username=_resolve_value(data.get("username", defaults.username)),
        password=_resolve_value(data.get("password", defaults.password)),
        from_address=_resolve_value(data.get("from_address", defaults.from_address)),
        from_name=data.get("from_name", defaults.from_name),
        recipients=split_addresses(data.get("recipients")),
        use_ssl=_parse_bool(data.get("use_ssl", defaults.use_ssl)),
        timeout_seconds=int(data.get("timeout_seconds", defaults.timeout_seconds)),
    )


def _parse_watercourses(data: dict[str, Any]) -> WatercourseFilter:
    """Parse the watercourse watch-list from config data."""
    names = tuple(
        str(n).strip().lower()
        for n in data.get("names", [])
        if n is not None and str(n).strip()
    )
    return WatercourseFilter(
        enabled=_parse_bool(data.get("enabled", True)),
        names=names,
        match_mode=str(data.get("match_mode", MATCH_SUFFIX)).lower(),
    )


def _parse_sites(data: dict[str, Any]) -> dict[str, SiteDetails]:
    """Parse known site details keyed by site ID."""
    sites = {}
    for site_id, details in data.items():
        details = details or {}
        sites[str(site_id)] = SiteDetails(
            name=details.get("name"),
            asset_type=details.get("asset_type"),
        )
    return sites


def apply_env_overrides(config: Config) -> Config:
    """Override bound configuration with environment variables.

    Environment variables:
        OVERFLOW_DATA_ENDPOINT: Feed URL
        NOTIFICATION_EMAILS: Comma-separated recipient list
        FROM_EMAIL: Sender address
        SMTP_HOST / SMTP_PORT / SMTP_USER / SMTP_PASSWORD: SMTP settings
        POLL_INTERVAL_SECONDS: Polling interval

    Args:
        config: Config bound from the structured source

    Returns:
        The same Config, updated in place
    """
    env = os.environ

    if env.get("OVERFLOW_DATA_ENDPOINT"):
        config.feed_url = env["OVERFLOW_DATA_ENDPOINT"]
    if env.get("NOTIFICATION_EMAILS"):
        config.smtp.recipients = split_addresses(env["NOTIFICATION_EMAILS"])
    if env.get("FROM_EMAIL"):
        config.smtp.from_address = env["FROM_EMAIL"]
    if env.get("SMTP_HOST"):
        config.smtp.host = env["SMTP_HOST"]
    if env.get("SMTP_PORT"):
        config.smtp.port = int(env["SMTP_PORT"])
    if env.get("SMTP_USER"):
        config.smtp.username = env["SMTP_USER"]
    if env.get("SMTP_PASSWORD"):
        config.smtp.password = env["SMTP_PASSWORD"]
    if env.get("POLL_INTERVAL_SECONDS"):
        config.polling_interval_seconds = int(env["POLL_INTERVAL_SECONDS"])

    return config


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    Environment overrides are applied after binding.

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    defaults = Config()

    config = Config(
        feed_url=_resolve_value(data.get("feed_url", defaults.feed_url)),
        user_agent=data.get("user_agent", defaults.user_agent),
        polling_interval_seconds=int(
            data.get("polling_interval_seconds", defaults.polling_interval_seconds)
        ),
        retention_hours=float(data.get("retention_hours", defaults.retention_hours)),
        request_timeout_seconds=int(
            data.get("request_timeout_seconds", defaults.request_timeout_seconds)
        ),
        company=data.get("company", defaults.company),
        watercourses=_parse_watercourses(data.get("watercourses") or {}),
        smtp=_parse_smtp(data.get("smtp") or {}),
        sites=_parse_sites(data.get("sites") or {}),
        geocoding_enabled=_parse_bool(data.get("geocoding_enabled", defaults.geocoding_enabled)),
        geocoding_url=data.get("geocoding_url", defaults.geocoding_url),
        geocoding_workers=int(data.get("geocoding_workers", defaults.geocoding_workers)),
    )

    return apply_env_overrides(config)


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return apply_env_overrides(Config())

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return apply_env_overrides(Config())

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: %d watercourses, %d sites, %d recipients",
        len(config.watercourses.names),
        len(config.sites),
        len(config.smtp.recipients),
    )

    return config
