"""Calendar engine configuration loading and validation.

Reads ``calendar.toml``, resolves ``${VAR}`` environment references, and
returns a validated CalendarConfig dataclass.
"""

from __future__ import annotations

import os
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from hotel_calendar.calendar.identity import DOMAIN_ORDER
from hotel_calendar.calendar.models import DomainToggles, TimeWindow

CONFIG_FILENAME = "calendar.toml"

# Pattern matching ${VAR_NAME}; supports alphanumeric + underscore variable names.
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")
_VIEWS = ("day", "week", "month")


class ConfigError(Exception):
    """Raised when calendar configuration is missing, malformed, or invalid."""


@dataclass
class LoggingConfig:
    """Logging configuration from [calendar.logging] section."""

    level: str = "INFO"
    format: str = "text"  # "text" or "json"
    log_file: str | None = None


@dataclass
class TouchConfig:
    """Long-press drag tuning from [calendar.touch]."""

    hold_ms: int = 500
    move_tolerance_px: float = 10.0

    @property
    def hold_seconds(self) -> float:
        return self.hold_ms / 1000


@dataclass
class CalendarConfig:
    """Parsed calendar configuration."""

    property_name: str | None = None
    timezone: str = "UTC"
    default_view: str = "week"
    window: TimeWindow = field(default_factory=TimeWindow)
    month_visible_events: int = 3
    touch: TouchConfig = field(default_factory=TouchConfig)
    domains: DomainToggles = field(default_factory=DomainToggles)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ``${VAR_NAME}`` references in string values.

    Raises
    ------
    ConfigError
        If a referenced environment variable is not set.
    """
    if isinstance(value, dict):
        return {k: resolve_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_env_vars(item) for item in value]
    if isinstance(value, str):
        return _resolve_string(value)
    return value


def _resolve_string(s: str) -> str:
    missing: list[str] = []

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            missing.append(var_name)
            return match.group(0)
        return env_value

    result = _ENV_VAR_PATTERN.sub(_replace, s)
    if missing:
        raise ConfigError(
            f"Unresolved environment variable(s) in config value: {', '.join(missing)} "
            f"(original: {s!r})"
        )
    return result


def _section(parent: dict[str, Any], name: str, path: str) -> dict[str, Any]:
    value = parent.get(name, {})
    if not isinstance(value, dict):
        raise ConfigError(f"{path} must be a table")
    return value


def _int(section: dict[str, Any], key: str, default: int, path: str) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{path}.{key} must be an integer, got {value!r}")
    return value


def _parse_window(calendar_section: dict[str, Any]) -> TimeWindow:
    section = _section(calendar_section, "window", "calendar.window")
    start_hour = _int(section, "start_hour", 7, "calendar.window")
    hours = _int(section, "hours", 15, "calendar.window")
    units = section.get("units_per_hour", 80)
    if isinstance(units, bool) or not isinstance(units, int | float) or units <= 0:
        raise ConfigError(f"calendar.window.units_per_hour must be positive, got {units!r}")
    if not 0 <= start_hour <= 23:
        raise ConfigError(f"calendar.window.start_hour out of range: {start_hour}")
    if not 1 <= hours <= 24:
        raise ConfigError(f"calendar.window.hours out of range: {hours}")
    return TimeWindow(
        start_hour=start_hour,
        hours=hours,
        units_per_hour=float(units),
    )


def _parse_touch(calendar_section: dict[str, Any]) -> TouchConfig:
    section = _section(calendar_section, "touch", "calendar.touch")
    hold_ms = _int(section, "hold_ms", 500, "calendar.touch")
    if hold_ms <= 0:
        raise ConfigError("calendar.touch.hold_ms must be positive")
    tolerance = section.get("move_tolerance_px", 10.0)
    if isinstance(tolerance, bool) or not isinstance(tolerance, int | float) or tolerance < 0:
        raise ConfigError(
            f"calendar.touch.move_tolerance_px must be a non-negative number, got {tolerance!r}"
        )
    return TouchConfig(hold_ms=hold_ms, move_tolerance_px=float(tolerance))


def _parse_domains(calendar_section: dict[str, Any]) -> DomainToggles:
    section = _section(calendar_section, "domains", "calendar.domains")
    known = {domain.value for domain in DOMAIN_ORDER}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ConfigError(f"Unknown calendar domain(s): {', '.join(unknown)}")
    flags: dict[str, bool] = {}
    for key, value in section.items():
        if not isinstance(value, bool):
            raise ConfigError(f"calendar.domains.{key} must be true or false")
        flags[key] = value
    return DomainToggles(**flags)


def _parse_logging(calendar_section: dict[str, Any]) -> LoggingConfig:
    section = _section(calendar_section, "logging", "calendar.logging")
    level = str(section.get("level", "INFO")).upper()
    log_format = str(section.get("format", "text")).lower()
    if log_format not in ("text", "json"):
        raise ConfigError(
            f"Invalid calendar.logging.format: {log_format!r}. Must be 'text' or 'json'."
        )
    log_file = section.get("log_file")
    return LoggingConfig(
        level=level,
        format=log_format,
        log_file=str(log_file) if log_file else None,
    )


def parse_config(data: dict[str, Any]) -> CalendarConfig:
    """Validate an already-decoded TOML document."""
    data = resolve_env_vars(data)
    calendar_section = data.get("calendar", {})
    if not isinstance(calendar_section, dict):
        raise ConfigError("[calendar] must be a table")

    timezone = str(calendar_section.get("timezone", "UTC")).strip() or "UTC"
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Invalid calendar.timezone: {timezone!r}") from exc

    property_name = calendar_section.get("property")
    if property_name is not None and not isinstance(property_name, str):
        raise ConfigError(f"calendar.property must be a string, got {property_name!r}")
    property_name = (property_name or "").strip() or None

    default_view = str(calendar_section.get("default_view", "week")).lower()
    if default_view not in _VIEWS:
        raise ConfigError(
            f"Invalid calendar.default_view: {default_view!r}. Must be one of {', '.join(_VIEWS)}."
        )

    month_section = _section(calendar_section, "month", "calendar.month")
    visible = _int(month_section, "visible_events", 3, "calendar.month")
    if visible < 0:
        raise ConfigError("calendar.month.visible_events must not be negative")

    return CalendarConfig(
        property_name=property_name,
        timezone=timezone,
        default_view=default_view,
        window=_parse_window(calendar_section),
        month_visible_events=visible,
        touch=_parse_touch(calendar_section),
        domains=_parse_domains(calendar_section),
        logging=_parse_logging(calendar_section),
    )


def load_config(path: Path | None = None) -> CalendarConfig:
    """Load and validate a calendar config.

    Parameters
    ----------
    path:
        A ``calendar.toml`` file or a directory containing one.  ``None``
        returns the defaults.

    Raises
    ------
    ConfigError
        If the file is missing, contains invalid TOML, or holds invalid values.
    """
    if path is None:
        return CalendarConfig()

    toml_path = path / CONFIG_FILENAME if path.is_dir() else path
    if not toml_path.exists():
        raise ConfigError(f"Config file not found: {toml_path}")

    try:
        data = tomllib.loads(toml_path.read_bytes().decode())
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {toml_path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigError(f"Config file is not UTF-8: {toml_path}") from exc

    return parse_config(data)
