"""Configuration loader for toggl2sheet.

Handles loading, saving, and default creation of config.json, and turns
the loaded settings plus query parameters into validated request values.
Resolves platform-appropriate data directories:
  - macOS:   ~/Library/Application Support/toggl2sheet
  - Windows: %APPDATA%/toggl2sheet
  - Other:   ~/.toggl2sheet
"""

import json
import logging
import os
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

import pytz

from toggl2sheet.core.errors import BadRequest, ConfigError
from toggl2sheet.core.models import Grouping, RequestConfig, SourceSettings

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def get_data_directory() -> Path:
    """Return the platform-appropriate data directory for toggl2sheet."""
    if sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    elif sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
    else:
        return Path.home() / ".toggl2sheet"
    return base / "toggl2sheet"


def get_default_config() -> dict[str, Any]:
    """Return the default configuration dictionary."""
    return {
        "api_token": None,
        "csv_file_path": None,
        "csv_delimiter": ",",
        "workspace_id": 1397713,
        "api_url": "https://api.track.toggl.com/reports/api/v2",
        "user_agent": "toggl2sheet",
        "timeout_seconds": 30,
        "time_step_ms": 900_000,
        "timezone": "Europe/Berlin",
        "client_filter": None,
        "project_filter": [],
        "holiday_country": "DE",
        "holiday_subdivision": None,
        "weekly_hours": 40,
        "host": "127.0.0.1",
        "port": 5000,
    }


def get_default_config_path() -> Path:
    """Return the default path for config.json."""
    return get_data_directory() / "config.json"


def _read_object(config_path: Path) -> Optional[dict[str, Any]]:
    """Return the JSON object stored at *config_path*, or None if unusable."""
    try:
        with open(config_path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
        logger.error("Cannot read config %s: %s, using defaults.", config_path, exc)
        return None
    if not isinstance(data, dict):
        logger.error("Config %s holds a %s, not an object, using defaults.",
                     config_path, type(data).__name__)
        return None
    return data


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load the settings file, filling missing keys from the defaults.

    On first run (no file at *path*, or at the platform default when
    *path* is ``None``) the defaults are written out so the user has a
    template to edit.  An unreadable file falls back to the defaults.
    Unknown keys are kept and logged as a warning.  A ``project_filter``
    given as a comma-separated string is split into a list.
    """
    config_path = Path(path).expanduser() if path is not None else get_default_config_path()
    merged = get_default_config()

    if not config_path.exists():
        logger.info("No config at %s, writing defaults.", config_path)
        save_config(merged, config_path)
        return merged

    data = _read_object(config_path)
    if data is None:
        return merged

    unknown = sorted(set(data) - set(merged))
    if unknown:
        logger.warning("Unknown config keys in %s: %s", config_path, ", ".join(unknown))
    merged.update(data)

    if isinstance(merged.get("project_filter"), str):
        merged["project_filter"] = [
            p.strip() for p in merged["project_filter"].split(",") if p.strip()
        ]
    return merged


def save_config(config: dict[str, Any], path: str | Path | None = None) -> None:
    """Write *config* as indented JSON, creating parent directories."""
    config_path = Path(path).expanduser() if path is not None else get_default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(
        json.dumps(config, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def parse_date(value: Optional[str], name: str) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` query value; ``None``/empty means absent."""
    if not value:
        return None
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as exc:
        raise BadRequest(f"Invalid {name} date {value!r}, expected YYYY-MM-DD") from exc


def parse_grouping(value: Optional[str]) -> Grouping:
    """Map an exact enum name to a Grouping; absent means NONE."""
    if value is None:
        return Grouping.NONE
    try:
        return Grouping[value]
    except KeyError as exc:
        choices = ", ".join(g.name for g in Grouping)
        raise BadRequest(f"Invalid grouping {value!r}, expected one of {choices}") from exc


def _number(config: dict[str, Any], key: str, convert, default=None):
    """Read *key* as a number via *convert*; absent or empty gives *default*."""
    value = config.get(key)
    if value is None or value == "":
        return default
    try:
        return convert(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a number, got {value!r}") from exc


def get_timezone(config: dict[str, Any]):
    name = config.get("timezone") or "Europe/Berlin"
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError as exc:
        raise ConfigError(f"Unknown time zone {name!r}") from exc


def build_request_config(
    config: dict[str, Any],
    start: Optional[str] = None,
    end: Optional[str] = None,
    grouping: Optional[str] = None,
    today: Optional[date] = None,
) -> RequestConfig:
    """Build the validated RequestConfig for one request.

    *start*, *end* and *grouping* are the raw query values.  A missing end
    date defaults to *today* (the current day in the configured zone).

    Raises:
        BadRequest: a date or the grouping cannot be parsed.
        ConfigError: the settings or the date range are inconsistent.
    """
    tz = get_timezone(config)
    start_date = parse_date(start, "start")
    end_date = parse_date(end, "end")
    parsed_grouping = parse_grouping(grouping)

    if end_date is None:
        end_date = today or datetime.now(tz).date()
    if start_date is not None and end_date < start_date:
        raise ConfigError(f"End date {end_date} lies before start date {start_date}")

    time_step = _number(config, "time_step_ms", int, 0)
    if time_step <= 0:
        raise ConfigError(f"time_step_ms must be positive, got {time_step}")

    projects = config.get("project_filter") or None
    return RequestConfig(
        start_date=start_date,
        end_date=end_date,
        grouping=parsed_grouping,
        client=config.get("client_filter") or None,
        projects=list(projects) if projects else None,
        time_step_ms=time_step,
        timezone=tz.zone,
    )


def source_settings(config: dict[str, Any]) -> SourceSettings:
    """Extract the source part of *config*; exactly one source must be set."""
    token = config.get("api_token") or None
    csv_path = config.get("csv_file_path") or None
    if token and csv_path:
        raise ConfigError("Configure either api_token or csv_file_path, not both")
    if not token and not csv_path:
        raise ConfigError("No source configured: set api_token or csv_file_path")

    defaults = SourceSettings()
    return SourceSettings(
        api_token=token,
        csv_file_path=os.path.expanduser(csv_path) if csv_path else None,
        csv_delimiter=config.get("csv_delimiter") or defaults.csv_delimiter,
        workspace_id=_number(config, "workspace_id", int, defaults.workspace_id),
        api_url=config.get("api_url") or defaults.api_url,
        user_agent=config.get("user_agent") or defaults.user_agent,
        timeout_seconds=_number(config, "timeout_seconds", float, defaults.timeout_seconds),
    )
