"""Core data models for toggl2sheet.

Defines all dataclasses and enums used across the application:
- Source data: RawEntry
- Request: Grouping, RequestConfig, SourceSettings
- Reporting: TimeSheetRow, Rollup, TimeSheet
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Optional

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


def to_millis(moment: datetime) -> int:
    """Return *moment* as integer milliseconds since the Unix epoch."""
    return (moment - _EPOCH) // _ONE_MS


def from_millis(millis: int, tz) -> datetime:
    """Return the aware datetime for *millis* expressed in *tz*."""
    return (_EPOCH + timedelta(milliseconds=millis)).astimezone(tz)


def trim_millis(millis: int, step: int) -> int:
    """Round *millis* to the nearest multiple of *step*; halves round up."""
    rest = millis % step
    if rest < step - rest:
        return millis - rest
    return millis - rest + step


# ---------------------------------------------------------------------------
# Source data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RawEntry:
    """One recorded interval as delivered by a source adapter."""
    user: str
    email: str
    client: str
    project: str
    task: str
    description: str
    billable: bool
    start: datetime  # time-zone aware
    end: datetime    # time-zone aware, >= start

    @property
    def duration_ms(self) -> int:
        return to_millis(self.end) - to_millis(self.start)

    def trim(self, step: int) -> "RawEntry":
        """Return a copy with both endpoints snapped to a *step* ms grid."""
        return replace(
            self,
            start=from_millis(trim_millis(to_millis(self.start), step), self.start.tzinfo),
            end=from_millis(trim_millis(to_millis(self.end), step), self.end.tzinfo),
        )

    def start_day(self, tz) -> date:
        """Calendar day of the entry's start in *tz*."""
        return self.start.astimezone(tz).date()


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

class Grouping(Enum):
    """Secondary key used to split one day's entries into rows."""
    NONE = "NONE"
    PROJECT = "PROJECT"
    CUSTOMER = "CUSTOMER"
    TITLE = "TITLE"
    SINGLE = "SINGLE"


@dataclass
class RequestConfig:
    """Validated parameters of a single timesheet request."""
    end_date: date
    start_date: Optional[date] = None
    grouping: Grouping = Grouping.NONE
    client: Optional[str] = None
    projects: Optional[list[str]] = None  # ordered; membership semantics
    time_step_ms: int = 900_000
    timezone: str = "Europe/Berlin"


@dataclass
class SourceSettings:
    """Where raw entries come from. Exactly one of token/file is set."""
    api_token: Optional[str] = None
    csv_file_path: Optional[str] = None
    csv_delimiter: str = ","
    workspace_id: int = 1397713
    api_url: str = "https://api.track.toggl.com/reports/api/v2"
    user_agent: str = "toggl2sheet"
    timeout_seconds: float = 30.0


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

@dataclass
class TimeSheetRow:
    """One output row: the entries of a (day, secondary key) partition.

    Rows synthesized for days without entries have no start/end and a
    zero duration.
    """
    day: date
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    duration_ms: int = 0
    project_durations: dict[str, int] = field(default_factory=dict)
    label: Optional[str] = None
    annotation: Optional[str] = None  # holiday / weekend name


@dataclass
class Rollup:
    """Precomputed summaries over the filtered entries."""
    by_week_and_project: dict[tuple[int, int], dict[str, int]] = field(default_factory=dict)
    by_week: dict[tuple[int, int], int] = field(default_factory=dict)  # (iso_year, week) -> ms
    by_day_and_description: dict[date, dict[str, int]] = field(default_factory=dict)
    actual_ms: int = 0
    expected_ms: Optional[int] = None


@dataclass
class TimeSheet:
    """Everything a renderer needs for one request."""
    request: RequestConfig
    rows: list[TimeSheetRow] = field(default_factory=list)
    projects: list[str] = field(default_factory=list)
    rollup: Rollup = field(default_factory=Rollup)
    forecast_ms: int = 0
