"""Timesheet generation: grouping, gap-filling and rollups."""

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Any, Optional

import pytz

from toggl2sheet.core.config import (
    build_request_config,
    get_timezone,
    source_settings,
)
from toggl2sheet.core.models import (
    Grouping,
    RawEntry,
    RequestConfig,
    Rollup,
    TimeSheet,
    TimeSheetRow,
)
from toggl2sheet.core.workcalendar import WorkCalendar
from toggl2sheet.sources.base import EntrySource
from toggl2sheet.sources.factory import create_source

logger = logging.getLogger(__name__)


def filter_entries(
    entries: list[RawEntry],
    client: Optional[str] = None,
    projects: Optional[list[str]] = None,
) -> list[RawEntry]:
    """Keep entries of *client* (exact match) and of any of *projects*."""
    wanted = set(projects) if projects else None
    return [
        e for e in entries
        if (client is None or e.client == client)
        and (wanted is None or e.project in wanted)
    ]


def distinct_projects(entries: list[RawEntry]) -> list[str]:
    """Project names in order of first appearance."""
    return list(dict.fromkeys(e.project for e in entries))


def first_of_month(day: date) -> date:
    return day.replace(day=1)


def _secondary_key(entry: RawEntry, position: int, grouping: Grouping):
    if grouping is Grouping.PROJECT:
        return entry.project
    if grouping is Grouping.CUSTOMER:
        return entry.client
    if grouping is Grouping.TITLE:
        return entry.description
    if grouping is Grouping.SINGLE:
        return position
    return ""


def _row_label(entry: RawEntry, grouping: Grouping) -> Optional[str]:
    if grouping is Grouping.NONE:
        return None
    if grouping is Grouping.SINGLE:
        return entry.description
    return _secondary_key(entry, 0, grouping)


class TimesheetGenerator:
    """Turns the raw entries of one request into a TimeSheet.

    The filtered entry list is computed once on construction; every
    aggregation below reads from it.  *today* anchors the default start
    of the range (first day of its month).
    """

    def __init__(
        self,
        entries: list[RawEntry],
        request: RequestConfig,
        calendar: WorkCalendar,
        today: Optional[date] = None,
    ) -> None:
        self.entries = entries
        self.request = request
        self.calendar = calendar
        self.tz = pytz.timezone(request.timezone)
        self.today = today or datetime.now(self.tz).date()
        self.filtered = filter_entries(entries, request.client, request.projects)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def range_start(self) -> date:
        return self.request.start_date or first_of_month(self.today)

    def projects(self) -> list[str]:
        """Column order: the configured filter, else the source's projects."""
        if self.request.projects:
            return list(self.request.projects)
        return distinct_projects(self.entries)

    def timesheet_rows(self) -> list[TimeSheetRow]:
        """One row per (day, secondary key), sorted by start then label."""
        grouping = self.request.grouping
        partitions: dict[tuple, list[RawEntry]] = {}
        labels: dict[tuple, Optional[str]] = {}
        for position, entry in enumerate(self.filtered):
            key = (entry.start_day(self.tz), _secondary_key(entry, position, grouping))
            if key not in partitions:
                partitions[key] = []
                labels[key] = _row_label(entry, grouping)
            partitions[key].append(entry)

        rows = [
            self._build_row(key[0], members, labels[key])
            for key, members in partitions.items()
        ]
        rows.sort(key=lambda r: (r.start, r.label or ""))
        return rows

    def rows_with_missing_days(self) -> list[TimeSheetRow]:
        """Rows for every day of the range; empty days get a synthetic row."""
        by_day: dict[date, list[TimeSheetRow]] = defaultdict(list)
        for row in self.timesheet_rows():
            by_day[row.day].append(row)

        result: list[TimeSheetRow] = []
        day = self.range_start
        while day <= self.request.end_date:
            if day in by_day:
                result.extend(by_day[day])
            else:
                result.append(TimeSheetRow(day=day, annotation=self.calendar.lookup(day)))
            day += timedelta(days=1)
        return result

    def efforts_by_week_and_project(self) -> dict[tuple[int, int], dict[str, int]]:
        """(ISO year, ISO week) -> project -> ms, weeks ascending."""
        weeks: dict[tuple[int, int], dict[str, int]] = defaultdict(lambda: defaultdict(int))
        for entry in self.filtered:
            iso = entry.start.astimezone(self.tz).isocalendar()
            weeks[(iso[0], iso[1])][entry.project] += entry.duration_ms
        return {week: dict(weeks[week]) for week in sorted(weeks)}

    def efforts_by_day_and_description(self) -> dict[date, dict[str, int]]:
        """Day -> description -> ms, days ascending."""
        days: dict[date, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        for entry in self.filtered:
            days[entry.start_day(self.tz)][entry.description] += entry.duration_ms
        return {day: dict(days[day]) for day in sorted(days)}

    def actual_effort(self) -> int:
        return sum(e.duration_ms for e in self.filtered)

    def expected_effort(self) -> Optional[int]:
        """Nominal working time; only defined for an explicit start date."""
        if self.request.start_date is None:
            return None
        return self.calendar.expected_millis(self.request.start_date, self.request.end_date)

    def rollup(self) -> Rollup:
        by_week_and_project = self.efforts_by_week_and_project()
        return Rollup(
            by_week_and_project=by_week_and_project,
            by_week={week: sum(p.values()) for week, p in by_week_and_project.items()},
            by_day_and_description=self.efforts_by_day_and_description(),
            actual_ms=self.actual_effort(),
            expected_ms=self.expected_effort(),
        )

    def build(self) -> TimeSheet:
        rows = self.rows_with_missing_days()
        return TimeSheet(
            request=self.request,
            rows=rows,
            projects=self.projects(),
            rollup=self.rollup(),
            forecast_ms=sum(r.duration_ms for r in rows),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _build_row(day: date, members: list[RawEntry], label: Optional[str]) -> TimeSheetRow:
        per_project: dict[str, int] = defaultdict(int)
        for entry in members:
            per_project[entry.project] += entry.duration_ms
        return TimeSheetRow(
            day=day,
            start=min(e.start for e in members),
            end=max(e.end for e in members),
            duration_ms=sum(per_project.values()),
            project_durations=dict(per_project),
            label=label,
        )


def generate_timesheet(
    source: EntrySource,
    request: RequestConfig,
    calendar: WorkCalendar,
    today: Optional[date] = None,
) -> TimeSheet:
    """Run the whole pipeline: produce, trim, filter, aggregate."""
    entries = source.produce_trimmed(request.time_step_ms)
    logger.debug("Aggregating %d entries", len(entries))
    return TimesheetGenerator(entries, request, calendar, today=today).build()


def build_timesheet(
    config: dict[str, Any],
    start: Optional[str] = None,
    end: Optional[str] = None,
    grouping: Optional[str] = None,
    today: Optional[date] = None,
) -> TimeSheet:
    """Build the timesheet for raw request values against *config*.

    Every call creates its own request config, source and calendar.
    """
    tz = get_timezone(config)
    today = today or datetime.now(tz).date()
    request = build_request_config(config, start, end, grouping, today=today)
    since = request.start_date or first_of_month(today)
    source = create_source(source_settings(config), since, request.end_date, tz)
    calendar = WorkCalendar.from_config(config, since, request.end_date)
    return generate_timesheet(source, request, calendar, today=today)
