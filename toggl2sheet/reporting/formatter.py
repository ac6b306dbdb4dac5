"""Renderers for timesheets.

Provides the H:MM duration format, the HTML page served by ``/current``,
the plain-text report printed by the CLI, and the JSON-ready structure
served by ``/timesheet``.
"""

from html import escape
from typing import Any, Optional

import pytz

from toggl2sheet.core.models import Rollup, TimeSheet, TimeSheetRow

_MINUTE_MS = 60_000

HEADINGS = ("Datum", "Beginn", "Ende", "Dauer", "Bezeichnung")
ANNOTATION_HEADING = "Bemerkung"


class TextFormatter:
    """Formats timesheet summaries as plain text."""

    @staticmethod
    def format_duration(millis: int) -> str:
        """Format milliseconds as 'H:MM' (e.g., '2:15').

        Truncates to whole minutes. Returns '0:00' for zero/negative durations.
        """
        total_minutes = max(millis, 0) // _MINUTE_MS
        hours, minutes = divmod(total_minutes, 60)
        return f"{hours}:{minutes:02d}"

    @staticmethod
    def format_efforts(timesheet: TimeSheet) -> list[str]:
        """Expected, actual and forecast lines; expected needs both dates."""
        fmt = TextFormatter.format_duration
        lines = []
        if timesheet.rollup.expected_ms is not None:
            lines.append(f"Sollarbeitszeit: {fmt(timesheet.rollup.expected_ms)}")
        lines.append(f"Ist-Leistung: {fmt(timesheet.rollup.actual_ms)}")
        lines.append(f"Prognose: {fmt(timesheet.forecast_ms)}")
        return lines

    @staticmethod
    def format_weeks(rollup: Rollup) -> str:
        """Render the by-week-and-project block.

        Returns text like:
          KW 10:
            Project A:	2:00
            Gesamt:	2:00
        """
        fmt = TextFormatter.format_duration
        blocks = []
        for week, projects in rollup.by_week_and_project.items():
            lines = [f"KW {week[1]}:"]
            lines.extend(f"  {project}:\t{fmt(ms)}" for project, ms in projects.items())
            lines.append(f"  Gesamt:\t{fmt(rollup.by_week[week])}")
            blocks.append("\n".join(lines))
        return "\n".join(blocks)

    @staticmethod
    def format_days(rollup: Rollup) -> str:
        """Render the by-day-and-description block."""
        fmt = TextFormatter.format_duration
        blocks = []
        for day, descriptions in rollup.by_day_and_description.items():
            lines = [day.isoformat()]
            lines.extend(f"  {text}:\t{fmt(ms)}" for text, ms in descriptions.items())
            blocks.append("\n".join(lines))
        return "\n".join(blocks)

    @staticmethod
    def format_report(timesheet: TimeSheet) -> str:
        """Full plain-text report: efforts, weeks, then days."""
        parts = ["\n".join(TextFormatter.format_efforts(timesheet))]
        weeks = TextFormatter.format_weeks(timesheet.rollup)
        if weeks:
            parts.append(weeks)
        days = TextFormatter.format_days(timesheet.rollup)
        if days:
            parts.append(days)
        return "\n\n".join(parts) + "\n"


def _clock(moment, tz) -> str:
    if moment is None:
        return ""
    return moment.astimezone(tz).strftime("%H:%M")


def row_cells(row: TimeSheetRow, projects: list[str], tz) -> list[str]:
    """Display values of *row*, one per heading and project column."""
    fmt = TextFormatter.format_duration
    cells = [
        row.day.isoformat(),
        _clock(row.start, tz),
        _clock(row.end, tz),
        fmt(row.duration_ms),
        row.label or "",
    ]
    for project in projects:
        ms = row.project_durations.get(project)
        cells.append(fmt(ms) if ms else "")
    cells.append(row.annotation or "")
    return cells


def headings(projects: list[str]) -> list[str]:
    return [*HEADINGS, *projects, ANNOTATION_HEADING]


class HtmlFormatter:
    """Renders the HTML page served by ``/current``."""

    @staticmethod
    def headings_html(projects: list[str]) -> str:
        return "<tr>" + "".join(f"<th>{escape(h)}</th>" for h in headings(projects)) + "</tr>"

    @staticmethod
    def row_html(row: TimeSheetRow, projects: list[str], tz) -> str:
        css = ' class="free"' if row.annotation else ""
        cells = "".join(f"<td>{escape(c)}</td>" for c in row_cells(row, projects, tz))
        return f"<tr{css}>{cells}</tr>"

    @staticmethod
    def render(timesheet: TimeSheet) -> str:
        tz = pytz.timezone(timesheet.request.timezone)
        lines = ["<html><body>", "<table>", HtmlFormatter.headings_html(timesheet.projects)]
        lines.extend(HtmlFormatter.row_html(r, timesheet.projects, tz) for r in timesheet.rows)
        lines.append("</table>")

        summary = TextFormatter.format_efforts(timesheet)
        weeks = TextFormatter.format_weeks(timesheet.rollup)
        if weeks:
            summary.append(weeks)
        lines.append("<pre>")
        lines.extend(escape(line) for line in summary)
        lines.append("</pre>")
        lines.append("</body></html>")
        return "\n".join(lines) + "\n"


def _iso(moment) -> Optional[str]:
    return moment.isoformat() if moment is not None else None


def row_to_dict(row: TimeSheetRow) -> dict[str, Any]:
    return {
        "day": row.day.isoformat(),
        "start": _iso(row.start),
        "end": _iso(row.end),
        "duration": row.duration_ms,
        "duration_str": TextFormatter.format_duration(row.duration_ms),
        "label": row.label,
        "project_durations": dict(row.project_durations),
        "annotation": row.annotation,
    }


def timesheet_to_dict(timesheet: TimeSheet) -> dict[str, Any]:
    """Structured form served by ``/timesheet``."""
    return {
        "rows": [row_to_dict(r) for r in timesheet.rows],
        "projects": list(timesheet.projects),
    }
