"""toggl2sheet application entry point.

Supports three modes:
  - Server mode (default): serves /current and /timesheet over HTTP
  - Print mode: prints the plain-text report to stdout
  - Export mode: writes the timesheet to a Word document

Usage:
    python -m toggl2sheet.main                                  # serve
    python -m toggl2sheet.main --print --start 2024-03-01       # print report
    python -m toggl2sheet.main --export report.docx --grouping PROJECT
"""

import argparse
import logging
import sys

from toggl2sheet.core.config import get_default_config_path, load_config
from toggl2sheet.core.errors import TimesheetError
from toggl2sheet.reporting.exporter import ReportExporter
from toggl2sheet.reporting.formatter import TextFormatter
from toggl2sheet.reporting.summary import build_timesheet

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="toggl2sheet",
        description="toggl2sheet: daily timesheets from Toggl time entries",
    )
    parser.add_argument("--config", help="Path to config.json")
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--print",
        dest="print_report",
        action="store_true",
        help="Print the timesheet report and exit",
    )
    group.add_argument(
        "--export",
        metavar="PATH",
        help="Write the timesheet to a .docx file and exit",
    )
    parser.add_argument("--start", help="First day (YYYY-MM-DD)")
    parser.add_argument("--end", help="Last day (YYYY-MM-DD)")
    parser.add_argument("--grouping", help="NONE, PROJECT, CUSTOMER, TITLE or SINGLE")
    return parser


def _print_report(config: dict, parsed: argparse.Namespace) -> None:
    timesheet = build_timesheet(config, parsed.start, parsed.end, parsed.grouping)
    print(TextFormatter.format_report(timesheet))


def _export_report(config: dict, parsed: argparse.Namespace) -> None:
    timesheet = build_timesheet(config, parsed.start, parsed.end, parsed.grouping)
    path = ReportExporter().export_timesheet(timesheet, parsed.export)
    print(f"Timesheet written to {path}")


def main(args: list[str] | None = None) -> int:
    """Entry point for toggl2sheet.

    When *args* is ``None`` the arguments are read from ``sys.argv``.
    Returns the process exit code.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    parser = build_parser()
    parsed = parser.parse_args(args)

    config_path = parsed.config or get_default_config_path()
    config = load_config(str(config_path))

    try:
        if parsed.print_report:
            _print_report(config, parsed)
        elif parsed.export:
            _export_report(config, parsed)
        else:
            # Server mode: import here so the CLI modes don't load Flask
            from toggl2sheet.ui.web import run_server

            run_server(config)
    except TimesheetError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
