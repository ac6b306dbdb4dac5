"""CSV export reader.

Expects the detailed export layout with one header row and eleven columns:
user, email, client, project, task, description, billable,
start_date, start_time, end_date, end_time.
"""

import csv
import logging
from datetime import datetime

from toggl2sheet.core.errors import MalformedInput, SourceUnavailable
from toggl2sheet.core.models import RawEntry
from toggl2sheet.sources.base import EntrySource

logger = logging.getLogger(__name__)

COLUMNS = (
    "user", "email", "client", "project", "task", "description",
    "billable", "start_date", "start_time", "end_date", "end_time",
)

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class CsvSource(EntrySource):
    """Reads entries from a CSV file; timestamps are local to *tz*."""

    def __init__(self, path: str, tz, delimiter: str = ",") -> None:
        self.path = path
        self.tz = tz
        self.delimiter = delimiter

    def produce(self) -> list[RawEntry]:
        logger.info("Reading entries from %s", self.path)
        try:
            with open(self.path, "r", encoding="utf-8", newline="") as fh:
                entries = self.parse(fh)
        except UnicodeDecodeError as exc:
            raise MalformedInput(f"{self.path}: not valid UTF-8 ({exc.reason} at byte {exc.start})") from exc
        except OSError as exc:
            raise SourceUnavailable(f"Cannot read {self.path}: {exc}") from exc
        logger.info("Read %d entries from %s", len(entries), self.path)
        return entries

    def parse(self, lines) -> list[RawEntry]:
        """Parse CSV *lines* (any iterable of strings), skipping the header."""
        reader = csv.reader(lines, delimiter=self.delimiter)
        entries: list[RawEntry] = []
        try:
            next(reader, None)
            for row in reader:
                if not row or all(not cell.strip() for cell in row):
                    continue
                entries.append(self._parse_row(row, reader.line_num))
        except csv.Error as exc:
            raise MalformedInput(f"CSV line {reader.line_num}: {exc}") from exc
        return entries

    def _parse_row(self, row: list[str], line_num: int) -> RawEntry:
        if len(row) != len(COLUMNS):
            raise MalformedInput(
                f"CSV line {line_num}: expected {len(COLUMNS)} columns, got {len(row)}"
            )
        values = dict(zip(COLUMNS, row))
        start = self._parse_timestamp(values["start_date"], values["start_time"], line_num)
        end = self._parse_timestamp(values["end_date"], values["end_time"], line_num)
        if end < start:
            raise MalformedInput(f"CSV line {line_num}: entry ends before it starts")

        return RawEntry(
            user=values["user"],
            email=values["email"],
            client=values["client"],
            project=values["project"],
            task=values["task"],
            description=values["description"],
            billable=values["billable"] == "Yes",
            start=start,
            end=end,
        )

    def _parse_timestamp(self, day: str, time: str, line_num: int) -> datetime:
        text = f"{day} {time}"
        try:
            naive = datetime.strptime(text, _TIMESTAMP_FORMAT)
        except ValueError as exc:
            raise MalformedInput(f"CSV line {line_num}: invalid timestamp {text!r}") from exc
        return self.tz.localize(naive)
