"""Tests for the CSV export reader."""

from datetime import datetime, timedelta

import pytest
import pytz

from toggl2sheet.core.errors import MalformedInput, SourceUnavailable
from toggl2sheet.sources.csv_source import CsvSource

BERLIN = pytz.timezone("Europe/Berlin")

HEADER = "User,Email,Client,Project,Task,Description,Billable,Start date,Start time,End date,End time\n"
ROW = "Jane,jane@example.com,ACME,Alpha,Backend,Coding,Yes,2024-03-04,09:07:00,2024-03-04,10:23:00\n"


@pytest.fixture
def write_csv(tmp_path):
    def _write(content: str, name: str = "export.csv") -> str:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return str(path)
    return _write


class TestCsvSource:
    def test_parses_all_columns(self, write_csv):
        entries = CsvSource(write_csv(HEADER + ROW), BERLIN).produce()
        assert len(entries) == 1
        entry = entries[0]
        assert entry.user == "Jane"
        assert entry.email == "jane@example.com"
        assert entry.client == "ACME"
        assert entry.project == "Alpha"
        assert entry.task == "Backend"
        assert entry.description == "Coding"
        assert entry.billable is True
        assert entry.start == BERLIN.localize(datetime(2024, 3, 4, 9, 7))
        assert entry.end == BERLIN.localize(datetime(2024, 3, 4, 10, 23))

    def test_timestamps_are_local(self, write_csv):
        entry = CsvSource(write_csv(HEADER + ROW), BERLIN).produce()[0]
        assert entry.start.utcoffset() == timedelta(hours=1)

    def test_billable_only_for_literal_yes(self, write_csv):
        rows = [ROW.replace(",Yes,", f",{flag},") for flag in ("No", "yes", "")]
        entries = CsvSource(write_csv(HEADER + "".join(rows)), BERLIN).produce()
        assert [e.billable for e in entries] == [False, False, False]

    def test_header_only(self, write_csv):
        assert CsvSource(write_csv(HEADER), BERLIN).produce() == []

    def test_empty_file(self, write_csv):
        assert CsvSource(write_csv(""), BERLIN).produce() == []

    def test_blank_lines_skipped(self, write_csv):
        entries = CsvSource(write_csv(HEADER + ROW + "\n" + ROW), BERLIN).produce()
        assert len(entries) == 2

    def test_semicolon_delimiter(self, write_csv):
        content = (HEADER + ROW).replace(",", ";")
        entries = CsvSource(write_csv(content), BERLIN, delimiter=";").produce()
        assert entries[0].project == "Alpha"

    def test_quoted_description_with_delimiter(self, write_csv):
        row = ROW.replace(",Coding,", ',"Coding, reviews",')
        entries = CsvSource(write_csv(HEADER + row), BERLIN).produce()
        assert entries[0].description == "Coding, reviews"

    def test_keeps_source_order(self, write_csv):
        second = ROW.replace("Alpha", "Beta")
        entries = CsvSource(write_csv(HEADER + ROW + second), BERLIN).produce()
        assert [e.project for e in entries] == ["Alpha", "Beta"]


class TestCsvSourceErrors:
    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceUnavailable):
            CsvSource(str(tmp_path / "missing.csv"), BERLIN).produce()

    def test_wrong_column_count(self, write_csv):
        with pytest.raises(MalformedInput, match="line 2"):
            CsvSource(write_csv(HEADER + "Jane,jane@example.com,ACME\n"), BERLIN).produce()

    def test_bad_timestamp(self, write_csv):
        bad = ROW.replace("09:07:00", "9h07")
        with pytest.raises(MalformedInput, match="invalid timestamp"):
            CsvSource(write_csv(HEADER + bad), BERLIN).produce()

    def test_bad_date(self, write_csv):
        bad = ROW.replace("2024-03-04,09:07:00", "04.03.2024,09:07:00")
        with pytest.raises(MalformedInput):
            CsvSource(write_csv(HEADER + bad), BERLIN).produce()

    def test_end_before_start(self, write_csv):
        bad = ROW.replace("10:23:00", "08:00:00")
        with pytest.raises(MalformedInput, match="ends before"):
            CsvSource(write_csv(HEADER + bad), BERLIN).produce()

    def test_not_utf8(self, tmp_path):
        path = tmp_path / "latin1.csv"
        path.write_bytes((HEADER + ROW.replace("Coding", "Caf\xe9")).encode("latin-1"))
        with pytest.raises(MalformedInput, match="not valid UTF-8"):
            CsvSource(str(path), BERLIN).produce()


class TestProduceTrimmed:
    def test_trims_to_step(self, write_csv):
        entry = CsvSource(write_csv(HEADER + ROW), BERLIN).produce_trimmed(900_000)[0]
        assert entry.start == BERLIN.localize(datetime(2024, 3, 4, 9, 0))
        assert entry.end == BERLIN.localize(datetime(2024, 3, 4, 10, 30))
