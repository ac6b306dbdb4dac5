"""Unit tests for RawEntry and the trim arithmetic."""

from datetime import datetime, timedelta

import pytest
import pytz

from toggl2sheet.core.models import RawEntry, from_millis, to_millis, trim_millis

BERLIN = pytz.timezone("Europe/Berlin")


def _entry(start: datetime, end: datetime) -> RawEntry:
    return RawEntry(
        user="Jane", email="jane@example.com", client="ACME", project="Alpha",
        task="", description="Coding", billable=True,
        start=BERLIN.localize(start), end=BERLIN.localize(end),
    )


# ------------------------------------------------------------------
# trim_millis
# ------------------------------------------------------------------

class TestTrimMillis:
    def test_exact_multiple_unchanged(self):
        assert trim_millis(3000, 1000) == 3000

    def test_below_half_rounds_down(self):
        assert trim_millis(3499, 1000) == 3000

    def test_half_rounds_up(self):
        assert trim_millis(3500, 1000) == 4000

    def test_above_half_rounds_up(self):
        assert trim_millis(3501, 1000) == 4000

    def test_odd_step_half(self):
        # rest 2 of step 5 is below half, rest 3 above
        assert trim_millis(12, 5) == 10
        assert trim_millis(13, 5) == 15

    @pytest.mark.parametrize("millis", [0, 1, 449_999, 450_000, 899_999, 1_709_539_620_000])
    def test_idempotent(self, millis):
        once = trim_millis(millis, 900_000)
        assert trim_millis(once, 900_000) == once
        assert once % 900_000 == 0


# ------------------------------------------------------------------
# RawEntry
# ------------------------------------------------------------------

class TestRawEntry:
    def test_duration_ms(self):
        entry = _entry(datetime(2024, 3, 4, 9, 0), datetime(2024, 3, 4, 10, 30))
        assert entry.duration_ms == 90 * 60_000

    def test_duration_zero(self):
        entry = _entry(datetime(2024, 3, 4, 9, 0), datetime(2024, 3, 4, 9, 0))
        assert entry.duration_ms == 0

    def test_trim_half_up_end(self):
        entry = _entry(datetime(2024, 3, 4, 11, 0), datetime(2024, 3, 4, 12, 0, 0, 500_000))
        trimmed = entry.trim(1000)
        assert trimmed.end == BERLIN.localize(datetime(2024, 3, 4, 12, 0, 1))

    def test_trim_just_below_half_rounds_down(self):
        entry = _entry(datetime(2024, 3, 4, 11, 0), datetime(2024, 3, 4, 12, 0, 0, 499_000))
        trimmed = entry.trim(1000)
        assert trimmed.end == BERLIN.localize(datetime(2024, 3, 4, 12, 0, 0))

    def test_trim_quarter_hour(self):
        entry = _entry(datetime(2024, 3, 4, 9, 7), datetime(2024, 3, 4, 10, 23))
        trimmed = entry.trim(900_000)
        assert trimmed.start == BERLIN.localize(datetime(2024, 3, 4, 9, 0))
        assert trimmed.end == BERLIN.localize(datetime(2024, 3, 4, 10, 30))
        assert trimmed.duration_ms == 90 * 60_000

    def test_trim_is_idempotent(self):
        entry = _entry(datetime(2024, 3, 4, 9, 7, 31), datetime(2024, 3, 4, 17, 52, 29))
        once = entry.trim(900_000)
        assert once.trim(900_000) == once

    def test_trim_returns_new_entry(self):
        entry = _entry(datetime(2024, 3, 4, 9, 7), datetime(2024, 3, 4, 10, 23))
        trimmed = entry.trim(900_000)
        assert trimmed is not entry
        assert entry.start == BERLIN.localize(datetime(2024, 3, 4, 9, 7))
        assert trimmed.project == entry.project
        assert trimmed.billable is True

    def test_trim_keeps_local_offset(self):
        entry = _entry(datetime(2024, 3, 4, 9, 7), datetime(2024, 3, 4, 10, 23))
        trimmed = entry.trim(900_000)
        assert trimmed.start.utcoffset() == timedelta(hours=1)

    def test_start_day_uses_zone(self):
        # 00:30 in Berlin is still the previous day in UTC
        entry = _entry(datetime(2024, 3, 5, 0, 30), datetime(2024, 3, 5, 1, 0))
        assert entry.start_day(BERLIN).isoformat() == "2024-03-05"
        assert entry.start_day(pytz.utc).isoformat() == "2024-03-04"


class TestMillisConversion:
    def test_round_trip(self):
        moment = BERLIN.localize(datetime(2024, 3, 4, 9, 7, 12, 345_000))
        assert from_millis(to_millis(moment), BERLIN) == moment

    def test_epoch(self):
        assert to_millis(datetime(1970, 1, 1, tzinfo=pytz.utc)) == 0
