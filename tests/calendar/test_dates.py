"""Tests for raw date classification and normalization."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from hotel_calendar.calendar.dates import (
    AbsentDate,
    DateString,
    EpochMillis,
    EpochSecondsWrapper,
    NativeTimestamp,
    classify,
    end_of_day,
    midday,
    normalize,
    start_of_day,
)

pytestmark = pytest.mark.unit

PARIS = ZoneInfo("Europe/Paris")


class TestClassify:
    def test_datetime_is_native(self):
        moment = datetime(2024, 6, 10, 9, 0)
        assert classify(moment) == NativeTimestamp(moment)

    def test_date_is_native(self):
        assert classify(date(2024, 6, 10)) == NativeTimestamp(date(2024, 6, 10))

    def test_seconds_mapping_is_wrapper(self):
        assert classify({"seconds": 1718000000, "nanoseconds": 0}) == EpochSecondsWrapper(
            1718000000.0
        )

    def test_seconds_attribute_is_wrapper(self):
        assert classify(SimpleNamespace(seconds=10)) == EpochSecondsWrapper(10.0)

    def test_string_is_date_string(self):
        assert classify("  2024-06-10 ") == DateString("2024-06-10")

    def test_number_is_epoch_millis(self):
        assert classify(1_718_000_000_000) == EpochMillis(1_718_000_000_000.0)

    @pytest.mark.parametrize(
        "value",
        [None, "", "   ", True, float("nan"), float("inf"), {"seconds": "x"}, object(), []],
    )
    def test_everything_else_is_absent(self, value):
        assert classify(value) == AbsentDate()


class TestNormalize:
    def test_naive_datetime_is_read_as_local_wall_time(self):
        result = normalize(datetime(2024, 6, 10, 9, 30), PARIS)
        assert result == datetime(2024, 6, 10, 9, 30, tzinfo=PARIS)

    def test_aware_datetime_is_converted(self):
        result = normalize(datetime(2024, 6, 10, 7, 0, tzinfo=UTC), PARIS)
        assert (result.hour, result.tzinfo) == (9, PARIS)

    def test_plain_date_is_midnight(self):
        assert normalize(date(2024, 6, 10)) == datetime(2024, 6, 10, tzinfo=UTC)

    def test_seconds_wrapper_is_seconds_times_thousand_millis(self):
        result = normalize({"seconds": 1_718_013_600})
        assert result == datetime(2024, 6, 10, 10, 0, tzinfo=UTC)

    def test_epoch_millis(self):
        assert normalize(1_718_013_600_000) == datetime(2024, 6, 10, 10, 0, tzinfo=UTC)

    def test_iso_date_string_is_local_midnight(self):
        assert normalize("2024-06-10", PARIS) == datetime(2024, 6, 10, tzinfo=PARIS)

    def test_iso_datetime_with_z_suffix(self):
        result = normalize("2024-06-10T08:00:00Z", PARIS)
        assert result == datetime(2024, 6, 10, 8, 0, tzinfo=UTC)
        assert result.tzinfo == PARIS

    def test_iso_datetime_with_offset(self):
        result = normalize("2024-06-10T08:00:00+02:00")
        assert result == datetime(2024, 6, 10, 6, 0, tzinfo=UTC)

    def test_generic_string_fallback(self):
        assert normalize("June 10, 2024 14:00") == datetime(2024, 6, 10, 14, 0, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, "", "not a date", "garbage", {}, True])
    def test_unparseable_returns_none(self, value):
        assert normalize(value) is None

    @pytest.mark.parametrize("value", ["14:30", "March", "10", "Tuesday", "June 10"])
    def test_incomplete_calendar_dates_are_unparseable(self, value):
        assert normalize(value) is None

    def test_generic_string_with_offset(self):
        result = normalize("10 June 2024 14:00 +0200")
        assert result == datetime(2024, 6, 10, 12, 0, tzinfo=UTC)

    def test_out_of_range_epoch_is_unparseable(self):
        assert normalize({"seconds": 1e20}) is None


class TestDayBounds:
    def test_start_and_end_of_day(self):
        moment = datetime(2024, 6, 10, 15, 42, 7, tzinfo=UTC)
        assert start_of_day(moment) == datetime(2024, 6, 10, tzinfo=UTC)
        assert end_of_day(moment) - start_of_day(moment) == timedelta(days=1) - timedelta(
            microseconds=1
        )

    def test_midday(self):
        offset = timezone(timedelta(hours=-5))
        assert midday(date(2024, 6, 10), offset) == datetime(2024, 6, 10, 12, tzinfo=offset)
