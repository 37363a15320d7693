"""Tests for UTC/local conversions and the DST policy."""

from datetime import date, datetime

import pytest
import pytz

from services.exceptions import InvalidInputError, UnknownTimezoneError
from services.timezone_service import (
    calculate_timezone_spread,
    format_utc_offset,
    get_timezone,
    get_utc_offset_hours,
    is_valid_timezone,
    local_hour_to_utc,
    resolve_local_time,
    to_local,
    utc_hour_to_datetime,
    utc_to_local_hour,
)


class TestGetTimezone:
    """Test timezone lookup."""

    def test_known_timezone(self):
        assert get_timezone("Asia/Tokyo").zone == "Asia/Tokyo"

    def test_unknown_timezone_raises(self):
        """Unknown identifiers surface as an input error naming the field."""
        with pytest.raises(UnknownTimezoneError) as exc_info:
            get_timezone("Mars/Olympus_Mons", participant_id="p1")
        assert exc_info.value.field == "timezone"
        assert exc_info.value.participant_id == "p1"
        assert isinstance(exc_info.value, InvalidInputError)

    def test_is_valid_timezone(self):
        assert is_valid_timezone("Europe/London") is True
        assert is_valid_timezone("Not/AZone") is False


class TestUtcToLocal:
    """Test UTC hour to local hour conversion."""

    def test_whole_hour_offset(self, reference_date: date):
        assert utc_to_local_hour(17, "America/Los_Angeles", reference_date) == 9
        assert utc_to_local_hour(0, "Asia/Tokyo", reference_date) == 9

    def test_half_hour_offset_truncates(self, reference_date: date):
        """03:00 UTC is 08:30 in Kolkata, local hour 8."""
        assert utc_to_local_hour(3, "Asia/Kolkata", reference_date) == 8

    def test_summer_offset_differs(self):
        assert utc_to_local_hour(12, "Europe/London", date(2024, 1, 15)) == 12
        assert utc_to_local_hour(12, "Europe/London", date(2024, 7, 15)) == 13

    def test_naive_datetime_treated_as_utc(self):
        local = to_local(datetime(2024, 1, 15, 12, 0), "Asia/Tokyo")
        assert local.hour == 21

    def test_utc_hour_to_datetime_is_aware(self, reference_date: date):
        dt = utc_hour_to_datetime(5, reference_date)
        assert dt.tzinfo is not None
        assert dt == pytz.UTC.localize(datetime(2024, 1, 15, 5))

    def test_reference_date_accepts_iso_string(self):
        assert utc_hour_to_datetime(0, "2024-01-15").date() == date(2024, 1, 15)

    def test_malformed_reference_date_rejected(self):
        with pytest.raises(InvalidInputError) as exc_info:
            utc_hour_to_datetime(0, "15/01/2024")
        assert exc_info.value.field == "reference_date"

    @pytest.mark.parametrize("hour", [-1, 24, 1.5, True])
    def test_invalid_hour_rejected(self, hour, reference_date: date):
        with pytest.raises(InvalidInputError):
            utc_to_local_hour(hour, "UTC", reference_date)


class TestDstPolicy:
    """Nonexistent hours shift forward; ambiguous hours take the first occurrence."""

    def test_spring_forward_gap_shifts_forward(self):
        spring = date(2024, 3, 10)
        local = resolve_local_time(2, "America/New_York", spring)
        assert local.hour == 3
        assert local_hour_to_utc(2, "America/New_York", spring) == pytz.UTC.localize(datetime(2024, 3, 10, 7))

    def test_fall_back_overlap_uses_first_occurrence(self):
        fall = date(2024, 11, 3)
        assert local_hour_to_utc(1, "America/New_York", fall) == pytz.UTC.localize(datetime(2024, 11, 3, 5))

    def test_ordinary_hour_round_trips(self, reference_date: date):
        utc = local_hour_to_utc(9, "Asia/Kolkata", reference_date)
        assert (utc.hour, utc.minute) == (3, 30)


class TestOffsets:
    """Test offset labels and spread."""

    @pytest.mark.parametrize(
        "timezone,expected",
        [
            ("America/Los_Angeles", "UTC-8"),
            ("Asia/Kolkata", "UTC+5:30"),
            ("Asia/Kathmandu", "UTC+5:45"),
            ("UTC", "UTC+0"),
        ],
    )
    def test_format_utc_offset(self, timezone: str, expected: str, reference_date: date):
        assert format_utc_offset(timezone, reference_date) == expected

    def test_offset_hours(self, reference_date: date):
        assert get_utc_offset_hours("Asia/Kolkata", reference_date) == 5.5

    def test_spread_new_york_tokyo(self, reference_date: date):
        assert calculate_timezone_spread(["America/New_York", "Asia/Tokyo"], reference_date) == 14.0

    def test_spread_single_zone_is_zero(self, reference_date: date):
        assert calculate_timezone_spread(["Europe/London", "Europe/London"], reference_date) == 0.0
        assert calculate_timezone_spread([], reference_date) == 0.0
