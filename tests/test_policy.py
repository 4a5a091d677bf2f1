from datetime import date

import pytest
from django.test import override_settings

from bookings.intervals import HourInterval
from bookings.policy import BookingPolicy, get_policy, parse_calendar_date

from .conftest import LAST_SUNDAY, MONDAY, SATURDAY, SATURDAY_TOO_FAR, SUNDAY, TODAY


class TestDateRejection:
    def test_weekend_days_in_window_are_bookable(self, policy):
        assert policy.is_bookable_date(SATURDAY, TODAY)
        assert policy.is_bookable_date(SUNDAY, TODAY)

    def test_weekday(self, policy):
        assert policy.date_rejection(MONDAY, TODAY) == "weekday"

    def test_past(self, policy):
        assert policy.date_rejection(LAST_SUNDAY, TODAY) == "past"

    def test_too_far(self, policy):
        assert policy.date_rejection(SATURDAY_TOO_FAR, TODAY) == "too_far"

    def test_window_edges_are_inclusive(self, policy):
        saturday = date(2026, 10, 17)
        assert policy.is_bookable_date(saturday, saturday)
        # Exactly 30 days ahead.
        assert policy.is_bookable_date(date(2026, 11, 15), date(2026, 10, 16))
        assert policy.date_rejection(date(2026, 11, 15), date(2026, 10, 15)) == "too_far"

    def test_custom_weekdays(self):
        policy = BookingPolicy(allowed_weekdays=frozenset({0}))
        assert policy.is_bookable_date(MONDAY, TODAY)
        assert not policy.is_bookable_date(SATURDAY, TODAY)


class TestParseCalendarDate:
    def test_parses_iso_day(self):
        assert parse_calendar_date("2026-10-17") == SATURDAY
        assert parse_calendar_date(" 2026-10-17 ") == SATURDAY

    @pytest.mark.parametrize("value", ["", "2026-13-01", "2026-02-30", "17/10/2026", "2026-10-17T00:00:00Z", None])
    def test_rejects_malformed(self, value):
        with pytest.raises(ValueError):
            parse_calendar_date(value)


class TestGetPolicy:
    def test_defaults_from_settings(self):
        policy = get_policy()
        assert (policy.open_hour, policy.close_hour, policy.window_days) == (8, 20, 30)
        assert policy.duration_for("Full Detail") == 4
        assert policy.duration_for("Ceramic Coating") is None
        assert policy.operating_window() == HourInterval(8, 20)

    @override_settings(BOOKING_CLOSE_HOUR=18, BOOKING_SERVICES={"Quick Wash": 1})
    def test_overrides(self):
        policy = get_policy()
        assert policy.close_hour == 18
        assert policy.services == {"Quick Wash": 1}
