from datetime import date
from unittest.mock import patch

import pytest

from bookings.clock import FixedClock
from bookings.models import Reservation, ReservationStatus
from bookings.policy import BookingPolicy


# Wednesday; the booking window then runs through Friday 2026-11-13.
TODAY = date(2026, 10, 14)
SATURDAY = date(2026, 10, 17)
SUNDAY = date(2026, 10, 18)
MONDAY = date(2026, 10, 19)
LAST_SUNDAY = date(2026, 10, 11)
SATURDAY_TOO_FAR = date(2026, 11, 14)

ADMIN_HEADERS = {"HTTP_X_ADMIN_TOKEN": "test-admin-token"}


@pytest.fixture
def clock():
    return FixedClock(TODAY)


@pytest.fixture
def policy():
    return BookingPolicy()


@pytest.fixture
def pinned_today():
    """Pin the process-wide UTC clock for code paths that use the default clock."""
    with patch("bookings.clock.UtcClock.today", return_value=TODAY):
        yield TODAY


@pytest.fixture
def make_reservation(db):
    def _make(day=SATURDAY, start_hour=13, duration_hours=4, status=ReservationStatus.ACTIVE, **extra):
        fields = {
            "service": "Full Detail",
            "name": "Dana Rivera",
            "phone": "555-0100",
            "vehicle": "2019 Subaru Outback",
        }
        fields.update(extra)
        return Reservation.objects.create(
            date=day,
            start_hour=start_hour,
            end_hour=start_hour + duration_hours,
            duration_hours=duration_hours,
            status=status,
            **fields,
        )

    return _make


@pytest.fixture
def booking_payload():
    return {
        "date": SATURDAY.isoformat(),
        "start_hour": 9,
        "service": "Interior Deep Clean",
        "duration_hours": 2,
        "name": "Sam Okafor",
        "phone": "555-0142",
        "vehicle": "2021 Honda Civic",
        "city": "Springfield",
        "notes": "Dog hair in the back seat",
    }
