from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date as date_type

from django.conf import settings

from .intervals import HourInterval


SATURDAY = 5
SUNDAY = 6

DEFAULT_SERVICES: dict[str, int] = {
    "Maintenance Wash": 1,
    "Interior Deep Clean": 2,
    "Full Detail": 4,
}

REASON_PAST = "past"
REASON_TOO_FAR = "too_far"
REASON_WEEKDAY = "weekday"

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class BookingPolicy:
    """
    Business rules shared by slot generation and booking validation.
    """

    open_hour: int = 8
    close_hour: int = 20
    window_days: int = 30
    allowed_weekdays: frozenset[int] = frozenset({SATURDAY, SUNDAY})
    services: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_SERVICES))
    min_duration_hours: int = 1
    max_duration_hours: int = 8

    def operating_window(self) -> HourInterval:
        return HourInterval(self.open_hour, self.close_hour)

    def duration_for(self, service: str) -> int | None:
        return self.services.get(service)

    def date_rejection(self, day: date_type, today: date_type) -> str | None:
        """
        Reason code for a date that cannot be booked, or None when it can.

        Both values are plain calendar days, so the difference is whole days
        with no time-zone component.
        """
        delta_days = (day - today).days
        if delta_days < 0:
            return REASON_PAST
        if delta_days > self.window_days:
            return REASON_TOO_FAR
        if day.weekday() not in self.allowed_weekdays:
            return REASON_WEEKDAY
        return None

    def is_bookable_date(self, day: date_type, today: date_type) -> bool:
        return self.date_rejection(day, today) is None


def get_policy() -> BookingPolicy:
    return BookingPolicy(
        open_hour=getattr(settings, "BOOKING_OPEN_HOUR", 8),
        close_hour=getattr(settings, "BOOKING_CLOSE_HOUR", 20),
        window_days=getattr(settings, "BOOKING_WINDOW_DAYS", 30),
        allowed_weekdays=frozenset(getattr(settings, "BOOKING_ALLOWED_WEEKDAYS", (SATURDAY, SUNDAY))),
        services=dict(getattr(settings, "BOOKING_SERVICES", DEFAULT_SERVICES)),
        min_duration_hours=getattr(settings, "BOOKING_MIN_DURATION_HOURS", 1),
        max_duration_hours=getattr(settings, "BOOKING_MAX_DURATION_HOURS", 8),
    )


def parse_calendar_date(value: str) -> date_type:
    """
    Parse a strict YYYY-MM-DD string into a calendar day.
    """
    if not isinstance(value, str) or not _ISO_DATE_RE.match(value.strip()):
        raise ValueError(f"Invalid date {value!r}. Expected YYYY-MM-DD.")
    return date_type.fromisoformat(value.strip())


def hour_label(hour: int) -> str:
    return f"{hour:02d}:00"
