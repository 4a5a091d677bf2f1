from __future__ import annotations

from datetime import date as date_type
from datetime import timezone as dt_timezone
from typing import Protocol

from django.utils import timezone


class Clock(Protocol):
    def today(self) -> date_type: ...


class UtcClock:
    """
    Current calendar day in UTC, independent of the server's TIME_ZONE.
    """

    def today(self) -> date_type:
        return timezone.now().astimezone(dt_timezone.utc).date()


class FixedClock:
    def __init__(self, day: date_type):
        self.day = day

    def today(self) -> date_type:
        return self.day


default_clock = UtcClock()
