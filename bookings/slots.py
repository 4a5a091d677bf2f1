from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date as date_type

from django.db import DatabaseError

from .clock import Clock, default_clock
from .intervals import HourInterval, overlaps_any
from .models import Reservation
from .policy import BookingPolicy, get_policy, hour_label
from .services import StoreUnavailableError, validate_duration


logger = logging.getLogger(__name__)

AVAILABLE = "available"
BOOKED = "booked"


@dataclass(frozen=True)
class Slot:
    start_hour: int
    end_hour: int
    status: str

    @property
    def start_label(self) -> str:
        return hour_label(self.start_hour)

    @property
    def end_label(self) -> str:
        return hour_label(self.end_hour)

    @property
    def label(self) -> str:
        return f"{self.start_label}–{self.end_label}"

    def to_dict(self) -> dict:
        return {
            "start_hour": self.start_hour,
            "end_hour": self.end_hour,
            "start_label": self.start_label,
            "end_label": self.end_label,
            "label": self.label,
            "status": self.status,
        }


@dataclass(frozen=True)
class SlotListing:
    date: date_type
    duration_hours: int
    reason: str | None = None
    slots: list[Slot] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "duration_hours": self.duration_hours,
            "reason": self.reason,
            "slots": [slot.to_dict() for slot in self.slots],
        }


def generate_slots(
    day: date_type,
    duration_hours: int,
    *,
    policy: BookingPolicy | None = None,
    clock: Clock | None = None,
) -> SlotListing:
    """
    Candidate start hours for `day`, each marked available or booked.

    Advisory only: booking re-validates everything at commit time. A date the
    calendar rules exclude yields an empty listing with a reason code. Start
    hours whose service would run past closing are left out.
    """
    policy = policy or get_policy()
    clock = clock or default_clock
    duration_hours = validate_duration(duration_hours, policy)

    reason = policy.date_rejection(day, clock.today())
    if reason is not None:
        return SlotListing(date=day, duration_hours=duration_hours, reason=reason)

    try:
        booked = Reservation.objects.active().on_date(day).intervals()
    except DatabaseError as exc:
        logger.exception("Store failure while reading slots for %s", day)
        raise StoreUnavailableError("Database error while loading availability.") from exc

    slots = []
    for start in range(policy.open_hour, policy.close_hour):
        end = start + duration_hours
        if end > policy.close_hour:
            break
        candidate = HourInterval(start, end)
        slots.append(Slot(start, end, BOOKED if overlaps_any(candidate, booked) else AVAILABLE))

    return SlotListing(date=day, duration_hours=duration_hours, slots=slots)
