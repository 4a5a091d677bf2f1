from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import date as date_type

from django.db import DatabaseError, IntegrityError, OperationalError, transaction

from .clock import Clock, default_clock
from .emails import notify_reservation_event
from .intervals import HourInterval, overlaps_any
from .models import (
    CITY_MAX_LENGTH,
    NAME_MAX_LENGTH,
    NOTES_MAX_LENGTH,
    PHONE_MAX_LENGTH,
    VEHICLE_MAX_LENGTH,
    Reservation,
    ReservationStatus,
    ScheduleDay,
)
from .policy import (
    REASON_PAST,
    REASON_TOO_FAR,
    REASON_WEEKDAY,
    BookingPolicy,
    get_policy,
    parse_calendar_date,
)


logger = logging.getLogger(__name__)

# Attempts for a write transaction that hits a busy or locked store.
LOCKED_WRITE_ATTEMPTS = 5
LOCKED_WRITE_BACKOFF_SECONDS = 0.05


class ReservationError(Exception):
    """Base error type for reservation domain errors."""

    category = "error"
    code = "error"

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class InvalidInputError(ReservationError):
    """Malformed input, rejected before touching the store."""

    category = "validation_error"
    code = "invalid_input"


class PolicyViolationError(ReservationError):
    """Well-formed input that breaks a business rule (calendar, hours, duration)."""

    category = "policy_violation"
    code = "policy_violation"


class ConflictError(ReservationError):
    category = "conflict"
    code = "conflict"


class SlotUnavailableError(ConflictError):
    """Raised when the requested hours overlap an active reservation."""

    code = "slot_unavailable"


class ReservationNotFoundError(ConflictError):
    code = "not_found"


class ReservationStateError(ConflictError):
    """Raised when the reservation is not in a state that allows the action."""

    code = "not_active"


class StoreUnavailableError(ReservationError):
    """The reservation store failed or timed out."""

    category = "server_fault"
    code = "store_unavailable"


@dataclass(frozen=True)
class BookingRequest:
    date: str | date_type
    start_hour: int
    service: str
    name: str = ""
    phone: str = ""
    vehicle: str = ""
    city: str = ""
    notes: str = ""
    duration_hours: int | None = None


@dataclass(frozen=True)
class _CustomerFields:
    name: str
    phone: str
    vehicle: str
    city: str
    notes: str


_TEXT_LIMITS = {
    "name": NAME_MAX_LENGTH,
    "phone": PHONE_MAX_LENGTH,
    "vehicle": VEHICLE_MAX_LENGTH,
    "city": CITY_MAX_LENGTH,
    "notes": NOTES_MAX_LENGTH,
}
_REQUIRED_FIELDS = ("name", "phone", "vehicle")


def _parse_date(value) -> date_type:
    if isinstance(value, date_type):
        return value
    try:
        return parse_calendar_date(value)
    except ValueError as exc:
        raise InvalidInputError("Missing or invalid date (expect YYYY-MM-DD).", code="invalid_date") from exc


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_start_hour(value, policy: BookingPolicy) -> int:
    if not _is_int(value) or not policy.open_hour <= value < policy.close_hour:
        raise InvalidInputError(
            f"start_hour must be an integer between {policy.open_hour} and {policy.close_hour - 1}.",
            code="invalid_start_hour",
        )
    return value


def validate_duration(value, policy: BookingPolicy) -> int:
    if not _is_int(value) or not policy.min_duration_hours <= value <= policy.max_duration_hours:
        raise InvalidInputError(
            f"duration_hours must be an integer between {policy.min_duration_hours} "
            f"and {policy.max_duration_hours}.",
            code="invalid_duration",
        )
    return value


def _resolve_duration(service, duration_hours, policy: BookingPolicy) -> int:
    expected = policy.duration_for(service) if isinstance(service, str) else None
    if expected is None:
        raise InvalidInputError(
            f"Unknown service. Valid options: {', '.join(policy.services)}.",
            code="unknown_service",
        )
    if duration_hours is None:
        return expected
    if not _is_int(duration_hours):
        raise InvalidInputError("duration_hours must be an integer.", code="invalid_duration")
    if duration_hours != expected:
        raise PolicyViolationError(
            f'Duration mismatch: "{service}" requires {expected} hour(s), received {duration_hours}.',
            code="duration_mismatch",
        )
    return expected


def _clean_customer_fields(data: BookingRequest) -> _CustomerFields:
    cleaned = {}
    for field_name, limit in _TEXT_LIMITS.items():
        raw = getattr(data, field_name)
        value = raw.strip() if isinstance(raw, str) else ""
        if field_name in _REQUIRED_FIELDS and not value:
            raise InvalidInputError(f"{field_name.capitalize()} is required.", code="missing_field")
        if len(value) > limit:
            raise InvalidInputError(
                f"{field_name.capitalize()} must be at most {limit} characters.",
                code="field_too_long",
            )
        cleaned[field_name] = value
    return _CustomerFields(**cleaned)


def _check_operating_hours(interval: HourInterval, policy: BookingPolicy) -> None:
    window = policy.operating_window()
    if not interval.within(window.start, window.end):
        raise PolicyViolationError(
            f"Booking would end at {interval.end}:00, past closing time of {policy.close_hour}:00.",
            code="outside_hours",
        )


_DATE_REJECTION_MESSAGES = {
    REASON_PAST: "Cannot book a date in the past.",
    REASON_TOO_FAR: "Bookings can only be made up to {window} days in advance.",
    REASON_WEEKDAY: "Bookings are only available on weekends.",
}


def _check_calendar(day: date_type, policy: BookingPolicy, clock: Clock) -> None:
    reason = policy.date_rejection(day, clock.today())
    if reason is not None:
        message = _DATE_REJECTION_MESSAGES[reason].format(window=policy.window_days)
        raise PolicyViolationError(message, code=reason)


def _lock_day(day: date_type) -> ScheduleDay:
    """
    Lock the per-date row (creating it on first use). Must run inside a transaction.
    """
    try:
        with transaction.atomic():
            ScheduleDay.objects.get_or_create(date=day)
    except IntegrityError:
        # A concurrent writer created the row first; it exists now.
        pass
    return ScheduleDay.objects.select_for_update().get(date=day)


def _ensure_free(day: date_type, interval: HourInterval, *, exclude_id=None) -> None:
    existing = Reservation.objects.active().on_date(day)
    if exclude_id is not None:
        existing = existing.exclude(id=exclude_id)
    if overlaps_any(interval, existing.intervals()):
        logger.info("Rejected overlapping booking on %s for %s-%s", day, interval.start, interval.end)
        raise SlotUnavailableError("That time slot is no longer available. Please choose another time.")


def _retry_when_locked(write, *, action: str):
    """
    Run a write transaction, retrying when the store is busy or a lock wait
    times out. Each attempt re-runs the overlap check, so a writer that lost
    a race for the date reports the conflict rather than a store fault.
    """
    for attempt in range(1, LOCKED_WRITE_ATTEMPTS + 1):
        try:
            return write()
        except OperationalError:
            if attempt == LOCKED_WRITE_ATTEMPTS:
                raise
            logger.warning("Store busy while %s (attempt %s), retrying", action, attempt)
            time.sleep(LOCKED_WRITE_BACKOFF_SECONDS * attempt)


def create_reservation(
    data: BookingRequest,
    *,
    policy: BookingPolicy | None = None,
    clock: Clock | None = None,
) -> Reservation:
    """
    Validate and persist a new reservation.

    Every rule is re-applied here regardless of what the slot listing last
    showed. The overlap check and the insert run under a lock on the date's
    ScheduleDay row, so concurrent bookings for one date are serialized.
    """
    policy = policy or get_policy()
    clock = clock or default_clock

    day = _parse_date(data.date)
    start_hour = _validate_start_hour(data.start_hour, policy)
    duration = _resolve_duration(data.service, data.duration_hours, policy)
    customer = _clean_customer_fields(data)
    interval = HourInterval(start_hour, start_hour + duration)
    _check_operating_hours(interval, policy)
    _check_calendar(day, policy, clock)

    def _write() -> Reservation:
        with transaction.atomic():
            _lock_day(day)
            _ensure_free(day, interval)
            return Reservation.objects.create(
                date=day,
                start_hour=interval.start,
                end_hour=interval.end,
                duration_hours=duration,
                service=data.service,
                name=customer.name,
                phone=customer.phone,
                vehicle=customer.vehicle,
                city=customer.city,
                notes=customer.notes,
                status=ReservationStatus.ACTIVE,
            )

    try:
        reservation = _retry_when_locked(_write, action=f"booking {day}")
    except DatabaseError as exc:
        logger.exception("Store failure while booking %s", day)
        raise StoreUnavailableError("Failed to save booking.") from exc

    logger.info("Booked %s on %s %s (%s)", reservation.id, day, reservation.time_range_label, reservation.service)
    notify_reservation_event(reservation, "created")
    return reservation


def move_reservation(
    reservation_id,
    *,
    new_date,
    new_start_hour,
    policy: BookingPolicy | None = None,
    clock: Clock | None = None,
) -> Reservation:
    """
    Reschedule an active reservation, keeping its duration.

    The calendar rules apply to the new date, and the overlap scan ignores
    the reservation being moved.
    """
    policy = policy or get_policy()
    clock = clock or default_clock

    reservation_id = _parse_reservation_id(reservation_id)
    day = _parse_date(new_date)
    start_hour = _validate_start_hour(new_start_hour, policy)

    def _write() -> Reservation:
        with transaction.atomic():
            reservation = Reservation.objects.select_for_update().filter(id=reservation_id).first()
            if reservation is None:
                raise ReservationNotFoundError("Booking not found.")
            if not reservation.is_active:
                raise ReservationStateError("Only active bookings can be moved.")

            interval = HourInterval(start_hour, start_hour + reservation.duration_hours)
            _check_operating_hours(interval, policy)
            _check_calendar(day, policy, clock)

            _lock_day(day)
            _ensure_free(day, interval, exclude_id=reservation.id)
            Reservation.objects.filter(id=reservation.id).update(
                date=day,
                start_hour=interval.start,
                end_hour=interval.end,
            )
            reservation.refresh_from_db()
            return reservation

    try:
        reservation = _retry_when_locked(_write, action=f"moving {reservation_id}")
    except DatabaseError as exc:
        logger.exception("Store failure while moving %s", reservation_id)
        raise StoreUnavailableError("Failed to move booking.") from exc

    logger.info("Moved %s to %s %s", reservation.id, day, reservation.time_range_label)
    notify_reservation_event(reservation, "moved")
    return reservation


def cancel_reservation(reservation_id) -> Reservation:
    """
    Cancel an active reservation. Cancelling twice is rejected, not ignored.
    """
    reservation_id = _parse_reservation_id(reservation_id)
    try:
        affected = (
            Reservation.objects.active()
            .filter(id=reservation_id)
            .update(status=ReservationStatus.CANCELLED)
        )
        reservation = Reservation.objects.filter(id=reservation_id).first()
    except DatabaseError as exc:
        logger.exception("Store failure while cancelling %s", reservation_id)
        raise StoreUnavailableError("Failed to cancel booking.") from exc

    if reservation is None:
        raise ReservationNotFoundError("Booking not found.")
    if affected == 0:
        raise ReservationStateError("Booking is already cancelled.", code="already_cancelled")

    logger.info("Cancelled %s (%s %s)", reservation.id, reservation.date, reservation.time_range_label)
    notify_reservation_event(reservation, "cancelled")
    return reservation


def get_reservation(reservation_id) -> Reservation:
    reservation_id = _parse_reservation_id(reservation_id)
    try:
        reservation = Reservation.objects.filter(id=reservation_id).first()
    except DatabaseError as exc:
        raise StoreUnavailableError("Database error.") from exc
    if reservation is None:
        raise ReservationNotFoundError("Booking not found.")
    return reservation


def list_reservations(*, day=None, limit: int | None = 200) -> list[Reservation]:
    """
    Admin listing across all statuses: newest date first, then by start hour.
    """
    queryset = Reservation.objects.order_by("-date", "start_hour", "-created_at")
    if day is not None:
        queryset = queryset.on_date(_parse_date(day))
    if limit is not None:
        queryset = queryset[:limit]
    try:
        return list(queryset)
    except DatabaseError as exc:
        logger.exception("Store failure while listing bookings")
        raise StoreUnavailableError("Database error.") from exc


def _parse_reservation_id(value) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except ValueError as exc:
        raise InvalidInputError("Missing or invalid booking id.", code="invalid_id") from exc
