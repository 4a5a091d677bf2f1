from __future__ import annotations

import json

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET
from django.views.decorators.http import require_POST

from .auth import admin_token_required
from .policy import get_policy, parse_calendar_date
from .services import (
    BookingRequest,
    InvalidInputError,
    PolicyViolationError,
    ReservationError,
    ReservationNotFoundError,
    StoreUnavailableError,
    cancel_reservation,
    create_reservation,
    get_reservation,
    list_reservations,
    move_reservation,
)
from .slots import generate_slots


def _error_status(exc: ReservationError) -> int:
    if isinstance(exc, InvalidInputError):
        return 400
    if isinstance(exc, PolicyViolationError):
        return 422
    if isinstance(exc, ReservationNotFoundError):
        return 404
    if isinstance(exc, StoreUnavailableError):
        return 503
    return 409


def _error_response(exc: ReservationError) -> JsonResponse:
    return JsonResponse(
        {"ok": False, "error": str(exc), "code": exc.code, "category": exc.category},
        status=_error_status(exc),
    )


def _load_json(request) -> dict:
    try:
        payload = json.loads(request.body.decode("utf-8") or "{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidInputError("Request body must be valid JSON.", code="invalid_json") from exc
    if not isinstance(payload, dict):
        raise InvalidInputError("Request body must be a JSON object.", code="invalid_json")
    return payload


@require_GET
def slots_api(request):
    """
    GET /api/slots/?date=YYYY-MM-DD&duration_hours=N
    GET /api/slots/?date=YYYY-MM-DD&service=<name>

    Returns candidate start hours for the date. Dates outside the weekend
    booking window return an empty list with a `reason`, not an error.
    """
    try:
        date_str = request.GET.get("date", "").strip()
        if not date_str:
            raise InvalidInputError("Missing required query param: date", code="invalid_date")
        try:
            target_date = parse_calendar_date(date_str)
        except ValueError as exc:
            raise InvalidInputError("Invalid date. Expected YYYY-MM-DD.", code="invalid_date") from exc

        duration_str = request.GET.get("duration_hours", "").strip()
        service = request.GET.get("service", "").strip()
        if duration_str:
            if not (duration_str.isascii() and duration_str.isdigit()):
                raise InvalidInputError("Invalid duration_hours.", code="invalid_duration")
            duration = int(duration_str)
        elif service:
            duration = get_policy().duration_for(service)
            if duration is None:
                raise InvalidInputError("Unknown service.", code="unknown_service")
        else:
            raise InvalidInputError("Missing required query param: duration_hours", code="invalid_duration")

        listing = generate_slots(target_date, duration)
    except ReservationError as exc:
        return _error_response(exc)

    return JsonResponse({"ok": True, **listing.to_dict()})


@csrf_exempt
@require_POST
def book_api(request):
    """
    POST /api/book/
    Payload (JSON):
      - date: YYYY-MM-DD
      - start_hour: int
      - service: str (one of the configured services)
      - duration_hours: int (optional, must match the service)
      - name, phone, vehicle: str (required)
      - city, notes: str (optional)
    """
    try:
        payload = _load_json(request)
        reservation = create_reservation(
            BookingRequest(
                date=payload.get("date"),
                start_hour=payload.get("start_hour"),
                service=payload.get("service"),
                duration_hours=payload.get("duration_hours"),
                name=payload.get("name", ""),
                phone=payload.get("phone", ""),
                vehicle=payload.get("vehicle", ""),
                city=payload.get("city", ""),
                notes=payload.get("notes", ""),
            )
        )
    except ReservationError as exc:
        return _error_response(exc)

    return JsonResponse({"ok": True, "booking": reservation.to_dict()}, status=201)


@require_GET
@admin_token_required
def admin_bookings_api(request):
    """
    GET /api/admin/bookings/[?date=YYYY-MM-DD]
    """
    date_str = request.GET.get("date", "").strip()
    try:
        bookings = list_reservations(day=date_str or None)
    except ReservationError as exc:
        return _error_response(exc)

    return JsonResponse({"ok": True, "bookings": [b.to_dict() for b in bookings]})


@require_GET
@admin_token_required
def admin_booking_detail_api(request, reservation_id):
    try:
        reservation = get_reservation(reservation_id)
    except ReservationError as exc:
        return _error_response(exc)

    return JsonResponse({"ok": True, "booking": reservation.to_dict()})


@csrf_exempt
@require_POST
@admin_token_required
def admin_cancel_api(request, reservation_id):
    """
    POST /api/admin/bookings/<id>/cancel/
    """
    try:
        reservation = cancel_reservation(reservation_id)
    except ReservationError as exc:
        return _error_response(exc)

    return JsonResponse({"ok": True, "booking": reservation.to_dict()})


@csrf_exempt
@require_POST
@admin_token_required
def admin_move_api(request, reservation_id):
    """
    POST /api/admin/bookings/<id>/move/
    Payload (JSON):
      - date: YYYY-MM-DD
      - start_hour: int
    """
    try:
        payload = _load_json(request)
        reservation = move_reservation(
            reservation_id,
            new_date=payload.get("date"),
            new_start_hour=payload.get("start_hour"),
        )
    except ReservationError as exc:
        return _error_response(exc)

    return JsonResponse({"ok": True, "booking": reservation.to_dict()})
