from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date as date_type

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string

from .policy import hour_label


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReservationEmailPayload:
    to_emails: list[str]
    event: str  # created|moved|cancelled
    reservation_id: str
    service: str
    date: date_type
    start_hour: int
    end_hour: int
    customer_name: str
    phone: str
    vehicle: str
    city: str = ""
    notes: str = ""

    @property
    def time_range_label(self) -> str:
        return f"{hour_label(self.start_hour)}–{hour_label(self.end_hour)}"


def send_reservation_email(payload: ReservationEmailPayload) -> bool:
    """
    Send reservation email. Returns True if attempted, False if skipped.
    Never raises (logs on failure).
    """
    if not payload.to_emails:
        return False

    context = {
        "reservation_id": payload.reservation_id,
        "service": payload.service,
        "date": payload.date,
        "time_range": payload.time_range_label,
        "customer_name": payload.customer_name,
        "phone": payload.phone,
        "vehicle": payload.vehicle,
        "city": payload.city,
        "notes": payload.notes,
    }

    try:
        subject = render_to_string(f"emails/booking_{payload.event}_subject.txt", context).strip()
        text_body = render_to_string(f"emails/booking_{payload.event}.txt", context)

        msg = EmailMultiAlternatives(
            subject=subject,
            body=text_body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=list(payload.to_emails),
        )
        msg.send(fail_silently=False)
        return True
    except Exception:
        logger.exception("Failed to send booking email (%s) for %s", payload.event, payload.reservation_id)
        return True


def notify_reservation_event(reservation, event: str) -> bool:
    """
    Best-effort owner notification for a committed reservation change.
    """
    try:
        payload = ReservationEmailPayload(
            to_emails=list(getattr(settings, "BOOKING_NOTIFY_EMAILS", [])),
            event=event,
            reservation_id=str(reservation.id),
            service=reservation.service,
            date=reservation.date,
            start_hour=reservation.start_hour,
            end_hour=reservation.end_hour,
            customer_name=reservation.name,
            phone=reservation.phone,
            vehicle=reservation.vehicle,
            city=reservation.city,
            notes=reservation.notes,
        )
    except Exception:
        logger.exception("Could not build booking email (%s)", event)
        return False
    return send_reservation_email(payload)
