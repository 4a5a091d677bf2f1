import uuid

from django.db import models
from django.db.models import F, Q

from .intervals import HourInterval
from .policy import hour_label


NAME_MAX_LENGTH = 120
PHONE_MAX_LENGTH = 40
VEHICLE_MAX_LENGTH = 120
CITY_MAX_LENGTH = 120
NOTES_MAX_LENGTH = 500
SERVICE_MAX_LENGTH = 80


class ReservationStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    CANCELLED = "cancelled", "Cancelled"


class ReservationQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status=ReservationStatus.ACTIVE)

    def on_date(self, day):
        return self.filter(date=day)

    def intervals(self) -> list[HourInterval]:
        return [HourInterval(start, end) for start, end in self.values_list("start_hour", "end_hour")]


class ScheduleDay(models.Model):
    """
    One row per calendar date. Writers lock it with select_for_update() so
    that overlap checks and inserts for the same date run one at a time.
    """

    date = models.DateField(unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["date"]

    def __str__(self) -> str:  # pragma: no cover
        return self.date.isoformat()


class Reservation(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    date = models.DateField()
    start_hour = models.PositiveSmallIntegerField()
    end_hour = models.PositiveSmallIntegerField()
    duration_hours = models.PositiveSmallIntegerField()
    service = models.CharField(max_length=SERVICE_MAX_LENGTH)
    name = models.CharField(max_length=NAME_MAX_LENGTH)
    phone = models.CharField(max_length=PHONE_MAX_LENGTH)
    vehicle = models.CharField(max_length=VEHICLE_MAX_LENGTH)
    city = models.CharField(max_length=CITY_MAX_LENGTH, blank=True)
    notes = models.TextField(max_length=NOTES_MAX_LENGTH, blank=True)
    status = models.CharField(
        max_length=16,
        choices=ReservationStatus.choices,
        default=ReservationStatus.ACTIVE,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ReservationQuerySet.as_manager()

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(start_hour__lt=F("end_hour")),
                name="reservation_start_before_end",
            ),
            models.CheckConstraint(
                condition=Q(end_hour=F("start_hour") + F("duration_hours")),
                name="reservation_end_matches_duration",
            ),
        ]
        indexes = [
            models.Index(fields=["date", "status"], name="idx_res_date_status"),
        ]
        ordering = ["-date", "start_hour", "-created_at"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.service} · {self.date} · {self.time_range_label} · {self.name}"

    @property
    def time_range_label(self) -> str:
        return f"{hour_label(self.start_hour)}–{hour_label(self.end_hour)}"

    @property
    def is_active(self) -> bool:
        return self.status == ReservationStatus.ACTIVE

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "date": self.date.isoformat(),
            "start_hour": self.start_hour,
            "end_hour": self.end_hour,
            "duration_hours": self.duration_hours,
            "service": self.service,
            "name": self.name,
            "phone": self.phone,
            "vehicle": self.vehicle,
            "city": self.city,
            "notes": self.notes,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
