# Generated manually (initial migration).
import uuid

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ScheduleDay",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("date", models.DateField(unique=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["date"],
            },
        ),
        migrations.CreateModel(
            name="Reservation",
            fields=[
                (
                    "id",
                    models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False),
                ),
                ("date", models.DateField()),
                ("start_hour", models.PositiveSmallIntegerField()),
                ("end_hour", models.PositiveSmallIntegerField()),
                ("duration_hours", models.PositiveSmallIntegerField()),
                ("service", models.CharField(max_length=80)),
                ("name", models.CharField(max_length=120)),
                ("phone", models.CharField(max_length=40)),
                ("vehicle", models.CharField(max_length=120)),
                ("city", models.CharField(blank=True, max_length=120)),
                ("notes", models.TextField(blank=True, max_length=500)),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("cancelled", "Cancelled")],
                        default="active",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-date", "start_hour", "-created_at"],
                "indexes": [models.Index(fields=["date", "status"], name="idx_res_date_status")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("start_hour__lt", models.F("end_hour"))),
                        name="reservation_start_before_end",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("end_hour", models.F("start_hour") + models.F("duration_hours"))
                        ),
                        name="reservation_end_matches_duration",
                    ),
                ],
            },
        ),
    ]
