from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from bookings.policy import get_policy, parse_calendar_date
from bookings.services import ReservationError
from bookings.slots import AVAILABLE, generate_slots


class Command(BaseCommand):
    help = "Print the slot grid for a date and service duration."

    def add_arguments(self, parser):
        parser.add_argument("date", help="Calendar date, YYYY-MM-DD.")
        group = parser.add_mutually_exclusive_group(required=True)
        group.add_argument("--duration", type=int, help="Duration in hours.")
        group.add_argument("--service", help="Service name; uses its configured duration.")

    def handle(self, *args, **options):
        try:
            day = parse_calendar_date(options["date"])
        except ValueError as exc:
            raise CommandError(str(exc)) from exc

        duration = options["duration"]
        if options["service"]:
            duration = get_policy().duration_for(options["service"])
            if duration is None:
                raise CommandError(f"Unknown service: {options['service']}")

        try:
            listing = generate_slots(day, duration)
        except ReservationError as exc:
            raise CommandError(str(exc)) from exc

        if listing.reason:
            self.stdout.write(self.style.WARNING(f"{day.isoformat()} is not bookable ({listing.reason})."))
            return

        for slot in listing.slots:
            style = self.style.SUCCESS if slot.status == AVAILABLE else self.style.ERROR
            self.stdout.write(f"{slot.label}  {style(slot.status)}")
