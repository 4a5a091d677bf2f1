from django.contrib import admin, messages
from django.utils.html import format_html

from .models import Reservation, ReservationStatus
from .services import ReservationError, cancel_reservation


admin.site.site_header = "Detailing Bookings Admin"
admin.site.site_title = "Detailing Bookings Admin"
admin.site.index_title = "Booking Controls"


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = ("date", "time_range", "service", "name", "phone", "vehicle", "status_badge", "created_at")
    list_filter = ("status", "service", "date")
    search_fields = ("name", "phone", "vehicle", "city")
    ordering = ("-date", "start_hour")
    readonly_fields = [field.name for field in Reservation._meta.fields]
    actions = ["cancel_selected"]

    @admin.display(description="Time", ordering="start_hour")
    def time_range(self, obj: Reservation) -> str:
        return obj.time_range_label

    @admin.display(description="Status", ordering="status")
    def status_badge(self, obj: Reservation) -> str:
        color = "#2e7d32" if obj.is_active else "#9e9e9e"
        return format_html(
            '<span style="padding:3px 8px;border-radius:999px;color:{};font-weight:600;font-size:11px;">{}</span>',
            color,
            obj.get_status_display(),
        )

    # Schedule changes go through the booking API so the overlap rules apply.
    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_actions(self, request):
        actions = super().get_actions(request)
        actions.pop("delete_selected", None)
        return actions

    @admin.action(description="Cancel selected bookings")
    def cancel_selected(self, request, queryset):
        cancelled = 0
        for reservation in queryset.filter(status=ReservationStatus.ACTIVE):
            try:
                cancel_reservation(reservation.id)
            except ReservationError as exc:
                self.message_user(request, f"{reservation}: {exc}", level=messages.ERROR)
            else:
                cancelled += 1
        self.message_user(request, f"Cancelled {cancelled} booking(s).", level=messages.SUCCESS)
