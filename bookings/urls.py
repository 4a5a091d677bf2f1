from django.urls import path

from .api import (
    admin_booking_detail_api,
    admin_bookings_api,
    admin_cancel_api,
    admin_move_api,
    book_api,
    slots_api,
)


app_name = "bookings"

urlpatterns = [
    path("api/slots/", slots_api, name="slots_api"),
    path("api/book/", book_api, name="book_api"),
    path("api/admin/bookings/", admin_bookings_api, name="admin_bookings_api"),
    path("api/admin/bookings/<uuid:reservation_id>/", admin_booking_detail_api, name="admin_booking_detail_api"),
    path("api/admin/bookings/<uuid:reservation_id>/cancel/", admin_cancel_api, name="admin_cancel_api"),
    path("api/admin/bookings/<uuid:reservation_id>/move/", admin_move_api, name="admin_move_api"),
]
