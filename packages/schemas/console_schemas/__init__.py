from .models import (
    Airline,
    Booking,
    BookingAdminRow,
    BookingReceipt,
    Flight,
    Page,
    Passenger,
    PassengerBooking,
    Role,
    Session,
)
from .requests import BookingCreateRequest, RegisterRequest

__all__ = [
    "Airline",
    "Booking",
    "BookingAdminRow",
    "BookingCreateRequest",
    "BookingReceipt",
    "Flight",
    "Page",
    "Passenger",
    "PassengerBooking",
    "RegisterRequest",
    "Role",
    "Session",
]
