from __future__ import annotations

from typing import List, Optional

from console_schemas.models import Booking, BookingAdminRow, BookingReceipt, Page, PassengerBooking
from console_schemas.requests import BookingCreateRequest
from ..api_client import ApiClient
from .common import as_list, as_page, paging


async def get_admin_bookings(api: ApiClient, page: int = 0, size: int = 50) -> Page[BookingAdminRow]:
    res = await api.get("/bookings", params=paging(page, size))
    return as_page(BookingAdminRow, res.json())



async def get_booking(api: ApiClient, booking_id: int) -> Booking:
    res = await api.get(f"/bookings/{booking_id}")
    return Booking.model_validate(res.json())


async def create_booking(
    api: ApiClient, flight_id: int, seat_number: str, passenger_id: Optional[int] = None
) -> BookingReceipt:
    payload = BookingCreateRequest(
        flight_id=flight_id, seat_number=seat_number, passenger_id=passenger_id
    )
    res = await api.post("/bookings", json=payload.to_wire())
    return BookingReceipt.model_validate(res.json())



async def cancel_booking(api: ApiClient, booking_id: int) -> None:
    await api.post(f"/bookings/{booking_id}/cancel")


async def get_my_bookings(api: ApiClient) -> List[PassengerBooking]:
    res = await api.get("/bookings/me")
    return as_list(PassengerBooking, res.json())


async def get_passenger_bookings(api: ApiClient, passenger_id: int) -> List[PassengerBooking]:
    res = await api.get(f"/passengers/{passenger_id}/bookings")
    return as_list(PassengerBooking, res.json())
