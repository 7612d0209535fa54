from __future__ import annotations

from typing import Optional

from pydantic import Field

from .models import WireModel


class RegisterRequest(WireModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: str
    password: str


class BookingCreateRequest(WireModel):
    flight_id: int
    seat_number: str
    # admins book on behalf of a passenger; users book for themselves
    passenger_id: Optional[int] = None
