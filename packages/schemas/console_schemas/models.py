from __future__ import annotations

from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Role = Literal["ADMIN", "USER"]
BookingStatus = Literal["CONFIRMED", "CANCELLED", "WAITLISTED"]

T = TypeVar("T")


class WireModel(BaseModel):
    """Base for records exchanged with the backend: snake_case here, camelCase on the wire."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Session(BaseModel):
    role: Optional[Role] = None
    expires_at_millis: int = 0
    subject: Optional[str] = None

    def is_valid(self, now_millis: int) -> bool:
        return now_millis < self.expires_at_millis


class Airline(WireModel):
    model_config = ConfigDict(
        populate_by_name=True, alias_generator=to_camel, coerce_numbers_to_str=True
    )

    id: Optional[int] = None
    code_iata: str = Field(..., alias="codeIATA")
    code_icao: str = Field(..., alias="codeICAO")
    name: str
    country: str
    fleet_size: str = Field(..., description="Numeric string, e.g. '350'")
    flight_ids: Optional[List[int]] = None


class Flight(WireModel):
    id: Optional[int] = None
    flight_number: str
    origin: str
    destination: str
    departure_time: str = Field(..., description="ISO timestamp")
    arrival_time: str = Field(..., description="ISO timestamp")
    base_price: float
    capacity: int
    booked_seats: Optional[int] = None
    airline_id: Optional[int] = None
    airline_name: Optional[str] = None


class Passenger(WireModel):
    id: Optional[int] = None
    name: str
    surname: str
    email: str
    loyalty_points: int = Field(default=0, ge=0)

    @field_validator("loyalty_points", mode="before")
    @classmethod
    def _null_points(cls, v: Any) -> Any:
        return 0 if v is None else v


class Booking(WireModel):
    id: Optional[int] = None
    flight_id: int
    passenger_id: Optional[int] = None
    seat_number: str
    booking_status: BookingStatus = "CONFIRMED"
    price: float = 0.0


class BookingAdminRow(WireModel):
    id: int
    flight_number: str
    origin: str
    destination: str
    passenger_name: str
    seat_number: str
    booking_status: BookingStatus
    price: float


class PassengerBooking(WireModel):
    booking_id: int
    flight_number: str
    origin: str
    destination: str
    departure_time: str
    arrival_time: str
    booking_status: str
    seat_number: str
    price: float
    loyalty_earned: int = 0


class BookingReceipt(WireModel):
    booking_id: int
    status: BookingStatus
    final_price: float
    message: Optional[str] = None


class Page(WireModel, Generic[T]):
    content: List[T] = Field(default_factory=list)
    total_elements: int = 0
    total_pages: int = 0
    size: int = 0
    number: int = 0
