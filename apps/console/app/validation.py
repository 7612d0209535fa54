"""
Client-side form checks. They only spare the user a round trip: the backend
re-validates everything and stays the source of truth.
"""
from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Dict, Mapping, Optional

from console_schemas.models import Flight
from .errors import OVERBOOKING_MESSAGE

FieldErrors = Dict[str, str]

OVERBOOKING_FACTOR = 1.10

IATA_RE = re.compile(r"[A-Z0-9]{2}")
ICAO_RE = re.compile(r"[A-Z0-9]{3}")
COUNTRY_RE = re.compile(r"[A-Za-zğüşöçıİĞÜŞÖÇ\s().'-]+")
PERSON_NAME_RE = re.compile(r"[A-Za-zğüşöçıİĞÜŞÖÇ\s]+")
EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
DIGITS_RE = re.compile(r"[0-9]+")


def _text(form: Mapping[str, object], key: str) -> str:
    value = form.get(key)
    return "" if value is None else str(value)


def validate_airline(form: Mapping[str, object]) -> FieldErrors:
    errors: FieldErrors = {}
    code_iata = _text(form, "code_iata")
    code_icao = _text(form, "code_icao")
    name = _text(form, "name")
    country = _text(form, "country")
    fleet_size = _text(form, "fleet_size")

    if not code_iata.strip():
        errors["code_iata"] = "IATA code is required"
    elif not IATA_RE.fullmatch(code_iata):
        errors["code_iata"] = "IATA code must be exactly 2 uppercase letters or digits"

    if not code_icao.strip():
        errors["code_icao"] = "ICAO code is required"
    elif not ICAO_RE.fullmatch(code_icao):
        errors["code_icao"] = "ICAO code must be exactly 3 uppercase letters or digits"

    if not name.strip():
        errors["name"] = "Airline name is required"
    elif not 2 <= len(name) <= 100:
        errors["name"] = "Airline name must be between 2 and 100 characters"

    if not country.strip():
        errors["country"] = "Country is required"
    elif not 2 <= len(country) <= 60:
        errors["country"] = "Country name must be between 2 and 60 characters"
    elif not COUNTRY_RE.fullmatch(country):
        errors["country"] = "Country name must contain only letters"

    if not fleet_size.strip():
        errors["fleet_size"] = "Fleet size is required"
    elif not DIGITS_RE.fullmatch(fleet_size):
        errors["fleet_size"] = "Fleet size must be a numeric value"

    return errors


def _parse_time(raw: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def validate_flight(form: Mapping[str, object]) -> FieldErrors:
    errors: FieldErrors = {}

    if not _text(form, "airline_id").strip():
        errors["airline_id"] = "Please select an airline."
    for key, label in (
        ("flight_number", "Flight number"),
        ("origin", "Origin"),
        ("destination", "Destination"),
    ):
        if not _text(form, key).strip():
            errors[key] = f"{label} is required"

    departure = _parse_time(_text(form, "departure_time"))
    arrival = _parse_time(_text(form, "arrival_time"))
    if departure is None:
        errors["departure_time"] = "Departure time is required"
    if arrival is None:
        errors["arrival_time"] = "Arrival time is required"
    elif departure is not None and arrival <= departure:
        errors["arrival_time"] = "Arrival time must be after departure time"

    try:
        price = float(_text(form, "base_price"))
    except ValueError:
        price = math.nan
    if not math.isfinite(price):
        errors["base_price"] = "Base price must be a number"
    elif price < 0:
        errors["base_price"] = "Base price cannot be negative"

    try:
        if int(_text(form, "capacity")) < 1:
            errors["capacity"] = "Capacity must be at least 1"
    except ValueError:
        errors["capacity"] = "Capacity must be a whole number"

    return errors


def validate_passenger(form: Mapping[str, object]) -> FieldErrors:
    errors: FieldErrors = {}
    name = _text(form, "name")
    surname = _text(form, "surname")
    email = _text(form, "email")

    if not name.strip():
        errors["name"] = "First name cannot be empty"
    elif not PERSON_NAME_RE.fullmatch(name):
        errors["name"] = "First name must contain only letters"
    if not surname.strip():
        errors["surname"] = "Last name cannot be empty"
    elif not PERSON_NAME_RE.fullmatch(surname):
        errors["surname"] = "Last name must contain only letters"
    if not email.strip():
        errors["email"] = "Email cannot be empty"
    elif not EMAIL_RE.fullmatch(email):
        errors["email"] = "Invalid email format"

    return errors


def validate_registration(form: Mapping[str, object]) -> FieldErrors:
    errors: FieldErrors = {}
    first_name = _text(form, "first_name").strip()
    last_name = _text(form, "last_name").strip()
    email = _text(form, "email").strip()
    password = _text(form, "password")

    if not first_name:
        errors["first_name"] = "First name is required."
    elif len(first_name) < 2:
        errors["first_name"] = "First name must be at least 2 characters."
    if not last_name:
        errors["last_name"] = "Last name is required."
    elif len(last_name) < 2:
        errors["last_name"] = "Last name must be at least 2 characters."
    if not email:
        errors["email"] = "Email is required."
    elif not re.search(r"\S+@\S+\.\S+", email):
        errors["email"] = "Please enter a valid email address."
    if not password.strip():
        errors["password"] = "Password is required."
    elif len(password) < 8:
        errors["password"] = "Password must be at least 8 characters."

    return errors


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def overbooking_limit(capacity: int) -> int:
    return round_half_up(capacity * OVERBOOKING_FACTOR)


def is_overbooked(flight: Optional[Flight]) -> bool:
    """Advisory mirror of the backend's 110% rule; unknown counts never block."""
    if flight is None or flight.booked_seats is None:
        return False
    return flight.booked_seats >= overbooking_limit(flight.capacity)


def validate_booking(
    flight_id: Optional[int],
    seat_number: str,
    passenger_id: Optional[int],
    is_admin: bool,
    flight: Optional[Flight],
) -> Optional[str]:
    """Return the notification that blocks the submit, or None when it may proceed."""
    if not flight_id or not seat_number.strip():
        return "Please fill in all required fields."
    if is_admin and not passenger_id:
        return "Please select a passenger."
    if is_overbooked(flight):
        return OVERBOOKING_MESSAGE
    return None
