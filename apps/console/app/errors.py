from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Literal, Optional, Tuple, Union

import httpx

FALLBACK_MESSAGE = "Operation failed. Please check your input or try again."
NOT_FOUND_MESSAGE = "The requested record could not be found. It may have been deleted."
FIELD_ERRORS_MESSAGE = "Please correct highlighted fields."
OVERBOOKING_MESSAGE = "This flight cannot accept more bookings: overbooking limit (110%) reached."
NO_CHANGES_MESSAGE = "No changes were detected. Please modify a field before saving."

# Order matters: the first matching substring wins.
MESSAGE_TABLE: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("iata code",), "This IATA code is already in use. Please choose another one."),
    (("icao code",), "This ICAO code is already in use. Please choose another one."),
    (("no changes detected",), NO_CHANGES_MESSAGE),
    (("cannot be deleted", "booked"), "This airline cannot be deleted because it has active bookings."),
    (("not found",), NOT_FOUND_MESSAGE),
    (("validation", "invalid"), "Some of the entered data is invalid. Please check your inputs."),
    (("cannot delete flight with existing bookings",), "This flight cannot be deleted because it has existing bookings."),
    (("email is already registered",), "This email address is already registered. Please use another email."),
    (("bad credentials", "invalid credentials"), "Invalid email or password. Please try again."),
)

BOOKING_MESSAGE_TABLE: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("seat",), "This seat is already taken."),
    (("overbooking",), OVERBOOKING_MESSAGE),
    (("full",), "This flight has reached full capacity."),
    (("passenger already has",), "Passenger already has a booking for this flight."),
    (("departed",), "Flight not available or already departed."),
)


def _lookup(table, raw: str) -> Optional[str]:
    normalized = raw.lower()
    for patterns, message in table:
        if any(p in normalized for p in patterns):
            return message
    return None


def map_message(raw: Optional[str] = None) -> str:
    """Translate a raw backend error string into something a user can act on."""
    if not raw:
        return FALLBACK_MESSAGE
    return _lookup(MESSAGE_TABLE, raw) or FALLBACK_MESSAGE


def map_booking_message(raw: Optional[str] = None) -> str:
    """Booking-form variant: unknown backend text is shown as-is."""
    if not raw:
        return "Operation failed."
    return _lookup(BOOKING_MESSAGE_TABLE, raw) or raw


class AuthError(Exception):
    """Login/registration failure carrying a best-effort backend message."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class FieldErrorsFailure:
    errors: Dict[str, str]
    kind: Literal["fieldErrors"] = "fieldErrors"


@dataclass(frozen=True)
class MessageFailure:
    text: str
    status_code: Optional[int] = None
    kind: Literal["message"] = "message"


@dataclass(frozen=True)
class UnknownFailure:
    status_code: Optional[int] = None
    detail: Optional[str] = field(default=None, compare=False)
    kind: Literal["unknown"] = "unknown"


ApiFailure = Union[FieldErrorsFailure, MessageFailure, UnknownFailure]


def response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        text = response.text.strip()
        return text or None


def body_message(body: Any) -> Optional[str]:
    if isinstance(body, str):
        return body or None
    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return None


def _field_errors(body: Any) -> Optional[Dict[str, str]]:
    if not isinstance(body, dict):
        return None
    possible = body.get("errors")
    if possible is None:
        possible = body.get("fieldErrors")
    if not isinstance(possible, dict):
        return None
    formatted = {str(k): v for k, v in possible.items() if isinstance(v, str)}
    return formatted or None


def normalize_error(exc: BaseException) -> ApiFailure:
    """Collapse whatever a service call raised into one of three shapes."""
    if isinstance(exc, AuthError):
        return MessageFailure(text=exc.message, status_code=exc.status_code)

    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        body = response_body(exc.response)
        errors = _field_errors(body)
        if errors:
            return FieldErrorsFailure(errors=errors)
        message = body_message(body)
        if message:
            return MessageFailure(text=message, status_code=status)
        return UnknownFailure(status_code=status)

    return UnknownFailure(detail=repr(exc))


def display_message(
    failure: ApiFailure, mapper: Callable[[Optional[str]], str] = map_message
) -> str:
    if isinstance(failure, FieldErrorsFailure):
        return FIELD_ERRORS_MESSAGE
    if isinstance(failure, MessageFailure):
        return mapper(failure.text)
    return mapper(None)


def map_login_message(message: Optional[str], status_code: Optional[int] = None) -> str:
    msg = message or "Login failed. Please check your credentials and try again."
    low = msg.lower()
    if "invalid email" in low or "invalid password" in low or status_code == 401:
        msg = "Invalid email or password. Please try again."
    if "not found" in low:
        msg = "No account found with this email address."
    if "forbidden" in low or status_code == 403:
        msg = "Access denied. You don't have permission to log in."
    return msg


def map_registration_message(message: Optional[str]) -> str:
    raw = message or "Unknown error"
    if "email is already registered" in raw.lower():
        return "This email address is already registered. Please use another email."
    return raw
