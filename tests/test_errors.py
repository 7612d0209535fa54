import httpx

from app.errors import (
    FALLBACK_MESSAGE,
    FIELD_ERRORS_MESSAGE,
    NOT_FOUND_MESSAGE,
    OVERBOOKING_MESSAGE,
    AuthError,
    FieldErrorsFailure,
    MessageFailure,
    UnknownFailure,
    display_message,
    map_booking_message,
    map_login_message,
    map_message,
    map_registration_message,
    normalize_error,
)


def _status_error(status: int, **kwargs) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "http://backend.test/api/flights")
    response = httpx.Response(status, request=request, **kwargs)
    return httpx.HTTPStatusError("failed", request=request, response=response)


def test_map_message_first_match_wins():
    # mentions both "IATA code" and "not found"; the IATA entry comes first
    assert map_message("IATA code TK not found in registry") == (
        "This IATA code is already in use. Please choose another one."
    )


def test_map_message_is_case_insensitive():
    assert map_message("Flight NOT FOUND") == NOT_FOUND_MESSAGE
    assert map_message("VALIDATION failed for field") == (
        "Some of the entered data is invalid. Please check your inputs."
    )


def test_map_message_booked_airline():
    assert map_message("Airline has booked flights") == (
        "This airline cannot be deleted because it has active bookings."
    )


def test_map_message_fallback():
    assert map_message(None) == FALLBACK_MESSAGE
    assert map_message("") == FALLBACK_MESSAGE
    assert map_message("disk on fire") == FALLBACK_MESSAGE


def test_map_booking_message():
    assert map_booking_message("Seat 12A is already taken") == "This seat is already taken."
    assert map_booking_message("Overbooking limit reached") == OVERBOOKING_MESSAGE
    assert map_booking_message("Flight is full") == "This flight has reached full capacity."
    assert map_booking_message("Passenger already has a booking") == (
        "Passenger already has a booking for this flight."
    )


def test_map_booking_message_passes_unknown_text_through():
    assert map_booking_message("Payment gateway timeout") == "Payment gateway timeout"
    assert map_booking_message(None) == "Operation failed."


def test_normalize_field_errors():
    failure = normalize_error(_status_error(400, json={"errors": {"flightNumber": "Required"}}))
    assert failure == FieldErrorsFailure(errors={"flightNumber": "Required"})
    assert failure.kind == "fieldErrors"


def test_normalize_field_errors_alternate_key():
    failure = normalize_error(_status_error(400, json={"fieldErrors": {"email": "Taken"}}))
    assert isinstance(failure, FieldErrorsFailure)
    assert failure.errors == {"email": "Taken"}


def test_normalize_message_body():
    failure = normalize_error(_status_error(409, json={"message": "IATA code exists"}))
    assert failure == MessageFailure(text="IATA code exists", status_code=409)


def test_normalize_plain_text_body():
    failure = normalize_error(_status_error(400, text="Seat already taken"))
    assert isinstance(failure, MessageFailure)
    assert failure.text == "Seat already taken"


def test_normalize_unknown_shapes():
    assert isinstance(normalize_error(_status_error(500)), UnknownFailure)
    assert isinstance(normalize_error(_status_error(500, json={"status": 500})), UnknownFailure)
    assert isinstance(normalize_error(httpx.ConnectError("refused")), UnknownFailure)
    assert isinstance(normalize_error(ValueError("boom")), UnknownFailure)


def test_normalize_auth_error():
    failure = normalize_error(AuthError("Bad credentials", 401))
    assert failure == MessageFailure(text="Bad credentials", status_code=401)


def test_display_message_per_kind():
    assert display_message(FieldErrorsFailure(errors={"a": "b"})) == FIELD_ERRORS_MESSAGE
    assert display_message(MessageFailure(text="Flight not found")) == NOT_FOUND_MESSAGE
    assert display_message(UnknownFailure()) == FALLBACK_MESSAGE
    assert display_message(UnknownFailure(), map_booking_message) == "Operation failed."


def test_login_messages():
    assert map_login_message("Bad credentials", 401) == "Invalid email or password. Please try again."
    assert map_login_message("User not found", 404) == "No account found with this email address."
    assert map_login_message("Forbidden", 403).startswith("Access denied.")
    assert map_login_message(None) == "Login failed. Please check your credentials and try again."


def test_registration_messages():
    assert map_registration_message("Email is already registered") == (
        "This email address is already registered. Please use another email."
    )
    assert map_registration_message(None) == "Unknown error"
