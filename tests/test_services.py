import pytest

from console_schemas.models import Airline, Flight, Passenger
from app.api_client import ApiClient
from app.errors import AuthError
from app.services import airlines, auth, bookings, flights, passengers
from conftest import MemoryTokenStore, make_token, sent_json

AIRLINE = {
    "id": 1,
    "codeIATA": "TK",
    "codeICAO": "THY",
    "name": "Turkish Airlines",
    "country": "Turkey",
    "fleetSize": 350,
}

FLIGHT = {
    "id": 10,
    "flightNumber": "TK1",
    "origin": "IST",
    "destination": "JFK",
    "departureTime": "2030-05-01T10:00:00",
    "arrivalTime": "2030-05-01T20:00:00",
    "basePrice": 499.9,
    "capacity": 300,
    "airlineId": 1,
}


@pytest.fixture
def api(backend):
    return ApiClient(backend.client(), MemoryTokenStore("t"), current_path="/airlines")


async def test_airline_page_from_bare_list(backend, api):
    backend.add("GET", "/airlines", body=[AIRLINE])

    page = await airlines.get_airlines(api)

    assert page.total_elements == 1
    airline = page.content[0]
    assert airline.code_iata == "TK"
    assert airline.fleet_size == "350"
    [request] = backend.calls("GET", "/airlines")
    assert request.url.params["page"] == "0"
    assert request.url.params["size"] == "10"


async def test_airline_page_from_envelope(backend, api):
    backend.add(
        "GET",
        "/airlines",
        body={"content": [AIRLINE], "totalElements": 21, "totalPages": 3, "size": 10, "number": 1},
    )

    page = await airlines.get_airlines(api, page=1)

    assert page.total_pages == 3
    assert page.number == 1


async def test_create_airline_sends_wire_names(backend, api):
    backend.add("POST", "/airlines", status=201, body=AIRLINE)
    airline = Airline(code_iata="TK", code_icao="THY", name="Turkish Airlines", country="Turkey", fleet_size="350")

    await airlines.create_airline(api, airline)

    body = sent_json(backend.calls("POST", "/airlines")[0])
    assert body["codeIATA"] == "TK"
    assert body["codeICAO"] == "THY"
    assert body["fleetSize"] == "350"
    assert "id" not in body


async def test_flight_sort_only_when_given(backend, api):
    backend.add("GET", "/flights", body=[FLIGHT])

    await flights.get_flights(api, sort="  ")
    await flights.get_flights(api, sort="departureTime,asc")

    first, second = backend.calls("GET", "/flights")
    assert "sort" not in first.url.params
    assert second.url.params["sort"] == "departureTime,asc"


async def test_get_flight_unwraps_data_envelope(backend, api):
    backend.add("GET", "/flights/10", body={"data": FLIGHT})

    flight = await flights.get_flight(api, 10)

    assert isinstance(flight, Flight)
    assert flight.flight_number == "TK1"
    assert flight.airline_id == 1


async def test_update_flight_uses_put(backend, api):
    backend.add("PUT", "/flights/10", body=FLIGHT)
    flight = Flight.model_validate(FLIGHT)

    await flights.update_flight(api, 10, flight)

    assert sent_json(backend.calls("PUT", "/flights/10")[0])["basePrice"] == 499.9


async def test_passengers_and_loyalty(backend, api):
    backend.add(
        "GET",
        "/passengers",
        body=[{"id": 4, "name": "Ada", "surname": "Lovelace", "email": "ada@example.com", "loyaltyPoints": None}],
    )
    backend.add("PATCH", "/passengers/4/loyalty", body=None)

    [passenger] = await passengers.get_passengers(api)
    await passengers.update_loyalty_points(api, 4, -25)

    assert isinstance(passenger, Passenger)
    assert passenger.loyalty_points == 0
    [patch] = backend.calls("PATCH", "/passengers/4/loyalty")
    assert patch.url.params["delta"] == "-25"


async def test_check_email_unique(backend, api):
    backend.add("GET", "/passengers/check-email", body=False)

    assert await passengers.check_email_unique(api, "ada@example.com") is False
    [request] = backend.calls("GET", "/passengers/check-email")
    assert request.url.params["email"] == "ada@example.com"


async def test_create_booking_omits_missing_passenger(backend, api):
    backend.add(
        "POST", "/bookings", status=201, body={"bookingId": 9, "status": "CONFIRMED", "finalPrice": 120.5}
    )

    receipt = await bookings.create_booking(api, 10, "12A")

    assert receipt.booking_id == 9
    assert sent_json(backend.calls("POST", "/bookings")[0]) == {"flightId": 10, "seatNumber": "12A"}


async def test_admin_booking_includes_passenger(backend, api):
    backend.add("POST", "/bookings", status=201, body={"bookingId": 9, "status": "WAITLISTED", "finalPrice": 0})

    await bookings.create_booking(api, 10, "12A", passenger_id=4)

    assert sent_json(backend.calls("POST", "/bookings")[0])["passengerId"] == 4


async def test_cancel_and_my_bookings(backend, api):
    backend.add("POST", "/bookings/9/cancel", body=None)
    backend.add(
        "GET",
        "/bookings/me",
        body=[
            {
                "bookingId": 9,
                "flightNumber": "TK1",
                "origin": "IST",
                "destination": "JFK",
                "departureTime": "2030-05-01T10:00:00",
                "arrivalTime": "2030-05-01T20:00:00",
                "bookingStatus": "CANCELLED",
                "seatNumber": "12A",
                "price": 120.5,
            }
        ],
    )

    await bookings.cancel_booking(api, 9)
    [mine] = await bookings.get_my_bookings(api)

    assert len(backend.calls("POST", "/bookings/9/cancel")) == 1
    assert mine.booking_status == "CANCELLED"


async def test_login_saves_token(backend):
    token = make_token("ROLE_USER")
    backend.add("POST", "/auth/login", body=token)
    store = MemoryTokenStore()
    api = ApiClient(backend.client(), store, current_path="/login")

    assert await auth.login(api, "u@example.com", "secret123") == token

    assert store.token == token
    [request] = backend.calls("POST", "/auth/login")
    assert request.url.params["email"] == "u@example.com"


async def test_login_rejected(backend):
    backend.add("POST", "/auth/login", status=401, body={"message": "Bad credentials"})
    api = ApiClient(backend.client(), MemoryTokenStore(), current_path="/login")

    with pytest.raises(AuthError) as info:
        await auth.login(api, "u@example.com", "wrong")

    assert info.value.message == "Bad credentials"
    assert info.value.status_code == 401


async def test_login_without_token_body(backend):
    backend.add("POST", "/auth/login", body=None)
    store = MemoryTokenStore()
    api = ApiClient(backend.client(), store, current_path="/login")

    with pytest.raises(AuthError, match="No token received from server"):
        await auth.login(api, "u@example.com", "secret123")
    assert store.token is None


async def test_register_posts_camel_case(backend):
    backend.add("POST", "/auth/register", body="User registered")
    api = ApiClient(backend.client(), MemoryTokenStore(), current_path="/register")

    message = await auth.register(api, "Ada", "Lovelace", "ada@example.com", "secret123")

    assert message == "User registered"
    body = sent_json(backend.calls("POST", "/auth/register")[0])
    assert body == {
        "firstName": "Ada",
        "lastName": "Lovelace",
        "email": "ada@example.com",
        "password": "secret123",
    }
