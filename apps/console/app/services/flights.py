from __future__ import annotations

from typing import Optional

from console_schemas.models import Flight, Page
from ..api_client import ApiClient
from .common import as_page, paging


async def get_flights(
    api: ApiClient, page: int = 0, size: int = 10, sort: Optional[str] = None
) -> Page[Flight]:
    params = paging(page, size)
    if sort and sort.strip():
        params["sort"] = sort
    res = await api.get("/flights", params=params)
    return as_page(Flight, res.json())


async def get_flight(api: ApiClient, flight_id: int) -> Flight:
    res = await api.get(f"/flights/{flight_id}")
    body = res.json()
    # some backend builds wrap single records in {"data": ...}
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        body = body["data"]
    return Flight.model_validate(body)


async def create_flight(api: ApiClient, flight: Flight) -> Flight:
    res = await api.post("/flights", json=flight.to_wire())
    return Flight.model_validate(res.json())


async def update_flight(api: ApiClient, flight_id: int, flight: Flight) -> Flight:
    res = await api.put(f"/flights/{flight_id}", json=flight.to_wire())
    return Flight.model_validate(res.json())


async def delete_flight(api: ApiClient, flight_id: int) -> None:
    await api.delete(f"/flights/{flight_id}")
