from __future__ import annotations

from console_schemas.models import Airline, Page
from ..api_client import ApiClient
from .common import as_page, paging


async def get_airlines(api: ApiClient, page: int = 0, size: int = 10) -> Page[Airline]:
    res = await api.get("/airlines", params=paging(page, size))
    return as_page(Airline, res.json())


async def get_airline(api: ApiClient, airline_id: int) -> Airline:
    res = await api.get(f"/airlines/{airline_id}")
    return Airline.model_validate(res.json())


async def create_airline(api: ApiClient, airline: Airline) -> Airline:
    res = await api.post("/airlines", json=airline.to_wire())
    return Airline.model_validate(res.json())


async def update_airline(api: ApiClient, airline_id: int, airline: Airline) -> Airline:
    res = await api.put(f"/airlines/{airline_id}", json=airline.to_wire())
    return Airline.model_validate(res.json())


async def delete_airline(api: ApiClient, airline_id: int) -> None:
    await api.delete(f"/airlines/{airline_id}")
