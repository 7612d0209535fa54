from __future__ import annotations

from typing import List

from console_schemas.models import Passenger
from ..api_client import ApiClient
from .common import as_list, paging


async def get_passengers(api: ApiClient, page: int = 0, size: int = 100) -> List[Passenger]:
    res = await api.get("/passengers", params=paging(page, size))
    return as_list(Passenger, res.json())


async def get_passenger(api: ApiClient, passenger_id: int) -> Passenger:
    res = await api.get(f"/passengers/{passenger_id}")
    return Passenger.model_validate(res.json())


async def create_passenger(api: ApiClient, passenger: Passenger) -> Passenger:
    res = await api.post("/passengers", json=passenger.to_wire())
    return Passenger.model_validate(res.json())


async def update_passenger(api: ApiClient, passenger_id: int, passenger: Passenger) -> Passenger:
    res = await api.put(f"/passengers/{passenger_id}", json=passenger.to_wire())
    return Passenger.model_validate(res.json())


async def delete_passenger(api: ApiClient, passenger_id: int) -> None:
    await api.delete(f"/passengers/{passenger_id}")


async def check_email_unique(api: ApiClient, email: str) -> bool:
    res = await api.get("/passengers/check-email", params={"email": email})
    return bool(res.json())


async def update_loyalty_points(api: ApiClient, passenger_id: int, delta: int) -> None:
    await api.patch(f"/passengers/{passenger_id}/loyalty", params={"delta": delta})
