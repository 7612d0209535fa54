from __future__ import annotations

from typing import Any, List, Type, TypeVar

from console_schemas.models import Page

M = TypeVar("M")


def as_page(model: Type[M], data: Any) -> Page[M]:
    """Accept either a page envelope or a bare JSON list."""
    if isinstance(data, list):
        items = [model.model_validate(item) for item in data]
        return Page[model](
            content=items, total_elements=len(items), total_pages=1, size=len(items), number=0
        )
    if isinstance(data, dict):
        return Page[model].model_validate(data)
    return Page[model]()


def as_list(model: Type[M], data: Any) -> List[M]:
    if isinstance(data, dict):
        data = data.get("content") or []
    if not isinstance(data, list):
        return []
    return [model.model_validate(item) for item in data]


def paging(page: int, size: int) -> dict:
    return {"page": page, "size": size}
