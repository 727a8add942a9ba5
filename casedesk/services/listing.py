from __future__ import annotations

import math
from typing import Generic, Iterable, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


def matches_any(query: str, values: Iterable[object]) -> bool:
    """Case-insensitive substring match against any non-empty value."""
    q = (query or "").lower()
    for v in values:
        if v is None or v == "":
            continue
        if q in str(v).lower():
            return True
    return False


class Page(BaseModel, Generic[T]):
    model_config = ConfigDict(frozen=True)

    rows: list[T]
    page: int
    page_size: int
    total: int
    total_pages: int


def paginate(items: Sequence[T], *, page: int, page_size: int, min_pages: int = 0) -> Page[T]:
    """1-based page slice; ``min_pages=1`` keeps "Page 1 of 1" for empty results."""
    total = len(items)
    total_pages = max(math.ceil(total / page_size), min_pages)
    p = max(page, 1)
    start = (p - 1) * page_size
    return Page(rows=list(items[start : start + page_size]), page=p, page_size=page_size, total=total, total_pages=total_pages)
