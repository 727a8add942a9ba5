"""Per-entity in-memory table owned by one page controller."""

from __future__ import annotations

from typing import Any, Callable, Generic, Iterable, TypeVar

T = TypeVar("T")


class EntityStore(Generic[T]):
    def __init__(self, *, key: Callable[[T], Any]) -> None:
        self._key = key
        self._items: list[T] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))

    @property
    def items(self) -> list[T]:
        return list(self._items)

    def replace_all(self, items: Iterable[T]) -> None:
        self._items = list(items)

    def prepend(self, item: T) -> None:
        self._items.insert(0, item)

    def append(self, item: T) -> None:
        self._items.append(item)

    def get(self, item_id: Any) -> T | None:
        return next((x for x in self._items if self._key(x) == item_id), None)

    def update_by_id(self, item: T) -> bool:
        """Replace every row sharing ``item``'s id. Never removes or adds rows."""
        item_id = self._key(item)
        hit = False
        for i, x in enumerate(self._items):
            if self._key(x) == item_id:
                self._items[i] = item
                hit = True
        return hit

    def remove_by_id(self, item_id: Any) -> bool:
        before = len(self._items)
        self._items = [x for x in self._items if self._key(x) != item_id]
        return len(self._items) != before
