from typing import Iterable

MAX_HISTORY_ITEMS = 20

class LocationHistory:
    """
    Recently used search locations, most recent first.

    Entries are compared case-insensitively; re-adding an entry moves it to
    the top. The list lives in memory only: use `to_list()` / `from_list()`
    to keep it in whatever settings store the application already has.
    """

    def __init__(self, items: Iterable[str] | None = None, *, max_items: int = MAX_HISTORY_ITEMS) -> None:
        self.max_items = max_items
        self._items: list[str] = []

        # Oldest first so the first given item ends up on top
        for item in reversed(list(items or [])):
            self.add(item)

    @classmethod
    def from_list(cls, items: Iterable[str], *, max_items: int = MAX_HISTORY_ITEMS) -> "LocationHistory":
        return cls(items, max_items=max_items)

    def add(self, location: str) -> None:
        if not location or not location.strip():
            return

        location = location.strip()
        key = location.casefold()
        self._items = [item for item in self._items if item.casefold() != key]
        self._items.insert(0, location)
        del self._items[self.max_items:]

    def to_list(self) -> list[str]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)
