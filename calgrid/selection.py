"""Manual grid selection kept as an ordered set of slot ids."""

from collections.abc import Iterator

from .grid_config import DEFAULT_GRID, GridConfig


class CellSelection:
    """Slots a user has clicked while entering a calendar by hand.

    Ids keep the order in which they were first selected. Every operation is
    a direct lookup by id.
    """

    def __init__(self, grid: GridConfig = DEFAULT_GRID) -> None:
        self.grid = grid
        self._ids: dict[str, None] = {}

    def select(self, slot_id: str) -> None:
        self.grid.parse_slot_id(slot_id)
        self._ids.setdefault(slot_id)

    def unselect(self, slot_id: str) -> None:
        self._ids.pop(slot_id, None)

    def toggle(self, slot_id: str) -> bool:
        """Flip the selection state of a slot.

        Returns:
            True if the slot is selected after the call
        """
        if slot_id in self._ids:
            del self._ids[slot_id]
            return False
        self.select(slot_id)
        return True

    def clear(self) -> None:
        self._ids.clear()

    def ids(self) -> list[str]:
        return list(self._ids)

    def __contains__(self, slot_id: object) -> bool:
        return slot_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"CellSelection({self.ids()!r})"
