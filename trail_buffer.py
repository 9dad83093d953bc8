from collections import deque


class TrailBuffer:
    """Cells the light most recently left, newest first.

    Holds `capacity` entries but only the first `visible` get a highlight
    level; the extra slot is kept as headroom for a longer tail.
    """

    def __init__(self, capacity: int = 4, visible: int = 3):
        if capacity < 1:
            raise ValueError(f"trail capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.visible = max(0, min(visible, capacity))
        self._entries: deque[int] = deque(maxlen=capacity)

    def push(self, index: int) -> None:
        self._entries.appendleft(index)

    def clear(self) -> None:
        self._entries.clear()

    @property
    def entries(self) -> tuple[int, ...]:
        return tuple(self._entries)

    def visible_entries(self) -> tuple[int, ...]:
        return tuple(self._entries)[:self.visible]

    def highlight_levels(self) -> dict[int, int]:
        """Cell -> highlight level (1 = newest). A cell that appears twice
        keeps its newest level."""
        levels: dict[int, int] = {}
        for level, index in enumerate(self.visible_entries(), start=1):
            levels.setdefault(index, level)
        return levels

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(tuple(self._entries))
