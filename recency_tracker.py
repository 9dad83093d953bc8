class RecencyTracker:
    """Last-visit timestamp per cell for the current run.

    A cell that was never visited counts as visited at time 0, so its
    time_since is the whole clock value and it gets the largest weight.
    """

    __slots__ = ('_last_visit',)

    def __init__(self):
        self._last_visit: dict[int, float] = {}

    def record_visit(self, index: int, now: float) -> None:
        self._last_visit[index] = now

    def time_since(self, index: int, now: float) -> float:
        return now - self._last_visit.get(index, 0.0)

    def has_visited(self, index: int) -> bool:
        return index in self._last_visit

    @property
    def visited_count(self) -> int:
        return len(self._last_visit)

    def clear(self) -> None:
        self._last_visit.clear()
