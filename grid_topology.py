"""
Light Roulette - Grid Topology
Lays N entries out on a near-square grid and answers adjacency queries.
"""

import math
from dataclasses import dataclass
from typing import Optional


# Orthogonal first, then diagonal. Order is part of the contract: the
# weighted draw walks neighbors in this order.
NEIGHBOR_OFFSETS = (
    (-1, 0), (1, 0), (0, -1), (0, 1),
    (-1, -1), (-1, 1), (1, -1), (1, 1),
)


@dataclass(frozen=True)
class GridDimensions:
    rows: int
    cols: int

    @property
    def capacity(self) -> int:
        return self.rows * self.cols


def calculate_grid_dimensions(count: int) -> Optional[GridDimensions]:
    """Mostly square grid; 3 entries use 2 columns for a 2+1 layout.
    Returns None for an empty list."""
    if count < 0:
        raise ValueError(f"entry count must be >= 0, got {count}")
    if count == 0:
        return None

    cols = math.ceil(math.sqrt(count))
    if count == 3:
        cols = 2
    rows = math.ceil(count / cols)
    return GridDimensions(rows=rows, cols=cols)


def neighbors_of(index: int, dimensions: GridDimensions, count: int) -> list[int]:
    """Eight-way neighbors of index that exist. Cells past count in a sparse
    final row are skipped; nothing wraps across edges."""
    rows, cols = dimensions.rows, dimensions.cols
    r, c = divmod(index, cols)
    neighbors = []
    for dr, dc in NEIGHBOR_OFFSETS:
        nr, nc = r + dr, c + dc
        if not (0 <= nr < rows and 0 <= nc < cols):
            continue
        candidate = nr * cols + nc
        if candidate < count:
            neighbors.append(candidate)
    return neighbors


class GridTopology:
    """Dimensions plus precomputed neighbor lists for one round."""

    def __init__(self, count: int, dimensions: GridDimensions):
        self.count = count
        self.dimensions = dimensions
        self._neighbors = tuple(
            tuple(neighbors_of(i, dimensions, count)) for i in range(count)
        )

    def neighbors(self, index: int) -> tuple[int, ...]:
        if not 0 <= index < self.count:
            raise IndexError(f"cell {index} outside grid of {self.count}")
        return self._neighbors[index]

    def position(self, index: int) -> tuple[int, int]:
        """(row, col) of a cell."""
        return divmod(index, self.dimensions.cols)

    def __len__(self) -> int:
        return self.count

    def __repr__(self) -> str:
        return (f"GridTopology(count={self.count}, rows={self.dimensions.rows}, "
                f"cols={self.dimensions.cols})")


def build_topology(count: int) -> Optional[GridTopology]:
    """Build the topology for count entries, or None when there are none."""
    dimensions = calculate_grid_dimensions(count)
    if dimensions is None:
        return None
    return GridTopology(count, dimensions)
