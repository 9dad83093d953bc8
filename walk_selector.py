"""
Light Roulette - Walk Selector
Picks the light's next cell with a random walk biased toward the neighbors
that have gone longest without a visit.
"""

import random
from typing import Optional

from config import WalkConfig
from grid_topology import GridTopology
from recency_tracker import RecencyTracker


class WalkSelector:
    """
    Recency-weighted random walk over a GridTopology.

    Each neighbor gets weight (time_since_visit + floor) ** exponent, times a
    small per-neighbor jitter. With the default exponent of 2 the walk is
    strongly drawn to unvisited cells, which is what makes the light cover
    the whole grid instead of drifting around one corner. The jitter breaks
    ties and stops the walk settling into a fixed loop.
    """

    def __init__(self, topology: GridTopology, tracker: RecencyTracker,
                 rng: Optional[random.Random] = None,
                 config: Optional[WalkConfig] = None):
        self.topology = topology
        self.tracker = tracker
        self.rng = rng if rng is not None else random.Random()
        self.config = config or WalkConfig()

    def neighbor_weights(self, index: int, now: float) -> list[tuple[int, float]]:
        """(neighbor, weight) pairs in topology order, jitter drawn fresh."""
        cfg = self.config
        jitter_span = cfg.jitter_high - cfg.jitter_low
        weights = []
        for n in self.topology.neighbors(index):
            base = (self.tracker.time_since(n, now) + cfg.recency_floor_ms) ** cfg.weight_exponent
            jitter = cfg.jitter_low + self.rng.random() * jitter_span
            weights.append((n, base * jitter))
        return weights

    def select(self, current: int, now: float) -> int:
        """Mark current as visited at now and return the next cell."""
        self.tracker.record_visit(current, now)

        weights = self.neighbor_weights(current, now)
        if not weights:
            # Single-cell grid: the light stays put
            return current

        total = sum(w for _, w in weights)
        if total <= 0:
            return weights[0][0]

        remaining = self.rng.random() * total
        for index, weight in weights:
            remaining -= weight
            if remaining <= 0:
                return index
        # Float rounding can leave a sliver above zero
        return weights[0][0]
