import random
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from grid_topology import GridTopology, build_topology
from logging_utils import log_event


def parse_names(raw: str) -> list[str]:
    """One entry per line; surrounding whitespace and blank lines dropped."""
    return [line.strip() for line in raw.splitlines() if line.strip()]


@dataclass
class RouletteRound:
    """One parse-and-build of the name list. Cell i holds names[i]."""
    names: list[str]
    topology: Optional[GridTopology]
    idle_index: Optional[int] = None   # Where the light sits before the first run

    @classmethod
    def from_names(cls, names: list[str], rng: Optional[random.Random] = None) -> "RouletteRound":
        rng = rng if rng is not None else random.Random()
        topology = build_topology(len(names))
        idle_index = rng.randrange(len(names)) if names else None
        if topology is not None:
            log_event("INFO", "Round", "Grid built", entries=len(names),
                      rows=topology.dimensions.rows, cols=topology.dimensions.cols)
        else:
            log_event("INFO", "Round", "No entries, grid left empty")
        return cls(names=list(names), topology=topology, idle_index=idle_index)

    @classmethod
    def from_text(cls, raw: str, rng: Optional[random.Random] = None) -> "RouletteRound":
        return cls.from_names(parse_names(raw), rng)

    @classmethod
    def from_file(cls, path, rng: Optional[random.Random] = None) -> "RouletteRound":
        with open(Path(path), 'r', encoding='utf-8') as f:
            return cls.from_text(f.read(), rng)

    @property
    def count(self) -> int:
        return len(self.names)

    @property
    def can_start(self) -> bool:
        return self.topology is not None

    def winner_name(self, index: Optional[int]) -> Optional[str]:
        if index is None or not 0 <= index < len(self.names):
            return None
        return self.names[index]
