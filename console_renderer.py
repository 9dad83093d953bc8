import sys
from typing import Optional, TextIO

from grid_topology import GridTopology
from run_controller import RunUpdate

HEAD_MARK = "@"
TRAIL_MARKS = {1: "#", 2: "+", 3: "."}
CLEAR_SCREEN = "\x1b[H\x1b[2J"


def _cell_text(name: str, width: int, mark: str) -> str:
    label = name if len(name) <= width else name[:width - 1] + "~"
    return f"{mark}{label.ljust(width)}{mark}"


def render_grid(names: list[str], topology: GridTopology, update: Optional[RunUpdate],
                cell_width: Optional[int] = None) -> str:
    """Grid as text rows. The head is bracketed with @, the visible trail
    with #, + and . (newest first). Empty slots in a sparse last row are blank."""
    width = cell_width or max(4, min(16, max((len(n) for n in names), default=4)))
    head = update.current_index if update is not None else None
    levels = update.highlights if update is not None else {}

    rows = []
    cols = topology.dimensions.cols
    for r in range(topology.dimensions.rows):
        cells = []
        for c in range(cols):
            index = r * cols + c
            if index >= topology.count:
                cells.append(" " * (width + 2))
                continue
            if index == head:
                mark = HEAD_MARK
            else:
                mark = TRAIL_MARKS.get(levels.get(index, 0), " ")
            cells.append(_cell_text(names[index], width, mark))
        rows.append(" ".join(cells).rstrip())
    return "\n".join(rows)


def render_winner(names: list[str], update: RunUpdate) -> str:
    if update.winner is None or not 0 <= update.winner < len(names):
        return ""
    return f"*** {names[update.winner]} ***"


class ConsoleRenderer:
    """RunUpdate callback that redraws the grid on a text stream."""

    def __init__(self, names: list[str], topology: GridTopology,
                 stream: TextIO = sys.stdout, clear: bool = True):
        self.names = names
        self.topology = topology
        self.stream = stream
        self.clear = clear
        self.frames_drawn = 0

    def __call__(self, update: RunUpdate) -> None:
        text = render_grid(self.names, self.topology, update)
        if update.finished:
            text = f"{text}\n\n{render_winner(self.names, update)}"
        if self.clear:
            self.stream.write(CLEAR_SCREEN)
        self.stream.write(text + "\n")
        self.stream.flush()
        self.frames_drawn += 1
