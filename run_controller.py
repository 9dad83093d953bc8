"""
Light Roulette - Run Controller
Two-phase state machine for one draw: run at full speed until every cell
has been visited (and the minimum run time has passed), then ease down to a
stop. Timing comes from a TickSource; this module never sleeps.
"""

import random
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from config import Config
from grid_topology import GridTopology
from logging_utils import log_event
from recency_tracker import RecencyTracker
from tick_sources import FixedIntervalTicks, TickSource
from trail_buffer import TrailBuffer
from walk_selector import WalkSelector


# Epoch-anchored: an unseen cell (timestamp 0) outweighs any visited one
_CLOCK_ORIGIN_MS = time.time() * 1000.0 - time.monotonic() * 1000.0


def clock_ms() -> float:
    """Monotonic clock in milliseconds, on the same scale as wall time."""
    return _CLOCK_ORIGIN_MS + time.monotonic() * 1000.0


class RunState(Enum):
    IDLE = "idle"
    COVERING = "covering"      # Full speed until every cell has been visited
    SLOWING = "slowing"        # Easing toward the stop
    FINISHED = "finished"      # Light rests on the winner

    @property
    def live(self) -> bool:
        return self in (RunState.COVERING, RunState.SLOWING)


@dataclass
class RunSession:
    """Everything one run mutates. Built by start_run, dropped at the end."""
    topology: GridTopology
    tick_source: TickSource
    selector: WalkSelector
    tracker: RecencyTracker
    trail: TrailBuffer
    started_at: float
    current_index: int
    slowdown_started_at: Optional[float] = None
    moves: int = 0

    def elapsed(self, now: float) -> float:
        return now - self.started_at

    def progress(self, now: float, duration_ms: float) -> float:
        if self.slowdown_started_at is None:
            return 0.0
        if duration_ms <= 0:
            return 1.0
        return (now - self.slowdown_started_at) / duration_ms

    @property
    def covered(self) -> bool:
        return self.tracker.visited_count == self.topology.count


@dataclass(frozen=True)
class RunUpdate:
    """Snapshot handed to the renderer after every change"""
    current_index: int
    trail: tuple[int, ...]
    state: RunState
    timestamp: float
    progress: float = 0.0                 # Slowdown progress, 0 while covering
    winner: Optional[int] = None          # Set only on the finished update
    highlights: dict[int, int] = field(default_factory=dict)  # Cell -> trail level

    @property
    def finished(self) -> bool:
        return self.state is RunState.FINISHED


class RunController:
    """
    Drives one run at a time.

    Call start_run once, then step(now, bins) on every frame (or on a timer).
    Each step returns a RunUpdate when something changed, otherwise None;
    the same updates go to on_update. stop_run cancels a live run and is
    safe to call at any time.
    """

    def __init__(self, config: Optional[Config] = None,
                 rng: Optional[random.Random] = None,
                 on_update: Optional[Callable[[RunUpdate], None]] = None):
        self.config = config or Config()
        self.rng = rng if rng is not None else random.Random()
        self.on_update = on_update
        self.state = RunState.IDLE
        self.session: Optional[RunSession] = None
        self.current_index: Optional[int] = None
        self.last_update: Optional[RunUpdate] = None
        self._lock = threading.RLock()

    @property
    def is_running(self) -> bool:
        return self.state.live

    def start_run(self, topology: Optional[GridTopology],
                  tick_source: Optional[TickSource] = None,
                  now: Optional[float] = None,
                  start_index: Optional[int] = None) -> Optional[RunUpdate]:
        """Begin a run from start_index (default: where the light rests now).
        Returns the first update, or None if nothing can start."""
        with self._lock:
            if self.state.live:
                log_event("WARN", "Run", "Start ignored, a run is already live")
                return None
            if topology is None or topology.count == 0:
                log_event("INFO", "Run", "No entries, nothing to run")
                return None

            now = clock_ms() if now is None else now
            if start_index is None:
                if self.current_index is not None and 0 <= self.current_index < topology.count:
                    start_index = self.current_index
                else:
                    start_index = self.rng.randrange(topology.count)
            elif not 0 <= start_index < topology.count:
                raise ValueError(f"start index {start_index} outside grid of {topology.count}")

            tick_source = tick_source or FixedIntervalTicks(self.config.run)
            tracker = RecencyTracker()
            self.session = RunSession(
                topology=topology,
                tick_source=tick_source,
                selector=WalkSelector(topology, tracker, self.rng, self.config.walk),
                tracker=tracker,
                trail=TrailBuffer(self.config.run.trail_length, self.config.run.visible_trail),
                started_at=now,
                current_index=start_index,
            )
            tracker.record_visit(start_index, now)
            tick_source.reset(now)
            self.current_index = start_index
            self.state = RunState.COVERING

            log_event("INFO", "Run", "Started",
                      cells=topology.count, timing=tick_source.name, start=start_index)
            return self._emit(now)

    def step(self, now: Optional[float] = None, bins=None) -> Optional[RunUpdate]:
        """Advance the live run to now. bins is the frame's spectrum, if any."""
        with self._lock:
            session = self.session
            if not self.state.live or session is None:
                return None

            now = clock_ms() if now is None else now
            tick = session.tick_source
            if not tick.step_due(now):
                return None

            progress = None
            if self.state is RunState.SLOWING:
                progress = session.progress(now, self.config.run.slow_down_duration_ms)
                if progress >= 1.0:
                    return self._finish(now)

            if not tick.move_due(now, progress, bins):
                return None

            self._move(session, now)

            if (self.state is RunState.COVERING and session.covered
                    and session.elapsed(now) > self.config.run.min_run_time_ms):
                self.state = RunState.SLOWING
                session.slowdown_started_at = now
                log_event("DEBUG", "Run", "Coverage reached, slowing down",
                          elapsed_ms=f"{session.elapsed(now):.0f}", moves=session.moves)

            tick.after_move(now, progress)
            return self._emit(now, progress or 0.0)

    def stop_run(self) -> bool:
        """Cancel a live run. Returns False (and changes nothing) when idle."""
        with self._lock:
            if not self.state.live:
                return False
            moves = self.session.moves if self.session else 0
            self.state = RunState.IDLE
            self.session = None
            log_event("INFO", "Run", "Stopped", moves=moves)
            return True

    def reset(self, now: Optional[float] = None) -> Optional[RunUpdate]:
        """Back to idle with an empty trail; the light stays where it is."""
        with self._lock:
            self.stop_run()
            self.state = RunState.IDLE
            if self.current_index is None:
                self.last_update = None
                return None
            now = clock_ms() if now is None else now
            return self._publish(RunUpdate(
                current_index=self.current_index,
                trail=(),
                state=RunState.IDLE,
                timestamp=now,
            ))

    def _move(self, session: RunSession, now: float) -> None:
        next_index = session.selector.select(session.current_index, now)
        if next_index != session.current_index:
            session.tracker.record_visit(next_index, now)
        # The trail holds cells behind the head
        session.trail.push(session.current_index)
        session.current_index = next_index
        session.moves += 1
        self.current_index = next_index

    def _finish(self, now: float) -> RunUpdate:
        session = self.session
        self.state = RunState.FINISHED
        update = self._emit(now, 1.0, winner=session.current_index)
        log_event("INFO", "Run", "Finished",
                  winner=session.current_index,
                  moves=session.moves,
                  elapsed_ms=f"{session.elapsed(now):.0f}")
        self.session = None
        return update

    def _emit(self, now: float, progress: float = 0.0,
              winner: Optional[int] = None) -> RunUpdate:
        session = self.session
        return self._publish(RunUpdate(
            current_index=session.current_index,
            trail=session.trail.entries,
            state=self.state,
            timestamp=now,
            progress=progress,
            winner=winner,
            highlights=session.trail.highlight_levels(),
        ))

    def _publish(self, update: RunUpdate) -> RunUpdate:
        self.last_update = update
        if self.on_update is not None:
            self.on_update(update)
        return update
