"""
Light Roulette - Tick Sources
Decide when the light is allowed to move. The run controller owns the
phases; a tick source only answers "is a move due now".
"""

import math
from typing import Optional

from beat_detector import BeatDetector, BeatReading
from config import BeatGateConfig, RunConfig


def slowdown_interval(progress: float, base_ms: float = 50.0, span_ms: float = 1000.0) -> float:
    """Gap before the next move while slowing: cubic ease-out from base_ms
    to base_ms + span_ms as progress goes 0 -> 1."""
    p = min(1.0, max(0.0, progress))
    return base_ms + span_ms * (1.0 - (1.0 - p) ** 3)


def gate_threshold(progress: Optional[float], cfg: BeatGateConfig) -> float:
    """Beat strength multiplier. None progress means the covering phase."""
    if progress is None:
        return cfg.threshold
    return cfg.threshold + cfg.threshold_ramp * min(1.0, max(0.0, progress))


def gate_max_interval(progress: Optional[float], cfg: BeatGateConfig) -> float:
    """Longest quiet gap before a fallback move. None means covering."""
    if progress is None:
        return cfg.max_interval_ms
    return cfg.max_interval_ms + cfg.max_interval_ramp_ms * min(1.0, max(0.0, progress))


class TickSource:
    """
    Timing capability used by RunController.

    step_due: should the controller evaluate this frame at all.
    move_due: given the slowdown progress (None while covering) and the
        frame's spectrum bins, should the light move now.
    after_move: a move happened at now; schedule whatever comes next.
    """

    name = "tick"

    def reset(self, now: float) -> None:
        raise NotImplementedError

    def step_due(self, now: float) -> bool:
        raise NotImplementedError

    def move_due(self, now: float, progress: Optional[float], bins=None) -> bool:
        raise NotImplementedError

    def after_move(self, now: float, progress: Optional[float]) -> None:
        raise NotImplementedError


class FixedIntervalTicks(TickSource):
    """Clock-driven timing: a move every base interval, stretched by the
    cubic ease-out once the run is slowing."""

    name = "clock"

    def __init__(self, config: Optional[RunConfig] = None):
        self.config = config or RunConfig()
        self.next_due = 0.0
        self.current_interval = self.config.base_interval_ms

    def reset(self, now: float) -> None:
        # First move happens on the very first step
        self.next_due = now
        self.current_interval = self.config.base_interval_ms

    def step_due(self, now: float) -> bool:
        return now >= self.next_due

    def move_due(self, now: float, progress: Optional[float], bins=None) -> bool:
        return True

    def interval_for(self, progress: Optional[float]) -> float:
        if progress is None:
            return self.config.base_interval_ms
        return slowdown_interval(progress, self.config.base_interval_ms, self.config.slowdown_span_ms)

    def after_move(self, now: float, progress: Optional[float]) -> None:
        self.current_interval = self.interval_for(progress)
        self.next_due = now + self.current_interval


class BeatGatedTicks(TickSource):
    """
    Beat-driven timing: every frame is evaluated, and the light moves on a
    bass beat (bass above average * threshold, outside the cooldown) or,
    failing that, once max_interval has passed without a move. While
    slowing, both threshold and max_interval rise with progress so moves
    need stronger beats and become rarer.
    """

    name = "beat"

    def __init__(self, config: Optional[BeatGateConfig] = None,
                 detector: Optional[BeatDetector] = None):
        self.config = config or BeatGateConfig()
        self.detector = detector or BeatDetector(self.config.bass_bins, self.config.history_size)
        self.last_move = 0.0
        self.last_beat = -math.inf
        self.last_reading: Optional[BeatReading] = None
        self.beat_moves = 0
        self.fallback_moves = 0

    def reset(self, now: float) -> None:
        self.detector.reset()
        self.last_move = now
        self.last_beat = -math.inf
        self.last_reading = None
        self.beat_moves = 0
        self.fallback_moves = 0

    def step_due(self, now: float) -> bool:
        return True

    def move_due(self, now: float, progress: Optional[float], bins=None) -> bool:
        beat = False
        if bins is not None:
            self.last_reading = self.detector.update(bins)
            threshold = gate_threshold(progress, self.config)
            if (self.last_reading.is_beat(threshold)
                    and now - self.last_beat >= self.config.beat_cooldown_ms):
                self.last_beat = now
                beat = True

        if beat:
            self.beat_moves += 1
            return True

        if now - self.last_move > gate_max_interval(progress, self.config):
            self.fallback_moves += 1
            return True
        return False

    def after_move(self, now: float, progress: Optional[float]) -> None:
        self.last_move = now
