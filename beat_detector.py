"""
Light Roulette - Beat Detector
Turns per-frame spectrum snapshots into a bass energy reading and a rolling
average, the two values the beat-gated timing compares.
"""

from collections import deque
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class BeatReading:
    """Bass level for one frame"""
    bass_energy: float    # Mean magnitude of the bass bins this frame
    avg_energy: float     # Mean of the rolling window, this frame included

    def is_beat(self, threshold: float) -> bool:
        return self.bass_energy > self.avg_energy * threshold


class BeatDetector:
    """
    Rolling-average bass detector.

    Each frame the first `bass_bins` magnitudes are averaged into one bass
    energy value, which is pushed into a FIFO window of `history_size`
    samples. No smoothing is applied beyond the window mean.
    """
    __slots__ = ('bass_bins', 'history_size', '_history', 'last_reading')

    def __init__(self, bass_bins: int = 10, history_size: int = 20):
        if bass_bins < 1 or history_size < 1:
            raise ValueError("bass_bins and history_size must be >= 1")
        self.bass_bins = bass_bins
        self.history_size = history_size
        self._history: deque[float] = deque(maxlen=history_size)
        self.last_reading: BeatReading | None = None

    def update(self, bins) -> BeatReading:
        """Feed one spectrum snapshot (byte-range magnitudes per bin)."""
        band = np.asarray(bins, dtype=np.float64)[:self.bass_bins]
        bass_energy = float(np.mean(band)) if band.size else 0.0
        self._history.append(bass_energy)
        avg_energy = float(np.mean(self._history))
        self.last_reading = BeatReading(bass_energy=bass_energy, avg_energy=avg_energy)
        return self.last_reading

    @property
    def history(self) -> tuple[float, ...]:
        return tuple(self._history)

    def reset(self) -> None:
        """Clear the window for a fresh start."""
        self._history.clear()
        self.last_reading = None
