"""
Light Roulette - Spectrum Sources
Supply one frequency-bin snapshot per frame to the beat-gated timing.
LiveSpectrumSource captures from an input device with sounddevice;
ReplaySpectrumSource serves frames that were computed ahead of time.
"""

import threading
from collections import deque
from typing import Iterable, Optional

import numpy as np

from config import AudioConfig
from frequency_utils import band_upper_hz, compute_magnitudes, magnitudes_to_bytes
from logging_utils import log_event


class SpectrumSource:
    """Interface the engine polls. latest_bins returns None until data exists."""

    def start(self) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError

    def is_ready(self) -> bool:
        raise NotImplementedError

    def latest_bins(self) -> Optional[np.ndarray]:
        raise NotImplementedError


class ReplaySpectrumSource(SpectrumSource):
    """Pre-computed frames, one per latest_bins call.

    ready_after: number of is_ready() polls that answer False first, to
    stand in for a decoder that needs time. ready_after=None never gets ready.
    """

    def __init__(self, frames: Iterable, ready_after: Optional[int] = 0, loop: bool = False):
        self.frames = [np.asarray(f) for f in frames]
        self.ready_after = ready_after
        self.loop = loop
        self.polls = 0
        self.started = False
        self._position = 0

    def start(self) -> None:
        self.started = True
        self._position = 0

    def stop(self) -> None:
        self.started = False

    def is_ready(self) -> bool:
        self.polls += 1
        if self.ready_after is None:
            return False
        return self.polls > self.ready_after

    def latest_bins(self) -> Optional[np.ndarray]:
        if not self.frames:
            return None
        if self._position >= len(self.frames):
            if not self.loop:
                return None
            self._position = 0
        frame = self.frames[self._position]
        self._position += 1
        return frame


class LiveSpectrumSource(SpectrumSource):
    """
    Captures audio with sounddevice and keeps the newest byte-range spectrum.

    The stream callback mixes to mono, appends to a rolling buffer of
    fft_size samples and recomputes the spectrum. The source reports ready
    once the first block has arrived.
    """

    def __init__(self, config: Optional[AudioConfig] = None, bass_bins: int = 10):
        self.config = config or AudioConfig()
        self.bass_bins = bass_bins
        self.stream = None
        self._lock = threading.Lock()
        self._samples: deque[float] = deque(maxlen=self.config.fft_size)
        self._bins: Optional[np.ndarray] = None
        self._ready = threading.Event()
        self.status_count = 0

    def start(self) -> None:
        """Open and start the input stream. Raises sounddevice.PortAudioError
        (or OSError when PortAudio is missing) if capture cannot begin."""
        if self.stream is not None:
            return
        import sounddevice as sd

        cfg = self.config
        self._ready.clear()
        self.stream = sd.InputStream(
            device=cfg.device_index,
            channels=cfg.channels,
            samplerate=cfg.sample_rate,
            blocksize=cfg.buffer_size,
            callback=self._audio_callback,
        )
        try:
            self.stream.start()
        except Exception:
            self.stream.close()
            self.stream = None
            raise
        log_event("INFO", "Audio", "Capture started",
                  device=cfg.device_index if cfg.device_index is not None else "default",
                  sample_rate=cfg.sample_rate,
                  bass_band_hz=f"0-{band_upper_hz(cfg.sample_rate, cfg.fft_size, self.bass_bins):.0f}")

    def stop(self) -> None:
        if self.stream is None:
            return
        try:
            self.stream.stop()
            self.stream.close()
        finally:
            self.stream = None
            self._ready.clear()
        log_event("INFO", "Audio", "Capture stopped", status_flags=self.status_count)

    def is_ready(self) -> bool:
        return self._ready.is_set()

    def latest_bins(self) -> Optional[np.ndarray]:
        with self._lock:
            return self._bins

    def _audio_callback(self, indata, frames, time_info, status):
        if status:
            self.status_count += 1
            log_event("DEBUG", "Audio", f"Stream status: {status}")
        self.process_block(indata)

    def process_block(self, block: np.ndarray) -> np.ndarray:
        """Fold one captured block into the rolling buffer and refresh bins."""
        data = np.asarray(block, dtype=np.float64)
        mono = data.mean(axis=1) if data.ndim > 1 else data
        cfg = self.config
        with self._lock:
            self._samples.extend(mono.tolist())
            mags = compute_magnitudes(np.fromiter(self._samples, dtype=np.float64), cfg.fft_size)
            self._bins = magnitudes_to_bytes(mags, cfg.min_db, cfg.max_db)
            bins = self._bins
        self._ready.set()
        return bins


def list_input_devices() -> list[tuple[int, str, int, float]]:
    """(index, name, input channels, default sample rate) for capture devices."""
    import sounddevice as sd

    devices = []
    for i, d in enumerate(sd.query_devices()):
        if d['max_input_channels'] > 0:
            devices.append((i, d['name'], d['max_input_channels'], d['default_samplerate']))
    return devices
