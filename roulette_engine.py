"""
Light Roulette - Engine
Runs the controller against a clock. iter_run_updates steps a simulated
clock and yields every update (headless runs, tests); RouletteEngine steps
the real clock on a worker thread at the configured frame rate.
"""

import threading
from typing import Callable, Iterable, Iterator, Optional

from config import Config, TimingMode
from grid_topology import GridTopology
from logging_utils import log_event
from run_controller import RunController, RunUpdate, clock_ms
from spectrum_source import SpectrumSource
from tick_sources import BeatGatedTicks, FixedIntervalTicks, TickSource


def iter_run_updates(controller: RunController,
                     topology: Optional[GridTopology],
                     tick_source: Optional[TickSource] = None,
                     start_time: Optional[float] = None,
                     frame_ms: float = 1000.0 / 60.0,
                     frames: Optional[Iterable] = None,
                     start_index: Optional[int] = None,
                     max_duration_ms: Optional[float] = None) -> Iterator[RunUpdate]:
    """Start a run and step it every frame_ms of simulated time until it
    finishes. frames supplies one spectrum per step (None once exhausted).
    The run is stopped if it outlasts max_duration_ms."""
    now = clock_ms() if start_time is None else start_time
    first = controller.start_run(topology, tick_source, now=now, start_index=start_index)
    if first is None:
        return
    yield first

    frame_iter = iter(frames) if frames is not None else None
    started = now
    while controller.is_running:
        now += frame_ms
        if max_duration_ms is not None and now - started > max_duration_ms:
            log_event("WARN", "Engine", "Run exceeded time limit, stopping",
                      limit_ms=max_duration_ms)
            controller.stop_run()
            return
        bins = next(frame_iter, None) if frame_iter is not None else None
        update = controller.step(now, bins)
        if update is not None:
            yield update


class RouletteEngine:
    """
    Real-time driver. start() launches a worker thread that prepares the
    timing, starts the run and steps it once per frame until it finishes or
    stop() is called.

    In beat mode the spectrum source is started and polled until ready; if
    it fails to start or stays silent past the retry limit, the run goes
    ahead on clock timing. Audio is never allowed to block the draw.
    """

    def __init__(self, config: Optional[Config] = None,
                 controller: Optional[RunController] = None,
                 source: Optional[SpectrumSource] = None,
                 on_update: Optional[Callable[[RunUpdate], None]] = None,
                 clock: Callable[[], float] = clock_ms):
        self.config = config or Config()
        self.controller = controller or RunController(self.config, on_update=on_update)
        if on_update is not None and controller is not None:
            self.controller.on_update = on_update
        self.source = source
        self.clock = clock
        self.timing: Optional[str] = None
        self._source_started = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, topology: Optional[GridTopology], start_index: Optional[int] = None) -> bool:
        if self.running:
            log_event("WARN", "Engine", "Already running")
            return False
        if topology is None:
            log_event("INFO", "Engine", "No entries, nothing to start")
            return False
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, args=(topology, start_index),
            name="RouletteEngine", daemon=True,
        )
        self._thread.start()
        return True

    def stop(self) -> None:
        """Cancel the run and release audio. Safe to call repeatedly."""
        self._stop_event.set()
        self.controller.stop_run()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)
        self._stop_source()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the worker. Returns True once it has exited."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def prepare_ticks(self) -> TickSource:
        """Pick the tick source, starting and waiting for audio in beat mode."""
        if self.config.timing_mode != TimingMode.BEAT:
            return self._clock_ticks()
        if self.source is None:
            log_event("WARN", "Engine", "Beat timing requested without an audio source, using clock")
            return self._clock_ticks()

        try:
            self.source.start()
            self._source_started = True
        except Exception as e:
            log_event("WARN", "Audio", f"Audio start failed: {e}, using clock timing")
            return self._clock_ticks()

        if self.wait_for_source():
            self.timing = "beat"
            return BeatGatedTicks(self.config.beat)
        return self._clock_ticks()

    def wait_for_source(self) -> bool:
        """Poll source readiness with a fixed delay, up to the attempt limit."""
        audio = self.config.audio
        for attempt in range(1, audio.ready_max_attempts + 1):
            if self.source.is_ready():
                log_event("DEBUG", "Audio", "Source ready", attempts=attempt)
                return True
            if self._stop_event.wait(audio.ready_retry_ms / 1000.0):
                return False
        log_event("WARN", "Audio", "Source not ready, using clock timing",
                  attempts=audio.ready_max_attempts, retry_ms=audio.ready_retry_ms)
        return False

    def _clock_ticks(self) -> FixedIntervalTicks:
        self.timing = "clock"
        return FixedIntervalTicks(self.config.run)

    def _run(self, topology: GridTopology, start_index: Optional[int]) -> None:
        tick_source = self.prepare_ticks()
        if self._stop_event.is_set():
            return
        if self.controller.start_run(topology, tick_source, now=self.clock(), start_index=start_index) is None:
            return

        frame_s = 1.0 / max(1, self.config.audio.frame_rate)
        use_audio = isinstance(tick_source, BeatGatedTicks)
        while not self._stop_event.is_set() and self.controller.is_running:
            bins = self.source.latest_bins() if use_audio else None
            self.controller.step(self.clock(), bins)
            self._stop_event.wait(frame_s)
        if self._stop_event.is_set():
            # stop() may have landed between its own stop_run and our start_run
            self.controller.stop_run()

    def _stop_source(self) -> None:
        if not self._source_started or self.source is None:
            return
        self._source_started = False
        try:
            self.source.stop()
        except Exception as e:
            log_event("WARN", "Audio", f"Audio stop failed: {e}")
