# Light Roulette Configuration
# All default values and constants

from dataclasses import dataclass, field, is_dataclass
from enum import IntEnum

from logging_utils import log_event


CURRENT_CONFIG_VERSION = 1

class TimingMode(IntEnum):
    """What decides when the light moves"""
    CLOCK = 1              # Fixed interval, cubic ease-out while slowing
    BEAT = 2               # Bass beats from live audio, with a fallback interval

@dataclass
class RunConfig:
    """Run phases and clock-driven timing (all times in ms)"""
    min_run_time_ms: float = 2000.0       # Full speed for at least this long
    slow_down_duration_ms: float = 4000.0  # Length of the deceleration phase
    base_interval_ms: float = 50.0        # Gap between moves at full speed
    slowdown_span_ms: float = 1000.0      # Extra gap added by the end of the slowdown
    trail_length: int = 4                 # Comet tail capacity
    visible_trail: int = 3                # Tail positions that get their own highlight

@dataclass
class WalkConfig:
    """Recency-weighted random walk"""
    recency_floor_ms: float = 100.0  # Added to time-since-visit so fresh cells keep some weight
    weight_exponent: float = 2.0     # 2 = quadratic hunger for stale cells
    jitter_low: float = 0.9          # Per-neighbor noise multiplier, lower bound (inclusive)
    jitter_high: float = 1.1         # Upper bound (exclusive)

@dataclass
class BeatGateConfig:
    """Beat-gated timing parameters"""
    bass_bins: int = 10                    # Lowest N spectrum bins form the bass band
    history_size: int = 20                 # Samples in the rolling average window
    beat_cooldown_ms: float = 60.0         # Ignore a second beat inside this gap
    threshold: float = 1.15                # Bass must exceed average * this while covering
    threshold_ramp: float = 1.5            # Extra threshold added by the end of the slowdown
    max_interval_ms: float = 100.0         # Fallback move when nothing happened for this long
    max_interval_ramp_ms: float = 900.0    # Extra fallback gap added by the end of the slowdown

@dataclass
class AudioConfig:
    """Audio capture settings"""
    sample_rate: int = 44100
    buffer_size: int = 1024
    channels: int = 2
    # Device index - None means use system default
    device_index: int | None = None
    fft_size: int = 2048              # Analyser FFT size; bins = fft_size / 2
    min_db: float = -100.0            # Magnitude mapped to byte 0
    max_db: float = -30.0             # Magnitude mapped to byte 255
    frame_rate: int = 60              # Engine frames per second
    ready_retry_ms: int = 100         # Poll interval while waiting for the source
    ready_max_attempts: int = 50      # Give up on audio after this many polls

@dataclass
class Config:
    """Master configuration"""
    version: int = 1                  # Schema version for persisted configs
    timing_mode: TimingMode = TimingMode.CLOCK
    run: RunConfig = field(default_factory=RunConfig)
    walk: WalkConfig = field(default_factory=WalkConfig)
    beat: BeatGateConfig = field(default_factory=BeatGateConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)

    # Global
    log_level: str = "INFO"           # Logging level (DEBUG/INFO/WARNING/ERROR)


def apply_dict_to_dataclass(target, data) -> None:
    """Recursively apply values from a dict onto a dataclass instance.
    Unknown keys are ignored; IntEnum fields are coerced when possible."""
    if not isinstance(data, dict):
        return

    for key, value in data.items():
        if not hasattr(target, key):
            continue

        current = getattr(target, key)

        if is_dataclass(current):
            if isinstance(value, dict):
                apply_dict_to_dataclass(current, value)
            else:
                log_event("WARN", "Config", f"Section {key} is not an object, keeping defaults")
            continue

        if isinstance(current, IntEnum):
            try:
                setattr(target, key, current.__class__(value))
                continue
            except ValueError:
                log_event("WARN", "Config", f"Could not convert {key} to {current.__class__.__name__}, keeping default")
                continue

        setattr(target, key, value)


def migrate_config(config: Config, loaded_version) -> None:
    """Upgrade older config structures to the current schema.
    Restores defaults for fields saved as null and bumps version."""
    try:
        version = int(loaded_version) if loaded_version is not None else 0
    except (TypeError, ValueError):
        version = 0

    if version < CURRENT_CONFIG_VERSION:
        log_event("INFO", "Config", "Migrating config", from_version=version, to_version=CURRENT_CONFIG_VERSION)

    defaults = Config()
    for section in ("run", "walk", "beat", "audio"):
        current = getattr(config, section)
        default = getattr(defaults, section)
        for name in vars(default):
            if name == "device_index":
                continue
            if getattr(current, name, None) is None:
                setattr(current, name, getattr(default, name))

    if getattr(config, 'log_level', None) is None:
        config.log_level = "INFO"

    # Jitter bounds must stay positive and ordered or weights can go to zero
    low = max(0.01, float(config.walk.jitter_low))
    high = max(low, float(config.walk.jitter_high))
    config.walk.jitter_low = low
    config.walk.jitter_high = high

    # Only the first trail slots that exist can be highlighted
    config.run.trail_length = max(1, int(config.run.trail_length))
    config.run.visible_trail = max(0, min(int(config.run.visible_trail), config.run.trail_length))

    config.version = CURRENT_CONFIG_VERSION

