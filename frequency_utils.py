import numpy as np


def band_upper_hz(sample_rate: int, fft_size: int, n_bins: int) -> float:
    """Upper edge (Hz) of the lowest n_bins of an fft_size spectrum."""
    if fft_size <= 0:
        return 0.0
    return n_bins * sample_rate / fft_size


def compute_magnitudes(samples: np.ndarray | None, fft_size: int) -> np.ndarray:
    """Hann-windowed magnitude spectrum of the newest fft_size samples.
    Returns fft_size // 2 bins; shorter input is zero-padded at the front."""
    n_bins = fft_size // 2
    if samples is None or len(samples) == 0:
        return np.zeros(n_bins)

    data = np.asarray(samples, dtype=np.float64)
    if data.ndim > 1:
        data = data.mean(axis=1)
    if len(data) >= fft_size:
        data = data[-fft_size:]
    else:
        data = np.concatenate([np.zeros(fft_size - len(data)), data])

    spectrum = np.fft.rfft(data * np.hanning(fft_size))
    return np.abs(spectrum[:n_bins]) / fft_size


def magnitudes_to_bytes(magnitudes: np.ndarray, min_db: float = -100.0, max_db: float = -30.0) -> np.ndarray:
    """Map linear magnitudes onto 0..255 through a dB window, the scale a
    browser analyser node reports."""
    mags = np.asarray(magnitudes, dtype=np.float64)
    if max_db <= min_db:
        return np.zeros(mags.shape, dtype=np.uint8)
    db = 20.0 * np.log10(np.maximum(mags, 1e-12))
    scaled = 255.0 * (db - min_db) / (max_db - min_db)
    return np.clip(np.floor(scaled), 0, 255).astype(np.uint8)
