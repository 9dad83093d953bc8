import unittest

import numpy as np

from frequency_utils import band_upper_hz, compute_magnitudes, magnitudes_to_bytes


class TestFrequencyUtils(unittest.TestCase):
    def test_band_upper_hz(self):
        # 44100 Hz, 2048-point FFT => ~21.5 Hz per bin
        self.assertAlmostEqual(band_upper_hz(44100, 2048, 10), 215.33203125)
        self.assertEqual(band_upper_hz(44100, 0, 10), 0.0)

    def test_magnitudes_to_bytes_db_window(self):
        mags = np.array([1e-6, 10 ** (-65 / 20), 1.0])
        self.assertEqual(magnitudes_to_bytes(mags).tolist(), [0, 127, 255])

    def test_magnitudes_to_bytes_invalid_window(self):
        out = magnitudes_to_bytes(np.ones(4), min_db=-30.0, max_db=-30.0)
        self.assertEqual(out.tolist(), [0, 0, 0, 0])

    def test_compute_magnitudes_empty_or_none(self):
        self.assertEqual(compute_magnitudes(None, 8).tolist(), [0.0] * 4)
        self.assertEqual(compute_magnitudes(np.array([]), 8).tolist(), [0.0] * 4)

    def test_compute_magnitudes_peak_bin(self):
        # sample_rate=1024, fft=1024 => 1 Hz per bin
        t = np.arange(1024) / 1024.0
        tone = np.sin(2 * np.pi * 40 * t)
        mags = compute_magnitudes(tone, 1024)
        self.assertEqual(len(mags), 512)
        self.assertEqual(int(np.argmax(mags)), 40)

    def test_compute_magnitudes_mixes_channels(self):
        t = np.arange(256) / 256.0
        tone = np.sin(2 * np.pi * 8 * t)
        stereo = np.stack([tone, tone], axis=1)
        np.testing.assert_allclose(compute_magnitudes(stereo, 256), compute_magnitudes(tone, 256))


if __name__ == "__main__":
    unittest.main()
