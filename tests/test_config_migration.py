import json
import tempfile
from dataclasses import asdict
from pathlib import Path
import unittest
from unittest import mock

from config import (
    Config,
    CURRENT_CONFIG_VERSION,
    TimingMode,
    apply_dict_to_dataclass,
    migrate_config,
)
import config_persistence as config_persistence_module


class TestConfigMigration(unittest.TestCase):
    def test_missing_version_bumps(self):
        cfg = Config()
        data = {
            # version intentionally omitted to simulate legacy file
            "run": {},
            "beat": {},
        }

        apply_dict_to_dataclass(cfg, data)
        migrate_config(cfg, data.get("version"))

        self.assertEqual(cfg.version, CURRENT_CONFIG_VERSION)
        self.assertEqual(cfg.run.min_run_time_ms, 2000.0)
        self.assertEqual(cfg.beat.threshold, 1.15)

    def test_none_values_are_sanitized(self):
        cfg = Config()
        data = {
            "version": 0,
            "run": {"slow_down_duration_ms": None, "trail_length": None},
            "walk": {"weight_exponent": None},
            "audio": {"device_index": None, "ready_max_attempts": None},
            "log_level": None,
        }

        apply_dict_to_dataclass(cfg, data)
        migrate_config(cfg, data.get("version"))

        self.assertEqual(cfg.version, CURRENT_CONFIG_VERSION)
        self.assertEqual(cfg.run.slow_down_duration_ms, 4000.0)
        self.assertEqual(cfg.run.trail_length, 4)
        self.assertEqual(cfg.walk.weight_exponent, 2.0)
        self.assertEqual(cfg.audio.ready_max_attempts, 50)
        self.assertIsNone(cfg.audio.device_index)
        self.assertEqual(cfg.log_level, "INFO")

    def test_preserves_custom_values(self):
        cfg = Config()
        data = {
            "version": 1,
            "timing_mode": 2,
            "run": {"min_run_time_ms": 3500.0},
            "beat": {"beat_cooldown_ms": 80.0},
            "audio": {"device_index": 7},
        }

        apply_dict_to_dataclass(cfg, data)
        migrate_config(cfg, data.get("version"))

        self.assertIs(cfg.timing_mode, TimingMode.BEAT)
        self.assertEqual(cfg.run.min_run_time_ms, 3500.0)
        self.assertEqual(cfg.beat.beat_cooldown_ms, 80.0)
        self.assertEqual(cfg.audio.device_index, 7)

    def test_bad_enum_keeps_default(self):
        cfg = Config()
        apply_dict_to_dataclass(cfg, {"timing_mode": 99})
        self.assertIs(cfg.timing_mode, TimingMode.CLOCK)

    def test_unknown_keys_ignored(self):
        cfg = Config()
        apply_dict_to_dataclass(cfg, {"theme": "rainbow", "run": {"speed": 3}})
        self.assertFalse(hasattr(cfg, "theme"))
        self.assertFalse(hasattr(cfg.run, "speed"))

    def test_trail_and_jitter_are_clamped(self):
        cfg = Config()
        cfg.run.trail_length = 2
        cfg.run.visible_trail = 5
        cfg.walk.jitter_low = 1.2
        cfg.walk.jitter_high = 1.0
        migrate_config(cfg, CURRENT_CONFIG_VERSION)

        self.assertEqual(cfg.run.visible_trail, 2)
        self.assertEqual(cfg.walk.jitter_low, 1.2)
        self.assertEqual(cfg.walk.jitter_high, 1.2)

    def test_load_config_auto_saves_bumped_version(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cfg_file = Path(tmpdir) / "config.json"
            legacy = Config()
            legacy.version = 0
            legacy_data = asdict(legacy)
            legacy_data["run"]["trail_length"] = None
            with open(cfg_file, "w", encoding="utf-8") as f:
                json.dump(legacy_data, f)

            with mock.patch.object(config_persistence_module, "get_config_file", return_value=cfg_file):
                cfg = config_persistence_module.load_config()

            self.assertEqual(cfg.version, CURRENT_CONFIG_VERSION)
            self.assertEqual(cfg.run.trail_length, 4)
            with open(cfg_file, "r", encoding="utf-8") as f:
                persisted = json.load(f)
            self.assertEqual(persisted.get("version"), CURRENT_CONFIG_VERSION)


if __name__ == "__main__":
    unittest.main()
