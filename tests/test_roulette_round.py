import random
import tempfile
import unittest
from pathlib import Path

from grid_topology import GridDimensions
from roulette_round import RouletteRound, parse_names


class TestParseNames(unittest.TestCase):
    def test_trims_and_drops_blank_lines(self):
        raw = "  Ann \n\n Bob\n   \nCy\r\n"
        self.assertEqual(parse_names(raw), ["Ann", "Bob", "Cy"])

    def test_empty_text(self):
        self.assertEqual(parse_names(""), [])
        self.assertEqual(parse_names("\n \n"), [])


class TestRouletteRound(unittest.TestCase):
    def test_builds_grid_and_idle_position(self):
        roulette = RouletteRound.from_text("Ann\nBob\nCy", random.Random(0))
        self.assertEqual(roulette.count, 3)
        self.assertTrue(roulette.can_start)
        self.assertEqual(roulette.topology.dimensions, GridDimensions(rows=2, cols=2))
        self.assertIn(roulette.idle_index, range(3))

    def test_empty_round_cannot_start(self):
        roulette = RouletteRound.from_text("   \n")
        self.assertFalse(roulette.can_start)
        self.assertIsNone(roulette.topology)
        self.assertIsNone(roulette.idle_index)

    def test_winner_name(self):
        roulette = RouletteRound.from_names(["Ann", "Bob"], random.Random(1))
        self.assertEqual(roulette.winner_name(1), "Bob")
        self.assertIsNone(roulette.winner_name(2))
        self.assertIsNone(roulette.winner_name(None))

    def test_from_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "names.txt"
            path.write_text("Ann\n\nBob\nCy\nDee\n", encoding="utf-8")
            roulette = RouletteRound.from_file(path, random.Random(2))
        self.assertEqual(roulette.names, ["Ann", "Bob", "Cy", "Dee"])
        self.assertEqual(roulette.topology.dimensions, GridDimensions(rows=2, cols=2))


if __name__ == "__main__":
    unittest.main()
