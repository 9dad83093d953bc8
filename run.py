#!/usr/bin/env python3
"""
Light Roulette - terminal launcher

Lays the entries out on a grid and runs one draw: the light races over
every cell, then slows to a stop on the winner. With --mode beat the light
moves on bass beats captured from an audio input device.
"""

import argparse
import cProfile
import random
import sys

import config_persistence
from config import TimingMode
from console_renderer import ConsoleRenderer
from logging_utils import log_event, set_log_level
from roulette_engine import RouletteEngine
from roulette_round import RouletteRound
from run_controller import RunController
from spectrum_source import LiveSpectrumSource, list_input_devices


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a light roulette draw")
    parser.add_argument("names", nargs="*", help="Entries (one cell each)")
    parser.add_argument("--names-file", help="Read entries from a file, one per line")
    parser.add_argument(
        "--mode",
        choices=["clock", "beat"],
        default=None,
        help="Timing source (default: saved config)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for a reproducible draw")
    parser.add_argument("--device", type=int, default=None, help="Audio input device index (beat mode)")
    parser.add_argument("--list-devices", action="store_true", help="List audio input devices and exit")
    parser.add_argument("--log-level", default=None, help="DEBUG/INFO/WARNING/ERROR")
    parser.add_argument("--no-clear", action="store_true", help="Append frames instead of redrawing")
    parser.add_argument(
        "--profile",
        action="store_true",
        help="Enable cProfile and save stats to --profile-out",
    )
    parser.add_argument(
        "--profile-out",
        default="profile.prof",
        help="Path to save cProfile stats (default: profile.prof)",
    )
    return parser


def run_app(args: argparse.Namespace) -> int:
    config = config_persistence.load_config()
    set_log_level(args.log_level or config.log_level)

    if args.mode is not None:
        config.timing_mode = TimingMode.BEAT if args.mode == "beat" else TimingMode.CLOCK
    if args.device is not None:
        config.audio.device_index = args.device

    rng = random.Random(args.seed)
    if args.names_file:
        try:
            roulette = RouletteRound.from_file(args.names_file, rng)
        except OSError as e:
            log_event("ERROR", "App", f"Could not read names file: {e}")
            return 1
    elif args.names:
        roulette = RouletteRound.from_names(args.names, rng)
    else:
        roulette = RouletteRound.from_text(sys.stdin.read(), rng)

    if not roulette.can_start:
        log_event("WARN", "App", "No entries given")
        return 1

    renderer = ConsoleRenderer(roulette.names, roulette.topology, clear=not args.no_clear)
    controller = RunController(config, rng=rng, on_update=renderer)
    controller.current_index = roulette.idle_index

    source = LiveSpectrumSource(config.audio, config.beat.bass_bins) if config.timing_mode == TimingMode.BEAT else None
    engine = RouletteEngine(config, controller=controller, source=source)

    engine.start(roulette.topology)
    try:
        while not engine.join(timeout=0.25):
            pass
    except KeyboardInterrupt:
        log_event("INFO", "App", "Interrupted")
    finally:
        engine.stop()

    update = controller.last_update
    if update is None or not update.finished:
        return 130
    log_event("INFO", "App", "Winner", name=roulette.winner_name(update.winner), timing=engine.timing)
    return 0


def main() -> None:
    args = build_parser().parse_args()

    if args.list_devices:
        for index, name, channels, rate in list_input_devices():
            print(f"[{index}] {name} ({channels} ch, {rate:.0f} Hz)")
        sys.exit(0)

    if args.profile:
        profiler = cProfile.Profile()
        profiler.enable()
        exit_code = run_app(args)
        profiler.disable()
        profiler.dump_stats(args.profile_out)
    else:
        exit_code = run_app(args)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
