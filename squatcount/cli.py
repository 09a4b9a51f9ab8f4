"""Command-line interface for replaying recorded keypoint streams.

Usage:
    squatcount replay recording.jsonl [--fps 30] [--countdown 5] [--quiet]

Each frame's timestamp stands in for the wall clock, so calibration
countdowns elapse exactly as they did while recording.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from squatcount.config import CounterConfig
from squatcount.output import PhaseIndicator
from squatcount.session import ExerciseSession
from squatcount.vision.recording import RecordingError, load_pose_frames


def eprint(*args: object) -> None:
    print(*args, file=sys.stderr)


class TerminalSink:
    """Print counter updates to stdout and status changes to stderr."""

    def __init__(self, quiet: bool = False) -> None:
        self.quiet = quiet
        self._last_message = ""

    def show_counter(self, count: int) -> None:
        if not self.quiet:
            print(f"reps: {count}")

    def move_slider(self, value: float) -> None:
        pass

    def set_indicator(self, indicator: PhaseIndicator) -> None:
        if not self.quiet:
            eprint(f"[{indicator.value}]")

    def show_message(self, text: str) -> None:
        if not self.quiet and text != self._last_message:
            eprint(text)
        self._last_message = text

    def show_instruction_image(self, path: Optional[str]) -> None:
        if not self.quiet and path:
            eprint(f"(next pose: {path})")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="squatcount", description="Count squat repetitions from pose keypoints.")
    sub = p.add_subparsers(dest="command", required=True)

    replay = sub.add_parser("replay", help="Replay a JSONL keypoint recording through a fresh session.")
    replay.add_argument("recording", help="Path to a JSONL recording (one frame per line).")
    replay.add_argument("--fps", type=float, default=None,
                        help="Frame rate used for frames without a timestamp.")
    replay.add_argument("--countdown", type=int, default=None,
                        help="Seconds per calibration countdown (default: config/env, 5).")
    replay.add_argument("--min-part-confidence", type=float, default=None, dest="min_part_confidence",
                        help="Reference keypoint confidence threshold (default: config/env, 0.3).")
    replay.add_argument("--quiet", action="store_true",
                        help="Only print the final repetition count.")
    replay.add_argument("--verbose", action="store_true",
                        help="Enable debug logging on stderr.")

    return p.parse_args(argv)


def validate_args(args: argparse.Namespace) -> None:
    if args.fps is not None and args.fps <= 0:
        raise ValueError("--fps must be positive if provided.")
    if args.countdown is not None and args.countdown < 1:
        raise ValueError("--countdown must be at least 1.")
    if not Path(args.recording).expanduser().is_file():
        raise FileNotFoundError(f"Recording not found: {args.recording}")


def build_config(args: argparse.Namespace) -> CounterConfig:
    base = CounterConfig.from_env()
    overrides = {}
    if args.countdown is not None:
        overrides["countdown_seconds"] = args.countdown
    if args.min_part_confidence is not None:
        overrides["minimum_part_confidence"] = args.min_part_confidence
    return replace(base, **overrides)


def run_replay(args: argparse.Namespace) -> int:
    try:
        validate_args(args)
        config = build_config(args)
    except (ValueError, FileNotFoundError) as ex:
        eprint(f"Error: {ex}")
        return 2

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    session = ExerciseSession(config, sink=TerminalSink(quiet=args.quiet))
    frames = 0
    try:
        for frame in load_pose_frames(Path(args.recording).expanduser(), fps=args.fps):
            session.process_frame(frame.poses, timestamp=frame.timestamp)
            frames += 1
    except (OSError, RecordingError) as ex:
        eprint(f"Error: {ex}")
        return 1

    report = session.report()
    if not args.quiet:
        eprint(f"Processed {frames} frame(s); calibration stage: {report.stage.value}")
    print(report.counter)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args.command == "replay":
        return run_replay(args)
    eprint(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
