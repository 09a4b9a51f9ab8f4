#!/usr/bin/env python3
"""
Entry point for the squat repetition counter.

This script replays a recorded keypoint stream and delegates all processing
to squatcount.cli.main().
"""

from __future__ import annotations
from squatcount.cli import main

def build_argv() -> list[str]:
    return [
        "replay",
        r"./recordings/squats.jsonl",
        "--fps", "30",
        "--countdown", "5",
    ]


if __name__ == "__main__":
    raise SystemExit(main(build_argv()))
