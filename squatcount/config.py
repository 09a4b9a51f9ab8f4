"""Shared configuration used across the counting pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_PREFIX = "SQUATCOUNT_"


@dataclass(frozen=True)
class CounterConfig:
    """Tunable thresholds for calibration, matching, and display.

    Attributes:
        minimum_part_confidence: Reference keypoints scoring at or below this
            value never produce a phase classification.
        minimum_pose_confidence: Poses whose overall score is below this value
            are dropped before calibration and counting.
        countdown_seconds: Length of each calibration countdown, in 1 Hz ticks.
        tolerance: Relative half-width of the vertical proximity band
            (0.05 means +/-5% around the calibrated y coordinate).
        reference_index: Index of the keypoint used for calibration and
            matching (0 is the nose for PoseNet-ordered keypoints).
        instruction_image: Image shown while the user moves into the squat.
        slider_top: Slider value shown when the user is standing.
        slider_bottom: Slider value shown at the bottom of the squat.
    """

    minimum_part_confidence: float = 0.3
    minimum_pose_confidence: float = 0.15
    countdown_seconds: int = 5
    tolerance: float = 0.05
    reference_index: int = 0
    instruction_image: str = "./images/squat.jpg"
    slider_top: float = 100.0
    slider_bottom: float = 0.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.minimum_part_confidence <= 1.0:
            raise ValueError("minimum_part_confidence must be within [0, 1]")
        if not 0.0 <= self.minimum_pose_confidence <= 1.0:
            raise ValueError("minimum_pose_confidence must be within [0, 1]")
        if self.countdown_seconds < 1:
            raise ValueError("countdown_seconds must be at least 1")
        if not 0.0 < self.tolerance < 1.0:
            raise ValueError("tolerance must be within (0, 1)")
        if self.reference_index < 0:
            raise ValueError("reference_index must be non-negative")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CounterConfig":
        """Build a config from ``SQUATCOUNT_*`` environment variables.

        Unset variables fall back to the dataclass defaults, e.g.
        ``SQUATCOUNT_COUNTDOWN_SECONDS=3`` shortens both countdowns.
        """

        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            minimum_part_confidence=float(
                env.get(f"{ENV_PREFIX}MINIMUM_PART_CONFIDENCE", defaults.minimum_part_confidence)
            ),
            minimum_pose_confidence=float(
                env.get(f"{ENV_PREFIX}MINIMUM_POSE_CONFIDENCE", defaults.minimum_pose_confidence)
            ),
            countdown_seconds=int(env.get(f"{ENV_PREFIX}COUNTDOWN_SECONDS", defaults.countdown_seconds)),
            tolerance=float(env.get(f"{ENV_PREFIX}TOLERANCE", defaults.tolerance)),
            reference_index=int(env.get(f"{ENV_PREFIX}REFERENCE_INDEX", defaults.reference_index)),
            instruction_image=env.get(f"{ENV_PREFIX}INSTRUCTION_IMAGE", defaults.instruction_image),
        )
