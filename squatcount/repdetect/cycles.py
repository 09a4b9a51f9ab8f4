"""Repetition counting from per-frame phase classification.

A rep is one standing -> squat -> standing cycle. The phase reached so far is
tracked by set membership: each classification adds its label to the set,
and the set is cleared (and the counter bumped) only when it already holds
both labels and the current frame is standing. Repeated observations of the
same phase therefore never double count, and a squat frame never closes a
cycle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Set

from squatcount.calibration.controller import SQUAT, STANDING, CalibrationStore
from squatcount.config import CounterConfig
from squatcount.output import OutputSink
from squatcount.signals.proximity import is_any_keypoint_close_to_calibrated
from squatcount.vision.keypoints import Pose

logger = logging.getLogger(__name__)

STANDING_PHASE = "standingPose"
SQUAT_PHASE = "squatPose"


@dataclass
class CycleState:
    phases: Set[str] = field(default_factory=set)
    full_cycles_counted: int = 0


@dataclass(frozen=True)
class CycleUpdate:
    """Outcome of classifying one pose."""

    is_standing: bool
    is_squat: bool
    slider: float
    completed: bool

    @property
    def phase(self) -> Optional[str]:
        if self.is_standing:
            return STANDING_PHASE
        if self.is_squat:
            return SQUAT_PHASE
        return None


class CycleCounter:
    def __init__(
        self,
        store: CalibrationStore,
        sink: OutputSink,
        config: Optional[CounterConfig] = None,
        state: Optional[CycleState] = None,
    ) -> None:
        self.store = store
        self.sink = sink
        self.config = config or CounterConfig()
        self.state = state or CycleState()

    @property
    def count(self) -> int:
        return self.state.full_cycles_counted

    def _matches(self, pose: Pose, calibrated: Pose) -> bool:
        return is_any_keypoint_close_to_calibrated(
            pose,
            calibrated,
            minimum_part_confidence=self.config.minimum_part_confidence,
            tolerance=self.config.tolerance,
            reference_index=self.config.reference_index,
        )

    def update(self, pose: Pose) -> Optional[CycleUpdate]:
        """Classify ``pose`` and advance the cycle state.

        Returns None without touching any state while either reference pose
        is missing.
        """

        if not self.store.is_complete:
            return None
        squat_pose = self.store.get(SQUAT)
        standing_pose = self.store.get(STANDING)
        is_squat = self._matches(pose, squat_pose)
        is_standing = self._matches(pose, standing_pose)

        index = self.config.reference_index
        slider = abs(pose.reference(index).y - squat_pose.reference(index).y)
        self.sink.move_slider(slider)

        # Standing wins when a frame satisfies both bands.
        if is_standing:
            self.state.phases.add(STANDING_PHASE)
            slider = self.config.slider_top
            self.sink.move_slider(slider)
        elif is_squat:
            self.state.phases.add(SQUAT_PHASE)
            slider = self.config.slider_bottom
            self.sink.move_slider(slider)

        completed = self._close_cycle(is_standing)
        return CycleUpdate(is_standing=is_standing, is_squat=is_squat, slider=slider, completed=completed)

    def _close_cycle(self, is_standing: bool) -> bool:
        if not (is_standing and {STANDING_PHASE, SQUAT_PHASE} <= self.state.phases):
            return False
        self.state.full_cycles_counted += 1
        self.state.phases.clear()
        self.sink.show_counter(self.state.full_cycles_counted)
        logger.info("Repetition %d completed", self.state.full_cycles_counted)
        return True
