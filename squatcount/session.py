"""Per-session pipeline: gating, calibration, classification, counting.

An :class:`ExerciseSession` owns every piece of mutable state for one
exercise session (calibration flags, reference poses, cycle state, counter).
Construct one per session and drop it when the session ends; counts are
reset only by starting a new session.

Frames are processed one at a time. Each call to :meth:`process_frame`
commits all of its display updates before returning.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from squatcount.calibration.controller import (
    CalibrationController,
    CalibrationStage,
    CalibrationStore,
    TickSource,
)
from squatcount.config import CounterConfig
from squatcount.output import FanoutSink, OutputSink, PhaseIndicator, RecordingSink
from squatcount.quality.failures import CalibrationAlreadyRunning, usable_poses
from squatcount.repdetect.cycles import CycleCounter, CycleUpdate
from squatcount.vision.keypoints import Pose

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameReport:
    """What the display should show after a frame has been processed."""

    frame_index: int
    counter: int
    slider: float
    indicator: PhaseIndicator
    message: str
    instruction_image: Optional[str]
    stage: CalibrationStage
    phases: Tuple[str, ...]
    phase: Optional[str]
    detected: bool


class ExerciseSession:
    def __init__(self, config: Optional[CounterConfig] = None, sink: Optional[OutputSink] = None) -> None:
        self.config = config or CounterConfig()
        self.display = RecordingSink(keep_events=False)
        self.sink: OutputSink = FanoutSink(self.display, sink) if sink is not None else self.display
        self.store = CalibrationStore()
        self.calibration = CalibrationController(self.store, self.sink, self.config)
        self.counter = CycleCounter(self.store, self.sink, self.config)
        self.ticks = TickSource()
        self.frame_index = -1
        self._last_update: Optional[CycleUpdate] = None
        self._last_detected = False

    @property
    def count(self) -> int:
        return self.counter.count

    def tick(self, ticks: int = 1) -> None:
        """Advance the calibration countdown by ``ticks`` seconds."""
        for _ in range(ticks):
            self.calibration.tick()

    def advance_clock(self, now: float) -> int:
        """Feed a monotonic timestamp; returns the number of ticks applied."""
        elapsed = self.ticks.advance(now)
        self.tick(elapsed)
        return elapsed

    def process_frame(self, poses: Sequence[Pose], timestamp: Optional[float] = None) -> FrameReport:
        """Run the whole pipeline for one frame.

        Args:
            poses: Poses reported by the estimator for this frame, possibly
                empty. Unusable poses are dropped.
            timestamp: Optional monotonic time (seconds) of the frame. When
                given it drives the calibration countdown; otherwise callers
                advance it with :meth:`tick` or :meth:`advance_clock`.
        """

        self.frame_index += 1
        if timestamp is not None:
            self.advance_clock(timestamp)

        usable = usable_poses(
            poses,
            minimum_pose_confidence=self.config.minimum_pose_confidence,
            reference_index=self.config.reference_index,
        )
        if len(usable) < len(poses):
            logger.debug("Frame %d: dropped %d unusable pose(s)", self.frame_index, len(poses) - len(usable))

        update: Optional[CycleUpdate] = None
        for pose in usable:
            if not self.calibration.state.executed and timestamp is not None:
                self.ticks.anchor(timestamp)
            try:
                self.calibration.start()
            except CalibrationAlreadyRunning:
                logger.debug("Frame %d: calibration already started; ignoring", self.frame_index)
            update = self.counter.update(pose) or update

        self.calibration.observe(usable)
        self._last_update = update
        self._last_detected = bool(usable)
        return self.report()

    def report(self) -> FrameReport:
        """Return the current display state along with the latest frame's classification."""
        update = self._last_update
        return FrameReport(
            frame_index=self.frame_index,
            counter=self.counter.count,
            slider=self.display.slider,
            indicator=self.display.indicator,
            message=self.display.message,
            instruction_image=self.display.instruction_image,
            stage=self.calibration.stage,
            phases=tuple(sorted(self.counter.state.phases)),
            phase=update.phase if update is not None else None,
            detected=self._last_detected,
        )
