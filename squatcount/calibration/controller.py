"""One-shot calibration of the standing and squat reference poses.

The controller is a finite-state machine advanced by two inputs:

- ``tick()`` once per elapsed second of wall-clock time (see :class:`TickSource`),
- ``observe(poses)`` once per frame with the usable poses of that frame.

Stages run strictly in order and never restart within a session::

    IDLE -> CAPTURING_STANDING -> WAITING_TRANSITION -> READY_FOR_SQUAT_CAPTURE -> ARMED

The squat reference is taken from the first frame with a pose after the
second countdown has finished, which may lag the countdown by a few frames.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional, Sequence, Tuple

from squatcount.config import CounterConfig
from squatcount.output import OutputSink, PhaseIndicator
from squatcount.quality.failures import CalibrationAlreadyRunning, MissingCalibration
from squatcount.vision.keypoints import Pose

logger = logging.getLogger(__name__)

STANDING = "standing"
SQUAT = "squatPose"

STANDING_COUNTDOWN_MESSAGE = "Please hold still. The pose calibration will end in {seconds} seconds."
SQUAT_COUNTDOWN_MESSAGE = "Please hold still. The second pose calibration will end in {seconds} seconds."
START_MESSAGE = "start exercise!"


class CalibrationStage(str, Enum):
    IDLE = "idle"
    CAPTURING_STANDING = "capturing_standing"
    WAITING_TRANSITION = "waiting_transition"
    READY_FOR_SQUAT_CAPTURE = "ready_for_squat_capture"
    ARMED = "armed"


@dataclass
class CalibrationSessionState:
    """Flags driving the one-shot sequence.

    Attributes:
        executed: Set when calibration starts; never reset within a session.
        continue_pending: Set when the second countdown ends and cleared once
            the squat reference has been captured.
    """

    executed: bool = False
    continue_pending: bool = False


class CalibrationStore:
    """Reference poses keyed by name, at most one per name."""

    def __init__(self) -> None:
        self._poses: Dict[str, Pose] = {}

    def save(self, name: str, pose: Pose) -> None:
        self._poses[name] = pose

    def get(self, name: str) -> Pose:
        try:
            return self._poses[name]
        except KeyError:
            raise MissingCalibration(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._poses

    def __len__(self) -> int:
        return len(self._poses)

    def __iter__(self) -> Iterator[str]:
        return iter(self._poses)

    @property
    def is_complete(self) -> bool:
        return STANDING in self._poses and SQUAT in self._poses


class TickSource:
    """Convert monotonic timestamps into whole elapsed ticks.

    The schedule starts at the timestamp passed to :meth:`anchor`; until then
    :meth:`advance` reports no ticks.
    """

    def __init__(self, period: float = 1.0) -> None:
        if period <= 0:
            raise ValueError("period must be positive")
        self.period = period
        self._anchor: Optional[float] = None
        self._emitted = 0

    @property
    def anchored(self) -> bool:
        return self._anchor is not None

    def anchor(self, now: float) -> None:
        self._anchor = now
        self._emitted = 0

    def advance(self, now: float) -> int:
        """Return the number of ticks elapsed since the previous call."""
        if self._anchor is None:
            return 0
        elapsed = int((now - self._anchor) // self.period)
        if elapsed <= self._emitted:
            return 0
        new_ticks = elapsed - self._emitted
        self._emitted = elapsed
        return new_ticks


class CalibrationController:
    def __init__(
        self,
        store: CalibrationStore,
        sink: OutputSink,
        config: Optional[CounterConfig] = None,
    ) -> None:
        self.store = store
        self.sink = sink
        self.config = config or CounterConfig()
        self.state = CalibrationSessionState()
        self.stage = CalibrationStage.IDLE
        self.remaining = 0
        self._latest: Tuple[Pose, ...] = ()

    @property
    def armed(self) -> bool:
        return self.stage is CalibrationStage.ARMED

    def start(self) -> None:
        """Begin the standing countdown.

        Raises:
            CalibrationAlreadyRunning: if calibration was started before.
        """

        if self.state.executed:
            raise CalibrationAlreadyRunning("calibration standing pose rejected")
        self.state.executed = True
        self.stage = CalibrationStage.CAPTURING_STANDING
        self.remaining = self.config.countdown_seconds
        logger.info("Calibration started; standing countdown %ss", self.remaining)

    def observe(self, poses: Sequence[Pose]) -> None:
        """Record the latest frame and perform any capture waiting on a pose."""
        if not poses:
            return
        self._latest = tuple(poses)
        if self.stage is CalibrationStage.CAPTURING_STANDING and self.remaining == 0:
            self._capture_standing()
        elif self.state.continue_pending:
            self._capture_squat()

    def tick(self) -> None:
        """Advance the active countdown by one second."""
        if self.remaining <= 0:
            return
        if self.stage is CalibrationStage.CAPTURING_STANDING:
            self.remaining -= 1
            self.sink.show_message(STANDING_COUNTDOWN_MESSAGE.format(seconds=self.remaining))
            if self.remaining == 0:
                if self._latest:
                    self._capture_standing()
                else:
                    logger.warning("Standing countdown finished with no pose; waiting for a frame")
        elif self.stage is CalibrationStage.WAITING_TRANSITION:
            self.remaining -= 1
            self.sink.show_message(SQUAT_COUNTDOWN_MESSAGE.format(seconds=self.remaining))
            if self.remaining == 0:
                self.state.continue_pending = True
                self.stage = CalibrationStage.READY_FOR_SQUAT_CAPTURE
                logger.debug("Squat countdown finished; capturing on next frame")

    def _capture_standing(self) -> None:
        self.store.save(STANDING, self._latest[0])
        self.sink.show_instruction_image(self.config.instruction_image)
        self.sink.set_indicator(PhaseIndicator.CALIBRATING)
        self.stage = CalibrationStage.WAITING_TRANSITION
        self.remaining = self.config.countdown_seconds
        logger.info(
            "Captured standing reference at y=%.1f",
            self._latest[0].reference(self.config.reference_index).y,
        )

    def _capture_squat(self) -> None:
        pose = self._latest[-1]
        self.sink.set_indicator(PhaseIndicator.READY)
        self.store.save(SQUAT, pose)
        self.state.continue_pending = False
        self.sink.show_instruction_image(None)
        self.sink.show_message(START_MESSAGE)
        self.stage = CalibrationStage.ARMED
        logger.info("Captured squat reference at y=%.1f", pose.reference(self.config.reference_index).y)
