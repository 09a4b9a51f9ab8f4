"""Error taxonomy and frame gating.

None of these conditions is fatal: the session treats an unusable frame as
"no detection" and carries on with the next one.
"""

from __future__ import annotations

import math
from typing import Iterable, List

from squatcount.vision.keypoints import Pose


class CalibrationAlreadyRunning(RuntimeError):
    """Raised when calibration is started a second time in a session.

    Calibration runs once per session; callers are expected to ignore this.
    """


class MissingCalibration(KeyError):
    """Raised when a reference pose has not been captured yet."""


def is_usable_pose(pose: Pose, *, minimum_pose_confidence: float, reference_index: int = 0) -> bool:
    """Return True if ``pose`` can take part in calibration and counting."""
    if pose.score < minimum_pose_confidence:
        return False
    if len(pose.keypoints) <= reference_index:
        return False
    reference = pose.keypoints[reference_index]
    return math.isfinite(reference.position.x) and math.isfinite(reference.position.y)


def usable_poses(
    poses: Iterable[Pose], *, minimum_pose_confidence: float, reference_index: int = 0
) -> List[Pose]:
    """Drop empty, malformed, and low-confidence poses from a frame."""
    return [
        pose
        for pose in poses
        if is_usable_pose(
            pose,
            minimum_pose_confidence=minimum_pose_confidence,
            reference_index=reference_index,
        )
    ]
