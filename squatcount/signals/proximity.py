"""Vertical proximity matching against calibrated reference poses.

The height of a single reference joint (the nose for PoseNet ordering) is a
cheap, rotation-insensitive proxy for standing versus crouching. A live pose
matches a calibrated one when that joint's y coordinate falls within a
relative band around the calibrated value.
"""

from __future__ import annotations

from squatcount.vision.keypoints import Pose

DEFAULT_TOLERANCE = 0.05
DEFAULT_MINIMUM_PART_CONFIDENCE = 0.3


def is_close(live_y: float, calibrated_y: float, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """Return True when ``live_y`` lies in ``[c * (1 - tol), c * (1 + tol))``.

    The lower edge is inclusive and the upper edge exclusive.
    """

    lower = calibrated_y * (1.0 - tolerance)
    upper = calibrated_y * (1.0 + tolerance)
    return lower <= live_y < upper


def is_any_keypoint_close_to_calibrated(
    pose: Pose,
    calibrated: Pose,
    *,
    minimum_part_confidence: float = DEFAULT_MINIMUM_PART_CONFIDENCE,
    tolerance: float = DEFAULT_TOLERANCE,
    reference_index: int = 0,
) -> bool:
    """Compare the reference joint of ``pose`` against ``calibrated``.

    Only the reference joint is compared. A reference keypoint scoring at or
    below ``minimum_part_confidence`` never matches, so ambiguous frames are
    skipped rather than classified.
    """

    keypoint = pose.reference(reference_index)
    if keypoint.score <= minimum_part_confidence:
        return False
    return is_close(keypoint.y, calibrated.reference(reference_index).y, tolerance)
