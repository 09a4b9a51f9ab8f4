"""Keypoint and pose records produced by the external pose estimator.

The estimator itself stays outside this package; these types describe what
it hands over for every frame. :func:`pose_from_obj` accepts the PoseNet JSON
shape (``{"score": ..., "keypoints": [{"part", "position", "score"}]}``).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

# PoseNet keypoint order; index 0 is the reference joint.
POSENET_PARTS: Tuple[str, ...] = (
    "nose",
    "leftEye",
    "rightEye",
    "leftEar",
    "rightEar",
    "leftShoulder",
    "rightShoulder",
    "leftElbow",
    "rightElbow",
    "leftWrist",
    "rightWrist",
    "leftHip",
    "rightHip",
    "leftKnee",
    "rightKnee",
    "leftAnkle",
    "rightAnkle",
)


@dataclass(frozen=True)
class Position:
    x: float
    y: float


@dataclass(frozen=True)
class Keypoint:
    """Single named landmark with its detection confidence."""

    name: str
    position: Position
    score: float

    @property
    def y(self) -> float:
        return self.position.y


@dataclass(frozen=True)
class Pose:
    """Keypoints for one detected person in one frame."""

    keypoints: Tuple[Keypoint, ...]
    score: float = 1.0

    def __post_init__(self) -> None:
        # Accept lists from callers while keeping the record hashable.
        object.__setattr__(self, "keypoints", tuple(self.keypoints))

    def reference(self, index: int = 0) -> Keypoint:
        """Return the keypoint used for calibration and matching."""
        return self.keypoints[index]

    def to_obj(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "keypoints": [
                {
                    "part": kp.name,
                    "position": {"x": kp.position.x, "y": kp.position.y},
                    "score": kp.score,
                }
                for kp in self.keypoints
            ],
        }


def _finite(value: Any, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{field_name} must be a number, got {value!r}") from exc
    if math.isnan(number) or math.isinf(number):
        raise ValueError(f"{field_name} must be finite")
    return number


def keypoint_from_obj(obj: Mapping[str, Any]) -> Keypoint:
    """Parse one keypoint mapping; ``name`` is accepted as an alias of ``part``."""
    try:
        name = obj.get("part", obj.get("name"))
        position = obj["position"]
        x, y = position["x"], position["y"]
        score = obj["score"]
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"Malformed keypoint: {obj!r}") from exc
    if not name:
        raise ValueError(f"Keypoint is missing a part name: {obj!r}")
    return Keypoint(
        name=str(name),
        position=Position(x=_finite(x, "position.x"), y=_finite(y, "position.y")),
        score=_finite(score, "score"),
    )


def pose_from_obj(obj: Mapping[str, Any]) -> Pose:
    """Parse a PoseNet-style pose mapping.

    Raises:
        ValueError: if the mapping or any of its keypoints is malformed.
    """

    if not isinstance(obj, Mapping):
        raise ValueError(f"Pose must be a mapping, got {type(obj).__name__}")
    raw_keypoints = obj.get("keypoints")
    if not isinstance(raw_keypoints, list):
        raise ValueError("Pose is missing a keypoints list")
    keypoints = [keypoint_from_obj(kp) for kp in raw_keypoints]
    score = _finite(obj.get("score", 1.0), "score")
    return Pose(keypoints=tuple(keypoints), score=score)


def single_joint_pose(y: float, *, x: float = 0.0, score: float = 1.0, part: str = "nose") -> Pose:
    """Build a pose holding only a reference joint at the given position.

    Handy for synthetic streams where only the vertical reference matters.
    """

    return Pose(keypoints=(Keypoint(name=part, position=Position(x=x, y=y), score=score),), score=score)
