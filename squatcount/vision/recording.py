"""JSONL recordings of keypoint streams.

A recording holds one line per frame with the poses reported by the
estimator for that frame. Recordings let a session be replayed offline with
the frame timestamps standing in for the wall clock. The format is kept
simple to ease inspection and hand-editing.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from squatcount.vision.keypoints import Pose, pose_from_obj

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoseFrame:
    """Poses reported for a single frame."""

    frame_index: int
    timestamp: float
    poses: List[Pose]


class RecordingError(ValueError):
    """Raised when a recording line cannot be decoded."""


def _frame_to_json(frame: PoseFrame) -> str:
    payload = {
        "frame_index": frame.frame_index,
        "timestamp": frame.timestamp,
        "poses": [pose.to_obj() for pose in frame.poses],
    }
    return json.dumps(payload)


def _frame_from_obj(obj: dict, *, fps: Optional[float] = None) -> PoseFrame:
    frame_index = int(obj["frame_index"])
    timestamp = obj.get("timestamp")
    if timestamp is None:
        if not fps:
            raise RecordingError(f"Frame {frame_index} has no timestamp and no fps was given")
        timestamp = frame_index / fps
    return PoseFrame(
        frame_index=frame_index,
        timestamp=float(timestamp),
        poses=_parse_poses(obj.get("poses") or [], frame_index),
    )


def _parse_poses(raw_poses: Iterable[dict], frame_index: int) -> List[Pose]:
    """Parse each pose on its own; a malformed pose is dropped, not the frame."""
    poses = []
    for raw in raw_poses:
        try:
            poses.append(pose_from_obj(raw))
        except ValueError as exc:
            logger.debug("Frame %d: skipping malformed pose: %s", frame_index, exc)
    return poses


def save_pose_frames(
    recording_file: Path, frames: Iterable[PoseFrame], *, overwrite: bool = True
) -> Path:
    """Record a keypoint stream, one JSON line per frame, for later replay.

    Missing parent directories are created. An existing recording is replaced
    unless ``overwrite`` is False, so a finished session is never clobbered by
    accident.
    """

    if recording_file.exists() and not overwrite:
        raise FileExistsError(
            f"Refusing to replace existing recording {recording_file}; pass overwrite=True to re-record."
        )
    recording_file.parent.mkdir(parents=True, exist_ok=True)
    lines = (_frame_to_json(frame) + "\n" for frame in frames)
    with recording_file.open("w", encoding="utf-8") as fh:
        fh.writelines(lines)
    return recording_file


def load_pose_frames(recording_file: Path, *, fps: Optional[float] = None) -> Iterator[PoseFrame]:
    """Read pose frames from a JSONL recording.

    Frames without a ``timestamp`` get ``frame_index / fps``. A malformed pose
    is dropped from its frame and the rest of the frame is kept.

    Raises:
        RecordingError: if a line is not valid JSON or lacks the frame fields.
    """

    with recording_file.open("r", encoding="utf-8") as fh:
        for line_no, line in enumerate(fh, start=1):
            if not line.strip():
                continue
            try:
                yield _frame_from_obj(json.loads(line), fps=fps)
            except RecordingError:
                raise
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
                raise RecordingError(f"{recording_file}:{line_no}: {exc}") from exc
