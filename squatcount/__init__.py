"""squatcount: squat repetition counting from pose keypoints.

This package hosts the calibration state machine, vertical proximity
matching, and cycle counting that turn a per-frame keypoint stream from an
external pose estimator into a repetition count.
"""

__all__ = [
    "cli",
    "config",
    "output",
    "session",
]

__version__ = "0.1.0"
