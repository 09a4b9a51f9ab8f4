"""Generate a synthetic squat recording and replay it through a session."""

import math
import sys
import tempfile
from pathlib import Path

# Allow running this script directly without installing the package.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from squatcount.config import CounterConfig  # noqa: E402
from squatcount.session import ExerciseSession  # noqa: E402
from squatcount.vision.keypoints import single_joint_pose  # noqa: E402
from squatcount.vision.recording import PoseFrame, load_pose_frames, save_pose_frames  # noqa: E402

FPS = 30.0
STANDING_Y = 300.0
SQUAT_Y = 500.0


def synthetic_frames(reps: int, countdown: int) -> list:
    """Hold standing, hold squat, then bob up and down ``reps`` times."""
    ys = [STANDING_Y] * int((countdown + 1) * FPS)
    ys += [SQUAT_Y] * int((countdown + 1) * FPS)
    period = int(2 * FPS)
    for _ in range(reps):
        for i in range(period):
            phase = (1 - math.cos(2 * math.pi * i / period)) / 2
            ys.append(STANDING_Y + phase * (SQUAT_Y - STANDING_Y))
    ys += [STANDING_Y] * int(FPS / 2)
    return [
        PoseFrame(frame_index=idx, timestamp=idx / FPS, poses=[single_joint_pose(y, score=0.9)])
        for idx, y in enumerate(ys)
    ]


def run_example(reps: int = 3, countdown: int = 2) -> None:
    path = Path(tempfile.mkdtemp()) / "synthetic.jsonl"
    save_pose_frames(path, synthetic_frames(reps, countdown))
    print(f"wrote {path}")

    session = ExerciseSession(CounterConfig(countdown_seconds=countdown))
    for frame in load_pose_frames(path):
        session.process_frame(frame.poses, timestamp=frame.timestamp)

    # Rising out of the calibration squat closes the first cycle.
    expected = reps + 1
    print(f"counted {session.count} rep(s), expected {expected}")
    assert session.count == expected, "Rep count mismatch"


if __name__ == "__main__":
    run_example()
