import unittest

from squatcount.calibration.controller import SQUAT, STANDING, CalibrationStage
from squatcount.config import CounterConfig
from squatcount.output import PhaseIndicator, RecordingSink
from squatcount.repdetect.cycles import SQUAT_PHASE, STANDING_PHASE
from squatcount.session import ExerciseSession
from squatcount.vision.keypoints import Keypoint, Pose, Position, single_joint_pose


def frame(y: float, score: float = 0.9):
    return [single_joint_pose(y, score=score)]


def calibrate(session: ExerciseSession, standing_y: float = 300.0, squat_y: float = 500.0) -> None:
    countdown = session.config.countdown_seconds
    session.process_frame(frame(standing_y))
    session.tick(countdown)
    session.process_frame(frame(squat_y))
    session.tick(countdown)
    session.process_frame(frame(squat_y))


class ExerciseSessionTests(unittest.TestCase):
    def test_end_to_end_single_rep(self) -> None:
        session = ExerciseSession()
        calibrate(session)
        self.assertIs(session.report().stage, CalibrationStage.ARMED)
        self.assertEqual(session.store.get(STANDING).reference().y, 300.0)
        self.assertEqual(session.store.get(SQUAT).reference().y, 500.0)

        reports = [session.process_frame(frame(y)) for y in (300.0, 420.0, 500.0, 500.0, 300.0)]

        self.assertEqual(
            [r.phase for r in reports],
            [STANDING_PHASE, None, SQUAT_PHASE, SQUAT_PHASE, STANDING_PHASE],
        )
        self.assertEqual([r.counter for r in reports], [0, 0, 0, 0, 1])
        self.assertEqual([r.slider for r in reports], [100.0, 80.0, 0.0, 0.0, 100.0])
        self.assertEqual(reports[3].phases, (SQUAT_PHASE, STANDING_PHASE))
        self.assertEqual(reports[4].phases, ())
        self.assertEqual(reports[4].indicator, PhaseIndicator.READY)
        self.assertEqual(reports[4].message, "start exercise!")

    def test_no_counting_before_calibration_completes(self) -> None:
        session = ExerciseSession()
        for y in (300.0, 500.0, 300.0, 500.0, 300.0):
            report = session.process_frame(frame(y))
            self.assertIsNone(report.phase)
        self.assertEqual(session.count, 0)
        self.assertIs(session.report().stage, CalibrationStage.CAPTURING_STANDING)

    def test_calibration_runs_once(self) -> None:
        session = ExerciseSession()
        calibrate(session)
        session.tick(20)
        for _ in range(3):
            session.process_frame(frame(300.0))
        self.assertEqual(len(session.store), 2)
        self.assertEqual(session.store.get(SQUAT).reference().y, 500.0)
        self.assertTrue(session.calibration.state.executed)

    def test_repeated_calibration_trigger_is_logged_and_ignored(self) -> None:
        session = ExerciseSession()
        session.process_frame(frame(300.0))
        with self.assertLogs("squatcount.session", level="DEBUG") as logs:
            report = session.process_frame(frame(300.0))
        self.assertIs(report.stage, CalibrationStage.CAPTURING_STANDING)
        self.assertTrue(any("calibration already started" in line for line in logs.output))

    def test_empty_and_malformed_frames_are_skipped(self) -> None:
        session = ExerciseSession()
        report = session.process_frame([])
        self.assertFalse(report.detected)
        self.assertIs(report.stage, CalibrationStage.IDLE)

        empty_pose = Pose(keypoints=(), score=0.9)
        report = session.process_frame([empty_pose])
        self.assertFalse(report.detected)
        self.assertIs(report.stage, CalibrationStage.IDLE)

        nan_pose = Pose(keypoints=(Keypoint("nose", Position(0.0, float("nan")), 0.9),), score=0.9)
        report = session.process_frame([nan_pose])
        self.assertFalse(report.detected)

        calibrate(session)
        before = session.count
        session.process_frame([])
        session.process_frame([empty_pose])
        self.assertEqual(session.count, before)

    def test_low_confidence_pose_does_not_start_calibration(self) -> None:
        session = ExerciseSession(CounterConfig(minimum_pose_confidence=0.5))
        report = session.process_frame([single_joint_pose(300.0, score=0.2)])
        self.assertFalse(report.detected)
        self.assertIs(report.stage, CalibrationStage.IDLE)

    def test_timestamps_drive_countdowns(self) -> None:
        session = ExerciseSession(CounterConfig(countdown_seconds=2))
        session.process_frame(frame(300.0), timestamp=100.0)
        session.process_frame(frame(300.0), timestamp=101.0)
        self.assertIs(session.report().stage, CalibrationStage.CAPTURING_STANDING)
        session.process_frame(frame(300.0), timestamp=102.0)
        self.assertIs(session.report().stage, CalibrationStage.WAITING_TRANSITION)
        session.process_frame(frame(500.0), timestamp=103.0)
        report = session.process_frame(frame(500.0), timestamp=104.0)
        self.assertIs(report.stage, CalibrationStage.ARMED)

        session.process_frame(frame(300.0), timestamp=105.0)
        session.process_frame(frame(500.0), timestamp=106.0)
        report = session.process_frame(frame(300.0), timestamp=107.0)
        self.assertEqual(report.counter, 1)

    def test_external_sink_receives_updates(self) -> None:
        sink = RecordingSink()
        session = ExerciseSession(sink=sink)
        calibrate(session)
        for y in (500.0, 300.0, 500.0, 300.0):
            session.process_frame(frame(y))
        self.assertEqual(sink.of_kind("counter"), [1, 2])
        self.assertEqual(sink.indicator, PhaseIndicator.READY)
        self.assertEqual(session.display.counter, 2)
        self.assertEqual(session.display.events, [])

    def test_counter_never_decreases(self) -> None:
        session = ExerciseSession()
        calibrate(session)
        last = 0
        for y in (300.0, 500.0, 420.0, 300.0, 300.0, 500.0, 700.0, 300.0, 10.0):
            count = session.process_frame(frame(y)).counter
            self.assertGreaterEqual(count, last)
            last = count
        self.assertEqual(last, 2)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
