import unittest

from squatcount.signals.proximity import is_any_keypoint_close_to_calibrated, is_close
from squatcount.vision.keypoints import Keypoint, Pose, Position, single_joint_pose

CALIBRATED_VALUES = (1.0, 300.0, 480.5, 12345.678)


class IsCloseTests(unittest.TestCase):
    def test_lower_edge_is_inclusive(self) -> None:
        for c in CALIBRATED_VALUES:
            with self.subTest(calibrated=c):
                self.assertTrue(is_close(0.95 * c, c))
                self.assertTrue(is_close(0.950001 * c, c))

    def test_upper_edge_is_exclusive(self) -> None:
        for c in CALIBRATED_VALUES:
            with self.subTest(calibrated=c):
                self.assertFalse(is_close(1.05 * c, c))
                self.assertTrue(is_close(1.049999 * c, c))

    def test_outside_band_is_not_close(self) -> None:
        self.assertFalse(is_close(284.0, 300.0))
        self.assertFalse(is_close(316.0, 300.0))
        self.assertTrue(is_close(300.0, 300.0))

    def test_custom_tolerance_widens_band(self) -> None:
        self.assertFalse(is_close(330.0, 300.0))
        self.assertTrue(is_close(330.0, 300.0, tolerance=0.2))


class ReferenceKeypointMatchTests(unittest.TestCase):
    def test_matches_on_reference_joint(self) -> None:
        calibrated = single_joint_pose(300.0)
        self.assertTrue(is_any_keypoint_close_to_calibrated(single_joint_pose(305.0, score=0.9), calibrated))
        self.assertFalse(is_any_keypoint_close_to_calibrated(single_joint_pose(400.0, score=0.9), calibrated))

    def test_low_confidence_never_matches(self) -> None:
        calibrated = single_joint_pose(300.0)
        for score in (0.0, 0.1, 0.3):
            with self.subTest(score=score):
                pose = single_joint_pose(300.0, score=score)
                self.assertFalse(is_any_keypoint_close_to_calibrated(pose, calibrated))
        self.assertTrue(is_any_keypoint_close_to_calibrated(single_joint_pose(300.0, score=0.31), calibrated))

    def test_threshold_is_configurable(self) -> None:
        calibrated = single_joint_pose(300.0)
        pose = single_joint_pose(300.0, score=0.5)
        self.assertFalse(
            is_any_keypoint_close_to_calibrated(pose, calibrated, minimum_part_confidence=0.6)
        )

    def test_only_reference_joint_is_compared(self) -> None:
        calibrated = Pose(
            keypoints=(
                Keypoint("nose", Position(0.0, 300.0), 0.9),
                Keypoint("leftHip", Position(0.0, 600.0), 0.9),
            )
        )
        live = Pose(
            keypoints=(
                Keypoint("nose", Position(0.0, 300.0), 0.9),
                Keypoint("leftHip", Position(0.0, 10.0), 0.9),
            )
        )
        self.assertTrue(is_any_keypoint_close_to_calibrated(live, calibrated))
        self.assertFalse(is_any_keypoint_close_to_calibrated(live, calibrated, reference_index=1))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
