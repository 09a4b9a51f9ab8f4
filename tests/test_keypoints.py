import unittest

from squatcount.vision.keypoints import POSENET_PARTS, pose_from_obj, single_joint_pose

POSENET_POSE = {
    "score": 0.72,
    "keypoints": [
        {"part": "nose", "position": {"x": 301.5, "y": 122.25}, "score": 0.99},
        {"part": "leftEye", "position": {"x": 310.0, "y": 110.0}, "score": 0.97},
    ],
}


class PoseParsingTests(unittest.TestCase):
    def test_parses_posenet_shape(self) -> None:
        pose = pose_from_obj(POSENET_POSE)
        self.assertAlmostEqual(pose.score, 0.72)
        self.assertEqual(len(pose.keypoints), 2)
        nose = pose.reference()
        self.assertEqual(nose.name, POSENET_PARTS[0])
        self.assertEqual(nose.y, 122.25)
        self.assertEqual(pose.to_obj(), POSENET_POSE)

    def test_name_is_accepted_as_part_alias(self) -> None:
        pose = pose_from_obj(
            {"keypoints": [{"name": "nose", "position": {"x": 1, "y": 2}, "score": 0.5}]}
        )
        self.assertEqual(pose.reference().name, "nose")
        self.assertEqual(pose.score, 1.0)

    def test_malformed_poses_raise_value_error(self) -> None:
        bad_inputs = [
            [],
            {"score": 0.5},
            {"keypoints": [{"part": "nose", "score": 0.5}]},
            {"keypoints": [{"part": "nose", "position": {"x": 1, "y": "high"}, "score": 0.5}]},
            {"keypoints": [{"part": "nose", "position": {"x": 1, "y": float("nan")}, "score": 0.5}]},
            {"keypoints": [{"position": {"x": 1, "y": 2}, "score": 0.5}]},
        ]
        for obj in bad_inputs:
            with self.subTest(obj=obj):
                with self.assertRaises(ValueError):
                    pose_from_obj(obj)

    def test_pose_keypoints_are_immutable_tuples(self) -> None:
        pose = single_joint_pose(10.0)
        self.assertIsInstance(pose.keypoints, tuple)
        self.assertEqual(hash(pose), hash(single_joint_pose(10.0)))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
