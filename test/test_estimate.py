import math
import unittest
from types import SimpleNamespace

from common.math import Quaternion, Vector3D
from common.types import HeadingSource, ImuSample, Odometry, PoseStamped
from miniusv.estimate import HeadingEstimator


def odom(yaw, rate=0.0, t=None):
    return Odometry(position=Vector3D(), orientation=Quaternion.from_yaw(yaw),
                    angular_velocity=Vector3D(0.0, 0.0, rate), timestamp=t)


class TestHeadingEstimator(unittest.TestCase):
    def test_starts_not_received(self):
        est = HeadingEstimator().current()
        self.assertFalse(est.received)
        self.assertIs(est.source, HeadingSource.NONE)

    def test_odometry_sets_yaw_and_rate(self):
        estimator = HeadingEstimator()
        self.assertTrue(estimator.on_odometry(odom(0.4, rate=0.2, t=1.0)))
        est = estimator.current()
        self.assertTrue(est.received)
        self.assertAlmostEqual(est.yaw, 0.4)
        self.assertAlmostEqual(est.yaw_rate, 0.2)
        self.assertIs(est.source, HeadingSource.ODOMETRY)

    def test_roll_and_pitch_are_discarded(self):
        estimator = HeadingEstimator()
        estimator.on_imu(ImuSample(orientation=Quaternion.from_euler(0.2, -0.1, -1.3)))
        self.assertAlmostEqual(estimator.current().yaw, -1.3, places=9)

    def test_last_writer_wins_across_sources(self):
        estimator = HeadingEstimator()
        estimator.on_odometry(odom(0.1))
        estimator.on_pose(PoseStamped(position=Vector3D(), orientation=Quaternion.from_yaw(2.0)))
        self.assertAlmostEqual(estimator.current().yaw, 2.0)
        self.assertIs(estimator.current().source, HeadingSource.POSE)
        estimator.on_imu(ImuSample(orientation=Quaternion.from_yaw(-0.5)))
        self.assertAlmostEqual(estimator.current().yaw, -0.5)
        self.assertIs(estimator.current().source, HeadingSource.IMU)

    def test_pose_rate_from_finite_difference(self):
        estimator = HeadingEstimator()
        estimator.on_pose(PoseStamped(position=Vector3D(), orientation=Quaternion.from_yaw(3.1), timestamp=0.0))
        estimator.on_pose(PoseStamped(position=Vector3D(), orientation=Quaternion.from_yaw(-3.1), timestamp=0.5))
        # crossing +-pi takes the short way round
        expected = (2 * math.pi - 6.2) / 0.5
        self.assertAlmostEqual(estimator.current().yaw_rate, expected, places=6)

    def test_untimestamped_poses_use_receive_clock(self):
        now = [10.0]
        estimator = HeadingEstimator(clock=lambda: now[0])
        for yaw in (0.0, 0.1, 0.2, 0.3):
            estimator.on_pose(PoseStamped(position=Vector3D(), orientation=Quaternion.from_yaw(yaw)))
            now[0] += 0.1
        est = estimator.current()
        self.assertAlmostEqual(est.yaw_rate, 1.0, places=6)
        self.assertAlmostEqual(est.timestamp, 10.3)

    def test_malformed_orientation_is_dropped(self):
        estimator = HeadingEstimator()
        estimator.on_odometry(odom(0.7))
        bad = [
            Quaternion(0.0, 0.0, 0.0, 0.0),
            Quaternion(2.0, 0.0, 0.0, 0.0),
            Quaternion(float('nan'), 0.0, 0.0, 1.0),
            Quaternion(float('inf'), 0.0, 0.0, 0.0),
        ]
        for q in bad:
            with self.subTest(q=q):
                self.assertFalse(estimator.on_imu(ImuSample(orientation=q)))
                self.assertAlmostEqual(estimator.current().yaw, 0.7)
                self.assertIs(estimator.current().source, HeadingSource.ODOMETRY)

    def test_message_without_orientation_is_dropped(self):
        estimator = HeadingEstimator()
        self.assertFalse(estimator.on_pose(SimpleNamespace(position=Vector3D())))
        self.assertFalse(estimator.on_odometry(SimpleNamespace(orientation=(1, 0, 0, 0))))
        self.assertFalse(estimator.current().received)

    def test_slightly_denormalized_quaternion_accepted(self):
        q = Quaternion(*(Quaternion.from_yaw(1.0).q * (1.0 + 1e-5)))
        self.assertTrue(HeadingEstimator().on_pose(PoseStamped(position=Vector3D(), orientation=q)))

    def test_reset(self):
        estimator = HeadingEstimator()
        estimator.on_odometry(odom(0.3))
        estimator.reset()
        self.assertFalse(estimator.current().received)


if __name__ == '__main__':
    unittest.main()
