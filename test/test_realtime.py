import threading
import unittest

from common.math import Vector3D
from common.realtime import RateKeeper
from common.shared import LatestValue
from common.types import VelocityCommand
from miniusv.input import ScriptedCommandSource, default_script


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestRateKeeper(unittest.TestCase):
    def test_sleeps_remaining_time(self):
        clock = FakeClock()
        slept = []
        rk = RateKeeper(rate_hz=100.0, clock=clock, sleep=slept.append)
        clock.now = 0.004
        rk.keep_time()
        self.assertEqual(len(slept), 1)
        self.assertAlmostEqual(slept[0], 0.006)
        self.assertEqual(rk.frame, 1)

    def test_no_sleep_when_lagging(self):
        clock = FakeClock()
        slept = []
        rk = RateKeeper(rate_hz=100.0, clock=clock, sleep=slept.append)
        clock.now = 0.05
        with self.assertLogs("miniusv.realtime", level="WARNING"):
            remaining = rk.monitor_time()
        self.assertLess(remaining, 0.0)
        self.assertEqual(slept, [])

    def test_rejects_non_positive_rate(self):
        with self.assertRaises(ValueError):
            RateKeeper(rate_hz=0.0)


class TestLatestValue(unittest.TestCase):
    def test_latest_wins_with_stamp(self):
        clock = FakeClock()
        slot = LatestValue(clock=clock)
        self.assertEqual(slot.get_with_stamp(), (None, None))
        slot.set("a")
        clock.now = 2.0
        slot.set("b")
        self.assertEqual(slot.get_with_stamp(), ("b", 2.0))
        slot.clear()
        self.assertIsNone(slot.get())

    def test_concurrent_writers_leave_a_written_value(self):
        slot = LatestValue()
        threads = [threading.Thread(target=lambda i=i: [slot.set(i) for _ in range(200)]) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertIn(slot.get(), range(8))


class TestScriptedCommandSource(unittest.TestCase):
    def test_segments_follow_elapsed_time(self):
        slow = VelocityCommand(linear=Vector3D(0.5, 0.0, 0.0))
        turn = VelocityCommand(linear=Vector3D(0.5, 0.0, 0.0), yaw_rate=0.2)
        src = ScriptedCommandSource([(1.0, turn), (0.5, slow)])
        self.assertIsNone(src.read(0.25))
        self.assertEqual(src.read(0.25).yaw_rate, 0.0)
        cmd = src.read(0.6)
        self.assertEqual(cmd.yaw_rate, 0.2)
        self.assertAlmostEqual(cmd.timestamp, 1.1)

    def test_loop_wraps_timeline(self):
        src = default_script()
        self.assertEqual(src.read(0.0).yaw_rate, 0.0)
        # 41 s into a 30 s lap lands in the left turn that starts at 10 s
        self.assertEqual(src.read(41.0).yaw_rate, 0.3)

    def test_rejects_empty_script(self):
        with self.assertRaises(ValueError):
            ScriptedCommandSource([])


if __name__ == '__main__':
    unittest.main()
