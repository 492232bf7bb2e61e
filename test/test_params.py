import json
import math
import os
import tempfile
import unittest

from miniusv.params import DEFAULT_PARAMETERS, Parameters


class TestParameters(unittest.TestCase):
    def test_defaults(self):
        params = Parameters()
        self.assertAlmostEqual(params["yaw_rate_limit"], math.pi / 4)
        self.assertEqual(params["GainThrust"], 50.0)
        self.assertEqual(params["maximum_thrust"], 2000.0)
        self.assertEqual(params["yaw_speed_controller.Kd"], 0.0)
        self.assertEqual(params.snapshot(), DEFAULT_PARAMETERS)

    def test_set_valid(self):
        params = Parameters()
        result = params.set("K_yaw_force", 7)
        self.assertTrue(result.successful)
        self.assertEqual(params["K_yaw_force"], 7.0)

    def test_set_rejections_leave_value(self):
        params = Parameters()
        cases = [
            ("no_such_param", 1.0),
            ("GainThrust", "fast"),
            ("GainThrust", float("nan")),
            ("maximum_thrust", -1.0),
            ("alpha", 1.5),
            ("antiwindup_cte", True),
        ]
        for name, value in cases:
            with self.subTest(name=name, value=value):
                result = params.set(name, value)
                self.assertFalse(result.successful)
                self.assertTrue(result.reason)
        self.assertEqual(params.snapshot(), DEFAULT_PARAMETERS)

    def test_update_is_all_or_nothing(self):
        params = Parameters()
        result = params.update({"GainThrust": 10.0, "alpha": 2.0, "K_yaw_force": 3.0})
        self.assertFalse(result.successful)
        self.assertIn("alpha", result.reason)
        self.assertEqual(params.snapshot(), DEFAULT_PARAMETERS)
        self.assertTrue(params.update({"GainThrust": 10.0, "K_yaw_force": 3.0}).successful)
        self.assertEqual(params["GainThrust"], 10.0)
        self.assertEqual(params["K_yaw_force"], 3.0)

    def test_snapshot_is_a_copy(self):
        params = Parameters()
        snap = params.snapshot()
        snap["GainThrust"] = 0.0
        self.assertEqual(params["GainThrust"], 50.0)

    def test_overrides_validated_at_construction(self):
        self.assertEqual(Parameters({"alpha": 0.5})["alpha"], 0.5)
        with self.assertRaises(ValueError):
            Parameters({"alpha": -0.5})

    def test_load_json(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "params.json")
            with open(path, "w") as fh:
                json.dump({"maximum_thrust": 100.0, "yaw_speed_controller.Ki": 0.2}, fh)
            params = Parameters.load(path)
        self.assertEqual(params["maximum_thrust"], 100.0)
        self.assertEqual(params["yaw_speed_controller.Ki"], 0.2)

    def test_load_rejects_non_object(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "params.json")
            with open(path, "w") as fh:
                json.dump([1, 2], fh)
            with self.assertRaises(ValueError):
                Parameters.load(path)


if __name__ == '__main__':
    unittest.main()
