import os
import sys
import math
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from algorithms import MathTools, WeightConverter


class MathToolsTestCase(unittest.TestCase):
    def test_clamp(self) -> None:
        self.assertEqual(MathTools.clamp(5, 0, 10), 5)
        self.assertEqual(MathTools.clamp(-1, 0, 10), 0)
        self.assertEqual(MathTools.clamp(11, 0, 10), 10)
        with self.assertRaises(ValueError):
            MathTools.clamp(1, 2, 1)

    def test_round_half_up(self) -> None:
        self.assertEqual(MathTools.round_half_up(2.5), 3)
        self.assertEqual(MathTools.round_half_up(2.4), 2)
        self.assertEqual(MathTools.round_half_up(-2.5), -2)
        self.assertEqual(MathTools.round_half_up(math.nan), 0)
        self.assertEqual(MathTools.round_half_up(math.inf), 0)

    def test_percent(self) -> None:
        self.assertEqual(MathTools.percent(1, 3), 33)
        self.assertEqual(MathTools.percent(2, 3), 67)
        self.assertEqual(MathTools.percent(5, 0), 0)
        self.assertEqual(MathTools.percent(5, -2), 0)
        self.assertEqual(MathTools.percent(150, 100), 100)
        self.assertEqual(MathTools.percent(150, 100, cap=None), 150)
        self.assertEqual(MathTools.percent(-5, 10), 0)

    def test_mean(self) -> None:
        self.assertEqual(MathTools.mean([]), 0)
        self.assertEqual(MathTools.mean([1, 2]), 2)
        self.assertEqual(MathTools.mean([10, 20, 40]), 23)

    def test_volume(self) -> None:
        self.assertEqual(MathTools.volume([10, 5], [100.0, 150.0]), 1750.0)
        self.assertEqual(MathTools.volume([10, 5], [100.0]), 1000.0)
        self.assertEqual(MathTools.volume([], []), 0.0)

    def test_max_weight(self) -> None:
        self.assertEqual(MathTools.max_weight([]), 0.0)
        self.assertEqual(MathTools.max_weight([100, 110, 105]), 110)


class WeightConverterTestCase(unittest.TestCase):
    def test_conversions(self) -> None:
        self.assertAlmostEqual(WeightConverter.kg_to_lb(100), 220.5)
        self.assertAlmostEqual(WeightConverter.lb_to_kg(220.5), 100.0)
        self.assertEqual(WeightConverter.convert(10, "kg", "kg"), 10)
        self.assertAlmostEqual(WeightConverter.convert(10, "kg", "lbs"), 22.05)
        with self.assertRaises(ValueError):
            WeightConverter.convert(10, "kg", "stone")

    def test_format_and_parse(self) -> None:
        self.assertEqual(WeightConverter.format(100, "lbs"), "100 lbs")
        self.assertEqual(WeightConverter.format(102.5, "kg"), "102.5 kg")
        self.assertEqual(WeightConverter.parse("225lb"), (225.0, "lbs"))
        self.assertEqual(WeightConverter.parse("100 KG"), (100.0, "kg"))
        self.assertIsNone(WeightConverter.parse("heavy"))


if __name__ == "__main__":
    unittest.main()
