import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from algorithms import StreakCalculator

UTC = datetime.timezone.utc


def at(day: str, hour: int = 10) -> datetime.datetime:
    d = datetime.date.fromisoformat(day)
    return datetime.datetime(d.year, d.month, d.day, hour, tzinfo=UTC)


class CurrentStreakTestCase(unittest.TestCase):
    def test_empty(self) -> None:
        self.assertEqual(StreakCalculator.current_streak([], at("2024-01-05")), 0)

    def test_consecutive_days_ending_today(self) -> None:
        days = [at(f"2024-01-0{i}") for i in range(1, 6)]
        self.assertEqual(StreakCalculator.current_streak(days, at("2024-01-05", 18)), 5)

    def test_today_plus_previous_days(self) -> None:
        now = at("2024-03-10", 20)
        days = [now - datetime.timedelta(days=i) for i in range(4)]
        self.assertEqual(StreakCalculator.current_streak(days, now), 4)

    def test_duplicates_and_order_ignored(self) -> None:
        days = [at("2024-01-04", 8), at("2024-01-05", 7), at("2024-01-04", 19), at("2024-01-05", 9)]
        self.assertEqual(StreakCalculator.current_streak(days, at("2024-01-05", 22)), 2)

    def test_run_not_touching_today_is_counted(self) -> None:
        days = [at("2024-01-02"), at("2024-01-03")]
        self.assertEqual(StreakCalculator.current_streak(days, at("2024-01-05")), 2)

    def test_gap_breaks_streak(self) -> None:
        days = [at("2024-01-05"), at("2024-01-03"), at("2024-01-02")]
        self.assertEqual(StreakCalculator.current_streak(days, at("2024-01-05", 12)), 1)

    def test_day_key_uses_utc(self) -> None:
        plus_two = datetime.timezone(datetime.timedelta(hours=2))
        ts = datetime.datetime(2024, 1, 5, 1, 0, tzinfo=plus_two)
        self.assertEqual(StreakCalculator.day_key(ts), "2024-01-04")


class LongestStreakTestCase(unittest.TestCase):
    def test_longest(self) -> None:
        days = [at(d) for d in ["2024-01-01", "2024-01-02", "2024-01-03", "2024-01-05", "2024-01-06"]]
        self.assertEqual(StreakCalculator.longest_streak(days), 3)
        self.assertEqual(StreakCalculator.longest_streak([]), 0)
        self.assertEqual(StreakCalculator.longest_streak([at("2024-01-01")]), 1)


class RelativeLabelTestCase(unittest.TestCase):
    def test_labels(self) -> None:
        now = at("2024-06-15", 12)
        label = StreakCalculator.relative_label
        self.assertEqual(label(now, now), "today")
        self.assertEqual(label(now - datetime.timedelta(hours=30), now), "yesterday")
        self.assertEqual(label(now - datetime.timedelta(days=3), now), "3 days ago")
        self.assertEqual(label(now - datetime.timedelta(days=40), now), "last month")
        self.assertEqual(label(now - datetime.timedelta(days=90), now), "recently")
        self.assertEqual(label(None, now), "recently")

    def test_days_between_floors(self) -> None:
        now = at("2024-06-15", 12)
        earlier = now - datetime.timedelta(days=3) + datetime.timedelta(hours=1)
        self.assertEqual(StreakCalculator.days_between(earlier, now), 2)


if __name__ == "__main__":
    unittest.main()
