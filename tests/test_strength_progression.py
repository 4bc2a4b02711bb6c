import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from algorithms import StrengthProgressionCalculator
from models import normalize_sessions

UTC = datetime.timezone.utc


def make_sessions(*entries):
    """Build sessions from ``(day, [(exercise_id, name, category, weights)])`` tuples."""
    rows = []
    for day, logs in entries:
        rows.append(
            {
                "start_time": datetime.datetime(2024, 1, day, 10, tzinfo=UTC),
                "exercise_logs": [
                    {
                        "exercise_id": eid,
                        "exercise": {"name": name, "category": category},
                        "sets": len(weights),
                        "reps": [10] * len(weights),
                        "weight": weights,
                    }
                    for eid, name, category, weights in logs
                ],
            }
        )
    return normalize_sessions(rows)


class ProgressionTestCase(unittest.TestCase):
    def test_improvement_is_reported(self) -> None:
        sessions = make_sessions(
            (1, [(1, "Bench Press", "Chest", [100])]),
            (8, [(1, "Bench Press", "Chest", [100, 110])]),
        )
        result = StrengthProgressionCalculator.progressions(sessions)
        self.assertEqual(
            result,
            [
                {
                    "exercise": "Bench Press",
                    "previous": 100,
                    "current": 110,
                    "increase": 10,
                    "percentage": 10,
                    "progress": 10,
                }
            ],
        )

    def test_flat_regression_and_zero_baseline_skipped(self) -> None:
        sessions = make_sessions(
            (1, [(1, "Bench Press", "Chest", [100]), (2, "Squat", "Legs", [150]), (3, "Curl", "Arms", [])]),
            (5, [(1, "Bench Press", "Chest", [100]), (2, "Squat", "Legs", [140]), (3, "Curl", "Arms", [30])]),
        )
        self.assertEqual(StrengthProgressionCalculator.progressions(sessions), [])

    def test_percentage_not_clamped_progress_is(self) -> None:
        sessions = make_sessions(
            (1, [(1, "Curl", "Arms", [50]), (2, "Bench Press", "Chest", [100])]),
            (9, [(1, "Curl", "Arms", [150]), (2, "Bench Press", "Chest", [110])]),
        )
        result = StrengthProgressionCalculator.progressions(sessions)
        self.assertEqual([p["exercise"] for p in result], ["Curl", "Bench Press"])
        self.assertEqual(result[0]["percentage"], 200)
        self.assertEqual(result[0]["progress"], 100)
        self.assertEqual(StrengthProgressionCalculator.average_increase(result), 105)
        self.assertEqual(StrengthProgressionCalculator.top(result, 1), result[:1])
        self.assertEqual(StrengthProgressionCalculator.top(result), result)

    def test_first_and_last_by_start_time(self) -> None:
        # three sessions; only the earliest and latest matter
        sessions = make_sessions(
            (10, [(1, "Bench Press", "Chest", [120])]),
            (1, [(1, "Bench Press", "Chest", [100])]),
            (5, [(1, "Bench Press", "Chest", [200])]),
        )
        result = StrengthProgressionCalculator.progressions(sessions)
        self.assertEqual(result[0]["previous"], 100)
        self.assertEqual(result[0]["current"], 120)
        self.assertEqual(result[0]["percentage"], 20)

    def test_average_of_nothing(self) -> None:
        self.assertEqual(StrengthProgressionCalculator.average_increase([]), 0)


class AnalyticsTestCase(unittest.TestCase):
    def test_volume_and_frequency(self) -> None:
        sessions = make_sessions(
            (1, [(1, "Bench Press", "Chest", [100, 100]), (2, "Squat", "Legs", [150])]),
            (2, [(1, "Bench Press", "Chest", [105])]),
        )
        self.assertEqual(StrengthProgressionCalculator.sessions_volume(sessions), 4550.0)
        self.assertEqual(
            StrengthProgressionCalculator.exercise_frequency(sessions),
            [{"name": "Bench Press", "count": 2}, {"name": "Squat", "count": 1}],
        )
        self.assertEqual(
            StrengthProgressionCalculator.muscle_group_distribution(sessions),
            [
                {"muscleGroup": "Chest", "count": 2, "percentage": 67},
                {"muscleGroup": "Legs", "count": 1, "percentage": 33},
            ],
        )

    def test_missing_exercise_relation(self) -> None:
        sessions = normalize_sessions(
            [
                {
                    "start_time": "2024-01-01T10:00:00Z",
                    "exercise_logs": [{"exercise_id": 9, "exercise": None, "reps": None, "weight": None}],
                }
            ]
        )
        self.assertEqual(
            StrengthProgressionCalculator.exercise_frequency(sessions),
            [{"name": "Unknown Exercise", "count": 1}],
        )
        self.assertEqual(
            StrengthProgressionCalculator.muscle_group_distribution(sessions)[0]["muscleGroup"],
            "Other",
        )
        self.assertEqual(StrengthProgressionCalculator.sessions_volume(sessions), 0.0)


if __name__ == "__main__":
    unittest.main()
