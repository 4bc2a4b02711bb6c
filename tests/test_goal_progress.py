import os
import sys
import datetime
import unittest

from pydantic import ValidationError

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from algorithms import GoalProgressCalculator
from models import Goal, GoalCreate, GoalUpdate, WorkoutSession

UTC = datetime.timezone.utc
NOW = datetime.datetime(2024, 6, 15, 12, tzinfo=UTC)


def goal(**fields) -> Goal:
    data = {"name": "Goal", "type": "consistency", "target_value": 10}
    data.update(fields)
    return Goal.model_validate(data)


class ProgressTestCase(unittest.TestCase):
    def test_progress_bounds(self) -> None:
        self.assertEqual(GoalProgressCalculator.progress(goal(current_value=50, target_value=50)), 100)
        self.assertEqual(GoalProgressCalculator.progress(goal(current_value=0, target_value=50)), 0)
        self.assertEqual(GoalProgressCalculator.progress(goal(current_value=80, target_value=50)), 100)
        self.assertEqual(GoalProgressCalculator.progress(goal(current_value=1, target_value=3)), 33)
        self.assertEqual(GoalProgressCalculator.progress(goal(current_value=5, target_value=0)), 0)
        self.assertEqual(GoalProgressCalculator.progress(goal(current_value=None)), 0)

    def test_creation_rejects_non_positive_target(self) -> None:
        with self.assertRaises(ValidationError):
            GoalCreate(name="Bench", type="weight", target_value=0)
        with self.assertRaises(ValidationError):
            GoalCreate(name="Bench", type="weight", target_value=-5)
        with self.assertRaises(ValidationError):
            GoalUpdate(status="paused")


class ClassificationTestCase(unittest.TestCase):
    def test_workout_goal_filter(self) -> None:
        self.assertTrue(GoalProgressCalculator.is_workout_goal(goal(type="consistency")))
        self.assertTrue(GoalProgressCalculator.is_workout_goal(goal(type="weekly workouts")))
        self.assertFalse(GoalProgressCalculator.is_workout_goal(goal(type="Consistency")))
        self.assertFalse(GoalProgressCalculator.is_workout_goal(goal(type="weight")))
        self.assertFalse(
            GoalProgressCalculator.is_workout_goal(goal(type="consistency", status="completed"))
        )

    def test_weekly_and_monthly_goal(self) -> None:
        goals = [
            goal(name="Bench 225", type="weight"),
            goal(name="12 Workouts per Month", type="consistency"),
            goal(name="4 Workouts a WEEK", type="consistency"),
        ]
        self.assertEqual(GoalProgressCalculator.weekly_goal(goals).name, "4 Workouts a WEEK")
        self.assertEqual(GoalProgressCalculator.monthly_goal(goals).name, "12 Workouts per Month")
        self.assertIsNone(GoalProgressCalculator.weekly_goal(goals[:2]))

    def test_buckets(self) -> None:
        goals = [goal(status="active"), goal(status="completed"), goal(status="abandoned")]
        self.assertEqual(len(GoalProgressCalculator.active(goals)), 1)
        self.assertEqual(len(GoalProgressCalculator.completed(goals)), 1)


class AchievementTestCase(unittest.TestCase):
    @staticmethod
    def sessions(days_back):
        return [WorkoutSession(start_time=NOW - datetime.timedelta(days=d)) for d in days_back]

    def test_implied_monthly_target(self) -> None:
        self.assertEqual(GoalProgressCalculator.implied_monthly_target([], NOW), 4)
        self.assertEqual(
            GoalProgressCalculator.implied_monthly_target(self.sessions(range(10)), NOW), 10
        )
        self.assertEqual(
            GoalProgressCalculator.implied_monthly_target(self.sessions([1, 70]), NOW), 4
        )

    def test_mean_of_workout_goals(self) -> None:
        goals = [
            goal(current_value=5, target_value=10),
            goal(current_value=10, target_value=10),
            goal(type="weight", current_value=0, target_value=200),
        ]
        self.assertEqual(GoalProgressCalculator.achievement(goals, [], 0, NOW), 75)

    def test_fallback_without_workout_goals(self) -> None:
        sessions = self.sessions([1, 2])
        self.assertEqual(GoalProgressCalculator.achievement([], sessions, 2, NOW), 50)


class FormattingTestCase(unittest.TestCase):
    def test_summary_labels(self) -> None:
        weight = goal(type="weight", current_value=100, target_value=225)
        self.assertEqual(
            GoalProgressCalculator.format_summary(weight),
            {"id": None, "title": "Goal", "current": "100 lbs", "target": "225 lbs", "progress": 44},
        )
        self.assertEqual(GoalProgressCalculator.format_summary(weight, "kg")["target"], "225 kg")
        times = GoalProgressCalculator.format_summary(goal(current_value=3, target_value=4))
        self.assertEqual(times["current"], "3 times")

    def test_active_row(self) -> None:
        row = GoalProgressCalculator.format_active(
            goal(
                current_value=10,
                deadline=NOW + datetime.timedelta(days=10),
                start_date=NOW - datetime.timedelta(days=20),
            ),
            NOW,
        )
        self.assertEqual(row["status"], "Ready to Complete")
        self.assertEqual(row["target"], "Goal: 10 times")
        self.assertEqual(row["daysLeft"], 10)
        self.assertEqual(row["totalDays"], 30)
        self.assertEqual(
            GoalProgressCalculator.format_active(goal(current_value=2), NOW)["status"],
            "In Progress",
        )

    def test_completed_row(self) -> None:
        done = goal(status="completed", completed_date=NOW - datetime.timedelta(days=3))
        self.assertEqual(GoalProgressCalculator.format_completed(done, NOW)["completedDate"], "3 days ago")
        old = goal(status="completed", completed_date=NOW - datetime.timedelta(days=40))
        self.assertEqual(GoalProgressCalculator.format_completed(old, NOW)["completedDate"], "last month")
        unknown = goal(status="completed")
        self.assertEqual(GoalProgressCalculator.format_completed(unknown, NOW)["completedDate"], "recently")


if __name__ == "__main__":
    unittest.main()
