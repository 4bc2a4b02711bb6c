import datetime
import math
from typing import Iterable, List, Optional

from models import Goal, WorkoutSession
from .math_tools import MathTools
from .streaks import StreakCalculator
from .weight_converter import WeightConverter


class GoalProgressCalculator:
    """Percent-complete and classification of user goals."""

    MIN_MONTHLY_TARGET = 4
    FALLBACK_WINDOW_DAYS = 30

    @staticmethod
    def progress(goal: Goal) -> int:
        """Return ``current / target`` as a percentage clamped to [0, 100]."""
        return MathTools.percent(goal.current_value, goal.target_value)

    @staticmethod
    def active(goals: Iterable[Goal]) -> List[Goal]:
        return [g for g in goals if g.status == "active"]

    @staticmethod
    def completed(goals: Iterable[Goal]) -> List[Goal]:
        return [g for g in goals if g.status == "completed"]

    @staticmethod
    def is_workout_goal(goal: Goal) -> bool:
        return goal.status == "active" and (
            goal.type == "consistency" or "workout" in goal.type
        )

    @classmethod
    def workout_goals(cls, goals: Iterable[Goal]) -> List[Goal]:
        return [g for g in goals if cls.is_workout_goal(g)]

    @classmethod
    def _named_goal(cls, goals: Iterable[Goal], marker: str) -> Optional[Goal]:
        for goal in cls.workout_goals(goals):
            if marker in goal.name.lower():
                return goal
        return None

    @classmethod
    def weekly_goal(cls, goals: Iterable[Goal]) -> Optional[Goal]:
        """First workout goal whose name mentions a week."""
        return cls._named_goal(goals, "week")

    @classmethod
    def monthly_goal(cls, goals: Iterable[Goal]) -> Optional[Goal]:
        """First workout goal whose name mentions a month."""
        return cls._named_goal(goals, "month")

    @classmethod
    def implied_monthly_target(
        cls, sessions: List[WorkoutSession], now: datetime.datetime
    ) -> int:
        """Derive a monthly workout target from historical frequency."""
        if not sessions:
            return cls.MIN_MONTHLY_TARGET
        earliest = min(s.start_time for s in sessions)
        span = (now - earliest).total_seconds() / (cls.FALLBACK_WINDOW_DAYS * 86400)
        months_with_data = max(1, math.ceil(span))
        average = MathTools.round_half_up(len(sessions) / months_with_data)
        if average == 0:
            average = cls.MIN_MONTHLY_TARGET
        return max(cls.MIN_MONTHLY_TARGET, average)

    @classmethod
    def achievement(
        cls,
        goals: Iterable[Goal],
        sessions: List[WorkoutSession],
        month_count: int,
        now: datetime.datetime,
    ) -> int:
        """Overall goal achievement score in percent.

        Averages the progress of active workout goals. Without such goals the
        score compares this month's sessions against a target implied by the
        user's own history.
        """
        workout_goals = cls.workout_goals(goals)
        if workout_goals:
            return MathTools.mean(cls.progress(g) for g in workout_goals)
        target = cls.implied_monthly_target(sessions, now)
        return MathTools.percent(month_count, target)

    @staticmethod
    def _value_label(value: float, goal: Goal, unit: str) -> str:
        if goal.type == "weight":
            return WeightConverter.format(value, unit)
        if float(value).is_integer():
            value = int(value)
        return f"{value} times"

    @classmethod
    def format_summary(cls, goal: Goal, unit: str = "lbs") -> dict:
        """Compact goal row used on the dashboard."""
        return {
            "id": goal.id,
            "title": goal.name,
            "current": cls._value_label(goal.current_value, goal, unit),
            "target": cls._value_label(goal.target_value, goal, unit),
            "progress": cls.progress(goal),
        }

    @classmethod
    def format_active(
        cls, goal: Goal, now: datetime.datetime, unit: str = "lbs"
    ) -> dict:
        progress = cls.progress(goal)
        row = {
            "id": goal.id,
            "name": goal.name,
            "type": goal.type,
            "status": "Ready to Complete" if progress >= 100 else "In Progress",
            "progress": progress,
            "current": cls._value_label(goal.current_value, goal, unit),
            "target": "Goal: " + cls._value_label(goal.target_value, goal, unit),
        }
        if goal.deadline is not None:
            row["daysLeft"] = max(0, StreakCalculator.days_between(now, goal.deadline))
            if goal.start_date is not None:
                row["totalDays"] = max(
                    0, StreakCalculator.days_between(goal.start_date, goal.deadline)
                )
        return row

    @staticmethod
    def format_completed(goal: Goal, now: datetime.datetime) -> dict:
        return {
            "id": goal.id,
            "name": goal.name,
            "completedDate": StreakCalculator.relative_label(goal.completed_date, now),
        }
