from __future__ import annotations
import datetime
import logging
from typing import Iterable, List, Optional

from db import (
    WorkoutSessionRepository,
    GoalRepository,
    SettingsRepository,
    UserRepository,
)
from models import (
    Goal,
    WorkoutSession,
    normalize_goals,
    normalize_sessions,
    parse_timestamp,
)
from settings_schema import DEFAULT_SETTINGS
from algorithms import (
    MathTools,
    StreakCalculator,
    WindowTools,
    StrengthProgressionCalculator,
    GoalProgressCalculator,
)

logger = logging.getLogger(__name__)


class StatisticsService:
    """Compute dashboard and progress statistics for one user."""

    TOP_PROGRESSIONS = 4
    TOP_EXERCISES = 5
    DASHBOARD_GOALS = 3

    def __init__(
        self,
        session_repo: WorkoutSessionRepository | None = None,
        goal_repo: GoalRepository | None = None,
        settings_repo: SettingsRepository | None = None,
        user_repo: UserRepository | None = None,
    ) -> None:
        self.sessions = session_repo
        self.goals = goal_repo
        self.settings = settings_repo
        self.users = user_repo

    @staticmethod
    def _merged_settings(settings: Optional[dict]) -> dict:
        merged = dict(DEFAULT_SETTINGS)
        if settings:
            merged.update(settings)
        return merged

    @staticmethod
    def _number(value: float) -> float | int:
        return int(value) if float(value).is_integer() else value

    # ------------------------------------------------------------------
    # status labels

    @staticmethod
    def volume_status(change: float) -> str:
        if change >= 20:
            return "Excellent Growth"
        if change >= 10:
            return "Strong Progress"
        if change >= 5:
            return "Good Progress"
        if change >= 0:
            return "Steady Progress"
        if change >= -5:
            return "Maintaining"
        if change >= -15:
            return "Slight Decline"
        return "Needs Attention"

    @staticmethod
    def frequency_status(sessions: int, target: float = 3) -> str:
        if sessions == 0:
            return "Inactive"
        percentage = sessions / target * 100 if target > 0 else 100.0
        if percentage >= 120:
            return "Exceeding Goal"
        if percentage >= 100:
            return "Goal Achieved"
        if percentage >= 80:
            return "Nearly There"
        if percentage >= 50:
            return "Making Progress"
        if percentage >= 25:
            return "Getting Started"
        return "Just Started"

    @staticmethod
    def overload_status(increase: float) -> str:
        if increase >= 25:
            return "Outstanding"
        if increase >= 15:
            return "Excellent"
        if increase >= 10:
            return "Very Good"
        if increase >= 5:
            return "Good Progress"
        if increase > 0:
            return "Some Progress"
        return "Needs Focus"

    # ------------------------------------------------------------------
    # dashboard

    @staticmethod
    def upcoming_workouts(
        sessions: List[WorkoutSession], now: datetime.datetime
    ) -> List[dict]:
        """Placeholder schedule: a rest day plus repeats of the last two sessions.

        This does not plan anything. It mirrors recent history so the
        dashboard has something to show.
        """
        upcoming: List[dict] = []
        today = StreakCalculator.day_key(now)
        if not any(StreakCalculator.day_key(s.start_time) == today for s in sessions):
            upcoming.append(
                {
                    "id": "rest-day",
                    "date": "Today",
                    "name": "Rest Day",
                    "description": "Recovery and stretching",
                }
            )
        fallbacks = ["Continue your progress", "Keep up the good work"]
        for offset, session in enumerate(sessions[:2], start=1):
            day = now + datetime.timedelta(days=offset)
            upcoming.append(
                {
                    "id": session.workout_id,
                    "date": f"{day.day}/{day.month}",
                    "name": session.workout.name,
                    "description": session.workout.description
                    or fallbacks[offset - 1],
                }
            )
        return upcoming

    @staticmethod
    def _dashboard_recent(sessions: List[WorkoutSession]) -> List[dict]:
        return [
            {
                "id": s.id,
                "name": s.workout.name,
                "completedAt": (s.end_time or s.start_time).isoformat(),
                "duration": MathTools.round_half_up(WindowTools.duration_minutes(s)),
                "exerciseCount": len(s.exercise_logs),
            }
            for s in sessions
        ]

    @classmethod
    def _target(cls, goal: Optional[Goal], default: int) -> float | int:
        if goal is None:
            return default
        return cls._number(goal.target_value)

    @classmethod
    def dashboard_summary(
        cls,
        sessions: Iterable,
        goals: Iterable,
        now: datetime.datetime,
        settings: Optional[dict] = None,
        unit: str = "lbs",
    ) -> dict:
        """Build the dashboard response from a user's sessions and goals."""
        conf = cls._merged_settings(settings)
        now = parse_timestamp(now)
        sessions = normalize_sessions(sessions)
        goals = normalize_goals(goals)
        weekly_default = int(conf["default_weekly_workouts"])
        monthly_default = int(conf["default_monthly_workouts"])

        windows = WindowTools.partition(sessions, now)
        week_minutes = WindowTools.total_minutes(windows.this_week)
        streak = StreakCalculator.current_streak(
            [s.start_time for s in sessions], now
        )

        weekly_goal = GoalProgressCalculator.weekly_goal(goals)
        monthly_goal = GoalProgressCalculator.monthly_goal(goals)
        weekly_target = cls._target(weekly_goal, weekly_default)
        monthly_target = cls._target(monthly_goal, monthly_default)
        week_count = windows.week_count
        month_count = windows.month_count

        if weekly_goal is not None:
            weekly_tip = (
                f'Progress towards your goal: "{weekly_goal.name}" '
                f"({week_count}/{weekly_target} workouts)"
            )
        else:
            weekly_tip = (
                f"{week_count} workouts this week. "
                f"Recommended: {weekly_default} per week"
            )
        if monthly_goal is not None:
            monthly_tip = (
                f'Progress towards your goal: "{monthly_goal.name}" '
                f"({month_count}/{monthly_target} workouts)"
            )
        else:
            monthly_tip = (
                f"{month_count} workouts this month. "
                f"Recommended: {monthly_default} per month"
            )

        active_goals = GoalProgressCalculator.active(goals)[: cls.DASHBOARD_GOALS]
        recent = sessions[: int(conf["recent_workouts_limit"])]

        return {
            "weeklyStats": {
                "workouts": week_count,
                "totalTime": WindowTools.format_duration(week_minutes),
                "totalMinutes": MathTools.round_half_up(week_minutes),
                "calories": MathTools.round_half_up(
                    week_minutes * float(conf["calories_per_minute"])
                ),
            },
            "recentWorkouts": cls._dashboard_recent(recent),
            "goals": [
                GoalProgressCalculator.format_summary(g, unit) for g in active_goals
            ],
            "quickStats": {
                "weeklyProgress": MathTools.percent(week_count, weekly_target),
                "monthlyProgress": MathTools.percent(month_count, monthly_target),
                "currentStreak": streak,
                "weeklyGoalCurrent": week_count,
                "weeklyGoalTarget": weekly_target,
                "monthlyGoalCurrent": month_count,
                "monthlyGoalTarget": monthly_target,
                "hasWeeklyGoal": weekly_goal is not None,
                "hasMonthlyGoal": monthly_goal is not None,
                "isUsingDefaults": weekly_goal is None and monthly_goal is None,
                "weeklyGoalName": weekly_goal.name if weekly_goal else None,
                "monthlyGoalName": monthly_goal.name if monthly_goal else None,
                "tooltips": {
                    "weeklyProgress": weekly_tip,
                    "monthlyProgress": monthly_tip,
                    "currentStreak": (
                        f"You've worked out for {streak} consecutive days! Keep it up!"
                        if streak > 0
                        else "Start a workout streak by exercising today"
                    ),
                    "weeklyGoal": (
                        f"Your personal goal: {weekly_goal.name}"
                        if weekly_goal
                        else "Set a weekly consistency goal to track your progress"
                    ),
                    "monthlyGoal": (
                        f"Your personal goal: {monthly_goal.name}"
                        if monthly_goal
                        else "Set a monthly consistency goal to track your progress"
                    ),
                },
            },
            "upcomingWorkouts": cls.upcoming_workouts(sessions, now),
        }

    # ------------------------------------------------------------------
    # progress

    @classmethod
    def achievements(
        cls,
        progressions: List[dict],
        streak: int,
        month_count: int,
        goals: List[Goal],
        now: datetime.datetime,
        unit: str = "lbs",
    ) -> List[dict]:
        """Return the three standard badges plus a goal badge when earned."""
        badges: List[dict] = []
        if progressions:
            best = progressions[0]
            badges.append(
                {
                    "type": "Strength PR",
                    "description": f"{best['exercise']}: +{cls._number(best['increase'])} {unit}",
                    "status": "Recent",
                    "icon": "trophy",
                }
            )
        else:
            badges.append(
                {
                    "type": "Strength PR",
                    "description": "Lift more than your first logged weight",
                    "status": "locked",
                    "icon": "trophy",
                }
            )
        if streak > 0:
            badges.append(
                {
                    "type": "Consistency",
                    "description": f"{streak} day{'s' if streak > 1 else ''} workout streak",
                    "status": "Excellent" if streak >= 7 else "Good",
                    "icon": "target",
                }
            )
        else:
            badges.append(
                {
                    "type": "Consistency",
                    "description": "Work out on consecutive days to start a streak",
                    "status": "locked",
                    "icon": "target",
                }
            )
        if month_count > 0:
            if month_count >= 12:
                status = "Excellent"
            elif month_count >= 8:
                status = "Good"
            else:
                status = "Getting Started"
            badges.append(
                {
                    "type": "Monthly Volume",
                    "description": f"{month_count} workouts completed this month",
                    "status": status,
                    "icon": "activity",
                }
            )
        else:
            badges.append(
                {
                    "type": "Monthly Volume",
                    "description": "Complete a workout this month",
                    "status": "locked",
                    "icon": "activity",
                }
            )

        month_start = WindowTools.month_start(now)
        done = [
            g
            for g in GoalProgressCalculator.completed(goals)
            if g.completed_date is not None and g.completed_date >= month_start
        ]
        if done:
            badges.append(
                {
                    "type": "Goal Achieved",
                    "description": f"Completed {len(done)} goal{'s' if len(done) > 1 else ''} this month",
                    "status": "Completed",
                    "icon": "trophy",
                }
            )
        return badges

    @classmethod
    def performance_metrics(
        cls,
        this_month: List[WorkoutSession],
        last_month: List[WorkoutSession],
        week_count: int,
        weekly_target: float,
        strength_increase: int,
        unit: str = "lbs",
    ) -> dict:
        this_volume = StrengthProgressionCalculator.sessions_volume(this_month)
        last_volume = StrengthProgressionCalculator.sessions_volume(last_month)

        change = 0
        status = "Getting Started"
        explanation = "Complete workouts with tracked weights to see volume progress."
        if this_volume > 0 and last_volume > 0:
            change = MathTools.percent(this_volume - last_volume, last_volume, cap=None)
            status = cls.volume_status(change)
            direction = "Increased" if change >= 0 else "Decreased"
            explanation = (
                f"{direction} by {abs(change)}% from last month. "
                "Volume = total weight lifted."
            )
        elif this_volume > 0:
            change = 100
            status = "New Start"
            explanation = (
                "Started tracking this month! Total volume: "
                f"{MathTools.round_half_up(this_volume)} {unit} lifted."
            )
        elif this_month:
            status = "Tracking Started"
            explanation = (
                "Complete workouts with weight tracking to calculate volume progress."
            )

        if weekly_target > 3:
            frequency_note = f"Your goal is {weekly_target} sessions per week."
        else:
            frequency_note = "Optimal frequency is 3-4 sessions per week."

        if strength_increase > 0:
            overload_note = (
                f"{strength_increase}% average increase in strength across tracked exercises."
            )
        elif this_month:
            overload_note = (
                "Focus on gradually increasing weight, reps, or sets in your workouts."
            )
        else:
            overload_note = (
                "Complete workouts with progressive overload to track strength gains."
            )

        return {
            "totalVolume": {
                "value": change,
                "status": status,
                "explanation": explanation,
                "previousMonth": round(last_volume, 2),
            },
            "trainingFrequency": {
                "value": week_count,
                "status": cls.frequency_status(week_count, weekly_target),
                "explanation": f"{week_count} workouts this week. {frequency_note}",
                "target": weekly_target,
            },
            "progressiveOverload": {
                "value": strength_increase,
                "status": cls.overload_status(strength_increase),
                "explanation": overload_note,
                "sessionCount": len(this_month),
            },
        }

    @classmethod
    def progress_summary(
        cls,
        sessions: Iterable,
        goals: Iterable,
        now: datetime.datetime,
        settings: Optional[dict] = None,
        unit: str = "lbs",
    ) -> dict:
        """Build the progress response from a user's completed sessions."""
        conf = cls._merged_settings(settings)
        now = parse_timestamp(now)
        sessions = [s for s in normalize_sessions(sessions) if s.completed]
        goals = normalize_goals(goals)
        timestamps = [s.start_time for s in sessions]

        windows = WindowTools.partition(sessions, now)
        streak = StreakCalculator.current_streak(timestamps, now)
        progressions = StrengthProgressionCalculator.progressions(sessions)
        strength_increase = StrengthProgressionCalculator.average_increase(progressions)

        weekly_goal = GoalProgressCalculator.weekly_goal(goals)
        weekly_target = cls._target(weekly_goal, int(conf["default_weekly_workouts"]))
        active_count = len(GoalProgressCalculator.active(goals))

        consistency = MathTools.percent(windows.week_count, weekly_target)
        strength_value = min(strength_increase, 100)
        achievement = GoalProgressCalculator.achievement(
            goals, sessions, windows.month_count, now
        )

        if not goals:
            goal_note = "Set specific fitness goals to track your progress more effectively."
        else:
            goal_note = f"Progress across {active_count} active goals."
        if progressions:
            strength_note = (
                f"Average strength increase across {len(progressions)} "
                "exercises with tracked progress."
            )
        else:
            strength_note = (
                "Complete workouts with progressive overload to track strength gains."
            )

        recent = sessions[: int(conf["recent_workouts_limit"])]

        return {
            "metrics": {
                "workoutsCompleted": len(sessions),
                "weeklyChange": windows.weekly_change,
                "strengthIncrease": strength_increase,
                "streak": streak,
                "longestStreak": StreakCalculator.longest_streak(timestamps),
                "trainingTime": MathTools.round_half_up(
                    WindowTools.total_minutes(windows.this_month) / 60
                ),
            },
            "progressMetrics": {
                "workoutConsistency": {
                    "value": consistency,
                    "explanation": (
                        f"Based on {windows.week_count} workouts this week. "
                        "Consistency is key to fitness success."
                    ),
                    "target": weekly_target,
                },
                "strengthProgression": {
                    "value": strength_value,
                    "explanation": strength_note,
                    "exerciseCount": len(progressions),
                },
                "goalAchievement": {
                    "value": achievement,
                    "explanation": goal_note,
                    "activeGoalsCount": active_count,
                },
                "overallProgress": MathTools.mean(
                    [consistency, strength_value, achievement]
                ),
            },
            "achievements": cls.achievements(
                progressions, streak, windows.month_count, goals, now, unit
            ),
            "weekSummary": WindowTools.week_summary(sessions, now),
            "strengthProgression": StrengthProgressionCalculator.top(
                progressions, cls.TOP_PROGRESSIONS
            ),
            "performanceMetrics": cls.performance_metrics(
                windows.this_month,
                windows.last_month,
                windows.week_count,
                weekly_target,
                strength_increase,
                unit,
            ),
            "currentGoals": [
                GoalProgressCalculator.format_active(g, now, unit)
                for g in GoalProgressCalculator.active(goals)
            ],
            "completedGoals": [
                GoalProgressCalculator.format_completed(g, now)
                for g in GoalProgressCalculator.completed(goals)
            ],
            "recentWorkouts": [
                {
                    "id": s.id,
                    "name": s.workout.name,
                    "date": (s.end_time or s.start_time).isoformat(),
                }
                for s in recent
            ],
            "exerciseAnalytics": {
                "mostFrequentExercises": StrengthProgressionCalculator.exercise_frequency(
                    sessions, cls.TOP_EXERCISES
                ),
                "muscleGroupDistribution": StrengthProgressionCalculator.muscle_group_distribution(
                    sessions
                ),
            },
            "volumeData": WindowTools.monthly_buckets(sessions, now),
        }

    # ------------------------------------------------------------------
    # repository backed

    def _user_context(self, user_id: int) -> tuple[dict, str]:
        settings = (
            self.settings.all_settings() if self.settings is not None else {}
        )
        unit = settings.get("weight_unit", DEFAULT_SETTINGS["weight_unit"])
        if self.users is not None:
            unit = self.users.fetch_detail(user_id)["preferred_unit"]
        return settings, unit

    def _snapshot(self, user_id: int, completed_only: bool = False) -> tuple[list, list]:
        if self.sessions is None or self.goals is None:
            raise RuntimeError("session and goal repositories are required")
        sessions = self.sessions.fetch_for_user(user_id, completed_only=completed_only)
        goals = self.goals.fetch_for_user(user_id)
        return sessions, goals

    def dashboard(self, user_id: int, now: datetime.datetime) -> dict:
        sessions, goals = self._snapshot(user_id)
        settings, unit = self._user_context(user_id)
        logger.debug(
            "dashboard for user %s over %d sessions and %d goals",
            user_id,
            len(sessions),
            len(goals),
        )
        return self.dashboard_summary(sessions, goals, now, settings, unit)

    def progress(self, user_id: int, now: datetime.datetime) -> dict:
        sessions, goals = self._snapshot(user_id, completed_only=True)
        settings, unit = self._user_context(user_id)
        logger.debug(
            "progress for user %s over %d sessions and %d goals",
            user_id,
            len(sessions),
            len(goals),
        )
        return self.progress_summary(sessions, goals, now, settings, unit)
