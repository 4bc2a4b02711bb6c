import datetime
from typing import Iterable, List

from models import WorkoutSession
from .math_tools import MathTools
from .streaks import StreakCalculator


WEEK_DAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
MONTH_NAMES = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]


class SessionWindows:
    """Sessions bucketed relative to a reference time."""

    def __init__(
        self,
        this_week: List[WorkoutSession],
        last_week: List[WorkoutSession],
        this_month: List[WorkoutSession],
        last_month: List[WorkoutSession],
    ) -> None:
        self.this_week = this_week
        self.last_week = last_week
        self.this_month = this_month
        self.last_month = last_month

    @property
    def week_count(self) -> int:
        return len(self.this_week)

    @property
    def last_week_count(self) -> int:
        return len(self.last_week)

    @property
    def month_count(self) -> int:
        return len(self.this_month)

    @property
    def weekly_change(self) -> int:
        return self.week_count - self.last_week_count


class WindowTools:
    """Partition sessions into rolling weeks and calendar months."""

    @staticmethod
    def month_start(now: datetime.datetime, months_back: int = 0) -> datetime.datetime:
        """Return 00:00 on the first day of the month ``months_back`` before ``now``."""
        index = now.year * 12 + (now.month - 1) - months_back
        year, month = divmod(index, 12)
        return now.replace(
            year=year, month=month + 1, day=1, hour=0, minute=0, second=0, microsecond=0
        )

    @classmethod
    def partition(
        cls, sessions: Iterable[WorkoutSession], now: datetime.datetime
    ) -> SessionWindows:
        one_week_ago = now - datetime.timedelta(days=7)
        two_weeks_ago = now - datetime.timedelta(days=14)
        this_month_start = cls.month_start(now)
        last_month_start = cls.month_start(now, 1)
        this_week: List[WorkoutSession] = []
        last_week: List[WorkoutSession] = []
        this_month: List[WorkoutSession] = []
        last_month: List[WorkoutSession] = []
        for s in sessions:
            start = s.start_time
            if start >= one_week_ago:
                this_week.append(s)
            elif start >= two_weeks_ago:
                last_week.append(s)
            if start >= this_month_start:
                this_month.append(s)
            elif start >= last_month_start:
                last_month.append(s)
        return SessionWindows(this_week, last_week, this_month, last_month)

    @staticmethod
    def duration_minutes(session: WorkoutSession) -> float:
        """Return the session length in minutes, 0 without an end time."""
        if session.end_time is None:
            return 0.0
        minutes = (session.end_time - session.start_time).total_seconds() / 60.0
        return max(minutes, 0.0)

    @classmethod
    def total_minutes(cls, sessions: Iterable[WorkoutSession]) -> float:
        return sum(cls.duration_minutes(s) for s in sessions)

    @staticmethod
    def format_duration(total_minutes: float) -> str:
        """Format minutes as ``"1h 30m"``; zero minutes are dropped."""
        hours = int(total_minutes // 60)
        minutes = MathTools.round_half_up(total_minutes % 60)
        if minutes == 60:
            hours, minutes = hours + 1, 0
        if minutes > 0:
            return f"{hours}h {minutes}m"
        return f"{hours}h"

    @staticmethod
    def week_summary(
        sessions: Iterable[WorkoutSession], now: datetime.datetime
    ) -> List[dict]:
        """Return Mon..Sun status entries for the calendar week containing ``now``."""
        worked = {StreakCalculator.day_key(s.start_time) for s in sessions}
        today = now.date()
        monday = today - datetime.timedelta(days=today.isoweekday() - 1)
        summary = []
        for i, name in enumerate(WEEK_DAYS):
            day = monday + datetime.timedelta(days=i)
            key = day.isoformat()
            if day == today:
                status = "today"
            elif key in worked:
                status = "completed"
            else:
                status = "planned"
            summary.append({"day": name, "date": key, "status": status})
        return summary

    @classmethod
    def monthly_buckets(
        cls,
        sessions: Iterable[WorkoutSession],
        now: datetime.datetime,
        months: int = 6,
    ) -> List[dict]:
        """Return volume and session counts per calendar month, oldest first."""
        sessions = list(sessions)
        buckets = []
        for back in range(months - 1, -1, -1):
            start = cls.month_start(now, back)
            end = cls.month_start(now, back - 1)
            in_month = [s for s in sessions if start <= s.start_time < end]
            volume = 0.0
            for s in in_month:
                for log in s.exercise_logs:
                    volume += MathTools.volume(log.reps, log.weight)
            buckets.append(
                {
                    "name": MONTH_NAMES[start.month - 1],
                    "volume": round(volume, 2),
                    "sessions": len(in_month),
                }
            )
        return buckets
