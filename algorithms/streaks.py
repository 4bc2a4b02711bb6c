import datetime
from typing import Iterable, List, Optional


class StreakCalculator:
    """Consecutive-day streaks and relative day labels."""

    @staticmethod
    def day_key(ts: datetime.datetime) -> str:
        """Return the ``YYYY-MM-DD`` key of the UTC day containing ``ts``."""
        if ts.tzinfo is not None:
            ts = ts.astimezone(datetime.timezone.utc)
        return ts.date().isoformat()

    @classmethod
    def distinct_days(cls, timestamps: Iterable[datetime.datetime]) -> List[str]:
        """Return distinct day keys sorted newest first."""
        return sorted({cls.day_key(ts) for ts in timestamps}, reverse=True)

    @classmethod
    def current_streak(
        cls, timestamps: Iterable[datetime.datetime], now: datetime.datetime
    ) -> int:
        """Return the consecutive-day run ending at the most recent workout day.

        When the most recent day is today the count starts at 1 and the scan
        continues with the day before. Otherwise the run ending at the most
        recent day is counted even though it no longer touches today.
        """
        days = [datetime.date.fromisoformat(d) for d in cls.distinct_days(timestamps)]
        if not days:
            return 0
        has_today = days[0].isoformat() == cls.day_key(now)
        streak = 1 if has_today else 0
        start = 1 if has_today else 0
        prev = days[0] if has_today else days[0] + datetime.timedelta(days=1)
        for day in days[start:]:
            if (prev - day).days != 1:
                break
            streak += 1
            prev = day
        return streak

    @classmethod
    def longest_streak(cls, timestamps: Iterable[datetime.datetime]) -> int:
        """Return the longest run of consecutive workout days."""
        days = sorted(
            datetime.date.fromisoformat(d) for d in cls.distinct_days(timestamps)
        )
        if not days:
            return 0
        record = 1
        current = 1
        for i in range(1, len(days)):
            if (days[i] - days[i - 1]).days == 1:
                current += 1
            else:
                record = max(record, current)
                current = 1
        return max(record, current)

    @staticmethod
    def days_between(earlier: datetime.datetime, now: datetime.datetime) -> int:
        """Whole days elapsed from ``earlier`` to ``now``."""
        return int((now - earlier).total_seconds() // 86400)

    # Days 7..59 read "last month" so that a session 40 days old is still
    # "last month"; a 30-day cut-off would call it "recently".
    LAST_MONTH_DAYS = 60

    @classmethod
    def relative_label(
        cls, completed: Optional[datetime.datetime], now: datetime.datetime
    ) -> str:
        """Return a coarse label such as ``"3 days ago"`` for ``completed``."""
        if completed is None:
            return "recently"
        days = cls.days_between(completed, now)
        if days <= 0:
            return "today"
        if days == 1:
            return "yesterday"
        if days < 7:
            return f"{days} days ago"
        if days < cls.LAST_MONTH_DAYS:
            return "last month"
        return "recently"
