import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from algorithms import WindowTools
from models import WorkoutSession

UTC = datetime.timezone.utc
NOW = datetime.datetime(2024, 3, 15, 12, 0, tzinfo=UTC)  # Friday


def session(start: datetime.datetime, minutes: int | None = None, logs=None) -> WorkoutSession:
    end = start + datetime.timedelta(minutes=minutes) if minutes is not None else None
    return WorkoutSession.model_validate(
        {"start_time": start, "end_time": end, "exercise_logs": logs}
    )


class PartitionTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.s1 = session(NOW - datetime.timedelta(days=1), 45)
        self.s2 = session(NOW - datetime.timedelta(days=5))
        self.s3 = session(NOW - datetime.timedelta(days=10), 30)
        self.s4 = session(datetime.datetime(2024, 2, 20, 9, tzinfo=UTC), 60)
        self.s5 = session(datetime.datetime(2024, 1, 20, 9, tzinfo=UTC), 60)
        self.sessions = [self.s1, self.s2, self.s3, self.s4, self.s5]

    def test_windows(self) -> None:
        w = WindowTools.partition(self.sessions, NOW)
        self.assertEqual(w.this_week, [self.s1, self.s2])
        self.assertEqual(w.last_week, [self.s3])
        self.assertEqual(w.this_month, [self.s1, self.s2, self.s3])
        self.assertEqual(w.last_month, [self.s4])
        self.assertEqual(w.week_count, 2)
        self.assertEqual(w.last_week_count, 1)
        self.assertEqual(w.month_count, 3)
        self.assertEqual(w.weekly_change, 1)

    def test_week_windows_disjoint(self) -> None:
        w = WindowTools.partition(self.sessions, NOW)
        ids = {id(s) for s in w.this_week}
        self.assertFalse(ids & {id(s) for s in w.last_week})

    def test_boundaries(self) -> None:
        edge_week = session(NOW - datetime.timedelta(days=7))
        edge_last = session(NOW - datetime.timedelta(days=14))
        w = WindowTools.partition([edge_week, edge_last], NOW)
        self.assertEqual(w.this_week, [edge_week])
        self.assertEqual(w.last_week, [edge_last])

    def test_month_start(self) -> None:
        self.assertEqual(
            WindowTools.month_start(NOW), datetime.datetime(2024, 3, 1, tzinfo=UTC)
        )
        self.assertEqual(
            WindowTools.month_start(NOW, 1), datetime.datetime(2024, 2, 1, tzinfo=UTC)
        )
        january = datetime.datetime(2024, 1, 15, tzinfo=UTC)
        self.assertEqual(
            WindowTools.month_start(january, 1),
            datetime.datetime(2023, 12, 1, tzinfo=UTC),
        )


class DurationTestCase(unittest.TestCase):
    def test_duration_minutes(self) -> None:
        self.assertEqual(WindowTools.duration_minutes(session(NOW, 45)), 45.0)
        self.assertEqual(WindowTools.duration_minutes(session(NOW)), 0.0)
        backwards = WorkoutSession(start_time=NOW, end_time=NOW - datetime.timedelta(minutes=5))
        self.assertEqual(WindowTools.duration_minutes(backwards), 0.0)
        self.assertEqual(
            WindowTools.total_minutes([session(NOW, 45), session(NOW), session(NOW, 30)]),
            75.0,
        )

    def test_format_duration(self) -> None:
        self.assertEqual(WindowTools.format_duration(90), "1h 30m")
        self.assertEqual(WindowTools.format_duration(120), "2h")
        self.assertEqual(WindowTools.format_duration(0), "0h")
        self.assertEqual(WindowTools.format_duration(59.6), "1h")


class SummaryTestCase(unittest.TestCase):
    def test_week_summary(self) -> None:
        sessions = [
            session(datetime.datetime(2024, 3, 14, 7, tzinfo=UTC)),
            session(datetime.datetime(2024, 3, 10, 7, tzinfo=UTC)),
            session(NOW),
        ]
        summary = WindowTools.week_summary(sessions, NOW)
        self.assertEqual([d["day"] for d in summary], ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"])
        self.assertEqual(summary[0]["date"], "2024-03-11")
        self.assertEqual(
            [d["status"] for d in summary],
            ["planned", "planned", "planned", "completed", "today", "planned", "planned"],
        )

    def test_week_summary_on_sunday(self) -> None:
        sunday = datetime.datetime(2024, 3, 17, 12, tzinfo=UTC)
        summary = WindowTools.week_summary([], sunday)
        self.assertEqual(summary[0]["date"], "2024-03-11")
        self.assertEqual(summary[6]["status"], "today")

    def test_monthly_buckets(self) -> None:
        logs = [{"exercise_id": 1, "sets": 2, "reps": [10, 10], "weight": [100, 100]}]
        sessions = [
            session(NOW - datetime.timedelta(days=1), 45, logs),
            session(NOW - datetime.timedelta(days=2)),
            session(datetime.datetime(2024, 2, 20, 9, tzinfo=UTC), 60),
        ]
        buckets = WindowTools.monthly_buckets(sessions, NOW)
        self.assertEqual([b["name"] for b in buckets], ["Oct", "Nov", "Dec", "Jan", "Feb", "Mar"])
        self.assertEqual(buckets[-1], {"name": "Mar", "volume": 2000.0, "sessions": 2})
        self.assertEqual(buckets[-2]["sessions"], 1)
        self.assertEqual(buckets[0]["volume"], 0)


if __name__ == "__main__":
    unittest.main()
