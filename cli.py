import argparse
import csv
import datetime
import json
import logging
import os
import shutil
import time

import requests

from db import (
    Database,
    UserRepository,
    ExerciseRepository,
    WorkoutRepository,
    WorkoutSessionRepository,
    GoalRepository,
    SettingsRepository,
)
from algorithms import WeightConverter
from config import default_db_path, default_settings_path
from stats_service import StatisticsService

logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "demo-password"


def _user_id(db_path: str, email: str) -> int:
    uid = UserRepository(db_path).fetch_by_email(email)
    if uid is None:
        raise SystemExit(f"no user with email {email}")
    return uid


def export_sessions(db_path: str, email: str, fmt: str, output_dir: str = ".") -> str:
    """Write a user's sessions to ``sessions.json`` or ``sessions.csv``."""
    uid = _user_id(db_path, email)
    sessions = WorkoutSessionRepository(db_path).fetch_for_user(uid)
    if fmt == "json":
        out_path = os.path.join(output_dir, "sessions.json")
        with open(out_path, "w", encoding="utf-8") as f:
            json.dump(sessions, f, indent=2)
        return out_path

    out_path = os.path.join(output_dir, "sessions.csv")
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(
            ["session_id", "start_time", "end_time", "workout", "exercise", "set", "reps", "weight"]
        )
        for s in sessions:
            workout = s["workout"]["name"] if s["workout"] else ""
            for log in s["exercise_logs"]:
                exercise = log["exercise"]["name"] if log["exercise"] else ""
                for idx, reps in enumerate(log["reps"]):
                    weight = log["weight"][idx] if idx < len(log["weight"]) else 0
                    writer.writerow(
                        [s["id"], s["start_time"], s["end_time"], workout, exercise, idx + 1, reps, weight]
                    )
    return out_path


def backup_db(db_path: str, backup_path: str) -> None:
    shutil.copy(db_path, backup_path)


def restore_db(backup_path: str, db_path: str) -> None:
    shutil.copy(backup_path, db_path)


def vacuum_db(db_path: str) -> None:
    Database(db_path).vacuum()
    logger.info("vacuumed %s", db_path)


def convert_weight(text: str, to_unit: str) -> str:
    """Convert a weight such as ``"100 kg"`` and format it in ``to_unit``."""
    parsed = WeightConverter.parse(text)
    if parsed is None:
        raise ValueError(f"cannot read weight: {text}")
    value, unit = parsed
    converted = WeightConverter.convert(value, unit, to_unit)
    return f"{WeightConverter.format(value, unit)} = {WeightConverter.format(converted, to_unit)}"


def benchmark(url: str, runs: int = 10) -> None:
    times: list[float] = []
    for _ in range(runs):
        t0 = time.time()
        requests.get(f"{url}/health", timeout=5)
        times.append(time.time() - t0)
    avg = sum(times) / len(times)
    print(f"Average /health response time over {runs} runs: {avg:.4f}s")


def demo_data(db_path: str, yaml_path: str, now: datetime.datetime | None = None) -> str:
    """Create a demo user with two weeks of history and return its API key."""
    now = now or datetime.datetime.now(datetime.timezone.utc)
    settings = SettingsRepository(db_path, yaml_path)
    users = UserRepository(db_path)
    pepper = settings.get_text("password_pepper", "")
    if users.fetch_by_email(DEMO_EMAIL) is not None:
        print("Demo user already exists")
        return users.authenticate(DEMO_EMAIL, DEMO_PASSWORD, pepper) or ""

    uid, api_key = users.create("Demo User", DEMO_EMAIL, DEMO_PASSWORD, pepper=pepper)
    exercises = {e["name"]: e["id"] for e in ExerciseRepository(db_path).fetch_all_exercises()}
    bench = exercises["Bench Press"]
    squat = exercises["Back Squat"]
    wid = WorkoutRepository(db_path).create(
        uid,
        "Full Body",
        "Compound lifts",
        exercises=[
            {"exercise_id": bench, "sets": 3, "reps": [8, 8, 8]},
            {"exercise_id": squat, "sets": 3, "reps": [5, 5, 5]},
        ],
    )
    sessions = WorkoutSessionRepository(db_path)
    for i, days_back in enumerate([13, 11, 9, 6, 4, 2, 1]):
        start = now - datetime.timedelta(days=days_back, hours=1)
        sessions.create(
            uid,
            wid,
            start,
            start + datetime.timedelta(minutes=50),
            True,
            exercise_logs=[
                {"exercise_id": bench, "sets": 3, "reps": [8, 8, 8], "weight": [100 + 5 * i] * 3},
                {"exercise_id": squat, "sets": 3, "reps": [5, 5, 5], "weight": [135 + 10 * i] * 3},
            ],
        )
    GoalRepository(db_path).add(uid, "3 workouts per week", "consistency", 3, now=now)
    logger.info("created demo user %s", uid)
    print("Demo data inserted")
    return api_key


def print_summary(db_path: str, yaml_path: str, email: str, kind: str) -> dict:
    uid = _user_id(db_path, email)
    service = StatisticsService(
        WorkoutSessionRepository(db_path),
        GoalRepository(db_path),
        SettingsRepository(db_path, yaml_path),
        UserRepository(db_path),
    )
    now = datetime.datetime.now(datetime.timezone.utc)
    if kind == "progress":
        data = service.progress(uid, now)
    else:
        data = service.dashboard(uid, now)
    print(json.dumps(data, indent=2))
    return data


def main() -> None:
    parser = argparse.ArgumentParser(description="Utility commands")
    sub = parser.add_subparsers(dest="cmd", required=True)

    exp = sub.add_parser("export")
    exp.add_argument("--db", default=default_db_path())
    exp.add_argument("--email", required=True)
    exp.add_argument("--fmt", choices=["csv", "json"], default="csv")
    exp.add_argument("--out", default=".")

    bkp = sub.add_parser("backup")
    bkp.add_argument("--db", default=default_db_path())
    bkp.add_argument("--out", default="backup.db")

    rst = sub.add_parser("restore")
    rst.add_argument("--in", dest="src", default="backup.db")
    rst.add_argument("--db", default=default_db_path())

    demo = sub.add_parser("demo")
    demo.add_argument("--db", default=default_db_path())
    demo.add_argument("--yaml", default=default_settings_path())

    summ = sub.add_parser("summary")
    summ.add_argument("--db", default=default_db_path())
    summ.add_argument("--yaml", default=default_settings_path())
    summ.add_argument("--email", required=True)
    summ.add_argument("--kind", choices=["dashboard", "progress"], default="dashboard")

    bench = sub.add_parser("benchmark")
    bench.add_argument("--url", default="http://localhost:8000")
    bench.add_argument("--runs", type=int, default=10)

    conv = sub.add_parser("convert")
    conv.add_argument("weight", help="for example \"100 kg\" or \"225lbs\"")
    conv.add_argument("--to", choices=list(WeightConverter.UNITS), required=True)

    vac = sub.add_parser("vacuum")
    vac.add_argument("--db", default=default_db_path())

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    if args.cmd == "export":
        print(export_sessions(args.db, args.email, args.fmt, args.out))
    elif args.cmd == "backup":
        backup_db(args.db, args.out)
    elif args.cmd == "restore":
        restore_db(args.src, args.db)
    elif args.cmd == "demo":
        print(f"API key: {demo_data(args.db, args.yaml)}")
    elif args.cmd == "summary":
        print_summary(args.db, args.yaml, args.email, args.kind)
    elif args.cmd == "benchmark":
        benchmark(args.url, args.runs)
    elif args.cmd == "convert":
        print(convert_weight(args.weight, args.to))
    elif args.cmd == "vacuum":
        vacuum_db(args.db)


if __name__ == "__main__":
    main()
