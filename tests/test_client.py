import unittest
import sys
import os
import shutil
import tempfile
import datetime
from fastapi.testclient import TestClient
sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from client import FitnessClient
from rest_api import FitnessAPI

NOW = datetime.datetime(2024, 1, 5, 18, 0, tzinfo=datetime.timezone.utc)


class ClientTest(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.mkdtemp()
        self.api = FitnessAPI(
            db_path=os.path.join(self.tmpdir, "client.db"),
            yaml_path=os.path.join(self.tmpdir, "client.yaml"),
            clock=lambda: NOW,
        )
        self.client = FitnessClient(
            base_url="http://testserver", session=TestClient(self.api.app)
        )

    def tearDown(self) -> None:
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_workflow(self) -> None:
        uid = self.client.register("Alex", "alex@example.com", "secret-pass")
        self.assertIsInstance(uid, int)
        self.assertEqual(self.client.me()["id"], uid)

        bench = next(
            e["id"] for e in self.client.list_exercises(search="bench")
        )
        wid = self.client.create_workout(
            "Push Day", [{"exercise_id": bench, "sets": 1, "reps": [10]}]
        )
        self.assertEqual([w["id"] for w in self.client.list_workouts()], [wid])

        sid = self.client.log_session(
            wid,
            "2024-01-05T10:00:00Z",
            "2024-01-05T10:45:00Z",
            exercise_logs=[{"exercise_id": bench, "sets": 1, "reps": [10], "weight": [100]}],
        )
        self.assertEqual([s["id"] for s in self.client.list_sessions(limit=5)], [sid])

        gid = self.client.create_goal("Workout 3 times a week", "consistency", 3)
        goal = self.client.update_goal(gid, current_value=1)
        self.assertEqual(goal["current_value"], 1)

        dashboard = self.client.dashboard()
        self.assertEqual(dashboard["weeklyStats"]["workouts"], 1)
        self.assertEqual(dashboard["weeklyStats"]["totalTime"], "0h 45m")
        self.assertEqual(dashboard["quickStats"]["weeklyProgress"], 33)
        self.assertEqual(self.client.progress()["metrics"]["workoutsCompleted"], 1)

        self.client.delete_session(sid)
        self.assertEqual(self.client.list_sessions(), [])

    def test_login_and_preferences(self) -> None:
        self.client.register("Alex", "alex@example.com", "secret-pass")
        key = self.client.api_key
        self.client.api_key = None
        self.assertEqual(self.client.login("alex@example.com", "secret-pass"), key)
        self.assertEqual(self.client.set_preferred_unit("kg")["preferred_unit"], "kg")


if __name__ == "__main__":
    unittest.main()
