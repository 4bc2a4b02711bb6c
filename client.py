import requests
from typing import Optional

class FitnessClient:
    """Simple REST client for the fitness tracking API."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        api_key: Optional[str] = None,
        session=None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs):
        headers = kwargs.pop("headers", {})
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        resp = self.session.request(
            method, f"{self.base_url}{path}", headers=headers, **kwargs
        )
        resp.raise_for_status()
        return resp.json()

    def register(self, name: str, email: str, password: str) -> int:
        """Create an account and keep its API key for later calls."""
        data = self._request(
            "POST",
            "/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        self.api_key = data["api_key"]
        return data["id"]

    def login(self, email: str, password: str) -> str:
        data = self._request(
            "POST", "/auth/login", json={"email": email, "password": password}
        )
        self.api_key = data["api_key"]
        return self.api_key

    def me(self) -> dict:
        return self._request("GET", "/users/me")

    def set_preferred_unit(self, unit: str) -> dict:
        return self._request(
            "PUT", "/user/preferences", json={"preferred_unit": unit}
        )

    def list_exercises(self, **params: str):
        return self._request("GET", "/exercises", params=params)

    def create_workout(self, name: str, exercises: list[dict] | None = None, **fields) -> int:
        body = {"name": name, "exercises": exercises or [], **fields}
        return self._request("POST", "/workouts", json=body)["id"]

    def list_workouts(self, public: bool = False):
        params = {"public": "true"} if public else {}
        return self._request("GET", "/workouts", params=params)

    def log_session(
        self,
        workout_id: int,
        start_time: str,
        end_time: Optional[str] = None,
        completed: bool = True,
        exercise_logs: list[dict] | None = None,
        notes: Optional[str] = None,
    ) -> int:
        body = {
            "workout_id": workout_id,
            "start_time": start_time,
            "end_time": end_time,
            "completed": completed,
            "notes": notes,
            "exercise_logs": exercise_logs or [],
        }
        return self._request("POST", "/workout_sessions", json=body)["id"]

    def list_sessions(self, limit: Optional[int] = None):
        params = {"limit": limit} if limit is not None else {}
        return self._request("GET", "/workout_sessions", params=params)

    def delete_session(self, session_id: int) -> None:
        self._request("DELETE", f"/workout_sessions/{session_id}")

    def create_goal(
        self,
        name: str,
        goal_type: str,
        target_value: float,
        deadline: Optional[str] = None,
    ) -> int:
        body = {
            "name": name,
            "type": goal_type,
            "target_value": target_value,
            "deadline": deadline,
        }
        return self._request("POST", "/goals", json=body)["id"]

    def update_goal(self, goal_id: int, **fields) -> dict:
        return self._request("PUT", f"/goals/{goal_id}", json=fields)

    def list_goals(self):
        return self._request("GET", "/goals")

    def dashboard(self) -> dict:
        return self._request("GET", "/dashboard")

    def progress(self) -> dict:
        return self._request("GET", "/progress")
