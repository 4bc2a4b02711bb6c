import datetime
import logging
import time
from typing import Callable
from fastapi import (
    FastAPI,
    HTTPException,
    Response,
    Body,
    Request,
    Header,
    Depends,
)
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from db import (
    UserRepository,
    ExerciseRepository,
    WorkoutRepository,
    WorkoutSessionRepository,
    GoalRepository,
    SettingsRepository,
)
from models import (
    UserCreate,
    LoginRequest,
    PreferencesUpdate,
    ExerciseCreate,
    WorkoutCreate,
    WorkoutUpdate,
    SessionCreate,
    GoalCreate,
    GoalUpdate,
)
from stats_service import StatisticsService
from config import APP_VERSION, default_db_path

logger = logging.getLogger(__name__)


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class RateLimiter:
    """Simple in-memory rate limiter."""

    def __init__(self, limit: int = 60, window: int = 60) -> None:
        self.limit = limit
        self.window = window
        self.requests: dict[str, list[float]] = {}

    def _forget_idle(self, now: float) -> None:
        for key in list(self.requests):
            history = [t for t in self.requests[key] if now - t < self.window]
            if history:
                self.requests[key] = history
            else:
                del self.requests[key]

    async def __call__(self, request: Request, call_next):
        ip = request.client.host if request.client else "anon"
        now = time.time()
        self._forget_idle(now)
        history = self.requests.get(ip, [])
        if len(history) >= self.limit:
            return Response("rate limit exceeded", status_code=429)
        history.append(now)
        self.requests[ip] = history
        return await call_next(request)


class FitnessAPI:
    """Provides REST endpoints for workout tracking and progress statistics."""

    def __init__(
        self,
        db_path: str | None = None,
        yaml_path: str | None = None,
        *,
        clock: Callable[[], datetime.datetime] | None = None,
        rate_limit: int | None = None,
        rate_window: int = 60,
    ) -> None:
        self.db_path = db_path or default_db_path()
        self.clock = clock or utc_now
        self.settings = SettingsRepository(self.db_path, yaml_path)
        self.users = UserRepository(self.db_path)
        self.exercises = ExerciseRepository(self.db_path)
        self.workouts = WorkoutRepository(self.db_path)
        self.sessions = WorkoutSessionRepository(self.db_path)
        self.goals = GoalRepository(self.db_path)
        self.statistics = StatisticsService(
            self.sessions,
            self.goals,
            self.settings,
            self.users,
        )
        self.app = FastAPI(
            title="FitTrack API",
            description="REST API for workout tracking and progress statistics",
            version=APP_VERSION,
        )
        self.rate_limiter: RateLimiter | None = None
        if rate_limit is not None:
            self.rate_limiter = RateLimiter(limit=rate_limit, window=rate_window)
            self.app.middleware("http")(self.rate_limiter)
        self._setup_routes()

    def _pepper(self) -> str:
        return self.settings.get_text("password_pepper", "")

    def _current_user(self) -> Callable[..., int]:
        users = self.users

        def dependency(x_api_key: str | None = Header(default=None)) -> int:
            if not x_api_key:
                raise HTTPException(status_code=401, detail="missing api key")
            uid = users.fetch_by_api_key(x_api_key)
            if uid is None:
                raise HTTPException(status_code=401, detail="invalid api key")
            return uid

        return dependency

    def _check_exercises(self, exercise_ids: list[int]) -> None:
        for eid in exercise_ids:
            self.exercises.fetch_detail(eid)

    def _setup_routes(self) -> None:
        current_user = self._current_user()

        @self.app.exception_handler(RequestValidationError)
        async def validation_error(request: Request, exc: RequestValidationError):
            return JSONResponse(
                status_code=400,
                content={"detail": jsonable_encoder(exc.errors())},
            )

        @self.app.get(
            "/health",
            summary="Health check",
            description="Verify API and database connectivity.",
        )
        def health():
            """Return API and database connection status."""
            try:
                self.exercises.fetch_all("SELECT 1;")
                return {"status": "ok", "version": APP_VERSION}
            except Exception as e:  # pragma: no cover - connectivity failure
                logger.exception("health check failed")
                raise HTTPException(status_code=500, detail=str(e))

        @self.app.post("/auth/register")
        def register(payload: UserCreate):
            try:
                uid, api_key = self.users.create(
                    payload.name,
                    payload.email,
                    payload.password,
                    preferred_unit=self.settings.get_text("weight_unit", "lbs"),
                    pepper=self._pepper(),
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            logger.info("registered user %s", uid)
            return {"id": uid, "api_key": api_key}

        @self.app.post("/auth/login")
        def login(payload: LoginRequest):
            api_key = self.users.authenticate(
                payload.email, payload.password, self._pepper()
            )
            if api_key is None:
                raise HTTPException(status_code=401, detail="invalid credentials")
            return {"api_key": api_key}

        @self.app.get("/users/me")
        def current_profile(user_id: int = Depends(current_user)):
            try:
                return self.users.fetch_detail(user_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))

        @self.app.put("/user/preferences")
        def update_preferences(
            payload: PreferencesUpdate, user_id: int = Depends(current_user)
        ):
            try:
                self.users.set_preferred_unit(user_id, payload.preferred_unit)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return self.users.fetch_detail(user_id)

        @self.app.get("/exercises")
        def list_exercises(
            category: str = None,
            search: str = None,
            user_id: int = Depends(current_user),
        ):
            return self.exercises.fetch_all_exercises(category, search)

        @self.app.post("/exercises")
        def create_exercise(
            payload: ExerciseCreate, user_id: int = Depends(current_user)
        ):
            try:
                eid = self.exercises.add(
                    payload.name,
                    payload.category,
                    payload.equipment,
                    payload.description,
                    payload.instructions,
                    payload.muscle_groups,
                    payload.difficulty,
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"id": eid}

        @self.app.get("/exercises/{exercise_id}")
        def get_exercise(exercise_id: int, user_id: int = Depends(current_user)):
            try:
                return self.exercises.fetch_detail(exercise_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))

        @self.app.get("/workouts")
        def list_workouts(
            public: bool = False, user_id: int = Depends(current_user)
        ):
            if public:
                return self.workouts.fetch_all_workouts(public_only=True)
            return self.workouts.fetch_all_workouts(user_id=user_id)

        @self.app.post("/workouts")
        def create_workout(
            payload: WorkoutCreate, user_id: int = Depends(current_user)
        ):
            try:
                self._check_exercises([e.exercise_id for e in payload.exercises])
                wid = self.workouts.create(
                    user_id,
                    payload.name,
                    payload.description,
                    payload.is_public,
                    payload.estimated_duration,
                    payload.difficulty,
                    payload.tags,
                    [e.model_dump() for e in payload.exercises],
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"id": wid}

        @self.app.get("/workouts/{workout_id}")
        def get_workout(workout_id: int, user_id: int = Depends(current_user)):
            try:
                return self.workouts.fetch_accessible(workout_id, user_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            except PermissionError as e:
                raise HTTPException(status_code=403, detail=str(e))

        @self.app.put("/workouts/{workout_id}")
        def update_workout(
            workout_id: int,
            payload: WorkoutUpdate,
            user_id: int = Depends(current_user),
        ):
            exercises = None
            if payload.exercises is not None:
                exercises = [e.model_dump() for e in payload.exercises]
            try:
                if exercises:
                    self._check_exercises([e["exercise_id"] for e in exercises])
                self.workouts.update(
                    workout_id,
                    user_id,
                    name=payload.name,
                    description=payload.description,
                    is_public=payload.is_public,
                    estimated_duration=payload.estimated_duration,
                    difficulty=payload.difficulty,
                    tags=payload.tags,
                    exercises=exercises,
                )
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            except PermissionError as e:
                raise HTTPException(status_code=403, detail=str(e))
            return self.workouts.fetch_detail(workout_id)

        @self.app.delete("/workouts/{workout_id}")
        def delete_workout(workout_id: int, user_id: int = Depends(current_user)):
            try:
                self.workouts.delete(workout_id, user_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            except PermissionError as e:
                raise HTTPException(status_code=403, detail=str(e))
            return {"status": "deleted"}

        @self.app.get("/workout_sessions")
        def list_sessions(
            limit: int | None = None, user_id: int = Depends(current_user)
        ):
            if limit is not None and limit <= 0:
                raise HTTPException(status_code=400, detail="limit must be positive")
            return self.sessions.fetch_for_user(user_id, limit=limit)

        @self.app.post("/workout_sessions")
        def create_session(
            payload: SessionCreate, user_id: int = Depends(current_user)
        ):
            try:
                self.workouts.fetch_accessible(payload.workout_id, user_id)
                self._check_exercises([l.exercise_id for l in payload.exercise_logs])
                sid = self.sessions.create(
                    user_id,
                    payload.workout_id,
                    payload.start_time,
                    payload.end_time,
                    payload.completed,
                    payload.notes,
                    [l.model_dump() for l in payload.exercise_logs],
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            except PermissionError as e:
                raise HTTPException(status_code=403, detail=str(e))
            logger.info("user %s logged session %s", user_id, sid)
            return {"id": sid}

        @self.app.get("/workout_sessions/{session_id}")
        def get_session(session_id: int, user_id: int = Depends(current_user)):
            try:
                return self.sessions.fetch_detail(session_id, user_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            except PermissionError as e:
                raise HTTPException(status_code=403, detail=str(e))

        @self.app.delete("/workout_sessions/{session_id}")
        def delete_session(session_id: int, user_id: int = Depends(current_user)):
            try:
                self.sessions.delete(session_id, user_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            except PermissionError as e:
                raise HTTPException(status_code=403, detail=str(e))
            logger.info("user %s deleted session %s", user_id, session_id)
            return {"status": "deleted"}

        @self.app.get("/goals")
        def list_goals(user_id: int = Depends(current_user)):
            return self.goals.fetch_for_user(user_id)

        @self.app.post("/goals")
        def create_goal(payload: GoalCreate, user_id: int = Depends(current_user)):
            try:
                gid = self.goals.add(
                    user_id,
                    payload.name,
                    payload.type,
                    payload.target_value,
                    payload.deadline,
                    now=self.clock(),
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            logger.info("user %s created goal %s", user_id, gid)
            return {"id": gid}

        @self.app.get("/goals/{goal_id}")
        def get_goal(goal_id: int, user_id: int = Depends(current_user)):
            try:
                return self.goals.fetch_detail(goal_id, user_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))

        @self.app.put("/goals/{goal_id}")
        def update_goal(
            goal_id: int, payload: GoalUpdate, user_id: int = Depends(current_user)
        ):
            try:
                self.goals.update(
                    goal_id,
                    user_id,
                    name=payload.name,
                    goal_type=payload.type,
                    target_value=payload.target_value,
                    current_value=payload.current_value,
                    status=payload.status,
                    deadline=payload.deadline,
                    now=self.clock(),
                )
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            return self.goals.fetch_detail(goal_id, user_id)

        @self.app.delete("/goals/{goal_id}")
        def delete_goal(goal_id: int, user_id: int = Depends(current_user)):
            try:
                self.goals.delete(goal_id, user_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            logger.info("user %s deleted goal %s", user_id, goal_id)
            return {"status": "deleted"}

        @self.app.get("/dashboard")
        def dashboard(user_id: int = Depends(current_user)):
            try:
                return self.statistics.dashboard(user_id, self.clock())
            except Exception:
                logger.exception("dashboard failed for user %s", user_id)
                raise HTTPException(status_code=500, detail="Internal server error")

        @self.app.get("/progress")
        def progress(user_id: int = Depends(current_user)):
            try:
                return self.statistics.progress(user_id, self.clock())
            except Exception:
                logger.exception("progress failed for user %s", user_id)
                raise HTTPException(status_code=500, detail="Internal server error")

        @self.app.get("/settings")
        def get_settings(user_id: int = Depends(current_user)):
            return self.settings.all_settings()

        @self.app.put("/settings")
        def update_settings(
            values: dict = Body(...), user_id: int = Depends(current_user)
        ):
            try:
                self.settings.update(values)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return self.settings.all_settings()


api = FitnessAPI()
app = api.app

if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app)
