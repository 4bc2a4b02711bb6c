"""Pydantic models for the records consumed by the progress calculators.

Rows coming from storage are normalized here exactly once: missing nested
relations become empty collections, timestamps become timezone-aware UTC
datetimes. The calculators can then rely on the shapes without guarding
every attribute access.
"""

from __future__ import annotations

import datetime
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


GOAL_STATUSES = ("active", "completed", "abandoned")


def parse_timestamp(value: Any) -> Optional[datetime.datetime]:
    """Return ``value`` as timezone-aware datetime in UTC.

    Accepts datetimes, dates and ISO-8601 strings. Naive values are read
    as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        dt = value
    elif isinstance(value, datetime.date):
        dt = datetime.datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.datetime.fromisoformat(text)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc)


class ExerciseRef(BaseModel):
    """Exercise name and category attached to a log."""

    id: Optional[int] = None
    name: str = "Unknown Exercise"
    category: str = "Other"

    @field_validator("name", mode="before")
    @classmethod
    def _blank_name(cls, value: Any) -> Any:
        return "Unknown Exercise" if value in (None, "") else value

    @field_validator("category", mode="before")
    @classmethod
    def _blank_category(cls, value: Any) -> Any:
        return "Other" if value in (None, "") else value


class WorkoutRef(BaseModel):
    """Workout template name and description attached to a session."""

    id: Optional[int] = None
    name: str = "Workout"
    description: Optional[str] = None


class ExerciseLog(BaseModel):
    id: Optional[int] = None
    exercise_id: int
    exercise: ExerciseRef = Field(default_factory=ExerciseRef)
    sets: int = 0
    reps: List[int] = Field(default_factory=list)
    weight: List[float] = Field(default_factory=list)
    rest_time: List[int] = Field(default_factory=list)
    notes: Optional[str] = None

    @field_validator("reps", "weight", "rest_time", mode="before")
    @classmethod
    def _missing_lists(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("exercise", mode="before")
    @classmethod
    def _missing_exercise(cls, value: Any) -> Any:
        return ExerciseRef() if value is None else value


class WorkoutSession(BaseModel):
    id: Optional[int] = None
    user_id: Optional[int] = None
    workout_id: Optional[int] = None
    workout: WorkoutRef = Field(default_factory=WorkoutRef)
    start_time: datetime.datetime
    end_time: Optional[datetime.datetime] = None
    completed: bool = False
    notes: Optional[str] = None
    exercise_logs: List[ExerciseLog] = Field(default_factory=list)

    @field_validator("exercise_logs", mode="before")
    @classmethod
    def _missing_logs(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _utc_times(cls, value: Any) -> Any:
        return parse_timestamp(value)

    @field_validator("workout", mode="before")
    @classmethod
    def _missing_workout(cls, value: Any) -> Any:
        return WorkoutRef() if value is None else value


class Goal(BaseModel):
    id: Optional[int] = None
    user_id: Optional[int] = None
    name: str
    type: str = ""
    target_value: float
    current_value: float = 0.0
    status: str = "active"
    deadline: Optional[datetime.datetime] = None
    start_date: Optional[datetime.datetime] = None
    completed_date: Optional[datetime.datetime] = None
    created_at: Optional[datetime.datetime] = None

    @field_validator(
        "deadline", "start_date", "completed_date", "created_at", mode="before"
    )
    @classmethod
    def _utc_dates(cls, value: Any) -> Any:
        return parse_timestamp(value)

    @field_validator("current_value", mode="before")
    @classmethod
    def _missing_current(cls, value: Any) -> Any:
        return 0.0 if value is None else value


class ExerciseLogCreate(BaseModel):
    exercise_id: int
    sets: int = Field(default=0, ge=0)
    reps: List[int] = Field(default_factory=list)
    weight: List[float] = Field(default_factory=list)
    rest_time: List[int] = Field(default_factory=list)
    notes: Optional[str] = None


class SessionCreate(BaseModel):
    workout_id: int
    start_time: datetime.datetime
    end_time: Optional[datetime.datetime] = None
    completed: bool = False
    notes: Optional[str] = None
    exercise_logs: List[ExerciseLogCreate] = Field(default_factory=list)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _utc_times(cls, value: Any) -> Any:
        return parse_timestamp(value)

    @model_validator(mode="after")
    def _check_order(self) -> "SessionCreate":
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class GoalCreate(BaseModel):
    name: str = Field(min_length=1)
    type: str = Field(min_length=1)
    target_value: float = Field(gt=0)
    deadline: Optional[datetime.date] = None


class GoalUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    target_value: Optional[float] = Field(default=None, gt=0)
    current_value: Optional[float] = Field(default=None, ge=0)
    status: Optional[str] = None
    deadline: Optional[datetime.date] = None

    @field_validator("status")
    @classmethod
    def _known_status(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in GOAL_STATUSES:
            raise ValueError(f"status must be one of {', '.join(GOAL_STATUSES)}")
        return value


class WorkoutExerciseCreate(BaseModel):
    exercise_id: int
    sets: int = Field(default=3, ge=0)
    reps: List[int] = Field(default_factory=list)
    weight: Optional[float] = None
    rest_time: Optional[int] = None
    notes: Optional[str] = None

    @field_validator("reps", mode="before")
    @classmethod
    def _reps_as_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, int):
            return [value]
        return value


class WorkoutCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    is_public: bool = False
    estimated_duration: Optional[int] = None
    difficulty: str = "Beginner"
    tags: List[str] = Field(default_factory=list)
    exercises: List[WorkoutExerciseCreate] = Field(default_factory=list)


class WorkoutUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    is_public: Optional[bool] = None
    estimated_duration: Optional[int] = None
    difficulty: Optional[str] = None
    tags: Optional[List[str]] = None
    exercises: Optional[List[WorkoutExerciseCreate]] = None


class ExerciseCreate(BaseModel):
    name: str = Field(min_length=1)
    category: str = "Other"
    equipment: str = "None"
    description: Optional[str] = None
    instructions: Optional[str] = None
    muscle_groups: List[str] = Field(default_factory=list)
    difficulty: str = "Beginner"


class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=8)


class LoginRequest(BaseModel):
    email: str
    password: str


class PreferencesUpdate(BaseModel):
    preferred_unit: str = Field(pattern="^(kg|lbs)$")


def normalize_sessions(rows: Iterable) -> list[WorkoutSession]:
    """Return validated sessions ordered by start time, newest first.

    Rows may be dicts or already built ``WorkoutSession`` models.
    """
    sessions = [
        r if isinstance(r, WorkoutSession) else WorkoutSession.model_validate(r)
        for r in rows
    ]
    return sorted(sessions, key=lambda s: s.start_time, reverse=True)


def normalize_goals(rows: Iterable) -> list[Goal]:
    return [r if isinstance(r, Goal) else Goal.model_validate(r) for r in rows]
