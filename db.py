import sqlite3
import json
import hashlib
import secrets
import datetime
import logging
from contextlib import contextmanager
from typing import List, Tuple, Optional, Iterable

from config import YamlConfig
from settings_schema import DEFAULT_SETTINGS, validate_settings

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def _iso(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    return str(value)


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLE_DEFINITIONS = {
        "users": (
            """CREATE TABLE users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    api_key TEXT NOT NULL UNIQUE,
                    role TEXT NOT NULL DEFAULT 'user',
                    preferred_unit TEXT NOT NULL DEFAULT 'lbs',
                    created_at TEXT NOT NULL
                );""",
            [
                "id",
                "name",
                "email",
                "password_hash",
                "api_key",
                "role",
                "preferred_unit",
                "created_at",
            ],
        ),
        "exercises": (
            """CREATE TABLE exercises (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,
                    category TEXT NOT NULL,
                    equipment TEXT NOT NULL,
                    description TEXT,
                    instructions TEXT,
                    muscle_groups TEXT NOT NULL DEFAULT '[]',
                    difficulty TEXT NOT NULL DEFAULT 'Beginner'
                );""",
            [
                "id",
                "name",
                "category",
                "equipment",
                "description",
                "instructions",
                "muscle_groups",
                "difficulty",
            ],
        ),
        "workouts": (
            """CREATE TABLE workouts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT,
                    is_public INTEGER NOT NULL DEFAULT 0,
                    estimated_duration INTEGER,
                    difficulty TEXT NOT NULL DEFAULT 'Beginner',
                    tags TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL,
                    FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
                );""",
            [
                "id",
                "user_id",
                "name",
                "description",
                "is_public",
                "estimated_duration",
                "difficulty",
                "tags",
                "created_at",
            ],
        ),
        "workout_exercises": (
            """CREATE TABLE workout_exercises (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    workout_id INTEGER NOT NULL,
                    exercise_id INTEGER NOT NULL,
                    position INTEGER NOT NULL DEFAULT 0,
                    sets INTEGER NOT NULL DEFAULT 3,
                    reps TEXT NOT NULL DEFAULT '[]',
                    weight REAL,
                    rest_time INTEGER,
                    notes TEXT,
                    FOREIGN KEY(workout_id) REFERENCES workouts(id) ON DELETE CASCADE,
                    FOREIGN KEY(exercise_id) REFERENCES exercises(id) ON DELETE CASCADE
                );""",
            [
                "id",
                "workout_id",
                "exercise_id",
                "position",
                "sets",
                "reps",
                "weight",
                "rest_time",
                "notes",
            ],
        ),
        "workout_sessions": (
            """CREATE TABLE workout_sessions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    workout_id INTEGER,
                    start_time TEXT NOT NULL,
                    end_time TEXT,
                    completed INTEGER NOT NULL DEFAULT 0,
                    notes TEXT,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE,
                    FOREIGN KEY(workout_id) REFERENCES workouts(id) ON DELETE SET NULL
                );""",
            [
                "id",
                "user_id",
                "workout_id",
                "start_time",
                "end_time",
                "completed",
                "notes",
                "created_at",
            ],
        ),
        "exercise_logs": (
            """CREATE TABLE exercise_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    session_id INTEGER NOT NULL,
                    exercise_id INTEGER NOT NULL,
                    sets INTEGER NOT NULL DEFAULT 0,
                    reps TEXT NOT NULL DEFAULT '[]',
                    weight TEXT NOT NULL DEFAULT '[]',
                    rest_time TEXT NOT NULL DEFAULT '[]',
                    notes TEXT,
                    FOREIGN KEY(session_id) REFERENCES workout_sessions(id) ON DELETE CASCADE,
                    FOREIGN KEY(exercise_id) REFERENCES exercises(id) ON DELETE CASCADE
                );""",
            [
                "id",
                "session_id",
                "exercise_id",
                "sets",
                "reps",
                "weight",
                "rest_time",
                "notes",
            ],
        ),
        "goals": (
            """CREATE TABLE goals (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    type TEXT NOT NULL,
                    target_value REAL NOT NULL,
                    current_value REAL NOT NULL DEFAULT 0,
                    status TEXT NOT NULL DEFAULT 'active',
                    deadline TEXT,
                    start_date TEXT NOT NULL,
                    completed_date TEXT,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
                );""",
            [
                "id",
                "user_id",
                "name",
                "type",
                "target_value",
                "current_value",
                "status",
                "deadline",
                "start_date",
                "completed_date",
                "created_at",
            ],
        ),
        "settings": (
            """CREATE TABLE settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );""",
            ["key", "value"],
        ),
    }

    DEFAULT_EXERCISES = [
        ("Bench Press", "Chest", "Barbell", ["Chest", "Triceps", "Shoulders"]),
        ("Push Up", "Chest", "Bodyweight", ["Chest", "Triceps"]),
        ("Back Squat", "Legs", "Barbell", ["Quadriceps", "Glutes"]),
        ("Deadlift", "Back", "Barbell", ["Hamstrings", "Glutes", "Lower Back"]),
        ("Pull Up", "Back", "Bodyweight", ["Lats", "Biceps"]),
        ("Overhead Press", "Shoulders", "Barbell", ["Shoulders", "Triceps"]),
        ("Barbell Curl", "Arms", "Barbell", ["Biceps"]),
        ("Plank", "Core", "Bodyweight", ["Abdominals"]),
        ("Running", "Cardio", "None", ["Legs"]),
    ]

    def __init__(self, db_path: str = "fitness.db") -> None:
        self._db_path = db_path
        self._ensure_schema()
        self._import_default_exercises()
        self._init_settings()

    @contextmanager
    def _connection(self):
        connection = sqlite3.connect(self._db_path)
        connection.execute("PRAGMA foreign_keys=on;")
        try:
            yield connection
            connection.commit()
        except Exception:
            connection.rollback()
            raise
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            conn.execute("PRAGMA foreign_keys=off;")
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(conn, table, sql, columns)

    def _ensure_table(
        self, conn: sqlite3.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cur.fetchone() is None:
            conn.execute(sql)
            return

        cur = conn.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in cur.fetchall()]
        if existing_cols == columns:
            return

        logger.info("migrating table %s", table)
        conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        conn.execute(sql)

        common = [c for c in existing_cols if c in columns]
        if common:
            cols = ", ".join(common)
            conn.execute(f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;")
        conn.execute(f"DROP TABLE {table}_old;")

    def _import_default_exercises(self) -> None:
        with self._connection() as conn:
            for name, category, equipment, muscles in self.DEFAULT_EXERCISES:
                conn.execute(
                    "INSERT OR IGNORE INTO exercises (name, category, equipment, muscle_groups) VALUES (?, ?, ?, ?);",
                    (name, category, equipment, json.dumps(muscles)),
                )

    def _init_settings(self) -> None:
        with self._connection() as conn:
            for key, value in DEFAULT_SETTINGS.items():
                conn.execute(
                    "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?);",
                    (key, str(value)),
                )

    def vacuum(self) -> None:
        """Run SQLite VACUUM to reduce database size."""
        with self._connection() as conn:
            conn.execute("VACUUM;")


class BaseRepository(Database):
    """Base repository providing helper methods."""

    def execute(self, query: str, params: Tuple = ()) -> int:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.lastrowid

    def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchall()


class UserRepository(BaseRepository):
    """Repository for user accounts and API keys."""

    @staticmethod
    def hash_password(password: str, salt: str, pepper: str = "") -> str:
        digest = hashlib.pbkdf2_hmac(
            "sha256", (password + pepper).encode("utf-8"), salt.encode("utf-8"), 100_000
        )
        return f"{salt}${digest.hex()}"

    @classmethod
    def verify_password(cls, password: str, stored: str, pepper: str = "") -> bool:
        salt, _, _ = stored.partition("$")
        return secrets.compare_digest(
            cls.hash_password(password, salt, pepper), stored
        )

    def create(
        self,
        name: str,
        email: str,
        password: str,
        preferred_unit: str = "lbs",
        pepper: str = "",
    ) -> Tuple[int, str]:
        """Create a user and return ``(user_id, api_key)``."""
        email = email.strip().lower()
        if self.fetch_all("SELECT id FROM users WHERE email = ?;", (email,)):
            raise ValueError("user already exists")
        api_key = secrets.token_hex(24)
        password_hash = self.hash_password(password, secrets.token_hex(8), pepper)
        uid = self.execute(
            "INSERT INTO users (name, email, password_hash, api_key, preferred_unit, created_at) VALUES (?, ?, ?, ?, ?, ?);",
            (name, email, password_hash, api_key, preferred_unit, utc_now_iso()),
        )
        return uid, api_key

    def authenticate(self, email: str, password: str, pepper: str = "") -> Optional[str]:
        """Return the API key for valid credentials, ``None`` otherwise."""
        rows = self.fetch_all(
            "SELECT password_hash, api_key FROM users WHERE email = ?;",
            (email.strip().lower(),),
        )
        if not rows:
            return None
        stored, api_key = rows[0]
        if not self.verify_password(password, stored, pepper):
            return None
        return api_key

    def fetch_by_email(self, email: str) -> Optional[int]:
        rows = self.fetch_all(
            "SELECT id FROM users WHERE email = ?;", (email.strip().lower(),)
        )
        return int(rows[0][0]) if rows else None

    def fetch_by_api_key(self, api_key: str) -> Optional[int]:
        rows = self.fetch_all("SELECT id FROM users WHERE api_key = ?;", (api_key,))
        return int(rows[0][0]) if rows else None

    def fetch_detail(self, user_id: int) -> dict:
        rows = self.fetch_all(
            "SELECT id, name, email, role, preferred_unit, created_at FROM users WHERE id = ?;",
            (user_id,),
        )
        if not rows:
            raise ValueError("user not found")
        uid, name, email, role, unit, created = rows[0]
        return {
            "id": uid,
            "name": name,
            "email": email,
            "role": role,
            "preferred_unit": unit,
            "created_at": created,
        }

    def set_preferred_unit(self, user_id: int, unit: str) -> None:
        if unit not in ("kg", "lbs"):
            raise ValueError("unit must be kg or lbs")
        self.execute(
            "UPDATE users SET preferred_unit = ? WHERE id = ?;", (unit, user_id)
        )


class ExerciseRepository(BaseRepository):
    """Repository for the shared exercise catalog."""

    def add(
        self,
        name: str,
        category: str,
        equipment: str,
        description: str | None = None,
        instructions: str | None = None,
        muscle_groups: Iterable[str] = (),
        difficulty: str = "Beginner",
    ) -> int:
        if self.fetch_all("SELECT id FROM exercises WHERE name = ?;", (name,)):
            raise ValueError("exercise exists")
        return self.execute(
            "INSERT INTO exercises (name, category, equipment, description, instructions, muscle_groups, difficulty) VALUES (?, ?, ?, ?, ?, ?, ?);",
            (
                name,
                category,
                equipment,
                description,
                instructions,
                json.dumps(list(muscle_groups)),
                difficulty,
            ),
        )

    @staticmethod
    def _row_to_dict(row: Tuple) -> dict:
        eid, name, category, equipment, desc, instr, muscles, difficulty = row
        return {
            "id": eid,
            "name": name,
            "category": category,
            "equipment": equipment,
            "description": desc,
            "instructions": instr,
            "muscle_groups": json.loads(muscles or "[]"),
            "difficulty": difficulty,
        }

    def fetch_all_exercises(
        self, category: str | None = None, search: str | None = None
    ) -> List[dict]:
        query = "SELECT id, name, category, equipment, description, instructions, muscle_groups, difficulty FROM exercises"
        params: list[str] = []
        where_clauses: list[str] = []
        if category:
            where_clauses.append("category = ?")
            params.append(category)
        if search:
            like = f"%{search.lower()}%"
            where_clauses.append(
                "(lower(name) LIKE ? OR lower(category) LIKE ? OR lower(equipment) LIKE ?)"
            )
            params.extend([like, like, like])
        if where_clauses:
            query += " WHERE " + " AND ".join(where_clauses)
        query += " ORDER BY name;"
        return [self._row_to_dict(r) for r in self.fetch_all(query, tuple(params))]

    def fetch_detail(self, exercise_id: int) -> dict:
        rows = self.fetch_all(
            "SELECT id, name, category, equipment, description, instructions, muscle_groups, difficulty FROM exercises WHERE id = ?;",
            (exercise_id,),
        )
        if not rows:
            raise ValueError("exercise not found")
        return self._row_to_dict(rows[0])


class WorkoutRepository(BaseRepository):
    """Repository for workout templates and their planned exercises."""

    def create(
        self,
        user_id: int,
        name: str,
        description: str | None = None,
        is_public: bool = False,
        estimated_duration: int | None = None,
        difficulty: str = "Beginner",
        tags: Iterable[str] = (),
        exercises: Iterable[dict] = (),
    ) -> int:
        wid = self.execute(
            "INSERT INTO workouts (user_id, name, description, is_public, estimated_duration, difficulty, tags, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?);",
            (
                user_id,
                name,
                description,
                int(is_public),
                estimated_duration,
                difficulty,
                json.dumps(list(tags)),
                utc_now_iso(),
            ),
        )
        self._replace_exercises(wid, exercises)
        return wid

    def _replace_exercises(self, workout_id: int, exercises: Iterable[dict]) -> None:
        self.execute(
            "DELETE FROM workout_exercises WHERE workout_id = ?;", (workout_id,)
        )
        for position, ex in enumerate(exercises, start=1):
            self.execute(
                "INSERT INTO workout_exercises (workout_id, exercise_id, position, sets, reps, weight, rest_time, notes) VALUES (?, ?, ?, ?, ?, ?, ?, ?);",
                (
                    workout_id,
                    ex["exercise_id"],
                    position,
                    ex.get("sets", 3),
                    json.dumps(ex.get("reps") or []),
                    ex.get("weight"),
                    ex.get("rest_time"),
                    ex.get("notes"),
                ),
            )

    def _exercises_for(self, workout_id: int) -> List[dict]:
        rows = self.fetch_all(
            "SELECT we.id, we.exercise_id, e.name, e.category, we.position, we.sets, we.reps, we.weight, we.rest_time, we.notes "
            "FROM workout_exercises we JOIN exercises e ON e.id = we.exercise_id "
            "WHERE we.workout_id = ? ORDER BY we.position;",
            (workout_id,),
        )
        return [
            {
                "id": rid,
                "exercise_id": eid,
                "exercise": {"id": eid, "name": name, "category": category},
                "order": pos,
                "sets": sets,
                "reps": json.loads(reps or "[]"),
                "weight": weight,
                "rest_time": rest,
                "notes": notes,
            }
            for rid, eid, name, category, pos, sets, reps, weight, rest, notes in rows
        ]

    def fetch_detail(self, workout_id: int) -> dict:
        rows = self.fetch_all(
            "SELECT w.id, w.user_id, w.name, w.description, w.is_public, w.estimated_duration, w.difficulty, w.tags, w.created_at, "
            "(SELECT COUNT(*) FROM workout_sessions s WHERE s.workout_id = w.id) "
            "FROM workouts w WHERE w.id = ?;",
            (workout_id,),
        )
        if not rows:
            raise ValueError("workout not found")
        wid, uid, name, desc, public, duration, difficulty, tags, created, count = rows[0]
        return {
            "id": wid,
            "user_id": uid,
            "name": name,
            "description": desc,
            "is_public": bool(public),
            "estimated_duration": duration,
            "difficulty": difficulty,
            "tags": json.loads(tags or "[]"),
            "created_at": created,
            "session_count": count,
            "exercises": self._exercises_for(wid),
        }

    def fetch_accessible(self, workout_id: int, user_id: int) -> dict:
        """Return a workout the user owns or that is public."""
        workout = self.fetch_detail(workout_id)
        if not workout["is_public"] and workout["user_id"] != user_id:
            raise PermissionError("forbidden")
        return workout

    def fetch_all_workouts(
        self, user_id: int | None = None, public_only: bool = False
    ) -> List[dict]:
        query = "SELECT id FROM workouts"
        params: list[int] = []
        where_clauses: list[str] = []
        if public_only:
            where_clauses.append("is_public = 1")
        if user_id is not None:
            where_clauses.append("user_id = ?")
            params.append(user_id)
        if where_clauses:
            query += " WHERE " + " AND ".join(where_clauses)
        query += " ORDER BY created_at DESC, id DESC;"
        return [self.fetch_detail(r[0]) for r in self.fetch_all(query, tuple(params))]

    def _check_owner(self, workout_id: int, user_id: int) -> None:
        rows = self.fetch_all(
            "SELECT user_id FROM workouts WHERE id = ?;", (workout_id,)
        )
        if not rows:
            raise ValueError("workout not found")
        if rows[0][0] != user_id:
            raise PermissionError("forbidden")

    def update(
        self,
        workout_id: int,
        user_id: int,
        name: str | None = None,
        description: str | None = None,
        is_public: bool | None = None,
        estimated_duration: int | None = None,
        difficulty: str | None = None,
        tags: Iterable[str] | None = None,
        exercises: Iterable[dict] | None = None,
    ) -> None:
        self._check_owner(workout_id, user_id)
        fields = []
        params: list = []
        if name is not None:
            fields.append("name = ?")
            params.append(name)
        if description is not None:
            fields.append("description = ?")
            params.append(description)
        if is_public is not None:
            fields.append("is_public = ?")
            params.append(int(is_public))
        if estimated_duration is not None:
            fields.append("estimated_duration = ?")
            params.append(estimated_duration)
        if difficulty is not None:
            fields.append("difficulty = ?")
            params.append(difficulty)
        if tags is not None:
            fields.append("tags = ?")
            params.append(json.dumps(list(tags)))
        if fields:
            params.append(workout_id)
            self.execute(
                f"UPDATE workouts SET {', '.join(fields)} WHERE id = ?;",
                tuple(params),
            )
        if exercises is not None:
            self._replace_exercises(workout_id, exercises)

    def delete(self, workout_id: int, user_id: int) -> None:
        self._check_owner(workout_id, user_id)
        self.execute("DELETE FROM workouts WHERE id = ?;", (workout_id,))


class WorkoutSessionRepository(BaseRepository):
    """Repository for logged workout sessions and their exercise logs."""

    def create(
        self,
        user_id: int,
        workout_id: int | None,
        start_time,
        end_time=None,
        completed: bool = False,
        notes: str | None = None,
        exercise_logs: Iterable[dict] = (),
    ) -> int:
        """Insert a session and its logs in one transaction."""
        with self._connection() as conn:
            cur = conn.execute(
                "INSERT INTO workout_sessions (user_id, workout_id, start_time, end_time, completed, notes, created_at) VALUES (?, ?, ?, ?, ?, ?, ?);",
                (
                    user_id,
                    workout_id,
                    _iso(start_time),
                    _iso(end_time),
                    int(completed),
                    notes,
                    utc_now_iso(),
                ),
            )
            sid = cur.lastrowid
            conn.executemany(
                "INSERT INTO exercise_logs (session_id, exercise_id, sets, reps, weight, rest_time, notes) VALUES (?, ?, ?, ?, ?, ?, ?);",
                [
                    (
                        sid,
                        log["exercise_id"],
                        log.get("sets", 0),
                        json.dumps(log.get("reps") or []),
                        json.dumps(log.get("weight") or []),
                        json.dumps(log.get("rest_time") or []),
                        log.get("notes"),
                    )
                    for log in exercise_logs
                ],
            )
        return sid

    def _logs_for(self, session_ids: List[int]) -> dict[int, List[dict]]:
        if not session_ids:
            return {}
        placeholders = ", ".join("?" for _ in session_ids)
        rows = self.fetch_all(
            "SELECT l.id, l.session_id, l.exercise_id, e.name, e.category, e.equipment, l.sets, l.reps, l.weight, l.rest_time, l.notes "
            "FROM exercise_logs l LEFT JOIN exercises e ON e.id = l.exercise_id "
            f"WHERE l.session_id IN ({placeholders}) ORDER BY l.id;",
            tuple(session_ids),
        )
        logs: dict[int, List[dict]] = {}
        for lid, sid, eid, name, category, equipment, sets, reps, weight, rest, notes in rows:
            exercise = None
            if name is not None:
                exercise = {
                    "id": eid,
                    "name": name,
                    "category": category,
                    "equipment": equipment,
                }
            logs.setdefault(sid, []).append(
                {
                    "id": lid,
                    "exercise_id": eid,
                    "exercise": exercise,
                    "sets": sets,
                    "reps": json.loads(reps or "[]"),
                    "weight": json.loads(weight or "[]"),
                    "rest_time": json.loads(rest or "[]"),
                    "notes": notes,
                }
            )
        return logs

    def _rows_to_sessions(self, rows: List[Tuple]) -> List[dict]:
        logs = self._logs_for([r[0] for r in rows])
        sessions = []
        for sid, uid, wid, start, end, completed, notes, w_name, w_desc in rows:
            workout = None
            if w_name is not None:
                workout = {"id": wid, "name": w_name, "description": w_desc}
            sessions.append(
                {
                    "id": sid,
                    "user_id": uid,
                    "workout_id": wid,
                    "workout": workout,
                    "start_time": start,
                    "end_time": end,
                    "completed": bool(completed),
                    "notes": notes,
                    "exercise_logs": logs.get(sid, []),
                }
            )
        return sessions

    _SELECT = (
        "SELECT s.id, s.user_id, s.workout_id, s.start_time, s.end_time, s.completed, s.notes, w.name, w.description "
        "FROM workout_sessions s LEFT JOIN workouts w ON w.id = s.workout_id"
    )

    def fetch_for_user(
        self,
        user_id: int,
        limit: int | None = None,
        completed_only: bool = False,
    ) -> List[dict]:
        """Return a user's sessions with nested logs, newest first."""
        query = self._SELECT + " WHERE s.user_id = ?"
        params: list[int] = [user_id]
        if completed_only:
            query += " AND s.completed = 1"
        query += " ORDER BY s.start_time DESC, s.id DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        query += ";"
        return self._rows_to_sessions(self.fetch_all(query, tuple(params)))

    def fetch_detail(self, session_id: int, user_id: int) -> dict:
        rows = self.fetch_all(self._SELECT + " WHERE s.id = ?;", (session_id,))
        if not rows:
            raise ValueError("workout session not found")
        if rows[0][1] != user_id:
            raise PermissionError("forbidden")
        return self._rows_to_sessions(rows)[0]

    def delete(self, session_id: int, user_id: int) -> None:
        rows = self.fetch_all(
            "SELECT user_id FROM workout_sessions WHERE id = ?;", (session_id,)
        )
        if not rows:
            raise ValueError("workout session not found")
        if rows[0][0] != user_id:
            raise PermissionError("forbidden")
        self.execute("DELETE FROM workout_sessions WHERE id = ?;", (session_id,))


class GoalRepository(BaseRepository):
    """Repository for goal management."""

    _COLUMNS = "id, user_id, name, type, target_value, current_value, status, deadline, start_date, completed_date, created_at"

    def add(
        self,
        user_id: int,
        name: str,
        goal_type: str,
        target_value: float,
        deadline: str | None = None,
        start_date: str | None = None,
        now: datetime.datetime | None = None,
    ) -> int:
        if target_value is None or float(target_value) <= 0:
            raise ValueError("target_value must be positive")
        if not name or not goal_type:
            raise ValueError("missing required fields")
        now = _iso(now) or utc_now_iso()
        return self.execute(
            "INSERT INTO goals (user_id, name, type, target_value, current_value, status, deadline, start_date, created_at) VALUES (?, ?, ?, ?, 0, 'active', ?, ?, ?);",
            (
                user_id,
                name,
                goal_type,
                float(target_value),
                _iso(deadline),
                _iso(start_date) or now,
                now,
            ),
        )

    def _row_to_dict(self, row: Tuple) -> dict:
        keys = [c.strip() for c in self._COLUMNS.split(",")]
        return dict(zip(keys, row))

    def fetch_for_user(self, user_id: int) -> List[dict]:
        """Return a user's goals, newest first."""
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM goals WHERE user_id = ? ORDER BY created_at DESC, id DESC;",
            (user_id,),
        )
        return [self._row_to_dict(r) for r in rows]

    def fetch_detail(self, goal_id: int, user_id: int) -> dict:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM goals WHERE id = ? AND user_id = ?;",
            (goal_id, user_id),
        )
        if not rows:
            raise ValueError("goal not found")
        return self._row_to_dict(rows[0])

    def update(
        self,
        goal_id: int,
        user_id: int,
        name: str | None = None,
        goal_type: str | None = None,
        target_value: float | None = None,
        current_value: float | None = None,
        status: str | None = None,
        deadline: str | None = None,
        now: datetime.datetime | None = None,
    ) -> None:
        current = self.fetch_detail(goal_id, user_id)
        fields = []
        params: list = []
        if name is not None:
            fields.append("name = ?")
            params.append(name)
        if goal_type is not None:
            fields.append("type = ?")
            params.append(goal_type)
        if target_value is not None:
            if target_value <= 0:
                raise ValueError("target_value must be positive")
            fields.append("target_value = ?")
            params.append(float(target_value))
        if current_value is not None:
            if current_value < 0:
                raise ValueError("current_value must not be negative")
            fields.append("current_value = ?")
            params.append(float(current_value))
        if status is not None:
            fields.append("status = ?")
            params.append(status)
            if status == "completed" and current["status"] != "completed":
                fields.append("completed_date = ?")
                params.append(_iso(now) or utc_now_iso())
            elif status != "completed":
                fields.append("completed_date = NULL")
        if deadline is not None:
            fields.append("deadline = ?")
            params.append(_iso(deadline))
        if fields:
            params.append(goal_id)
            self.execute(
                f"UPDATE goals SET {', '.join(fields)} WHERE id = ?;",
                tuple(params),
            )

    def delete(self, goal_id: int, user_id: int) -> None:
        self.fetch_detail(goal_id, user_id)
        self.execute("DELETE FROM goals WHERE id = ?;", (goal_id,))


class SettingsRepository(BaseRepository):
    """Repository for general application settings synchronized with YAML."""

    # Only the YAML file or the keyring may change these.
    FILE_ONLY_KEYS = {"password_pepper"}

    def __init__(
        self, db_path: str = "fitness.db", yaml_path: str | None = None
    ) -> None:
        super().__init__(db_path)
        self._yaml = YamlConfig(yaml_path)
        self._sync_from_yaml()
        self._sync_to_yaml()

    def _raw_all_settings(self) -> dict:
        rows = self.fetch_all("SELECT key, value FROM settings ORDER BY key;")
        result: dict[str, float | str] = {}
        for k, v in rows:
            if isinstance(DEFAULT_SETTINGS.get(k), str):
                result[k] = v
                continue
            try:
                num = float(v)
            except ValueError:
                result[k] = v
                continue
            result[k] = int(num) if isinstance(DEFAULT_SETTINGS.get(k), int) else num
        return result

    def _sync_from_yaml(self) -> None:
        data = self._yaml.load()
        if not data:
            return
        validate_settings(data)
        with self._connection() as conn:
            for key, value in data.items():
                conn.execute(
                    "INSERT INTO settings (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
                    (key, str(value)),
                )

    def _sync_to_yaml(self) -> None:
        self._yaml.save(self._raw_all_settings())

    def get_text(self, key: str, default: str) -> str:
        self._sync_from_yaml()
        rows = self.fetch_all("SELECT value FROM settings WHERE key = ?;", (key,))
        return rows[0][0] if rows else default

    def set_text(self, key: str, value: str) -> None:
        self.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
            (key, value),
        )
        self._sync_to_yaml()

    def update(self, values: dict) -> None:
        """Validate and store several settings at once."""
        unknown = [k for k in values if k not in DEFAULT_SETTINGS]
        if unknown:
            raise ValueError(f"unknown setting: {unknown[0]}")
        locked = [k for k in values if k in self.FILE_ONLY_KEYS]
        if locked:
            raise ValueError(f"setting {locked[0]} cannot be changed at runtime")
        merged = self._raw_all_settings()
        merged.update(values)
        validate_settings(merged)
        for key, value in values.items():
            self.set_text(key, str(value))

    def all_settings(self) -> dict:
        self._sync_from_yaml()
        data = self._raw_all_settings()
        data.pop("password_pepper", None)
        return data
