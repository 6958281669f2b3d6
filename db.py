import sqlite3
import aiosqlite
import datetime
import logging
from contextlib import contextmanager, asynccontextmanager
from typing import List, Tuple, Optional, Iterable

from config import YamlConfig
from settings_schema import validate_settings
from models import (
    Exercise,
    ExerciseSet,
    Goal,
    SetRecord,
    WorkoutExercise,
    WorkoutSession,
)

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.datetime.now().isoformat(timespec="seconds")


def _timestamp(value: str | None, field: str) -> str:
    """Return ``value`` as a naive local ISO timestamp, defaulting to now."""
    if value is None:
        return _now()
    try:
        parsed = datetime.datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be an ISO 8601 timestamp")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed.isoformat()


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLE_DEFINITIONS = {
        "exercises": (
            """CREATE TABLE exercises (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,
                    description TEXT,
                    muscle_groups TEXT NOT NULL DEFAULT '',
                    equipment_type TEXT NOT NULL DEFAULT 'other',
                    is_custom INTEGER NOT NULL DEFAULT 0,
                    is_cardio INTEGER NOT NULL DEFAULT 0
                );""",
            [
                "id",
                "name",
                "description",
                "muscle_groups",
                "equipment_type",
                "is_custom",
                "is_cardio",
            ],
        ),
        "workout_sessions": (
            """CREATE TABLE workout_sessions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    workout_type TEXT NOT NULL DEFAULT 'custom',
                    custom_type_name TEXT,
                    started_at TEXT NOT NULL,
                    ended_at TEXT,
                    duration_seconds INTEGER,
                    rating INTEGER,
                    notes TEXT,
                    is_active INTEGER NOT NULL DEFAULT 1
                );""",
            [
                "id",
                "workout_type",
                "custom_type_name",
                "started_at",
                "ended_at",
                "duration_seconds",
                "rating",
                "notes",
                "is_active",
            ],
        ),
        "workout_exercises": (
            """CREATE TABLE workout_exercises (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    workout_session_id INTEGER NOT NULL,
                    exercise_id INTEGER NOT NULL,
                    order_index INTEGER NOT NULL DEFAULT 0,
                    notes TEXT,
                    FOREIGN KEY(workout_session_id) REFERENCES workout_sessions(id) ON DELETE CASCADE,
                    FOREIGN KEY(exercise_id) REFERENCES exercises(id) ON DELETE CASCADE
                );""",
            ["id", "workout_session_id", "exercise_id", "order_index", "notes"],
        ),
        "exercise_sets": (
            """CREATE TABLE exercise_sets (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    workout_exercise_id INTEGER NOT NULL,
                    set_number INTEGER NOT NULL,
                    weight_kg REAL,
                    reps INTEGER,
                    is_warmup INTEGER NOT NULL DEFAULT 0,
                    rpe INTEGER,
                    completed_at TEXT NOT NULL,
                    FOREIGN KEY(workout_exercise_id) REFERENCES workout_exercises(id) ON DELETE CASCADE
                );""",
            [
                "id",
                "workout_exercise_id",
                "set_number",
                "weight_kg",
                "reps",
                "is_warmup",
                "rpe",
                "completed_at",
            ],
        ),
        "exercise_goals": (
            """CREATE TABLE exercise_goals (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    exercise_id INTEGER NOT NULL,
                    target_weight_kg REAL,
                    target_reps INTEGER,
                    target_date TEXT,
                    achieved INTEGER NOT NULL DEFAULT 0,
                    achieved_at TEXT,
                    notes TEXT,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY(exercise_id) REFERENCES exercises(id) ON DELETE CASCADE
                );""",
            [
                "id",
                "exercise_id",
                "target_weight_kg",
                "target_reps",
                "target_date",
                "achieved",
                "achieved_at",
                "notes",
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

    _DEFAULT_EXERCISES = [
        ("Bench Press", "chest|triceps|shoulders", "barbell", 0),
        ("Squat", "quads|glutes|hamstrings", "barbell", 0),
        ("Deadlift", "back|hamstrings|glutes", "barbell", 0),
        ("Overhead Press", "shoulders|triceps", "barbell", 0),
        ("Barbell Row", "back|biceps", "barbell", 0),
        ("Pull-up", "back|biceps", "bodyweight", 0),
        ("Dumbbell Curl", "biceps", "dumbbell", 0),
        ("Running", "full_body", "cardio_machine", 1),
        ("Rowing Machine", "full_body", "cardio_machine", 1),
    ]

    def __init__(self, db_path: str = "workout.db") -> None:
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
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
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
        for col in columns:
            if col not in existing_cols:
                logger.info("adding missing column %s.%s", table, col)
                conn.execute(f"ALTER TABLE {table} ADD COLUMN {col};")

    def _import_default_exercises(self) -> None:
        with self._connection() as conn:
            for name, muscles, equipment_type, is_cardio in self._DEFAULT_EXERCISES:
                conn.execute(
                    "INSERT OR IGNORE INTO exercises (name, muscle_groups, equipment_type, is_custom, is_cardio) "
                    "VALUES (?, ?, ?, 0, ?);",
                    (name, muscles, equipment_type, is_cardio),
                )

    def _init_settings(self) -> None:
        defaults = {
            "language": "en",
            "weight_unit": "kg",
            "log_level": "INFO",
            "rest_timer_seconds": "90",
        }
        with self._connection() as conn:
            for key, value in defaults.items():
                conn.execute(
                    "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?);",
                    (key, value),
                )


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


class ExerciseRepository(BaseRepository):
    """Repository for the exercise library."""

    _COLUMNS = "id, name, description, muscle_groups, equipment_type, is_custom, is_cardio"

    @staticmethod
    def _to_model(row: Tuple) -> Exercise:
        eid, name, description, muscles, equipment_type, is_custom, is_cardio = row
        return Exercise(
            id=eid,
            name=name,
            description=description,
            muscle_groups=tuple(m for m in (muscles or "").split("|") if m),
            equipment_type=equipment_type,
            is_custom=bool(is_custom),
            is_cardio=bool(is_cardio),
        )

    def add(
        self,
        name: str,
        muscle_groups: Iterable[str] = (),
        equipment_type: str = "other",
        is_cardio: bool = False,
        description: str | None = None,
    ) -> int:
        if not name.strip():
            raise ValueError("name required")
        if self.fetch_all("SELECT id FROM exercises WHERE name = ?;", (name,)):
            raise ValueError("exercise exists")
        return self.execute(
            "INSERT INTO exercises (name, description, muscle_groups, equipment_type, is_custom, is_cardio) "
            "VALUES (?, ?, ?, ?, 1, ?);",
            (name, description, "|".join(muscle_groups), equipment_type, int(is_cardio)),
        )

    def fetch_all_exercises(self, cardio: Optional[bool] = None) -> List[Exercise]:
        query = f"SELECT {self._COLUMNS} FROM exercises"
        params: list[int] = []
        if cardio is not None:
            query += " WHERE is_cardio = ?"
            params.append(int(cardio))
        query += " ORDER BY name;"
        return [self._to_model(r) for r in self.fetch_all(query, tuple(params))]

    def fetch_detail(self, exercise_id: int) -> Exercise:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM exercises WHERE id = ?;", (exercise_id,)
        )
        if not rows:
            raise ValueError("exercise not found")
        return self._to_model(rows[0])

    def find_by_name(self, name: str) -> Optional[Exercise]:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM exercises WHERE lower(name) = lower(?);",
            (name,),
        )
        return self._to_model(rows[0]) if rows else None

    def delete(self, exercise_id: int) -> None:
        detail = self.fetch_detail(exercise_id)
        if not detail.is_custom:
            raise ValueError("cannot delete preconfigured exercise")
        self.execute("DELETE FROM exercises WHERE id = ?;", (exercise_id,))


class WorkoutSessionRepository(BaseRepository):
    """Repository for workout session operations."""

    _COLUMNS = (
        "id, workout_type, custom_type_name, started_at, ended_at, duration_seconds, is_active"
    )

    @staticmethod
    def _to_model(row: Tuple) -> WorkoutSession:
        sid, wtype, custom, started, ended, duration, active = row
        return WorkoutSession(
            id=sid,
            workout_type=wtype,
            custom_type_name=custom,
            started_at=datetime.datetime.fromisoformat(started),
            ended_at=datetime.datetime.fromisoformat(ended) if ended else None,
            duration_seconds=duration,
            is_active=bool(active),
        )

    def create(
        self,
        workout_type: str = "custom",
        custom_type_name: str | None = None,
        started_at: str | None = None,
    ) -> int:
        return self.execute(
            "INSERT INTO workout_sessions (workout_type, custom_type_name, started_at, is_active) VALUES (?, ?, ?, 1);",
            (workout_type, custom_type_name, _timestamp(started_at, "started_at")),
        )

    def fetch_detail(self, session_id: int) -> WorkoutSession:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM workout_sessions WHERE id = ?;",
            (session_id,),
        )
        if not rows:
            raise ValueError("session not found")
        return self._to_model(rows[0])

    def finish(
        self,
        session_id: int,
        ended_at: str | None = None,
        rating: Optional[int] = None,
        notes: str | None = None,
    ) -> WorkoutSession:
        session = self.fetch_detail(session_id)
        if not session.is_active:
            raise ValueError("session already finished")
        end = _timestamp(ended_at, "ended_at")
        duration = int(
            (datetime.datetime.fromisoformat(end) - session.started_at).total_seconds()
        )
        self.execute(
            "UPDATE workout_sessions SET ended_at = ?, duration_seconds = ?, rating = ?, notes = ?, is_active = 0 WHERE id = ?;",
            (end, max(duration, 0), rating, notes, session_id),
        )
        return self.fetch_detail(session_id)

    def fetch_sessions(
        self,
        completed_only: bool = True,
        since: Optional[str] = None,
        limit: int | None = None,
    ) -> List[WorkoutSession]:
        """Return sessions newest first."""
        query = f"SELECT {self._COLUMNS} FROM workout_sessions"
        params: list[str | int] = []
        where_clauses: list[str] = []
        if completed_only:
            where_clauses.append("is_active = 0")
        if since:
            where_clauses.append("started_at >= ?")
            params.append(since)
        if where_clauses:
            query += " WHERE " + " AND ".join(where_clauses)
        query += " ORDER BY started_at DESC, id DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        query += ";"
        return [self._to_model(r) for r in self.fetch_all(query, tuple(params))]

    def delete(self, session_id: int) -> None:
        self.fetch_detail(session_id)
        self.execute("DELETE FROM workout_sessions WHERE id = ?;", (session_id,))


class WorkoutExerciseRepository(BaseRepository):
    """Repository linking library exercises to workout sessions."""

    def add(self, session_id: int, exercise_id: int, notes: str | None = None) -> int:
        rows = self.fetch_all(
            "SELECT COALESCE(MAX(order_index), -1) + 1 FROM workout_exercises WHERE workout_session_id = ?;",
            (session_id,),
        )
        order_index = int(rows[0][0]) if rows else 0
        return self.execute(
            "INSERT INTO workout_exercises (workout_session_id, exercise_id, order_index, notes) VALUES (?, ?, ?, ?);",
            (session_id, exercise_id, order_index, notes),
        )

    def fetch_for_sessions(self, session_ids: List[int]) -> List[WorkoutExercise]:
        if not session_ids:
            return []
        placeholders = ", ".join(["?" for _ in session_ids])
        rows = self.fetch_all(
            "SELECT we.id, we.workout_session_id, we.exercise_id, e.name, e.is_cardio "
            "FROM workout_exercises we JOIN exercises e ON we.exercise_id = e.id "
            f"WHERE we.workout_session_id IN ({placeholders}) "
            "ORDER BY we.workout_session_id, we.order_index;",
            tuple(session_ids),
        )
        return [
            WorkoutExercise(
                id=wid,
                workout_session_id=sid,
                exercise_id=eid,
                exercise_name=name,
                is_cardio=bool(cardio),
            )
            for wid, sid, eid, name, cardio in rows
        ]

    def remove(self, workout_exercise_id: int) -> None:
        self.execute(
            "DELETE FROM workout_exercises WHERE id = ?;", (workout_exercise_id,)
        )


_HISTORY_QUERY = (
    "SELECT s.id, s.weight_kg, s.reps, s.is_warmup, s.completed_at, ws.started_at, ws.id "
    "FROM exercise_sets s "
    "JOIN workout_exercises we ON s.workout_exercise_id = we.id "
    "JOIN workout_sessions ws ON we.workout_session_id = ws.id "
    "WHERE we.exercise_id = ? AND ws.is_active = 0"
)


def _to_set_record(row: Tuple) -> SetRecord:
    sid, weight, reps, warmup, completed, started, session_id = row
    return SetRecord(
        id=sid,
        weight_kg=weight,
        reps=reps,
        is_warmup=bool(warmup),
        completed_at=datetime.datetime.fromisoformat(completed),
        session_date=datetime.datetime.fromisoformat(started).date(),
        session_id=session_id,
    )


def _history_query(include_warmup: bool) -> str:
    query = _HISTORY_QUERY
    if not include_warmup:
        query += " AND s.is_warmup = 0"
    return query + " ORDER BY s.completed_at, s.id;"


class SetRepository(BaseRepository):
    """Repository for exercise set operations."""

    def add(
        self,
        workout_exercise_id: int,
        reps: Optional[int],
        weight_kg: Optional[float],
        is_warmup: bool = False,
        rpe: Optional[int] = None,
        completed_at: str | None = None,
    ) -> int:
        if reps is not None and reps < 0:
            raise ValueError("reps must be non-negative")
        if weight_kg is not None and weight_kg < 0:
            raise ValueError("weight must be non-negative")
        if rpe is not None and not 0 <= rpe <= 10:
            raise ValueError("rpe must be between 0 and 10")
        completed = _timestamp(completed_at, "completed_at")
        if not self.fetch_all(
            "SELECT id FROM workout_exercises WHERE id = ?;", (workout_exercise_id,)
        ):
            raise ValueError("workout exercise not found")
        rows = self.fetch_all(
            "SELECT COALESCE(MAX(set_number), 0) + 1 FROM exercise_sets WHERE workout_exercise_id = ?;",
            (workout_exercise_id,),
        )
        set_number = int(rows[0][0]) if rows else 1
        return self.execute(
            "INSERT INTO exercise_sets (workout_exercise_id, set_number, weight_kg, reps, is_warmup, rpe, completed_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?);",
            (
                workout_exercise_id,
                set_number,
                weight_kg,
                reps,
                int(is_warmup),
                rpe,
                completed,
            ),
        )

    def remove(self, set_id: int) -> None:
        if not self.fetch_all("SELECT id FROM exercise_sets WHERE id = ?;", (set_id,)):
            raise ValueError("set not found")
        self.execute("DELETE FROM exercise_sets WHERE id = ?;", (set_id,))

    def fetch_for_workout_exercises(
        self, workout_exercise_ids: List[int], include_warmup: bool = False
    ) -> List[ExerciseSet]:
        if not workout_exercise_ids:
            return []
        placeholders = ", ".join(["?" for _ in workout_exercise_ids])
        query = (
            "SELECT id, workout_exercise_id, weight_kg, reps, is_warmup, completed_at "
            f"FROM exercise_sets WHERE workout_exercise_id IN ({placeholders})"
        )
        if not include_warmup:
            query += " AND is_warmup = 0"
        query += " ORDER BY workout_exercise_id, set_number;"
        rows = self.fetch_all(query, tuple(workout_exercise_ids))
        return [
            ExerciseSet(
                id=sid,
                workout_exercise_id=weid,
                weight_kg=weight,
                reps=reps,
                is_warmup=bool(warmup),
                completed_at=datetime.datetime.fromisoformat(completed),
            )
            for sid, weid, weight, reps, warmup, completed in rows
        ]

    def fetch_history(
        self, exercise_id: int, include_warmup: bool = False
    ) -> List[SetRecord]:
        """Return sets of completed sessions for ``exercise_id`` oldest first."""
        rows = self.fetch_all(_history_query(include_warmup), (exercise_id,))
        return [_to_set_record(r) for r in rows]


class AsyncSetRepository:
    """Asynchronous history reads using aiosqlite."""

    def __init__(self, db_path: str = "workout.db") -> None:
        self._db_path = db_path

    @asynccontextmanager
    async def _async_connection(self):
        conn = await aiosqlite.connect(self._db_path)
        try:
            yield conn
        finally:
            await conn.close()

    async def fetch_history(
        self, exercise_id: int, include_warmup: bool = False
    ) -> List[SetRecord]:
        async with self._async_connection() as conn:
            cursor = await conn.execute(_history_query(include_warmup), (exercise_id,))
            rows = await cursor.fetchall()
        return [_to_set_record(r) for r in rows]


class GoalRepository(BaseRepository):
    """Repository for per-exercise goal management."""

    _COLUMNS = (
        "id, exercise_id, target_weight_kg, target_reps, target_date, achieved, achieved_at, notes"
    )

    @staticmethod
    def _to_model(row: Tuple) -> Goal:
        gid, eid, weight, reps, target_date, achieved, achieved_at, notes = row
        return Goal(
            id=gid,
            exercise_id=eid,
            target_weight_kg=weight,
            target_reps=reps,
            target_date=datetime.date.fromisoformat(target_date) if target_date else None,
            achieved=bool(achieved),
            achieved_at=datetime.datetime.fromisoformat(achieved_at) if achieved_at else None,
            notes=notes,
        )

    def add(
        self,
        exercise_id: int,
        target_weight_kg: float,
        target_reps: Optional[int] = None,
        target_date: str | None = None,
        notes: str | None = None,
    ) -> int:
        if target_weight_kg < 0:
            raise ValueError("target weight must be non-negative")
        if target_date is not None:
            datetime.date.fromisoformat(target_date)
        return self.execute(
            "INSERT INTO exercise_goals (exercise_id, target_weight_kg, target_reps, target_date, notes, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?);",
            (exercise_id, target_weight_kg, target_reps, target_date, notes, _now()),
        )

    def fetch_for_exercise(self, exercise_id: int) -> List[Goal]:
        rows = self.fetch_all(
            f"SELECT {self._COLUMNS} FROM exercise_goals WHERE exercise_id = ? ORDER BY created_at DESC, id DESC;",
            (exercise_id,),
        )
        return [self._to_model(r) for r in rows]

    def set_achieved(self, goal_id: int, achieved: bool = True) -> None:
        if not self.fetch_all("SELECT id FROM exercise_goals WHERE id = ?;", (goal_id,)):
            raise ValueError("goal not found")
        self.execute(
            "UPDATE exercise_goals SET achieved = ?, achieved_at = ? WHERE id = ?;",
            (int(achieved), _now() if achieved else None, goal_id),
        )

    def delete(self, goal_id: int) -> None:
        if not self.fetch_all("SELECT id FROM exercise_goals WHERE id = ?;", (goal_id,)):
            raise ValueError("goal not found")
        self.execute("DELETE FROM exercise_goals WHERE id = ?;", (goal_id,))


class SettingsRepository(BaseRepository):
    """Repository for general application settings synchronized with YAML."""

    def __init__(
        self, db_path: str = "workout.db", yaml_path: str = "settings.yaml"
    ) -> None:
        super().__init__(db_path)
        self._yaml = YamlConfig(yaml_path)
        self._sync_from_yaml()
        self._sync_to_yaml()

    def _raw_all_settings(self) -> dict:
        rows = self.fetch_all("SELECT key, value FROM settings ORDER BY key;")
        result: dict[str, float | str] = {}
        for k, v in rows:
            try:
                result[k] = int(v)
            except ValueError:
                result[k] = v
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

    def all_settings(self) -> dict:
        self._sync_from_yaml()
        return self._raw_all_settings()

    def get_text(self, key: str, default: str) -> str:
        self._sync_from_yaml()
        rows = self.fetch_all("SELECT value FROM settings WHERE key = ?;", (key,))
        return rows[0][0] if rows else default

    def get_int(self, key: str, default: int) -> int:
        try:
            return int(float(self.get_text(key, str(default))))
        except ValueError:
            return default

    def set_text(self, key: str, value: str) -> None:
        data = self._raw_all_settings()
        data[key] = value
        validate_settings(data)
        self.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
            (key, value),
        )
        self._sync_to_yaml()
