import datetime
import logging
import time
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query, Request, Response

from algorithms.math_tools import MathTools
from config import configure_logging
from db import (
    AsyncSetRepository,
    ExerciseRepository,
    GoalRepository,
    SetRepository,
    SettingsRepository,
    WorkoutExerciseRepository,
    WorkoutSessionRepository,
)
from localization import Translator
from recommendation_service import RecommendationService
from stats_service import StatisticsService
from training_history_service import TrainingHistoryService

logger = logging.getLogger(__name__)


class RateLimiter:
    """Simple in-memory rate limiter."""

    def __init__(self, limit: int = 60, window: int = 60) -> None:
        self.limit = limit
        self.window = window
        self.requests: dict[str, list[float]] = {}

    async def __call__(self, request: Request, call_next):
        ip = request.client.host if request.client else "anon"
        now = time.time()
        history = [t for t in self.requests.get(ip, []) if now - t < self.window]
        if len(history) >= self.limit:
            logger.warning("rate limit exceeded for %s", ip)
            return Response("rate limit exceeded", status_code=429)
        history.append(now)
        self.requests[ip] = history
        return await call_next(request)


class GymAPI:
    """Provides REST endpoints for workout logging and progression advice."""

    def __init__(
        self,
        db_path: str = "workout.db",
        yaml_path: str = "settings.yaml",
        *,
        rate_limit: int | None = None,
        rate_window: int = 60,
    ) -> None:
        self.db_path = db_path
        self.settings = SettingsRepository(db_path, yaml_path)
        configure_logging(self.settings.get_text("log_level", "INFO"))
        self.exercises = ExerciseRepository(db_path)
        self.sessions = WorkoutSessionRepository(db_path)
        self.workout_exercises = WorkoutExerciseRepository(db_path)
        self.sets = SetRepository(db_path)
        self.async_sets = AsyncSetRepository(db_path)
        self.goals = GoalRepository(db_path)
        self.translator = Translator(self.settings.get_text("language", "en"))
        self.statistics = StatisticsService(self.sets, self.goals)
        self.recommendations = RecommendationService(
            self.sets, self.async_sets, translator=self.translator
        )
        self.training_history = TrainingHistoryService(
            self.sessions,
            self.workout_exercises,
            self.sets,
            translator=self.translator,
        )
        self.app = FastAPI(
            title="Gym Tracker API",
            description="REST API for workout logging and progressive overload advice",
        )
        if rate_limit is not None:
            limiter = RateLimiter(limit=rate_limit, window=rate_window)
            self.app.middleware("http")(limiter)
        self._setup_routes()

    def _require_exercise(self, exercise_id: int) -> None:
        try:
            self.exercises.fetch_detail(exercise_id)
        except ValueError as e:
            raise HTTPException(status_code=404, detail=str(e))

    def _setup_routes(self) -> None:
        @self.app.get(
            "/health",
            summary="Health check",
            description="Verify API and database connectivity.",
        )
        def health():
            """Return API and database connection status."""
            try:
                self.sessions.fetch_sessions(limit=1)
                return {"status": "ok"}
            except Exception as e:  # pragma: no cover - connectivity failure
                raise HTTPException(status_code=500, detail=str(e))

        @self.app.get("/settings")
        def get_settings():
            return self.settings.all_settings()

        @self.app.put("/settings/{key}")
        def update_setting(key: str, value: str):
            try:
                self.settings.set_text(key, value)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            if key == "language":
                self.translator.set_language(value)
            return {"status": "updated"}

        @self.app.get("/exercises")
        def list_exercises(cardio: Optional[bool] = None):
            return self.exercises.fetch_all_exercises(cardio)

        @self.app.post("/exercises")
        def add_exercise(
            name: str,
            muscle_groups: List[str] = Query(default=[]),
            equipment_type: str = "other",
            is_cardio: bool = False,
            description: str | None = None,
        ):
            try:
                ex_id = self.exercises.add(
                    name, muscle_groups, equipment_type, is_cardio, description
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"id": ex_id}

        @self.app.get("/exercises/{exercise_id}")
        def get_exercise(exercise_id: int):
            try:
                return self.exercises.fetch_detail(exercise_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))

        @self.app.delete("/exercises/{exercise_id}")
        def delete_exercise(exercise_id: int):
            self._require_exercise(exercise_id)
            try:
                self.exercises.delete(exercise_id)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"status": "deleted"}

        @self.app.post("/sessions")
        def start_session(
            workout_type: str = "custom",
            custom_type_name: str | None = None,
            started_at: str | None = None,
        ):
            try:
                sid = self.sessions.create(workout_type, custom_type_name, started_at)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"id": sid}

        @self.app.get("/sessions")
        def list_sessions(completed_only: bool = False, limit: int | None = None):
            return self.sessions.fetch_sessions(completed_only=completed_only, limit=limit)

        @self.app.get("/sessions/{session_id}")
        def get_session(session_id: int):
            try:
                return self.sessions.fetch_detail(session_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))

        @self.app.post("/sessions/{session_id}/finish")
        def finish_session(
            session_id: int,
            ended_at: str | None = None,
            rating: int | None = None,
            notes: str | None = None,
        ):
            try:
                session = self.sessions.finish(session_id, ended_at, rating, notes)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"status": "finished", "duration_seconds": session.duration_seconds}

        @self.app.delete("/sessions/{session_id}")
        def delete_session(session_id: int):
            try:
                self.sessions.delete(session_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            return {"status": "deleted"}

        @self.app.post("/sessions/{session_id}/exercises")
        def add_session_exercise(session_id: int, exercise_id: int, notes: str | None = None):
            try:
                self.sessions.fetch_detail(session_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            self._require_exercise(exercise_id)
            return {"id": self.workout_exercises.add(session_id, exercise_id, notes)}

        @self.app.post("/workout_exercises/{workout_exercise_id}/sets")
        def add_set(
            workout_exercise_id: int,
            reps: int | None = None,
            weight_kg: float | None = None,
            is_warmup: bool = False,
            rpe: int | None = None,
            completed_at: str | None = None,
        ):
            try:
                set_id = self.sets.add(
                    workout_exercise_id, reps, weight_kg, is_warmup, rpe, completed_at
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"id": set_id}

        @self.app.delete("/sets/{set_id}")
        def delete_set(set_id: int):
            try:
                self.sets.remove(set_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            return {"status": "deleted"}

        @self.app.get("/exercises/{exercise_id}/goals")
        def list_goals(exercise_id: int):
            self._require_exercise(exercise_id)
            return self.goals.fetch_for_exercise(exercise_id)

        @self.app.post("/exercises/{exercise_id}/goals")
        def add_goal(
            exercise_id: int,
            target_weight_kg: float,
            target_reps: int | None = None,
            target_date: str | None = None,
            notes: str | None = None,
        ):
            self._require_exercise(exercise_id)
            try:
                gid = self.goals.add(
                    exercise_id, target_weight_kg, target_reps, target_date, notes
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"id": gid}

        @self.app.put("/goals/{goal_id}/achieved")
        def mark_goal(goal_id: int, achieved: bool = True):
            try:
                self.goals.set_achieved(goal_id, achieved)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            return {"status": "updated"}

        @self.app.delete("/goals/{goal_id}")
        def delete_goal(goal_id: int):
            try:
                self.goals.delete(goal_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            return {"status": "deleted"}

        @self.app.get("/exercises/{exercise_id}/history")
        def exercise_history(exercise_id: int):
            self._require_exercise(exercise_id)
            return self.statistics.exercise_history(exercise_id)

        @self.app.get("/exercises/{exercise_id}/records")
        def exercise_records(exercise_id: int):
            self._require_exercise(exercise_id)
            history = self.statistics.exercise_history(exercise_id)
            return self.statistics.personal_records(history)

        @self.app.get("/exercises/{exercise_id}/goals/progress")
        def goal_progress(exercise_id: int):
            self._require_exercise(exercise_id)
            return self.statistics.exercise_stats(exercise_id)["goals"]

        @self.app.get("/exercises/{exercise_id}/stats")
        def exercise_stats(exercise_id: int):
            self._require_exercise(exercise_id)
            return self.statistics.exercise_stats(exercise_id)

        @self.app.get("/exercises/{exercise_id}/suggestion")
        def exercise_suggestion(exercise_id: int):
            self._require_exercise(exercise_id)
            return self.recommendations.suggest_for_exercise(exercise_id)

        @self.app.get("/suggestions")
        async def exercise_suggestions(exercise_ids: List[int] = Query(...)):
            for exercise_id in exercise_ids:
                self._require_exercise(exercise_id)
            return await self.recommendations.suggest_many(exercise_ids)

        @self.app.get("/training_history")
        def training_history(today: str | None = None):
            try:
                day = datetime.date.fromisoformat(today) if today else None
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return self.training_history.build(day)

        @self.app.get("/one_rm")
        def one_rm(weight: float, reps: int):
            if weight < 0 or reps < 0:
                raise HTTPException(status_code=400, detail="values must be non-negative")
            est = MathTools.epley_1rm(weight, reps)
            return {"estimated_1rm": est, "rep_table": MathTools.rep_table(est)}
