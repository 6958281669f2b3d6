from __future__ import annotations
import datetime
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from algorithms.math_tools import MathTools
from db import SetRepository, WorkoutExerciseRepository, WorkoutSessionRepository
from localization import (
    WORKOUT_TYPE_LABELS,
    Translator,
    format_number,
    translator as default_translator,
)
from models import (
    ExerciseRecord,
    ExerciseSet,
    RecentWorkout,
    TopExercise,
    TrainingHistory,
    WorkoutExercise,
    WorkoutSession,
)

logger = logging.getLogger(__name__)


class TrainingHistoryService:
    """Summarize recent training for the PT chat assistant."""

    LOOKBACK_DAYS = 30
    MAX_SESSIONS = 10
    MAX_TOP_EXERCISES = 8
    MAX_RECORDS = 5

    def __init__(
        self,
        session_repo: WorkoutSessionRepository | None = None,
        workout_exercise_repo: WorkoutExerciseRepository | None = None,
        set_repo: SetRepository | None = None,
        translator: Translator | None = None,
    ) -> None:
        self.sessions = session_repo
        self.workout_exercises = workout_exercise_repo
        self.sets = set_repo
        self.translator = translator or default_translator

    def progress_suggestion(
        self, last_weight: float, last_reps: int, personal_record: float
    ) -> str:
        """Return a one-line progression hint for the assistant context."""
        t = self.translator
        if not last_weight or not last_reps:
            return ""
        if last_reps >= 10:
            return t.format(
                "Increase to {weight}kg (managed {reps} reps)",
                weight=format_number(last_weight + 2.5),
                reps=last_reps,
            )
        if last_reps < 6 and last_weight > 20:
            return t.format(
                "Consider {weight}kg for more reps",
                weight=format_number(last_weight - 2.5),
            )
        if personal_record * 0.95 <= last_weight < personal_record:
            return t.format(
                "Close to PR! Try to beat {weight}kg",
                weight=format_number(personal_record),
            )
        if last_reps >= 8:
            return t.format(
                "Good! Aim for {low}-{high} reps", low=last_reps + 1, high=last_reps + 2
            )
        return t.format(
            "Keep going with {weight}kg, aim for 8-10 reps",
            weight=format_number(last_weight),
        )

    @staticmethod
    def _heaviest(sets: Iterable[ExerciseSet]) -> Tuple[float, int]:
        weight, reps = 0.0, 0
        for s in sets:
            if float(s.weight_kg or 0) > weight:
                weight = float(s.weight_kg or 0)
                reps = int(s.reps or 0)
        return weight, reps

    def _type_label(self, session: WorkoutSession) -> str:
        if session.workout_type == "custom":
            return session.custom_type_name or self.translator.gettext("Custom session")
        label = WORKOUT_TYPE_LABELS.get(session.workout_type)
        return self.translator.gettext(label) if label else session.workout_type

    def summarize(
        self,
        sessions: Iterable[WorkoutSession],
        workout_exercises: Iterable[WorkoutExercise],
        sets: Iterable[ExerciseSet],
    ) -> TrainingHistory:
        sessions = list(sessions)
        workout_exercises = list(workout_exercises)
        unknown = self.translator.gettext("Unknown")

        sets_by_exercise: Dict[object, List[ExerciseSet]] = {}
        for s in sets:
            if s.is_warmup:
                continue
            sets_by_exercise.setdefault(s.workout_exercise_id, []).append(s)

        recent_workouts: List[RecentWorkout] = []
        for session in sessions:
            exercises = [
                we for we in workout_exercises if we.workout_session_id == session.id
            ]
            top_exercise = ""
            max_weight = 0.0
            for we in exercises:
                weight, reps = self._heaviest(sets_by_exercise.get(we.id, []))
                if weight > max_weight:
                    max_weight = weight
                    top_exercise = (
                        f"{we.exercise_name or unknown} {format_number(weight)}kg × {reps}"
                    )
            recent_workouts.append(
                RecentWorkout(
                    date=session.started_at.date(),
                    type=self._type_label(session),
                    exercise_count=len(exercises),
                    duration=MathTools.round_half_up((session.duration_seconds or 0) / 60),
                    top_exercise=top_exercise,
                )
            )

        started: Dict[object, datetime.datetime] = {s.id: s.started_at for s in sessions}
        def _started(we: WorkoutExercise):
            # exercises without a known session sort first
            start = started.get(we.workout_session_id)
            return (start is not None, start or 0)

        chronological = sorted(workout_exercises, key=_started)

        stats: Dict[object, dict] = {}
        records: Dict[str, Tuple[float, Optional[datetime.date]]] = {}
        for we in chronological:
            if we.is_cardio:
                continue
            name = we.exercise_name or unknown
            exercise_sets = sets_by_exercise.get(we.id, [])
            weight, reps = self._heaviest(exercise_sets)
            session_start = started.get(we.workout_session_id)

            current = records.get(name)
            if current is None or weight > current[0]:
                records[name] = (weight, session_start.date() if session_start else None)

            if not exercise_sets:
                continue
            item = stats.setdefault(
                we.exercise_id,
                {"name": name, "weights": [], "count": 0, "last_weight": 0.0, "last_reps": 0},
            )
            item["weights"].append(weight)
            item["count"] += 1
            item["last_weight"] = weight
            item["last_reps"] = reps

        ranked = sorted(
            ((eid, item) for eid, item in stats.items() if item["last_weight"] > 0),
            key=lambda pair: pair[1]["count"],
            reverse=True,
        )[: self.MAX_TOP_EXERCISES]
        top_exercises = []
        for eid, item in ranked:
            personal_record = max(item["weights"])
            top_exercises.append(
                TopExercise(
                    name=item["name"],
                    exercise_id=eid,
                    last_weight=item["last_weight"],
                    last_reps=item["last_reps"],
                    personal_record=personal_record,
                    times_performed=item["count"],
                    progress_suggestion=self.progress_suggestion(
                        item["last_weight"], item["last_reps"], personal_record
                    ),
                )
            )

        personal_records = sorted(
            (
                ExerciseRecord(exercise_name=name, weight=weight, date=day)
                for name, (weight, day) in records.items()
                if weight > 0
            ),
            key=lambda r: r.weight,
            reverse=True,
        )[: self.MAX_RECORDS]

        return TrainingHistory(
            recent_workouts=tuple(recent_workouts),
            top_exercises=tuple(top_exercises),
            personal_records=tuple(personal_records),
        )

    def build(self, today: datetime.date | None = None) -> TrainingHistory:
        """Summarize completed sessions from the lookback window."""
        if self.sessions is None or self.workout_exercises is None or self.sets is None:
            raise ValueError("repositories required")
        today = today or datetime.date.today()
        since = today - datetime.timedelta(days=self.LOOKBACK_DAYS)
        sessions = self.sessions.fetch_sessions(
            completed_only=True, since=since.isoformat(), limit=self.MAX_SESSIONS
        )
        exercises = self.workout_exercises.fetch_for_sessions([s.id for s in sessions])
        sets = self.sets.fetch_for_workout_exercises([we.id for we in exercises])
        history = self.summarize(sessions, exercises, sets)
        logger.debug(
            "training history: %d sessions, %d top exercises",
            len(history.recent_workouts),
            len(history.top_exercises),
        )
        return history
