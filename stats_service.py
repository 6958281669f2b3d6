from __future__ import annotations
import datetime
import logging
from typing import Dict, Iterable, List, Optional

from algorithms.math_tools import MathTools
from db import GoalRepository, SetRepository
from models import Goal, GoalProgress, PersonalRecord, SessionSummary, SetRecord

logger = logging.getLogger(__name__)


class StatisticsService:
    """Compute per-exercise history, records and goal progress."""

    def __init__(
        self,
        set_repo: SetRepository,
        goal_repo: GoalRepository | None = None,
    ) -> None:
        self.sets = set_repo
        self.goals = goal_repo

    @staticmethod
    def aggregate_sessions(sets: Iterable[SetRecord]) -> List[SessionSummary]:
        """Group working sets by session date into ascending summaries."""
        by_date: Dict[datetime.date, List[SetRecord]] = {}
        for record in sets:
            if record.is_warmup:
                continue
            by_date.setdefault(record.session_date, []).append(record)

        history: List[SessionSummary] = []
        for day in sorted(by_date):
            working = sorted(
                by_date[day], key=lambda s: (s.completed_at, str(s.id))
            )
            history.append(
                SessionSummary(
                    date=day,
                    best_weight=max(float(s.weight_kg or 0) for s in working),
                    best_reps=max(int(s.reps or 0) for s in working),
                    estimated_1rm=max(
                        MathTools.epley_1rm(s.weight_kg, s.reps) for s in working
                    ),
                    total_volume=MathTools.volume(
                        (s.reps, s.weight_kg) for s in working
                    ),
                    sets=tuple(working),
                )
            )
        return history

    @staticmethod
    def personal_records(summaries: Iterable[SessionSummary]) -> List[PersonalRecord]:
        """Return all-time weight, 1RM and volume records.

        Summaries are scanned oldest first and a record only moves on a
        strictly greater value, so the earliest session keeps a tie.
        """
        max_weight = 0.0
        max_weight_date: Optional[datetime.date] = None
        max_weight_reps = 0
        max_1rm = 0.0
        max_1rm_date: Optional[datetime.date] = None
        max_volume = 0.0
        max_volume_date: Optional[datetime.date] = None

        for session in summaries:
            for s in session.sets:
                weight = float(s.weight_kg or 0)
                if weight > max_weight:
                    max_weight = weight
                    max_weight_date = session.date
                    max_weight_reps = int(s.reps or 0)
            if session.estimated_1rm > max_1rm:
                max_1rm = session.estimated_1rm
                max_1rm_date = session.date
            if session.total_volume > max_volume:
                max_volume = session.total_volume
                max_volume_date = session.date

        records: List[PersonalRecord] = []
        if max_weight > 0:
            records.append(
                PersonalRecord(
                    type="weight",
                    value=max_weight,
                    date=max_weight_date,
                    reps=max_weight_reps,
                )
            )
        if max_1rm > 0:
            records.append(
                PersonalRecord(type="oneRepMax", value=max_1rm, date=max_1rm_date)
            )
        if max_volume > 0:
            records.append(
                PersonalRecord(type="volume", value=max_volume, date=max_volume_date)
            )
        return records

    @staticmethod
    def goal_progress(
        goals: Iterable[Goal], summaries: Iterable[SessionSummary]
    ) -> List[GoalProgress]:
        """Return distance to each goal measured against the heaviest session."""
        goals = list(goals)
        summaries = list(summaries)
        if not goals or not summaries:
            return []
        current_best = max(s.best_weight for s in summaries)
        result: List[GoalProgress] = []
        for goal in goals:
            target = float(goal.target_weight_kg or 0)
            progress = current_best / target * 100 if target > 0 else 0.0
            result.append(
                GoalProgress(
                    **goal.model_dump(),
                    current_best=current_best,
                    progress=min(progress, 100.0),
                    remaining=max(0.0, target - current_best),
                )
            )
        return result

    def exercise_history(self, exercise_id: int) -> List[SessionSummary]:
        history = self.aggregate_sessions(self.sets.fetch_history(exercise_id))
        logger.debug("exercise %s: %d sessions", exercise_id, len(history))
        return history

    def exercise_stats(self, exercise_id: int) -> dict:
        """Return history, personal records and goal progress for an exercise."""
        history = self.exercise_history(exercise_id)
        goals = self.goals.fetch_for_exercise(exercise_id) if self.goals else []
        return {
            "history": history,
            "personal_records": self.personal_records(history),
            "goals": self.goal_progress(goals, history),
        }
