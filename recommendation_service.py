from __future__ import annotations
import asyncio
import logging
from typing import Iterable, Sequence

from algorithms.math_tools import MathTools
from db import AsyncSetRepository, SetRepository
from localization import Translator, format_number, translator as default_translator
from models import (
    DeloadSuggestion,
    FirstTimeSuggestion,
    IncreaseRepsSuggestion,
    IncreaseWeightSuggestion,
    MaintainSuggestion,
    ProgressiveSuggestion,
    SessionSummary,
)
from stats_service import StatisticsService

logger = logging.getLogger(__name__)


class RecommendationService:
    """Suggest the next load for an exercise from its recent sessions."""

    MAX_SESSIONS = 10
    TARGET_REPS = 10
    RESET_REPS = 8
    DECLINE_RATIO = 0.9
    DELOAD_RATIO = 0.8
    MIN_DECLINE_SESSIONS = 3
    STAGNATION_WINDOW = 2

    def __init__(
        self,
        set_repo: SetRepository | None = None,
        async_set_repo: AsyncSetRepository | None = None,
        translator: Translator | None = None,
    ) -> None:
        self.sets = set_repo
        self.async_sets = async_set_repo
        self.translator = translator or default_translator

    def _t(self, key: str, **values) -> str:
        return self.translator.format(key, **values)

    def suggest(self, history: Sequence[SessionSummary]) -> ProgressiveSuggestion:
        """Classify ``history`` (most recent first) into a suggestion.

        Rules are checked in order: decline, ready to add weight, plateau,
        then maintain. Only the first ``MAX_SESSIONS`` entries are used.
        """
        history = list(history)[: self.MAX_SESSIONS]
        if not history:
            return FirstTimeSuggestion(
                message=self._t("First time! Start light and find the right weight."),
                confidence="low",
            )

        last, previous = history[0], history[1:]
        weight = last.best_weight
        reps = last.best_reps
        if not previous:
            return MaintainSuggestion(
                message=self._t(
                    "Last time: {weight} kg × {reps} reps",
                    weight=format_number(weight),
                    reps=reps,
                ),
                suggested_weight=weight,
                suggested_reps=reps,
                confidence="medium",
            )

        avg_previous_weight = MathTools.mean(s.best_weight for s in previous)
        hit_target_reps = reps >= self.TARGET_REPS
        weight_stagnant = len(previous) >= self.STAGNATION_WINDOW and all(
            s.best_weight == weight for s in previous[: self.STAGNATION_WINDOW]
        )
        declining = (
            len(previous) >= self.MIN_DECLINE_SESSIONS
            and weight < avg_previous_weight * self.DECLINE_RATIO
        )
        logger.debug(
            "last=%s x %s avg_prev=%.2f stagnant=%s declining=%s",
            weight,
            reps,
            avg_previous_weight,
            weight_stagnant,
            declining,
        )

        if declining:
            return DeloadSuggestion(
                message=self._t("Think about recovery. Consider a lighter week."),
                suggested_weight=MathTools.round_to_increment(weight * self.DELOAD_RATIO),
                confidence="medium",
            )

        if hit_target_reps and not weight_stagnant:
            new_weight = MathTools.ceil_to_increment(weight + MathTools.PLATE_INCREMENT)
            return IncreaseWeightSuggestion(
                message=self._t(
                    "Increase to {weight} kg (you managed {reps} reps)",
                    weight=format_number(new_weight),
                    reps=reps,
                ),
                suggested_weight=new_weight,
                suggested_reps=self.RESET_REPS,
                confidence="high",
            )

        if weight_stagnant and reps < self.TARGET_REPS:
            return IncreaseRepsSuggestion(
                message=self._t(
                    "Aim for {low}-{high} reps @ {weight} kg",
                    low=reps + 1,
                    high=reps + 2,
                    weight=format_number(weight),
                ),
                suggested_weight=weight,
                suggested_reps=reps + 1,
                confidence="medium",
            )

        return MaintainSuggestion(
            message=self._t(
                "Keep going with {weight} kg × {reps} reps",
                weight=format_number(weight),
                reps=reps,
            ),
            suggested_weight=weight,
            suggested_reps=reps,
            confidence="medium",
        )

    def _recent_first(self, sets: Iterable) -> list[SessionSummary]:
        history = StatisticsService.aggregate_sessions(sets)
        return list(reversed(history))[: self.MAX_SESSIONS]

    def suggest_for_exercise(self, exercise_id: int) -> ProgressiveSuggestion:
        """Return the suggestion for the latest completed sessions of an exercise."""
        if self.sets is None:
            raise ValueError("set repository required")
        suggestion = self.suggest(self._recent_first(self.sets.fetch_history(exercise_id)))
        logger.info("exercise %s -> %s", exercise_id, suggestion.type)
        return suggestion

    async def suggest_many(
        self, exercise_ids: Iterable[int]
    ) -> dict[int, ProgressiveSuggestion]:
        """Fetch several exercises concurrently and advise each one."""
        if self.async_sets is None:
            raise ValueError("async set repository required")
        ids = list(dict.fromkeys(exercise_ids))
        histories = await asyncio.gather(
            *(self.async_sets.fetch_history(eid) for eid in ids)
        )
        return {
            eid: self.suggest(self._recent_first(sets))
            for eid, sets in zip(ids, histories)
        }
