from __future__ import annotations
import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Exercise(_Frozen):
    """Exercise library entry."""

    id: int
    name: str
    description: Optional[str] = None
    muscle_groups: tuple[str, ...] = ()
    equipment_type: str = "other"
    is_custom: bool = False
    is_cardio: bool = False


class SetRecord(_Frozen):
    """A logged set together with the date of the session it belongs to."""

    id: Union[int, str]
    weight_kg: Optional[float] = None
    reps: Optional[int] = None
    is_warmup: bool = False
    completed_at: datetime.datetime
    session_date: datetime.date
    session_id: Optional[Union[int, str]] = None


class SessionSummary(_Frozen):
    """Best values and volume of one exercise on one session date."""

    date: datetime.date
    best_weight: float
    best_reps: int
    estimated_1rm: float
    total_volume: float
    sets: tuple[SetRecord, ...] = ()


class PersonalRecord(_Frozen):
    type: Literal["weight", "oneRepMax", "volume"]
    value: float
    date: datetime.date
    reps: Optional[int] = None


class Goal(_Frozen):
    id: Optional[int] = None
    exercise_id: Optional[int] = None
    target_weight_kg: Optional[float] = None
    target_reps: Optional[int] = None
    target_date: Optional[datetime.date] = None
    achieved: bool = False
    achieved_at: Optional[datetime.datetime] = None
    notes: Optional[str] = None


class GoalProgress(Goal):
    current_best: float
    progress: float
    remaining: float


Confidence = Literal["high", "medium", "low"]


class _Suggestion(_Frozen):
    message: str
    confidence: Confidence


class FirstTimeSuggestion(_Suggestion):
    type: Literal["first_time"] = "first_time"


class MaintainSuggestion(_Suggestion):
    type: Literal["maintain"] = "maintain"
    suggested_weight: float
    suggested_reps: int


class IncreaseWeightSuggestion(_Suggestion):
    type: Literal["increase_weight"] = "increase_weight"
    suggested_weight: float
    suggested_reps: int


class IncreaseRepsSuggestion(_Suggestion):
    type: Literal["increase_reps"] = "increase_reps"
    suggested_weight: float
    suggested_reps: int


class DeloadSuggestion(_Suggestion):
    type: Literal["deload"] = "deload"
    suggested_weight: float


ProgressiveSuggestion = Annotated[
    Union[
        FirstTimeSuggestion,
        MaintainSuggestion,
        IncreaseWeightSuggestion,
        IncreaseRepsSuggestion,
        DeloadSuggestion,
    ],
    Field(discriminator="type"),
]


class WorkoutSession(_Frozen):
    id: Union[int, str]
    workout_type: str = "custom"
    custom_type_name: Optional[str] = None
    started_at: datetime.datetime
    ended_at: Optional[datetime.datetime] = None
    duration_seconds: Optional[int] = None
    is_active: bool = False


class WorkoutExercise(_Frozen):
    id: Union[int, str]
    workout_session_id: Union[int, str]
    exercise_id: Union[int, str]
    exercise_name: Optional[str] = None
    is_cardio: bool = False


class ExerciseSet(_Frozen):
    id: Union[int, str]
    workout_exercise_id: Union[int, str]
    weight_kg: Optional[float] = None
    reps: Optional[int] = None
    is_warmup: bool = False
    completed_at: Optional[datetime.datetime] = None


class RecentWorkout(_Frozen):
    date: datetime.date
    type: str
    exercise_count: int
    duration: int
    top_exercise: str


class TopExercise(_Frozen):
    name: str
    exercise_id: Union[int, str]
    last_weight: float
    last_reps: int
    personal_record: float
    times_performed: int
    progress_suggestion: str


class ExerciseRecord(_Frozen):
    exercise_name: str
    weight: float
    date: Optional[datetime.date] = None


class TrainingHistory(_Frozen):
    recent_workouts: tuple[RecentWorkout, ...] = ()
    top_exercises: tuple[TopExercise, ...] = ()
    personal_records: tuple[ExerciseRecord, ...] = ()
