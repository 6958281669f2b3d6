import os
import sys
import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import (
    AsyncSetRepository,
    ExerciseRepository,
    SetRepository,
    WorkoutExerciseRepository,
    WorkoutSessionRepository,
)
from localization import Translator
from recommendation_service import RecommendationService


def _log(db_file, exercise_id, day, sets, finish=True):
    sessions = WorkoutSessionRepository(db_file)
    workout_exercises = WorkoutExerciseRepository(db_file)
    set_repo = SetRepository(db_file)
    sid = sessions.create("push", started_at=f"{day}T10:00:00")
    weid = workout_exercises.add(sid, exercise_id)
    for n, (reps, weight, warmup) in enumerate(sets, start=1):
        set_repo.add(weid, reps, weight, is_warmup=warmup, completed_at=f"{day}T10:{n:02d}:00")
    if finish:
        sessions.finish(sid, ended_at=f"{day}T11:00:00")
    return sid


@pytest.mark.asyncio
async def test_async_history_matches_sync(tmp_path):
    db_file = str(tmp_path / "sets.db")
    bench = ExerciseRepository(db_file).find_by_name("bench press").id
    _log(db_file, bench, "2024-01-01", [(10, 40.0, True), (5, 100.0, False)])
    _log(db_file, bench, "2024-01-04", [(6, 100.0, False)])
    _log(db_file, bench, "2024-01-08", [(8, 100.0, False)], finish=False)

    async_repo = AsyncSetRepository(db_file)
    rows = await async_repo.fetch_history(bench)
    assert rows == SetRepository(db_file).fetch_history(bench)
    assert [r.weight_kg for r in rows] == [100.0, 100.0]
    assert [r.session_date.isoformat() for r in rows] == ["2024-01-01", "2024-01-04"]

    with_warmup = await async_repo.fetch_history(bench, include_warmup=True)
    assert len(with_warmup) == 3
    assert with_warmup[0].is_warmup


@pytest.mark.asyncio
async def test_suggest_many(tmp_path):
    db_file = str(tmp_path / "advice.db")
    exercises = ExerciseRepository(db_file)
    bench = exercises.find_by_name("Bench Press").id
    squat = exercises.find_by_name("Squat").id
    deadlift = exercises.find_by_name("Deadlift").id
    _log(db_file, bench, "2024-02-01", [(8, 60.0, False)])
    _log(db_file, squat, "2024-02-01", [(7, 100.0, False)])
    _log(db_file, squat, "2024-02-03", [(8, 100.0, False)])
    _log(db_file, squat, "2024-02-05", [(8, 100.0, False)])

    service = RecommendationService(
        SetRepository(db_file), AsyncSetRepository(db_file), Translator("en")
    )
    result = await service.suggest_many([bench, squat, deadlift, bench])
    assert list(result) == [bench, squat, deadlift]
    assert result[bench].type == "maintain"
    assert result[bench].message == "Last time: 60 kg × 8 reps"
    assert result[squat].type == "increase_reps"
    assert result[squat].suggested_reps == 9
    assert result[deadlift].type == "first_time"
    assert result[squat] == service.suggest_for_exercise(squat)


@pytest.mark.asyncio
async def test_suggest_many_requires_repository():
    with pytest.raises(ValueError):
        await RecommendationService().suggest_many([1])
