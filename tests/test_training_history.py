import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from localization import Translator
from models import ExerciseSet, WorkoutExercise, WorkoutSession
from training_history_service import TrainingHistoryService


def session(sid, day, workout_type="push", minutes=60, custom=None):
    start = datetime.datetime.fromisoformat(f"{day}T18:00:00")
    return WorkoutSession(
        id=sid,
        workout_type=workout_type,
        custom_type_name=custom,
        started_at=start,
        ended_at=start + datetime.timedelta(minutes=minutes),
        duration_seconds=minutes * 60,
    )


class ProgressSuggestionTest(unittest.TestCase):
    def setUp(self) -> None:
        self.service = TrainingHistoryService(translator=Translator("en"))

    def test_rules(self) -> None:
        s = self.service.progress_suggestion
        self.assertEqual(s(80, 10, 80), "Increase to 82.5kg (managed 10 reps)")
        self.assertEqual(s(50, 5, 50), "Consider 47.5kg for more reps")
        self.assertEqual(s(96, 7, 100), "Close to PR! Try to beat 100kg")
        self.assertEqual(s(60, 9, 60), "Good! Aim for 10-11 reps")
        self.assertEqual(s(20, 5, 20), "Keep going with 20kg, aim for 8-10 reps")
        self.assertEqual(s(0, 8, 0), "")
        self.assertEqual(s(60, 0, 60), "")

    def test_swedish(self) -> None:
        service = TrainingHistoryService(translator=Translator("sv"))
        self.assertEqual(
            service.progress_suggestion(80, 10, 80),
            "Öka till 82.5kg (klarade 10 reps)",
        )


class SummarizeTest(unittest.TestCase):
    def setUp(self) -> None:
        self.service = TrainingHistoryService(translator=Translator("en"))
        # newest first, as returned by the session repository
        self.sessions = [
            session(3, "2024-05-10", "legs", minutes=75),
            session(2, "2024-05-07", "custom", minutes=45, custom="Gym with Anna"),
            session(1, "2024-05-03", "push", minutes=50),
        ]
        self.exercises = [
            WorkoutExercise(id=10, workout_session_id=1, exercise_id=1, exercise_name="Bench Press"),
            WorkoutExercise(id=11, workout_session_id=1, exercise_id=9, exercise_name="Running", is_cardio=True),
            WorkoutExercise(id=20, workout_session_id=2, exercise_id=1, exercise_name="Bench Press"),
            WorkoutExercise(id=21, workout_session_id=2, exercise_id=2, exercise_name="Squat"),
            WorkoutExercise(id=30, workout_session_id=3, exercise_id=2, exercise_name="Squat"),
            WorkoutExercise(id=31, workout_session_id=3, exercise_id=9, exercise_name="Running", is_cardio=True),
            WorkoutExercise(id=32, workout_session_id=3, exercise_id=1, exercise_name="Bench Press"),
        ]
        self.sets = [
            ExerciseSet(id=1, workout_exercise_id=10, weight_kg=70.0, reps=8),
            ExerciseSet(id=2, workout_exercise_id=10, weight_kg=72.5, reps=6),
            ExerciseSet(id=3, workout_exercise_id=10, weight_kg=100.0, reps=10, is_warmup=True),
            ExerciseSet(id=4, workout_exercise_id=11, weight_kg=500.0, reps=1),
            ExerciseSet(id=5, workout_exercise_id=20, weight_kg=75.0, reps=10),
            ExerciseSet(id=6, workout_exercise_id=21, weight_kg=100.0, reps=5),
            ExerciseSet(id=7, workout_exercise_id=30, weight_kg=105.0, reps=5),
            ExerciseSet(id=8, workout_exercise_id=31, weight_kg=900.0, reps=1),
            ExerciseSet(id=9, workout_exercise_id=32, weight_kg=77.5, reps=8),
        ]

    def test_recent_workouts(self) -> None:
        result = self.service.summarize(self.sessions, self.exercises, self.sets)
        recent = result.recent_workouts
        self.assertEqual([w.date.isoformat() for w in recent], ["2024-05-10", "2024-05-07", "2024-05-03"])
        self.assertEqual([w.type for w in recent], ["Legs", "Gym with Anna", "Push"])
        self.assertEqual([w.exercise_count for w in recent], [3, 2, 2])
        self.assertEqual([w.duration for w in recent], [75, 45, 50])
        self.assertEqual(recent[1].top_exercise, "Squat 100kg × 5")
        self.assertEqual(recent[2].top_exercise, "Running 500kg × 1")

    def test_top_exercises_ranked_and_cardio_free(self) -> None:
        result = self.service.summarize(self.sessions, self.exercises, self.sets)
        names = [e.name for e in result.top_exercises]
        self.assertEqual(names, ["Bench Press", "Squat"])
        bench = result.top_exercises[0]
        self.assertEqual(bench.times_performed, 3)
        self.assertEqual(bench.last_weight, 77.5)
        self.assertEqual(bench.last_reps, 8)
        self.assertEqual(bench.personal_record, 77.5)
        self.assertEqual(bench.progress_suggestion, "Good! Aim for 9-10 reps")
        squat = result.top_exercises[1]
        self.assertEqual(squat.last_weight, 105.0)
        self.assertEqual(squat.progress_suggestion, "Consider 102.5kg for more reps")

    def test_personal_records(self) -> None:
        result = self.service.summarize(self.sessions, self.exercises, self.sets)
        records = [(r.exercise_name, r.weight, r.date.isoformat()) for r in result.personal_records]
        self.assertEqual(
            records,
            [("Squat", 105.0, "2024-05-10"), ("Bench Press", 77.5, "2024-05-10")],
        )

    def test_cardio_only_history(self) -> None:
        result = self.service.summarize(
            self.sessions[2:], self.exercises[1:2], self.sets[3:4]
        )
        self.assertEqual(result.top_exercises, ())
        self.assertEqual(result.personal_records, ())
        self.assertEqual(result.recent_workouts[0].exercise_count, 1)

    def test_limits(self) -> None:
        sessions = [session(1, "2024-05-01")]
        exercises = []
        sets = []
        for i in range(12):
            exercises.append(
                WorkoutExercise(id=i, workout_session_id=1, exercise_id=i, exercise_name=f"Lift {i}")
            )
            sets.append(ExerciseSet(id=i, workout_exercise_id=i, weight_kg=10.0 + i, reps=8))
        result = self.service.summarize(sessions, exercises, sets)
        self.assertEqual(len(result.top_exercises), 8)
        self.assertEqual(len(result.personal_records), 5)
        self.assertEqual(result.personal_records[0].exercise_name, "Lift 11")

    def test_exercise_without_session_with_aware_times(self) -> None:
        start = datetime.datetime(2024, 5, 1, 18, 0, tzinfo=datetime.timezone.utc)
        sessions = [
            WorkoutSession(id=1, workout_type="push", started_at=start, duration_seconds=3600)
        ]
        exercises = [
            WorkoutExercise(id=1, workout_session_id=1, exercise_id=1, exercise_name="Bench Press"),
            WorkoutExercise(id=2, workout_session_id=99, exercise_id=1, exercise_name="Bench Press"),
        ]
        sets = [
            ExerciseSet(id=1, workout_exercise_id=1, weight_kg=80.0, reps=8),
            ExerciseSet(id=2, workout_exercise_id=2, weight_kg=60.0, reps=8),
        ]
        result = self.service.summarize(sessions, exercises, sets)
        bench = result.top_exercises[0]
        self.assertEqual(bench.times_performed, 2)
        self.assertEqual(bench.last_weight, 80.0)
        self.assertEqual(result.personal_records[0].weight, 80.0)

    def test_empty(self) -> None:
        result = self.service.summarize([], [], [])
        self.assertEqual(result.recent_workouts, ())
        self.assertEqual(result.top_exercises, ())

    def test_build_requires_repositories(self) -> None:
        with self.assertRaises(ValueError):
            self.service.build()


if __name__ == "__main__":
    unittest.main()
