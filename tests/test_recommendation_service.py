import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from localization import Translator
from models import SessionSummary
from recommendation_service import RecommendationService


def summary(weight, reps, days_ago=0):
    return SessionSummary(
        date=datetime.date(2024, 6, 30) - datetime.timedelta(days=days_ago),
        best_weight=weight,
        best_reps=reps,
        estimated_1rm=0,
        total_volume=weight * reps,
    )


def history(*pairs):
    """Build a most-recent-first history from (weight, reps) pairs."""
    return [summary(w, r, days_ago=i * 3) for i, (w, r) in enumerate(pairs)]


class RecommendationServiceTest(unittest.TestCase):
    def setUp(self) -> None:
        self.service = RecommendationService(translator=Translator("en"))

    def test_first_time(self) -> None:
        s = self.service.suggest([])
        self.assertEqual(s.type, "first_time")
        self.assertEqual(s.confidence, "low")
        self.assertFalse(hasattr(s, "suggested_weight"))

    def test_single_session_maintains(self) -> None:
        single = [
            SessionSummary(
                date=datetime.date(2024, 6, 1),
                best_weight=60,
                best_reps=8,
                estimated_1rm=76,
                total_volume=2880,
            )
        ]
        s = self.service.suggest(single)
        self.assertEqual(s.type, "maintain")
        self.assertEqual(s.suggested_weight, 60)
        self.assertEqual(s.suggested_reps, 8)
        self.assertEqual(s.confidence, "medium")
        self.assertEqual(s.message, "Last time: 60 kg × 8 reps")

    def test_ready_to_progress(self) -> None:
        s = self.service.suggest(history((80, 10), (77.5, 9), (75, 8)))
        self.assertEqual(s.type, "increase_weight")
        self.assertEqual(s.suggested_weight, 82.5)
        self.assertEqual(s.suggested_reps, 8)
        self.assertEqual(s.confidence, "high")
        self.assertEqual(s.message, "Increase to 82.5 kg (you managed 10 reps)")

    def test_progression_rounds_up_to_plate(self) -> None:
        s = self.service.suggest(history((81, 12), (78, 10)))
        self.assertEqual(s.type, "increase_weight")
        self.assertEqual(s.suggested_weight, 85.0)

    def test_deload(self) -> None:
        s = self.service.suggest(history((60, 8), (80, 8), (80, 8), (80, 8)))
        self.assertEqual(s.type, "deload")
        self.assertEqual(s.suggested_weight, 47.5)
        self.assertEqual(s.confidence, "medium")

    def test_deload_rounds_to_nearest(self) -> None:
        # 51.5 * 0.8 == 41.2 -> 40.0, not 42.5
        s = self.service.suggest(history((51.5, 5), (70, 5), (70, 5), (70, 5)))
        self.assertEqual(s.type, "deload")
        self.assertEqual(s.suggested_weight, 40.0)

    def test_decline_needs_three_previous_sessions(self) -> None:
        s = self.service.suggest(history((50, 8), (80, 8), (80, 8)))
        self.assertEqual(s.type, "maintain")
        self.assertEqual(s.suggested_weight, 50)

    def test_plateau_increase_reps(self) -> None:
        s = self.service.suggest(history((60, 7), (60, 8), (60, 6)))
        self.assertEqual(s.type, "increase_reps")
        self.assertEqual(s.suggested_weight, 60)
        self.assertEqual(s.suggested_reps, 8)
        self.assertEqual(s.message, "Aim for 8-9 reps @ 60 kg")

    def test_stagnation_only_looks_at_two_previous(self) -> None:
        s = self.service.suggest(history((60, 7), (60, 7), (60, 7), (70, 7)))
        self.assertEqual(s.type, "increase_reps")

    def test_stagnant_at_target_reps_maintains(self) -> None:
        s = self.service.suggest(history((60, 12), (60, 12), (60, 11)))
        self.assertEqual(s.type, "maintain")
        self.assertEqual(s.suggested_reps, 12)

    def test_default_maintain(self) -> None:
        s = self.service.suggest(history((62.5, 8), (60, 8)))
        self.assertEqual(s.type, "maintain")
        self.assertEqual(s.message, "Keep going with 62.5 kg × 8 reps")

    def test_only_ten_sessions_considered(self) -> None:
        sessions = history(*([(60, 8)] * 10 + [(200, 8), (200, 8)]))
        s = self.service.suggest(sessions)
        self.assertEqual(s.type, "increase_reps")

    def test_deterministic(self) -> None:
        h = history((80, 10), (77.5, 9), (75, 8))
        self.assertEqual(self.service.suggest(h), self.service.suggest(h))

    def test_swedish_messages(self) -> None:
        service = RecommendationService(translator=Translator("sv"))
        s = service.suggest([])
        self.assertEqual(s.message, "Första gången! Börja lätt och hitta rätt vikt.")
        s = service.suggest(history((80, 10), (77.5, 9)))
        self.assertEqual(s.message, "Öka till 82.5 kg (du klarade 10 reps)")

    def test_suggest_for_exercise_requires_repository(self) -> None:
        with self.assertRaises(ValueError):
            self.service.suggest_for_exercise(1)


if __name__ == "__main__":
    unittest.main()
