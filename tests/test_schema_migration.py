import os
import sqlite3
import sys

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import Database


class TestSchemaMigration:
    def test_adds_missing_columns(self, tmp_path):
        db_file = tmp_path / "test.db"
        conn = sqlite3.connect(str(db_file))
        conn.execute(
            "CREATE TABLE exercise_sets (id INTEGER PRIMARY KEY AUTOINCREMENT, workout_exercise_id INTEGER, set_number INTEGER, weight_kg REAL, reps INTEGER, completed_at TEXT)"
        )
        conn.execute("INSERT INTO exercise_sets (workout_exercise_id, set_number, weight_kg, reps, completed_at) VALUES (1, 1, 50.0, 5, '2024-01-01T10:00:00')")
        conn.commit()
        conn.close()

        Database(str(db_file))

        conn = sqlite3.connect(str(db_file))
        cur = conn.execute("PRAGMA table_info(exercise_sets)")
        cols = [row[1] for row in cur.fetchall()]
        assert "is_warmup" in cols
        assert "rpe" in cols
        cur = conn.execute("SELECT weight_kg, reps FROM exercise_sets")
        assert cur.fetchall() == [(50.0, 5)]
        conn.close()

    def test_seeds_library_once(self, tmp_path):
        db_file = str(tmp_path / "seed.db")
        Database(db_file)
        Database(db_file)
        conn = sqlite3.connect(db_file)
        names = [r[0] for r in conn.execute("SELECT name FROM exercises WHERE is_cardio = 1 ORDER BY name")]
        total = conn.execute("SELECT COUNT(*) FROM exercises").fetchone()[0]
        settings = dict(conn.execute("SELECT key, value FROM settings"))
        conn.close()
        assert names == ["Rowing Machine", "Running"]
        assert total == 9
        assert settings["language"] == "en"
        assert settings["rest_timer_seconds"] == "90"
