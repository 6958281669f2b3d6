import argparse
import datetime
import json
import logging
import shutil
import sys

from algorithms.math_tools import MathTools
from config import configure_logging
from rest_api import GymAPI

logger = logging.getLogger(__name__)


def backup_db(db_path: str, backup_path: str) -> None:
    shutil.copy(db_path, backup_path)


def restore_db(backup_path: str, db_path: str) -> None:
    shutil.copy(backup_path, db_path)


def _dump(data) -> str:
    if hasattr(data, "model_dump"):
        data = data.model_dump(mode="json")
    elif isinstance(data, dict):
        data = {
            k: [v.model_dump(mode="json") for v in vals] for k, vals in data.items()
        }
    return json.dumps(data, indent=2, ensure_ascii=False)


def _resolve_exercise(api: GymAPI, ref: str) -> int:
    if ref.isdigit():
        return api.exercises.fetch_detail(int(ref)).id
    exercise = api.exercises.find_by_name(ref)
    if exercise is None:
        raise ValueError(f"unknown exercise: {ref}")
    return exercise.id


def demo_data(db_path: str, yaml_path: str) -> None:
    """Populate the database with a few weeks of demo sessions if empty."""
    api = GymAPI(db_path=db_path, yaml_path=yaml_path)
    if api.sessions.fetch_sessions(completed_only=False, limit=1):
        print("Database already contains sessions")
        return
    bench = api.exercises.find_by_name("Bench Press")
    squat = api.exercises.find_by_name("Squat")
    running = api.exercises.find_by_name("Running")
    today = datetime.date.today()
    plan = [
        (21, 70.0, 8, 100.0, 5),
        (14, 72.5, 9, 102.5, 5),
        (7, 75.0, 10, 105.0, 4),
    ]
    for days_ago, bench_kg, bench_reps, squat_kg, squat_reps in plan:
        day = today - datetime.timedelta(days=days_ago)
        start = datetime.datetime.combine(day, datetime.time(17, 0))
        sid = api.sessions.create("full_body", started_at=start.isoformat())
        weid = api.workout_exercises.add(sid, bench.id)
        api.sets.add(weid, 10, 40.0, is_warmup=True, completed_at=start.isoformat())
        for n in range(3):
            ts = (start + datetime.timedelta(minutes=5 * (n + 1))).isoformat()
            api.sets.add(weid, bench_reps, bench_kg, completed_at=ts)
        weid = api.workout_exercises.add(sid, squat.id)
        for n in range(3):
            ts = (start + datetime.timedelta(minutes=25 + 5 * n)).isoformat()
            api.sets.add(weid, squat_reps, squat_kg, completed_at=ts)
        api.workout_exercises.add(sid, running.id)
        end = start + datetime.timedelta(minutes=55)
        api.sessions.finish(sid, ended_at=end.isoformat())
    print("Demo data inserted")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Gym tracker utility commands")
    sub = parser.add_subparsers(dest="cmd", required=True)

    demo = sub.add_parser("demo")
    demo.add_argument("--db", default="workout.db")
    demo.add_argument("--yaml", default="settings.yaml")

    sug = sub.add_parser("suggest")
    sug.add_argument("exercise", nargs="+", help="exercise id or name")
    sug.add_argument("--db", default="workout.db")
    sug.add_argument("--yaml", default="settings.yaml")

    stats = sub.add_parser("stats")
    stats.add_argument("exercise", help="exercise id or name")
    stats.add_argument("--db", default="workout.db")
    stats.add_argument("--yaml", default="settings.yaml")

    hist = sub.add_parser("history")
    hist.add_argument("--db", default="workout.db")
    hist.add_argument("--yaml", default="settings.yaml")

    orm = sub.add_parser("one_rm")
    orm.add_argument("--weight", type=float, required=True)
    orm.add_argument("--reps", type=int, required=True)

    bkp = sub.add_parser("backup")
    bkp.add_argument("--db", default="workout.db")
    bkp.add_argument("--out", default="backup.db")

    rst = sub.add_parser("restore")
    rst.add_argument("--in", dest="src", default="backup.db")
    rst.add_argument("--db", default="workout.db")

    args = parser.parse_args(argv)
    configure_logging()

    try:
        if args.cmd == "demo":
            demo_data(args.db, args.yaml)
        elif args.cmd == "suggest":
            api = GymAPI(db_path=args.db, yaml_path=args.yaml)
            for ref in args.exercise:
                eid = _resolve_exercise(api, ref)
                print(_dump(api.recommendations.suggest_for_exercise(eid)))
        elif args.cmd == "stats":
            api = GymAPI(db_path=args.db, yaml_path=args.yaml)
            eid = _resolve_exercise(api, args.exercise)
            print(_dump(api.statistics.exercise_stats(eid)))
        elif args.cmd == "history":
            api = GymAPI(db_path=args.db, yaml_path=args.yaml)
            print(_dump(api.training_history.build()))
        elif args.cmd == "one_rm":
            est = MathTools.epley_1rm(args.weight, args.reps)
            print(f"Estimated 1RM: {est:g} kg")
            for row in MathTools.rep_table(est):
                print(f"{row['reps']:>3} reps  {row['percentage']:>3}%  {row['weight']} kg")
        elif args.cmd == "backup":
            backup_db(args.db, args.out)
        elif args.cmd == "restore":
            restore_db(args.src, args.db)
    except (ValueError, OSError) as e:
        logger.debug("command %s failed", args.cmd, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
