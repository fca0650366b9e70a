import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

from workout_log.config import Settings
from workout_log.exporters import export_file_name, select_workouts, workouts_to_csv
from workout_log.models import LoggedWorkout
from workout_log.store import WorkoutLogStore


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="workout-log", description="Logged workout history")
    parser.add_argument(
        "--app-dir",
        type=Path,
        default=None,
        help="Application directory holding config.ini (default: ~/.local/share/<app id>).",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory of the workouts file; overrides config.ini.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List logged workouts, most recent first.")

    show = sub.add_parser("show", help="Print one workout as JSON.")
    show.add_argument("id")

    add = sub.add_parser("add", help="Add or replace workouts from a JSON file.")
    add.add_argument("file", type=Path)

    delete = sub.add_parser("delete", help="Delete one workout.")
    delete.add_argument("id")

    clear = sub.add_parser("clear", help="Delete every logged workout.")
    clear.add_argument("--yes", action="store_true", help="Confirm deleting everything.")

    export = sub.add_parser("export-csv", help="Export workouts as CSV.")
    export.add_argument("--start", type=date.fromisoformat, default=None)
    export.add_argument("--end", type=date.fromisoformat, default=None)
    export.add_argument(
        "--out", type=Path, default=None, help="Output file or directory (default: stdout)."
    )
    return parser


def _summary_line(w: LoggedWorkout) -> str:
    minutes = int(w.duration_s // 60)
    started = w.started_at.astimezone().strftime("%Y-%m-%d %H:%M")
    return f"{str(w.id)[:8]}  {started}  {w.name}  {minutes} min  {w.total_sets} sets"


def _run(args: argparse.Namespace, store: WorkoutLogStore, settings: Settings) -> int:
    if args.command == "list":
        for w in store:
            print(_summary_line(w))
        return 0

    if args.command == "show":
        w = store.workout(args.id)
        if w is None:
            print(f"No workout with id {args.id}", file=sys.stderr)
            return 1
        print(json.dumps(w.to_dict(), indent=2, ensure_ascii=False))
        return 0

    if args.command == "add":
        payload = json.loads(args.file.read_text(encoding="utf-8"))
        items = payload if isinstance(payload, list) else [payload]
        for item in items:
            saved = store.upsert(LoggedWorkout.from_dict(item))
            print(f"Saved {saved.id}")
        return 0

    if args.command == "delete":
        if store.workout(args.id) is None:
            print(f"No workout with id {args.id}", file=sys.stderr)
            return 1
        store.delete(args.id)
        return 0

    if args.command == "clear":
        if not args.yes:
            print("Refusing to delete every workout without --yes", file=sys.stderr)
            return 2
        store.clear_all()
        return 0

    if args.command == "export-csv":
        selected = select_workouts(store, start=args.start, end=args.end)
        text = workouts_to_csv(selected, weight_unit=settings.weight_unit)
        if args.out:
            out = args.out
            if out.is_dir():
                first = selected[0].started_at.astimezone().date()
                last = selected[-1].started_at.astimezone().date()
                out = out / export_file_name(first, last)
            out.write_text(text, encoding="utf-8")
            print(f"Wrote {out}")
        else:
            sys.stdout.write(text)
        return 0

    raise AssertionError(f"unhandled command {args.command}")


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = Settings.load(args.app_dir)
    if args.data_dir is not None:
        settings.data_dir = args.data_dir.expanduser()

    store = WorkoutLogStore(settings.store_path)
    store.load()
    try:
        return _run(args, store, settings)
    except (ValueError, KeyError, TypeError, OSError) as e:
        print(f"❌  {type(e).__name__}: {e}", file=sys.stderr)
        return 2
    finally:
        # let the background writer finish before the process exits
        store.close()


if __name__ == "__main__":
    sys.exit(main())
