"""Entry point: python -m fantasycorps <command>"""

from __future__ import annotations

import argparse
import json
import sys

from fantasycorps.errors import NotFoundError, TransientError
from fantasycorps.logging_config import get_logger, setup_logging

log = get_logger(__name__)


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, default=str))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fantasycorps",
        description="Fantasy drum-corps season engine",
    )
    parser.add_argument("--db", default=None, help="Database path (default: $FANTASYCORPS_DB)")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=9874)

    sub.add_parser("tick", help="Advance the season lifecycle")

    day = sub.add_parser("process-day", help="Score an off-season day (default: yesterday)")
    day.add_argument("--day", type=int, default=None)

    live = sub.add_parser("live-day", help="Score a live-season day (default: yesterday)")
    live.add_argument("--day", type=int, default=None)

    matchups = sub.add_parser("matchups", help="Generate league matchups")
    matchups.add_argument("--week", type=int, default=None)

    job = sub.add_parser("run-job", help="Run a named maintenance job")
    job.add_argument("name")
    return parser


def main(argv: list[str] | None = None) -> int:
    setup_logging()
    args = build_parser().parse_args(argv)
    db_path = args.db

    if args.command == "serve":
        from fantasycorps.api import create_app
        create_app(db_path).run(host=args.host, port=args.port, debug=False)
        return 0

    try:
        return _dispatch(args, db_path)
    except (NotFoundError, TransientError) as exc:
        log.error("%s failed: %s", args.command, exc)
        _print({"ok": False, "error": str(exc)})
        return 1


def _dispatch(args: argparse.Namespace, db_path) -> int:
    if args.command == "tick":
        from fantasycorps.season.lifecycle import SeasonLifecycleManager
        _print({"action": SeasonLifecycleManager(db_path).tick().value})
    elif args.command == "process-day":
        from fantasycorps.scoring.processor import process_off_season_day
        result = process_off_season_day(day=args.day, db_path=db_path)
        _print(result.recap if result else {"processed": False})
    elif args.command == "live-day":
        from fantasycorps.scoring.processor import process_live_day
        result = process_live_day(live_day=args.day, db_path=db_path)
        _print(result.recap if result else {"processed": False})
    elif args.command == "matchups":
        from fantasycorps.league.matchups import LeagueMatchupEngine
        summary = LeagueMatchupEngine(db_path).generate_week(week=args.week)
        _print({"week": summary.week, "brackets": summary.brackets})
    elif args.command == "run-job":
        from fantasycorps.jobs import run_job
        result = run_job(args.name, db_path=db_path)
        _print(result.to_dict())
        return 0 if result.ok else 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
