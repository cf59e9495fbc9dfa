"""Named maintenance jobs, run from cron (``python -m fantasycorps run-job``)
or the admin endpoint.

Scheduled runs never crash the caller: missing data and transient database
failures are logged and reported as a failed :class:`JobResult`, and the
next run (or an operator re-trigger) picks the work up again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from fantasycorps.errors import NotFoundError, TransientError, ValidationError
from fantasycorps.paths import DB_PATH

logger = logging.getLogger(__name__)


@dataclass
class JobResult:
    name: str
    ok: bool
    detail: Any = None
    error: str | None = None
    started_at: str = field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "ok": self.ok,
            "detail": self.detail,
            "error": self.error,
            "started_at": self.started_at,
        }


def _season_tick(db_path: Path, now: datetime | None) -> str:
    from fantasycorps.season.lifecycle import SeasonLifecycleManager
    return SeasonLifecycleManager(db_path).tick(now=now).value


def _off_season(db_path: Path, now: datetime | None) -> dict | None:
    from fantasycorps.scoring.processor import process_off_season_day
    result = process_off_season_day(now=now, db_path=db_path)
    return {"day": result.day, "scored": result.scored} if result else None


def _live_season(db_path: Path, now: datetime | None) -> dict | None:
    from fantasycorps.scoring.processor import process_live_day
    result = process_live_day(now=now, db_path=db_path)
    return {"day": result.day, "scored": result.scored} if result else None


def _statistics(db_path: Path, now: datetime | None) -> int:
    from fantasycorps.scoring.statistics import calculate_corps_statistics
    return len(calculate_corps_statistics(db_path))


def _archive(db_path: Path, now: datetime | None) -> list[dict]:
    from fantasycorps.league.archive import archive_season_results
    return archive_season_results(db_path)


def _matchups(db_path: Path, now: datetime | None) -> dict:
    from fantasycorps.league.matchups import LeagueMatchupEngine
    summary = LeagueMatchupEngine(db_path).generate_week(now=now)
    return {"week": summary.week, "brackets": summary.brackets}


JOBS: dict[str, Callable[[Path, datetime | None], Any]] = {
    "season_tick": _season_tick,
    "process_off_season_scores": _off_season,
    "process_live_season_scores": _live_season,
    "calculate_corps_statistics": _statistics,
    "archive_season_results": _archive,
    "generate_matchups": _matchups,
}


def run_job(name: str, db_path: Path | None = None, now: datetime | None = None) -> JobResult:
    """Run the job called *name*.

    Raises ``ValidationError`` for an unknown name; every other engine
    failure that a retry could fix is captured in the result.
    """
    job = JOBS.get(name)
    if job is None:
        raise ValidationError(f"Unknown job {name!r}; expected one of {', '.join(sorted(JOBS))}")

    logger.info("Running job %s", name)
    try:
        detail = job(db_path or DB_PATH, now)
    except (NotFoundError, TransientError) as exc:
        logger.error("Job %s failed: %s", name, exc)
        return JobResult(name=name, ok=False, error=str(exc))
    logger.info("Job %s finished", name)
    return JobResult(name=name, ok=True, detail=detail)
