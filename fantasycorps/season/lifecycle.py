"""Season lifecycle: decides and performs season rollovers.

Runs once per day (``python -m fantasycorps tick`` or the ``season_tick``
job).  Every rollover is a single transaction: the new season row, its
corps dataset, the profile resets and the lineup-claim purge commit
together or not at all.
"""

from __future__ import annotations

import random
from datetime import date, datetime
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from fantasycorps.config import calendar_cfg, rules
from fantasycorps.db.connection import transaction
from fantasycorps.db.repositories import (
    DatasetRepository,
    HistoricalRepository,
    LineupClaimRepository,
    ProfileRepository,
    SeasonRepository,
)
from fantasycorps.errors import NotFoundError
from fantasycorps.logging_config import get_logger
from fantasycorps.paths import DB_PATH
from fantasycorps.schemas.season import Season
from fantasycorps.season.calendar import (
    live_season_name,
    live_season_start,
    next_finals_date,
    next_off_season_window,
)
from fantasycorps.season.schedule import build_show_corpus, generate_schedule
from fantasycorps.season.state_machine import (
    SeasonAction,
    SeasonStatus,
    can_transition,
    decide_action,
)

logger = get_logger(__name__)


def build_off_season_dataset(
    rankings: list[dict],
    rng: random.Random | None = None,
) -> list[dict]:
    """Pick one corps per point tier (25 down to 1) from all final rankings.

    A tier with no unused corps borrows an unused corps from the whole pool
    and re-values it at the tier's points.  Corps names never repeat.
    """
    rng = rng or random.Random()
    by_points: dict[int, list[dict]] = {}
    pool: list[dict] = []
    for r in rankings:
        if not r.get("points"):
            continue
        entry = {
            "corps_name": r["corps_name"],
            "source_year": str(r["year"]),
            "points": int(r["points"]),
        }
        by_points.setdefault(entry["points"], []).append(entry)
        pool.append(entry)
    rng.shuffle(pool)

    chosen: list[dict] = []
    used: set[str] = set()
    for points in range(calendar_cfg.top_point_tier, calendar_cfg.bottom_point_tier - 1, -1):
        candidates = list(by_points.get(points, []))
        rng.shuffle(candidates)
        pick = next((c for c in candidates if c["corps_name"] not in used), None)
        if pick is None:
            fallback = next((c for c in pool if c["corps_name"] not in used), None)
            if fallback is not None:
                pick = {**fallback, "points": points}
        if pick is None:
            logger.warning("No unused corps left for the %d-point tier", points)
            continue
        chosen.append(dict(pick))
        used.add(pick["corps_name"])
    return chosen


class SeasonLifecycleManager:
    """Creates off-seasons and live seasons as the calendar advances."""

    def __init__(self, db_path: Path | None = None, rng: random.Random | None = None):
        self.db_path = db_path or DB_PATH
        self.rng = rng or random.Random()
        self.seasons = SeasonRepository(self.db_path)
        self.datasets = DatasetRepository(self.db_path)
        self.historical = HistoricalRepository(self.db_path)
        self.profiles = ProfileRepository(self.db_path)
        self.claims = LineupClaimRepository(self.db_path)

    # ── Decision ────────────────────────────────────────────────────────

    def decide(self, today: date) -> SeasonAction:
        row = self.seasons.get_row()
        try:
            season = self.seasons.get() if row else None
        except PydanticValidationError as exc:
            logger.warning("Season row is malformed, replacing it: %s", exc)
            season = None

        finals = next_finals_date(today)
        return decide_action(
            has_season=row is not None,
            status=season.status if season else None,
            end_date=season.end_date if season else None,
            today=today,
            live_start=live_season_start(finals),
        )

    def tick(self, now: datetime | None = None) -> SeasonAction:
        """Advance the season if the calendar says so.  Returns what was done."""
        now = now or datetime.now()
        today = now.date() if isinstance(now, datetime) else now
        action = self.decide(today)

        if action is SeasonAction.NONE:
            logger.info("Season still running on %s; nothing to do", today)
        elif action is SeasonAction.START_LIVE_SEASON:
            self.start_live_season(today)
        else:
            self.start_off_season(today)
        return action

    # ── Transitions ─────────────────────────────────────────────────────

    def _schedule(self):
        corpus = build_show_corpus(self.historical.all_events())
        return generate_schedule(corpus, rng=self.rng)

    def start_off_season(self, today: date) -> Season:
        window = next_off_season_window(today)
        rankings = self.datasets.get_final_rankings()
        if not rankings:
            raise NotFoundError("Cannot start off-season: no final rankings found")

        dataset = build_off_season_dataset(rankings, self.rng)
        schedule = self._schedule()
        season = Season(
            season_uid=window.name,
            name=window.name,
            status=SeasonStatus.OFF_SEASON,
            season_year=window.finals_year,
            start_date=window.start_date,
            end_date=window.end_date,
            point_cap=rules.season_point_cap,
            data_doc_id=window.name,
            events=schedule.days,
        )
        self._install(season, dataset)
        logger.info(
            "Started off-season %s (%s .. %s, %d corps)",
            season.name, season.start_date, season.end_date, len(dataset),
        )
        return season

    def start_live_season(self, today: date) -> Season:
        finals = next_finals_date(today)
        start = live_season_start(finals)
        previous_year = str(finals.year - 1)
        rankings = self.datasets.get_final_rankings(previous_year)
        if not rankings:
            raise NotFoundError(
                f"Cannot start live season: final rankings for {previous_year} not found"
            )

        dataset = [
            {"corps_name": r["corps_name"], "source_year": previous_year, "points": r["points"]}
            for r in rankings
            if r.get("points") is not None
        ]
        name = live_season_name(start, finals)
        season = Season(
            season_uid=name,
            name=name,
            status=SeasonStatus.LIVE_SEASON,
            season_year=finals.year,
            start_date=start,
            end_date=finals,
            point_cap=rules.season_point_cap,
            data_doc_id=name,
            events=self._schedule().days,
        )
        self._install(season, dataset)
        logger.info("Started live season %s (%s .. %s)", name, start, finals)
        return season

    @staticmethod
    def _log_transition(old_status: str, season: Season) -> bool:
        """Log the status change; returns False for an out-of-order transition."""
        try:
            previous = SeasonStatus(old_status)
        except ValueError:
            logger.warning("Replacing season with unknown status %r", old_status)
            return False
        if can_transition(previous, season.status):
            logger.info("Season transition: %s -> %s (%s)", previous.value, season.status.value, season.name)
            return True
        # Forced update -- the calendar is authoritative.
        logger.warning("Forced season transition: %s -> %s (%s)", previous.value, season.status.value, season.name)
        return False

    def _install(self, season: Season, dataset: list[dict]) -> None:
        with transaction(self.db_path) as conn:
            old = self.seasons.get_row(conn=conn)
            old_uid = old["season_uid"] if old else None
            if old is not None:
                self._log_transition(old["status"], season)

            self.datasets.replace_dataset(season.data_doc_id, dataset, conn=conn)
            self.seasons.save(season, conn=conn)

            if old_uid:
                reset = self.profiles.reset_for_season(old_uid, conn=conn)
                cleared = self.claims.delete_for_season(old_uid, conn=conn)
                logger.info(
                    "Reset %d profiles and cleared %d lineup claims from %s",
                    reset, cleared, old_uid,
                )
