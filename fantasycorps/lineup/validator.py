"""Lineup submission: rule validation, lineup-key claims and trade quotas.

All reads and writes for one submission happen inside a single
``BEGIN IMMEDIATE`` transaction, so two concurrent submissions can neither
claim the same lineup key nor spend the same weekly trades twice.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from fantasycorps.config import rules
from fantasycorps.db.connection import transaction
from fantasycorps.db.repositories import (
    DatasetRepository,
    LineupClaimRepository,
    ProfileRepository,
    SeasonRepository,
)
from fantasycorps.errors import ConflictError, NotFoundError, ValidationError
from fantasycorps.logging_config import get_logger
from fantasycorps.paths import DB_PATH
from fantasycorps.schemas.lineup import LineupSubmission, extract_errors
from fantasycorps.schemas.season import CorpsProfile, Season, WeeklyTrades
from fantasycorps.season.state_machine import SeasonStatus, week_of

logger = get_logger(__name__)


@dataclass
class LineupResult:
    corps_class: str
    lineup_key: str
    trades: int
    trades_used: int
    unlimited: bool
    first_registration: bool

    @property
    def message(self) -> str:
        return f"{self.corps_class} lineup saved successfully!"

    def to_dict(self) -> dict:
        return {
            "success": True,
            "message": self.message,
            "corps_class": self.corps_class,
            "lineup_key": self.lineup_key,
            "trades": self.trades,
            "trades_used": self.trades_used,
            "unlimited": self.unlimited,
            "first_registration": self.first_registration,
        }


def count_trades(previous: dict[str, str] | None, new: dict[str, str]) -> int:
    """Number of captions whose selection changed."""
    previous = previous or {}
    return sum(1 for caption, key in new.items() if previous.get(caption) != key)


def in_grace_window(
    season: Season,
    week: int,
    corps: CorpsProfile | None,
    now: datetime,
) -> bool:
    """Unlimited trades: opening weeks of a season, or a fresh registration."""
    if season.status is SeasonStatus.OFF_SEASON and week in rules.off_season_unlimited_weeks:
        return True
    if season.status is SeasonStatus.LIVE_SEASON and week in rules.live_season_unlimited_weeks:
        return True
    if corps is not None and corps.registered_at and corps.registered_season_id == season.season_uid:
        return now - corps.registered_at < timedelta(days=rules.registration_grace_days)
    return False


class LineupValidator:
    """Validates and persists lineups for one database."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or DB_PATH
        self.seasons = SeasonRepository(self.db_path)
        self.datasets = DatasetRepository(self.db_path)
        self.profiles = ProfileRepository(self.db_path)
        self.claims = LineupClaimRepository(self.db_path)

    def _parse(self, uid, lineup, corps_class, corps_name) -> LineupSubmission:
        try:
            return LineupSubmission(
                uid=uid, lineup=lineup, corps_class=corps_class, corps_name=corps_name,
            )
        except PydanticValidationError as exc:
            raise ValidationError("; ".join(extract_errors(exc))) from exc

    def _check_dataset(self, submission: LineupSubmission, season: Season) -> None:
        dataset = self.datasets.get_dataset(season.data_doc_id)
        if not dataset:
            raise NotFoundError(f"Corps dataset {season.data_doc_id} not found")
        known = {(c["corps_name"], str(c["source_year"])): c["points"] for c in dataset}
        errors = []
        for caption, sel in submission.lineup.items():
            points = known.get((sel.corps_name, sel.source_year))
            if points is None:
                errors.append(f"{caption}: {sel.corps_name} ({sel.source_year}) is not in this season")
            elif points != sel.points:
                errors.append(f"{caption}: {sel.corps_name} is worth {points} points, not {sel.points}")
        if errors:
            raise ValidationError("; ".join(errors))

    def submit(
        self,
        uid: str,
        lineup: dict,
        corps_class: str,
        corps_name: str | None = None,
        now: datetime | None = None,
    ) -> LineupResult:
        submission = self._parse(uid, lineup, corps_class, corps_name)
        now = now or datetime.now()

        season = self.seasons.get()
        if season is None:
            raise NotFoundError("There is no active season")
        self._check_dataset(submission, season)

        key = submission.key
        stored = submission.storage_lineup()
        week = week_of(max(season.day_index(now.date()), 1))

        with transaction(self.db_path) as conn:
            profile = self.profiles.get(uid, conn=conn)
            corps = profile.corps.get(corps_class) if profile else None
            first_registration = (
                corps is None
                or profile.active_season_id != season.season_uid
                or not corps.lineup
            )

            claim = self.claims.get(key, conn=conn)
            if claim is not None and claim["uid"] != uid:
                raise ConflictError("This exact lineup has already been claimed")

            if corps is None or not corps.corps_name:
                if not corps_name:
                    raise ValidationError(
                        f"A corps name is required to register a {corps_class} corps"
                    )
                self.profiles.ensure_user(uid, conn=conn)
                corps = CorpsProfile(corps_class=corps_class, corps_name=corps_name)
            elif corps_name:
                corps = corps.model_copy(update={"corps_name": corps_name})

            if first_registration:
                corps = corps.model_copy(update={
                    "registered_at": now,
                    "registered_season_id": season.season_uid,
                })

            trades = 0 if first_registration else count_trades(corps.lineup, stored)
            unlimited = first_registration or in_grace_window(season, week, corps, now)
            weekly = corps.weekly_trades
            used = (
                weekly.used
                if weekly and weekly.season_uid == season.season_uid and weekly.week == week
                else 0
            )
            if trades and not unlimited:
                if used + trades > rules.weekly_trade_limit:
                    remaining = max(rules.weekly_trade_limit - used, 0)
                    raise ConflictError(
                        f"Exceeds trade limit. You have {remaining} trades remaining this week"
                    )
                used += trades
                weekly = WeeklyTrades(season_uid=season.season_uid, week=week, used=used)

            if corps.lineup_key and corps.lineup_key != key:
                self.claims.release(corps.lineup_key, conn=conn)
            self.claims.claim(key, uid, season.season_uid, corps_class, conn=conn)

            corps = corps.model_copy(update={
                "lineup": stored,
                "lineup_key": key,
                "weekly_trades": weekly,
            })
            self.profiles.save_corps(uid, corps, conn=conn)
            self.profiles.set_active_season(uid, season.season_uid, conn=conn)

        logger.info(
            "Saved %s lineup for %s (%d trades, %s)",
            corps_class, uid, trades, "unlimited" if unlimited else f"{used} used",
        )
        return LineupResult(
            corps_class=corps_class,
            lineup_key=key,
            trades=trades,
            trades_used=used,
            unlimited=unlimited,
            first_registration=first_registration,
        )


def save_lineup(
    uid: str,
    lineup: dict,
    corps_class: str,
    corps_name: str | None = None,
    now: datetime | None = None,
    db_path: Path | None = None,
) -> LineupResult:
    return LineupValidator(db_path).submit(uid, lineup, corps_class, corps_name=corps_name, now=now)
