"""Weekly show selection."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from fantasycorps.db.connection import transaction
from fantasycorps.db.repositories import ProfileRepository, SeasonRepository
from fantasycorps.errors import NotFoundError, ValidationError
from fantasycorps.league.matchups import MAX_WEEK
from fantasycorps.logging_config import get_logger
from fantasycorps.paths import DB_PATH
from fantasycorps.schemas.lineup import ShowSelectionRequest, extract_errors
from fantasycorps.schemas.season import Season
from fantasycorps.season.state_machine import week_of

logger = get_logger(__name__)


def week_days(week: int) -> range:
    return range((week - 1) * 7 + 1, week * 7 + 1)


def current_week(season: Season, now: datetime) -> int:
    return max(1, week_of(season.competition_day(now.date())))


def select_shows(
    uid: str,
    week: int,
    shows: list[dict],
    corps_class: str,
    now: datetime | None = None,
    db_path: Path | None = None,
) -> list[dict]:
    """Save a corps's show choices for *week*.  Returns the stored shows."""
    try:
        request = ShowSelectionRequest(uid=uid, week=week, shows=shows, corps_class=corps_class)
    except PydanticValidationError as exc:
        raise ValidationError("; ".join(extract_errors(exc))) from exc

    db_path = db_path or DB_PATH
    now = now or datetime.now()
    season = SeasonRepository(db_path).get()
    if season is None:
        raise NotFoundError("No active season found")

    if request.week > MAX_WEEK:
        raise ValidationError(f"Week {request.week} is past the end of the season")
    this_week = current_week(season, now)
    if request.week < this_week:
        raise ValidationError(
            f"Cannot select shows for week {request.week}. The current week is {this_week}"
        )

    stored = []
    for choice in request.shows:
        if choice.day not in week_days(request.week):
            raise ValidationError(f"Day {choice.day} is not in week {request.week}")
        match = next(
            (s for s in season.shows_for_day(choice.day) if s.event_name == choice.event_name),
            None,
        )
        if match is None:
            raise ValidationError(f"{choice.event_name!r} is not scheduled on day {choice.day}")
        stored.append({
            "event_name": match.event_name,
            "day": choice.day,
            "date": match.date,
            "location": match.location,
        })

    profiles = ProfileRepository(db_path)
    with transaction(db_path) as conn:
        profile = profiles.get(uid, conn=conn)
        corps = profile.corps.get(corps_class) if profile else None
        if corps is None:
            raise NotFoundError(f"You must register a {corps_class} corps before selecting shows")
        selected = dict(corps.selected_shows)
        selected[f"week{request.week}"] = stored
        profiles.save_corps(uid, corps.model_copy(update={"selected_shows": selected}), conn=conn)

    logger.info("Saved %d show selections for %s week %d", len(stored), uid, request.week)
    return stored
