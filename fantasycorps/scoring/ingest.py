"""Ingestion of structured score events (historical and live)."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from fantasycorps.config import calendar_cfg
from fantasycorps.db.connection import transaction
from fantasycorps.db.repositories import HistoricalRepository, LiveScoreRepository, SeasonRepository
from fantasycorps.errors import NotFoundError, ValidationError
from fantasycorps.logging_config import get_logger
from fantasycorps.paths import DB_PATH
from fantasycorps.schemas.lineup import extract_errors
from fantasycorps.schemas.scores import ScoreEvent
from fantasycorps.season.calendar import off_season_day
from fantasycorps.season.state_machine import SeasonStatus

logger = get_logger(__name__)


def parse_event(payload: ScoreEvent | dict) -> ScoreEvent:
    if isinstance(payload, ScoreEvent):
        return payload
    try:
        return ScoreEvent.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError("; ".join(extract_errors(exc))) from exc


def merge_scores(existing: list[dict], incoming: list[dict]) -> tuple[list[dict], int, int]:
    """Merge *incoming* corps scores into *existing* without overwriting.

    New corps are appended; for known corps only missing or zero captions
    are filled.  Returns ``(merged, corps_added, captions_filled)``.
    """
    merged = [dict(e, captions=dict(e.get("captions") or {})) for e in existing]
    by_corps = {e["corps"]: e for e in merged}
    added = filled = 0
    for entry in incoming:
        current = by_corps.get(entry["corps"])
        if current is None:
            new = {"corps": entry["corps"], "captions": dict(entry.get("captions") or {})}
            merged.append(new)
            by_corps[new["corps"]] = new
            added += 1
            continue
        for caption, score in (entry.get("captions") or {}).items():
            if not current["captions"].get(caption) and score:
                current["captions"][caption] = score
                filled += 1
    return merged, added, filled


def ingest_historical_scores(payload: ScoreEvent | dict, db_path: Path | None = None) -> dict:
    """Store (or merge into) one historical event."""
    event = parse_event(payload)
    repo = HistoricalRepository(db_path or DB_PATH)
    day = off_season_day(event.event_date, int(event.year))
    incoming = [s.model_dump() for s in event.scores]
    event_date = event.event_date.isoformat()

    with transaction(db_path or DB_PATH) as conn:
        existing = repo.get_event(event.year, event.event_name, event_date, conn=conn)
        if existing is None:
            merged, added, filled = incoming, len(incoming), 0
        else:
            merged, added, filled = merge_scores(existing["scores"], incoming)
        repo.upsert_event(
            {
                "year": event.year,
                "event_name": event.event_name,
                "event_date": event_date,
                "location": event.event_location,
                "off_season_day": day,
                "scores": merged,
            },
            conn=conn,
        )

    logger.info(
        "Ingested %s (%s, day %s): %d corps added, %d captions filled",
        event.event_name, event_date, day, added, filled,
    )
    return {
        "event_name": event.event_name,
        "event_date": event_date,
        "off_season_day": day,
        "created": existing is None,
        "corps_added": added,
        "captions_filled": filled,
    }


def ingest_live_scores(
    payload: ScoreEvent | dict,
    db_path: Path | None = None,
    process: bool = True,
    now: datetime | None = None,
) -> dict:
    """Store live scores for the active live season, then score that day."""
    event = parse_event(payload)
    db_path = db_path or DB_PATH
    season = SeasonRepository(db_path).get()
    if season is None:
        raise NotFoundError("No active season")
    if season.status is not SeasonStatus.LIVE_SEASON:
        raise ValidationError(f"Season {season.name} is not a live season")

    live_day = season.day_index(event.event_date)
    if not 1 <= live_day <= calendar_cfg.live_season_days:
        raise ValidationError(
            f"Event date {event.event_date} is outside the live season ({season.start_date} .. {season.end_date})"
        )

    repo = LiveScoreRepository(db_path)
    with transaction(db_path) as conn:
        for entry in event.scores:
            repo.upsert(
                season.season_uid, entry.corps, live_day, entry.captions,
                event_name=event.event_name, conn=conn,
            )
    logger.info("Stored %d live scores for live day %d", len(event.scores), live_day)

    result = None
    if process and live_day > calendar_cfg.spring_training_days:
        from fantasycorps.scoring.processor import process_live_day
        result = process_live_day(live_day, now=now, db_path=db_path)

    return {
        "event_name": event.event_name,
        "live_day": live_day,
        "stored": len(event.scores),
        "processed": result is not None,
        "scored": result.scored if result else 0,
    }
