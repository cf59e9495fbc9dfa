"""Per-caption statistics for every corps in the season dataset."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from fantasycorps.config import rules
from fantasycorps.db.repositories import (
    DatasetRepository,
    HistoricalRepository,
    SeasonRepository,
    StatsRepository,
)
from fantasycorps.errors import NotFoundError
from fantasycorps.logging_config import get_logger
from fantasycorps.paths import DB_PATH

logger = get_logger(__name__)

_EMPTY = {"avg": 0.0, "max": 0.0, "min": 0.0, "count": 0}


def score_frame(events_by_year: dict[str, list[dict]]) -> pd.DataFrame:
    """Long frame of positive caption scores: year, corps, caption, score."""
    rows = [
        {"year": year, "corps": entry["corps"], "caption": caption, "score": float(score)}
        for year, events in events_by_year.items()
        for event in events
        for entry in event.get("scores") or []
        for caption, score in (entry.get("captions") or {}).items()
        if caption in rules.captions and score and score > 0
    ]
    return pd.DataFrame(rows, columns=["year", "corps", "caption", "score"])


def caption_stats(frame: pd.DataFrame) -> pd.DataFrame:
    if frame.empty:
        return pd.DataFrame(columns=["year", "corps", "caption", "avg", "max", "min", "count"])
    grouped = frame.groupby(["year", "corps", "caption"])["score"].agg(
        avg="mean", max="max", min="min", count="count",
    )
    grouped["avg"] = grouped["avg"].round(3)
    return grouped.reset_index()


def calculate_corps_statistics(db_path: Path | None = None) -> list[dict]:
    """Compute and store caption statistics for the active season's corps."""
    db_path = db_path or DB_PATH
    season = SeasonRepository(db_path).get()
    if season is None:
        raise NotFoundError("No active season")
    dataset = DatasetRepository(db_path).get_dataset(season.data_doc_id)
    if not dataset:
        raise NotFoundError(f"Corps dataset {season.data_doc_id} not found")

    historical = HistoricalRepository(db_path)
    years = sorted({str(c["source_year"]) for c in dataset})
    stats = caption_stats(score_frame({y: historical.events_for_year(y) for y in years}))
    indexed = {
        (row["year"], row["corps"], row["caption"]): {
            "avg": float(row["avg"]), "max": float(row["max"]),
            "min": float(row["min"]), "count": int(row["count"]),
        }
        for row in stats.to_dict("records")
    }

    out = []
    for corps in dataset:
        year = str(corps["source_year"])
        out.append({
            "corps_name": corps["corps_name"],
            "source_year": year,
            "points": corps["points"],
            "stats": {
                caption: indexed.get((year, corps["corps_name"], caption), dict(_EMPTY))
                for caption in rules.captions
            },
        })

    StatsRepository(db_path).replace(season.season_uid, out)
    logger.info("Saved caption statistics for %d corps in %s", len(out), season.name)
    return out
