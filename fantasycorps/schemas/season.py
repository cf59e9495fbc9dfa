"""Pydantic schemas for seasons, schedules and corps profiles."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from fantasycorps.config import calendar_cfg
from fantasycorps.season.state_machine import SeasonStatus


class Show(BaseModel):
    """A scheduled show on one season day."""

    event_name: str
    date: str | None = None
    location: str | None = None


class DaySchedule(BaseModel):
    offset: int = Field(..., ge=1)
    shows: list[Show] = Field(default_factory=list)


class Season(BaseModel):
    """The singleton active season."""

    season_uid: str
    name: str
    status: SeasonStatus
    season_year: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    point_cap: int = 150
    data_doc_id: str | None = None
    events: list[DaySchedule] = Field(default_factory=list)
    last_processed_day: int | None = None

    def shows_for_day(self, day: int) -> list[Show]:
        for entry in self.events:
            if entry.offset == day:
                return list(entry.shows)
        return []

    def day_index(self, on: date) -> int:
        """1-based day number of *on* within this season."""
        if self.start_date is None:
            raise ValueError(f"Season {self.season_uid} has no start date")
        return (on - self.start_date).days + 1

    def competition_day(self, on: date) -> int:
        """Scoring-calendar day (1..49) of *on*; live seasons skip spring training."""
        day = self.day_index(on)
        if self.status is SeasonStatus.LIVE_SEASON:
            day -= calendar_cfg.spring_training_days
        return day


class WeeklyTrades(BaseModel):
    season_uid: str
    week: int
    used: int = 0


class CorpsProfile(BaseModel):
    """One fantasy corps (one per class) owned by a user."""

    corps_class: str
    corps_name: str | None = None
    location: str | None = None
    lineup: dict[str, str] | None = None  # caption -> selection key
    lineup_key: str | None = None
    total_season_score: float = 0.0
    selected_shows: dict[str, list[dict]] = Field(default_factory=dict)  # "week{n}" -> shows
    weekly_trades: WeeklyTrades | None = None
    last_scored_day: int | None = None
    registered_at: datetime | None = None
    registered_season_id: str | None = None
    season_history: list[dict] = Field(default_factory=list)

    def shows_for_week(self, week: int) -> list[dict]:
        return list(self.selected_shows.get(f"week{week}", []))


class UserProfile(BaseModel):
    uid: str
    username: str | None = None
    active_season_id: str | None = None
    corps: dict[str, CorpsProfile] = Field(default_factory=dict)
