"""Shared test fixtures for the fantasy corps engine."""

from datetime import date

import pytest

from fantasycorps.config import rules
from fantasycorps.db.repositories import (
    DatasetRepository,
    HistoricalRepository,
    ProfileRepository,
    SeasonRepository,
)
from fantasycorps.schemas.season import CorpsProfile, DaySchedule, Season, Show
from fantasycorps.season.state_machine import SeasonStatus

SOURCE_YEAR = "2019"

# (corps name, points, per-caption score on day 1 of the source year)
CORPS = [
    ("Blue Devils", 25, 19.0),
    ("Boston Crusaders", 22, 18.0),
    ("Carolina Crown", 20, 18.5),
    ("Bluecoats", 18, 17.5),
    ("Santa Clara Vanguard", 15, 17.0),
    ("Cadets", 12, 16.0),
    ("Phantom Regiment", 10, 15.5),
    ("Cavaliers", 8, 15.0),
    ("Blue Knights", 6, 14.0),
    ("Madison Scouts", 5, 13.5),
    ("Crossmen", 4, 13.0),
    ("Troopers", 3, 12.0),
]

# Eight captions, 113 points.
BASE_PICKS = {
    "GE1": "Blue Devils",
    "GE2": "Carolina Crown",
    "VP": "Bluecoats",
    "VA": "Santa Clara Vanguard",
    "CG": "Cadets",
    "B": "Phantom Regiment",
    "MA": "Cavaliers",
    "P": "Madison Scouts",
}

OFF_SEASON_START = date(2025, 4, 13)
OFF_SEASON_END = date(2025, 5, 31)
LIVE_SEASON_START = date(2025, 6, 1)
LIVE_SEASON_END = date(2025, 8, 9)


def selection_key(corps_name: str) -> str:
    points = next(p for name, p, _ in CORPS if name == corps_name)
    return f"{corps_name}|{points}|{SOURCE_YEAR}"


def build_lineup(**overrides) -> dict[str, str]:
    """Caption -> selection key, starting from BASE_PICKS."""
    picks = {**BASE_PICKS, **overrides}
    return {caption: selection_key(name) for caption, name in picks.items()}


def day_one_score(corps_name: str) -> float:
    return next(s for name, _, s in CORPS if name == corps_name)


def schedule() -> list[DaySchedule]:
    shows = {
        1: [Show(event_name="Show A", date="2019-06-23", location="Venue A"),
            Show(event_name="Show B", date="2019-06-23", location="Venue B")],
        2: [Show(event_name="Show C", date="2019-06-24", location="Venue C")],
        8: [Show(event_name="Show D", date="2019-06-30", location="Venue D")],
        28: [Show(event_name="DCI Southwestern Championship", location="San Antonio")],
        41: [Show(event_name="DCI Eastern Classic", location="Allentown")],
        42: [Show(event_name="DCI Eastern Classic", location="Allentown")],
        47: [Show(event_name="DCI World Championship Prelims", location="Indianapolis")],
        48: [Show(event_name="DCI World Championship Semifinals", location="Indianapolis")],
        49: [Show(event_name="DCI World Championship Finals", location="Indianapolis")],
    }
    return [DaySchedule(offset=d, shows=shows.get(d, [])) for d in range(1, 50)]


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "fantasycorps.db"


@pytest.fixture
def seed_season(db_path):
    """Factory: install a season plus its corps dataset."""

    def _seed(status=SeasonStatus.OFF_SEASON, uid=None):
        if status is SeasonStatus.OFF_SEASON:
            uid = uid or "finale_2024-25"
            start, end = OFF_SEASON_START, OFF_SEASON_END
        else:
            uid = uid or "live_2025-25"
            start, end = LIVE_SEASON_START, LIVE_SEASON_END
        season = Season(
            season_uid=uid,
            name=uid,
            status=status,
            season_year=2025,
            start_date=start,
            end_date=end,
            point_cap=rules.season_point_cap,
            data_doc_id=uid,
            events=schedule(),
        )
        SeasonRepository(db_path).save(season)
        DatasetRepository(db_path).replace_dataset(
            uid,
            [{"corps_name": n, "source_year": SOURCE_YEAR, "points": p} for n, p, _ in CORPS],
        )
        return season

    return _seed


@pytest.fixture
def off_season(seed_season):
    return seed_season(SeasonStatus.OFF_SEASON)


@pytest.fixture
def live_season(seed_season):
    return seed_season(SeasonStatus.LIVE_SEASON)


@pytest.fixture
def historical(db_path):
    """Source-year results: every corps on day 1, a higher score on day 10."""
    repo = HistoricalRepository(db_path)
    for day, bump, event_date in ((1, 0.0, "2019-06-23"), (10, 1.0, "2019-07-02")):
        repo.upsert_event({
            "year": SOURCE_YEAR,
            "event_name": f"History Day {day}",
            "event_date": event_date,
            "location": f"Stadium {day}",
            "off_season_day": day,
            "scores": [
                {"corps": name, "captions": {c: score + bump for c in rules.captions}}
                for name, _, score in CORPS
            ],
        })
    return repo


@pytest.fixture
def make_profile(db_path):
    """Factory: a user with one registered corps, attached to *season_uid*."""
    profiles = ProfileRepository(db_path)

    def _make(uid, season_uid, corps_class="worldClass", lineup=None,
              shows=None, total=0.0, corps_name=None, username=None):
        profiles.ensure_user(uid, username or uid.title())
        profiles.save_corps(uid, CorpsProfile(
            corps_class=corps_class,
            corps_name=corps_name or f"{uid.title()} Corps",
            lineup=lineup if lineup is not None else build_lineup(),
            total_season_score=total,
            selected_shows=shows or {},
        ))
        profiles.set_active_season(uid, season_uid)
        return profiles.get(uid)

    return _make
