"""Season calendar arithmetic: finals dates, live and off-season windows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from fantasycorps.config import calendar_cfg


@dataclass(frozen=True)
class SeasonWindow:
    start_date: date
    end_date: date
    season_type: str
    finals_year: int

    @property
    def name(self) -> str:
        return off_season_name(self.season_type, self.finals_year)


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def finals_date(year: int) -> date:
    """Second Saturday of August of *year*."""
    first = date(year, calendar_cfg.finals_month, 1)
    days_to_saturday = (5 - first.weekday()) % 7
    return first + timedelta(days=days_to_saturday + 7)


def next_finals_date(today: date | datetime) -> date:
    """Finals of this year, or next year's once this year's has been reached."""
    today = _as_date(today)
    finals = finals_date(today.year)
    if today >= finals:
        finals = finals_date(today.year + 1)
    return finals


def live_season_start(finals: date) -> date:
    return finals - timedelta(days=calendar_cfg.live_season_days - 1)


def live_season_name(start: date, finals: date) -> str:
    return f"live_{start.year}-{str(finals.year)[-2:]}"


def off_season_name(season_type: str, finals_year: int) -> str:
    return f"{season_type.lower()}_{finals_year - 1}-{str(finals_year)[-2:]}"


def next_off_season_window(today: date | datetime) -> SeasonWindow:
    """The off-season window that should be running (or start next) on *today*.

    Windows are chained backwards from the day before the live season
    starts, most recent first (Finale, Crescendo, ...).  The earliest window
    that has not ended yet wins; after the last one the Overture that
    follows finals is returned.
    """
    today = _as_date(today)
    finals = next_finals_date(today)
    live_start = live_season_start(finals)
    length = calendar_cfg.off_season_days

    windows: list[SeasonWindow] = []
    for i, season_type in enumerate(calendar_cfg.off_season_types):
        end = live_start - timedelta(days=i * length + 1)
        start = end - timedelta(days=length - 1)
        windows.append(SeasonWindow(start, end, season_type, finals.year))

    for window in reversed(windows):
        if today <= window.end_date:
            return window

    overture_start = finals + timedelta(days=1)
    return SeasonWindow(
        overture_start,
        overture_start + timedelta(days=length - 1),
        calendar_cfg.off_season_types[-1],
        finals.year,
    )


def off_season_day(event_date: date | datetime | None, year: int) -> int | None:
    """Map a historical event date to its 1..49 season day, or None."""
    if event_date is None:
        return None
    event_date = _as_date(event_date)
    end = finals_date(year)
    start = end - timedelta(days=calendar_cfg.off_season_days - 1)
    if event_date < start or event_date > end:
        return None
    return (event_date - start).days + 1
