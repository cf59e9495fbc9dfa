"""Season lifecycle state machine.

Statuses:
    OFF_SEASON → OFF_SEASON (next themed window)
               → LIVE_SEASON (once the live-season start date is reached)
    LIVE_SEASON → OFF_SEASON (Overture, after finals)
"""

from __future__ import annotations

from datetime import date
from enum import Enum


class SeasonStatus(str, Enum):
    OFF_SEASON = "off-season"
    LIVE_SEASON = "live-season"


class SeasonAction(str, Enum):
    NONE = "none"
    CREATE_OFF_SEASON = "create_off_season"
    START_LIVE_SEASON = "start_live_season"


# Valid (from -> {to, ...}) transitions.
_TRANSITIONS: dict[SeasonStatus, set[SeasonStatus]] = {
    SeasonStatus.OFF_SEASON: {SeasonStatus.OFF_SEASON, SeasonStatus.LIVE_SEASON},
    SeasonStatus.LIVE_SEASON: {SeasonStatus.OFF_SEASON},
}


def can_transition(from_status: SeasonStatus, to_status: SeasonStatus) -> bool:
    """Return True if *from_status* → *to_status* is a valid transition."""
    return to_status in _TRANSITIONS.get(from_status, set())


def decide_action(
    *,
    has_season: bool,
    status: SeasonStatus | str | None,
    end_date: date | None,
    today: date,
    live_start: date,
) -> SeasonAction:
    """Decide what the daily tick should do with the current season.

    Priority (strongest signal first):
        1. no season row            → CREATE_OFF_SEASON
        2. malformed row (no end)   → CREATE_OFF_SEASON
        3. today ≤ end_date         → NONE (the end date is the last day)
        4. off-season, today ≥ live → START_LIVE_SEASON
        5. else                     → CREATE_OFF_SEASON
    """
    if not has_season or end_date is None:
        return SeasonAction.CREATE_OFF_SEASON
    if today <= end_date:
        return SeasonAction.NONE
    try:
        current = SeasonStatus(status)
    except ValueError:
        return SeasonAction.CREATE_OFF_SEASON
    if current is SeasonStatus.OFF_SEASON and today >= live_start:
        return SeasonAction.START_LIVE_SEASON
    return SeasonAction.CREATE_OFF_SEASON


def week_of(day: int) -> int:
    """Week number (1-7) containing season *day*."""
    return (day + 6) // 7
