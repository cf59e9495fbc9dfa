"""Tests for the season lifecycle state machine and calendar arithmetic."""

from datetime import date, datetime, timedelta

import pytest

from fantasycorps.season.calendar import (
    finals_date,
    live_season_name,
    live_season_start,
    next_finals_date,
    next_off_season_window,
    off_season_day,
)
from fantasycorps.season.state_machine import (
    SeasonAction,
    SeasonStatus,
    can_transition,
    decide_action,
    week_of,
)

LIVE_START = date(2025, 6, 1)


def _decide(**kwargs):
    defaults = {
        "has_season": True,
        "status": SeasonStatus.OFF_SEASON,
        "end_date": date(2025, 5, 31),
        "today": date(2025, 5, 1),
        "live_start": LIVE_START,
    }
    defaults.update(kwargs)
    return decide_action(**defaults)


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

class TestCanTransition:
    def test_off_season_to_off_season(self):
        assert can_transition(SeasonStatus.OFF_SEASON, SeasonStatus.OFF_SEASON) is True

    def test_off_season_to_live(self):
        assert can_transition(SeasonStatus.OFF_SEASON, SeasonStatus.LIVE_SEASON) is True

    def test_live_to_off_season(self):
        assert can_transition(SeasonStatus.LIVE_SEASON, SeasonStatus.OFF_SEASON) is True

    def test_live_to_live_invalid(self):
        assert can_transition(SeasonStatus.LIVE_SEASON, SeasonStatus.LIVE_SEASON) is False

    def test_statuses_are_strings(self):
        assert SeasonStatus("off-season") is SeasonStatus.OFF_SEASON
        assert SeasonStatus.LIVE_SEASON.value == "live-season"


# ---------------------------------------------------------------------------
# decide_action
# ---------------------------------------------------------------------------

class TestDecideAction:
    def test_no_season_creates_off_season(self):
        assert _decide(has_season=False, status=None, end_date=None) is SeasonAction.CREATE_OFF_SEASON

    def test_missing_end_date_creates_off_season(self):
        assert _decide(end_date=None) is SeasonAction.CREATE_OFF_SEASON

    def test_running_season_does_nothing(self):
        assert _decide() is SeasonAction.NONE

    def test_end_date_is_last_running_day(self):
        assert _decide(today=date(2025, 5, 31)) is SeasonAction.NONE

    def test_off_season_over_at_live_start_starts_live(self):
        assert _decide(today=LIVE_START) is SeasonAction.START_LIVE_SEASON

    def test_off_season_over_before_live_start_chains(self):
        result = _decide(end_date=date(2025, 4, 12), today=date(2025, 4, 13))
        assert result is SeasonAction.CREATE_OFF_SEASON

    def test_live_season_over_creates_off_season(self):
        result = _decide(
            status=SeasonStatus.LIVE_SEASON,
            end_date=date(2025, 8, 9),
            today=date(2025, 8, 10),
            live_start=date(2026, 5, 31),
        )
        assert result is SeasonAction.CREATE_OFF_SEASON

    def test_unknown_status_creates_off_season(self):
        assert _decide(status="winter", today=date(2025, 6, 2)) is SeasonAction.CREATE_OFF_SEASON


class TestWeekOf:
    @pytest.mark.parametrize("day,week", [(1, 1), (7, 1), (8, 2), (14, 2), (43, 7), (49, 7)])
    def test_week_boundaries(self, day, week):
        assert week_of(day) == week


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------

class TestFinalsDate:
    def test_second_saturday_of_august(self):
        assert finals_date(2025) == date(2025, 8, 9)
        assert finals_date(2024) == date(2024, 8, 10)
        assert finals_date(2026) == date(2026, 8, 8)

    def test_finals_is_a_saturday(self):
        for year in range(2015, 2035):
            assert finals_date(year).weekday() == 5

    def test_next_finals_rolls_over_on_finals_day(self):
        assert next_finals_date(date(2025, 8, 8)) == date(2025, 8, 9)
        assert next_finals_date(date(2025, 8, 9)) == date(2026, 8, 8)

    def test_accepts_datetime(self):
        assert next_finals_date(datetime(2025, 3, 1, 12, 0)) == date(2025, 8, 9)


class TestLiveSeason:
    def test_live_season_spans_seventy_days(self):
        start = live_season_start(date(2025, 8, 9))
        assert start == date(2025, 6, 1)
        assert (date(2025, 8, 9) - start).days + 1 == 70

    def test_live_season_name(self):
        assert live_season_name(date(2025, 6, 1), date(2025, 8, 9)) == "live_2025-25"


class TestOffSeasonWindow:
    def test_finale_ends_day_before_live_season(self):
        window = next_off_season_window(date(2025, 5, 1))
        assert window.season_type == "Finale"
        assert window.start_date == date(2025, 4, 13)
        assert window.end_date == date(2025, 5, 31)
        assert window.name == "finale_2024-25"

    def test_windows_are_forty_nine_days(self):
        window = next_off_season_window(date(2025, 1, 10))
        assert (window.end_date - window.start_date).days + 1 == 49
        assert window.start_date <= date(2025, 1, 10) <= window.end_date

    def test_overture_follows_finals(self):
        window = next_off_season_window(date(2025, 8, 20))
        assert window.season_type == "Overture"
        assert window.start_date == date(2025, 8, 10)
        assert window.end_date == date(2025, 9, 27)
        assert window.finals_year == 2026
        assert window.name == "overture_2025-26"

    def test_consecutive_windows_are_contiguous(self):
        first = next_off_season_window(date(2025, 2, 1))
        second = next_off_season_window(first.end_date + timedelta(days=1))
        assert first.season_type == "Scherzo"
        assert second.season_type == "Crescendo"
        assert second.start_date == first.end_date + timedelta(days=1)


class TestOffSeasonDay:
    def test_maps_into_season(self):
        # 2019 finals were Aug 10; the 49-day window opens Jun 23.
        assert off_season_day(date(2019, 6, 23), 2019) == 1
        assert off_season_day(date(2019, 7, 20), 2019) == 28
        assert off_season_day(date(2019, 8, 10), 2019) == 49

    def test_outside_window_is_none(self):
        assert off_season_day(date(2019, 6, 22), 2019) is None
        assert off_season_day(date(2019, 8, 11), 2019) is None

    def test_missing_date_is_none(self):
        assert off_season_day(None, 2019) is None
