"""Tests for lineup submission, trade quotas and weekly show selection."""

import threading
from datetime import datetime

import pytest
from conftest import build_lineup, selection_key

from fantasycorps.db.repositories import LineupClaimRepository, ProfileRepository
from fantasycorps.errors import ConflictError, NotFoundError, ValidationError
from fantasycorps.lineup.shows import select_shows
from fantasycorps.lineup.validator import LineupValidator, count_trades
from fantasycorps.schemas.lineup import LineupSubmission, Selection, lineup_key
from fantasycorps.season.state_machine import SeasonStatus

# Off-season fixture runs 2025-04-13 (day 1) .. 2025-05-31 (day 49).
DAY_1 = datetime(2025, 4, 13, 12, 0)
DAY_10 = datetime(2025, 4, 22, 12, 0)
DAY_12 = datetime(2025, 4, 24, 12, 0)
DAY_15 = datetime(2025, 4, 27, 12, 0)


@pytest.fixture
def validator(db_path, off_season):
    return LineupValidator(db_path)


# ---------------------------------------------------------------------------
# Selections and submission schema
# ---------------------------------------------------------------------------

class TestSelection:
    def test_parse_storage_key(self):
        sel = Selection.parse("Blue Devils|25|2019")
        assert sel.corps_name == "Blue Devils"
        assert sel.points == 25
        assert sel.source_year == "2019"

    def test_name_may_contain_pipe(self):
        sel = Selection.parse("The|Academy|9|2018")
        assert sel.corps_name == "The|Academy"
        assert sel.key == "The|Academy|9|2018"

    def test_parse_mapping(self):
        sel = Selection.parse({"corps_name": "Cadets", "points": 12, "source_year": 2019})
        assert sel.key == "Cadets|12|2019"

    def test_malformed_key(self):
        with pytest.raises(ValueError):
            Selection.parse("Cadets|twelve|2019")

    def test_lineup_key_is_order_independent(self):
        a = {"GE1": Selection.parse("A|1|2019"), "GE2": Selection.parse("B|2|2019")}
        b = {"GE2": Selection.parse("A|1|2019"), "GE1": Selection.parse("B|2|2019")}
        assert lineup_key("worldClass", a) == lineup_key("worldClass", b)
        assert lineup_key("worldClass", a).startswith("worldClass_")


class TestLineupSubmission:
    def test_valid_lineup(self):
        sub = LineupSubmission(uid="u1", corps_class="worldClass", lineup=build_lineup())
        assert sub.total_points == 113
        assert sub.storage_lineup() == build_lineup()

    def test_missing_caption(self):
        lineup = build_lineup()
        del lineup["P"]
        with pytest.raises(ValueError, match="exactly 8 captions"):
            LineupSubmission(uid="u1", corps_class="worldClass", lineup=lineup)

    def test_over_class_cap(self):
        # 113 points fits World Class but not A Class (60).
        with pytest.raises(ValueError, match="Over point cap"):
            LineupSubmission(uid="u1", corps_class="aClass", lineup=build_lineup())

    def test_unknown_class(self):
        with pytest.raises(ValueError, match="Unknown corps class"):
            LineupSubmission(uid="u1", corps_class="juniorClass", lineup=build_lineup())


def test_count_trades():
    old = build_lineup()
    new = build_lineup(B="Blue Knights", MA="Crossmen")
    assert count_trades(old, new) == 2
    assert count_trades(None, new) == 8
    assert count_trades(old, old) == 0


# ---------------------------------------------------------------------------
# LineupValidator
# ---------------------------------------------------------------------------

class TestRegistration:
    def test_first_registration(self, validator, db_path):
        result = validator.submit("u1", build_lineup(), "worldClass", corps_name="Night Owls", now=DAY_10)
        assert result.first_registration is True
        assert result.trades == 0
        profile = ProfileRepository(db_path).get("u1")
        corps = profile.corps["worldClass"]
        assert profile.active_season_id == "finale_2024-25"
        assert corps.corps_name == "Night Owls"
        assert corps.lineup == build_lineup()
        assert corps.registered_season_id == "finale_2024-25"
        assert LineupClaimRepository(db_path).get(result.lineup_key)["uid"] == "u1"

    def test_corps_name_required(self, validator):
        with pytest.raises(ValidationError, match="corps name is required"):
            validator.submit("u1", build_lineup(), "worldClass", now=DAY_10)

    def test_unknown_class_is_validation_error(self, validator):
        with pytest.raises(ValidationError):
            validator.submit("u1", build_lineup(), "juniorClass", corps_name="X", now=DAY_10)

    def test_over_cap_is_validation_error(self, validator):
        with pytest.raises(ValidationError, match="Over point cap"):
            validator.submit("u1", build_lineup(), "aClass", corps_name="X", now=DAY_10)

    def test_points_must_match_dataset(self, validator):
        lineup = build_lineup()
        lineup["P"] = "Madison Scouts|9|2019"
        with pytest.raises(ValidationError, match="worth 5 points"):
            validator.submit("u1", lineup, "worldClass", corps_name="X", now=DAY_10)

    def test_unknown_corps_rejected(self, validator):
        lineup = build_lineup()
        lineup["P"] = "Spirit of Atlanta|5|2019"
        with pytest.raises(ValidationError, match="not in this season"):
            validator.submit("u1", lineup, "worldClass", corps_name="X", now=DAY_10)

    def test_no_season(self, db_path):
        with pytest.raises(NotFoundError):
            LineupValidator(db_path).submit("u1", build_lineup(), "worldClass", corps_name="X")


class TestUniqueness:
    def test_duplicate_lineup_conflicts(self, validator, db_path):
        validator.submit("u1", build_lineup(), "worldClass", corps_name="One", now=DAY_10)
        with pytest.raises(ConflictError, match="already been claimed"):
            validator.submit("u2", build_lineup(), "worldClass", corps_name="Two", now=DAY_10)
        assert ProfileRepository(db_path).get("u2") is None

    def test_resubmitting_own_lineup_is_fine(self, validator):
        validator.submit("u1", build_lineup(), "worldClass", corps_name="One", now=DAY_10)
        result = validator.submit("u1", build_lineup(), "worldClass", now=DAY_12)
        assert result.trades == 0

    def test_same_picks_other_class_do_not_conflict(self, validator):
        validator.submit("u1", build_lineup(), "worldClass", corps_name="One", now=DAY_10)
        result = validator.submit("u2", build_lineup(), "openClass", corps_name="Two", now=DAY_10)
        assert result.corps_class == "openClass"

    def test_trade_releases_old_claim(self, validator, db_path):
        first = validator.submit("u1", build_lineup(), "worldClass", corps_name="One", now=DAY_10)
        second = validator.submit("u1", build_lineup(P="Troopers"), "worldClass", now=DAY_12)
        claims = LineupClaimRepository(db_path)
        assert claims.get(first.lineup_key) is None
        assert claims.get(second.lineup_key)["uid"] == "u1"
        # The released lineup is free for someone else.
        validator.submit("u2", build_lineup(), "worldClass", corps_name="Two", now=DAY_12)

    def test_concurrent_submissions_claim_once(self, db_path, off_season):
        users = [f"u{i}" for i in range(8)]
        barrier = threading.Barrier(len(users))
        outcomes = []

        def submit(uid):
            validator = LineupValidator(db_path)
            barrier.wait()
            try:
                validator.submit(uid, build_lineup(), "worldClass", corps_name=uid, now=DAY_10)
                outcomes.append("ok")
            except ConflictError:
                outcomes.append("conflict")

        threads = [threading.Thread(target=submit, args=(uid,)) for uid in users]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["conflict"] * 7 + ["ok"]
        key = lineup_key("worldClass", {c: Selection.parse(k) for c, k in build_lineup().items()})
        assert LineupClaimRepository(db_path).get(key)["uid"] in users


class TestTradeQuota:
    def test_limit_enforced_after_grace(self, validator, db_path):
        validator.submit("u1", build_lineup(), "worldClass", corps_name="One", now=DAY_1)
        # Day 15 is week 3, fourteen days after registering.
        result = validator.submit(
            "u1", build_lineup(B="Blue Knights", MA="Crossmen"), "worldClass", now=DAY_15,
        )
        assert result.trades == 2
        assert result.trades_used == 2
        assert result.unlimited is False

        with pytest.raises(ConflictError, match="1 trades remaining"):
            validator.submit(
                "u1",
                build_lineup(B="Blue Knights", MA="Crossmen", P="Troopers", CG="Phantom Regiment"),
                "worldClass",
                now=DAY_15,
            )
        corps = ProfileRepository(db_path).get("u1").corps["worldClass"]
        assert corps.weekly_trades.used == 2
        assert corps.lineup == build_lineup(B="Blue Knights", MA="Crossmen")

    def test_last_trade_of_the_week_allowed(self, validator):
        validator.submit("u1", build_lineup(), "worldClass", corps_name="One", now=DAY_1)
        validator.submit("u1", build_lineup(B="Blue Knights", MA="Crossmen"), "worldClass", now=DAY_15)
        result = validator.submit(
            "u1", build_lineup(B="Blue Knights", MA="Crossmen", P="Troopers"), "worldClass", now=DAY_15,
        )
        assert result.trades_used == 3

    def test_quota_resets_next_week(self, validator):
        validator.submit("u1", build_lineup(), "worldClass", corps_name="One", now=DAY_1)
        validator.submit(
            "u1", build_lineup(B="Blue Knights", MA="Crossmen", P="Troopers"), "worldClass", now=DAY_15,
        )
        result = validator.submit("u1", build_lineup(CG="Phantom Regiment", B="Blue Knights",
                                                     MA="Crossmen", P="Troopers"),
                                  "worldClass", now=datetime(2025, 5, 4, 12, 0))
        assert result.trades_used == 1

    def test_week_one_is_unlimited(self, validator):
        validator.submit("u1", build_lineup(), "worldClass", corps_name="One", now=DAY_1)
        result = validator.submit(
            "u1",
            build_lineup(GE2="Boston Crusaders", CG="Phantom Regiment", B="Blue Knights",
                         MA="Crossmen", P="Troopers"),
            "worldClass",
            now=datetime(2025, 4, 15, 12, 0),
        )
        assert result.unlimited is True
        assert result.trades == 5

    def test_registration_grace_window(self, validator):
        validator.submit("u1", build_lineup(), "worldClass", corps_name="One", now=DAY_10)
        result = validator.submit(
            "u1",
            build_lineup(GE2="Boston Crusaders", CG="Phantom Regiment", B="Blue Knights",
                         MA="Crossmen", P="Troopers"),
            "worldClass",
            now=DAY_12,
        )
        assert result.unlimited is True

    def test_live_season_spring_training_unlimited(self, db_path, seed_season):
        seed_season(SeasonStatus.LIVE_SEASON)
        validator = LineupValidator(db_path)
        validator.submit("u1", build_lineup(), "worldClass", corps_name="One",
                         now=datetime(2025, 6, 1, 12))
        # Live day 20 is week 3 of spring training.
        result = validator.submit(
            "u1",
            build_lineup(GE2="Boston Crusaders", CG="Phantom Regiment", B="Blue Knights",
                         MA="Crossmen", P="Troopers"),
            "worldClass",
            now=datetime(2025, 6, 20, 12),
        )
        assert result.unlimited is True


# ---------------------------------------------------------------------------
# Show selection
# ---------------------------------------------------------------------------

class TestSelectShows:
    @pytest.fixture
    def registered(self, validator):
        validator.submit("u1", build_lineup(), "worldClass", corps_name="One", now=DAY_1)

    def test_saves_week(self, db_path, registered):
        stored = select_shows(
            "u1", 1, [{"event_name": "Show A", "day": 1}], "worldClass", now=DAY_1, db_path=db_path,
        )
        assert stored == [{"event_name": "Show A", "day": 1, "date": "2019-06-23", "location": "Venue A"}]
        corps = ProfileRepository(db_path).get("u1").corps["worldClass"]
        assert corps.shows_for_week(1) == stored

    def test_replaces_previous_selection(self, db_path, registered):
        select_shows("u1", 1, [{"event_name": "Show A", "day": 1}], "worldClass", now=DAY_1, db_path=db_path)
        select_shows("u1", 1, [{"event_name": "Show C", "day": 2}], "worldClass", now=DAY_1, db_path=db_path)
        corps = ProfileRepository(db_path).get("u1").corps["worldClass"]
        assert [s["event_name"] for s in corps.shows_for_week(1)] == ["Show C"]

    def test_past_week_rejected(self, db_path, registered):
        with pytest.raises(ValidationError, match="current week is 2"):
            select_shows("u1", 1, [], "worldClass", now=DAY_10, db_path=db_path)

    def test_week_past_season_rejected(self, db_path, registered):
        with pytest.raises(ValidationError):
            select_shows("u1", 8, [], "worldClass", now=DAY_1, db_path=db_path)

    def test_day_outside_week_rejected(self, db_path, registered):
        with pytest.raises(ValidationError, match="not in week 1"):
            select_shows("u1", 1, [{"event_name": "Show D", "day": 8}], "worldClass",
                         now=DAY_1, db_path=db_path)

    def test_unscheduled_show_rejected(self, db_path, registered):
        with pytest.raises(ValidationError, match="not scheduled"):
            select_shows("u1", 1, [{"event_name": "Show D", "day": 1}], "worldClass",
                         now=DAY_1, db_path=db_path)

    def test_one_show_per_day(self, db_path, registered):
        shows = [{"event_name": "Show A", "day": 1}, {"event_name": "Show B", "day": 1}]
        with pytest.raises(ValidationError, match="one show per day"):
            select_shows("u1", 1, shows, "worldClass", now=DAY_1, db_path=db_path)

    def test_at_most_four_shows(self, db_path, registered):
        shows = [{"event_name": f"Show {d}", "day": d} for d in range(1, 6)]
        with pytest.raises(ValidationError, match="At most 4 shows"):
            select_shows("u1", 1, shows, "worldClass", now=DAY_1, db_path=db_path)

    def test_unregistered_corps(self, db_path, registered):
        with pytest.raises(NotFoundError):
            select_shows("u1", 1, [], "openClass", now=DAY_1, db_path=db_path)


def test_selection_key_helper_matches_dataset():
    assert selection_key("Troopers") == "Troopers|3|2019"
