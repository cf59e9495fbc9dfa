"""Tests for the SQLite layer: migrations, transactions and repositories."""

import pytest
from conftest import build_lineup

from fantasycorps.db.connection import connect, transaction
from fantasycorps.db.migrations import LATEST_VERSION, apply_migrations, get_schema_version
from fantasycorps.db.repositories import (
    LineupClaimRepository,
    ProfileRepository,
    SeasonRepository,
    TrophyRepository,
)
from fantasycorps.schemas.season import CorpsProfile


class TestMigrations:
    def test_new_database_is_current(self, db_path):
        with connect(db_path) as conn:
            assert get_schema_version(conn) == LATEST_VERSION

    def test_reapplying_is_noop(self, db_path):
        with connect(db_path) as conn:
            apply_migrations(conn)
            assert get_schema_version(conn) == LATEST_VERSION


class TestTransaction:
    def test_rollback_on_error(self, db_path):
        claims = LineupClaimRepository(db_path)
        with pytest.raises(RuntimeError):
            with transaction(db_path) as conn:
                claims.claim("k1", "u1", "s1", "worldClass", conn=conn)
                raise RuntimeError("abort")
        assert claims.get("k1") is None

    def test_commit_on_success(self, db_path):
        claims = LineupClaimRepository(db_path)
        with transaction(db_path) as conn:
            claims.claim("k1", "u1", "s1", "worldClass", conn=conn)
        assert claims.get("k1")["uid"] == "u1"


class TestSeasonRepository:
    def test_round_trip(self, db_path, off_season):
        season = SeasonRepository(db_path).get()
        assert season == off_season

    def test_singleton_row(self, db_path, seed_season):
        seed_season(uid="first")
        seed_season(uid="second")
        with connect(db_path) as conn:
            assert conn.execute("SELECT COUNT(*) FROM season").fetchone()[0] == 1
        assert SeasonRepository(db_path).get().season_uid == "second"

    def test_missing(self, db_path):
        assert SeasonRepository(db_path).get() is None


class TestProfileRepository:
    def test_legacy_profile_normalized(self, db_path):
        profiles = ProfileRepository(db_path)
        profiles.save_legacy("old", {
            "corpsName": "Legacy Lancers",
            "location": "Madison, WI",
            "lineup": build_lineup(),
            "totalSeasonScore": 42.5,
        }, username="Oldtimer")

        profile = profiles.get("old")
        assert list(profile.corps) == ["worldClass"]
        corps = profile.corps["worldClass"]
        assert corps.corps_name == "Legacy Lancers"
        assert corps.lineup == build_lineup()
        assert corps.total_season_score == 42.5

        with connect(db_path) as conn:
            row = conn.execute("SELECT legacy_corps_json FROM user_profile WHERE uid='old'").fetchone()
        assert row[0] is None

    def test_multiple_classes(self, db_path):
        profiles = ProfileRepository(db_path)
        profiles.ensure_user("u1", "Una")
        profiles.save_corps("u1", CorpsProfile(corps_class="worldClass", corps_name="W"))
        profiles.save_corps("u1", CorpsProfile(corps_class="soundSport", corps_name="S"))
        assert set(profiles.get("u1").corps) == {"worldClass", "soundSport"}

    def test_ensure_user_keeps_username(self, db_path):
        profiles = ProfileRepository(db_path)
        profiles.ensure_user("u1", "Una")
        profiles.ensure_user("u1")
        assert profiles.get("u1").username == "Una"


class TestTrophyRepository:
    def test_award_is_idempotent(self, db_path):
        trophy = {
            "uid": "u1", "season_uid": "s1", "day": 49, "event_name": "Finals",
            "corps_class": "worldClass", "trophy_type": "championship_gold", "rank": 1, "score": 88.1,
        }
        repo = TrophyRepository(db_path)
        assert repo.award([trophy]) == 1
        assert repo.award([trophy]) == 0
        assert len(repo.for_user("u1")) == 1
