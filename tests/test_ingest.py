"""Tests for score-event ingestion."""

from datetime import datetime

import pytest

from fantasycorps.db.repositories import HistoricalRepository, LiveScoreRepository, RecapRepository
from fantasycorps.errors import NotFoundError, ValidationError
from fantasycorps.scoring.ingest import ingest_historical_scores, ingest_live_scores, merge_scores


def _event(date="2019-07-20", scores=None, name="DCI Southwestern Championship", year=2019):
    return {
        "eventName": name,
        "eventLocation": "San Antonio, TX",
        "eventDate": date,
        "year": year,
        "scores": scores if scores is not None else [
            {"corps": "Blue Devils", "captions": {"GE1": 19.5, "GE2": 19.2, "VP": 0}},
        ],
    }


class TestMergeScores:
    def test_new_corps_appended(self):
        merged, added, filled = merge_scores(
            [{"corps": "A", "captions": {"GE1": 10.0}}],
            [{"corps": "B", "captions": {"GE1": 11.0}}],
        )
        assert [m["corps"] for m in merged] == ["A", "B"]
        assert (added, filled) == (1, 0)

    def test_existing_captions_never_overwritten(self):
        merged, added, filled = merge_scores(
            [{"corps": "A", "captions": {"GE1": 10.0, "VP": 0}}],
            [{"corps": "A", "captions": {"GE1": 12.0, "VP": 9.0, "B": 8.0}}],
        )
        assert merged[0]["captions"] == {"GE1": 10.0, "VP": 9.0, "B": 8.0}
        assert (added, filled) == (0, 2)

    def test_inputs_not_mutated(self):
        existing = [{"corps": "A", "captions": {}}]
        merge_scores(existing, [{"corps": "A", "captions": {"GE1": 1.0}}])
        assert existing == [{"corps": "A", "captions": {}}]


class TestHistoricalIngest:
    def test_creates_event_with_season_day(self, db_path):
        summary = ingest_historical_scores(_event(), db_path=db_path)
        assert summary["created"] is True
        assert summary["off_season_day"] == 28
        assert summary["corps_added"] == 1

        stored = HistoricalRepository(db_path).get_event("2019", "DCI Southwestern Championship", "2019-07-20")
        assert stored["location"] == "San Antonio, TX"
        assert stored["scores"][0]["captions"]["GE1"] == 19.5

    def test_second_ingest_merges(self, db_path):
        ingest_historical_scores(_event(), db_path=db_path)
        summary = ingest_historical_scores(_event(scores=[
            {"corps": "Blue Devils", "captions": {"GE1": 1.0, "VP": 18.9}},
            {"corps": "Bluecoats", "captions": {"GE1": 19.0}},
        ]), db_path=db_path)
        assert summary["created"] is False
        assert summary["corps_added"] == 1
        assert summary["captions_filled"] == 1

        [event] = HistoricalRepository(db_path).events_for_year("2019")
        devils = next(s for s in event["scores"] if s["corps"] == "Blue Devils")
        assert devils["captions"] == {"GE1": 19.5, "GE2": 19.2, "VP": 18.9}

    def test_date_outside_window_has_no_day(self, db_path):
        summary = ingest_historical_scores(_event(date="2019-05-01"), db_path=db_path)
        assert summary["off_season_day"] is None

    def test_unknown_caption_rejected(self, db_path):
        with pytest.raises(ValidationError, match="Unknown captions"):
            ingest_historical_scores(
                _event(scores=[{"corps": "Blue Devils", "captions": {"Drums": 19.0}}]),
                db_path=db_path,
            )

    def test_non_numeric_year_rejected(self, db_path):
        with pytest.raises(ValidationError, match="year must be an integer"):
            ingest_historical_scores(_event(year="abc"), db_path=db_path)

    def test_missing_date_rejected(self, db_path):
        payload = _event()
        del payload["eventDate"]
        with pytest.raises(ValidationError):
            ingest_historical_scores(payload, db_path=db_path)


class TestLiveIngest:
    def test_stores_and_processes(self, db_path, live_season):
        summary = ingest_live_scores(
            _event(date="2025-06-22", year=2025), db_path=db_path, now=datetime(2025, 6, 22, 23),
        )
        assert summary["live_day"] == 22
        assert summary["stored"] == 1
        assert summary["processed"] is True

        [row] = LiveScoreRepository(db_path).for_day(live_season.season_uid, 22)
        assert row["corps_name"] == "Blue Devils"
        assert row["captions"]["GE1"] == 19.5
        assert RecapRepository(db_path).get(live_season.season_uid, 1) is not None

    def test_spring_training_stored_not_processed(self, db_path, live_season):
        summary = ingest_live_scores(_event(date="2025-06-10", year=2025), db_path=db_path)
        assert summary["live_day"] == 10
        assert summary["processed"] is False

    def test_process_flag(self, db_path, live_season):
        summary = ingest_live_scores(_event(date="2025-07-01", year=2025), db_path=db_path, process=False)
        assert summary["processed"] is False

    def test_reingest_overwrites_same_day(self, db_path, live_season):
        ingest_live_scores(_event(date="2025-06-10", year=2025), db_path=db_path)
        ingest_live_scores(
            _event(date="2025-06-10", year=2025,
                   scores=[{"corps": "Blue Devils", "captions": {"GE1": 19.9}}]),
            db_path=db_path,
        )
        [row] = LiveScoreRepository(db_path).for_day(live_season.season_uid, 10)
        assert row["captions"] == {"GE1": 19.9}

    def test_requires_live_season(self, db_path, off_season):
        with pytest.raises(ValidationError, match="not a live season"):
            ingest_live_scores(_event(date="2025-04-20", year=2025), db_path=db_path)

    def test_date_outside_season(self, db_path, live_season):
        with pytest.raises(ValidationError, match="outside the live season"):
            ingest_live_scores(_event(date="2025-08-20", year=2025), db_path=db_path)

    def test_no_season(self, db_path):
        with pytest.raises(NotFoundError):
            ingest_live_scores(_event(date="2025-06-22", year=2025), db_path=db_path)
