"""Daily score processing for off-season and live-season days.

Each run scores one season day: every active corps that attends a show of
that day gets a total, and the totals, the day's recap, trophies and the
processed-day marker are committed in one transaction.  Week boundaries
hand off to :class:`fantasycorps.league.matchups.LeagueMatchupEngine`.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable

from fantasycorps.config import calendar_cfg, championship_cfg, schedule_cfg
from fantasycorps.db.connection import transaction
from fantasycorps.db.repositories import (
    HistoricalRepository,
    LiveScoreRepository,
    ProfileRepository,
    RecapRepository,
    SeasonRepository,
    TrophyRepository,
)
from fantasycorps.league.matchups import LeagueMatchupEngine
from fantasycorps.logging_config import get_logger
from fantasycorps.paths import DB_PATH
from fantasycorps.schemas.lineup import Selection
from fantasycorps.schemas.season import CorpsProfile, Season, Show, UserProfile
from fantasycorps.scoring.aggregate import aggregate
from fantasycorps.scoring.predictor import LiveScorePredictor, ScorePredictor
from fantasycorps.season.state_machine import SeasonStatus, week_of

logger = get_logger(__name__)

# (selection, caption) -> caption score
CaptionScorer = Callable[[Selection, str], float]


@dataclass
class DayResult:
    day: int
    week: int
    recap: dict
    scored: int = 0
    trophies: int = 0
    matchups_resolved: int | None = None
    totals: dict[tuple[str, str], float] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Championship week and regional helpers
# ---------------------------------------------------------------------------

def _ranked(recap: dict | None) -> list[dict]:
    if not recap:
        return []
    results = [r for show in recap.get("shows", []) for r in show.get("results", [])]
    return sorted(results, key=lambda r: r["total_score"], reverse=True)


def advancing_corps(day: int, previous_recap: dict | None) -> set[tuple[str, str]] | None:
    """(uid, class) pairs allowed to compete on a championship day.

    Semifinals take the top 25 prelims results; finals take every semifinal
    result scoring at least the 12th-best (ties advance).  ``None`` means no
    restriction (not a cut day, or no recap for the previous round).
    """
    if day not in (championship_cfg.semifinals_day, championship_cfg.finals_day):
        return None
    results = _ranked(previous_recap)
    if not results:
        return None
    if day == championship_cfg.semifinals_day:
        kept = results[: championship_cfg.semifinals_cutoff]
    elif len(results) >= championship_cfg.finals_cutoff:
        threshold = results[championship_cfg.finals_cutoff - 1]["total_score"]
        kept = [r for r in results if r["total_score"] >= threshold]
    else:
        kept = results
    return {(r["uid"], r["corps_class"]) for r in kept}


def split_half(enrollees: list[str], day: int) -> set[str]:
    """Multi-day regional: first half (by uid) competes day one, the rest day two."""
    ordered = sorted(set(enrollees))
    cut = math.ceil(len(ordered) / 2)
    first, _ = schedule_cfg.multi_day_days
    return set(ordered[:cut]) if day == first else set(ordered[cut:])


def is_multi_day(show_name: str, day: int) -> bool:
    return day in schedule_cfg.multi_day_days and schedule_cfg.multi_day_pattern in show_name


def chose_show(corps: CorpsProfile, week: int, show: Show, day: int) -> bool:
    """Did *corps* select *show* for *day*?  Multi-day events match on name alone."""
    for choice in corps.shows_for_week(week):
        if choice.get("event_name") != show.event_name:
            continue
        if is_multi_day(show.event_name, day) or choice.get("day") == day:
            return True
    return False


def competes_today(
    profiles: list[UserProfile], uid: str, corps_class: str, week: int, show: Show, day: int,
) -> bool:
    """False when *uid*'s corps is enrolled in a multi-day show on its other day.

    Enrollees are split per class: only corps of *corps_class* that selected
    the show count towards the halves.
    """
    if not is_multi_day(show.event_name, day):
        return True
    enrollees = [
        p.uid for p in profiles
        if corps_class in p.corps and chose_show(p.corps[corps_class], week, show, day)
    ]
    return uid in split_half(enrollees, day)


def trophies_for_day(season: Season, day: int, recap: dict) -> list[dict]:
    """Medals earned on *day*: regional podiums and championship finals."""
    trophies: list[dict] = []
    medals = championship_cfg.medals

    def podium(show: dict, kind: str) -> None:
        ranked = sorted(show["results"], key=lambda r: r["total_score"], reverse=True)
        for rank, winner in enumerate(ranked[: len(medals)], start=1):
            trophies.append({
                "uid": winner["uid"],
                "season_uid": season.season_uid,
                "day": day,
                "event_name": show["event_name"],
                "corps_class": winner["corps_class"],
                "trophy_type": f"{kind}_{medals[rank - 1]}",
                "rank": rank,
                "score": winner["total_score"],
            })

    if day in championship_cfg.regional_trophy_days:
        for show in recap["shows"]:
            if not show.get("predicted"):
                podium(show, "regional")

    if day == championship_cfg.finals_day and recap["shows"]:
        finals = recap["shows"][0]
        podium(finals, "championship")
        ranked = sorted(finals["results"], key=lambda r: r["total_score"], reverse=True)
        for rank, finalist in enumerate(ranked, start=1):
            trophies.append({
                "uid": finalist["uid"],
                "season_uid": season.season_uid,
                "day": day,
                "event_name": finals["event_name"],
                "corps_class": finalist["corps_class"],
                "trophy_type": "finalist",
                "rank": rank,
                "score": finalist["total_score"],
            })
    return trophies


# ---------------------------------------------------------------------------
# Processor
# ---------------------------------------------------------------------------

class ScoreProcessor:
    """Scores one season day and archives the results."""

    def __init__(self, db_path: Path | None = None, rng: random.Random | None = None):
        self.db_path = db_path or DB_PATH
        self.rng = rng or random.Random()
        self.predictor = ScorePredictor(self.rng)
        self.live_predictor = LiveScorePredictor(self.predictor)
        self.seasons = SeasonRepository(self.db_path)
        self.historical = HistoricalRepository(self.db_path)
        self.live_scores = LiveScoreRepository(self.db_path)
        self.profiles = ProfileRepository(self.db_path)
        self.recaps = RecapRepository(self.db_path)
        self.trophies = TrophyRepository(self.db_path)

    # ── Shared pieces ───────────────────────────────────────────────────

    def _history_for(self, profiles: list[UserProfile]) -> dict[str, list[dict]]:
        """Historical events of every source year in play, read fresh per day."""
        years = {
            Selection.parse(key).source_year
            for p in profiles
            for corps in p.corps.values()
            for key in (corps.lineup or {}).values()
        }
        return {year: self.historical.events_for_year(year) for year in years}

    @staticmethod
    def _score_corps(corps: CorpsProfile, scorer: CaptionScorer) -> dict:
        captions = {}
        for caption, key in (corps.lineup or {}).items():
            captions[caption] = scorer(Selection.parse(key), caption)
        return aggregate(captions).to_dict()

    @staticmethod
    def _result(uid: str, corps_class: str, corps: CorpsProfile, breakdown: dict) -> dict:
        return {"uid": uid, "corps_class": corps_class, "corps_name": corps.corps_name, **breakdown}

    def _commit(
        self,
        season: Season,
        day: int,
        recap: dict,
        totals: dict[tuple[str, str], float],
    ) -> int:
        trophies = trophies_for_day(season, day, recap)
        with transaction(self.db_path) as conn:
            for (uid, corps_class), total in totals.items():
                if total > 0:
                    # Each processed day overwrites the season total.
                    self.profiles.update_score(uid, corps_class, round(total, 3), day, conn=conn)
            self.recaps.replace(season.season_uid, season.name, day, recap, conn=conn)
            awarded = self.trophies.award(trophies, conn=conn)
            self.seasons.set_last_processed_day(day, conn=conn)
        return awarded

    def _finish_week(self, day: int) -> int | None:
        if day % 7:
            return None
        summary = LeagueMatchupEngine(self.db_path, rng=self.rng).resolve_week(day // 7)
        return summary.resolved

    def _active(self, season: Season) -> list[UserProfile]:
        return self.profiles.active_profiles(season.season_uid)

    def _load(self, status: SeasonStatus) -> Season | None:
        season = self.seasons.get()
        if season is None or season.status is not status:
            logger.info("No active %s found; nothing to process", status.value)
            return None
        return season

    # ── Off-season ──────────────────────────────────────────────────────

    def process_off_season_day(
        self, day: int | None = None, now: datetime | None = None,
    ) -> DayResult | None:
        season = self._load(SeasonStatus.OFF_SEASON)
        if season is None:
            return None
        now = now or datetime.now()
        if day is None:
            day = season.day_index((now - timedelta(days=1)).date())
        if not 1 <= day <= schedule_cfg.season_length:
            logger.info("Scored day %d is outside 1-%d; nothing to do", day, schedule_cfg.season_length)
            return None

        week = week_of(day)
        logger.info("Processing off-season %s day %d (week %d)", season.name, day, week)
        shows = season.shows_for_day(day)
        profiles = self._active(season)
        history = self._history_for(profiles)
        participants = advancing_corps(day, self.recaps.get(season.season_uid, day - 1))

        def scorer(sel: Selection, caption: str) -> float:
            return self.predictor.predict(sel.corps_name, sel.source_year, caption, day, history)

        recap = {"day": day, "date": now.isoformat(), "shows": []}
        totals: dict[tuple[str, str], float] = {}

        for show in shows:
            results = []
            for profile in profiles:
                for corps_class, corps in profile.corps.items():
                    if not corps.corps_name or not corps.lineup:
                        continue
                    if participants is not None and (profile.uid, corps_class) not in participants:
                        continue
                    attended = day >= championship_cfg.prelims_day or chose_show(corps, week, show, day)
                    if not attended:
                        continue
                    if not competes_today(profiles, profile.uid, corps_class, week, show, day):
                        continue
                    breakdown = self._score_corps(corps, scorer)
                    key = (profile.uid, corps_class)
                    totals[key] = totals.get(key, 0.0) + breakdown["total_score"]
                    results.append(self._result(profile.uid, corps_class, corps, breakdown))

            results.sort(key=lambda r: r["total_score"], reverse=True)
            recap["shows"].append({
                "event_name": show.event_name,
                "location": show.location,
                "date": show.date,
                "results": results,
            })

        if not shows:
            logger.info("No shows scheduled for day %d", day)
        awarded = self._commit(season, day, recap, totals)
        logger.info(
            "Day %d processed: %d corps scored, %d trophies awarded",
            day, len(totals), awarded,
        )
        return DayResult(
            day=day,
            week=week,
            recap=recap,
            scored=len(totals),
            trophies=awarded,
            matchups_resolved=self._finish_week(day),
            totals=totals,
        )

    # ── Live season ─────────────────────────────────────────────────────

    def process_live_day(
        self, live_day: int | None = None, now: datetime | None = None,
    ) -> DayResult | None:
        season = self._load(SeasonStatus.LIVE_SEASON)
        if season is None:
            return None
        now = now or datetime.now()
        if live_day is None:
            live_day = season.day_index((now - timedelta(days=1)).date())
        if not 1 <= live_day <= calendar_cfg.live_season_days:
            logger.info("Live day %d is outside 1-%d; nothing to do", live_day, calendar_cfg.live_season_days)
            return None
        if live_day <= calendar_cfg.spring_training_days:
            logger.info("Live day %d is spring training; nothing to score", live_day)
            return None

        day = live_day - calendar_cfg.spring_training_days
        week = week_of(day)
        logger.info("Processing live season %s day %d (competition day %d)", season.name, live_day, day)

        shows = season.shows_for_day(day)
        profiles = self._active(season)
        history = self._history_for(profiles)
        participants = advancing_corps(day, self.recaps.get(season.season_uid, day - 1))

        real_today = {r["corps_name"]: r["captions"] for r in self.live_scores.for_day(season.season_uid, live_day)}
        season_points: dict[tuple[str, str], list[tuple[int, float]]] = {}
        for row in self.live_scores.for_season(season.season_uid):
            for caption, score in row["captions"].items():
                if score:
                    season_points.setdefault((row["corps_name"], caption), []).append((row["day"], score))

        def scorer(sel: Selection, caption: str) -> float:
            real = real_today.get(sel.corps_name, {}).get(caption)
            if real is not None and real > 0:
                return float(real)
            return self.live_predictor.predict(
                sel.corps_name, sel.source_year, caption, live_day, history,
                season_points.get((sel.corps_name, caption), []),
            )

        predicted_name = championship_cfg.predicted_show_name.format(day=day)
        recap_shows: dict[str, dict] = {
            s.event_name: {"event_name": s.event_name, "location": s.location, "date": s.date, "results": []}
            for s in shows
        }
        recap_shows[predicted_name] = {
            "event_name": predicted_name,
            "location": championship_cfg.predicted_show_location,
            "date": None,
            "predicted": True,
            "results": [],
        }
        used_real = bool(real_today)
        totals: dict[tuple[str, str], float] = {}

        for profile in profiles:
            for corps_class, corps in profile.corps.items():
                if not corps.lineup:
                    continue
                if participants is not None and (profile.uid, corps_class) not in participants:
                    continue
                show = self._attended_live_show(corps, week, day, shows)
                if show is None:
                    continue
                if not competes_today(profiles, profile.uid, corps_class, week, show, day):
                    continue

                breakdown = self._score_corps(corps, scorer)
                if breakdown["total_score"] <= 0:
                    continue
                totals[(profile.uid, corps_class)] = breakdown["total_score"]
                key = show.event_name if used_real else predicted_name
                if key not in recap_shows:
                    recap_shows[key] = {
                        "event_name": show.event_name, "location": show.location,
                        "date": show.date, "results": [],
                    }
                recap_shows[key]["results"].append(self._result(profile.uid, corps_class, corps, breakdown))

        for show in recap_shows.values():
            show["results"].sort(key=lambda r: r["total_score"], reverse=True)
        recap = {
            "day": day,
            "live_day": live_day,
            "date": now.isoformat(),
            "shows": [s for s in recap_shows.values() if s["results"]],
        }
        awarded = self._commit(season, day, recap, totals)
        logger.info(
            "Live day %d processed: %d corps scored, %d trophies awarded",
            live_day, len(totals), awarded,
        )
        return DayResult(
            day=day,
            week=week,
            recap=recap,
            scored=len(totals),
            trophies=awarded,
            matchups_resolved=self._finish_week(day),
            totals=totals,
        )

    @staticmethod
    def _attended_live_show(
        corps: CorpsProfile, week: int, day: int, shows: list[Show],
    ) -> Show | None:
        if day >= championship_cfg.prelims_day:
            if shows:
                return shows[0]
            round_no = day - championship_cfg.prelims_day + 1
            return Show(event_name=f"DCI World Championships Day {round_no}")
        for show in shows:
            if chose_show(corps, week, show, day):
                return show
        return None


def process_off_season_day(
    day: int | None = None,
    now: datetime | None = None,
    db_path: Path | None = None,
    rng: random.Random | None = None,
) -> DayResult | None:
    return ScoreProcessor(db_path, rng=rng).process_off_season_day(day=day, now=now)


def process_live_day(
    live_day: int | None = None,
    now: datetime | None = None,
    db_path: Path | None = None,
    rng: random.Random | None = None,
) -> DayResult | None:
    return ScoreProcessor(db_path, rng=rng).process_live_day(live_day=live_day, now=now)
