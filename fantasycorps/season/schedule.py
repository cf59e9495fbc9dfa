"""49-day season schedule generation.

Marquee championships are pinned to fixed days first, the multi-day
regional is mirrored across its two days, and the remaining days are
filled with two or three shows drawn from the historical corpus without
reusing an event name or venue.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from fantasycorps.config import schedule_cfg
from fantasycorps.logging_config import get_logger
from fantasycorps.schemas.season import DaySchedule, Show

logger = get_logger(__name__)


@dataclass
class ScheduleResult:
    days: list[DaySchedule]
    warnings: list[str] = field(default_factory=list)

    def to_events(self) -> list[dict]:
        return [d.model_dump() for d in self.days]


def _to_show(raw: Show | Mapping) -> Show:
    if isinstance(raw, Show):
        return raw
    return Show(
        event_name=raw.get("event_name") or raw.get("eventName"),
        date=raw.get("date"),
        location=raw.get("location"),
    )


def build_show_corpus(
    events: Iterable[Mapping],
    *,
    excluded_fragment: str = schedule_cfg.excluded_name_fragment,
) -> dict[int, list[Show]]:
    """Group historical events by their off-season day.

    Events without a day, and events whose name contains the excluded
    fragment, are dropped.
    """
    by_day: dict[int, list[Show]] = {}
    for event in events:
        name = event.get("event_name") or ""
        day = event.get("off_season_day")
        if not name or not day:
            continue
        if excluded_fragment.lower() in name.lower():
            continue
        by_day.setdefault(int(day), []).append(
            Show(event_name=name, date=event.get("event_date"), location=event.get("location"))
        )
    return by_day


class ScheduleGenerator:
    """Builds one season calendar from a corpus of historical shows."""

    def __init__(
        self,
        shows_by_day: Mapping[int, Iterable[Show | Mapping]],
        rng: random.Random | None = None,
        season_length: int = schedule_cfg.season_length,
    ):
        self.rng = rng or random.Random()
        self.season_length = season_length
        self.corpus: dict[int, list[Show]] = {}
        fragment = schedule_cfg.excluded_name_fragment.lower()
        for day, shows in shows_by_day.items():
            kept = [_to_show(s) for s in shows]
            self.corpus[int(day)] = [s for s in kept if fragment not in s.event_name.lower()]

        self._days: dict[int, list[Show]] = {d: [] for d in range(1, season_length + 1)}
        self._used_names: set[str] = set()
        self._used_locations: set[str | None] = set()
        self._reserved: set[int] = set()  # marquee days, never back-filled
        self.warnings: list[str] = []

    # ── Helpers ─────────────────────────────────────────────────────────

    def _shuffled(self, shows: Iterable[Show]) -> list[Show]:
        items = list(shows)
        self.rng.shuffle(items)
        return items

    def _mark_used(self, show: Show) -> None:
        self._used_names.add(show.event_name)
        self._used_locations.add(show.location)

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    # ── Placement steps ─────────────────────────────────────────────────

    def place_marquee(self, day: int, pattern: str, mandatory: bool) -> Show | None:
        """Pin one unused show matching *pattern* (case-insensitive) to *day*."""
        if day not in self._days:
            return None
        self._reserved.add(day)
        candidates = [
            s for s in self.corpus.get(day, [])
            if pattern.lower() in s.event_name.lower()
            and s.event_name not in self._used_names
        ]
        if not candidates:
            self._days[day] = []
            level = "mandatory" if mandatory else "optional"
            self._warn(
                f"No unused show for day {day} matching {pattern!r} ({level}); day left empty"
            )
            return None
        chosen = self._shuffled(candidates)[0]
        self._days[day] = [chosen]
        self._mark_used(chosen)
        return chosen

    def place_multi_day(self) -> Show | None:
        """Mirror one multi-day regional across both of its days."""
        days = schedule_cfg.multi_day_days
        pattern = schedule_cfg.multi_day_pattern
        candidates = [
            s
            for day in days
            for s in self.corpus.get(day, [])
            if pattern in s.event_name and s.event_name not in self._used_names
        ]
        if not candidates:
            self._warn(
                f"No {pattern!r} on days {days[0]}/{days[1]}; days filled randomly"
            )
            return None
        chosen = self._shuffled(candidates)[0]
        placed = False
        for day in days:
            if day in self._days:
                self._days[day] = [chosen]
                placed = True
        if placed:
            self._mark_used(chosen)
        return chosen

    def fill_remaining(self) -> None:
        remaining = [
            d for d in sorted(self._days) if not self._days[d] and d not in self._reserved
        ]
        two_show = int(len(remaining) * schedule_cfg.two_show_ratio)
        counts = self._shuffled([2] * two_show + [3] * (len(remaining) - two_show))

        for day in remaining:
            target = counts.pop() if counts else 3
            picked: list[Show] = []
            for show in self._shuffled(self.corpus.get(day, [])):
                if len(picked) >= target:
                    break
                if show.event_name in self._used_names or show.location in self._used_locations:
                    continue
                picked.append(show)
                self._mark_used(show)
            self._days[day] = picked

    def generate(self) -> ScheduleResult:
        logger.info("Generating schedule for a %d-day season", self.season_length)
        for day, pattern, mandatory in schedule_cfg.marquee_shows:
            self.place_marquee(day, pattern, mandatory)
        self.place_multi_day()
        self.fill_remaining()
        for day in schedule_cfg.rest_days:
            if day in self._days:
                self._days[day] = []

        days = [DaySchedule(offset=d, shows=self._days[d]) for d in sorted(self._days)]
        total = sum(len(d.shows) for d in days)
        logger.info("Schedule generated: %d shows, %d warnings", total, len(self.warnings))
        return ScheduleResult(days=days, warnings=list(self.warnings))


def generate_schedule(
    shows_by_day: Mapping[int, Iterable[Show | Mapping]],
    rng: random.Random | None = None,
) -> ScheduleResult:
    """Generate a full season schedule.  Never raises for missing data."""
    return ScheduleGenerator(shows_by_day, rng=rng).generate()
