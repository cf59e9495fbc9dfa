"""Per-caption score prediction.

Off-season scores come from the source year's historical results: the real
score when the corps competed on that day, otherwise an exponential trend
fitted through the corps's other performances that year.  Live-season
scores prefer the season's own live results and fall back to the
historical predictor on the equivalent off-season day.
"""

from __future__ import annotations

import logging
import random
import warnings
from typing import Iterable, Mapping, Sequence

import numpy as np
from scipy.stats import linregress

from fantasycorps.config import predictor_cfg
from fantasycorps.errors import DataIntegrityWarning

log = logging.getLogger(__name__)

# source year -> that year's historical events
HistoricalDataset = Mapping[str, Sequence[Mapping]]


def _events(dataset: HistoricalDataset | Sequence[Mapping], source_year: str) -> Sequence[Mapping]:
    if isinstance(dataset, Mapping):
        return dataset.get(str(source_year)) or []
    return dataset


def _caption_score(event: Mapping, corps_name: str, caption: str) -> float | None:
    for entry in event.get("scores") or []:
        if entry.get("corps") == corps_name:
            value = (entry.get("captions") or {}).get(caption)
            if value is not None and value > 0:
                return float(value)
    return None


def score_on_day(
    events: Iterable[Mapping], corps_name: str, caption: str, day: int,
) -> float | None:
    """Ground truth: the first event on *day* where the corps has a positive score."""
    for event in events:
        if event.get("off_season_day") != day:
            continue
        score = _caption_score(event, corps_name, caption)
        if score is not None:
            return score
    return None


def collect_points(
    events: Iterable[Mapping], corps_name: str, caption: str,
) -> list[tuple[int, float]]:
    """(day, score) pairs for the corps, one per distinct day."""
    points: dict[int, float] = {}
    for event in events:
        day = event.get("off_season_day")
        if day is None or day in points:
            continue
        score = score_on_day(events, corps_name, caption, day)
        if score is not None:
            points[day] = score
    return sorted(points.items())


def fit_log_linear(points: Sequence[tuple[int, float]]) -> tuple[float, float]:
    """Least-squares fit of ``ln(score) = slope * day + intercept``.

    Non-positive scores are treated as ``ln(score) = 0``.
    """
    days = np.array([p[0] for p in points], dtype=float)
    scores = np.array([p[1] for p in points], dtype=float)
    logs = np.where(scores > 0, np.log(np.clip(scores, 1e-12, None)), 0.0)
    result = linregress(days, logs)
    return float(result.slope), float(result.intercept)


class ScorePredictor:
    """Historical caption-score predictor with a seeded jitter source."""

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def finish(self, raw: float) -> float:
        """Add jitter, round and clamp a trend value to the score range."""
        jittered = raw + self.rng.uniform(-predictor_cfg.jitter, predictor_cfg.jitter)
        rounded = round(jittered, predictor_cfg.decimals)
        return max(0.0, min(predictor_cfg.max_score, rounded))

    def trend(self, points: Sequence[tuple[int, float]], day: int) -> float:
        slope, intercept = fit_log_linear(points)
        return self.finish(float(np.exp(slope * day + intercept)))

    def predict(
        self,
        corps_name: str,
        source_year: str,
        caption: str,
        current_day: int,
        dataset: HistoricalDataset | Sequence[Mapping],
    ) -> float:
        events = _events(dataset, source_year)

        actual = score_on_day(events, corps_name, caption, current_day)
        if actual is not None:
            return actual

        points = collect_points(events, corps_name, caption)
        if len(points) >= 2:
            return self.trend(points, current_day)
        if len(points) == 1:
            return points[0][1]

        message = (
            f"No historical scores for {corps_name} ({source_year}), caption {caption}; using 0"
        )
        log.warning(message)
        warnings.warn(message, DataIntegrityWarning, stacklevel=2)
        return 0.0


def map_live_day(live_day: int) -> int:
    """Equivalent off-season day for a live-season day."""
    if live_day < predictor_cfg.live_season_start_day:
        return 1
    return live_day - predictor_cfg.live_day_offset


class LiveScorePredictor:
    """Live-season predictor: season trend first, history as fallback."""

    def __init__(self, base: ScorePredictor | None = None, rng: random.Random | None = None):
        self.base = base or ScorePredictor(rng)

    def predict(
        self,
        corps_name: str,
        source_year: str,
        caption: str,
        live_day: int,
        dataset: HistoricalDataset | Sequence[Mapping],
        live_points: Sequence[tuple[int, float]] = (),
    ) -> float:
        points = [(int(d), float(s)) for d, s in live_points if s]
        if len(points) >= predictor_cfg.min_live_points:
            return self.base.trend(points, live_day)
        return self.base.predict(
            corps_name, source_year, caption, map_live_day(live_day), dataset,
        )
