"""Caption-score aggregation into fantasy show totals."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Mapping

from fantasycorps.config import rules


@dataclass(frozen=True)
class ScoreBreakdown:
    ge_score: float
    visual_score: float
    music_score: float

    @property
    def total(self) -> float:
        return self.ge_score + self.visual_score + self.music_score

    def to_dict(self) -> dict:
        return {**asdict(self), "total_score": self.total}


def _mean(scores: Mapping[str, float], captions: tuple[str, ...]) -> float:
    return sum(scores.get(c, 0.0) for c in captions) / len(captions)


def aggregate(scores: Mapping[str, float]) -> ScoreBreakdown:
    """GE is the sum of GE1/GE2; Visual and Music are caption means."""
    return ScoreBreakdown(
        ge_score=sum(scores.get(c, 0.0) for c in rules.ge_captions),
        visual_score=_mean(scores, rules.visual_captions),
        music_score=_mean(scores, rules.music_captions),
    )
