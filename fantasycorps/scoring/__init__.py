"""Score prediction, aggregation, ingestion and daily processing."""

from fantasycorps.scoring.aggregate import ScoreBreakdown, aggregate
from fantasycorps.scoring.predictor import LiveScorePredictor, ScorePredictor

__all__ = ["ScoreBreakdown", "aggregate", "LiveScorePredictor", "ScorePredictor"]
