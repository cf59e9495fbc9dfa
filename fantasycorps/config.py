"""Central configuration — every magic number in one place."""

from __future__ import annotations

from dataclasses import dataclass, field


# ---------------------------------------------------------------------------
# Game rules
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class GameRules:
    captions: tuple[str, ...] = ("GE1", "GE2", "VP", "VA", "CG", "B", "MA", "P")
    ge_captions: tuple[str, ...] = ("GE1", "GE2")
    visual_captions: tuple[str, ...] = ("VP", "VA", "CG")
    music_captions: tuple[str, ...] = ("B", "MA", "P")

    point_caps: dict[str, int] = field(default_factory=lambda: {
        "worldClass": 150,
        "openClass": 120,
        "aClass": 60,
        "soundSport": 90,
    })
    season_point_cap: int = 150

    weekly_trade_limit: int = 3
    off_season_unlimited_weeks: tuple[int, ...] = (1,)
    live_season_unlimited_weeks: tuple[int, ...] = (1, 2, 3)
    registration_grace_days: int = 7  # Unlimited trades after a new registration

    max_shows_per_week: int = 4


# ---------------------------------------------------------------------------
# Schedule generation
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ScheduleConfig:
    season_length: int = 49
    # (day, case-insensitive name pattern, mandatory)
    marquee_shows: tuple[tuple[int, str, bool], ...] = (
        (49, "DCI World Championship Finals", True),
        (48, "DCI World Championship Semifinals", True),
        (47, "DCI World Championship Prelims", True),
        (28, "DCI Southwestern Championship", True),
        (35, "championship", False),
    )
    multi_day_pattern: str = "DCI Eastern Classic"
    multi_day_days: tuple[int, int] = (41, 42)
    rest_days: tuple[int, ...] = (45, 46)
    two_show_ratio: float = 0.2
    excluded_name_fragment: str = "open class"


# ---------------------------------------------------------------------------
# Score prediction
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PredictorConfig:
    max_score: float = 20.0
    jitter: float = 0.25
    decimals: int = 3
    min_live_points: int = 3
    # Live day -> off-season day mapping. Undocumented upstream; kept as found.
    live_season_start_day: int = 22
    live_day_offset: int = 21


# ---------------------------------------------------------------------------
# Championship week
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ChampionshipConfig:
    prelims_day: int = 47
    semifinals_day: int = 48
    finals_day: int = 49
    semifinals_cutoff: int = 25
    finals_cutoff: int = 12
    regional_trophy_days: tuple[int, ...] = (28, 35, 41, 42)
    medals: tuple[str, ...] = ("gold", "silver", "bronze")
    predicted_show_name: str = "Predicted Scores - Day {day}"
    predicted_show_location: str = "Cloud Arena"


# ---------------------------------------------------------------------------
# Season calendar
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CalendarConfig:
    off_season_days: int = 49
    live_season_days: int = 70
    spring_training_days: int = 21
    finals_month: int = 8
    # Most recent first: Finale ends the day before the live season starts.
    off_season_types: tuple[str, ...] = (
        "Finale", "Crescendo", "Scherzo", "Adagio", "Allegro", "Overture",
    )
    top_point_tier: int = 25
    bottom_point_tier: int = 1


# ---------------------------------------------------------------------------
# Singleton instances (importable as `from fantasycorps.config import rules, ...`)
# ---------------------------------------------------------------------------
rules = GameRules()
schedule_cfg = ScheduleConfig()
predictor_cfg = PredictorConfig()
championship_cfg = ChampionshipConfig()
calendar_cfg = CalendarConfig()

CORPS_CLASSES: tuple[str, ...] = tuple(rules.point_caps)
