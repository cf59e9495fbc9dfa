"""Season orchestration — calendar, schedule and lifecycle state machine."""

from fantasycorps.season.state_machine import (
    SeasonAction,
    SeasonStatus,
    can_transition,
    decide_action,
    week_of,
)

__all__ = [
    "SeasonAction",
    "SeasonStatus",
    "can_transition",
    "decide_action",
    "week_of",
]
