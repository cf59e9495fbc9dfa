"""Lineup submission and weekly show selection."""

from fantasycorps.lineup.shows import select_shows
from fantasycorps.lineup.validator import LineupResult, LineupValidator, save_lineup

__all__ = ["LineupResult", "LineupValidator", "save_lineup", "select_shows"]
