"""League matchups and season archival."""

from fantasycorps.league.archive import archive_season_results
from fantasycorps.league.matchups import LeagueMatchupEngine

__all__ = ["LeagueMatchupEngine", "archive_season_results"]
