"""Database layer — connection, schema, migrations, and repositories."""

from fantasycorps.db.connection import connect, get_connection, transaction
from fantasycorps.db.migrations import apply_migrations, get_schema_version
from fantasycorps.db.repositories import (
    DatasetRepository,
    HistoricalRepository,
    LeagueRepository,
    LineupClaimRepository,
    LiveScoreRepository,
    ProfileRepository,
    RecapRepository,
    SeasonRepository,
    StatsRepository,
    TrophyRepository,
)
from fantasycorps.db.schema import SCHEMA_SQL, init_schema

__all__ = [
    "connect",
    "get_connection",
    "transaction",
    "apply_migrations",
    "get_schema_version",
    "init_schema",
    "SCHEMA_SQL",
    "SeasonRepository",
    "DatasetRepository",
    "HistoricalRepository",
    "LiveScoreRepository",
    "ProfileRepository",
    "LineupClaimRepository",
    "RecapRepository",
    "TrophyRepository",
    "LeagueRepository",
    "StatsRepository",
]
