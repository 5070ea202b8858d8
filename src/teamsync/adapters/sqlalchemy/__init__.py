"""SQLAlchemy adapter package for teamsync."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers, team_state_table
from .repositories import SqlAlchemyTeamStateRepository
from .unit_of_work import SqlAlchemyUnitOfWork, StartupError, shutdown, startup

__all__ = [
    "SqlAlchemyTeamStateRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "create_all_tables",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
    "team_state_table",
]
