"""SQLAlchemy mapping metadata for persisted team state."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Integer,
    String,
    Table,
    TypeDecorator,
    orm,
)

from teamsync.domain.team import TeamState

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s",
}

team_state_table = Table(
    "team_state",
    mapper_registry.metadata,
    Column("team_id", Integer, primary_key=True, autoincrement=False),
    Column("name", String, nullable=False),
    Column("org_id", Integer, nullable=False),
    Column("email", String, nullable=True),
    # member keys in the order they were last applied
    Column("users", JSON, nullable=False, default=list),
    Column("create_users", Boolean, nullable=False, default=True),
    Column("updated_at", UTCDateTime, nullable=True),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the team state model."""

    log.info("Starting SQLAlchemy mappers")
    mapper_registry.map_imperatively(TeamState, team_state_table)
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
