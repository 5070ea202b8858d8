"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import select

from teamsync.adapters.sqlalchemy.mappings import team_state_table
from teamsync.domain.team import TeamState

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


class SqlAlchemyTeamStateRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, team_id: int) -> TeamState | None:
        return self.session.get(TeamState, team_id)

    def save(self, state: TeamState) -> None:
        """Insert ``state`` or overwrite the stored record for the same team."""

        state.updated_at = datetime.now(UTC)
        existing = self.session.get(TeamState, state.team_id)
        if existing is None:
            self.session.add(state)
            return
        if existing is state:
            return
        existing.name = state.name
        existing.org_id = state.org_id
        existing.email = state.email
        existing.users = list(state.users)
        existing.create_users = state.create_users
        existing.updated_at = state.updated_at

    def delete(self, team_id: int) -> bool:
        existing = self.session.get(TeamState, team_id)
        if existing is None:
            return False
        self.session.delete(existing)
        return True

    def list_all(self) -> list[TeamState]:
        stmt = select(TeamState).order_by(team_state_table.c.team_id)
        return list(self.session.execute(stmt).scalars())


if TYPE_CHECKING:
    from teamsync.domain.ports.state import TeamStateRepository

    def _repository_check(session: Session) -> TeamStateRepository:
        return SqlAlchemyTeamStateRepository(session)
