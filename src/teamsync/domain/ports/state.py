"""Ports for persisting last-applied team definitions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from teamsync.domain.team import TeamState


@runtime_checkable
class TeamStateRepository(Protocol):
    """Persistence contract for ``TeamState`` records keyed by team id."""

    def get(self, team_id: int) -> TeamState | None: ...

    def save(self, state: TeamState) -> None: ...

    def delete(self, team_id: int) -> bool: ...

    def list_all(self) -> list[TeamState]: ...


@runtime_checkable
class TeamStateUnitOfWork(Protocol):
    """Unit-of-work boundary around the team state repository."""

    @property
    def teams(self) -> TeamStateRepository: ...

    def __enter__(self) -> TeamStateUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
