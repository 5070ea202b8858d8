"""Ports for the remote user directory and team membership endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from teamsync.domain.team import Team, TeamMember


class DirectoryErrorKind(StrEnum):
    """Structured classification of a failed remote call."""

    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    OTHER = "other"


class DirectoryError(RuntimeError):
    """Raised by directory adapters. Callers branch on ``kind``, never on the message."""

    def __init__(
        self,
        message: str,
        *,
        kind: DirectoryErrorKind = DirectoryErrorKind.OTHER,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code

    @property
    def is_conflict(self) -> bool:
        return self.kind is DirectoryErrorKind.CONFLICT

    @property
    def is_not_found(self) -> bool:
        return self.kind is DirectoryErrorKind.NOT_FOUND


@dataclass(slots=True, frozen=True)
class DirectoryUser:
    """One entry of a directory snapshot."""

    id: int
    key: str
    login: str | None = None


@runtime_checkable
class ListUsers(Protocol):
    def __call__(self) -> Sequence[DirectoryUser]: ...


@runtime_checkable
class CreateUser(Protocol):
    def __call__(self, key: str) -> int: ...


@runtime_checkable
class ChangeMembership(Protocol):
    def __call__(self, team_id: int, user_id: int) -> None: ...


@runtime_checkable
class TeamDirectory(Protocol):
    """Remote collaborator consumed by the reconciliation core.

    ``add_member`` and ``remove_member`` raise ``DirectoryError`` with kind
    ``CONFLICT`` when the membership is already in the requested state.
    ``create_user`` provisions a real remote account.
    """

    def list_users(self) -> Sequence[DirectoryUser]: ...

    def create_user(self, key: str) -> int: ...

    def add_member(self, team_id: int, user_id: int) -> None: ...

    def remove_member(self, team_id: int, user_id: int) -> None: ...


@runtime_checkable
class TeamAdministration(TeamDirectory, Protocol):
    """Directory that can also manage the teams themselves.

    ``get_team`` raises ``DirectoryError`` with kind ``NOT_FOUND`` for unknown ids and
    ``create_team`` raises kind ``CONFLICT`` when the name is taken.
    """

    def create_team(self, name: str, email: str | None = None) -> int: ...

    def get_team(self, team_id: int) -> Team: ...

    def update_team(self, team_id: int, name: str, email: str | None = None) -> None: ...

    def delete_team(self, team_id: int) -> None: ...

    def team_members(self, team_id: int) -> list[TeamMember]: ...


__all__ = [
    "ChangeMembership",
    "CreateUser",
    "DirectoryError",
    "DirectoryErrorKind",
    "DirectoryUser",
    "ListUsers",
    "TeamAdministration",
    "TeamDirectory",
]
