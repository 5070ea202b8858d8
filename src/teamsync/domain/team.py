"""Team records exchanged with the remote service and the local state store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(slots=True, frozen=True)
class Team:
    """Remote view of a team."""

    id: int
    name: str
    org_id: int
    email: str | None = None
    member_count: int = 0


@dataclass(slots=True, frozen=True)
class TeamMember:
    """Remote view of one team membership."""

    team_id: int
    user_id: int
    email: str
    login: str | None = None


@dataclass(eq=False, kw_only=True)
class TeamState:
    """Last-applied definition of a team, used as the previous side of the next diff."""

    team_id: int
    name: str
    org_id: int
    email: str | None = None
    users: list[str] = field(default_factory=list[str])
    create_users: bool = True
    updated_at: datetime | None = None
