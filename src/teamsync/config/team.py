"""Desired team definitions validated at the configuration boundary."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .errors import InvalidTeamSpecError

if TYPE_CHECKING:
    from collections.abc import Iterable

DEFAULT_TEAM_ORG_ID = 1


@dataclass(frozen=True, slots=True, kw_only=True)
class TeamSpec:
    """Desired state of one Grafana team.

    ``users`` holds member keys (email addresses) in the order given. A key listed
    twice is rejected here so that the reconciliation core only ever sees clean
    input. ``create_users`` allows missing users to be provisioned remotely.
    """

    name: str
    email: str | None = None
    users: tuple[str, ...] = field(default_factory=tuple)
    create_users: bool = True
    org_id: int = DEFAULT_TEAM_ORG_ID

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise InvalidTeamSpecError("Team name must not be blank")
        if self.org_id < 1:
            raise InvalidTeamSpecError(f"Team org_id must be positive, got {self.org_id}")
        seen: set[str] = set()
        for user in self.users:
            if not user.strip():
                raise InvalidTeamSpecError("Team users must not contain blank entries")
            if user in seen:
                raise InvalidTeamSpecError(f"User '{user}' cannot be specified multiple times")
            seen.add(user)

    @classmethod
    def build(
        cls,
        *,
        name: str,
        email: str | None = None,
        users: Iterable[str] = (),
        create_users: bool = True,
        org_id: int = DEFAULT_TEAM_ORG_ID,
    ) -> TeamSpec:
        return cls(
            name=name,
            email=email or None,
            users=tuple(users),
            create_users=create_users,
            org_id=org_id,
        )
