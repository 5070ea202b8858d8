"""Orchestrator for team membership reconciliation.

The engine composes the differ, resolver and applier around four collaborator
callables. It holds no state between calls; reconciling the same team twice
at once must be prevented by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .apply import ApplyResult, apply_changes
from .diff import diff_memberships
from .resolve import known_users_from_snapshot, resolve_identities

if TYPE_CHECKING:
    from teamsync.domain.membership import MembershipChange, MembershipSet
    from teamsync.domain.ports.directory import (
        ChangeMembership,
        CreateUser,
        ListUsers,
        TeamDirectory,
    )

log = getLogger(__name__)


@dataclass(slots=True)
class ReconciliationResult:
    """Outcome of one reconcile call."""

    changes: list[MembershipChange] = field(default_factory=list["MembershipChange"])
    created_users: list[str] = field(default_factory=list[str])
    applied: ApplyResult = field(default_factory=ApplyResult)

    @property
    def is_noop(self) -> bool:
        return not self.changes


@dataclass(slots=True)
class ReconciliationEngine:
    """Run diff, resolve and apply for one team."""

    list_users: ListUsers
    create_user: CreateUser
    add_member: ChangeMembership
    remove_member: ChangeMembership

    @classmethod
    def for_directory(cls, directory: TeamDirectory) -> ReconciliationEngine:
        return cls(
            list_users=directory.list_users,
            create_user=directory.create_user,
            add_member=directory.add_member,
            remove_member=directory.remove_member,
        )

    def reconcile(
        self,
        team_id: int,
        previous: MembershipSet,
        desired: MembershipSet,
        *,
        allow_create: bool,
    ) -> ReconciliationResult:
        """Bring the remote membership of ``team_id`` from ``previous`` to ``desired``."""

        result = ReconciliationResult(changes=diff_memberships(previous, desired))
        if result.is_noop:
            log.info("Team %s membership already up to date", team_id)
            return result

        def create_and_record(key: str) -> int:
            user_id = self.create_user(key)
            result.created_users.append(key)
            return user_id

        known_users = known_users_from_snapshot(self.list_users())
        resolve_identities(
            result.changes,
            known_users,
            allow_create=allow_create,
            create_user=create_and_record,
        )
        result.applied = apply_changes(
            team_id,
            result.changes,
            add_member=self.add_member,
            remove_member=self.remove_member,
        )
        log.info(
            "Reconciled team %s: added=%s, removed=%s, conflicts=%s, created_users=%s",
            team_id,
            result.applied.added,
            result.applied.removed,
            result.applied.conflicts,
            len(result.created_users),
        )
        return result


def reconcile(
    team_id: int,
    previous: MembershipSet,
    desired: MembershipSet,
    *,
    allow_create: bool,
    directory: TeamDirectory,
) -> ReconciliationResult:
    """Reconcile ``team_id`` against ``directory``. See ``ReconciliationEngine``."""

    engine = ReconciliationEngine.for_directory(directory)
    return engine.reconcile(team_id, previous, desired, allow_create=allow_create)
