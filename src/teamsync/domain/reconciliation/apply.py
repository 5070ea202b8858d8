"""Change applier: issue membership calls for resolved changes.

Changes run one by one in the order given. A conflict response means the
membership is already in the requested state and counts as success. Any other
failure stops the batch; changes already applied stay applied and nothing is
retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from teamsync.domain.errors import ApplyError
from teamsync.domain.membership import ChangeKind
from teamsync.domain.ports.directory import DirectoryError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from teamsync.domain.membership import MembershipChange
    from teamsync.domain.ports.directory import ChangeMembership

log = getLogger(__name__)


@dataclass(slots=True)
class ApplyResult:
    """Summary of the membership calls issued by the applier."""

    added: int = 0
    removed: int = 0
    conflicts: int = 0

    @property
    def applied(self) -> int:
        return self.added + self.removed


def apply_changes(
    team_id: int,
    changes: Iterable[MembershipChange],
    *,
    add_member: ChangeMembership,
    remove_member: ChangeMembership,
) -> ApplyResult:
    result = ApplyResult()
    for change in changes:
        member = change.member
        removing = change.kind is ChangeKind.REMOVE
        operation = "remove" if removing else "add"
        call = remove_member if removing else add_member

        if not member.is_resolved:
            raise ApplyError(
                team_id=team_id,
                user_id=member.id,
                operation=operation,
                reason=f"user '{member.key}' has no resolved id",
            )

        try:
            call(team_id, member.id)
        except DirectoryError as exc:
            if not exc.is_conflict:
                raise ApplyError(
                    team_id=team_id, user_id=member.id, operation=operation, reason=str(exc)
                ) from exc
            log.info(
                "Skipping %s of user %s (%s) on team %s: already in requested state",
                operation,
                member.key,
                member.id,
                team_id,
            )
            result.conflicts += 1
            continue
        except Exception as exc:
            raise ApplyError(
                team_id=team_id, user_id=member.id, operation=operation, reason=str(exc)
            ) from exc

        log.debug(
            "Applied %s of user %s (%s) on team %s", operation, member.key, member.id, team_id
        )
        if removing:
            result.removed += 1
        else:
            result.added += 1
    return result
