"""Identity resolution: attach remote user ids to membership changes."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from teamsync.domain.errors import CreationError, UnknownUserError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from teamsync.domain.membership import MembershipChange
    from teamsync.domain.ports.directory import CreateUser, DirectoryUser

log = getLogger(__name__)


def known_users_from_snapshot(users: Sequence[DirectoryUser]) -> dict[str, int]:
    """Index a directory snapshot by member key."""

    return {user.key: user.id for user in users}


def resolve_identities(
    changes: Sequence[MembershipChange],
    known_users: Mapping[str, int],
    *,
    allow_create: bool,
    create_user: CreateUser | None = None,
) -> list[MembershipChange]:
    """Set ``member.id`` on every change from ``known_users``.

    Keys missing from the snapshot raise ``UnknownUserError`` unless
    ``allow_create`` is set, in which case ``create_user`` provisions a new
    remote account. That call is irreversible from this side, so it never runs
    when ``allow_create`` is false.

    The batch is atomic: ids are only written back once every change resolved,
    so a failure leaves the input changes untouched.
    """

    if allow_create and create_user is None:
        raise ValueError("create_user is required when allow_create is set")

    resolved_ids: list[int] = []
    for change in changes:
        key = change.member.key
        user_id = known_users.get(key)
        if user_id is None:
            if not allow_create or create_user is None:
                raise UnknownUserError(key)
            try:
                user_id = create_user(key)
            except Exception as exc:
                raise CreationError(key) from exc
            log.info("Created user %s with id %s", key, user_id)
        resolved_ids.append(user_id)

    for change, user_id in zip(changes, resolved_ids, strict=True):
        change.member.id = user_id
    return list(changes)
