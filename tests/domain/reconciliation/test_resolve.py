from __future__ import annotations

import pytest

from teamsync.domain.errors import CreationError, UnknownUserError
from teamsync.domain.membership import ChangeKind, Member, MembershipChange
from teamsync.domain.ports.directory import DirectoryUser
from teamsync.domain.reconciliation import known_users_from_snapshot, resolve_identities


def _changes(*keys: str) -> list[MembershipChange]:
    return [MembershipChange(ChangeKind.ADD, Member(key=key)) for key in keys]


def test_resolve_uses_known_ids() -> None:
    changes = _changes("a@x.com")

    resolved = resolve_identities(changes, {"a@x.com": 1}, allow_create=False)

    assert [change.member.id for change in resolved] == [1]
    assert changes[0].member.id == 1


def test_resolve_fails_for_unknown_user_when_creation_disabled() -> None:
    changes = _changes("a@x.com", "b@x.com")

    with pytest.raises(UnknownUserError) as excinfo:
        resolve_identities(changes, {"a@x.com": 1}, allow_create=False)

    assert excinfo.value.key == "b@x.com"
    assert all(not change.member.is_resolved for change in changes)


def test_resolve_never_creates_when_creation_disabled() -> None:
    created: list[str] = []

    def create_user(key: str) -> int:
        created.append(key)
        return 99

    with pytest.raises(UnknownUserError):
        resolve_identities(_changes("b@x.com"), {}, allow_create=False, create_user=create_user)

    assert created == []


def test_resolve_creates_missing_users_when_allowed() -> None:
    created: list[str] = []

    def create_user(key: str) -> int:
        created.append(key)
        return 2

    resolved = resolve_identities(
        _changes("a@x.com", "b@x.com"),
        {"a@x.com": 1},
        allow_create=True,
        create_user=create_user,
    )

    assert [(change.member.key, change.member.id) for change in resolved] == [
        ("a@x.com", 1),
        ("b@x.com", 2),
    ]
    assert created == ["b@x.com"]


def test_resolve_wraps_creation_failure_and_leaves_batch_unresolved() -> None:
    boom = RuntimeError("boom")

    def create_user(key: str) -> int:
        raise boom

    changes = _changes("a@x.com", "b@x.com")

    with pytest.raises(CreationError) as excinfo:
        resolve_identities(changes, {"a@x.com": 1}, allow_create=True, create_user=create_user)

    assert excinfo.value.key == "b@x.com"
    assert excinfo.value.__cause__ is boom
    assert all(not change.member.is_resolved for change in changes)


def test_resolve_requires_create_callable_when_creation_allowed() -> None:
    with pytest.raises(ValueError, match="create_user"):
        resolve_identities(_changes("a@x.com"), {}, allow_create=True)


def test_known_users_from_snapshot_indexes_by_key() -> None:
    snapshot = [DirectoryUser(id=1, key="a@x.com"), DirectoryUser(id=2, key="b@x.com")]

    assert known_users_from_snapshot(snapshot) == {"a@x.com": 1, "b@x.com": 2}
