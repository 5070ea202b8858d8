from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from teamsync.app import (
    TeamExistsError,
    TeamNotFoundError,
    create_team,
    delete_team,
    import_team,
    read_team,
    team_exists,
    update_team,
)
from teamsync.config import InvalidTeamSpecError, TeamSpec
from teamsync.domain.errors import ApplyError, UnknownUserError
from teamsync.domain.team import TeamState
from tests.support.directory import FakeDirectory
from tests.support.grafana import GrafanaStub

if TYPE_CHECKING:
    from collections.abc import Callable

    from teamsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
    from teamsync.config.grafana import GrafanaConfig


def _stored(uow_factory: Callable[[], SqlAlchemyUnitOfWork], team_id: int) -> TeamState | None:
    with uow_factory() as uow:
        return uow.teams.get(team_id)


def test_create_team_adds_members_and_stores_state(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    directory = FakeDirectory(users={"a@x.com": 10}, next_user_id=20)
    spec = TeamSpec.build(name="ops", email="ops@x.com", users=["a@x.com", "b@x.com"])

    result = create_team(
        spec,
        client_factory=lambda _org: directory,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    team_id = result.state.team_id
    assert directory.members[team_id] == {10, 20}
    assert result.reconciliation.created_users == ["b@x.com"]
    stored = _stored(sqlite_unit_of_work, team_id)
    assert stored is not None
    assert stored.users == ["a@x.com", "b@x.com"]
    assert stored.email == "ops@x.com"


def test_create_team_conflict_raises_team_exists(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    directory = FakeDirectory()
    directory.create_team("ops")

    with pytest.raises(TeamExistsError, match="ops"):
        create_team(
            TeamSpec.build(name="ops"),
            client_factory=lambda _org: directory,
            unit_of_work_factory=sqlite_unit_of_work,
        )


def test_create_team_keeps_empty_state_when_members_fail(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    directory = FakeDirectory()
    spec = TeamSpec.build(name="ops", users=["ghost@x.com"], create_users=False)

    with pytest.raises(UnknownUserError):
        create_team(
            spec,
            client_factory=lambda _org: directory,
            unit_of_work_factory=sqlite_unit_of_work,
        )

    stored = _stored(sqlite_unit_of_work, 1)
    assert stored is not None
    assert stored.users == []


def test_update_team_reconciles_against_stored_state(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    directory = FakeDirectory(users={"a@x.com": 10, "b@x.com": 11, "c@x.com": 12})
    created = create_team(
        TeamSpec.build(name="ops", users=["a@x.com", "b@x.com"]),
        client_factory=lambda _org: directory,
        unit_of_work_factory=sqlite_unit_of_work,
    )
    team_id = created.state.team_id
    directory.calls.clear()

    result = update_team(
        team_id,
        TeamSpec.build(name="platform", users=["b@x.com", "c@x.com"]),
        client_factory=lambda _org: directory,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert directory.calls_named("update_team") == [("update_team", team_id)]
    assert directory.calls_named("add_member") == [("add_member", team_id, 12)]
    assert directory.calls_named("remove_member") == [("remove_member", team_id, 10)]
    assert result.reconciliation.applied.applied == 2
    assert directory.teams[team_id].name == "platform"
    stored = _stored(sqlite_unit_of_work, team_id)
    assert stored is not None
    assert stored.users == ["b@x.com", "c@x.com"]
    assert stored.name == "platform"


def test_update_team_without_changes_makes_no_remote_calls(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    directory = FakeDirectory(users={"a@x.com": 10})
    spec = TeamSpec.build(name="ops", users=["a@x.com"])
    team_id = create_team(
        spec, client_factory=lambda _org: directory, unit_of_work_factory=sqlite_unit_of_work
    ).state.team_id
    directory.calls.clear()

    result = update_team(
        team_id,
        spec,
        client_factory=lambda _org: directory,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert result.reconciliation.is_noop
    assert directory.calls == []


def test_update_team_requires_stored_state(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with pytest.raises(TeamNotFoundError, match="import"):
        update_team(
            99,
            TeamSpec.build(name="ops"),
            client_factory=lambda _org: FakeDirectory(),
            unit_of_work_factory=sqlite_unit_of_work,
        )


def test_read_team_refreshes_users_excluding_admin(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    directory = FakeDirectory(users={"admin@x.com": 1, "a@x.com": 10}, logins={1: "admin"})
    team_id = directory.create_team("ops")
    directory.members[team_id] = {1, 10}

    state = read_team(
        team_id,
        client_factory=lambda _org: directory,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert state is not None
    assert state.users == ["a@x.com"]
    stored = _stored(sqlite_unit_of_work, team_id)
    assert stored is not None
    assert stored.users == ["a@x.com"]


def test_read_team_drops_state_of_missing_team(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.teams.save(TeamState(team_id=5, name="gone", org_id=1, users=["a@x.com"]))
        uow.commit()

    state = read_team(
        5,
        client_factory=lambda _org: FakeDirectory(),
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert state is None
    assert _stored(sqlite_unit_of_work, 5) is None


def test_team_exists() -> None:
    directory = FakeDirectory()
    team_id = directory.create_team("ops")

    assert team_exists(team_id, client_factory=lambda _org: directory)
    assert not team_exists(team_id + 1, client_factory=lambda _org: directory)


def test_import_team_tracks_existing_team(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    directory = FakeDirectory(users={"a@x.com": 10})
    team_id = directory.create_team("ops")
    directory.members[team_id] = {10}

    state = import_team(
        team_id,
        client_factory=lambda _org: directory,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert state.users == ["a@x.com"]
    assert state.create_users is True


def test_import_missing_team_fails(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with pytest.raises(TeamNotFoundError, match="does not exist"):
        import_team(
            3,
            client_factory=lambda _org: FakeDirectory(),
            unit_of_work_factory=sqlite_unit_of_work,
        )


def test_delete_team_removes_remote_team_and_state(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    directory = FakeDirectory()
    team_id = create_team(
        TeamSpec.build(name="ops"),
        client_factory=lambda _org: directory,
        unit_of_work_factory=sqlite_unit_of_work,
    ).state.team_id

    delete_team(
        team_id,
        client_factory=lambda _org: directory,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert team_id not in directory.teams
    assert _stored(sqlite_unit_of_work, team_id) is None


def test_create_team_sends_requests_to_requested_org(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
    grafana_config: GrafanaConfig,
) -> None:
    stub = GrafanaStub(users={"a@x.com": 10})
    spec = TeamSpec.build(name="ops", users=["a@x.com", "b@x.com"], org_id=5)

    result = create_team(
        spec,
        client_factory=stub.client_factory(grafana_config),
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert stub.requests
    assert set(stub.org_headers()) == {"5"}
    (create_user,) = [r for r in stub.requests if r.url.path == "/api/admin/users"]
    assert json.loads(create_user.content)["OrgId"] == 5
    assert result.state.org_id == 5


def test_read_team_uses_org_of_stored_state(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
    grafana_config: GrafanaConfig,
) -> None:
    stub = GrafanaStub(users={"a@x.com": 10}, teams={7: "ops"}, members={7: {10}})
    with sqlite_unit_of_work() as uow:
        uow.teams.save(TeamState(team_id=7, name="ops", org_id=3, users=[]))
        uow.commit()

    state = read_team(
        7,
        client_factory=stub.client_factory(grafana_config),
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert state is not None
    assert state.org_id == 3
    assert state.users == ["a@x.com"]
    assert set(stub.org_headers()) == {"3"}


def test_update_team_rejects_org_change(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    directory = FakeDirectory()
    team_id = create_team(
        TeamSpec.build(name="ops"),
        client_factory=lambda _org: directory,
        unit_of_work_factory=sqlite_unit_of_work,
    ).state.team_id
    directory.calls.clear()

    with pytest.raises(InvalidTeamSpecError, match="org"):
        update_team(
            team_id,
            TeamSpec.build(name="ops", org_id=2),
            client_factory=lambda _org: directory,
            unit_of_work_factory=sqlite_unit_of_work,
        )

    assert directory.calls == []


def test_update_team_converges_after_partially_applied_removals(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
    grafana_config: GrafanaConfig,
) -> None:
    stub = GrafanaStub(
        users={"a@x.com": 10, "b@x.com": 11, "c@x.com": 12},
        teams={7: "ops"},
        members={7: {10, 12}},
        failing_removals={12},
    )
    with sqlite_unit_of_work() as uow:
        uow.teams.save(TeamState(team_id=7, name="ops", org_id=1, users=["a@x.com", "c@x.com"]))
        uow.commit()
    spec = TeamSpec.build(name="ops", users=["b@x.com"])
    client_factory = stub.client_factory(grafana_config)

    with pytest.raises(ApplyError):
        update_team(
            7, spec, client_factory=client_factory, unit_of_work_factory=sqlite_unit_of_work
        )

    assert stub.members[7] == {11, 12}
    stored = _stored(sqlite_unit_of_work, 7)
    assert stored is not None
    assert stored.users == ["a@x.com", "c@x.com"]

    result = update_team(
        7, spec, client_factory=client_factory, unit_of_work_factory=sqlite_unit_of_work
    )

    assert stub.members[7] == {11}
    assert result.reconciliation.applied.removed == 1
    assert result.reconciliation.applied.conflicts == 2
    stored = _stored(sqlite_unit_of_work, 7)
    assert stored is not None
    assert stored.users == ["b@x.com"]
