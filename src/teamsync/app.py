"""Application orchestration entry points for managing Grafana teams."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from teamsync.adapters.grafana import GrafanaClient
from teamsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from teamsync.config.errors import InvalidTeamSpecError
from teamsync.config.grafana import DEFAULT_ADMIN_USER, get_grafana_config
from teamsync.domain.membership import MembershipSet
from teamsync.domain.ports.directory import DirectoryError
from teamsync.domain.reconciliation import (
    DESIRED_SET_NAME,
    PREVIOUS_SET_NAME,
    ReconciliationResult,
    reconcile,
)
from teamsync.domain.team import TeamState

if TYPE_CHECKING:
    from collections.abc import Sequence

    from teamsync.config.team import TeamSpec
    from teamsync.domain.ports.directory import TeamAdministration
    from teamsync.domain.ports.state import TeamStateUnitOfWork

ClientFactory = Callable[[int | None], "TeamAdministration"]
UnitOfWorkFactory = Callable[[], "TeamStateUnitOfWork"]

log = getLogger(__name__)


class TeamExistsError(RuntimeError):
    """Raised when creating a team whose name is already taken."""

    def __init__(self, name: str) -> None:
        super().__init__(f"A Grafana team with the name '{name}' already exists")
        self.name = name


class TeamNotFoundError(RuntimeError):
    """Raised when a team is missing remotely or has no stored state."""

    def __init__(self, team_id: int, *, reason: str) -> None:
        super().__init__(f"Team {team_id} {reason}")
        self.team_id = team_id


@dataclass(slots=True)
class TeamSyncResult:
    """Outcome of a create or update call."""

    state: TeamState
    reconciliation: ReconciliationResult


def _default_client(org_id: int | None = None) -> GrafanaClient:
    return GrafanaClient(config=get_grafana_config().for_org(org_id))


def _default_unit_of_work() -> SqlAlchemyUnitOfWork:
    if not is_started():
        startup()
    return SqlAlchemyUnitOfWork()


def _reconcile_members(
    client: TeamAdministration,
    *,
    team_id: int,
    previous_users: Sequence[str],
    spec: TeamSpec,
) -> ReconciliationResult:
    previous = MembershipSet.from_keys(previous_users, name=PREVIOUS_SET_NAME)
    desired = MembershipSet.from_keys(spec.users, name=DESIRED_SET_NAME)
    return reconcile(
        team_id,
        previous,
        desired,
        allow_create=spec.create_users,
        directory=client,
    )


def _save_state(unit_of_work_factory: UnitOfWorkFactory, state: TeamState) -> None:
    with unit_of_work_factory() as uow:
        uow.teams.save(state)
        uow.commit()


def _stored_state(unit_of_work_factory: UnitOfWorkFactory, team_id: int) -> TeamState | None:
    with unit_of_work_factory() as uow:
        return uow.teams.get(team_id)


def create_team(
    spec: TeamSpec,
    *,
    client_factory: ClientFactory | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> TeamSyncResult:
    """Create a team in ``spec.org_id`` and add its members.

    The team is recorded with an empty member list before membership is
    reconciled, so a failed reconcile can be finished by a later update.
    """

    client = (client_factory or _default_client)(spec.org_id)
    uow_factory = unit_of_work_factory or _default_unit_of_work

    try:
        team_id = client.create_team(spec.name, spec.email)
    except DirectoryError as exc:
        if exc.is_conflict:
            raise TeamExistsError(spec.name) from exc
        raise
    log.info("Created team %r with id %s in org %s", spec.name, team_id, spec.org_id)

    state = TeamState(
        team_id=team_id,
        name=spec.name,
        org_id=spec.org_id,
        email=spec.email,
        users=[],
        create_users=spec.create_users,
    )
    _save_state(uow_factory, state)

    result = _reconcile_members(client, team_id=team_id, previous_users=(), spec=spec)
    state.users = list(spec.users)
    _save_state(uow_factory, state)
    return TeamSyncResult(state=state, reconciliation=result)


def update_team(
    team_id: int,
    spec: TeamSpec,
    *,
    client_factory: ClientFactory | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> TeamSyncResult:
    """Push name/email changes and reconcile membership against the stored state.

    A team cannot move between organisations, so ``spec.org_id`` must match
    the org the team was recorded in.
    """

    uow_factory = unit_of_work_factory or _default_unit_of_work

    stored = _stored_state(uow_factory, team_id)
    if stored is None:
        raise TeamNotFoundError(team_id, reason="has no stored state; import it first")
    if stored.org_id != spec.org_id:
        raise InvalidTeamSpecError(
            f"Team {team_id} belongs to org {stored.org_id}; org_id {spec.org_id} cannot change"
        )

    client = (client_factory or _default_client)(spec.org_id)
    if stored.name != spec.name or stored.email != spec.email:
        client.update_team(team_id, spec.name, spec.email)
        log.info("Updated team %s: name=%r, email=%r", team_id, spec.name, spec.email)

    result = _reconcile_members(
        client,
        team_id=team_id,
        previous_users=stored.users,
        spec=spec,
    )

    state = TeamState(
        team_id=team_id,
        name=spec.name,
        org_id=spec.org_id,
        email=spec.email,
        users=list(spec.users),
        create_users=spec.create_users,
    )
    _save_state(uow_factory, state)
    return TeamSyncResult(state=state, reconciliation=result)


def team_exists(
    team_id: int,
    *,
    org_id: int | None = None,
    client_factory: ClientFactory | None = None,
) -> bool:
    client = (client_factory or _default_client)(org_id)
    try:
        client.get_team(team_id)
    except DirectoryError as exc:
        if exc.is_not_found:
            return False
        raise
    return True


def read_team(
    team_id: int,
    *,
    org_id: int | None = None,
    client_factory: ClientFactory | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    admin_user: str | None = DEFAULT_ADMIN_USER,
) -> TeamState | None:
    """Refresh the stored state of ``team_id`` from Grafana.

    The team is looked up in ``org_id``, falling back to the org it was
    recorded in and then to the configured org. Members whose login equals
    ``admin_user`` are left out. A team that no longer exists is dropped from
    the store and ``None`` is returned.
    """

    uow_factory = unit_of_work_factory or _default_unit_of_work

    stored = _stored_state(uow_factory, team_id)
    if org_id is None and stored is not None:
        org_id = stored.org_id
    client = (client_factory or _default_client)(org_id)

    try:
        team = client.get_team(team_id)
    except DirectoryError as exc:
        if not exc.is_not_found:
            raise
        log.warning("Removing team %s from state because it no longer exists in Grafana", team_id)
        with uow_factory() as uow:
            uow.teams.delete(team_id)
            uow.commit()
        return None

    users = [
        member.email
        for member in client.team_members(team_id)
        if admin_user is None or member.login != admin_user
    ]

    state = TeamState(
        team_id=team.id,
        name=team.name,
        org_id=team.org_id,
        email=team.email,
        users=users,
        create_users=stored.create_users if stored is not None else True,
    )
    _save_state(uow_factory, state)
    return state


def import_team(
    team_id: int,
    *,
    org_id: int | None = None,
    client_factory: ClientFactory | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    admin_user: str | None = DEFAULT_ADMIN_USER,
) -> TeamState:
    """Start tracking an existing Grafana team."""

    factory = client_factory or _default_client
    if not team_exists(team_id, org_id=org_id, client_factory=factory):
        raise TeamNotFoundError(team_id, reason="does not exist in Grafana")
    state = read_team(
        team_id,
        org_id=org_id,
        client_factory=factory,
        unit_of_work_factory=unit_of_work_factory,
        admin_user=admin_user,
    )
    if state is None:
        raise TeamNotFoundError(team_id, reason="disappeared from Grafana during import")
    log.info("Imported team %s with %s member(s)", team_id, len(state.users))
    return state


def delete_team(
    team_id: int,
    *,
    org_id: int | None = None,
    client_factory: ClientFactory | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> None:
    uow_factory = unit_of_work_factory or _default_unit_of_work

    stored = _stored_state(uow_factory, team_id)
    if org_id is None and stored is not None:
        org_id = stored.org_id
    client = (client_factory or _default_client)(org_id)

    client.delete_team(team_id)
    with uow_factory() as uow:
        uow.teams.delete(team_id)
        uow.commit()
    log.info("Deleted team %s", team_id)
