"""HTTP client for the Grafana team and user APIs."""

from __future__ import annotations

import asyncio
import secrets
from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx
from pydantic import TypeAdapter, ValidationError

from teamsync.adapters.http_resilience import ResilientClient
from teamsync.domain.ports.directory import DirectoryError, DirectoryErrorKind, DirectoryUser
from teamsync.domain.team import Team, TeamMember

from .schema import (
    CreateTeamResponse,
    CreateUserResponse,
    ErrorResponse,
    TeamMemberPayload,
    TeamPayload,
    UserPayload,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from teamsync.config.grafana import GrafanaConfig
    from teamsync.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

USERS_PAGE_SIZE: Final[int] = 1000

_USERS_ADAPTER = TypeAdapter(list[UserPayload])
_MEMBERS_ADAPTER = TypeAdapter(list[TeamMemberPayload])

_KIND_BY_STATUS: Final[dict[int, DirectoryErrorKind]] = {
    401: DirectoryErrorKind.UNAUTHORIZED,
    403: DirectoryErrorKind.UNAUTHORIZED,
    404: DirectoryErrorKind.NOT_FOUND,
    409: DirectoryErrorKind.CONFLICT,
}


class GrafanaAPIError(DirectoryError):
    """Raised when the Grafana API answers with an error status or an unexpected payload."""


def _error_from_response(response: httpx.Response) -> GrafanaAPIError:
    detail = response.reason_phrase
    try:
        payload = ErrorResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        payload = None
    if payload is not None and payload.message:
        detail = payload.message
    kind = _KIND_BY_STATUS.get(response.status_code, DirectoryErrorKind.OTHER)
    request = response.request
    return GrafanaAPIError(
        f"{request.method} {request.url.path} failed with {response.status_code}: {detail}",
        kind=kind,
        status_code=response.status_code,
    )


def _generate_password() -> str:
    return secrets.token_urlsafe(24)


class GrafanaClient:
    """Grafana adapter implementing the team directory port plus team CRUD.

    Every public method is blocking and opens its own HTTP client for the
    duration of the call.
    """

    def __init__(
        self,
        *,
        config: GrafanaConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        password_factory: Callable[[], str] = _generate_password,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._password_factory = password_factory

    @property
    def org_id(self) -> int:
        return self._config.org_id

    # directory port

    def list_users(self) -> list[DirectoryUser]:
        return asyncio.run(self._list_users_async())

    def create_user(self, key: str) -> int:
        return asyncio.run(self._create_user_async(key))

    def add_member(self, team_id: int, user_id: int) -> None:
        asyncio.run(
            self._call(
                "POST",
                f"/api/teams/{team_id}/members",
                json={"userId": user_id},
            )
        )

    def remove_member(self, team_id: int, user_id: int) -> None:
        asyncio.run(self._remove_member_async(team_id, user_id))

    # teams

    def create_team(self, name: str, email: str | None = None) -> int:
        payload = asyncio.run(
            self._call("POST", "/api/teams", json={"name": name, "email": email or ""})
        )
        return CreateTeamResponse.model_validate(payload).team_id

    def get_team(self, team_id: int) -> Team:
        payload = asyncio.run(self._call("GET", f"/api/teams/{team_id}"))
        team = TeamPayload.model_validate(payload)
        return Team(
            id=team.id,
            name=team.name,
            org_id=team.org_id,
            email=team.email,
            member_count=team.member_count,
        )

    def update_team(self, team_id: int, name: str, email: str | None = None) -> None:
        asyncio.run(
            self._call("PUT", f"/api/teams/{team_id}", json={"name": name, "email": email or ""})
        )

    def delete_team(self, team_id: int) -> None:
        asyncio.run(self._call("DELETE", f"/api/teams/{team_id}"))

    def team_members(self, team_id: int) -> list[TeamMember]:
        payload = asyncio.run(self._call("GET", f"/api/teams/{team_id}/members"))
        return [
            TeamMember(
                team_id=member.team_id,
                user_id=member.user_id,
                email=member.email,
                login=member.login,
            )
            for member in _MEMBERS_ADAPTER.validate_python(payload or [])
        ]

    async def _list_users_async(self) -> list[DirectoryUser]:
        users: list[DirectoryUser] = []
        page = 1
        async with self._client_factory(self._resilience) as client:
            while True:
                payload = await self._perform_request(
                    client,
                    "GET",
                    "/api/users",
                    params={"perpage": USERS_PAGE_SIZE, "page": page},
                )
                batch = _USERS_ADAPTER.validate_python(payload or [])
                users.extend(
                    DirectoryUser(id=user.id, key=user.email, login=user.login) for user in batch
                )
                if len(batch) < USERS_PAGE_SIZE:
                    break
                page += 1
        log.debug("Fetched %s Grafana users in %s page(s)", len(users), page)
        return users

    async def _remove_member_async(self, team_id: int, user_id: int) -> None:
        """Remove a member, reporting an absent member as a conflict.

        Grafana answers 404 both for a missing team and for a user that is not
        a member. The team is looked up to tell the two apart.
        """

        async with self._client_factory(self._resilience) as client:
            try:
                await self._perform_request(
                    client, "DELETE", f"/api/teams/{team_id}/members/{user_id}"
                )
            except GrafanaAPIError as exc:
                if not exc.is_not_found:
                    raise
                await self._perform_request(client, "GET", f"/api/teams/{team_id}")
                raise GrafanaAPIError(
                    f"User {user_id} is not a member of team {team_id}",
                    kind=DirectoryErrorKind.CONFLICT,
                    status_code=exc.status_code,
                ) from exc

    async def _create_user_async(self, key: str) -> int:
        body = {
            "email": key,
            "login": key,
            "name": key,
            "password": self._password_factory(),
            "OrgId": self._config.org_id,
        }
        payload = await self._call("POST", "/api/admin/users", json=body)
        user_id = CreateUserResponse.model_validate(payload).id
        log.info("Provisioned Grafana user %s (id=%s)", key, user_id)
        return user_id

    async def _call(
        self,
        method: str,
        path: str,
        *,
        json: object | None = None,
    ) -> object:
        async with self._client_factory(self._resilience) as client:
            return await self._perform_request(client, method, path, json=json)

    async def _perform_request(
        self,
        client: ResilientClient,
        method: str,
        path: str,
        *,
        json: object | None = None,
        params: dict[str, str | int] | None = None,
    ) -> object:
        if self._resilience.base_url is None:
            raise GrafanaAPIError("Missing Grafana base_url in resilience configuration")
        response = await client.request(method, path, json=json, params=params)
        if response.is_error:
            error = _error_from_response(response)
            log.debug("%s", error)
            raise error

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise GrafanaAPIError(f"Unexpected Grafana response payload for {path}") from exc
