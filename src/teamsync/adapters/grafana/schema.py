"""Pydantic models describing the Grafana HTTP API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class GrafanaBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TeamPayload(GrafanaBaseModel):
    id: int
    org_id: int = Field(alias="orgId")
    name: str
    email: str | None = None
    member_count: int = Field(default=0, alias="memberCount")

    _normalize_email = field_validator("email", mode="before")(_blank_to_none)


class TeamMemberPayload(GrafanaBaseModel):
    org_id: int = Field(alias="orgId")
    team_id: int = Field(alias="teamId")
    user_id: int = Field(alias="userId")
    email: str
    login: str | None = None

    _normalize_login = field_validator("login", mode="before")(_blank_to_none)


class UserPayload(GrafanaBaseModel):
    id: int
    email: str
    login: str | None = None
    name: str | None = None
    is_admin: bool = Field(default=False, alias="isAdmin")

    _normalize_login = field_validator("login", "name", mode="before")(_blank_to_none)


class CreateTeamResponse(GrafanaBaseModel):
    team_id: int = Field(alias="teamId")
    message: str | None = None


class CreateUserResponse(GrafanaBaseModel):
    id: int
    message: str | None = None


class ErrorResponse(GrafanaBaseModel):
    message: str = ""
