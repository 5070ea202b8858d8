"""Grafana configuration values."""

from __future__ import annotations

import os
from collections.abc import Generator
from dataclasses import dataclass, replace

import httpx

from .env import optional_int_env, require_env_vars
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

GRAFANA_TIMEOUT_SECONDS = 15.0
DEFAULT_ORG_ID = 1
DEFAULT_ADMIN_USER = "admin"
ORG_ID_HEADER = "X-Grafana-Org-Id"


class BearerAuth(httpx.Auth):
    """Attach a Grafana API token or service-account token to every request."""

    def __init__(self, token: str) -> None:
        self._token = token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._token}"
        yield request


def parse_auth(value: str) -> httpx.Auth:
    """Interpret ``user:password`` as basic auth and anything else as a bearer token."""

    value = value.strip()
    if ":" in value:
        user, _, password = value.partition(":")
        if not user:
            raise ConfigurationError("GRAFANA_AUTH basic credentials are missing a user name")
        return httpx.BasicAuth(user, password)
    return BearerAuth(value)


@dataclass(frozen=True, slots=True)
class GrafanaConfig:
    """Holds Grafana API configuration values."""

    url: str
    org_id: int
    admin_user: str
    resilience: ResilienceConfig

    def for_org(self, org_id: int | None) -> GrafanaConfig:
        """Return this configuration scoped to ``org_id``; ``None`` keeps the configured org."""

        if org_id is None or org_id == self.org_id:
            return self
        if org_id < 1:
            raise ConfigurationError(f"Grafana org id must be positive, got {org_id}")
        headers = dict(self.resilience.default_headers or {})
        headers[ORG_ID_HEADER] = str(org_id)
        return replace(
            self,
            org_id=org_id,
            resilience=replace(self.resilience, default_headers=headers),
        )


def get_grafana_config(*, resilience: ResilienceConfig | None = None) -> GrafanaConfig:
    values = require_env_vars(("GRAFANA_URL", "GRAFANA_AUTH"))
    url = values["GRAFANA_URL"].rstrip("/")
    org_id = optional_int_env("GRAFANA_ORG_ID", default=DEFAULT_ORG_ID)
    if org_id < 1:
        raise ConfigurationError(f"GRAFANA_ORG_ID must be positive, got {org_id}")
    admin_user = os.getenv("GRAFANA_ADMIN_USER") or DEFAULT_ADMIN_USER

    return GrafanaConfig(
        url=url,
        org_id=org_id,
        admin_user=admin_user,
        resilience=resilience
        or ResilienceConfig(
            name="grafana",
            base_url=url,
            timeout_seconds=GRAFANA_TIMEOUT_SECONDS,
            retry=RetryPolicy(total=3),
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            default_headers={ORG_ID_HEADER: str(org_id)},
            auth=parse_auth(values["GRAFANA_AUTH"]),
        ),
    )
