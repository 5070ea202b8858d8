"""Public interface for the Grafana adapter."""

from __future__ import annotations

from .client import USERS_PAGE_SIZE, GrafanaAPIError, GrafanaClient
from .schema import TeamMemberPayload, TeamPayload, UserPayload

__all__ = [
    "USERS_PAGE_SIZE",
    "GrafanaAPIError",
    "GrafanaClient",
    "TeamMemberPayload",
    "TeamPayload",
    "UserPayload",
]
