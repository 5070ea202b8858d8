"""Domain port definitions for adapters."""

from __future__ import annotations

from .directory import (
    ChangeMembership,
    CreateUser,
    DirectoryError,
    DirectoryErrorKind,
    DirectoryUser,
    ListUsers,
    TeamAdministration,
    TeamDirectory,
)
from .state import TeamStateRepository, TeamStateUnitOfWork

__all__ = [
    "ChangeMembership",
    "CreateUser",
    "DirectoryError",
    "DirectoryErrorKind",
    "DirectoryUser",
    "ListUsers",
    "TeamAdministration",
    "TeamDirectory",
    "TeamStateRepository",
    "TeamStateUnitOfWork",
]
