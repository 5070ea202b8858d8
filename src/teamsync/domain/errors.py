"""Errors raised by the membership reconciliation core."""

from __future__ import annotations


class ReconciliationError(RuntimeError):
    """Base class for failures raised while reconciling team membership."""


class DuplicateKeyError(ReconciliationError):
    """Raised when a membership set lists the same user more than once."""

    def __init__(self, key: str, *, set_name: str) -> None:
        super().__init__(f"User '{key}' cannot be specified multiple times in {set_name} members")
        self.key = key
        self.set_name = set_name


class UnknownUserError(ReconciliationError):
    """Raised when a user is absent from the directory and creation is disabled."""

    def __init__(self, key: str) -> None:
        super().__init__(f"User '{key}' does not exist in the directory and creation is disabled")
        self.key = key


class CreationError(ReconciliationError):
    """Raised when provisioning a missing user fails. The cause is chained."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Failed to create user '{key}'")
        self.key = key


class ApplyError(ReconciliationError):
    """Raised when a membership call fails for a reason other than a conflict."""

    def __init__(
        self,
        *,
        team_id: int,
        user_id: int,
        operation: str,
        reason: str | None = None,
    ) -> None:
        message = f"Failed to {operation} user {user_id} for team {team_id}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.team_id = team_id
        self.user_id = user_id
        self.operation = operation
