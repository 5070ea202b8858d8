"""Team membership reconciliation core.

Flow:
1) diff previous and desired membership sets into unresolved changes
2) resolve each change's key against a directory snapshot, creating users if allowed
3) apply the resolved changes through the membership endpoints
"""

from __future__ import annotations

from .apply import ApplyResult, apply_changes
from .diff import DESIRED_SET_NAME, PREVIOUS_SET_NAME, diff_keys, diff_memberships
from .engine import ReconciliationEngine, ReconciliationResult, reconcile
from .resolve import known_users_from_snapshot, resolve_identities

__all__ = [
    "DESIRED_SET_NAME",
    "PREVIOUS_SET_NAME",
    "ApplyResult",
    "ReconciliationEngine",
    "ReconciliationResult",
    "apply_changes",
    "diff_keys",
    "diff_memberships",
    "known_users_from_snapshot",
    "reconcile",
    "resolve_identities",
]
