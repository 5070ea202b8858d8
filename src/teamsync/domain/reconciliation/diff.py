"""Membership differ: classify the delta between two membership sets."""

from __future__ import annotations

from typing import TYPE_CHECKING

from teamsync.domain.membership import ChangeKind, Member, MembershipChange, MembershipSet

if TYPE_CHECKING:
    from collections.abc import Iterable

PREVIOUS_SET_NAME = "previous"
DESIRED_SET_NAME = "desired"


def diff_memberships(previous: MembershipSet, desired: MembershipSet) -> list[MembershipChange]:
    """Return unresolved ADD changes for ``desired - previous`` and REMOVE for the reverse.

    Keys present in both sets produce nothing. Adds come before removes, but
    consumers must treat every change independently.
    """

    changes = [
        MembershipChange(ChangeKind.ADD, Member(key=key)) for key in desired if key not in previous
    ]
    changes.extend(
        MembershipChange(ChangeKind.REMOVE, Member(key=key))
        for key in previous
        if key not in desired
    )
    return changes


def diff_keys(previous: Iterable[str], desired: Iterable[str]) -> list[MembershipChange]:
    """Validate raw key lists into membership sets and diff them."""

    previous_set = MembershipSet.from_keys(previous, name=PREVIOUS_SET_NAME)
    desired_set = MembershipSet.from_keys(desired, name=DESIRED_SET_NAME)
    return diff_memberships(previous_set, desired_set)
