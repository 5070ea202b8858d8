"""Membership model shared by the reconciliation stages."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from .errors import DuplicateKeyError

UNRESOLVED_ID: Final[int] = 0


@dataclass(slots=True, eq=False)
class Member:
    """A team member keyed by a stable user identifier (an email address).

    ``id`` is the remote identity and stays ``UNRESOLVED_ID`` until the resolver
    fills it in. Identity is the key alone.
    """

    key: str
    id: int = UNRESOLVED_ID

    @property
    def is_resolved(self) -> bool:
        return self.id != UNRESOLVED_ID

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Member):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)


class ChangeKind(StrEnum):
    ADD = "add"
    REMOVE = "remove"
    # Accepted by the applier and handled like ADD; the differ never emits it.
    UPDATE = "update"


@dataclass(slots=True)
class MembershipChange:
    kind: ChangeKind
    member: Member


class MembershipSet(Mapping[str, Member]):
    """Named, deduplicated mapping of member key to ``Member``."""

    __slots__ = ("_members", "name")

    def __init__(self, name: str, members: Mapping[str, Member] | None = None) -> None:
        self.name = name
        self._members: dict[str, Member] = dict(members or {})
        for key, member in self._members.items():
            if member.key != key:
                raise ValueError(
                    f"Member {member.key!r} is stored under key {key!r} in set {name!r}"
                )

    @classmethod
    def from_keys(cls, keys: Iterable[str], *, name: str) -> MembershipSet:
        """Build a set from raw keys, rejecting any key listed more than once."""

        members: dict[str, Member] = {}
        for key in keys:
            if key in members:
                raise DuplicateKeyError(key, set_name=name)
            members[key] = Member(key=key)
        return cls(name, members)

    def __getitem__(self, key: str) -> Member:
        return self._members[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._members)

    def __len__(self) -> int:
        return len(self._members)

    def __repr__(self) -> str:
        return f"MembershipSet(name={self.name!r}, keys={sorted(self._members)!r})"
