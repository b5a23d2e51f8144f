"""Roles a node can take in the cluster."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum


class Role(str, Enum):
    """A node role; serialises to its name."""

    LEADER = "LEADER"
    FOLLOWER = "FOLLOWER"

    def __str__(self) -> str:
        return self.value


def parse(value: str) -> Role:
    """Return the role with this name."""
    try:
        return Role(value)
    except ValueError:
        raise ValueError(f'invalid role "{value}"') from None


def parse_many(values: Iterable[str]) -> list[Role]:
    """Parse every name; fail on the first unknown one."""
    return [parse(value) for value in values]


def to_strings(roles: Iterable[Role]) -> list[str]:
    """Return the names of the given roles."""
    return [str(role) for role in roles]