from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Union

from .ports import Assertion, ResourceLike, RoleLike

RoleId = str
ResourceId = str
Privilege = str


class Wildcard(enum.Enum):
    """The "any" scope at one dimension of a rule."""

    ANY = "*"

    def __repr__(self) -> str:
        return "ANY"


ANY = Wildcard.ANY

Scope = Union[str, Wildcard]


def _reject_wildcard(value: Any) -> None:
    if isinstance(value, Wildcard):
        raise TypeError("ANY is a scope, not an identifier")


def role_id(role: Any) -> RoleId:
    """Return the identifier of *role* (a plain id or a ``RoleLike`` object)."""
    _reject_wildcard(role)
    if isinstance(role, RoleLike):
        return str(role.get_role_id())
    return str(role)


def resource_id(resource: Any) -> ResourceId:
    """Return the identifier of *resource* (a plain id or a ``ResourceLike``)."""
    _reject_wildcard(resource)
    if isinstance(resource, ResourceLike):
        return str(resource.get_resource_id())
    return str(resource)


def id_list(value: Any, convert: Callable[[Any], str]) -> List[str]:
    """Normalize "one or many" ids into a list of unique ids, order kept.

    Strings and identifier-yielding objects count as a single value; any
    other iterable is taken as many.
    """
    if isinstance(value, (str, bytes, RoleLike, ResourceLike)) or not isinstance(value, Iterable):
        values = [value]
    else:
        values = list(value)
    for v in values:
        _reject_wildcard(v)
    return list(dict.fromkeys(convert(v) for v in values))


def scope_label(scope: Optional[Scope]) -> Optional[str]:
    if scope is None:
        return None
    return scope.value if isinstance(scope, Wildcard) else scope


@dataclass(frozen=True)
class Rule:
    allow: bool
    assertion: Optional[Assertion] = None


@dataclass(frozen=True)
class Query:
    """Original, un-normalized arguments of a single ``is_allowed`` call.

    Assertions receive these values rather than the normalized ids, so a
    caller passing a user object as the role gets that same object back.
    """

    role: Any = None
    resource: Any = None
    privilege: Any = None


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str
    resource_scope: Optional[Scope] = None
    role_scope: Optional[Scope] = None
    privilege_scope: Optional[Scope] = None
    resource_level: Optional[ResourceId] = None
    role: Optional[RoleId] = None

    @property
    def effect(self) -> str:
        return "allow" if self.allowed else "deny"

    @property
    def matched(self) -> bool:
        return self.reason == "matched"


__all__ = [
    "ANY",
    "Wildcard",
    "Scope",
    "RoleId",
    "ResourceId",
    "Privilege",
    "Rule",
    "Query",
    "Decision",
    "role_id",
    "resource_id",
    "id_list",
    "scope_label",
]
