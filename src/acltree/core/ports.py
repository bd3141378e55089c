from __future__ import annotations

from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class RoleLike(Protocol):
    """Any caller object that can stand in for a role id."""

    def get_role_id(self) -> str: ...


@runtime_checkable
class ResourceLike(Protocol):
    """Any caller object that can stand in for a resource id."""

    def get_resource_id(self) -> str: ...


@runtime_checkable
class Assertion(Protocol):
    """Runtime predicate guarding a rule.

    Called with the engine and the original role/resource/privilege
    arguments of the query. A falsy result makes the rule inapplicable.
    """

    def __call__(self, acl: Any, role: Any, resource: Any, privilege: Any) -> bool: ...


class DecisionLogSink(Protocol):
    def log(self, payload: Dict[str, Any]) -> None: ...


class MetricsSink(Protocol):
    def inc(self, name: str, labels: Dict[str, str] | None = None) -> None: ...
