from __future__ import annotations

from typing import Any


class AclError(Exception):
    """Base class for errors raised while declaring roles, resources or rules."""


class UnknownRoleError(AclError, KeyError):
    def __init__(self, role: Any) -> None:
        super().__init__(f"role {role!r} is not declared")
        self.role = role

    def __str__(self) -> str:
        return str(self.args[0])


class UnknownResourceError(AclError, KeyError):
    def __init__(self, resource: Any) -> None:
        super().__init__(f"resource {resource!r} is not declared")
        self.resource = resource

    def __str__(self) -> str:
        return str(self.args[0])


__all__ = ["AclError", "UnknownRoleError", "UnknownResourceError"]
