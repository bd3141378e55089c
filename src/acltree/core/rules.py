from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

from .model import Rule, Scope, Wildcard
from .ports import Assertion

logger = logging.getLogger("acltree.core.rules")

# resource-scope -> role-scope -> privilege-scope -> Rule
_Tree = Dict[Scope, Dict[Scope, Dict[Scope, Rule]]]

ScopeSpec = Union[Wildcard, Iterable[str]]


def _scopes(spec: ScopeSpec) -> Tuple[Scope, ...]:
    if isinstance(spec, Wildcard):
        return (spec,)
    return tuple(dict.fromkeys(spec))


class RuleStore:
    """Nested index of allow/deny rules.

    Every write targets exact (resource, role, privilege) scope triples and
    replaces whatever rule sat there; all other triples are left alone.
    """

    def __init__(self) -> None:
        self._tree: _Tree = {}

    def put_rule(
        self,
        allow: bool,
        roles: ScopeSpec,
        resources: ScopeSpec,
        privileges: ScopeSpec,
        assertion: Optional[Assertion] = None,
    ) -> int:
        """Write ``Rule(allow, assertion)`` across the cross product of scopes.

        Returns the number of triples written; an empty dimension writes none.
        """
        rule = Rule(allow=bool(allow), assertion=assertion)
        role_scopes = _scopes(roles)
        privilege_scopes = _scopes(privileges)
        written = 0
        if not role_scopes or not privilege_scopes:
            return written
        for res in _scopes(resources):
            by_role = self._tree.setdefault(res, {})
            for role in role_scopes:
                by_privilege = by_role.setdefault(role, {})
                for priv in privilege_scopes:
                    by_privilege[priv] = rule
                    written += 1
        logger.debug(
            "acltree: %s rule written at %d scope(s) (assertion=%s)",
            "allow" if rule.allow else "deny",
            written,
            assertion is not None,
        )
        return written

    def privileges_for(self, resource: Scope, role: Scope) -> Optional[Mapping[Scope, Rule]]:
        """Privilege bucket for the exact (resource, role) scope pair, if any."""
        by_role = self._tree.get(resource)
        if by_role is None:
            return None
        return by_role.get(role)

    def get(self, resource: Scope, role: Scope, privilege: Scope) -> Optional[Rule]:
        bucket = self.privileges_for(resource, role)
        return None if bucket is None else bucket.get(privilege)

    def rules(self) -> Iterator[Tuple[Scope, Scope, Scope, Rule]]:
        for res, by_role in self._tree.items():
            for role, by_privilege in by_role.items():
                for priv, rule in by_privilege.items():
                    yield res, role, priv, rule

    def __len__(self) -> int:
        return sum(len(p) for r in self._tree.values() for p in r.values())


__all__ = ["RuleStore", "ScopeSpec"]
