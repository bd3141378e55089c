from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from ..logging.context import get_current_trace_id
from .errors import UnknownResourceError, UnknownRoleError
from .model import (
    ANY,
    Decision,
    Privilege,
    Query,
    ResourceId,
    RoleId,
    Rule,
    Scope,
    Wildcard,
    id_list,
    resource_id,
    role_id,
    scope_label,
)
from .ports import Assertion, DecisionLogSink, MetricsSink
from .resources import ResourceTree
from .roles import RoleRegistry
from .rules import RuleStore, ScopeSpec

logger = logging.getLogger("acltree.core.engine")


@dataclass(frozen=True)
class _Match:
    resource_scope: Scope
    role_scope: Scope
    privilege_scope: Scope
    rule: Rule
    role: Optional[RoleId]


class Acl:
    """Access-control list over hierarchical roles and resources.

    Rules are declared with :meth:`allow` / :meth:`deny` and queried with
    :meth:`is_allowed` (or :meth:`evaluate` for an explained decision).

    Lookup walks the requested resource and then its ancestors. At each level
    every requested role is tried, then its parents (most recently declared
    first), and for each role the buckets are consulted from most to least
    specific: (resource, role), (resource, ANY), (ANY, role), (ANY, ANY).
    The first applicable rule decides; nothing applicable means deny.

    Declarations are expected to finish before concurrent querying starts;
    queries themselves keep no state on the instance.
    """

    def __init__(
        self,
        *,
        strict: bool = False,
        logger_sink: DecisionLogSink | None = None,
        metrics: MetricsSink | None = None,
    ) -> None:
        self.strict = bool(strict)
        self.logger_sink = logger_sink
        self.metrics = metrics
        self._roles = RoleRegistry()
        self._resources = ResourceTree()
        self._rules = RuleStore()

    def __repr__(self) -> str:
        return (
            f"<Acl roles={len(self._roles)} resources={len(self._resources)} "
            f"rules={len(self._rules)}>"
        )

    # --------------------------------------------------------------------- #
    # Declarations
    # --------------------------------------------------------------------- #

    @property
    def roles(self) -> RoleRegistry:
        return self._roles

    @property
    def resources(self) -> ResourceTree:
        return self._resources

    @property
    def rules(self) -> RuleStore:
        return self._rules

    def add_role(self, role: Any, parents: Any = None) -> "Acl":
        self._roles.add(role, parents)
        return self

    def has_role(self, role: Any) -> bool:
        return self._roles.has(role)

    def add_resource(self, resource: Any, parent: Any = None) -> "Acl":
        self._resources.add(resource, parent)
        return self

    def has_resource(self, resource: Any) -> bool:
        return self._resources.has(resource)

    def allow(
        self,
        roles: Any = None,
        resources: Any = None,
        privileges: Any = None,
        assertion: Optional[Assertion] = None,
    ) -> "Acl":
        self._add_rule(True, roles, resources, privileges, assertion)
        return self

    def deny(
        self,
        roles: Any = None,
        resources: Any = None,
        privileges: Any = None,
        assertion: Optional[Assertion] = None,
    ) -> "Acl":
        self._add_rule(False, roles, resources, privileges, assertion)
        return self

    def _add_rule(
        self,
        allow: bool,
        roles: Any,
        resources: Any,
        privileges: Any,
        assertion: Optional[Assertion],
    ) -> None:
        if assertion is not None and not callable(assertion):
            raise TypeError(f"assertion must be callable, got {type(assertion).__name__}")

        role_scopes = _scope_spec(roles, role_id)
        resource_scopes = _scope_spec(resources, resource_id)
        privilege_scopes = _scope_spec(privileges, str)

        if self.strict:
            if not isinstance(role_scopes, Wildcard):
                for rid in role_scopes:
                    if rid not in self._roles:
                        raise UnknownRoleError(rid)
            if not isinstance(resource_scopes, Wildcard):
                for res in resource_scopes:
                    if res not in self._resources:
                        raise UnknownResourceError(res)

        self._rules.put_rule(allow, role_scopes, resource_scopes, privilege_scopes, assertion)

    # --------------------------------------------------------------------- #
    # Queries
    # --------------------------------------------------------------------- #

    def is_allowed(self, role: Any = None, resource: Any = None, privilege: Any = None) -> bool:
        return self.evaluate(role, resource, privilege).allowed

    def evaluate(self, role: Any = None, resource: Any = None, privilege: Any = None) -> Decision:
        """Resolve the query and return a :class:`Decision` explaining it.

        Exceptions raised by assertions propagate to the caller.
        """
        start = time.perf_counter()
        query = Query(role=role, resource=resource, privilege=privilege)
        candidates = _role_candidates(role)
        res = _query_value(resource, resource_id)
        priv = _query_value(privilege, str)
        decision = self._decide(query, candidates, res, priv)
        self._emit(query, candidates, res, priv, decision, time.perf_counter() - start)
        return decision

    def _decide(
        self,
        query: Query,
        candidates: List[Optional[RoleId]],
        resource: Optional[ResourceId],
        privilege: Optional[Privilege],
    ) -> Decision:
        if resource is not None and resource not in self._resources:
            return Decision(allowed=False, reason="unknown_resource")

        levels: Iterable[Optional[ResourceId]] = (
            self._resources.lineage(resource) if resource is not None else (None,)
        )
        for level in levels:
            match = self._match_roles(level, candidates, privilege, query)
            if match is not None:
                return Decision(
                    allowed=match.rule.allow,
                    reason="matched",
                    resource_scope=match.resource_scope,
                    role_scope=match.role_scope,
                    privilege_scope=match.privilege_scope,
                    resource_level=level,
                    role=match.role,
                )
        return Decision(allowed=False, reason="no_match")

    def _match_roles(
        self,
        level: Optional[ResourceId],
        candidates: List[Optional[RoleId]],
        privilege: Optional[Privilege],
        query: Query,
    ) -> Optional[_Match]:
        """Depth-first search over *candidates* and their ancestors at one level.

        Candidates are tried in order; each one is followed by its ancestors,
        most recently declared parent first.
        """
        stack: List[Optional[RoleId]] = list(reversed(candidates))
        while stack:
            rid = stack.pop()
            node = None
            if rid is not None:
                node = self._roles.get(rid)
                if node is None:
                    continue

            match = self._match_rule(level, rid, privilege, query)
            if match is not None:
                return match

            if node is not None:
                stack.extend(node.parents)
        return None

    def _match_rule(
        self,
        level: Optional[ResourceId],
        rid: Optional[RoleId],
        privilege: Optional[Privilege],
        query: Query,
    ) -> Optional[_Match]:
        resource_scopes: Tuple[Scope, ...] = (level, ANY) if level is not None else (ANY,)
        role_scopes: Tuple[Scope, ...] = (rid, ANY) if rid is not None else (ANY,)
        for res in resource_scopes:
            for role in role_scopes:
                bucket = self._rules.privileges_for(res, role)
                if not bucket:
                    continue
                hit = self._match_privilege(bucket, privilege, query)
                if hit is not None:
                    return _Match(res, role, hit[0], hit[1], rid)
        return None

    def _match_privilege(
        self,
        bucket: Mapping[Scope, Rule],
        privilege: Optional[Privilege],
        query: Query,
    ) -> Optional[Tuple[Scope, Rule]]:
        if privilege is None:
            # "All privileges" check: one runnable deny on a specific
            # privilege means not everything is allowed.
            for priv, rule in tuple(bucket.items()):
                if priv is not ANY and self._runnable(rule, query, allow=False):
                    return priv, rule
        else:
            rule = bucket.get(privilege)
            if rule is not None and self._runnable(rule, query):
                return privilege, rule

        rule = bucket.get(ANY)
        if rule is not None and self._runnable(rule, query):
            return ANY, rule
        return None

    def _runnable(self, rule: Rule, query: Query, allow: Optional[bool] = None) -> bool:
        if allow is not None and rule.allow is not allow:
            return False
        if rule.assertion is not None:
            return bool(rule.assertion(self, query.role, query.resource, query.privilege))
        return True

    # --------------------------------------------------------------------- #
    # Observability
    # --------------------------------------------------------------------- #

    def _emit(
        self,
        query: Query,
        candidates: List[Optional[RoleId]],
        resource: Optional[ResourceId],
        privilege: Optional[Privilege],
        decision: Decision,
        elapsed: float,
    ) -> None:
        labels = {"decision": decision.effect}

        if self.metrics is not None:
            try:
                self.metrics.inc("acltree_decisions_total", labels)
            except Exception:
                logger.exception("acltree: metrics sink failed on inc")
            observe = getattr(self.metrics, "observe", None)
            if callable(observe):
                try:
                    observe("acltree_decision_seconds", elapsed, labels)
                except Exception:
                    logger.exception("acltree: metrics sink failed on observe")

        if self.logger_sink is not None:
            try:
                self.logger_sink.log(_payload(query, candidates, resource, privilege, decision))
            except Exception:
                logger.exception("acltree: decision logger failed")


def _scope_spec(value: Any, convert: Callable[[Any], str]) -> ScopeSpec:
    if value is None or value is ANY:
        return ANY
    return id_list(value, convert)


def _query_value(value: Any, convert: Callable[[Any], str]) -> Optional[str]:
    # ANY in a query means the same as leaving the argument out.
    if value is None or value is ANY:
        return None
    return convert(value)


def _role_candidates(role: Any) -> List[Optional[RoleId]]:
    if isinstance(role, (list, tuple)):
        return [_query_value(r, role_id) for r in role]
    return [_query_value(role, role_id)]


def _payload(
    query: Query,
    candidates: List[Optional[RoleId]],
    resource: Optional[ResourceId],
    privilege: Optional[Privilege],
    decision: Decision,
) -> Dict[str, Any]:
    role: Any = candidates if isinstance(query.role, (list, tuple)) else candidates[0]
    matched = None
    if decision.matched:
        matched = {
            "resource": scope_label(decision.resource_scope),
            "role": scope_label(decision.role_scope),
            "privilege": scope_label(decision.privilege_scope),
        }
    return {
        "query": {
            "role": role,
            "resource": resource,
            "privilege": privilege,
        },
        "decision": decision.effect,
        "allowed": decision.allowed,
        "reason": decision.reason,
        "matched": matched,
        "trace_id": get_current_trace_id(),
    }


__all__ = ["Acl"]
