from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Tuple

from .errors import UnknownRoleError
from .model import RoleId, id_list, role_id

logger = logging.getLogger("acltree.core.roles")


@dataclass
class RoleNode:
    id: RoleId
    parents: Tuple[RoleId, ...] = ()
    # insertion-ordered set
    children: Dict[RoleId, None] = field(default_factory=dict)


class RoleRegistry:
    """Role graph with multiple inheritance.

    Parent order is declaration order and matters: lookups consult the most
    recently declared parent first. Children are kept for introspection only.
    """

    def __init__(self) -> None:
        self._nodes: Dict[RoleId, RoleNode] = {}

    def add(self, role: Any, parents: Any = None) -> RoleNode:
        rid = role_id(role)
        pids = tuple(id_list(parents, role_id)) if parents is not None else ()

        # Validate everything before touching the graph.
        for pid in pids:
            if pid not in self._nodes:
                raise UnknownRoleError(pid)

        node = self._nodes.get(rid)
        if node is None:
            node = RoleNode(rid)
            self._nodes[rid] = node
        else:
            for old in node.parents:
                self._nodes[old].children.pop(rid, None)

        node.parents = pids
        for pid in pids:
            self._nodes[pid].children[rid] = None

        logger.debug("acltree: role %r declared (parents=%r)", rid, pids)
        return node

    def has(self, role: Any) -> bool:
        return role is not None and role_id(role) in self._nodes

    def __contains__(self, role: object) -> bool:
        return self.has(role)

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[RoleId]:
        return iter(self._nodes)

    def get(self, role: Any) -> Optional[RoleNode]:
        if role is None:
            return None
        return self._nodes.get(role_id(role))

    def _node(self, role: Any) -> RoleNode:
        node = self.get(role)
        if node is None:
            raise UnknownRoleError(role)
        return node

    def parents(self, role: Any) -> Tuple[RoleId, ...]:
        return self._node(role).parents

    def children(self, role: Any) -> Tuple[RoleId, ...]:
        return tuple(self._node(role).children)

    def inherits(self, role: Any, ancestor: Any, only_parents: bool = False) -> bool:
        """Return True if *role* inherits from *ancestor*.

        With ``only_parents`` only direct parents count.
        """
        node = self._node(role)
        target = self._node(ancestor).id
        if only_parents:
            return target in node.parents

        seen = set()
        stack = list(node.parents)
        while stack:
            rid = stack.pop()
            if rid == target:
                return True
            if rid in seen:
                continue
            seen.add(rid)
            stack.extend(self._nodes[rid].parents)
        return False


__all__ = ["RoleNode", "RoleRegistry"]
