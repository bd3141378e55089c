from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Tuple

from .errors import UnknownResourceError
from .model import ResourceId, resource_id

logger = logging.getLogger("acltree.core.resources")


@dataclass
class ResourceNode:
    id: ResourceId
    parent: Optional[ResourceId] = None
    children: Dict[ResourceId, None] = field(default_factory=dict)


class ResourceTree:
    """Single-inheritance forest of resources.

    Cycles are not detected: declaring one makes :meth:`lineage` endless.
    """

    def __init__(self) -> None:
        self._nodes: Dict[ResourceId, ResourceNode] = {}

    def add(self, resource: Any, parent: Any = None) -> ResourceNode:
        rid = resource_id(resource)
        pid = resource_id(parent) if parent is not None else None
        if pid is not None and pid not in self._nodes:
            raise UnknownResourceError(pid)

        node = self._nodes.get(rid)
        if node is None:
            node = ResourceNode(rid)
            self._nodes[rid] = node
        elif node.parent is not None:
            self._nodes[node.parent].children.pop(rid, None)

        node.parent = pid
        if pid is not None:
            self._nodes[pid].children[rid] = None

        logger.debug("acltree: resource %r declared (parent=%r)", rid, pid)
        return node

    def has(self, resource: Any) -> bool:
        return resource is not None and resource_id(resource) in self._nodes

    def __contains__(self, resource: object) -> bool:
        return self.has(resource)

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[ResourceId]:
        return iter(self._nodes)

    def _node(self, resource: Any) -> ResourceNode:
        node = self._nodes.get(resource_id(resource)) if resource is not None else None
        if node is None:
            raise UnknownResourceError(resource)
        return node

    def parent(self, resource: Any) -> Optional[ResourceId]:
        return self._node(resource).parent

    def children(self, resource: Any) -> Tuple[ResourceId, ...]:
        return tuple(self._node(resource).children)

    def lineage(self, resource: Any) -> Iterator[ResourceId]:
        """Yield *resource* and then each ancestor, nearest first."""
        current: Optional[ResourceId] = self._node(resource).id
        while current is not None:
            yield current
            current = self._nodes[current].parent

    def inherits(self, resource: Any, ancestor: Any, only_parent: bool = False) -> bool:
        node = self._node(resource)
        target = self._node(ancestor).id
        if only_parent:
            return node.parent == target
        lineage = self.lineage(node.id)
        next(lineage)  # skip the resource itself
        return any(rid == target for rid in lineage)


__all__ = ["ResourceNode", "ResourceTree"]
