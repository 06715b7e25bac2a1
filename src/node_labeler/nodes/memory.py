"""
In memory node store.

This store is used for tests and local simulations.
It behaves like a node database keyed by node name, with an integer resource
version bumped on every write.

Features
- Rejects writes with a stale resource version
- Can inject a conflict or an outage for a node to exercise error paths
- Counts writes so callers can assert that no needless update happened
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from node_labeler.core.context import CallContext
from node_labeler.core.errors import ConflictError, NotFoundError, StoreUnavailableError
from node_labeler.core.types import NodeLabelSet, NodeRecord
from node_labeler.nodes.base import NodeStore


@dataclass
class InMemoryNodeStore(NodeStore):
    """
    In memory node store.

    nodes
    Node name to label set.

    unavailable
    Node names whose reads and writes fail with StoreUnavailableError.

    conflict_once
    Node names whose next write fails with ConflictError. The name is
    removed after it fires.
    """

    nodes: dict[str, NodeLabelSet] = field(default_factory=dict)
    unavailable: set[str] = field(default_factory=set)
    conflict_once: set[str] = field(default_factory=set)
    writes: int = 0
    _versions: dict[str, int] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add(self, name: str, labels: NodeLabelSet | None = None) -> None:
        """Add or replace a node."""
        with self._lock:
            self.nodes[name] = dict(labels or {})
            self._versions[name] = self._versions.get(name, 0) + 1

    def labels(self, name: str) -> NodeLabelSet:
        """Return a copy of the node's current labels."""
        with self._lock:
            return dict(self.nodes[name])

    def get_node(self, name: str, ctx: CallContext) -> NodeRecord:
        ctx.check()
        with self._lock:
            if name in self.unavailable:
                raise StoreUnavailableError(f"node store unavailable reading {name}")
            if name not in self.nodes:
                raise NotFoundError(f"node {name} not found")
            return NodeRecord(
                name=name,
                labels=dict(self.nodes[name]),
                resource_version=str(self._versions.setdefault(name, 1)),
            )

    def update_node_labels(
        self,
        name: str,
        labels: NodeLabelSet,
        resource_version: str,
        ctx: CallContext,
    ) -> None:
        ctx.check()
        with self._lock:
            if name in self.unavailable:
                raise StoreUnavailableError(f"node store unavailable writing {name}")
            if name not in self.nodes:
                raise NotFoundError(f"node {name} not found")
            if name in self.conflict_once:
                self.conflict_once.discard(name)
                raise ConflictError(f"node {name} was modified concurrently")

            current = str(self._versions.setdefault(name, 1))
            if resource_version and resource_version != current:
                raise ConflictError(f"node {name} resource version {resource_version} is stale, current {current}")

            self.nodes[name] = dict(labels)
            self._versions[name] = int(current) + 1
            self.writes += 1

    def list_node_names(self, ctx: CallContext) -> list[str]:
        ctx.check()
        with self._lock:
            return sorted(self.nodes.keys())
