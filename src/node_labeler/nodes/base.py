"""
Node store interfaces.

Goal
Read and write node labels without binding the reconciler to a specific
cluster API client.

Design notes
get_node returns the full label set plus a resource version.
update_node_labels must reject writes whose resource version is stale with
ConflictError. That is the only protection against two concurrent
reconciles of the same node, the reconciler takes no lock of its own.
"""

from __future__ import annotations

from typing import Protocol

from node_labeler.core.context import CallContext
from node_labeler.core.types import NodeLabelSet, NodeRecord


class NodeStore(Protocol):
    """
    Minimal node store interface.

    get_node
    Raises NotFoundError when the node does not exist and
    StoreUnavailableError on transient failures.

    update_node_labels
    Replaces the node's label set. Raises ConflictError, StoreUnavailableError,
    WriteError, or NotFoundError when the node disappeared meanwhile.

    list_node_names
    Returns every node name, used by the runner to drive full passes.
    """

    def get_node(self, name: str, ctx: CallContext) -> NodeRecord:
        """Read one node."""

    def update_node_labels(
        self,
        name: str,
        labels: NodeLabelSet,
        resource_version: str,
        ctx: CallContext,
    ) -> None:
        """Write the node's labels if resource_version is still current."""

    def list_node_names(self, ctx: CallContext) -> list[str]:
        """List node names."""
