"""
Label reconciler.

Purpose
Converge one node's disk type labels to the current compatibility mapping.

Steps
1) read the node, a missing node is a no op
2) derive the machine family from the instance type label
3) look the family up in the compatibility store
4) build the required labels
5) merge them over the current labels, never removing a key
6) write only when the merge differs from what was read

Labels this reconciler does not compute are left alone, including disk type
labels for types the current mapping no longer mentions. Running reconcile
twice in a row therefore writes at most once.

The reconciler keeps no mutable state. Concurrent calls for different nodes
are independent. Concurrent calls for the same node are serialized by the
node store's resource version check.
"""

from __future__ import annotations

import logging
from typing import Mapping

from node_labeler.compat.store import CompatibilityStore
from node_labeler.core.context import CallContext, background
from node_labeler.core.errors import NotFoundError
from node_labeler.core.types import (
    COMPATIBLE_LABEL_VALUE,
    NodeLabelSet,
    ReconcileOutcome,
    ReconcileResult,
    disk_type_label_key,
)
from node_labeler.labeler.machine import node_machine_family
from node_labeler.nodes.base import NodeStore

logger = logging.getLogger(__name__)


def required_labels(disk_types: frozenset[str] | None) -> NodeLabelSet:
    """Return the owned labels for a set of compatible disk types."""
    if not disk_types:
        return {}
    return {disk_type_label_key(d): COMPATIBLE_LABEL_VALUE for d in sorted(disk_types)}


def merge_labels(current: Mapping[str, str], required: Mapping[str, str]) -> NodeLabelSet:
    """
    Union current and required, with required winning on shared keys.

    Keys only present in current survive verbatim.
    """
    merged = dict(current)
    merged.update(required)
    return merged


class LabelReconciler:
    """
    Node label reconciler.

    store
    Compatibility store, read only from this path.

    nodes
    Node store holding the authoritative labels.
    """

    def __init__(self, store: CompatibilityStore, nodes: NodeStore) -> None:
        self._store = store
        self._nodes = nodes

    def reconcile(self, node_name: str, ctx: CallContext | None = None) -> ReconcileResult:
        """
        Reconcile a single node.

        Returns a ReconcileResult whose changed field is True only when labels
        were written. ConflictError, StoreUnavailableError, WriteError and
        Cancelled propagate to the caller, nothing is retried here.
        """
        ctx = ctx or background()

        try:
            node = self._nodes.get_node(node_name, ctx)
        except NotFoundError:
            logger.debug("node %s not found, nothing to reconcile", node_name)
            return ReconcileResult(node=node_name, changed=False, outcome=ReconcileOutcome.node_missing)

        family = node_machine_family(node.labels)
        if family is None:
            logger.debug("node %s has no instance type label", node_name)
            return ReconcileResult(node=node_name, changed=False, outcome=ReconcileOutcome.no_instance_type)

        disk_types = self._store.lookup(family)
        if disk_types is None:
            logger.debug("node %s: machine family %s has no compatibility entry", node_name, family)
            return ReconcileResult(
                node=node_name,
                changed=False,
                outcome=ReconcileOutcome.unknown_family,
                family=family,
            )

        required = required_labels(disk_types)
        merged = merge_labels(node.labels, required)
        if merged == node.labels:
            return ReconcileResult(
                node=node_name,
                changed=False,
                outcome=ReconcileOutcome.converged,
                family=family,
            )

        added = {k: v for k, v in required.items() if node.labels.get(k) != v}

        ctx.check()
        self._nodes.update_node_labels(node_name, merged, node.resource_version, ctx)
        logger.info("node %s: set disk type labels %s", node_name, sorted(added))

        return ReconcileResult(
            node=node_name,
            changed=True,
            outcome=ReconcileOutcome.updated,
            family=family,
            added=added,
        )
