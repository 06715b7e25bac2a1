"""
Core types.

This file defines the shared data structures used across the labeler.

Important design choice
We keep these types transport neutral. A NodeRecord is what any node store
returns, whether it is backed by the Kubernetes API or an in memory dict.

Label keys
DISK_TYPE_KEY_PREFIX namespaces every label this labeler owns.
INSTANCE_TYPE_LABEL is read, never written.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Dict, FrozenSet

DISK_TYPE_KEY_PREFIX = "disk-type.gke.io"
INSTANCE_TYPE_LABEL = "node.kubernetes.io/instance-type"

COMPATIBLE_LABEL_VALUE = "true"

CompatibilityMapping = Dict[str, FrozenSet[str]]
NodeLabelSet = Dict[str, str]


def disk_type_label_key(disk_type: str) -> str:
    """Return the owned label key for a disk type."""
    return f"{DISK_TYPE_KEY_PREFIX}/{disk_type}"


@dataclass(frozen=True)
class NodeRecord:
    """
    Node as seen by the labeler.

    name
    Node identifier.

    labels
    Full label set at read time.

    resource_version
    Opaque version token used for optimistic concurrency on write.
    Empty string when the store does not track versions.
    """

    name: str
    labels: NodeLabelSet = field(default_factory=dict)
    resource_version: str = ""


class ReconcileOutcome(StrEnum):
    """
    Why a reconcile finished the way it did.

    updated
      Labels were written.

    converged
      Node already carried every required label.

    node_missing
      Node does not exist in the store.

    no_instance_type
      Node has no instance type label, so no family could be derived.

    unknown_family
      Family is not present in the compatibility mapping.
    """

    updated = "updated"
    converged = "converged"
    node_missing = "node_missing"
    no_instance_type = "no_instance_type"
    unknown_family = "unknown_family"


@dataclass(frozen=True)
class ReconcileResult:
    """
    Result of reconciling one node.

    changed is the contract callers rely on.
    outcome, family and added are diagnostics for logs.
    """

    node: str
    changed: bool
    outcome: ReconcileOutcome
    family: str | None = None
    added: NodeLabelSet = field(default_factory=dict)
