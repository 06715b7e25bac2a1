"""
Machine family derivation.

Instance types are named family-shape, for example e2-medium, n2-standard-8
or c3d-highcpu-4. The family is everything before the first dash.
"""

from __future__ import annotations

from typing import Optional

from node_labeler.core.types import INSTANCE_TYPE_LABEL, NodeLabelSet


def machine_family(instance_type: str) -> Optional[str]:
    """
    Return the machine family for an instance type.

    e2-medium -> e2
    custom -> custom
    blank -> None
    """
    instance_type = instance_type.strip()
    if not instance_type:
        return None
    return instance_type.split("-", 1)[0]


def node_machine_family(labels: NodeLabelSet) -> Optional[str]:
    """Return the family derived from a node's instance type label, if any."""
    instance_type = labels.get(INSTANCE_TYPE_LABEL)
    if instance_type is None:
        return None
    return machine_family(instance_type)
