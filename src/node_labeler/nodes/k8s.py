"""
Kubernetes node store.

This store reads and writes node labels through the official Kubernetes
client.

Behavior
get_node reads the node and keeps metadata.resourceVersion.
update_node_labels sends a merge patch that carries that resourceVersion, so
the API server answers 409 when someone else wrote the node in between.

The merge patch only sets keys. Keys are never removed, which matches the
reconciler's contract of never deleting labels.

Error mapping
404 -> NotFoundError
409 -> ConflictError
429 and 5xx, and transport failures -> StoreUnavailableError
transport failures after the context deadline or a cancel -> Cancelled
anything else on write -> WriteError
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from kubernetes.client import CoreV1Api
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from node_labeler.core.context import CallContext
from node_labeler.core.errors import (
    ConflictError,
    LabelerError,
    NotFoundError,
    StoreUnavailableError,
    WriteError,
)
from node_labeler.core.types import NodeLabelSet, NodeRecord
from node_labeler.nodes.base import NodeStore

logger = logging.getLogger(__name__)


def _is_transient(status: int | None) -> bool:
    return status is None or status == 429 or status >= 500


def _translate(exc: ApiException, action: str, *, write: bool) -> LabelerError:
    msg = f"{action}: {exc.status} {exc.reason}"
    if exc.status == 404:
        return NotFoundError(msg)
    if exc.status == 409:
        return ConflictError(msg)
    if _is_transient(exc.status) or not write:
        return StoreUnavailableError(msg)
    return WriteError(msg)


@dataclass
class KubernetesNodeStore(NodeStore):
    """
    Node store backed by CoreV1Api.

    api
    A configured CoreV1Api. Building it, and loading credentials, is the
    entrypoint's job.
    """

    api: CoreV1Api

    def get_node(self, name: str, ctx: CallContext) -> NodeRecord:
        ctx.check()
        try:
            node = self.api.read_node(name=name, _request_timeout=ctx.remaining())
        except ApiException as exc:
            raise _translate(exc, f"reading node {name}", write=False) from exc
        except HTTPError as exc:
            raise ctx.transport_failure(f"reading node {name}: {exc}") from exc

        meta = node.metadata
        return NodeRecord(
            name=name,
            labels=dict(meta.labels or {}),
            resource_version=meta.resource_version or "",
        )

    def update_node_labels(
        self,
        name: str,
        labels: NodeLabelSet,
        resource_version: str,
        ctx: CallContext,
    ) -> None:
        ctx.check()
        metadata: dict[str, object] = {"labels": dict(labels)}
        if resource_version:
            metadata["resourceVersion"] = resource_version

        try:
            self.api.patch_node(
                name=name,
                body={"metadata": metadata},
                _request_timeout=ctx.remaining(),
            )
        except ApiException as exc:
            raise _translate(exc, f"patching node {name}", write=True) from exc
        except HTTPError as exc:
            raise ctx.transport_failure(f"patching node {name}: {exc}") from exc

        logger.debug("patched labels on node %s", name)

    def list_node_names(self, ctx: CallContext) -> list[str]:
        ctx.check()
        try:
            nodes = self.api.list_node(_request_timeout=ctx.remaining())
        except ApiException as exc:
            raise _translate(exc, "listing nodes", write=False) from exc
        except HTTPError as exc:
            raise ctx.transport_failure(f"listing nodes: {exc}") from exc

        return sorted(n.metadata.name for n in nodes.items)
