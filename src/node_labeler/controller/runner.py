"""
Labeler runner.

Purpose
Continuously:
- Refresh the compatibility mapping from its source
- Reconcile every node the node store lists

This is the composition layer of the system.
It wires the compatibility source, store, node store and reconciler.

The reconciler remains pure.
Runner handles scheduling, concurrency and environment configuration.
Nodes that fail are logged and retried on the next cycle.
"""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from node_labeler.compat.sources.base import CompatibilitySource
from node_labeler.compat.sources.configmap import (
    DEFAULT_CONFIGMAP_KEY,
    DEFAULT_CONFIGMAP_NAME,
    DEFAULT_CONFIGMAP_NAMESPACE,
    ConfigMapSourceConfig,
)
from node_labeler.compat.store import CompatibilityStore
from node_labeler.core.context import CallContext
from node_labeler.core.errors import Cancelled, LabelerError
from node_labeler.core.types import ReconcileOutcome, ReconcileResult
from node_labeler.labeler.reconciler import LabelReconciler
from node_labeler.nodes.base import NodeStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunnerConfig:
    """
    Runner configuration.

    interval_seconds
    Sleep duration between cycles.

    workers
    Number of nodes reconciled in parallel.

    request_timeout_seconds
    Deadline for each refresh and each node reconcile.

    configmap
    Where the compatibility document lives in the cluster.

    compat_file
    When set, read the document from this file instead of a ConfigMap.

    log_level
    Root log level used by the entrypoint.
    """

    interval_seconds: float = 60
    workers: int = 4
    request_timeout_seconds: float = 30
    configmap: ConfigMapSourceConfig = ConfigMapSourceConfig()
    compat_file: Path | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> RunnerConfig:
        """Build a config from environment variables, falling back to defaults."""
        compat_file = os.getenv("COMPAT_FILE")
        return cls(
            interval_seconds=float(os.getenv("RECONCILE_INTERVAL_SECONDS", "60")),
            workers=int(os.getenv("RECONCILE_WORKERS", "4")),
            request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30")),
            configmap=ConfigMapSourceConfig(
                name=os.getenv("COMPAT_CONFIGMAP_NAME", DEFAULT_CONFIGMAP_NAME),
                namespace=os.getenv("COMPAT_CONFIGMAP_NAMESPACE", DEFAULT_CONFIGMAP_NAMESPACE),
                key=os.getenv("COMPAT_CONFIGMAP_KEY", DEFAULT_CONFIGMAP_KEY),
            ),
            compat_file=Path(compat_file) if compat_file else None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


@dataclass
class CycleReport:
    """
    Summary of one runner cycle.

    refreshed
    False when the refresh failed and the previous mapping was used.

    results
    One entry per node that reconciled without error.

    failures
    Node name to error message for nodes that raised.
    """

    refreshed: bool = False
    results: list[ReconcileResult] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def changed(self) -> list[str]:
        return [r.node for r in self.results if r.changed]


class LabelerRunner:
    """
    Top level labeling loop.

    This is not the reconciler.
    This is the runtime loop that drives it.
    """

    def __init__(
        self,
        source: CompatibilitySource,
        nodes: NodeStore,
        store: CompatibilityStore | None = None,
        config: RunnerConfig | None = None,
    ) -> None:
        self._config = config or RunnerConfig()
        self._source = source
        self._nodes = nodes
        self._store = store or CompatibilityStore()
        self._reconciler = LabelReconciler(store=self._store, nodes=nodes)
        self._stop = threading.Event()

    @property
    def store(self) -> CompatibilityStore:
        return self._store

    @property
    def reconciler(self) -> LabelReconciler:
        return self._reconciler

    def _context(self) -> CallContext:
        return CallContext(timeout_seconds=self._config.request_timeout_seconds, cancel_event=self._stop)

    def refresh_compatibility(self) -> bool:
        """
        Pull the document from the source into the store.

        Returns False when the fetch or parse failed. The store keeps its
        previous mapping in that case.
        """
        try:
            raw = self._source.fetch(self._context())
            self._store.refresh(raw)
        except LabelerError as exc:
            logger.error("compatibility refresh failed, keeping previous mapping: %s", exc)
            return False
        return True

    def _reconcile_one(self, name: str) -> ReconcileResult:
        return self._reconciler.reconcile(name, self._context())

    def run_cycle(self) -> CycleReport:
        """
        Execute one labeling cycle.
        """

        report = CycleReport(refreshed=self.refresh_compatibility())

        try:
            names = self._nodes.list_node_names(self._context())
        except LabelerError as exc:
            logger.error("listing nodes failed: %s", exc)
            return report

        with ThreadPoolExecutor(max_workers=max(1, self._config.workers)) as pool:
            futures = {name: pool.submit(self._reconcile_one, name) for name in names}

        for name, fut in futures.items():
            exc = fut.exception()
            if exc is None:
                result = fut.result()
                report.results.append(result)
                if result.outcome == ReconcileOutcome.unknown_family:
                    logger.warning("node %s: machine family %s not in compatibility mapping", name, result.family)
                continue
            if isinstance(exc, Cancelled):
                logger.info("reconcile of node %s cancelled: %s", name, exc)
            elif isinstance(exc, LabelerError):
                level = logging.WARNING if exc.retryable else logging.ERROR
                logger.log(level, "reconcile of node %s failed: %s", name, exc)
            else:
                logger.error("reconcile of node %s raised unexpectedly", name, exc_info=exc)
            report.failures[name] = str(exc)

        logger.info(
            "cycle done: %d nodes, %d updated, %d failed",
            len(names),
            len(report.changed),
            len(report.failures),
        )
        return report

    def stop(self) -> None:
        """Ask run_forever to return and cancel in flight calls."""
        self._stop.set()

    def run_forever(self) -> None:
        """
        Continuous loop execution.
        """

        while not self._stop.is_set():
            self.run_cycle()
            self._stop.wait(self._config.interval_seconds)
