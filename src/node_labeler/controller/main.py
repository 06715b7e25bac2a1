"""
Process entrypoint.

Loads cluster credentials, builds the runner from environment configuration
and runs it until interrupted.
"""

from __future__ import annotations

import logging

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from node_labeler.compat.sources.base import CompatibilitySource
from node_labeler.compat.sources.configmap import ConfigMapCompatibilitySource
from node_labeler.compat.sources.static import StaticCompatibilitySource
from node_labeler.controller.runner import LabelerRunner, RunnerConfig
from node_labeler.nodes.k8s import KubernetesNodeStore

logger = logging.getLogger(__name__)


def _load_kube_config() -> None:
    try:
        config.load_incluster_config()
    except ConfigException:
        config.load_kube_config()


def build_runner(cfg: RunnerConfig, api: client.CoreV1Api) -> LabelerRunner:
    """Wire sources and stores for a cluster."""
    source: CompatibilitySource
    if cfg.compat_file is not None:
        source = StaticCompatibilitySource(path=cfg.compat_file)
    else:
        source = ConfigMapCompatibilitySource(api=api, config=cfg.configmap)

    return LabelerRunner(source=source, nodes=KubernetesNodeStore(api=api), config=cfg)


def main() -> None:
    cfg = RunnerConfig.from_env()

    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    _load_kube_config()
    runner = build_runner(cfg, client.CoreV1Api())

    logger.info("node labeler starting, interval %ss, %d workers", cfg.interval_seconds, cfg.workers)
    try:
        runner.run_forever()
    except KeyboardInterrupt:
        runner.stop()
        logger.info("node labeler stopped")
