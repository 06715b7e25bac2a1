"""
ConfigMap compatibility source.

Reads the compatibility document from one data key of a Kubernetes
ConfigMap. This is how clusters ship the mapping by default.

A missing ConfigMap or a missing key means the configuration is absent.
Any other API failure is reported as StoreUnavailableError so the caller can
keep the previous mapping and try again later.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from kubernetes.client import CoreV1Api
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from node_labeler.compat.sources.base import CompatibilitySource
from node_labeler.core.context import CallContext
from node_labeler.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_CONFIGMAP_NAME = "machine-pd-compatibility"
DEFAULT_CONFIGMAP_NAMESPACE = "gce-pd-csi-driver"
DEFAULT_CONFIGMAP_KEY = "machine-pd-compatibility.json"


@dataclass(frozen=True)
class ConfigMapSourceConfig:
    """
    ConfigMap location.

    name, namespace
    Identify the ConfigMap.

    key
    Data key holding the json document.
    """

    name: str = DEFAULT_CONFIGMAP_NAME
    namespace: str = DEFAULT_CONFIGMAP_NAMESPACE
    key: str = DEFAULT_CONFIGMAP_KEY


@dataclass
class ConfigMapCompatibilitySource(CompatibilitySource):
    """Load the compatibility document from a ConfigMap."""

    api: CoreV1Api
    config: ConfigMapSourceConfig = ConfigMapSourceConfig()

    def fetch(self, ctx: CallContext) -> bytes | None:
        ctx.check()
        cfg = self.config
        try:
            cm = self.api.read_namespaced_config_map(
                name=cfg.name,
                namespace=cfg.namespace,
                _request_timeout=ctx.remaining(),
            )
        except ApiException as exc:
            if exc.status == 404:
                logger.warning("configmap %s/%s not found, using empty mapping", cfg.namespace, cfg.name)
                return None
            raise StoreUnavailableError(
                f"reading configmap {cfg.namespace}/{cfg.name}: {exc.status} {exc.reason}"
            ) from exc
        except HTTPError as exc:
            raise ctx.transport_failure(f"reading configmap {cfg.namespace}/{cfg.name}: {exc}") from exc

        data = cm.data or {}
        raw = data.get(cfg.key)
        if raw is None:
            logger.warning("configmap %s/%s has no key %s, using empty mapping", cfg.namespace, cfg.name, cfg.key)
            return None
        return raw.encode("utf-8")
