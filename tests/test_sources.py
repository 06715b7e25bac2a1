from __future__ import annotations

from pathlib import Path

import pytest
from kubernetes.client import V1ConfigMap, V1ObjectMeta
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import ReadTimeoutError

from node_labeler.compat.sources.configmap import ConfigMapCompatibilitySource, ConfigMapSourceConfig
from node_labeler.compat.sources.static import StaticCompatibilitySource
from node_labeler.core.context import CallContext
from node_labeler.core.errors import Cancelled, StoreUnavailableError


class FakeConfigMapApi:
    """Serves ConfigMaps keyed by namespace and name, or raises a fixed ApiException."""

    def __init__(self, configmaps: dict[tuple[str, str], V1ConfigMap] | None = None, error: ApiException | None = None):
        self._configmaps = configmaps or {}
        self._error = error
        self.calls: list[tuple[str, str]] = []

    def read_namespaced_config_map(self, name, namespace, _request_timeout=None):  # type: ignore[no-untyped-def]
        self.calls.append((namespace, name))
        if self._error is not None:
            raise self._error
        try:
            return self._configmaps[(namespace, name)]
        except KeyError:
            raise ApiException(status=404, reason="Not Found") from None


def _configmap(data: dict[str, str] | None) -> V1ConfigMap:
    return V1ConfigMap(
        metadata=V1ObjectMeta(name="machine-pd-compatibility", namespace="gce-pd-csi-driver"),
        data=data,
    )


def test_static_source_reads_file(tmp_path: Path):
    path = tmp_path / "compat.json"
    path.write_text('{"e2": {"pd-ssd": true}}', encoding="utf-8")

    assert StaticCompatibilitySource(path=path).fetch(CallContext()) == b'{"e2": {"pd-ssd": true}}'


def test_static_source_missing_file_is_absent(tmp_path: Path):
    assert StaticCompatibilitySource(path=tmp_path / "nope.json").fetch(CallContext()) is None


def test_configmap_source_reads_default_location():
    api = FakeConfigMapApi(
        {("gce-pd-csi-driver", "machine-pd-compatibility"): _configmap({"machine-pd-compatibility.json": "{}"})}
    )

    raw = ConfigMapCompatibilitySource(api=api).fetch(CallContext())

    assert raw == b"{}"
    assert api.calls == [("gce-pd-csi-driver", "machine-pd-compatibility")]


def test_configmap_source_custom_location_and_missing_key():
    api = FakeConfigMapApi({("ops", "compat"): _configmap({"other.json": "{}"})})
    source = ConfigMapCompatibilitySource(api=api, config=ConfigMapSourceConfig(name="compat", namespace="ops"))

    assert source.fetch(CallContext()) is None


def test_configmap_source_without_data_is_absent():
    api = FakeConfigMapApi({("gce-pd-csi-driver", "machine-pd-compatibility"): _configmap(None)})

    assert ConfigMapCompatibilitySource(api=api).fetch(CallContext()) is None


def test_configmap_source_missing_configmap_is_absent():
    assert ConfigMapCompatibilitySource(api=FakeConfigMapApi()).fetch(CallContext()) is None


def test_configmap_source_api_failure_is_unavailable():
    api = FakeConfigMapApi(error=ApiException(status=503, reason="Service Unavailable"))

    with pytest.raises(StoreUnavailableError):
        ConfigMapCompatibilitySource(api=api).fetch(CallContext())


def test_static_source_unreadable_path_is_unavailable(tmp_path: Path):
    with pytest.raises(StoreUnavailableError):
        StaticCompatibilitySource(path=tmp_path).fetch(CallContext())


def test_configmap_source_timeout_past_deadline_is_cancelled():
    ctx = CallContext(timeout_seconds=30)

    class SlowApi:
        def read_namespaced_config_map(self, name, namespace, _request_timeout=None):  # type: ignore[no-untyped-def]
            ctx.timeout_seconds = 0
            raise ReadTimeoutError(None, "/api/v1/configmaps", "Read timed out.")

    with pytest.raises(Cancelled):
        ConfigMapCompatibilitySource(api=SlowApi()).fetch(ctx)
