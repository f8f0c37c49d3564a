"""Shared fixtures for KubeSpark integration tests.

Provides an in-memory record store, a collecting event sink and a wired
ApplyCoordinator so integration tests can run full reconcile passes without
touching a real Kubernetes cluster.
"""

from __future__ import annotations

from typing import Any

import pytest

from kubespark.apply import ApplyCoordinator, DesiredFn, SparkClusterReconciler
from kubespark.events import MemoryEventSink
from kubespark.models.cluster import SparkClusterSpec
from kubespark.models.config import SparkConfig
from kubespark.models.records import ManagedRecord, OwnerLink, ResourceIdentity
from kubespark.store.memory import InMemoryAccessor
from kubespark.synthesis.spark import SparkSynthesizer

# ---------------------------------------------------------------------------
# Record factory helpers
# ---------------------------------------------------------------------------

WORKLOAD = ResourceIdentity("Deployment", "spark", "analytics-spark-worker")


def make_deployment(
    image: str = "splunk/spark:1.0",
    replicas: int = 2,
    annotations: dict[str, str] | None = None,
    identity: ResourceIdentity = WORKLOAD,
) -> ManagedRecord:
    """Create a desired worker Deployment with sensible defaults for testing."""
    return ManagedRecord(
        obj={
            "apiVersion": "apps/v1",
            "kind": identity.kind,
            "metadata": {"name": identity.name, "namespace": identity.namespace},
            "spec": {
                "replicas": replicas,
                "selector": {"matchLabels": {"app": "spark", "type": "spark-worker"}},
                "template": {
                    "metadata": {
                        "labels": {"app": "spark", "type": "spark-worker"},
                        "annotations": annotations
                        if annotations is not None
                        else {"traffic.sidecar.istio.io/includeInboundPorts": "7000"},
                    },
                    "spec": {
                        "schedulerName": "default-scheduler",
                        "containers": [
                            {
                                "name": "spark",
                                "image": image,
                                "ports": [{"name": "workerwebui", "containerPort": 7000, "protocol": "TCP"}],
                                "resources": {
                                    "requests": {"cpu": "0.1", "memory": "512Mi"},
                                    "limits": {"cpu": "4", "memory": "8Gi"},
                                },
                            }
                        ],
                    },
                },
            },
        }
    )


def make_secret(data: dict[str, str], name: str = "spark-credentials") -> ManagedRecord:
    """Create a desired Secret."""
    return ManagedRecord(
        obj={
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": {"name": name, "namespace": "spark", "labels": {"app": "spark"}},
            "data": data,
        }
    )


def make_cluster(**kwargs: Any) -> SparkClusterSpec:
    """Create a SparkClusterSpec with sensible defaults for testing."""
    defaults: dict[str, Any] = {
        "name": "analytics",
        "namespace": "spark",
        "uid": "5b0c7e1e-0000-4000-8000-000000000001",
        "spark_image": "splunk/spark:1.0",
        "spark_workers": 2,
    }
    defaults.update(kwargs)
    return SparkClusterSpec(**defaults)


def desired(record: ManagedRecord) -> DesiredFn:
    """Wrap a fixed desired record as a desired_fn."""

    def _fn(_current: ManagedRecord | None) -> ManagedRecord:
        return record

    return _fn


OWNER = OwnerLink(
    api_version="kubespark.io/v1alpha1",
    kind="SparkCluster",
    name="analytics",
    uid="5b0c7e1e-0000-4000-8000-000000000001",
)


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def store() -> InMemoryAccessor:
    """Empty in-memory store. Every call yields to the loop so passes interleave."""
    return InMemoryAccessor()


@pytest.fixture()
def sink() -> MemoryEventSink:
    return MemoryEventSink()


@pytest.fixture()
def coordinator(store: InMemoryAccessor, sink: MemoryEventSink) -> ApplyCoordinator:
    return ApplyCoordinator(store, sink)


@pytest.fixture()
def reconciler(coordinator: ApplyCoordinator) -> SparkClusterReconciler:
    return SparkClusterReconciler(coordinator, SparkSynthesizer(SparkConfig()))
