"""Desired-record synthesis for Spark master and worker roles.

Every function here is deterministic: identical cluster specs produce
identical records, and every sequence (ports, env, containers) is emitted in
a stable order so the positional comparator never sees spurious reordering.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from kubespark.errors import SynthesisError
from kubespark.models.cluster import InstanceType, SparkClusterSpec
from kubespark.models.config import SparkConfig
from kubespark.models.records import ManagedRecord, ResourceIdentity
from kubespark.synthesis.quantity import parse_resource_quantity

DEFAULT_SCHEDULER = "default-scheduler"

_SPARK_MASTER_PORTS = {"sparkmaster": 7777, "sparkwebui": 8009}
_SPARK_WORKER_PORTS = {"dfwreceivedata": 17500, "workerwebui": 7000}

# HTTP interface each role listens on for probes
_HTTP_PORTS = {InstanceType.SPARK_MASTER: 8009, InstanceType.SPARK_WORKER: 7000}

# Spark-internal traffic the sidecar must not intercept on the way out
_EXCLUDE_OUTBOUND_PORTS = (7777, 17500)

_RUN_AS_USER = 41812

_REQUIREMENT_DEFAULTS = (
    # (field name in the custom resource, attribute, section, resource, default)
    ("sparkCpuRequest", "spark_cpu_request", "requests", "cpu", "0.1"),
    ("sparkMemoryRequest", "spark_memory_request", "requests", "memory", "512Mi"),
    ("sparkCpuLimit", "spark_cpu_limit", "limits", "cpu", "4"),
    ("sparkMemoryLimit", "spark_memory_limit", "limits", "memory", "8Gi"),
)


@dataclass(frozen=True)
class ManagedComponent:
    """One resource a cluster needs: its identity and how to synthesize it."""

    identity: ResourceIdentity
    role: InstanceType
    synthesize: Callable[[], ManagedRecord]


def spark_app_labels(identifier: str, type_label: str, is_selector: bool) -> dict[str, str]:
    """Labels for Spark components; selector labels are the stable subset."""
    labels = {"app": "spark", "for": identifier, "type": str(type_label)}
    if not is_selector:
        labels["app.kubernetes.io/managed-by"] = "kubespark"
    return labels


def deployment_name(instance_type: InstanceType, identifier: str) -> str:
    return f"{identifier}-{instance_type}"


def service_name(instance_type: InstanceType, identifier: str, is_headless: bool) -> str:
    suffix = "headless" if is_headless else "service"
    return f"{identifier}-{instance_type}-{suffix}"


def role_ports(instance_type: InstanceType) -> dict[str, int]:
    if instance_type is InstanceType.SPARK_MASTER:
        return dict(_SPARK_MASTER_PORTS)
    return dict(_SPARK_WORKER_PORTS)


def container_ports(instance_type: InstanceType) -> list[dict[str, Any]]:
    return [
        {"name": name, "containerPort": port, "protocol": "TCP"}
        for name, port in sorted(role_ports(instance_type).items())
    ]


def service_ports(instance_type: InstanceType) -> list[dict[str, Any]]:
    # protocol and targetPort match the server defaults so stored ports compare equal
    return [
        {"name": name, "port": port, "protocol": "TCP", "targetPort": port}
        for name, port in sorted(role_ports(instance_type).items())
    ]


def role_environment(instance_type: InstanceType, identifier: str) -> list[dict[str, str]]:
    if instance_type is InstanceType.SPARK_MASTER:
        return [{"name": "SPLUNK_ROLE", "value": "splunk_spark_master"}]
    return [
        {"name": "SPLUNK_ROLE", "value": "splunk_spark_worker"},
        {"name": "SPARK_MASTER_HOSTNAME", "value": service_name(InstanceType.SPARK_MASTER, identifier, False)},
        # newer images set this themselves; kept for older ones
        {"name": "SPARK_WORKER_PORT", "value": "7777"},
    ]


def istio_annotations(ports: list[dict[str, Any]]) -> dict[str, str]:
    """Sidecar port rules: Spark-internal ports bypass the proxy outbound."""
    inbound = sorted(
        int(port["containerPort"]) for port in ports if int(port["containerPort"]) not in _EXCLUDE_OUTBOUND_PORTS
    )
    return {
        "traffic.sidecar.istio.io/excludeOutboundPorts": ",".join(str(p) for p in _EXCLUDE_OUTBOUND_PORTS),
        "traffic.sidecar.istio.io/includeInboundPorts": ",".join(str(p) for p in inbound),
    }


def append_pod_anti_affinity(
    affinity: dict[str, Any] | None,
    identifier: str,
    type_label: str,
) -> dict[str, Any]:
    """Return *affinity* plus a preference to spread pods of one role across hosts."""
    result = copy.deepcopy(affinity) if affinity else {}
    anti = result.setdefault("podAntiAffinity", {})
    preferred = anti.setdefault("preferredDuringSchedulingIgnoredDuringExecution", [])
    preferred.append(
        {
            "weight": 100,
            "podAffinityTerm": {
                "labelSelector": {
                    "matchExpressions": [
                        {"key": "for", "operator": "In", "values": [identifier]},
                        {"key": "type", "operator": "In", "values": [str(type_label)]},
                    ]
                },
                "topologyKey": "kubernetes.io/hostname",
            },
        }
    )
    return result


class SparkSynthesizer:
    """Derives desired records for a SparkCluster and one of its roles.

    Args:
        config: defaults for image and pull policy when the cluster leaves them empty.
    """

    def __init__(self, config: SparkConfig | None = None) -> None:
        self._config = config or SparkConfig()

    def components(self, cluster: SparkClusterSpec) -> list[ManagedComponent]:
        """All managed resources of *cluster*, services first."""
        ident = cluster.identifier
        ns = cluster.namespace
        master = InstanceType.SPARK_MASTER
        worker = InstanceType.SPARK_WORKER
        return [
            ManagedComponent(
                identity=ResourceIdentity("Service", ns, service_name(master, ident, False)),
                role=master,
                synthesize=lambda: self.service(cluster, master, is_headless=False),
            ),
            ManagedComponent(
                identity=ResourceIdentity("Service", ns, service_name(worker, ident, True)),
                role=worker,
                synthesize=lambda: self.service(cluster, worker, is_headless=True),
            ),
            ManagedComponent(
                identity=ResourceIdentity("Deployment", ns, deployment_name(master, ident)),
                role=master,
                synthesize=lambda: self.deployment(cluster, master),
            ),
            ManagedComponent(
                identity=ResourceIdentity("Deployment", ns, deployment_name(worker, ident)),
                role=worker,
                synthesize=lambda: self.deployment(cluster, worker),
            ),
        ]

    def synthesize(self, cluster: SparkClusterSpec, role: InstanceType, kind: str = "Deployment") -> ManagedRecord:
        """Return the desired record of *kind* for *role*.

        Masters get a regular Service, workers a headless one.
        """
        if kind == "Deployment":
            return self.deployment(cluster, role)
        if kind == "Service":
            return self.service(cluster, role, is_headless=role is InstanceType.SPARK_WORKER)
        raise SynthesisError("kind", kind, "Spark roles only produce Deployments and Services")

    def image(self, cluster: SparkClusterSpec) -> str:
        return cluster.spark_image or self._config.image

    def requirements(self, cluster: SparkClusterSpec) -> dict[str, dict[str, str]]:
        """Container resource requirements, defaults filled in.

        Raises:
            SynthesisError: naming the first unparsable quantity field.
        """
        out: dict[str, dict[str, str]] = {"limits": {}, "requests": {}}
        for field_name, attr, section, resource, default in _REQUIREMENT_DEFAULTS:
            raw = getattr(cluster.resources, attr)
            try:
                out[section][resource] = parse_resource_quantity(raw, default)
            except ValueError as exc:
                raise SynthesisError(field_name, raw, str(exc)) from exc
        return out

    def deployment(self, cluster: SparkClusterSpec, instance_type: InstanceType) -> ManagedRecord:
        ident = cluster.identifier
        if instance_type is InstanceType.SPARK_MASTER:
            replicas = 1
        else:
            replicas = cluster.spark_workers
        ports = container_ports(instance_type)
        requirements = self.requirements(cluster)
        http_port = _HTTP_PORTS[instance_type]

        container = {
            "name": "spark",
            "image": self.image(cluster),
            "imagePullPolicy": cluster.image_pull_policy or self._config.image_pull_policy,
            "ports": ports,
            "env": role_environment(instance_type, ident),
            "resources": requirements,
            "livenessProbe": _http_probe(http_port, initial_delay=30),
            "readinessProbe": _http_probe(http_port, initial_delay=5),
        }
        obj = {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": {
                "name": deployment_name(instance_type, ident),
                "namespace": cluster.namespace,
            },
            "spec": {
                "replicas": replicas,
                "selector": {"matchLabels": spark_app_labels(ident, instance_type, True)},
                "template": {
                    "metadata": {
                        "labels": spark_app_labels(ident, instance_type, False),
                        "annotations": istio_annotations(ports),
                    },
                    "spec": {
                        "affinity": append_pod_anti_affinity(cluster.affinity, ident, instance_type),
                        "schedulerName": cluster.scheduler_name or DEFAULT_SCHEDULER,
                        "hostname": service_name(instance_type, ident, False),
                        "securityContext": {"runAsUser": _RUN_AS_USER, "fsGroup": _RUN_AS_USER},
                        "containers": [container],
                    },
                },
            },
        }
        return ManagedRecord(obj=obj)

    def service(self, cluster: SparkClusterSpec, instance_type: InstanceType, is_headless: bool) -> ManagedRecord:
        ident = cluster.identifier
        spec: dict[str, Any] = {
            "selector": spark_app_labels(ident, instance_type, True),
            "ports": service_ports(instance_type),
        }
        if is_headless:
            spec["clusterIP"] = "None"
        obj = {
            "apiVersion": "v1",
            "kind": "Service",
            "metadata": {
                "name": service_name(instance_type, ident, is_headless),
                "namespace": cluster.namespace,
                "labels": spark_app_labels(ident, f"{instance_type}-service", False),
            },
            "spec": spec,
        }
        return ManagedRecord(obj=obj)


def _http_probe(port: int, initial_delay: int) -> dict[str, Any]:
    return {
        "httpGet": {"path": "/", "port": port},
        "initialDelaySeconds": initial_delay,
        "timeoutSeconds": 10,
        "periodSeconds": 10,
    }
