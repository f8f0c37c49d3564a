"""SparkCluster custom resource model."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from kubespark.errors import SynthesisError

SPARK_CLUSTER_API_VERSION = "kubespark.io/v1alpha1"
SPARK_CLUSTER_KIND = "SparkCluster"


class InstanceType(StrEnum):
    """Role of a Spark instance."""

    SPARK_MASTER = "spark-master"
    SPARK_WORKER = "spark-worker"


@dataclass(frozen=True)
class ResourceSettings:
    """Raw quantity strings as written in the custom resource.

    Empty values fall back to the synthesizer defaults.
    """

    spark_cpu_request: str = ""
    spark_memory_request: str = ""
    spark_cpu_limit: str = ""
    spark_memory_limit: str = ""


@dataclass(frozen=True)
class SparkClusterSpec:
    """Desired state of one Spark cluster, read from a SparkCluster custom resource."""

    name: str
    namespace: str
    uid: str = ""
    api_version: str = SPARK_CLUSTER_API_VERSION
    kind: str = SPARK_CLUSTER_KIND
    spark_image: str = ""
    image_pull_policy: str = ""
    scheduler_name: str = ""
    affinity: dict[str, Any] | None = None
    resources: ResourceSettings = field(default_factory=ResourceSettings)
    spark_workers: int = 1

    @property
    def identifier(self) -> str:
        return self.name

    @classmethod
    def from_custom_resource(cls, obj: Mapping[str, Any]) -> SparkClusterSpec:
        """Build a spec from a SparkCluster object as returned by the API server."""
        metadata = obj.get("metadata") or {}
        spec = obj.get("spec") or {}
        resources = spec.get("resources") or {}
        topology = spec.get("topology") or {}
        affinity = spec.get("affinity")
        workers = _parse_workers(topology.get("sparkWorkers"))
        return cls(
            name=str(metadata.get("name", "")),
            namespace=str(metadata.get("namespace", "")),
            uid=str(metadata.get("uid", "") or ""),
            api_version=str(obj.get("apiVersion") or SPARK_CLUSTER_API_VERSION),
            kind=str(obj.get("kind") or SPARK_CLUSTER_KIND),
            spark_image=str(spec.get("sparkImage", "") or ""),
            image_pull_policy=str(spec.get("imagePullPolicy", "") or ""),
            scheduler_name=str(spec.get("schedulerName", "") or ""),
            affinity=copy.deepcopy(dict(affinity)) if isinstance(affinity, Mapping) else None,
            resources=ResourceSettings(
                spark_cpu_request=str(resources.get("sparkCpuRequest", "") or ""),
                spark_memory_request=str(resources.get("sparkMemoryRequest", "") or ""),
                spark_cpu_limit=str(resources.get("sparkCpuLimit", "") or ""),
                spark_memory_limit=str(resources.get("sparkMemoryLimit", "") or ""),
            ),
            spark_workers=workers,
        )


def _parse_workers(value: object) -> int:
    if value is None or value == "":
        return 1
    try:
        workers = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError) as exc:
        raise SynthesisError("sparkWorkers", value, "must be an integer") from exc
    if workers < 0:
        raise SynthesisError("sparkWorkers", value, "must not be negative")
    return workers
