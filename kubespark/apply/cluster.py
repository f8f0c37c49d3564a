"""Reconcile every managed resource of one SparkCluster."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import structlog

from kubespark.apply.coordinator import ApplyCoordinator, DesiredFn
from kubespark.errors import SynthesisError
from kubespark.events import EventSink, build_event_sink
from kubespark.models.cluster import SparkClusterSpec
from kubespark.models.config import KubeSparkConfig
from kubespark.models.outcomes import Outcome, ReconcileResult
from kubespark.models.records import ManagedRecord, ResourceIdentity
from kubespark.ownership import owner_link_for
from kubespark.store.base import ResourceAccessor
from kubespark.synthesis.spark import ManagedComponent, SparkSynthesizer

_log = structlog.get_logger(component="apply.cluster")


@dataclass(frozen=True)
class ClusterResult:
    """Results for all managed resources of one cluster, in component order.

    ``error`` is set only when the custom resource itself could not be parsed,
    in which case no resource was touched.
    """

    cluster: str
    results: tuple[ReconcileResult, ...] = ()
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and all(r.ok for r in self.results)

    @property
    def requeue(self) -> bool:
        """True when another pass is needed: something conflicted or failed."""
        return any(r.retryable or not r.ok for r in self.results)

    @property
    def outcomes(self) -> dict[ResourceIdentity, Outcome]:
        return {r.identity: r.outcome for r in self.results}

    def result_for(self, identity: ResourceIdentity) -> ReconcileResult | None:
        for result in self.results:
            if result.identity == identity:
                return result
        return None


class SparkClusterReconciler:
    """Runs the Apply Coordinator over every component of a cluster concurrently.

    A failure for one component never aborts its siblings: the coordinator
    turns every error into a FAILED result.
    """

    def __init__(self, coordinator: ApplyCoordinator, synthesizer: SparkSynthesizer) -> None:
        self._coordinator = coordinator
        self._synthesizer = synthesizer

    async def reconcile(self, cluster: SparkClusterSpec) -> ClusterResult:
        owner = owner_link_for(cluster)
        components = self._synthesizer.components(cluster)
        results = await asyncio.gather(
            *(self._coordinator.reconcile(c.identity, _desired_fn(c), owner) for c in components)
        )
        result = ClusterResult(cluster=f"{cluster.namespace}/{cluster.name}", results=tuple(results))
        _log.info(
            "cluster_reconciled",
            cluster=result.cluster,
            outcomes={str(r.identity): r.outcome.value for r in result.results},
            requeue=result.requeue,
        )
        return result

    async def reconcile_resource(self, obj: Mapping[str, Any]) -> ClusterResult:
        """Parse a SparkCluster custom resource and reconcile it."""
        metadata = obj.get("metadata") or {}
        label = f"{metadata.get('namespace', '')}/{metadata.get('name', '')}"
        try:
            cluster = SparkClusterSpec.from_custom_resource(obj)
        except SynthesisError as exc:
            _log.error("cluster_spec_invalid", cluster=label, field=exc.field, reason=exc.reason)
            return ClusterResult(cluster=label, error=exc)
        return await self.reconcile(cluster)


def _desired_fn(component: ManagedComponent) -> DesiredFn:
    def desired(_current: ManagedRecord | None) -> ManagedRecord:
        return component.synthesize()

    return desired


def build_cluster_reconciler(
    config: KubeSparkConfig,
    accessor: ResourceAccessor,
    sink: EventSink | None = None,
) -> SparkClusterReconciler:
    """Wire a SparkClusterReconciler from configuration.

    When *sink* is omitted the sinks come from ``config.events``.
    """
    coordinator = ApplyCoordinator(
        accessor,
        sink if sink is not None else build_event_sink(config.events),
        max_value_length=config.events.max_value_length,
    )
    return SparkClusterReconciler(coordinator, SparkSynthesizer(config.spark))
