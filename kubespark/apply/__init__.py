"""Apply Coordinator and cluster-level reconciler."""

from kubespark.apply.cluster import ClusterResult, SparkClusterReconciler, build_cluster_reconciler
from kubespark.apply.coordinator import ApplyCoordinator, DesiredFn

__all__ = [
    "ApplyCoordinator",
    "ClusterResult",
    "DesiredFn",
    "SparkClusterReconciler",
    "build_cluster_reconciler",
]
