"""Core data structures for KubeSpark."""

from kubespark.models.cluster import InstanceType, ResourceSettings, SparkClusterSpec
from kubespark.models.config import KubeSparkConfig
from kubespark.models.diff import FieldChange, MaterialDiff
from kubespark.models.events import FieldSummary, ReconcileEvent
from kubespark.models.outcomes import Outcome, ReconcileResult
from kubespark.models.records import (
    DesiredRecord,
    FieldPath,
    ManagedRecord,
    OwnerLink,
    ResourceIdentity,
)

__all__ = [
    "DesiredRecord",
    "FieldChange",
    "FieldPath",
    "FieldSummary",
    "InstanceType",
    "KubeSparkConfig",
    "ManagedRecord",
    "MaterialDiff",
    "Outcome",
    "OwnerLink",
    "ReconcileEvent",
    "ReconcileResult",
    "ResourceIdentity",
    "ResourceSettings",
    "SparkClusterSpec",
]
