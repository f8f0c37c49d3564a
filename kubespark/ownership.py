"""Ownership linker.

Stamps managed records with an owner reference back to the SparkCluster that
produced them, so that deleting the cluster cascades through the external
garbage collector.
"""

from __future__ import annotations

from kubespark.models.cluster import SparkClusterSpec
from kubespark.models.records import ManagedRecord, OwnerLink


def owner_link_for(cluster: SparkClusterSpec) -> OwnerLink:
    """Return the owner link pointing at *cluster*."""
    return OwnerLink(
        api_version=cluster.api_version,
        kind=cluster.kind,
        name=cluster.name,
        uid=cluster.uid,
        controller=True,
    )


def link(record: ManagedRecord, owner: OwnerLink) -> ManagedRecord:
    """Return *record* with *owner* among its owner references.

    Idempotent, and existing references to other owners are kept as they are.
    """
    refs = record.owner_references
    if any(owner.matches(ref) for ref in refs):
        return record
    obj = record.to_dict()
    obj.setdefault("metadata", {})["ownerReferences"] = [*refs, owner.to_dict()]
    return ManagedRecord(obj=obj)
