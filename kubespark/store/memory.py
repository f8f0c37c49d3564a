"""In-memory resource accessor.

Behaves like the API server for the operations the engine uses: it assigns
``uid``, ``creationTimestamp`` and a monotonically increasing
``resourceVersion``, rejects duplicate creates and stale updates, and never
shares record objects with callers.
"""

from __future__ import annotations

import asyncio
import copy
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import structlog

from kubespark.errors import AlreadyExistsError, VersionConflictError
from kubespark.models.records import ManagedRecord, ResourceIdentity
from kubespark.observability.metrics import accessor_requests_total
from kubespark.store.base import ResourceAccessor

_log = structlog.get_logger(component="store.memory")


class InMemoryAccessor(ResourceAccessor):
    """Dict-backed record store.

    Args:
        latency: seconds each call sleeps before touching the store. The
                 default of 0 still yields to the event loop, so concurrent
                 passes interleave at the I/O points just as they would
                 against a real server.
    """

    def __init__(self, latency: float = 0.0) -> None:
        self._latency = latency
        self._records: dict[tuple[str, str, str], dict[str, Any]] = {}
        self._version = 0
        self.reads = 0
        self.creates = 0
        self.updates = 0

    @property
    def accessor_name(self) -> str:
        return "memory"

    @property
    def writes(self) -> int:
        """Number of successful creates and updates."""
        return self.creates + self.updates

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, identity: object) -> bool:
        return isinstance(identity, ResourceIdentity) and identity.key in self._records

    def get(self, identity: ResourceIdentity) -> ManagedRecord | None:
        """Synchronous peek at a stored record, for inspection and tests."""
        stored = self._records.get(identity.key)
        return ManagedRecord.from_dict(stored) if stored is not None else None

    def put(self, record: ManagedRecord) -> ManagedRecord:
        """Write *record* unconditionally, as an external actor editing the store would."""
        obj = record.to_dict()
        meta = obj.setdefault("metadata", {})
        existing = self._records.get(record.identity.key)
        if existing is not None:
            meta.setdefault("uid", existing.get("metadata", {}).get("uid"))
        self._stamp(meta)
        self._records[record.identity.key] = obj
        return ManagedRecord.from_dict(obj)

    def remove(self, identity: ResourceIdentity) -> bool:
        """Drop a record the way an external deleter would. Returns True if it existed."""
        return self._records.pop(identity.key, None) is not None

    async def read(self, identity: ResourceIdentity) -> ManagedRecord | None:
        await asyncio.sleep(self._latency)
        self.reads += 1
        stored = self._records.get(identity.key)
        result = "found" if stored is not None else "not_found"
        accessor_requests_total.labels(operation="read", result=result).inc()
        return ManagedRecord.from_dict(stored) if stored is not None else None

    async def create(self, record: ManagedRecord) -> ManagedRecord:
        await asyncio.sleep(self._latency)
        identity = record.identity
        if identity.key in self._records:
            accessor_requests_total.labels(operation="create", result="already_exists").inc()
            raise AlreadyExistsError(identity)
        obj = record.to_dict()
        meta = obj.setdefault("metadata", {})
        meta.pop("resourceVersion", None)
        meta["uid"] = str(uuid4())
        meta["creationTimestamp"] = datetime.now(tz=UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
        self._stamp(meta)
        self._records[identity.key] = obj
        self.creates += 1
        accessor_requests_total.labels(operation="create", result="success").inc()
        _log.debug("record_created", resource=str(identity), resource_version=meta["resourceVersion"])
        return ManagedRecord.from_dict(obj)

    async def update(self, record: ManagedRecord) -> ManagedRecord:
        await asyncio.sleep(self._latency)
        identity = record.identity
        stored = self._records.get(identity.key)
        if stored is None:
            accessor_requests_total.labels(operation="update", result="conflict").inc()
            raise VersionConflictError(identity, "record no longer exists")
        stored_version = str(stored.get("metadata", {}).get("resourceVersion", ""))
        if not record.resource_version or record.resource_version != stored_version:
            accessor_requests_total.labels(operation="update", result="conflict").inc()
            raise VersionConflictError(
                identity,
                f"token {record.resource_version or '<none>'} does not match {stored_version}",
            )
        obj = record.to_dict()
        meta = obj.setdefault("metadata", {})
        # identity metadata is owned by the store
        for key in ("uid", "creationTimestamp"):
            if key in stored.get("metadata", {}):
                meta[key] = copy.deepcopy(stored["metadata"][key])
        self._stamp(meta)
        self._records[identity.key] = obj
        self.updates += 1
        accessor_requests_total.labels(operation="update", result="success").inc()
        _log.debug("record_updated", resource=str(identity), resource_version=meta["resourceVersion"])
        return ManagedRecord.from_dict(obj)

    def _stamp(self, meta: dict[str, Any]) -> None:
        self._version += 1
        meta["resourceVersion"] = str(self._version)
