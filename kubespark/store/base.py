"""Resource accessor contract.

Accessors are the only place a reconcile pass suspends. Implementations must
signal outcomes as follows:

* ``read``   -- ``None`` when the record does not exist.
* ``create`` -- :class:`AlreadyExistsError` when another creator won the race.
* ``update`` -- :class:`VersionConflictError` when the version token is stale
  or the record disappeared since it was read.
* any call  -- :class:`AccessorError` for transport or server failures.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from kubespark.models.records import ManagedRecord, ResourceIdentity


class ResourceAccessor(ABC):
    """Read/create/update primitives for stored resource records."""

    @property
    @abstractmethod
    def accessor_name(self) -> str:
        """Identifier used in metrics and logs."""

    @abstractmethod
    async def read(self, identity: ResourceIdentity) -> ManagedRecord | None:
        """Return the stored record for *identity*, or None if there is none."""

    @abstractmethod
    async def create(self, record: ManagedRecord) -> ManagedRecord:
        """Store a new record and return it as the store now holds it."""

    @abstractmethod
    async def update(self, record: ManagedRecord) -> ManagedRecord:
        """Replace a record, guarded by its version token; return the stored result."""
