"""Comparator output: material differences between current and desired records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from kubespark.models.records import FieldPath, ResourceIdentity


@dataclass(frozen=True)
class FieldChange:
    """One material field whose desired value differs from the current one.

    ``path`` is concrete (list indices resolved) so the merge can set it
    without consulting the field list again.
    """

    field: str  # e.g. "containers[2].image"
    path: FieldPath
    current: Any
    desired: Any
    sensitive: bool = False


@dataclass(frozen=True)
class MaterialDiff:
    """Result of comparing a managed record against a desired record.

    If ``changed`` is False, applying the desired record would be a no-op.
    """

    identity: ResourceIdentity
    changes: tuple[FieldChange, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.changes)

    @property
    def fields(self) -> frozenset[str]:
        return frozenset(change.field for change in self.changes)

    def __bool__(self) -> bool:
        return self.changed
