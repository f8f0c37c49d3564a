"""Reconcile outcome data structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from kubespark.models.diff import FieldChange
from kubespark.models.records import ResourceIdentity


class Outcome(StrEnum):
    """Result of one reconcile pass for one managed resource."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    CONFLICT = "conflict"
    FAILED = "failed"


_SUCCESS = frozenset({Outcome.CREATED, Outcome.UPDATED, Outcome.UNCHANGED})


@dataclass(frozen=True)
class ReconcileResult:
    """What the Apply Coordinator did for one identity.

    CONFLICT means the pass saw a stale version token; the caller should
    run the whole reconcile again. The engine never retries by itself.
    """

    identity: ResourceIdentity
    outcome: Outcome
    changes: tuple[FieldChange, ...] = ()
    reason: str = ""
    error: BaseException | None = None
    resource_version: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome in _SUCCESS

    @property
    def retryable(self) -> bool:
        return self.outcome is Outcome.CONFLICT

    @property
    def changed_fields(self) -> list[str]:
        return [change.field for change in self.changes]
