"""Observability event emitted for every reconcile outcome."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from kubespark.models.outcomes import Outcome, ReconcileResult
from kubespark.observability.redaction import summarize


@dataclass(frozen=True)
class FieldSummary:
    """A changed field with redacted, truncated old/new values."""

    field: str
    current: str
    desired: str


@dataclass(frozen=True)
class ReconcileEvent:
    """Structured event keyed by identity.

    This is the only wire format the engine defines. Sensitive field values
    never appear in it.
    """

    kind: str
    namespace: str
    name: str
    outcome: Outcome
    reason: str = ""
    resource_version: str = ""
    changes: tuple[FieldSummary, ...] = ()
    occurred_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    event_id: str = field(default_factory=lambda: str(uuid4()))

    @classmethod
    def from_result(cls, result: ReconcileResult, max_value_length: int = 256) -> ReconcileEvent:
        summaries = tuple(
            FieldSummary(
                field=change.field,
                current=summarize(change.current, sensitive=change.sensitive, max_length=max_value_length),
                desired=summarize(change.desired, sensitive=change.sensitive, max_length=max_value_length),
            )
            for change in result.changes
        )
        return cls(
            kind=result.identity.kind,
            namespace=result.identity.namespace,
            name=result.identity.name,
            outcome=result.outcome,
            reason=result.reason,
            resource_version=result.resource_version,
            changes=summaries,
        )

    @property
    def resource(self) -> str:
        return f"{self.kind}/{self.namespace}/{self.name}"

    def to_dict(self) -> dict[str, object]:
        return {
            "event_id": self.event_id,
            "occurred_at": self.occurred_at.isoformat(),
            "kind": self.kind,
            "namespace": self.namespace,
            "name": self.name,
            "outcome": self.outcome.value,
            "reason": self.reason,
            "resource_version": self.resource_version,
            "changes": [
                {"field": c.field, "current": c.current, "desired": c.desired} for c in self.changes
            ],
        }
