"""Apply Coordinator.

Turns the comparator's decision into at most one mutation per resource per
reconcile pass:

    read ─┬─ absent  ──► synthesize ─► link owner ─► create
          └─ present ──► synthesize ─► compare ─┬─ unchanged ──► (no write)
                                                └─ changed   ──► merge ─► update

Every pass ends in exactly one ReconcileResult, one ReconcileEvent on the
sink and one structured log line. Nothing raised by the accessor, the
synthesizer or the comparator escapes ``reconcile``. Conflicts are reported
as retryable and never retried here.
"""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog

from kubespark.compare import compare, merge
from kubespark.errors import (
    AccessorError,
    AlreadyExistsError,
    SynthesisError,
    UnsupportedKindError,
    VersionConflictError,
)
from kubespark.events import EventSink, LogEventSink
from kubespark.models.diff import MaterialDiff
from kubespark.models.events import ReconcileEvent
from kubespark.models.outcomes import Outcome, ReconcileResult
from kubespark.models.records import ManagedRecord, OwnerLink, ResourceIdentity
from kubespark.observability.metrics import (
    field_label,
    reconcile_changed_fields_total,
    reconcile_duration_seconds,
    reconcile_total,
)
from kubespark.ownership import link
from kubespark.store.base import ResourceAccessor

_log = structlog.get_logger(component="apply.coordinator")

DesiredFn = Callable[[ManagedRecord | None], ManagedRecord]


class ApplyCoordinator:
    """Reconciles one managed resource at a time against a ResourceAccessor.

    Holds no per-resource state, so one coordinator can serve any number of
    concurrent ``reconcile`` calls for distinct identities.

    Args:
        accessor:         Record store to read from and write to.
        sink:             Receives one ReconcileEvent per pass. Defaults to a LogEventSink.
        max_value_length: Truncation limit for field values carried in events.
    """

    def __init__(
        self,
        accessor: ResourceAccessor,
        sink: EventSink | None = None,
        max_value_length: int = 256,
    ) -> None:
        self._accessor = accessor
        self._sink = sink if sink is not None else LogEventSink()
        self._max_value_length = max_value_length

    @property
    def accessor(self) -> ResourceAccessor:
        return self._accessor

    async def reconcile(
        self,
        identity: ResourceIdentity,
        desired_fn: DesiredFn,
        owner: OwnerLink | None = None,
    ) -> ReconcileResult:
        """Bring the record at *identity* in line with ``desired_fn(current)``.

        *desired_fn* receives the current record, or None when absent, and
        returns the desired record for the same identity. When *owner* is
        given, newly created records carry it as an owner reference.
        """
        started = time.monotonic()
        log = _log.bind(kind=identity.kind, namespace=identity.namespace, name=identity.name)
        try:
            result = await self._reconcile(identity, desired_fn, owner, log)
        except Exception as exc:  # noqa: BLE001
            log.error("reconcile_unexpected_error", error=str(exc), exc_info=True)
            result = ReconcileResult(
                identity=identity,
                outcome=Outcome.FAILED,
                reason=f"unexpected error: {exc}",
                error=exc,
            )
        duration = time.monotonic() - started
        self._observe(result, duration, log)
        return result

    async def _reconcile(
        self,
        identity: ResourceIdentity,
        desired_fn: DesiredFn,
        owner: OwnerLink | None,
        log: structlog.stdlib.BoundLogger,
    ) -> ReconcileResult:
        try:
            current = await self._accessor.read(identity)
        except AccessorError as exc:
            return _failed(identity, f"read failed: {exc.cause}", exc)

        try:
            desired = desired_fn(current)
        except SynthesisError as exc:
            log.warning("synthesis_failed", field=exc.field, reason=exc.reason)
            return _failed(identity, f"synthesis failed: {exc}", exc)

        if desired.identity != identity:
            return _failed(
                identity,
                f"synthesized record {desired.identity} does not match requested identity",
            )

        if current is None:
            if owner is not None:
                desired = link(desired, owner)
            return await self._create(identity, desired.without_version(), log)
        return await self._update(identity, current, desired, log)

    async def _create(
        self,
        identity: ResourceIdentity,
        record: ManagedRecord,
        log: structlog.stdlib.BoundLogger,
    ) -> ReconcileResult:
        try:
            stored = await self._accessor.create(record)
        except AlreadyExistsError as exc:
            # a concurrent pass won the race; the next pass compares against its record
            log.debug("create_lost_race")
            return ReconcileResult(
                identity=identity,
                outcome=Outcome.UNCHANGED,
                reason="created concurrently by another writer",
                error=exc,
            )
        except AccessorError as exc:
            return _failed(identity, f"create failed: {exc.cause}", exc)
        return ReconcileResult(
            identity=identity,
            outcome=Outcome.CREATED,
            resource_version=stored.resource_version,
        )

    async def _update(
        self,
        identity: ResourceIdentity,
        current: ManagedRecord,
        desired: ManagedRecord,
        log: structlog.stdlib.BoundLogger,
    ) -> ReconcileResult:
        try:
            diff = compare(current, desired)
        except UnsupportedKindError as exc:
            return _failed(identity, str(exc), exc)

        if not diff:
            return ReconcileResult(
                identity=identity,
                outcome=Outcome.UNCHANGED,
                resource_version=current.resource_version,
            )

        merged = merge(current, diff)
        try:
            stored = await self._accessor.update(merged)
        except VersionConflictError as exc:
            return ReconcileResult(
                identity=identity,
                outcome=Outcome.CONFLICT,
                changes=diff.changes,
                reason=str(exc),
                error=exc,
                resource_version=current.resource_version,
            )
        except AccessorError as exc:
            return _failed(identity, f"update failed: {exc.cause}", exc, diff=diff)
        log.debug("record_updated", fields=sorted(diff.fields))
        return ReconcileResult(
            identity=identity,
            outcome=Outcome.UPDATED,
            changes=diff.changes,
            resource_version=stored.resource_version,
        )

    def _observe(
        self,
        result: ReconcileResult,
        duration: float,
        log: structlog.stdlib.BoundLogger,
    ) -> None:
        kind = result.identity.kind
        reconcile_total.labels(kind=kind, outcome=result.outcome.value).inc()
        reconcile_duration_seconds.labels(kind=kind).observe(duration)
        if result.outcome is Outcome.UPDATED:
            for change in result.changes:
                reconcile_changed_fields_total.labels(kind=kind, field=field_label(change.field)).inc()

        fields = {
            "outcome": result.outcome.value,
            "resource_version": result.resource_version,
            "duration_ms": round(duration * 1000, 3),
        }
        if result.outcome is Outcome.FAILED:
            log.error("reconcile_done", reason=result.reason, **fields)
        elif result.outcome is Outcome.CONFLICT:
            log.warning("reconcile_done", reason=result.reason, retryable=True, **fields)
        elif result.outcome is Outcome.UNCHANGED:
            log.debug("reconcile_done", **fields)
        else:
            log.info("reconcile_done", changed_fields=result.changed_fields, **fields)

        event = ReconcileEvent.from_result(result, max_value_length=self._max_value_length)
        try:
            self._sink.emit(event)
        except Exception as exc:  # noqa: BLE001
            log.error("event_emit_failed", sink=self._sink.sink_name, event_id=event.event_id, error=str(exc))


def _failed(
    identity: ResourceIdentity,
    reason: str,
    error: BaseException | None = None,
    diff: MaterialDiff | None = None,
) -> ReconcileResult:
    return ReconcileResult(
        identity=identity,
        outcome=Outcome.FAILED,
        reason=reason,
        error=error,
        changes=diff.changes if diff is not None else (),
    )
