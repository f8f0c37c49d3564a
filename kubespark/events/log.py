"""Event sink that writes reconcile events as structured log lines."""

from __future__ import annotations

import structlog

from kubespark.events.manager import EventSink
from kubespark.models.events import ReconcileEvent
from kubespark.models.outcomes import Outcome

_log = structlog.get_logger(component="events")


class LogEventSink(EventSink):
    """Logs created/updated at info, unchanged at debug, conflicts at warning, failures at error."""

    @property
    def sink_name(self) -> str:
        return "log"

    def emit(self, event: ReconcileEvent) -> None:
        fields = {
            "event_id": event.event_id,
            "kind": event.kind,
            "namespace": event.namespace,
            "name": event.name,
            "resource_version": event.resource_version,
        }
        if event.outcome is Outcome.UPDATED:
            _log.info(
                "reconcile_updated",
                changes=[{"field": c.field, "current": c.current, "desired": c.desired} for c in event.changes],
                **fields,
            )
        elif event.outcome is Outcome.CREATED:
            _log.info("reconcile_created", **fields)
        elif event.outcome is Outcome.UNCHANGED:
            _log.debug("reconcile_unchanged", reason=event.reason, **fields)
        elif event.outcome is Outcome.CONFLICT:
            _log.warning("reconcile_conflict", reason=event.reason, retryable=True, **fields)
        else:
            _log.error("reconcile_failed", reason=event.reason, **fields)
