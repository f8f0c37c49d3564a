"""Prometheus metrics for KubeSpark."""

from __future__ import annotations

import re

from prometheus_client import Counter, Histogram

reconcile_total = Counter(
    "kubespark_reconcile_total",
    "Reconcile passes by record kind and outcome.",
    ["kind", "outcome"],
)

reconcile_changed_fields_total = Counter(
    "kubespark_reconcile_changed_fields_total",
    "Material fields carried into updates, by record kind and field.",
    ["kind", "field"],
)

reconcile_duration_seconds = Histogram(
    "kubespark_reconcile_duration_seconds",
    "Wall-clock time of one reconcile pass.",
    ["kind"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

accessor_requests_total = Counter(
    "kubespark_accessor_requests_total",
    "Record store calls by operation and result.",
    ["operation", "result"],
)

events_emitted_total = Counter(
    "kubespark_events_emitted_total",
    "Reconcile events handed to sinks.",
    ["sink", "success"],
)

_RE_INDEX = re.compile(r"\[\d+\]")


def field_label(field: str) -> str:
    """Strip list indices so per-field metrics keep a bounded label set."""
    return _RE_INDEX.sub("", field)
