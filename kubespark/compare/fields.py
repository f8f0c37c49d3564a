"""Explicit material-field lists per record kind.

Only the fields listed here are ever compared or overwritten. Anything else
on a record -- status, uid, clusterIP, probes, env, server-side defaults --
belongs to whoever set it and is carried through merges untouched. Secret and
ConfigMap payloads are create-only: once the record exists its ``data`` is
never rewritten, so regenerated credentials cannot clobber live ones.

Sequences are compared positionally. If a synthesizer reorders a sequence
the comparator reports spurious differences; synthesizers are expected to
emit sequences in a stable order.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, TypeAlias

from kubespark.errors import UnsupportedKindError
from kubespark.synthesis.quantity import parse_quantity


@dataclass(frozen=True)
class MaterialField:
    """A field replaced atomically when its desired value differs."""

    name: str
    path: tuple[str, ...]
    sensitive: bool = False
    normalize: Callable[[Any], Any] | None = None


@dataclass(frozen=True)
class SequenceField:
    """A positional sequence.

    A length mismatch replaces the whole sequence. Otherwise each element is
    compared by index: through ``element_fields`` when given, as a whole
    element when not.
    """

    name: str
    path: tuple[str, ...]
    element_fields: tuple[FieldSpec, ...] = ()


FieldSpec: TypeAlias = MaterialField | SequenceField


@dataclass(frozen=True)
class RecordSchema:
    kind: str
    fields: tuple[FieldSpec, ...]


def normalize_resources(value: Any) -> Any:
    """Map quantity strings in a requests/limits block to their numeric value.

    Unparsable quantities are left as written so comparison falls back to
    string equality.
    """
    if not isinstance(value, Mapping):
        return value
    out: dict[str, Any] = {}
    for section, quantities in value.items():
        if not isinstance(quantities, Mapping):
            out[section] = quantities
            continue
        out[section] = {name: _quantity_or_raw(raw) for name, raw in quantities.items()}
    return out


def _quantity_or_raw(raw: Any) -> Decimal | Any:
    try:
        return parse_quantity(raw)
    except ValueError:
        return raw


_POD_TEMPLATE = ("spec", "template")
_POD_SPEC = ("spec", "template", "spec")

CONTAINER_FIELDS: tuple[FieldSpec, ...] = (
    MaterialField("image", ("image",)),
    SequenceField("ports", ("ports",)),
    SequenceField("volumeMounts", ("volumeMounts",)),
    MaterialField("resources", ("resources",), normalize=normalize_resources),
)


def _workload_schema(kind: str) -> RecordSchema:
    return RecordSchema(
        kind=kind,
        fields=(
            MaterialField("replicas", ("spec", "replicas")),
            MaterialField("affinity", _POD_SPEC + ("affinity",)),
            MaterialField("schedulerName", _POD_SPEC + ("schedulerName",)),
            SequenceField("containers", _POD_SPEC + ("containers",), CONTAINER_FIELDS),
            MaterialField("labels", _POD_TEMPLATE + ("metadata", "labels")),
            MaterialField("annotations", _POD_TEMPLATE + ("metadata", "annotations")),
        ),
    )


_SCHEMAS: dict[str, RecordSchema] = {
    "Deployment": _workload_schema("Deployment"),
    "StatefulSet": _workload_schema("StatefulSet"),
    "Service": RecordSchema(
        kind="Service",
        fields=(
            MaterialField("labels", ("metadata", "labels")),
            MaterialField("annotations", ("metadata", "annotations")),
            MaterialField("selector", ("spec", "selector")),
            SequenceField("ports", ("spec", "ports")),
        ),
    ),
    "ConfigMap": RecordSchema(
        kind="ConfigMap",
        fields=(
            MaterialField("labels", ("metadata", "labels")),
            MaterialField("annotations", ("metadata", "annotations")),
        ),
    ),
    "Secret": RecordSchema(
        kind="Secret",
        fields=(
            MaterialField("labels", ("metadata", "labels")),
            MaterialField("annotations", ("metadata", "annotations")),
        ),
    ),
}


def schema_for(kind: str) -> RecordSchema:
    try:
        return _SCHEMAS[kind]
    except KeyError:
        raise UnsupportedKindError(kind) from None


def supported_kinds() -> frozenset[str]:
    return frozenset(_SCHEMAS)
