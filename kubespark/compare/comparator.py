"""Materialized-state comparator.

``compare`` decides whether a current record and a desired record are
materially equivalent; ``merge`` applies the resulting diff onto the current
record. Both are pure: no I/O, no shared state, inputs never mutated.

Equality is deep and structural over pruned values. ``None``, ``{}`` and
``[]`` count as absent at any depth, so an API server that drops empty values
on serialization never produces a diff. An empty string counts as absent only
as a whole field value; inside a label or annotation map it is a real value.
Mapping key order is irrelevant.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from kubespark.compare.fields import FieldSpec, MaterialField, SequenceField, schema_for
from kubespark.models.diff import FieldChange, MaterialDiff
from kubespark.models.records import FieldPath, ManagedRecord, get_path, set_path


def compare(current: ManagedRecord, desired: ManagedRecord) -> MaterialDiff:
    """Return the material differences between *current* and *desired*.

    Raises:
        ValueError: if the records do not share an identity.
        UnsupportedKindError: if no material-field list exists for the kind.
    """
    if current.identity != desired.identity:
        raise ValueError(f"cannot compare {current.identity} with {desired.identity}")
    schema = schema_for(current.kind)
    changes: list[FieldChange] = []
    for spec in schema.fields:
        _compare_field(spec, current.obj, desired.obj, (), "", changes)
    return MaterialDiff(identity=current.identity, changes=tuple(changes))


def merge(current: ManagedRecord, diff: MaterialDiff) -> ManagedRecord:
    """Return a new record: *current* with every changed field set to its desired value.

    Fields absent from the diff, the version token included, are preserved.
    """
    if diff.identity != current.identity:
        raise ValueError(f"diff for {diff.identity} cannot be merged into {current.identity}")
    obj = current.to_dict()
    for change in diff.changes:
        set_path(obj, change.path, _prune(copy.deepcopy(change.desired)))
    return ManagedRecord(obj=obj)


def _compare_field(
    spec: FieldSpec,
    current: Mapping[str, Any],
    desired: Mapping[str, Any],
    base_path: FieldPath,
    base_name: str,
    changes: list[FieldChange],
) -> None:
    path: FieldPath = base_path + spec.path
    name = f"{base_name}.{spec.name}" if base_name else spec.name
    cur = get_path(current, path)
    des = get_path(desired, path)

    if isinstance(spec, SequenceField):
        cur_items = cur if isinstance(cur, list) else []
        des_items = des if isinstance(des, list) else []
        if len(cur_items) != len(des_items):
            changes.append(_change(name, path, cur, des, sensitive=False))
            return
        for idx in range(len(des_items)):
            item_path = path + (idx,)
            item_name = f"{name}[{idx}]"
            if spec.element_fields:
                for element_spec in spec.element_fields:
                    _compare_field(element_spec, current, desired, item_path, item_name, changes)
            elif not _equal(cur_items[idx], des_items[idx]):
                changes.append(_change(item_name, item_path, cur_items[idx], des_items[idx], sensitive=False))
        return

    assert isinstance(spec, MaterialField)
    normalize = spec.normalize
    left = normalize(cur) if normalize else cur
    right = normalize(des) if normalize else des
    if not _equal(left, right):
        changes.append(_change(name, path, cur, des, sensitive=spec.sensitive))


def _change(name: str, path: FieldPath, cur: Any, des: Any, *, sensitive: bool) -> FieldChange:
    return FieldChange(
        field=name,
        path=path,
        current=copy.deepcopy(cur),
        desired=copy.deepcopy(des),
        sensitive=sensitive,
    )


def _equal(left: Any, right: Any) -> bool:
    return _prune(left) == _prune(right)


def _prune(value: Any) -> Any:
    """Normalize a field value: absent at the top becomes None.

    An empty string is absent only as the whole field value. Inside mappings
    and lists it is data (``sidecar.istio.io/inject: ""``) and is kept.
    """
    if isinstance(value, str) and not value:
        return None
    return _prune_nested(value)


def _prune_nested(value: Any) -> Any:
    if isinstance(value, Mapping):
        pruned = {}
        for key, item in value.items():
            item = _prune_nested(item)
            if item is not None:
                pruned[key] = item
        return pruned or None
    if isinstance(value, (list, tuple)):
        items = [_prune_nested(item) for item in value]
        return items or None
    return value
