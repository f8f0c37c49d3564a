"""Managed record data structures.

Records are kept in the Kubernetes wire shape (``metadata`` / ``spec`` /
``data`` / ``status`` mappings) so accessors can pass them straight to the
API server. A ``ManagedRecord`` is treated as an immutable value: helpers that
change a record always return a new one built from a deep copy.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

PathKey: TypeAlias = str | int
FieldPath: TypeAlias = tuple[PathKey, ...]


@dataclass(frozen=True, order=True)
class ResourceIdentity:
    """Immutable (kind, namespace, name) key of a managed resource."""

    kind: str
    namespace: str
    name: str

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.kind, self.namespace, self.name)

    def __str__(self) -> str:
        return f"{self.kind}/{self.namespace}/{self.name}"


@dataclass(frozen=True)
class OwnerLink:
    """Back-reference from a managed record to the custom resource that produced it.

    Only the external garbage collector acts on it; the engine never deletes.
    """

    api_version: str
    kind: str
    name: str
    uid: str = ""
    controller: bool = True

    def to_dict(self) -> dict[str, Any]:
        ref: dict[str, Any] = {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "name": self.name,
            "controller": self.controller,
        }
        if self.uid:
            ref["uid"] = self.uid
        return ref

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> OwnerLink:
        return cls(
            api_version=str(raw.get("apiVersion", "")),
            kind=str(raw.get("kind", "")),
            name=str(raw.get("name", "")),
            uid=str(raw.get("uid", "") or ""),
            controller=bool(raw.get("controller", False)),
        )

    def matches(self, ref: Mapping[str, Any]) -> bool:
        """Return True if the serialized owner reference *ref* points at this owner."""
        if self.uid and ref.get("uid"):
            return ref.get("uid") == self.uid
        return (
            ref.get("apiVersion") == self.api_version
            and ref.get("kind") == self.kind
            and ref.get("name") == self.name
        )


@dataclass(frozen=True)
class ManagedRecord:
    """One deployed unit: a workload, a network endpoint or a configuration blob.

    ``obj`` holds the full object mapping. Identity is read from ``kind`` and
    ``metadata``; the version token is ``metadata.resourceVersion``.
    """

    obj: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ManagedRecord:
        return cls(obj=copy.deepcopy(dict(raw)))

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self.obj)

    @property
    def metadata(self) -> Mapping[str, Any]:
        meta = self.obj.get("metadata")
        return meta if isinstance(meta, Mapping) else {}

    @property
    def kind(self) -> str:
        return str(self.obj.get("kind", ""))

    @property
    def namespace(self) -> str:
        return str(self.metadata.get("namespace", "") or "")

    @property
    def name(self) -> str:
        return str(self.metadata.get("name", "") or "")

    @property
    def identity(self) -> ResourceIdentity:
        return ResourceIdentity(kind=self.kind, namespace=self.namespace, name=self.name)

    @property
    def resource_version(self) -> str:
        return str(self.metadata.get("resourceVersion", "") or "")

    @property
    def uid(self) -> str:
        return str(self.metadata.get("uid", "") or "")

    @property
    def owner_references(self) -> list[dict[str, Any]]:
        refs = self.metadata.get("ownerReferences") or []
        return [dict(ref) for ref in refs if isinstance(ref, Mapping)]

    def get(self, path: FieldPath) -> Any:
        return get_path(self.obj, path)

    def with_version(self, resource_version: str) -> ManagedRecord:
        """Return a copy carrying *resource_version* (empty string removes it)."""
        obj = self.to_dict()
        meta = obj.setdefault("metadata", {})
        if resource_version:
            meta["resourceVersion"] = resource_version
        else:
            meta.pop("resourceVersion", None)
        return ManagedRecord(obj=obj)

    def without_version(self) -> ManagedRecord:
        return self.with_version("")


# Desired records share the managed shape but never carry a version token.
DesiredRecord: TypeAlias = ManagedRecord


def get_path(obj: Any, path: FieldPath) -> Any:
    """Walk *path* through nested mappings and lists; None when any step is missing."""
    node = obj
    for key in path:
        if isinstance(key, int):
            if not isinstance(node, list) or key < 0 or key >= len(node):
                return None
            node = node[key]
        else:
            if not isinstance(node, Mapping):
                return None
            node = node.get(key)
            if node is None:
                return None
    return node


def set_path(obj: dict[str, Any], path: FieldPath, value: Any) -> None:
    """Set *path* inside *obj* in place, creating intermediate mappings.

    A ``None`` value removes the final key. List indices must already exist.
    """
    if not path:
        raise ValueError("empty field path")
    node: Any = obj
    for key, next_key in zip(path, path[1:]):
        if isinstance(key, int):
            node = node[key]
            continue
        child = node.get(key)
        if value is None and child is None:
            return
        if child is None or not isinstance(child, (dict, list)):
            child = [] if isinstance(next_key, int) else {}
            node[key] = child
        node = child
    last = path[-1]
    if isinstance(last, int):
        node[last] = value
    elif value is None:
        node.pop(last, None)
    else:
        node[last] = value


def format_path(path: FieldPath) -> str:
    """Render a path the way field names are written: ``spec.containers[0].image``."""
    out = ""
    for key in path:
        if isinstance(key, int):
            out += f"[{key}]"
        else:
            out = f"{out}.{key}" if out else key
    return out
