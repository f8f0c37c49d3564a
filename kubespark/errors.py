"""Error taxonomy for the reconciliation engine.

NotFound is not an exception: ``ResourceAccessor.read`` returns ``None``.
Every other signal an accessor or synthesizer can produce maps to one of
the classes below; the Apply Coordinator classifies them into outcomes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kubespark.models.records import ResourceIdentity


class KubeSparkError(Exception):
    """Base class for all KubeSpark errors."""


class AlreadyExistsError(KubeSparkError):
    """A create raced with another creator for the same identity."""

    def __init__(self, identity: ResourceIdentity) -> None:
        super().__init__(f"{identity} already exists")
        self.identity = identity


class VersionConflictError(KubeSparkError):
    """An update carried a stale version token, or the record vanished."""

    def __init__(self, identity: ResourceIdentity, detail: str = "") -> None:
        message = f"version conflict on {identity}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.identity = identity
        self.detail = detail


class AccessorError(KubeSparkError):
    """The record store could not be reached or rejected the call."""

    def __init__(self, operation: str, identity: ResourceIdentity, cause: BaseException | str) -> None:
        super().__init__(f"{operation} {identity} failed: {cause}")
        self.operation = operation
        self.identity = identity
        self.cause = cause


class SynthesisError(KubeSparkError):
    """The top-level spec cannot be turned into a desired record."""

    def __init__(self, field: str, value: object, reason: str) -> None:
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.value = value
        self.reason = reason


class UnsupportedKindError(KubeSparkError):
    """No material-field list is registered for this record kind."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"no material fields registered for kind {kind!r}")
        self.kind = kind
