"""Resource accessor backed by the Kubernetes API via kubernetes-asyncio.

Records travel as plain dicts in the API wire shape. Typed responses are
converted with ``ApiClient.sanitize_for_serialization`` so the comparator sees
exactly what the server stored, camelCase keys included.

Status mapping:

    read     404 -> None
    create   409 -> AlreadyExistsError
    replace  409 -> VersionConflictError (stale resourceVersion)
    replace  404 -> VersionConflictError (deleted since read)
    replace without a version token -> VersionConflictError
    anything else, aiohttp errors, timeouts -> AccessorError
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import aiohttp
import structlog
from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]
from kubernetes_asyncio.client.rest import ApiException  # type: ignore[import-untyped]

from kubespark.errors import AccessorError, AlreadyExistsError, UnsupportedKindError, VersionConflictError
from kubespark.models.records import ManagedRecord, ResourceIdentity
from kubespark.observability.metrics import accessor_requests_total
from kubespark.store.base import ResourceAccessor

_log = structlog.get_logger(component="store.kubernetes")


@dataclass(frozen=True)
class _KindApi:
    """Which API group object and method suffix serve a kind."""

    api: str  # "core" or "apps"
    suffix: str  # e.g. "deployment" -> read_namespaced_deployment
    api_version: str


_KIND_APIS: dict[str, _KindApi] = {
    "Deployment": _KindApi("apps", "deployment", "apps/v1"),
    "StatefulSet": _KindApi("apps", "stateful_set", "apps/v1"),
    "Service": _KindApi("core", "service", "v1"),
    "ConfigMap": _KindApi("core", "config_map", "v1"),
    "Secret": _KindApi("core", "secret", "v1"),
}


class KubernetesAccessor(ResourceAccessor):
    """Reads and writes managed records through the Kubernetes API server.

    Args:
        api_client: kubernetes-asyncio ApiClient; a default one is created when omitted.
        core_v1:    CoreV1Api override (tests inject mocks here).
        apps_v1:    AppsV1Api override.
    """

    def __init__(
        self,
        api_client: Any = None,
        core_v1: Any = None,
        apps_v1: Any = None,
    ) -> None:
        self._api_client = api_client if api_client is not None else k8s_client.ApiClient()
        self._apis: dict[str, Any] = {
            "core": core_v1 if core_v1 is not None else k8s_client.CoreV1Api(self._api_client),
            "apps": apps_v1 if apps_v1 is not None else k8s_client.AppsV1Api(self._api_client),
        }

    @property
    def accessor_name(self) -> str:
        return "kubernetes"

    async def close(self) -> None:
        """Release the underlying connection pool."""
        await self._api_client.close()

    async def read(self, identity: ResourceIdentity) -> ManagedRecord | None:
        method = self._method("read", identity.kind)
        try:
            obj = await self._call("read", identity, method, name=identity.name, namespace=identity.namespace)
        except ApiException as exc:
            if exc.status == 404:
                accessor_requests_total.labels(operation="read", result="not_found").inc()
                return None
            raise self._failure("read", identity, exc) from exc
        accessor_requests_total.labels(operation="read", result="found").inc()
        return self._to_record(identity, obj)

    async def create(self, record: ManagedRecord) -> ManagedRecord:
        identity = record.identity
        method = self._method("create", identity.kind)
        body = self._body(record)
        try:
            obj = await self._call("create", identity, method, namespace=identity.namespace, body=body)
        except ApiException as exc:
            if exc.status == 409:
                accessor_requests_total.labels(operation="create", result="already_exists").inc()
                raise AlreadyExistsError(identity) from exc
            raise self._failure("create", identity, exc) from exc
        accessor_requests_total.labels(operation="create", result="success").inc()
        return self._to_record(identity, obj)

    async def update(self, record: ManagedRecord) -> ManagedRecord:
        identity = record.identity
        if not record.resource_version:
            # an empty token would turn replace into an unconditional overwrite
            accessor_requests_total.labels(operation="update", result="conflict").inc()
            raise VersionConflictError(identity, "missing version token")
        method = self._method("replace", identity.kind)
        body = self._body(record)
        try:
            obj = await self._call(
                "update", identity, method, name=identity.name, namespace=identity.namespace, body=body
            )
        except ApiException as exc:
            if exc.status in (404, 409):
                accessor_requests_total.labels(operation="update", result="conflict").inc()
                raise VersionConflictError(identity, str(exc.reason or exc.status)) from exc
            raise self._failure("update", identity, exc) from exc
        accessor_requests_total.labels(operation="update", result="success").inc()
        return self._to_record(identity, obj)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _method(self, verb: str, kind: str) -> Callable[..., Awaitable[Any]]:
        kind_api = _KIND_APIS.get(kind)
        if kind_api is None:
            raise UnsupportedKindError(kind)
        api = self._apis[kind_api.api]
        return getattr(api, f"{verb}_namespaced_{kind_api.suffix}")  # type: ignore[no-any-return]

    async def _call(
        self,
        operation: str,
        identity: ResourceIdentity,
        method: Callable[..., Awaitable[Any]],
        **kwargs: Any,
    ) -> Any:
        """Await *method*, turning transport failures into AccessorError."""
        try:
            return await method(**kwargs)
        except ApiException:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            accessor_requests_total.labels(operation=operation, result="error").inc()
            _log.warning("accessor_transport_error", operation=operation, resource=str(identity), error=str(exc))
            raise AccessorError(operation, identity, exc) from exc

    def _failure(self, operation: str, identity: ResourceIdentity, exc: ApiException) -> AccessorError:
        accessor_requests_total.labels(operation=operation, result="error").inc()
        _log.warning(
            "accessor_api_error",
            operation=operation,
            resource=str(identity),
            status=exc.status,
            reason=exc.reason,
        )
        return AccessorError(operation, identity, f"HTTP {exc.status}: {exc.reason}")

    def _body(self, record: ManagedRecord) -> dict[str, Any]:
        body = record.to_dict()
        body.setdefault("apiVersion", _KIND_APIS[record.kind].api_version)
        body.pop("status", None)
        return body

    def _to_record(self, identity: ResourceIdentity, obj: Any) -> ManagedRecord:
        raw = obj if isinstance(obj, dict) else self._api_client.sanitize_for_serialization(obj)
        raw = dict(raw)
        raw["kind"] = raw.get("kind") or identity.kind
        raw["apiVersion"] = raw.get("apiVersion") or _KIND_APIS[identity.kind].api_version
        return ManagedRecord.from_dict(raw)
