"""Tests for the in-memory and Kubernetes resource accessors.

The Kubernetes accessor is exercised against AsyncMock API objects; status
codes are raised as real ``ApiException`` instances so the mapping to
AlreadyExists / VersionConflict / AccessorError is checked end to end.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from kubernetes_asyncio.client.rest import ApiException

from kubespark.errors import AccessorError, AlreadyExistsError, UnsupportedKindError, VersionConflictError
from kubespark.models.records import ManagedRecord, ResourceIdentity
from kubespark.store.kubernetes import KubernetesAccessor
from kubespark.store.memory import InMemoryAccessor

_DEPLOYMENT = ResourceIdentity("Deployment", "spark", "analytics-spark-master")
_SERVICE = ResourceIdentity("Service", "spark", "analytics-spark-master-service")

# ---------------------------------------------------------------------------
# Helper factories
# ---------------------------------------------------------------------------


def _make_record(identity: ResourceIdentity = _DEPLOYMENT, resource_version: str = "", **spec: Any) -> ManagedRecord:
    metadata: dict[str, Any] = {"name": identity.name, "namespace": identity.namespace}
    if resource_version:
        metadata["resourceVersion"] = resource_version
    return ManagedRecord(obj={"kind": identity.kind, "metadata": metadata, "spec": dict(spec) or {"replicas": 1}})


def _make_k8s_accessor() -> tuple[KubernetesAccessor, AsyncMock, AsyncMock]:
    core = AsyncMock()
    apps = AsyncMock()
    api_client = MagicMock()
    api_client.close = AsyncMock()
    return KubernetesAccessor(api_client=api_client, core_v1=core, apps_v1=apps), core, apps


def _stored(identity: ResourceIdentity, resource_version: str = "5") -> dict[str, Any]:
    return {
        "metadata": {"name": identity.name, "namespace": identity.namespace, "resourceVersion": resource_version},
        "spec": {"replicas": 1},
        "status": {"readyReplicas": 1},
    }


# ---------------------------------------------------------------------------
# InMemoryAccessor
# ---------------------------------------------------------------------------


class TestInMemoryAccessor:
    async def test_read_missing_returns_none(self) -> None:
        assert await InMemoryAccessor().read(_DEPLOYMENT) is None

    async def test_create_assigns_server_metadata(self) -> None:
        store = InMemoryAccessor()
        stored = await store.create(_make_record())
        assert stored.uid
        assert stored.resource_version == "1"
        assert stored.metadata["creationTimestamp"]
        assert _DEPLOYMENT in store
        assert len(store) == 1

    async def test_create_duplicate_raises(self) -> None:
        store = InMemoryAccessor()
        await store.create(_make_record())
        with pytest.raises(AlreadyExistsError):
            await store.create(_make_record())
        assert store.creates == 1

    async def test_update_with_current_token(self) -> None:
        store = InMemoryAccessor()
        created = await store.create(_make_record())
        updated = await store.update(_make_record(resource_version=created.resource_version, replicas=3))
        assert updated.obj["spec"] == {"replicas": 3}
        assert updated.uid == created.uid
        assert int(updated.resource_version) > int(created.resource_version)

    async def test_update_with_stale_token_raises(self) -> None:
        store = InMemoryAccessor()
        created = await store.create(_make_record())
        store.put(_make_record(replicas=9))
        with pytest.raises(VersionConflictError):
            await store.update(_make_record(resource_version=created.resource_version, replicas=3))
        assert store.get(_DEPLOYMENT).obj["spec"] == {"replicas": 9}

    async def test_update_without_token_raises(self) -> None:
        store = InMemoryAccessor()
        await store.create(_make_record())
        with pytest.raises(VersionConflictError):
            await store.update(_make_record(replicas=3))

    async def test_update_after_delete_raises(self) -> None:
        store = InMemoryAccessor()
        created = await store.create(_make_record())
        assert store.remove(_DEPLOYMENT) is True
        with pytest.raises(VersionConflictError):
            await store.update(created)

    async def test_records_are_copied_in_and_out(self) -> None:
        store = InMemoryAccessor()
        record = _make_record()
        await store.create(record)
        read = await store.read(_DEPLOYMENT)
        read.obj["spec"]["replicas"] = 42
        assert store.get(_DEPLOYMENT).obj["spec"]["replicas"] == 1
        assert record.resource_version == ""

    async def test_put_keeps_uid(self) -> None:
        store = InMemoryAccessor()
        created = await store.create(_make_record())
        replaced = store.put(_make_record(replicas=2))
        assert replaced.uid == created.uid

    async def test_counters(self) -> None:
        store = InMemoryAccessor()
        created = await store.create(_make_record())
        await store.read(_DEPLOYMENT)
        await store.update(created)
        assert (store.reads, store.creates, store.updates, store.writes) == (1, 1, 1, 2)


# ---------------------------------------------------------------------------
# KubernetesAccessor
# ---------------------------------------------------------------------------


class TestKubernetesAccessorRead:
    async def test_read_dispatches_by_kind(self) -> None:
        accessor, core, apps = _make_k8s_accessor()
        apps.read_namespaced_deployment.return_value = _stored(_DEPLOYMENT)
        record = await accessor.read(_DEPLOYMENT)
        apps.read_namespaced_deployment.assert_awaited_once_with(name=_DEPLOYMENT.name, namespace="spark")
        assert record.kind == "Deployment"
        assert record.obj["apiVersion"] == "apps/v1"
        assert record.resource_version == "5"
        core.read_namespaced_service.assert_not_called()

    async def test_read_service_uses_core_api(self) -> None:
        accessor, core, _ = _make_k8s_accessor()
        core.read_namespaced_service.return_value = _stored(_SERVICE)
        record = await accessor.read(_SERVICE)
        assert record.identity == _SERVICE
        assert record.obj["apiVersion"] == "v1"

    async def test_read_not_found_returns_none(self) -> None:
        accessor, _, apps = _make_k8s_accessor()
        apps.read_namespaced_deployment.side_effect = ApiException(status=404, reason="Not Found")
        assert await accessor.read(_DEPLOYMENT) is None

    async def test_read_server_error_raises_accessor_error(self) -> None:
        accessor, _, apps = _make_k8s_accessor()
        apps.read_namespaced_deployment.side_effect = ApiException(status=500, reason="Internal Server Error")
        with pytest.raises(AccessorError) as exc_info:
            await accessor.read(_DEPLOYMENT)
        assert exc_info.value.operation == "read"
        assert "500" in str(exc_info.value)

    async def test_read_transport_error_raises_accessor_error(self) -> None:
        accessor, _, apps = _make_k8s_accessor()
        apps.read_namespaced_deployment.side_effect = aiohttp.ClientConnectionError("refused")
        with pytest.raises(AccessorError):
            await accessor.read(_DEPLOYMENT)

    async def test_read_timeout_raises_accessor_error(self) -> None:
        accessor, _, apps = _make_k8s_accessor()
        apps.read_namespaced_deployment.side_effect = TimeoutError()
        with pytest.raises(AccessorError):
            await accessor.read(_DEPLOYMENT)

    async def test_typed_response_sanitized(self) -> None:
        accessor, _, apps = _make_k8s_accessor()
        typed = object()
        apps.read_namespaced_deployment.return_value = typed
        accessor._api_client.sanitize_for_serialization.return_value = _stored(_DEPLOYMENT)
        record = await accessor.read(_DEPLOYMENT)
        accessor._api_client.sanitize_for_serialization.assert_called_once_with(typed)
        assert record.resource_version == "5"

    async def test_unsupported_kind(self) -> None:
        accessor, _, _ = _make_k8s_accessor()
        with pytest.raises(UnsupportedKindError):
            await accessor.read(ResourceIdentity("Job", "spark", "j"))


class TestKubernetesAccessorWrite:
    async def test_create_sends_body_without_status(self) -> None:
        accessor, _, apps = _make_k8s_accessor()
        apps.create_namespaced_deployment.return_value = _stored(_DEPLOYMENT, "1")
        record = ManagedRecord(obj={**_make_record().obj, "status": {"readyReplicas": 0}})
        stored = await accessor.create(record)
        body = apps.create_namespaced_deployment.await_args.kwargs["body"]
        assert "status" not in body
        assert body["apiVersion"] == "apps/v1"
        assert stored.resource_version == "1"

    async def test_create_conflict_raises_already_exists(self) -> None:
        accessor, _, apps = _make_k8s_accessor()
        apps.create_namespaced_deployment.side_effect = ApiException(status=409, reason="AlreadyExists")
        with pytest.raises(AlreadyExistsError):
            await accessor.create(_make_record())

    async def test_create_forbidden_raises_accessor_error(self) -> None:
        accessor, _, apps = _make_k8s_accessor()
        apps.create_namespaced_deployment.side_effect = ApiException(status=403, reason="Forbidden")
        with pytest.raises(AccessorError):
            await accessor.create(_make_record())

    async def test_replace_passes_token(self) -> None:
        accessor, _, apps = _make_k8s_accessor()
        apps.replace_namespaced_deployment.return_value = _stored(_DEPLOYMENT, "6")
        stored = await accessor.update(_make_record(resource_version="5"))
        kwargs = apps.replace_namespaced_deployment.await_args.kwargs
        assert kwargs["name"] == _DEPLOYMENT.name
        assert kwargs["body"]["metadata"]["resourceVersion"] == "5"
        assert stored.resource_version == "6"

    @pytest.mark.parametrize("status", [404, 409])
    async def test_replace_conflict_statuses(self, status: int) -> None:
        accessor, _, apps = _make_k8s_accessor()
        apps.replace_namespaced_deployment.side_effect = ApiException(status=status, reason="Conflict")
        with pytest.raises(VersionConflictError):
            await accessor.update(_make_record(resource_version="5"))

    async def test_replace_without_token_rejected(self) -> None:
        accessor, _, apps = _make_k8s_accessor()
        with pytest.raises(VersionConflictError):
            await accessor.update(_make_record())
        apps.replace_namespaced_deployment.assert_not_called()

    async def test_replace_server_error(self) -> None:
        accessor, _, apps = _make_k8s_accessor()
        apps.replace_namespaced_deployment.side_effect = ApiException(status=503, reason="Unavailable")
        with pytest.raises(AccessorError):
            await accessor.update(_make_record(resource_version="5"))

    async def test_close_releases_client(self) -> None:
        accessor, _, _ = _make_k8s_accessor()
        await accessor.close()
        accessor._api_client.close.assert_awaited_once()
