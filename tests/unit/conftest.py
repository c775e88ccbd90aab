"""Shared fixtures and in-memory fakes for the unit tests."""

from __future__ import annotations

import copy
from typing import Any, Iterable

import pytest

from minio_operator.config import OperatorSettings
from minio_operator.models import ManagedRecord, RecordRef
from minio_operator.reconciler.engine import StateMachine
from minio_operator.reconciler.status import StatusWriter
from minio_operator.utils.errors import (
    BucketNotEmptyError,
    RemoteOperationError,
    StaleRecordError,
)


class FailureMixin:
    """Lets a test make a named operation raise."""

    def __init__(self) -> None:
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def fail(self, operation: str, message: str = "remote failure") -> None:
        self.failures[operation] = RemoteOperationError(operation, message)

    def _record(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        if operation in self.failures:
            raise self.failures[operation]

    def called(self, operation: str) -> int:
        return sum(1 for op, _ in self.calls if op == operation)


class FakeStorage(FailureMixin):
    def __init__(self) -> None:
        super().__init__()
        self.buckets: dict[str, list[dict[str, str]]] = {}
        # Objects written back into a bucket after each drain, to simulate writers
        self.refill: dict[str, list[dict[str, str]]] = {}

    def bucket_exists(self, name: str) -> bool:
        self._record("bucket_exists", name)
        return name in self.buckets

    def create_bucket(self, name: str) -> None:
        self._record("create_bucket", name)
        self.buckets.setdefault(name, [])

    def remove_bucket(self, name: str) -> None:
        self._record("remove_bucket", name)
        if name not in self.buckets:
            return
        if self.buckets[name]:
            raise BucketNotEmptyError(
                "remove_bucket", "The bucket you tried to delete is not empty", "BucketNotEmpty"
            )
        del self.buckets[name]

    def list_object_versions(self, name: str) -> list[dict[str, str]]:
        self._record("list_object_versions", name)
        return list(self.buckets.get(name, []))

    def remove_objects(self, name: str, objects: Iterable[dict[str, str]]) -> int:
        objects = list(objects)
        self._record("remove_objects", name, objects)
        keys = {(o["Key"], o.get("VersionId")) for o in objects}
        self.buckets[name] = [
            o for o in self.buckets.get(name, []) if (o["Key"], o.get("VersionId")) not in keys
        ]
        self.buckets[name].extend(self.refill.get(name, []))
        return len(objects)


class FakeAdmin(FailureMixin):
    def __init__(self) -> None:
        super().__init__()
        self.quotas: dict[str, int] = {}
        self.policies: dict[str, str] = {}
        self.users: dict[str, dict[str, Any]] = {}
        # Optional rewrite applied to policies when stored, like a server normalizing them
        self.normalize = None

    def get_bucket_quota(self, bucket: str) -> int:
        self._record("get_bucket_quota", bucket)
        return self.quotas.get(bucket, 0)

    def set_bucket_quota(self, bucket: str, size: int) -> None:
        self._record("set_bucket_quota", bucket, size)
        if size:
            self.quotas[bucket] = size
        else:
            self.quotas.pop(bucket, None)

    def add_canned_policy(self, name: str, content: str) -> None:
        self._record("add_canned_policy", name, content)
        self.policies[name] = self.normalize(content) if self.normalize else content

    def get_canned_policy(self, name: str) -> str | None:
        self._record("get_canned_policy", name)
        return self.policies.get(name)

    def remove_canned_policy(self, name: str) -> None:
        self._record("remove_canned_policy", name)
        self.policies.pop(name, None)

    def upsert_user(self, access_key: str, secret_key: str, enabled: bool) -> None:
        self._record("upsert_user", access_key, secret_key, enabled)
        user = self.users.setdefault(access_key, {"policies": set()})
        user["secret_key"] = secret_key
        user["enabled"] = enabled

    def get_user_policies(self, access_key: str) -> set[str]:
        self._record("get_user_policies", access_key)
        return set(self.users[access_key]["policies"])

    def attach_policies(self, access_key: str, policies: list[str]) -> None:
        self._record("attach_policies", access_key, list(policies))
        self.users[access_key]["policies"].update(policies)

    def detach_policies(self, access_key: str, policies: list[str]) -> None:
        self._record("detach_policies", access_key, list(policies))
        self.users[access_key]["policies"].difference_update(policies)

    def remove_user(self, access_key: str) -> None:
        self._record("remove_user", access_key)
        self.users.pop(access_key, None)


class FakeProvider:
    def __init__(self, storage: FakeStorage, admin: FakeAdmin) -> None:
        self._storage = storage
        self._admin = admin

    def storage(self) -> FakeStorage:
        return self._storage

    def admin(self) -> FakeAdmin:
        return self._admin

    def is_configured(self) -> bool:
        return True


class InMemoryRecordStore:
    """Record store with resource versions, mimicking the Kubernetes API.

    ``conflicts`` makes the next N writes fail as stale. A record marked for
    deletion disappears once its last finalizer is removed.
    """

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self.bodies: dict[RecordRef, dict[str, Any]] = {}
        self.version = 0
        self.conflicts = 0
        self.writes = 0

    def add(
        self,
        name: str,
        spec: dict[str, Any],
        namespace: str = "default",
        state: str = "",
        message: str = "",
        finalizers: list[str] | None = None,
        deleting: bool = False,
    ) -> RecordRef:
        self.version += 1
        metadata: dict[str, Any] = {
            "name": name,
            "namespace": namespace,
            "uid": f"uid-{name}",
            "resourceVersion": str(self.version),
            "finalizers": list(finalizers or []),
        }
        if deleting:
            metadata["deletionTimestamp"] = "2024-01-01T00:00:00Z"
        status: dict[str, Any] = {"state": state}
        if message:
            status["message"] = message
        ref = RecordRef(name, namespace)
        self.bodies[ref] = {
            "apiVersion": "minio.scc-digitalhub.github.io/v1",
            "kind": self.kind,
            "metadata": metadata,
            "spec": copy.deepcopy(spec),
            "status": status,
        }
        return ref

    def mark_deleted(self, ref: RecordRef) -> None:
        self.version += 1
        metadata = self.bodies[ref]["metadata"]
        metadata["deletionTimestamp"] = "2024-01-01T00:00:00Z"
        metadata["resourceVersion"] = str(self.version)

    def touch(self, ref: RecordRef) -> None:
        """Simulate a concurrent edit bumping the resource version."""
        self.version += 1
        self.bodies[ref]["metadata"]["resourceVersion"] = str(self.version)

    def get(self, ref: RecordRef) -> ManagedRecord | None:
        body = self.bodies.get(ref)
        if body is None:
            return None
        return ManagedRecord.from_body(self.kind, body)

    def record(self, ref: RecordRef) -> ManagedRecord | None:
        return self.get(ref)

    def _check(self, record: ManagedRecord) -> dict[str, Any]:
        body = self.bodies.get(record.ref)
        if body is None:
            raise StaleRecordError("not found")
        if self.conflicts:
            self.conflicts -= 1
            self.touch(record.ref)
            raise StaleRecordError("the object has been modified")
        if body["metadata"]["resourceVersion"] != record.resource_version:
            raise StaleRecordError("the object has been modified")
        return body

    def _commit(self, ref: RecordRef, body: dict[str, Any]) -> ManagedRecord:
        self.writes += 1
        self.version += 1
        body["metadata"]["resourceVersion"] = str(self.version)
        if body["metadata"].get("deletionTimestamp") and not body["metadata"]["finalizers"]:
            del self.bodies[ref]
        else:
            self.bodies[ref] = body
        return ManagedRecord.from_body(self.kind, body)

    def update(self, record: ManagedRecord) -> ManagedRecord:
        body = copy.deepcopy(self._check(record))
        incoming = record.to_body()
        body["spec"] = incoming["spec"]
        body["metadata"]["finalizers"] = incoming["metadata"]["finalizers"]
        return self._commit(record.ref, body)

    def update_status(self, record: ManagedRecord) -> ManagedRecord:
        body = copy.deepcopy(self._check(record))
        body["status"] = record.to_body()["status"]
        return self._commit(record.ref, body)


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def admin() -> FakeAdmin:
    return FakeAdmin()


@pytest.fixture
def provider(storage: FakeStorage, admin: FakeAdmin) -> FakeProvider:
    return FakeProvider(storage, admin)


@pytest.fixture
def operator_settings() -> OperatorSettings:
    return OperatorSettings()


@pytest.fixture
def events(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    """Capture Kubernetes events instead of posting them."""
    captured: list[dict[str, Any]] = []

    def fake_event(body: Any, *, type: str, reason: str, message: str) -> None:
        captured.append({"body": body, "type": type, "reason": reason, "message": message})

    monkeypatch.setattr("minio_operator.utils.events.kopf.event", fake_event)
    return captured


def build_machine(adapter: Any, store: InMemoryRecordStore, retries: int = 5) -> StateMachine:
    return StateMachine(adapter, store, StatusWriter(store, store.kind, retries=retries))
