"""Data model for the managed resource records."""

from __future__ import annotations

import copy
import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .constants import ACCOUNT_DISABLED, ACCOUNT_ENABLED, BUCKET_NAME_PATTERN
from .utils.errors import InvalidSpecError


class ResourceState(str, Enum):
    """Lifecycle state recorded in ``status.state``."""

    UNSET = ""
    CREATING = "Creating"
    READY = "Ready"
    UPDATING = "Updating"
    DEGRADED = "Degraded"
    ERROR = "Error"

    @classmethod
    def parse(cls, value: Any) -> "ResourceState":
        """Map a raw status value to a state; unknown values read as UNSET."""
        try:
            return cls(value or "")
        except ValueError:
            return cls.UNSET


@dataclass(frozen=True)
class RecordRef:
    """Identity of a resource record."""

    name: str
    namespace: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass
class ManagedRecord:
    """A desired/observed resource record as seen by the reconcilers."""

    kind: str
    name: str
    namespace: str
    uid: str = ""
    resource_version: str | None = None
    spec: dict[str, Any] = field(default_factory=dict)
    state: ResourceState = ResourceState.UNSET
    message: str = ""
    finalizers: list[str] = field(default_factory=list)
    deletion_requested: bool = False
    body: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def ref(self) -> RecordRef:
        return RecordRef(self.name, self.namespace)

    @property
    def meta(self) -> dict[str, Any]:
        """Metadata in the shape expected by the logging and event helpers."""
        return {"name": self.name, "namespace": self.namespace, "uid": self.uid}

    def has_finalizer(self, token: str) -> bool:
        return token in self.finalizers

    @classmethod
    def from_body(cls, kind: str, body: dict[str, Any]) -> "ManagedRecord":
        """Build a record from a Kubernetes custom object."""
        metadata = body.get("metadata", {}) or {}
        status = body.get("status", {}) or {}
        return cls(
            kind=kind,
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", "default"),
            uid=metadata.get("uid", ""),
            resource_version=metadata.get("resourceVersion"),
            spec=copy.deepcopy(body.get("spec", {}) or {}),
            state=ResourceState.parse(status.get("state")),
            message=status.get("message", "") or "",
            finalizers=list(metadata.get("finalizers", []) or []),
            deletion_requested=bool(metadata.get("deletionTimestamp")),
            body=copy.deepcopy(body),
        )

    def to_body(self) -> dict[str, Any]:
        """Render the record back into a Kubernetes custom object."""
        body = copy.deepcopy(self.body)
        metadata = body.setdefault("metadata", {})
        metadata["name"] = self.name
        metadata["namespace"] = self.namespace
        if self.resource_version is not None:
            metadata["resourceVersion"] = self.resource_version
        metadata["finalizers"] = list(self.finalizers)
        body["spec"] = copy.deepcopy(self.spec)
        status: dict[str, Any] = {"state": self.state.value}
        if self.message:
            status["message"] = self.message
        body["status"] = status
        return body

    def assign(self, other: "ManagedRecord") -> None:
        """Overwrite this record in place with the fields of another."""
        self.kind = other.kind
        self.name = other.name
        self.namespace = other.namespace
        self.uid = other.uid
        self.resource_version = other.resource_version
        self.spec = copy.deepcopy(other.spec)
        self.state = other.state
        self.message = other.message
        self.finalizers = list(other.finalizers)
        self.deletion_requested = other.deletion_requested
        self.body = copy.deepcopy(other.body)


_BUCKET_NAME_RE = re.compile(BUCKET_NAME_PATTERN)


@dataclass(frozen=True)
class BucketSpec:
    name: str
    quota: int = 0

    @classmethod
    def from_dict(cls, spec: dict[str, Any]) -> "BucketSpec":
        """Parse a Bucket spec.

        Raises:
            InvalidSpecError: If the bucket name or quota is invalid
        """
        name = cls.name_from(spec)
        quota = spec.get("quota") or 0
        if isinstance(quota, bool) or not isinstance(quota, int) or quota < 0:
            raise InvalidSpecError(f"bucket quota must be a non-negative integer, got {quota!r}")
        return cls(name=name, quota=quota)

    @staticmethod
    def name_from(spec: dict[str, Any]) -> str:
        name = spec.get("name") or ""
        if not _BUCKET_NAME_RE.match(name):
            raise InvalidSpecError(f"invalid bucket name {name!r}")
        return name


@dataclass(frozen=True)
class PolicySpec:
    name: str
    content: str

    @classmethod
    def from_dict(cls, spec: dict[str, Any]) -> "PolicySpec":
        """Parse a Policy spec.

        Raises:
            InvalidSpecError: If the name is empty or the content is not JSON
        """
        name = cls.name_from(spec)
        content = spec.get("content") or ""
        try:
            json.loads(content)
        except (TypeError, ValueError) as e:
            raise InvalidSpecError(f"policy content is not valid JSON: {e}") from e
        return cls(name=name, content=content)

    @staticmethod
    def name_from(spec: dict[str, Any]) -> str:
        name = (spec.get("name") or "").strip()
        if not name or any(c.isspace() for c in name):
            raise InvalidSpecError(f"invalid policy name {spec.get('name')!r}")
        return name


@dataclass(frozen=True)
class UserSpec:
    access_key: str
    secret_key: str
    account_status: str = ACCOUNT_ENABLED
    policies: tuple[str, ...] = ()

    @property
    def enabled(self) -> bool:
        return self.account_status == ACCOUNT_ENABLED

    @classmethod
    def from_dict(cls, spec: dict[str, Any]) -> "UserSpec":
        """Parse a User spec.

        Blank policy entries are dropped and duplicates collapsed.

        Raises:
            InvalidSpecError: If credentials are missing or the account status is unknown
        """
        access_key = cls.access_key_from(spec)
        secret_key = spec.get("secretKey") or ""
        if not secret_key:
            raise InvalidSpecError("user secretKey is required")
        status = spec.get("accountStatus") or ACCOUNT_ENABLED
        if status not in (ACCOUNT_ENABLED, ACCOUNT_DISABLED):
            raise InvalidSpecError(
                f"accountStatus must be {ACCOUNT_ENABLED} or {ACCOUNT_DISABLED}, got {status!r}"
            )
        policies: list[str] = []
        for entry in spec.get("policies") or []:
            entry = (entry or "").strip()
            if entry and entry not in policies:
                policies.append(entry)
        return cls(
            access_key=access_key,
            secret_key=secret_key,
            account_status=status,
            policies=tuple(policies),
        )

    @staticmethod
    def access_key_from(spec: dict[str, Any]) -> str:
        access_key = spec.get("accessKey") or ""
        if not access_key:
            raise InvalidSpecError("user accessKey is required")
        return access_key
