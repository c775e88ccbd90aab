"""Record store backed by Kubernetes custom objects."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from kubernetes.client.exceptions import ApiException

from .. import metrics
from ..constants import API_GROUP, API_VERSION
from ..models import ManagedRecord, RecordRef
from ..utils.errors import StaleRecordError, is_conflict

logger = logging.getLogger(__name__)


class KubernetesRecordStore:
    """Reads and writes resource records through the CustomObjectsApi."""

    def __init__(
        self,
        api: Any,
        kind: str,
        plural: str,
        group: str = API_GROUP,
        version: str = API_VERSION,
    ) -> None:
        """Initialize the store.

        Args:
            api: Kubernetes CustomObjectsApi instance
            kind: Resource kind the store serves
            plural: Plural resource name used in API paths
            group: API group
            version: API version
        """
        self.api = api
        self.kind = kind
        self.plural = plural
        self.group = group
        self.version = version

    def _call(self, operation: str, fn: Callable[..., Any], **kwargs: Any) -> Any:
        start_time = time.time()
        try:
            result = fn(group=self.group, version=self.version, plural=self.plural, **kwargs)
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
            return result
        except ApiException:
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)

    def get(self, ref: RecordRef) -> ManagedRecord | None:
        try:
            body = self._call(
                f"get_{self.plural}",
                self.api.get_namespaced_custom_object,
                namespace=ref.namespace,
                name=ref.name,
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise
        return ManagedRecord.from_body(self.kind, body)

    def update(self, record: ManagedRecord) -> ManagedRecord:
        return self._replace(f"replace_{self.plural}", self.api.replace_namespaced_custom_object, record)

    def update_status(self, record: ManagedRecord) -> ManagedRecord:
        return self._replace(
            f"replace_{self.plural}_status",
            self.api.replace_namespaced_custom_object_status,
            record,
        )

    def _replace(self, operation: str, fn: Callable[..., Any], record: ManagedRecord) -> ManagedRecord:
        try:
            body = self._call(
                operation,
                fn,
                namespace=record.namespace,
                name=record.name,
                body=record.to_body(),
            )
        except ApiException as e:
            if e.status == 404 or is_conflict(e):
                logger.debug(f"{operation} on {record.ref} is stale: {e.reason}")
                raise StaleRecordError(f"{self.kind} {record.ref} changed: {e.reason}") from e
            raise
        return ManagedRecord.from_body(self.kind, body)
