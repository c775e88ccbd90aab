"""Bucket reconciliation: creation, quota drift and drained deletion."""

from __future__ import annotations

import logging
from typing import Any

from ..config import OperatorSettings
from ..constants import BUCKET_FINALIZER, KIND_BUCKET
from ..models import BucketSpec, ManagedRecord
from ..services.minio.provider import RemoteClientProvider
from ..utils.errors import BucketNotEmptyError, DrainLimitExceededError
from .drift import quota_drifted

logger = logging.getLogger(__name__)


class BucketAdapter:
    kind = KIND_BUCKET
    finalizer = BUCKET_FINALIZER
    converges_in_place = False

    def __init__(self, provider: RemoteClientProvider, settings: OperatorSettings) -> None:
        self.provider = provider
        self.settings = settings

    def create(self, record: ManagedRecord) -> dict[str, Any] | None:
        spec = BucketSpec.from_dict(record.spec)
        storage = self.provider.storage()
        if storage.bucket_exists(spec.name):
            logger.info(f"Bucket {spec.name} already exists")
        else:
            storage.create_bucket(spec.name)
        if spec.quota > 0:
            self.provider.admin().set_bucket_quota(spec.name, spec.quota)
        return None

    def finish_create(self, record: ManagedRecord) -> None:
        return None

    def refresh(self, record: ManagedRecord) -> None:
        return None

    def read_observed(self, record: ManagedRecord) -> int:
        spec = BucketSpec.from_dict(record.spec)
        return self.provider.admin().get_bucket_quota(spec.name)

    def compute_drift(self, record: ManagedRecord, observed: int) -> bool:
        spec = BucketSpec.from_dict(record.spec)
        return quota_drifted(spec.quota, observed)

    def apply_desired(self, record: ManagedRecord, drift: Any) -> dict[str, Any] | None:
        spec = BucketSpec.from_dict(record.spec)
        self.provider.admin().set_bucket_quota(spec.name, spec.quota)
        return None

    def remove(self, record: ManagedRecord) -> None:
        """Remove the bucket, draining it first when allowed.

        Only the bucket name is read, so a spec edited to an invalid quota
        after creation does not block deletion.

        Raises:
            BucketNotEmptyError: If the bucket has content and draining is disabled
            DrainLimitExceededError: If objects keep appearing after every drain pass
        """
        name = BucketSpec.name_from(record.spec)
        storage = self.provider.storage()
        passes = self.settings.max_drain_iterations
        for iteration in range(passes + 1):
            try:
                storage.remove_bucket(name)
                return
            except BucketNotEmptyError as e:
                if not self.settings.empty_on_delete:
                    raise
                if iteration == passes:
                    raise DrainLimitExceededError(
                        "remove_bucket",
                        f"bucket {name} is still not empty after {passes} drain passes",
                        e.code,
                    ) from e
            objects = storage.list_object_versions(name)
            removed = storage.remove_objects(name, objects)
            logger.info(f"Drained {removed} object versions from bucket {name} (pass {iteration + 1})")
