"""Handler for Bucket CRD."""

from __future__ import annotations

import os
from typing import Any

import kopf

from ..constants import API_GROUP_VERSION, ENV_DRIFT_CHECK_INTERVAL, KIND_BUCKET, PLURAL_BUCKET
from ..reconciler.bucket import BucketAdapter
from .base import BaseHandler


class BucketHandler(BaseHandler):
    """Handler for Bucket resources."""

    adapter_class = BucketAdapter
    plural = PLURAL_BUCKET

    def __init__(self):
        super().__init__(KIND_BUCKET)


_handler = BucketHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_BUCKET)
@kopf.on.update(API_GROUP_VERSION, KIND_BUCKET)
@kopf.on.resume(API_GROUP_VERSION, KIND_BUCKET)
@kopf.timer(API_GROUP_VERSION, KIND_BUCKET, interval=int(os.getenv(ENV_DRIFT_CHECK_INTERVAL, "300")))
def handle_bucket(body: dict[str, Any], meta: dict[str, Any], memo: kopf.Memo, **_: Any) -> None:
    """Reconcile a Bucket on change, on startup and periodically."""
    _handler.dispatch(body, meta, memo)


@kopf.on.delete(API_GROUP_VERSION, KIND_BUCKET, optional=True)
def handle_bucket_delete(body: dict[str, Any], meta: dict[str, Any], memo: kopf.Memo, **_: Any) -> None:
    """Drain and remove a Bucket marked for deletion."""
    _handler.dispatch(body, meta, memo)
