"""Handler for Policy CRD."""

from __future__ import annotations

import os
from typing import Any

import kopf

from ..constants import API_GROUP_VERSION, ENV_DRIFT_CHECK_INTERVAL, KIND_POLICY, PLURAL_POLICY
from ..reconciler.policy import PolicyAdapter
from .base import BaseHandler


class PolicyHandler(BaseHandler):
    """Handler for Policy resources."""

    adapter_class = PolicyAdapter
    plural = PLURAL_POLICY

    def __init__(self):
        super().__init__(KIND_POLICY)


_handler = PolicyHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_POLICY)
@kopf.on.update(API_GROUP_VERSION, KIND_POLICY)
@kopf.on.resume(API_GROUP_VERSION, KIND_POLICY)
@kopf.timer(API_GROUP_VERSION, KIND_POLICY, interval=int(os.getenv(ENV_DRIFT_CHECK_INTERVAL, "300")))
def handle_policy(body: dict[str, Any], meta: dict[str, Any], memo: kopf.Memo, **_: Any) -> None:
    """Reconcile a Policy on change, on startup and periodically."""
    _handler.dispatch(body, meta, memo)


@kopf.on.delete(API_GROUP_VERSION, KIND_POLICY, optional=True)
def handle_policy_delete(body: dict[str, Any], meta: dict[str, Any], memo: kopf.Memo, **_: Any) -> None:
    """Remove a Policy marked for deletion."""
    _handler.dispatch(body, meta, memo)
