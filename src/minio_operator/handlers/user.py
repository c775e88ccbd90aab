"""Handler for User CRD."""

from __future__ import annotations

import os
from typing import Any

import kopf

from ..constants import API_GROUP_VERSION, ENV_DRIFT_CHECK_INTERVAL, KIND_USER, PLURAL_USER
from ..reconciler.user import UserAdapter
from .base import BaseHandler


class UserHandler(BaseHandler):
    """Handler for User resources."""

    adapter_class = UserAdapter
    plural = PLURAL_USER

    def __init__(self):
        super().__init__(KIND_USER)


_handler = UserHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_USER)
@kopf.on.update(API_GROUP_VERSION, KIND_USER)
@kopf.on.resume(API_GROUP_VERSION, KIND_USER)
@kopf.timer(API_GROUP_VERSION, KIND_USER, interval=int(os.getenv(ENV_DRIFT_CHECK_INTERVAL, "300")))
def handle_user(body: dict[str, Any], meta: dict[str, Any], memo: kopf.Memo, **_: Any) -> None:
    """Reconcile a User on change, on startup and periodically."""
    _handler.dispatch(body, meta, memo)


@kopf.on.delete(API_GROUP_VERSION, KIND_USER, optional=True)
def handle_user_delete(body: dict[str, Any], meta: dict[str, Any], memo: kopf.Memo, **_: Any) -> None:
    """Remove a User marked for deletion."""
    _handler.dispatch(body, meta, memo)
