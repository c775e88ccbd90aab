"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import EVENT_REASON_DELETING, EVENT_REASON_RECONCILE_FAILED
from ..models import ManagedRecord


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Resource body the event refers to
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_resource_deleting(record: ManagedRecord) -> None:
    """Emit the audit event recorded when a resource's remote side effects are cleaned up."""
    emit_event(
        record.body,
        EVENT_REASON_DELETING,
        f"Custom Resource {record.name} is being deleted from the namespace {record.namespace}",
        type_="Warning",
    )


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")
