"""Base handler class with common functionality for all CRD handlers."""

from __future__ import annotations

import logging
import time
from typing import Any

import kopf

from .. import metrics
from ..config import OperatorSettings
from ..constants import CONTROLLER_NAME
from ..logging import log_resource_event
from ..models import RecordRef
from ..reconciler.engine import Outcome, ReconcileResult, StateMachine
from ..reconciler.status import StatusWriter
from ..services.minio.provider import RemoteClientProvider
from ..store.custom_objects import KubernetesRecordStore
from ..utils.errors import RecordConflictError, sanitize_exception
from ..utils.events import emit_reconcile_failed
from .shared import get_k8s_client

RETRY_DELAY_SECONDS = 30


class BaseHandler:
    """Base class for all CRD handlers with common functionality.

    Subclasses name the adapter class and plural of the kind they serve.
    """

    adapter_class: Any = None
    plural: str = ""

    def __init__(self, kind: str):
        """Initialize base handler.

        Args:
            kind: The Kubernetes resource kind (e.g., "Bucket", "User")
        """
        self.kind = kind
        self.logger = logging.getLogger(__name__)

    def _get_resource_context(self, meta: dict[str, Any]) -> dict[str, Any]:
        return {
            "name": meta.get("name", "unknown"),
            "namespace": meta.get("namespace", "default"),
            "uid": meta.get("uid", "unknown"),
        }

    def _log(
        self,
        level: int,
        meta: dict[str, Any],
        message: str,
        event: str,
        reason: str,
        **kwargs: Any,
    ) -> None:
        ctx = self._get_resource_context(meta)
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind,
            resource_name=ctx["name"],
            namespace=ctx["namespace"],
            uid=ctx["uid"],
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def log_info(
        self,
        meta: dict[str, Any],
        message: str,
        event: str = "info",
        reason: str = "Info",
        **kwargs: Any,
    ) -> None:
        """Log an info-level structured log message."""
        self._log(logging.INFO, meta, message, event, reason, **kwargs)

    def log_warning(
        self,
        meta: dict[str, Any],
        message: str,
        event: str = "warning",
        reason: str = "Warning",
        **kwargs: Any,
    ) -> None:
        """Log a warning-level structured log message."""
        self._log(logging.WARNING, meta, message, event, reason, **kwargs)

    def log_error(
        self,
        meta: dict[str, Any],
        message: str,
        error: Exception | None = None,
        event: str = "error",
        reason: str = "Error",
        **kwargs: Any,
    ) -> None:
        """Log an error-level structured log message.

        Args:
            meta: Kubernetes resource metadata
            message: Log message
            error: Optional exception to include sanitized error details
            event: Event type (default: "error")
            reason: Reason for the event (default: "Error")
            **kwargs: Additional fields to include in the log
        """
        log_data = kwargs.copy()
        if error is not None:
            log_data["error"] = sanitize_exception(error)
            log_data["error_type"] = type(error).__name__
        self._log(logging.ERROR, meta, message, event, reason, **log_data)

    def build_state_machine(self, memo: Any) -> tuple[StateMachine, OperatorSettings]:
        """Assemble the kind's state machine from the shared dependencies in memo."""
        settings = getattr(memo, "settings", None) or OperatorSettings.from_env()
        provider = getattr(memo, "provider", None)
        if provider is None:
            provider = RemoteClientProvider()
            memo.provider = provider
        api = getattr(memo, "api", None)
        if api is None:
            api = get_k8s_client()
            memo.api = api

        store = KubernetesRecordStore(api, self.kind, self.plural)
        writer = StatusWriter(store, self.kind, retries=settings.status_update_retries)
        adapter = self.adapter_class(provider, settings)
        return StateMachine(adapter, store, writer), settings

    def dispatch(self, body: dict[str, Any], meta: dict[str, Any], memo: Any) -> None:
        """Run reconcile steps for a resource until it settles.

        Steps are repeated while they ask for a requeue, up to the configured
        limit; later passes come from the periodic timer.

        Raises:
            kopf.TemporaryError: If a step failed or record writes kept conflicting
        """
        ref = RecordRef(meta.get("name", ""), meta.get("namespace", "default"))
        machine, settings = self.build_state_machine(memo)

        start_time = time.time()
        result = ReconcileResult.done()
        try:
            for _ in range(settings.max_requeue_steps):
                result = machine.reconcile(ref)
                if result.outcome != Outcome.REQUEUE:
                    break
            else:
                self.log_info(meta, "Requeue limit reached, continuing on next resync", reason="RequeueLimit")
        except RecordConflictError as e:
            metrics.reconcile_total.labels(kind=self.kind, result="conflict").inc()
            self.log_warning(meta, str(e), reason="RecordConflict")
            raise kopf.TemporaryError(str(e), delay=RETRY_DELAY_SECONDS) from e
        finally:
            duration = time.time() - start_time
            metrics.reconcile_duration_seconds.labels(kind=self.kind).observe(duration)

        if result.outcome == Outcome.ERROR:
            sanitized = sanitize_exception(Exception(result.message))
            metrics.reconcile_total.labels(kind=self.kind, result="error").inc()
            self.log_error(meta, f"Reconciliation failed: {sanitized}", reason="ReconciliationFailed")
            emit_reconcile_failed(body, f"Reconciliation failed: {sanitized}")
            raise kopf.TemporaryError(result.message, delay=RETRY_DELAY_SECONDS)

        metrics.reconcile_total.labels(kind=self.kind, result="success").inc()
