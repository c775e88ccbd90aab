"""Main entry point for the MinIO Operator."""

from __future__ import annotations

import logging
import os
from typing import Any

import kopf

from . import handlers  # noqa: F401  registers the kopf handlers
from . import health
from . import logging as structured_logging
from .config import OperatorSettings
from .constants import ENV_METRICS_PORT
from .handlers.shared import get_k8s_client
from .services.minio.provider import RemoteClientProvider

logger = logging.getLogger(__name__)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Configure the operator and build the dependencies shared by all handlers."""
    structured_logging.setup_structured_logging()

    # Status belongs to the reconcilers, keep kopf's bookkeeping in annotations
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = 4

    operator_settings = OperatorSettings.from_env()
    provider = RemoteClientProvider()
    memo.settings = operator_settings
    memo.provider = provider
    memo.api = get_k8s_client()

    if not provider.is_configured():
        logger.warning("MinIO connection settings are incomplete; resources will report errors until fixed")

    metrics_port = int(os.getenv(ENV_METRICS_PORT, "8080"))
    health.start_health_server(metrics_port, readiness_check=provider.is_configured)
    logger.info(f"Metrics and health endpoints listening on port {metrics_port}")
