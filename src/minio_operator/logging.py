"""Structured logging configuration for the MinIO Operator.

Every line written to stdout is one JSON document. Resource events carry
the record identity next to free-form fields; fields that look like
credentials are redacted before serialization.
"""

import json
import logging
import os
import sys
from typing import Any

from .constants import ENV_LOG_LEVEL
from .utils.errors import sanitize_dict

# Client libraries log full request traces at DEBUG, including signed headers
CHATTY_LOGGERS = ("botocore", "boto3", "urllib3", "kubernetes.client.rest")


def resolve_level(name: str | None) -> int:
    """Translate a level name such as ``debug`` to its numeric value, INFO if unknown."""
    level = logging.getLevelName((name or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_structured_logging(level_name: str | None = None) -> None:
    """Configure JSON-per-line logging on stdout.

    Args:
        level_name: Root level; defaults to the LOG_LEVEL environment variable
    """
    level = resolve_level(level_name if level_name is not None else os.getenv(ENV_LOG_LEVEL))
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stdout)
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def log_resource_event(
    logger: logging.Logger,
    controller: str,
    resource_kind: str,
    resource_name: str,
    namespace: str,
    uid: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """Write one structured line about a managed resource.

    Identity keys always win over extra fields of the same name.
    """
    if not logger.isEnabledFor(level):
        return
    entry = sanitize_dict(fields)
    entry.update(
        controller=controller,
        resource=resource_kind,
        name=resource_name,
        namespace=namespace,
        uid=uid,
        event=event,
        reason=reason,
        message=message,
    )
    logger.log(level, json.dumps(entry, default=str))
