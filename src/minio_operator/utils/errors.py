"""Error taxonomy, classification and sanitization utilities."""

from __future__ import annotations

import re
from typing import Any

from botocore.exceptions import ClientError


class OperatorError(Exception):
    """Base class for failures that are surfaced in a resource's status message."""


class ConfigurationError(OperatorError):
    """Raised when the operator's remote connection settings are missing or invalid."""


class InvalidSpecError(OperatorError):
    """Raised when a resource spec cannot be interpreted."""


class RemoteOperationError(OperatorError):
    """Raised when a call against the remote storage service fails.

    The message is the remote library's own message, unmodified.
    """

    def __init__(self, operation: str, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.code = code


class BucketNotEmptyError(RemoteOperationError):
    """Raised when a bucket cannot be removed because it still holds objects."""


class DrainLimitExceededError(RemoteOperationError):
    """Raised when a bucket is still not empty after the maximum number of drain passes."""


class StaleRecordError(Exception):
    """Raised by a record store when a write was based on an outdated resource version."""


class RecordConflictError(Exception):
    """Raised when a record write keeps conflicting after all retries are used."""


NOT_FOUND_CODES = {
    "404",
    "NoSuchBucket",
    "NoSuchKey",
    "NotFound",
    "XMinioAdminNoSuchUser",
    "XMinioAdminNoSuchPolicy",
}

NO_NET_EFFECT_CODES = {"XMinioAdminPolicyChangeAlreadyApplied"}

QUOTA_UNSET_CODES = {"XMinioAdminNoSuchQuotaConfiguration"}

_ADMIN_CODE_PATTERN = re.compile(r'"Code"\s*:\s*"([^"]+)"')


def error_code(error: BaseException) -> str | None:
    """Extract the remote error code from a library or wrapped exception.

    Args:
        error: Exception raised by boto3, the MinIO admin client, or this operator

    Returns:
        The error code, or None when it cannot be determined
    """
    if isinstance(error, RemoteOperationError):
        return error.code
    if isinstance(error, ClientError):
        return str(error.response.get("Error", {}).get("Code", "")) or None
    match = _ADMIN_CODE_PATTERN.search(str(error))
    if match:
        return match.group(1)
    return None


def is_not_found(error: BaseException) -> bool:
    """Check whether an error means the remote object is already absent."""
    if error_code(error) in NOT_FOUND_CODES:
        return True
    return "does not exist" in str(error).lower()


def is_no_net_effect(error: BaseException) -> bool:
    """Check whether an error means the requested change was already in place."""
    if error_code(error) in NO_NET_EFFECT_CODES:
        return True
    text = str(error).lower()
    return "no net effect" in text or "already in effect" in text


def is_bucket_not_empty(error: BaseException) -> bool:
    """Check whether an error means a bucket removal was refused because it has content."""
    if error_code(error) == "BucketNotEmpty":
        return True
    return "not empty" in str(error).lower()


def is_bucket_owned(error: BaseException) -> bool:
    """Check whether a bucket creation failed only because we already own the bucket."""
    return error_code(error) == "BucketAlreadyOwnedByYou"


def is_quota_unset(error: BaseException) -> bool:
    """Check whether a quota read failed because no quota is configured."""
    return error_code(error) in QUOTA_UNSET_CODES


def is_conflict(error: BaseException) -> bool:
    """Check whether a Kubernetes API error is an optimistic-concurrency conflict."""
    return getattr(error, "status", None) == 409


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"access[_\s]?key[_\s]?id[:\s=]+([A-Za-z0-9]{3,})",
    r"secret[_\s]?access[_\s]?key[:\s=]+([A-Za-z0-9/+=]{8,})",
    r"secret[_\s]?key[:\s=]+([A-Za-z0-9/+=]{8,})",
    r"session[_\s]?token[:\s=]+([A-Za-z0-9/+=]+)",
    r"credential=([A-Za-z0-9]+)/",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "access_key",
    "secret_key",
    "accesskey",
    "secretkey",
    "session_token",
    "password",
    "secret",
    "credentials",
    "token",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove credentials.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(
            pattern,
            lambda m: m.group(0).replace(m.group(1), "[REDACTED]"),
            sanitized,
            flags=re.IGNORECASE,
        )

    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"\b{field}[:\s=]+([^\s,;\)]+)",
            f"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: BaseException) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    return sanitize_error_message(str(error))


def sanitize_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """Sanitize dictionary by redacting sensitive fields.

    Args:
        data: Dictionary to sanitize
        sensitive_keys: Additional keys to redact (merged with SENSITIVE_FIELDS)

    Returns:
        Sanitized dictionary with sensitive values redacted
    """
    all_sensitive = SENSITIVE_FIELDS | (sensitive_keys or set())
    sanitized: dict[str, Any] = {}

    for key, value in data.items():
        if key.lower() in all_sensitive:
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, sensitive_keys)
        elif isinstance(value, str):
            sanitized[key] = sanitize_error_message(value)
        else:
            sanitized[key] = value

    return sanitized
