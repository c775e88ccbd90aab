"""Operator configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import urlparse

from .constants import (
    ENV_ACCESS_KEY,
    ENV_EMPTY_ON_DELETE,
    ENV_ENDPOINT,
    ENV_MAX_DRAIN_ITERATIONS,
    ENV_MAX_REQUEUE_STEPS,
    ENV_REGION,
    ENV_REQUEST_TIMEOUT,
    ENV_SECRET_KEY,
    ENV_STATUS_UPDATE_RETRIES,
    ENV_USE_SSL,
)
from .utils.errors import ConfigurationError

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


def parse_bool(name: str, value: str | None, default: bool = False) -> bool:
    """Parse a boolean environment value.

    Args:
        name: Variable name, used in the error message
        value: Raw value, or None when unset
        default: Value returned when unset or blank

    Returns:
        Parsed boolean

    Raises:
        ConfigurationError: If the value is not a recognised boolean literal
    """
    if value is None or not value.strip():
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be either true or false")


def _parse_int(name: str, value: str | None, default: int, minimum: int = 0) -> int:
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e
    if parsed < minimum:
        raise ConfigurationError(f"{name} must be at least {minimum}, got {parsed}")
    return parsed


@dataclass(frozen=True)
class RemoteSettings:
    """Connection parameters for the remote MinIO service."""

    endpoint: str
    access_key: str
    secret_key: str
    secure: bool = False
    region: str = "us-east-1"
    timeout: float = 30.0

    @property
    def endpoint_url(self) -> str:
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.endpoint}"

    @classmethod
    def from_env(cls) -> "RemoteSettings":
        """Read connection settings from the environment.

        The endpoint may be given as ``host:port`` or as a URL; a URL scheme
        decides TLS and overrides MINIO_USE_SSL.

        Raises:
            ConfigurationError: If a required variable is missing or a value is invalid
        """
        missing = [
            name
            for name in (ENV_ENDPOINT, ENV_ACCESS_KEY, ENV_SECRET_KEY)
            if not os.getenv(name, "").strip()
        ]
        if missing:
            raise ConfigurationError(f"missing required configuration: {', '.join(missing)}")

        endpoint = os.environ[ENV_ENDPOINT].strip()
        secure = parse_bool(ENV_USE_SSL, os.getenv(ENV_USE_SSL))
        if "://" in endpoint:
            parsed = urlparse(endpoint)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ConfigurationError(f"{ENV_ENDPOINT} is not a valid endpoint: {endpoint}")
            secure = parsed.scheme == "https"
            endpoint = parsed.netloc

        timeout = float(_parse_int(ENV_REQUEST_TIMEOUT, os.getenv(ENV_REQUEST_TIMEOUT), 30, minimum=1))

        return cls(
            endpoint=endpoint,
            access_key=os.environ[ENV_ACCESS_KEY].strip(),
            secret_key=os.environ[ENV_SECRET_KEY].strip(),
            secure=secure,
            region=os.getenv(ENV_REGION, "").strip() or "us-east-1",
            timeout=timeout,
        )


@dataclass(frozen=True)
class OperatorSettings:
    """Behavioural settings of the reconcilers."""

    empty_on_delete: bool = False
    max_drain_iterations: int = 10
    status_update_retries: int = 5
    max_requeue_steps: int = 10

    @classmethod
    def from_env(cls) -> "OperatorSettings":
        return cls(
            empty_on_delete=parse_bool(ENV_EMPTY_ON_DELETE, os.getenv(ENV_EMPTY_ON_DELETE)),
            max_drain_iterations=_parse_int(
                ENV_MAX_DRAIN_ITERATIONS, os.getenv(ENV_MAX_DRAIN_ITERATIONS), 10, minimum=1
            ),
            status_update_retries=_parse_int(
                ENV_STATUS_UPDATE_RETRIES, os.getenv(ENV_STATUS_UPDATE_RETRIES), 5
            ),
            max_requeue_steps=_parse_int(
                ENV_MAX_REQUEUE_STEPS, os.getenv(ENV_MAX_REQUEUE_STEPS), 10, minimum=1
            ),
        )
