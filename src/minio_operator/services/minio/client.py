"""MinIO client implementations.

The data plane is driven through boto3's S3 client, the control plane
(quotas, canned policies, users) through the MinIO admin API.
"""

from __future__ import annotations

import functools
import json
import logging
import os
import tempfile
import time
from typing import Any, Callable, Iterable, TypeVar

import boto3
import urllib3
from botocore.exceptions import BotoCoreError, ClientError
from minio import MinioAdmin
from minio.credentials import StaticProvider
from minio.error import MinioAdminException, MinioException

from ... import metrics
from ...config import RemoteSettings
from ...constants import DELETE_BATCH_SIZE
from ...utils.errors import (
    BucketNotEmptyError,
    OperatorError,
    RemoteOperationError,
    error_code,
    is_bucket_not_empty,
    is_bucket_owned,
    is_no_net_effect,
    is_not_found,
    is_quota_unset,
    sanitize_exception,
)

logger = logging.getLogger(__name__)

REMOTE_ERRORS = (
    ClientError,
    BotoCoreError,
    MinioAdminException,
    MinioException,
    urllib3.exceptions.HTTPError,
)

F = TypeVar("F", bound=Callable[..., Any])


def remote_call(api_type: str, operation: str) -> Callable[[F], F]:
    """Instrument a remote call and translate library errors.

    Library exceptions escaping the wrapped function are re-raised as
    RemoteOperationError carrying the library's message verbatim.

    Args:
        api_type: Metric label for the remote API ("s3" or "admin")
        operation: Metric label and error context for the operation
    """

    def decorator(fn: F) -> F:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.time()
            try:
                result = fn(*args, **kwargs)
            except OperatorError:
                metrics.api_call_total.labels(api_type=api_type, operation=operation, result="error").inc()
                raise
            except REMOTE_ERRORS as e:
                metrics.api_call_total.labels(api_type=api_type, operation=operation, result="error").inc()
                logger.error(f"{api_type} {operation} failed: {sanitize_exception(e)}")
                raise RemoteOperationError(operation, str(e), error_code(e)) from e
            else:
                metrics.api_call_total.labels(api_type=api_type, operation=operation, result="success").inc()
                return result
            finally:
                duration = time.time() - start_time
                metrics.api_call_duration_seconds.labels(api_type=api_type, operation=operation).observe(duration)

        return wrapper  # type: ignore[return-value]

    return decorator


class StorageClient:
    """Bucket and object operations over the S3 API."""

    def __init__(self, settings: RemoteSettings, client: Any | None = None) -> None:
        """Initialize the storage client.

        Args:
            settings: Remote connection settings
            client: Optional pre-built boto3 S3 client
        """
        if client is None:
            config = boto3.session.Config(
                signature_version="s3v4",
                s3={"addressing_style": "path"},
                connect_timeout=settings.timeout,
                read_timeout=settings.timeout,
                retries={"max_attempts": 3, "mode": "standard"},
            )
            client = boto3.client(
                "s3",
                endpoint_url=settings.endpoint_url,
                region_name=settings.region,
                aws_access_key_id=settings.access_key,
                aws_secret_access_key=settings.secret_key,
                config=config,
            )
        self.client = client

    @remote_call("s3", "bucket_exists")
    def bucket_exists(self, name: str) -> bool:
        """Check if bucket exists."""
        try:
            self.client.head_bucket(Bucket=name)
            return True
        except ClientError as e:
            if is_not_found(e):
                return False
            raise

    @remote_call("s3", "create_bucket")
    def create_bucket(self, name: str) -> None:
        """Create a bucket."""
        try:
            self.client.create_bucket(Bucket=name)
            logger.info(f"Created bucket {name}")
        except ClientError as e:
            if is_bucket_owned(e):
                logger.info(f"Bucket {name} already exists")
                return
            raise

    @remote_call("s3", "remove_bucket")
    def remove_bucket(self, name: str) -> None:
        """Remove a bucket.

        Raises:
            BucketNotEmptyError: If the bucket still holds objects
        """
        try:
            self.client.delete_bucket(Bucket=name)
            logger.info(f"Removed bucket {name}")
        except ClientError as e:
            if is_not_found(e):
                logger.info(f"Bucket {name} already absent")
                return
            if is_bucket_not_empty(e):
                raise BucketNotEmptyError("remove_bucket", str(e), error_code(e)) from e
            raise

    @remote_call("s3", "list_object_versions")
    def list_object_versions(self, name: str) -> list[dict[str, str]]:
        """List all object versions and delete markers in a bucket.

        Args:
            name: Bucket name

        Returns:
            List of ``{"Key", "VersionId"}`` identifiers suitable for DeleteObjects
        """
        objects: list[dict[str, str]] = []
        paginator = self.client.get_paginator("list_object_versions")
        for page in paginator.paginate(Bucket=name):
            for entry in page.get("Versions", []) + page.get("DeleteMarkers", []):
                identifier = {"Key": entry["Key"]}
                if entry.get("VersionId"):
                    identifier["VersionId"] = entry["VersionId"]
                objects.append(identifier)
        return objects

    @remote_call("s3", "remove_objects")
    def remove_objects(self, name: str, objects: Iterable[dict[str, str]]) -> int:
        """Remove objects in batches, bypassing governance retention.

        Args:
            name: Bucket name
            objects: Object identifiers as returned by list_object_versions

        Returns:
            Number of object versions removed

        Raises:
            RemoteOperationError: If any object could not be removed
        """
        pending = list(objects)
        removed = 0
        for offset in range(0, len(pending), DELETE_BATCH_SIZE):
            batch = pending[offset:offset + DELETE_BATCH_SIZE]
            response = self.client.delete_objects(
                Bucket=name,
                Delete={"Objects": batch, "Quiet": True},
                BypassGovernanceRetention=True,
            )
            errors = response.get("Errors", [])
            if errors:
                first = errors[0]
                raise RemoteOperationError(
                    "remove_objects",
                    f"{first.get('Key')}: {first.get('Message', first.get('Code'))}",
                    first.get("Code"),
                )
            removed += len(batch)
        metrics.drained_objects_total.inc(removed)
        return removed


class AdminClient:
    """Quota, canned policy and user operations over the MinIO admin API."""

    def __init__(self, settings: RemoteSettings, admin: Any | None = None) -> None:
        """Initialize the admin client.

        Args:
            settings: Remote connection settings
            admin: Optional pre-built MinioAdmin instance
        """
        if admin is None:
            http_client = urllib3.PoolManager(
                timeout=urllib3.Timeout(connect=settings.timeout, read=settings.timeout),
                retries=urllib3.Retry(
                    total=3,
                    backoff_factor=0.2,
                    status_forcelist=[500, 502, 503, 504],
                ),
            )
            admin = MinioAdmin(
                settings.endpoint,
                credentials=StaticProvider(settings.access_key, settings.secret_key),
                region=settings.region,
                secure=settings.secure,
                http_client=http_client,
            )
        self.admin = admin

    @remote_call("admin", "get_bucket_quota")
    def get_bucket_quota(self, bucket: str) -> int:
        try:
            raw = self.admin.bucket_quota_get(bucket)
        except MinioAdminException as e:
            if is_quota_unset(e):
                return 0
            raise
        data = _load_json("get_bucket_quota", raw)
        return int(data.get("quota") or data.get("size") or 0)

    @remote_call("admin", "set_bucket_quota")
    def set_bucket_quota(self, bucket: str, size: int) -> None:
        if size > 0:
            self.admin.bucket_quota_set(bucket, size)
            logger.info(f"Set quota of bucket {bucket} to {size} bytes")
            return
        try:
            self.admin.bucket_quota_clear(bucket)
            logger.info(f"Cleared quota of bucket {bucket}")
        except MinioAdminException as e:
            if not is_quota_unset(e):
                raise

    @remote_call("admin", "add_canned_policy")
    def add_canned_policy(self, name: str, content: str) -> None:
        """Create or replace a canned policy.

        The admin API takes the document from a file, so it is staged in a
        temporary file for the duration of the call.
        """
        fd, path = tempfile.mkstemp(prefix="policy-", suffix=".json")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(content)
            self.admin.policy_add(name, policy_file=path)
            logger.info(f"Added canned policy {name}")
        finally:
            os.remove(path)

    @remote_call("admin", "get_canned_policy")
    def get_canned_policy(self, name: str) -> str | None:
        """Read a canned policy.

        Returns:
            The stored policy document as JSON text, or None if it does not exist
        """
        try:
            raw = self.admin.policy_info(name)
        except MinioAdminException as e:
            if is_not_found(e):
                return None
            raise
        data = _load_json("get_canned_policy", raw)
        if isinstance(data, dict) and "PolicyName" in data and "Policy" in data:
            document = data["Policy"]
            if isinstance(document, str):
                return document
            return json.dumps(document)
        return json.dumps(data)

    @remote_call("admin", "remove_canned_policy")
    def remove_canned_policy(self, name: str) -> None:
        try:
            self.admin.policy_remove(name)
            logger.info(f"Removed canned policy {name}")
        except MinioAdminException as e:
            if not is_not_found(e):
                raise

    @remote_call("admin", "upsert_user")
    def upsert_user(self, access_key: str, secret_key: str, enabled: bool) -> None:
        self.admin.user_add(access_key, secret_key)
        if enabled:
            self.admin.user_enable(access_key)
        else:
            self.admin.user_disable(access_key)

    @remote_call("admin", "get_user_policies")
    def get_user_policies(self, access_key: str) -> set[str]:
        raw = self.admin.user_info(access_key)
        data = _load_json("get_user_policies", raw)
        names = (data.get("policyName") or "").split(",")
        return {n.strip() for n in names if n.strip()}

    @remote_call("admin", "attach_policies")
    def attach_policies(self, access_key: str, policies: list[str]) -> None:
        if not policies:
            return
        try:
            self.admin.attach_policy(policies, user=access_key)
            logger.info(f"Attached policies {policies} to user {access_key}")
        except MinioAdminException as e:
            if not is_no_net_effect(e):
                raise

    @remote_call("admin", "detach_policies")
    def detach_policies(self, access_key: str, policies: list[str]) -> None:
        if not policies:
            return
        try:
            self.admin.detach_policy(policies, user=access_key)
            logger.info(f"Detached policies {policies} from user {access_key}")
        except MinioAdminException as e:
            if not is_no_net_effect(e):
                raise

    @remote_call("admin", "remove_user")
    def remove_user(self, access_key: str) -> None:
        try:
            self.admin.user_remove(access_key)
            logger.info(f"Removed user {access_key}")
        except MinioAdminException as e:
            if not is_not_found(e):
                raise


def _load_json(operation: str, raw: Any) -> Any:
    if isinstance(raw, (dict, list)):
        return raw
    try:
        return json.loads(raw or "{}")
    except ValueError as e:
        raise RemoteOperationError(operation, f"unexpected response: {e}") from e
