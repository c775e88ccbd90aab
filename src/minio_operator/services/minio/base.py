"""Remote service interfaces consumed by the reconcilers."""

from __future__ import annotations

from typing import Iterable, Protocol


class StorageService(Protocol):
    """Data-plane operations on buckets and objects."""

    def bucket_exists(self, name: str) -> bool:
        """Check if a bucket exists."""
        ...

    def create_bucket(self, name: str) -> None:
        """Create a bucket; an existing bucket we own is not an error."""
        ...

    def remove_bucket(self, name: str) -> None:
        """Remove a bucket; an absent bucket is not an error.

        Raises:
            BucketNotEmptyError: If the bucket still holds objects
        """
        ...

    def list_object_versions(self, name: str) -> list[dict[str, str]]:
        """List every object version and delete marker in a bucket."""
        ...

    def remove_objects(self, name: str, objects: Iterable[dict[str, str]]) -> int:
        """Batch-remove object versions, bypassing governance retention."""
        ...


class AdminService(Protocol):
    """Control-plane operations on quotas, canned policies and users."""

    def get_bucket_quota(self, bucket: str) -> int:
        """Return the hard quota of a bucket in bytes, 0 when unset."""
        ...

    def set_bucket_quota(self, bucket: str, size: int) -> None:
        """Set a hard quota in bytes; 0 clears it."""
        ...

    def add_canned_policy(self, name: str, content: str) -> None:
        """Create or replace a canned policy."""
        ...

    def get_canned_policy(self, name: str) -> str | None:
        """Return the stored policy document, or None if the policy is absent."""
        ...

    def remove_canned_policy(self, name: str) -> None:
        """Remove a canned policy; absence is not an error."""
        ...

    def upsert_user(self, access_key: str, secret_key: str, enabled: bool) -> None:
        """Create or update a user and its account status."""
        ...

    def get_user_policies(self, access_key: str) -> set[str]:
        """Return the names of the policies attached to a user."""
        ...

    def attach_policies(self, access_key: str, policies: list[str]) -> None:
        """Attach policies to a user; an attachment already in effect is not an error."""
        ...

    def detach_policies(self, access_key: str, policies: list[str]) -> None:
        """Detach policies from a user; a detachment already in effect is not an error."""
        ...

    def remove_user(self, access_key: str) -> None:
        """Remove a user; absence is not an error."""
        ...
