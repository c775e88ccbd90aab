"""Kopf handlers for the MinIO Operator CRDs."""

from . import bucket, policy, user

__all__ = ["bucket", "policy", "user"]
