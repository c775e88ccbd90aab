"""Kubernetes operator reconciling MinIO buckets, canned policies and users."""

__version__ = "0.1.0"
