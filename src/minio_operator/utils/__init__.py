"""Utility modules for the MinIO Operator."""
