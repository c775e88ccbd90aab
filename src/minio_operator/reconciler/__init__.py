"""Reconciliation engine and per-kind adapters."""
