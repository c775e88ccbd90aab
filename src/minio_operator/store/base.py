"""Record store interface."""

from __future__ import annotations

from typing import Protocol

from ..models import ManagedRecord, RecordRef


class RecordStore(Protocol):
    """Read/write access to the resource records of one kind.

    Writes are optimistic: they carry the record's resource version and
    raise StaleRecordError when the stored record has moved on.
    """

    def get(self, ref: RecordRef) -> ManagedRecord | None:
        """Read a record, or None if it no longer exists."""
        ...

    def update(self, record: ManagedRecord) -> ManagedRecord:
        """Write a record's spec and metadata (finalizers)."""
        ...

    def update_status(self, record: ManagedRecord) -> ManagedRecord:
        """Write a record's status."""
        ...
