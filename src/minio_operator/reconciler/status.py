"""Status, finalizer and spec writes with optimistic-concurrency retry."""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable

from .. import metrics
from ..models import ManagedRecord, ResourceState
from ..store.base import RecordStore
from ..utils.errors import RecordConflictError, StaleRecordError

logger = logging.getLogger(__name__)

Mutation = Callable[[ManagedRecord], bool]


class StatusWriter:
    """Applies mutations to resource records owned by the reconcilers.

    Every write is a read-modify-write: when the store reports a stale
    resource version, the record is re-read, the same mutation is applied
    to the fresh copy and the write is retried. The caller's record object
    is updated in place with what the store accepted.
    """

    def __init__(self, store: RecordStore, kind: str, retries: int = 5) -> None:
        self.store = store
        self.kind = kind
        self.retries = retries

    def transition(self, record: ManagedRecord, state: ResourceState, message: str | None = None) -> None:
        """Move a record to a new state.

        ERROR stores the given message. Leaving ERROR, or entering READY or
        DEGRADED, clears it. CREATING and UPDATING otherwise keep the current
        message unless one is given.
        """

        def mutate(target: ManagedRecord) -> bool:
            if state == ResourceState.ERROR:
                new_message = message or ""
            elif state in (ResourceState.READY, ResourceState.DEGRADED) or target.state == ResourceState.ERROR:
                new_message = ""
            else:
                new_message = target.message if message is None else message
            if target.state == state and target.message == new_message:
                return False
            target.state = state
            target.message = new_message
            return True

        previous = record.state
        if self._apply(record, mutate, self.store.update_status) and previous != state:
            metrics.state_transitions_total.labels(kind=self.kind, state=state.value or "Unset").inc()
            logger.info(f"{self.kind} {record.ref} moved from {previous.value or 'Unset'} to {state.value}")

    def add_finalizer(self, record: ManagedRecord, token: str) -> None:
        def mutate(target: ManagedRecord) -> bool:
            if token in target.finalizers:
                return False
            target.finalizers.append(token)
            return True

        self._apply(record, mutate, self.store.update)

    def remove_finalizer(self, record: ManagedRecord, token: str) -> None:
        def mutate(target: ManagedRecord) -> bool:
            if token not in target.finalizers:
                return False
            target.finalizers = [f for f in target.finalizers if f != token]
            return True

        self._apply(record, mutate, self.store.update)

    def update_spec(self, record: ManagedRecord, changes: dict[str, Any]) -> None:
        """Overwrite spec fields with the given values."""

        def mutate(target: ManagedRecord) -> bool:
            if all(target.spec.get(k) == v for k, v in changes.items()):
                return False
            target.spec.update(copy.deepcopy(changes))
            return True

        self._apply(record, mutate, self.store.update)

    def _apply(
        self,
        record: ManagedRecord,
        mutate: Mutation,
        write: Callable[[ManagedRecord], ManagedRecord],
    ) -> bool:
        """Apply a mutation and persist it, retrying on stale writes.

        Returns:
            True if a write was committed, False if nothing needed changing
            or the record no longer exists

        Raises:
            RecordConflictError: If every retry hit a conflict
        """
        target = copy.deepcopy(record)
        for attempt in range(self.retries + 1):
            if not mutate(target):
                record.assign(target)
                return False
            try:
                stored = write(target)
            except StaleRecordError as e:
                metrics.record_conflicts_total.labels(kind=self.kind).inc()
                logger.info(f"Conflict writing {self.kind} {record.ref} (attempt {attempt + 1}): {e}")
                fresh = self.store.get(record.ref)
                if fresh is None:
                    logger.info(f"{self.kind} {record.ref} no longer exists")
                    return False
                target = fresh
                continue
            record.assign(stored)
            return True
        raise RecordConflictError(
            f"{self.kind} {record.ref} kept changing; gave up after {self.retries + 1} attempts"
        )
