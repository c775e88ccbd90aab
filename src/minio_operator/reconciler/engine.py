"""Generic state machine shared by the bucket, policy and user reconcilers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Protocol

from .. import metrics
from ..models import ManagedRecord, RecordRef, ResourceState
from ..store.base import RecordStore
from ..utils.errors import OperatorError, sanitize_exception
from ..utils.events import emit_resource_deleting
from .status import StatusWriter

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    DONE = "done"
    REQUEUE = "requeue"
    ERROR = "error"


@dataclass(frozen=True)
class ReconcileResult:
    """Signal returned to the dispatcher after one reconcile step."""

    outcome: Outcome
    message: str = ""

    @classmethod
    def done(cls) -> "ReconcileResult":
        return cls(Outcome.DONE)

    @classmethod
    def requeue(cls) -> "ReconcileResult":
        return cls(Outcome.REQUEUE)

    @classmethod
    def error(cls, message: str) -> "ReconcileResult":
        return cls(Outcome.ERROR, message)


class ResourceAdapter(Protocol):
    """Per-kind remote choreography driven by the StateMachine."""

    kind: str
    finalizer: str
    # When True, drift found while Ready is fixed immediately instead of
    # going through the Updating state.
    converges_in_place: bool

    def create(self, record: ManagedRecord) -> dict[str, Any] | None:
        """Create the remote object. May return spec fields to write back."""
        ...

    def finish_create(self, record: ManagedRecord) -> None:
        """Run creation work that must follow finalizer registration."""
        ...

    def refresh(self, record: ManagedRecord) -> None:
        """Unconditional writes performed on every Ready pass."""
        ...

    def read_observed(self, record: ManagedRecord) -> Any:
        """Read the remote state relevant to drift detection."""
        ...

    def compute_drift(self, record: ManagedRecord, observed: Any) -> Any:
        """Return a truthy drift description, or a falsy value when converged."""
        ...

    def apply_desired(self, record: ManagedRecord, drift: Any) -> dict[str, Any] | None:
        """Push the desired state remotely. May return spec fields to write back."""
        ...

    def remove(self, record: ManagedRecord) -> None:
        """Remove the remote object; absence counts as success."""
        ...


class StateMachine:
    """Runs one reconcile step for a resource record.

    Remote mutations always happen before the status write that records
    their success, so a crash between the two leaves the state one step
    behind and the next pass repeats an idempotent call.
    """

    def __init__(self, adapter: ResourceAdapter, store: RecordStore, writer: StatusWriter) -> None:
        self.adapter = adapter
        self.store = store
        self.writer = writer
        self._steps: dict[ResourceState, Callable[[ManagedRecord], ReconcileResult]] = {
            ResourceState.UNSET: self._start,
            ResourceState.CREATING: self._create,
            ResourceState.READY: self._check,
            ResourceState.UPDATING: self._update,
            ResourceState.ERROR: self._resume,
            ResourceState.DEGRADED: self._idle,
        }

    @property
    def kind(self) -> str:
        return self.adapter.kind

    def reconcile(self, ref: RecordRef) -> ReconcileResult:
        """Read the record and run the step for its current state.

        Operator errors are recorded as the Error state with the failure's
        message and reported back as an error result.
        """
        record = self.store.get(ref)
        if record is None:
            logger.debug(f"{self.kind} {ref} not found, nothing to do")
            return ReconcileResult.done()

        try:
            if record.deletion_requested:
                return self._delete(record)
            return self._steps[record.state](record)
        except OperatorError as e:
            message = str(e)
            logger.warning(
                f"{self.kind} {ref} failed in state {record.state.value or 'Unset'}: {sanitize_exception(e)}"
            )
            metrics.error_total.labels(kind=self.kind, error_type=type(e).__name__).inc()
            self.writer.transition(record, ResourceState.ERROR, message)
            return ReconcileResult.error(message)

    def _start(self, record: ManagedRecord) -> ReconcileResult:
        self.writer.transition(record, ResourceState.CREATING)
        return ReconcileResult.requeue()

    def _create(self, record: ManagedRecord) -> ReconcileResult:
        changes = self.adapter.create(record)
        if changes:
            self.writer.update_spec(record, changes)
        self.writer.add_finalizer(record, self.adapter.finalizer)
        self.adapter.finish_create(record)
        self.writer.transition(record, ResourceState.READY)
        return ReconcileResult.requeue()

    def _check(self, record: ManagedRecord) -> ReconcileResult:
        self.adapter.refresh(record)
        observed = self.adapter.read_observed(record)
        drift = self.adapter.compute_drift(record, observed)
        if not drift:
            self._settle(record)
            return ReconcileResult.done()

        metrics.drift_detected_total.labels(kind=self.kind).inc()
        logger.info(f"{self.kind} {record.ref} drifted from its spec")
        if self.adapter.converges_in_place:
            changes = self.adapter.apply_desired(record, drift)
            if changes:
                self.writer.update_spec(record, changes)
            self._settle(record)
            return ReconcileResult.done()

        self.writer.transition(record, ResourceState.UPDATING)
        return ReconcileResult.requeue()

    def _update(self, record: ManagedRecord) -> ReconcileResult:
        changes = self.adapter.apply_desired(record, None)
        if changes:
            self.writer.update_spec(record, changes)
        self.writer.transition(record, ResourceState.READY)
        return ReconcileResult.done()

    def _resume(self, record: ManagedRecord) -> ReconcileResult:
        # A registered finalizer means creation completed, so the failure
        # happened while checking or applying drift.
        if record.has_finalizer(self.adapter.finalizer):
            return self._check(record)
        return self._create(record)

    def _idle(self, record: ManagedRecord) -> ReconcileResult:
        return ReconcileResult.done()

    def _settle(self, record: ManagedRecord) -> None:
        if record.state != ResourceState.READY:
            self.writer.transition(record, ResourceState.READY)

    def _delete(self, record: ManagedRecord) -> ReconcileResult:
        if not record.has_finalizer(self.adapter.finalizer):
            return ReconcileResult.done()
        self.adapter.remove(record)
        emit_resource_deleting(record)
        self.writer.transition(record, ResourceState.DEGRADED)
        self.writer.remove_finalizer(record, self.adapter.finalizer)
        logger.info(f"{self.kind} {record.ref} cleaned up, finalizer released")
        return ReconcileResult.done()
