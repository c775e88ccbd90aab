"""Canned policy reconciliation."""

from __future__ import annotations

import logging
from typing import Any

from ..config import OperatorSettings
from ..constants import KIND_POLICY, POLICY_FINALIZER
from ..models import ManagedRecord, PolicySpec
from ..services.minio.provider import RemoteClientProvider
from ..utils.errors import RemoteOperationError
from .drift import compact_json, policies_equivalent

logger = logging.getLogger(__name__)


class PolicyAdapter:
    kind = KIND_POLICY
    finalizer = POLICY_FINALIZER
    converges_in_place = False

    def __init__(self, provider: RemoteClientProvider, settings: OperatorSettings) -> None:
        self.provider = provider
        self.settings = settings

    def _submit(self, record: ManagedRecord) -> dict[str, Any]:
        """Write the policy and return the server's form of it as a spec.content update.

        Raises:
            RemoteOperationError: If the policy cannot be read back after writing
        """
        spec = PolicySpec.from_dict(record.spec)
        admin = self.provider.admin()
        admin.add_canned_policy(spec.name, spec.content)
        stored = admin.get_canned_policy(spec.name)
        if stored is None:
            raise RemoteOperationError("get_canned_policy", f"policy {spec.name} not found after writing it")
        return {"content": compact_json(stored)}

    def create(self, record: ManagedRecord) -> dict[str, Any] | None:
        return self._submit(record)

    def finish_create(self, record: ManagedRecord) -> None:
        return None

    def refresh(self, record: ManagedRecord) -> None:
        return None

    def read_observed(self, record: ManagedRecord) -> str | None:
        spec = PolicySpec.from_dict(record.spec)
        return self.provider.admin().get_canned_policy(spec.name)

    def compute_drift(self, record: ManagedRecord, observed: str | None) -> bool:
        spec = PolicySpec.from_dict(record.spec)
        return not policies_equivalent(spec.content, observed)

    def apply_desired(self, record: ManagedRecord, drift: Any) -> dict[str, Any] | None:
        return self._submit(record)

    def remove(self, record: ManagedRecord) -> None:
        self.provider.admin().remove_canned_policy(PolicySpec.name_from(record.spec))
