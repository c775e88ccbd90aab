"""User reconciliation: credentials, account status and policy attachments."""

from __future__ import annotations

import logging
from typing import Any

from ..config import OperatorSettings
from ..constants import KIND_USER, USER_FINALIZER
from ..models import ManagedRecord, UserSpec
from ..services.minio.provider import RemoteClientProvider
from .drift import PolicyDiff, diff_policies

logger = logging.getLogger(__name__)


class UserAdapter:
    """Keeps a user converged on every Ready pass.

    Credentials are re-submitted each time because a changed secret cannot
    be detected remotely; attachments converge without leaving Ready.
    """

    kind = KIND_USER
    finalizer = USER_FINALIZER
    converges_in_place = True

    def __init__(self, provider: RemoteClientProvider, settings: OperatorSettings) -> None:
        self.provider = provider
        self.settings = settings

    def _upsert(self, spec: UserSpec) -> None:
        self.provider.admin().upsert_user(spec.access_key, spec.secret_key, spec.enabled)

    def create(self, record: ManagedRecord) -> dict[str, Any] | None:
        self._upsert(UserSpec.from_dict(record.spec))
        return None

    def finish_create(self, record: ManagedRecord) -> None:
        spec = UserSpec.from_dict(record.spec)
        if spec.enabled and spec.policies:
            self.provider.admin().attach_policies(spec.access_key, list(spec.policies))

    def refresh(self, record: ManagedRecord) -> None:
        self._upsert(UserSpec.from_dict(record.spec))

    def read_observed(self, record: ManagedRecord) -> set[str]:
        spec = UserSpec.from_dict(record.spec)
        return self.provider.admin().get_user_policies(spec.access_key)

    def compute_drift(self, record: ManagedRecord, observed: set[str]) -> PolicyDiff | None:
        spec = UserSpec.from_dict(record.spec)
        if not spec.enabled:
            return None
        return diff_policies(spec.policies, observed)

    def apply_desired(self, record: ManagedRecord, drift: PolicyDiff | None) -> dict[str, Any] | None:
        spec = UserSpec.from_dict(record.spec)
        if not spec.enabled:
            return None
        if drift is None:
            drift = diff_policies(spec.policies, self.read_observed(record))
        admin = self.provider.admin()
        if drift.to_detach:
            admin.detach_policies(spec.access_key, list(drift.to_detach))
        if drift.to_attach:
            admin.attach_policies(spec.access_key, list(drift.to_attach))
        logger.info(
            f"User {spec.access_key}: attached {list(drift.to_attach)}, detached {list(drift.to_detach)}"
        )
        return None

    def remove(self, record: ManagedRecord) -> None:
        self.provider.admin().remove_user(UserSpec.access_key_from(record.spec))
