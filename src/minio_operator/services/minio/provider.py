"""Shared, lazily constructed remote clients."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from ...config import RemoteSettings
from ...utils.errors import ConfigurationError
from .base import AdminService, StorageService
from .client import AdminClient, StorageClient

logger = logging.getLogger(__name__)


class RemoteClientProvider:
    """Builds the storage and admin clients on first use and shares them.

    Both clients are constructed at most once. If the connection settings
    are missing, the ConfigurationError is raised to every caller and nothing
    is memoized, so a corrected configuration is picked up on the next call.
    """

    def __init__(
        self,
        settings_loader: Callable[[], RemoteSettings] = RemoteSettings.from_env,
        storage_factory: Callable[[RemoteSettings], StorageService] = StorageClient,
        admin_factory: Callable[[RemoteSettings], AdminService] = AdminClient,
    ) -> None:
        self._settings_loader = settings_loader
        self._storage_factory = storage_factory
        self._admin_factory = admin_factory
        self._lock = threading.Lock()
        self._storage: StorageService | None = None
        self._admin: AdminService | None = None

    def _ensure(self) -> None:
        if self._storage is not None and self._admin is not None:
            return
        with self._lock:
            if self._storage is not None and self._admin is not None:
                return
            settings = self._settings_loader()
            storage = self._storage_factory(settings)
            admin = self._admin_factory(settings)
            self._storage, self._admin = storage, admin
            logger.info(f"Initialized MinIO clients for endpoint {settings.endpoint}")

    def storage(self) -> StorageService:
        """Return the shared data-plane client.

        Raises:
            ConfigurationError: If the connection settings are missing or invalid
        """
        self._ensure()
        assert self._storage is not None
        return self._storage

    def admin(self) -> AdminService:
        """Return the shared control-plane client.

        Raises:
            ConfigurationError: If the connection settings are missing or invalid
        """
        self._ensure()
        assert self._admin is not None
        return self._admin

    def is_configured(self) -> bool:
        """Check whether the clients are built or could be built from the current settings."""
        if self._storage is not None and self._admin is not None:
            return True
        try:
            self._settings_loader()
        except ConfigurationError:
            return False
        return True
