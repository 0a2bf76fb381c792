"""Remote store factory."""

import logging
from typing import Optional

from usergrid.core.config import Settings
from usergrid.services.remote_store.base import RemoteStore
from usergrid.services.remote_store.http_store import HttpRemoteStore
from usergrid.services.remote_store.memory_store import InMemoryRemoteStore

logger = logging.getLogger(__name__)


class RemoteStoreFactory:
    """The factory for the remote store services."""

    @staticmethod
    def create_store(settings: Settings) -> Optional[RemoteStore]:
        """Create a remote store."""
        provider = settings.remote_store_provider
        logger.info(f"Creating remote store of type: {provider}")

        if provider == "http":
            logger.info(f"Using HttpRemoteStore at {settings.remote_store_url}")
            return HttpRemoteStore(settings)
        elif provider == "memory":
            logger.info("Using InMemoryRemoteStore")
            return InMemoryRemoteStore()
        else:
            logger.warning(f"No remote store found for type: {provider}")
            return None
