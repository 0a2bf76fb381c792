"""Remote store backed by a REST collection of users."""

import logging
from typing import List, Optional

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from usergrid.core.config import Settings
from usergrid.core.errors import RemoteError
from usergrid.models.row import Row, RowCreate, RowId
from usergrid.services.remote_store.base import RemoteStore

logger = logging.getLogger(__name__)

_ROW_LIST = TypeAdapter(List[Row])


class HttpRemoteStore(RemoteStore):
    """Remote store that talks to ``{remote_store_url}{remote_store_users_path}``."""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.users_path = settings.remote_store_users_path.rstrip("/")
        self.client = client or httpx.AsyncClient(
            base_url=settings.remote_store_url,
            timeout=settings.remote_store_timeout,
        )

    async def list(self) -> List[Row]:
        """Fetch every user."""
        try:
            response = await self.client.get(self.users_path)
            response.raise_for_status()
            rows = _ROW_LIST.validate_python(response.json())
        except (httpx.HTTPError, ValueError, PydanticValidationError) as e:
            logger.error(f"Error fetching users: {e}")
            raise RemoteError(f"Failed to fetch users: {e}", operation="list", cause=e) from e

        logger.info(f"Fetched {len(rows)} users from {self.users_path}")
        return rows

    async def create(self, payload: RowCreate) -> Row:
        """Create a user and return it with the id assigned by the server."""
        try:
            response = await self.client.post(self.users_path, json=payload.model_dump())
            response.raise_for_status()
            row = Row.model_validate(response.json())
        except (httpx.HTTPError, ValueError, PydanticValidationError) as e:
            logger.error(f"Error adding user {payload.email}: {e}")
            raise RemoteError(f"Failed to add user: {e}", operation="create", cause=e) from e

        logger.info(f"Created user {row.id}")
        return row

    async def remove(self, row_id: RowId) -> None:
        """Delete a user by id."""
        try:
            response = await self.client.delete(f"{self.users_path}/{row_id}")
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Error deleting user {row_id}: {e}")
            raise RemoteError(f"Failed to delete user: {e}", operation="remove", cause=e) from e

        logger.info(f"Deleted user {row_id}")

    async def aclose(self) -> None:
        await self.client.aclose()
