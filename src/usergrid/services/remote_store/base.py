"""Abstract base class for remote row stores."""

from abc import ABC, abstractmethod
from typing import List

from usergrid.models.row import Row, RowCreate, RowId


class RemoteStore(ABC):
    """Abstract base class for remote row stores.

    Every operation raises ``RemoteError`` on failure and performs no retries.
    No operation is assumed to be idempotent.
    """

    @abstractmethod
    async def list(self) -> List[Row]:
        """Return a snapshot of every row in the store."""
        pass

    @abstractmethod
    async def create(self, payload: RowCreate) -> Row:
        """Persist a new row. The store assigns its id."""
        pass

    @abstractmethod
    async def remove(self, row_id: RowId) -> None:
        """Delete the row with the given id."""
        pass

    async def aclose(self) -> None:
        """Release any held connections."""
        return None
