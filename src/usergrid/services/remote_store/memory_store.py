"""In-process remote store, used for local runs and tests."""

import logging
from typing import Dict, List, Optional, Set, Tuple

from usergrid.core.errors import RemoteError
from usergrid.models.row import Row, RowCreate, RowId
from usergrid.services.remote_store.base import RemoteStore

logger = logging.getLogger(__name__)


class InMemoryRemoteStore(RemoteStore):
    """Remote store holding rows in a dict.

    Ids are sequential integers starting at 1 and are never reused. Every call
    is appended to ``calls`` as ``(operation, argument)``.
    """

    def __init__(self, rows: Optional[List[RowCreate]] = None):
        self._rows: Dict[int, Row] = {}
        self._next_id = 1
        self._failures: Set[str] = set()
        self.calls: List[Tuple[str, object]] = []
        for payload in rows or []:
            self._insert(payload)

    def fail_next(self, operation: str) -> None:
        """Make the next call of ``operation`` ("list", "create" or "remove") fail."""
        self._failures.add(operation)

    def _check_failure(self, operation: str) -> None:
        if operation in self._failures:
            self._failures.discard(operation)
            raise RemoteError(
                f"Failed to {operation} users: simulated failure", operation=operation
            )

    def _insert(self, payload: RowCreate) -> Row:
        row = Row(id=self._next_id, **payload.model_dump())
        self._rows[row.id] = row
        self._next_id += 1
        return row

    async def list(self) -> List[Row]:
        self.calls.append(("list", None))
        self._check_failure("list")
        return list(self._rows.values())

    async def create(self, payload: RowCreate) -> Row:
        self.calls.append(("create", payload))
        self._check_failure("create")
        row = self._insert(payload)
        logger.info(f"Stored user {row.id} in memory")
        return row

    async def remove(self, row_id: RowId) -> None:
        self.calls.append(("remove", row_id))
        self._check_failure("remove")
        key = next((key for key in self._rows if str(key) == str(row_id)), None)
        if key is None:
            raise RemoteError(f"Failed to delete user: {row_id} not found", operation="remove")
        del self._rows[key]
