"""Undo/redo history of committed row mutations.

Undoing or redoing an action replays a compensating call against the remote
store. The stacks only change once that call succeeds, so a failed replay
leaves both stacks exactly as they were.
"""

import logging
from typing import List, Optional

from pydantic import BaseModel

from usergrid.core.errors import InvariantViolation, RemoteError
from usergrid.models.row import Action, ActionKind, Row
from usergrid.services.remote_store.base import RemoteStore

logger = logging.getLogger(__name__)

REPLAY_IN_PROGRESS_MESSAGE = "Please wait for the current undo or redo to finish."
UNDO_FAILED_MESSAGE = "Failed to undo action. Please try again."
REDO_FAILED_MESSAGE = "Failed to redo action. Please try again."


class Replay(BaseModel):
    """Effect of a successful undo or redo on the visible rows."""

    action: Action
    inserted: Optional[Row] = None
    removed: Optional[Row] = None


class ActionHistory:
    """Two LIFO stacks of committed actions, replayed through the remote store."""

    def __init__(self, store: RemoteStore):
        self.store = store
        self._undo: List[Action] = []
        self._redo: List[Action] = []
        self.busy = False

    @property
    def undo_stack(self) -> List[Action]:
        return list(self._undo)

    @property
    def redo_stack(self) -> List[Action]:
        return list(self._redo)

    def can_undo(self) -> bool:
        return bool(self._undo)

    def can_redo(self) -> bool:
        return bool(self._redo)

    def record_direct(self, action: Action) -> None:
        """Record a mutation the user performed directly. Clears the redo stack."""
        self._undo.append(action)
        self._redo.clear()
        logger.info(
            f"Recorded {action.kind.value} of row {action.row.id} "
            f"(undo depth {len(self._undo)})"
        )

    async def undo(self) -> Optional[Replay]:
        """Reverse the most recent action. Returns None if there is nothing to undo."""
        if not self._undo:
            return None
        self._claim()
        action = self._undo[-1]
        try:
            if action.kind == ActionKind.ADD:
                await self.store.remove(action.row.id)
                replay = Replay(action=action, removed=action.row)
                redo_entry = Action.add(action.row)
            else:
                restored = await self.store.create(action.row.to_payload())
                replay = Replay(action=action, inserted=restored)
                redo_entry = Action.delete(restored)
        except RemoteError as e:
            logger.error(f"Undo of {action.kind.value} for row {action.row.id} failed: {e}")
            raise RemoteError(UNDO_FAILED_MESSAGE, operation="undo", cause=e) from e
        finally:
            self.busy = False

        self._take(self._undo, action)
        self._redo.append(redo_entry)
        logger.info(f"Undid {action.kind.value} of row {action.row.id}")
        return replay

    async def redo(self) -> Optional[Replay]:
        """Re-apply the most recently undone action. Returns None if there is nothing to redo."""
        if not self._redo:
            return None
        self._claim()
        action = self._redo[-1]
        try:
            if action.kind == ActionKind.ADD:
                restored = await self.store.create(action.row.to_payload())
                replay = Replay(action=action, inserted=restored)
                undo_entry = Action.add(restored)
            else:
                await self.store.remove(action.row.id)
                replay = Replay(action=action, removed=action.row)
                undo_entry = Action.delete(action.row)
        except RemoteError as e:
            logger.error(f"Redo of {action.kind.value} for row {action.row.id} failed: {e}")
            raise RemoteError(REDO_FAILED_MESSAGE, operation="redo", cause=e) from e
        finally:
            self.busy = False

        self._take(self._redo, action)
        self._undo.append(undo_entry)
        logger.info(f"Redid {action.kind.value} of row {action.row.id}")
        return replay

    def _claim(self) -> None:
        if self.busy:
            logger.warning("Rejected overlapping undo/redo")
            raise InvariantViolation(REPLAY_IN_PROGRESS_MESSAGE)
        self.busy = True

    @staticmethod
    def _take(stack: List[Action], action: Action) -> None:
        # A direct mutation recorded while the replay was in flight may sit above it.
        for index in range(len(stack) - 1, -1, -1):
            if stack[index] is action:
                del stack[index]
                return
