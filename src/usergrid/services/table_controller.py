"""Controller that keeps the visible rows in step with the remote store."""

import logging
from typing import Any, Callable, Dict, List, Optional, Set

from usergrid.core.config import Settings
from usergrid.core.errors import InvariantViolation, RemoteError, TableError
from usergrid.models.row import Action, ActionKind, Draft, Row, RowCreate, RowId
from usergrid.models.table_state import TableEvent, TableEventType, TableState, TableView
from usergrid.services.action_history import ActionHistory, Replay
from usergrid.services.draft_editor import NO_DRAFT_MESSAGE, DraftEditor
from usergrid.services.remote_store.base import RemoteStore
from usergrid.services.validator import ValidationPolicy, Validator

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Something went wrong while fetching users."
NOT_LOADED_MESSAGE = "Users have not been loaded yet."
DUPLICATE_EMAIL_MESSAGE = "Email already exists. Please use a different email."
ROW_NOT_FOUND_MESSAGE = "User not found."
DELETE_IN_PROGRESS_MESSAGE = "This user is already being deleted."
DELETE_FAILED_MESSAGE = "Failed to delete user. Please try again."
RELOAD_BLOCKED_MESSAGE = "Please wait for pending changes to finish before reloading."

NOTICES = {
    ("undo", ActionKind.ADD): "Add action undone!",
    ("undo", ActionKind.DELETE): "Delete action undone!",
    ("redo", ActionKind.ADD): "Add action redone!",
    ("redo", ActionKind.DELETE): "Delete action redone!",
}

Listener = Callable[[TableEvent], None]


class TableController:
    """Orchestrates the draft editor, the action history and the row collection.

    All state lives in ``self.state`` (plus the editor and history it owns) and
    changes only through the methods below. Every failing intent records its
    message in ``state.error``, emits an error event, and re-raises.
    """

    def __init__(
        self,
        store: RemoteStore,
        validator: Optional[Validator] = None,
        duplicate_email_check: bool = True,
    ):
        self.store = store
        self.validator = validator or Validator()
        self.duplicate_email_check = duplicate_email_check
        self.editor = DraftEditor(self.validator, store)
        self.history = ActionHistory(store)
        self.state = TableState()
        self._listeners: List[Listener] = []
        self._deleting: Set[str] = set()

    @classmethod
    def from_settings(cls, store: RemoteStore, settings: Settings) -> "TableController":
        """Build a controller with the validation policy from settings."""
        return cls(
            store,
            validator=Validator(ValidationPolicy.from_settings(settings)),
            duplicate_email_check=settings.duplicate_email_check,
        )

    # Events

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register an event listener. Returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(
        self, event_type: TableEventType, row: Optional[Row] = None, message: Optional[str] = None
    ) -> None:
        event = TableEvent(type=event_type, row=row, message=message)
        for listener in list(self._listeners):
            listener(event)

    def _begin(self) -> None:
        self.state.error = None
        self.state.notice = None

    def _report(self, error: TableError) -> None:
        self.state.error = error.message
        self._emit(TableEventType.ERROR, message=error.message)

    def _notify(self, message: str) -> None:
        self.state.notice = message
        self._emit(TableEventType.NOTICE, message=message)

    def _require_loaded(self) -> None:
        if not self.state.loaded:
            error = InvariantViolation(self.state.load_error or NOT_LOADED_MESSAGE)
            self._report(error)
            raise error

    # Loading

    async def load(self) -> List[Row]:
        """Replace the row collection with a fresh snapshot from the store.

        Rejected while a save, delete or undo/redo is waiting on the store,
        since its result would be applied on top of the new snapshot.
        """
        self._begin()
        if self.editor.is_saving or self.history.busy or self._deleting:
            error = InvariantViolation(RELOAD_BLOCKED_MESSAGE)
            self._report(error)
            raise error
        self.state.is_loading = True
        self.state.load_error = None
        try:
            rows = await self.store.list()
        except RemoteError as e:
            logger.error(f"Error loading users: {e}")
            self.state.load_error = LOAD_FAILED_MESSAGE
            self.state.loaded = False
            error = RemoteError(LOAD_FAILED_MESSAGE, operation="list", cause=e)
            self._report(error)
            raise error from e
        finally:
            self.state.is_loading = False

        self.state.rows = list(rows)
        self.state.loaded = True
        logger.info(f"Loaded {len(rows)} users")
        return self.state.rows

    # Draft

    def open_draft(self) -> Draft:
        """Open an empty draft row."""
        self._begin()
        self._require_loaded()
        try:
            return self.editor.open()
        except TableError as e:
            self._report(e)
            raise

    def update_draft(self, fields: Dict[str, Any]) -> Draft:
        """Merge field values into the open draft."""
        self._begin()
        try:
            draft = self.editor.draft
            for field, value in fields.items():
                draft = self.editor.update_field(field, value)
        except TableError as e:
            self._report(e)
            raise
        if draft is None:
            error = InvariantViolation(NO_DRAFT_MESSAGE)
            self._report(error)
            raise error
        return draft

    def update_draft_field(self, field: str, value: Any) -> Draft:
        """Set a single field of the open draft."""
        return self.update_draft({field: value})

    def cancel_draft(self) -> None:
        """Discard the open draft, if any."""
        self._begin()
        try:
            self.editor.cancel()
        except TableError as e:
            self._report(e)
            raise

    async def submit_draft(self) -> Row:
        """Validate and persist the draft, then show and record the new row."""
        self._begin()
        try:
            row = await self.editor.submit(guard=self._check_duplicate_email)
        except TableError as e:
            self._report(e)
            raise

        self.state.prepend(row)
        self.history.record_direct(Action.add(row))
        self._emit(TableEventType.ROW_ADDED, row=row)
        self._emit(TableEventType.HISTORY_CHANGED)
        self._notify("User added successfully!")
        return row

    def _check_duplicate_email(self, payload: RowCreate) -> None:
        if not self.duplicate_email_check:
            return
        if any(row.email.lower() == payload.email.lower() for row in self.state.rows):
            logger.warning(f"Rejected duplicate email {payload.email}")
            raise InvariantViolation(DUPLICATE_EMAIL_MESSAGE)

    # Delete

    def _find(self, row_id: RowId) -> Row:
        row = self.state.find(row_id)
        if row is None:
            error = InvariantViolation(ROW_NOT_FOUND_MESSAGE)
            self._report(error)
            raise error
        return row

    def request_delete(self, row_id: RowId) -> Row:
        """Ask the presentation layer to confirm deleting a row."""
        self._begin()
        row = self._find(row_id)
        self.state.pending_delete = row
        self._emit(TableEventType.DELETE_REQUESTED, row=row)
        return row

    def dismiss_delete(self, row_id: Optional[RowId] = None) -> None:
        """Drop a pending delete confirmation without deleting anything."""
        self._begin()
        pending = self.state.pending_delete
        if pending is not None and (row_id is None or pending.has_id(row_id)):
            self.state.pending_delete = None

    async def confirm_delete(self, row_id: RowId) -> Row:
        """Delete a row remotely, then hide and record it."""
        self._begin()
        row = self._find(row_id)
        key = str(row.id)
        if key in self._deleting:
            error = InvariantViolation(DELETE_IN_PROGRESS_MESSAGE)
            self._report(error)
            raise error

        self._deleting.add(key)
        try:
            await self.store.remove(row.id)
        except RemoteError as e:
            logger.error(f"Error deleting user {row.id}: {e}")
            error = RemoteError(DELETE_FAILED_MESSAGE, operation="remove", cause=e)
            self._report(error)
            raise error from e
        finally:
            self._deleting.discard(key)

        self.state.discard(row.id)
        if self.state.pending_delete is not None and self.state.pending_delete.has_id(row.id):
            self.state.pending_delete = None
        self.history.record_direct(Action.delete(row))
        self._emit(TableEventType.ROW_REMOVED, row=row)
        self._emit(TableEventType.HISTORY_CHANGED)
        self._notify("User deleted successfully!")
        return row

    # History

    async def undo(self) -> Optional[Replay]:
        """Reverse the latest action. A no-op when there is nothing to undo."""
        self._begin()
        try:
            replay = await self.history.undo()
        except TableError as e:
            self._report(e)
            raise
        return self._apply(replay, "undo")

    async def redo(self) -> Optional[Replay]:
        """Re-apply the latest undone action. A no-op when there is nothing to redo."""
        self._begin()
        try:
            replay = await self.history.redo()
        except TableError as e:
            self._report(e)
            raise
        return self._apply(replay, "redo")

    def _apply(self, replay: Optional[Replay], direction: str) -> Optional[Replay]:
        if replay is None:
            return None
        if replay.removed is not None:
            self.state.discard(replay.removed.id)
            self._emit(TableEventType.ROW_REMOVED, row=replay.removed)
        if replay.inserted is not None:
            self.state.prepend(replay.inserted)
            self._emit(TableEventType.ROW_ADDED, row=replay.inserted)
        self._emit(TableEventType.HISTORY_CHANGED)
        self._notify(NOTICES[(direction, replay.action.kind)])
        return replay

    # View

    def snapshot(self) -> TableView:
        """Return a copy of everything the presentation layer renders."""
        return TableView(
            rows=list(self.state.rows),
            draft=self.editor.draft,
            draft_state=self.editor.state,
            is_loading=self.state.is_loading,
            is_saving=self.editor.is_saving,
            load_error=self.state.load_error,
            can_undo=self.history.can_undo() and not self.history.busy,
            can_redo=self.history.can_redo() and not self.history.busy,
            undo_depth=len(self.history.undo_stack),
            redo_depth=len(self.history.redo_stack),
            is_replaying=self.history.busy,
            error=self.state.error,
            notice=self.state.notice,
            pending_delete=self.state.pending_delete,
            undo_stack=self.history.undo_stack,
            redo_stack=self.history.redo_stack,
        )
