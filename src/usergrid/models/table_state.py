"""Table state model holding everything the presentation layer renders."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from usergrid.models.row import COLUMNS, Action, Draft, DraftState, Row


class TableState(BaseModel):
    """Mutable state owned by the table controller."""

    rows: List[Row] = Field(default_factory=list)  # Newest first
    loaded: bool = False
    is_loading: bool = False
    load_error: Optional[str] = None
    error: Optional[str] = None  # First error of the latest intent
    notice: Optional[str] = None
    pending_delete: Optional[Row] = None

    def find(self, row_id: Any) -> Optional[Row]:
        return next((row for row in self.rows if row.has_id(row_id)), None)

    def prepend(self, row: Row) -> None:
        self.discard(row.id)
        self.rows.insert(0, row)

    def discard(self, row_id: Any) -> None:
        self.rows = [row for row in self.rows if not row.has_id(row_id)]


class TableView(BaseModel):
    """Read-only snapshot of the table for rendering."""

    columns: List[Dict[str, str]] = Field(default_factory=lambda: list(COLUMNS))
    rows: List[Row]
    draft: Optional[Draft] = None
    draft_state: DraftState = DraftState.CLOSED
    is_loading: bool = False
    is_saving: bool = False
    load_error: Optional[str] = None
    can_undo: bool = False
    can_redo: bool = False
    undo_depth: int = 0
    redo_depth: int = 0
    is_replaying: bool = False
    error: Optional[str] = None
    notice: Optional[str] = None
    pending_delete: Optional[Row] = None
    undo_stack: List[Action] = Field(default_factory=list)
    redo_stack: List[Action] = Field(default_factory=list)


class TableEventType(str, Enum):
    """Events emitted by the table controller to its subscribers."""

    DELETE_REQUESTED = "delete_requested"
    ROW_ADDED = "row_added"
    ROW_REMOVED = "row_removed"
    HISTORY_CHANGED = "history_changed"
    ERROR = "error"
    NOTICE = "notice"


class TableEvent(BaseModel):
    """A single controller event."""

    type: TableEventType
    row: Optional[Row] = None
    message: Optional[str] = None
