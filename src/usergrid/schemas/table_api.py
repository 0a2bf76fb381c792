"""API schemas for table operations."""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from usergrid.models.row import Action, Draft, DraftState, Row


class DraftUpdate(BaseModel):
    """Schema for updating fields of the open draft."""

    name: Optional[Union[str, int]] = None
    age: Optional[Union[str, int]] = None
    email: Optional[Union[str, int]] = None

    def fields(self) -> Dict[str, Any]:
        """Return only the fields that were sent."""
        return self.model_dump(exclude_unset=True)


class TableViewResponse(BaseModel):
    """Schema for the table view response."""

    columns: List[Dict[str, str]]
    rows: List[Row]
    draft: Optional[Draft] = None
    draft_state: DraftState
    is_loading: bool
    is_saving: bool
    load_error: Optional[str] = None
    can_undo: bool
    can_redo: bool
    undo_depth: int
    redo_depth: int
    is_replaying: bool
    error: Optional[str] = None
    notice: Optional[str] = None
    pending_delete: Optional[Row] = None
    undo_stack: List[Action]
    redo_stack: List[Action]
