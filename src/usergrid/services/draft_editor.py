"""Single-slot editor for the one new row that may be pending at a time."""

import logging
from typing import Any, Callable, Optional

from usergrid.core.errors import InvariantViolation, RemoteError
from usergrid.models.row import DRAFT_FIELDS, Draft, DraftState, Row, RowCreate
from usergrid.services.remote_store.base import RemoteStore
from usergrid.services.validator import Validator

logger = logging.getLogger(__name__)

DRAFT_ALREADY_OPEN_MESSAGE = "Please save or cancel the current new row before adding another."
NO_DRAFT_MESSAGE = "There is no new row being edited."
SAVE_IN_PROGRESS_MESSAGE = "Please wait for the current save to finish."
SAVE_FAILED_MESSAGE = "Failed to save user. Please try again."


class DraftEditor:
    """State machine over at most one uncommitted row.

    ``closed -> editing -> saving -> closed`` on success, or back to
    ``editing`` with the entered values intact on any failure.
    """

    def __init__(self, validator: Validator, store: RemoteStore):
        self.validator = validator
        self.store = store
        self.state = DraftState.CLOSED
        self.draft: Optional[Draft] = None

    @property
    def is_saving(self) -> bool:
        return self.state == DraftState.SAVING

    def open(self) -> Draft:
        """Start a new empty draft. Rejected while another draft exists."""
        if self.state != DraftState.CLOSED:
            logger.warning("Rejected opening a second draft")
            raise InvariantViolation(DRAFT_ALREADY_OPEN_MESSAGE)

        self.draft = Draft()
        self.state = DraftState.EDITING
        return self.draft

    def update_field(self, field: str, value: Any) -> Draft:
        """Set one field of the draft. The last write to a field wins."""
        if self.state == DraftState.SAVING:
            raise InvariantViolation(SAVE_IN_PROGRESS_MESSAGE)
        if self.state != DraftState.EDITING:
            raise InvariantViolation(NO_DRAFT_MESSAGE)
        if field not in DRAFT_FIELDS:
            raise InvariantViolation(f"Unknown field: {field}")

        self.draft = self.draft.model_copy(
            update={field: "" if value is None else str(value)}
        )
        return self.draft

    def cancel(self) -> None:
        """Discard the draft. Not allowed while a save is in flight."""
        if self.state == DraftState.SAVING:
            raise InvariantViolation(SAVE_IN_PROGRESS_MESSAGE)

        self.draft = None
        self.state = DraftState.CLOSED

    async def submit(self, guard: Optional[Callable[[RowCreate], None]] = None) -> Row:
        """Validate the draft and persist it.

        ``guard`` runs after field validation and before the remote call; it
        rejects the payload by raising. Returns the row as stored remotely.
        """
        if self.state == DraftState.SAVING:
            raise InvariantViolation(SAVE_IN_PROGRESS_MESSAGE)
        if self.state != DraftState.EDITING:
            raise InvariantViolation(NO_DRAFT_MESSAGE)

        self.state = DraftState.SAVING
        try:
            payload = self.validator.validate(self.draft)
            if guard is not None:
                guard(payload)
            row = await self.store.create(payload)
        except RemoteError as e:
            self.state = DraftState.EDITING
            raise RemoteError(SAVE_FAILED_MESSAGE, operation="create", cause=e) from e
        except Exception:
            self.state = DraftState.EDITING
            raise

        logger.info(f"Saved draft as row {row.id}")
        self.draft = None
        self.state = DraftState.CLOSED
        return row
