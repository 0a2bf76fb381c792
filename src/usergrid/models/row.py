"""Row, draft and action models for the user table."""

from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, field_validator

RowId = Union[int, str]

# Editable columns in display order. Validation reports the first failing
# field in this order.
COLUMNS = [
    {"key": "name", "label": "Name", "type": "text"},
    {"key": "age", "label": "Age", "type": "number"},
    {"key": "email", "label": "Email", "type": "email"},
]
DRAFT_FIELDS = tuple(column["key"] for column in COLUMNS)


class RowCreate(BaseModel):
    """Normalized payload sent to the remote store to create a row."""

    name: str
    age: int
    email: str


class Row(BaseModel):
    """A row persisted in the remote store. The store assigns ``id``."""

    id: RowId
    name: str
    age: int
    email: str

    model_config = ConfigDict(extra="ignore", frozen=True)

    def to_payload(self) -> RowCreate:
        """Return the row's fields without its id, for re-creating it."""
        return RowCreate(name=self.name, age=self.age, email=self.email)

    def has_id(self, row_id: Any) -> bool:
        """Compare ids as text, since path parameters arrive as strings."""
        return str(self.id) == str(row_id)


class Draft(BaseModel):
    """An uncommitted new row holding free-form field values."""

    name: str = ""
    age: str = ""
    email: str = ""

    @field_validator("name", "age", "email", mode="before")
    @classmethod
    def coerce_to_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)


class DraftState(str, Enum):
    """States of the draft editor."""

    CLOSED = "closed"
    EDITING = "editing"
    SAVING = "saving"


class ActionKind(str, Enum):
    """Kinds of committed mutation."""

    ADD = "add"
    DELETE = "delete"


class Action(BaseModel):
    """A committed, already persisted mutation, with the row needed to reverse it."""

    kind: ActionKind
    row: Row

    model_config = ConfigDict(frozen=True)

    @classmethod
    def add(cls, row: Row) -> "Action":
        return cls(kind=ActionKind.ADD, row=row)

    @classmethod
    def delete(cls, row: Row) -> "Action":
        return cls(kind=ActionKind.DELETE, row=row)
