"""Validation of draft rows before they are sent to the remote store."""

import logging
import math
from typing import Any, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from usergrid.core.config import Settings
from usergrid.core.errors import ValidationError
from usergrid.models.row import Draft, RowCreate

logger = logging.getLogger(__name__)


class ValidationPolicy(BaseModel):
    """Field bounds applied to a draft."""

    name_min_length: int = 3
    name_max_length: Optional[int] = 50
    age_min: int = 18
    age_max: int = 100

    @classmethod
    def from_settings(cls, settings: Settings) -> "ValidationPolicy":
        return cls(
            name_min_length=settings.name_min_length,
            name_max_length=settings.name_max_length,
            age_min=settings.age_min,
            age_max=settings.age_max,
        )


def _policy(info: ValidationInfo) -> ValidationPolicy:
    context = info.context or {}
    return context.get("policy") or ValidationPolicy()


class DraftSchema(BaseModel):
    """Schema a draft must satisfy. Fields are checked in declaration order."""

    name: str
    age: int
    email: str

    @field_validator("name", mode="before")
    @classmethod
    def check_name(cls, value: Any, info: ValidationInfo) -> str:
        policy = _policy(info)
        name = str(value or "").strip()
        if len(name) < policy.name_min_length:
            raise PydanticCustomError(
                "name_too_short",
                "Please enter a valid name (at least {min_length} characters)",
                {"min_length": policy.name_min_length},
            )
        if policy.name_max_length is not None and len(name) > policy.name_max_length:
            raise PydanticCustomError(
                "name_too_long",
                "Name must be at most {max_length} characters",
                {"max_length": policy.name_max_length},
            )
        return name

    @field_validator("age", mode="before")
    @classmethod
    def check_age(cls, value: Any, info: ValidationInfo) -> int:
        policy = _policy(info)
        text = str(value if value is not None else "").strip()
        try:
            age = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                raise PydanticCustomError("age_invalid", "Please enter a valid age")
            if not math.isfinite(number):
                raise PydanticCustomError("age_invalid", "Please enter a valid age")
            if not number.is_integer():
                raise PydanticCustomError("age_not_integer", "Age must be a whole number")
            age = int(number)

        if age < policy.age_min:
            raise PydanticCustomError(
                "age_too_low", "Age must be at least {age_min}", {"age_min": policy.age_min}
            )
        if age > policy.age_max:
            raise PydanticCustomError(
                "age_too_high", "Age must be at most {age_max}", {"age_max": policy.age_max}
            )
        return age

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, value: Any) -> str:
        email = str(value or "").strip()
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            raise PydanticCustomError("email_invalid", "Please enter a valid email address")
        return email


class ValidationResult(BaseModel):
    """Outcome of validating a draft."""

    valid: bool
    payload: Optional[RowCreate] = None
    field: Optional[str] = None
    message: Optional[str] = None


class Validator:
    """Checks drafts against a validation policy. Has no side effects."""

    def __init__(self, policy: Optional[ValidationPolicy] = None):
        self.policy = policy or ValidationPolicy()

    def check(self, draft: Draft) -> ValidationResult:
        """Validate a draft, returning the normalized payload or the first error."""
        try:
            schema = DraftSchema.model_validate(
                draft.model_dump(), context={"policy": self.policy}
            )
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = str(first["loc"][0]) if first["loc"] else None
            return ValidationResult(valid=False, field=field, message=first["msg"])

        return ValidationResult(
            valid=True,
            payload=RowCreate(name=schema.name, age=schema.age, email=schema.email),
        )

    def validate(self, draft: Draft) -> RowCreate:
        """Validate a draft, raising ``ValidationError`` with the first message."""
        result = self.check(draft)
        if not result.valid:
            logger.info(f"Draft rejected on field {result.field}: {result.message}")
            raise ValidationError(result.message, field=result.field)
        return result.payload
