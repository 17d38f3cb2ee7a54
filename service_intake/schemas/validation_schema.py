"""Validation results and ticket records."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class FieldValidation(BaseModel):
    """Outcome of a single field rule."""

    valid: bool
    message: str
    suggestion: Optional[str] = None
    details: dict[str, Any] = Field(default_factory=dict)


class ValidationResult(BaseModel):
    """Aggregate outcome of the triggered field rules."""

    overall_valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    field_validations: dict[str, FieldValidation] = Field(default_factory=dict)

    @property
    def invalid_fields(self) -> list[str]:
        return [name for name, result in self.field_validations.items() if not result.valid]


class TicketRecord(BaseModel):
    """Finalized, decline-filtered ticket. Returned to the caller, never stored."""

    model_config = ConfigDict(frozen=True)

    ticket_ref: str
    service_id: str
    service_name: str
    ministry: str
    ticket_data: dict[str, str]
    validated: bool
    created_at: datetime
