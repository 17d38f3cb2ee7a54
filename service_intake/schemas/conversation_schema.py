"""Conversation state, transcript and turn response schemas."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from service_intake.schemas.service_schema import RoutingInfo


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class IntakePhase(str, Enum):
    INFORMATION_GATHERING = "information_gathering"
    OPTIONAL_FIELDS = "optional_fields"
    VALIDATION_FAILED = "validation_failed"
    COMPLETED = "completed"


class ResponseStatus(str, Enum):
    SUCCESS = "success"
    SERVICES_LISTED = "services_listed"
    VALIDATION_FAILED = "validation_failed"
    COMPLETED = "completed"
    ERROR = "error"


class ConversationTurn(BaseModel):
    """A single message in the transcript."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class ConversationState(BaseModel):
    """
    Per-session record round-tripped by the caller.

    The pipeline keeps no server-side sessions: each call receives the
    full state and returns the updated copy.
    """

    routing_info: RoutingInfo
    transcript: list[ConversationTurn] = Field(default_factory=list)
    collected_data: dict[str, str] = Field(default_factory=dict)
    current_phase: IntakePhase = IntakePhase.INFORMATION_GATHERING
    turn_count: int = 0
    flagged_fields: list[str] = Field(default_factory=list)
    validation_errors: list[str] = Field(default_factory=list)
    flagged_since: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow)
    last_updated: Optional[datetime] = None

    @classmethod
    def start(cls, routing_info: RoutingInfo) -> "ConversationState":
        return cls(routing_info=routing_info)

    @property
    def service(self):
        return self.routing_info.service_details

    @property
    def service_id(self) -> str:
        return self.routing_info.service_details.service_id

    @property
    def service_name(self) -> str:
        return self.routing_info.service_details.service_name


class WorkflowEvent(BaseModel):
    """One recorded step of a single turn's workflow."""

    model_config = ConfigDict(frozen=True)

    phase: str
    agent: Optional[str] = None
    at: datetime = Field(default_factory=utcnow)
    detail: dict[str, Any] = Field(default_factory=dict)


class WorkflowMetadata(BaseModel):
    """Append-only trace returned alongside every turn response."""

    workflow_id: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    total_duration_ms: Optional[float] = None
    events: list[WorkflowEvent] = Field(default_factory=list)
    error: Optional[str] = None


class TurnResponse(BaseModel):
    """Externally visible result of one processed turn."""

    status: ResponseStatus
    agent_response: str
    conversation_state: Optional[ConversationState] = None
    ticket_created: bool = False
    ticket_data: Optional[dict[str, str]] = None
    ticket_ref: Optional[str] = None
    service_details: Optional[dict[str, Any]] = None
    services: Optional[list[dict[str, Any]]] = None
    validation_errors: list[str] = Field(default_factory=list)
    transcription: Optional[str] = None
    error: Optional[str] = None
    workflow_metadata: Optional[WorkflowMetadata] = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
