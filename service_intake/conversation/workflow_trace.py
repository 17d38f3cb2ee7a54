"""Append-only record of the steps taken while processing one turn."""

import time
from typing import Any, Optional

from service_intake.logging_context import new_workflow_id, set_workflow_id
from service_intake.schemas.conversation_schema import (
    WorkflowEvent,
    WorkflowMetadata,
    utcnow,
)


class WorkflowTrace:
    """Collects frozen WorkflowEvents and renders them as WorkflowMetadata.

    Creating a trace also binds its workflow id to the logging context.
    """

    def __init__(self, workflow_id: Optional[str] = None) -> None:
        self.workflow_id = workflow_id or new_workflow_id()
        self.started_at = utcnow()
        self._start = time.perf_counter()
        self._events: list[WorkflowEvent] = []
        self._error: Optional[str] = None
        set_workflow_id(self.workflow_id)

    @property
    def events(self) -> tuple[WorkflowEvent, ...]:
        return tuple(self._events)

    @property
    def phases(self) -> list[str]:
        return [event.phase for event in self._events]

    def record(self, phase: str, agent: Optional[str] = None, **detail: Any) -> WorkflowEvent:
        event = WorkflowEvent(phase=phase, agent=agent, detail=detail)
        self._events.append(event)
        return event

    def fail(self, error: str) -> None:
        self._error = error
        self.record("error", detail_message=error)

    def finish(self) -> WorkflowMetadata:
        return WorkflowMetadata(
            workflow_id=self.workflow_id,
            started_at=self.started_at,
            completed_at=utcnow(),
            total_duration_ms=round((time.perf_counter() - self._start) * 1000, 3),
            events=list(self._events),
            error=self._error,
        )
