"""Workflow ID logging context for tracing a single turn across modules.

Provides a workflow_id-aware logger that attaches the current turn's
workflow ID to every log record, making it easy to follow one request
through routing, extraction, dialogue and validation.

Usage:
    from service_intake.logging_context import get_workflow_logger, set_workflow_id

    set_workflow_id("WF-1a2b3c4d5e")
    logger = get_workflow_logger(__name__)
    logger.info("Processing turn")  # record.workflow_id == "WF-1a2b3c4d5e"
"""

import logging
import uuid
from contextvars import ContextVar

_workflow_id: ContextVar[str] = ContextVar("workflow_id", default="NO_WORKFLOW_ID")


def new_workflow_id() -> str:
    """Generate a fresh workflow ID."""
    return f"WF-{uuid.uuid4().hex[:10]}"


def set_workflow_id(workflow_id: str) -> None:
    """Set the workflow ID for the current async context."""
    _workflow_id.set(workflow_id)


def get_workflow_id() -> str:
    """Retrieve the current workflow ID."""
    return _workflow_id.get()


class WorkflowIdFilter(logging.Filter):
    """Injects workflow_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.workflow_id = _workflow_id.get()  # type: ignore[attr-defined]
        return True


def get_workflow_logger(name: str) -> logging.Logger:
    """Return a logger with the WorkflowIdFilter attached.

    The filter adds ``workflow_id`` to each record so formatters can
    include ``%(workflow_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, WorkflowIdFilter) for f in logger.filters):
        logger.addFilter(WorkflowIdFilter())
    return logger
