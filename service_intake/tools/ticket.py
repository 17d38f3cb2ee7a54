"""
Ticket assembly for completed intake conversations.

Tickets are returned to the caller and never stored; persistence belongs
to whatever system receives the ticket downstream.
"""

import logging
import uuid
from typing import Iterable, Optional

from service_intake.config import settings
from service_intake.schemas.conversation_schema import utcnow
from service_intake.schemas.service_schema import ServiceDefinition
from service_intake.schemas.validation_schema import TicketRecord
from service_intake.utils import is_blank, is_decline

logger = logging.getLogger(__name__)


def clean_declined(
    data: dict[str, str], phrases: Optional[Iterable[str]] = None
) -> dict[str, str]:
    """Drop blank values and values the user declined to provide."""
    phrases = tuple(phrases or settings.conversation.decline_phrases)
    return {
        name: value.strip()
        for name, value in data.items()
        if not is_blank(value) and not is_decline(value, phrases)
    }


def create_ticket(
    service: ServiceDefinition, data: dict[str, str], validated: bool = True
) -> TicketRecord:
    """Build the finalized ticket for a service from decline-cleaned data."""
    ref = f"TKT-{uuid.uuid4().hex[:8].upper()}"
    ticket = TicketRecord(
        ticket_ref=ref,
        service_id=service.service_id,
        service_name=service.service_name,
        ministry=service.ministry,
        ticket_data=clean_declined(data),
        validated=validated,
        created_at=utcnow(),
    )
    logger.info(
        "Ticket created: %s for %s (%d fields, validated=%s)",
        ref, service.service_id, len(ticket.ticket_data), validated,
    )
    return ticket


def ticket_message(service: ServiceDefinition, ticket: TicketRecord) -> str:
    """User-facing confirmation for a created ticket."""
    lines = [
        "Ticket Created Successfully!",
        "",
        f"Reference: {ticket.ticket_ref}",
        f"Service: {service.service_name}",
        f"Service ID: {service.service_id}",
        f"Ministry: {service.ministry}",
        f"Processing Time: {service.processing_time or 'TBD'}",
        f"Fee: {service.fee or 'TBD'}",
        "",
        "Your service request has been submitted and will be processed accordingly. "
        f"Thank you for using the {settings.portal.name}!",
    ]
    if not ticket.validated:
        lines.insert(
            -2, "Note: your details could not be verified automatically and will be "
            "reviewed by ministry staff."
        )
    return "\n".join(lines)


def validation_failure_message(errors: list[str], follow_up: Optional[str] = None) -> str:
    """Corrective prompt itemising each validation error.

    ``follow_up`` is appended as the question for the first field to fix.
    """
    itemised = "\n".join(f"• {error}" for error in errors)
    message = (
        "I found some issues with the information provided:\n\n"
        f"{itemised}\n\n"
        "Please provide the correct information."
    )
    if follow_up:
        message += f" {follow_up}"
    return message
