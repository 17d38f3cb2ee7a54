"""Completion policy: which fields are still missing, provided or declined."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from service_intake.config import settings
from service_intake.schemas.service_schema import ServiceDefinition
from service_intake.utils import is_blank, is_decline, normalize_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionStatus:
    """Snapshot of collection progress for one service."""

    missing_required: list[str] = field(default_factory=list)
    provided_optional: list[str] = field(default_factory=list)
    remaining_optional: list[str] = field(default_factory=list)
    declined_optional: list[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.missing_required

    @property
    def pending_optional(self) -> list[str]:
        """Remaining optional fields the user has not declined."""
        return [f for f in self.remaining_optional if f not in self.declined_optional]


class CompletionPolicy:
    """
    Evaluates collected data against a service's field schema.

    A value is present when non-empty after trimming. An optional field
    whose value is a decline phrase counts as declined: it is neither
    provided nor asked about again, but stays in ``remaining_optional``.
    """

    def __init__(self, decline_phrases: Optional[Iterable[str]] = None) -> None:
        self.decline_phrases = tuple(
            normalize_text(p) for p in (decline_phrases or settings.conversation.decline_phrases)
        )

    def is_declined(self, value: Optional[str]) -> bool:
        return is_decline(value, self.decline_phrases)

    def evaluate(self, service: ServiceDefinition, collected: dict[str, str]) -> CompletionStatus:
        missing = [f for f in service.required_fields if is_blank(collected.get(f))]

        provided: list[str] = []
        remaining: list[str] = []
        declined: list[str] = []
        for name in service.optional_fields:
            value = collected.get(name)
            if self.is_declined(value):
                declined.append(name)
                remaining.append(name)
            elif is_blank(value):
                remaining.append(name)
            else:
                provided.append(name)

        status = CompletionStatus(
            missing_required=missing,
            provided_optional=provided,
            remaining_optional=remaining,
            declined_optional=declined,
        )
        logger.debug(
            "Completion for %s: missing=%s remaining_optional=%s declined=%s",
            service.service_id, missing, remaining, declined,
        )
        return status
