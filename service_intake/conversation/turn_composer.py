"""
Dialogue turn composition.

Decides the single next field to ask for and renders the system
instruction handed to the dialogue generator, together with the recent
slice of the transcript. Also detects when the user wants to stop being
asked optional questions.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

from service_intake.config import settings
from service_intake.conversation.completion import CompletionStatus
from service_intake.prompts.prompt_templates import build_service_agent_prompt
from service_intake.schemas.conversation_schema import ConversationTurn, Role
from service_intake.schemas.service_schema import ServiceDefinition
from service_intake.tools.validation import FIELD_LABELS

logger = logging.getLogger(__name__)

TERMINATION_PHRASES = (
    "no", "skip", "proceed", "create", "submit",
    "not provided", "not available", "prefer not", "rather not",
)


@dataclass(frozen=True)
class TurnInstruction:
    """Everything the dialogue generator needs for one assistant turn."""

    system_instruction: str
    next_field: Optional[str]
    next_is_optional: bool = False
    is_correction: bool = False
    recent_transcript: list[ConversationTurn] = field(default_factory=list)

    @property
    def offers_submit(self) -> bool:
        return self.next_field is None


class TurnComposer:
    """Builds the next-turn instruction from completion status and transcript."""

    def __init__(
        self,
        history_window: int = settings.conversation.history_window,
        scan_turns: int = settings.conversation.decline_scan_turns,
        termination_phrases: Sequence[str] = TERMINATION_PHRASES,
    ) -> None:
        self.history_window = history_window
        self.scan_turns = scan_turns
        alternatives = "|".join(
            re.escape(p).replace(r"\ ", r"\s+") for p in termination_phrases
        )
        self._termination = re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)

    def has_termination_signal(self, transcript: Sequence[ConversationTurn]) -> bool:
        """True when one of the last few user turns asks to stop or submit."""
        user_turns = [t for t in transcript if t.role == Role.USER][-self.scan_turns:]
        for turn in user_turns:
            text = turn.content.strip()
            if text.lower() == "no" or self._termination.search(text):
                return True
        return False

    def next_field(
        self,
        service: ServiceDefinition,
        status: CompletionStatus,
        flagged_fields: Sequence[str] = (),
    ) -> tuple[Optional[str], bool]:
        """Return (field, is_optional); field is None when it is time to submit."""
        if flagged_fields:
            name = flagged_fields[0]
            return name, name in service.optional_fields
        if status.missing_required:
            return status.missing_required[0], False
        pending = status.pending_optional
        if pending:
            return pending[0], True
        return None, False

    def compose(
        self,
        service: ServiceDefinition,
        collected: dict[str, str],
        status: CompletionStatus,
        transcript: Sequence[ConversationTurn],
        flagged_fields: Sequence[str] = (),
        validation_errors: Sequence[str] = (),
    ) -> TurnInstruction:
        next_field, is_optional = self.next_field(service, status, flagged_fields)

        correction = None
        if next_field is not None and next_field in flagged_fields:
            label = FIELD_LABELS.get(next_field, next_field)
            correction = next(
                (e for e in validation_errors if e.startswith(f"{label}:")),
                f"{label}: value was rejected",
            )

        instruction = build_service_agent_prompt(
            service,
            collected,
            status.missing_required,
            next_field,
            next_is_optional=is_optional,
            correction=correction,
        )
        logger.debug("Composed turn for %s: next_field=%s", service.service_id, next_field)
        return TurnInstruction(
            system_instruction=instruction,
            next_field=next_field,
            next_is_optional=is_optional,
            is_correction=correction is not None,
            recent_transcript=list(transcript[-self.history_window:]),
        )
