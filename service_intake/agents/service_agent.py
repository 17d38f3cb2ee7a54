"""
Service agents: produce the assistant side of the field-collection dialogue.

The orchestrator decides what to ask; these agents only phrase it. The
OpenAI agent follows the composed system instruction, the template agent
asks a fixed question per field and needs no API key.
"""

import logging
from typing import Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from service_intake.config import settings
from service_intake.errors import CollaboratorError
from service_intake.prompts.system_prompts import (
    FIELD_QUESTIONS,
    OPTIONAL_SUFFIX,
    SUBMIT_QUESTION,
)
from service_intake.schemas.conversation_schema import ConversationTurn, Role

logger = logging.getLogger(__name__)


class OpenAIDialogueGenerator:
    """Generates the next question with an OpenAI chat model. No retries."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: str = settings.model.llm_model,
        temperature: float = settings.model.llm_temperature,
        max_tokens: int = settings.model.llm_max_tokens,
    ) -> None:
        self._client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI()
        return self._client

    async def generate(
        self,
        system_instruction: str,
        recent_transcript: Sequence[ConversationTurn],
        *,
        next_field: Optional[str] = None,
        next_is_optional: bool = False,
    ) -> str:
        messages = [{"role": "system", "content": system_instruction}]
        messages.extend(
            {"role": turn.role.value, "content": turn.content} for turn in recent_transcript
        )
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=messages,
            )
        except OpenAIError as exc:
            raise CollaboratorError(f"Dialogue generation failed: {exc}") from exc

        try:
            content = completion.choices[0].message.content
        except (AttributeError, IndexError) as exc:
            raise CollaboratorError("Dialogue generator returned no choices") from exc

        logger.info("Agent response generated (%d chars)", len(content or ""))
        return (content or "").strip()


class TemplateDialogueGenerator:
    """Deterministic generator asking one fixed question per field."""

    OPENING = "Thank you, I can help you with that. "

    async def generate(
        self,
        system_instruction: str,
        recent_transcript: Sequence[ConversationTurn],
        *,
        next_field: Optional[str] = None,
        next_is_optional: bool = False,
    ) -> str:
        if next_field is None:
            question = SUBMIT_QUESTION
        else:
            question = FIELD_QUESTIONS.get(
                next_field, f"Could you please provide the {next_field.replace('_', ' ')}?"
            )
            if next_is_optional:
                question += OPTIONAL_SUFFIX

        if not any(turn.role == Role.ASSISTANT for turn in recent_transcript):
            return self.OPENING + question
        return question
