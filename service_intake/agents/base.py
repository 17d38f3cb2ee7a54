"""
Collaborator interfaces used by the conversation orchestrator.

The orchestrator only talks to these protocols, so live OpenAI-backed
agents, offline keyword/template agents and test fakes are
interchangeable.
"""

from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from service_intake.schemas.conversation_schema import ConversationTurn
from service_intake.schemas.service_schema import IntentResolution, ServiceDefinition


@runtime_checkable
class IntentResolver(Protocol):
    """Maps a first-turn request to a service or to a service listing."""

    async def resolve(self, user_text: str) -> IntentResolution:
        """Raises CollaboratorError or IntentNotResolvedError on failure."""
        ...


@runtime_checkable
class DialogueGenerator(Protocol):
    """Produces the next assistant message."""

    async def generate(
        self,
        system_instruction: str,
        recent_transcript: Sequence[ConversationTurn],
        *,
        next_field: Optional[str] = None,
        next_is_optional: bool = False,
    ) -> str:
        """``next_field`` and ``next_is_optional`` are hints; generators may ignore them."""
        ...


@runtime_checkable
class ValidationService(Protocol):
    """Validates finalized data for a service.

    The returned mapping carries ``validation_passed``, ``errors``,
    ``warnings``, ``field_validations``, ``improvement_suggestions`` and
    ``validation_summary``.
    """

    async def validate(
        self, service_details: ServiceDefinition, data: dict[str, str]
    ) -> dict[str, Any]:
        """Raises ValidationUnavailableError when the validator cannot be reached."""
        ...


@runtime_checkable
class Transcriber(Protocol):
    """Turns recorded audio into text."""

    async def transcribe(self, audio: bytes, mimetype: Optional[str] = None) -> str:
        ...
