"""Shared test fixtures, fakes and helpers."""

from datetime import date
from typing import Any, Optional, Sequence

import pytest

from service_intake.agents.intake_agent import KeywordIntentRouter
from service_intake.agents.service_agent import TemplateDialogueGenerator
from service_intake.agents.validation_agent import LocalValidationAgent
from service_intake.config import DEFAULT_REPOSITORY_PATH
from service_intake.conversation.guardrails import GuardrailPipeline
from service_intake.conversation.orchestrator import ConversationOrchestrator
from service_intake.errors import ValidationUnavailableError
from service_intake.schemas.conversation_schema import ConversationTurn, Role
from service_intake.schemas.service_schema import ServiceDefinition
from service_intake.tools.services import CatalogCache, load_catalog

TODAY = date(2026, 10, 16)


@pytest.fixture
def catalog():
    return load_catalog(DEFAULT_REPOSITORY_PATH)


@pytest.fixture
def catalog_cache():
    return CatalogCache(lambda: load_catalog(DEFAULT_REPOSITORY_PATH))


@pytest.fixture
def passport(catalog):
    return catalog.require("SVC_001")


@pytest.fixture
def driver_license(catalog):
    return catalog.require("SVC_002")


@pytest.fixture
def business_permit(catalog):
    return catalog.require("SVC_003")


@pytest.fixture
def property_registration(catalog):
    return catalog.require("SVC_005")


@pytest.fixture
def guardrail_pipeline():
    return GuardrailPipeline()


@pytest.fixture
def local_validator():
    return LocalValidationAgent(today=lambda: TODAY)


@pytest.fixture
def orchestrator(catalog_cache, local_validator):
    """Offline orchestrator: keyword router, template questions, local rules."""
    return ConversationOrchestrator(
        intent_resolver=KeywordIntentRouter(catalog_cache),
        dialogue_generator=TemplateDialogueGenerator(),
        validator=local_validator,
    )


def make_turn(role: str, content: str) -> ConversationTurn:
    """Helper to create a ConversationTurn from a plain role string."""
    return ConversationTurn(
        role=Role.ASSISTANT if role == "assistant" else Role.USER,
        content=content,
    )


def make_transcript(turns: list[tuple[str, str]]) -> list[ConversationTurn]:
    """Create a transcript from a list of (role, text) tuples."""
    return [make_turn(role, text) for role, text in turns]


def make_service(
    service_id: str = "SVC_900",
    service_name: str = "Test Service",
    required: Sequence[str] = ("full_name",),
    optional: Sequence[str] = ("phone",),
    **kwargs: Any,
) -> ServiceDefinition:
    return ServiceDefinition(
        service_id=service_id,
        service_name=service_name,
        ministry=kwargs.pop("ministry", "Ministry of Testing"),
        required_fields=tuple(required),
        optional_fields=tuple(optional),
        **kwargs,
    )


async def run_conversation(orchestrator, messages: list[str], state=None) -> list:
    """Feed messages one by one, threading the returned state through."""
    responses = []
    for message in messages:
        response = await orchestrator.process_turn(message, state)
        responses.append(response)
        if response.conversation_state is not None:
            state = response.conversation_state
    return responses


class RecordingGenerator:
    """Dialogue generator fake that records every call."""

    def __init__(self, reply: Optional[str] = "Next question?") -> None:
        self.reply = reply
        self.calls: list[dict[str, Any]] = []

    async def generate(
        self,
        system_instruction,
        recent_transcript,
        *,
        next_field=None,
        next_is_optional=False,
    ):
        self.calls.append({
            "system_instruction": system_instruction,
            "recent_transcript": list(recent_transcript),
            "next_field": next_field,
            "next_is_optional": next_is_optional,
        })
        return self.reply


class StaticValidator:
    """Validation fake returning a fixed report."""

    def __init__(self, report: dict[str, Any]) -> None:
        self.report = report
        self.calls: list[dict[str, str]] = []

    async def validate(self, service_details, data):
        self.calls.append(dict(data))
        return self.report


class UnavailableValidator:
    """Validation fake that is never reachable."""

    async def validate(self, service_details, data):
        raise ValidationUnavailableError("connection refused")


class StaticTranscriber:
    def __init__(self, text: str) -> None:
        self.text = text

    async def transcribe(self, audio, mimetype=None):
        return self.text


class RaisingGenerator:
    """Dialogue generator fake that fails with an arbitrary exception."""

    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    async def generate(self, system_instruction, recent_transcript, **kwargs):
        raise self.exc


class RaisingValidator:
    """Validation fake that fails with an arbitrary exception."""

    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    async def validate(self, service_details, data):
        raise self.exc
