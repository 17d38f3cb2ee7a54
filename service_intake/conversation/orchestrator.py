"""
Conversation orchestrator: drives one intake conversation turn by turn.

The orchestrator is stateless between calls. Each call receives the full
ConversationState (or none on the first turn) and returns an updated copy
inside a TurnResponse; the caller is responsible for keeping it.

Turn flow:
    first turn      -> intent resolution -> listing, or a new state
    every turn      -> extract over the transcript -> completion policy
    incomplete      -> compose -> dialogue generator -> assistant turn
    ready to submit -> validation -> corrective prompt, or ticket

Usage:
    orchestrator = create_orchestrator()
    response = await orchestrator.process_turn("I need to renew my passport")
    response = await orchestrator.process_turn("Jane Doe", response.conversation_state)
"""

from typing import Any, Optional, Union

from pydantic import ValidationError

from service_intake.agents.base import (
    DialogueGenerator,
    IntentResolver,
    Transcriber,
    ValidationService,
)
from service_intake.agents.registry import create_agent
from service_intake.config import settings
from service_intake.conversation.completion import CompletionPolicy, CompletionStatus
from service_intake.conversation.field_extractor import FieldExtractor
from service_intake.conversation.guardrails import GuardrailPipeline
from service_intake.conversation.state_machine import (
    IntakeStateMachine,
    IntakeTrigger,
    InvalidTransitionError,
)
from service_intake.conversation.turn_composer import TurnComposer
from service_intake.conversation.workflow_trace import WorkflowTrace
from service_intake.errors import (
    CollaboratorError,
    InputValidationError,
    IntakeError,
    ValidationUnavailableError,
)
from service_intake.logging_context import get_workflow_logger
from service_intake.prompts.system_prompts import (
    CORRECTION_QUESTIONS,
    FIELD_QUESTIONS,
    GENERIC_ERROR_RESPONSE,
    LIST_SERVICES_RESPONSE,
    REVIEW_QUESTION,
)
from service_intake.schemas.conversation_schema import (
    ConversationState,
    ConversationTurn,
    IntakePhase,
    ResponseStatus,
    Role,
    TurnResponse,
    utcnow,
)
from service_intake.schemas.service_schema import IntentResolution, RoutingInfo
from service_intake.tools.services import CatalogCache, build_catalog_cache
from service_intake.tools.speech import SpeechTranscriber
from service_intake.tools.ticket import (
    clean_declined,
    create_ticket,
    ticket_message,
    validation_failure_message,
)
from service_intake.tools.validation import FIELD_LABELS

logger = get_workflow_logger(__name__)

# Remote validators report some fields under their own keys.
FIELD_ALIASES = {"age": "date_of_birth"}

COMPLETED_MESSAGE = (
    "This request has already been submitted. "
    "Please start a new conversation for another service."
)


class ConversationOrchestrator:
    """
    Root of the intake pipeline.

    Collaborators are injected; only intent resolution, dialogue
    generation, validation and transcription suspend. Any exception raised
    while handling a turn becomes a ``status="error"`` response and no
    partial state is returned with it.
    """

    def __init__(
        self,
        intent_resolver: IntentResolver,
        dialogue_generator: DialogueGenerator,
        validator: ValidationService,
        extractor: Optional[FieldExtractor] = None,
        policy: Optional[CompletionPolicy] = None,
        composer: Optional[TurnComposer] = None,
        guardrails: Optional[GuardrailPipeline] = None,
        transcriber: Optional[Transcriber] = None,
    ) -> None:
        self.intent_resolver = intent_resolver
        self.dialogue_generator = dialogue_generator
        self.validator = validator
        self.extractor = extractor or FieldExtractor()
        self.policy = policy or CompletionPolicy()
        self.composer = composer or TurnComposer()
        self.guardrails = guardrails or GuardrailPipeline()
        self.transcriber = transcriber

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def process_turn(
        self,
        user_input: Any,
        conversation_state: Union[ConversationState, dict, None] = None,
    ) -> TurnResponse:
        """Process one user message and return the response for the caller."""
        trace = WorkflowTrace()
        try:
            violations = self.guardrails.check_user_input(user_input)
            if violations:
                raise InputValidationError(
                    violations[0].message, user_message=violations[0].message
                )
            state = self._coerce_state(conversation_state)
            text = user_input.strip()
            logger.info("Processing turn: %r", text[:30])

            if state is None:
                response = await self._first_turn(text, trace)
            else:
                response = await self._continue(text, state, trace)
        except IntakeError as exc:
            return self._error_response(exc, trace)
        except Exception as exc:
            logger.exception("Unexpected failure while processing turn")
            return self._error_response(self._unexpected(exc), trace)

        if response.conversation_state is not None:
            response.service_details = response.conversation_state.service.model_dump(
                mode="json"
            )
        return response

    async def process_voice_turn(
        self,
        audio: bytes,
        mimetype: Optional[str] = None,
        conversation_state: Union[ConversationState, dict, None] = None,
    ) -> TurnResponse:
        """Transcribe recorded audio, then process it as a text turn."""
        try:
            if self.transcriber is None:
                raise CollaboratorError("Speech transcription is not configured")
            text = await self.transcriber.transcribe(audio, mimetype)
        except IntakeError as exc:
            return self._error_response(exc, WorkflowTrace())
        except Exception as exc:
            logger.exception("Unexpected failure while transcribing audio")
            return self._error_response(self._unexpected(exc), WorkflowTrace())

        response = await self.process_turn(text, conversation_state)
        return response.model_copy(update={"transcription": text})

    # ------------------------------------------------------------------
    # Turn handling
    # ------------------------------------------------------------------

    async def _first_turn(self, text: str, trace: WorkflowTrace) -> TurnResponse:
        trace.record("intent_routing", agent="intent_resolver")
        resolution = await self.intent_resolver.resolve(text)
        if not isinstance(resolution, IntentResolution):
            raise CollaboratorError("Intent resolver returned an unrecognized result")

        if resolution.action == "list_services":
            trace.record("services_listed", count=len(resolution.services))
            logger.info("Listing %d services", len(resolution.services))
            return TurnResponse(
                status=ResponseStatus.SERVICES_LISTED,
                agent_response=LIST_SERVICES_RESPONSE.format(count=len(resolution.services)),
                services=resolution.services,
                workflow_metadata=trace.finish(),
            )

        service = resolution.service_details
        state = ConversationState.start(RoutingInfo(
            service_name=resolution.service_name or service.service_key,
            service_details=service,
            user_context=resolution.user_context or text,
        ))
        trace.record("state_created", service_id=service.service_id)
        logger.info("Routed to %s (%s)", service.service_name, service.service_id)

        return await self._continue(text, state, trace)

    async def _continue(
        self, text: str, state: ConversationState, trace: WorkflowTrace
    ) -> TurnResponse:
        if state.current_phase == IntakePhase.COMPLETED:
            raise InputValidationError(
                f"Conversation for {state.service_id} is already completed",
                user_message=COMPLETED_MESSAGE,
            )

        working = state.model_copy(deep=True)
        working.transcript.append(ConversationTurn(role=Role.USER, content=text))
        service = working.service

        try:
            machine = IntakeStateMachine(working.current_phase)
            if machine.current_phase == IntakePhase.VALIDATION_FAILED:
                machine.transition(IntakeTrigger.CORRECTION_RECEIVED)

            working.collected_data = self._merge_collected(working)
            status = self.policy.evaluate(service, working.collected_data)
            trace.record(
                "extraction",
                collected=list(working.collected_data),
                missing_required=status.missing_required,
                flagged=list(working.flagged_fields),
            )

            if status.is_complete:
                machine.transition(IntakeTrigger.REQUIRED_SATISFIED)
                if self._ready_to_submit(working, status):
                    logger.info("All required fields collected, validating")
                    return await self._finalize(working, machine, trace)
            else:
                machine.transition(IntakeTrigger.REQUIRED_PENDING)
        except InvalidTransitionError as exc:
            raise InputValidationError(
                f"Conversation state is inconsistent: {exc}",
                user_message=GENERIC_ERROR_RESPONSE,
            ) from exc

        return await self._ask_next(working, machine, status, trace)

    async def _ask_next(
        self,
        working: ConversationState,
        machine: IntakeStateMachine,
        status: CompletionStatus,
        trace: WorkflowTrace,
    ) -> TurnResponse:
        service = working.service
        instruction = self.composer.compose(
            service,
            working.collected_data,
            status,
            working.transcript,
            flagged_fields=working.flagged_fields,
            validation_errors=working.validation_errors,
        )
        trace.record("dialogue", agent="dialogue_generator", next_field=instruction.next_field)
        reply = await self.dialogue_generator.generate(
            instruction.system_instruction,
            instruction.recent_transcript,
            next_field=instruction.next_field,
            next_is_optional=instruction.next_is_optional,
        )
        violations = self.guardrails.check_agent_response(reply)
        if violations:
            raise CollaboratorError(violations[0].message)

        reply = reply.strip()
        working.transcript.append(ConversationTurn(role=Role.ASSISTANT, content=reply))
        working.current_phase = machine.current_phase
        self._touch(working)
        logger.info(
            "Phase %s, asking for %s", working.current_phase.value, instruction.next_field
        )
        return TurnResponse(
            status=ResponseStatus.SUCCESS,
            agent_response=reply,
            conversation_state=working,
            workflow_metadata=trace.finish(),
        )

    async def _finalize(
        self,
        working: ConversationState,
        machine: IntakeStateMachine,
        trace: WorkflowTrace,
    ) -> TurnResponse:
        service = working.service
        cleaned = clean_declined(working.collected_data, self.policy.decline_phrases)
        trace.record("validation", agent="validator", fields=list(cleaned))

        try:
            report = await self.validator.validate(service, cleaned)
            if not isinstance(report, dict):
                raise ValidationUnavailableError("Validator returned an unrecognized result")
        except ValidationUnavailableError as exc:
            return self._fail_open(working, machine, cleaned, exc, trace)
        except IntakeError:
            raise
        except Exception as exc:
            logger.exception("Validator raised unexpectedly")
            return self._fail_open(working, machine, cleaned, exc, trace)

        passed = bool(report.get("validation_passed"))
        errors = [str(e) for e in report.get("errors") or []]
        for warning in report.get("warnings") or []:
            logger.info("Validation warning: %s", warning)

        if not passed and errors:
            flagged = self._flagged_fields(working, report, errors)
            if not flagged and working.flagged_since is not None:
                logger.warning(
                    "Validation still failing for %s with nothing to correct, "
                    "sending for staff review", working.service_id,
                )
                trace.record("staff_review", errors=errors)
                return self._complete(working, machine, cleaned, False, trace)
            return self._reject(working, machine, flagged, errors, trace)
        return self._complete(working, machine, cleaned, True, trace)

    def _fail_open(
        self,
        working: ConversationState,
        machine: IntakeStateMachine,
        cleaned: dict[str, str],
        exc: Exception,
        trace: WorkflowTrace,
    ) -> TurnResponse:
        logger.warning("Validation unavailable, creating ticket without it: %s", exc)
        trace.record("validation_unavailable", reason=str(exc))
        return self._complete(working, machine, cleaned, False, trace)

    def _reject(
        self,
        working: ConversationState,
        machine: IntakeStateMachine,
        flagged: list[str],
        errors: list[str],
        trace: WorkflowTrace,
    ) -> TurnResponse:
        machine.transition(IntakeTrigger.VALIDATION_FAILED)
        if flagged:
            first = flagged[0]
            follow_up = CORRECTION_QUESTIONS.get(first) or FIELD_QUESTIONS.get(first)
        else:
            # Nothing to re-ask: gather again and wait for an explicit submit.
            machine.transition(IntakeTrigger.CORRECTION_RECEIVED)
            follow_up = REVIEW_QUESTION
        message = validation_failure_message(errors, follow_up)

        working.transcript.append(ConversationTurn(role=Role.ASSISTANT, content=message))
        working.flagged_fields = flagged
        working.validation_errors = errors
        working.flagged_since = len(working.transcript) - 1
        working.current_phase = machine.current_phase
        self._touch(working)

        trace.record("validation_failed", errors=errors, flagged=flagged)
        logger.info("Validation failed for %s: %s", working.service_id, flagged)
        return TurnResponse(
            status=ResponseStatus.VALIDATION_FAILED,
            agent_response=message,
            conversation_state=working,
            validation_errors=errors,
            workflow_metadata=trace.finish(),
        )

    def _complete(
        self,
        working: ConversationState,
        machine: IntakeStateMachine,
        cleaned: dict[str, str],
        validated: bool,
        trace: WorkflowTrace,
    ) -> TurnResponse:
        service = working.service
        machine.transition(IntakeTrigger.VALIDATION_PASSED)
        ticket = create_ticket(service, cleaned, validated=validated)
        message = ticket_message(service, ticket)

        working.transcript.append(ConversationTurn(role=Role.ASSISTANT, content=message))
        working.flagged_fields = []
        working.validation_errors = []
        working.flagged_since = None
        working.current_phase = machine.current_phase
        self._touch(working)

        trace.record("ticket_created", ticket_ref=ticket.ticket_ref, validated=validated)
        return TurnResponse(
            status=ResponseStatus.COMPLETED,
            agent_response=message,
            conversation_state=working,
            ticket_created=True,
            ticket_data=ticket.ticket_data,
            ticket_ref=ticket.ticket_ref,
            workflow_metadata=trace.finish(),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _merge_collected(self, working: ConversationState) -> dict[str, str]:
        """Combine fresh extraction with stored data; stored values win.

        Flagged fields are dropped and only refilled from the correction
        window that opened with the validation failure message.
        """
        service = working.service
        extracted = self.extractor.extract(
            working.transcript,
            service.required_fields,
            service.optional_fields,
            service_id=service.service_id,
        )
        merged = {**extracted, **working.collected_data}

        if working.flagged_fields:
            for name in working.flagged_fields:
                merged.pop(name, None)
            window = working.transcript[working.flagged_since or 0:]
            corrections = self.extractor.extract_corrections(
                window, working.flagged_fields, service_id=service.service_id
            )
            merged.update(corrections)
            working.flagged_fields = [
                f for f in working.flagged_fields if f not in corrections
            ]
            if not working.flagged_fields:
                working.flagged_since = None
                working.validation_errors = []

        return {name: value for name, value in merged.items() if name in service.vocabulary}

    def _ready_to_submit(self, working: ConversationState, status: CompletionStatus) -> bool:
        """Whether a complete conversation goes to validation this turn.

        After a rejection that flagged no field, only a submit signal given
        since the rejection counts, so the same data is not re-validated on
        every turn.
        """
        if working.flagged_fields:
            return False
        if working.flagged_since is not None:
            window = working.transcript[working.flagged_since + 1:]
            return self.composer.has_termination_signal(window)
        return not status.pending_optional or self.composer.has_termination_signal(
            working.transcript
        )

    @staticmethod
    def _flagged_fields(
        working: ConversationState, report: dict[str, Any], errors: list[str]
    ) -> list[str]:
        """Fields to re-collect, in the order the validator reported them."""
        vocabulary = working.service.vocabulary
        flagged = []
        for name, outcome in (report.get("field_validations") or {}).items():
            name = FIELD_ALIASES.get(name, name)
            valid = outcome.get("valid", True) if isinstance(outcome, dict) else True
            if not valid and name in vocabulary and name not in flagged:
                flagged.append(name)
        if flagged:
            return flagged

        by_label = {label: name for name, label in FIELD_LABELS.items()}
        for error in errors:
            label = error.split(":", 1)[0].strip()
            name = by_label.get(label)
            if name in vocabulary and name not in flagged:
                flagged.append(name)
        return flagged

    @staticmethod
    def _coerce_state(
        conversation_state: Union[ConversationState, dict, None],
    ) -> Optional[ConversationState]:
        if conversation_state is None or isinstance(conversation_state, ConversationState):
            return conversation_state
        if isinstance(conversation_state, dict):
            try:
                return ConversationState.model_validate(conversation_state)
            except ValidationError as exc:
                raise InputValidationError(
                    f"Invalid conversation state: {exc.error_count()} errors",
                    user_message=GENERIC_ERROR_RESPONSE,
                ) from exc
        raise InputValidationError(
            f"Invalid conversation state type: {type(conversation_state).__name__}",
            user_message=GENERIC_ERROR_RESPONSE,
        )

    @staticmethod
    def _unexpected(exc: Exception) -> CollaboratorError:
        return CollaboratorError(f"Unexpected {type(exc).__name__}: {exc}")

    @staticmethod
    def _touch(working: ConversationState) -> None:
        working.turn_count = len(working.transcript) // 2
        working.last_updated = utcnow()

    @staticmethod
    def _error_response(exc: IntakeError, trace: WorkflowTrace) -> TurnResponse:
        if isinstance(exc, InputValidationError):
            logger.info("Rejected input: %s", exc)
        else:
            logger.error("Turn failed: %s", exc)
        trace.fail(str(exc))
        return TurnResponse(
            status=ResponseStatus.ERROR,
            agent_response=exc.user_message or GENERIC_ERROR_RESPONSE,
            error=str(exc),
            workflow_metadata=trace.finish(),
        )


def create_orchestrator(
    live: bool = False, catalog_cache: Optional[CatalogCache] = None
) -> ConversationOrchestrator:
    """Wire an orchestrator from registered agents.

    ``live`` selects the OpenAI-backed router, generator and transcriber;
    otherwise the offline keyword router and template generator are used.
    A remote validator is used when VALIDATION_AGENT_URL is set.
    """
    cache = catalog_cache or build_catalog_cache()
    if live:
        resolver = create_agent("openai_router", catalog_cache=cache)
        generator = create_agent("openai_dialogue")
        transcriber: Optional[Transcriber] = SpeechTranscriber()
    else:
        resolver = create_agent("keyword_router", catalog_cache=cache)
        generator = create_agent("template_dialogue")
        transcriber = None

    if settings.validation.validation_agent_url:
        validator = create_agent("remote_validator")
    else:
        validator = create_agent("local_validator")

    return ConversationOrchestrator(
        intent_resolver=resolver,
        dialogue_generator=generator,
        validator=validator,
        transcriber=transcriber,
    )
