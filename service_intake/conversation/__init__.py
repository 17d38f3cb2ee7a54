from service_intake.conversation.completion import CompletionPolicy, CompletionStatus
from service_intake.conversation.field_extractor import FieldExtractor, FieldRule, Trigger
from service_intake.conversation.guardrails import GuardrailPipeline
from service_intake.conversation.orchestrator import ConversationOrchestrator, create_orchestrator
from service_intake.conversation.state_machine import (
    IntakeStateMachine,
    IntakeTrigger,
    InvalidTransitionError,
)
from service_intake.conversation.turn_composer import TurnComposer, TurnInstruction

__all__ = [
    "ConversationOrchestrator",
    "create_orchestrator",
    "FieldExtractor",
    "FieldRule",
    "Trigger",
    "CompletionPolicy",
    "CompletionStatus",
    "TurnComposer",
    "TurnInstruction",
    "IntakeStateMachine",
    "IntakeTrigger",
    "InvalidTransitionError",
    "GuardrailPipeline",
]
