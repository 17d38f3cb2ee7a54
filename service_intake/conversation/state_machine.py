"""
Finite state machine for the intake phase of a conversation.

The phase is stored on the round-tripped ConversationState, so the
machine is rebuilt from the stored phase on every turn and the resulting
phase is written back. Every change goes through the explicit
transition table below.

Usage:
    sm = IntakeStateMachine(IntakePhase.INFORMATION_GATHERING)
    sm.transition(IntakeTrigger.REQUIRED_SATISFIED)
    assert sm.current_phase == IntakePhase.OPTIONAL_FIELDS
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from service_intake.schemas.conversation_schema import IntakePhase

logger = logging.getLogger(__name__)


class IntakeTrigger(str, Enum):
    """Events that cause phase transitions."""
    REQUIRED_PENDING = "required_pending"
    REQUIRED_SATISFIED = "required_satisfied"
    VALIDATION_FAILED = "validation_failed"
    VALIDATION_PASSED = "validation_passed"
    CORRECTION_RECEIVED = "correction_received"


@dataclass
class Transition:
    """A single valid phase transition."""
    from_phase: IntakePhase
    to_phase: IntakePhase
    trigger: IntakeTrigger


@dataclass
class PhaseEntry:
    """Recorded history entry for a phase visit."""
    phase: IntakePhase
    entered_at: datetime
    trigger: Optional[IntakeTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current phase."""


class IntakeStateMachine:
    """
    Deterministic phase control for one service conversation.

    ``completed`` is terminal: no trigger leaves it.
    """

    TRANSITIONS: list[Transition] = [
        # --- Collecting required fields ---
        Transition(IntakePhase.INFORMATION_GATHERING, IntakePhase.INFORMATION_GATHERING,
                   IntakeTrigger.REQUIRED_PENDING),
        Transition(IntakePhase.INFORMATION_GATHERING, IntakePhase.OPTIONAL_FIELDS,
                   IntakeTrigger.REQUIRED_SATISFIED),

        # --- Offering optional fields ---
        Transition(IntakePhase.OPTIONAL_FIELDS, IntakePhase.OPTIONAL_FIELDS,
                   IntakeTrigger.REQUIRED_SATISFIED),
        Transition(IntakePhase.OPTIONAL_FIELDS, IntakePhase.VALIDATION_FAILED,
                   IntakeTrigger.VALIDATION_FAILED),
        Transition(IntakePhase.OPTIONAL_FIELDS, IntakePhase.COMPLETED,
                   IntakeTrigger.VALIDATION_PASSED),

        # --- Correction loop ---
        Transition(IntakePhase.VALIDATION_FAILED, IntakePhase.INFORMATION_GATHERING,
                   IntakeTrigger.CORRECTION_RECEIVED),
    ]

    def __init__(self, phase: IntakePhase = IntakePhase.INFORMATION_GATHERING) -> None:
        self._current_phase = phase
        self._history: list[PhaseEntry] = [
            PhaseEntry(phase=phase, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_phase(self) -> IntakePhase:
        return self._current_phase

    def transition(self, trigger: IntakeTrigger) -> IntakePhase:
        """
        Execute a phase transition.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_phase == self._current_phase and t.trigger == trigger:
                old_phase = self._current_phase
                self._current_phase = t.to_phase
                self._history.append(PhaseEntry(
                    phase=self._current_phase,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))
                logger.debug(
                    "Phase transition: %s -> %s (trigger: %s)",
                    old_phase.value, self._current_phase.value, trigger.value,
                )
                return self._current_phase

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_phase.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[IntakeTrigger]:
        """Return all triggers valid from the current phase."""
        return [t.trigger for t in self.TRANSITIONS if t.from_phase == self._current_phase]

    def get_history(self) -> list[PhaseEntry]:
        return list(self._history)

    def get_phase_trace(self) -> list[str]:
        """Return ordered list of phase names visited."""
        return [entry.phase.value for entry in self._history]

    def is_terminal(self) -> bool:
        return self._current_phase == IntakePhase.COMPLETED
