"""
Guardrails applied around each turn.

1. InputGuardrail    - rejects non-text, blank and over-length user input
2. ResponseGuardrail - rejects empty generator output

These are composed into a GuardrailPipeline for pre-LLM and post-LLM checks.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from service_intake.config import settings

logger = logging.getLogger(__name__)


@dataclass
class GuardrailResult:
    """Outcome of a single guardrail check."""
    passed: bool
    violation_type: Optional[str] = None
    message: Optional[str] = None
    severity: str = "block"  # "warning" | "block"


class InputGuardrail:
    """Validates raw user input before any collaborator is called."""

    def __init__(self, max_length: int = settings.conversation.max_input_length) -> None:
        self.max_length = max_length

    def check_type(self, text: Any) -> GuardrailResult:
        if not isinstance(text, str):
            return GuardrailResult(
                passed=False,
                violation_type="invalid_type",
                message="User input must be a string.",
            )
        return GuardrailResult(passed=True)

    def check_blank(self, text: str) -> GuardrailResult:
        if not text.strip():
            return GuardrailResult(
                passed=False,
                violation_type="empty_input",
                message="User input must not be empty.",
            )
        return GuardrailResult(passed=True)

    def check_length(self, text: str) -> GuardrailResult:
        if len(text) > self.max_length:
            return GuardrailResult(
                passed=False,
                violation_type="input_too_long",
                message=f"User input is too long (maximum {self.max_length} characters).",
            )
        return GuardrailResult(passed=True)


class ResponseGuardrail:
    """Checks generated assistant text before it is appended to the transcript."""

    def check_response(self, text: Any) -> GuardrailResult:
        if not isinstance(text, str) or not text.strip():
            logger.warning("Dialogue generator returned no usable text")
            return GuardrailResult(
                passed=False,
                violation_type="empty_response",
                message="Dialogue generator returned an empty response.",
            )
        return GuardrailResult(passed=True)


class GuardrailPipeline:
    """Runs all guardrails in sequence for a given check point."""

    def __init__(self, max_input_length: Optional[int] = None) -> None:
        self.input = InputGuardrail(
            max_input_length or settings.conversation.max_input_length
        )
        self.response = ResponseGuardrail()

    def check_user_input(self, text: Any) -> list[GuardrailResult]:
        """Pre-LLM: return the violations found in raw user input."""
        type_result = self.input.check_type(text)
        if not type_result.passed:
            return [type_result]
        results = [self.input.check_blank(text), self.input.check_length(text)]
        return [r for r in results if not r.passed]

    def check_agent_response(self, text: Any) -> list[GuardrailResult]:
        """Post-LLM: return the violations found in generated text."""
        results = [self.response.check_response(text)]
        return [r for r in results if not r.passed]
