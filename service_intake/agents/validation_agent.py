"""
Validation agents: check finalized data before a ticket is created.

LocalValidationAgent runs the rule engine in-process. RemoteValidationClient
posts the same request to a validation service over HTTP; any transport
failure or unusable reply is reported as ValidationUnavailableError so the
orchestrator can fail open.
"""

import logging
from datetime import date
from typing import Any, Callable, Optional

import httpx

from service_intake.config import settings
from service_intake.errors import ValidationUnavailableError
from service_intake.schemas.service_schema import ServiceDefinition
from service_intake.schemas.validation_schema import ValidationResult
from service_intake.tools.validation import (
    ValidationEngine,
    improvement_suggestions,
    validation_summary,
)

logger = logging.getLogger(__name__)


def build_validation_response(
    service: ServiceDefinition, result: ValidationResult
) -> dict[str, Any]:
    """Serialize an engine result into the validation service reply shape."""
    response: dict[str, Any] = {
        "validation_passed": result.overall_valid,
        "errors": list(result.errors),
        "warnings": list(result.warnings),
        "field_validations": {
            name: outcome.model_dump() for name, outcome in result.field_validations.items()
        },
        "service_id": service.service_id,
        "service_name": service.service_name,
        "validation_summary": validation_summary(result),
        "improvement_suggestions": [],
    }
    if not result.overall_valid:
        response["improvement_suggestions"] = improvement_suggestions(result)
    return response


class LocalValidationAgent:
    """In-process validation collaborator."""

    def __init__(
        self,
        engine: Optional[ValidationEngine] = None,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self.engine = engine or ValidationEngine()
        self._today = today or date.today

    async def validate(
        self, service_details: ServiceDefinition, data: dict[str, str]
    ) -> dict[str, Any]:
        logger.info(
            "Validating %s (%s)", service_details.service_name, service_details.service_id
        )
        result = self.engine.validate(service_details, data, today=self._today())
        return build_validation_response(service_details, result)


class RemoteValidationClient:
    """HTTP client for a validation service exposing the same reply shape."""

    def __init__(
        self,
        url: str = settings.validation.validation_agent_url,
        timeout: float = settings.validation.validation_timeout_sec,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not url:
            raise ValueError("RemoteValidationClient requires a validation service URL")
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def validate(
        self, service_details: ServiceDefinition, data: dict[str, str]
    ) -> dict[str, Any]:
        payload = {
            "service_details": service_details.model_dump(mode="json"),
            "ticket_data": data,
        }
        try:
            response = await self._client.post(self.url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as exc:
            raise ValidationUnavailableError(f"Validation service unreachable: {exc}") from exc
        except ValueError as exc:
            raise ValidationUnavailableError(
                "Validation service returned a non-JSON reply"
            ) from exc

        if not isinstance(body, dict):
            raise ValidationUnavailableError("Validation service returned an unexpected reply")
        if "validation_passed" not in body and "is_valid" in body:
            body["validation_passed"] = body["is_valid"]
        if not isinstance(body.get("validation_passed"), bool):
            raise ValidationUnavailableError(
                "Validation service reply is missing 'validation_passed'"
            )

        body.setdefault("errors", [])
        body.setdefault("warnings", [])
        body.setdefault("field_validations", {})
        body.setdefault("improvement_suggestions", [])
        body.setdefault("validation_summary", {})
        return body
