"""Exception hierarchy for the intake pipeline.

Data-validation failures are not exceptions: the orchestrator turns them
into a corrective ``validation_failed`` response. Everything below is
scoped to a single request.
"""

from typing import Optional


class IntakeError(Exception):
    """Base class for request-scoped intake failures."""

    def __init__(self, message: str, user_message: Optional[str] = None) -> None:
        super().__init__(message)
        self.user_message = user_message


class InputValidationError(IntakeError):
    """User input or the round-tripped state payload was rejected."""


class CollaboratorError(IntakeError):
    """An upstream collaborator failed or returned an unrecognized shape."""


class IntentNotResolvedError(CollaboratorError):
    """Intent resolution could not map the request to a service."""


class ValidationUnavailableError(CollaboratorError):
    """The validation collaborator could not be reached."""


class CatalogError(IntakeError):
    """The service repository is missing or contains an invalid record."""
