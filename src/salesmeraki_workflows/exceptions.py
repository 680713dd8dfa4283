"""Exception hierarchy for salesmeraki-workflows."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

__all__ = (
    "AbTestNotFoundError",
    "ApiError",
    "AuthenticationRequiredError",
    "StepConfigError",
    "UnknownStepTypeError",
    "WorkflowNotFoundError",
    "WorkflowValidationError",
    "WorkflowsError",
)


class WorkflowsError(Exception):
    """Base exception for all salesmeraki-workflows errors.

    Every error raised by the model, the sync layer, the builder and the mock
    API inherits from this class, so callers can catch them with one clause.
    """


class WorkflowNotFoundError(WorkflowsError):
    """Raised when a workflow id is not known to a repository.

    Attributes:
        workflow_id: The id that was looked up.
    """

    def __init__(self, workflow_id: str) -> None:
        """Initialize the exception with the missing id.

        Args:
            workflow_id: The id that was looked up.
        """
        self.workflow_id = workflow_id
        super().__init__(f"Workflow '{workflow_id}' not found")


class AbTestNotFoundError(WorkflowsError):
    """Raised when an A/B test id is not known for a workflow.

    Attributes:
        workflow_id: The workflow the test was looked up under.
        test_id: The id that was looked up.
    """

    def __init__(self, workflow_id: str, test_id: str) -> None:
        self.workflow_id = workflow_id
        self.test_id = test_id
        super().__init__(f"A/B test '{test_id}' not found for workflow '{workflow_id}'")


class WorkflowValidationError(WorkflowsError):
    """Raised when a workflow fails the save-time field rules.

    Attributes:
        errors: Mapping of field name to a user-facing message.
    """

    def __init__(self, errors: Mapping[str, str]) -> None:
        """Initialize the exception with field errors.

        Args:
            errors: Mapping of field name to a user-facing message.
        """
        self.errors = dict(errors)
        super().__init__(f"Workflow validation failed: {'; '.join(self.errors.values())}")


class UnknownStepTypeError(WorkflowsError, ValueError):
    """Raised when a step is built from a type tag outside the step vocabulary.

    Attributes:
        step_type: The rejected type tag.
    """

    def __init__(self, step_type: object) -> None:
        """Initialize the exception with the rejected tag.

        Args:
            step_type: The rejected type tag.
        """
        self.step_type = step_type
        super().__init__(f"Unknown step type '{step_type}'")


class StepConfigError(WorkflowsError, ValueError):
    """Raised when a step configuration payload does not fit its step type.

    Attributes:
        step_type: The step type whose configuration was rejected.
        reason: Why the payload was rejected.
    """

    def __init__(self, step_type: str, reason: str) -> None:
        """Initialize the exception with the offending step type.

        Args:
            step_type: The step type whose configuration was rejected.
            reason: Why the payload was rejected.
        """
        self.step_type = step_type
        self.reason = reason
        super().__init__(f"Invalid configuration for '{step_type}' step: {reason}")


class AuthenticationRequiredError(WorkflowsError):
    """Raised when an operation needs a live session and none is available."""

    def __init__(self, message: str = "Your session has expired. Please log in again.") -> None:
        """Initialize the exception.

        Args:
            message: User-facing message.
        """
        super().__init__(message)


class ApiError(WorkflowsError):
    """Raised by the REST client when a request to the workflow API fails.

    Attributes:
        status_code: HTTP status of the response, ``None`` when no response arrived.
        is_auth_error: True for 401 and 403 responses.
        is_network_error: True when the request never produced a response.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        *,
        is_auth_error: bool = False,
        is_network_error: bool = False,
    ) -> None:
        """Initialize the exception with request failure details.

        Args:
            message: Description of the failure.
            status_code: HTTP status of the response, if any.
            is_auth_error: Whether the server rejected the credentials.
            is_network_error: Whether the failure happened before a response.
        """
        self.status_code = status_code
        self.is_auth_error = is_auth_error
        self.is_network_error = is_network_error
        super().__init__(message)
