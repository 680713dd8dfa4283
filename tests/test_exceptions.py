"""Tests for exception hierarchy."""

from __future__ import annotations

import pytest


@pytest.mark.unit
class TestWorkflowsError:
    """Tests for base WorkflowsError exception."""

    def test_base_exception_can_be_raised(self) -> None:
        """Test WorkflowsError can be raised and caught."""
        from salesmeraki_workflows.exceptions import WorkflowsError

        with pytest.raises(WorkflowsError, match="test"):
            raise WorkflowsError("test")

    @pytest.mark.parametrize(
        "name",
        [
            "AbTestNotFoundError",
            "ApiError",
            "AuthenticationRequiredError",
            "StepConfigError",
            "UnknownStepTypeError",
            "WorkflowNotFoundError",
            "WorkflowValidationError",
        ],
    )
    def test_all_errors_inherit_from_base(self, name: str) -> None:
        """Every package error can be caught as WorkflowsError."""
        from salesmeraki_workflows import exceptions

        assert issubclass(getattr(exceptions, name), exceptions.WorkflowsError)


@pytest.mark.unit
class TestWorkflowErrors:
    """Tests for the workflow-specific errors."""

    def test_workflow_not_found_error(self) -> None:
        """WorkflowNotFoundError keeps the id."""
        from salesmeraki_workflows.exceptions import WorkflowNotFoundError

        error = WorkflowNotFoundError("wf-1")

        assert error.workflow_id == "wf-1"
        assert "wf-1" in str(error)

    def test_validation_error_keeps_field_errors(self) -> None:
        """WorkflowValidationError exposes the field map and joins messages."""
        from salesmeraki_workflows.exceptions import WorkflowValidationError

        error = WorkflowValidationError({"name": "Workflow name is required", "steps": "At least one step is required"})

        assert error.errors["name"] == "Workflow name is required"
        assert "At least one step is required" in str(error)

    def test_unknown_step_type_is_value_error(self) -> None:
        """UnknownStepTypeError can be caught as ValueError."""
        from salesmeraki_workflows.exceptions import UnknownStepTypeError

        error = UnknownStepTypeError("fax")

        assert isinstance(error, ValueError)
        assert error.step_type == "fax"
        assert "fax" in str(error)

    def test_step_config_error(self) -> None:
        """StepConfigError names the step type and reason."""
        from salesmeraki_workflows.exceptions import StepConfigError

        error = StepConfigError("delay", "'duration' must be a number")

        assert error.step_type == "delay"
        assert "delay" in str(error)
        assert "duration" in str(error)

    def test_authentication_required_default_message(self) -> None:
        """AuthenticationRequiredError carries the sign-in message."""
        from salesmeraki_workflows.exceptions import AuthenticationRequiredError

        assert str(AuthenticationRequiredError()) == "Your session has expired. Please log in again."


@pytest.mark.unit
class TestApiError:
    """Tests for ApiError."""

    def test_defaults(self) -> None:
        """ApiError defaults to a non-auth, non-network failure."""
        from salesmeraki_workflows.exceptions import ApiError

        error = ApiError("boom", 500)

        assert error.status_code == 500
        assert not error.is_auth_error
        assert not error.is_network_error

    def test_network_error(self) -> None:
        """Network failures carry no status code."""
        from salesmeraki_workflows.exceptions import ApiError

        error = ApiError("offline", is_network_error=True)

        assert error.status_code is None
        assert error.is_network_error
