"""Tests for save-time validation rules."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable

    from salesmeraki_workflows.core.models import Workflow


@pytest.mark.unit
class TestValidateField:
    """Tests for validate_field."""

    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_blank_name_rejected(self, value: str | None) -> None:
        """Names must contain something other than whitespace."""
        from salesmeraki_workflows.core.validation import validate_field

        assert validate_field("name", value) == "Workflow name is required"

    def test_description_length_boundary(self) -> None:
        """500 characters pass and 501 fail."""
        from salesmeraki_workflows.core.validation import validate_field

        assert validate_field("description", "x" * 500) is None
        assert validate_field("description", "x" * 501) == "Description must be less than 500 characters"

    def test_steps_required(self) -> None:
        """An empty step list is rejected."""
        from salesmeraki_workflows.core.validation import validate_field

        assert validate_field("steps", []) == "At least one step is required"

    def test_other_fields_always_pass(self) -> None:
        """Fields without rules report nothing."""
        from salesmeraki_workflows.core.validation import validate_field

        assert validate_field("status", None) is None


@pytest.mark.unit
class TestValidateWorkflow:
    """Tests for validate_workflow and ensure_valid."""

    def test_valid_workflow_has_no_errors(self, make_workflow: Callable[..., Workflow]) -> None:
        """A named workflow with one step passes."""
        from salesmeraki_workflows.core.validation import validate_workflow

        assert validate_workflow(make_workflow()) == {}

    def test_collects_every_failure(self, make_workflow: Callable[..., Workflow]) -> None:
        """All broken rules are reported at once."""
        from salesmeraki_workflows.core.validation import validate_workflow

        workflow = make_workflow(name="", step_count=0, description="x" * 600)

        assert set(validate_workflow(workflow)) == {"name", "description", "steps"}

    def test_ensure_valid_raises_with_errors(self, make_workflow: Callable[..., Workflow]) -> None:
        """ensure_valid raises WorkflowValidationError carrying the field map."""
        from salesmeraki_workflows.core.validation import ensure_valid
        from salesmeraki_workflows.exceptions import WorkflowValidationError

        with pytest.raises(WorkflowValidationError) as exc_info:
            ensure_valid(make_workflow(step_count=0))

        assert exc_info.value.errors == {"steps": "At least one step is required"}
