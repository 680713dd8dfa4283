"""Save-time field rules shared by the builder and the mock API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from salesmeraki_workflows.exceptions import WorkflowValidationError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from salesmeraki_workflows.core.models import Workflow, WorkflowStep

__all__ = [
    "MAX_DESCRIPTION_LENGTH",
    "ensure_valid",
    "validate_field",
    "validate_fields",
    "validate_workflow",
]

MAX_DESCRIPTION_LENGTH = 500

NAME_REQUIRED = "Workflow name is required"
DESCRIPTION_TOO_LONG = f"Description must be less than {MAX_DESCRIPTION_LENGTH} characters"
STEPS_REQUIRED = "At least one step is required"


def validate_field(name: str, value: Any) -> str | None:
    """Check a single editable field.

    Args:
        name: Field name (``name``, ``description`` or ``steps``).
        value: Current value.

    Returns:
        The error message, or ``None`` when the value is acceptable.
    """
    if name == "name" and not str(value or "").strip():
        return NAME_REQUIRED
    if name == "description" and len(value or "") > MAX_DESCRIPTION_LENGTH:
        return DESCRIPTION_TOO_LONG
    if name == "steps" and not value:
        return STEPS_REQUIRED
    return None


def validate_fields(name: str, description: str, steps: Sequence[WorkflowStep]) -> dict[str, str]:
    """Check every save-time rule and collect the failures by field."""
    errors: dict[str, str] = {}
    for field_name, value in (("name", name), ("description", description), ("steps", steps)):
        message = validate_field(field_name, value)
        if message:
            errors[field_name] = message
    return errors


def validate_workflow(workflow: Workflow) -> dict[str, str]:
    return validate_fields(workflow.name, workflow.description, workflow.steps)


def ensure_valid(workflow: Workflow) -> None:
    """Raise if ``workflow`` breaks any save-time rule.

    Raises:
        WorkflowValidationError: With the field errors.
    """
    errors = validate_workflow(workflow)
    if errors:
        raise WorkflowValidationError(errors)
