"""Request bodies of the workflow API.

Workflow documents are exchanged in their camelCase wire form and converted
with :meth:`Workflow.from_dict`; the dataclasses here cover the small
single-purpose bodies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

__all__ = ["AbTestUpdateDTO", "CommentCreateDTO", "ExecuteWorkflowDTO", "RecommendationRequestDTO"]


@dataclass
class CommentCreateDTO:
    """Body of ``POST /workflows/{id}/comments``."""

    content: str


@dataclass
class ExecuteWorkflowDTO:
    """Body of ``POST /workflows/{id}/execute``.

    Attributes:
        context: Input data for the run, e.g. the lead that triggered it.
    """

    context: dict[str, Any] = field(default_factory=dict)


@dataclass
class RecommendationRequestDTO:
    """Body of ``POST /ai``.

    Attributes:
        prompt: Instruction for the assistant.
        context: ``workflowName``, ``workflowDescription`` and ``currentSteps``.
        type: Kind of analysis requested.
    """

    prompt: str = ""
    context: dict[str, Any] = field(default_factory=dict)
    type: str = "sales_analysis"


@dataclass
class AbTestUpdateDTO:
    """Body of ``PATCH /workflows/{id}/tests/{testId}``.

    Omitted fields are left unchanged.
    """

    name: str | None = None
    status: str | None = None
    winner: str | None = None
