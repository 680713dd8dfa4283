"""Side records attached to workflows: executions, analytics, comments, team, A/B tests."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from salesmeraki_workflows.core.models import Workflow
from salesmeraki_workflows.core.types import AbTestStatus, ExecutionStatus, StepType, TimeRange

__all__ = [
    "AbTestVariant",
    "Comment",
    "CommentAuthor",
    "StepRecommendation",
    "TeamMember",
    "WorkflowAbTest",
    "WorkflowAnalytics",
    "WorkflowExecution",
]


@dataclass
class WorkflowExecution:
    """One run of a workflow.

    Attributes:
        id: Execution id.
        workflow_id: Id of the workflow that ran.
        status: Outcome so far.
        started_at: ISO-8601 start time.
        completed_at: ISO-8601 end time, if finished.
        context: Input the run was started with.
        results: Per-step output.
    """

    id: str
    workflow_id: str
    status: ExecutionStatus
    started_at: str
    completed_at: str | None = None
    context: dict[str, Any] = field(default_factory=dict)
    results: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.status = ExecutionStatus(self.status)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "workflowId": self.workflow_id,
            "status": self.status.value,
            "startedAt": self.started_at,
            "completedAt": self.completed_at,
            "context": dict(self.context),
            "results": dict(self.results),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WorkflowExecution:
        return cls(
            id=str(data["id"]),
            workflow_id=str(data["workflowId"]),
            status=data.get("status") or ExecutionStatus.PENDING,
            started_at=data.get("startedAt") or "",
            completed_at=data.get("completedAt"),
            context=dict(data.get("context") or {}),
            results=dict(data.get("results") or {}),
        )


@dataclass
class WorkflowAnalytics:
    """Aggregate execution metrics over a time window.

    Attributes:
        total_executions: Runs inside the window.
        success_rate: Completed runs as a percentage of all runs.
        avg_execution_time: Mean run time in milliseconds.
        time_range: The window.
        workflow_id: Scope of the aggregate, ``None`` for all workflows.
    """

    total_executions: int
    success_rate: float
    avg_execution_time: float
    time_range: TimeRange = TimeRange.LAST_30_DAYS
    workflow_id: str | None = None

    def __post_init__(self) -> None:
        self.time_range = TimeRange(self.time_range)

    @property
    def is_empty(self) -> bool:
        return self.total_executions == 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "totalExecutions": self.total_executions,
            "successRate": self.success_rate,
            "avgExecutionTime": self.avg_execution_time,
            "timeRange": self.time_range.value,
        }
        if self.workflow_id is not None:
            data["workflowId"] = self.workflow_id
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WorkflowAnalytics:
        return cls(
            total_executions=int(data.get("totalExecutions") or 0),
            success_rate=float(data.get("successRate") or 0),
            avg_execution_time=float(data.get("avgExecutionTime") or 0),
            time_range=data.get("timeRange") or TimeRange.LAST_30_DAYS,
            workflow_id=data.get("workflowId"),
        )


@dataclass
class TeamMember:
    """A colleague who can collaborate on a workflow."""

    id: str
    name: str
    role: str = ""
    email: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "role": self.role, "email": self.email}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TeamMember:
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            role=data.get("role") or "",
            email=data.get("email") or "",
        )


@dataclass
class CommentAuthor:
    """The user shown next to a comment."""

    id: str
    name: str
    email: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "email": self.email}


@dataclass
class Comment:
    """A discussion entry on a workflow."""

    id: str
    content: str
    created_at: str
    user: CommentAuthor

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "createdAt": self.created_at,
            "user": self.user.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Comment:
        user = data.get("user") or {}
        return cls(
            id=str(data["id"]),
            content=data.get("content") or "",
            created_at=data.get("createdAt") or "",
            user=CommentAuthor(
                id=str(user.get("id") or ""),
                name=user.get("name") or "",
                email=user.get("email") or "",
            ),
        )


@dataclass(frozen=True)
class StepRecommendation:
    """A suggested step for the workflow being edited."""

    title: str
    description: str
    type: StepType

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "description": self.description, "type": self.type.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StepRecommendation:
        return cls(
            title=data.get("title") or "",
            description=data.get("description") or "",
            type=StepType(data["type"]),
        )


@dataclass
class AbTestVariant:
    """One arm of an A/B test and the metrics it has collected.

    Attributes:
        id: Variant id, unique within its test.
        name: Display name.
        workflow: The workflow this arm runs.
        conversions: Runs that reached the goal.
        completion_rate: Completed runs as a percentage of all runs.
        average_time: Mean run time in milliseconds.
    """

    id: str
    name: str
    workflow: Workflow
    conversions: int = 0
    completion_rate: float = 0.0
    average_time: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "workflow": self.workflow.to_dict(),
            "metrics": {
                "conversions": self.conversions,
                "completionRate": self.completion_rate,
                "averageTime": self.average_time,
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AbTestVariant:
        metrics = data.get("metrics") or {}
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            workflow=Workflow.from_dict(data["workflow"]),
            conversions=int(metrics.get("conversions") or 0),
            completion_rate=float(metrics.get("completionRate") or 0),
            average_time=float(metrics.get("averageTime") or 0),
        )


@dataclass
class WorkflowAbTest:
    """A comparison of workflow variants run side by side.

    Attributes:
        id: Test id.
        workflow_id: Workflow the test belongs to.
        name: Display name, may be empty.
        status: Lifecycle status.
        variants: The arms being compared.
        start_date: ISO-8601 start time.
        end_date: ISO-8601 end time once completed.
        winner: Id of the winning variant, if one was declared.
    """

    id: str
    workflow_id: str
    name: str = ""
    status: AbTestStatus = AbTestStatus.DRAFT
    variants: list[AbTestVariant] = field(default_factory=list)
    start_date: str = ""
    end_date: str | None = None
    winner: str | None = None

    def __post_init__(self) -> None:
        self.status = AbTestStatus(self.status)

    @property
    def title(self) -> str:
        """The name, or ``Test <id>`` for unnamed tests."""
        return self.name or f"Test {self.id}"

    @property
    def is_running(self) -> bool:
        return self.status is not AbTestStatus.COMPLETED

    def variant(self, variant_id: str) -> AbTestVariant | None:
        return next((variant for variant in self.variants if variant.id == variant_id), None)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "workflowId": self.workflow_id,
            "name": self.name,
            "status": self.status.value,
            "variants": [variant.to_dict() for variant in self.variants],
            "startDate": self.start_date,
        }
        if self.end_date is not None:
            data["endDate"] = self.end_date
        if self.winner is not None:
            data["winner"] = self.winner
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WorkflowAbTest:
        return cls(
            id=str(data["id"]),
            workflow_id=str(data.get("workflowId") or ""),
            name=data.get("name") or "",
            status=data.get("status") or AbTestStatus.DRAFT,
            variants=[AbTestVariant.from_dict(variant) for variant in data.get("variants") or []],
            start_date=data.get("startDate") or "",
            end_date=data.get("endDate"),
            winner=data.get("winner"),
        )
