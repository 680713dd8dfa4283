"""Workflow data model.

The classes here round-trip through the same camelCase JSON documents the web
client keeps in its cache and exchanges with the REST API.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any
from uuid import uuid4

from salesmeraki_workflows.core.steps import StepConfig, build_step_config, parse_step_type
from salesmeraki_workflows.core.types import StepType, TriggerType, WorkflowStatus

__all__ = ["LOCAL_ID_PREFIX", "Trigger", "Workflow", "WorkflowStep", "is_local_id"]

LOCAL_ID_PREFIX = "local-"
"""Prefix of ids assigned to workflows that only exist in the client cache."""


def is_local_id(workflow_id: str | None) -> bool:
    """Whether ``workflow_id`` was assigned by a client-side fallback save."""
    return bool(workflow_id) and str(workflow_id).startswith(LOCAL_ID_PREFIX)


@dataclass
class WorkflowStep:
    """One node of a workflow's ordered step sequence.

    ``config`` is always the configuration class registered for ``type``;
    mappings passed in are converted on construction.

    Attributes:
        id: Unique step id.
        type: Step kind.
        config: Typed configuration for the step kind.
        position: Index of the step within its workflow.
        name: Display name.
        description: Optional free text.

    Raises:
        UnknownStepTypeError: If ``type`` is outside the step vocabulary.
        StepConfigError: If ``config`` does not fit ``type``.
    """

    id: str
    type: StepType
    config: StepConfig = field(default=None)  # type: ignore[assignment]
    position: int = 0
    name: str | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        self.type = parse_step_type(self.type)
        self.config = build_step_config(self.type, self.config)

    @classmethod
    def create(
        cls,
        step_type: StepType | str,
        *,
        position: int = 0,
        config: StepConfig | Mapping[str, Any] | None = None,
        name: str | None = None,
    ) -> WorkflowStep:
        """Create a step with a fresh UUID."""
        return cls(id=str(uuid4()), type=step_type, config=config, position=position, name=name)  # type: ignore[arg-type]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "position": self.position,
            "config": self.config.to_dict(),
        }
        if self.name is not None:
            data["name"] = self.name
        if self.description is not None:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WorkflowStep:
        return cls(
            id=str(data.get("id") or uuid4()),
            type=data.get("type"),  # type: ignore[arg-type]
            config=data.get("config") or {},
            position=int(data.get("position") or 0),
            name=data.get("name") or data.get("title"),
            description=data.get("description"),
        )


@dataclass
class Trigger:
    """The event that starts a workflow.

    Attributes:
        type: Kind of event.
        name: Display name.
        description: What the event is.
    """

    type: TriggerType
    name: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        self.type = TriggerType(self.type)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "name": self.name, "description": self.description}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Trigger:
        return cls(
            type=data["type"],
            name=data.get("name") or "",
            description=data.get("description") or "",
        )


@dataclass
class Workflow:
    """A named, ordered sequence of steps started by a trigger.

    An empty ``id`` marks a workflow that has never been saved. Ids starting
    with ``local-`` mark workflows saved only to the client cache.

    Attributes:
        id: Server or local id, empty when unsaved.
        name: Display name.
        description: Free text, at most 500 characters when saved.
        status: Lifecycle status.
        trigger: Starting event, ``None`` while unset.
        steps: Ordered steps.
        updated_at: ISO-8601 timestamp of the last save.
        created_at: ISO-8601 timestamp of the first save.
        created_by: Id of the creating user.
        team_id: Id of the owning team.
    """

    id: str = ""
    name: str = ""
    description: str = ""
    status: WorkflowStatus = WorkflowStatus.DRAFT
    trigger: Trigger | None = None
    steps: list[WorkflowStep] = field(default_factory=list)
    updated_at: str | None = None
    created_at: str | None = None
    created_by: str | None = None
    team_id: str | None = None

    def __post_init__(self) -> None:
        self.status = WorkflowStatus(self.status)

    @property
    def is_local(self) -> bool:
        """Whether this workflow exists only in the client cache."""
        return is_local_id(self.id)

    @property
    def is_new(self) -> bool:
        """Whether this workflow has no server-side record yet."""
        return not self.id or self.is_local

    def with_positions(self) -> Workflow:
        """Return a copy whose step positions equal their list indices."""
        steps = [replace(step, position=index) for index, step in enumerate(self.steps)]
        return replace(self, steps=steps)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "trigger": self.trigger.to_dict() if self.trigger else None,
            "steps": [step.to_dict() for step in self.steps],
        }
        optional = {
            "updatedAt": self.updated_at,
            "createdAt": self.created_at,
            "createdBy": self.created_by,
            "teamId": self.team_id,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Workflow:
        """Build a workflow from its wire document.

        Missing fields take their defaults.

        Raises:
            UnknownStepTypeError: If any step carries an unknown type tag.
            StepConfigError: If any step configuration is invalid.
            ValueError: If the status or trigger type is not recognised.
        """
        trigger = data.get("trigger")
        return cls(
            id=str(data.get("id") or ""),
            name=data.get("name") or "",
            description=data.get("description") or "",
            status=data.get("status") or WorkflowStatus.DRAFT,
            trigger=Trigger.from_dict(trigger) if trigger else None,
            steps=[WorkflowStep.from_dict(step) for step in data.get("steps") or []],
            updated_at=data.get("updatedAt"),
            created_at=data.get("createdAt"),
            created_by=data.get("createdBy"),
            team_id=data.get("teamId"),
        )
