"""Core type definitions for salesmeraki-workflows.

This module defines the enumerations shared by the model, the sync layer, the
builder and the mock API.
"""

from __future__ import annotations

from enum import StrEnum, auto

__all__ = [
    "AbTestStatus",
    "ActiveView",
    "AiAnalysisKind",
    "BuilderState",
    "ConditionOperator",
    "EmailTemplateKind",
    "ExecutionStatus",
    "PaletteCategory",
    "PanelState",
    "StepType",
    "TimeRange",
    "TriggerType",
    "WorkflowStatus",
]


class WorkflowStatus(StrEnum):
    """Lifecycle status of a workflow.

    Attributes:
        DRAFT: Being edited, never executed.
        ACTIVE: Published and eligible to run.
        ARCHIVED: Retired, kept for reference.
    """

    DRAFT = auto()
    ACTIVE = auto()
    ARCHIVED = auto()


class StepType(StrEnum):
    """Vocabulary of step kinds a workflow can contain.

    The ``TRIGGER_*`` members are trigger subtypes that can be placed on the
    canvas from the palette.
    """

    EMAIL = auto()
    SMS = auto()
    CALL = auto()
    DELAY = auto()
    CONDITION = auto()
    TASK = auto()
    AI_ANALYSIS = auto()
    CRM_UPDATE = auto()
    TRIGGER_NEW_LEAD = auto()
    TRIGGER_DEAL_STAGE = auto()
    TRIGGER_FORM_SUBMIT = auto()

    @property
    def is_trigger(self) -> bool:
        """Whether this step kind starts a workflow rather than acting in it."""
        return self.value.startswith("trigger_")


class TriggerType(StrEnum):
    """Events that can start a workflow."""

    NEW_LEAD = auto()
    DEAL_STAGE_CHANGE = auto()
    FORM_SUBMISSION = auto()
    SCHEDULED = auto()
    MANUAL = auto()


class EmailTemplateKind(StrEnum):
    """Email templates selectable on an email step."""

    WELCOME = auto()
    FOLLOW_UP = auto()
    PROPOSAL = auto()


class AiAnalysisKind(StrEnum):
    """Analyses an AI analysis step can run."""

    SENTIMENT = auto()
    INTENT = auto()
    QUALIFICATION = auto()


class ConditionOperator(StrEnum):
    """Comparison operators of a condition step."""

    EQUALS = auto()
    NOT_EQUALS = auto()
    CONTAINS = auto()
    GREATER_THAN = auto()
    LESS_THAN = auto()


class PaletteCategory(StrEnum):
    """Groups of the builder's step palette."""

    TRIGGERS = "Triggers"
    ACTIONS = "Actions"
    LOGIC = "Logic"


class AbTestStatus(StrEnum):
    """Lifecycle of an A/B test between workflow variants."""

    DRAFT = auto()
    ACTIVE = auto()
    COMPLETED = auto()


class ExecutionStatus(StrEnum):
    """Status of a single workflow run."""

    PENDING = auto()
    RUNNING = auto()
    COMPLETED = auto()
    FAILED = auto()


class TimeRange(StrEnum):
    """Windows over which analytics are aggregated."""

    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    ALL = "all"

    @property
    def days(self) -> int | None:
        """Length of the window in days, ``None`` for the unbounded window."""
        if self is TimeRange.ALL:
            return None
        return int(self.value.removesuffix("d"))


class BuilderState(StrEnum):
    """States of the builder's save cycle.

    Attributes:
        EDITING: Accepting edits.
        VALIDATING: Checking field rules before a save.
        SAVING: A save is in flight.
        AUTH_EXPIRED: A save was refused because the session is gone.
    """

    EDITING = auto()
    VALIDATING = auto()
    SAVING = auto()
    AUTH_EXPIRED = auto()


class ActiveView(StrEnum):
    """Tabs of the workflows page."""

    LIST = auto()
    BUILDER = auto()
    ANALYTICS = auto()
    COLLABORATION = auto()


class PanelState(StrEnum):
    """Load state shared by the analytics and collaboration panels."""

    IDLE = auto()
    LOADING = auto()
    ERROR = auto()
    EMPTY = auto()
    READY = auto()
