"""SalesMeraki Workflows - CRM sales workflow builder.

This package models sales workflows (a trigger plus an ordered list of typed
steps), keeps a client-side cache in sync with the workflow API by merging on
recency, drives the builder's edit and save cycle, and ships a Litestar mock
of the workflow API.

Example:
    >>> from salesmeraki_workflows import WorkflowBuilder, StepType
    >>>
    >>> builder = WorkflowBuilder(on_save=lambda workflow, replaces=None: None)
    >>> builder.set_field("name", "Lead follow-up")
    >>> step = builder.add_step(StepType.EMAIL, {"template": "welcome"})
    >>> builder.build().steps[0].position
    0
"""

from __future__ import annotations

from salesmeraki_workflows.__metadata__ import __project__, __version__
from salesmeraki_workflows.builder import WorkflowBuilder
from salesmeraki_workflows.core.models import Trigger, Workflow, WorkflowStep
from salesmeraki_workflows.core.types import StepType, TriggerType, WorkflowStatus
from salesmeraki_workflows.exceptions import (
    AbTestNotFoundError,
    ApiError,
    AuthenticationRequiredError,
    StepConfigError,
    UnknownStepTypeError,
    WorkflowNotFoundError,
    WorkflowsError,
    WorkflowValidationError,
)
from salesmeraki_workflows.panels import AbTestPanel, AnalyticsPanel, CollaborationPanel
from salesmeraki_workflows.plugin import WorkflowApiPlugin
from salesmeraki_workflows.sync.cache import WorkflowCache
from salesmeraki_workflows.sync.client import WorkflowApiClient
from salesmeraki_workflows.sync.session import Session
from salesmeraki_workflows.sync.store import WorkflowStore
from salesmeraki_workflows.web.config import WorkflowApiConfig

__all__ = (
    "AbTestNotFoundError",
    "AbTestPanel",
    "AnalyticsPanel",
    "ApiError",
    "AuthenticationRequiredError",
    "CollaborationPanel",
    "Session",
    "StepConfigError",
    "StepType",
    "Trigger",
    "TriggerType",
    "UnknownStepTypeError",
    "Workflow",
    "WorkflowApiClient",
    "WorkflowApiConfig",
    "WorkflowApiPlugin",
    "WorkflowBuilder",
    "WorkflowCache",
    "WorkflowNotFoundError",
    "WorkflowStatus",
    "WorkflowStep",
    "WorkflowStore",
    "WorkflowValidationError",
    "WorkflowsError",
    "__project__",
    "__version__",
)
