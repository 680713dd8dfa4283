"""Workflow domain model: types, step configs, catalog, validation and merge."""

from __future__ import annotations

from salesmeraki_workflows.core.catalog import (
    ACTION_TEMPLATES,
    TRIGGER_TEMPLATES,
    WORKFLOW_TEMPLATES,
    ActionTemplate,
    TriggerTemplate,
    WorkflowTemplate,
    instantiate_template,
    palette,
    step_title,
)
from salesmeraki_workflows.core.merge import filter_by_name, merge_workflows, new_local_id, upsert_workflow
from salesmeraki_workflows.core.models import LOCAL_ID_PREFIX, Trigger, Workflow, WorkflowStep, is_local_id
from salesmeraki_workflows.core.records import (
    AbTestVariant,
    Comment,
    CommentAuthor,
    StepRecommendation,
    TeamMember,
    WorkflowAbTest,
    WorkflowAnalytics,
    WorkflowExecution,
)
from salesmeraki_workflows.core.steps import STEP_CONFIG_TYPES, StepConfig, build_step_config
from salesmeraki_workflows.core.types import (
    AbTestStatus,
    ActiveView,
    BuilderState,
    ExecutionStatus,
    PanelState,
    StepType,
    TimeRange,
    TriggerType,
    WorkflowStatus,
)
from salesmeraki_workflows.core.validation import validate_workflow

__all__ = [
    "ACTION_TEMPLATES",
    "LOCAL_ID_PREFIX",
    "STEP_CONFIG_TYPES",
    "TRIGGER_TEMPLATES",
    "WORKFLOW_TEMPLATES",
    "AbTestStatus",
    "AbTestVariant",
    "ActionTemplate",
    "ActiveView",
    "BuilderState",
    "Comment",
    "CommentAuthor",
    "ExecutionStatus",
    "PanelState",
    "StepConfig",
    "StepRecommendation",
    "StepType",
    "TeamMember",
    "TimeRange",
    "Trigger",
    "TriggerTemplate",
    "TriggerType",
    "Workflow",
    "WorkflowAbTest",
    "WorkflowAnalytics",
    "WorkflowExecution",
    "WorkflowStatus",
    "WorkflowStep",
    "WorkflowTemplate",
    "build_step_config",
    "filter_by_name",
    "instantiate_template",
    "is_local_id",
    "merge_workflows",
    "new_local_id",
    "palette",
    "step_title",
    "upsert_workflow",
    "validate_workflow",
]
