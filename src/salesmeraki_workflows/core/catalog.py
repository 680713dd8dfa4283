"""Static catalog of triggers, palette actions and starter templates.

Everything in this module is read-only reference data for the builder.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from salesmeraki_workflows.core.models import Trigger, Workflow, WorkflowStep
from salesmeraki_workflows.core.records import StepRecommendation
from salesmeraki_workflows.core.types import PaletteCategory, StepType, TriggerType, WorkflowStatus

__all__ = [
    "ACTION_TEMPLATES",
    "FALLBACK_RECOMMENDATIONS",
    "TEMPLATE_CATEGORIES",
    "TRIGGER_TEMPLATES",
    "WORKFLOW_TEMPLATES",
    "ActionTemplate",
    "TriggerTemplate",
    "WorkflowTemplate",
    "filter_templates",
    "get_trigger_template",
    "instantiate_template",
    "palette",
    "step_title",
    "suggest_steps",
]


@dataclass(frozen=True)
class TriggerTemplate:
    """A trigger the builder offers."""

    type: TriggerType
    name: str
    description: str
    icon: str

    def to_trigger(self) -> Trigger:
        """Create the trigger this template describes."""
        return Trigger(type=self.type, name=self.name, description=self.description)


@dataclass(frozen=True)
class ActionTemplate:
    """A palette entry that adds a step of ``type``."""

    type: StepType
    name: str
    description: str
    icon: str
    category: PaletteCategory


TRIGGER_TEMPLATES: tuple[TriggerTemplate, ...] = (
    TriggerTemplate(TriggerType.NEW_LEAD, "New Lead", "Trigger when a new lead is created", "user-plus"),
    TriggerTemplate(
        TriggerType.DEAL_STAGE_CHANGE, "Deal Stage Change", "Trigger when a deal changes stage", "arrows-right-left"
    ),
    TriggerTemplate(TriggerType.FORM_SUBMISSION, "Form Submission", "Trigger when a form is submitted", "document-text"),
    TriggerTemplate(TriggerType.SCHEDULED, "Scheduled", "Trigger at a scheduled time", "calendar"),
    TriggerTemplate(TriggerType.MANUAL, "Manual Trigger", "Trigger manually by a user", "hand-raised"),
)

ACTION_TEMPLATES: tuple[ActionTemplate, ...] = (
    ActionTemplate(
        StepType.TRIGGER_NEW_LEAD, "New Lead Captured", "Start when a lead is captured", "user-plus",
        PaletteCategory.TRIGGERS,
    ),
    ActionTemplate(
        StepType.TRIGGER_DEAL_STAGE, "Deal Stage Changed", "Start when a deal moves stage", "arrows-right-left",
        PaletteCategory.TRIGGERS,
    ),
    ActionTemplate(
        StepType.TRIGGER_FORM_SUBMIT, "Form Submission", "Start when a form is submitted", "document-text",
        PaletteCategory.TRIGGERS,
    ),
    ActionTemplate(StepType.EMAIL, "Send Email", "Send an email to the contact", "envelope", PaletteCategory.ACTIONS),
    ActionTemplate(StepType.SMS, "Send SMS", "Send an SMS to the contact", "chat-bubble-left", PaletteCategory.ACTIONS),
    ActionTemplate(StepType.CALL, "Make Call", "Call the contact from a script", "phone", PaletteCategory.ACTIONS),
    ActionTemplate(StepType.TASK, "Create Task", "Create a task for a team member", "clipboard", PaletteCategory.ACTIONS),
    ActionTemplate(
        StepType.CRM_UPDATE, "Update CRM", "Update fields on the CRM record", "pencil-square", PaletteCategory.ACTIONS
    ),
    ActionTemplate(StepType.DELAY, "Add Delay", "Wait before the next step", "clock", PaletteCategory.LOGIC),
    ActionTemplate(
        StepType.CONDITION, "Add Condition", "Branch on a contact or deal field", "arrows-split", PaletteCategory.LOGIC
    ),
    ActionTemplate(
        StepType.AI_ANALYSIS, "AI Analysis", "Score or classify the prospect with AI", "sparkles", PaletteCategory.LOGIC
    ),
)

_CANVAS_TITLES: dict[StepType, str] = {
    StepType.DELAY: "Wait",
    StepType.CONDITION: "If/Else Condition",
}
"""Titles of placed steps that differ from their palette button label."""


def palette() -> dict[PaletteCategory, list[ActionTemplate]]:
    """Group the action templates by palette category, in display order."""
    groups: dict[PaletteCategory, list[ActionTemplate]] = {category: [] for category in PaletteCategory}
    for template in ACTION_TEMPLATES:
        groups[template.category].append(template)
    return groups


def get_trigger_template(trigger_type: TriggerType | str) -> TriggerTemplate:
    """Look up the template for a trigger type.

    Raises:
        KeyError: If no template exists for ``trigger_type``.
    """
    for template in TRIGGER_TEMPLATES:
        if template.type == trigger_type:
            return template
    raise KeyError(trigger_type)


def step_title(step_type: StepType | str) -> str:
    """Title shown on a placed step of ``step_type``."""
    if step_type in _CANVAS_TITLES:
        return _CANVAS_TITLES[step_type]  # type: ignore[index]
    for template in ACTION_TEMPLATES:
        if template.type == step_type:
            return template.name
    return "Step"


FALLBACK_RECOMMENDATIONS: tuple[StepRecommendation, ...] = (
    StepRecommendation("Add Email Follow-up", "Send an automated email 3 days after initial contact", StepType.EMAIL),
    StepRecommendation("Add Task Reminder", "Create a task for sales rep to follow up by phone", StepType.TASK),
    StepRecommendation(
        "Add Lead Scoring", "Use AI to analyze prospect engagement and score leads", StepType.AI_ANALYSIS
    ),
)
"""Recommendations offered when the AI endpoint has nothing to say."""


def suggest_steps(steps: Iterable[WorkflowStep]) -> list[StepRecommendation]:
    """Recommendations for step kinds the workflow does not use yet."""
    present = {step.type for step in steps}
    return [recommendation for recommendation in FALLBACK_RECOMMENDATIONS if recommendation.type not in present]


@dataclass(frozen=True)
class WorkflowTemplate:
    """A ready-made workflow users can start from.

    Attributes:
        id: Template id.
        name: Display name.
        description: What the workflow does.
        category: One of :data:`TEMPLATE_CATEGORIES` other than ``all``.
        popularity: How many teams use it.
        average_rating: Mean rating out of five.
        workflow: Prototype workflow copied into the builder.
    """

    id: str
    name: str
    description: str
    category: str
    popularity: int
    average_rating: float
    workflow: Workflow


TEMPLATE_CATEGORIES: tuple[str, ...] = ("all", "sales", "onboarding", "support", "marketing")


def _prototype(name: str, trigger: TriggerType, *steps: tuple[StepType, dict]) -> Workflow:
    return Workflow(
        name=name,
        status=WorkflowStatus.DRAFT,
        trigger=get_trigger_template(trigger).to_trigger(),
        steps=[
            WorkflowStep(id=f"tpl-{index}", type=step_type, config=config, position=index, name=step_title(step_type))
            for index, (step_type, config) in enumerate(steps)
        ],
    )


WORKFLOW_TEMPLATES: tuple[WorkflowTemplate, ...] = (
    WorkflowTemplate(
        id="lead-nurture",
        name="Lead Nurture",
        description="Welcome new leads, wait, then follow up and hand off to a rep",
        category="sales",
        popularity=128,
        average_rating=4.6,
        workflow=_prototype(
            "Lead Nurture",
            TriggerType.NEW_LEAD,
            (StepType.EMAIL, {"template": "welcome", "subject": "Welcome aboard"}),
            (StepType.DELAY, {"duration": 72}),
            (StepType.EMAIL, {"template": "follow_up", "subject": "Checking in"}),
            (StepType.TASK, {"title": "Call the lead", "assignee": "owner"}),
        ),
    ),
    WorkflowTemplate(
        id="deal-proposal",
        name="Proposal Follow-up",
        description="Send a proposal when a deal reaches the proposal stage and qualify the response",
        category="sales",
        popularity=87,
        average_rating=4.3,
        workflow=_prototype(
            "Proposal Follow-up",
            TriggerType.DEAL_STAGE_CHANGE,
            (StepType.EMAIL, {"template": "proposal", "subject": "Your proposal"}),
            (StepType.DELAY, {"duration": 48}),
            (StepType.AI_ANALYSIS, {"type": "qualification", "threshold": 0.7}),
        ),
    ),
    WorkflowTemplate(
        id="customer-onboarding",
        name="Customer Onboarding",
        description="Greet new customers by SMS and schedule a kickoff call",
        category="onboarding",
        popularity=64,
        average_rating=4.1,
        workflow=_prototype(
            "Customer Onboarding",
            TriggerType.FORM_SUBMISSION,
            (StepType.SMS, {"message": "Thanks for signing up! We'll be in touch shortly."}),
            (StepType.CALL, {"script": "Kickoff agenda", "duration": 30}),
            (StepType.CRM_UPDATE, {"fields": {"lifecycle_stage": "customer"}}),
        ),
    ),
    WorkflowTemplate(
        id="support-escalation",
        name="Support Escalation",
        description="Escalate negative-sentiment conversations to a manager",
        category="support",
        popularity=41,
        average_rating=3.9,
        workflow=_prototype(
            "Support Escalation",
            TriggerType.MANUAL,
            (StepType.AI_ANALYSIS, {"type": "sentiment"}),
            (StepType.CONDITION, {"field": "sentiment", "operator": "equals", "value": "negative"}),
            (StepType.TASK, {"title": "Review escalated conversation", "assignee": "manager"}),
        ),
    ),
)


def filter_templates(category: str = "all") -> list[WorkflowTemplate]:
    """Templates in ``category``; ``all`` returns every template."""
    return [t for t in WORKFLOW_TEMPLATES if category == "all" or t.category == category]


def instantiate_template(template: WorkflowTemplate) -> Workflow:
    """Copy a template's workflow for editing.

    The copy has no id, is named ``"<template name> (Copy)"`` and gets fresh
    step ids so it never aliases the template.
    """
    prototype = template.workflow
    steps = [
        WorkflowStep.create(step.type, position=step.position, config=step.config.to_dict(), name=step.name)
        for step in prototype.steps
    ]
    return replace(
        prototype,
        id="",
        name=f"{template.name} (Copy)",
        description=template.description,
        trigger=replace(prototype.trigger) if prototype.trigger else None,
        steps=steps,
        updated_at=None,
        created_at=None,
    )
